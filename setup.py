#!/usr/bin/env python

"""Setup file and install script for the L. donovani PolyA RNA-seq mapping pipeline"""

import os
import subprocess

import setuptools

VERSION = '0.1.0'

# add version number and git commit hash of the current revision to version.py
try:
    git_run = subprocess.run(['git', 'rev-parse', '--short', 'HEAD'], stdout=subprocess.PIPE,
                             stderr=subprocess.DEVNULL)
    git_run.check_returncode()
except (OSError, subprocess.SubprocessError):
    commit_hash = ''
else:
    commit_hash = git_run.stdout.strip().decode()

here = os.path.dirname(os.path.abspath(__file__))
with open(os.path.join(here, 'ldpolya', 'pipeline', 'version.py'), 'w') as version_file:
    version_file.writelines([f'__version__ = "{VERSION}"\n',
                             f'__git_revision__ = "{commit_hash}"\n'])

# smalt, samtools and bedtools are external programs, installed via Conda
# (bioconda) or the system package manager
setuptools.setup(name='ldpolya',
                 version=VERSION,
                 description='L. donovani PolyA RNA-seq mapping and counting pipeline',
                 packages=setuptools.find_packages(exclude=['tests', 'tests.*']),
                 scripts=['scripts/ldpolya_pipeline.py'],
                 python_requires='>=3.7',
                 install_requires=['logbook',
                                   'toolz',
                                   'PyYAML',
                                   'joblib',
                                   'pandas'],
                 extras_require={'test': ['pytest',
                                          'pytest-mock']})
