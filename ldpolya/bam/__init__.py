"""Functionality to produce, validate, sort and index aligned BAM files.
"""
import os
import shlex
import subprocess

from ldpolya import utils
from ldpolya.distributed.transaction import file_transaction
from ldpolya.log import logger
from ldpolya.pipeline import config_utils
from ldpolya.provenance import do

# SAM flags: keep reads mapped in a proper pair, drop unmapped reads
PROPER_PAIR_FLAG = "0x02"
UNMAPPED_FLAG = "4"


class ArtifactValidationError(Exception):
    pass


def is_bam(fname):
    return fname.endswith(".bam")

def quickcheck(in_bam, config):
    """Validate a BAM file with samtools quickcheck, raising for truncated or corrupt files.
    """
    samtools = config_utils.get_program("samtools", config)
    cmd = "%s quickcheck -v %s" % (shlex.quote(samtools), shlex.quote(in_bam))
    try:
        do.run(cmd, "Check BAM integrity: %s" % os.path.basename(in_bam),
               log_error=False)
    except subprocess.CalledProcessError as e:
        raise ArtifactValidationError("BAM file failed integrity check: %s\n%s" % (in_bam, e.cmd))
    return in_bam

def proper_pair_cl(out_file, config):
    """Command line converting SAM on stdin to BAM holding only mapped, properly paired reads.
    """
    samtools = config_utils.get_program("samtools", config)
    num_cores = config_utils.get_num_cores(config)
    flags = "-f %s -F %s" % (PROPER_PAIR_FLAG, UNMAPPED_FLAG)
    return "%s view -@ %s -b %s -o %s -" % (shlex.quote(samtools), num_cores, flags,
                                             shlex.quote(out_file))

def sort(in_bam, sort_file, config, log_file):
    """Coordinate sort a BAM file, validating the output before it is moved into place.
    """
    assert is_bam(in_bam), "%s in not a BAM file" % in_bam
    samtools = config_utils.get_program("samtools", config)
    cores = config_utils.get_num_cores(config)
    with file_transaction(sort_file) as tx_sort_file:
        cmd = "%s sort -@ %s -O bam -o %s %s 2> %s" % (shlex.quote(samtools), cores,
                                                       shlex.quote(tx_sort_file),
                                                       shlex.quote(in_bam), shlex.quote(log_file))
        do.run(cmd, "Sort BAM file: %s to %s" %
               (os.path.basename(in_bam), os.path.basename(sort_file)))
        quickcheck(tx_sort_file, config)
    return sort_file

def index(in_bam, config, log_file=None):
    """Index a BAM file, retrying without threads for samtools versions lacking -@.
    """
    assert is_bam(in_bam), "%s in not a BAM file" % in_bam
    index_file = "%s.bai" % in_bam
    samtools = config_utils.get_program("samtools", config)
    num_cores = config_utils.get_num_cores(config)
    log_redirect = "2>> %s" % shlex.quote(log_file) if log_file else ""
    with file_transaction(index_file) as tx_index_file:
        files = "%s %s %s" % (shlex.quote(in_bam), shlex.quote(tx_index_file), log_redirect)
        cmd = "%s index -@ %s %s" % (shlex.quote(samtools), num_cores, files)
        try:
            do.run(cmd, "Index BAM file: %s" % os.path.basename(in_bam),
                   log_error=False)
        except subprocess.CalledProcessError:
            logger.warning("samtools index with -@ failed for %s, retrying without threads" %
                           os.path.basename(in_bam))
            utils.remove_safe(tx_index_file)
            cmd = "%s index %s" % (shlex.quote(samtools), files)
            do.run(cmd, "Index BAM file: %s" % os.path.basename(in_bam))
    return index_file

def remove(in_bam):
    """
    remove bam file and the index if exists
    """
    if utils.file_exists(in_bam):
        utils.remove_safe(in_bam)
    if utils.file_exists(in_bam + ".bai"):
        utils.remove_safe(in_bam + ".bai")
