"""Loads configurations from defaults, .yaml files and environmental variables.

Configuration is a nested dictionary:

  algorithm: num_cores (threads per tool call, default 8) and max_jobs
             (sample chains running at once, default 25)
  resources: per program settings, `cmd` giving the executable name or path
  dirs:      repo (holds DB/, defaults to the directory containing the
             ldpolya package), db, and the working directory layout fastq,
             bams and logs
  genome:    reference FASTA, smalt index prefix and feature BED, relative
             to the DB directory
  log_dir:   optional directory for pipeline log files

Precedence, lowest first: defaults, YAML file, environment, command line.
"""
import copy
import os

import toolz as tz
import yaml

import ldpolya
from ldpolya import utils


class CmdNotFound(Exception):
    pass

class MissingInputError(Exception):
    pass


DEFAULTS = {"algorithm": {"num_cores": 8,
                          "max_jobs": 25},
            "resources": {"smalt": {"cmd": "smalt"},
                          "samtools": {"cmd": "samtools"},
                          "bedtools": {"cmd": "bedtools"}},
            "dirs": {"repo": None,
                     "db": "DB",
                     "fastq": "FASTQ",
                     "bams": "Bams",
                     "logs": "Logs"},
            "genome": {"fasta": "Leishmania_donovani_sudanese.fa",
                       "index": "LD_smalt_index",
                       "bed": "LD_mRNAs_w_merged_w_UTRs.bed"},
            "log_dir": None}

# environmental variable -> (config keys, type)
ENV_OVERRIDES = {"threads": (("algorithm", "num_cores"), int),
                 "max_jobs": (("algorithm", "max_jobs"), int),
                 "SMALT": (("resources", "smalt", "cmd"), str),
                 "SAMTOOLS": (("resources", "samtools", "cmd"), str),
                 "BEDTOOLS": (("resources", "bedtools", "cmd"), str),
                 "REPO_DIR": (("dirs", "repo"), str)}

# ## Retrieval functions

def load_config(config_file=None, overrides=None, environ=None):
    """Build the run configuration, merging defaults, a YAML file, environment and overrides.

    overrides is a dictionary of key tuples to values, usually from the
    command line; None values are ignored.
    """
    config = copy.deepcopy(DEFAULTS)
    if config_file:
        with open(config_file) as in_handle:
            config = _merge(config, yaml.safe_load(in_handle) or {})
    config = _apply_env(config, os.environ if environ is None else environ)
    for keys, val in (overrides or {}).items():
        if val is not None:
            config = tz.assoc_in(config, keys, val)
    if not config["dirs"].get("repo"):
        config["dirs"]["repo"] = default_repo_dir()
    config = _expand_paths(config)
    _check_config(config)
    return config

def default_repo_dir():
    """Directory holding the installed ldpolya package, where DB/ lives.
    """
    return os.path.dirname(os.path.dirname(os.path.abspath(ldpolya.__file__)))

def _merge(base, new):
    out = copy.deepcopy(base)
    for k, v in new.items():
        if k in out and isinstance(out[k], dict) and isinstance(v, dict):
            out[k] = _merge(out[k], v)
        else:
            out[k] = v
    return out

def _apply_env(config, environ):
    for var, (keys, convert) in ENV_OVERRIDES.items():
        val = environ.get(var)
        if val:
            try:
                config = tz.assoc_in(config, keys, convert(val))
            except ValueError:
                raise ValueError("Environmental variable %s should be an integer, found %s" %
                                 (var, val))
    return config

def _expand_paths(config):
    for key, val in config["dirs"].items():
        if val:
            config["dirs"][key] = expand_path(val)
    config["dirs"]["repo"] = utils.get_abspath(config["dirs"]["repo"])
    if config.get("log_dir"):
        config["log_dir"] = utils.get_abspath(expand_path(config["log_dir"]))
    return config

def _check_config(config):
    for key in ["num_cores", "max_jobs"]:
        val = config["algorithm"][key]
        if not isinstance(val, int) or val < 1:
            raise ValueError("algorithm: %s needs to be a positive integer, found %s" % (key, val))

def expand_path(path):
    """ Combines os.path.expandvars with replacing ~ with $HOME.
    """
    try:
        return os.path.expandvars(path.replace("~", os.environ["HOME"]))
    except KeyError:
        return os.path.expandvars(path)

def get_resources(name, config):
    """Retrieve resources for a program, pulling from multiple config sources.
    """
    return tz.get_in(["resources", name], config,
                     tz.get_in(["resources", "default"], config, {}))

def get_num_cores(config):
    return tz.get_in(["algorithm", "num_cores"], config, 1)

def get_max_jobs(config):
    return tz.get_in(["algorithm", "max_jobs"], config, 1)

def get_dir(name, config):
    """Retrieve a working directory (fastq, bams, logs) relative to the current directory.
    """
    return utils.get_abspath(config["dirs"][name])

def get_db_dir(config):
    return utils.get_abspath(config["dirs"]["db"], config["dirs"]["repo"])

def get_genome_file(name, config):
    """Retrieve a reference file (fasta, index prefix, bed) inside the DB directory.
    """
    return utils.get_abspath(config["genome"][name], get_db_dir(config))

def get_program(name, config):
    """Retrieve the full path to a program from the configuration.

    Uses `cmd` from the program's resources, falling back to the program name,
    and checks it resolves to an executable, raising CmdNotFound otherwise.
    """
    pconfig = get_resources(name, config)
    if isinstance(pconfig, str):
        program = pconfig
    elif "cmd" in pconfig:
        program = pconfig["cmd"]
    else:
        program = name
    found = utils.which(expand_path(program))
    if not found:
        raise CmdNotFound("%s not found on PATH (configured as %s)" % (name, repr(program)))
    return found
