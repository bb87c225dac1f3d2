"""Parsing of command line arguments into configuration overrides.
"""

def to_overrides(args):
    """Convert input arguments into configuration key tuples and values.

    Arguments not given on the command line come through as None and leave
    the configuration unchanged.
    """
    return {("algorithm", "num_cores"): _positive_int(getattr(args, "numcores", None), "numcores"),
            ("algorithm", "max_jobs"): _positive_int(getattr(args, "max_jobs", None), "max-jobs"),
            ("dirs", "repo"): getattr(args, "repo_dir", None),
            ("log_dir",): getattr(args, "log_dir", None),
            ("verbose",): getattr(args, "verbose", None) or None}

def _positive_int(val, name):
    if val is None:
        return None
    if int(val) < 1:
        raise ValueError("--%s needs to be at least 1, found %s" % (name, val))
    return int(val)
