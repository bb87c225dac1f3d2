"""Centralize running of external commands, providing logging and tracking.
"""
import collections
import os
import subprocess

from ldpolya import utils
from ldpolya.log import logger, logger_cl


def run(cmd, descr=None, sample=None, log_error=True):
    """Run the provided command, logging details and checking for errors.
    """
    if descr:
        descr = _descr_str(descr, sample)
        logger.debug(descr)
    try:
        logger_cl.debug(" ".join(str(x) for x in cmd) if not isinstance(cmd, str) else cmd)
        _do_run(cmd)
    except Exception:
        if log_error:
            logger.exception("Failed: %s" % (descr or "external command"))
        raise

def _descr_str(descr, sample):
    """Add the sample name to a description string.
    """
    if sample:
        descr = "{0} : {1}".format(descr, sample)
    return descr

def find_bash():
    for test_bash in [utils.which("bash"), "/bin/bash", "/usr/bin/bash", "/usr/local/bin/bash"]:
        if test_bash and os.path.exists(test_bash):
            return test_bash
    raise IOError("Could not find bash in any standard location. Needed for unix pipes")

def _normalize_cmd_args(cmd):
    """Normalize subprocess arguments to handle list commands, string and pipes.
    Piped commands set pipefail and require use of bash to help with debugging
    intermediate errors.
    """
    if isinstance(cmd, str):
        # check for standard or anonymous named pipes
        if " | " in cmd or ">(" in cmd or "<(" in cmd:
            return "set -o pipefail; " + cmd, True, find_bash()
        else:
            return cmd, True, None
    else:
        return [str(x) for x in cmd], False, None

def _do_run(cmd):
    """Perform running and check results, raising errors for issues.
    """
    cmd, shell_arg, executable_arg = _normalize_cmd_args(cmd)
    s = subprocess.Popen(
        cmd,
        shell=shell_arg,
        executable=executable_arg,
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        close_fds=True,
    )
    debug_stdout = collections.deque(maxlen=100)
    with s.stdout:
        for line in iter(s.stdout.readline, b""):
            line = line.decode("utf-8", errors="replace")
            if line.rstrip():
                debug_stdout.append(line)
                logger.debug(line.rstrip())
    exitcode = s.wait()
    if exitcode != 0:
        error_msg = " ".join(cmd) if not isinstance(cmd, str) else cmd
        error_msg += "\n"
        error_msg += "".join(debug_stdout)
        raise subprocess.CalledProcessError(exitcode, error_msg)
