"""Run tasks in parallel on a single machine with a bounded number of job slots.
"""
import joblib

from ldpolya.log import logger


def run_multicore(fn, items, max_jobs=1):
    """Run the function on the given items, with at most max_jobs running at once.

    Each item is a tuple of arguments for fn. Items are admitted in order as
    slots free up; results come back in item order. fn is responsible for
    catching its own failures: an exception escaping a task stops admission
    of further items.
    """
    items = [x for x in items if x is not None]
    if len(items) == 0:
        return []
    max_jobs = int(max_jobs)
    if max_jobs < 1:
        raise ValueError("Need at least one job slot, got max_jobs=%s" % max_jobs)
    num_jobs = min(max_jobs, len(items))
    logger.debug("Running %s tasks with %s job slots" % (len(items), num_jobs))
    return joblib.Parallel(num_jobs, backend="threading", batch_size=1)(
        joblib.delayed(fn)(*x) for x in items)
