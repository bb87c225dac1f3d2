"""Per-sample processing: map paired reads, coordinate sort and index.

Each stage checks its output against its inputs and is skipped when the
output is up to date, so a rerun only repeats work for samples whose inputs
changed. Outputs are written through file transactions and validated before
being moved into place.
"""
import collections

from ldpolya import bam, utils
from ldpolya.distributed.transaction import file_transaction
from ldpolya.log import logger
from ldpolya.ngsalign import smalt
from ldpolya.provenance import do

DONE, SKIPPED, FAILED = "done", "skipped", "failed"
RUN, SKIP = "run", "skip"

SampleResult = collections.namedtuple("SampleResult", ["name", "status", "stages", "error"])


class MissingArtifactError(Exception):
    pass


def needs_map(sample):
    """Map unless the unsorted or the sorted BAM is already current with the reads.

    The unsorted BAM is removed after sorting, so an up to date sorted BAM
    also counts as mapped.
    """
    reads = [sample.r1, sample.r2]
    return not (utils.file_uptodate(sample.bam, reads) or
                utils.file_uptodate(sample.sorted_bam, reads))

def needs_sort(sample):
    return not utils.file_uptodate(sample.sorted_bam, sample.bam)

def needs_index(sample):
    return not utils.file_uptodate(sample.bai, sample.sorted_bam)

def map_reads(sample, index_prefix, config):
    """Align read pairs with smalt, keeping properly paired mapped reads in an unsorted BAM.
    """
    with file_transaction(sample.bam) as tx_bam:
        cmd = "%s | %s" % (smalt.align_cl(sample.r1, sample.r2, index_prefix, sample.map_log, config),
                           bam.proper_pair_cl(tx_bam, config))
        do.run(cmd, "Map with smalt", sample.name)
        bam.quickcheck(tx_bam, config)
    utils.remove_if_empty(sample.map_log)
    return sample.bam

def sort_bam(sample, config):
    """Sort the mapped reads, removing the unsorted BAM once the sorted one is in place.
    """
    bam.sort(sample.bam, sample.sorted_bam, config, sample.sort_log)
    bam.remove(sample.bam)
    utils.remove_if_empty(sample.sort_log)
    return sample.sorted_bam

def index_bam(sample, config):
    out_file = bam.index(sample.sorted_bam, config, sample.sort_log)
    utils.remove_if_empty(sample.sort_log)
    return out_file

def _run_stage(label, sample, needed, fn, *args):
    if not needed:
        logger.info("[%s] SKIP (up-to-date) %s" % (label, sample.name))
        return SKIP
    logger.info("[%s] start: %s" % (label, sample.name))
    fn(*args)
    logger.info("[%s] done: %s" % (label, sample.name))
    return RUN

def run_chain(sample, index_prefix, config):
    """Run map, sort and index for one sample, returning the action taken per stage.
    """
    stages = {}
    stages["map"] = _run_stage("MAP", sample, needs_map(sample),
                               map_reads, sample, index_prefix, config)
    if needs_sort(sample) and not utils.file_exists(sample.bam):
        raise MissingArtifactError("BAM missing for %s: %s" % (sample.name, sample.bam))
    stages["sort"] = _run_stage("SORT", sample, needs_sort(sample), sort_bam, sample, config)
    stages["index"] = _run_stage("INDEX", sample, needs_index(sample), index_bam, sample, config)
    return stages

def process_sample(sample, index_prefix, config):
    """Process a sample, turning any failure into a failed result for this sample only.
    """
    logger.info("[START] %s" % sample.name)
    try:
        stages = run_chain(sample, index_prefix, config)
    except Exception as e:
        logger.error("[ERROR] %s: %s" % (sample.name, e))
        return SampleResult(sample.name, FAILED, {}, str(e))
    logger.info("[DONE] %s" % sample.name)
    return SampleResult(sample.name, DONE, stages, None)
