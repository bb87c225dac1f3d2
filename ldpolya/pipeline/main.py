"""Main entry point for mapping paired-end PolyA RNA-seq reads.

FASTQ/ (paired-end .fastq.gz) -> Bams/<sample>.sorted.bam (+ .bai)

Checks tools and reference data up front, then runs one map, sort and index
chain per sample with a bounded number of chains at once. A failing sample
does not stop the others.
"""
import collections
import glob
import os

from ldpolya import fastq, utils
from ldpolya.distributed import multi
from ldpolya.log import logger
from ldpolya.ngsalign import smalt
from ldpolya.pipeline import config_utils, sample

def run_main(config):
    """Process all samples in the FASTQ directory, returning a result per sample.

    Raises CmdNotFound, MissingInputError or IndexBuildError when the run
    cannot start.
    """
    index_prefix = check_reference(config)
    fastq_dir = config_utils.get_dir("fastq", config)
    if not os.path.isdir(fastq_dir):
        raise config_utils.MissingInputError(
            "FASTQ directory does not exist in the current working directory: %s\n"
            "Please create FASTQ/ and place paired-end *.fastq.gz files inside it." % fastq_dir)
    bam_dir = utils.safe_makedir(config_utils.get_dir("bams", config))
    log_dir = utils.safe_makedir(config_utils.get_dir("logs", config))

    samples, skipped = fastq.discover(fastq_dir, bam_dir, log_dir)
    if not samples and not skipped:
        logger.info("No FASTQ/*_R1*.fastq.gz files found in %s" % fastq_dir)
        return []
    results = [sample.SampleResult(name, sample.SKIPPED, {}, reason) for name, reason in skipped]
    results.extend(multi.run_multicore(sample.process_sample,
                                       [(s, index_prefix, config) for s in samples],
                                       config_utils.get_max_jobs(config)))
    logger.info("[STAGE] All per-sample chains finished.")
    cleanup_logs(log_dir)
    summarize(results)
    return results

def check_reference(config):
    """Check required tools and reference files, building the smalt index if missing.
    """
    for program in ["smalt", "samtools"]:
        config_utils.get_program(program, config)
    db_dir = config_utils.get_db_dir(config)
    if not os.path.isdir(db_dir):
        raise config_utils.MissingInputError("DB directory not found: %s" % db_dir)
    ref_file = config_utils.get_genome_file("fasta", config)
    if not os.path.isfile(ref_file):
        raise config_utils.MissingInputError("genome FASTA not found: %s" % ref_file)
    return smalt.prepare_index(ref_file, config_utils.get_genome_file("index", config), config)

def cleanup_logs(log_dir):
    """Remove empty log files, keeping only logs with tool messages.
    """
    return [f for f in sorted(glob.glob(os.path.join(log_dir, "*.log")))
            if utils.remove_if_empty(f)]

def summarize(results):
    counts = collections.Counter(r.status for r in results)
    logger.info("Samples: %s done, %s skipped, %s failed" %
                (counts[sample.DONE], counts[sample.SKIPPED], counts[sample.FAILED]))
    for r in results:
        if r.status == sample.DONE:
            ran = [stage for stage, action in r.stages.items() if action == sample.RUN]
            logger.info("  %s: %s" % (r.name, ", ".join(ran) if ran else "up-to-date"))
        elif r.status == sample.SKIPPED:
            logger.warning("  %s: skipped, %s" % (r.name, r.error))
        else:
            logger.error("  %s: failed, %s" % (r.name, r.error))
    return counts
