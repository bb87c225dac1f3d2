#!/usr/bin/env python
"""Map L. donovani PolyA RNA-seq reads and prepare DESeq2 inputs.

Run from a working directory that contains FASTQ/ with paired-end
*_R1.fastq.gz/*_R2.fastq.gz (or *_R1_001.fastq.gz/*_R2_001.fastq.gz) files.
Produces Bams/<sample>.sorted.bam and .bai, with tool messages in Logs/.

Usage:
  ldpolya_pipeline.py [-n threads] [-j max_jobs] [-c config.yaml]
  ldpolya_pipeline.py multicov [BED] [-o multicov_counts.tsv]
  ldpolya_pipeline.py deseq-inputs [multicov_counts.tsv] [counts.tsv] [colData.tsv]

Environmental overrides:
  threads=16 max_jobs=10 SMALT=smalt SAMTOOLS=samtools BEDTOOLS=bedtools
  REPO_DIR=/path/to/repo (directory holding DB/)
"""
import argparse
import os
import subprocess
import sys

import yaml

from ldpolya import utils
from ldpolya.distributed import clargs
from ldpolya.log import logger, setup_local_logging
from ldpolya.ngsalign.smalt import IndexBuildError
from ldpolya.pipeline import config_utils, sample, version
from ldpolya.pipeline.main import run_main
from ldpolya.rnaseq import count

STARTUP_ERRORS = (config_utils.CmdNotFound, config_utils.MissingInputError, IndexBuildError,
                  subprocess.CalledProcessError)

def parse_cl_args(in_args):
    """Parse input commandline arguments, handling supplemental commands.
    """
    sub_cmds = {"multicov": count.add_multicov_subparser,
                "deseq-inputs": count.add_deseq_subparser}
    description = "L. donovani PolyA RNA-seq mapping pipeline."
    parser = argparse.ArgumentParser(description=description)
    parser.add_argument("-c", "--config",
                        help="YAML configuration file overriding defaults")
    parser.add_argument("--repo-dir",
                        help="Directory containing DB/ with the reference genome and index")
    parser.add_argument("--log-dir",
                        help="Directory to write pipeline log files to")
    parser.add_argument("--verbose", action="store_true", default=False,
                        help="Log commands and tool output")
    sub_cmd = next((x for x in in_args if x in sub_cmds), None)
    if sub_cmd:
        subparser_help = "ldpolya supplemental commands"
        subparsers = parser.add_subparsers(help=subparser_help)
        sub_cmds[sub_cmd](subparsers)
    else:
        parser.add_argument("-n", "--numcores", type=int,
                            help="Threads for each smalt/samtools call (default 8)")
        parser.add_argument("-j", "--max-jobs", type=int,
                            help="Samples to process at once (default 25)")
        parser.add_argument("--workdir", default=os.getcwd(),
                            help="Directory containing FASTQ/. Defaults to current working directory")
        parser.add_argument("--fail-on-error", action="store_true", default=False,
                            help="Exit with an error status if any sample fails")
        parser.add_argument("-v", "--version", help="Print current version",
                            action="store_true")
    args = parser.parse_args(in_args)
    args.sub_cmd = sub_cmd
    return args

def main(args):
    if getattr(args, "version", False):
        print(version.__version__)
        return 0
    try:
        config = config_utils.load_config(args.config, clargs.to_overrides(args))
    except (ValueError, IOError, yaml.YAMLError) as e:
        sys.stderr.write("Error: %s\n" % e)
        return 1
    setup_local_logging(config)
    try:
        if args.sub_cmd == "multicov":
            bed_file = args.bed or config_utils.get_genome_file("bed", config)
            count.multicov(count.find_bams(), bed_file, args.out, config)
        elif args.sub_cmd == "deseq-inputs":
            count.prepare_deseq_inputs(args.multicov, args.counts, args.coldata)
        else:
            if not os.path.isdir(args.workdir):
                raise config_utils.MissingInputError("Working directory not found: %s" % args.workdir)
            with utils.chdir(args.workdir):
                results = run_main(config)
            logger.info("SCRIPT FINISHED.")
            if args.fail_on_error and any(r.status == sample.FAILED for r in results):
                return 1
    except STARTUP_ERRORS as e:
        logger.error("Error: %s" % e)
        return 1
    return 0

if __name__ == "__main__":
    sys.exit(main(parse_cl_args(sys.argv[1:])))
