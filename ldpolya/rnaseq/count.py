"""
count reads mapping to annotated transcripts across all samples and prepare
the count and sample tables used for DESeq2

"""
import glob
import os
import shlex

import pandas as pd

from ldpolya import bam, utils
from ldpolya.distributed.transaction import file_transaction
from ldpolya.log import logger
from ldpolya.pipeline import config_utils
from ldpolya.provenance import do

BED_COLUMNS = ["chrom", "start", "end", "gene", "score", "strand"]
GENE_COLUMN = 3
DEFAULT_CONDITION = "TODO"
DEFAULT_BATCH = 1


def find_bams(bam_dir=None):
    """Sorted list of BAM files in Bams/, or the current directory if it is missing.
    """
    if bam_dir is None:
        bam_dir = "Bams" if os.path.isdir("Bams") else "."
    return sorted(f for f in glob.glob(os.path.join(bam_dir, "*.bam")) if os.path.isfile(f))

def sample_name(bam_file):
    return os.path.basename(bam_file)[:-len(".bam")]

def multicov(bam_files, bed_file, out_file, config):
    """Count reads overlapping each BED feature in every BAM file with bedtools multicov.

    Writes the BED columns plus one count column per BAM, named after the file.
    """
    config_utils.get_program("samtools", config)
    bedtools = config_utils.get_program("bedtools", config)
    if not os.path.isfile(bed_file):
        raise config_utils.MissingInputError("BED file not found: %s" % bed_file)
    bam_files = list(bam_files)
    if not bam_files:
        raise config_utils.MissingInputError("No BAM files found to count")
    logger.info("Using BED: %s" % bed_file)
    logger.info("Writing: %s" % out_file)
    for bam_file in bam_files:
        if not os.path.exists(bam_file + ".bai"):
            bam.index(bam_file, config)
    with file_transaction(out_file) as tx_out_file:
        with open(tx_out_file, "w") as out_handle:
            out_handle.write("\t".join(BED_COLUMNS + [sample_name(b) for b in bam_files]) + "\n")
        bam_str = " ".join(shlex.quote(b) for b in bam_files)
        cmd = "%s multicov -bed %s -bams %s >> %s" % (shlex.quote(bedtools), shlex.quote(bed_file),
                                                      bam_str, shlex.quote(tx_out_file))
        do.run(cmd, "Count reads in %s BAM files over %s" %
               (len(bam_files), os.path.basename(bed_file)))
    logger.info("Done: %s" % out_file)
    return out_file

def load_multicov(in_file):
    df = pd.read_csv(in_file, sep="\t", dtype=str, keep_default_na=False)
    if len(df.columns) <= len(BED_COLUMNS):
        raise ValueError("No sample count columns found in %s" % in_file)
    return df

def prepare_deseq_inputs(in_file, counts_file, coldata_file):
    """Convert multicov output into a gene by sample count table and a colData template.

    The colData template lists every sample with a placeholder condition and
    batch for editing before running DESeq2.
    """
    if not utils.file_exists(in_file):
        raise config_utils.MissingInputError("input not found: %s" % in_file)
    df = load_multicov(in_file)
    samples = list(df.columns[len(BED_COLUMNS):])
    counts = df.iloc[:, [GENE_COLUMN] + list(range(len(BED_COLUMNS), len(df.columns)))].copy()
    counts.columns = ["gene"] + samples
    coldata = pd.DataFrame({"SampleID": samples,
                            "Condition": DEFAULT_CONDITION,
                            "Batch": DEFAULT_BATCH})
    with file_transaction(counts_file, coldata_file) as (tx_counts_file, tx_coldata_file):
        counts.to_csv(tx_counts_file, sep="\t", index=False)
        coldata.to_csv(tx_coldata_file, sep="\t", index=False)
    logger.info("Wrote: %s" % counts_file)
    logger.info("Wrote: %s (edit Condition/Batch; comment out samples with #)" % coldata_file)
    return counts_file, coldata_file

def add_multicov_subparser(subparsers):
    parser = subparsers.add_parser("multicov",
                                   help="Count reads per feature across all BAM files")
    parser.add_argument("bed", nargs="?", default=None,
                        help="BED file of features (default DB/LD_mRNAs_w_merged_w_UTRs.bed)")
    parser.add_argument("-o", "--out", default="multicov_counts.tsv",
                        help="Output table of counts")

def add_deseq_subparser(subparsers):
    parser = subparsers.add_parser("deseq-inputs",
                                   help="Prepare counts.tsv and a colData.tsv template from multicov output")
    parser.add_argument("multicov", nargs="?", default="multicov_counts.tsv")
    parser.add_argument("counts", nargs="?", default="counts.tsv")
    parser.add_argument("coldata", nargs="?", default="colData.tsv")
