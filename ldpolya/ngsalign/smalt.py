"""Next gen sequence alignments with SMALT.

https://www.sanger.ac.uk/tool/smalt-0/
"""
import os
import shlex

from ldpolya import utils
from ldpolya.distributed.transaction import file_transaction
from ldpolya.log import logger
from ldpolya.pipeline import config_utils
from ldpolya.provenance import do

INDEX_EXTS = [".smi", ".sma"]
# k-mer word length and sampling step for hashing the reference
INDEX_WORDLEN = 11
INDEX_STEP = 1


class IndexBuildError(Exception):
    pass


def index_files(index_prefix):
    return [index_prefix + ext for ext in INDEX_EXTS]

def has_index(index_prefix):
    return all(os.path.exists(f) for f in index_files(index_prefix))

def prepare_index(ref_file, index_prefix, config):
    """Build the SMALT hash index for a reference, skipping if present.

    The index is a pair of files sharing a prefix; a build that does not
    produce both raises IndexBuildError.
    """
    if has_index(index_prefix):
        logger.info("[DB] SMALT index found: %s.smi/.sma" % index_prefix)
        return index_prefix
    logger.info("[DB] SMALT index not found. Building it now...")
    smalt = config_utils.get_program("smalt", config)
    with file_transaction(*index_files(index_prefix)) as tx_files:
        tx_prefix = os.path.splitext(tx_files[0])[0]
        cmd = "{smalt} index -k {wordlen} -s {step} {tx_prefix} {ref_file}".format(
            smalt=shlex.quote(smalt), wordlen=INDEX_WORDLEN, step=INDEX_STEP,
            tx_prefix=shlex.quote(tx_prefix), ref_file=shlex.quote(ref_file))
        do.run(cmd, "Build SMALT index for %s" % os.path.basename(ref_file))
        missing = [f for f in tx_files if not os.path.exists(f)]
        if missing:
            raise IndexBuildError("SMALT index build failed (missing %s.smi/.sma)" % index_prefix)
    logger.info("[DB] SMALT index built successfully.")
    return index_prefix

def align_cl(fastq_file, pair_file, index_prefix, log_file, config):
    """Command line streaming SMALT alignments, aligner messages going to log_file.
    """
    smalt = config_utils.get_program("smalt", config)
    num_cores = config_utils.get_num_cores(config)
    utils.safe_makedir(os.path.dirname(log_file))
    return "%s map -n %s %s %s %s 2> %s" % (shlex.quote(smalt), num_cores, shlex.quote(index_prefix),
                                            shlex.quote(fastq_file), shlex.quote(pair_file),
                                            shlex.quote(log_file))
