"""Discover paired-end FASTQ inputs and the per-sample files derived from them.

Read 1 files are named <base>_R1.fastq.gz or <base>_R1_<digits>.fastq.gz,
with the matching read 2 file substituting R2 for R1.
"""
import collections
import glob
import os
import re

from ldpolya.log import logger

R1_RE = re.compile(r"^(?P<base>.*)_R1(?P<suffix>_[0-9]+)?\.fastq\.gz$")
# suffixed read 1 files are processed first, then plain ones
R1_GLOBS = ["*_R1_*.fastq.gz", "*_R1.fastq.gz"]

Sample = collections.namedtuple("Sample", ["name", "r1", "r2", "bam", "sorted_bam", "bai",
                                           "map_log", "sort_log"])

def parse_r1(fname):
    """Split a read 1 file name into base name and read 2 file name.

    Returns None for names not following either read 1 convention.
    """
    m = R1_RE.match(os.path.basename(fname))
    if not m:
        return None
    base = m.group("base")
    r2 = "%s_R2%s.fastq.gz" % (base, m.group("suffix") or "")
    return base, r2

def find_r1_files(fastq_dir):
    """List read 1 files in discovery order.
    """
    out = []
    for pattern in R1_GLOBS:
        for fname in sorted(glob.glob(os.path.join(fastq_dir, pattern))):
            if parse_r1(fname) and fname not in out:
                out.append(fname)
    return out

def make_sample(r1, r2, bam_dir, log_dir):
    base = parse_r1(r1)[0]
    bam = os.path.join(bam_dir, "%s.bam" % base)
    sorted_bam = os.path.join(bam_dir, "%s.sorted.bam" % base)
    return Sample(base, r1, r2, bam, sorted_bam, sorted_bam + ".bai",
                  os.path.join(log_dir, "%s.smalt.log" % base),
                  os.path.join(log_dir, "%s.sort.log" % base))

def discover(fastq_dir, bam_dir, log_dir):
    """Pair up read files, returning samples to process and names skipped.

    A read 1 file without its read 2 partner is skipped with a warning, as is a
    second read 1 file resolving to an already seen base name since both would
    write the same outputs.
    """
    samples = []
    skipped = []
    seen = set()
    for r1 in find_r1_files(fastq_dir):
        base, r2_base = parse_r1(r1)
        r2 = os.path.join(os.path.dirname(r1), r2_base)
        if not os.path.exists(r2):
            logger.warning("[WARN] Skipping: paired file not found for %s -> expected %s" % (r1, r2))
            skipped.append((base, "missing read 2 file: %s" % r2))
        elif base in seen:
            logger.warning("[WARN] Skipping: %s resolves to sample %s which is already paired" %
                           (r1, base))
            skipped.append((base, "duplicate sample name from %s" % r1))
        else:
            seen.add(base)
            samples.append(make_sample(r1, r2, bam_dir, log_dir))
    return samples, skipped
