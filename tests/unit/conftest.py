"""Pytest fixtures: a working directory, reference data and stand-ins for smalt, samtools and bedtools.

The stand-in tools are small bash scripts following the command lines the
pipeline issues. They append each call to the file named by $FAKE_CALLS, so
tests can check which stages ran.
"""
import os
import stat

import logbook
import pytest

from ldpolya.pipeline import config_utils

FAKE_SMALT = r"""#!/bin/bash
cmd="$1"; shift
[ -n "$FAKE_CALLS" ] && echo "smalt $cmd $*" >> "$FAKE_CALLS"
case "$cmd" in
  index)
    # index -k K -s S PREFIX FASTA
    [ -n "$FAKE_SMALT_INDEX_FAIL" ] && exit 0
    cp "$6" "$5.smi"
    echo "hash table" > "$5.sma"
    ;;
  map)
    # map -n N PREFIX R1 R2
    grep -q NOISY "$4" && echo "smalt warning: low quality reads" >&2
    printf 'ALN\t%s\t%s\n' "$(basename "$4")" "$(basename "$5")"
    cat "$4"
    ;;
  *)
    exit 1
    ;;
esac
"""

FAKE_SAMTOOLS = r"""#!/bin/bash
cmd="$1"; shift
[ -n "$FAKE_CALLS" ] && echo "samtools $cmd $*" >> "$FAKE_CALLS"
out=""; threads=""; args=()
while [ $# -gt 0 ]; do
  case "$1" in
    -o) out="$2"; shift 2;;
    -@) threads="$2"; shift 2;;
    -f|-F|-O) shift 2;;
    -b|-v) shift;;
    *) args+=("$1"); shift;;
  esac
done
case "$cmd" in
  view)
    cat > "$out"
    ;;
  quickcheck)
    [ -s "${args[0]}" ] || exit 1
    grep -q CORRUPT "${args[0]}" && { echo "${args[0]} had no EOF marker" >&2; exit 1; }
    exit 0
    ;;
  sort)
    { echo "SORTED"; cat "${args[0]}"; } > "$out"
    ;;
  index)
    if [ -n "$threads" ] && [ -n "$FAKE_SAMTOOLS_NO_THREADS" ]; then
      echo "index: invalid option -- '@'" >&2
      exit 1
    fi
    in="${args[0]}"
    bai="${args[1]:-$in.bai}"
    echo "BAI $(basename "$in")" > "$bai"
    ;;
  *)
    exit 1
    ;;
esac
"""

FAKE_BEDTOOLS = r"""#!/bin/bash
cmd="$1"; shift
[ -n "$FAKE_CALLS" ] && echo "bedtools $cmd $*" >> "$FAKE_CALLS"
bed=""; bams=()
while [ $# -gt 0 ]; do
  case "$1" in
    -bed) bed="$2"; shift 2;;
    -bams) shift; while [ $# -gt 0 ]; do bams+=("$1"); shift; done;;
    *) shift;;
  esac
done
while IFS= read -r line; do
  printf '%s' "$line"
  for b in "${bams[@]}"; do printf '\t%s' "$(wc -c < "$b" | tr -d ' ')"; done
  printf '\n'
done < "$bed"
"""

GENOME = "Leishmania_donovani_sudanese.fa"


def _write_exe(fname, content):
    with open(fname, "w") as out_handle:
        out_handle.write(content)
    os.chmod(fname, os.stat(fname).st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return fname


def write_fastq(fname, content="@read1\nACGT\n+\nIIII\n"):
    with open(fname, "w") as out_handle:
        out_handle.write(content)
    return fname


def read_calls(calls_file):
    if not os.path.exists(calls_file):
        return []
    with open(calls_file) as in_handle:
        return [l.strip() for l in in_handle if l.strip()]


@pytest.fixture
def fake_tools(tmp_path, monkeypatch):
    """Put stand-in smalt, samtools and bedtools first on the PATH, recording calls.
    """
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    _write_exe(str(bin_dir / "smalt"), FAKE_SMALT)
    _write_exe(str(bin_dir / "samtools"), FAKE_SAMTOOLS)
    _write_exe(str(bin_dir / "bedtools"), FAKE_BEDTOOLS)
    calls_file = str(tmp_path / "calls.txt")
    monkeypatch.setenv("PATH", str(bin_dir) + os.pathsep + os.environ.get("PATH", ""))
    monkeypatch.setenv("FAKE_CALLS", calls_file)
    for var in ["FAKE_SMALT_INDEX_FAIL", "FAKE_SAMTOOLS_NO_THREADS"]:
        monkeypatch.delenv(var, raising=False)
    return calls_file


@pytest.fixture
def repo_dir(tmp_path):
    """Repository directory with DB/ holding the reference genome.
    """
    db_dir = tmp_path / "repo" / "DB"
    db_dir.mkdir(parents=True)
    (db_dir / GENOME).write_text(">chr1\nACGTACGTACGT\n")
    return str(tmp_path / "repo")


@pytest.fixture
def work_dir(tmp_path, monkeypatch):
    """Working directory with an empty FASTQ/ directory, made current for the test.
    """
    wdir = tmp_path / "work"
    (wdir / "FASTQ").mkdir(parents=True)
    monkeypatch.chdir(str(wdir))
    return str(wdir)


@pytest.fixture
def config(repo_dir, fake_tools):
    return config_utils.load_config(overrides={("dirs", "repo"): repo_dir,
                                               ("algorithm", "num_cores"): 2,
                                               ("algorithm", "max_jobs"): 2},
                                    environ={})


@pytest.fixture
def log_handler():
    """Capture log records from all threads.
    """
    handler = logbook.TestHandler()
    with handler.applicationbound():
        yield handler


@pytest.fixture
def tool_calls(fake_tools):
    """Callable returning the stand-in tool calls made so far.
    """
    return lambda: read_calls(fake_tools)


@pytest.fixture
def add_pair(work_dir):
    """Write a read 1 and read 2 file pair into FASTQ/, returning their paths.
    """
    def _add(r1_name, content="@read1\nACGT\n+\nIIII\n", with_r2=True):
        r1 = write_fastq(os.path.join(work_dir, "FASTQ", r1_name), content)
        r2 = os.path.join(work_dir, "FASTQ", r1_name.replace("_R1", "_R2", 1))
        if with_r2:
            write_fastq(r2, content)
        return r1, r2
    return _add
