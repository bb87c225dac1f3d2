import os

import pytest

from ldpolya import utils

def _touch(fname, content="x", mtime=None):
    with open(fname, "w") as out_handle:
        out_handle.write(content)
    if mtime is not None:
        os.utime(fname, (mtime, mtime))
    return fname

@pytest.fixture
def files(tmp_path):
    base = 1600000000
    return {"in1": _touch(str(tmp_path / "in1.fq"), mtime=base),
            "in2": _touch(str(tmp_path / "in2.fq"), mtime=base + 10),
            "out": str(tmp_path / "out.bam"),
            "base": base}

def test_file_exists_requires_content(tmp_path):
    empty = _touch(str(tmp_path / "empty"), content="")
    assert not utils.file_exists(empty)
    assert not utils.file_exists(str(tmp_path / "missing"))
    assert not utils.file_exists(None)
    assert utils.file_exists(_touch(str(tmp_path / "full")))

def test_file_uptodate_missing_output_is_stale(files):
    assert not utils.file_uptodate(files["out"], [files["in1"], files["in2"]])

def test_file_uptodate_empty_output_is_stale(files):
    _touch(files["out"], content="", mtime=files["base"] + 100)
    assert not utils.file_uptodate(files["out"], [files["in1"], files["in2"]])

def test_file_uptodate_older_than_any_input_is_stale(files):
    _touch(files["out"], mtime=files["base"] + 5)
    assert utils.file_uptodate(files["out"], files["in1"])
    assert not utils.file_uptodate(files["out"], [files["in1"], files["in2"]])

def test_file_uptodate_same_time_is_fresh(files):
    _touch(files["out"], mtime=files["base"] + 10)
    assert utils.file_uptodate(files["out"], [files["in1"], files["in2"]])

def test_file_uptodate_ignores_missing_inputs(files, tmp_path):
    _touch(files["out"], mtime=files["base"] + 20)
    cleaned_up = str(tmp_path / "intermediate.bam")
    assert utils.file_uptodate(files["out"], cleaned_up)
    assert utils.file_uptodate(files["out"], [files["in1"], cleaned_up])

def test_remove_if_empty(tmp_path):
    empty = _touch(str(tmp_path / "a.log"), content="")
    full = _touch(str(tmp_path / "b.log"), content="warning\n")
    assert utils.remove_if_empty(empty)
    assert not utils.remove_if_empty(full)
    assert not utils.remove_if_empty(str(tmp_path / "missing.log"))
    assert not os.path.exists(empty)
    assert os.path.exists(full)


def test_which_finds_executables_on_path(tmp_path):
    exe = tmp_path / "tool"
    exe.write_text("#!/bin/sh\n")
    exe.chmod(0o755)
    env = {"PATH": str(tmp_path)}
    assert utils.which("tool", env) == str(exe)
    assert utils.which(str(exe), env) == str(exe)
    assert utils.which("missing-tool", env) is None


def test_chdir_restores_directory(tmp_path, monkeypatch):
    monkeypatch.chdir(str(tmp_path))
    (tmp_path / "run").mkdir()
    with utils.chdir(str(tmp_path / "run")):
        assert os.getcwd() == str(tmp_path / "run")
    assert os.getcwd() == str(tmp_path)
    with pytest.raises(OSError):
        with utils.chdir(str(tmp_path / "missing")):
            pass
    assert not os.path.exists(str(tmp_path / "missing"))
