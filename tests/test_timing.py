"""Tests for the TRAILMAP_TIMING frame build reports."""

from collections import Counter

import pytest

from trailmap import _timing


@pytest.fixture
def fresh_counts(monkeypatch):
    monkeypatch.setattr(_timing, "_builds", Counter())


def test_disabled_timing_is_silent(monkeypatch, capsys):
    monkeypatch.setattr(_timing, "_TIMING_ENABLED", False)
    with _timing.timing("build_frame", n_rows=3):
        pass
    assert capsys.readouterr().err == ""
    assert not _timing.is_timing_enabled()


def test_enabled_timing_reports_stage_and_batch(monkeypatch, capsys, fresh_counts):
    monkeypatch.setattr(_timing, "_TIMING_ENABLED", True)
    with _timing.timing("build_frame", n_rows=250):
        pass
    err = capsys.readouterr().err
    assert err.startswith("[TIMING] build_frame #1: ")
    assert err.rstrip().endswith("ms (250 rows)")
    assert _timing.is_timing_enabled()


def test_builds_numbered_per_stage(monkeypatch, capsys, fresh_counts):
    monkeypatch.setattr(_timing, "_TIMING_ENABLED", True)
    for stage in ("initial_frame", "build_frame", "build_frame"):
        with _timing.timing(stage):
            pass
    lines = capsys.readouterr().err.splitlines()
    assert [line.split(":")[0] for line in lines] == [
        "[TIMING] initial_frame #1",
        "[TIMING] build_frame #1",
        "[TIMING] build_frame #2",
    ]
    assert not lines[0].endswith("rows)")
