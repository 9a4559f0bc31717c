"""Tests for the ghosttype CLI entry point (paths that need no tty)."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from ghosttype.main import build_parser, main


@pytest.fixture
def workdir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    return tmp_path


class TestParser:
    def test_defaults(self) -> None:
        args = build_parser().parse_args([])
        assert args.samples is None
        assert args.sample is None
        assert not args.no_ghost

    def test_flags(self) -> None:
        args = build_parser().parse_args(
            ["--samples", "s.json", "--sample", "2", "--no-ghost", "--log-level", "debug"]
        )
        assert args.samples == "s.json"
        assert args.sample == 2
        assert args.no_ghost
        assert args.log_level == "debug"


class TestMainErrors:
    def test_missing_samples_file(self, workdir: Path, capsys) -> None:
        assert main([]) == 1
        assert "savedSamples.json" in capsys.readouterr().err

    def test_sample_index_out_of_range(self, workdir: Path, capsys) -> None:
        (workdir / "savedSamples.json").write_text(
            json.dumps([{"text": "hi"}]), encoding="utf-8"
        )
        assert main(["--sample", "3"]) == 1
        assert "no sample 3" in capsys.readouterr().err

    def test_bad_settings_file(self, workdir: Path, capsys) -> None:
        settings_dir = workdir / ".ghosttype"
        settings_dir.mkdir()
        (settings_dir / "settings.json").write_text("{", encoding="utf-8")
        assert main([]) == 1
        assert "settings" in capsys.readouterr().err
