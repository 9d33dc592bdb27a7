"""Tests for the command line interface."""
from __future__ import annotations

import json
import logging

import pytest

from exposeprobe import cli
from exposeprobe.candidates import generate_candidates
from exposeprobe.models import FetchResult, ProbeStatus
from exposeprobe.results import ResultAggregator


@pytest.fixture()
def fake_results():
    cands = sorted(generate_candidates("example.com", [".git"]), key=lambda c: c.url)
    agg = ResultAggregator(cands)
    agg.record(FetchResult(cands[0], ProbeStatus.SUCCESS, status_code=200))
    agg.record(FetchResult(cands[1], ProbeStatus.NOT_FOUND, status_code=404))
    return agg.freeze()


@pytest.fixture()
def patched_crawl(monkeypatch, fake_results):
    seen = []

    def fake_run_crawl(cfg):
        seen.append(cfg)
        return fake_results

    monkeypatch.setattr(cli, "run_crawl", fake_run_crawl)
    return seen


def test_defaults():
    cfg = cli.config_from_args(cli.build_parser().parse_args([]))

    assert cfg.max_connections == 150
    assert cfg.request_timeout == 5
    assert cfg.connect_timeout == 10
    assert cfg.uris == (".env", ".git")
    assert cfg.src == "urls.txt"
    assert cfg.show_results is True
    assert cfg.strategy == "pool"


def test_custom_uris_replace_default_preset():
    cfg = cli.config_from_args(cli.build_parser().parse_args(["--uri", ".svn", "--uri", "backup"]))
    assert cfg.uris == (".svn", "backup")


def test_preset_and_custom_uris():
    cfg = cli.config_from_args(cli.build_parser().parse_args(["--preset", "standard", "--uri", "backup"]))
    assert cfg.uris == (".env", ".git", ".svn", ".hg", "backup")


def test_prints_positives(patched_crawl, capsys):
    assert cli.main(["--file", "hosts.txt", "--concurrent", "7"]) == 0

    out = capsys.readouterr().out
    assert out.splitlines() == ["https://example.com/.git/"]
    assert patched_crawl[0].max_connections == 7
    assert patched_crawl[0].src == "hosts.txt"


def test_show_all(patched_crawl, capsys):
    assert cli.main(["--show-all"]) == 0

    out = capsys.readouterr().out
    assert out.splitlines() == ["https://example.com/.git/:true", "https://www.example.com/.git/:false"]


def test_no_show_results(patched_crawl, capsys):
    assert cli.main(["--no-show-results"]) == 0
    assert capsys.readouterr().out == ""


def test_json_output(patched_crawl, tmp_path):
    out_path = tmp_path / "out.json"
    assert cli.main(["--json-output", str(out_path)]) == 0

    rows = json.loads(out_path.read_text(encoding="utf-8"))
    assert rows[0] == {
        "url": "https://example.com/.git/",
        "exposed": True,
        "status": "SUCCESS",
        "status_code": 200,
        "error": None,
    }
    assert rows[1]["exposed"] is False


def test_missing_file_exits_1(tmp_path, capsys):
    assert cli.main(["--file", str(tmp_path / "nope.txt")]) == 1
    assert "nope.txt" in capsys.readouterr().err


def test_malformed_line_exits_1(tmp_path, capsys):
    src = tmp_path / "hosts.txt"
    src.write_text("bad host\n", encoding="utf-8")

    assert cli.main(["--file", str(src)]) == 1
    assert "line 1" in capsys.readouterr().err


def test_invalid_config_exits_1(capsys):
    assert cli.main(["--concurrent", "0"]) == 1
    assert "max_connections" in capsys.readouterr().err


def test_legacy_flag_names():
    args = cli.build_parser().parse_args(["--no-showResults", "--logLevel", "4"])

    assert cli.config_from_args(args).show_results is False
    assert cli.log_level(args) == logging.INFO


@pytest.mark.parametrize(
    "argv, level",
    [([], logging.WARNING), (["--logLevel", "1"], logging.CRITICAL), (["--logLevel", "6"], logging.DEBUG),
     (["--verbose", "--logLevel", "2"], logging.INFO), (["--debug"], logging.DEBUG)],
)
def test_log_level(argv, level):
    assert cli.log_level(cli.build_parser().parse_args(argv)) == level


def test_log_level_out_of_range():
    with pytest.raises(SystemExit):
        cli.build_parser().parse_args(["--logLevel", "9"])


class FakeApp:
    """Stands in for the Textual app so no terminal is needed."""

    results = None
    error = None

    def __init__(self, cfg):
        self.cfg = cfg

    def run(self):
        pass


def test_tui_honours_show_all_and_json(monkeypatch, fake_results, tmp_path, capsys):
    monkeypatch.setattr(FakeApp, "results", fake_results)
    monkeypatch.setattr("exposeprobe.tui.ExposureProbeApp", FakeApp)
    out_path = tmp_path / "tui.json"

    assert cli.main(["--tui", "--show-all", "--json-output", str(out_path)]) == 0

    assert capsys.readouterr().out.splitlines() == [
        "https://example.com/.git/:true",
        "https://www.example.com/.git/:false",
    ]
    assert len(json.loads(out_path.read_text(encoding="utf-8"))) == 2


def test_tui_error_exits_1(monkeypatch, capsys):
    monkeypatch.setattr(FakeApp, "error", "cannot read hosts.txt")
    monkeypatch.setattr("exposeprobe.tui.ExposureProbeApp", FakeApp)

    assert cli.main(["--tui"]) == 1
    assert "cannot read hosts.txt" in capsys.readouterr().err
