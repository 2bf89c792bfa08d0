from __future__ import annotations

import json
from pathlib import Path

from typer.testing import CliRunner

from parallign.cli import app, clip

DATA = Path(__file__).parent / "data"
EN = str(DATA / "tale_en.txt")
DE = str(DATA / "tale_de.txt")

runner = CliRunner()


def test_align_writes_json(tmp_path):
    out = tmp_path / "nested" / "alignment.json"
    result = runner.invoke(app, ["align", EN, DE, "--limit", "3", "--show-anchors", "--json-out", str(out)])
    assert result.exit_code == 0, result.output
    data = json.loads(out.read_text(encoding="utf-8"))
    assert data["num_sentences_a"] == 12
    assert data["num_sentences_b"] == 12
    assert data["beads"][0]["a"][0] == 0
    assert data["beads"][-1]["b"][1] == 12


def test_align_with_config_file(tmp_path):
    config = tmp_path / "config.json"
    config.write_text(json.dumps({"max_iterations": 2, "band_scale": 1.5}), encoding="utf-8")
    out = tmp_path / "alignment.json"
    result = runner.invoke(app, ["align", EN, DE, "--config", str(config), "--json-out", str(out)])
    assert result.exit_code == 0, result.output
    data = json.loads(out.read_text(encoding="utf-8"))
    assert data["metadata"]["anchoring"]["config"]["band_scale"] == 1.5
    assert len(data["coverage"]) <= 2


def test_invalid_option_is_a_usage_error():
    result = runner.invoke(app, ["align", EN, DE, "--max-iterations", "0"])
    assert result.exit_code != 0


def test_unknown_config_key_is_a_usage_error(tmp_path):
    config = tmp_path / "config.json"
    config.write_text(json.dumps({"bogus": 1}), encoding="utf-8")
    result = runner.invoke(app, ["align", EN, DE, "--config", str(config)])
    assert result.exit_code != 0


def test_missing_file_is_a_usage_error(tmp_path):
    result = runner.invoke(app, ["align", str(tmp_path / "nope.txt"), DE])
    assert result.exit_code != 0


def test_stats_command():
    result = runner.invoke(app, ["stats", EN, DE, "--max-iterations", "3"])
    assert result.exit_code == 0, result.output


def test_clip():
    assert clip("short") == "short"
    assert len(clip("x" * 80, width=10)) == 10


def test_mistyped_config_value_is_a_usage_error(tmp_path):
    config = tmp_path / "config.json"
    config.write_text(json.dumps({"max_iterations": "five"}), encoding="utf-8")
    result = runner.invoke(app, ["align", EN, DE, "--config", str(config)])
    assert result.exit_code == 2
    assert not isinstance(result.exception, TypeError)
