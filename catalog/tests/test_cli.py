"""Tests for the pipeline command-line entry point."""

import json
import logging

import pytest

from catalog import cli


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch):
    """No .env loading, no source variables, and no handlers left behind."""
    monkeypatch.setattr(cli, "load_dotenv", lambda *a, **k: False)
    for name in ("MODELS_CSV", "SKU_CSV", "RETAILER_CSV", "OUTPUT_JSON"):
        monkeypatch.delenv(name, raising=False)
    yield
    logging.getLogger("catalog").handlers.clear()


def _args(source_files, output):
    return [
        "--models", str(source_files["models"]),
        "--skus", str(source_files["skus"]),
        "--retailer", str(source_files["retailer"]),
        "--output", str(output),
        "--no-log-file",
    ]


class TestMain:
    def test_missing_sources_exit_nonzero(self, caplog):
        assert cli.main(["--no-log-file"]) == 1
        assert "MODELS_CSV" in caplog.text

    def test_sources_from_environment(self, monkeypatch, source_files, tmp_path):
        monkeypatch.setenv("MODELS_CSV", str(source_files["models"]))
        monkeypatch.setenv("SKU_CSV", str(source_files["skus"]))
        monkeypatch.setenv("RETAILER_CSV", str(source_files["retailer"]))
        monkeypatch.setenv("OUTPUT_JSON", str(tmp_path / "env.json"))

        assert cli.main(["--no-log-file"]) == 0
        assert (tmp_path / "env.json").exists()

    def test_end_to_end(self, source_files, tmp_path, caplog):
        caplog.set_level(logging.INFO, logger="catalog")
        output = tmp_path / "public" / "bikes.json"

        assert cli.main(_args(source_files, output)) == 0

        data = json.loads(output.read_text(encoding="utf-8"))
        assert len(data["items"]) == 3
        assert data["generated_at"].endswith("Z")
        assert f"Wrote 3 bikes to {output}" in caplog.text

    def test_unreadable_source_writes_nothing(self, source_files, tmp_path, caplog):
        source_files["skus"] = tmp_path / "missing.csv"
        output = tmp_path / "bikes.json"

        assert cli.main(_args(source_files, output)) == 1
        assert not output.exists()
        assert "missing.csv" in caplog.text

    def test_html_source_keeps_previous_snapshot(self, source_files, tmp_path):
        output = tmp_path / "bikes.json"
        assert cli.main(_args(source_files, output)) == 0
        before = output.read_bytes()

        source_files["retailer"].write_text("<!DOCTYPE html><html></html>", encoding="utf-8")
        assert cli.main(_args(source_files, output)) == 1
        assert output.read_bytes() == before


class TestStats:
    def test_stats_summary(self, source_files, tmp_path, capsys):
        output = tmp_path / "bikes.json"
        cli.main(_args(source_files, output))

        assert cli.main(["--stats", str(output), "--no-log-file"]) == 0
        out = capsys.readouterr().out
        assert "Total variants: 3" in out
        assert "Acme" in out

    def test_stats_missing_file(self, tmp_path):
        assert cli.main(["--stats", str(tmp_path / "none.json"), "--no-log-file"]) == 1


class TestParseArgs:
    def test_defaults(self):
        args = cli.parse_args([])
        assert args.models is None
        assert args.output == "public/bikes.json"
        assert args.verbose is False
