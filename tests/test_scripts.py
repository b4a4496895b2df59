import sys

import pytest

from bronze_loader.audit import DuckDBLogSink
from bronze_loader.batch import BatchLoader
from bronze_loader.engine import DuckDBEngine
from bronze_loader.ddl import create_bronze_tables
from bronze_loader.manifest import LoadEntry, Manifest
from scripts import show_batch, validate_manifest
from tests.helpers import location_row


class TestValidateManifest:
    def test_valid_file(self, tmp_path) -> None:
        path = tmp_path / "m.yaml"
        path.write_text("- bronze.location:/x/location.csv\n")

        manifest, errors, warnings = validate_manifest.validate_file(path, check_sources=False)

        assert len(manifest) == 1
        assert errors == []
        assert warnings == []

    def test_problems_are_errors(self, tmp_path) -> None:
        path = tmp_path / "m.yaml"
        path.write_text("- bronze.location:/a.csv\n- bronze.location:/b.csv\n")

        manifest, errors, _ = validate_manifest.validate_file(path, check_sources=False)

        assert manifest is None
        assert "duplicate target" in errors[0]

    def test_missing_sources_are_warnings(self, tmp_path) -> None:
        path = tmp_path / "m.yaml"
        path.write_text(f"- bronze.location:{tmp_path / 'absent.csv'}\n- bronze.death:gs://b/death.csv\n")

        _, errors, warnings = validate_manifest.validate_file(path, check_sources=True)

        assert errors == []
        assert len(warnings) == 1
        assert "bronze.location" in warnings[0]

    def test_bad_source_root_is_an_error(self, tmp_path) -> None:
        path = tmp_path / "m.yaml"
        path.write_text("source_root: 2024\nentries:\n  - bronze.location:location.csv\n")

        manifest, errors, _ = validate_manifest.validate_file(path, check_sources=False)

        assert manifest is None
        assert "source_root must be a string" in errors[0]

    def test_main_exit_codes(self, tmp_path, monkeypatch, capsys) -> None:
        good = tmp_path / "good.yaml"
        good.write_text("- bronze.location:/x.csv\n")
        bad = tmp_path / "bad.yaml"
        bad.write_text("- location:/x.csv\n")

        monkeypatch.setattr(sys, "argv", ["validate_manifest.py", str(good)])
        with pytest.raises(SystemExit) as ok:
            validate_manifest.main()

        monkeypatch.setattr(sys, "argv", ["validate_manifest.py", str(good), str(bad)])
        with pytest.raises(SystemExit) as failed:
            validate_manifest.main()

        assert ok.value.code == 0
        assert failed.value.code == 1
        assert "target must be" in capsys.readouterr().out


class TestShowBatch:
    def test_prints_latest_batch(self, tmp_path, monkeypatch, capsys, write_csv) -> None:
        db_path = str(tmp_path / "bronze.duckdb")
        engine = DuckDBEngine(db_path)
        create_bronze_tables(engine.conn)
        manifest = Manifest([
            LoadEntry("bronze", "location", write_csv("location.csv", [location_row(1)])),
            LoadEntry("bronze", "death", str(tmp_path / "missing.csv")),
        ])
        summary = BatchLoader(manifest, engine, DuckDBLogSink(engine.conn)).run()
        engine.close()

        monkeypatch.setattr(sys, "argv", ["show_batch.py", "--db", db_path])
        show_batch.main()

        out = capsys.readouterr().out
        assert f"Batch {summary.batch_id}" in out
        assert "Succeeded: 1" in out
        assert "❌ bronze.death" in out

    def test_unknown_batch(self, tmp_path, monkeypatch) -> None:
        db_path = str(tmp_path / "bronze.duckdb")
        engine = DuckDBEngine(db_path)
        DuckDBLogSink(engine.conn)
        engine.close()

        monkeypatch.setattr(sys, "argv", ["show_batch.py", "--db", db_path, "--batch-id", "nope"])
        with pytest.raises(SystemExit) as exc_info:
            show_batch.main()

        assert exc_info.value.code == 1
