import pytest

from bronze_loader.config import Config
from bronze_loader.errors import ConfigError
from bronze_loader.manifest import DEFAULT_MANIFEST

ENV_VARS = [
    "LOADER_BACKEND", "LOG_TABLE", "LOG_FORMAT", "MANIFEST_PATH", "SOURCE_ROOT",
    "DUCKDB_PATH", "CREATE_TABLES", "GCP_PROJECT", "BQ_LOCATION", "AUDIT_DATASET",
    "METRICS_ENDPOINT", "METRICS_TOKEN_PATH",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestFromEnv:
    def test_defaults(self) -> None:
        config = Config.from_env()

        assert config.backend == "duckdb"
        assert config.duckdb_path == "warehouse.duckdb"
        assert config.log_table == "etl_log"
        assert config.log_format == "json"
        assert config.manifest_path is None
        assert config.create_tables is False

    def test_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DUCKDB_PATH", "/data/wh.duckdb")
        monkeypatch.setenv("CREATE_TABLES", "yes")
        monkeypatch.setenv("LOG_FORMAT", "Console")

        config = Config.from_env()

        assert config.duckdb_path == "/data/wh.duckdb"
        assert config.create_tables is True
        assert config.log_format == "console"

    def test_unknown_backend(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LOADER_BACKEND", "oracle")

        with pytest.raises(ConfigError, match="oracle"):
            Config.from_env()

    def test_bigquery_requires_project(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LOADER_BACKEND", "bigquery")

        with pytest.raises(ConfigError, match="GCP_PROJECT"):
            Config.from_env()

    def test_bigquery(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LOADER_BACKEND", "bigquery")
        monkeypatch.setenv("GCP_PROJECT", "census-prod")

        config = Config.from_env()

        assert config.gcp_project == "census-prod"
        assert config.bq_location == "EU"
        assert config.audit_dataset == "audit"


class TestManifestSelection:
    def test_built_in(self) -> None:
        assert Config.from_env().manifest() is DEFAULT_MANIFEST

    def test_source_root(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SOURCE_ROOT", "/landing")

        manifest = Config.from_env().manifest()

        assert manifest[0].source_path == "/landing/individual.csv"

    def test_yaml(self, monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
        path = tmp_path / "m.yaml"
        path.write_text("- bronze.location:/x/location.csv\n")
        monkeypatch.setenv("MANIFEST_PATH", str(path))

        manifest = Config.from_env().manifest()

        assert [e.qualified_name for e in manifest] == ["bronze.location"]
