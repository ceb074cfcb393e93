import pytest

from config import DatasourceConfig, NormalizationConfig, load_config

_ENV_VARS = [
    "CLOUD_LOGGING_DEFAULT_SEVERITY_LEVEL",
    "CLOUD_LOGGING_LABEL_KEY_STYLE",
    "CLOUD_LOGGING_MESSAGE_ERROR_POLICY",
    "CLOUD_LOGGING_MAX_PAGE_SIZE",
    "CLOUD_LOGGING_DEFAULT_PROJECT",
    "CLOUD_LOGGING_HEALTH_CHECK_TIMEOUT",
    "CLOUD_LOGGING_DIAGNOSTICS_PATH",
    "CLOUD_LOGGING_RECORD_DIAGNOSTICS",
]


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    # Keep a developer's local `.env` out of the picture.
    monkeypatch.setattr("config.dotenv.load_dotenv", lambda *a, **k: False)
    return monkeypatch


def test_load_config_defaults(clean_env: pytest.MonkeyPatch):
    cfg = load_config()
    assert cfg.normalization.default_severity_level == "info"
    assert cfg.normalization.label_key_style == "quoted"
    assert cfg.normalization.message_error_policy == "keep"
    assert cfg.normalization.max_page_size == 1000
    assert cfg.datasource.default_project == ""
    assert cfg.datasource.health_check_timeout_s == 60.0
    assert cfg.datasource.diagnostics_path == ""
    assert cfg.datasource.record_diagnostics is True


def test_load_config_parses_optional_fields(clean_env: pytest.MonkeyPatch):
    clean_env.setenv("CLOUD_LOGGING_DEFAULT_SEVERITY_LEVEL", "DEBUG")
    clean_env.setenv("CLOUD_LOGGING_LABEL_KEY_STYLE", "raw")
    clean_env.setenv("CLOUD_LOGGING_MESSAGE_ERROR_POLICY", "stop")
    clean_env.setenv("CLOUD_LOGGING_MAX_PAGE_SIZE", "250")
    clean_env.setenv("CLOUD_LOGGING_DEFAULT_PROJECT", " my-project ")
    clean_env.setenv("CLOUD_LOGGING_HEALTH_CHECK_TIMEOUT", "2.5")
    clean_env.setenv("CLOUD_LOGGING_DIAGNOSTICS_PATH", "/tmp/diag.duckdb")
    clean_env.setenv("CLOUD_LOGGING_RECORD_DIAGNOSTICS", "off")

    cfg = load_config()
    assert cfg.normalization.default_severity_level == "debug"
    assert cfg.normalization.label_key_style == "raw"
    assert cfg.normalization.message_error_policy == "stop"
    assert cfg.normalization.max_page_size == 250
    assert cfg.datasource.default_project == "my-project"
    assert cfg.datasource.health_check_timeout_s == 2.5
    assert cfg.datasource.diagnostics_path == "/tmp/diag.duckdb"
    assert cfg.datasource.record_diagnostics is False


@pytest.mark.parametrize(
    "name, value",
    [
        ("CLOUD_LOGGING_RECORD_DIAGNOSTICS", "maybe"),
        ("CLOUD_LOGGING_MAX_PAGE_SIZE", "lots"),
        ("CLOUD_LOGGING_LABEL_KEY_STYLE", "backticks"),
        ("CLOUD_LOGGING_DEFAULT_SEVERITY_LEVEL", "warning"),
        ("CLOUD_LOGGING_HEALTH_CHECK_TIMEOUT", "0"),
    ],
)
def test_load_config_rejects_invalid_values(clean_env: pytest.MonkeyPatch, name: str, value: str):
    clean_env.setenv(name, value)
    with pytest.raises(ValueError):
        load_config()


@pytest.mark.parametrize("size", [0, -1, 1001])
def test_max_page_size_must_fit_the_provider_limit(size: int):
    with pytest.raises(ValueError):
        NormalizationConfig(max_page_size=size)


def test_normalization_config_is_immutable():
    cfg = NormalizationConfig()
    with pytest.raises(ValueError):
        cfg.label_key_style = "raw"


def test_datasource_config_timeout_must_be_positive():
    with pytest.raises(ValueError):
        DatasourceConfig(health_check_timeout_s=-1)
