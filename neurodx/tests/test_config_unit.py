from neurodx.internal_core.config import load_config


def test_load_config_defaults(monkeypatch) -> None:
    for name in (
        "NEURODX_LOG_LEVEL",
        "NEURODX_FEATURE_LIMIT",
        "NEURODX_DEFAULT_EXPLANATION_METHOD",
        "NEURODX_CACHE_ENABLED",
        "NEURODX_CACHE_MAX_ENTRIES",
        "NEURODX_CORS_ORIGINS",
    ):
        monkeypatch.delenv(name, raising=False)
    config = load_config()
    assert config.NEURODX_LOG_LEVEL == "INFO"
    assert config.NEURODX_FEATURE_LIMIT == 5
    assert config.NEURODX_DEFAULT_EXPLANATION_METHOD == "SHAP"
    assert config.NEURODX_CACHE_ENABLED is True
    assert config.NEURODX_CACHE_MAX_ENTRIES == 512
    assert config.NEURODX_CORS_ORIGINS == ("*",)


def test_load_config_reads_environment(monkeypatch) -> None:
    monkeypatch.setenv("NEURODX_LOG_LEVEL", "debug")
    monkeypatch.setenv("NEURODX_FEATURE_LIMIT", "-3")
    monkeypatch.setenv("NEURODX_CACHE_ENABLED", "off")
    monkeypatch.setenv("NEURODX_CACHE_MAX_ENTRIES", "0")
    monkeypatch.setenv("NEURODX_CORS_ORIGINS", "https://portal.example, http://localhost:3000")
    config = load_config()
    assert config.NEURODX_LOG_LEVEL == "DEBUG"
    assert config.NEURODX_FEATURE_LIMIT == 0
    assert config.NEURODX_CACHE_ENABLED is False
    assert config.NEURODX_CACHE_MAX_ENTRIES == 1
    assert config.NEURODX_CORS_ORIGINS == ("https://portal.example", "http://localhost:3000")
