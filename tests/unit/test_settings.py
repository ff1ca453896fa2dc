from __future__ import annotations

from pathlib import Path

import pytest

from formschema.exceptions import SettingsError
from formschema.settings import Settings, ensure_env_file_exists, get_settings


def test_settings_load_from_env_file(tmp_path: Path, monkeypatch) -> None:
    env_file = tmp_path / ".env"
    env_file.write_text(
        "APP_ENV=test\n"
        "LOG_LEVEL=DEBUG\n"
        "LOG_JSON=false\n"
        "TEMPLATES_DIR=assets/templates\n"
        "BACKEND_TIMEOUT=30\n"
        "PDFTK_PATH=/opt/pdftk/bin/pdftk\n",
        encoding="utf-8",
    )
    monkeypatch.chdir(tmp_path)

    settings = Settings()

    assert settings.app_env == "test"
    assert settings.log_level == "DEBUG"
    assert settings.log_json is False
    assert settings.templates_dir == Path("assets/templates")
    assert settings.backend_timeout == 30
    assert settings.pdftk_path == "/opt/pdftk/bin/pdftk"


def test_settings_defaults(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    for name in ("TEMPLATES_DIR", "SCHEMAS_DIR", "OUTPUT_DIR", "BACKEND_TIMEOUT"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings()

    assert settings.schemas_dir == Path("config/form_schemas")
    assert settings.output_dir == Path("tmp/pdfs")
    assert settings.backend_timeout is None


def test_get_settings_uses_environment(monkeypatch) -> None:
    get_settings.cache_clear()
    monkeypatch.setenv("APP_ENV", "ci")

    settings = get_settings()
    assert settings.app_env == "ci"

    get_settings.cache_clear()


def test_get_settings_retries_after_env_template_on_missing(monkeypatch) -> None:
    get_settings.cache_clear()

    attempts = {"count": 0}

    class _DummySettings:
        app_env = "ci"

    def _fake_settings():
        attempts["count"] += 1
        if attempts["count"] == 1:
            raise ValueError("missing")
        return _DummySettings()

    copied = {"done": 0}

    def _mark_env_copied(**kwargs: object) -> None:
        _ = kwargs
        copied["done"] += 1

    monkeypatch.setattr("formschema.settings.Settings", _fake_settings)
    monkeypatch.setattr("formschema.settings._is_missing_settings_error", lambda exc: True)
    monkeypatch.setattr("formschema.settings.ensure_env_file_exists", _mark_env_copied)

    settings = get_settings()
    assert copied["done"] == 1
    assert attempts["count"] == 2
    assert settings.app_env == "ci"

    get_settings.cache_clear()


def test_get_settings_does_not_copy_env_on_non_missing(monkeypatch) -> None:
    get_settings.cache_clear()

    def _raise_runtime_error():
        raise RuntimeError("boom")

    def _raise_assertion_error(**kwargs: object) -> None:
        _ = kwargs
        raise AssertionError("should not copy env")

    monkeypatch.setattr("formschema.settings.Settings", _raise_runtime_error)
    monkeypatch.setattr("formschema.settings._is_missing_settings_error", lambda exc: False)
    monkeypatch.setattr("formschema.settings.ensure_env_file_exists", _raise_assertion_error)

    with pytest.raises(SettingsError):
        get_settings()

    get_settings.cache_clear()


def test_ensure_env_file_exists_copies_template(tmp_path: Path) -> None:
    template = tmp_path / ".env.template"
    env_file = tmp_path / ".env"
    template.write_text("SCHEMAS_DIR=config/form_schemas\n", encoding="utf-8")

    ensure_env_file_exists(env_path=env_file, template_path=template)

    assert env_file.exists()
    assert "SCHEMAS_DIR" in env_file.read_text(encoding="utf-8")


def test_ensure_env_file_exists_keeps_existing_file(tmp_path: Path) -> None:
    template = tmp_path / ".env.template"
    env_file = tmp_path / ".env"
    template.write_text("APP_ENV=template\n", encoding="utf-8")
    env_file.write_text("APP_ENV=mine\n", encoding="utf-8")

    ensure_env_file_exists(env_path=env_file, template_path=template)

    assert env_file.read_text(encoding="utf-8") == "APP_ENV=mine\n"
