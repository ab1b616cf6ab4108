"""Тесты для config_reader модуля."""

from collections.abc import Generator
from pathlib import Path

import pytest

from flatpeak.config_reader import (
    ENV_OVERRIDES,
    FlatpeakConfig,
    get_flatpeak_config,
    load_flatpeak_config,
)

# Маркируем все тесты в этом модуле как unit-тесты
pytestmark = pytest.mark.unit

CONFIG_YAML = """
flatpeak:
  host: https://api.flatpeak.test/
  publishable_key: pk_test
  secret_key: sk_test
  verbose: true
"""


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Убрать FLATPEAK_* из окружения и сбросить кэш конфигурации."""
    monkeypatch.delenv("FLATPEAK_CONFIG", raising=False)
    for env_name in ENV_OVERRIDES.values():
        monkeypatch.delenv(env_name, raising=False)
    get_flatpeak_config.cache_clear()
    yield
    get_flatpeak_config.cache_clear()


@pytest.fixture
def config_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    path = tmp_path / "config.yml"
    path.write_text(CONFIG_YAML, encoding="utf-8")
    monkeypatch.setenv("FLATPEAK_CONFIG", str(path))
    return path


class TestLoadFromFile:
    """Тесты чтения конфигурации из YAML-файла."""

    def test_reads_config(self, config_file: Path) -> None:
        """Конфигурация читается из файла по FLATPEAK_CONFIG."""
        config = get_flatpeak_config()

        assert isinstance(config, FlatpeakConfig)
        assert config.host == "https://api.flatpeak.test"
        assert config.publishable_key is not None
        assert config.publishable_key.get_secret_value() == "pk_test"
        assert config.secret_key is not None
        assert config.secret_key.get_secret_value() == "sk_test"
        assert config.verbose is True

    def test_explicit_path(self, tmp_path: Path) -> None:
        """Путь можно передать явно, без переменной окружения."""
        path = tmp_path / "explicit.yml"
        path.write_text(CONFIG_YAML, encoding="utf-8")

        config = load_flatpeak_config(str(path))

        assert config.host == "https://api.flatpeak.test"

    def test_secrets_are_hidden(self, config_file: Path) -> None:
        """Ключи не попадают в repr."""
        config = get_flatpeak_config()

        assert "sk_test" not in repr(config)

    def test_nothing_configured(self) -> None:
        """Без файла и переменных FLATPEAK_* выбрасывается ValueError."""
        with pytest.raises(ValueError, match="FLATPEAK_CONFIG"):
            load_flatpeak_config()

    def test_missing_root_key(self, tmp_path: Path) -> None:
        """Без секции flatpeak выбрасывается ValueError."""
        path = tmp_path / "other.yml"
        path.write_text("other:\n  host: x\n", encoding="utf-8")

        with pytest.raises(ValueError, match="flatpeak"):
            load_flatpeak_config(str(path))

    def test_not_a_mapping(self, tmp_path: Path) -> None:
        """Файл должен содержать словарь."""
        path = tmp_path / "list.yml"
        path.write_text("- a\n- b\n", encoding="utf-8")

        with pytest.raises(ValueError, match="словарь"):
            load_flatpeak_config(str(path))


class TestEnvOverrides:
    """Тесты переопределения через переменные окружения."""

    def test_env_only(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Файл не нужен, если заданы FLATPEAK_HOST и ключ."""
        monkeypatch.setenv("FLATPEAK_HOST", "https://env.flatpeak.test")
        monkeypatch.setenv("FLATPEAK_SECRET_KEY", "sk_env")
        monkeypatch.setenv("FLATPEAK_VERBOSE", "true")

        config = load_flatpeak_config()

        assert config.host == "https://env.flatpeak.test"
        assert config.publishable_key is None
        assert config.secret_key is not None
        assert config.secret_key.get_secret_value() == "sk_env"
        assert config.verbose is True

    def test_env_wins_over_file(
        self, config_file: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("FLATPEAK_SECRET_KEY", "sk_rotated")

        config = load_flatpeak_config()

        assert config.secret_key is not None
        assert config.secret_key.get_secret_value() == "sk_rotated"
        assert config.publishable_key is not None
        assert config.publishable_key.get_secret_value() == "pk_test"

    def test_empty_env_is_ignored(
        self, config_file: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("FLATPEAK_HOST", "")

        assert load_flatpeak_config().host == "https://api.flatpeak.test"


class TestFlatpeakConfig:
    """Тесты валидации модели."""

    def test_requires_a_key(self) -> None:
        """Без publishable_key и secret_key конфигурация невалидна."""
        with pytest.raises(ValueError, match="publishable_key"):
            FlatpeakConfig.model_validate({"host": "https://api.flatpeak.test"})

    def test_blank_host(self) -> None:
        with pytest.raises(ValueError, match="host"):
            FlatpeakConfig.model_validate({"host": " / ", "publishable_key": "pk"})

    def test_defaults(self) -> None:
        """Второй ключ необязателен, verbose по умолчанию выключен."""
        config = FlatpeakConfig.model_validate(
            {"host": "https://api.flatpeak.test", "publishable_key": "pk_test"}
        )

        assert config.secret_key is None
        assert config.verbose is False

    def test_to_credentials(self) -> None:
        """Ключи раскрываются в ApiCredentials, verbose становится logger."""
        config = FlatpeakConfig.model_validate(
            {
                "host": "https://api.flatpeak.test/",
                "secret_key": "sk_test",
                "verbose": True,
            }
        )

        credentials = config.to_credentials()

        assert credentials.host == "https://api.flatpeak.test"
        assert credentials.publishable_key is None
        assert credentials.secret_key == "sk_test"
        assert credentials.logger is True
