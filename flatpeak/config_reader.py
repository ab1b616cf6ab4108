"""Конфигурация для FlatPeak API клиента.

Настройки собираются из двух источников:
1. Секция ``flatpeak`` YAML-файла, путь к которому указан в FLATPEAK_CONFIG
2. Переменные окружения FLATPEAK_HOST, FLATPEAK_PUBLISHABLE_KEY,
   FLATPEAK_SECRET_KEY и FLATPEAK_VERBOSE (имеют приоритет над файлом)

Переменные окружения автоматически загружаются из .env файла.
"""

from functools import lru_cache
from os import getenv
from typing import Any

from dotenv import load_dotenv
from pydantic import BaseModel, SecretStr, field_validator, model_validator
from yaml import SafeLoader, load

from flatpeak.api_client import ApiCredentials

# Автоматически загружаем переменные из .env файла
load_dotenv()

CONFIG_PATH_ENV = "FLATPEAK_CONFIG"
ROOT_KEY = "flatpeak"

# Поле конфигурации -> переменная окружения, которая его переопределяет
ENV_OVERRIDES = {
    "host": "FLATPEAK_HOST",
    "publishable_key": "FLATPEAK_PUBLISHABLE_KEY",
    "secret_key": "FLATPEAK_SECRET_KEY",
    "verbose": "FLATPEAK_VERBOSE",
}


class FlatpeakConfig(BaseModel):
    """Конфигурация для подключения к FlatPeak API.

    Должен быть задан хотя бы один ключ: publishable_key для
    Basic-эндпоинтов или secret_key для получения Bearer-токена.
    """

    # Адрес API без завершающего слэша (например: https://api.flatpeak.energy)
    host: str
    publishable_key: SecretStr | None = None
    secret_key: SecretStr | None = None
    # Логировать запросы и ответы
    verbose: bool = False

    @field_validator("host")
    @classmethod
    def _normalize_host(cls, value: str) -> str:
        host = value.strip().rstrip("/")
        if not host:
            raise ValueError("host не может быть пустым")
        return host

    @model_validator(mode="after")
    def _require_key(self) -> "FlatpeakConfig":
        if self.publishable_key is None and self.secret_key is None:
            raise ValueError(
                "Не задан ни publishable_key, ни secret_key"
            )
        return self

    def to_credentials(self) -> ApiCredentials:
        """Учетные данные для FlatpeakService с раскрытыми ключами."""
        return ApiCredentials(
            host=self.host,
            publishable_key=_reveal(self.publishable_key),
            secret_key=_reveal(self.secret_key),
            logger=self.verbose,
        )


def _reveal(secret: SecretStr | None) -> str | None:
    return secret.get_secret_value() if secret is not None else None


def read_config_section(file_path: str) -> dict[str, Any]:
    """Прочитать секцию flatpeak из YAML-файла.

    Raises:
        ValueError: Файл не содержит словарь или в нём нет секции flatpeak
        FileNotFoundError: Если файл не найден
    """
    with open(file_path, "rb") as file:
        config_data = load(file, Loader=SafeLoader)

    if not isinstance(config_data, dict):
        raise ValueError(f"Файл {file_path} должен содержать словарь")
    section = config_data.get(ROOT_KEY)
    if not isinstance(section, dict):
        raise ValueError(f"В файле {file_path} нет секции '{ROOT_KEY}'")
    return section


def read_env_overrides() -> dict[str, str]:
    """Значения из переменных FLATPEAK_*; пустые переменные пропускаются."""
    overrides: dict[str, str] = {}
    for field_name, env_name in ENV_OVERRIDES.items():
        value = getenv(env_name)
        if value:
            overrides[field_name] = value
    return overrides


def load_flatpeak_config(file_path: str | None = None) -> FlatpeakConfig:
    """Собрать конфигурацию из файла и переменных окружения.

    Args:
        file_path: Путь к YAML-файлу, по умолчанию из FLATPEAK_CONFIG

    Returns:
        Проверенная конфигурация

    Raises:
        ValueError: Нет ни файла, ни переменных FLATPEAK_*, или
            конфигурация не прошла валидацию
    """
    file_path = file_path or getenv(CONFIG_PATH_ENV)
    data = read_config_section(file_path) if file_path else {}
    data.update(read_env_overrides())
    if not data:
        raise ValueError(
            f"Конфигурация не найдена: задайте {CONFIG_PATH_ENV} "
            "или переменные FLATPEAK_HOST и FLATPEAK_PUBLISHABLE_KEY"
        )
    return FlatpeakConfig.model_validate(data)


@lru_cache
def get_flatpeak_config() -> FlatpeakConfig:
    """Конфигурация процесса, прочитанная один раз."""
    return load_flatpeak_config()
