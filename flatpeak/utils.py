"""Вспомогательные функции для ответов FlatPeak API."""

from collections.abc import Mapping, Sequence
from typing import Any, TypeVar

from flatpeak.exceptions import FlatpeakApiException

T = TypeVar("T")


def is_error_payload(payload: Any) -> bool:
    """Проверить, что ответ API является объектом ошибки."""
    return isinstance(payload, Mapping) and payload.get("object") == "error"


def raise_on_api_error(payload: T) -> T:
    """Вернуть ответ без изменений или выбросить ошибку API.

    Args:
        payload: Разобранное JSON-тело ответа

    Returns:
        Тот же ответ, если это не объект ошибки

    Raises:
        FlatpeakApiException: Если ``object == "error"``
    """
    if is_error_payload(payload):
        error = dict(payload)  # type: ignore[call-overload]
        raise FlatpeakApiException(str(error.get("message", "")), payload=error)
    return payload


def is_equal_objects(
    source: Any,
    target: Any,
    keys: Sequence[str] | None = None,
) -> bool:
    """Сравнить два объекта целиком или только по указанным ключам.

    Сравнение рекурсивное: вложенные словари сравниваются по значениям,
    списки - поэлементно с учётом порядка. Отсутствующий ключ равен
    только отсутствующему ключу или None.

    Args:
        source: Первый объект
        target: Второй объект
        keys: Ключи для сравнения, по умолчанию весь объект

    Returns:
        True если объекты равны
    """
    if not keys:
        return source == target
    if source is None or target is None:
        return False
    return all(
        is_equal_objects(source.get(key), target.get(key)) for key in keys
    )


def encode_query(query: Mapping[str, Any] | None) -> dict[str, str]:
    """Подготовить параметры строки запроса.

    None пропускается, bool передаётся как ``true``/``false``.
    """
    if not query:
        return {}
    params: dict[str, str] = {}
    for key, value in query.items():
        if value is None:
            continue
        if isinstance(value, bool):
            params[key] = "true" if value else "false"
        else:
            params[key] = str(value)
    return params


def get_default_language_asset(
    display_settings: Mapping[str, Any] | None,
) -> dict[str, Any]:
    """Выбрать языковой ассет аккаунта.

    Возвращает ассет для ``default_language``, иначе первый из списка,
    а если ассетов нет - пустой словарь.
    """
    if not display_settings:
        return {}
    assets = display_settings.get("language_assets")
    if not isinstance(assets, list) or not assets:
        return {}
    default_language = display_settings.get("default_language")
    for asset in assets:
        if asset.get("language_code") == default_language:
            return dict(asset)
    return dict(assets[0])
