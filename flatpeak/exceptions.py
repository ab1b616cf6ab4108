"""Исключения для работы с FlatPeak API.

Ошибки API приходят в теле ответа как объект с ``object == "error"``,
клиент превращает их в FlatpeakApiException с сообщением сервера.
"""

from typing import Any


class FlatpeakException(Exception):
    """Базовое исключение для ошибок FlatPeak API."""

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        super().__init__(message)
        self.original_error = original_error


class FlatpeakAuthException(FlatpeakException):
    """Исключение при ошибках аутентификации.

    Выбрасывается при:
    - Отсутствии ключа, нужного для выбранного типа авторизации
    - Ответе login без токена
    """


class FlatpeakMissingCredentialException(FlatpeakAuthException):
    """Не задан publishable_key или secret_key."""


class FlatpeakPreconditionException(FlatpeakException):
    """Не переданы обязательные параметры сценария."""


class FlatpeakApiException(FlatpeakException):
    """API вернул объект ошибки.

    Сообщение берётся из поля ``message`` ответа без изменений.
    """

    def __init__(
        self,
        message: str,
        payload: dict[str, Any] | None = None,
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message, original_error=original_error)
        self.payload = payload


class FlatpeakTransportException(FlatpeakException):
    """Ошибка сети или ответ, который не удалось разобрать."""
