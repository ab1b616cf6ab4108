"""HTTP-транспорт для FlatPeak API на aiohttp.

ApiClient отправляет запрос и разбирает JSON-ответ. Статус ответа
не проверяется: ошибки API приходят в теле как ``{"object": "error"}``
и обрабатываются выше.
"""

import asyncio
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

import aiohttp

from flatpeak.exceptions import FlatpeakTransportException

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


@dataclass(frozen=True)
class RequestTrace:
    """Запись трассировки запроса для пользовательского логгера.

    Attributes:
        phase: "request" или "response"
        module: Идентификатор ресурса (products, devices, ...)
        detail: Метод, URL и заголовки запроса или тело ответа
    """

    phase: str
    module: str
    detail: dict[str, Any] = field(default_factory=dict)


TraceLogger = bool | Callable[[RequestTrace], None]


@dataclass
class ApiCredentials:
    """Учетные данные FlatPeak.

    Один экземпляр разделяется сервисом, менеджером токенов и всеми
    ресурсами, поэтому смена ключа видна им всем сразу.

    Attributes:
        host: Адрес API (например: https://api.flatpeak.energy)
        publishable_key: Публичный ключ для Basic-авторизации
        secret_key: Секретный ключ для получения Bearer-токена
        logger: False, True (логировать через logging) или функция
    """

    host: str
    publishable_key: str | None = None
    secret_key: str | None = None
    logger: TraceLogger = False


def _mask_headers(headers: Mapping[str, str] | None) -> dict[str, str]:
    masked = dict(headers or {})
    if "Authorization" in masked:
        scheme = masked["Authorization"].split(" ", 1)[0]
        masked["Authorization"] = f"{scheme} ***"
    return masked


class ApiClient:
    """Асинхронный HTTP-клиент с ленивой aiohttp-сессией."""

    def __init__(
        self,
        credentials: ApiCredentials,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._credentials = credentials
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._session: aiohttp.ClientSession | None = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
        return self._session

    def trace(self, phase: str, module: str, detail: dict[str, Any]) -> None:
        """Передать запись трассировки в логгер из учетных данных."""
        trace_logger = self._credentials.logger
        if not trace_logger:
            return
        record = RequestTrace(phase=phase, module=module, detail=detail)
        if callable(trace_logger):
            trace_logger(record)
        else:
            logger.info("%s | %s: %s", module, phase.capitalize(), detail)

    async def request(
        self,
        method: str,
        url: str,
        *,
        module: str = "",
        headers: Mapping[str, str] | None = None,
        params: Mapping[str, str] | None = None,
        json: Any = None,
    ) -> dict[str, Any]:
        """Выполнить запрос и вернуть разобранное тело ответа.

        Args:
            method: HTTP-метод
            url: Полный URL
            module: Идентификатор ресурса для трассировки
            headers: Заголовки запроса
            params: Параметры строки запроса
            json: Тело запроса

        Returns:
            JSON-тело ответа или пустой словарь, если ответ не JSON

        Raises:
            FlatpeakTransportException: При сетевой ошибке, таймауте
                или неразбираемом ответе
        """
        self.trace(
            "request",
            module,
            {
                "method": method,
                "url": url,
                "params": dict(params or {}),
                "headers": _mask_headers(headers),
                "body": json,
            },
        )
        session = self._get_session()
        try:
            async with session.request(
                method,
                url,
                headers=dict(headers or {}),
                params=dict(params or {}),
                json=json,
            ) as resp:
                content_type = resp.headers.get("Content-Type", "")
                if "application/json" in content_type:
                    data = await resp.json(content_type=None)
                elif resp.status >= 400:
                    text = await resp.text()
                    raise FlatpeakTransportException(
                        f"Ошибка HTTP {resp.status} без JSON-тела: {text[:200]}"
                    )
                else:
                    data = {}
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            logger.error("Ошибка запроса %s %s: %s", method, url, exc)
            raise FlatpeakTransportException(
                f"Ошибка запроса {method} {url}: {exc}", original_error=exc
            ) from exc
        except ValueError as exc:
            logger.error("Некорректный JSON в ответе %s %s", method, url)
            raise FlatpeakTransportException(
                f"Некорректный JSON в ответе {method} {url}", original_error=exc
            ) from exc

        if data is None:
            data = {}
        self.trace("response", module, {"status": resp.status, "body": data})
        return data

    async def close(self) -> None:
        """Закрыть HTTP-сессию."""
        if self._session is not None:
            await self._session.close()
        self._session = None
