"""Менеджер авторизации для FlatPeak API.

Формирует заголовок Authorization для двух схем:
- Basic из publishable_key
- Bearer из токена, полученного обменом account_id + secret_key

account_id и токен кэшируются до смены учетных данных. Токен на
стороне API живёт 30 минут, но здесь не обновляется: просроченный
токен вернётся ошибкой API, для нового токена нужен invalidate().
"""

import asyncio
import base64
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum

from flatpeak.api_client import ApiClient, ApiCredentials
from flatpeak.exceptions import (
    FlatpeakApiException,
    FlatpeakAuthException,
    FlatpeakMissingCredentialException,
)
from flatpeak.utils import raise_on_api_error

logger = logging.getLogger(__name__)
logger.setLevel(level=logging.DEBUG)

# Заголовки, которые всегда вычисляются при подписи запроса
SIGNED_HEADERS = frozenset({"authorization", "content-type"})


class AuthKind(str, Enum):
    """Схема авторизации, которую требует эндпоинт."""

    BASIC = "Basic"
    BEARER = "Bearer"


def basic_auth(user: str, password: str = "") -> str:
    """Собрать значение заголовка Basic-авторизации.

    Args:
        user: Имя пользователя (ключ или account_id)
        password: Пароль, по умолчанию пустой

    Returns:
        Строка вида ``Basic base64(user:password)``
    """
    token = base64.b64encode(f"{user}:{password}".encode("utf-8")).decode("ascii")
    return f"Basic {token}"


@dataclass
class TokenCache:
    """Кэш account_id и Bearer-токена."""

    account_id: str | None = None
    bearer_token: str | None = None

    def clear(self) -> None:
        self.account_id = None
        self.bearer_token = None


class TokenManager:
    """Менеджер авторизационных заголовков.

    Заполнение кэша выполняется под lock: конкурентные корутины
    ждут первую и используют её результат. Если кэш сброшен во время
    обмена, полученные значения не сохраняются.
    """

    def __init__(self, credentials: ApiCredentials, api_client: ApiClient) -> None:
        """Инициализация менеджера.

        Args:
            credentials: Общие учетные данные сервиса
            api_client: HTTP-клиент для запросов account и login
        """
        self._credentials = credentials
        self._api_client = api_client
        self._cache = TokenCache()
        self._generation: int = 0
        self._lock = asyncio.Lock()

    @property
    def cache(self) -> TokenCache:
        return self._cache

    def invalidate(self) -> None:
        """Сбросить account_id и токен."""
        self._cache.clear()
        self._generation += 1
        logger.debug("Кэш токена сброшен (поколение: %d)", self._generation)

    def resolve_basic(self) -> str:
        """Заголовок Basic из publishable_key.

        Raises:
            FlatpeakMissingCredentialException: Если ключ не задан
        """
        publishable_key = self._credentials.publishable_key
        if not publishable_key:
            raise FlatpeakMissingCredentialException(
                "Не задан publishable_key для Basic-авторизации"
            )
        return basic_auth(publishable_key)

    def _account_lookup_auth(self) -> str:
        if self._credentials.publishable_key:
            return self.resolve_basic()
        return basic_auth(self._credentials.secret_key or "")

    async def _fetch_account_id(self) -> str:
        """Получить account_id текущего ключа.

        Raises:
            FlatpeakApiException: Если API вернул ошибку
            FlatpeakAuthException: Если в ответе нет id
        """
        logger.debug("Запрос account_id для %s", self._credentials.host)
        response = await self._api_client.request(
            "GET",
            f"{self._credentials.host}/account",
            module="account",
            headers={
                "Content-Type": "application/json",
                "Authorization": self._account_lookup_auth(),
            },
        )
        try:
            account = raise_on_api_error(response)
        except FlatpeakApiException as exc:
            logger.error("Ошибка при получении аккаунта: %s", exc)
            raise
        account_id = account.get("id")
        if not account_id:
            raise FlatpeakAuthException("Ответ account не содержит id")
        return str(account_id)

    async def _fetch_token(self, account_id: str, secret_key: str) -> str:
        """Обменять account_id и secret_key на Bearer-токен.

        Raises:
            FlatpeakApiException: Если API вернул ошибку
            FlatpeakAuthException: Если в ответе нет токена
        """
        logger.debug("Запрос токена для account_id=%s", account_id)
        response = await self._api_client.request(
            "GET",
            f"{self._credentials.host}/login",
            module="login",
            headers={
                "Content-Type": "application/json",
                "Authorization": basic_auth(account_id, secret_key),
            },
        )
        try:
            payload = raise_on_api_error(response)
        except FlatpeakApiException as exc:
            logger.error(
                "Ошибка при получении токена для account_id=%s: %s", account_id, exc
            )
            raise
        token = payload.get("token")
        if not token:
            raise FlatpeakAuthException("Ответ login не содержит token")
        return str(token)

    async def ensure_token(self) -> str:
        """Получить Bearer-токен, заполнив кэш при необходимости.

        Returns:
            Токен без префикса схемы

        Raises:
            FlatpeakMissingCredentialException: Если secret_key не задан
        """
        secret_key = self._credentials.secret_key
        if not secret_key:
            raise FlatpeakMissingCredentialException(
                "Не задан secret_key для Bearer-авторизации"
            )

        if self._cache.account_id and self._cache.bearer_token:
            return self._cache.bearer_token

        async with self._lock:
            generation = self._generation

            account_id = self._cache.account_id
            if not account_id:
                account_id = await self._fetch_account_id()
                if generation == self._generation:
                    self._cache.account_id = account_id

            token = self._cache.bearer_token
            if not token:
                token = await self._fetch_token(account_id, secret_key)
                if generation == self._generation:
                    self._cache.bearer_token = token
                    logger.info("Токен получен для account_id=%s", account_id)
                else:
                    logger.debug("Кэш сброшен во время обмена, токен не сохранён")
            return token

    async def resolve_bearer(self) -> str:
        """Заголовок Bearer из кэшированного или нового токена."""
        token = await self.ensure_token()
        return f"Bearer {token}"

    async def resolve_for(self, auth_kind: AuthKind) -> str:
        """Заголовок Authorization для требуемой схемы."""
        if auth_kind is AuthKind.BEARER:
            return await self.resolve_bearer()
        return self.resolve_basic()

    async def authorise_headers(
        self,
        headers: Mapping[str, str] | None = None,
        auth_kind: AuthKind = AuthKind.BASIC,
    ) -> dict[str, str]:
        """Добавить Content-Type и Authorization к заголовкам запроса.

        Вычисленные значения заменяют переданные с тем же именем без
        учёта регистра, остальные заголовки сохраняются. Исходный
        словарь не меняется.

        Args:
            headers: Заголовки, переданные вызывающим кодом
            auth_kind: Схема авторизации эндпоинта

        Returns:
            Новый словарь заголовков
        """
        authorization = await self.resolve_for(auth_kind)
        merged = {
            name: value
            for name, value in (headers or {}).items()
            if name.lower() not in SIGNED_HEADERS
        }
        merged["Content-Type"] = "application/json"
        merged["Authorization"] = authorization
        return merged
