"""Ресурсы FlatPeak API.

Каждый класс отвечает за один тип объектов и содержит по методу на
эндпоинт. Методы возвращают JSON-ответ как есть: объект ошибки
(``{"object": "error", "message": ...}``) не выбрасывается, его
проверяет вызывающий код через raise_on_api_error.
"""

from collections.abc import Mapping
from typing import Any

from flatpeak.api_client import ApiClient, ApiCredentials
from flatpeak.token_manager import AuthKind, TokenManager, basic_auth
from flatpeak.utils import encode_query


JsonDict = dict[str, Any]
Query = Mapping[str, Any] | None


class BaseResource:
    """Базовый ресурс: подпись запросов и отправка через ApiClient."""

    module_id: str = ""

    def __init__(
        self,
        credentials: ApiCredentials,
        token_manager: TokenManager,
        api_client: ApiClient,
    ) -> None:
        self._credentials = credentials
        self._token_manager = token_manager
        self._api_client = api_client

    @property
    def host(self) -> str:
        return self._credentials.host

    def _url(self, path: str) -> str:
        return f"{self.host}{path}"

    async def _signed_request(
        self,
        method: str,
        path: str,
        *,
        query: Query = None,
        body: Any = None,
        auth_kind: AuthKind = AuthKind.BASIC,
    ) -> JsonDict:
        """Запрос с заголовком Authorization из ключей сервиса."""
        signed_headers = await self._token_manager.authorise_headers(
            auth_kind=auth_kind
        )
        return await self._api_client.request(
            method,
            self._url(path),
            module=self.module_id,
            headers=signed_headers,
            params=encode_query(query),
            json=body,
        )

    async def _public_request(
        self,
        method: str,
        path: str,
        *,
        authorization: str,
        query: Query = None,
        body: Any = None,
    ) -> JsonDict:
        """Запрос с готовым заголовком Authorization (ключ устройства и т.п.)."""
        return await self._api_client.request(
            method,
            self._url(path),
            module=self.module_id,
            headers={
                "Content-Type": "application/json",
                "Authorization": authorization,
            },
            params=encode_query(query),
            json=body,
        )


class AccountResource(BaseResource):
    module_id = "account"

    async def current(self) -> JsonDict:
        """Получить аккаунт текущего ключа (id и display_settings)."""
        return await self._signed_request("GET", "/account")


class LoginResource(BaseResource):
    module_id = "login"

    async def obtain_token(self) -> JsonDict:
        """Получить Bearer-токен для запросов к API.

        Токен действует 30 минут. Полученный токен сохраняется в кэше
        сервиса и используется Bearer-эндпоинтами.

        Returns:
            Словарь ``{"token": ...}``
        """
        token = await self._token_manager.ensure_token()
        return {"token": token}


class CustomersResource(BaseResource):
    """Клиенты: владельцы продуктов и устройств."""

    module_id = "customers"

    async def list(self, query: Query = None) -> JsonDict:
        """Список клиентов.

        Args:
            query: account_id, reference_id, is_disabled, limit,
                starting_after, ending_before
        """
        return await self._signed_request("GET", "/customers", query=query)

    async def create(self, body: Mapping[str, Any], query: Query = None) -> JsonDict:
        return await self._signed_request(
            "POST", "/customers", query=query, body=dict(body)
        )

    async def retrieve(self, customer_id: str) -> JsonDict:
        return await self._signed_request("GET", f"/customers/{customer_id}")

    async def update(self, customer_id: str, body: Mapping[str, Any]) -> JsonDict:
        return await self._signed_request(
            "PATCH", f"/customers/{customer_id}", body=dict(body)
        )

    async def delete(self, customer_id: str) -> JsonDict:
        return await self._signed_request("DELETE", f"/customers/{customer_id}")


class DevicesResource(BaseResource):
    """Устройства, идентифицируемые MAC-адресом."""

    module_id = "devices"

    async def list(self, query: Query = None) -> JsonDict:
        return await self._signed_request("GET", "/devices", query=query)

    async def create(self, body: Mapping[str, Any], query: Query = None) -> JsonDict:
        """Создать устройство.

        Args:
            body: mac, products, customer_id и прочие поля устройства
            query: account_id
        """
        return await self._signed_request(
            "POST", "/devices", query=query, body=dict(body)
        )

    async def check_device_mac(self, query: Mapping[str, Any]) -> JsonDict:
        """Проверить, можно ли использовать MAC-адрес.

        Args:
            query: mac, account_id, customer_id

        Returns:
            ``{"device_id": ..., "usable": bool}``; device_id есть,
            если устройство с таким MAC уже зарегистрировано
        """
        return await self._signed_request("PUT", "/devices", query=query)

    async def retrieve(self, device_id: str) -> JsonDict:
        return await self._signed_request("GET", f"/devices/{device_id}")

    async def update(self, device_id: str, body: Mapping[str, Any]) -> JsonDict:
        return await self._signed_request(
            "PATCH", f"/devices/{device_id}", body=dict(body)
        )

    async def delete(self, device_id: str) -> JsonDict:
        return await self._signed_request("DELETE", f"/devices/{device_id}")

    async def meter_device(self, device_id: str, body: Mapping[str, Any]) -> JsonDict:
        """Передать потребление устройства за интервал."""
        return await self._signed_request(
            "PUT", f"/devices/{device_id}", body=dict(body)
        )


class ProductsResource(BaseResource):
    """Продукты: адрес поставки, поставщик и настройки тарифа."""

    module_id = "products"

    async def list(self, query: Query = None) -> JsonDict:
        """Список продуктов (требует Bearer-авторизации).

        Args:
            query: account_id, reference_id, customer_id, is_disabled,
                failed_attempts, limit, starting_after, ending_before
        """
        return await self._signed_request(
            "GET", "/products", query=query, auth_kind=AuthKind.BEARER
        )

    async def create(self, body: Mapping[str, Any], query: Query = None) -> JsonDict:
        return await self._signed_request(
            "POST", "/products", query=query, body=dict(body)
        )

    async def pull(self, provider_id: str, body: Mapping[str, Any]) -> JsonDict:
        """Запросить обновление тарифов у поставщика.

        Авторизация выполняется ключом поставщика, а не ключами сервиса.

        Args:
            provider_id: Идентификатор поставщика
            body: action ("pull_tariff") и product_ids или reference_ids
        """
        return await self._public_request(
            "PATCH",
            "/products",
            authorization=basic_auth(provider_id),
            body=dict(body),
        )

    async def retrieve(self, product_id: str) -> JsonDict:
        return await self._signed_request("GET", f"/products/{product_id}")

    async def update(self, product_id: str, body: Mapping[str, Any]) -> JsonDict:
        return await self._signed_request(
            "PATCH", f"/products/{product_id}", body=dict(body)
        )

    async def delete(self, product_id: str) -> JsonDict:
        return await self._signed_request(
            "DELETE", f"/products/{product_id}", auth_kind=AuthKind.BEARER
        )

    async def meter_product(self, product_id: str, body: Mapping[str, Any]) -> JsonDict:
        return await self._signed_request(
            "PUT", f"/products/{product_id}", body=dict(body)
        )


class ProvidersResource(BaseResource):
    module_id = "providers"

    async def list(self, query: Query = None) -> JsonDict:
        """Список поставщиков энергии.

        Args:
            query: country_code, state, keywords, limit,
                starting_after, ending_before
        """
        return await self._signed_request("GET", "/providers", query=query)

    async def create(self, body: Mapping[str, Any], query: Query = None) -> JsonDict:
        return await self._signed_request(
            "POST", "/providers", query=query, body=dict(body)
        )

    async def retrieve(self, provider_id: str) -> JsonDict:
        return await self._signed_request("GET", f"/providers/{provider_id}")

    async def update(self, provider_id: str, body: Mapping[str, Any]) -> JsonDict:
        return await self._signed_request(
            "PATCH", f"/providers/{provider_id}", body=dict(body)
        )


class TariffsResource(BaseResource):
    """Тарифы. Версии тарифа не изменяются, при смене плана создаётся новая."""

    module_id = "tariffs"

    async def list(self, query: Query = None) -> JsonDict:
        return await self._signed_request(
            "GET", "/tariffs", query=query, auth_kind=AuthKind.BEARER
        )

    async def create(self, body: Mapping[str, Any], query: Query = None) -> JsonDict:
        """Создать тариф.

        Args:
            body: product_id, display_name, import, export, timezone
            query: account_id
        """
        return await self._signed_request(
            "POST", "/tariffs", query=query, body=dict(body)
        )

    async def retrieve(self, tariff_id: str) -> JsonDict:
        return await self._signed_request("GET", f"/tariffs/{tariff_id}")


class RatesResource(BaseResource):
    """Стоимость энергии для устройства или продукта."""

    module_id = "rates"

    async def retrieve_for_device(self, device_id: str, query: Query = None) -> JsonDict:
        """Тарифные ставки для устройства.

        Авторизация выполняется идентификатором устройства.

        Args:
            device_id: Идентификатор устройства
            query: rates_period, rates_type, rates_from, rates_to, product_id
        """
        return await self._public_request(
            "GET",
            f"/rates/device/{device_id}",
            authorization=basic_auth(device_id),
            query=query,
        )

    async def retrieve_for_product(
        self, product_id: str, query: Query = None
    ) -> JsonDict:
        return await self._signed_request(
            "GET",
            f"/rates/product/{product_id}",
            query=query,
            auth_kind=AuthKind.BEARER,
        )


class WebhooksResource(BaseResource):
    module_id = "webhooks"

    async def list(self, query: Query = None) -> JsonDict:
        return await self._signed_request("GET", "/webhooks", query=query)

    async def create(self, body: Mapping[str, Any], query: Query = None) -> JsonDict:
        return await self._signed_request(
            "POST", "/webhooks", query=query, body=dict(body)
        )

    async def retrieve(self, webhook_id: str) -> JsonDict:
        return await self._signed_request("GET", f"/webhooks/{webhook_id}")

    async def update(self, webhook_id: str, body: Mapping[str, Any]) -> JsonDict:
        # API обновляет вебхук через POST, а не PATCH
        return await self._signed_request(
            "POST", f"/webhooks/{webhook_id}", body=dict(body)
        )

    async def delete(self, webhook_id: str) -> JsonDict:
        return await self._signed_request("DELETE", f"/webhooks/{webhook_id}")


class EventsResource(BaseResource):
    module_id = "events"

    async def list(self, query: Query = None) -> JsonDict:
        """Список событий аккаунта.

        Args:
            query: account_id, event_type, limit, starting_after, ending_before
        """
        return await self._signed_request(
            "GET", "/events", query=query, auth_kind=AuthKind.BEARER
        )

    async def retrieve(self, event_id: str) -> JsonDict:
        return await self._signed_request(
            "GET", f"/events/{event_id}", auth_kind=AuthKind.BEARER
        )
