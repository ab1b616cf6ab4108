"""Фасад FlatPeak API.

Объединяет ресурсы API под общими учетными данными и реализует
сценарии сохранения тарифа для устройства:

- save_manual_tariff: тариф, введённый пользователем вручную
- save_connected_tariff: тариф из подключённого аккаунта поставщика

Сценарии выполняются последовательно и прерываются на первой ошибке
API. Уже созданные объекты не удаляются: повторный вызов с известными
customer_id и product_id продолжит с текущего состояния.
"""

import asyncio
import logging
from collections.abc import Mapping
from types import TracebackType
from typing import Any, TypeVar

from pydantic import BaseModel

from flatpeak.api_client import DEFAULT_TIMEOUT, ApiClient, ApiCredentials
from flatpeak.config_reader import FlatpeakConfig
from flatpeak.exceptions import FlatpeakPreconditionException
from flatpeak.models import (
    Customer,
    Device,
    MacCheck,
    Product,
    SaveTariffPayload,
    SaveTariffResult,
    Tariff,
)
from flatpeak.resources import (
    AccountResource,
    CustomersResource,
    DevicesResource,
    EventsResource,
    LoginResource,
    ProductsResource,
    ProvidersResource,
    RatesResource,
    TariffsResource,
    WebhooksResource,
)
from flatpeak.token_manager import TokenManager
from flatpeak.utils import is_equal_objects, raise_on_api_error

logger = logging.getLogger(__name__)
logger.setLevel(level=logging.DEBUG)

ModelType = TypeVar("ModelType", bound=BaseModel)

# Поля, по которым тариф считается неизменным
TARIFF_COMPARE_KEYS = ("timezone", "display_name", "product_id", "import", "export")


def _expect(model: type[ModelType], response: Any) -> ModelType:  # noqa: UP047
    """Проверить ответ на ошибку API и разобрать его в модель."""
    return model.model_validate(raise_on_api_error(response))


def _drop_none(data: Mapping[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in data.items() if value is not None}


async def _already_done() -> dict[str, Any]:
    return {}


class FlatpeakService:
    """Фасад для работы с FlatPeak API.

    Содержит: ApiClient, TokenManager и ресурсы API.
    Все ресурсы разделяют один объект ApiCredentials, смена host или
    ключей через свойства сервиса сбрасывает кэш токена.

    Использование:
        async with FlatpeakService(ApiCredentials(host=..., publishable_key=...)) as fp:
            product = await fp.products.retrieve("prd_...")
    """

    def __init__(
        self,
        credentials: ApiCredentials,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        if not credentials.host:
            raise ValueError("Не задан обязательный параметр host")

        self._credentials = credentials
        self._api_client = ApiClient(credentials, timeout=timeout)
        self._token_manager = TokenManager(credentials, self._api_client)

        resource_args = (self._credentials, self._token_manager, self._api_client)
        self.accounts = AccountResource(*resource_args)
        self.login = LoginResource(*resource_args)
        self.customers = CustomersResource(*resource_args)
        self.devices = DevicesResource(*resource_args)
        self.products = ProductsResource(*resource_args)
        self.providers = ProvidersResource(*resource_args)
        self.tariffs = TariffsResource(*resource_args)
        self.rates = RatesResource(*resource_args)
        self.webhooks = WebhooksResource(*resource_args)
        self.events = EventsResource(*resource_args)
        logger.debug("Создан FlatpeakService для %s", credentials.host)

    @classmethod
    def from_config(cls, config: FlatpeakConfig) -> "FlatpeakService":
        """Создать сервис из конфигурации.

        Args:
            config: Конфигурация FlatPeak из YAML-файла

        Returns:
            Экземпляр FlatpeakService
        """
        return cls(config.to_credentials())

    async def close(self) -> None:
        """Закрыть HTTP-сессию."""
        await self._api_client.close()

    async def __aenter__(self) -> "FlatpeakService":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    # ========== Учетные данные ==========

    @property
    def host(self) -> str:
        return self._credentials.host

    @host.setter
    def host(self, value: str) -> None:
        self._credentials.host = value
        self.invalidate_cache()

    @property
    def publishable_key(self) -> str | None:
        return self._credentials.publishable_key

    @publishable_key.setter
    def publishable_key(self, value: str | None) -> None:
        self._credentials.publishable_key = value
        self.invalidate_cache()

    @property
    def secret_key(self) -> str | None:
        return self._credentials.secret_key

    @secret_key.setter
    def secret_key(self, value: str | None) -> None:
        self._credentials.secret_key = value
        self.invalidate_cache()

    def invalidate_cache(self) -> None:
        """Сбросить кэшированные account_id и Bearer-токен."""
        self._token_manager.invalidate()

    async def get_account(self) -> dict[str, Any]:
        """Получить текущий аккаунт (то же, что accounts.current())."""
        return await self.accounts.current()

    # ========== Сценарии сохранения тарифа ==========

    async def save_manual_tariff(
        self, payload: SaveTariffPayload | Mapping[str, Any]
    ) -> SaveTariffResult:
        """Сохранить введённый вручную тариф для устройства.

        Создаёт только недостающее: клиента, продукт, новую версию
        тарифа и устройство. Продукт всегда обновляется адресом,
        поставщиком и часовым поясом из payload.

        Args:
            payload: MAC-адрес, необязательные customer_id/product_id
                и тарифный план

        Returns:
            Идентификаторы; device_id и tariff_id заполнены, только если
            устройство или тариф были созданы в этом вызове

        Raises:
            FlatpeakApiException: Первая ошибка API, дальнейшие шаги
                не выполняются
        """
        payload = SaveTariffPayload.model_validate(payload)
        tariff_plan = payload.tariff_plan
        customer_id = payload.customer_id
        product_id = payload.product_id

        # Можно ли использовать этот MAC?
        mac_check = _expect(
            MacCheck,
            await self.devices.check_device_mac(
                _drop_none({"mac": payload.mac_address, "customer_id": customer_id})
            ),
        )

        if customer_id:
            raise_on_api_error(await self.customers.retrieve(customer_id))
        else:
            customer = _expect(
                Customer, await self.customers.create({"is_disabled": False})
            )
            customer_id = customer.id
            logger.debug("Создан клиент %s", customer_id)

        product_payload = _drop_none(
            {
                "customer_id": customer_id,
                "provider_id": payload.provider_id,
                "timezone": payload.timezone,
                "postal_address": (
                    payload.postal_address.model_dump(exclude_none=True)
                    if payload.postal_address
                    else None
                ),
                "is_disabled": False,
            }
        )
        if product_id:
            # Проверяем, что продукт существует
            raise_on_api_error(await self.products.retrieve(product_id))
            product = _expect(
                Product, await self.products.update(product_id, product_payload)
            )
        else:
            product = _expect(Product, await self.products.create(product_payload))
            product_id = product.id
            logger.debug("Создан продукт %s", product_id)

        is_new_tariff = True
        if tariff_plan.id:
            stored_plan = raise_on_api_error(await self.tariffs.retrieve(tariff_plan.id))
            is_new_tariff = not is_equal_objects(
                stored_plan,
                tariff_plan.model_dump(by_alias=True),
                TARIFF_COMPARE_KEYS,
            )

        tariff_id = None
        if is_new_tariff:
            tariff = _expect(
                Tariff,
                await self.tariffs.create(
                    _drop_none(
                        {
                            "product_id": product_id,
                            "display_name": tariff_plan.display_name,
                            "import": tariff_plan.import_,
                            "export": tariff_plan.export_,
                            "timezone": payload.timezone,
                        }
                    )
                ),
            )
            product = _expect(
                Product,
                await self.products.update(
                    product_id,
                    {
                        "tariff_settings": {
                            "display_name": tariff.display_name,
                            "is_enabled": True,
                            "integrated": False,
                            "tariff_id": tariff.id,
                        }
                    },
                ),
            )
            tariff_id = tariff.id
            logger.debug("Создан тариф %s для продукта %s", tariff_id, product_id)
        else:
            logger.debug("Тариф %s не изменился", tariff_plan.id)

        device_id = None
        product_devices = product.devices or []
        if not mac_check.device_id or mac_check.device_id not in product_devices:
            device = _expect(
                Device,
                await self.devices.create(
                    _drop_none(
                        {
                            "mac": payload.mac_address,
                            "products": [product_id],
                            "customer_id": customer_id,
                        }
                    )
                ),
            )
            device_id = device.id
            logger.debug("Создано устройство %s", device_id)

        return SaveTariffResult(
            device_id=device_id,
            customer_id=customer_id,
            product_id=product_id,
            tariff_id=tariff_id,
        )

    async def save_connected_tariff(
        self, payload: SaveTariffPayload | Mapping[str, Any]
    ) -> SaveTariffResult:
        """Привязать устройство к продукту с подключённым тарифом.

        Отключённые клиент и продукт включаются обратно. Устройство
        обрабатывается, только если передан MAC-адрес.

        Args:
            payload: product_id, customer_id, tariff_plan.id и
                необязательный MAC-адрес

        Returns:
            Идентификаторы; tariff_id берётся из tariff_plan.id

        Raises:
            FlatpeakPreconditionException: Не переданы product_id,
                customer_id или tariff_plan.id (запросы не выполняются)
            FlatpeakApiException: Первая ошибка API
        """
        payload = SaveTariffPayload.model_validate(payload)
        product_id = payload.product_id
        customer_id = payload.customer_id
        tariff_plan = payload.tariff_plan
        if not product_id or not customer_id or not tariff_plan.id:
            raise FlatpeakPreconditionException(
                "Не переданы обязательные параметры: "
                "product_id, customer_id и tariff_plan.id"
            )

        product = _expect(Product, await self.products.retrieve(product_id))
        customer = _expect(Customer, await self.customers.retrieve(customer_id))

        results = await asyncio.gather(
            (
                self.customers.update(customer_id, {"is_disabled": False})
                if customer.is_disabled
                else _already_done()
            ),
            (
                self.products.update(product_id, {"is_disabled": False})
                if product.is_disabled
                else _already_done()
            ),
        )
        for result in results:
            raise_on_api_error(result)

        device_id = None
        if payload.mac_address:
            mac_check = _expect(
                MacCheck,
                await self.devices.check_device_mac(
                    {"mac": payload.mac_address, "customer_id": customer_id}
                ),
            )
            product_devices = product.devices or []
            if not mac_check.device_id or mac_check.device_id not in product_devices:
                device = _expect(
                    Device,
                    await self.devices.create(
                        {
                            "mac": payload.mac_address,
                            "products": [product.id],
                            "customer_id": customer.id,
                        }
                    ),
                )
                logger.debug("Создано устройство %s", device.id)
            else:
                device = _expect(
                    Device, await self.devices.retrieve(mac_check.device_id)
                )
            device_id = device.id

        return SaveTariffResult(
            device_id=device_id,
            customer_id=customer.id,
            product_id=product.id,
            tariff_id=tariff_plan.id,
        )
