"""Модели данных FlatPeak.

Модели объектов API сохраняют неизвестные поля (extra="allow"),
чтобы новые поля ответа не терялись при валидации.
Поля ответа допускают null: API может вернуть null вместо пустого
списка или false.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ApiObject(BaseModel):
    """Базовая модель объекта API."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)


class PostalAddress(ApiObject):
    address_line1: str | None = None
    address_line2: str | None = None
    city: str | None = None
    state: str | None = None
    post_code: str | None = None
    country_code: str | None = None


class Customer(ApiObject):
    id: str
    is_disabled: bool | None = None
    products: list[str] | None = None


class Product(ApiObject):
    id: str
    customer_id: str | None = None
    provider_id: str | None = None
    timezone: str | None = None
    postal_address: PostalAddress | None = None
    tariff_settings: dict[str, Any] | None = None
    devices: list[str] | None = None
    is_disabled: bool | None = None


class Device(ApiObject):
    id: str
    mac: str | None = None
    products: list[str] | None = None
    customer_id: str | None = None


class MacCheck(ApiObject):
    """Результат проверки MAC-адреса."""

    device_id: str | None = None
    usable: bool | None = None


class TariffPlan(ApiObject):
    """Тарифный план.

    ``import`` и ``export`` - зарезервированные слова Python, поэтому
    поля называются import_ и export_ и сериализуются по алиасам.
    """

    id: str | None = None
    product_id: str | None = None
    display_name: str | None = None
    timezone: str | None = None
    import_: list[Any] | None = Field(default=None, alias="import")
    export_: list[Any] | None = Field(default=None, alias="export")


class Tariff(TariffPlan):
    id: str


class SaveTariffPayload(BaseModel):
    """Входные данные сценариев сохранения тарифа."""

    mac_address: str | None = None
    timezone: str | None = None
    postal_address: PostalAddress | None = None
    product_id: str | None = None
    customer_id: str | None = None
    provider_id: str | None = None
    tariff_plan: TariffPlan


class SaveTariffResult(BaseModel):
    """Результат сохранения тарифа.

    Поля, которые не были созданы в этом вызове, остаются None.
    """

    device_id: str | None = None
    customer_id: str
    product_id: str
    tariff_id: str | None = None
