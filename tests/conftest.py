"""Общие фикстуры для тестов FlatPeak.

Содержит фикстуры, используемые в различных тестовых модулях.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock

import pytest

from flatpeak import ApiCredentials, FlatpeakService, get_flatpeak_config
from flatpeak.api_client import ApiClient

# Методы ресурсов, которые вызывают сценарии сохранения тарифа
GATEWAY_METHODS = {
    "devices": ("check_device_mac", "create", "retrieve"),
    "customers": ("create", "retrieve", "update"),
    "products": ("create", "retrieve", "update"),
    "tariffs": ("create", "retrieve"),
}


@pytest.fixture
def credentials() -> ApiCredentials:
    """Тестовые учетные данные."""
    return ApiCredentials(
        host="https://api.flatpeak.test",
        publishable_key="pk_test",
        secret_key="sk_test",
    )


@pytest.fixture
def mock_api_client() -> MagicMock:
    """Создать мок ApiClient."""
    client = MagicMock(spec=ApiClient)
    client.request = AsyncMock(return_value={})
    return client


@pytest.fixture
async def service(
    credentials: ApiCredentials,
) -> AsyncGenerator[FlatpeakService, None]:
    """Сервис, у которого HTTP-запросы заменены моком."""
    svc = FlatpeakService(credentials)
    svc._api_client.request = AsyncMock(return_value={})  # type: ignore[method-assign]
    yield svc
    await svc.close()


@pytest.fixture
def gateways(service: FlatpeakService) -> dict[str, AsyncMock]:
    """Заменить методы ресурсов моками.

    Ключи словаря имеют вид "ресурс.метод", например "devices.create".
    """
    mocks: dict[str, AsyncMock] = {}
    for resource_name, methods in GATEWAY_METHODS.items():
        resource = getattr(service, resource_name)
        for method in methods:
            mock = AsyncMock(name=f"{resource_name}.{method}")
            setattr(resource, method, mock)
            mocks[f"{resource_name}.{method}"] = mock
    return mocks


# ========== Интеграционные фикстуры ==========


@pytest.fixture
async def live_service() -> AsyncGenerator[FlatpeakService, None]:
    """Создать сервис из реальной конфигурации."""
    config = get_flatpeak_config()
    svc = FlatpeakService.from_config(config)
    yield svc
    await svc.close()
