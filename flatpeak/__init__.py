"""Модуль для работы с FlatPeak API.

Предоставляет асинхронный клиент с Basic/Bearer авторизацией,
ресурсами API и сценариями сохранения тарифа.

Пример использования:
    from flatpeak import FlatpeakService, get_flatpeak_config

    config = get_flatpeak_config()
    async with FlatpeakService.from_config(config) as flatpeak:
        account = await flatpeak.accounts.current()

        result = await flatpeak.save_manual_tariff(
            {
                "mac_address": "AA-BB-CC-DD-EE-FF",
                "timezone": "Europe/London",
                "tariff_plan": {"display_name": "Fixed", "import": [...]},
            }
        )
"""

from flatpeak.api_client import (
    ApiClient,
    ApiCredentials,
    RequestTrace,
)
from flatpeak.config_reader import (
    FlatpeakConfig,
    get_flatpeak_config,
    load_flatpeak_config,
)
from flatpeak.exceptions import (
    FlatpeakApiException,
    FlatpeakAuthException,
    FlatpeakException,
    FlatpeakMissingCredentialException,
    FlatpeakPreconditionException,
    FlatpeakTransportException,
)
from flatpeak.models import (
    PostalAddress,
    SaveTariffPayload,
    SaveTariffResult,
    TariffPlan,
)
from flatpeak.service import FlatpeakService
from flatpeak.token_manager import AuthKind, TokenManager
from flatpeak.utils import get_default_language_asset, raise_on_api_error

__all__ = [
    # Service
    "FlatpeakService",
    # Transport
    "ApiClient",
    "ApiCredentials",
    "RequestTrace",
    # Configuration
    "FlatpeakConfig",
    "get_flatpeak_config",
    "load_flatpeak_config",
    # Exceptions
    "FlatpeakApiException",
    "FlatpeakAuthException",
    "FlatpeakException",
    "FlatpeakMissingCredentialException",
    "FlatpeakPreconditionException",
    "FlatpeakTransportException",
    # Models
    "PostalAddress",
    "SaveTariffPayload",
    "SaveTariffResult",
    "TariffPlan",
    # Authorization
    "AuthKind",
    "TokenManager",
    # Utils
    "get_default_language_asset",
    "raise_on_api_error",
]
