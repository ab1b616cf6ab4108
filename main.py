"""Пример использования FlatPeak API клиента."""

import asyncio
import logging

from flatpeak import FlatpeakService, get_default_language_asset, get_flatpeak_config

# Настраиваем логирование
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


async def main() -> None:
    """Основная функция."""
    # Загружаем конфигурацию из config.yml
    config = get_flatpeak_config()
    print(f"Подключение к API: {config.host}")

    async with FlatpeakService.from_config(config) as flatpeak:
        account = await flatpeak.accounts.current()
        asset = get_default_language_asset(account.get("display_settings"))
        print(f"Аккаунт: {account.get('id')} ({asset.get('display_name', '-')})")

        providers = await flatpeak.providers.list({"country_code": "GB", "limit": 5})
        print(f"\nПоставщики ({len(providers.get('data', []))} шт.):")
        for provider in providers.get("data", []):
            print(f"  - {provider.get('display_name')} (id: {provider.get('id')})")

    print("\nСоединение закрыто.")


if __name__ == "__main__":
    asyncio.run(main())
