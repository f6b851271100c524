"""Пример использования клиента Ethos Integration API."""

import asyncio
import logging
import time

from ethoshub import EthosApiClient, get_ethoshub_config

# Настраиваем логирование
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

RESOURCE_NAME = "persons"
PAGE_SIZE = 5


async def main() -> None:
    """Основная функция."""
    # Загружаем конфигурацию из config.yml
    config = get_ethoshub_config()
    print(f"Подключение к хабу: {config.base_uri}")

    async with EthosApiClient.from_config(config) as client:
        started = time.perf_counter()
        page = await client.get_all(RESOURCE_NAME, offset=0, limit=PAGE_SIZE)
        elapsed_ms = (time.perf_counter() - started) * 1000

        records = page.json()
        print(
            f"\n{RESOURCE_NAME}: {len(records)} из {page.total_count} "
            f"(версия: {page.version}, {elapsed_ms:.0f} мс)"
        )
        for record in records:
            print(f"  - {record.get('id')}")

    print("\nСоединения закрыты.")


if __name__ == "__main__":
    asyncio.run(main())
