"""Конфигурация для клиента Ethos Integration API.

Читает настройки из YAML-файла, путь к которому указывается
в переменной окружения ETHOSHUB_CONFIG.

Переменные окружения автоматически загружаются из .env файла.
"""

from functools import lru_cache
from os import getenv
from typing import Any, TypeVar, cast

from dotenv import load_dotenv
from pydantic import BaseModel, Field, SecretStr
from yaml import CSafeLoader as SafeLoader
from yaml import load

# Автоматически загружаем переменные из .env файла
load_dotenv()

ConfigType = TypeVar("ConfigType", bound=BaseModel)

CONFIG_ENV_VAR = "ETHOSHUB_CONFIG"


class EthosHubConfig(BaseModel):
    """Конфигурация для подключения к Ethos Integration API."""

    # Базовый URI хаба (например: https://integrate.elluciancloud.com/)
    base_uri: str

    # Статический API-ключ приложения
    api_key: SecretStr

    # Идентификатор арендатора, если приложение привязано к нему
    tenant_id: str | None = None

    # Префикс пути ресурсов
    url_prefix: str = "api"

    # Время жизни токена в минутах
    token_ttl_minutes: int = Field(default=5, gt=0)

    # Таймаут HTTP-запросов в секундах
    timeout_seconds: float = Field(default=30.0, gt=0)

    # Сколько уведомлений забирать за один запрос consume
    max_messages_to_consume: int = Field(default=10, gt=0)

    # Значение total_count, если сервер не прислал X-Total-Count.
    # null: считать отсутствие заголовка ошибкой
    missing_total_count: int | None = 0


@lru_cache
def parse_config_file() -> dict[str, Any]:
    """Прочитать и распарсить YAML-файл конфигурации.

    Путь к файлу берётся из переменной окружения ETHOSHUB_CONFIG.

    Returns:
        Словарь с конфигурацией

    Raises:
        ValueError: Если переменная окружения не задана
        FileNotFoundError: Если файл не найден
    """
    file_path = getenv(CONFIG_ENV_VAR)
    if file_path is None:
        raise ValueError(
            f"Переменная окружения {CONFIG_ENV_VAR} не задана. "
            "Укажите путь к файлу конфигурации."
        )

    with open(file_path, "rb") as file:
        config_data = load(file, Loader=SafeLoader)

    if not isinstance(config_data, dict):
        raise ValueError("Конфигурация должна быть словарём")
    return config_data


@lru_cache
def get_config(model: type[ConfigType], root_key: str) -> ConfigType:  # noqa: UP047
    """Получить конфигурацию определённого типа из файла.

    Args:
        model: Pydantic-модель для валидации
        root_key: Корневой ключ в YAML-файле

    Returns:
        Экземпляр модели с заполненными значениями

    Raises:
        ValueError: Если ключ не найден в конфигурации
    """
    config_dict = parse_config_file()
    if root_key not in config_dict:
        raise ValueError(f"Ключ '{root_key}' не найден в конфигурации")
    return model.model_validate(config_dict[root_key])


def get_ethoshub_config() -> EthosHubConfig:
    """Получить конфигурацию клиента Ethos.

    Удобная обёртка для получения EthosHubConfig.

    Returns:
        Экземпляр EthosHubConfig
    """
    return cast(EthosHubConfig, get_config(EthosHubConfig, "ethoshub"))
