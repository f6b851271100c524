"""Модуль для работы с Ethos Integration API.

Предоставляет клиента с автоматическим получением bearer-токена,
согласованием версии ресурсов через content-type и публикацией
уведомлений об изменениях.

Пример использования:
    from ethoshub import get_ethoshub_config, EthosApiClient

    config = get_ethoshub_config()
    async with EthosApiClient.from_config(config) as client:
        # Одна запись
        person = await client.get(person_id, "persons")

        # Страница ресурсов
        page = await client.get_all("persons", offset=0, limit=10)
        print(page.total_count)
"""

from ethoshub.api_client import EthosApiClient
from ethoshub.change_notifications import (
    CHANGE_NOTIFICATION_CONTENT_TYPE,
    ChangeNotification,
    ChangeOperation,
    NotificationContentType,
    NotificationOperation,
    NotificationResource,
)
from ethoshub.config_reader import (
    EthosHubConfig,
    get_config,
    get_ethoshub_config,
    parse_config_file,
)
from ethoshub.exceptions import (
    EthosHubAuthException,
    EthosHubException,
    InvalidArgumentError,
    MalformedResponseError,
    RequestFailedError,
)
from ethoshub.models import (
    EthosEntity,
    EthosMetadata,
    GetResponse,
    ResourceDescribable,
)
from ethoshub.request_executor import RawResponse, RequestExecutor
from ethoshub.token_manager import Session, TokenManager
from ethoshub.uri_builder import build_url, encode_query, resource_uri

__all__ = [
    # API Client
    "EthosApiClient",
    # Change Notifications
    "CHANGE_NOTIFICATION_CONTENT_TYPE",
    "ChangeNotification",
    "ChangeOperation",
    "NotificationContentType",
    "NotificationOperation",
    "NotificationResource",
    # Configuration
    "EthosHubConfig",
    "get_config",
    "get_ethoshub_config",
    "parse_config_file",
    # Exceptions
    "EthosHubAuthException",
    "EthosHubException",
    "InvalidArgumentError",
    "MalformedResponseError",
    "RequestFailedError",
    # Models
    "EthosEntity",
    "EthosMetadata",
    "GetResponse",
    "ResourceDescribable",
    # Transport
    "RawResponse",
    "RequestExecutor",
    # Token Management
    "Session",
    "TokenManager",
    # URI Builder
    "build_url",
    "encode_query",
    "resource_uri",
]
