"""Клиент ресурсов Ethos Integration API.

Связывает TokenManager, построение URI и RequestExecutor:
каждая операция сначала гарантирует действующий токен, затем
формирует путь ресурса и выполняет ровно один запрос.
Повторных попыток клиент не делает.
"""

import logging
from collections.abc import Mapping
from datetime import timedelta
from types import TracebackType
from typing import TypeVar
from uuid import UUID

import httpx
from pydantic import BaseModel, TypeAdapter, ValidationError

from ethoshub.change_notifications import (
    CHANGE_NOTIFICATION_CONTENT_TYPE,
    ChangeNotification,
)
from ethoshub.config_reader import EthosHubConfig
from ethoshub.exceptions import (
    EthosHubAuthException,
    InvalidArgumentError,
    MalformedResponseError,
    RequestFailedError,
)
from ethoshub.models import GetResponse, ResourceDescribable, dump_model
from ethoshub.request_executor import RawResponse, RequestExecutor
from ethoshub.token_manager import DEFAULT_TOKEN_TTL, Session, TokenManager
from ethoshub.uri_builder import resource_uri

logger = logging.getLogger(__name__)
logger.setLevel(level=logging.DEBUG)

T = TypeVar("T", bound=BaseModel)

MEDIA_TYPE_HEADER = "X-Media-Type"
TOTAL_COUNT_HEADER = "X-Total-Count"
OFFSET_PARAM = "offset"
LIMIT_PARAM = "limit"
PUBLISH_PATH = "publish"
CONSUME_PATH = "consume"
DEFAULT_URL_PREFIX = "api"
DEFAULT_TIMEOUT = 30.0
DEFAULT_MAX_MESSAGES = 10

_notifications_adapter = TypeAdapter(list[ChangeNotification])

ResourceId = str | UUID


class EthosApiClient:
    """Клиент для работы с ресурсами хаба от имени одного приложения.

    Владеет собственной сессией (токен и срок его действия), поэтому
    несколько клиентов полностью независимы.

    Использование:
        async with EthosApiClient(base_uri, api_key) as client:
            page = await client.get_all("persons", limit=10)
    """

    def __init__(
        self,
        base_uri: str,
        api_key: str,
        *,
        tenant_id: str | None = None,
        url_prefix: str = DEFAULT_URL_PREFIX,
        token_ttl: timedelta = DEFAULT_TOKEN_TTL,
        timeout: float = DEFAULT_TIMEOUT,
        max_messages_to_consume: int = DEFAULT_MAX_MESSAGES,
        missing_total_count: int | None = 0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Инициализация клиента.

        Args:
            base_uri: Базовый URI хаба
            api_key: Статический API-ключ приложения
            tenant_id: Идентификатор арендатора (только для логов)
            url_prefix: Префикс пути ресурсов
            token_ttl: Время жизни токена
            timeout: Таймаут HTTP-запросов в секундах (если клиент создаётся здесь)
            max_messages_to_consume: Размер пачки уведомлений по умолчанию
            missing_total_count: total_count при отсутствии X-Total-Count;
                None: считать отсутствие заголовка ошибкой
            http_client: Готовый httpx.AsyncClient; закрывать его будет владелец

        Raises:
            InvalidArgumentError: Если base_uri или api_key пустые
        """
        if not base_uri or not api_key:
            raise InvalidArgumentError("base_uri и api_key не могут быть пустыми")
        if max_messages_to_consume <= 0:
            raise InvalidArgumentError("max_messages_to_consume должен быть положительным")

        self._owns_http_client = http_client is None
        self._http_client = http_client or httpx.AsyncClient(timeout=timeout)
        self._executor = RequestExecutor(self._http_client, base_uri)
        self._session = Session(base_uri=base_uri, api_key=api_key)
        self._token_manager = TokenManager(self._session, self._executor, token_ttl)

        self.tenant_id = tenant_id
        self.url_prefix = url_prefix
        self.max_messages_to_consume = max_messages_to_consume
        self.missing_total_count = missing_total_count

        logger.debug(
            "Создан экземпляр EthosApiClient для %s (tenant=%s)",
            base_uri,
            tenant_id,
        )

    @classmethod
    def from_config(
        cls,
        config: EthosHubConfig,
        http_client: httpx.AsyncClient | None = None,
    ) -> "EthosApiClient":
        """Создать клиента из конфигурации.

        Args:
            config: Конфигурация из YAML-файла
            http_client: Готовый httpx.AsyncClient (необязательно)

        Returns:
            Экземпляр EthosApiClient
        """
        return cls(
            base_uri=config.base_uri,
            api_key=config.api_key.get_secret_value(),
            tenant_id=config.tenant_id,
            url_prefix=config.url_prefix,
            token_ttl=timedelta(minutes=config.token_ttl_minutes),
            timeout=config.timeout_seconds,
            max_messages_to_consume=config.max_messages_to_consume,
            missing_total_count=config.missing_total_count,
            http_client=http_client,
        )

    @property
    def session(self) -> Session:
        return self._session

    @property
    def token_manager(self) -> TokenManager:
        return self._token_manager

    async def close(self) -> None:
        """Закрыть HTTP-клиент, если он был создан этим экземпляром."""
        if self._owns_http_client:
            await self._http_client.aclose()
        self._token_manager.invalidate()

    async def __aenter__(self) -> "EthosApiClient":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    # ========== Общие шаги запроса ==========

    async def authenticate(self) -> bool:
        """Получить токен заранее.

        Returns:
            True если токен действителен
        """
        return await self._token_manager.ensure_authenticated()

    async def _auth_headers(self) -> dict[str, str]:
        if not await self._token_manager.ensure_authenticated():
            logger.error("Не удалось пройти аутентификацию в %s", self._session.base_uri)
            raise EthosHubAuthException(
                f"Не удалось получить токен для {self._session.base_uri}"
            )
        return self._token_manager.authorization_header()

    async def _send(
        self,
        method: str,
        path: str,
        *,
        body: str | None = None,
        query_params: Mapping[str, str] | None = None,
        version_content_type: str | None = None,
        content_type: str | None = None,
        timeout: float | None = None,
        error_log_level: int = logging.ERROR,
    ) -> RawResponse:
        """Аутентифицироваться, выполнить запрос и проверить статус.

        Args:
            error_log_level: Уровень записи в лог о неуспешном статусе

        Raises:
            EthosHubAuthException: Если токен получить не удалось
            RequestFailedError: При неуспешном статусе или ошибке транспорта
        """
        headers = await self._auth_headers()
        response = await self._executor.execute(
            method,
            path,
            body=body,
            query_params=query_params,
            headers=headers,
            content_type=content_type,
            accept=version_content_type,
            timeout=timeout,
        )
        if not response.is_success:
            logger.log(
                error_log_level,
                "Ошибка API: %s %s -> %d",
                method,
                path,
                response.status_code,
            )
            raise RequestFailedError(
                f"{method} {path} завершился со статусом {response.status_code}",
                status_code=response.status_code,
                path=path,
            )
        return response

    @staticmethod
    def _deserialize(model_type: type[T], text: str) -> T:
        try:
            return model_type.model_validate_json(text)
        except ValidationError as exc:
            logger.error("Не удалось разобрать ответ как %s: %s", model_type.__name__, exc)
            raise MalformedResponseError(
                f"Ответ не соответствует модели {model_type.__name__}",
                original_error=exc,
            ) from exc

    @staticmethod
    def _describe(model: BaseModel) -> tuple[str, str]:
        if not isinstance(model, ResourceDescribable):
            raise InvalidArgumentError(
                f"{type(model).__name__} не описывает ресурс: "
                "нужны resource_plural_name и header_content_type"
            )
        return model.resource_plural_name, model.header_content_type

    def _total_count(self, response: RawResponse, path: str) -> int:
        count_header = response.headers.get(TOTAL_COUNT_HEADER)
        if count_header is None or not count_header.strip():
            if self.missing_total_count is None:
                raise MalformedResponseError(
                    f"В ответе {path} нет заголовка {TOTAL_COUNT_HEADER}"
                )
            logger.debug(
                "Нет заголовка %s, total_count=%d",
                TOTAL_COUNT_HEADER,
                self.missing_total_count,
            )
            return self.missing_total_count

        try:
            return int(count_header)
        except ValueError as exc:
            raise MalformedResponseError(
                f"Некорректный заголовок {TOTAL_COUNT_HEADER}: {count_header!r}",
                original_error=exc,
            ) from exc

    # ========== Чтение ресурсов ==========

    async def get(
        self,
        resource_id: ResourceId,
        resource_name: str,
        version_content_type: str | None = None,
        *,
        timeout: float | None = None,
    ) -> GetResponse:
        """Получить один ресурс.

        Args:
            resource_id: Идентификатор ресурса
            resource_name: Имя ресурса во множественном числе
            version_content_type: Content-type версии; None: последняя версия
            timeout: Таймаут запроса в секундах

        Returns:
            GetResponse с total_count = 1
        """
        path = resource_uri(self.url_prefix, resource_name, resource_id)
        response = await self._send(
            "GET", path, version_content_type=version_content_type, timeout=timeout
        )
        return GetResponse(
            data=response.text,
            version=response.headers.get(MEDIA_TYPE_HEADER),
            total_count=1,
        )

    async def get_all(
        self,
        resource_name: str,
        params: Mapping[str, str] | None = None,
        offset: int = 0,
        limit: int = -1,
        version_content_type: str | None = None,
        *,
        timeout: float | None = None,
    ) -> GetResponse:
        """Получить страницу ресурсов начиная с offset.

        Args:
            resource_name: Имя ресурса во множественном числе
            params: Дополнительные параметры запроса (фильтры)
            offset: Смещение страницы
            limit: Размер страницы; не положительный: размер по умолчанию сервера
            version_content_type: Content-type версии; None: последняя версия
            timeout: Таймаут запроса в секундах

        Returns:
            GetResponse с total_count из заголовка X-Total-Count
        """
        path = resource_uri(self.url_prefix, resource_name)

        query: dict[str, str] = dict(params) if params else {}
        query[OFFSET_PARAM] = str(offset)
        if limit > 0:
            query[LIMIT_PARAM] = str(limit)

        response = await self._send(
            "GET",
            path,
            query_params=query,
            version_content_type=version_content_type,
            timeout=timeout,
        )
        return GetResponse(
            data=response.text,
            version=response.headers.get(MEDIA_TYPE_HEADER),
            total_count=self._total_count(response, path),
        )

    async def version_supported(
        self,
        resource_name: str,
        version: str,
        *,
        timeout: float | None = None,
    ) -> bool:
        """Проверить, поддерживает ли источник версию ресурса.

        Грубая эвристика: запрашивается одна запись нужной версии.
        Любой успешный ответ (в том числе пустой): версия поддерживается.
        Отказ 4xx (кроме 401/403): не поддерживается.
        Остальные ошибки пробрасываются.
        """
        path = resource_uri(self.url_prefix, resource_name)
        query = {OFFSET_PARAM: "0", LIMIT_PARAM: "1"}
        try:
            await self._send(
                "GET",
                path,
                query_params=query,
                version_content_type=version,
                timeout=timeout,
                error_log_level=logging.DEBUG,
            )
        except RequestFailedError as exc:
            status = exc.status_code
            if status is not None and 400 <= status < 500 and status not in (401, 403):
                logger.info(
                    "Версия %s ресурса %s не поддерживается (%d)",
                    version,
                    resource_name,
                    status,
                )
                return False
            logger.error(
                "Проверка версии %s ресурса %s завершилась ошибкой: %s",
                version,
                resource_name,
                exc,
            )
            raise
        return True

    # ========== Изменение ресурсов ==========

    async def create(self, model: T, *, timeout: float | None = None) -> T:
        """Создать ресурс.

        Content-type версии берётся из самой модели и используется
        и как Accept, и как content-type тела.

        Returns:
            Созданный ресурс того же типа, что и model
        """
        resource_name, content_type = self._describe(model)
        path = resource_uri(self.url_prefix, resource_name)
        response = await self._send(
            "POST",
            path,
            body=dump_model(model),
            version_content_type=content_type,
            content_type=content_type,
            timeout=timeout,
        )
        return self._deserialize(type(model), response.text)

    async def update(
        self,
        model: T,
        resource_id: ResourceId,
        *,
        timeout: float | None = None,
    ) -> T:
        """Заменить ресурс с указанным идентификатором.

        Returns:
            Обновлённый ресурс того же типа, что и model
        """
        resource_name, content_type = self._describe(model)
        path = resource_uri(self.url_prefix, resource_name, resource_id)
        response = await self._send(
            "PUT",
            path,
            body=dump_model(model),
            version_content_type=content_type,
            content_type=content_type,
            timeout=timeout,
        )
        return self._deserialize(type(model), response.text)

    async def delete(
        self,
        model: T,
        resource_id: ResourceId,
        resource_name: str,
        version_content_type: str | None = None,
        *,
        timeout: float | None = None,
    ) -> T | None:
        """Удалить ресурс.

        Имя ресурса и версия передаются явно: при удалении модель
        может не нести полного описания ресурса.

        Returns:
            Ответ сервера в виде модели того же типа; None для пустого тела
        """
        path = resource_uri(self.url_prefix, resource_name, resource_id)
        response = await self._send(
            "DELETE",
            path,
            body=dump_model(model),
            version_content_type=version_content_type,
            timeout=timeout,
        )
        if not response.text.strip():
            return None
        return self._deserialize(type(model), response.text)

    # ========== Уведомления об изменениях ==========

    async def publish_change_notification(
        self,
        notification: ChangeNotification,
        *,
        timeout: float | None = None,
    ) -> bool:
        """Опубликовать уведомление об изменении.

        Returns:
            True если хаб принял уведомление
        """
        try:
            await self._send(
                "POST",
                PUBLISH_PATH,
                body=notification.to_json(),
                content_type=CHANGE_NOTIFICATION_CONTENT_TYPE,
                timeout=timeout,
            )
        except RequestFailedError as exc:
            if exc.status_code is None:
                raise
            return False
        return True

    async def consume_change_notifications(
        self,
        last_processed_id: str | int = "-1",
        max_messages: int | None = None,
        *,
        timeout: float | None = None,
    ) -> list[ChangeNotification]:
        """Забрать одну пачку уведомлений.

        Оставшиеся уведомления будут получены следующим вызовом.

        Args:
            last_processed_id: Идентификатор последнего обработанного
                уведомления (подтверждает ранее полученные)
            max_messages: Размер пачки; по умолчанию max_messages_to_consume
            timeout: Таймаут запроса в секундах

        Returns:
            Список уведомлений

        Raises:
            InvalidArgumentError: Если max_messages не положительный
        """
        if max_messages is None:
            max_messages = self.max_messages_to_consume
        elif max_messages <= 0:
            raise InvalidArgumentError("max_messages должен быть положительным")

        query = {
            "lastProcessedID": str(last_processed_id),
            "max": str(max_messages),
        }
        response = await self._send("GET", CONSUME_PATH, query_params=query, timeout=timeout)

        try:
            return _notifications_adapter.validate_json(response.text)
        except ValidationError as exc:
            logger.error("Не удалось разобрать уведомления: %s", exc)
            raise MalformedResponseError(
                "Ответ consume не является списком уведомлений",
                original_error=exc,
            ) from exc
