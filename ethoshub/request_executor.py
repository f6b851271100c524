"""Исполнитель HTTP-запросов к Ethos Integration API.

Формирует заголовки согласования версии, отправляет ровно один запрос
и возвращает ответ целиком, включая ответы с кодами ошибок.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import httpx

from ethoshub.exceptions import RequestFailedError
from ethoshub.uri_builder import build_url

logger = logging.getLogger(__name__)

DEFAULT_JSON_CONTENT_TYPE = "application/json"
ACCEPT_HEADER = "Accept"
ACCEPT_CHARSET_HEADER = "Accept-Charset"
CONTENT_TYPE_HEADER = "Content-Type"


@dataclass
class RawResponse:
    """Ответ сервера без интерпретации статуса.

    Attributes:
        status_code: HTTP-статус
        headers: Заголовки ответа (регистронезависимые)
        text: Тело ответа
    """

    status_code: int
    headers: httpx.Headers
    text: str

    @property
    def is_success(self) -> bool:
        """Статус в диапазоне 2xx."""
        return 200 <= self.status_code < 300


def build_accept_headers(version_content_type: str | None = None) -> dict[str, str]:
    """Заголовки согласования версии ресурса.

    Версия запрашивается через content-type, а не через URL.

    Args:
        version_content_type: Content-type конкретной версии ресурса

    Returns:
        Словарь с Accept и Accept-Charset
    """
    return {
        ACCEPT_HEADER: version_content_type or DEFAULT_JSON_CONTENT_TYPE,
        ACCEPT_CHARSET_HEADER: "UTF-8",
    }


class RequestExecutor:
    """Отправляет запросы относительно базового URI хаба.

    Не хранит изменяемого состояния: httpx.AsyncClient передаётся снаружи.
    """

    def __init__(self, http_client: httpx.AsyncClient, base_uri: str) -> None:
        self._http_client = http_client
        self._base_uri = base_uri

    @property
    def base_uri(self) -> str:
        return self._base_uri

    async def execute(
        self,
        method: str,
        path: str,
        body: str | None = None,
        query_params: Mapping[str, str] | None = None,
        headers: Mapping[str, str] | None = None,
        content_type: str | None = None,
        accept: str | None = None,
        timeout: float | None = None,
    ) -> RawResponse:
        """Выполнить один HTTP-запрос.

        Args:
            method: HTTP-метод
            path: Путь относительно базового URI
            body: Тело запроса (строка JSON)
            query_params: Параметры строки запроса, порядок сохраняется
            headers: Дополнительные заголовки (перекрывают стандартные)
            content_type: Content-type тела, по умолчанию application/json
            accept: Content-type запрашиваемой версии ресурса
            timeout: Таймаут запроса в секундах вместо таймаута клиента

        Returns:
            Ответ сервера с любым статусом

        Raises:
            RequestFailedError: При ошибке транспорта, некорректном URL
                или заголовке не в ASCII (ответа нет)
        """
        url = build_url(self._base_uri, path, query_params)

        request_headers = build_accept_headers(accept)
        if headers:
            request_headers.update(headers)

        content: bytes | None = None
        if body is not None:
            request_headers[CONTENT_TYPE_HEADER] = content_type or DEFAULT_JSON_CONTENT_TYPE
            content = body.encode("utf-8")

        request_kwargs: dict[str, Any] = {}
        if timeout is not None:
            request_kwargs["timeout"] = timeout

        logger.debug("%s %s", method, url)
        try:
            response = await self._http_client.request(
                method,
                url,
                content=content,
                headers=request_headers,
                **request_kwargs,
            )
        except (httpx.HTTPError, httpx.InvalidURL, UnicodeEncodeError) as exc:
            # InvalidURL и ошибки кодирования заголовков не наследуют HTTPError
            logger.error("Ошибка транспорта при %s %s: %s", method, path, exc)
            raise RequestFailedError(
                f"Ошибка транспорта при {method} {path}: {exc}",
                path=path,
                original_error=exc,
            ) from exc

        logger.debug("%s %s -> %d", method, path, response.status_code)
        return RawResponse(
            status_code=response.status_code,
            headers=response.headers,
            text=response.text,
        )
