"""Общие фикстуры для тестов ethoshub.

Содержит заглушку хаба на httpx.MockTransport и тестовую сущность.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncGenerator
from typing import Any, ClassVar

import httpx
import pytest
from pydantic import Field

from ethoshub import EthosApiClient, EthosEntity

BASE_URI = "https://hub.test/"
API_KEY = "test-api-key"
PERSONS_V12 = "application/vnd.hedtech.integration.v12+json"


class Person(EthosEntity):
    """Тестовая сущность persons версии 12."""

    resource_plural_name: ClassVar[str] = "persons"
    header_content_type: ClassVar[str] = PERSONS_V12

    full_name: str | None = Field(default=None, alias="fullName")


class HubStub:
    """Заглушка хаба: выдаёт токен на /auth и отвечает по маршрутам."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.token = "hub-token"
        self.auth_status = 200
        self.auth_delay = 0.0
        self.auth_error: Exception | None = None
        self._routes: dict[tuple[str, str], tuple[int, dict[str, Any]]] = {}

    def route(self, method: str, path: str, status: int = 200, **kwargs: Any) -> None:
        """Задать ответ для метода и пути (kwargs передаются в httpx.Response)."""
        self._routes[(method, path)] = (status, kwargs)

    async def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        if request.url.path == "/auth":
            if self.auth_delay:
                await asyncio.sleep(self.auth_delay)
            if self.auth_error is not None:
                raise self.auth_error
            if self.auth_status == 200:
                return httpx.Response(200, text=self.token)
            return httpx.Response(self.auth_status, text="unauthorized")

        status, kwargs = self._routes.get((request.method, request.url.path), (404, {}))
        return httpx.Response(status, **kwargs)

    @property
    def auth_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == "/auth"]

    @property
    def resource_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path != "/auth"]


@pytest.fixture
def hub() -> HubStub:
    """Заглушка хаба."""
    return HubStub()


@pytest.fixture
async def http_client(hub: HubStub) -> AsyncGenerator[httpx.AsyncClient, None]:
    """httpx.AsyncClient, отправляющий запросы в заглушку."""
    client = httpx.AsyncClient(transport=httpx.MockTransport(hub.handle))
    yield client
    await client.aclose()


@pytest.fixture
async def client(
    http_client: httpx.AsyncClient,
) -> AsyncGenerator[EthosApiClient, None]:
    """Клиент ресурсов поверх заглушки."""
    api_client = EthosApiClient(BASE_URI, API_KEY, http_client=http_client)
    yield api_client
    await api_client.close()
