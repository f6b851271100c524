"""Менеджер токенов для Ethos Integration API.

Управляет получением и обновлением bearer-токена.
Токен живёт фиксированное время (по умолчанию 5 минут) и обновляется
при первом обращении после истечения срока.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from ethoshub.exceptions import EthosHubAuthException, InvalidArgumentError, RequestFailedError
from ethoshub.request_executor import RequestExecutor

logger = logging.getLogger(__name__)
logger.setLevel(level=logging.DEBUG)

AUTH_PATH = "auth"
AUTHORIZATION_HEADER = "Authorization"
DEFAULT_TOKEN_TTL = timedelta(minutes=5)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Session:
    """Состояние сессии одного клиента.

    Токен и срок его действия устанавливаются и сбрасываются вместе.
    Токен с истёкшим сроком считается отсутствующим.

    Attributes:
        base_uri: Базовый URI хаба
        api_key: Статический API-ключ приложения
        token: Закэшированный bearer-токен
        token_expires: Момент истечения токена (UTC)
    """

    base_uri: str
    api_key: str
    token: str | None = None
    token_expires: datetime | None = None

    def has_valid_token(self, now: datetime | None = None) -> bool:
        if self.token is None or self.token_expires is None:
            return False
        return self.token_expires > (now or utc_now())

    def store_token(self, token: str, expires: datetime) -> None:
        self.token = token
        self.token_expires = expires

    def clear_token(self) -> None:
        self.token = None
        self.token_expires = None

    def __repr__(self) -> str:
        # API-ключ и токен не должны попадать в логи
        return (
            f"Session(base_uri={self.base_uri!r}, "
            f"authenticated={self.token is not None}, "
            f"token_expires={self.token_expires!r})"
        )


class TokenManager:
    """Менеджер токена для конкретной сессии.

    Быстрый путь: проверка свежести токена без блокировки.
    Обновление выполняется под asyncio.Lock с повторной проверкой:
    одновременно идёт не больше одного запроса токена, а корутины,
    ждавшие lock, получают результат этого же обновления.
    """

    def __init__(
        self,
        session: Session,
        executor: RequestExecutor,
        token_ttl: timedelta = DEFAULT_TOKEN_TTL,
    ) -> None:
        """Инициализация менеджера токенов.

        Args:
            session: Сессия, владельцем которой является клиент
            executor: Исполнитель HTTP-запросов
            token_ttl: Время жизни полученного токена

        Raises:
            InvalidArgumentError: Если token_ttl не положительный
        """
        if token_ttl <= timedelta(0):
            raise InvalidArgumentError("token_ttl должен быть положительным")

        self._session = session
        self._executor = executor
        self._token_ttl = token_ttl
        self._lock = asyncio.Lock()
        self._refresh_count: int = 0
        self._last_refresh_ok: bool = False

    @property
    def session(self) -> Session:
        return self._session

    @property
    def refresh_count(self) -> int:
        """Количество выполненных попыток получения токена."""
        return self._refresh_count

    async def _fetch_token(self) -> str | None:
        """Запросить новый токен у хаба.

        Returns:
            Токен или None, если получить его не удалось
        """
        headers = {AUTHORIZATION_HEADER: f"Bearer {self._session.api_key}"}

        try:
            logger.debug("Запрос токена для %s", self._session.base_uri)
            response = await self._executor.execute("POST", AUTH_PATH, headers=headers)
        except RequestFailedError as exc:
            logger.error("Ошибка при получении токена: %s", exc)
            return None

        if not response.is_success:
            logger.error(
                "Хаб отклонил запрос токена: получен %d", response.status_code
            )
            return None

        token = response.text.strip()
        if not token:
            logger.error("Хаб вернул пустой токен")
            return None
        return token

    async def ensure_authenticated(self) -> bool:
        """Убедиться, что в сессии есть действующий токен.

        Returns:
            True если токен действителен, False если получить его не удалось
        """
        if self._session.has_valid_token():
            return True

        refresh_before = self._refresh_count
        async with self._lock:
            # Пока ждали lock, токен мог обновить кто-то другой
            if self._refresh_count != refresh_before:
                logger.debug(
                    "Токен уже обновлён другой корутиной (успех: %s)",
                    self._last_refresh_ok,
                )
                return self._last_refresh_ok
            if self._session.has_valid_token():
                return True

            self._session.clear_token()
            token = await self._fetch_token()
            self._refresh_count += 1

            if token is None:
                self._last_refresh_ok = False
                return False

            self._session.store_token(token, utc_now() + self._token_ttl)
            self._last_refresh_ok = True
            logger.info(
                "Токен получен успешно для %s (попытка: %d)",
                self._session.base_uri,
                self._refresh_count,
            )
            return True

    def authorization_header(self) -> dict[str, str]:
        """Заголовок Authorization с текущим токеном.

        Raises:
            EthosHubAuthException: Если токен ещё не получен
        """
        token = self._session.token
        if token is None:
            raise EthosHubAuthException("Токен не получен: выполните аутентификацию")
        return {AUTHORIZATION_HEADER: f"Bearer {token}"}

    def invalidate(self) -> None:
        """Сбросить токен, следующий запрос получит новый."""
        self._session.clear_token()
        logger.debug("Токен сброшен для %s", self._session.base_uri)
