"""Исключения для работы с Ethos Integration API.

Классификация ошибок:
- InvalidArgumentError: некорректные входные данные вызывающего кода;
- EthosHubAuthException: токен не получен или не удалось его обновить;
- RequestFailedError: неуспешный HTTP-статус или ошибка транспорта;
- MalformedResponseError: тело ответа не разбирается в ожидаемую форму.
"""


class EthosHubException(Exception):
    """Базовое исключение для ошибок Ethos Integration API."""

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        super().__init__(message)
        self.original_error = original_error


class InvalidArgumentError(EthosHubException, ValueError):
    """Некорректный аргумент: пустое имя ресурса, пустой префикс и т.п."""


class EthosHubAuthException(EthosHubException):
    """Исключение при отсутствии аутентификации.

    Выбрасывается при:
    - Неудачном получении токена (некорректный API-ключ, недоступный хаб)
    - Попытке использовать токен, который ещё не был получен
    """


class RequestFailedError(EthosHubException):
    """Запрос к ресурсу завершился неуспешным статусом или ошибкой транспорта.

    Attributes:
        status_code: HTTP-статус ответа (None, если ответа не было)
        path: Относительный путь ресурса
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        path: str | None = None,
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message, original_error=original_error)
        self.status_code = status_code
        self.path = path


class MalformedResponseError(EthosHubException):
    """Тело ответа не удалось разобрать в ожидаемую модель."""
