"""Построение URI ресурсов и строки запроса.

Чистые функции без состояния.
"""

from collections.abc import Mapping
from typing import Any
from urllib.parse import quote

from ethoshub.exceptions import InvalidArgumentError


def resource_uri(prefix: str, resource_name: str, resource_id: Any = None) -> str:
    """Собрать относительный путь ресурса.

    Args:
        prefix: Префикс URL (обычно "api")
        resource_name: Имя ресурса во множественном числе (например, "persons")
        resource_id: Идентификатор экземпляра ресурса (строка или UUID)

    Returns:
        "prefix/resource_name" или "prefix/resource_name/id"

    Raises:
        InvalidArgumentError: Если prefix или resource_name пустые
    """
    if not prefix or not resource_name:
        raise InvalidArgumentError(
            "Некорректные параметры: prefix и resource_name не могут быть пустыми"
        )

    if resource_id is None or str(resource_id) == "":
        return f"{prefix}/{resource_name}"
    return f"{prefix}/{resource_name}/{resource_id}"


def encode_query(params: Mapping[str, str]) -> str:
    """Закодировать параметры запроса.

    Значения кодируются percent-encoding, ключи передаются как есть.
    Порядок параметров сохраняется.

    Raises:
        InvalidArgumentError: Если params равен None
    """
    if params is None:
        raise InvalidArgumentError("Параметры запроса не могут быть None")

    return "&".join(f"{key}={quote(str(value), safe='')}" for key, value in params.items())


def build_url(
    base_uri: str,
    path: str,
    params: Mapping[str, str] | None = None,
) -> str:
    """Собрать полный URL из базового адреса, пути и параметров."""
    url = f"{base_uri.rstrip('/')}/{path.lstrip('/')}"
    if params:
        url = f"{url}?{encode_query(params)}"
    return url
