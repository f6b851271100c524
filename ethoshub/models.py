"""Модели ресурсов Ethos.

ResourceDescribable: возможность "быть описанным как ресурс":
имя во множественном числе и content-type версии. Клиенту не нужна
конкретная иерархия сущностей, достаточно pydantic-модели с этими
атрибутами. EthosEntity: удобная базовая модель для сущностей.
"""

import json
from dataclasses import dataclass
from datetime import datetime
from typing import Any, ClassVar, Protocol, runtime_checkable
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from ethoshub.exceptions import MalformedResponseError

DEFAULT_INTEGRATION_CONTENT_TYPE = "application/vnd.hedtech.integration.v2+json"


@runtime_checkable
class ResourceDescribable(Protocol):
    """Сущность, которую можно адресовать как ресурс хаба."""

    resource_plural_name: ClassVar[str]
    header_content_type: ClassVar[str]


class EthosMetadata(BaseModel):
    """Метаданные, обязательные для сущностей Ethos."""

    model_config = ConfigDict(populate_by_name=True)

    created_by: str | None = Field(default=None, alias="createdBy")
    created_on: datetime | None = Field(default=None, alias="createdOn")
    modified_by: str | None = Field(default=None, alias="modifiedBy")
    modified_on: datetime | None = Field(default=None, alias="modifiedOn")


class EthosEntity(BaseModel):
    """Базовая модель сущности Ethos.

    Наследники задают resource_plural_name и при необходимости
    header_content_type конкретной версии схемы.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    resource_plural_name: ClassVar[str]
    header_content_type: ClassVar[str] = DEFAULT_INTEGRATION_CONTENT_TYPE

    id: UUID | None = None
    metadata: EthosMetadata | None = None


def dump_model(model: BaseModel) -> str:
    """Сериализовать произвольную pydantic-модель ресурса."""
    return model.model_dump_json(by_alias=True, exclude_none=True)


@dataclass
class GetResponse:
    """Ответ на чтение ресурса.

    Attributes:
        data: Тело ответа как есть
        version: Согласованная версия ресурса (заголовок X-Media-Type)
        total_count: Общее число записей (X-Total-Count)
    """

    data: str
    version: str | None = None
    total_count: int = 0

    def json(self) -> Any:
        """Разобрать тело ответа как JSON.

        Raises:
            MalformedResponseError: Если тело не является JSON
        """
        try:
            return json.loads(self.data)
        except json.JSONDecodeError as exc:
            raise MalformedResponseError(
                f"Тело ответа не является JSON: {exc}", original_error=exc
            ) from exc
