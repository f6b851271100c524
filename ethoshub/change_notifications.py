"""Уведомления об изменениях (change notifications v2).

Уведомление строится из сущности и операции, сериализуется и
публикуется в хаб. После создания не изменяется.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ethoshub.exceptions import InvalidArgumentError
from ethoshub.models import ResourceDescribable

CHANGE_NOTIFICATION_CONTENT_TYPE = "application/vnd.hedtech.change-notifications.v2+json"


class NotificationContentType(str, Enum):
    """Тип содержимого уведомления."""

    RESOURCE_REPRESENTATION = "resource-representation"
    EMPTY = "empty"
    PATCH = "patch"
    PARTIAL = "partial"
    LIMITED = "limited"


class NotificationOperation(str, Enum):
    """Операция над ресурсом, о которой сообщает уведомление."""

    CREATED = "created"
    REPLACED = "replaced"
    PATCHED = "patched"
    DELETED = "deleted"


class ChangeOperation(str, Enum):
    """Операция в системе-источнике."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"

    @property
    def notification_operation(self) -> NotificationOperation:
        return _OPERATIONS[self]


_OPERATIONS = {
    ChangeOperation.CREATE: NotificationOperation.CREATED,
    ChangeOperation.UPDATE: NotificationOperation.REPLACED,
    ChangeOperation.DELETE: NotificationOperation.DELETED,
}


class NotificationResource(BaseModel):
    """Краткое описание изменённого ресурса."""

    model_config = ConfigDict(frozen=True)

    name: str
    id: str
    version: str | None = None


class ChangeNotification(BaseModel):
    """Уведомление об изменении ресурса.

    Attributes:
        id: Идентификатор уведомления (при публикации не важен, -1)
        published: Время публикации
        content_type: resource-representation, empty, patch, partial или limited
        operation: created, replaced, patched или deleted
        content: Содержимое изменения (для resource-representation: сущность целиком)
        resource: Описание изменённого ресурса
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: int = -1
    published: datetime | None = None
    content_type: str = Field(
        default=NotificationContentType.RESOURCE_REPRESENTATION.value,
        alias="contentType",
    )
    operation: str
    content: dict[str, Any] = Field(default_factory=dict)
    resource: NotificationResource | None = None

    @classmethod
    def from_entity(
        cls,
        entity: BaseModel,
        operation: ChangeOperation | NotificationOperation | str,
    ) -> "ChangeNotification":
        """Построить уведомление по сущности и операции.

        Args:
            entity: Pydantic-модель, описываемая как ресурс
            operation: ChangeOperation или строка операции уведомления

        Returns:
            Уведомление; для удаления content пустой, contentType = empty

        Raises:
            InvalidArgumentError: Неизвестная операция или сущность без описания ресурса
        """
        if not isinstance(entity, ResourceDescribable):
            raise InvalidArgumentError(
                f"{type(entity).__name__} не описывает ресурс: "
                "нужны resource_plural_name и header_content_type"
            )

        notification_operation = _resolve_operation(operation)

        if notification_operation is NotificationOperation.DELETED:
            content_type = NotificationContentType.EMPTY
            content: dict[str, Any] = {}
        else:
            content_type = NotificationContentType.RESOURCE_REPRESENTATION
            content = entity.model_dump(mode="json", by_alias=True, exclude_none=True)

        entity_id = getattr(entity, "id", None)
        return cls(
            id=-1,
            published=datetime.now(timezone.utc),
            content_type=content_type.value,
            operation=notification_operation.value,
            content=content,
            resource=NotificationResource(
                name=entity.resource_plural_name,
                id="" if entity_id is None else str(entity_id),
                version=entity.header_content_type,
            ),
        )

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)


def _resolve_operation(
    operation: ChangeOperation | NotificationOperation | str,
) -> NotificationOperation:
    if isinstance(operation, ChangeOperation):
        return operation.notification_operation
    if isinstance(operation, NotificationOperation):
        return operation
    try:
        return ChangeOperation(operation).notification_operation
    except ValueError:
        pass
    try:
        return NotificationOperation(operation)
    except ValueError:
        raise InvalidArgumentError(f"Неизвестная операция: {operation!r}") from None
