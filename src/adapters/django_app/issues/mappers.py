"""
Mappers para conversão entre Entities (Core) e Models (Django).

- IssueMapper: IssueEntity ↔ IssueModel, patch do Core → colunas
- IssueEventMapper: IssueEvent ↔ IssueEventModel

Mappers são stateless e não contêm lógica de negócio.
"""

from enum import Enum
from typing import Any, Dict

from src.core.issues.entities import IssueEntity, IssuePriority, IssueStatus
from src.core.issues.events import IssueEvent, IssueEventType

from .models import IssueEventModel, IssueModel


class IssueMapper:

    @staticmethod
    def to_model(entity: IssueEntity) -> IssueModel:
        """Não chama .save() - deixa isso para o Repository."""
        return IssueModel(
            id=entity.id,
            ticket_no=entity.ticket_no,
            title=entity.title,
            description=entity.description,
            category_id=entity.category_id,
            ward_id=entity.ward_id,
            department_id=entity.department_id,
            address=entity.address,
            status=entity.status.value,
            priority=entity.priority.value,
            reporter_id=entity.reporter_id,
            assignee_id=entity.assignee_id,
            rejected_reason=entity.rejected_reason,
            resolved_at=entity.resolved_at,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
            version=entity.version,
        )

    @staticmethod
    def to_entity(model: IssueModel) -> IssueEntity:
        """
        Converte IssueModel para IssueEntity.

        Bypassa IssueEntity.draft() pois os dados já foram validados
        na criação original.
        """
        return IssueEntity(
            id=model.id,
            ticket_no=model.ticket_no,
            title=model.title,
            description=model.description,
            category_id=model.category_id,
            ward_id=model.ward_id,
            department_id=model.department_id,
            address=model.address,
            status=IssueStatus(model.status),
            priority=IssuePriority(model.priority),
            reporter_id=model.reporter_id,
            assignee_id=model.assignee_id,
            rejected_reason=model.rejected_reason,
            resolved_at=model.resolved_at,
            created_at=model.created_at,
            updated_at=model.updated_at,
            version=model.version,
        )

    @staticmethod
    def patch_to_columns(patch: Dict[str, Any]) -> Dict[str, Any]:
        """Enums do Core viram seus valores de coluna."""
        return {
            key: value.value if isinstance(value, Enum) else value
            for key, value in patch.items()
        }


class IssueEventMapper:

    @staticmethod
    def to_model(event: IssueEvent, sequence: int) -> IssueEventModel:
        return IssueEventModel(
            id=event.event_id,
            issue_id=event.issue_id,
            actor_id=event.actor_id,
            type=event.type.value,
            payload=event.payload,
            sequence=sequence,
            created_at=event.occurred_at,
        )

    @staticmethod
    def to_event(model: IssueEventModel) -> IssueEvent:
        return IssueEvent(
            event_id=model.id,
            aggregate_id=model.issue_id,
            occurred_at=model.created_at,
            actor_id=model.actor_id,
            type=IssueEventType(model.type),
            payload=dict(model.payload or {}),
            sequence=model.sequence,
        )
