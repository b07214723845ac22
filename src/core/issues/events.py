"""
Domain Events do Domínio de Ocorrências.

Um único tipo de evento, IssueEvent, representa o log de auditoria
append-only de uma ocorrência. O campo `type` distingue o fato registrado:

- STATUS_CHANGE: {oldStatus, newStatus, rejectedReason?, previousAssigneeId?}
- ASSIGN: {previousAssigneeId, assigneeId}
- COMMENT: {commentId, body}
- ESCALATE / MERGE_DUPLICATE: reservados para operações administrativas

Uso:
    Eventos são produzidos pelo IssueLifecycle (ou pela criação de
    comentários), gravados pelo repositório e publicados através do
    UnitOfWork após commit bem-sucedido.

    with uow:
        repo.conditional_update(issue.id, expected_version, changes)
        stored = repo.append_event(event)
        uow.publish_event(stored)
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from src.core.shared.events import DomainEvent


class IssueEventType(Enum):
    """Tipos de registro do log de auditoria."""

    STATUS_CHANGE = "STATUS_CHANGE"
    COMMENT = "COMMENT"
    ASSIGN = "ASSIGN"
    ESCALATE = "ESCALATE"
    MERGE_DUPLICATE = "MERGE_DUPLICATE"


@dataclass
class IssueEvent(DomainEvent):
    """
    Evento: algo aconteceu com uma ocorrência.

    Imutável depois de gravado: o repositório devolve uma cópia com
    `sequence` preenchido, nunca altera a instância recebida.

    Attributes:
        actor_id: Usuário que executou a ação
        type: Tipo do registro (IssueEventType)
        payload: Dados específicos do tipo
        sequence: Posição no log da ocorrência (atribuída ao gravar)
    """

    actor_id: str = ""
    type: IssueEventType = IssueEventType.STATUS_CHANGE
    payload: Dict[str, Any] = field(default_factory=dict)
    sequence: Optional[int] = None

    @property
    def aggregate_type(self) -> str:
        return "Issue"

    @property
    def event_type(self) -> str:
        return self.type.value

    @property
    def issue_id(self) -> str:
        return self.aggregate_id

    @property
    def created_at(self) -> datetime:
        return self.occurred_at

    @classmethod
    def status_change(
        cls,
        issue_id: str,
        actor_id: str,
        old_status: str,
        new_status: str,
        occurred_at: datetime,
        **extra: Any,
    ) -> "IssueEvent":
        payload = {"oldStatus": old_status, "newStatus": new_status}
        payload.update({key: value for key, value in extra.items() if value is not None})
        return cls(
            aggregate_id=issue_id,
            actor_id=actor_id,
            type=IssueEventType.STATUS_CHANGE,
            payload=payload,
            occurred_at=occurred_at,
        )

    @classmethod
    def assign(
        cls,
        issue_id: str,
        actor_id: str,
        previous_assignee_id: Optional[str],
        assignee_id: str,
        occurred_at: datetime,
    ) -> "IssueEvent":
        return cls(
            aggregate_id=issue_id,
            actor_id=actor_id,
            type=IssueEventType.ASSIGN,
            payload={
                "previousAssigneeId": previous_assignee_id,
                "assigneeId": assignee_id,
            },
            occurred_at=occurred_at,
        )

    @classmethod
    def comment(
        cls,
        issue_id: str,
        actor_id: str,
        comment_id: str,
        body: str,
        occurred_at: datetime,
    ) -> "IssueEvent":
        return cls(
            aggregate_id=issue_id,
            actor_id=actor_id,
            type=IssueEventType.COMMENT,
            payload={"commentId": comment_id, "body": body},
            occurred_at=occurred_at,
        )

    def _get_event_data(self) -> Dict[str, Any]:
        return {
            "actor_id": self.actor_id,
            "type": self.type.value,
            "payload": dict(self.payload),
            "sequence": self.sequence,
        }

    def __repr__(self) -> str:
        return (
            f"IssueEvent("
            f"type={self.type.value}, "
            f"issue_id={self.aggregate_id}, "
            f"actor_id={self.actor_id}, "
            f"sequence={self.sequence}"
            f")"
        )
