"""
Data Transfer Objects (DTOs) do Domínio de Ocorrências.

- Input DTOs: dados de entrada já extraídos da requisição HTTP
- Output DTOs: projeções serializáveis devolvidas pela API

TransitionRequest é efêmero: validado pelo IssueLifecycle e descartado,
nunca persistido.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from .entities import Actor, IssueEntity, IssuePriority, IssueStatus
from .events import IssueEvent


# =============================================================================
# INPUT DTOs (Entrada)
# =============================================================================

@dataclass(frozen=True)
class TransitionRequest:
    """
    Pedido de mudança de status.

    Attributes:
        issue_id: Ocorrência alvo
        actor: Quem pede a transição (id + papel)
        target_status: Status desejado
        rejected_reason: Obrigatório quando target_status == REJECTED
        assignee_id: Responsável para target_status == ASSIGNED
    """

    issue_id: str
    actor: Actor
    target_status: IssueStatus
    rejected_reason: Optional[str] = None
    assignee_id: Optional[str] = None

    @property
    def actor_id(self) -> str:
        return self.actor.id

    @property
    def actor_role(self):
        return self.actor.role


@dataclass(frozen=True)
class CreateIssueInputDTO:
    """
    DTO de entrada para reportar uma ocorrência.

    Attributes:
        title: Título curto
        description: Descrição detalhada
        category_id: Categoria (define a secretaria responsável)
        ward_id: Bairro/distrito (opcional)
        priority: Nome do enum de prioridade
        address: Endereço informado (opcional)
    """

    title: str
    description: str
    category_id: str
    ward_id: Optional[str] = None
    priority: str = "MEDIUM"
    address: Optional[str] = None


@dataclass(frozen=True)
class AddCommentInputDTO:
    issue_id: str
    body: str
    comment_id: Optional[str] = None


# =============================================================================
# OUTPUT DTOs (Saída)
# =============================================================================

@dataclass
class IssueOutputDTO:
    """DTO de saída completo com dados da ocorrência."""

    id: str
    ticket_no: Optional[str]
    title: str
    description: str
    status: str
    priority: str
    category_id: str
    ward_id: Optional[str]
    department_id: Optional[str]
    address: Optional[str]
    reporter_id: str
    assignee_id: Optional[str]
    rejected_reason: Optional[str]
    resolved_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime
    version: int

    @classmethod
    def from_entity(cls, entity: IssueEntity) -> "IssueOutputDTO":
        return cls(
            id=entity.id,
            ticket_no=entity.ticket_no,
            title=entity.title,
            description=entity.description,
            status=entity.status.value,
            priority=entity.priority.value,
            category_id=entity.category_id,
            ward_id=entity.ward_id,
            department_id=entity.department_id,
            address=entity.address,
            reporter_id=entity.reporter_id,
            assignee_id=entity.assignee_id,
            rejected_reason=entity.rejected_reason,
            resolved_at=entity.resolved_at,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
            version=entity.version,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Converte para dicionário (serialização JSON, chaves camelCase)."""
        return {
            "id": self.id,
            "ticketNo": self.ticket_no,
            "title": self.title,
            "description": self.description,
            "status": self.status,
            "priority": self.priority,
            "categoryId": self.category_id,
            "wardId": self.ward_id,
            "departmentId": self.department_id,
            "address": self.address,
            "reporterId": self.reporter_id,
            "assigneeId": self.assignee_id,
            "rejectedReason": self.rejected_reason,
            "resolvedAt": self.resolved_at.isoformat() if self.resolved_at else None,
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
            "version": self.version,
        }


@dataclass
class IssueEventOutputDTO:
    """Registro do log de auditoria como exposto pela API."""

    id: str
    issue_id: str
    actor_id: str
    type: str
    payload: Dict[str, Any]
    sequence: Optional[int]
    created_at: datetime

    @classmethod
    def from_event(cls, event: IssueEvent) -> "IssueEventOutputDTO":
        return cls(
            id=event.event_id,
            issue_id=event.issue_id,
            actor_id=event.actor_id,
            type=event.type.value,
            payload=dict(event.payload),
            sequence=event.sequence,
            created_at=event.created_at,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "issueId": self.issue_id,
            "actorId": self.actor_id,
            "type": self.type,
            "payload": self.payload,
            "sequence": self.sequence,
            "createdAt": self.created_at.isoformat(),
        }


def parse_priority(value: Optional[str]) -> IssuePriority:
    """Prioridade a partir da entrada (MEDIUM quando omitida)."""
    if value is None or value == "":
        return IssuePriority.MEDIUM
    return IssuePriority.from_string(value)
