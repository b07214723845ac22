"""
NotificationRouter - evento de ocorrência → destinatários + mensagens.

Mapeamento puro. Regras por tipo de evento:

- STATUS_CHANGE: reporter (issue_updated); assignee, se houver e se não
  for o próprio autor da ação (issue_assigned); SUPERVISOR e ADMIN por
  broadcast de papel (issue_status_change)
- ASSIGN: novo assignee (issue_assigned, exceto auto-atribuição) e
  reporter (issue_assigned, texto voltado ao cidadão)
- Criação: broadcast new_issue para OFFICER, SUPERVISOR e ADMIN
- COMMENT e demais: sem push

Cada payload segue o contrato {type, data, message}, com `data` sendo
apenas o resumo da ocorrência (id, ticketNo, title, status).
"""

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, List, Union

from src.core.issues.entities import IssueEntity, UserRole
from src.core.issues.events import IssueEvent, IssueEventType


ISSUE_UPDATED = "issue_updated"
ISSUE_ASSIGNED = "issue_assigned"
ISSUE_STATUS_CHANGE = "issue_status_change"
NEW_ISSUE = "new_issue"

# Quanto maior, mais específico; vence na colapsagem de duplicados
SPECIFICITY = {
    ISSUE_ASSIGNED: 3,
    ISSUE_UPDATED: 2,
    ISSUE_STATUS_CHANGE: 1,
    NEW_ISSUE: 0,
}

STATUS_BROADCAST_ROLES = (UserRole.SUPERVISOR, UserRole.ADMIN)
NEW_ISSUE_BROADCAST_ROLES = (UserRole.OFFICER, UserRole.SUPERVISOR, UserRole.ADMIN)


@dataclass(frozen=True)
class DirectNotification:
    """Mensagem para um usuário específico."""

    recipient_id: str
    payload: Dict[str, Any]

    @property
    def type(self) -> str:
        return self.payload["type"]


@dataclass(frozen=True)
class RoleBroadcast:
    """
    Mensagem para todos os canais de um papel.

    A lista de membros é resolvida pelo ConnectionRegistry no momento
    da entrega; `exclude_user_ids` evita duplicar quem já recebeu uma
    mensagem direta na mesma operação.
    """

    role: UserRole
    payload: Dict[str, Any]
    exclude_user_ids: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def type(self) -> str:
        return self.payload["type"]


Notification = Union[DirectNotification, RoleBroadcast]


def build_payload(kind: str, issue: IssueEntity, message: str) -> Dict[str, Any]:
    return {"type": kind, "data": issue.summary(), "message": message}


class NotificationRouter:
    """Decide quem recebe o quê para cada evento."""

    def route(self, event: IssueEvent, issue: IssueEntity) -> List[Notification]:
        return self._collapse(self._route_one(event, issue))

    def route_many(self, events: Iterable[IssueEvent], issue: IssueEntity) -> List[Notification]:
        """
        Roteia todos os eventos de uma operação.

        Por destinatário fica só o payload mais específico (empate: o
        primeiro); broadcasts excluem quem já recebe mensagem direta.
        """
        candidates: List[Notification] = []
        for event in events:
            candidates.extend(self._route_one(event, issue))
        return self._collapse(candidates)

    def route_new_issue(self, issue: IssueEntity) -> List[Notification]:
        payload = build_payload(
            NEW_ISSUE, issue, f'Nova ocorrência reportada: {issue.title}'
        )
        return [RoleBroadcast(role, payload) for role in NEW_ISSUE_BROADCAST_ROLES]

    def _route_one(self, event: IssueEvent, issue: IssueEntity) -> List[Notification]:
        if event.type is IssueEventType.STATUS_CHANGE:
            return self._route_status_change(event, issue)
        if event.type is IssueEventType.ASSIGN:
            return self._route_assign(event, issue)
        return []

    def _route_status_change(self, event: IssueEvent, issue: IssueEntity) -> List[Notification]:
        old_status = event.payload.get("oldStatus")
        new_status = event.payload.get("newStatus")
        notifications: List[Notification] = [
            DirectNotification(
                issue.reporter_id,
                build_payload(
                    ISSUE_UPDATED,
                    issue,
                    f'O status da sua ocorrência "{issue.title}" mudou de '
                    f'{old_status} para {new_status}',
                ),
            )
        ]

        # REJECTED limpa o responsável; quem trabalhava na ocorrência ainda é avisado
        assignee_id = issue.assignee_id or event.payload.get("previousAssigneeId")
        if assignee_id and assignee_id != event.actor_id:
            notifications.append(
                DirectNotification(
                    assignee_id,
                    build_payload(
                        ISSUE_ASSIGNED,
                        issue,
                        f'A ocorrência "{issue.title}" atribuída a você mudou para {new_status}',
                    ),
                )
            )

        broadcast = build_payload(
            ISSUE_STATUS_CHANGE,
            issue,
            f'O status da ocorrência "{issue.title}" mudou para {new_status}',
        )
        notifications.extend(RoleBroadcast(role, broadcast) for role in STATUS_BROADCAST_ROLES)
        return notifications

    def _route_assign(self, event: IssueEvent, issue: IssueEntity) -> List[Notification]:
        assignee_id = event.payload.get("assigneeId")
        notifications: List[Notification] = []

        if assignee_id and assignee_id != event.actor_id:
            notifications.append(
                DirectNotification(
                    assignee_id,
                    build_payload(
                        ISSUE_ASSIGNED,
                        issue,
                        f'A ocorrência "{issue.title}" foi atribuída a você',
                    ),
                )
            )

        notifications.append(
            DirectNotification(
                issue.reporter_id,
                build_payload(
                    ISSUE_ASSIGNED,
                    issue,
                    f'Sua ocorrência "{issue.title}" foi encaminhada para resolução',
                ),
            )
        )
        return notifications

    @staticmethod
    def _collapse(candidates: List[Notification]) -> List[Notification]:
        direct: Dict[str, DirectNotification] = {}
        broadcasts: Dict[UserRole, RoleBroadcast] = {}

        for notification in candidates:
            if isinstance(notification, DirectNotification):
                current = direct.get(notification.recipient_id)
                if current is None or SPECIFICITY[notification.type] > SPECIFICITY[current.type]:
                    direct[notification.recipient_id] = notification
            else:
                current = broadcasts.get(notification.role)
                if current is None or SPECIFICITY[notification.type] > SPECIFICITY[current.type]:
                    broadcasts[notification.role] = notification

        excluded = frozenset(direct)
        result: List[Notification] = list(direct.values())
        result.extend(
            RoleBroadcast(b.role, b.payload, excluded | b.exclude_user_ids)
            for b in broadcasts.values()
        )
        return result
