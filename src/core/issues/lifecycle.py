"""
IssueLifecycle - máquina de estados das ocorrências.

Transições permitidas (de → para):

    SUBMITTED         → TRIAGED, REJECTED
    TRIAGED           → ASSIGNED, REJECTED
    ASSIGNED          → IN_PROGRESS, PENDING_USER_INFO, REJECTED
    IN_PROGRESS       → PENDING_USER_INFO, RESOLVED, REJECTED
    PENDING_USER_INFO → IN_PROGRESS, REJECTED

DRAFT só sai via submit(); RESOLVED e REJECTED não têm saída.
Auto-transições são inválidas.

Todas as operações são puras: recebem a entidade atual e devolvem um
LifecycleResult com a nova entidade, os eventos a gravar e o patch para
a escrita condicional. Persistência e notificação ficam no IssueService.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Callable, Dict, FrozenSet, List, Optional
import uuid

from src.core.shared.events import utcnow
from src.core.shared.exceptions import (
    BusinessRuleViolationError,
    ForbiddenError,
    InvalidTransitionError,
    MissingFieldError,
    ValidationError,
)

from .dtos import TransitionRequest
from .entities import Actor, IssueEntity, IssuePriority, IssueStatus, UserRole
from .events import IssueEvent
from .policy import TransitionPolicy


TRANSITIONS: Dict[IssueStatus, FrozenSet[IssueStatus]] = {
    IssueStatus.DRAFT: frozenset(),
    IssueStatus.SUBMITTED: frozenset({IssueStatus.TRIAGED, IssueStatus.REJECTED}),
    IssueStatus.TRIAGED: frozenset({IssueStatus.ASSIGNED, IssueStatus.REJECTED}),
    IssueStatus.ASSIGNED: frozenset({
        IssueStatus.IN_PROGRESS,
        IssueStatus.PENDING_USER_INFO,
        IssueStatus.REJECTED,
    }),
    IssueStatus.IN_PROGRESS: frozenset({
        IssueStatus.PENDING_USER_INFO,
        IssueStatus.RESOLVED,
        IssueStatus.REJECTED,
    }),
    IssueStatus.PENDING_USER_INFO: frozenset({
        IssueStatus.IN_PROGRESS,
        IssueStatus.REJECTED,
    }),
    IssueStatus.RESOLVED: frozenset(),
    IssueStatus.REJECTED: frozenset(),
}

# Status em que uma reatribuição não altera o status
REASSIGNABLE_STATUSES = frozenset({
    IssueStatus.ASSIGNED,
    IssueStatus.IN_PROGRESS,
    IssueStatus.PENDING_USER_INFO,
})

COMMENT_MAX_LENGTH = 2000


@dataclass
class LifecycleResult:
    """
    Resultado de uma operação do ciclo de vida.

    Attributes:
        issue: Nova entidade (version já incrementada)
        events: Eventos a gravar, na ordem
        changes: Campos alterados, usados como patch da escrita condicional
        expected_version: Versão lida antes da operação
    """

    issue: IssueEntity
    events: List[IssueEvent] = field(default_factory=list)
    changes: Dict[str, Any] = field(default_factory=dict)
    expected_version: int = 0


class IssueLifecycle:
    """Valida e aplica transições, atribuições e mudanças de prioridade."""

    def __init__(
        self,
        policy: Optional[TransitionPolicy] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.policy = policy or TransitionPolicy()
        self._clock = clock

    @staticmethod
    def can_transition(current: IssueStatus, target: IssueStatus) -> bool:
        return target in TRANSITIONS.get(current, frozenset())

    def apply(self, issue: IssueEntity, request: TransitionRequest) -> LifecycleResult:
        """
        Aplica uma transição de status.

        Ordem das validações: tabela de transições, permissão do papel,
        campos obrigatórios do status alvo.

        Raises:
            InvalidTransitionError: Status alvo inalcançável (inclui o mesmo status)
            ForbiddenError: Papel do ator não pode alcançar o status alvo
            MissingFieldError: REJECTED sem motivo ou ASSIGNED sem responsável
        """
        target = request.target_status
        if not self.can_transition(issue.status, target):
            raise InvalidTransitionError(issue.status.value, target.value)

        self.policy.check_transition(request.actor.role, target)

        changes: Dict[str, Any] = {"status": target}
        status_extra: Dict[str, Any] = {}
        assign_event_needed = False

        if target is IssueStatus.REJECTED:
            reason = (request.rejected_reason or "").strip()
            if not reason:
                raise MissingFieldError(
                    "Motivo da rejeição é obrigatório", field="rejected_reason"
                )
            changes["rejected_reason"] = reason
            status_extra["rejectedReason"] = reason
            if issue.assignee_id is not None:
                changes["assignee_id"] = None
                status_extra["previousAssigneeId"] = issue.assignee_id

        if target is IssueStatus.ASSIGNED:
            assignee_id = request.assignee_id or issue.assignee_id
            if not assignee_id:
                raise MissingFieldError(
                    "Responsável é obrigatório para ASSIGNED", field="assignee_id"
                )
            if assignee_id != issue.assignee_id:
                self.policy.check_assign(request.actor.role)
                changes["assignee_id"] = assignee_id
                assign_event_needed = True

        now = self._next_timestamp(issue)
        if target is IssueStatus.RESOLVED:
            changes["resolved_at"] = now
        changes["updated_at"] = now

        events: List[IssueEvent] = []
        if assign_event_needed:
            events.append(
                IssueEvent.assign(
                    issue.id,
                    request.actor.id,
                    issue.assignee_id,
                    changes["assignee_id"],
                    now,
                )
            )
        events.append(
            IssueEvent.status_change(
                issue.id,
                request.actor.id,
                issue.status.value,
                target.value,
                now,
                **status_extra,
            )
        )

        return self._result(issue, changes, events)

    def assign(self, issue: IssueEntity, assignee_id: str, actor: Actor) -> LifecycleResult:
        """
        Define o responsável.

        A partir de TRIAGED força a transição para ASSIGNED no mesmo passo
        (eventos ASSIGN e STATUS_CHANGE, nesta ordem). Em ASSIGNED,
        IN_PROGRESS e PENDING_USER_INFO apenas troca o responsável.

        Raises:
            ForbiddenError: Papel diferente de SUPERVISOR/ADMIN
            MissingFieldError: assignee_id vazio
            InvalidTransitionError: Status não admite responsável
        """
        self.policy.check_assign(actor.role)
        if not assignee_id:
            raise MissingFieldError("Responsável é obrigatório", field="assignee_id")

        if issue.status is IssueStatus.TRIAGED:
            request = TransitionRequest(
                issue_id=issue.id,
                actor=actor,
                target_status=IssueStatus.ASSIGNED,
                assignee_id=assignee_id,
            )
            return self.apply(issue, request)

        if issue.status not in REASSIGNABLE_STATUSES:
            raise InvalidTransitionError(issue.status.value, IssueStatus.ASSIGNED.value)

        now = self._next_timestamp(issue)
        changes = {"assignee_id": assignee_id, "updated_at": now}
        events = [
            IssueEvent.assign(issue.id, actor.id, issue.assignee_id, assignee_id, now)
        ]
        return self._result(issue, changes, events)

    def submit(self, draft: IssueEntity, actor: Actor) -> LifecycleResult:
        """
        Passo implícito DRAFT → SUBMITTED da criação.

        Não passa pela TransitionPolicy: qualquer papel pode reportar.
        A versão não muda porque o rascunho nunca foi persistido.
        """
        if draft.status is not IssueStatus.DRAFT:
            raise InvalidTransitionError(draft.status.value, IssueStatus.SUBMITTED.value)
        if draft.reporter_id != actor.id:
            raise ForbiddenError(
                "Somente o autor pode submeter o próprio rascunho",
                role=actor.role.value,
                required_roles=[],
            )

        now = max(self._clock(), draft.created_at)
        submitted = replace(draft, status=IssueStatus.SUBMITTED, updated_at=now)
        event = IssueEvent.status_change(
            draft.id,
            actor.id,
            IssueStatus.DRAFT.value,
            IssueStatus.SUBMITTED.value,
            now,
        )
        self._check_invariants(submitted)
        return LifecycleResult(
            issue=submitted,
            events=[event],
            changes={},
            expected_version=draft.version,
        )

    def change_priority(
        self, issue: IssueEntity, priority: IssuePriority, actor: Actor
    ) -> LifecycleResult:
        """Prioridade é um eixo independente: permitida em qualquer status."""
        self.policy.check_priority(actor.role)
        now = self._next_timestamp(issue)
        return self._result(issue, {"priority": priority, "updated_at": now}, [])

    def comment(
        self,
        issue: IssueEntity,
        actor: Actor,
        body: str,
        comment_id: Optional[str] = None,
    ) -> IssueEvent:
        """
        Cria o evento COMMENT.

        Cidadãos só comentam ocorrências que eles mesmos reportaram.
        """
        if actor.role is UserRole.CITIZEN and issue.reporter_id != actor.id:
            raise ForbiddenError(
                "Cidadãos só podem comentar as próprias ocorrências",
                role=actor.role.value,
                required_roles=[
                    UserRole.OFFICER.value,
                    UserRole.SUPERVISOR.value,
                    UserRole.ADMIN.value,
                ],
            )

        text = (body or "").strip()
        if not text:
            raise ValidationError("Comentário não pode ser vazio", field="body")
        if len(text) > COMMENT_MAX_LENGTH:
            raise ValidationError(
                f"Comentário deve ter no máximo {COMMENT_MAX_LENGTH} caracteres",
                field="body",
            )

        return IssueEvent.comment(
            issue.id,
            actor.id,
            comment_id or str(uuid.uuid4()),
            text,
            self._clock(),
        )

    def _next_timestamp(self, issue: IssueEntity) -> datetime:
        # updated_at nunca retrocede, mesmo com relógio atrasado
        return max(self._clock(), issue.updated_at)

    def _result(
        self,
        issue: IssueEntity,
        changes: Dict[str, Any],
        events: List[IssueEvent],
    ) -> LifecycleResult:
        updated = replace(issue, version=issue.version + 1, **changes)
        self._check_invariants(updated)
        return LifecycleResult(
            issue=updated,
            events=events,
            changes=changes,
            expected_version=issue.version,
        )

    @staticmethod
    def _check_invariants(issue: IssueEntity) -> None:
        violations = issue.invariant_violations()
        if violations:
            raise BusinessRuleViolationError(
                f"Invariantes violadas: {', '.join(violations)}",
                rule="invariantes_ocorrencia",
            )
