"""
Testes para IssueLifecycle.

Cobertura:
- Tabela de transições (válidas, inválidas, auto-transição, terminais)
- Ordem das validações (tabela → papel → campos obrigatórios)
- Efeitos colaterais: resolved_at, rejected_reason, assignee_id, updated_at
- Atribuição, submissão, prioridade e comentários
"""

import pytest

from src.core.issues.dtos import TransitionRequest
from src.core.issues.entities import Actor, IssuePriority, IssueStatus, UserRole
from src.core.issues.events import IssueEventType
from src.core.issues.lifecycle import COMMENT_MAX_LENGTH, TRANSITIONS, IssueLifecycle
from src.core.shared.exceptions import (
    ForbiddenError,
    InvalidTransitionError,
    MissingFieldError,
    ValidationError,
)


VALID_PAIRS = [
    (current, target)
    for current, targets in TRANSITIONS.items()
    for target in targets
]

INVALID_PAIRS = [
    (current, target)
    for current in IssueStatus
    for target in IssueStatus
    if target not in TRANSITIONS[current] and current is not IssueStatus.DRAFT
]


@pytest.fixture
def lifecycle(clock):
    return IssueLifecycle(clock=clock)


def request_for(issue, actor, target, **extra):
    return TransitionRequest(
        issue_id=issue.id, actor=actor, target_status=target, **extra
    )


class TestTransitionTable:

    @pytest.mark.parametrize("current,target", VALID_PAIRS)
    def test_transicoes_validas_para_admin(self, lifecycle, make_issue, admin, current, target):
        issue = make_issue(current)
        extra = {}
        if target is IssueStatus.REJECTED:
            extra["rejected_reason"] = "Fora da jurisdição"
        if target is IssueStatus.ASSIGNED:
            extra["assignee_id"] = "officer-2"

        result = lifecycle.apply(issue, request_for(issue, admin, target, **extra))

        assert result.issue.status is target
        assert result.issue.version == issue.version + 1
        assert result.expected_version == issue.version
        assert result.issue.invariant_violations() == []
        assert result.events[-1].type is IssueEventType.STATUS_CHANGE
        assert result.events[-1].payload["oldStatus"] == current.value
        assert result.events[-1].payload["newStatus"] == target.value

    @pytest.mark.parametrize("current,target", INVALID_PAIRS)
    def test_transicoes_invalidas(self, lifecycle, make_issue, admin, current, target):
        issue = make_issue(current)

        with pytest.raises(InvalidTransitionError) as exc_info:
            lifecycle.apply(
                issue,
                request_for(issue, admin, target, rejected_reason="x", assignee_id="o"),
            )

        assert exc_info.value.current_status == current.value
        assert exc_info.value.target_status == target.value

    def test_auto_transicao_invalida(self, lifecycle, make_issue, admin):
        issue = make_issue(IssueStatus.IN_PROGRESS)
        with pytest.raises(InvalidTransitionError):
            lifecycle.apply(issue, request_for(issue, admin, IssueStatus.IN_PROGRESS))

    def test_tabela_verificada_antes_do_papel(self, lifecycle, make_issue, citizen):
        issue = make_issue(IssueStatus.RESOLVED)
        with pytest.raises(InvalidTransitionError):
            lifecycle.apply(issue, request_for(issue, citizen, IssueStatus.TRIAGED))

    def test_papel_verificado_antes_dos_campos(self, lifecycle, make_issue, officer):
        issue = make_issue(IssueStatus.SUBMITTED)
        with pytest.raises(ForbiddenError):
            lifecycle.apply(issue, request_for(issue, officer, IssueStatus.REJECTED))


class TestSideEffects:

    def test_resolved_define_resolved_at(self, lifecycle, make_issue, supervisor, clock):
        issue = make_issue(IssueStatus.IN_PROGRESS)
        now = clock.advance(hours=2)

        result = lifecycle.apply(issue, request_for(issue, supervisor, IssueStatus.RESOLVED))

        assert result.issue.resolved_at == now
        assert result.issue.updated_at == now
        assert result.changes["resolved_at"] == now

    def test_rejected_sem_motivo(self, lifecycle, make_issue, supervisor):
        issue = make_issue(IssueStatus.SUBMITTED)

        with pytest.raises(MissingFieldError) as exc_info:
            lifecycle.apply(
                issue, request_for(issue, supervisor, IssueStatus.REJECTED, rejected_reason="  ")
            )
        assert exc_info.value.field == "rejected_reason"

    def test_rejected_limpa_responsavel(self, lifecycle, make_issue, supervisor):
        issue = make_issue(IssueStatus.IN_PROGRESS)

        result = lifecycle.apply(
            issue,
            request_for(issue, supervisor, IssueStatus.REJECTED, rejected_reason="Duplicada"),
        )

        assert result.issue.assignee_id is None
        assert result.issue.rejected_reason == "Duplicada"
        payload = result.events[0].payload
        assert payload["rejectedReason"] == "Duplicada"
        assert payload["previousAssigneeId"] == "officer-1"

    def test_assigned_sem_responsavel(self, lifecycle, make_issue, supervisor):
        issue = make_issue(IssueStatus.TRIAGED)
        with pytest.raises(MissingFieldError) as exc_info:
            lifecycle.apply(issue, request_for(issue, supervisor, IssueStatus.ASSIGNED))
        assert exc_info.value.field == "assignee_id"

    def test_assigned_com_responsavel_gera_assign_antes(self, lifecycle, make_issue, supervisor):
        issue = make_issue(IssueStatus.TRIAGED)

        result = lifecycle.apply(
            issue,
            request_for(issue, supervisor, IssueStatus.ASSIGNED, assignee_id="officer-2"),
        )

        assert [e.type for e in result.events] == [
            IssueEventType.ASSIGN,
            IssueEventType.STATUS_CHANGE,
        ]
        assert result.events[0].payload == {
            "previousAssigneeId": None,
            "assigneeId": "officer-2",
        }
        assert result.issue.assignee_id == "officer-2"

    def test_updated_at_nao_retrocede(self, lifecycle, make_issue, supervisor, clock):
        issue = make_issue(IssueStatus.SUBMITTED)
        clock.advance(hours=-5)

        result = lifecycle.apply(issue, request_for(issue, supervisor, IssueStatus.TRIAGED))

        assert result.issue.updated_at == issue.updated_at

    def test_entidade_original_intacta(self, lifecycle, make_issue, supervisor):
        issue = make_issue(IssueStatus.SUBMITTED)
        lifecycle.apply(issue, request_for(issue, supervisor, IssueStatus.TRIAGED))
        assert issue.status is IssueStatus.SUBMITTED
        assert issue.version == 1


class TestAssign:

    def test_assign_a_partir_de_triaged(self, lifecycle, make_issue, supervisor):
        issue = make_issue(IssueStatus.TRIAGED)

        result = lifecycle.assign(issue, "officer-7", supervisor)

        assert result.issue.status is IssueStatus.ASSIGNED
        assert result.issue.assignee_id == "officer-7"
        assert [e.type for e in result.events] == [
            IssueEventType.ASSIGN,
            IssueEventType.STATUS_CHANGE,
        ]

    def test_reassign_mantem_status(self, lifecycle, make_issue, admin):
        issue = make_issue(IssueStatus.IN_PROGRESS)

        result = lifecycle.assign(issue, "officer-2", admin)

        assert result.issue.status is IssueStatus.IN_PROGRESS
        assert len(result.events) == 1
        assert result.events[0].payload == {
            "previousAssigneeId": "officer-1",
            "assigneeId": "officer-2",
        }

    def test_officer_nao_atribui(self, lifecycle, make_issue, officer):
        issue = make_issue(IssueStatus.TRIAGED)
        with pytest.raises(ForbiddenError):
            lifecycle.assign(issue, "officer-2", officer)

    @pytest.mark.parametrize("status", [
        IssueStatus.SUBMITTED,
        IssueStatus.RESOLVED,
        IssueStatus.REJECTED,
    ])
    def test_assign_em_status_sem_responsavel(self, lifecycle, make_issue, supervisor, status):
        issue = make_issue(status)
        with pytest.raises(InvalidTransitionError):
            lifecycle.assign(issue, "officer-2", supervisor)

    def test_assign_vazio(self, lifecycle, make_issue, supervisor):
        issue = make_issue(IssueStatus.TRIAGED)
        with pytest.raises(MissingFieldError):
            lifecycle.assign(issue, "", supervisor)


class TestSubmitPriorityComment:

    def test_submit(self, lifecycle, citizen):
        from src.core.issues.entities import IssueEntity

        draft = IssueEntity.draft(
            title="Poste apagado",
            description="Poste da esquina apagado há três noites",
            category_id="cat-lighting",
            reporter_id=citizen.id,
        )

        result = lifecycle.submit(draft, citizen)

        assert result.issue.status is IssueStatus.SUBMITTED
        assert result.issue.version == draft.version
        assert result.events[0].payload == {"oldStatus": "DRAFT", "newStatus": "SUBMITTED"}

    def test_submit_de_outro_autor(self, lifecycle, make_issue, officer):
        draft = make_issue(IssueStatus.DRAFT)
        with pytest.raises(ForbiddenError):
            lifecycle.submit(draft, officer)

    def test_submit_fora_de_draft(self, lifecycle, make_issue, citizen):
        with pytest.raises(InvalidTransitionError):
            lifecycle.submit(make_issue(IssueStatus.SUBMITTED), citizen)

    def test_prioridade_em_status_terminal(self, lifecycle, make_issue, officer):
        issue = make_issue(IssueStatus.RESOLVED)

        result = lifecycle.change_priority(issue, IssuePriority.CRITICAL, officer)

        assert result.issue.priority is IssuePriority.CRITICAL
        assert result.issue.status is IssueStatus.RESOLVED
        assert result.events == []
        assert result.issue.version == 2

    def test_prioridade_cidadao(self, lifecycle, make_issue, citizen):
        with pytest.raises(ForbiddenError):
            lifecycle.change_priority(make_issue(), IssuePriority.HIGH, citizen)

    def test_comentario_do_autor(self, lifecycle, make_issue, citizen):
        event = lifecycle.comment(make_issue(), citizen, "  Continua aberto  ", "c-1")

        assert event.type is IssueEventType.COMMENT
        assert event.payload == {"commentId": "c-1", "body": "Continua aberto"}
        assert event.actor_id == citizen.id

    def test_comentario_de_outro_cidadao(self, lifecycle, make_issue):
        stranger = Actor(id="citizen-9", role=UserRole.CITIZEN)
        with pytest.raises(ForbiddenError):
            lifecycle.comment(make_issue(), stranger, "Também vi")

    @pytest.mark.parametrize("body", ["", "   ", "x" * (COMMENT_MAX_LENGTH + 1)])
    def test_comentario_invalido(self, lifecycle, make_issue, officer, body):
        with pytest.raises(ValidationError):
            lifecycle.comment(make_issue(), officer, body)
