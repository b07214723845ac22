"""
Testes Unitários para Entidades do Domínio de Ocorrências.

Testa:
- Criação do rascunho e validações
- Conversão de enums a partir de string
- Invariantes de consistência
- Resumo usado nas notificações
"""

import pytest

from src.core.issues.entities import (
    Actor,
    IssueEntity,
    IssuePriority,
    IssueStatus,
    UserRole,
)
from src.core.shared.exceptions import ValidationError


class TestIssueDraft:
    """Testes para IssueEntity.draft."""

    def test_draft_com_dados_validos(self):
        issue = IssueEntity.draft(
            title="  Buraco na rua  ",
            description="Buraco grande em frente ao número 120",
            category_id="cat-roads",
            reporter_id="citizen-1",
            department_id="dept-works",
        )

        assert issue.status is IssueStatus.DRAFT
        assert issue.title == "Buraco na rua"
        assert issue.priority is IssuePriority.MEDIUM
        assert issue.ticket_no is None
        assert issue.assignee_id is None
        assert issue.version == 1
        assert issue.created_at == issue.updated_at

    def test_draft_titulo_curto(self):
        with pytest.raises(ValidationError) as exc_info:
            IssueEntity.draft(
                title="AB",
                description="Descrição válida com mais de 10 caracteres",
                category_id="cat-roads",
                reporter_id="citizen-1",
            )
        assert exc_info.value.field == "title"

    def test_draft_descricao_longa(self):
        with pytest.raises(ValidationError) as exc_info:
            IssueEntity.draft(
                title="Buraco na rua",
                description="x" * 5001,
                category_id="cat-roads",
                reporter_id="citizen-1",
            )
        assert exc_info.value.field == "description"

    def test_draft_sem_categoria(self):
        with pytest.raises(ValidationError) as exc_info:
            IssueEntity.draft(
                title="Buraco na rua",
                description="Descrição válida com mais de 10 caracteres",
                category_id="",
                reporter_id="citizen-1",
            )
        assert exc_info.value.field == "category_id"

    def test_draft_ids_unicos(self):
        kwargs = dict(
            title="Buraco na rua",
            description="Descrição válida com mais de 10 caracteres",
            category_id="cat-roads",
            reporter_id="citizen-1",
        )
        assert IssueEntity.draft(**kwargs).id != IssueEntity.draft(**kwargs).id


class TestEnums:

    @pytest.mark.parametrize("raw,expected", [
        ("IN_PROGRESS", IssueStatus.IN_PROGRESS),
        ("in progress", IssueStatus.IN_PROGRESS),
        ("pending-user-info", IssueStatus.PENDING_USER_INFO),
        (IssueStatus.RESOLVED, IssueStatus.RESOLVED),
    ])
    def test_status_from_string(self, raw, expected):
        assert IssueStatus.from_string(raw) is expected

    def test_status_invalido(self):
        with pytest.raises(ValidationError) as exc_info:
            IssueStatus.from_string("CLOSED")
        assert exc_info.value.field == "status"

    def test_prioridade_vazia(self):
        with pytest.raises(ValidationError) as exc_info:
            IssuePriority.from_string("")
        assert exc_info.value.field == "priority"

    def test_status_terminais(self):
        terminal = {status for status in IssueStatus if status.is_terminal}
        assert terminal == {IssueStatus.RESOLVED, IssueStatus.REJECTED}

    def test_actor_converte_papel(self):
        actor = Actor(id="u1", role="supervisor")
        assert actor.role is UserRole.SUPERVISOR
        assert actor.role.is_staff

    def test_actor_sem_id(self):
        with pytest.raises(ValidationError):
            Actor(id="", role=UserRole.ADMIN)


class TestInvariants:

    @pytest.mark.parametrize("status", [s for s in IssueStatus if s is not IssueStatus.DRAFT])
    def test_fixtures_validas_em_todo_status(self, make_issue, status):
        assert make_issue(status).invariant_violations() == []

    def test_resolved_at_sem_resolved(self, make_issue, clock):
        issue = make_issue(IssueStatus.IN_PROGRESS, resolved_at=clock.now)
        assert "resolved_at" in issue.invariant_violations()

    def test_rejected_sem_motivo(self, make_issue):
        issue = make_issue(IssueStatus.REJECTED, rejected_reason="")
        assert "rejected_reason" in issue.invariant_violations()

    def test_responsavel_em_triaged(self, make_issue):
        issue = make_issue(IssueStatus.TRIAGED, assignee_id="officer-1")
        assert issue.invariant_violations() == ["assignee_id"]


class TestSummary:

    def test_summary_apenas_campos_publicos(self, make_issue):
        issue = make_issue(IssueStatus.ASSIGNED)

        assert issue.summary() == {
            "id": "I1",
            "ticketNo": "CR-2026-000001",
            "title": "Buraco na rua",
            "status": "ASSIGNED",
        }

    def test_igualdade_por_id(self, make_issue):
        assert make_issue(IssueStatus.SUBMITTED) == make_issue(IssueStatus.TRIAGED)
        assert make_issue(id="I2") != make_issue()
