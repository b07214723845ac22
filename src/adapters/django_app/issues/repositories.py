"""
Repositórios Django para persistência de Ocorrências.

Implementam os Ports definidos em src/core/issues/ports.py.
São DRIVEN ADAPTERS - acionados pelo Core em resposta a operações.

Concorrência otimista:
    UPDATE issues SET ..., version = version + 1
    WHERE id = %s AND version = %s

Zero linhas afetadas significa que outra requisição escreveu antes
(ConcurrencyError) ou que a ocorrência não existe (EntityNotFoundError).
"""

from dataclasses import replace
from typing import Any, Dict, List, Optional
import logging

from django.db import IntegrityError, transaction
from django.db.models import F, Max

from src.core.issues.entities import IssueEntity
from src.core.issues.events import IssueEvent
from src.core.issues.ports import (
    DEFAULT_TICKET_PREFIX,
    generate_ticket_no,
    random_ticket_no,
)
from src.core.shared.exceptions import ConcurrencyError, EntityNotFoundError

from .mappers import IssueEventMapper, IssueMapper
from .models import CategoryModel, IssueEventModel, IssueModel

logger = logging.getLogger(__name__)


class DjangoIssueRepository:
    """
    Implementação Django do IssueRepository.

    Example:
        repo = DjangoIssueRepository()
        issue = repo.create_draft(submitted_entity)
        repo.conditional_update(issue.id, issue.version, {"status": IssueStatus.TRIAGED})
    """

    MAX_TICKET_ATTEMPTS = 5
    MAX_APPEND_ATTEMPTS = 3

    IMMUTABLE_COLUMNS = frozenset(
        {"id", "ticket_no", "reporter_id", "department_id", "created_at", "version"}
    )

    def __init__(self, ticket_prefix: str = DEFAULT_TICKET_PREFIX):
        self.ticket_prefix = ticket_prefix

    def get(self, issue_id: str) -> Optional[IssueEntity]:
        model = IssueModel.objects.filter(pk=issue_id).first()
        return IssueMapper.to_entity(model) if model else None

    def get_by_ticket_no(self, ticket_no: str) -> Optional[IssueEntity]:
        model = IssueModel.objects.filter(ticket_no=ticket_no).first()
        return IssueMapper.to_entity(model) if model else None

    def create_draft(self, issue: IssueEntity) -> IssueEntity:
        """
        Insere a ocorrência com um ticket_no único.

        Colisões de protocolo (mesmo milissegundo, ou dois processos)
        são resolvidas com novas tentativas dentro de savepoints.
        """
        ticket_no = issue.ticket_no or generate_ticket_no(self.ticket_prefix)

        for attempt in range(1, self.MAX_TICKET_ATTEMPTS + 1):
            candidate = replace(issue, ticket_no=ticket_no)
            try:
                with transaction.atomic():
                    IssueMapper.to_model(candidate).save(force_insert=True)
            except IntegrityError:
                if IssueModel.objects.filter(pk=issue.id).exists():
                    raise
                logger.warning(
                    f"Protocolo {ticket_no} já existe (tentativa {attempt})"
                )
                ticket_no = random_ticket_no(self.ticket_prefix)
                continue

            logger.info(f"Ocorrência persistida: {candidate.ticket_no}")
            return candidate

        raise IntegrityError("Não foi possível gerar um número de protocolo único")

    def conditional_update(
        self, issue_id: str, expected_version: int, patch: Dict[str, Any]
    ) -> IssueEntity:
        forbidden = self.IMMUTABLE_COLUMNS.intersection(patch)
        if forbidden:
            raise ValueError(f"Campos imutáveis no patch: {sorted(forbidden)}")

        columns = IssueMapper.patch_to_columns(patch)
        affected = IssueModel.objects.filter(
            pk=issue_id,
            version=expected_version,
        ).update(version=F('version') + 1, **columns)

        if affected == 0:
            actual = (
                IssueModel.objects.filter(pk=issue_id)
                .values_list('version', flat=True)
                .first()
            )
            if actual is None:
                raise EntityNotFoundError(
                    f"Ocorrência {issue_id} não encontrada",
                    entity_type="Issue",
                    entity_id=issue_id,
                )
            raise ConcurrencyError(
                f"Ocorrência {issue_id} foi modificada por outra requisição",
                expected_version=expected_version,
                actual_version=actual,
            )

        logger.debug(f"Ocorrência {issue_id} atualizada para v{expected_version + 1}")
        return self.get(issue_id)

    def append_event(self, event: IssueEvent) -> IssueEvent:
        for attempt in range(1, self.MAX_APPEND_ATTEMPTS + 1):
            last = IssueEventModel.objects.filter(
                issue_id=event.issue_id
            ).aggregate(last=Max('sequence'))['last'] or 0
            try:
                with transaction.atomic():
                    IssueEventMapper.to_model(event, last + 1).save(force_insert=True)
            except IntegrityError:
                if attempt == self.MAX_APPEND_ATTEMPTS:
                    raise
                logger.warning(
                    f"Sequência {last + 1} ocupada em {event.issue_id}, tentando novamente"
                )
                continue
            return replace(event, sequence=last + 1)

    def list_events(self, issue_id: str) -> List[IssueEvent]:
        models = IssueEventModel.objects.filter(issue_id=issue_id).order_by('sequence')
        return [IssueEventMapper.to_event(model) for model in models]


class DjangoCategoryLookup:
    """CategoryLookup sobre a tabela de categorias."""

    def department_for(self, category_id: str) -> Optional[str]:
        return (
            CategoryModel.objects.filter(pk=category_id)
            .values_list('department_id', flat=True)
            .first()
        )
