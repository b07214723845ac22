"""
Ports (Interfaces) do Domínio de Ocorrências.

Define os contratos que os Adapters de infraestrutura devem implementar
para persistência de ocorrências e consulta de categorias.

Tipos de Ports:
- IssueRepository: Armazenamento durável com escrita condicional
  (concorrência otimista) e log de eventos append-only
- CategoryLookup: Resolve categoria → secretaria na criação

Princípio:
    Core define interfaces → Adapters implementam
    Dependências sempre apontam para o Core
"""

from dataclasses import replace
from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable
import secrets
import threading

from src.core.shared.events import utcnow
from src.core.shared.exceptions import ConcurrencyError, EntityNotFoundError

from .entities import IssueEntity
from .events import IssueEvent


DEFAULT_TICKET_PREFIX = "CR"


def generate_ticket_no(prefix: str = DEFAULT_TICKET_PREFIX, now: Optional[datetime] = None) -> str:
    """
    Número de protocolo legível: <prefixo>-<ano>-<6 dígitos>.

    Os dígitos vêm dos milissegundos do relógio; o repositório
    garante unicidade e chama random_ticket_no em caso de colisão.
    """
    now = now or utcnow()
    millis = int(now.timestamp() * 1000)
    return f"{prefix}-{now.year}-{millis % 1_000_000:06d}"


def random_ticket_no(prefix: str = DEFAULT_TICKET_PREFIX, now: Optional[datetime] = None) -> str:
    now = now or utcnow()
    return f"{prefix}-{now.year}-{secrets.randbelow(1_000_000):06d}"


@runtime_checkable
class IssueRepository(Protocol):
    """
    Interface para persistência de Ocorrências.

    Implementações:
    - DjangoIssueRepository (PostgreSQL via ORM, coluna version)
    - InMemoryIssueRepository (para testes)

    Methods:
        get: Busca por ID
        get_by_ticket_no: Busca por número de protocolo
        create_draft: Persiste a ocorrência recém-submetida, gerando ticket_no
        conditional_update: Compare-and-swap pela versão lida
        append_event: Grava evento no log append-only
        list_events: Log de auditoria em ordem de gravação
    """

    def get(self, issue_id: str) -> Optional[IssueEntity]:
        ...

    def get_by_ticket_no(self, ticket_no: str) -> Optional[IssueEntity]:
        ...

    def create_draft(self, issue: IssueEntity) -> IssueEntity:
        """
        Persiste a ocorrência e devolve a entidade com ticket_no único.

        ticket_no é imutável a partir daqui.
        """
        ...

    def conditional_update(
        self, issue_id: str, expected_version: int, patch: Dict[str, Any]
    ) -> IssueEntity:
        """
        Aplica `patch` somente se a versão armazenada for `expected_version`.

        A versão é incrementada pela própria escrita.

        Raises:
            EntityNotFoundError: Ocorrência não existe
            ConcurrencyError: Versão armazenada difere da esperada
        """
        ...

    def append_event(self, event: IssueEvent) -> IssueEvent:
        """Grava o evento e devolve a cópia com `sequence` atribuído."""
        ...

    def list_events(self, issue_id: str) -> List[IssueEvent]:
        ...


@runtime_checkable
class CategoryLookup(Protocol):
    """Resolve a secretaria responsável por uma categoria."""

    def department_for(self, category_id: str) -> Optional[str]:
        """Retorna department_id, ou None se categoria desconhecida/sem secretaria."""
        ...


class InMemoryIssueRepository:
    """
    Implementação em memória do IssueRepository.

    Útil para:
    - Testes unitários
    - Desenvolvimento local

    A escrita condicional é protegida por um lock, reproduzindo a
    atomicidade do UPDATE ... WHERE version = ? do banco.
    """

    # Campos que nunca mudam depois da criação
    IMMUTABLE_FIELDS = frozenset(
        {"id", "ticket_no", "reporter_id", "department_id", "created_at", "version"}
    )

    def __init__(self, ticket_prefix: str = DEFAULT_TICKET_PREFIX):
        self._issues: Dict[str, IssueEntity] = {}
        self._events: Dict[str, List[IssueEvent]] = {}
        self._lock = threading.Lock()
        self.ticket_prefix = ticket_prefix

    def get(self, issue_id: str) -> Optional[IssueEntity]:
        return self._issues.get(issue_id)

    def get_by_ticket_no(self, ticket_no: str) -> Optional[IssueEntity]:
        for issue in self._issues.values():
            if issue.ticket_no == ticket_no:
                return issue
        return None

    def create_draft(self, issue: IssueEntity) -> IssueEntity:
        with self._lock:
            taken = {existing.ticket_no for existing in self._issues.values()}
            ticket_no = issue.ticket_no or generate_ticket_no(self.ticket_prefix)
            while ticket_no in taken:
                ticket_no = random_ticket_no(self.ticket_prefix)

            stored = replace(issue, ticket_no=ticket_no)
            self._issues[stored.id] = stored
            self._events.setdefault(stored.id, [])
            return stored

    def conditional_update(
        self, issue_id: str, expected_version: int, patch: Dict[str, Any]
    ) -> IssueEntity:
        forbidden = self.IMMUTABLE_FIELDS.intersection(patch)
        if forbidden:
            raise ValueError(f"Campos imutáveis no patch: {sorted(forbidden)}")

        with self._lock:
            current = self._issues.get(issue_id)
            if current is None:
                raise EntityNotFoundError(
                    f"Ocorrência {issue_id} não encontrada",
                    entity_type="Issue",
                    entity_id=issue_id,
                )
            if current.version != expected_version:
                raise ConcurrencyError(
                    f"Ocorrência {issue_id} foi modificada por outra requisição",
                    expected_version=expected_version,
                    actual_version=current.version,
                )

            updated = replace(current, version=current.version + 1, **patch)
            self._issues[issue_id] = updated
            return updated

    def append_event(self, event: IssueEvent) -> IssueEvent:
        with self._lock:
            log = self._events.setdefault(event.issue_id, [])
            stored = replace(event, sequence=len(log) + 1)
            log.append(stored)
            return stored

    def list_events(self, issue_id: str) -> List[IssueEvent]:
        return list(self._events.get(issue_id, []))

    def add(self, issue: IssueEntity) -> IssueEntity:
        """Insere uma ocorrência já pronta (fixtures de teste)."""
        with self._lock:
            self._issues[issue.id] = issue
            self._events.setdefault(issue.id, [])
            return issue

    def count(self) -> int:
        return len(self._issues)

    def clear(self) -> None:
        """Limpa todos os dados (útil para testes)."""
        with self._lock:
            self._issues.clear()
            self._events.clear()


class InMemoryCategoryLookup:
    """CategoryLookup sobre um dicionário categoria → secretaria."""

    def __init__(self, departments: Optional[Dict[str, Optional[str]]] = None):
        self._departments = dict(departments or {})

    def department_for(self, category_id: str) -> Optional[str]:
        return self._departments.get(category_id)
