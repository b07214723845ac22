"""
Entidades do Domínio de Ocorrências.

Este módulo define as entidades e enums que descrevem uma ocorrência
cívica (buraco, lixo, falta de energia) ao longo do seu ciclo de vida.

Entidades:
- IssueEntity: Agregado principal do domínio
- IssueStatus: Estados do ciclo de vida
- IssuePriority: Eixo independente de prioridade
- UserRole: Papéis dos atores
- Actor: Identidade autenticada que executa uma operação

Regras de Negócio Encapsuladas:
- Validação de dados na criação do rascunho
- Invariantes de consistência (resolved_at, rejected_reason, assignee_id)
- Identidade por ID, imutabilidade de reporter/department/ticket_no

Mutações de status NÃO acontecem aqui: toda transição passa por
IssueLifecycle, que produz um novo valor de IssueEntity.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional
import uuid

from src.core.shared.events import utcnow
from src.core.shared.exceptions import ValidationError


# Campo reportado em ValidationError, por enum
_ENUM_FIELDS = {
    "IssueStatus": "status",
    "IssuePriority": "priority",
    "UserRole": "role",
}


class _ParseableEnum(Enum):
    """Enum com conversão tolerante a partir de string."""

    @classmethod
    def from_string(cls, value: str):
        """
        Converte string para enum.

        Aceita o nome ("IN_PROGRESS"), variações com espaço/hífen
        ("in progress") ou o próprio membro.

        Raises:
            ValidationError: Se valor inválido
        """
        if isinstance(value, cls):
            return value

        if not value:
            raise ValidationError(
                f"{cls.__name__} é obrigatório",
                field=_ENUM_FIELDS.get(cls.__name__),
            )

        normalized = str(value).strip().upper().replace(" ", "_").replace("-", "_")
        try:
            return cls[normalized]
        except KeyError:
            raise ValidationError(
                f"{cls.__name__} inválido: {value}",
                field=_ENUM_FIELDS.get(cls.__name__),
            )


class IssueStatus(_ParseableEnum):
    """
    Estados possíveis de uma ocorrência.

    Fluxo de Estados:
        DRAFT → SUBMITTED → TRIAGED → ASSIGNED → IN_PROGRESS → RESOLVED
                    ↓           ↓          ↓  ↘       ↑ ↓
                 REJECTED   REJECTED      ...  PENDING_USER_INFO

    RESOLVED e REJECTED são terminais. DRAFT nunca é persistido.
    """

    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"
    TRIAGED = "TRIAGED"
    ASSIGNED = "ASSIGNED"
    IN_PROGRESS = "IN_PROGRESS"
    PENDING_USER_INFO = "PENDING_USER_INFO"
    RESOLVED = "RESOLVED"
    REJECTED = "REJECTED"

    @property
    def is_terminal(self) -> bool:
        return self in (IssueStatus.RESOLVED, IssueStatus.REJECTED)


# Estados em que uma ocorrência pode carregar um responsável
ASSIGNABLE_STATUSES = frozenset({
    IssueStatus.ASSIGNED,
    IssueStatus.IN_PROGRESS,
    IssueStatus.PENDING_USER_INFO,
    IssueStatus.RESOLVED,
})


class IssuePriority(_ParseableEnum):
    """Prioridade, ajustável em qualquer status."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class UserRole(_ParseableEnum):
    """Papéis dos usuários, do menos ao mais privilegiado."""

    CITIZEN = "CITIZEN"
    OFFICER = "OFFICER"
    SUPERVISOR = "SUPERVISOR"
    ADMIN = "ADMIN"

    @property
    def is_staff(self) -> bool:
        return self is not UserRole.CITIZEN


@dataclass(frozen=True)
class Actor:
    """Identidade autenticada (usuário + papel) que executa uma operação."""

    id: str
    role: UserRole

    def __post_init__(self):
        if not self.id:
            raise ValidationError("ID do ator é obrigatório", field="actor_id")
        if not isinstance(self.role, UserRole):
            object.__setattr__(self, "role", UserRole.from_string(self.role))


@dataclass
class IssueEntity:
    """
    Entidade de Domínio: Ocorrência.

    Invariantes:
    - status só muda via tabela de transições do IssueLifecycle
    - resolved_at preenchido ⟺ status == RESOLVED
    - rejected_reason não vazio ⟺ status == REJECTED
    - assignee_id não nulo ⟹ status ∈ ASSIGNABLE_STATUSES
    - reporter_id, department_id e ticket_no imutáveis após criação
    - updated_at nunca retrocede; version incrementa a cada mutação

    Attributes:
        id: Identificador único (UUID)
        ticket_no: Número de protocolo legível (ex: CR-2026-123456)
        title: Título curto da ocorrência
        description: Descrição detalhada
        category_id: Categoria (buraco, lixo, iluminação...)
        ward_id: Bairro/distrito
        department_id: Secretaria responsável, derivada da categoria
        reporter_id: Cidadão que reportou
        assignee_id: Servidor responsável
        status: Estado atual
        priority: Prioridade
        rejected_reason: Motivo da rejeição (apenas REJECTED)
        resolved_at: Momento da resolução (apenas RESOLVED)
        address: Endereço informado/geocodificado
        created_at / updated_at: Timestamps
        version: Versão para concorrência otimista
    """

    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    ticket_no: Optional[str] = None

    title: str = ""
    description: str = ""
    category_id: str = ""
    ward_id: Optional[str] = None
    department_id: Optional[str] = None
    address: Optional[str] = None

    reporter_id: str = ""
    assignee_id: Optional[str] = None

    status: IssueStatus = IssueStatus.DRAFT
    priority: IssuePriority = IssuePriority.MEDIUM

    rejected_reason: Optional[str] = None
    resolved_at: Optional[datetime] = None

    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    version: int = 1

    TITLE_MIN_LENGTH = 3
    TITLE_MAX_LENGTH = 200
    DESCRIPTION_MIN_LENGTH = 10
    DESCRIPTION_MAX_LENGTH = 5000

    @classmethod
    def draft(
        cls,
        title: str,
        description: str,
        category_id: str,
        reporter_id: str,
        ward_id: Optional[str] = None,
        department_id: Optional[str] = None,
        priority: IssuePriority = IssuePriority.MEDIUM,
        address: Optional[str] = None,
    ) -> "IssueEntity":
        """
        Factory method para criar o rascunho de uma ocorrência.

        O rascunho existe apenas em memória: IssueLifecycle.submit o
        avança para SUBMITTED antes da primeira persistência.

        Raises:
            ValidationError: Se dados de entrada inválidos
        """
        cls._validate_text(
            title, "title", "Título", cls.TITLE_MIN_LENGTH, cls.TITLE_MAX_LENGTH
        )
        cls._validate_text(
            description,
            "description",
            "Descrição",
            cls.DESCRIPTION_MIN_LENGTH,
            cls.DESCRIPTION_MAX_LENGTH,
        )
        if not category_id:
            raise ValidationError("Categoria é obrigatória", field="category_id")
        if not reporter_id:
            raise ValidationError("Autor é obrigatório", field="reporter_id")

        now = utcnow()
        return cls(
            title=title.strip(),
            description=description.strip(),
            category_id=category_id,
            ward_id=ward_id,
            department_id=department_id,
            address=address.strip() if address else None,
            reporter_id=reporter_id,
            status=IssueStatus.DRAFT,
            priority=priority,
            created_at=now,
            updated_at=now,
        )

    @staticmethod
    def _validate_text(value: str, field_name: str, label: str, min_len: int, max_len: int) -> None:
        if not value or not value.strip():
            raise ValidationError(f"{label} é obrigatório(a)", field=field_name)

        length = len(value.strip())
        if length < min_len:
            raise ValidationError(
                f"{label} deve ter pelo menos {min_len} caracteres",
                field=field_name,
            )
        if length > max_len:
            raise ValidationError(
                f"{label} deve ter no máximo {max_len} caracteres",
                field=field_name,
            )

    def invariant_violations(self) -> list:
        """
        Lista as invariantes violadas pelo estado atual.

        Usado em testes e como verificação final do IssueLifecycle.
        """
        violations = []
        if (self.resolved_at is not None) != (self.status is IssueStatus.RESOLVED):
            violations.append("resolved_at")
        if bool(self.rejected_reason) != (self.status is IssueStatus.REJECTED):
            violations.append("rejected_reason")
        if self.assignee_id is not None and self.status not in ASSIGNABLE_STATUSES:
            violations.append("assignee_id")
        if self.updated_at < self.created_at:
            violations.append("updated_at")
        return violations

    def summary(self) -> dict:
        """
        Projeção mínima usada nas notificações.

        Nunca inclui relações aninhadas nem campos que o destinatário
        possa não ter permissão de ver.
        """
        return {
            "id": self.id,
            "ticketNo": self.ticket_no,
            "title": self.title,
            "status": self.status.value,
        }

    def __repr__(self) -> str:
        return (
            f"IssueEntity("
            f"id={self.id[:8]}..., "
            f"ticket_no={self.ticket_no}, "
            f"status={self.status.value}, "
            f"version={self.version}"
            f")"
        )

    def __eq__(self, other: object) -> bool:
        """Comparação por ID (identidade de entidade)."""
        if not isinstance(other, IssueEntity):
            return False
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)
