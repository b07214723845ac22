"""
Domain Events - Base para eventos de domínio.

Características:
- Imutáveis após gravação (representam fatos históricos)
- Auto-geração de ID e timestamp (UTC)
- Serializáveis para persistência/transporte (Celery, log de auditoria)
- Rastreáveis via aggregate_id

Fluxo:
    - Eventos são produzidos pelo domínio (ex: IssueLifecycle)
    - Persistidos no log de auditoria pelo repositório
    - Publicados após commit do UoW para handlers assíncronos
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, ClassVar
import uuid


def utcnow() -> datetime:
    """Momento atual em UTC (timezone-aware)."""
    return datetime.now(timezone.utc)


@dataclass
class DomainEvent(ABC):
    """
    Classe base abstrata para Domain Events.

    Attributes:
        event_id: Identificador único do evento
        aggregate_id: ID do agregado que gerou o evento
        occurred_at: Momento em que o evento ocorreu
        version: Versão do schema do evento (para evolução)
    """

    event_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    aggregate_id: str = ""
    occurred_at: datetime = field(default_factory=utcnow)
    version: int = 1

    _base_fields: ClassVar[frozenset] = frozenset(
        {"event_id", "aggregate_id", "occurred_at", "version"}
    )

    def __post_init__(self):
        if not self.aggregate_id:
            raise ValueError("aggregate_id é obrigatório")

    @property
    @abstractmethod
    def aggregate_type(self) -> str:
        """Tipo do agregado que gerou este evento (ex: "Issue")."""
        ...

    @property
    def event_type(self) -> str:
        """Tipo do evento (nome da classe por padrão)."""
        return self.__class__.__name__

    def to_dict(self) -> Dict[str, Any]:
        """
        Serializa evento para dicionário.

        Útil para envio via Celery e logging estruturado.
        """
        return {
            "event_id": self.event_id,
            "event_type": self.event_type,
            "aggregate_id": self.aggregate_id,
            "aggregate_type": self.aggregate_type,
            "occurred_at": self.occurred_at.isoformat(),
            "version": self.version,
            "data": self._get_event_data(),
        }

    def _get_event_data(self) -> Dict[str, Any]:
        """Dados específicos do evento (subclasses podem sobrescrever)."""
        return {
            key: value
            for key, value in self.__dict__.items()
            if key not in self._base_fields and not key.startswith("_")
        }

    def __repr__(self) -> str:
        return (
            f"{self.event_type}("
            f"event_id={self.event_id[:8]}..., "
            f"aggregate_id={self.aggregate_id}, "
            f"occurred_at={self.occurred_at.isoformat()}"
            f")"
        )
