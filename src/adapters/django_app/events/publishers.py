"""
Event Publishers - Publicadores de Eventos de Domínio.

Recebem os IssueEvents já gravados, após o commit do Unit of Work.
Implementações:
- LoggingEventPublisher: Apenas loga (desenvolvimento)
- CeleryEventPublisher: Publica via Celery (produção; dispara e-mails)
- InMemoryEventPublisher: Para testes
"""

from typing import Callable, Dict, List
import json
import logging

from src.core.shared.events import DomainEvent
from src.core.shared.interfaces import EventPublisher

logger = logging.getLogger(__name__)


def _send_to_celery(event: DomainEvent) -> None:
    from src.adapters.django_app.events.handlers import dispatch_domain_event
    dispatch_domain_event.delay(event.event_type, event.to_dict())


class LoggingEventPublisher(EventPublisher):
    """
    Publisher que apenas loga eventos.

    Usado em desenvolvimento para visualizar eventos
    sem necessidade de broker.
    """

    def __init__(self, log_level: int = logging.INFO, dispatch_to_celery: bool = False):
        self._log_level = log_level
        self._dispatch_to_celery = dispatch_to_celery

    def publish(self, event: DomainEvent) -> None:
        logger.log(
            self._log_level,
            f"[EVENT] {event.event_type} | "
            f"aggregate={event.aggregate_id} | "
            f"data={json.dumps(event.to_dict()['data'], default=str)}"
        )

        if self._dispatch_to_celery:
            try:
                _send_to_celery(event)
            except Exception as e:
                logger.warning(f"Falha ao despachar para Celery: {e}")


class CeleryEventPublisher(EventPublisher):
    """Publisher que envia eventos para Celery."""

    def __init__(self, also_log: bool = True):
        self._also_log = also_log

    def publish(self, event: DomainEvent) -> None:
        if self._also_log:
            logger.info(
                f"[EVENT->CELERY] {event.event_type} | "
                f"aggregate={event.aggregate_id}"
            )

        try:
            _send_to_celery(event)
        except Exception as e:
            # Broker fora do ar não quebra a transição já gravada
            logger.error(f"Falha ao publicar evento no Celery: {e}", exc_info=True)


class InMemoryEventPublisher(EventPublisher):
    """
    Publisher em memória para testes.

    Armazena eventos publicados e executa handlers registrados.
    """

    def __init__(self):
        self._published_events: List[DomainEvent] = []
        self._handlers: Dict[str, List[Callable]] = {}

    def publish(self, event: DomainEvent) -> None:
        self._published_events.append(event)
        for handler in self._handlers.get(event.event_type, []):
            try:
                handler(event)
            except Exception as e:
                logger.error(f"Erro em handler de teste: {e}")

    @property
    def published_events(self) -> List[DomainEvent]:
        return self._published_events.copy()

    def clear(self) -> None:
        self._published_events.clear()

    def get_events_by_type(self, event_type: str) -> List[DomainEvent]:
        return [e for e in self._published_events if e.event_type == event_type]

    def register_handler(self, event_type: str, handler: Callable[[DomainEvent], None]) -> None:
        self._handlers.setdefault(event_type, []).append(handler)


def get_event_publisher(mode: str = "sync") -> EventPublisher:
    """
    Factory para obter publisher apropriado.

    Args:
        mode: "celery" para processamento assíncrono; qualquer outro valor loga
    """
    if mode == "celery":
        return CeleryEventPublisher()
    return LoggingEventPublisher(dispatch_to_celery=False)
