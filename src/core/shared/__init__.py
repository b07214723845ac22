"""
Shared Domain Components.

Contém componentes compartilhados entre todos os domínios:
- Exceções de domínio
- Interfaces (Ports)
- Base classes para Domain Events
"""

from .exceptions import (
    DomainException,
    ValidationError,
    MissingFieldError,
    EntityNotFoundError,
    BusinessRuleViolationError,
    InvalidTransitionError,
    ForbiddenError,
    ConcurrencyError,
    AuthenticationError,
)
from .events import DomainEvent, utcnow
from .interfaces import UnitOfWork, EventPublisher

__all__ = [
    "DomainException",
    "ValidationError",
    "MissingFieldError",
    "EntityNotFoundError",
    "BusinessRuleViolationError",
    "InvalidTransitionError",
    "ForbiddenError",
    "ConcurrencyError",
    "AuthenticationError",
    "DomainEvent",
    "utcnow",
    "UnitOfWork",
    "EventPublisher",
]
