"""
Notifications Domain - fanout em tempo real.

Exports:
- NotificationRouter: evento → destinatários + payloads
- ConnectionRegistry: canais vivos por identidade
- NotificationDispatcher: entrega fire-and-forget
- Channel, AuthService, Identity: ports
"""

from .ports import AuthService, Channel, Identity
from .router import (
    DirectNotification,
    RoleBroadcast,
    NotificationRouter,
    ISSUE_UPDATED,
    ISSUE_ASSIGNED,
    ISSUE_STATUS_CHANGE,
    NEW_ISSUE,
)
from .registry import (
    ConnectionRegistry,
    ChannelState,
    CLOSE_NO_CREDENTIAL,
    CLOSE_INVALID_CREDENTIAL,
    CLOSE_SUPERSEDED,
)
from .dispatcher import NotificationDispatcher

__all__ = [
    "AuthService",
    "Channel",
    "Identity",
    "DirectNotification",
    "RoleBroadcast",
    "NotificationRouter",
    "ISSUE_UPDATED",
    "ISSUE_ASSIGNED",
    "ISSUE_STATUS_CHANGE",
    "NEW_ISSUE",
    "ConnectionRegistry",
    "ChannelState",
    "CLOSE_NO_CREDENTIAL",
    "CLOSE_INVALID_CREDENTIAL",
    "CLOSE_SUPERSEDED",
    "NotificationDispatcher",
]
