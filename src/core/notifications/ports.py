"""
Ports do Domínio de Notificações.

- Channel: conexão push viva (WebSocket) ligada a uma identidade
- AuthService: verifica a credencial de um canal antes do registro
"""

from dataclasses import dataclass
from typing import Any, Dict, Protocol, runtime_checkable

from src.core.issues.entities import UserRole


@dataclass(frozen=True)
class Identity:
    """Identidade autenticada de um canal."""

    user_id: str
    role: UserRole


@runtime_checkable
class Channel(Protocol):
    """
    Canal push bidirecional.

    Implementações:
    - ConsumerChannel (Django Channels)
    - FakeChannel (testes)
    """

    def send(self, payload: Dict[str, Any]) -> None:
        """Envia uma mensagem; qualquer exceção indica canal quebrado."""
        ...

    def close(self, code: int, reason: str = "") -> None:
        ...


@runtime_checkable
class AuthService(Protocol):
    def verify_credential(self, token: str) -> Identity:
        """
        Raises:
            AuthenticationError: Credencial inválida ou expirada
        """
        ...
