"""
AuthService - verificação de JWT emitido pelo serviço de login.

Claims esperadas:
    userId: ID do usuário
    role: CITIZEN | OFFICER | SUPERVISOR | ADMIN
    exp: expiração (obrigatória)

Usado pelo ConnectionRegistry (abertura de WebSocket) e pelas
API views (header Authorization).
"""

from datetime import datetime, timedelta, timezone
from typing import Optional
import logging

import jwt

from src.core.issues.entities import UserRole
from src.core.notifications.ports import Identity
from src.core.shared.exceptions import AuthenticationError, ValidationError

logger = logging.getLogger(__name__)


class JwtAuthService:
    """
    Verifica tokens HS256 (ou o algoritmo configurado).

    Example:
        auth = JwtAuthService(secret=settings.JWT_SECRET)
        identity = auth.verify_credential(token)
    """

    def __init__(self, secret: str, algorithm: str = "HS256", leeway_seconds: int = 0):
        if not secret:
            raise ValueError("JWT_SECRET não configurado")
        self._secret = secret
        self._algorithm = algorithm
        self._leeway = leeway_seconds

    def verify_credential(self, token: str) -> Identity:
        """
        Raises:
            AuthenticationError: Token expirado, malformado ou sem claims
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                leeway=self._leeway,
                options={"require": ["exp", "userId", "role"]},
            )
        except jwt.ExpiredSignatureError as exc:
            raise AuthenticationError("Token expirado") from exc
        except jwt.InvalidTokenError as exc:
            raise AuthenticationError("Token inválido") from exc

        user_id = str(payload.get("userId") or "").strip()
        if not user_id:
            raise AuthenticationError("Token sem userId")

        try:
            role = UserRole.from_string(payload.get("role"))
        except ValidationError as exc:
            raise AuthenticationError(f"Papel desconhecido no token: {payload.get('role')}") from exc

        return Identity(user_id=user_id, role=role)

    def issue_token(
        self,
        user_id: str,
        role: UserRole,
        expires_in: timedelta = timedelta(hours=24),
        now: Optional[datetime] = None,
    ) -> str:
        """
        Emite um token com as claims esperadas.

        A emissão de produção fica no serviço de login; aqui serve a
        scripts de desenvolvimento e testes.
        """
        now = now or datetime.now(timezone.utc)
        return jwt.encode(
            {
                "userId": str(user_id),
                "role": role.value,
                "iat": int(now.timestamp()),
                "exp": int((now + expires_in).timestamp()),
            },
            self._secret,
            algorithm=self._algorithm,
        )
