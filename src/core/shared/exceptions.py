"""
Exceções de Domínio do CivicConnect.

Este módulo define exceções específicas do domínio que permitem
comunicar erros de forma clara e tipada entre as camadas.

Hierarquia:
    DomainException (base)
    ├── ValidationError (validação de entrada)
    │   └── MissingFieldError (campo obrigatório para a transição ausente)
    ├── EntityNotFoundError (entidade não existe)
    ├── BusinessRuleViolationError (regra de negócio violada)
    │   └── InvalidTransitionError (status alvo inalcançável)
    ├── ForbiddenError (papel do ator sem permissão)
    ├── ConcurrencyError (conflito de versão - otimista)
    └── AuthenticationError (credencial de canal ausente/inválida)
"""

from typing import Iterable, Optional


class DomainException(Exception):
    """
    Exceção base para todos os erros de domínio.

    Todas as exceções específicas do domínio devem herdar desta classe.
    Isso permite capturar qualquer erro de domínio de forma genérica.

    Example:
        try:
            lifecycle.apply(issue, request)
        except DomainException as e:
            logger.error(f"Erro de domínio: {e}")
    """

    def __init__(self, message: str, code: str = None):
        self.message = message
        self.code = code or self.__class__.__name__
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"

    def to_dict(self) -> dict:
        """Serializa exceção para dicionário (útil para APIs)."""
        return {
            "error": self.code,
            "message": self.message,
        }


class ValidationError(DomainException):
    """
    Erro de validação de dados de entrada.

    Lançada quando dados fornecidos não atendem aos requisitos
    mínimos para processamento.

    Example:
        if len(title) < 3:
            raise ValidationError("Título deve ter pelo menos 3 caracteres", field="title")
    """

    def __init__(self, message: str, field: str = None):
        self.field = field
        code = f"VALIDATION_ERROR_{field.upper()}" if field else "VALIDATION_ERROR"
        super().__init__(message, code)

    def to_dict(self) -> dict:
        result = super().to_dict()
        if self.field:
            result["field"] = self.field
        return result


class MissingFieldError(ValidationError):
    """
    Dado obrigatório para o status alvo não foi informado.

    Exemplos: REJECTED sem `rejected_reason`, ASSIGNED sem `assignee_id`.
    """

    def __init__(self, message: str, field: str):
        super().__init__(message, field=field)
        self.code = "MISSING_FIELD"


class EntityNotFoundError(DomainException):
    """
    Entidade não encontrada no repositório.

    Lançada quando uma busca por ID (ou número de protocolo) não retorna resultado.

    Example:
        issue = repo.get(issue_id)
        if not issue:
            raise EntityNotFoundError(f"Ocorrência {issue_id} não encontrada")
    """

    def __init__(self, message: str, entity_type: str = None, entity_id: str = None):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(message, "ENTITY_NOT_FOUND")

    def to_dict(self) -> dict:
        result = super().to_dict()
        if self.entity_type:
            result["entity_type"] = self.entity_type
        if self.entity_id:
            result["entity_id"] = self.entity_id
        return result


class BusinessRuleViolationError(DomainException):
    """
    Violação de regra de negócio.

    Lançada quando uma operação viola uma regra de negócio
    estabelecida no domínio.
    """

    def __init__(self, message: str, rule: str = None):
        self.rule = rule
        super().__init__(message, "BUSINESS_RULE_VIOLATION")

    def to_dict(self) -> dict:
        result = super().to_dict()
        if self.rule:
            result["rule"] = self.rule
        return result


class InvalidTransitionError(BusinessRuleViolationError):
    """
    Status alvo não é alcançável a partir do status atual.

    Inclui auto-transições: reaplicar o mesmo status é rejeitado,
    nunca tratado como no-op.
    """

    def __init__(self, current_status: str, target_status: str):
        self.current_status = current_status
        self.target_status = target_status
        super().__init__(
            f"Transição de {current_status} para {target_status} não é permitida",
            rule="transicao_status_invalida",
        )
        self.code = "INVALID_TRANSITION"

    def to_dict(self) -> dict:
        result = super().to_dict()
        result["current_status"] = self.current_status
        result["target_status"] = self.target_status
        return result


class ForbiddenError(DomainException):
    """
    Papel do ator não tem permissão para a operação.

    O detalhe carrega o papel tentado e os papéis que seriam aceitos,
    espelhando a tabela de permissões.
    """

    def __init__(
        self,
        message: str,
        role: Optional[str] = None,
        required_roles: Iterable[str] = (),
    ):
        self.role = role
        self.required_roles = list(required_roles)
        super().__init__(message, "FORBIDDEN")

    def to_dict(self) -> dict:
        result = super().to_dict()
        result["role"] = self.role
        result["required_roles"] = self.required_roles
        return result


class ConcurrencyError(DomainException):
    """
    Erro de concorrência/conflito de versão.

    Lançada quando a escrita condicional falha porque a entidade foi
    modificada por outra requisição depois da leitura. O chamador deve
    recarregar e tentar novamente; não há retry automático.
    """

    def __init__(
        self,
        message: str,
        expected_version: Optional[int] = None,
        actual_version: Optional[int] = None,
    ):
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(message, "CONCURRENCY_ERROR")

    def to_dict(self) -> dict:
        result = super().to_dict()
        if self.expected_version is not None:
            result["expected_version"] = self.expected_version
        if self.actual_version is not None:
            result["actual_version"] = self.actual_version
        return result


class AuthenticationError(DomainException):
    """
    Credencial ausente ou inválida.

    `close_code` distingue "sem credencial" de "credencial inválida"
    quando a falha ocorre na abertura de um canal de notificação.
    """

    def __init__(self, message: str, close_code: Optional[int] = None):
        self.close_code = close_code
        super().__init__(message, "AUTHENTICATION_ERROR")
