"""
API Views JSON para o domínio de Ocorrências.

Endpoints:
- POST  /api/issues/                         - Reportar ocorrência
- GET   /api/issues/<id>/                    - Obter ocorrência
- GET   /api/issues/ticket/<ticket_no>/      - Obter por protocolo
- GET   /api/issues/<id>/events/             - Log de auditoria
- POST  /api/issues/<id>/comments/           - Comentar
- PATCH /api/admin/issues/<id>/status/       - Mudar status
- PATCH /api/admin/issues/<id>/assign/       - Atribuir responsável
- PATCH /api/admin/issues/<id>/priority/     - Mudar prioridade

Formato:
- Entrada: JSON
- Saída: JSON com estrutura {success, data/error, meta}

Autenticação:
- Header "Authorization: Bearer <jwt>" verificado pelo AuthService
"""

import json
import logging
from typing import Any, Dict

from django.http import HttpRequest, JsonResponse
from django.utils.decorators import method_decorator
from django.views import View
from django.views.decorators.csrf import csrf_exempt

from src.core.issues.dtos import (
    AddCommentInputDTO,
    CreateIssueInputDTO,
    IssueEventOutputDTO,
    IssueOutputDTO,
)
from src.core.issues.entities import Actor
from src.core.shared.exceptions import (
    AuthenticationError,
    BusinessRuleViolationError,
    ConcurrencyError,
    DomainException,
    EntityNotFoundError,
    ForbiddenError,
    InvalidTransitionError,
    ValidationError,
)
from src.config.container import get_container

logger = logging.getLogger(__name__)


# =============================================================================
# Helpers
# =============================================================================

def json_response(success: bool, data: Any = None, error: str = None,
                  status: int = 200, meta: Dict = None) -> JsonResponse:
    """Cria resposta JSON padronizada."""
    response = {'success': success}

    if data is not None:
        response['data'] = data

    if error is not None:
        response['error'] = error

    if meta is not None:
        response['meta'] = meta

    return JsonResponse(response, status=status)


def parse_json_body(request: HttpRequest) -> Dict:
    """
    Raises:
        ValueError: Se JSON inválido ou não for um objeto
    """
    if not request.body:
        return {}

    try:
        data = json.loads(request.body)
    except json.JSONDecodeError as e:
        raise ValueError(f"JSON inválido: {e}")

    if not isinstance(data, dict):
        raise ValueError("Corpo da requisição deve ser um objeto JSON")
    return data


def bearer_token(request: HttpRequest) -> str:
    header = request.headers.get('Authorization', '')
    scheme, _, token = header.partition(' ')
    if scheme.lower() != 'bearer' or not token.strip():
        return ''
    return token.strip()


# (tipo de exceção, status HTTP); a primeira correspondência vence
ERROR_STATUS = [
    (AuthenticationError, 401),
    (ForbiddenError, 403),
    (EntityNotFoundError, 404),
    (ConcurrencyError, 409),
    (ValidationError, 400),
    (InvalidTransitionError, 400),
    (BusinessRuleViolationError, 422),
    (DomainException, 400),
]


# =============================================================================
# Base API View
# =============================================================================

@method_decorator(csrf_exempt, name='dispatch')
class BaseAPIView(View):
    """
    View base para APIs JSON.

    Fornece:
    - Parsing de JSON
    - Autenticação do ator via bearer token
    - Acesso ao container DI
    - Tratamento de erros padronizado
    """

    def get_container(self):
        return get_container()

    def get_issue_service(self):
        return self.get_container().issue_service()

    def get_actor(self, request: HttpRequest) -> Actor:
        """
        Raises:
            AuthenticationError: Token ausente ou inválido
        """
        token = bearer_token(request)
        if not token:
            raise AuthenticationError("Token de acesso ausente")
        identity = self.get_container().auth_service().verify_credential(token)
        return Actor(id=identity.user_id, role=identity.role)

    def parse_body(self, request: HttpRequest) -> Dict:
        return parse_json_body(request)

    def handle_exception(self, e: Exception) -> JsonResponse:
        """Traduz exceções de domínio para status HTTP."""
        for exc_type, status in ERROR_STATUS:
            if isinstance(e, exc_type):
                logger.info(f"API: {status} {e}")
                return json_response(
                    success=False,
                    error=e.message,
                    status=status,
                    meta=e.to_dict(),
                )

        if isinstance(e, ValueError):
            return json_response(success=False, error=str(e), status=400)

        # Erro inesperado
        logger.exception(f"Erro inesperado na API: {e}")
        return json_response(
            success=False,
            error="Erro interno do servidor",
            status=500
        )


# =============================================================================
# Issue API Views
# =============================================================================

class IssueAPICreateView(BaseAPIView):
    """POST /api/issues/ - Reporta uma ocorrência."""

    def post(self, request: HttpRequest) -> JsonResponse:
        """
        Body JSON:
        {
            "title": "string (obrigatório)",
            "description": "string (obrigatório)",
            "categoryId": "string (obrigatório)",
            "wardId": "string (opcional)",
            "priority": "LOW|MEDIUM|HIGH|CRITICAL (opcional)",
            "address": "string (opcional)"
        }
        """
        try:
            actor = self.get_actor(request)
            data = self.parse_body(request)

            input_dto = CreateIssueInputDTO(
                title=data.get('title', ''),
                description=data.get('description', ''),
                category_id=data.get('categoryId', ''),
                ward_id=data.get('wardId'),
                priority=data.get('priority') or 'MEDIUM',
                address=data.get('address'),
            )
            issue = self.get_issue_service().create_issue(input_dto, actor)

            logger.info(f"API: Ocorrência criada: {issue.ticket_no}")
            return json_response(
                success=True,
                data=IssueOutputDTO.from_entity(issue).to_dict(),
                status=201
            )

        except Exception as e:
            return self.handle_exception(e)


class IssueAPIDetailView(BaseAPIView):
    """GET /api/issues/<id>/"""

    def get(self, request: HttpRequest, pk: str) -> JsonResponse:
        try:
            actor = self.get_actor(request)
            issue = self.get_issue_service().get_issue(pk, actor)
            return json_response(
                success=True,
                data=IssueOutputDTO.from_entity(issue).to_dict()
            )
        except Exception as e:
            return self.handle_exception(e)


class IssueAPITicketView(BaseAPIView):
    """GET /api/issues/ticket/<ticket_no>/"""

    def get(self, request: HttpRequest, ticket_no: str) -> JsonResponse:
        try:
            actor = self.get_actor(request)
            issue = self.get_issue_service().get_by_ticket_no(ticket_no, actor)
            return json_response(
                success=True,
                data=IssueOutputDTO.from_entity(issue).to_dict()
            )
        except Exception as e:
            return self.handle_exception(e)


class IssueAPIEventsView(BaseAPIView):
    """GET /api/issues/<id>/events/ - Log de auditoria em ordem."""

    def get(self, request: HttpRequest, pk: str) -> JsonResponse:
        try:
            actor = self.get_actor(request)
            events = self.get_issue_service().list_events(pk, actor)
            return json_response(
                success=True,
                data=[IssueEventOutputDTO.from_event(e).to_dict() for e in events],
                meta={'total': len(events)},
            )
        except Exception as e:
            return self.handle_exception(e)


class IssueAPICommentView(BaseAPIView):
    """POST /api/issues/<id>/comments/ - Body: {"body": "..."}"""

    def post(self, request: HttpRequest, pk: str) -> JsonResponse:
        try:
            actor = self.get_actor(request)
            data = self.parse_body(request)

            input_dto = AddCommentInputDTO(
                issue_id=pk,
                body=data.get('body', ''),
                comment_id=data.get('commentId'),
            )
            event = self.get_issue_service().add_comment(
                input_dto.issue_id, actor, input_dto.body, input_dto.comment_id
            )
            return json_response(
                success=True,
                data=IssueEventOutputDTO.from_event(event).to_dict(),
                status=201
            )
        except Exception as e:
            return self.handle_exception(e)


# =============================================================================
# Admin API Views
# =============================================================================

class IssueAPIStatusView(BaseAPIView):
    """
    PATCH /api/admin/issues/<id>/status/

    Body JSON:
    {
        "status": "TRIAGED|ASSIGNED|IN_PROGRESS|...",
        "rejectedReason": "string (obrigatório para REJECTED)",
        "assigneeId": "string (para ASSIGNED)"
    }
    """

    def patch(self, request: HttpRequest, pk: str) -> JsonResponse:
        try:
            actor = self.get_actor(request)
            data = self.parse_body(request)
            if not data.get('status'):
                raise ValidationError("Status é obrigatório", field="status")

            issue = self.get_issue_service().request_transition(
                pk,
                actor,
                data['status'],
                rejected_reason=data.get('rejectedReason'),
                assignee_id=data.get('assigneeId'),
            )
            return json_response(
                success=True,
                data=IssueOutputDTO.from_entity(issue).to_dict()
            )
        except Exception as e:
            return self.handle_exception(e)


class IssueAPIAssignView(BaseAPIView):
    """PATCH /api/admin/issues/<id>/assign/ - Body: {"assigneeId": "..."}"""

    def patch(self, request: HttpRequest, pk: str) -> JsonResponse:
        try:
            actor = self.get_actor(request)
            data = self.parse_body(request)

            issue = self.get_issue_service().assign_issue(
                pk, data.get('assigneeId') or '', actor
            )
            return json_response(
                success=True,
                data=IssueOutputDTO.from_entity(issue).to_dict()
            )
        except Exception as e:
            return self.handle_exception(e)


class IssueAPIPriorityView(BaseAPIView):
    """PATCH /api/admin/issues/<id>/priority/ - Body: {"priority": "HIGH"}"""

    def patch(self, request: HttpRequest, pk: str) -> JsonResponse:
        try:
            actor = self.get_actor(request)
            data = self.parse_body(request)
            if not data.get('priority'):
                raise ValidationError("Prioridade é obrigatória", field="priority")

            issue = self.get_issue_service().change_priority(
                pk, data['priority'], actor
            )
            return json_response(
                success=True,
                data=IssueOutputDTO.from_entity(issue).to_dict()
            )
        except Exception as e:
            return self.handle_exception(e)
