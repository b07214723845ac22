"""
Event Handlers - Processadores de Eventos de Domínio.

Executados de forma assíncrona via Celery depois que um IssueEvent é
gravado e o Unit of Work faz commit. Cuidam do canal de e-mail, que,
como o push, é best-effort: o registro de auditoria já está gravado.

- STATUS_CHANGE → e-mail de atualização para o autor da ocorrência
- ASSIGN → e-mail para o novo responsável
- COMMENT → apenas log

Padrão:
    @shared_task(bind=True, ...)
    def handle_<evento>(self, event_data: dict) -> None:
        # Processar evento
"""

import logging
from typing import Any, Dict, Optional, Tuple

from celery import shared_task
from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.mail import send_mail
from django.db import DatabaseError

logger = logging.getLogger(__name__)


STATUS_MESSAGES = {
    "SUBMITTED": "Sua ocorrência foi registrada e aguarda análise.",
    "TRIAGED": "Sua ocorrência foi analisada e priorizada.",
    "ASSIGNED": "Sua ocorrência foi encaminhada a um servidor responsável.",
    "IN_PROGRESS": "O trabalho para resolver sua ocorrência começou.",
    "PENDING_USER_INFO": "Precisamos de mais informações sobre sua ocorrência.",
    "RESOLVED": "Sua ocorrência foi resolvida. Obrigado por reportar!",
    "REJECTED": "Sua ocorrência foi analisada e não exige ação.",
}


# =============================================================================
# Montagem das mensagens
# =============================================================================

def build_status_email(
    ticket_no: str,
    title: str,
    old_status: str,
    new_status: str,
    rejected_reason: Optional[str] = None,
) -> Tuple[str, str]:
    """Assunto e corpo do e-mail de atualização de status."""
    detail = STATUS_MESSAGES.get(
        new_status, f"O status da sua ocorrência mudou para {new_status}."
    )
    lines = [
        "Olá,",
        "",
        f'Sua ocorrência "{title}" foi atualizada.',
        "",
        f"Status: {old_status} → {new_status}",
        "",
        detail,
    ]
    if rejected_reason:
        lines += ["", f"Motivo: {rejected_reason}"]
    lines += [
        "",
        f"Acompanhe sua ocorrência: {settings.FRONTEND_URL}/track",
        "",
        "Atenciosamente,",
        "Equipe CivicConnect",
    ]
    subject = f"CivicConnect: Ocorrência #{ticket_no} - Atualização de status"
    return subject, "\n".join(lines)


def build_assignment_email(ticket_no: str, title: str, status: str) -> Tuple[str, str]:
    """Assunto e corpo do e-mail de atribuição."""
    body = "\n".join([
        "Olá,",
        "",
        "Uma ocorrência foi atribuída a você.",
        "",
        f"Título: {title}",
        f"Protocolo: #{ticket_no}",
        f"Status: {status}",
        "",
        "Analise e tome as providências cabíveis.",
        "",
        f"Ver ocorrência: {settings.FRONTEND_URL}/admin",
        "",
        "Atenciosamente,",
        "Equipe CivicConnect",
    ])
    return f"CivicConnect: Nova ocorrência atribuída - #{ticket_no}", body


def _user_email(user_id: Optional[str]) -> Optional[str]:
    if not user_id:
        return None
    try:
        user = get_user_model().objects.filter(pk=user_id).first()
    except (TypeError, ValueError):
        logger.warning(f"[HANDLER] ID de usuário inválido: {user_id}")
        return None
    return user.email if user and user.email else None


def _load_issue(issue_id: str):
    from src.adapters.django_app.issues.repositories import DjangoIssueRepository
    return DjangoIssueRepository().get(issue_id)


# =============================================================================
# Event Handlers - Ocorrências
# =============================================================================

@shared_task(
    bind=True,
    max_retries=3,
    default_retry_delay=60,
    acks_late=True,
)
def handle_status_change(self, event_data: Dict[str, Any]) -> bool:
    """
    Handler para STATUS_CHANGE: e-mail ao autor da ocorrência.

    O passo implícito DRAFT → SUBMITTED também gera e-mail (confirmação
    de registro).

    Returns:
        True se o e-mail foi enviado
    """
    issue_id = event_data.get("aggregate_id")
    payload = event_data.get("data", {}).get("payload", {})

    logger.info(
        f"[HANDLER] StatusChange: {issue_id} | "
        f"{payload.get('oldStatus')} -> {payload.get('newStatus')}"
    )

    try:
        issue = _load_issue(issue_id)
        recipient = _user_email(issue.reporter_id) if issue else None
    except DatabaseError as e:
        logger.warning(f"[HANDLER] Banco indisponível para {issue_id}, nova tentativa: {e}")
        raise self.retry(exc=e)

    if issue is None:
        logger.warning(f"[HANDLER] Ocorrência {issue_id} não encontrada")
        return False

    if not recipient:
        logger.info(f"[HANDLER] Autor {issue.reporter_id} sem e-mail cadastrado")
        return False

    subject, body = build_status_email(
        issue.ticket_no,
        issue.title,
        payload.get("oldStatus"),
        payload.get("newStatus"),
        payload.get("rejectedReason"),
    )
    send_issue_email.delay(recipient, subject, body)
    return True


@shared_task(
    bind=True,
    max_retries=3,
    default_retry_delay=60,
    acks_late=True,
)
def handle_assign(self, event_data: Dict[str, Any]) -> bool:
    """Handler para ASSIGN: e-mail ao novo responsável."""
    issue_id = event_data.get("aggregate_id")
    payload = event_data.get("data", {}).get("payload", {})
    assignee_id = payload.get("assigneeId")

    logger.info(f"[HANDLER] Assign: {issue_id} | Responsável: {assignee_id}")

    try:
        issue = _load_issue(issue_id)
        recipient = _user_email(assignee_id)
    except DatabaseError as e:
        logger.warning(f"[HANDLER] Banco indisponível para {issue_id}, nova tentativa: {e}")
        raise self.retry(exc=e)

    if issue is None or not recipient:
        return False

    subject, body = build_assignment_email(
        issue.ticket_no, issue.title, issue.status.value
    )
    send_issue_email.delay(recipient, subject, body)
    return True


@shared_task(bind=True, ignore_result=True)
def handle_comment(self, event_data: Dict[str, Any]) -> None:
    payload = event_data.get("data", {}).get("payload", {})
    logger.info(
        f"[HANDLER] Comment: {event_data.get('aggregate_id')} | "
        f"comentário {payload.get('commentId')}"
    )


# =============================================================================
# Event Dispatcher (Router)
# =============================================================================

EVENT_HANDLERS = {
    "STATUS_CHANGE": handle_status_change,
    "ASSIGN": handle_assign,
    "COMMENT": handle_comment,
}


@shared_task(bind=True, max_retries=5, default_retry_delay=30)
def dispatch_domain_event(self, event_type: str, event_data: Dict[str, Any]) -> None:
    """
    Dispatcher central para Domain Events.

    Args:
        event_type: Tipo do evento (ex: 'STATUS_CHANGE')
        event_data: Evento serializado (IssueEvent.to_dict())
    """
    handler = EVENT_HANDLERS.get(event_type)

    if handler:
        logger.info(f"[DISPATCHER] Roteando {event_type} para handler")
        handler.delay(event_data)
    else:
        logger.warning(f"[DISPATCHER] Handler não encontrado para {event_type}")


# =============================================================================
# Notification Tasks
# =============================================================================

@shared_task(
    bind=True,
    max_retries=3,
    default_retry_delay=120,
    autoretry_for=(ConnectionError,),
)
def send_issue_email(self, recipient: str, subject: str, body: str) -> int:
    """Envia um e-mail de texto simples. Retorna o número de mensagens enviadas."""
    logger.info(f"[NOTIFICATION] EMAIL para {recipient}: {subject}")
    return send_mail(
        subject,
        body,
        settings.DEFAULT_FROM_EMAIL,
        [recipient],
        fail_silently=False,
    )
