"""
Use Cases (Application Services) do Domínio de Ocorrências.

IssueService orquestra IssueLifecycle, IssueRepository e o fanout de
notificações.

Fluxo de uma transição:
1. Carregar a ocorrência (EntityNotFoundError se ausente)
2. IssueLifecycle.apply (erros propagam como estão)
3. Escrita condicional pela versão lida (ConcurrencyError se outra
   requisição escreveu antes; sem retry automático)
4. Gravar os eventos no log de auditoria
5. Rotear e despachar notificações (nunca falha a operação)

Falha em qualquer passo de 1 a 4 não produz evento, escrita nem
notificação.
"""

from typing import Callable, List, Optional
import logging

from src.core.shared.exceptions import EntityNotFoundError, ForbiddenError
from src.core.shared.interfaces import UnitOfWork
from src.core.notifications.dispatcher import NotificationDispatcher
from src.core.notifications.router import Notification, NotificationRouter

from .dtos import CreateIssueInputDTO, TransitionRequest, parse_priority
from .entities import Actor, IssueEntity, IssueStatus, UserRole
from .events import IssueEvent
from .lifecycle import IssueLifecycle, LifecycleResult
from .ports import CategoryLookup, IssueRepository


logger = logging.getLogger(__name__)


class IssueService:
    """
    Use Case: operações sobre o ciclo de vida de ocorrências.

    Attributes:
        issue_repo: Repositório de ocorrências
        category_lookup: Categoria → secretaria
        lifecycle: Máquina de estados
        router: Mapeia eventos para notificações
        dispatcher: Entrega fire-and-forget
        uow: Unit of Work para transações

    Example:
        service = IssueService(repo, categories, lifecycle, router, dispatcher, uow)
        issue = service.request_transition(
            "I1", Actor("sup-1", UserRole.SUPERVISOR), IssueStatus.TRIAGED
        )
    """

    def __init__(
        self,
        issue_repo: IssueRepository,
        category_lookup: CategoryLookup,
        lifecycle: IssueLifecycle,
        router: NotificationRouter,
        dispatcher: NotificationDispatcher,
        uow: UnitOfWork,
    ):
        self.issue_repo = issue_repo
        self.category_lookup = category_lookup
        self.lifecycle = lifecycle
        self.router = router
        self.dispatcher = dispatcher
        self.uow = uow

    # ------------------------------------------------------------------
    # Escrita
    # ------------------------------------------------------------------

    def request_transition(
        self,
        issue_id: str,
        actor: Actor,
        target_status,
        rejected_reason: Optional[str] = None,
        assignee_id: Optional[str] = None,
    ) -> IssueEntity:
        """
        Move a ocorrência para `target_status`.

        Raises:
            EntityNotFoundError, InvalidTransitionError, ForbiddenError,
            MissingFieldError, ConcurrencyError
        """
        issue = self._load(issue_id)
        request = TransitionRequest(
            issue_id=issue_id,
            actor=actor,
            target_status=IssueStatus.from_string(target_status),
            rejected_reason=rejected_reason,
            assignee_id=assignee_id,
        )
        result = self.lifecycle.apply(issue, request)
        updated = self._persist(result)

        logger.info(
            f"Ocorrência {updated.ticket_no} {issue.status.value} → "
            f"{updated.status.value} por {actor.id}"
        )
        self._notify(lambda: self.router.route_many(result.events, updated))
        return updated

    def assign_issue(self, issue_id: str, assignee_id: str, actor: Actor) -> IssueEntity:
        """
        Atribui (ou reatribui) a ocorrência.

        A partir de TRIAGED também move para ASSIGNED no mesmo passo.
        """
        issue = self._load(issue_id)
        result = self.lifecycle.assign(issue, assignee_id, actor)
        updated = self._persist(result)

        logger.info(
            f"Ocorrência {updated.ticket_no} atribuída a {assignee_id} por {actor.id}"
        )
        self._notify(lambda: self.router.route_many(result.events, updated))
        return updated

    def create_issue(self, input_dto: CreateIssueInputDTO, actor: Actor) -> IssueEntity:
        """
        Reporta uma nova ocorrência.

        O rascunho é criado, avançado para SUBMITTED e só então
        persistido; um DRAFT nunca chega ao repositório.
        """
        department_id = self.category_lookup.department_for(input_dto.category_id)
        if department_id is None:
            logger.warning(
                f"Categoria {input_dto.category_id} sem secretaria associada"
            )

        draft = IssueEntity.draft(
            title=input_dto.title,
            description=input_dto.description,
            category_id=input_dto.category_id,
            reporter_id=actor.id,
            ward_id=input_dto.ward_id,
            department_id=department_id,
            priority=parse_priority(input_dto.priority),
            address=input_dto.address,
        )
        result = self.lifecycle.submit(draft, actor)

        with self.uow:
            created = self.issue_repo.create_draft(result.issue)
            for event in result.events:
                stored = self.issue_repo.append_event(event)
                self.uow.publish_event(stored)

        logger.info(f"Ocorrência {created.ticket_no} criada por {actor.id}")
        self._notify(lambda: self.router.route_new_issue(created))
        return created

    def add_comment(
        self,
        issue_id: str,
        actor: Actor,
        body: str,
        comment_id: Optional[str] = None,
    ) -> IssueEvent:
        """Grava um evento COMMENT. Comentários não geram push."""
        issue = self._load(issue_id)
        event = self.lifecycle.comment(issue, actor, body, comment_id)

        with self.uow:
            stored = self.issue_repo.append_event(event)
            self.uow.publish_event(stored)

        return stored

    def change_priority(self, issue_id: str, priority, actor: Actor) -> IssueEntity:
        issue = self._load(issue_id)
        result = self.lifecycle.change_priority(issue, parse_priority(priority), actor)
        return self._persist(result)

    # ------------------------------------------------------------------
    # Leitura
    # ------------------------------------------------------------------

    def get_issue(self, issue_id: str, actor: Actor) -> IssueEntity:
        issue = self._load(issue_id)
        self._check_can_view(issue, actor)
        return issue

    def get_by_ticket_no(self, ticket_no: str, actor: Actor) -> IssueEntity:
        issue = self.issue_repo.get_by_ticket_no(ticket_no)
        if issue is None:
            raise EntityNotFoundError(
                f"Protocolo {ticket_no} não encontrado",
                entity_type="Issue",
                entity_id=ticket_no,
            )
        self._check_can_view(issue, actor)
        return issue

    def list_events(self, issue_id: str, actor: Actor) -> List[IssueEvent]:
        issue = self._load(issue_id)
        self._check_can_view(issue, actor)
        return self.issue_repo.list_events(issue_id)

    # ------------------------------------------------------------------
    # Internos
    # ------------------------------------------------------------------

    def _load(self, issue_id: str) -> IssueEntity:
        issue = self.issue_repo.get(issue_id)
        if issue is None:
            raise EntityNotFoundError(
                f"Ocorrência {issue_id} não encontrada",
                entity_type="Issue",
                entity_id=issue_id,
            )
        return issue

    def _persist(self, result: LifecycleResult) -> IssueEntity:
        with self.uow:
            updated = self.issue_repo.conditional_update(
                result.issue.id, result.expected_version, result.changes
            )
            for event in result.events:
                stored = self.issue_repo.append_event(event)
                self.uow.publish_event(stored)
        return updated

    def _notify(self, build: Callable[[], List[Notification]]) -> None:
        # Entrega é best-effort: nenhum erro daqui chega ao chamador
        try:
            self.dispatcher.dispatch(build())
        except Exception:
            logger.exception("[NOTIFICATION] Falha ao despachar notificações")

    @staticmethod
    def _check_can_view(issue: IssueEntity, actor: Actor) -> None:
        if actor.role is UserRole.CITIZEN and issue.reporter_id != actor.id:
            raise ForbiddenError(
                "Cidadãos só podem consultar as próprias ocorrências",
                role=actor.role.value,
                required_roles=[
                    UserRole.OFFICER.value,
                    UserRole.SUPERVISOR.value,
                    UserRole.ADMIN.value,
                ],
            )
