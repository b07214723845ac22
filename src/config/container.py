"""
Dependency Injection Container.

Configura e gerencia todas as dependências da aplicação.
Usa dependency-injector para lazy-loading e injeção automática.

Padrões:
- Singleton: estado compartilhado pelo processo (ConnectionRegistry,
  dispatcher, regras de domínio sem estado)
- Factory: nova instância por chamada (repositórios Django, UoW, services)

Os adapters Django são referenciados por caminho pontilhado para que
importar o container não carregue models antes do app registry.
"""

from typing import Optional

from dependency_injector import containers, providers

from src.core.issues.lifecycle import IssueLifecycle
from src.core.issues.policy import TransitionPolicy
from src.core.issues.use_cases import IssueService
from src.core.notifications.dispatcher import NotificationDispatcher
from src.core.notifications.registry import ConnectionRegistry
from src.core.notifications.router import NotificationRouter


class Container(containers.DeclarativeContainer):
    """
    Container principal de Dependency Injection.

    Example:
        container = get_container()
        service = container.issue_service()
        service.request_transition(issue_id, actor, "TRIAGED")

    Nos testes:
        container.issue_repository.override(providers.Object(repo))
    """

    # =========================================================================
    # Configuration
    # =========================================================================

    config = providers.Configuration()

    # =========================================================================
    # Autenticação e notificações (uma instância por processo)
    # =========================================================================

    auth_service = providers.Singleton(
        "src.adapters.django_app.notifications.auth.JwtAuthService",
        secret=config.jwt.secret,
        algorithm=config.jwt.algorithm,
        leeway_seconds=config.jwt.leeway_seconds,
    )

    connection_registry = providers.Singleton(
        ConnectionRegistry,
        auth_service=auth_service,
    )

    notification_router = providers.Singleton(NotificationRouter)

    notification_dispatcher = providers.Singleton(
        NotificationDispatcher,
        registry=connection_registry,
        mode=config.notifications.mode,
        max_workers=config.notifications.max_workers,
    )

    # =========================================================================
    # Regras de domínio
    # =========================================================================

    transition_policy = providers.Singleton(TransitionPolicy)

    issue_lifecycle = providers.Singleton(
        IssueLifecycle,
        policy=transition_policy,
    )

    # =========================================================================
    # Repositories
    # =========================================================================

    issue_repository = providers.Factory(
        "src.adapters.django_app.issues.repositories.DjangoIssueRepository",
        ticket_prefix=config.issues.ticket_prefix,
    )

    category_lookup = providers.Factory(
        "src.adapters.django_app.issues.repositories.DjangoCategoryLookup",
    )

    # =========================================================================
    # Unit of Work (Factory - nova instância por operação)
    # =========================================================================

    event_publisher = providers.Singleton(
        "src.adapters.django_app.events.publishers.get_event_publisher",
        mode=config.events.publisher_mode,
    )

    unit_of_work = providers.Factory(
        "src.adapters.django_app.shared.unit_of_work.DjangoUnitOfWork",
        event_publisher=event_publisher,
    )

    # =========================================================================
    # Services / Use Cases
    # =========================================================================

    issue_service = providers.Factory(
        IssueService,
        issue_repo=issue_repository,
        category_lookup=category_lookup,
        lifecycle=issue_lifecycle,
        router=notification_router,
        dispatcher=notification_dispatcher,
        uow=unit_of_work,
    )


def settings_config() -> dict:
    """Lê as settings do Django no formato do `config` do container."""
    from django.conf import settings

    return {
        "jwt": {
            "secret": settings.JWT_SECRET,
            "algorithm": getattr(settings, "JWT_ALGORITHM", "HS256"),
            "leeway_seconds": getattr(settings, "JWT_LEEWAY_SECONDS", 0),
        },
        "notifications": {
            "mode": getattr(settings, "NOTIFICATION_DELIVERY_MODE", "thread"),
            "max_workers": getattr(settings, "NOTIFICATION_MAX_WORKERS", 4),
        },
        "issues": {
            "ticket_prefix": getattr(settings, "TICKET_PREFIX", "CR"),
        },
        "events": {
            "publisher_mode": getattr(settings, "EVENT_PUBLISHER_MODE", "sync"),
        },
    }


# =============================================================================
# Container Global (Singleton)
# =============================================================================

_container: Optional[Container] = None


def get_container() -> Container:
    """
    Retorna instância global do container.

    Cria se não existir (lazy initialization), configurado a partir das
    settings do Django.
    """
    global _container

    if _container is None:
        container = Container()
        container.config.from_dict(settings_config())
        _container = container

    return _container


def reset_container() -> None:
    """
    Reset do container (para testes).

    Encerra o pool de entrega do container anterior, se existir.
    """
    global _container

    if _container is not None:
        _container.notification_dispatcher().shutdown(wait=False)
    _container = None
