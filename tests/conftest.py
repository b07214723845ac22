"""
Configurações globais do Pytest para CivicConnect.

Este arquivo é carregado automaticamente pelo pytest e
fornece fixtures e configurações compartilhadas.

Django é configurado pelo pytest-django (DJANGO_SETTINGS_MODULE em
pyproject.toml).
"""

from datetime import datetime, timedelta, timezone

import pytest

from src.core.issues.entities import Actor, IssueEntity, IssueStatus, UserRole


@pytest.fixture(scope="session")
def project_root():
    """Retorna o caminho raiz do projeto."""
    from pathlib import Path
    return Path(__file__).parent.parent


@pytest.fixture(autouse=True)
def reset_singletons():
    """
    Reset do container entre testes.

    Garante que cada teste inicia com registry e dispatcher limpos.
    """
    yield
    from src.config.container import reset_container
    reset_container()


# =============================================================================
# Atores
# =============================================================================

@pytest.fixture
def citizen():
    return Actor(id="citizen-1", role=UserRole.CITIZEN)


@pytest.fixture
def officer():
    return Actor(id="officer-1", role=UserRole.OFFICER)


@pytest.fixture
def supervisor():
    return Actor(id="supervisor-1", role=UserRole.SUPERVISOR)


@pytest.fixture
def admin():
    return Actor(id="admin-1", role=UserRole.ADMIN)


# =============================================================================
# Ocorrências
# =============================================================================

BASE_TIME = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


class FixedClock:
    """Relógio controlável para testes de timestamps."""

    def __init__(self, now: datetime = BASE_TIME):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def make_issue():
    """
    Factory de IssueEntity já persistível em qualquer status.

    Preenche os campos exigidos pelas invariantes do status pedido.
    """
    def _make(status: IssueStatus = IssueStatus.SUBMITTED, **overrides) -> IssueEntity:
        fields = dict(
            id="I1",
            ticket_no="CR-2026-000001",
            title="Buraco na rua",
            description="Buraco grande em frente ao número 120",
            category_id="cat-roads",
            department_id="dept-works",
            reporter_id="citizen-1",
            status=status,
            created_at=BASE_TIME,
            updated_at=BASE_TIME,
        )
        if status in (
            IssueStatus.ASSIGNED,
            IssueStatus.IN_PROGRESS,
            IssueStatus.PENDING_USER_INFO,
            IssueStatus.RESOLVED,
        ):
            fields["assignee_id"] = "officer-1"
        if status is IssueStatus.RESOLVED:
            fields["resolved_at"] = BASE_TIME
        if status is IssueStatus.REJECTED:
            fields["rejected_reason"] = "Duplicada"
        fields.update(overrides)
        return IssueEntity(**fields)

    return _make


def pytest_configure(config):
    """Configuração do pytest."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )


def pytest_collection_modifyitems(config, items):
    """Pula testes de integração sem --run-integration."""
    if config.getoption("--run-integration", default=False):
        return

    skip_integration = pytest.mark.skip(reason="Use --run-integration para rodar")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)


def pytest_addoption(parser):
    """Adiciona opções de linha de comando."""
    parser.addoption(
        "--run-integration",
        action="store_true",
        default=False,
        help="run integration tests",
    )


# =============================================================================
# Fakes de notificação
# =============================================================================

class FakeChannel:
    """Canal em memória: guarda mensagens enviadas e o fechamento."""

    def __init__(self, name: str = "channel", fail_on_send: bool = False):
        self.name = name
        self.fail_on_send = fail_on_send
        self.sent = []
        self.closed_with = None

    def send(self, payload):
        if self.fail_on_send:
            raise ConnectionError(f"{self.name} quebrado")
        self.sent.append(payload)

    def close(self, code, reason=""):
        self.closed_with = (code, reason)

    def types(self):
        return [payload["type"] for payload in self.sent]

    def __repr__(self):
        return f"<FakeChannel {self.name}>"


class FakeAuthService:
    """Token no formato "<user_id>:<ROLE>"; "expired" e lixo são rejeitados."""

    def verify_credential(self, token):
        from src.core.notifications.ports import Identity
        from src.core.shared.exceptions import AuthenticationError

        user_id, _, role = (token or "").partition(":")
        if not user_id or not role:
            raise AuthenticationError("Token inválido")
        return Identity(user_id=user_id, role=UserRole.from_string(role))


@pytest.fixture
def make_channel():
    return FakeChannel


@pytest.fixture
def fake_auth():
    return FakeAuthService()


@pytest.fixture
def registry(fake_auth):
    from src.core.notifications.registry import ConnectionRegistry
    return ConnectionRegistry(fake_auth)


@pytest.fixture
def connect(registry):
    """Registra um FakeChannel para "<user_id>:<ROLE>" e descarta o welcome."""
    def _connect(token: str, fail_on_send: bool = False) -> FakeChannel:
        channel = FakeChannel(name=token)
        registry.register_channel(channel, token)
        channel.sent.clear()
        channel.fail_on_send = fail_on_send
        return channel
    return _connect
