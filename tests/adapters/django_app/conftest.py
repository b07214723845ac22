"""
Fixtures para testes dos adapters Django.

Django é configurado pelo pytest-django com src.config.test_settings
(SQLite em memória, Celery eager, e-mail locmem).
"""

from unittest.mock import Mock

import pytest
from django.test import RequestFactory

from src.adapters.django_app.notifications.auth import JwtAuthService
from src.core.issues.entities import UserRole


@pytest.fixture
def rf():
    """Request Factory para criar requests."""
    return RequestFactory()


@pytest.fixture
def auth_service(settings):
    return JwtAuthService(secret=settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


@pytest.fixture
def bearer(auth_service):
    """Header Authorization para um usuário/papel."""
    def _bearer(user_id: str, role: UserRole) -> dict:
        token = auth_service.issue_token(user_id, role)
        return {"HTTP_AUTHORIZATION": f"Bearer {token}"}
    return _bearer


@pytest.fixture
def mock_service():
    return Mock()


@pytest.fixture
def container(mock_service):
    """Container global com IssueService substituído por um Mock."""
    from dependency_injector import providers
    from src.config.container import get_container

    container = get_container()
    container.issue_service.override(providers.Object(mock_service))
    yield container
    container.issue_service.reset_override()


@pytest.fixture
def category_model_factory(db):
    from src.adapters.django_app.issues.models import CategoryModel

    def create_category(**kwargs):
        defaults = {'id': 'cat-roads', 'name': 'Vias e buracos', 'department_id': 'dept-works'}
        defaults.update(kwargs)
        return CategoryModel.objects.create(**defaults)

    return create_category
