"""Testes para publishers de eventos e Unit of Work."""

import logging
from unittest.mock import patch

import pytest

from src.adapters.django_app.events.publishers import (
    CeleryEventPublisher,
    InMemoryEventPublisher,
    LoggingEventPublisher,
    get_event_publisher,
)
from src.adapters.django_app.shared.unit_of_work import DjangoUnitOfWork, InMemoryUnitOfWork
from src.core.issues.events import IssueEvent


@pytest.fixture
def event(clock):
    return IssueEvent.status_change("I1", "sup-1", "SUBMITTED", "TRIAGED", clock.now)


class TestPublishers:

    def test_factory(self):
        assert isinstance(get_event_publisher("celery"), CeleryEventPublisher)
        assert isinstance(get_event_publisher("sync"), LoggingEventPublisher)

    def test_logging_publisher(self, event, caplog):
        with caplog.at_level(logging.INFO):
            LoggingEventPublisher().publish(event)
        assert "[EVENT] STATUS_CHANGE" in caplog.text

    def test_celery_publisher_envia_evento_serializado(self, event):
        with patch(
            "src.adapters.django_app.events.handlers.dispatch_domain_event.delay"
        ) as delay:
            CeleryEventPublisher(also_log=False).publish(event)

        delay.assert_called_once_with("STATUS_CHANGE", event.to_dict())

    def test_celery_publisher_nao_propaga_falha(self, event):
        with patch(
            "src.adapters.django_app.events.handlers.dispatch_domain_event.delay",
            side_effect=ConnectionError("broker fora"),
        ):
            CeleryEventPublisher().publish(event)

    def test_in_memory_publisher(self, event):
        publisher = InMemoryEventPublisher()
        seen = []
        publisher.register_handler("STATUS_CHANGE", seen.append)

        publisher.publish(event)

        assert publisher.get_events_by_type("STATUS_CHANGE") == [event]
        assert seen == [event]


class TestInMemoryUnitOfWork:

    def test_publica_apos_commit(self, event):
        publisher = InMemoryEventPublisher()
        uow = InMemoryUnitOfWork(publisher)

        with uow:
            uow.publish_event(event)
            assert publisher.published_events == []

        assert uow.committed
        assert publisher.published_events == [event]

    def test_rollback_descarta(self, event):
        publisher = InMemoryEventPublisher()
        uow = InMemoryUnitOfWork(publisher)

        with pytest.raises(RuntimeError):
            with uow:
                uow.publish_event(event)
                raise RuntimeError("falhou")

        assert uow.rolled_back
        assert publisher.published_events == []


@pytest.mark.django_db
class TestDjangoUnitOfWork:

    def test_commit_publica(self, event):
        publisher = InMemoryEventPublisher()
        uow = DjangoUnitOfWork(publisher)

        with uow:
            uow.publish_event(event)

        assert uow.is_committed
        assert publisher.published_events == [event]

    def test_rollback_desfaz_escrita(self, event, category_model_factory):
        from src.adapters.django_app.issues.models import CategoryModel

        publisher = InMemoryEventPublisher()
        uow = DjangoUnitOfWork(publisher)

        with pytest.raises(RuntimeError):
            with uow:
                category_model_factory(id="cat-x", name="Temporária")
                uow.publish_event(event)
                raise RuntimeError("falhou")

        assert uow.is_rolled_back
        assert not CategoryModel.objects.filter(pk="cat-x").exists()
        assert publisher.published_events == []

    def test_reuso_sequencial(self, event):
        uow = DjangoUnitOfWork()
        with uow:
            pass
        with uow:
            uow.publish_event(event)
        assert uow.is_committed
