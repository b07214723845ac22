"""Testes para NotificationDispatcher (modos sync e thread)."""

import threading
from unittest.mock import Mock

import pytest

from src.core.issues.entities import UserRole
from src.core.notifications.dispatcher import NotificationDispatcher
from src.core.notifications.registry import ConnectionRegistry
from src.core.notifications.router import DirectNotification, RoleBroadcast


def notifications():
    return [
        DirectNotification("citizen-1", {"type": "issue_updated", "data": {}, "message": "m"}),
        RoleBroadcast(
            UserRole.ADMIN,
            {"type": "issue_status_change", "data": {}, "message": "m"},
            frozenset({"citizen-1"}),
        ),
    ]


class TestNotificationDispatcher:

    def test_modo_invalido(self, registry):
        with pytest.raises(ValueError):
            NotificationDispatcher(registry, mode="celery")

    def test_sync_entrega_inline(self, registry, connect):
        citizen = connect("citizen-1:CITIZEN")
        admin = connect("admin-1:ADMIN")
        dispatcher = NotificationDispatcher(registry, mode="sync")

        assert dispatcher.dispatch(notifications()) is None

        assert citizen.types() == ["issue_updated"]
        assert admin.types() == ["issue_status_change"]

    def test_lista_vazia(self, registry):
        dispatcher = NotificationDispatcher(registry, mode="thread", max_workers=1)
        try:
            assert dispatcher.dispatch([]) is None
        finally:
            dispatcher.shutdown()

    def test_thread_nao_bloqueia_chamador(self):
        release = threading.Event()
        registry = Mock(spec=ConnectionRegistry)
        registry.deliver_to_user.side_effect = lambda *args: release.wait(5)
        registry.deliver_to_role.return_value = 0
        dispatcher = NotificationDispatcher(registry, mode="thread", max_workers=1)

        try:
            future = dispatcher.dispatch(notifications())
            assert future is not None
            assert not future.done()

            release.set()
            assert future.result(timeout=5) == 1
        finally:
            dispatcher.shutdown()

    def test_falha_isolada_por_notificacao(self):
        registry = Mock(spec=ConnectionRegistry)
        registry.deliver_to_user.side_effect = RuntimeError("boom")
        registry.deliver_to_role.return_value = 3
        dispatcher = NotificationDispatcher(registry, mode="sync")

        dispatcher.dispatch(notifications())

        registry.deliver_to_role.assert_called_once_with(
            UserRole.ADMIN,
            notifications()[1].payload,
            exclude=frozenset({"citizen-1"}),
        )
