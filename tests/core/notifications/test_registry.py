"""
Testes para ConnectionRegistry.

Cobertura:
- Autenticação na abertura (4401 sem credencial, 4403 inválida)
- Um canal por usuário, substituição com fechamento "superseded"
- Remoção pela identidade da instância
- Entrega best-effort isolada por canal
"""

import threading

import pytest

from src.core.issues.entities import UserRole
from src.core.notifications.registry import (
    CLOSE_INVALID_CREDENTIAL,
    CLOSE_NO_CREDENTIAL,
    CLOSE_SUPERSEDED,
    ChannelState,
)
from src.core.shared.exceptions import AuthenticationError


class TestRegisterChannel:

    def test_registro_envia_boas_vindas(self, registry, make_channel):
        channel = make_channel()

        identity = registry.register_channel(channel, "citizen-1:CITIZEN")

        assert identity.user_id == "citizen-1"
        assert identity.role is UserRole.CITIZEN
        assert registry.state("citizen-1") is ChannelState.CONNECTED
        assert channel.types() == ["connected"]

    def test_sem_credencial(self, registry, make_channel):
        channel = make_channel()

        with pytest.raises(AuthenticationError) as exc_info:
            registry.register_channel(channel, None)

        assert exc_info.value.close_code == CLOSE_NO_CREDENTIAL
        assert channel.closed_with[0] == CLOSE_NO_CREDENTIAL
        assert len(registry) == 0

    def test_credencial_invalida(self, registry, make_channel):
        channel = make_channel()

        with pytest.raises(AuthenticationError) as exc_info:
            registry.register_channel(channel, "garbage")

        assert exc_info.value.close_code == CLOSE_INVALID_CREDENTIAL
        assert channel.closed_with[0] == CLOSE_INVALID_CREDENTIAL
        assert channel.sent == []

    def test_reconexao_substitui_canal(self, registry, make_channel):
        old = make_channel("old")
        new = make_channel("new")

        registry.register_channel(old, "officer-1:OFFICER")
        registry.register_channel(new, "officer-1:OFFICER")

        assert old.closed_with == (CLOSE_SUPERSEDED, "superseded")
        assert new.closed_with is None
        assert len(registry) == 1

        registry.deliver_to_user("officer-1", {"type": "ping"})
        assert old.types() == ["connected"]
        assert new.types() == ["connected", "ping"]


class TestUnregisterChannel:

    def test_close_atrasado_do_canal_antigo(self, registry, make_channel):
        old = make_channel("old")
        new = make_channel("new")
        registry.register_channel(old, "officer-1:OFFICER")
        registry.register_channel(new, "officer-1:OFFICER")

        removed = registry.unregister_channel("officer-1", old)

        assert removed is False
        assert registry.state("officer-1") is ChannelState.CONNECTED

    def test_remove_canal_atual(self, registry, make_channel):
        channel = make_channel()
        registry.register_channel(channel, "officer-1:OFFICER")

        assert registry.unregister_channel("officer-1", channel) is True
        assert registry.state("officer-1") is ChannelState.DISCONNECTED
        assert registry.identity_for("officer-1") is None


class TestDelivery:

    def test_usuario_offline_e_noop(self, registry):
        assert registry.deliver_to_user("ghost", {"type": "x"}) is False

    def test_broadcast_por_papel(self, registry, connect):
        sup = connect("supervisor-1:SUPERVISOR")
        sup2 = connect("supervisor-2:SUPERVISOR")
        officer = connect("officer-1:OFFICER")

        delivered = registry.deliver_to_role(UserRole.SUPERVISOR, {"type": "x"})

        assert delivered == 2
        assert sup.types() == ["x"] and sup2.types() == ["x"]
        assert officer.sent == []

    def test_broadcast_exclui_usuarios(self, registry, connect):
        sup = connect("supervisor-1:SUPERVISOR")
        sup2 = connect("supervisor-2:SUPERVISOR")

        registry.deliver_to_role(UserRole.SUPERVISOR, {"type": "x"}, exclude={"supervisor-1"})

        assert sup.sent == []
        assert sup2.types() == ["x"]

    def test_canal_quebrado_nao_afeta_os_demais(self, registry, connect):
        broken = connect("admin-1:ADMIN", fail_on_send=True)
        healthy = connect("admin-2:ADMIN")

        delivered = registry.deliver_to_role(UserRole.ADMIN, {"type": "x"})

        assert delivered == 1
        assert healthy.types() == ["x"]
        assert registry.state("admin-1") is ChannelState.DISCONNECTED
        assert broken.sent == []

    @pytest.mark.slow
    def test_registros_concorrentes(self, registry, make_channel):
        channels = [make_channel(f"c{i}") for i in range(50)]
        threads = [
            threading.Thread(
                target=registry.register_channel, args=(channel, "officer-1:OFFICER")
            )
            for channel in channels
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(registry) == 1
        open_channels = [c for c in channels if c.closed_with is None]
        assert len(open_channels) == 1
