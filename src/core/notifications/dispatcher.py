"""
NotificationDispatcher - entrega fire-and-forget das notificações roteadas.

Modos:
- "thread": entrega em um ThreadPoolExecutor; o chamador não espera
- "sync": entrega inline (testes e scripts)

Falhas são isoladas por notificação e apenas registradas em log:
uma notificação perdida nunca invalida a transição que a originou.
"""

from concurrent.futures import Future, ThreadPoolExecutor
from typing import Iterable, List, Optional
import logging

from .registry import ConnectionRegistry
from .router import DirectNotification, Notification, RoleBroadcast


logger = logging.getLogger(__name__)


class NotificationDispatcher:
    MODES = ("thread", "sync")

    def __init__(
        self,
        registry: ConnectionRegistry,
        mode: str = "thread",
        max_workers: int = 4,
    ):
        if mode not in self.MODES:
            raise ValueError(f"Modo de entrega inválido: {mode}")
        self.registry = registry
        self.mode = mode
        self._executor: Optional[ThreadPoolExecutor] = None
        if mode == "thread":
            self._executor = ThreadPoolExecutor(
                max_workers=max_workers,
                thread_name_prefix="notification",
            )

    def dispatch(self, notifications: Iterable[Notification]) -> Optional[Future]:
        """
        Agenda a entrega e retorna imediatamente.

        Returns:
            Future da entrega em modo "thread", None em modo "sync"
        """
        batch = list(notifications)
        if not batch:
            return None

        if self._executor is None:
            self._deliver_all(batch)
            return None

        future = self._executor.submit(self._deliver_all, batch)
        future.add_done_callback(self._log_failure)
        return future

    def shutdown(self, wait: bool = True) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=wait)

    def _deliver_all(self, batch: List[Notification]) -> int:
        delivered = 0
        for notification in batch:
            try:
                delivered += self._deliver_one(notification)
            except Exception:
                logger.exception(
                    f"[NOTIFICATION] Falha ao entregar {notification.type}"
                )
        logger.debug(f"[NOTIFICATION] {delivered} mensagens entregues")
        return delivered

    def _deliver_one(self, notification: Notification) -> int:
        if isinstance(notification, DirectNotification):
            return int(
                self.registry.deliver_to_user(
                    notification.recipient_id, notification.payload
                )
            )
        if isinstance(notification, RoleBroadcast):
            return self.registry.deliver_to_role(
                notification.role,
                notification.payload,
                exclude=notification.exclude_user_ids,
            )
        raise TypeError(f"Notificação desconhecida: {notification!r}")

    @staticmethod
    def _log_failure(future: Future) -> None:
        exc = future.exception()
        if exc is not None:
            logger.error(f"[NOTIFICATION] Entrega abortada: {exc}")
