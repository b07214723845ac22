"""
TransitionPolicy - quem pode mover uma ocorrência para qual status.

Lookup puro, sem efeitos colaterais:

    CITIZEN    → nenhum status (cidadão só cria e comenta)
    OFFICER    → IN_PROGRESS, PENDING_USER_INFO
    SUPERVISOR → os do OFFICER + TRIAGED, ASSIGNED, RESOLVED, REJECTED
    ADMIN      → todos

Atribuição (escrita de assignee_id) é restrita a SUPERVISOR e ADMIN,
independente da permissão de status.
"""

from typing import Dict, FrozenSet, List

from src.core.shared.exceptions import ForbiddenError

from .entities import IssueStatus, UserRole


_OFFICER_TARGETS = frozenset({IssueStatus.IN_PROGRESS, IssueStatus.PENDING_USER_INFO})

_SUPERVISOR_TARGETS = _OFFICER_TARGETS | frozenset({
    IssueStatus.TRIAGED,
    IssueStatus.ASSIGNED,
    IssueStatus.RESOLVED,
    IssueStatus.REJECTED,
})


class TransitionPolicy:
    """Tabela papel → status alvo permitidos."""

    ROLE_TARGETS: Dict[UserRole, FrozenSet[IssueStatus]] = {
        UserRole.CITIZEN: frozenset(),
        UserRole.OFFICER: _OFFICER_TARGETS,
        UserRole.SUPERVISOR: _SUPERVISOR_TARGETS,
        UserRole.ADMIN: frozenset(IssueStatus),
    }

    ASSIGNERS: FrozenSet[UserRole] = frozenset({UserRole.SUPERVISOR, UserRole.ADMIN})

    # Papéis que podem alterar prioridade
    PRIORITY_EDITORS: FrozenSet[UserRole] = frozenset(
        {UserRole.OFFICER, UserRole.SUPERVISOR, UserRole.ADMIN}
    )

    def allowed_targets(self, role: UserRole) -> FrozenSet[IssueStatus]:
        return self.ROLE_TARGETS.get(role, frozenset())

    def can_target(self, role: UserRole, target: IssueStatus) -> bool:
        return target in self.allowed_targets(role)

    def required_roles(self, target: IssueStatus) -> List[str]:
        """Papéis que podem levar uma ocorrência ao status `target`."""
        return [
            role.value
            for role in UserRole
            if target in self.ROLE_TARGETS.get(role, frozenset())
        ]

    def check_transition(self, role: UserRole, target: IssueStatus) -> None:
        """
        Raises:
            ForbiddenError: Se o papel não pode alcançar o status alvo
        """
        if not self.can_target(role, target):
            raise ForbiddenError(
                f"Papel {role.value} não pode mover ocorrências para {target.value}",
                role=role.value,
                required_roles=self.required_roles(target),
            )

    def can_assign(self, role: UserRole) -> bool:
        return role in self.ASSIGNERS

    def check_assign(self, role: UserRole) -> None:
        if not self.can_assign(role):
            raise ForbiddenError(
                f"Papel {role.value} não pode atribuir ocorrências",
                role=role.value,
                required_roles=self._ordered(self.ASSIGNERS),
            )

    def check_priority(self, role: UserRole) -> None:
        if role not in self.PRIORITY_EDITORS:
            raise ForbiddenError(
                f"Papel {role.value} não pode alterar prioridade",
                role=role.value,
                required_roles=self._ordered(self.PRIORITY_EDITORS),
            )

    @staticmethod
    def _ordered(roles: FrozenSet[UserRole]) -> List[str]:
        return [role.value for role in UserRole if role in roles]
