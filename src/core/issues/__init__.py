"""
Issues Domain - ciclo de vida de ocorrências cívicas.

Exports:
- Entities: IssueEntity, IssueStatus, IssuePriority, UserRole, Actor
- Events: IssueEvent, IssueEventType
- Policy / Lifecycle: TransitionPolicy, IssueLifecycle
- Ports: IssueRepository, CategoryLookup (+ implementações em memória)
- Use Case: IssueService (em .use_cases, importado diretamente)
"""

from .entities import IssueEntity, IssueStatus, IssuePriority, UserRole, Actor
from .events import IssueEvent, IssueEventType
from .dtos import (
    TransitionRequest,
    CreateIssueInputDTO,
    AddCommentInputDTO,
    IssueOutputDTO,
    IssueEventOutputDTO,
)
from .policy import TransitionPolicy
from .lifecycle import IssueLifecycle, LifecycleResult, TRANSITIONS
from .ports import (
    IssueRepository,
    CategoryLookup,
    InMemoryIssueRepository,
    InMemoryCategoryLookup,
)

__all__ = [
    "IssueEntity",
    "IssueStatus",
    "IssuePriority",
    "UserRole",
    "Actor",
    "IssueEvent",
    "IssueEventType",
    "TransitionRequest",
    "CreateIssueInputDTO",
    "AddCommentInputDTO",
    "IssueOutputDTO",
    "IssueEventOutputDTO",
    "TransitionPolicy",
    "IssueLifecycle",
    "LifecycleResult",
    "TRANSITIONS",
    "IssueRepository",
    "CategoryLookup",
    "InMemoryIssueRepository",
    "InMemoryCategoryLookup",
]
