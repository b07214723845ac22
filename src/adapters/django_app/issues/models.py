"""
Django Models para o domínio de Ocorrências.

Estes models são ADAPTERS - implementam a persistência para as
entidades definidas em src/core/issues/entities.py.

IMPORTANTE:
- Models NÃO contêm lógica de negócio
- Status só muda via IssueLifecycle → DjangoIssueRepository.conditional_update
- Models são mapeados para/de Entities via Mappers

Tabelas:
- CategoryModel: Categorias e secretaria responsável
- IssueModel: Ocorrências (coluna version para concorrência otimista)
- IssueEventModel: Log de auditoria append-only
"""

from django.db import models
from django.utils import timezone


class IssueStatusChoices(models.TextChoices):
    """Espelha IssueStatus do Core (DRAFT nunca é persistido)."""
    SUBMITTED = 'SUBMITTED', 'Registrada'
    TRIAGED = 'TRIAGED', 'Triada'
    ASSIGNED = 'ASSIGNED', 'Atribuída'
    IN_PROGRESS = 'IN_PROGRESS', 'Em andamento'
    PENDING_USER_INFO = 'PENDING_USER_INFO', 'Aguardando cidadão'
    RESOLVED = 'RESOLVED', 'Resolvida'
    REJECTED = 'REJECTED', 'Rejeitada'


class IssuePriorityChoices(models.TextChoices):
    LOW = 'LOW', 'Baixa'
    MEDIUM = 'MEDIUM', 'Média'
    HIGH = 'HIGH', 'Alta'
    CRITICAL = 'CRITICAL', 'Crítica'


class IssueEventTypeChoices(models.TextChoices):
    STATUS_CHANGE = 'STATUS_CHANGE', 'Mudança de status'
    COMMENT = 'COMMENT', 'Comentário'
    ASSIGN = 'ASSIGN', 'Atribuição'
    ESCALATE = 'ESCALATE', 'Escalonamento'
    MERGE_DUPLICATE = 'MERGE_DUPLICATE', 'Mesclagem de duplicata'


class CategoryModel(models.Model):
    """Categoria de ocorrência e a secretaria que a atende."""

    id = models.CharField(max_length=36, primary_key=True)
    name = models.CharField(max_length=100, unique=True)
    department_id = models.CharField(
        max_length=36,
        null=True,
        blank=True,
        help_text="Secretaria responsável"
    )

    class Meta:
        db_table = 'categories'
        verbose_name = 'Categoria'
        verbose_name_plural = 'Categorias'
        ordering = ['name']

    def __str__(self):
        return self.name


class IssueModel(models.Model):
    """
    Model Django para persistência de Ocorrências.

    Fields:
        id: UUID gerado pela Entity
        ticket_no: Protocolo legível, único e imutável
        version: Incrementada a cada escrita (compare-and-swap)
        reporter_id / assignee_id: IDs de usuário (strings)
    """

    id = models.CharField(
        max_length=36,
        primary_key=True,
        editable=False,
        help_text="UUID único da ocorrência"
    )

    ticket_no = models.CharField(
        max_length=32,
        unique=True,
        editable=False,
        help_text="Número de protocolo"
    )

    title = models.CharField(max_length=200)
    description = models.TextField()

    category_id = models.CharField(max_length=36, db_index=True)
    ward_id = models.CharField(max_length=36, null=True, blank=True, db_index=True)
    department_id = models.CharField(max_length=36, null=True, blank=True, db_index=True)
    address = models.CharField(max_length=300, null=True, blank=True)

    status = models.CharField(
        max_length=32,
        choices=IssueStatusChoices.choices,
        default=IssueStatusChoices.SUBMITTED,
        db_index=True,
    )

    priority = models.CharField(
        max_length=16,
        choices=IssuePriorityChoices.choices,
        default=IssuePriorityChoices.MEDIUM,
        db_index=True,
    )

    reporter_id = models.CharField(max_length=100, db_index=True)
    assignee_id = models.CharField(max_length=100, null=True, blank=True, db_index=True)

    rejected_reason = models.TextField(null=True, blank=True)
    resolved_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(default=timezone.now, db_index=True)
    updated_at = models.DateTimeField(default=timezone.now)

    version = models.PositiveIntegerField(default=1)

    class Meta:
        db_table = 'issues'
        verbose_name = 'Ocorrência'
        verbose_name_plural = 'Ocorrências'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status', 'created_at'], name='issues_status_created_idx'),
            models.Index(fields=['assignee_id', 'status'], name='issues_assignee_status_idx'),
            models.Index(fields=['reporter_id', 'created_at'], name='issues_reporter_created_idx'),
        ]

    def __str__(self):
        return f"[{self.ticket_no}] {self.title}"

    def __repr__(self):
        return f"<IssueModel ticket_no={self.ticket_no} status={self.status} v{self.version}>"


class IssueEventModel(models.Model):
    """
    Log de auditoria append-only.

    `sequence` é a posição do evento no log da ocorrência; a unicidade
    (issue, sequence) impede dois eventos na mesma posição.
    """

    id = models.CharField(max_length=36, primary_key=True)

    issue = models.ForeignKey(
        IssueModel,
        on_delete=models.CASCADE,
        related_name='events',
    )

    actor_id = models.CharField(max_length=100)
    type = models.CharField(
        max_length=32,
        choices=IssueEventTypeChoices.choices,
        db_index=True,
    )
    payload = models.JSONField(default=dict)
    sequence = models.PositiveIntegerField()
    created_at = models.DateTimeField(db_index=True)

    class Meta:
        db_table = 'issue_events'
        verbose_name = 'Evento de Ocorrência'
        verbose_name_plural = 'Eventos de Ocorrência'
        ordering = ['issue', 'sequence']
        constraints = [
            models.UniqueConstraint(
                fields=['issue', 'sequence'],
                name='issue_event_sequence_unique',
            ),
        ]

    def __str__(self):
        return f"{self.type} #{self.sequence} - {self.issue_id[:8]}"
