"""
Migration inicial para o domínio de Ocorrências.

Cria as tabelas:
- categories: Categorias e secretaria responsável
- issues: Ocorrências (com coluna version)
- issue_events: Log de auditoria append-only
"""

from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone


class Migration(migrations.Migration):
    """Migration inicial."""

    initial = True

    dependencies = [
    ]

    operations = [
        # =================================================================
        # Tabela: categories
        # =================================================================
        migrations.CreateModel(
            name='CategoryModel',
            fields=[
                ('id', models.CharField(max_length=36, primary_key=True, serialize=False)),
                ('name', models.CharField(max_length=100, unique=True)),
                ('department_id', models.CharField(
                    max_length=36,
                    null=True,
                    blank=True,
                    help_text='Secretaria responsável'
                )),
            ],
            options={
                'db_table': 'categories',
                'verbose_name': 'Categoria',
                'verbose_name_plural': 'Categorias',
                'ordering': ['name'],
            },
        ),

        # =================================================================
        # Tabela: issues
        # =================================================================
        migrations.CreateModel(
            name='IssueModel',
            fields=[
                ('id', models.CharField(
                    max_length=36,
                    primary_key=True,
                    serialize=False,
                    editable=False,
                    help_text='UUID único da ocorrência'
                )),
                ('ticket_no', models.CharField(
                    max_length=32,
                    unique=True,
                    editable=False,
                    help_text='Número de protocolo'
                )),
                ('title', models.CharField(max_length=200)),
                ('description', models.TextField()),
                ('category_id', models.CharField(max_length=36, db_index=True)),
                ('ward_id', models.CharField(max_length=36, null=True, blank=True, db_index=True)),
                ('department_id', models.CharField(max_length=36, null=True, blank=True, db_index=True)),
                ('address', models.CharField(max_length=300, null=True, blank=True)),
                ('status', models.CharField(
                    max_length=32,
                    choices=[
                        ('SUBMITTED', 'Registrada'),
                        ('TRIAGED', 'Triada'),
                        ('ASSIGNED', 'Atribuída'),
                        ('IN_PROGRESS', 'Em andamento'),
                        ('PENDING_USER_INFO', 'Aguardando cidadão'),
                        ('RESOLVED', 'Resolvida'),
                        ('REJECTED', 'Rejeitada'),
                    ],
                    default='SUBMITTED',
                    db_index=True,
                )),
                ('priority', models.CharField(
                    max_length=16,
                    choices=[
                        ('LOW', 'Baixa'),
                        ('MEDIUM', 'Média'),
                        ('HIGH', 'Alta'),
                        ('CRITICAL', 'Crítica'),
                    ],
                    default='MEDIUM',
                    db_index=True,
                )),
                ('reporter_id', models.CharField(max_length=100, db_index=True)),
                ('assignee_id', models.CharField(max_length=100, null=True, blank=True, db_index=True)),
                ('rejected_reason', models.TextField(null=True, blank=True)),
                ('resolved_at', models.DateTimeField(null=True, blank=True)),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now, db_index=True)),
                ('updated_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('version', models.PositiveIntegerField(default=1)),
            ],
            options={
                'db_table': 'issues',
                'verbose_name': 'Ocorrência',
                'verbose_name_plural': 'Ocorrências',
                'ordering': ['-created_at'],
            },
        ),
        migrations.AddIndex(
            model_name='issuemodel',
            index=models.Index(fields=['status', 'created_at'], name='issues_status_created_idx'),
        ),
        migrations.AddIndex(
            model_name='issuemodel',
            index=models.Index(fields=['assignee_id', 'status'], name='issues_assignee_status_idx'),
        ),
        migrations.AddIndex(
            model_name='issuemodel',
            index=models.Index(fields=['reporter_id', 'created_at'], name='issues_reporter_created_idx'),
        ),

        # =================================================================
        # Tabela: issue_events
        # =================================================================
        migrations.CreateModel(
            name='IssueEventModel',
            fields=[
                ('id', models.CharField(max_length=36, primary_key=True, serialize=False)),
                ('actor_id', models.CharField(max_length=100)),
                ('type', models.CharField(
                    max_length=32,
                    choices=[
                        ('STATUS_CHANGE', 'Mudança de status'),
                        ('COMMENT', 'Comentário'),
                        ('ASSIGN', 'Atribuição'),
                        ('ESCALATE', 'Escalonamento'),
                        ('MERGE_DUPLICATE', 'Mesclagem de duplicata'),
                    ],
                    db_index=True,
                )),
                ('payload', models.JSONField(default=dict)),
                ('sequence', models.PositiveIntegerField()),
                ('created_at', models.DateTimeField(db_index=True)),
                ('issue', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name='events',
                    to='issues.issuemodel',
                )),
            ],
            options={
                'db_table': 'issue_events',
                'verbose_name': 'Evento de Ocorrência',
                'verbose_name_plural': 'Eventos de Ocorrência',
                'ordering': ['issue', 'sequence'],
            },
        ),
        migrations.AddConstraint(
            model_name='issueeventmodel',
            constraint=models.UniqueConstraint(
                fields=['issue', 'sequence'],
                name='issue_event_sequence_unique',
            ),
        ),
    ]
