"""
Django Admin para o domínio de Ocorrências.

Somente leitura para status, responsável e log: mudanças de status
precisam passar pelo IssueLifecycle (API administrativa).
"""

from django.contrib import admin

from .models import CategoryModel, IssueEventModel, IssueModel


@admin.register(CategoryModel)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ['name', 'department_id']
    search_fields = ['name']


class IssueEventInline(admin.TabularInline):
    model = IssueEventModel
    extra = 0
    can_delete = False
    readonly_fields = ['sequence', 'type', 'actor_id', 'payload', 'created_at']
    ordering = ['sequence']

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(IssueModel)
class IssueAdmin(admin.ModelAdmin):
    list_display = [
        'ticket_no',
        'title',
        'status',
        'priority',
        'category_id',
        'reporter_id',
        'assignee_id',
        'created_at',
    ]
    list_filter = ['status', 'priority', 'category_id', 'created_at']
    search_fields = ['ticket_no', 'title', 'reporter_id', 'assignee_id']
    readonly_fields = [
        'id',
        'ticket_no',
        'status',
        'assignee_id',
        'reporter_id',
        'department_id',
        'rejected_reason',
        'resolved_at',
        'created_at',
        'updated_at',
        'version',
    ]
    inlines = [IssueEventInline]
