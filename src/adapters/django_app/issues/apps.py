"""
Configuração do Django App para Ocorrências.
"""

from django.apps import AppConfig


class IssuesConfig(AppConfig):
    """Configuração do app Issues."""

    default_auto_field = 'django.db.models.BigAutoField'
    name = 'src.adapters.django_app.issues'
    label = 'issues'
    verbose_name = 'Ocorrências Cívicas'
