"""
Configuração do projeto CivicConnect.

Módulos:
- settings / test_settings: Configurações Django
- urls: Rotas HTTP
- asgi / wsgi: Entrypoints (WebSocket só no ASGI)
- celery: Configuração Celery para tarefas assíncronas
- container: Dependency Injection Container
"""

# Importar app Celery para que seja carregado com Django
from .celery import app as celery_app

__all__ = ('celery_app',)
