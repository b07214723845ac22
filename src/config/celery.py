"""
Configuração do Celery para processamento assíncrono.

O Celery é usado para:
- Processar Domain Events de ocorrências depois do commit
- E-mails para o cidadão (mudança de status) e para o responsável
  (nova atribuição)

A entrega push via WebSocket NÃO passa pelo Celery: o registro de
conexões vive no processo ASGI.

Arquitetura:
- Broker: RabbitMQ (mensagens entre Django e Workers)
- Backend: Redis (resultados de tarefas)

Uso:
    celery -A src.config.celery worker -l INFO -Q default,events,notifications
"""

import os
from celery import Celery
from kombu import Queue, Exchange

# Definir módulo de settings do Django
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'src.config.settings')

# Criar aplicação Celery
app = Celery('civicconnect')

# Broker, backend e serialização vêm das settings (prefixo CELERY_)
app.config_from_object('django.conf:settings', namespace='CELERY')

app.conf.update(
    timezone='America/Sao_Paulo',
    enable_utc=True,

    # Monitoramento
    worker_send_task_events=True,
    task_send_sent_event=True,
)

# Definir filas
app.conf.task_queues = (
    Queue('default', Exchange('default'), routing_key='default'),
    Queue('events', Exchange('events'), routing_key='events.#'),
    Queue('notifications', Exchange('notifications'), routing_key='notifications.#'),
)
app.conf.task_default_queue = 'default'

# Roteamento de tarefas para filas
app.conf.task_routes = {
    'src.adapters.django_app.events.handlers.send_issue_email': {'queue': 'notifications'},
    'src.adapters.django_app.events.handlers.*': {'queue': 'events'},
}

# Handlers de eventos não ficam em tasks.py; importar explicitamente
app.conf.imports = ('src.adapters.django_app.events.handlers',)
