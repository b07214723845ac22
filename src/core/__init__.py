"""
Core Domain Layer - O Hexágono.

Este pacote contém a lógica de negócio pura do ciclo de vida de
ocorrências e do fanout de notificações, sem dependências de frameworks.
Características:
- Zero dependências externas (Django, Celery, Channels, etc.)
- 100% testável sem banco de dados
- Agnóstico a infraestrutura
"""
