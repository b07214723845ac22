#!/usr/bin/env python
"""
Setup rápido para desenvolvimento local.

Este script:
1. Configura Django settings
2. Cria banco de dados SQLite
3. Executa migrations
4. Cria categorias e ocorrências de exemplo (opcional)

Uso:
    python scripts/quick_setup.py
    python scripts/quick_setup.py --with-sample-data
"""

import os
import sys
import argparse

# Adicionar src ao path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


def setup_django(use_postgres: bool = False):
    """Configura Django para uso standalone."""
    os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'src.config.settings')

    # Sem DATABASE_NAME as settings usam SQLite local
    if not use_postgres:
        os.environ['DATABASE_NAME'] = ''

    import django
    django.setup()


def run_migrations():
    """Executa migrations."""
    from django.core.management import call_command
    
    print("📦 Executando migrations...")
    call_command('migrate', verbosity=1)
    print("✅ Migrations concluídas!")


SAMPLE_CATEGORIES = [
    ('cat-roads', 'Vias e buracos', 'dept-works'),
    ('cat-waste', 'Coleta de lixo', 'dept-sanitation'),
    ('cat-lighting', 'Iluminação pública', 'dept-energy'),
    ('cat-other', 'Outros', None),
]

SAMPLE_ISSUES = [
    {
        'title': 'Buraco na Rua das Flores',
        'description': 'Buraco grande em frente ao número 120, carros desviando para a contramão.',
        'category_id': 'cat-roads',
        'priority': 'HIGH',
        'address': 'Rua das Flores, 120',
        'reporter': 'citizen-001',
    },
    {
        'title': 'Lixo acumulado na praça',
        'description': 'A coleta não passa há uma semana e os sacos estão espalhados pela praça.',
        'category_id': 'cat-waste',
        'priority': 'MEDIUM',
        'address': 'Praça Central',
        'reporter': 'citizen-002',
    },
    {
        'title': 'Poste apagado',
        'description': 'Poste da esquina está apagado há três noites, a rua fica totalmente escura.',
        'category_id': 'cat-lighting',
        'priority': 'LOW',
        'address': 'Av. Brasil x Rua 7',
        'reporter': 'citizen-001',
    },
]


def create_sample_data():
    """Cria categorias e ocorrências de exemplo, passando pelo IssueService."""
    from src.adapters.django_app.issues.models import CategoryModel
    from src.config.container import get_container
    from src.core.issues.dtos import CreateIssueInputDTO
    from src.core.issues.entities import Actor, UserRole

    print("🗂️  Criando categorias...")
    for category_id, name, department_id in SAMPLE_CATEGORIES:
        CategoryModel.objects.update_or_create(
            id=category_id,
            defaults={'name': name, 'department_id': department_id},
        )

    container = get_container()
    service = container.issue_service()
    supervisor = Actor(id='supervisor-001', role=UserRole.SUPERVISOR)

    print("📝 Criando ocorrências de exemplo...")
    created = []
    for data in SAMPLE_ISSUES:
        data = dict(data)
        reporter = Actor(id=data.pop('reporter'), role=UserRole.CITIZEN)
        issue = service.create_issue(CreateIssueInputDTO(**data), reporter)
        created.append(issue)
        print(f"   ✓ {issue.ticket_no} {issue.title[:50]}")

    # Avança algumas pelo fluxo
    if len(created) >= 2:
        service.request_transition(created[0].id, supervisor, 'TRIAGED')
        service.assign_issue(created[0].id, 'officer-001', supervisor)

        service.request_transition(created[1].id, supervisor, 'TRIAGED')

    print(f"✅ {len(created)} ocorrências criadas!")


def print_dev_tokens():
    """Tokens de desenvolvimento para testar a API e o WebSocket."""
    from src.config.container import get_container
    from src.core.issues.entities import UserRole

    auth = get_container().auth_service()
    print("\n🔑 Tokens de desenvolvimento (24h):")
    for user_id, role in [
        ('citizen-001', UserRole.CITIZEN),
        ('officer-001', UserRole.OFFICER),
        ('supervisor-001', UserRole.SUPERVISOR),
        ('admin-001', UserRole.ADMIN),
    ]:
        print(f"   {role.value:<10} {user_id}: {auth.issue_token(user_id, role)}")


def check_connection():
    """Verifica conexão com o banco."""
    from django.db import connection
    
    print("🔍 Verificando conexão com o banco...")
    
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
        print("✅ Conexão OK!")
        return True
    except Exception as e:
        print(f"❌ Erro de conexão: {e}")
        return False


def show_info():
    """Mostra informações do setup."""
    from django.conf import settings
    
    print("\n" + "=" * 60)
    print("📊 Informações do Setup")
    print("=" * 60)
    print(f"  Database Engine: {settings.DATABASES['default']['ENGINE']}")
    print(f"  Database Name: {settings.DATABASES['default']['NAME']}")
    print(f"  Debug Mode: {settings.DEBUG}")
    print("=" * 60)
    print("\n🚀 Próximos passos:")
    print("   1. daphne src.config.asgi:application -p 8000")
    print("   2. Acesse: http://localhost:8000/admin/")
    print("   3. WebSocket: ws://localhost:8000/ws/?token=<jwt>")
    print("\n")


def main():
    parser = argparse.ArgumentParser(description='Setup rápido para desenvolvimento')
    parser.add_argument(
        '--with-sample-data',
        action='store_true',
        help='Criar dados de exemplo'
    )
    parser.add_argument(
        '--check-only',
        action='store_true',
        help='Apenas verificar conexão'
    )
    parser.add_argument(
        '--postgres',
        action='store_true',
        help='Usar o PostgreSQL de DATABASE_NAME em vez do SQLite local'
    )
    
    args = parser.parse_args()
    
    print("\n" + "=" * 60)
    print("🔧 CivicConnect - Quick Setup")
    print("=" * 60 + "\n")
    
    # Configurar Django
    setup_django(use_postgres=args.postgres)
    
    if args.check_only:
        check_connection()
        return
    
    # Verificar conexão
    if not check_connection():
        print("\n⚠️  Certifique-se de que o banco de dados está rodando.")
        print("   Sem --postgres o setup usa SQLite local")
        return
    
    # Executar migrations
    run_migrations()
    
    # Criar dados de exemplo
    if args.with_sample_data:
        create_sample_data()
        print_dev_tokens()
    
    # Mostrar informações
    show_info()


if __name__ == '__main__':
    main()
