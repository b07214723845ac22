"""
URL Configuration para CivicConnect.

Estrutura:
- /admin/ - Django Admin
- /api/issues/ - API pública de ocorrências
- /api/admin/issues/ - API administrativa (status, atribuição, prioridade)
- /health/ - Health check

WebSocket (/ws/) é roteado no ASGI, ver src/config/asgi.py.
"""

from django.contrib import admin
from django.http import JsonResponse
from django.urls import path, include

from src.adapters.django_app.issues.urls import admin_urlpatterns


def health(request):
    return JsonResponse({'status': 'ok'})


urlpatterns = [
    # Django Admin
    path('admin/', admin.site.urls),

    # Ocorrências
    path('api/issues/', include('src.adapters.django_app.issues.urls')),
    path(
        'api/admin/issues/',
        include((admin_urlpatterns, 'issues_admin'), namespace='issues_admin'),
    ),

    path('health/', health, name='health'),
]
