"""
URL patterns para o domínio de Ocorrências.

Incluído duas vezes em src/config/urls.py: rotas públicas sob
/api/issues/ e rotas administrativas sob /api/admin/issues/.
"""

from django.urls import path

from . import api_views

app_name = 'issues'

urlpatterns = [
    path('', api_views.IssueAPICreateView.as_view(), name='create'),

    # Protocolo (antes do <pk> para não conflitar)
    path('ticket/<str:ticket_no>/', api_views.IssueAPITicketView.as_view(), name='by_ticket'),

    path('<str:pk>/', api_views.IssueAPIDetailView.as_view(), name='detail'),
    path('<str:pk>/events/', api_views.IssueAPIEventsView.as_view(), name='events'),
    path('<str:pk>/comments/', api_views.IssueAPICommentView.as_view(), name='comments'),
]

admin_urlpatterns = [
    path('<str:pk>/status/', api_views.IssueAPIStatusView.as_view(), name='status'),
    path('<str:pk>/assign/', api_views.IssueAPIAssignView.as_view(), name='assign'),
    path('<str:pk>/priority/', api_views.IssueAPIPriorityView.as_view(), name='priority'),
]
