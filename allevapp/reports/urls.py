from django.urls import path
from .views import report_list_create, report_detail, report_quotes, dashboard

urlpatterns = [
    # Report endpoints
    path('reports/', report_list_create, name='report-list-create'),
    path('reports/<int:pk>/', report_detail, name='report-detail'),
    path('reports/<int:pk>/quotes/', report_quotes, name='report-quotes'),

    # Dashboard
    path('dashboard/', dashboard, name='dashboard'),
]
