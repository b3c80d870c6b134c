"""
URL configuration for the AllevApp backend.

Every app mounts its endpoints under ``api/v1/``.
"""
from django.contrib import admin
from django.urls import path, include

admin.site.site_header = "AllevApp Admin Panel"
admin.site.site_title = "AllevApp Admin Portal"
admin.site.index_title = "Gestione Allevamenti"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v1/', include('allevapp.core.urls')),
    path('api/v1/', include('allevapp.farms.urls')),
    path('api/v1/', include('allevapp.parties.urls')),
    path('api/v1/', include('allevapp.reports.urls')),
    path('api/v1/', include('allevapp.projects.urls')),
    path('api/v1/', include('allevapp.quotes.urls')),
    path('api/v1/', include('allevapp.purchasing.urls')),
    path('api/v1/', include('allevapp.integrations.urls')),
]
