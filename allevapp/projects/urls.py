from django.urls import path
from .views import project_list_create, project_detail, project_quotes

urlpatterns = [
    # Project endpoints
    path('projects/', project_list_create, name='project-list-create'),
    path('projects/<int:pk>/', project_detail, name='project-detail'),
    path('projects/<int:pk>/quotes/', project_quotes, name='project-quotes'),
]
