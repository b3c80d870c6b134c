from django.urls import path
from .views import (
    farm_list_create, farm_detail, farm_barns, barn_detail,
    equipment_list_create, equipment_detail, equipment_record_maintenance,
    facility_list_create, facility_detail, facility_record_maintenance,
    maintenance_calendar
)

urlpatterns = [
    # Farm endpoints
    path('farms/', farm_list_create, name='farm-list-create'),
    path('farms/<int:pk>/', farm_detail, name='farm-detail'),
    path('farms/<int:pk>/barns/', farm_barns, name='farm-barns'),
    path('barns/<int:pk>/', barn_detail, name='barn-detail'),

    # Equipment endpoints
    path('equipment/', equipment_list_create, name='equipment-list-create'),
    path('equipment/<int:pk>/', equipment_detail, name='equipment-detail'),
    path('equipment/<int:pk>/maintenance/', equipment_record_maintenance, name='equipment-record-maintenance'),

    # Facility endpoints
    path('facilities/', facility_list_create, name='facility-list-create'),
    path('facilities/<int:pk>/', facility_detail, name='facility-detail'),
    path('facilities/<int:pk>/maintenance/', facility_record_maintenance, name='facility-record-maintenance'),

    # Maintenance calendar
    path('maintenance/calendar/', maintenance_calendar, name='maintenance-calendar'),
]
