from django.urls import path
from . import views

urlpatterns = [
    # Vehicle endpoints
    path('vehicles/', views.vehicle_list_create, name='vehicle-list-create'),
    path('vehicles/<int:pk>/', views.vehicle_detail, name='vehicle-detail'),
    path('vehicles/<int:pk>/maintenance/', views.vehicle_maintenance, name='vehicle-maintenance'),

    # Maintenance endpoints
    path('maintenance-intervals/<int:pk>/', views.maintenance_interval_detail, name='maintenance-interval-detail'),
    path('maintenance-intervals/<int:pk>/complete/', views.maintenance_interval_complete, name='maintenance-interval-complete'),
    path('maintenance-intervals/<int:pk>/records/', views.maintenance_interval_records, name='maintenance-interval-records'),
    path('maintenance/due/', views.maintenance_due, name='maintenance-due'),

    # GPS settings
    path('gps-settings/', views.gps_settings, name='gps-settings'),
]
