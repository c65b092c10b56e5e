from django.urls import path
from . import views

urlpatterns = [
    # Technician endpoints
    path('technician-inventory/', views.my_inventory, name='technician-inventory'),
    path('technician-inventory/<int:pk>/', views.inventory_item, name='technician-inventory-item'),
    path('technician-inventory/<int:pk>/transactions/', views.inventory_transactions, name='technician-inventory-transactions'),
    path('daily-inventory-verification/', views.daily_verification, name='daily-inventory-verification'),

    # Parts & supplies
    path('parts-supplies/', views.part_list_create, name='part-list-create'),
    path('parts-supplies/<int:pk>/', views.part_detail, name='part-detail'),

    # Admin endpoints
    path('admin/technician-inventory/', views.admin_inventory_list_create, name='admin-technician-inventory'),
    path('admin/technician-inventory/bulk-assign/', views.admin_bulk_assign, name='admin-technician-inventory-bulk-assign'),
    path('admin/technician-inventory/<int:pk>/', views.admin_inventory_detail, name='admin-technician-inventory-detail'),
    path('admin/daily-inventory-verifications/', views.admin_verification_list, name='admin-daily-inventory-verifications'),
    path('admin/daily-inventory-summary/', views.admin_verification_summary, name='admin-daily-inventory-summary'),
]
