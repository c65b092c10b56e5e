from django.urls import path
from . import views

urlpatterns = [
    path('customers/', views.customer_list_create, name='customer-list-create'),
    path('customers/<int:pk>/', views.customer_detail, name='customer-detail'),
    path('leads/', views.lead_list_create, name='lead-list-create'),
    path('leads/<int:pk>/', views.lead_detail, name='lead-detail'),
    path('invoices/', views.invoice_list_create, name='invoice-list-create'),
    path('invoices/<int:pk>/', views.invoice_detail, name='invoice-detail'),
    path('invoices/<int:pk>/mark-paid/', views.invoice_mark_paid, name='invoice-mark-paid'),
]
