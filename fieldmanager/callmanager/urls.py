from django.urls import path
from . import views

urlpatterns = [
    # SaaS admin
    path('saas-admin/call-manager/organizations/', views.organization_list, name='call-manager-organizations'),
    path('saas-admin/call-manager/phone-numbers/', views.phone_number_list, name='call-manager-phone-numbers'),
    path('saas-admin/call-manager/provision-phone/', views.provision_phone, name='call-manager-provision-phone'),
    path('saas-admin/call-manager/phone-numbers/<int:pk>/', views.phone_number_detail, name='call-manager-phone-number-detail'),
    path('saas-admin/call-manager/phone-numbers/<int:pk>/release/', views.release_phone, name='call-manager-release-phone'),

    # Tenant
    path('call-manager/phone-numbers/', views.organization_phone_numbers, name='organization-phone-numbers'),
]
