from django.urls import path
from . import views

urlpatterns = [
    path('reports/data/', views.report_data, name='report-data'),
    path('reports/expenses-by-category/', views.expenses_by_category, name='report-expenses-by-category'),
    path('reports/jobs/', views.job_report, name='report-jobs'),
    path('reports/fleet/', views.fleet_report, name='report-fleet'),
    path('reports/inventory/', views.inventory_report, name='report-inventory'),
]
