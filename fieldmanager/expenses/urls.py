from django.urls import path
from . import views

urlpatterns = [
    path('expense-categories/', views.expense_category_list_create, name='expense-category-list-create'),
    path('expense-categories/<int:pk>/', views.expense_category_detail, name='expense-category-detail'),
    path('expenses/', views.expense_list_create, name='expense-list-create'),
    path('expenses/<int:pk>/', views.expense_detail, name='expense-detail'),
    path('expenses/<int:pk>/approve/', views.expense_approve, name='expense-approve'),
    path('expenses/<int:pk>/reject/', views.expense_reject, name='expense-reject'),
]
