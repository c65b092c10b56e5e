from django.urls import path
from . import views

urlpatterns = [
    path('tutorials/', views.tutorial_list_create, name='tutorial-list-create'),
    path('tutorials/<int:pk>/', views.tutorial_detail, name='tutorial-detail'),
    path('tutorial-categories/', views.tutorial_category_list, name='tutorial-category-list'),
    path('tutorial-progress/', views.tutorial_progress_list, name='tutorial-progress-list'),
    path('tutorial-progress/start/', views.tutorial_progress_start, name='tutorial-progress-start'),
    path('tutorial-progress/<int:pk>/', views.tutorial_progress_detail, name='tutorial-progress-detail'),
    path('tutorial-stats/', views.tutorial_stats, name='tutorial-stats'),
]
