from django.urls import path
from . import views

urlpatterns = [
    # Calendar endpoints
    path('calendar/', views.calendar_view, name='calendar-view'),
    path('calendar-jobs/', views.calendar_job_list_create, name='calendar-job-list-create'),
    path('calendar-jobs/<int:pk>/', views.calendar_job_detail, name='calendar-job-detail'),
    path('calendar-jobs/<int:pk>/convert-to-job/', views.calendar_job_convert, name='calendar-job-convert'),

    # Project endpoints
    path('projects/', views.project_list_create, name='project-list-create'),
    path('projects/<int:pk>/', views.project_detail, name='project-detail'),
]
