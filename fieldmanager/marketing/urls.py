from django.urls import path
from . import views

urlpatterns = [
    # Popup management
    path('frontend/popups/', views.popup_list_create, name='popup-list-create'),
    path('frontend/popups/<int:pk>/', views.popup_detail, name='popup-detail'),

    # Public website endpoints
    path('public/popups/', views.public_popup_list, name='public-popup-list'),
    path('public/popups/<int:pk>/impression/', views.popup_impression, name='popup-impression'),
    path('public/popups/<int:pk>/click/', views.popup_click, name='popup-click'),
]
