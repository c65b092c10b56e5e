from django.urls import path
from . import views

urlpatterns = [
    # File endpoints
    path('files/', views.file_list, name='file-list'),
    path('files/upload/', views.file_upload, name='file-upload'),
    path('files/create-text/', views.file_create_text, name='file-create-text'),
    path('files/<int:pk>/', views.file_detail, name='file-detail'),
    path('files/<int:pk>/content/', views.file_content, name='file-content'),
    path('files/<int:pk>/download/', views.file_download, name='file-download'),
    path('files/<int:pk>/move/', views.file_move, name='file-move'),
    path('files/<int:pk>/undo-move/', views.file_undo_move, name='file-undo-move'),
    path('files/<int:pk>/share/', views.file_share, name='file-share'),
    path('files/<int:pk>/sign/', views.file_sign, name='file-sign'),
    path('files/<int:pk>/request-signature/', views.file_request_signature, name='file-request-signature'),
    path('shared/<str:token>/', views.shared_file, name='shared-file'),

    # Folder endpoints
    path('folders/', views.folder_list_create, name='folder-list-create'),
    path('folders/<int:pk>/', views.folder_detail, name='folder-detail'),
    path('folders/<int:pk>/permissions/', views.folder_permission_list_create, name='folder-permission-list-create'),
    path('folders/<int:pk>/effective-permissions/', views.folder_effective_permissions, name='folder-effective-permissions'),
    path('folder-permissions/<int:pk>/', views.folder_permission_detail, name='folder-permission-detail'),
]
