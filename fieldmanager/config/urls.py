"""
URL configuration for the Pro Field Manager API.

Every app mounts its routes under ``/api/v1/``. Uploaded files are not served
from MEDIA_ROOT; they are only reachable through the file download and share
endpoints.
"""
from django.contrib import admin
from django.urls import path, include, re_path
from django.conf import settings
from django.views.static import serve

admin.site.site_header = "Pro Field Manager Admin Panel"
admin.site.site_title = "Pro Field Manager Admin Portal"
admin.site.index_title = "Welcome to Pro Field Manager"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v1/', include('fieldmanager.core.urls')),
    path('api/v1/', include('fieldmanager.crm.urls')),
    path('api/v1/', include('fieldmanager.fleet.urls')),
    path('api/v1/', include('fieldmanager.expenses.urls')),
    path('api/v1/', include('fieldmanager.scheduling.urls')),
    path('api/v1/', include('fieldmanager.files.urls')),
    path('api/v1/', include('fieldmanager.marketing.urls')),
    path('api/v1/', include('fieldmanager.reports.urls')),
    path('api/v1/', include('fieldmanager.callmanager.urls')),
    path('api/v1/', include('fieldmanager.techinventory.urls')),
    path('api/v1/', include('fieldmanager.tutorials.urls')),
    re_path(r'^static/(?P<path>.*)$', serve, {'document_root': settings.STATIC_ROOT}),
]
