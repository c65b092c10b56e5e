"""
WSGI config for the Pro Field Manager API.

It exposes the WSGI callable as a module-level variable named ``application``.
"""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'fieldmanager.config.settings')

application = get_wsgi_application()
