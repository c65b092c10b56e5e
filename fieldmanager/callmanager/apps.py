from django.apps import AppConfig


class CallmanagerConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'fieldmanager.callmanager'
