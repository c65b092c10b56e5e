from django.apps import AppConfig


class TechinventoryConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'fieldmanager.techinventory'
