from django.apps import AppConfig


class FilesConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'fieldmanager.files'

    def ready(self):
        import fieldmanager.files.signals  # noqa: F401  # Stored file cleanup
