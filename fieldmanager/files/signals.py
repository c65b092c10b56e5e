"""Remove stored blobs when file records go away"""
import logging

from django.db.models.signals import post_delete
from django.dispatch import receiver

from .models import FileItem

logger = logging.getLogger('fieldmanager.files')


@receiver(post_delete, sender=FileItem)
def delete_stored_file(sender, instance, **kwargs):
    if not instance.file:
        return
    try:
        instance.file.delete(save=False)
    except Exception as e:
        logger.warning(f"Could not delete stored file {instance.file.name}: {e}")
