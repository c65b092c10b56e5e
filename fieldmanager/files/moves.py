"""
Single-slot undo buffer for file moves.

Each user keeps one slot holding their latest move. A new move overwrites
the slot; the slot expires after ``FILE_MOVE_UNDO_SECONDS``.
"""
import logging

from django.conf import settings
from django.core.cache import cache
from django.utils import timezone

logger = logging.getLogger('fieldmanager.files')


def undo_slot_key(user_id):
    return f"files:last_move:{user_id}"


def remember_move(user, file_id, previous_folder_id):
    slot = {
        'file_id': file_id,
        'previous_folder_id': previous_folder_id,
        'moved_at': timezone.now().timestamp(),
    }
    cache.set(undo_slot_key(user.id), slot, settings.FILE_MOVE_UNDO_SECONDS)
    return slot


def take_undo_slot(user, file_id):
    """
    Return the stored move for ``file_id`` and clear the slot.

    Returns None when there is nothing to undo: no slot, the window has
    passed, or the slot belongs to a different file.
    """
    key = undo_slot_key(user.id)
    slot = cache.get(key)
    if not slot:
        return None
    if timezone.now().timestamp() - slot['moved_at'] > settings.FILE_MOVE_UNDO_SECONDS:
        cache.delete(key)
        return None
    if slot['file_id'] != file_id:
        return None
    cache.delete(key)
    return slot
