"""Progress bookkeeping for help center tutorials."""
from decimal import Decimal, ROUND_HALF_UP

from django.db import transaction
from django.db.models import Avg, Count
from django.utils import timezone

from fieldmanager.core.cache_utils import invalidate_namespace, TUTORIALS_NAMESPACE

TIME_BASED_CAP = 90


def completion_percentage(status, tutorial_type, completed_steps, current_step, time_spent, estimated_time):
    """
    How far along a user is, 0-100.

    Interactive tutorials are measured by steps. Other tutorials are measured
    by time spent against the estimate and never reach 100 until completed.
    """
    if status == 'completed':
        return 100
    if status == 'not_started':
        return 0
    if tutorial_type == 'interactive':
        completed_steps = completed_steps or []
        total_steps = len(completed_steps) + (current_step or 0)
        return round(len(completed_steps) / total_steps * 100) if total_steps else 0
    estimated_seconds = (estimated_time or 0) * 60
    if not estimated_seconds:
        return 0
    return round(min(time_spent / estimated_seconds * 100, TIME_BASED_CAP))


def progress_percentage(progress):
    tutorial = progress.tutorial
    return completion_percentage(progress.status, tutorial.type, progress.completed_steps, progress.current_step,
                                 progress.time_spent, tutorial.estimated_time)


def start_tutorial(user, tutorial):
    """Progress record for the pair, moved to in_progress; returns (progress, created)"""
    from .models import TutorialProgress

    progress, created = TutorialProgress.objects.get_or_create(user=user, tutorial=tutorial)
    if progress.status == 'not_started':
        progress.status = 'in_progress'
        progress.started_at = timezone.now()
        progress.save(update_fields=['status', 'started_at', 'updated_at'])
    return progress, created


def apply_progress_update(progress, data):
    """
    Apply a progress PATCH.

    ``step_completed`` adds a step to ``completed_steps``, ``time_spent`` is
    added to the running total and ``completed`` finishes the tutorial.
    """
    step = data.get('step_completed')
    if step is not None and step not in progress.completed_steps:
        progress.completed_steps = [*progress.completed_steps, step]
    if data.get('current_step') is not None:
        progress.current_step = data['current_step']
    if data.get('time_spent'):
        progress.time_spent += data['time_spent']
    if progress.status == 'not_started' and (step is not None or data.get('time_spent')):
        progress.status = 'in_progress'
        progress.started_at = progress.started_at or timezone.now()
    if data.get('completed'):
        progress.status = 'completed'
        progress.completed_at = timezone.now()
        progress.started_at = progress.started_at or progress.completed_at
    if 'rating' in data:
        progress.rating = data['rating']
    if 'feedback' in data:
        progress.feedback = data['feedback']
    progress.save()
    if 'rating' in data:
        refresh_rating(progress.tutorial)
    return progress


def refresh_rating(tutorial):
    """Recompute a tutorial's average rating and rating count from its progress records"""
    with transaction.atomic():
        stats = tutorial.progress.filter(rating__isnull=False).aggregate(average=Avg('rating'), total=Count('id'))
        average = Decimal(str(stats['average'] or 0)).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)
        type(tutorial).objects.filter(pk=tutorial.pk).update(average_rating=average, total_ratings=stats['total'])
    invalidate_namespace(TUTORIALS_NAMESPACE)
    tutorial.average_rating = average
    tutorial.total_ratings = stats['total']
    return average, stats['total']
