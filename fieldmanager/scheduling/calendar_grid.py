"""
Calendar day grids.

Weeks start on Sunday. Each view mode yields a list of whole weeks:

- ``1week``: the week containing the anchor date
- ``2weeks``: that week and the next one
- ``1month``: six weeks starting with the week of the 1st of the month
- ``3months``: the weeks covering the previous, the anchor and the next month
"""
from datetime import timedelta

from dateutil.relativedelta import relativedelta

WEEK = '1week'
TWO_WEEKS = '2weeks'
MONTH = '1month'
THREE_MONTHS = '3months'

VIEW_MODES = (WEEK, TWO_WEEKS, MONTH, THREE_MONTHS)

MONTH_GRID_DAYS = 42


class InvalidViewMode(ValueError):
    pass


def _check_view(view):
    if view not in VIEW_MODES:
        raise InvalidViewMode(f"Unknown calendar view '{view}', expected one of {', '.join(VIEW_MODES)}")


def start_of_week(day):
    """Sunday on or before ``day``"""
    return day - timedelta(days=(day.weekday() + 1) % 7)


def _month_index(day):
    return day.year * 12 + day.month


def view_days(view, anchor):
    """Dates shown by a view, first to last"""
    _check_view(view)

    if view == WEEK:
        start = start_of_week(anchor)
        return [start + timedelta(days=i) for i in range(7)]

    if view == TWO_WEEKS:
        start = start_of_week(anchor)
        return [start + timedelta(days=i) for i in range(14)]

    if view == MONTH:
        start = start_of_week(anchor.replace(day=1))
        return [start + timedelta(days=i) for i in range(MONTH_GRID_DAYS)]

    first_month = anchor.replace(day=1) - relativedelta(months=1)
    last_day = anchor.replace(day=1) + relativedelta(months=2) - timedelta(days=1)
    day = start_of_week(first_month)
    days = []
    while day <= last_day or len(days) % 7 != 0:
        days.append(day)
        day += timedelta(days=1)
    return days


def is_current_period(view, anchor, day):
    """Whether ``day`` belongs to the period the view is about (others are padding)"""
    _check_view(view)
    if view in (WEEK, TWO_WEEKS):
        return True
    if view == MONTH:
        return _month_index(day) == _month_index(anchor)
    return abs(_month_index(day) - _month_index(anchor)) <= 1


def navigate(view, anchor, direction):
    """Anchor date of the previous (direction=-1) or next (direction=1) period"""
    _check_view(view)
    if direction not in (-1, 1):
        raise ValueError('direction must be -1 or 1')
    if view == WEEK:
        return anchor + timedelta(days=7 * direction)
    if view == TWO_WEEKS:
        return anchor + timedelta(days=14 * direction)
    if view == MONTH:
        return anchor + relativedelta(months=direction)
    return anchor + relativedelta(months=3 * direction)


def view_title(view, anchor):
    """Human readable heading, e.g. 'Mar 3 - Mar 9, 2024' or 'March 2024'"""
    _check_view(view)
    if view in (WEEK, TWO_WEEKS):
        days = view_days(view, anchor)
        start, end = days[0], days[-1]
        return f"{start:%b} {start.day} - {end:%b} {end.day}, {end.year}"
    if view == MONTH:
        return f"{anchor:%B %Y}"
    previous_month = anchor - relativedelta(months=1)
    next_month = anchor + relativedelta(months=1)
    return f"{previous_month:%b} - {next_month:%b %Y}"


def assign_jobs_to_days(days, jobs, span):
    """
    Map each day to the jobs whose date range intersects it.

    ``span(job)`` returns the job's (start_date, end_date) as dates; jobs
    without an end date occupy their start day only.
    """
    by_day = {day: [] for day in days}
    if not days:
        return by_day
    first, last = days[0], days[-1]
    for job in jobs:
        job_start, job_end = span(job)
        if job_end is None or job_end < job_start:
            job_end = job_start
        day = max(job_start, first)
        stop = min(job_end, last)
        while day <= stop:
            by_day[day].append(job)
            day += timedelta(days=1)
    return by_day
