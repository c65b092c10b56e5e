"""
Service due calculations for maintenance intervals.

An interval is due by mileage, by time, or both; the most urgent of the two
decides the interval's status.
"""
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional

from dateutil.relativedelta import relativedelta
from django.conf import settings
from django.utils import timezone


class Status(Enum):
    """Maintenance status categories, most urgent first."""

    OVERDUE = 'overdue'
    DUE_SOON = 'due_soon'
    OK = 'ok'
    INACTIVE = 'inactive'
    UNKNOWN = 'unknown'

    @property
    def urgency(self) -> int:
        return _URGENCY[self]


_URGENCY = {
    Status.OVERDUE: 1,
    Status.DUE_SOON: 2,
    Status.OK: 3,
    Status.INACTIVE: 4,
    Status.UNKNOWN: 5,
}


def calc_due_miles(last_miles: Optional[float], interval: Optional[float],
                   start_miles: float = 0) -> Optional[float]:
    """
    Calculate next due mileage.

    - With history: last_miles + interval
    - Without history: start_miles + interval
    """
    if interval is None:
        return None
    if last_miles is not None:
        return last_miles + interval
    return start_miles + interval


def calc_due_date(last_date: Optional[date], interval_months) -> Optional[date]:
    """Calculate next due date: last + interval months, fractions as 30-day months."""
    if interval_months is None or last_date is None:
        return None
    interval_months = float(interval_months)
    months = int(interval_months)
    days = int(round((interval_months - months) * 30))
    return last_date + relativedelta(months=months, days=days)


def check_status(current: float, due: float, soon_threshold: float) -> Status:
    """Determine status by comparing current value to due threshold."""
    if current >= due:
        return Status.OVERDUE
    if current >= due - soon_threshold:
        return Status.DUE_SOON
    return Status.OK


def most_urgent(*statuses: Status) -> Status:
    known = [s for s in statuses if s is not None]
    if not known:
        return Status.UNKNOWN
    return min(known, key=lambda s: s.urgency)


@dataclass
class ServiceDue:
    """Calculated service due information for an interval."""

    status: Status
    due_miles: Optional[float] = None
    due_date: Optional[date] = None
    miles_remaining: Optional[float] = None
    days_remaining: Optional[int] = None

    @property
    def is_due(self) -> bool:
        return self.status in (Status.OVERDUE, Status.DUE_SOON)

    def as_dict(self):
        return {
            'status': self.status.value,
            'is_due': self.is_due,
            'due_miles': self.due_miles,
            'due_date': self.due_date.isoformat() if self.due_date else None,
            'miles_remaining': self.miles_remaining,
            'days_remaining': self.days_remaining,
        }


def calculate_service_due(interval_miles, interval_months, last_service_mileage, last_service_date,
                          current_mileage, today, start_mileage=0, is_active=True,
                          soon_miles=500, soon_days=30) -> ServiceDue:
    """
    Work out when an interval is next due and how urgent it is.

    Time-based intervals without a last service date cannot be scheduled and
    only contribute through mileage.
    """
    if not is_active:
        return ServiceDue(status=Status.INACTIVE)

    miles_status = None
    date_status = None
    miles_remaining = None
    days_remaining = None

    due_miles = calc_due_miles(last_service_mileage, interval_miles, start_mileage or 0)
    if due_miles is not None and current_mileage is not None:
        miles_status = check_status(current_mileage, due_miles, soon_miles)
        miles_remaining = due_miles - current_mileage

    due_date = calc_due_date(last_service_date, interval_months)
    if due_date is not None:
        date_status = check_status(today.toordinal(), due_date.toordinal(), soon_days)
        days_remaining = (due_date - today).days

    return ServiceDue(
        status=most_urgent(miles_status, date_status),
        due_miles=due_miles,
        due_date=due_date,
        miles_remaining=miles_remaining,
        days_remaining=days_remaining,
    )


def evaluate_interval(interval, today=None) -> ServiceDue:
    """Service due for a MaintenanceInterval against its vehicle's mileage"""
    return calculate_service_due(
        interval_miles=interval.interval_miles,
        interval_months=interval.interval_months,
        last_service_mileage=interval.last_service_mileage,
        last_service_date=interval.last_service_date,
        current_mileage=interval.vehicle.current_mileage,
        today=today or timezone.localdate(),
        start_mileage=interval.start_mileage,
        is_active=interval.is_active,
        soon_miles=settings.MAINTENANCE_DUE_SOON_MILES,
        soon_days=settings.MAINTENANCE_DUE_SOON_DAYS,
    )
