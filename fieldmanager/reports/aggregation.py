"""
Month bucket aggregation for the report charts.

Every function takes plain rows (dicts, as returned by ``QuerySet.values()``)
and returns month buckets oldest first, keeping only the last 12 months that
have data.
"""
from collections import Counter
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP

from dateutil.relativedelta import relativedelta
from django.utils import timezone

MAX_MONTHS = 12

TIME_RANGES = {
    '3months': 3,
    '6months': 6,
    '12months': 12,
}
DEFAULT_TIME_RANGE = '12months'

JOB_DONE_STATUSES = ('completed', 'converted')


class InvalidTimeRange(ValueError):
    pass


def month_key(value):
    """'YYYY-MM' for a date or datetime"""
    return f"{value:%Y-%m}"


def month_label(value):
    """'Mon YYYY' for a date or datetime"""
    return f"{value:%b %Y}"


def percent(part, whole):
    """Whole-number percentage, halves rounded up; 0 when there is no whole"""
    if not whole:
        return 0
    value = Decimal(part) * 100 / Decimal(whole)
    return int(value.quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def to_float(value):
    return float(Decimal(value or 0).quantize(Decimal('0.01')))


def range_start(time_range, today):
    """First day of the oldest month a time range covers"""
    if time_range not in TIME_RANGES:
        raise InvalidTimeRange(f"Unknown time range '{time_range}', expected one of {', '.join(TIME_RANGES)}")
    return today.replace(day=1) - relativedelta(months=TIME_RANGES[time_range] - 1)


def _as_date(value):
    if isinstance(value, datetime):
        if timezone.is_aware(value):
            value = timezone.localtime(value)
        return value.date()
    return value


def group_by_month(rows, date_field, empty, add):
    buckets = {}
    for row in rows:
        when = _as_date(row.get(date_field))
        if when is None:
            continue
        key = month_key(when)
        if key not in buckets:
            buckets[key] = {'month': key, 'label': month_label(when), **empty()}
        add(buckets[key], row)
    ordered = [buckets[key] for key in sorted(buckets)]
    return ordered[-MAX_MONTHS:]


def count_by_month(rows, date_field):
    def add(bucket, row):
        bucket['count'] += 1

    return group_by_month(rows, date_field, lambda: {'count': 0}, add)


def revenue_by_month(invoices, date_field='created_at'):
    """Paid invoices add to revenue, refunded invoices to refunds"""
    def add(bucket, row):
        amount = Decimal(row.get('total') or 0)
        if row.get('status') == 'paid':
            bucket['revenue'] += amount
            bucket['count'] += 1
        elif row.get('status') == 'refunded':
            bucket['refunds'] += amount

    months = group_by_month(
        invoices, date_field,
        lambda: {'revenue': Decimal('0'), 'refunds': Decimal('0'), 'count': 0},
        add,
    )
    for bucket in months:
        bucket['revenue'] = to_float(bucket['revenue'])
        bucket['refunds'] = to_float(bucket['refunds'])
    return months


def leads_by_month(leads, date_field='created_at'):
    def add(bucket, row):
        bucket['total'] += 1
        if row.get('status') in ('converted', 'lost', 'qualified'):
            bucket[row['status']] += 1

    return group_by_month(
        leads, date_field,
        lambda: {'total': 0, 'converted': 0, 'lost': 0, 'qualified': 0},
        add,
    )


def expenses_by_month(expenses, date_field='expense_date'):
    def add(bucket, row):
        bucket['amount'] += Decimal(row.get('amount') or 0)
        bucket['count'] += 1

    months = group_by_month(expenses, date_field, lambda: {'amount': Decimal('0'), 'count': 0}, add)
    for bucket in months:
        bucket['amount'] = to_float(bucket['amount'])
    return months


def close_rate_by_month(leads, date_field='created_at'):
    """Share of each month's leads that converted"""
    def add(bucket, row):
        bucket['total'] += 1
        if row.get('status') == 'converted':
            bucket['closed'] += 1

    months = group_by_month(leads, date_field, lambda: {'total': 0, 'closed': 0, 'rate': 0}, add)
    for bucket in months:
        bucket['rate'] = percent(bucket['closed'], bucket['total'])
    return months


def lead_sources(leads):
    """Lead count per source, most common first"""
    counts = Counter((row.get('source') or '').strip() or 'Unknown' for row in leads)
    return [{'source': source, 'count': count} for source, count in counts.most_common()]


def job_completion(jobs):
    """Calendar job counts per status; converted jobs count as done"""
    counts = Counter(row.get('status') for row in jobs)
    total = sum(counts.values())
    done = sum(counts.get(job_status, 0) for job_status in JOB_DONE_STATUSES)
    cancelled = counts.get('cancelled', 0)
    return {
        'total': total,
        'by_status': dict(counts),
        'completed': done,
        'cancelled': cancelled,
        'completion_rate': percent(done, total - cancelled),
    }


def totals_by_category(expenses):
    """Expense amount and count per category name, largest first"""
    totals = {}
    for row in expenses:
        name = row.get('category__name') or 'Uncategorized'
        entry = totals.setdefault(name, {
            'category': name,
            'color': row.get('category__color') or '',
            'amount': Decimal('0'),
            'count': 0,
        })
        entry['amount'] += Decimal(row.get('amount') or 0)
        entry['count'] += 1
    grand_total = sum((entry['amount'] for entry in totals.values()), Decimal('0'))
    result = []
    for entry in sorted(totals.values(), key=lambda e: e['amount'], reverse=True):
        result.append({
            **entry,
            'amount': to_float(entry['amount']),
            'percentage': percent(entry['amount'], grand_total),
        })
    return result


def summarize(invoices, leads, expenses, customer_count):
    """Headline metrics for the reports dashboard"""
    revenue = sum((Decimal(r.get('total') or 0) for r in invoices if r.get('status') == 'paid'), Decimal('0'))
    refunds = sum((Decimal(r.get('total') or 0) for r in invoices if r.get('status') == 'refunded'), Decimal('0'))
    expense_total = sum((Decimal(r.get('amount') or 0) for r in expenses), Decimal('0'))
    converted = sum(1 for r in leads if r.get('status') == 'converted')
    return {
        'total_revenue': to_float(revenue),
        'total_refunds': to_float(refunds),
        'net_revenue': to_float(revenue - refunds),
        'total_leads': len(leads),
        'converted_leads': converted,
        'close_rate': percent(converted, len(leads)),
        'total_expenses': to_float(expense_total),
        'total_customers': customer_count,
    }
