"""
Business analytics.

Aggregations over payment transactions and appointments for the dashboard.
All functions are pure and operate on plain records, so they can be fed from
any query.
"""

from collections import Counter
from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, Optional

from salon_backend.models.appointment import (
    APPOINTMENT_STATUSES,
    STATUS_CANCELLED,
    STATUS_COMPLETED,
    STATUS_CONFIRMED,
    STATUS_NO_SHOW,
)

UNKNOWN_SERVICE = 'Unknown Service'


@dataclass(frozen=True)
class TransactionRecord:
    amount: float
    status: str
    transaction_type: str
    created_at: datetime
    service_name: Optional[str] = None


@dataclass(frozen=True)
class AppointmentRecord:
    status: str
    start_time: datetime
    deposit_required: bool = False
    deposit_paid: bool = False


def _percentage(part: float, whole: float) -> float:
    return (part / whole) * 100 if whole > 0 else 0.0


def _month_start(value: date) -> date:
    return date(value.year, value.month, 1)


def _next_month(value: date) -> date:
    if value.month == 12:
        return date(value.year + 1, 1, 1)
    return date(value.year, value.month + 1, 1)


def _previous_month(value: date) -> date:
    if value.month == 1:
        return date(value.year - 1, 12, 1)
    return date(value.year, value.month - 1, 1)


def payment_metrics(transactions: Iterable[TransactionRecord]) -> dict:
    transactions = list(transactions)
    successful = [t for t in transactions if t.status == 'success']
    total_revenue = sum(t.amount for t in successful)

    return {
        'total_revenue': total_revenue,
        'total_transactions': len(successful),
        'average_transaction': total_revenue / len(successful) if successful else 0.0,
        'success_rate': _percentage(len(successful), len(transactions)),
        'deposit_revenue': sum(t.amount for t in successful if t.transaction_type == 'deposit'),
        'full_payment_revenue': sum(t.amount for t in successful if t.transaction_type == 'full_payment'),
        'refunded_amount': sum(t.amount for t in transactions if t.status == 'refunded'),
        'pending_amount': sum(t.amount for t in transactions if t.status == 'pending'),
    }


def monthly_trends(transactions: Iterable[TransactionRecord], start_date: date, end_date: date) -> list[dict]:
    """One bucket of successful transactions per calendar month between the two dates."""
    successful = [t for t in transactions if t.status == 'success']
    buckets = []
    month = _month_start(start_date)

    while month <= end_date:
        following = _next_month(month)
        in_month = [t for t in successful if month <= t.created_at.date() < following]
        buckets.append({
            'month': month.strftime('%b %Y'),
            'revenue': sum(t.amount for t in in_month),
            'transactions': len(in_month),
            'deposits': sum(1 for t in in_month if t.transaction_type == 'deposit'),
            'full_payments': sum(1 for t in in_month if t.transaction_type == 'full_payment'),
        })
        month = following

    return buckets


def service_breakdown(transactions: Iterable[TransactionRecord]) -> list[dict]:
    successful = [t for t in transactions if t.status == 'success']
    total_revenue = sum(t.amount for t in successful)

    revenue: dict[str, float] = {}
    counts: Counter = Counter()
    for transaction in successful:
        name = transaction.service_name or UNKNOWN_SERVICE
        revenue[name] = revenue.get(name, 0.0) + transaction.amount
        counts[name] += 1

    rows = [
        {
            'service_name': name,
            'revenue': amount,
            'transactions': counts[name],
            'percentage': _percentage(amount, total_revenue),
        }
        for name, amount in revenue.items()
    ]
    return sorted(rows, key=lambda row: row['revenue'], reverse=True)


def deposit_analytics(
    deposits: Iterable[TransactionRecord],
    appointments: Iterable[AppointmentRecord],
    now: datetime,
) -> dict:
    deposits = list(deposits)
    appointments = list(appointments)
    successful = [d for d in deposits if d.status == 'success']
    total_collected = sum(d.amount for d in successful)

    this_month = _month_start(now.date())
    last_month = _previous_month(this_month)
    this_month_count = sum(1 for d in successful if d.created_at.date() >= this_month)
    last_month_count = sum(1 for d in successful if last_month <= d.created_at.date() < this_month)

    required = [a for a in appointments if a.deposit_required]
    paid = [a for a in required if a.deposit_paid]

    return {
        'total_deposits_collected': total_collected,
        'average_deposit_amount': total_collected / len(successful) if successful else 0.0,
        'deposit_conversion_rate': _percentage(len(paid), len(required)),
        'monthly_deposit_trend': (
            _percentage(this_month_count - last_month_count, last_month_count)
            if last_month_count
            else 0.0
        ),
        'cancelled_appointments': sum(1 for a in appointments if a.status == STATUS_CANCELLED),
        'refunded_deposits': sum(1 for d in deposits if d.status == 'refunded'),
    }


def appointment_stats(appointments: Iterable[AppointmentRecord], now: datetime) -> dict:
    appointments = list(appointments)
    by_status = {status: 0 for status in APPOINTMENT_STATUSES}
    for appointment in appointments:
        by_status[appointment.status] = by_status.get(appointment.status, 0) + 1

    # Only appointments that left the confirmed state have an outcome.
    settled = by_status[STATUS_COMPLETED] + by_status[STATUS_CANCELLED] + by_status[STATUS_NO_SHOW]

    return {
        'total_appointments': len(appointments),
        'by_status': by_status,
        'upcoming_appointments': sum(
            1 for a in appointments if a.status == STATUS_CONFIRMED and a.start_time > now
        ),
        'completion_rate': _percentage(by_status[STATUS_COMPLETED], settled),
    }
