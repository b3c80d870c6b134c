"""Maintenance due-date rules shared by equipment, facilities and the daily summary"""
from datetime import timedelta

from django.utils import timezone

DUE_SOON_DAYS = 7


def is_maintenance_overdue(due_date, today=None):
    if not due_date:
        return False
    today = today or timezone.localdate()
    return due_date < today


def is_maintenance_due_soon(due_date, today=None):
    """Due today or within the next DUE_SOON_DAYS days"""
    if not due_date:
        return False
    today = today or timezone.localdate()
    return 0 <= (due_date - today).days <= DUE_SOON_DAYS


def due_soon_window(today=None):
    today = today or timezone.localdate()
    return today, today + timedelta(days=DUE_SOON_DAYS)


def days_overdue(due_date, today=None):
    today = today or timezone.localdate()
    return (today - due_date).days


def days_until_due(due_date, today=None):
    today = today or timezone.localdate()
    return (due_date - today).days
