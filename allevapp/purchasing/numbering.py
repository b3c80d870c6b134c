"""
Per-company sequential numbering for orders and projects

Numbers look like ZG-2026-0007 (orders) or ZG-PRJ-2026-0003 (projects).
Sequences are monotonic per company and scope and never reset.
"""
import logging
import re

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from .models import OrderSequence

logger = logging.getLogger('allevapp.purchasing')

# Legal-form and filler words skipped when deriving a prefix from a company name
IGNORED_PREFIX_WORDS = {'spa', 'srl', 'snc', 'sas', 'soc', 'so', 'agr', 'societa', 'agricola'}
DEFAULT_PREFIX = 'ORD'
PROJECT_MARKER = 'PRJ'


def get_company_prefix(company):
    """
    Order number prefix for a company.

    Uses ALLEVAPP_COMPANY_PREFIXES first, then the initials of the significant
    words of the company name (e.g. 'Allevamenti Rossi Srl' -> 'AR').
    """
    prefixes = getattr(settings, 'ALLEVAPP_COMPANY_PREFIXES', {})
    if company in prefixes:
        return prefixes[company]

    words = [w for w in re.split(r'[\s.,\-]+', company or '') if w]
    initials = [w[0].upper() for w in words if w.lower() not in IGNORED_PREFIX_WORDS and w[0].isalnum()]
    return ''.join(initials) or DEFAULT_PREFIX


def generate_order_number(company, sequential_number, scope=OrderSequence.SCOPE_ORDER, on_date=None):
    """Format a sequential number as an order (or project) number"""
    on_date = on_date or timezone.localdate()
    prefix = get_company_prefix(company)
    if scope == OrderSequence.SCOPE_PROJECT:
        return f"{prefix}-{PROJECT_MARKER}-{on_date.year}-{sequential_number:04d}"
    return f"{prefix}-{on_date.year}-{sequential_number:04d}"


def get_next_order_number(company, scope=OrderSequence.SCOPE_ORDER):
    """
    Allocate the next sequential number for a company.

    The sequence row is locked with select_for_update until the enclosing
    transaction ends, so concurrent allocations for the same company
    serialize. Call it inside the caller's transaction.atomic() block so a
    later failure rolls the increment back too.
    """
    with transaction.atomic():
        sequence, created = OrderSequence.objects.select_for_update().get_or_create(
            company=company, scope=scope
        )
        sequence.last_number += 1
        sequence.save(update_fields=['last_number', 'updated_at'])

    if created:
        logger.info(f"Started {scope} sequence for company '{company}'")
    return sequence.last_number


def peek_next_order_number(company, scope=OrderSequence.SCOPE_ORDER, on_date=None):
    """
    Number the next allocation would produce, without consuming it.

    Takes no lock: a concurrent acceptance may claim it first.
    """
    sequence = OrderSequence.objects.filter(company=company, scope=scope).first()
    next_number = (sequence.last_number if sequence else 0) + 1
    return {
        'company': company,
        'sequential_number': next_number,
        'order_number': generate_order_number(company, next_number, scope=scope, on_date=on_date),
    }
