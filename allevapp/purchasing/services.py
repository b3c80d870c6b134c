"""
Quote acceptance workflow

Accepting a quote allocates the company's next order number, records the
order confirmation, marks the quote accepted and rejects the competing quotes,
all inside one transaction.
"""
import logging
from decimal import Decimal

from django.db import transaction
from django.utils import timezone

from allevapp.core.utils import create_audit_log
from allevapp.quotes.models import Quote
from .models import OrderConfirmation
from .numbering import get_next_order_number, generate_order_number

logger = logging.getLogger('allevapp.purchasing')


class QuoteAcceptanceError(Exception):
    """Quote cannot be accepted in its current state"""

    def __init__(self, message):
        super().__init__(message)
        self.message = message


def same_subject_quotes(farm_id, title, exclude_pk=None):
    """Every quote for the same farm and title, optionally without one of them"""
    queryset = Quote.objects.filter(farm_id=farm_id, title=title)
    if exclude_pk is not None:
        queryset = queryset.exclude(pk=exclude_pk)
    return queryset


def competing_quotes(quote):
    """Open quotes with the same farm and title as `quote`"""
    return same_subject_quotes(quote.farm_id, quote.title, exclude_pk=quote.pk).filter(
        status__in=Quote.OPEN_STATUSES
    )


def accept_quote(quote_id, user=None, total_amount=None, delivery_date=None, notes=None,
                 order_date=None, request=None):
    """
    Accept a quote and create its order confirmation.

    Returns (order, rejected_quote_ids). Raises QuoteAcceptanceError when the
    quote is not open, has no farm, or another quote for the same farm and
    title is already accepted. Any other failure rolls the whole acceptance
    back, sequence increment included.
    """
    order_date = order_date or timezone.localdate()

    with transaction.atomic():
        quote = Quote.objects.select_for_update().get(pk=quote_id)

        if quote.status not in Quote.OPEN_STATUSES:
            raise QuoteAcceptanceError(
                f"Quote is already {quote.status}; only requested or received quotes can be accepted"
            )
        if quote.farm_id is None:
            raise QuoteAcceptanceError('Quote has no farm: cannot determine the ordering company')

        # Lock the whole (farm, title) group; at most one of them may hold an order
        siblings = list(
            same_subject_quotes(quote.farm_id, quote.title, exclude_pk=quote.pk).select_for_update()
        )
        accepted = [s for s in siblings if s.status == Quote.STATUS_ACCEPTED]
        if accepted:
            raise QuoteAcceptanceError(
                f"Quote {accepted[0].id} for the same farm and title is already accepted"
            )

        if total_amount is None:
            total_amount = quote.amount if quote.amount is not None else Decimal('0.00')
        if total_amount < 0:
            raise QuoteAcceptanceError('Total amount cannot be negative')

        company = quote.farm.company
        sequential_number = get_next_order_number(company)
        order_number = generate_order_number(company, sequential_number, on_date=order_date)

        order = OrderConfirmation.objects.create(
            quote=quote,
            order_number=order_number,
            company=company,
            sequential_number=sequential_number,
            farm_id=quote.farm_id,
            supplier_id=quote.supplier_id,
            total_amount=total_amount,
            order_date=order_date,
            delivery_date=delivery_date,
            notes=notes,
            created_by=user,
        )

        old_status = quote.status
        quote.status = Quote.STATUS_ACCEPTED
        quote.save(update_fields=['status', 'updated_at'])

        rejected_ids = [s.id for s in siblings if s.status in Quote.OPEN_STATUSES]
        if rejected_ids:
            Quote.objects.filter(pk__in=rejected_ids, status__in=Quote.OPEN_STATUSES).update(
                status=Quote.STATUS_REJECTED, updated_at=timezone.now()
            )

    logger.info(
        f"Quote {quote.id} accepted: order {order.order_number} for {company}, "
        f"{len(rejected_ids)} competing quote(s) rejected"
    )

    # Audit entries are written after commit so they never affect the acceptance
    create_audit_log(
        request=request,
        user=user,
        action='quote_accept',
        model_name='Quote',
        object_id=quote.id,
        object_name=quote.title,
        object_reference=order.order_number,
        changes={'status': {'old': old_status, 'new': Quote.STATUS_ACCEPTED}},
    )
    create_audit_log(
        request=request,
        user=user,
        action='order_create',
        model_name='OrderConfirmation',
        object_id=order.id,
        object_name=quote.title,
        object_reference=order.order_number,
        changes={
            'company': company,
            'sequential_number': sequential_number,
            'total_amount': str(order.total_amount),
        },
    )
    for rejected_id in rejected_ids:
        create_audit_log(
            request=request,
            user=user,
            action='quote_auto_reject',
            model_name='Quote',
            object_id=rejected_id,
            object_name=quote.title,
            object_reference=order.order_number,
            changes={'status': {'new': Quote.STATUS_REJECTED}, 'accepted_quote': quote.id},
        )

    return order, rejected_ids
