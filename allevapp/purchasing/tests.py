from datetime import date
from decimal import Decimal
from unittest.mock import patch

from django.db import IntegrityError
from django.test import TestCase, override_settings
from rest_framework import status

from allevapp.core.models import User, AuditLog
from allevapp.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from allevapp.purchasing.models import OrderConfirmation, OrderSequence
from allevapp.purchasing.numbering import (
    get_company_prefix, generate_order_number, get_next_order_number, peek_next_order_number
)
from allevapp.purchasing.services import QuoteAcceptanceError, accept_quote
from allevapp.quotes.models import Quote


class OrderNumberingTestCase(TestCase):
    """Prefixes, formatting and sequence allocation"""

    def test_configured_prefixes(self):
        self.assertEqual(get_company_prefix('Zoogamma Spa'), 'ZG')
        self.assertEqual(get_company_prefix('So. Agr. Zooagri Srl'), 'ZA')
        self.assertEqual(get_company_prefix('Soc. Agr. Zooallevamenti Srl'), 'ZAL')

    @override_settings(ALLEVAPP_COMPANY_PREFIXES={})
    def test_prefix_from_initials(self):
        self.assertEqual(get_company_prefix('Allevamenti Rossi Srl'), 'AR')
        self.assertEqual(get_company_prefix('Soc. Agr. Bianchi'), 'B')
        self.assertEqual(get_company_prefix('Srl'), 'ORD')
        self.assertEqual(get_company_prefix(''), 'ORD')

    def test_formats(self):
        self.assertEqual(generate_order_number('Zoogamma Spa', 7, on_date=date(2026, 2, 3)), 'ZG-2026-0007')
        self.assertEqual(
            generate_order_number('Zoogamma Spa', 3, scope=OrderSequence.SCOPE_PROJECT, on_date=date(2026, 2, 3)),
            'ZG-PRJ-2026-0003'
        )
        self.assertEqual(generate_order_number('Zoogamma Spa', 12345, on_date=date(2026, 1, 1)), 'ZG-2026-12345')

    def test_sequences_are_independent_per_company(self):
        self.assertEqual(get_next_order_number('Zoogamma Spa'), 1)
        self.assertEqual(get_next_order_number('Zoogamma Spa'), 2)
        self.assertEqual(get_next_order_number('So. Agr. Zooagri Srl'), 1)
        self.assertEqual(get_next_order_number('Zoogamma Spa', scope=OrderSequence.SCOPE_PROJECT), 1)
        self.assertEqual(get_next_order_number('Zoogamma Spa'), 3)

    def test_peek_does_not_allocate(self):
        get_next_order_number('Zoogamma Spa')
        preview = peek_next_order_number('Zoogamma Spa', on_date=date(2026, 5, 1))

        self.assertEqual(preview['sequential_number'], 2)
        self.assertEqual(preview['order_number'], 'ZG-2026-0002')
        self.assertEqual(OrderSequence.objects.get(company='Zoogamma Spa', scope='order').last_number, 1)


class AcceptQuoteServiceTestCase(TestCase):
    """Atomicity of the acceptance workflow"""

    def setUp(self):
        self.user = TestDataFactory.create_user(role=User.ROLE_MANAGER)
        self.farm = TestDataFactory.create_farm(company='So. Agr. Zooagri Srl')
        self.quote = TestDataFactory.create_quote(farm=self.farm, title='Cancello')
        self.quote.amount = None
        self.quote.save()
        self.sibling = TestDataFactory.create_quote(farm=self.farm, title='Cancello')

    def test_failure_rolls_everything_back(self):
        with patch.object(OrderConfirmation.objects, 'create', side_effect=IntegrityError('boom')):
            with self.assertRaises(IntegrityError):
                accept_quote(self.quote.id, user=self.user)

        self.quote.refresh_from_db()
        self.sibling.refresh_from_db()
        self.assertEqual(self.quote.status, Quote.STATUS_REQUESTED)
        self.assertEqual(self.sibling.status, Quote.STATUS_REQUESTED)
        self.assertFalse(OrderSequence.objects.filter(company='So. Agr. Zooagri Srl').exists())
        self.assertFalse(AuditLog.objects.filter(action='quote_accept').exists())

        order, rejected_ids = accept_quote(self.quote.id, user=self.user, order_date=date(2026, 3, 1))
        self.assertEqual(order.order_number, 'ZA-2026-0001')
        self.assertEqual(rejected_ids, [self.sibling.id])

    def test_sibling_already_accepted_blocks_acceptance(self):
        Quote.objects.filter(pk=self.sibling.pk).update(status=Quote.STATUS_ACCEPTED)

        with self.assertRaises(QuoteAcceptanceError):
            accept_quote(self.quote.id, user=self.user)

        self.quote.refresh_from_db()
        self.sibling.refresh_from_db()
        self.assertEqual(self.quote.status, Quote.STATUS_REQUESTED)
        self.assertEqual(self.sibling.status, Quote.STATUS_ACCEPTED)
        self.assertFalse(OrderConfirmation.objects.exists())
        self.assertFalse(OrderSequence.objects.exists())

    def test_at_most_one_accepted_per_farm_and_title(self):
        accept_quote(self.quote.id, user=self.user)
        late = TestDataFactory.create_quote(farm=self.farm, title='Cancello')

        with self.assertRaises(QuoteAcceptanceError):
            accept_quote(late.id, user=self.user)

        Quote.objects.filter(pk=self.sibling.pk).update(status=Quote.STATUS_RECEIVED)
        with self.assertRaises(QuoteAcceptanceError):
            accept_quote(self.sibling.id, user=self.user)

        self.assertEqual(
            Quote.objects.filter(farm=self.farm, title='Cancello', status=Quote.STATUS_ACCEPTED).count(), 1
        )
        self.assertEqual(OrderConfirmation.objects.count(), 1)

    def test_missing_amount_defaults_to_zero(self):
        order, _ = accept_quote(self.quote.id, user=self.user)
        self.assertEqual(order.total_amount, Decimal('0.00'))
        self.assertEqual(order.farm_id, self.farm.id)
        self.assertEqual(order.supplier_id, self.quote.supplier_id)
        self.assertEqual(order.status, 'pending')

    def test_explicit_amount_wins(self):
        order, _ = accept_quote(self.quote.id, user=self.user, total_amount=Decimal('420.00'))
        self.assertEqual(order.total_amount, Decimal('420.00'))

    def test_negative_amount_fails_without_consuming_number(self):
        with self.assertRaises(QuoteAcceptanceError):
            accept_quote(self.quote.id, user=self.user, total_amount=Decimal('-5.00'))
        self.assertFalse(OrderSequence.objects.exists())


class OrderAPITestCase(TestCase):
    """Order confirmation endpoints"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.manager = TestDataFactory.create_user(role=User.ROLE_MANAGER)
        self.technician = TestDataFactory.create_user(role=User.ROLE_TECHNICIAN)
        self.farm = TestDataFactory.create_farm(technicians=[self.technician])
        quote = TestDataFactory.create_quote(farm=self.farm, amount=Decimal('1000.00'))
        self.order, _ = accept_quote(quote.id, user=self.manager, order_date=date(2026, 1, 10))
        other_quote = TestDataFactory.create_quote(farm=TestDataFactory.create_farm())
        self.other_order, _ = accept_quote(other_quote.id, user=self.manager, order_date=date(2026, 1, 11))

    def test_list_and_filter(self):
        self.client.authenticate_user(self.manager)
        response = self.client.get('/api/v1/orders/')
        self.assertEqual(response.data['count'], 2)

        response = self.client.get('/api/v1/orders/', {'search': self.order.order_number})
        self.assertEqual([o['id'] for o in response.data['results']], [self.order.id])

    def test_technician_sees_orders_of_assigned_farms(self):
        self.client.authenticate_user(self.technician)
        response = self.client.get('/api/v1/orders/')
        self.assertEqual([o['id'] for o in response.data['results']], [self.order.id])

    def test_patch_only_changes_editable_fields(self):
        self.client.authenticate_user(self.manager)
        response = self.client.patch(f'/api/v1/orders/{self.order.id}/', {
            'status': 'confirmed',
            'delivery_date': '2026-02-01',
            'order_number': 'ZG-1999-9999',
            'total_amount': '1.00',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, 'confirmed')
        self.assertEqual(self.order.delivery_date, date(2026, 2, 1))
        self.assertEqual(self.order.order_number, 'ZG-2026-0001')
        self.assertEqual(self.order.total_amount, Decimal('1000.00'))
        self.assertTrue(AuditLog.objects.filter(action='status_change', model_name='OrderConfirmation').exists())

    def test_delete_keeps_sequence(self):
        self.client.authenticate_user(self.technician)
        response = self.client.delete(f'/api/v1/orders/{self.order.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.authenticate_user(self.manager)
        response = self.client.delete(f'/api/v1/orders/{self.order.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertEqual(OrderSequence.objects.get(company='Zoogamma Spa', scope='order').last_number, 2)

    def test_sequences_visible_to_managers_only(self):
        self.client.authenticate_user(self.manager)
        response = self.client.get('/api/v1/order-sequences/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data[0]['last_number'], 2)

        self.client.authenticate_user(self.technician)
        response = self.client.get('/api/v1/order-sequences/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
