from decimal import Decimal
from unittest.mock import patch

from django.test import TestCase
from django.utils import timezone
from rest_framework import status

from allevapp.core.models import User, AuditLog
from allevapp.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from allevapp.integrations.graph_service import GraphRequestError
from allevapp.purchasing.models import OrderConfirmation, OrderSequence
from allevapp.quotes.models import Quote


class QuoteAPITestCase(TestCase):
    """Quote CRUD and status rules"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.user = TestDataFactory.create_user(role=User.ROLE_MANAGER)
        self.client.authenticate_user(self.user)
        self.farm = TestDataFactory.create_farm()
        self.supplier = TestDataFactory.create_supplier()

    def test_farm_is_taken_from_report(self):
        report = TestDataFactory.create_report(farm=self.farm)
        response = self.client.post('/api/v1/quotes/', {
            'title': 'Sostituzione pompa',
            'supplier': self.supplier.id,
            'report': report.id,
            'amount': '850.00',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['farm'], self.farm.id)
        self.assertEqual(response.data['status'], Quote.STATUS_REQUESTED)
        self.assertIsNone(response.data['order_number'])

    def test_report_must_match_farm(self):
        report = TestDataFactory.create_report(farm=TestDataFactory.create_farm())
        response = self.client.post('/api/v1/quotes/', {
            'title': 'Sostituzione pompa',
            'supplier': self.supplier.id,
            'farm': self.farm.id,
            'report': report.id,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_negative_amount_rejected(self):
        response = self.client.post('/api/v1/quotes/', {
            'title': 'Sostituzione pompa',
            'supplier': self.supplier.id,
            'farm': self.farm.id,
            'amount': '-1.00',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_cannot_accept_through_update(self):
        quote = TestDataFactory.create_quote(farm=self.farm, supplier=self.supplier)
        response = self.client.patch(f'/api/v1/quotes/{quote.id}/', {'status': 'accepted'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        quote.refresh_from_db()
        self.assertEqual(quote.status, Quote.STATUS_REQUESTED)
        self.assertFalse(OrderConfirmation.objects.exists())

    def test_received_status_update_is_audited(self):
        quote = TestDataFactory.create_quote(farm=self.farm, supplier=self.supplier)
        response = self.client.patch(f'/api/v1/quotes/{quote.id}/', {
            'status': 'received',
            'amount': '990.00',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(AuditLog.objects.filter(action='status_change', model_name='Quote').exists())

    def test_list_filters(self):
        TestDataFactory.create_quote(farm=self.farm, supplier=self.supplier, status=Quote.STATUS_RECEIVED)
        TestDataFactory.create_quote(farm=self.farm, status=Quote.STATUS_REJECTED)

        response = self.client.get('/api/v1/quotes/', {'status': 'requested,received'})
        self.assertEqual(response.data['count'], 1)

        response = self.client.get('/api/v1/quotes/', {'supplier': str(self.supplier.id)})
        self.assertEqual(response.data['count'], 1)

    def test_technician_cannot_move_quote_to_unassigned_farm(self):
        technician = TestDataFactory.create_user(role=User.ROLE_TECHNICIAN)
        own_farm = TestDataFactory.create_farm(technicians=[technician])
        quote = TestDataFactory.create_quote(farm=own_farm, supplier=self.supplier)
        self.client.authenticate_user(technician)

        response = self.client.patch(f'/api/v1/quotes/{quote.id}/', {'farm': self.farm.id}, format='json')

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        quote.refresh_from_db()
        self.assertEqual(quote.farm_id, own_farm.id)

    def test_invalid_pagination_returns_400(self):
        response = self.client.get('/api/v1/quotes/', {'page': 'abc'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.get('/api/v1/quotes/', {'limit': '0'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class QuoteAcceptanceTestCase(TestCase):
    """Accepting a quote creates a numbered order and rejects competing quotes"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.user = TestDataFactory.create_user(role=User.ROLE_MANAGER)
        self.client.authenticate_user(self.user)
        self.farm = TestDataFactory.create_farm(company='Zoogamma Spa')
        self.year = timezone.localdate().year

    def test_accept_creates_order_and_rejects_siblings(self):
        quote = TestDataFactory.create_quote(farm=self.farm, title='Nuovo impianto', amount=Decimal('1500.00'))
        sibling = TestDataFactory.create_quote(farm=self.farm, title='Nuovo impianto', status=Quote.STATUS_RECEIVED)
        other_title = TestDataFactory.create_quote(farm=self.farm, title='Altro lavoro')
        other_farm = TestDataFactory.create_quote(farm=TestDataFactory.create_farm(), title='Nuovo impianto')

        response = self.client.post(f'/api/v1/quotes/{quote.id}/accept/', {
            'delivery_date': '2099-01-15',
            'notes': 'Consegna in cascina',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['order']['order_number'], f'ZG-{self.year}-0001')
        self.assertEqual(Decimal(response.data['order']['total_amount']), Decimal('1500.00'))
        self.assertEqual(response.data['rejected_quote_ids'], [sibling.id])
        self.assertEqual(response.data['rejected_count'], 1)

        quote.refresh_from_db()
        sibling.refresh_from_db()
        other_title.refresh_from_db()
        other_farm.refresh_from_db()
        self.assertEqual(quote.status, Quote.STATUS_ACCEPTED)
        self.assertEqual(sibling.status, Quote.STATUS_REJECTED)
        self.assertEqual(other_title.status, Quote.STATUS_REQUESTED)
        self.assertEqual(other_farm.status, Quote.STATUS_REQUESTED)

        self.assertTrue(AuditLog.objects.filter(action='quote_accept', object_id=str(quote.id)).exists())
        self.assertTrue(AuditLog.objects.filter(action='order_create', object_reference=f'ZG-{self.year}-0001').exists())
        self.assertTrue(AuditLog.objects.filter(action='quote_auto_reject', object_id=str(sibling.id)).exists())

    def test_other_title_on_same_report_is_untouched(self):
        report = TestDataFactory.create_report(farm=self.farm)
        quote = TestDataFactory.create_quote(farm=self.farm, report=report, title='Pompa')
        sibling = TestDataFactory.create_quote(farm=self.farm, report=report, title='Pompa')
        labour = TestDataFactory.create_quote(farm=self.farm, report=report, title='Manodopera')

        response = self.client.post(f'/api/v1/quotes/{quote.id}/accept/', {}, format='json')

        self.assertEqual(response.data['rejected_quote_ids'], [sibling.id])
        labour.refresh_from_db()
        self.assertEqual(labour.status, Quote.STATUS_REQUESTED)

    def test_rejected_sibling_cannot_be_reopened(self):
        quote = TestDataFactory.create_quote(farm=self.farm, title='Pompa')
        sibling = TestDataFactory.create_quote(farm=self.farm, title='Pompa')
        self.client.post(f'/api/v1/quotes/{quote.id}/accept/', {}, format='json')

        response = self.client.patch(f'/api/v1/quotes/{sibling.id}/', {'status': 'requested'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        sibling.refresh_from_db()
        self.assertEqual(sibling.status, Quote.STATUS_REJECTED)

    def test_rejected_quote_can_be_reopened_without_accepted_sibling(self):
        quote = TestDataFactory.create_quote(farm=self.farm, title='Pompa', status=Quote.STATUS_REJECTED)
        response = self.client.patch(f'/api/v1/quotes/{quote.id}/', {'status': 'received'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_new_quote_for_accepted_subject_cannot_be_accepted(self):
        quote = TestDataFactory.create_quote(farm=self.farm, title='Pompa')
        self.client.post(f'/api/v1/quotes/{quote.id}/accept/', {}, format='json')
        late = TestDataFactory.create_quote(farm=self.farm, title='Pompa')

        response = self.client.post(f'/api/v1/quotes/{late.id}/accept/', {}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        late.refresh_from_db()
        self.assertEqual(late.status, Quote.STATUS_REQUESTED)
        self.assertEqual(Quote.objects.filter(farm=self.farm, title='Pompa', status=Quote.STATUS_ACCEPTED).count(), 1)
        self.assertEqual(OrderConfirmation.objects.count(), 1)
        self.assertEqual(OrderSequence.objects.get(company='Zoogamma Spa', scope='order').last_number, 1)

    def test_accepted_quote_fields_are_locked(self):
        quote = TestDataFactory.create_quote(farm=self.farm, title='Pompa', amount=Decimal('700.00'))
        self.client.post(f'/api/v1/quotes/{quote.id}/accept/', {}, format='json')

        for changes in ({'title': 'Altro'}, {'amount': '1.00'}, {'farm': TestDataFactory.create_farm().id},
                        {'supplier': TestDataFactory.create_supplier().id}):
            response = self.client.patch(f'/api/v1/quotes/{quote.id}/', changes, format='json')
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.patch(f'/api/v1/quotes/{quote.id}/', {'notes': 'Ordinato'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        quote.refresh_from_db()
        self.assertEqual(quote.title, 'Pompa')
        self.assertEqual(quote.amount, Decimal('700.00'))
        self.assertEqual(quote.notes, 'Ordinato')

    def test_closed_quotes_are_left_alone(self):
        quote = TestDataFactory.create_quote(farm=self.farm, title='Tetto')
        already_rejected = TestDataFactory.create_quote(farm=self.farm, title='Tetto', status=Quote.STATUS_REJECTED)

        response = self.client.post(f'/api/v1/quotes/{quote.id}/accept/', {}, format='json')

        self.assertEqual(response.data['rejected_count'], 0)
        self.assertFalse(AuditLog.objects.filter(action='quote_auto_reject', object_id=str(already_rejected.id)).exists())

    def test_orders_number_sequentially(self):
        first = TestDataFactory.create_quote(farm=self.farm)
        second = TestDataFactory.create_quote(farm=self.farm)

        self.client.post(f'/api/v1/quotes/{first.id}/accept/', {}, format='json')
        response = self.client.post(f'/api/v1/quotes/{second.id}/accept/', {}, format='json')

        self.assertEqual(response.data['order']['order_number'], f'ZG-{self.year}-0002')
        self.assertEqual(response.data['order']['sequential_number'], 2)

    def test_accepting_twice_fails(self):
        quote = TestDataFactory.create_quote(farm=self.farm)
        self.client.post(f'/api/v1/quotes/{quote.id}/accept/', {}, format='json')
        response = self.client.post(f'/api/v1/quotes/{quote.id}/accept/', {}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(OrderConfirmation.objects.count(), 1)
        self.assertEqual(OrderSequence.objects.get(company='Zoogamma Spa', scope='order').last_number, 1)

    def test_rejected_quote_cannot_be_accepted(self):
        quote = TestDataFactory.create_quote(farm=self.farm, status=Quote.STATUS_REJECTED)
        response = self.client.post(f'/api/v1/quotes/{quote.id}/accept/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_quote_without_farm_cannot_be_accepted(self):
        quote = TestDataFactory.create_quote(farm=None)
        response = self.client.post(f'/api/v1/quotes/{quote.id}/accept/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(OrderSequence.objects.exists())

    def test_delivery_before_order_date_rejected(self):
        quote = TestDataFactory.create_quote(farm=self.farm)
        response = self.client.post(f'/api/v1/quotes/{quote.id}/accept/', {
            'order_date': '2025-05-10',
            'delivery_date': '2025-05-01',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_accepted_quote_cannot_be_deleted(self):
        quote = TestDataFactory.create_quote(farm=self.farm)
        self.client.post(f'/api/v1/quotes/{quote.id}/accept/', {}, format='json')

        response = self.client.delete(f'/api/v1/quotes/{quote.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(Quote.objects.filter(pk=quote.pk).exists())

        response = self.client.get(f'/api/v1/quotes/{quote.id}/')
        self.assertEqual(response.data['order_number'], f'ZG-{self.year}-0001')

    def test_order_preview_does_not_consume_number(self):
        quote = TestDataFactory.create_quote(farm=self.farm, title='Recinzione')
        TestDataFactory.create_quote(farm=self.farm, title='Recinzione')

        response = self.client.get(f'/api/v1/quotes/{quote.id}/order-preview/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['order_number'], f'ZG-{self.year}-0001')
        self.assertEqual(response.data['competing_quotes'], 1)
        self.assertFalse(OrderSequence.objects.exists())

        response = self.client.post(f'/api/v1/quotes/{quote.id}/accept/', {}, format='json')
        self.assertEqual(response.data['order']['order_number'], f'ZG-{self.year}-0001')


class QuoteRequestTestCase(TestCase):
    """Quote requests fanned out to several suppliers"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.technician = TestDataFactory.create_user(role=User.ROLE_TECHNICIAN)
        self.client.authenticate_user(self.technician)
        self.farm = TestDataFactory.create_farm(technicians=[self.technician])
        self.report = TestDataFactory.create_report(farm=self.farm, title='Ventilatore rotto')
        self.suppliers = [TestDataFactory.create_supplier() for _ in range(3)]

    def request_payload(self, **overrides):
        payload = {
            'subject': 'Riparazione ventilatore',
            'description': 'Ventilatore stalla 1 fermo',
            'entity_type': 'report',
            'entity_id': self.report.id,
            'supplier_ids': [s.id for s in self.suppliers],
            'due_date': '2099-02-01',
        }
        payload.update(overrides)
        return payload

    @patch('allevapp.quotes.views.send_quote_request_email')
    def test_one_quote_per_supplier(self, mock_send):
        response = self.client.post('/api/v1/quotes/request/', self.request_payload(), format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['quotes_created'], 3)
        self.assertEqual(response.data['success_count'], 3)
        self.assertEqual(mock_send.call_count, 3)

        quotes = Quote.objects.filter(report=self.report)
        self.assertEqual(quotes.count(), 3)
        self.assertTrue(all(q.farm_id == self.farm.id for q in quotes))
        self.assertTrue(all(q.status == Quote.STATUS_REQUESTED for q in quotes))
        self.assertEqual(AuditLog.objects.filter(action='quote_request').count(), 3)

    @patch('allevapp.quotes.views.send_quote_request_email')
    def test_email_failure_is_reported_per_supplier(self, mock_send):
        mock_send.side_effect = [
            None,
            GraphRequestError('Microsoft Graph returned 404 Not Found', 'Casella non trovata'),
            None,
        ]
        response = self.client.post('/api/v1/quotes/request/', self.request_payload(), format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['success_count'], 2)
        self.assertEqual(response.data['failure_count'], 1)
        self.assertFalse(response.data['results'][1]['success'])
        self.assertEqual(Quote.objects.count(), 3)

    @patch('allevapp.quotes.views.send_quote_request_email')
    def test_equipment_request_without_email(self, mock_send):
        equipment = TestDataFactory.create_equipment(farm=self.farm)
        response = self.client.post('/api/v1/quotes/request/', self.request_payload(
            entity_type='equipment', entity_id=equipment.id, send_email=False
        ), format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        mock_send.assert_not_called()
        self.assertTrue(all(q.report_id is None for q in Quote.objects.all()))

    def test_inactive_supplier_rejected(self):
        inactive = TestDataFactory.create_supplier()
        inactive.is_active = False
        inactive.save()
        response = self.client.post('/api/v1/quotes/request/', self.request_payload(
            supplier_ids=[inactive.id]
        ), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_empty_supplier_list_rejected(self):
        response = self.client.post('/api/v1/quotes/request/', self.request_payload(supplier_ids=[]), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_unassigned_farm_is_not_found(self):
        foreign_report = TestDataFactory.create_report(farm=TestDataFactory.create_farm())
        response = self.client.post('/api/v1/quotes/request/', self.request_payload(
            entity_id=foreign_report.id
        ), format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertFalse(Quote.objects.exists())
