from django.test import TestCase
from rest_framework import status

from allevapp.core.models import User
from allevapp.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from allevapp.parties.models import Supplier
from allevapp.purchasing.services import accept_quote


class SupplierAPITestCase(TestCase):
    """Supplier CRUD"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.user = TestDataFactory.create_user(role=User.ROLE_MANAGER)
        self.client.authenticate_user(self.user)

    def test_create_supplier(self):
        response = self.client.post('/api/v1/suppliers/', {
            'name': 'Idraulica Bresciana',
            'email': 'ordini@idraulica.it',
            'phone': '030 1234567',
            'contact_person': 'Luca Bianchi',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['is_active'])
        self.assertTrue(Supplier.objects.filter(email='ordini@idraulica.it').exists())

    def test_email_is_required(self):
        response = self.client.post('/api/v1/suppliers/', {'name': 'Senza Email'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('email', response.data)

    def test_search_and_active_filter(self):
        TestDataFactory.create_supplier(name='Elettro Nord')
        inactive = TestDataFactory.create_supplier(name='Elettro Sud')
        inactive.is_active = False
        inactive.save()
        TestDataFactory.create_supplier(name='Mangimi Po')

        response = self.client.get('/api/v1/suppliers/', {'search': 'elettro'})
        self.assertEqual(len(response.data), 2)

        response = self.client.get('/api/v1/suppliers/', {'search': 'elettro', 'active': 'true'})
        self.assertEqual([s['name'] for s in response.data], ['Elettro Nord'])

    def test_delete_supplier_without_orders(self):
        supplier = TestDataFactory.create_supplier()
        response = self.client.delete(f'/api/v1/suppliers/{supplier.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)

    def test_supplier_with_orders_cannot_be_deleted(self):
        supplier = TestDataFactory.create_supplier()
        quote = TestDataFactory.create_quote(farm=TestDataFactory.create_farm(), supplier=supplier)
        accept_quote(quote.id, user=self.user)

        response = self.client.delete(f'/api/v1/suppliers/{supplier.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(Supplier.objects.filter(pk=supplier.pk).exists())
