from unittest.mock import patch

from django.test import TestCase
from rest_framework import status

from allevapp.core.cache_utils import make_cache_key, invalidate_prefix
from allevapp.core.models import User, AuditLog
from allevapp.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from allevapp.core.utils import get_user_farm_ids, restrict_to_user_farms
from allevapp.farms.models import Farm
from allevapp.integrations.graph_service import GraphRequestError


class AuthenticationTestCase(TestCase):
    """Login and current-user endpoints"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.user = TestDataFactory.create_user(
            username='mario', password='testpass123', role=User.ROLE_MANAGER, full_name='Mario Rossi'
        )

    def test_login_returns_tokens_and_user(self):
        response = self.client.post('/api/v1/auth/login/', {
            'username': 'mario',
            'password': 'testpass123',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)
        self.assertIn('refresh', response.data)
        self.assertEqual(response.data['user']['role'], User.ROLE_MANAGER)
        self.assertEqual(response.data['user']['display_name'], 'Mario Rossi')

    def test_login_with_wrong_password_fails(self):
        response = self.client.post('/api/v1/auth/login/', {
            'username': 'mario',
            'password': 'wrong',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_me_requires_authentication(self):
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_me_returns_current_user(self):
        self.client.authenticate_user(self.user)
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['username'], 'mario')


class UserManagementTestCase(TestCase):
    """User creation is limited to administrators"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.admin = TestDataFactory.create_user(role=User.ROLE_ADMIN)
        self.technician = TestDataFactory.create_user(role=User.ROLE_TECHNICIAN)

    def test_admin_creates_user(self):
        self.client.authenticate_user(self.admin)
        response = self.client.post('/api/v1/users/', {
            'username': 'nuovo',
            'email': 'nuovo@test.com',
            'password': 'Complex-pass-2024',
            'full_name': 'Nuovo Tecnico',
            'role': User.ROLE_TECHNICIAN,
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        user = User.objects.get(username='nuovo')
        self.assertTrue(user.check_password('Complex-pass-2024'))
        self.assertNotIn('email_result', response.data)
        self.assertTrue(AuditLog.objects.filter(action='create', model_name='User', object_id=str(user.id)).exists())

    def test_technician_cannot_create_user(self):
        self.client.authenticate_user(self.technician)
        response = self.client.post('/api/v1/users/', {
            'username': 'nuovo',
            'email': 'nuovo@test.com',
            'role': User.ROLE_TECHNICIAN,
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertFalse(User.objects.filter(username='nuovo').exists())

    def test_email_is_required(self):
        self.client.authenticate_user(self.admin)
        response = self.client.post('/api/v1/users/', {
            'username': 'senzaemail',
            'email': '',
            'role': User.ROLE_TECHNICIAN,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    @patch('allevapp.core.views.send_password_email')
    def test_generated_password_is_emailed(self, mock_send):
        self.client.authenticate_user(self.admin)
        response = self.client.post('/api/v1/users/', {
            'username': 'conemail',
            'email': 'conemail@test.com',
            'role': User.ROLE_MANAGER,
            'send_credentials': True,
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['email_result']['success'])
        mock_send.assert_called_once()
        kwargs = mock_send.call_args.kwargs
        self.assertEqual(kwargs['to'], 'conemail@test.com')
        self.assertEqual(kwargs['role'], User.ROLE_MANAGER)
        user = User.objects.get(username='conemail')
        self.assertTrue(user.check_password(kwargs['password']))

    @patch('allevapp.core.views.send_password_email')
    def test_email_failure_keeps_the_user(self, mock_send):
        mock_send.side_effect = GraphRequestError('Failed to send email', 'Graph API error', status_code=502)
        self.client.authenticate_user(self.admin)
        response = self.client.post('/api/v1/users/', {
            'username': 'fallita',
            'email': 'fallita@test.com',
            'role': User.ROLE_TECHNICIAN,
            'send_credentials': True,
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertFalse(response.data['email_result']['success'])
        self.assertTrue(User.objects.filter(username='fallita').exists())

    def test_admin_cannot_delete_self(self):
        self.client.authenticate_user(self.admin)
        response = self.client.delete(f'/api/v1/users/{self.admin.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(User.objects.filter(pk=self.admin.pk).exists())


class AuditLogTestCase(TestCase):
    """Audit log listing"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.admin = TestDataFactory.create_user(role=User.ROLE_ADMIN)
        self.manager = TestDataFactory.create_user(role=User.ROLE_MANAGER)
        AuditLog.objects.create(
            user=self.admin, action='quote_accept', model_name='Quote',
            object_id='1', object_name='Riparazione pompa', object_reference='ZG-2025-0001'
        )
        AuditLog.objects.create(
            user=self.admin, action='create', model_name='Farm', object_id='2', object_name='Cascina Nuova'
        )

    def test_admin_lists_and_searches_audit_logs(self):
        self.client.authenticate_user(self.admin)
        response = self.client.get('/api/v1/audit-logs/', {'search': 'ZG-2025'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['action'], 'quote_accept')

    def test_bad_pagination_params(self):
        self.client.authenticate_user(self.admin)
        for params in ({'page': 'abc'}, {'page': '0'}, {'limit': '0'}, {'limit': 'ten'}):
            response = self.client.get('/api/v1/audit-logs/', params)
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.get('/api/v1/audit-logs/', {'page': '1', 'limit': '1'})
        self.assertEqual(response.data['total_pages'], 2)

    def test_manager_cannot_list_audit_logs(self):
        self.client.authenticate_user(self.manager)
        response = self.client.get('/api/v1/audit-logs/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class FarmRestrictionTestCase(TestCase):
    """Technicians only see the farms they are assigned to"""

    def setUp(self):
        self.technician = TestDataFactory.create_user(role=User.ROLE_TECHNICIAN)
        self.manager = TestDataFactory.create_user(role=User.ROLE_MANAGER)
        self.assigned = TestDataFactory.create_farm(technicians=[self.technician])
        self.other = TestDataFactory.create_farm()

    def test_manager_is_not_restricted(self):
        self.assertIsNone(get_user_farm_ids(self.manager))

    def test_technician_is_restricted(self):
        self.assertEqual(get_user_farm_ids(self.technician), [self.assigned.id])
        farms = restrict_to_user_farms(Farm.objects.all(), self.technician, farm_field='id')
        self.assertEqual(list(farms), [self.assigned])


class CacheKeyTestCase(TestCase):
    """Cache keys change when their prefix is invalidated"""

    def test_same_arguments_give_same_key(self):
        self.assertEqual(make_cache_key('dashboard', farms=[1, 2]), make_cache_key('dashboard', farms=[1, 2]))
        self.assertNotEqual(make_cache_key('dashboard', farms=[1]), make_cache_key('dashboard', farms=[2]))

    def test_invalidate_changes_key(self):
        before = make_cache_key('dashboard', farms='all')
        invalidate_prefix('dashboard')
        self.assertNotEqual(before, make_cache_key('dashboard', farms='all'))
