from django.test import TestCase
from rest_framework import status

from allevapp.core.models import User, AuditLog
from allevapp.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from allevapp.quotes.models import Quote
from allevapp.reports.models import Report


class ReportAPITestCase(TestCase):
    """Report creation, filtering and status changes"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.technician = TestDataFactory.create_user(role=User.ROLE_TECHNICIAN)
        self.farm = TestDataFactory.create_farm(technicians=[self.technician])
        self.other_farm = TestDataFactory.create_farm()
        self.client.authenticate_user(self.technician)

    def test_create_report(self):
        equipment = TestDataFactory.create_equipment(farm=self.farm)
        response = self.client.post('/api/v1/reports/', {
            'title': 'Perdita abbeveratoio',
            'description': "L'abbeveratoio della stalla 2 perde acqua",
            'farm': self.farm.id,
            'equipment': equipment.id,
            'urgency': 'high',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], 'open')
        self.assertEqual(response.data['created_by'], self.technician.id)
        self.assertEqual(response.data['active_quotes_count'], 0)
        self.assertTrue(AuditLog.objects.filter(action='create', model_name='Report').exists())

    def test_equipment_must_belong_to_farm(self):
        foreign_equipment = TestDataFactory.create_equipment(farm=self.other_farm)
        response = self.client.post('/api/v1/reports/', {
            'title': 'Guasto',
            'description': 'Guasto',
            'farm': self.farm.id,
            'equipment': foreign_equipment.id,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_technician_cannot_report_on_unassigned_farm(self):
        response = self.client.post('/api/v1/reports/', {
            'title': 'Guasto',
            'description': 'Guasto',
            'farm': self.other_farm.id,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_list_is_restricted_and_filterable(self):
        urgent = TestDataFactory.create_report(farm=self.farm, urgency='critical')
        TestDataFactory.create_report(farm=self.farm, urgency='low')
        TestDataFactory.create_report(farm=self.farm, urgency='high', status='closed')
        TestDataFactory.create_report(farm=self.other_farm, urgency='critical')

        response = self.client.get('/api/v1/reports/')
        self.assertEqual(response.data['count'], 3)

        response = self.client.get('/api/v1/reports/', {'urgency': 'urgent', 'open_only': 'true'})
        self.assertEqual([r['id'] for r in response.data['results']], [urgent.id])

        response = self.client.get('/api/v1/reports/', {'status': 'open,in_progress'})
        self.assertEqual(response.data['count'], 2)

    def test_status_change_is_audited(self):
        report = TestDataFactory.create_report(farm=self.farm)
        response = self.client.patch(f'/api/v1/reports/{report.id}/', {'status': 'in_progress'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        log = AuditLog.objects.get(action='status_change', model_name='Report')
        self.assertEqual(log.changes['status'], {'old': 'open', 'new': 'in_progress'})

    def test_report_quotes_and_active_count(self):
        report = TestDataFactory.create_report(farm=self.farm)
        TestDataFactory.create_quote(farm=self.farm, report=report)
        TestDataFactory.create_quote(farm=self.farm, report=report, status=Quote.STATUS_REJECTED)

        response = self.client.get(f'/api/v1/reports/{report.id}/quotes/')
        self.assertEqual(len(response.data), 2)

        response = self.client.get(f'/api/v1/reports/{report.id}/')
        self.assertEqual(response.data['active_quotes_count'], 1)


class DashboardTestCase(TestCase):
    """Dashboard counters and cache invalidation"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.manager = TestDataFactory.create_user(role=User.ROLE_MANAGER)
        self.technician = TestDataFactory.create_user(role=User.ROLE_TECHNICIAN)
        self.farm = TestDataFactory.create_farm(technicians=[self.technician])
        self.other_farm = TestDataFactory.create_farm()
        TestDataFactory.create_report(farm=self.farm, urgency='critical')
        TestDataFactory.create_report(farm=self.farm, urgency='low', status='resolved')
        TestDataFactory.create_report(farm=self.other_farm, urgency='high')
        TestDataFactory.create_equipment(farm=self.farm)

    def test_manager_sees_all_farms(self):
        self.client.authenticate_user(self.manager)
        response = self.client.get('/api/v1/dashboard/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total_reports'], 3)
        self.assertEqual(response.data['open_reports'], 2)
        self.assertEqual(response.data['urgent_reports'], 2)
        self.assertEqual(response.data['total_equipment'], 1)
        self.assertEqual(len(response.data['recent_reports']), 3)

    def test_technician_sees_assigned_farms(self):
        self.client.authenticate_user(self.technician)
        response = self.client.get('/api/v1/dashboard/')
        self.assertEqual(response.data['total_reports'], 2)
        self.assertEqual(response.data['urgent_reports'], 1)

    def test_new_report_refreshes_cached_dashboard(self):
        self.client.authenticate_user(self.manager)
        self.assertEqual(self.client.get('/api/v1/dashboard/').data['total_reports'], 3)

        TestDataFactory.create_report(farm=self.farm)
        self.assertEqual(self.client.get('/api/v1/dashboard/').data['total_reports'], 4)

    def test_urgent_property(self):
        report = Report.objects.filter(urgency='critical').first()
        self.assertTrue(report.is_urgent)
        self.assertTrue(report.is_open)
