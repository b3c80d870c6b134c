from decimal import Decimal

from django.test import TestCase
from django.utils import timezone
from rest_framework import status

from allevapp.core.models import User
from allevapp.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from allevapp.projects.models import Project
from allevapp.purchasing.models import OrderSequence
from allevapp.quotes.models import Quote


class ProjectNumberingTestCase(TestCase):
    """Projects are numbered per company in their own sequence"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.user = TestDataFactory.create_user(role=User.ROLE_MANAGER)
        self.client.authenticate_user(self.user)
        self.zoogamma_farm = TestDataFactory.create_farm(company='Zoogamma Spa')
        self.zooagri_farm = TestDataFactory.create_farm(company='So. Agr. Zooagri Srl')
        self.year = timezone.localdate().year

    def create_project(self, farm, title='Ristrutturazione stalla'):
        return self.client.post('/api/v1/projects/', {
            'title': title,
            'description': 'Lavori straordinari',
            'farm': farm.id,
        }, format='json')

    def test_first_project_number(self):
        response = self.create_project(self.zoogamma_farm)

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['project_number'], f'ZG-PRJ-{self.year}-0001')
        self.assertEqual(response.data['company'], 'Zoogamma Spa')
        self.assertEqual(response.data['sequential_number'], 1)
        self.assertEqual(response.data['quotes_count'], 0)

    def test_numbers_increment_per_company(self):
        self.create_project(self.zoogamma_farm, 'Primo')
        self.create_project(self.zoogamma_farm, 'Secondo')
        response = self.create_project(self.zooagri_farm, 'Terzo')

        self.assertEqual(response.data['project_number'], f'ZA-PRJ-{self.year}-0001')
        numbers = list(Project.objects.filter(company='Zoogamma Spa').order_by('sequential_number')
                       .values_list('project_number', flat=True))
        self.assertEqual(numbers, [f'ZG-PRJ-{self.year}-0001', f'ZG-PRJ-{self.year}-0002'])

    def test_project_sequence_is_separate_from_orders(self):
        self.create_project(self.zoogamma_farm)
        self.assertTrue(OrderSequence.objects.filter(
            company='Zoogamma Spa', scope=OrderSequence.SCOPE_PROJECT, last_number=1
        ).exists())
        self.assertFalse(OrderSequence.objects.filter(
            company='Zoogamma Spa', scope=OrderSequence.SCOPE_ORDER
        ).exists())

    def test_number_cannot_be_edited(self):
        project_id = self.create_project(self.zoogamma_farm).data['id']
        response = self.client.patch(f'/api/v1/projects/{project_id}/', {
            'project_number': 'HACK-0001',
            'status': 'defined',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        project = Project.objects.get(pk=project_id)
        self.assertEqual(project.project_number, f'ZG-PRJ-{self.year}-0001')
        self.assertEqual(project.status, 'defined')

    def test_cannot_move_to_another_company(self):
        project_id = self.create_project(self.zoogamma_farm).data['id']
        response = self.client.patch(f'/api/v1/projects/{project_id}/', {'farm': self.zooagri_farm.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class ProjectQuotesTestCase(TestCase):
    """Quote totals on projects"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.user = TestDataFactory.create_user(role=User.ROLE_MANAGER)
        self.client.authenticate_user(self.user)
        self.farm = TestDataFactory.create_farm()
        self.project = TestDataFactory.create_project(self.farm)

    def test_totals_exclude_rejected_quotes(self):
        TestDataFactory.create_quote(farm=self.farm, project=self.project, amount=Decimal('1200.00'))
        TestDataFactory.create_quote(farm=self.farm, project=self.project, amount=Decimal('300.50'),
                                     status=Quote.STATUS_RECEIVED)
        TestDataFactory.create_quote(farm=self.farm, project=self.project, amount=Decimal('5000.00'),
                                     status=Quote.STATUS_REJECTED)

        response = self.client.get(f'/api/v1/projects/{self.project.id}/')
        self.assertEqual(response.data['quotes_count'], 3)
        self.assertEqual(Decimal(response.data['total_quotes_value']), Decimal('1500.50'))

        response = self.client.get(f'/api/v1/projects/{self.project.id}/quotes/')
        self.assertEqual(len(response.data), 3)

    def test_technician_cannot_see_other_farm_projects(self):
        technician = TestDataFactory.create_user(role=User.ROLE_TECHNICIAN)
        self.client.authenticate_user(technician)
        response = self.client.get(f'/api/v1/projects/{self.project.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
