from datetime import date, timedelta

from django.test import TestCase
from django.utils import timezone
from rest_framework import status

from allevapp.core.models import User, AuditLog
from allevapp.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from allevapp.farms.maintenance import is_maintenance_overdue, is_maintenance_due_soon, due_soon_window
from allevapp.farms.models import Equipment, Facility


class MaintenanceRulesTestCase(TestCase):
    """Overdue / due soon boundaries"""

    def setUp(self):
        self.today = date(2025, 3, 10)

    def test_overdue_is_strictly_before_today(self):
        self.assertTrue(is_maintenance_overdue(date(2025, 3, 9), self.today))
        self.assertFalse(is_maintenance_overdue(self.today, self.today))
        self.assertFalse(is_maintenance_overdue(None, self.today))

    def test_due_soon_includes_today_and_seventh_day(self):
        self.assertTrue(is_maintenance_due_soon(self.today, self.today))
        self.assertTrue(is_maintenance_due_soon(date(2025, 3, 17), self.today))
        self.assertFalse(is_maintenance_due_soon(date(2025, 3, 18), self.today))
        self.assertFalse(is_maintenance_due_soon(date(2025, 3, 9), self.today))

    def test_due_soon_window(self):
        self.assertEqual(due_soon_window(self.today), (self.today, date(2025, 3, 17)))

    def test_record_maintenance_schedules_next(self):
        equipment = TestDataFactory.create_equipment(maintenance_interval_days=90)
        equipment.record_maintenance(date(2025, 1, 1))
        self.assertEqual(equipment.last_maintenance, date(2025, 1, 1))
        self.assertEqual(equipment.next_maintenance_due, date(2025, 4, 1))


class FarmAPITestCase(TestCase):
    """Farm CRUD and technician visibility"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.manager = TestDataFactory.create_user(role=User.ROLE_MANAGER)
        self.technician = TestDataFactory.create_user(role=User.ROLE_TECHNICIAN)
        self.assigned = TestDataFactory.create_farm(name='Cascina Assegnata', technicians=[self.technician])
        self.other = TestDataFactory.create_farm(name='Cascina Altrui')

    def test_manager_creates_farm_with_technicians(self):
        self.client.authenticate_user(self.manager)
        response = self.client.post('/api/v1/farms/', {
            'name': 'Cascina Nuova',
            'address': 'Via Roma 1',
            'company': 'So. Agr. Zooagri Srl',
            'technician_ids': [self.technician.id],
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['technicians'], [self.technician.id])
        self.assertEqual(response.data['created_by'], self.manager.id)

    def test_technician_cannot_create_farm(self):
        self.client.authenticate_user(self.technician)
        response = self.client.post('/api/v1/farms/', {'name': 'Abusiva'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_technician_sees_only_assigned_farms(self):
        self.client.authenticate_user(self.technician)
        response = self.client.get('/api/v1/farms/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([farm['id'] for farm in response.data], [self.assigned.id])

        response = self.client.get(f'/api/v1/farms/{self.other.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_barns_are_created_under_farm(self):
        self.client.authenticate_user(self.manager)
        response = self.client.post(f'/api/v1/farms/{self.assigned.id}/barns/', {'name': 'Stalla A'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['farm'], self.assigned.id)

        response = self.client.get(f'/api/v1/farms/{self.assigned.id}/barns/')
        self.assertEqual(len(response.data), 1)


class EquipmentAPITestCase(TestCase):
    """Equipment listing, validation and maintenance recording"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.user = TestDataFactory.create_user(role=User.ROLE_MANAGER)
        self.client.authenticate_user(self.user)
        self.farm = TestDataFactory.create_farm()
        self.today = timezone.localdate()

    def test_barn_must_belong_to_farm(self):
        other_barn = TestDataFactory.create_barn(TestDataFactory.create_farm())
        response = self.client.post('/api/v1/equipment/', {
            'name': 'Mungitrice',
            'farm': self.farm.id,
            'barn': other_barn.id,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('barn', response.data)

    def test_interval_must_be_positive(self):
        response = self.client.post('/api/v1/equipment/', {
            'name': 'Mungitrice',
            'farm': self.farm.id,
            'maintenance_interval_days': 0,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_maintenance_filters(self):
        overdue = TestDataFactory.create_equipment(farm=self.farm, next_maintenance_due=self.today - timedelta(days=3))
        due_soon = TestDataFactory.create_equipment(farm=self.farm, next_maintenance_due=self.today + timedelta(days=7))
        TestDataFactory.create_equipment(farm=self.farm, next_maintenance_due=self.today + timedelta(days=30))

        response = self.client.get('/api/v1/equipment/', {'maintenance': 'overdue'})
        self.assertEqual([item['id'] for item in response.data], [overdue.id])
        self.assertTrue(response.data[0]['is_maintenance_overdue'])

        response = self.client.get('/api/v1/equipment/', {'maintenance': 'due_soon'})
        self.assertEqual([item['id'] for item in response.data], [due_soon.id])

    def test_record_maintenance(self):
        equipment = TestDataFactory.create_equipment(
            farm=self.farm, status='not_working', maintenance_interval_days=30,
            next_maintenance_due=self.today - timedelta(days=10)
        )
        response = self.client.post(
            f'/api/v1/equipment/{equipment.id}/maintenance/', {'performed_on': '2025-05-01'}, format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        equipment.refresh_from_db()
        self.assertEqual(equipment.last_maintenance, date(2025, 5, 1))
        self.assertEqual(equipment.next_maintenance_due, date(2025, 5, 31))
        self.assertEqual(equipment.status, 'working')
        self.assertTrue(AuditLog.objects.filter(action='maintenance_record', model_name='Equipment').exists())

    def test_record_maintenance_defaults_to_today(self):
        facility = TestDataFactory.create_facility(farm=self.farm, maintenance_interval_days=365)
        response = self.client.post(f'/api/v1/facilities/{facility.id}/maintenance/', {}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        facility.refresh_from_db()
        self.assertEqual(facility.last_maintenance, self.today)
        self.assertEqual(facility.next_maintenance_due, self.today + timedelta(days=365))

    def test_technician_creates_assets_only_on_assigned_farms(self):
        technician = TestDataFactory.create_user(role=User.ROLE_TECHNICIAN)
        own_farm = TestDataFactory.create_farm(technicians=[technician])
        self.client.authenticate_user(technician)

        response = self.client.post('/api/v1/equipment/', {'name': 'Mungitrice', 'farm': self.farm.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        response = self.client.post('/api/v1/facilities/', {'name': 'Silos', 'farm': self.farm.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertFalse(Equipment.objects.filter(farm=self.farm).exists())

        response = self.client.post('/api/v1/equipment/', {'name': 'Mungitrice', 'farm': own_farm.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

    def test_technician_cannot_move_asset_to_unassigned_farm(self):
        technician = TestDataFactory.create_user(role=User.ROLE_TECHNICIAN)
        own_farm = TestDataFactory.create_farm(technicians=[technician])
        equipment = TestDataFactory.create_equipment(farm=own_farm)
        self.client.authenticate_user(technician)

        response = self.client.patch(f'/api/v1/equipment/{equipment.id}/', {'farm': self.farm.id}, format='json')

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        equipment.refresh_from_db()
        self.assertEqual(equipment.farm_id, own_farm.id)


class MaintenanceCalendarTestCase(TestCase):
    """Maintenance calendar over a date range"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.technician = TestDataFactory.create_user(role=User.ROLE_TECHNICIAN)
        self.client.authenticate_user(self.technician)
        self.farm = TestDataFactory.create_farm(technicians=[self.technician])
        self.other_farm = TestDataFactory.create_farm()

    def test_calendar_lists_equipment_and_facilities_in_range(self):
        TestDataFactory.create_equipment(farm=self.farm, name='Trattore', next_maintenance_due=date(2025, 6, 20))
        TestDataFactory.create_facility(farm=self.farm, name='Quadro', next_maintenance_due=date(2025, 6, 5))
        TestDataFactory.create_equipment(farm=self.farm, name='Fuori', next_maintenance_due=date(2025, 7, 1))
        TestDataFactory.create_equipment(farm=self.other_farm, name='Altrui', next_maintenance_due=date(2025, 6, 10))

        response = self.client.get('/api/v1/maintenance/calendar/', {
            'date_from': '2025-06-01',
            'date_to': '2025-06-30',
        })

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 2)
        self.assertEqual([item['name'] for item in response.data['items']], ['Quadro', 'Trattore'])
        self.assertEqual(response.data['items'][0]['kind'], 'facility')

    def test_invalid_range(self):
        response = self.client.get('/api/v1/maintenance/calendar/', {
            'date_from': '2025-06-30',
            'date_to': '2025-06-01',
        })
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.get('/api/v1/maintenance/calendar/', {'date_from': '30/06/2025'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_defaults_to_current_month(self):
        response = self.client.get('/api/v1/maintenance/calendar/')
        today = timezone.localdate()
        self.assertEqual(response.data['period']['from'], today.replace(day=1).isoformat())
        self.assertTrue(response.data['period']['to'].startswith(today.strftime('%Y-%m')))
