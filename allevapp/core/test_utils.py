"""
Test utilities and factories for creating test data
"""
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from allevapp.farms.models import Farm, Barn, Equipment, Facility
from allevapp.parties.models import Supplier
from allevapp.projects.models import Project
from allevapp.quotes.models import Quote
from allevapp.reports.models import Report
from decimal import Decimal
import random
import string

User = get_user_model()


class TestDataFactory:
    """Factory class for creating test data"""
    __test__ = False

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_letters + string.digits, k=length))

    @staticmethod
    def create_user(username=None, email=None, password='testpass123', role=User.ROLE_ADMIN,
                    full_name=None, is_active=True, is_staff=False, is_superuser=False):
        """Create a test user"""
        if not username:
            username = f'testuser_{TestDataFactory.random_string(6)}'
        if email is None:
            email = f'{username.lower()}@test.com'
        return User.objects.create_user(
            username=username,
            email=email,
            password=password,
            role=role,
            full_name=full_name or username,
            is_active=is_active,
            is_staff=is_staff,
            is_superuser=is_superuser
        )

    @staticmethod
    def create_farm(name=None, company='Zoogamma Spa', technicians=None, created_by=None):
        """Create a test farm"""
        if not name:
            name = f'Farm_{TestDataFactory.random_string(6)}'
        farm = Farm.objects.create(
            name=name,
            address=f'Via {name} 1, Brescia',
            company=company,
            created_by=created_by
        )
        if technicians:
            farm.technicians.set(technicians)
        return farm

    @staticmethod
    def create_barn(farm, name=None):
        """Create a test barn"""
        if not name:
            name = f'Barn_{TestDataFactory.random_string(6)}'
        return Barn.objects.create(farm=farm, name=name)

    @staticmethod
    def create_equipment(farm=None, name=None, next_maintenance_due=None, status='working', barn=None,
                         maintenance_interval_days=365):
        """Create a test equipment item"""
        if not farm:
            farm = TestDataFactory.create_farm()
        if not name:
            name = f'Equipment_{TestDataFactory.random_string(6)}'
        return Equipment.objects.create(
            farm=farm,
            barn=barn,
            name=name,
            status=status,
            next_maintenance_due=next_maintenance_due,
            maintenance_interval_days=maintenance_interval_days
        )

    @staticmethod
    def create_facility(farm=None, name=None, facility_type='electrical', next_maintenance_due=None,
                        status='working', maintenance_interval_days=365):
        """Create a test facility"""
        if not farm:
            farm = TestDataFactory.create_farm()
        if not name:
            name = f'Facility_{TestDataFactory.random_string(6)}'
        return Facility.objects.create(
            farm=farm,
            name=name,
            type=facility_type,
            status=status,
            next_maintenance_due=next_maintenance_due,
            maintenance_interval_days=maintenance_interval_days
        )

    @staticmethod
    def create_supplier(name=None, email=None, phone=None):
        """Create a test supplier"""
        if not name:
            name = f'Supplier_{TestDataFactory.random_string(6)}'
        if not email:
            email = f'{name.lower()}@test.com'
        return Supplier.objects.create(
            name=name,
            email=email,
            phone=phone or f'030{random.randint(1000000, 9999999)}'
        )

    @staticmethod
    def create_report(farm=None, title=None, urgency='medium', status='open', created_by=None,
                      assigned_to=None, equipment=None):
        """Create a test report"""
        if not farm:
            farm = TestDataFactory.create_farm()
        if not title:
            title = f'Report_{TestDataFactory.random_string(6)}'
        return Report.objects.create(
            farm=farm,
            title=title,
            description=f'Test report {title}',
            urgency=urgency,
            status=status,
            equipment=equipment,
            created_by=created_by,
            assigned_to=assigned_to
        )

    @staticmethod
    def create_quote(farm=None, supplier=None, title=None, status='requested', amount=None,
                     report=None, project=None, created_by=None):
        """Create a test quote"""
        if not supplier:
            supplier = TestDataFactory.create_supplier()
        if not title:
            title = f'Quote_{TestDataFactory.random_string(6)}'
        return Quote.objects.create(
            farm=farm,
            supplier=supplier,
            title=title,
            description=f'Test quote {title}',
            status=status,
            amount=amount if amount is not None else Decimal('1000.00'),
            report=report,
            project=project,
            created_by=created_by
        )

    @staticmethod
    def create_project(farm, title=None, project_number=None, sequential_number=1, status='open', created_by=None):
        """Create a test project without going through numbering"""
        if not title:
            title = f'Project_{TestDataFactory.random_string(6)}'
        if not project_number:
            project_number = f'TEST-PRJ-{TestDataFactory.random_string(8).upper()}'
        return Project.objects.create(
            farm=farm,
            title=title,
            project_number=project_number,
            company=farm.company,
            sequential_number=sequential_number,
            status=status,
            created_by=created_by
        )


class AuthenticatedAPIClient(APIClient):
    """APIClient with authentication helper"""

    def authenticate_user(self, user):
        """Authenticate the client with a user"""
        refresh = RefreshToken.for_user(user)
        self.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
        return self

    def logout(self):
        """Remove authentication"""
        self.credentials()
