"""
Test utilities and factories for creating test data
"""
from django.contrib.auth import get_user_model
from django.core.files.base import ContentFile
from django.utils import timezone
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from fieldmanager.core.models import Organization
from fieldmanager.fleet.models import Vehicle
from fieldmanager.crm.models import Customer, Lead, Invoice
from fieldmanager.expenses.models import ExpenseCategory, Expense
from fieldmanager.scheduling.models import CalendarJob
from fieldmanager.files.models import Folder, FileItem
from fieldmanager.techinventory.models import Part, TechnicianInventory
from fieldmanager.tutorials.models import TutorialCategory, Tutorial
from datetime import timedelta
from decimal import Decimal
import random
import string

User = get_user_model()


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_letters + string.digits, k=length))

    @staticmethod
    def create_organization(name=None, **extra):
        """Create a test organization"""
        if not name:
            name = f'Org {TestDataFactory.random_string(6)}'
        return Organization.objects.create(name=name, **extra)

    @staticmethod
    def create_user(username=None, email=None, password='testpass123', role='technician', organization=None,
                    is_staff=False, is_superuser=False, with_organization=True):
        """Create a test user; a fresh organization is created unless one is given"""
        if not username:
            username = f'testuser_{TestDataFactory.random_string(6)}'
        if not email:
            email = f'{username}@test.com'
        if organization is None and with_organization:
            organization = TestDataFactory.create_organization()
        return User.objects.create_user(
            username=username,
            email=email,
            password=password,
            role=role,
            organization=organization,
            is_staff=is_staff,
            is_superuser=is_superuser,
        )

    @staticmethod
    def create_vehicle(organization, vehicle_number=None, **extra):
        """Create a test vehicle"""
        if not vehicle_number:
            vehicle_number = f'V-{TestDataFactory.random_string(4).upper()}'
        extra.setdefault('make', 'Ford')
        extra.setdefault('model', 'Transit')
        return Vehicle.objects.create(organization=organization, vehicle_number=vehicle_number, **extra)

    @staticmethod
    def create_customer(organization, name=None, **extra):
        """Create a test customer"""
        if not name:
            name = f'Customer_{TestDataFactory.random_string(6)}'
        extra.setdefault('email', f'{name.lower()}@test.com')
        return Customer.objects.create(organization=organization, name=name, **extra)

    @staticmethod
    def create_lead(organization, status='new', source='website', **extra):
        """Create a test lead"""
        return Lead.objects.create(
            organization=organization,
            name=extra.pop('name', f'Lead_{TestDataFactory.random_string(6)}'),
            status=status,
            source=source,
            **extra,
        )

    @staticmethod
    def create_invoice(organization, total=Decimal('100.00'), status='paid', **extra):
        """Create a test invoice"""
        return Invoice.objects.create(
            organization=organization,
            invoice_number=extra.pop('invoice_number', f'INV-{TestDataFactory.random_string(8).upper()}'),
            subtotal=total,
            total=total,
            status=status,
            **extra,
        )

    @staticmethod
    def create_expense_category(organization, name=None, **extra):
        """Create a test expense category"""
        if not name:
            name = f'Category_{TestDataFactory.random_string(6)}'
        return ExpenseCategory.objects.create(organization=organization, name=name, **extra)

    @staticmethod
    def create_expense(organization, user=None, category=None, amount=Decimal('25.00'), expense_date=None, **extra):
        """Create a test expense"""
        if not category:
            category = TestDataFactory.create_expense_category(organization)
        return Expense.objects.create(
            organization=organization,
            category=category,
            user=user,
            amount=amount,
            expense_date=expense_date or timezone.localdate(),
            **extra,
        )

    @staticmethod
    def create_calendar_job(organization, title=None, start_date=None, end_date=None, created_by=None, **extra):
        """Create a test calendar job starting now unless told otherwise"""
        if not title:
            title = f'Job_{TestDataFactory.random_string(6)}'
        if not start_date:
            start_date = timezone.now()
        return CalendarJob.objects.create(
            organization=organization,
            title=title,
            start_date=start_date,
            end_date=end_date,
            created_by=created_by,
            **extra,
        )

    @staticmethod
    def create_folder(organization, name=None, parent=None, created_by=None):
        """Create a test folder"""
        if not name:
            name = f'Folder_{TestDataFactory.random_string(6)}'
        return Folder.objects.create(organization=organization, name=name, parent=parent, created_by=created_by)

    @staticmethod
    def create_file(organization, folder=None, name=None, content=b'hello world', uploaded_by=None,
                    mime_type='text/plain', file_type='text'):
        """Create a test file; callers should override MEDIA_ROOT"""
        if not name:
            name = f'file_{TestDataFactory.random_string(6)}.txt'
        item = FileItem(
            organization=organization,
            folder=folder,
            original_name=name,
            file_size=len(content),
            mime_type=mime_type,
            file_type=file_type,
            uploaded_by=uploaded_by,
        )
        item.file.save(name, ContentFile(content), save=False)
        item.save()
        return item

    @staticmethod
    def create_part(organization, name=None, sku=None, **extra):
        """Create a test part"""
        if not name:
            name = f'Part_{TestDataFactory.random_string(6)}'
        if sku is None:
            sku = f'SKU-{TestDataFactory.random_string(6).upper()}'
        return Part.objects.create(organization=organization, name=name, sku=sku, **extra)

    @staticmethod
    def create_inventory(user, part=None, current_quantity=10, assigned_quantity=None, min_quantity=0, **extra):
        """Create a test inventory item for a technician"""
        if part is None:
            part = TestDataFactory.create_part(user.organization)
        return TechnicianInventory.objects.create(
            organization=user.organization,
            user=user,
            part=part,
            current_quantity=current_quantity,
            assigned_quantity=current_quantity if assigned_quantity is None else assigned_quantity,
            min_quantity=min_quantity,
            is_low_stock=bool(min_quantity) and current_quantity <= min_quantity,
            **extra,
        )

    @staticmethod
    def create_tutorial(organization=None, title=None, category=None, **extra):
        """Create a test tutorial; global unless an organization is given"""
        if not title:
            title = f'Tutorial {TestDataFactory.random_string(6)}'
        if category is None:
            slug = f'category-{TestDataFactory.random_string(6).lower()}'
            category = TutorialCategory.objects.create(name=slug, slug=slug)
        extra.setdefault('slug', f'tutorial-{TestDataFactory.random_string(8).lower()}')
        return Tutorial.objects.create(organization=organization, title=title, category=category, **extra)

    @staticmethod
    def days_from_now(days):
        return timezone.now() + timedelta(days=days)


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
