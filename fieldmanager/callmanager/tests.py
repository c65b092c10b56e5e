"""
Test suite for the call manager module
Tests: phone number normalization, provisioning, release and tenant listing
"""
from datetime import timedelta
from decimal import Decimal

from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from fieldmanager.core.models import AuditLog
from fieldmanager.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from fieldmanager.callmanager.models import PhoneNumber
from fieldmanager.callmanager.utils import normalize_phone_number, us_area_code


class PhoneNumberUtilsTests(TestCase):
    """Test phone number helpers"""

    def test_normalize(self):
        self.assertEqual(normalize_phone_number('(512) 555-0100'), '+15125550100')
        self.assertEqual(normalize_phone_number('+44 20 7946 0958', 'GB'), '+442079460958')
        self.assertEqual(normalize_phone_number('+1 512 555 0100'), '+15125550100')
        self.assertIsNone(normalize_phone_number('555-0100'))
        self.assertIsNone(normalize_phone_number(None))

    def test_area_code(self):
        self.assertEqual(us_area_code('+15125550100'), '512')
        self.assertEqual(us_area_code('+442079460958'), '')


class ProvisionPhoneTests(TestCase):
    """Test SaaS admin phone number management"""

    def setUp(self):
        self.saas_admin = TestDataFactory.create_user(role='admin', is_staff=True, is_superuser=True)
        self.organization = TestDataFactory.create_organization(name='Rapid Rooter', has_call_manager=True)
        self.technician = TestDataFactory.create_user(role='technician', organization=self.organization)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.saas_admin)

    def _provision(self, organization=None, phone_number='512-555-0100', **extra):
        data = {'organization_id': (organization or self.organization).id, 'phone_number': phone_number, **extra}
        return self.client.post('/api/v1/saas-admin/call-manager/provision-phone/', data, format='json')

    def test_provision(self):
        response = self._provision(friendly_name='Main line')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['phone_number'], '+15125550100')
        self.assertEqual(response.data['area_code'], '512')
        self.assertTrue(response.data['is_active'])
        self.assertTrue(AuditLog.objects.filter(action='phone_provision', organization=self.organization).exists())

    def test_requires_call_manager_unless_forced(self):
        other = TestDataFactory.create_organization(has_call_manager=False)
        response = self._provision(organization=other)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self._provision(organization=other, force=True)
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        other.refresh_from_db()
        self.assertTrue(other.has_call_manager)

    def test_duplicate_active_number(self):
        self._provision()
        other = TestDataFactory.create_organization(has_call_manager=True)
        response = self._provision(organization=other, phone_number='+1 (512) 555-0100')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertIn('error', response.data)
        phone = PhoneNumber.objects.get()
        self.assertEqual(phone.organization, self.organization)
        self.assertTrue(phone.is_active)

    def test_invalid_number(self):
        response = self._provision(phone_number='12345')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_release_and_reprovision(self):
        phone_id = self._provision().data['id']
        backdated = timezone.now() - timedelta(days=400)
        PhoneNumber.objects.filter(pk=phone_id).update(provisioned_at=backdated, usage_cost=Decimal('42.50'))
        response = self.client.delete(f'/api/v1/saas-admin/call-manager/phone-numbers/{phone_id}/release/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['is_active'])
        self.assertIsNotNone(response.data['released_at'])

        response = self.client.delete(f'/api/v1/saas-admin/call-manager/phone-numbers/{phone_id}/release/')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

        other = TestDataFactory.create_organization(has_call_manager=True)
        response = self._provision(organization=other)
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['id'], phone_id)
        self.assertEqual(PhoneNumber.objects.count(), 1)
        phone = PhoneNumber.objects.get()
        self.assertEqual(phone.organization, other)
        self.assertIsNone(phone.released_at)
        self.assertGreater(phone.provisioned_at, backdated + timedelta(days=399))
        self.assertEqual(phone.usage_cost, Decimal('0.00'))
        self.assertEqual(response.data['usage_cost'], '0.00')

    def test_released_number_cannot_be_edited(self):
        phone_id = self._provision().data['id']
        self.client.delete(f'/api/v1/saas-admin/call-manager/phone-numbers/{phone_id}/release/')
        response = self.client.patch(f'/api/v1/saas-admin/call-manager/phone-numbers/{phone_id}/',
                                     {'friendly_name': 'Old'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_assign_to_user_of_same_organization(self):
        phone_id = self._provision().data['id']
        url = f'/api/v1/saas-admin/call-manager/phone-numbers/{phone_id}/'
        outsider = TestDataFactory.create_user()
        response = self.client.patch(url, {'assigned_to': outsider.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.patch(url, {'assigned_to': self.technician.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['assigned_to'], self.technician.id)

    def test_organization_list(self):
        self._provision()
        response = self.client.get('/api/v1/saas-admin/call-manager/organizations/', {'has_call_manager': 'true'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        entry = next(org for org in response.data if org['id'] == self.organization.id)
        self.assertEqual(entry['active_phone_numbers'], 1)
        self.assertEqual(entry['user_count'], 1)

    def test_non_saas_admin_denied(self):
        manager = TestDataFactory.create_user(role='admin', organization=self.organization)
        self.client.authenticate_user(manager)
        response = self._provision()
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        response = self.client.get('/api/v1/saas-admin/call-manager/phone-numbers/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class OrganizationPhoneNumberTests(TestCase):
    """Test the tenant view of phone numbers"""

    def test_lists_active_numbers_of_own_organization(self):
        user = TestDataFactory.create_user()
        organization = user.organization
        PhoneNumber.objects.create(organization=organization, phone_number='+15125550100')
        PhoneNumber.objects.create(organization=organization, phone_number='+15125550101', is_active=False)
        PhoneNumber.objects.create(organization=TestDataFactory.create_organization(), phone_number='+15125550102')

        client = AuthenticatedAPIClient()
        client.authenticate_user(user)
        response = client.get('/api/v1/call-manager/phone-numbers/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['enabled'])
        self.assertEqual([p['phone_number'] for p in response.data['phone_numbers']], ['+15125550100'])
