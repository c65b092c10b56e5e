"""
Test suite for the core module
Tests: registration, demo signup, users, tenancy, audit logs, realtime events, search and caching
"""
from datetime import timedelta
from io import StringIO

from django.core.cache import cache
from django.core.management import call_command
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from fieldmanager.core.cache_utils import (
    cached_query, invalidate_namespace, make_namespaced_key, VEHICLES_NAMESPACE,
)
from fieldmanager.core.events import broadcast_event, get_events_since, purge_old_events
from fieldmanager.core.models import Organization, User, AuditLog, RealtimeEvent
from fieldmanager.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from fieldmanager.core.utils import is_admin, is_manager_or_admin, is_saas_admin
from fieldmanager.expenses.models import ExpenseCategory

STRONG_PASSWORD = 'Fm-Secure-Pass-2024'


class RegistrationTests(TestCase):
    """Test organization registration and demo signup"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()

    def test_register_creates_organization_and_admin(self):
        data = {
            'username': 'owner',
            'email': 'owner@example.com',
            'password': STRONG_PASSWORD,
            'password_confirm': STRONG_PASSWORD,
            'organization_name': 'Acme Plumbing',
        }
        response = self.client.post('/api/v1/auth/register/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIn('access', response.data)
        user = User.objects.get(username='owner')
        self.assertEqual(user.role, 'admin')
        self.assertEqual(user.organization.name, 'Acme Plumbing')
        self.assertEqual(user.organization.slug, 'acme-plumbing')

    def test_register_password_mismatch(self):
        data = {
            'username': 'owner',
            'email': 'owner@example.com',
            'password': STRONG_PASSWORD,
            'password_confirm': 'something-else-entirely',
            'organization_name': 'Acme Plumbing',
        }
        response = self.client.post('/api/v1/auth/register/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(Organization.objects.exists())

    def _demo_data(self, **overrides):
        data = {
            'username': 'demo_owner',
            'email': 'Demo@Example.com',
            'password': STRONG_PASSWORD,
            'first_name': 'Dana',
            'last_name': 'Demo',
            'organization_name': 'Demo Electric',
            'phone': '5551234567',
            'city': 'Austin',
            'state': 'tx',
            'zip_code': '78701',
        }
        data.update(overrides)
        return data

    def test_demo_signup_creates_trial_organization(self):
        response = self.client.post('/api/v1/auth/demo-signup/', self._demo_data(), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        user = User.objects.get(username='demo_owner')
        organization = user.organization
        self.assertTrue(organization.is_demo)
        self.assertEqual(organization.state, 'TX')
        self.assertEqual(user.email, 'demo@example.com')
        self.assertIsNotNone(organization.trial_ends_at)
        self.assertTrue(ExpenseCategory.objects.filter(organization=organization).exists())
        self.assertTrue(AuditLog.objects.filter(action='signup', organization=organization).exists())

    def test_demo_signup_rejects_bad_zip_and_duplicate_email(self):
        TestDataFactory.create_user(username='taken', email='demo@example.com')
        response = self.client.post(
            '/api/v1/auth/demo-signup/', self._demo_data(zip_code='12'), format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('zip_code', response.data)
        self.assertIn('email', response.data)

    def test_login_returns_tokens(self):
        TestDataFactory.create_user(username='loginuser', password=STRONG_PASSWORD)
        response = self.client.post(
            '/api/v1/auth/login/', {'username': 'loginuser', 'password': STRONG_PASSWORD}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)
        self.assertIn('refresh', response.data)


class UserAPITests(TestCase):
    """Test user management and tenancy"""

    def setUp(self):
        self.manager = TestDataFactory.create_user(role='manager')
        self.organization = self.manager.organization
        self.technician = TestDataFactory.create_user(role='technician', organization=self.organization)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.manager)

    def test_me_reports_capabilities(self):
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['can_manage_fleet'])
        self.assertFalse(response.data['is_admin'])
        self.assertFalse(response.data['is_saas_admin'])

    def test_me_reports_trial_days_left(self):
        self.organization.is_demo = True
        self.organization.trial_ends_at = timezone.localdate() + timedelta(days=5)
        self.organization.save()
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.data['trial_days_left'], 5)

    def test_list_users_only_shows_own_organization(self):
        TestDataFactory.create_user(role='technician')
        response = self.client.get('/api/v1/users/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual({u['id'] for u in response.data}, {self.manager.id, self.technician.id})

    def test_technician_cannot_list_users(self):
        self.client.authenticate_user(self.technician)
        response = self.client.get('/api/v1/users/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_other_organization_user_is_not_found(self):
        outsider = TestDataFactory.create_user()
        response = self.client.get(f'/api/v1/users/{outsider.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_manager_cannot_create_admin(self):
        data = {
            'username': 'newadmin',
            'email': 'newadmin@example.com',
            'password': STRONG_PASSWORD,
            'password_confirm': STRONG_PASSWORD,
            'role': 'admin',
        }
        response = self.client.post('/api/v1/users/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_manager_creates_technician_in_own_organization(self):
        data = {
            'username': 'newtech',
            'email': 'newtech@example.com',
            'password': STRONG_PASSWORD,
            'password_confirm': STRONG_PASSWORD,
            'role': 'technician',
        }
        response = self.client.post('/api/v1/users/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(User.objects.get(username='newtech').organization, self.organization)
        self.assertTrue(AuditLog.objects.filter(action='create', model_name='User').exists())

    def test_cannot_delete_self(self):
        response = self.client.delete(f'/api/v1/users/{self.manager.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_technician_list(self):
        response = self.client.get('/api/v1/technicians/')
        self.assertEqual([u['id'] for u in response.data], [self.technician.id])


class RoleHelperTests(TestCase):
    """Test role helper functions"""

    def test_roles(self):
        admin = TestDataFactory.create_user(role='admin')
        manager = TestDataFactory.create_user(role='manager')
        technician = TestDataFactory.create_user(role='technician')
        staff = TestDataFactory.create_user(role='user', is_staff=True)
        superuser = TestDataFactory.create_user(role='user', is_superuser=True, with_organization=False)

        self.assertTrue(is_admin(admin))
        self.assertFalse(is_admin(manager))
        self.assertTrue(is_manager_or_admin(manager))
        self.assertTrue(is_manager_or_admin(staff))
        self.assertFalse(is_manager_or_admin(technician))
        self.assertTrue(is_saas_admin(superuser))
        self.assertFalse(is_saas_admin(admin))


class AuditLogAPITests(TestCase):
    """Test audit log visibility"""

    def setUp(self):
        self.manager = TestDataFactory.create_user(role='manager')
        self.technician = TestDataFactory.create_user(organization=self.manager.organization)
        AuditLog.objects.create(organization=self.manager.organization, user=self.manager, action='create',
                                model_name='Vehicle', object_id='1')
        AuditLog.objects.create(organization=self.manager.organization, user=self.technician, action='update',
                                model_name='Vehicle', object_id='1')
        self.client = AuthenticatedAPIClient()

    def test_manager_sees_all_entries(self):
        self.client.authenticate_user(self.manager)
        response = self.client.get('/api/v1/audit-logs/')
        self.assertEqual(len(response.data), 2)

    def test_technician_sees_own_entries(self):
        self.client.authenticate_user(self.technician)
        response = self.client.get('/api/v1/audit-logs/')
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]['action'], 'update')

    def test_filter_by_action(self):
        self.client.authenticate_user(self.manager)
        response = self.client.get('/api/v1/audit-logs/?action=create')
        self.assertEqual(len(response.data), 1)

    def test_filter_by_date(self):
        self.client.authenticate_user(self.manager)
        today = timezone.localdate()
        response = self.client.get('/api/v1/audit-logs/', {'date_from': today.isoformat()})
        self.assertEqual(len(response.data), 2)
        response = self.client.get('/api/v1/audit-logs/', {'date_to': (today - timedelta(days=1)).isoformat()})
        self.assertEqual(response.data, [])

    def test_malformed_date_filter(self):
        self.client.authenticate_user(self.manager)
        response = self.client.get('/api/v1/audit-logs/', {'date_from': 'last week'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.get('/api/v1/audit-logs/', {'date_to': '2024-02-30'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class RealtimeEventTests(TestCase):
    """Test the realtime event feed"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_feed_returns_events_after_since(self):
        first = broadcast_event(self.user.organization, 'vehicle_updated', {'vehicle_id': 1})
        second = broadcast_event(self.user.organization, 'file_moved', {'file_id': 2})
        broadcast_event(TestDataFactory.create_organization(), 'vehicle_updated')

        response = self.client.get(f'/api/v1/events/?since={first.id}')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([e['id'] for e in response.data['events']], [second.id])
        self.assertEqual(response.data['last_id'], second.id)

    def test_feed_keeps_since_when_empty(self):
        response = self.client.get('/api/v1/events/?since=42')
        self.assertEqual(response.data['events'], [])
        self.assertEqual(response.data['last_id'], 42)

    def test_feed_rejects_bad_since(self):
        response = self.client.get('/api/v1/events/?since=abc')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_purge_old_events(self):
        old = broadcast_event(self.user.organization, 'old_event')
        recent = broadcast_event(self.user.organization, 'recent_event')
        RealtimeEvent.objects.filter(pk=old.pk).update(created_at=timezone.now() - timedelta(days=30))

        self.assertEqual(purge_old_events(days=7), 1)
        self.assertEqual([e.id for e in get_events_since(self.user.organization)], [recent.id])

    def test_purge_command(self):
        old = broadcast_event(self.user.organization, 'old_event')
        RealtimeEvent.objects.filter(pk=old.pk).update(created_at=timezone.now() - timedelta(days=30))
        out = StringIO()
        call_command('purge_realtime_events', '--days', '7', stdout=out)
        self.assertIn('Deleted 1', out.getvalue())


class GlobalSearchTests(TestCase):
    """Test the global search endpoint"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_search_groups_results_by_type(self):
        TestDataFactory.create_vehicle(self.user.organization, vehicle_number='TRUCK-7')
        TestDataFactory.create_customer(self.user.organization, name='Truckee Farms')
        TestDataFactory.create_vehicle(TestDataFactory.create_organization(), vehicle_number='TRUCK-9')

        response = self.client.get('/api/v1/search/?q=truck')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        results = response.data['results']
        self.assertEqual([v['vehicle_number'] for v in results['vehicles']], ['TRUCK-7'])
        self.assertEqual(len(results['customers']), 1)
        self.assertEqual(results['files'], [])

    def test_empty_query(self):
        response = self.client.get('/api/v1/search/?q=')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['results']['vehicles'], [])


class CacheUtilsTests(TestCase):
    """Test namespaced cache keys and query caching"""

    def setUp(self):
        cache.clear()

    def test_invalidate_namespace_changes_keys(self):
        before = make_namespaced_key(VEHICLES_NAMESPACE, 1)
        self.assertEqual(before, make_namespaced_key(VEHICLES_NAMESPACE, 1))
        invalidate_namespace(VEHICLES_NAMESPACE)
        self.assertNotEqual(before, make_namespaced_key(VEHICLES_NAMESPACE, 1))

    def test_cached_query_caches_until_invalidated(self):
        calls = []

        @cached_query(cache_ttl=60, namespace='test_namespace')
        def build(organization_id):
            calls.append(organization_id)
            return {'organization_id': organization_id}

        build(1)
        build(1)
        self.assertEqual(calls, [1])
        build(2)
        self.assertEqual(calls, [1, 2])
        invalidate_namespace('test_namespace')
        build(1)
        self.assertEqual(calls, [1, 2, 1])

    def test_model_save_invalidates_namespace(self):
        organization = TestDataFactory.create_organization()
        before = make_namespaced_key(VEHICLES_NAMESPACE, organization.id)
        TestDataFactory.create_vehicle(organization)
        self.assertNotEqual(before, make_namespaced_key(VEHICLES_NAMESPACE, organization.id))
