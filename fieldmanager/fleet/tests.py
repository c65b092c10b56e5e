"""
Test suite for the fleet module
Tests: service due calculation, vehicles, maintenance intervals and GPS settings
"""
from datetime import date, timedelta

from django.core.cache import cache
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from fieldmanager.core.models import RealtimeEvent
from fieldmanager.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from fieldmanager.fleet.maintenance import Status, calc_due_date, calculate_service_due, most_urgent
from fieldmanager.fleet.models import Vehicle, MaintenanceInterval, MaintenanceRecord


class ServiceDueTests(TestCase):
    """Test service due calculations"""

    today = date(2024, 7, 1)

    def _due(self, **kwargs):
        params = {
            'interval_miles': None,
            'interval_months': None,
            'last_service_mileage': None,
            'last_service_date': None,
            'current_mileage': 0,
            'today': self.today,
        }
        params.update(kwargs)
        return calculate_service_due(**params)

    def test_mileage_thresholds(self):
        base = {'interval_miles': 5000, 'last_service_mileage': 10000}
        self.assertEqual(self._due(current_mileage=15000, **base).status, Status.OVERDUE)
        self.assertEqual(self._due(current_mileage=14500, **base).status, Status.DUE_SOON)
        self.assertEqual(self._due(current_mileage=12000, **base).status, Status.OK)
        self.assertEqual(self._due(current_mileage=12000, **base).miles_remaining, 3000)

    def test_mileage_without_history_uses_start_mileage(self):
        due = self._due(interval_miles=3000, current_mileage=3600, start_mileage=1000)
        self.assertEqual(due.due_miles, 4000)
        self.assertEqual(due.status, Status.DUE_SOON)

    def test_date_thresholds(self):
        base = {'interval_months': 6}
        self.assertEqual(self._due(last_service_date=date(2023, 12, 15), **base).status, Status.OVERDUE)
        self.assertEqual(self._due(last_service_date=date(2024, 1, 20), **base).status, Status.DUE_SOON)
        self.assertEqual(self._due(last_service_date=date(2024, 5, 1), **base).status, Status.OK)

    def test_most_urgent_wins(self):
        due = self._due(interval_miles=5000, last_service_mileage=10000, current_mileage=11000,
                        interval_months=6, last_service_date=date(2023, 6, 1))
        self.assertEqual(due.status, Status.OVERDUE)
        self.assertEqual(most_urgent(Status.OK, Status.DUE_SOON), Status.DUE_SOON)
        self.assertEqual(most_urgent(None, None), Status.UNKNOWN)

    def test_no_data_is_unknown(self):
        self.assertEqual(self._due(interval_months=6).status, Status.UNKNOWN)

    def test_inactive(self):
        self.assertEqual(self._due(interval_miles=5000, is_active=False).status, Status.INACTIVE)

    def test_fractional_months(self):
        self.assertEqual(calc_due_date(date(2024, 1, 1), 1.5), date(2024, 2, 16))
        self.assertEqual(calc_due_date(date(2024, 1, 31), 1), date(2024, 2, 29))


class VehicleAPITests(TestCase):
    """Test vehicle endpoints"""

    def setUp(self):
        cache.clear()
        self.manager = TestDataFactory.create_user(role='manager')
        self.organization = self.manager.organization
        self.technician = TestDataFactory.create_user(role='technician', organization=self.organization)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.manager)

    def test_create_vehicle(self):
        data = {'vehicle_number': 'T-100', 'make': 'Ford', 'model': 'F-150', 'vin': '1ftfw1et5dfc10312'}
        response = self.client.post('/api/v1/vehicles/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        vehicle = Vehicle.objects.get(vehicle_number='T-100')
        self.assertEqual(vehicle.vin, '1FTFW1ET5DFC10312')
        self.assertTrue(RealtimeEvent.objects.filter(event_type='vehicle_updated').exists())

    def test_invalid_vin(self):
        response = self.client.post('/api/v1/vehicles/', {'vehicle_number': 'T-1', 'vin': 'SHORT'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('vin', response.data)

    def test_duplicate_vehicle_number(self):
        TestDataFactory.create_vehicle(self.organization, vehicle_number='T-100')
        response = self.client.post('/api/v1/vehicles/', {'vehicle_number': 't-100'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_technician_cannot_create_vehicle(self):
        self.client.authenticate_user(self.technician)
        response = self.client.post('/api/v1/vehicles/', {'vehicle_number': 'T-200'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_list_is_refreshed_after_create(self):
        TestDataFactory.create_vehicle(self.organization, vehicle_number='T-1')
        response = self.client.get('/api/v1/vehicles/')
        self.assertEqual(len(response.data), 1)
        TestDataFactory.create_vehicle(self.organization, vehicle_number='T-2')
        response = self.client.get('/api/v1/vehicles/')
        self.assertEqual(len(response.data), 2)

    def test_other_organization_vehicle_not_found(self):
        other = TestDataFactory.create_vehicle(TestDataFactory.create_organization())
        response = self.client.get(f'/api/v1/vehicles/{other.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class MaintenanceAPITests(TestCase):
    """Test maintenance intervals and service completion"""

    def setUp(self):
        self.manager = TestDataFactory.create_user(role='manager')
        self.organization = self.manager.organization
        self.vehicle = TestDataFactory.create_vehicle(self.organization, current_mileage=15000)
        self.interval = MaintenanceInterval.objects.create(
            vehicle=self.vehicle, name='Oil change', interval_miles=5000, last_service_mileage=10000,
        )
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.manager)

    def test_add_interval_requires_a_period(self):
        url = f'/api/v1/vehicles/{self.vehicle.id}/maintenance/'
        response = self.client.post(url, {'name': 'Tires'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.post(url, {'name': 'Tires', 'interval_months': '6'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

    def test_vehicle_maintenance_lists_due_status(self):
        response = self.client.get(f'/api/v1/vehicles/{self.vehicle.id}/maintenance/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['intervals'][0]['service_due']['status'], 'overdue')

    def test_complete_service(self):
        response = self.client.post(
            f'/api/v1/maintenance-intervals/{self.interval.id}/complete/',
            {'mileage': 15500, 'cost': '49.99'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.interval.refresh_from_db()
        self.vehicle.refresh_from_db()
        self.assertEqual(self.interval.last_service_mileage, 15500)
        self.assertEqual(self.interval.last_service_date, timezone.localdate())
        self.assertEqual(self.vehicle.current_mileage, 15500)
        self.assertEqual(MaintenanceRecord.objects.filter(interval=self.interval).count(), 1)
        self.assertEqual(response.data['interval']['service_due']['status'], 'ok')

    def test_complete_service_in_future_rejected(self):
        tomorrow = timezone.localdate() + timedelta(days=1)
        response = self.client.post(
            f'/api/v1/maintenance-intervals/{self.interval.id}/complete/',
            {'service_date': tomorrow.isoformat()}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_maintenance_due(self):
        MaintenanceInterval.objects.create(vehicle=self.vehicle, name='Brakes', interval_miles=50000)
        response = self.client.get('/api/v1/maintenance/due/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['overdue'], 1)


class GPSSettingsAPITests(TestCase):
    """Test GPS settings"""

    def setUp(self):
        self.manager = TestDataFactory.create_user(role='manager')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.manager)

    def test_defaults_created_on_first_read(self):
        response = self.client.get('/api/v1/gps-settings/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['onestep_gps_enabled'])
        self.assertFalse(response.data['onestep_gps_api_key_set'])

    def test_enable_requires_api_key(self):
        response = self.client.patch('/api/v1/gps-settings/', {'onestep_gps_enabled': True}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_api_key_is_never_returned(self):
        response = self.client.patch(
            '/api/v1/gps-settings/', {'onestep_gps_enabled': True, 'onestep_gps_api_key': 'secret'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertNotIn('onestep_gps_api_key', response.data)
        self.assertTrue(response.data['onestep_gps_api_key_set'])
