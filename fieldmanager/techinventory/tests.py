"""
Test suite for the technician inventory module
Tests: quantity rules, technician transactions, parts, assignments and daily verification
"""
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from fieldmanager.core.models import AuditLog, RealtimeEvent
from fieldmanager.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from fieldmanager.techinventory.models import (
    Part, TechnicianInventory, TechnicianInventoryTransaction, DailyInventoryVerification,
)
from fieldmanager.techinventory.stock import (
    InventoryError, apply_transaction, assign_part, compute_new_quantity, evaluate_counts, is_low_stock,
)


class StockRulesTests(TestCase):
    """Test quantity calculations"""

    def test_compute_new_quantity(self):
        self.assertEqual(compute_new_quantity('use', 5, 2), 3)
        self.assertEqual(compute_new_quantity('use', 2, 5), 0)
        self.assertEqual(compute_new_quantity('restock', 2, 5), 7)
        self.assertEqual(compute_new_quantity('return', 2, 1), 3)
        self.assertEqual(compute_new_quantity('adjustment', 9, 4), 4)
        with self.assertRaises(InventoryError):
            compute_new_quantity('steal', 5, 1)
        with self.assertRaises(InventoryError):
            compute_new_quantity('use', 5, -1)

    def test_low_stock(self):
        self.assertTrue(is_low_stock(2, 2))
        self.assertFalse(is_low_stock(3, 2))
        self.assertFalse(is_low_stock(0, 0))

    def test_evaluate_counts(self):
        details, discrepancies = evaluate_counts({1: 5, 2: 3}, [
            {'part_id': 1, 'actual_qty': 5},
            {'part_id': 2, 'actual_qty': 1},
        ])
        self.assertEqual(discrepancies, 1)
        self.assertTrue(details[0]['matches'])
        self.assertEqual(details[1]['expected_qty'], 3)
        self.assertFalse(details[1]['matches'])


class StockOperationsTests(TestCase):
    """Test transactions and assignments against the database"""

    def setUp(self):
        self.technician = TestDataFactory.create_user(role='technician')
        self.organization = self.technician.organization

    def test_apply_transaction_logs_change(self):
        item = TestDataFactory.create_inventory(self.technician, current_quantity=5, min_quantity=2)
        log = apply_transaction(item, 'use', 3, performed_by=self.technician)
        self.assertEqual((log.previous_quantity, log.new_quantity), (5, 2))
        self.assertEqual(item.current_quantity, 2)
        self.assertTrue(item.is_low_stock)
        self.assertIsNotNone(item.last_used_at)

        apply_transaction(item, 'restock', 10)
        self.assertEqual(item.current_quantity, 12)
        self.assertFalse(item.is_low_stock)
        self.assertIsNotNone(item.last_restocked_at)
        self.assertEqual(item.transactions.count(), 2)

    def test_zero_quantity_only_for_adjustment(self):
        item = TestDataFactory.create_inventory(self.technician, current_quantity=5)
        with self.assertRaises(InventoryError):
            apply_transaction(item, 'use', 0)
        apply_transaction(item, 'adjustment', 0)
        self.assertEqual(item.current_quantity, 0)

    def test_assign_and_reassign(self):
        part = TestDataFactory.create_part(self.organization)
        item, created = assign_part(self.organization, self.technician, part, 10, min_quantity=2)
        self.assertTrue(created)
        self.assertEqual(item.current_quantity, 10)
        self.assertEqual(item.transactions.get().transaction_type, 'restock')

        apply_transaction(item, 'use', 7)
        item, created = assign_part(self.organization, self.technician, part, 8)
        self.assertFalse(created)
        self.assertEqual(item.assigned_quantity, 8)
        self.assertEqual(item.current_quantity, 8)
        self.assertEqual(item.min_quantity, 2)
        self.assertTrue(item.transactions.filter(transaction_type='adjustment', new_quantity=8).exists())
        self.assertEqual(TechnicianInventory.objects.count(), 1)


class TechnicianInventoryAPITests(TestCase):
    """Test the technician's own inventory endpoints"""

    def setUp(self):
        self.technician = TestDataFactory.create_user(role='technician')
        self.organization = self.technician.organization
        self.other_technician = TestDataFactory.create_user(role='technician', organization=self.organization)
        self.item = TestDataFactory.create_inventory(self.technician, current_quantity=5, min_quantity=2)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.technician)

    def test_my_inventory(self):
        TestDataFactory.create_inventory(self.technician, current_quantity=1, min_quantity=3)
        TestDataFactory.create_inventory(self.other_technician)
        response = self.client.get('/api/v1/technician-inventory/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total_items'], 2)
        self.assertEqual(response.data['low_stock_count'], 1)

        response = self.client.get('/api/v1/technician-inventory/', {'low_stock': 'true'})
        self.assertEqual(len(response.data['items']), 1)

    def test_use_part(self):
        response = self.client.patch(f'/api/v1/technician-inventory/{self.item.id}/',
                                     {'type': 'use', 'quantity': 4, 'notes': 'Job 42'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['item']['current_quantity'], 1)
        self.assertTrue(response.data['item']['is_low_stock'])
        self.assertEqual(response.data['transaction']['type'], 'use')
        self.assertTrue(AuditLog.objects.filter(action='inventory_use').exists())
        self.assertTrue(RealtimeEvent.objects.filter(event_type='inventory_updated').exists())

    def test_use_more_than_carried_stops_at_zero(self):
        response = self.client.patch(f'/api/v1/technician-inventory/{self.item.id}/',
                                     {'type': 'use', 'quantity': 50}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['item']['current_quantity'], 0)

    def test_invalid_transactions(self):
        url = f'/api/v1/technician-inventory/{self.item.id}/'
        response = self.client.patch(url, {'type': 'use', 'quantity': 0}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.patch(url, {'type': 'lose', 'quantity': 1}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        self.item.is_active = False
        self.item.save()
        response = self.client.patch(url, {'type': 'restock', 'quantity': 1}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_cannot_touch_other_technicians_items(self):
        other_item = TestDataFactory.create_inventory(self.other_technician)
        response = self.client.patch(f'/api/v1/technician-inventory/{other_item.id}/',
                                     {'type': 'use', 'quantity': 1}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_transaction_history(self):
        url = f'/api/v1/technician-inventory/{self.item.id}/'
        self.client.patch(url, {'type': 'use', 'quantity': 1}, format='json')
        self.client.patch(url, {'type': 'restock', 'quantity': 3}, format='json')
        response = self.client.get(f'{url}transactions/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual({t['type'] for t in response.data}, {'use', 'restock'})


class PartAPITests(TestCase):
    """Test parts and supplies"""

    def setUp(self):
        self.manager = TestDataFactory.create_user(role='manager')
        self.organization = self.manager.organization
        self.technician = TestDataFactory.create_user(role='technician', organization=self.organization)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.manager)

    def test_create_part(self):
        data = {'name': 'PVC elbow 1/2"', 'sku': 'PVC-050', 'category': 'Plumbing', 'unit_cost': '1.25'}
        response = self.client.post('/api/v1/parts-supplies/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        response = self.client.post('/api/v1/parts-supplies/', {'name': 'Dup', 'sku': 'pvc-050'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_technician_can_list_but_not_create(self):
        TestDataFactory.create_part(self.organization, category='Electrical')
        self.client.authenticate_user(self.technician)
        response = self.client.get('/api/v1/parts-supplies/', {'category': 'electrical'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)
        response = self.client.post('/api/v1/parts-supplies/', {'name': 'Fuse'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_delete_assigned_part_deactivates(self):
        part = TestDataFactory.create_part(self.organization)
        TestDataFactory.create_inventory(self.technician, part=part)
        response = self.client.delete(f'/api/v1/parts-supplies/{part.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['part']['is_active'])
        self.assertTrue(Part.objects.filter(id=part.id).exists())

        response = self.client.get('/api/v1/parts-supplies/')
        self.assertEqual(response.data, [])

    def test_delete_unassigned_part(self):
        part = TestDataFactory.create_part(self.organization)
        response = self.client.delete(f'/api/v1/parts-supplies/{part.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Part.objects.filter(id=part.id).exists())


class AdminInventoryAPITests(TestCase):
    """Test manager inventory assignment endpoints"""

    def setUp(self):
        self.manager = TestDataFactory.create_user(role='manager')
        self.organization = self.manager.organization
        self.technician = TestDataFactory.create_user(role='technician', organization=self.organization)
        self.part = TestDataFactory.create_part(self.organization)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.manager)

    def _assign(self, **extra):
        data = {'user': self.technician.id, 'part': self.part.id, 'assigned_quantity': 10, **extra}
        return self.client.post('/api/v1/admin/technician-inventory/', data, format='json')

    def test_assign_then_reassign(self):
        response = self._assign(min_quantity=3)
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['current_quantity'], 10)

        response = self._assign(assigned_quantity=6)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['current_quantity'], 6)
        self.assertEqual(TechnicianInventory.objects.count(), 1)
        self.assertTrue(AuditLog.objects.filter(action='inventory_assign').exists())

    def test_assign_to_foreign_user(self):
        outsider = TestDataFactory.create_user()
        response = self._assign(user=outsider.id)
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_technician_denied(self):
        self.client.authenticate_user(self.technician)
        response = self._assign()
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_update_quantity_as_adjustment(self):
        item = TestDataFactory.create_inventory(self.technician, part=self.part, current_quantity=10)
        url = f'/api/v1/admin/technician-inventory/{item.id}/'
        response = self.client.patch(url, {'current_quantity': 4, 'min_quantity': 5}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['current_quantity'], 4)
        self.assertTrue(response.data['is_low_stock'])
        self.assertEqual(item.transactions.get().transaction_type, 'adjustment')

        response = self.client.patch(url, {'current_quantity': -1}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_delete_deactivates(self):
        item = TestDataFactory.create_inventory(self.technician, part=self.part)
        response = self.client.delete(f'/api/v1/admin/technician-inventory/{item.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        item.refresh_from_db()
        self.assertFalse(item.is_active)

        response = self.client.get('/api/v1/admin/technician-inventory/')
        self.assertEqual(response.data, [])
        response = self.client.get('/api/v1/admin/technician-inventory/', {'include_inactive': 'true'})
        self.assertEqual(len(response.data), 1)

    def test_bulk_assign(self):
        second_tech = TestDataFactory.create_user(role='technician', organization=self.organization)
        second_part = TestDataFactory.create_part(self.organization)
        TestDataFactory.create_inventory(self.technician, part=self.part, current_quantity=1)
        data = {
            'user_ids': [self.technician.id, second_tech.id],
            'items': [{'part_id': self.part.id, 'quantity': 5}, {'part_id': second_part.id, 'quantity': 2}],
        }
        response = self.client.post('/api/v1/admin/technician-inventory/bulk-assign/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data, {'created': 3, 'updated': 1})
        self.assertEqual(TechnicianInventory.objects.count(), 4)

    def test_bulk_assign_unknown_part(self):
        foreign_part = TestDataFactory.create_part(TestDataFactory.create_organization())
        data = {'user_ids': [self.technician.id], 'items': [{'part_id': foreign_part.id, 'quantity': 1}]}
        response = self.client.post('/api/v1/admin/technician-inventory/bulk-assign/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(TechnicianInventory.objects.exists())


class DailyVerificationAPITests(TestCase):
    """Test end-of-day inventory counts"""

    def setUp(self):
        self.manager = TestDataFactory.create_user(role='manager')
        self.organization = self.manager.organization
        self.technician = TestDataFactory.create_user(role='technician', organization=self.organization)
        self.first = TestDataFactory.create_inventory(self.technician, current_quantity=5)
        self.second = TestDataFactory.create_inventory(self.technician, current_quantity=3)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.technician)

    def _submit(self, counts):
        data = {'verification_details': [{'part_id': part_id, 'actual_qty': qty} for part_id, qty in counts]}
        return self.client.post('/api/v1/daily-inventory-verification/', data, format='json')

    def test_get_before_submitting(self):
        response = self.client.get('/api/v1/daily-inventory-verification/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIsNone(response.data['verification'])
        self.assertEqual(len(response.data['items']), 2)

    def test_matching_counts_verify(self):
        response = self._submit([(self.first.part_id, 5), (self.second.part_id, 3)])
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], 'verified')
        self.assertEqual(response.data['discrepancy_count'], 0)
        self.assertFalse(TechnicianInventoryTransaction.objects.exists())

    def test_discrepancy_adjusts_quantity(self):
        response = self._submit([(self.first.part_id, 4), (self.second.part_id, 3)])
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], 'discrepancy')
        self.assertEqual(response.data['discrepancy_count'], 1)
        self.first.refresh_from_db()
        self.assertEqual(self.first.current_quantity, 4)
        self.assertEqual(self.first.transactions.get().transaction_type, 'adjustment')
        self.assertTrue(AuditLog.objects.filter(action='inventory_verify').exists())

    def test_resubmit_replaces_same_day(self):
        self._submit([(self.first.part_id, 4)])
        response = self._submit([(self.first.part_id, 4), (self.second.part_id, 3)])
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'verified')
        self.assertEqual(DailyInventoryVerification.objects.count(), 1)

    def test_unknown_part_rejected(self):
        stranger = TestDataFactory.create_part(self.organization)
        response = self._submit([(stranger.id, 1)])
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn(str(stranger.id), response.data['error'])

    def test_duplicate_part_rejected(self):
        response = self._submit([(self.first.part_id, 1), (self.first.part_id, 2)])
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_admin_summary(self):
        idle = TestDataFactory.create_user(role='technician', organization=self.organization)
        TestDataFactory.create_inventory(idle)
        self._submit([(self.first.part_id, 1)])

        self.client.authenticate_user(self.manager)
        response = self.client.get('/api/v1/admin/daily-inventory-summary/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['date'], timezone.localdate().isoformat())
        self.assertEqual(response.data['total_technicians'], 2)
        self.assertEqual(response.data['completed'], 1)
        self.assertEqual(response.data['pending'], 1)
        self.assertEqual(response.data['discrepancies'], 1)
        statuses = {row['user_id']: row['status'] for row in response.data['technicians']}
        self.assertEqual(statuses[idle.id], 'pending')

        response = self.client.get('/api/v1/admin/daily-inventory-summary/', {'date': 'yesterday'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_admin_list_filters(self):
        self._submit([(self.first.part_id, 5)])
        self.client.authenticate_user(self.manager)
        response = self.client.get('/api/v1/admin/daily-inventory-verifications/', {'status': 'verified'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)
        response = self.client.get('/api/v1/admin/daily-inventory-verifications/', {'status': 'discrepancy'})
        self.assertEqual(response.data, [])

    def test_admin_list_rejects_malformed_filters(self):
        self._submit([(self.first.part_id, 5)])
        self.client.authenticate_user(self.manager)
        url = '/api/v1/admin/daily-inventory-verifications/'
        response = self.client.get(url, {'user_id': 'abc'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.get(url, {'date': '2024-02-30'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.get('/api/v1/admin/daily-inventory-summary/', {'date': '2024-13-01'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.get(url, {'user_id': self.technician.id})
        self.assertEqual(len(response.data), 1)
