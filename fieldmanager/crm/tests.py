"""
Test suite for the CRM module
Tests: customers, leads, invoices and tenancy
"""
from decimal import Decimal

from django.test import TestCase
from rest_framework import status
from fieldmanager.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from fieldmanager.crm.models import Invoice


class CustomerAPITests(TestCase):
    """Test customer endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user(role='technician')
        self.organization = self.user.organization
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_create_and_search_customers(self):
        response = self.client.post('/api/v1/customers/', {'name': 'Jane Homeowner', 'city': 'Austin'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        TestDataFactory.create_customer(self.organization, name='Bob Builder')

        response = self.client.get('/api/v1/customers/?search=jane')
        self.assertEqual([c['name'] for c in response.data], ['Jane Homeowner'])

    def test_other_organization_customer_not_found(self):
        other = TestDataFactory.create_customer(TestDataFactory.create_organization())
        response = self.client.get(f'/api/v1/customers/{other.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_technician_cannot_delete_customer(self):
        customer = TestDataFactory.create_customer(self.organization)
        response = self.client.delete(f'/api/v1/customers/{customer.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class LeadAPITests(TestCase):
    """Test lead endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user(role='manager')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_filter_leads_by_status(self):
        TestDataFactory.create_lead(self.user.organization, status='converted')
        TestDataFactory.create_lead(self.user.organization, status='new')
        response = self.client.get('/api/v1/leads/?status=converted')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)

    def test_update_lead_status(self):
        lead = TestDataFactory.create_lead(self.user.organization)
        response = self.client.patch(f'/api/v1/leads/{lead.id}/', {'status': 'qualified'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        lead.refresh_from_db()
        self.assertEqual(lead.status, 'qualified')


class InvoiceAPITests(TestCase):
    """Test invoice endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user(role='manager')
        self.organization = self.user.organization
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_create_invoice_derives_totals(self):
        data = {'invoice_number': 'INV-1001', 'subtotal': '200.00', 'tax_rate': '8.25'}
        response = self.client.post('/api/v1/invoices/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        invoice = Invoice.objects.get(invoice_number='INV-1001')
        self.assertEqual(invoice.tax_amount, Decimal('16.50'))
        self.assertEqual(invoice.total, Decimal('216.50'))
        self.assertEqual(invoice.created_by, self.user)

    def test_duplicate_invoice_number(self):
        TestDataFactory.create_invoice(self.organization, invoice_number='INV-1')
        response = self.client.post('/api/v1/invoices/', {'invoice_number': 'INV-1'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(Invoice.objects.filter(organization=self.organization).count(), 1)

    def test_same_invoice_number_in_other_organization(self):
        TestDataFactory.create_invoice(TestDataFactory.create_organization(), invoice_number='INV-1')
        response = self.client.post('/api/v1/invoices/', {'invoice_number': 'INV-1'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

    def test_customer_from_other_organization_rejected(self):
        outsider = TestDataFactory.create_customer(TestDataFactory.create_organization())
        response = self.client.post(
            '/api/v1/invoices/', {'invoice_number': 'INV-2', 'customer': outsider.id}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('customer', response.data)

    def test_mark_paid(self):
        invoice = TestDataFactory.create_invoice(self.organization, status='sent')
        response = self.client.post(f'/api/v1/invoices/{invoice.id}/mark-paid/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        invoice.refresh_from_db()
        self.assertEqual(invoice.status, 'paid')
        self.assertIsNotNone(invoice.paid_at)

        response = self.client.post(f'/api/v1/invoices/{invoice.id}/mark-paid/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
