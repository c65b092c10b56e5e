"""
Test suite for the expenses module
Tests: default categories, expense recording and review
"""
from decimal import Decimal

from django.core.cache import cache
from django.test import TestCase
from rest_framework import status
from fieldmanager.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from fieldmanager.expenses.defaults import DEFAULT_CATEGORIES, seed_default_categories
from fieldmanager.expenses.models import ExpenseCategory, Expense


class ExpenseCategoryAPITests(TestCase):
    """Test expense category endpoints"""

    def setUp(self):
        cache.clear()
        self.manager = TestDataFactory.create_user(role='manager')
        self.organization = self.manager.organization
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.manager)

    def test_first_listing_seeds_defaults(self):
        response = self.client.get('/api/v1/expense-categories/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), len(DEFAULT_CATEGORIES))
        self.assertEqual(seed_default_categories(self.organization), 0)

    def test_duplicate_name_rejected(self):
        TestDataFactory.create_expense_category(self.organization, name='Fuel')
        response = self.client.post('/api/v1/expense-categories/', {'name': 'fuel'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_new_category_appears_in_cached_list(self):
        self.client.get('/api/v1/expense-categories/')
        response = self.client.post('/api/v1/expense-categories/', {'name': 'Permits', 'color': '#abcdef'},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['color'], '#ABCDEF')
        response = self.client.get('/api/v1/expense-categories/')
        self.assertIn('Permits', [c['name'] for c in response.data])

    def test_default_category_cannot_be_deleted(self):
        seed_default_categories(self.organization)
        category = ExpenseCategory.objects.filter(organization=self.organization, is_default=True).first()
        response = self.client.delete(f'/api/v1/expense-categories/{category.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_category_with_expenses_is_deactivated(self):
        category = TestDataFactory.create_expense_category(self.organization)
        TestDataFactory.create_expense(self.organization, user=self.manager, category=category)
        response = self.client.delete(f'/api/v1/expense-categories/{category.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        category.refresh_from_db()
        self.assertFalse(category.is_active)

    def test_unused_category_is_deleted(self):
        category = TestDataFactory.create_expense_category(self.organization)
        response = self.client.delete(f'/api/v1/expense-categories/{category.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(ExpenseCategory.objects.filter(pk=category.id).exists())


class ExpenseAPITests(TestCase):
    """Test expense endpoints"""

    def setUp(self):
        self.manager = TestDataFactory.create_user(role='manager')
        self.organization = self.manager.organization
        self.technician = TestDataFactory.create_user(role='technician', organization=self.organization)
        self.category = TestDataFactory.create_expense_category(self.organization, name='Fuel')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.technician)

    def test_technician_records_expense(self):
        data = {'category': self.category.id, 'amount': '42.10', 'expense_date': '2024-03-01', 'vendor': 'Shell'}
        response = self.client.post('/api/v1/expenses/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        expense = Expense.objects.get()
        self.assertEqual(expense.user, self.technician)
        self.assertEqual(expense.amount, Decimal('42.10'))
        self.assertEqual(expense.status, 'pending')

    def test_zero_amount_rejected(self):
        data = {'category': self.category.id, 'amount': '0.00', 'expense_date': '2024-03-01'}
        response = self.client.post('/api/v1/expenses/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_technician_sees_only_own_expenses(self):
        TestDataFactory.create_expense(self.organization, user=self.technician, category=self.category)
        TestDataFactory.create_expense(self.organization, user=self.manager, category=self.category)
        response = self.client.get('/api/v1/expenses/')
        self.assertEqual(len(response.data), 1)

        self.client.authenticate_user(self.manager)
        response = self.client.get('/api/v1/expenses/')
        self.assertEqual(len(response.data), 2)

    def test_review_flow(self):
        expense = TestDataFactory.create_expense(self.organization, user=self.technician, category=self.category)

        response = self.client.post(f'/api/v1/expenses/{expense.id}/approve/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.authenticate_user(self.manager)
        response = self.client.post(f'/api/v1/expenses/{expense.id}/approve/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        expense.refresh_from_db()
        self.assertEqual(expense.status, 'approved')
        self.assertEqual(expense.reviewed_by, self.manager)

        response = self.client.post(f'/api/v1/expenses/{expense.id}/reject/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_technician_cannot_change_reviewed_expense(self):
        expense = TestDataFactory.create_expense(self.organization, user=self.technician, category=self.category,
                                                 status='approved')
        response = self.client.patch(f'/api/v1/expenses/{expense.id}/', {'vendor': 'Other'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
