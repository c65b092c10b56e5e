"""
Test suite for the reports module
Tests: month aggregation helpers and the report endpoints
"""
from datetime import date, datetime
from decimal import Decimal

from django.core.cache import cache
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from fieldmanager.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from fieldmanager.fleet.models import MaintenanceInterval
from fieldmanager.reports import aggregation
from fieldmanager.techinventory.models import DailyInventoryVerification


class AggregationTests(TestCase):
    """Test the chart aggregation helpers"""

    def test_percent_rounds_half_up(self):
        self.assertEqual(aggregation.percent(1, 8), 13)
        self.assertEqual(aggregation.percent(2, 3), 67)
        self.assertEqual(aggregation.percent(1, 3), 33)
        self.assertEqual(aggregation.percent(5, 0), 0)

    def test_range_start(self):
        today = date(2024, 7, 15)
        self.assertEqual(aggregation.range_start('3months', today), date(2024, 5, 1))
        self.assertEqual(aggregation.range_start('12months', today), date(2023, 8, 1))
        with self.assertRaises(aggregation.InvalidTimeRange):
            aggregation.range_start('2years', today)

    def test_months_are_sorted_and_empty_months_omitted(self):
        rows = [
            {'created_at': date(2024, 3, 5)},
            {'created_at': date(2024, 1, 10)},
            {'created_at': date(2024, 3, 20)},
        ]
        months = aggregation.count_by_month(rows, 'created_at')
        self.assertEqual([m['month'] for m in months], ['2024-01', '2024-03'])
        self.assertEqual(months[0]['label'], 'Jan 2024')
        self.assertEqual(months[1]['count'], 2)

    def test_only_last_twelve_months_kept(self):
        rows = [{'d': date(2023 + (i // 12), i % 12 + 1, 1)} for i in range(15)]
        months = aggregation.count_by_month(rows, 'd')
        self.assertEqual(len(months), 12)
        self.assertEqual(months[0]['month'], '2023-04')
        self.assertEqual(months[-1]['month'], '2024-03')

    def test_revenue_by_month(self):
        invoices = [
            {'status': 'paid', 'total': Decimal('100.00'), 'created_at': datetime(2024, 2, 1, 12)},
            {'status': 'paid', 'total': Decimal('50.25'), 'created_at': datetime(2024, 2, 9, 12)},
            {'status': 'refunded', 'total': Decimal('20.00'), 'created_at': datetime(2024, 2, 10, 12)},
        ]
        months = aggregation.revenue_by_month(invoices)
        self.assertEqual(len(months), 1)
        self.assertEqual(months[0]['revenue'], 150.25)
        self.assertEqual(months[0]['refunds'], 20.0)
        self.assertEqual(months[0]['count'], 2)

    def test_close_rate_and_sources(self):
        leads = [
            {'status': 'converted', 'source': 'website', 'created_at': date(2024, 4, 1)},
            {'status': 'new', 'source': 'website', 'created_at': date(2024, 4, 2)},
            {'status': 'lost', 'source': '', 'created_at': date(2024, 4, 3)},
        ]
        months = aggregation.close_rate_by_month(leads)
        self.assertEqual(months[0]['rate'], 33)
        self.assertEqual(aggregation.lead_sources(leads), [
            {'source': 'website', 'count': 2},
            {'source': 'Unknown', 'count': 1},
        ])

    def test_job_completion_counts_converted_as_done(self):
        jobs = [{'status': s} for s in ('completed', 'converted', 'cancelled', 'scheduled')]
        summary = aggregation.job_completion(jobs)
        self.assertEqual(summary['total'], 4)
        self.assertEqual(summary['completed'], 2)
        self.assertEqual(summary['cancelled'], 1)
        self.assertEqual(summary['completion_rate'], 67)

    def test_totals_by_category(self):
        expenses = [
            {'amount': Decimal('30'), 'category__name': 'Fuel', 'category__color': '#ff0000'},
            {'amount': Decimal('10'), 'category__name': 'Meals', 'category__color': ''},
            {'amount': Decimal('60'), 'category__name': 'Fuel', 'category__color': '#ff0000'},
            {'amount': Decimal('0'), 'category__name': None},
        ]
        totals = aggregation.totals_by_category(expenses)
        self.assertEqual(totals[0]['category'], 'Fuel')
        self.assertEqual(totals[0]['amount'], 90.0)
        self.assertEqual(totals[0]['percentage'], 90)
        self.assertEqual(totals[0]['count'], 2)
        self.assertEqual(totals[-1]['category'], 'Uncategorized')


class ReportAPITests(TestCase):
    """Test the report endpoints"""

    def setUp(self):
        cache.clear()
        self.manager = TestDataFactory.create_user(role='manager')
        self.organization = self.manager.organization
        self.technician = TestDataFactory.create_user(role='technician', organization=self.organization)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.manager)

    def test_technician_denied(self):
        self.client.authenticate_user(self.technician)
        response = self.client.get('/api/v1/reports/data/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_invalid_range(self):
        response = self.client.get('/api/v1/reports/data/', {'range': '5years'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_report_data_metrics(self):
        TestDataFactory.create_invoice(self.organization, total=Decimal('100.00'))
        TestDataFactory.create_invoice(self.organization, total=Decimal('50.00'))
        TestDataFactory.create_invoice(self.organization, total=Decimal('20.00'), status='refunded')
        TestDataFactory.create_invoice(self.organization, total=Decimal('999.00'), status='draft')
        TestDataFactory.create_lead(self.organization, status='converted')
        for _ in range(3):
            TestDataFactory.create_lead(self.organization, source='referral')
        TestDataFactory.create_expense(self.organization, amount=Decimal('40.00'))
        TestDataFactory.create_expense(self.organization, amount=Decimal('15.00'), status='rejected')
        TestDataFactory.create_invoice(TestDataFactory.create_organization(), total=Decimal('500.00'))

        response = self.client.get('/api/v1/reports/data/', {'range': '3months'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        metrics = response.data['metrics']
        self.assertEqual(metrics['total_revenue'], 150.0)
        self.assertEqual(metrics['total_refunds'], 20.0)
        self.assertEqual(metrics['net_revenue'], 130.0)
        self.assertEqual(metrics['total_leads'], 4)
        self.assertEqual(metrics['close_rate'], 25)
        self.assertEqual(metrics['total_expenses'], 40.0)
        self.assertEqual(len(response.data['revenue']), 1)
        self.assertEqual(response.data['lead_sources'][0], {'source': 'referral', 'count': 3})

    def test_report_refreshes_after_new_data(self):
        response = self.client.get('/api/v1/reports/data/')
        self.assertEqual(response.data['metrics']['total_revenue'], 0.0)
        TestDataFactory.create_invoice(self.organization, total=Decimal('75.00'))
        response = self.client.get('/api/v1/reports/data/')
        self.assertEqual(response.data['metrics']['total_revenue'], 75.0)

    def test_expenses_by_category(self):
        fuel = TestDataFactory.create_expense_category(self.organization, name='Fuel')
        meals = TestDataFactory.create_expense_category(self.organization, name='Meals')
        TestDataFactory.create_expense(self.organization, category=fuel, amount=Decimal('75.00'))
        TestDataFactory.create_expense(self.organization, category=meals, amount=Decimal('25.00'))
        response = self.client.get('/api/v1/reports/expenses-by-category/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total'], 100.0)
        self.assertEqual([c['category'] for c in response.data['categories']], ['Fuel', 'Meals'])
        self.assertEqual(response.data['categories'][0]['percentage'], 75)

    def test_job_report(self):
        TestDataFactory.create_calendar_job(self.organization, status='completed', priority='high')
        TestDataFactory.create_calendar_job(self.organization, status='scheduled')
        response = self.client.get('/api/v1/reports/jobs/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['summary']['total'], 2)
        self.assertEqual(response.data['summary']['completion_rate'], 50)
        self.assertEqual(response.data['by_priority']['high'], 1)

    def test_fleet_report(self):
        vehicle = TestDataFactory.create_vehicle(self.organization, current_mileage=20000)
        TestDataFactory.create_vehicle(self.organization, status='maintenance')
        MaintenanceInterval.objects.create(vehicle=vehicle, name='Oil', interval_miles=5000,
                                           last_service_mileage=10000)
        response = self.client.get('/api/v1/reports/fleet/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total_vehicles'], 2)
        self.assertEqual(response.data['by_status']['maintenance'], 1)
        self.assertEqual(response.data['maintenance']['overdue'], 1)

    def test_inventory_report(self):
        TestDataFactory.create_inventory(self.technician, current_quantity=1, min_quantity=2)
        TestDataFactory.create_inventory(self.technician, current_quantity=0)
        other_tech = TestDataFactory.create_user(role='technician', organization=self.organization)
        TestDataFactory.create_inventory(other_tech, current_quantity=5)
        DailyInventoryVerification.objects.create(
            organization=self.organization, user=self.technician, verification_date=timezone.localdate(),
            is_complete=True, status='discrepancy',
        )
        response = self.client.get('/api/v1/reports/inventory/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total_items'], 3)
        self.assertEqual(response.data['low_stock_items'], 1)
        self.assertEqual(response.data['out_of_stock_items'], 1)
        self.assertEqual(response.data['technicians'], 2)
        self.assertEqual(response.data['verification']['completed'], 1)
        self.assertEqual(response.data['verification']['pending'], 1)
        self.assertEqual(response.data['verification']['discrepancies'], 1)
