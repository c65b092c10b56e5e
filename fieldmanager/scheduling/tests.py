"""
Test suite for the scheduling module
Tests: calendar grids, calendar jobs, conversion to projects and projects
"""
from datetime import date, datetime

from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from fieldmanager.core.models import AuditLog
from fieldmanager.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from fieldmanager.scheduling import calendar_grid
from fieldmanager.scheduling.models import CalendarJob, Project
from fieldmanager.scheduling.utils import google_maps_directions_url


def aware(*args):
    return timezone.make_aware(datetime(*args))


class CalendarGridTests(TestCase):
    """Test calendar day grids"""

    def test_week_starts_on_sunday(self):
        days = calendar_grid.view_days(calendar_grid.WEEK, date(2024, 3, 6))
        self.assertEqual(len(days), 7)
        self.assertEqual(days[0], date(2024, 3, 3))
        self.assertEqual(days[-1], date(2024, 3, 9))
        self.assertEqual(calendar_grid.start_of_week(date(2024, 3, 3)), date(2024, 3, 3))

    def test_two_weeks(self):
        days = calendar_grid.view_days(calendar_grid.TWO_WEEKS, date(2024, 3, 6))
        self.assertEqual(len(days), 14)
        self.assertEqual(days[-1], date(2024, 3, 16))

    def test_month_grid_has_six_weeks(self):
        days = calendar_grid.view_days(calendar_grid.MONTH, date(2024, 3, 15))
        self.assertEqual(len(days), calendar_grid.MONTH_GRID_DAYS)
        self.assertEqual(days[0].weekday(), 6)
        self.assertEqual(days[0], date(2024, 2, 25))
        self.assertIn(date(2024, 3, 1), days)
        self.assertIn(date(2024, 3, 31), days)

    def test_three_months_covers_whole_weeks(self):
        days = calendar_grid.view_days(calendar_grid.THREE_MONTHS, date(2024, 3, 15))
        self.assertEqual(len(days) % 7, 0)
        self.assertLessEqual(days[0], date(2024, 2, 1))
        self.assertGreaterEqual(days[-1], date(2024, 4, 30))
        self.assertEqual(days[0].weekday(), 6)

    def test_current_period(self):
        anchor = date(2024, 3, 15)
        self.assertTrue(calendar_grid.is_current_period(calendar_grid.MONTH, anchor, date(2024, 3, 1)))
        self.assertFalse(calendar_grid.is_current_period(calendar_grid.MONTH, anchor, date(2024, 2, 29)))
        self.assertTrue(calendar_grid.is_current_period(calendar_grid.THREE_MONTHS, anchor, date(2024, 2, 1)))
        self.assertFalse(calendar_grid.is_current_period(calendar_grid.THREE_MONTHS, anchor, date(2024, 1, 31)))
        self.assertTrue(calendar_grid.is_current_period(calendar_grid.WEEK, anchor, date(2024, 3, 10)))

    def test_navigate(self):
        anchor = date(2024, 3, 15)
        self.assertEqual(calendar_grid.navigate(calendar_grid.WEEK, anchor, 1), date(2024, 3, 22))
        self.assertEqual(calendar_grid.navigate(calendar_grid.TWO_WEEKS, anchor, -1), date(2024, 3, 1))
        self.assertEqual(calendar_grid.navigate(calendar_grid.MONTH, date(2024, 1, 31), 1), date(2024, 2, 29))
        self.assertEqual(calendar_grid.navigate(calendar_grid.THREE_MONTHS, anchor, -1), date(2023, 12, 15))
        with self.assertRaises(ValueError):
            calendar_grid.navigate(calendar_grid.WEEK, anchor, 2)

    def test_titles(self):
        self.assertEqual(calendar_grid.view_title(calendar_grid.WEEK, date(2024, 3, 6)), 'Mar 3 - Mar 9, 2024')
        self.assertEqual(calendar_grid.view_title(calendar_grid.MONTH, date(2024, 3, 6)), 'March 2024')
        self.assertEqual(calendar_grid.view_title(calendar_grid.THREE_MONTHS, date(2024, 3, 6)), 'Feb - Apr 2024')

    def test_unknown_view(self):
        with self.assertRaises(calendar_grid.InvalidViewMode):
            calendar_grid.view_days('1year', date(2024, 3, 6))

    def test_multi_day_job_spans_days(self):
        days = calendar_grid.view_days(calendar_grid.WEEK, date(2024, 3, 6))
        jobs = [
            ('long', date(2024, 3, 1), date(2024, 3, 4)),
            ('single', date(2024, 3, 6), None),
            ('outside', date(2024, 3, 20), date(2024, 3, 21)),
        ]
        by_day = calendar_grid.assign_jobs_to_days(days, jobs, lambda job: (job[1], job[2]))
        self.assertEqual([job[0] for job in by_day[date(2024, 3, 3)]], ['long'])
        self.assertEqual([job[0] for job in by_day[date(2024, 3, 4)]], ['long'])
        self.assertEqual(by_day[date(2024, 3, 5)], [])
        self.assertEqual([job[0] for job in by_day[date(2024, 3, 6)]], ['single'])
        self.assertFalse(any(job[0] == 'outside' for jobs_on_day in by_day.values() for job in jobs_on_day))

    def test_directions_url(self):
        self.assertIsNone(google_maps_directions_url('  '))
        url = google_maps_directions_url('1 Main St, Austin')
        self.assertTrue(url.startswith('https://www.google.com/maps/dir/?api=1&destination='))
        self.assertIn('Main', url)


class CalendarViewAPITests(TestCase):
    """Test the calendar grid endpoint"""

    def setUp(self):
        self.user = TestDataFactory.create_user(role='technician')
        self.organization = self.user.organization
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_invalid_view(self):
        response = self.client.get('/api/v1/calendar/', {'view': '1year'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_invalid_date(self):
        response = self.client.get('/api/v1/calendar/', {'date': 'not-a-date'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_month_view_places_jobs(self):
        TestDataFactory.create_calendar_job(
            self.organization, title='Roof repair',
            start_date=aware(2024, 3, 12, 9, 0), end_date=aware(2024, 3, 13, 17, 0),
        )
        TestDataFactory.create_calendar_job(
            self.organization, title='Cancelled visit', start_date=aware(2024, 3, 12, 10, 0), status='cancelled',
        )
        TestDataFactory.create_calendar_job(
            TestDataFactory.create_organization(), title='Other org', start_date=aware(2024, 3, 12, 10, 0),
        )

        response = self.client.get('/api/v1/calendar/', {'view': '1month', 'date': '2024-03-15'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['title'], 'March 2024')
        self.assertEqual(len(response.data['days']), 42)
        self.assertEqual(response.data['prev_date'], date(2024, 2, 15))
        self.assertEqual(response.data['next_date'], date(2024, 4, 15))

        by_date = {day['date']: day for day in response.data['days']}
        self.assertEqual([job['title'] for job in by_date[date(2024, 3, 12)]['jobs']], ['Roof repair'])
        self.assertEqual([job['title'] for job in by_date[date(2024, 3, 13)]['jobs']], ['Roof repair'])
        self.assertEqual(by_date[date(2024, 3, 14)]['jobs'], [])
        self.assertFalse(by_date[date(2024, 2, 25)]['is_current_period'])

        response = self.client.get('/api/v1/calendar/', {'date': '2024-03-15', 'include_cancelled': 'true'})
        by_date = {day['date']: day for day in response.data['days']}
        self.assertEqual(len(by_date[date(2024, 3, 12)]['jobs']), 2)


class CalendarJobAPITests(TestCase):
    """Test calendar job endpoints"""

    def setUp(self):
        self.manager = TestDataFactory.create_user(role='manager')
        self.organization = self.manager.organization
        self.technician = TestDataFactory.create_user(role='technician', organization=self.organization)
        self.customer = TestDataFactory.create_customer(self.organization, name='Acme Plumbing')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.manager)

    def test_create_job(self):
        data = {
            'title': 'Install water heater',
            'start_date': '2024-03-12T09:00:00Z',
            'end_date': '2024-03-12T12:00:00Z',
            'customer': self.customer.id,
            'assigned_to': self.technician.id,
            'location': '12 Elm St',
        }
        response = self.client.post('/api/v1/calendar-jobs/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['customer_name'], 'Acme Plumbing')
        self.assertIsNotNone(response.data['directions_url'])
        self.assertTrue(AuditLog.objects.filter(model_name='CalendarJob', action='create').exists())

    def test_end_before_start_rejected(self):
        data = {'title': 'Backwards', 'start_date': '2024-03-12T09:00:00Z', 'end_date': '2024-03-11T09:00:00Z'}
        response = self.client.post('/api/v1/calendar-jobs/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('end_date', response.data)

    def test_foreign_customer_rejected(self):
        foreign = TestDataFactory.create_customer(TestDataFactory.create_organization())
        data = {'title': 'Job', 'start_date': '2024-03-12T09:00:00Z', 'customer': foreign.id}
        response = self.client.post('/api/v1/calendar-jobs/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_status_cannot_be_set_to_converted(self):
        job = TestDataFactory.create_calendar_job(self.organization)
        response = self.client.patch(f'/api/v1/calendar-jobs/{job.id}/', {'status': 'converted'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_filter_by_status(self):
        TestDataFactory.create_calendar_job(self.organization, status='completed')
        TestDataFactory.create_calendar_job(self.organization)
        response = self.client.get('/api/v1/calendar-jobs/', {'status': 'completed'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)

    def test_delete_job(self):
        job = TestDataFactory.create_calendar_job(self.organization)
        response = self.client.delete(f'/api/v1/calendar-jobs/{job.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(CalendarJob.objects.filter(id=job.id).exists())

    def test_convert_to_project(self):
        job = TestDataFactory.create_calendar_job(
            self.organization, title='Kitchen remodel', customer=self.customer,
            start_date=aware(2024, 3, 12, 9, 0), end_date=aware(2024, 3, 20, 17, 0),
        )
        response = self.client.post(f'/api/v1/calendar-jobs/{job.id}/convert-to-job/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        project = Project.objects.get(id=response.data['project']['id'])
        self.assertEqual(project.name, 'Kitchen remodel')
        self.assertEqual(project.customer, self.customer)
        self.assertEqual(response.data['project']['calendar_job_id'], job.id)

        job.refresh_from_db()
        self.assertEqual(job.status, 'converted')
        self.assertEqual(job.project, project)

        response = self.client.post(f'/api/v1/calendar-jobs/{job.id}/convert-to-job/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(Project.objects.count(), 1)

    def test_convert_uses_given_name(self):
        job = TestDataFactory.create_calendar_job(self.organization)
        response = self.client.post(f'/api/v1/calendar-jobs/{job.id}/convert-to-job/',
                                    {'name': 'Phase 1'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['project']['name'], 'Phase 1')

    def test_cancelled_job_cannot_be_converted(self):
        job = TestDataFactory.create_calendar_job(self.organization, status='cancelled')
        response = self.client.post(f'/api/v1/calendar-jobs/{job.id}/convert-to-job/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(Project.objects.exists())

    def test_other_organization_job_not_found(self):
        job = TestDataFactory.create_calendar_job(TestDataFactory.create_organization())
        response = self.client.post(f'/api/v1/calendar-jobs/{job.id}/convert-to-job/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class ProjectAPITests(TestCase):
    """Test project endpoints"""

    def setUp(self):
        self.manager = TestDataFactory.create_user(role='manager')
        self.organization = self.manager.organization
        self.technician = TestDataFactory.create_user(role='technician', organization=self.organization)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.manager)

    def test_create_and_list(self):
        response = self.client.post('/api/v1/projects/', {'name': 'Office fit-out'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        response = self.client.get('/api/v1/projects/')
        self.assertEqual(len(response.data), 1)
        self.assertIsNone(response.data[0]['calendar_job_id'])

    def test_technician_cannot_delete(self):
        project = Project.objects.create(organization=self.organization, name='Deck')
        self.client.authenticate_user(self.technician)
        response = self.client.delete(f'/api/v1/projects/{project.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.client.authenticate_user(self.manager)
        response = self.client.delete(f'/api/v1/projects/{project.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
