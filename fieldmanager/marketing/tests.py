"""
Test suite for the marketing module
Tests: popup management, public popup feed and impression/click counters
"""
from datetime import timedelta

from django.core.cache import cache
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from fieldmanager.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from fieldmanager.marketing.models import WebsitePopup


class PopupManagementTests(TestCase):
    """Test popup CRUD for managers"""

    def setUp(self):
        cache.clear()
        self.manager = TestDataFactory.create_user(role='manager')
        self.organization = self.manager.organization
        self.technician = TestDataFactory.create_user(role='technician', organization=self.organization)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.manager)

    def test_create_popup(self):
        data = {
            'title': 'Spring special',
            'message': '10% off all tune-ups',
            'display_pages': '/, /services',
            'background_color': '#112233',
            'priority': 5,
        }
        response = self.client.post('/api/v1/frontend/popups/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['display_pages'], ['/', '/services'])
        self.assertEqual(response.data['click_through_rate'], 0)

    def test_invalid_color(self):
        data = {'title': 'Bad color', 'message': 'x', 'background_color': 'red'}
        response = self.client.post('/api/v1/frontend/popups/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('background_color', response.data)

    def test_end_before_start(self):
        data = {'title': 'Window', 'message': 'x', 'start_date': '2024-05-01T00:00:00Z',
                'end_date': '2024-04-01T00:00:00Z'}
        response = self.client.post('/api/v1/frontend/popups/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_technician_denied(self):
        self.client.authenticate_user(self.technician)
        response = self.client.get('/api/v1/frontend/popups/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_filter_and_delete(self):
        WebsitePopup.objects.create(organization=self.organization, title='On', message='x')
        off = WebsitePopup.objects.create(organization=self.organization, title='Off', message='x', is_active=False)
        response = self.client.get('/api/v1/frontend/popups/', {'is_active': 'false'})
        self.assertEqual([p['title'] for p in response.data], ['Off'])

        response = self.client.delete(f'/api/v1/frontend/popups/{off.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(WebsitePopup.objects.filter(id=off.id).exists())


class PublicPopupTests(TestCase):
    """Test the public popup feed"""

    def setUp(self):
        cache.clear()
        self.organization = TestDataFactory.create_organization(name='Bright Electric')
        self.client = AuthenticatedAPIClient()

    def _popup(self, **extra):
        extra.setdefault('title', f'Popup {TestDataFactory.random_string(4)}')
        extra.setdefault('message', 'Hello')
        return WebsitePopup.objects.create(organization=self.organization, **extra)

    def test_unknown_organization(self):
        response = self.client.get('/api/v1/public/popups/', {'organization': 'nobody-here'})
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_only_live_popups_by_priority(self):
        now = timezone.now()
        low = self._popup(priority=1)
        high = self._popup(priority=9)
        self._popup(is_active=False)
        self._popup(start_date=now + timedelta(days=1))
        self._popup(end_date=now - timedelta(days=1))

        response = self.client.get('/api/v1/public/popups/', {'organization': self.organization.slug})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([p['id'] for p in response.data], [high.id, low.id])
        self.assertNotIn('impressions', response.data[0])

    def test_page_filter(self):
        everywhere = self._popup()
        services = self._popup(display_pages=['/services'])
        response = self.client.get('/api/v1/public/popups/', {'organization': self.organization.id, 'page': '/'})
        self.assertEqual({p['id'] for p in response.data}, {everywhere.id})
        response = self.client.get('/api/v1/public/popups/',
                                   {'organization': self.organization.id, 'page': '/services'})
        self.assertEqual({p['id'] for p in response.data}, {everywhere.id, services.id})

    def test_new_popup_invalidates_cache(self):
        self._popup()
        response = self.client.get('/api/v1/public/popups/', {'organization': self.organization.slug})
        self.assertEqual(len(response.data), 1)
        self._popup()
        response = self.client.get('/api/v1/public/popups/', {'organization': self.organization.slug})
        self.assertEqual(len(response.data), 2)

    def test_impressions_and_clicks(self):
        popup = self._popup()
        self.client.post(f'/api/v1/public/popups/{popup.id}/impression/')
        self.client.post(f'/api/v1/public/popups/{popup.id}/impression/')
        self.client.post(f'/api/v1/public/popups/{popup.id}/impression/')
        self.client.post(f'/api/v1/public/popups/{popup.id}/impression/')
        response = self.client.post(f'/api/v1/public/popups/{popup.id}/click/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['clicks'], 1)

        popup.refresh_from_db()
        self.assertEqual(popup.impressions, 4)
        self.assertEqual(popup.click_through_rate, 25.0)

    def test_inactive_popup_not_counted(self):
        popup = self._popup(is_active=False)
        response = self.client.post(f'/api/v1/public/popups/{popup.id}/click/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
