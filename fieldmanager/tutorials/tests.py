"""
Test suite for the tutorials module
Tests: completion percentage, tutorial visibility, progress tracking, ratings and seeding
"""
from decimal import Decimal
from io import StringIO

from django.core.cache import cache
from django.core.management import call_command
from django.test import TestCase
from rest_framework import status
from fieldmanager.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from fieldmanager.tutorials.defaults import DEFAULT_CATEGORIES, DEFAULT_TUTORIALS, seed_tutorials
from fieldmanager.tutorials.models import Tutorial, TutorialCategory, TutorialProgress
from fieldmanager.tutorials.progress import completion_percentage, refresh_rating, start_tutorial


class CompletionPercentageTests(TestCase):
    """Test progress percentages"""

    def test_status_bounds(self):
        self.assertEqual(completion_percentage('completed', 'video', [], 0, 0, 10), 100)
        self.assertEqual(completion_percentage('not_started', 'video', [], 0, 9999, 10), 0)

    def test_interactive_uses_steps(self):
        self.assertEqual(completion_percentage('in_progress', 'interactive', [1, 2, 3], 1, 0, 10), 75)

    def test_time_based_is_capped(self):
        self.assertEqual(completion_percentage('in_progress', 'video', [], 0, 300, 10), 50)
        self.assertEqual(completion_percentage('in_progress', 'documentation', [], 0, 6000, 10), 90)
        self.assertEqual(completion_percentage('in_progress', 'video', [], 0, 300, 0), 0)

    def test_interactive_without_completed_steps_is_zero(self):
        self.assertEqual(completion_percentage('in_progress', 'interactive', [], 2, 60, 4), 0)
        self.assertEqual(completion_percentage('in_progress', 'interactive', [], 0, 60, 4), 0)


class TutorialAPITests(TestCase):
    """Test tutorial listing, visibility and editing"""

    def setUp(self):
        cache.clear()
        self.admin = TestDataFactory.create_user(role='admin')
        self.organization = self.admin.organization
        self.technician = TestDataFactory.create_user(role='technician', organization=self.organization)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.technician)

    def test_visibility(self):
        global_tutorial = TestDataFactory.create_tutorial(title='Global basics')
        own = TestDataFactory.create_tutorial(organization=self.organization, title='Our checklist')
        TestDataFactory.create_tutorial(organization=TestDataFactory.create_organization(), title='Theirs')
        TestDataFactory.create_tutorial(title='Draft', is_published=False)

        response = self.client.get('/api/v1/tutorials/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual({t['id'] for t in response.data}, {global_tutorial.id, own.id})
        flags = {t['id']: t['is_global'] for t in response.data}
        self.assertTrue(flags[global_tutorial.id])
        self.assertFalse(flags[own.id])

    def test_filters(self):
        video = TestDataFactory.create_tutorial(type='video', difficulty='advanced', title='Reporting deep dive')
        TestDataFactory.create_tutorial(type='documentation')
        response = self.client.get('/api/v1/tutorials/', {'type': 'video'})
        self.assertEqual([t['id'] for t in response.data], [video.id])
        response = self.client.get('/api/v1/tutorials/', {'search': 'deep dive'})
        self.assertEqual([t['id'] for t in response.data], [video.id])
        response = self.client.get('/api/v1/tutorials/', {'category': video.category.slug})
        self.assertEqual([t['id'] for t in response.data], [video.id])

    def test_list_refreshes_after_change(self):
        TestDataFactory.create_tutorial()
        self.assertEqual(len(self.client.get('/api/v1/tutorials/').data), 1)
        TestDataFactory.create_tutorial()
        self.assertEqual(len(self.client.get('/api/v1/tutorials/').data), 2)

    def test_detail_counts_views(self):
        tutorial = TestDataFactory.create_tutorial()
        self.client.get(f'/api/v1/tutorials/{tutorial.id}/')
        response = self.client.get(f'/api/v1/tutorials/{tutorial.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['view_count'], 2)

    def test_unpublished_hidden_from_non_editors(self):
        draft = TestDataFactory.create_tutorial(organization=self.organization, is_published=False)
        response = self.client.get(f'/api/v1/tutorials/{draft.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.client.authenticate_user(self.admin)
        response = self.client.get(f'/api/v1/tutorials/{draft.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_admin_creates_organization_tutorial(self):
        self.client.authenticate_user(self.admin)
        data = {'title': 'Closing out a job', 'type': 'documentation', 'estimated_time': 5, 'tags': ['jobs', ' ']}
        response = self.client.post('/api/v1/tutorials/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['slug'], 'closing-out-a-job')
        self.assertEqual(response.data['tags'], ['jobs'])
        self.assertFalse(response.data['is_global'])
        self.assertEqual(Tutorial.objects.get(slug='closing-out-a-job').organization, self.organization)

        response = self.client.post('/api/v1/tutorials/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('slug', response.data)

    def test_technician_cannot_create(self):
        response = self.client.post('/api/v1/tutorials/', {'title': 'Nope'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_only_superuser_edits_global(self):
        tutorial = TestDataFactory.create_tutorial()
        self.client.authenticate_user(self.admin)
        response = self.client.patch(f'/api/v1/tutorials/{tutorial.id}/', {'title': 'Changed'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        superuser = TestDataFactory.create_user(role='admin', is_staff=True, is_superuser=True)
        self.client.authenticate_user(superuser)
        response = self.client.patch(f'/api/v1/tutorials/{tutorial.id}/', {'title': 'Changed'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['title'], 'Changed')

    def test_categories_count_visible_tutorials(self):
        category = TutorialCategory.objects.create(name='Fleet', slug='fleet')
        TestDataFactory.create_tutorial(category=category)
        TestDataFactory.create_tutorial(category=category, organization=self.organization)
        TestDataFactory.create_tutorial(category=category, organization=TestDataFactory.create_organization())
        TestDataFactory.create_tutorial(category=category, is_published=False)
        response = self.client.get('/api/v1/tutorial-categories/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        counts = {c['slug']: c['tutorial_count'] for c in response.data}
        self.assertEqual(counts['fleet'], 2)


class TutorialProgressTests(TestCase):
    """Test progress tracking and ratings"""

    def setUp(self):
        self.user = TestDataFactory.create_user(role='technician')
        self.tutorial = TestDataFactory.create_tutorial(type='interactive', estimated_time=10,
                                                        interactive_steps=[{'title': 'a'}, {'title': 'b'}])
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def _start(self):
        return self.client.post('/api/v1/tutorial-progress/start/', {'tutorial_id': self.tutorial.id}, format='json')

    def test_start_is_idempotent(self):
        response = self._start()
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], 'in_progress')
        self.assertIsNotNone(response.data['started_at'])

        response = self._start()
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(TutorialProgress.objects.count(), 1)

    def test_start_unpublished_not_found(self):
        draft = TestDataFactory.create_tutorial(is_published=False)
        response = self.client.post('/api/v1/tutorial-progress/start/', {'tutorial_id': draft.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_step_and_time_updates(self):
        progress_id = self._start().data['id']
        url = f'/api/v1/tutorial-progress/{progress_id}/'
        self.client.patch(url, {'step_completed': 1, 'current_step': 1, 'time_spent': 30}, format='json')
        response = self.client.patch(url, {'step_completed': 1, 'time_spent': 45}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['completed_steps'], [1])
        self.assertEqual(response.data['time_spent'], 75)
        self.assertEqual(response.data['completion_percentage'], 50)

        response = self.client.patch(url, {'completed': True}, format='json')
        self.assertEqual(response.data['status'], 'completed')
        self.assertIsNotNone(response.data['completed_at'])
        self.assertEqual(response.data['completion_percentage'], 100)

    def test_cannot_update_someone_elses_progress(self):
        other = TestDataFactory.create_user()
        progress, _ = start_tutorial(other, self.tutorial)
        response = self.client.patch(f'/api/v1/tutorial-progress/{progress.id}/', {'time_spent': 5}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_rating_recomputes_average(self):
        other = TestDataFactory.create_user()
        other_progress, _ = start_tutorial(other, self.tutorial)
        other_progress.rating = 5
        other_progress.save()

        progress_id = self._start().data['id']
        response = self.client.patch(f'/api/v1/tutorial-progress/{progress_id}/', {'rating': 4}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.tutorial.refresh_from_db()
        self.assertEqual(self.tutorial.average_rating, Decimal('4.50'))
        self.assertEqual(self.tutorial.total_ratings, 2)

        response = self.client.patch(f'/api/v1/tutorial-progress/{progress_id}/', {'rating': 6}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_refresh_rating_without_ratings(self):
        average, total = refresh_rating(self.tutorial)
        self.assertEqual(average, Decimal('0.00'))
        self.assertEqual(total, 0)

    def test_stats(self):
        second = TestDataFactory.create_tutorial()
        progress, _ = start_tutorial(self.user, self.tutorial)
        progress.status = 'completed'
        progress.time_spent = 120
        progress.rating = 4
        progress.save()
        other_progress, _ = start_tutorial(self.user, second)
        other_progress.time_spent = 30
        other_progress.save()

        response = self.client.get('/api/v1/tutorial-stats/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total_tutorials'], 2)
        self.assertEqual(response.data['started'], 2)
        self.assertEqual(response.data['completed'], 1)
        self.assertEqual(response.data['in_progress'], 1)
        self.assertEqual(response.data['total_time_spent'], 150)
        self.assertEqual(response.data['average_rating'], 4)


class SeedTutorialsTests(TestCase):
    """Test loading the default help center content"""

    def test_seed_is_repeatable(self):
        counts = seed_tutorials()
        self.assertEqual(counts['categories_created'], len(DEFAULT_CATEGORIES))
        self.assertEqual(counts['tutorials_created'], len(DEFAULT_TUTORIALS))
        self.assertTrue(Tutorial.objects.filter(organization__isnull=True).exists())

        counts = seed_tutorials()
        self.assertEqual(counts, {'categories_created': 0, 'tutorials_created': 0, 'updated': 0})

    def test_update_overwrites_changes(self):
        seed_tutorials()
        tutorial = Tutorial.objects.get(slug=DEFAULT_TUTORIALS[0]['slug'])
        Tutorial.objects.filter(pk=tutorial.pk).update(title='Edited')
        counts = seed_tutorials(update=True)
        self.assertEqual(counts['updated'], len(DEFAULT_CATEGORIES) + len(DEFAULT_TUTORIALS))
        tutorial.refresh_from_db()
        self.assertEqual(tutorial.title, DEFAULT_TUTORIALS[0]['title'])

    def test_command_output(self):
        out = StringIO()
        call_command('seed_tutorials', stdout=out)
        self.assertIn(f"Tutorials created: {len(DEFAULT_TUTORIALS)}", out.getvalue())
