"""
Test suite for the files module
Tests: folder permission resolution, uploads, moves with undo, sharing, signing and folders
"""
import shutil
import tempfile
from datetime import timedelta
from types import SimpleNamespace
from unittest import mock

from django.core.cache import cache
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase, override_settings
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient
from fieldmanager.core.models import AuditLog
from fieldmanager.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from fieldmanager.files.file_types import detect_file_type, is_signable
from fieldmanager.files.models import Folder, FileItem, FolderPermission, FileShare
from fieldmanager.files.permissions import (
    ROLE_DEFAULT, SOURCE_DEFAULT, SOURCE_FOLDER, SOURCE_INHERITED, SOURCE_MANAGER, resolve_permissions,
)

MEDIA_ROOT = tempfile.mkdtemp()


def rule(folder_id, user_id=None, user_role='', expires_at=None, inherit=True, subfolders=False, **perms):
    values = {
        'can_view': True, 'can_upload': False, 'can_create_subfolder': False,
        'can_edit': False, 'can_delete': False, 'can_move': False,
    }
    values.update(perms)
    return SimpleNamespace(folder_id=folder_id, user_id=user_id, user_role=user_role, expires_at=expires_at,
                           inherit_permissions=inherit, apply_to_subfolders=subfolders, **values)


class PermissionResolutionTests(TestCase):
    """Test folder permission resolution"""

    def test_manager_gets_everything(self):
        result = resolve_permissions(1, 'manager', True, [10], [rule(10, user_id=1, can_view=False)])
        self.assertEqual(result.source, SOURCE_MANAGER)
        self.assertTrue(all(result.permissions.values()))

    def test_root_level_uses_role_default(self):
        result = resolve_permissions(1, 'technician', False, [], [])
        self.assertEqual(result.source, SOURCE_DEFAULT)
        self.assertEqual(result.permissions, ROLE_DEFAULT)

    def test_user_rule_beats_role_rule(self):
        rules = [
            rule(10, user_role='technician', can_delete=True),
            rule(10, user_id=1, can_delete=False, can_edit=True),
        ]
        result = resolve_permissions(1, 'technician', False, [10], rules)
        self.assertEqual(result.source, SOURCE_FOLDER)
        self.assertFalse(result['can_delete'])
        self.assertTrue(result['can_edit'])

    def test_role_rule_applies_to_other_users(self):
        rules = [rule(10, user_role='technician', can_view=False)]
        self.assertFalse(resolve_permissions(2, 'technician', False, [10], rules).allows('can_view'))
        self.assertTrue(resolve_permissions(2, 'user', False, [10], rules).allows('can_view'))

    def test_inheritance_needs_apply_to_subfolders(self):
        chain = [30, 20, 10]
        folder_only = [rule(10, user_id=1, can_view=False, inherit=True, subfolders=False)]
        result = resolve_permissions(1, 'technician', False, chain, folder_only)
        self.assertEqual(result.source, SOURCE_DEFAULT)

        both = [rule(10, user_id=1, can_view=False, inherit=True, subfolders=True)]
        result = resolve_permissions(1, 'technician', False, chain, both)
        self.assertEqual(result.source, SOURCE_INHERITED)
        self.assertEqual(result.folder_id, 10)
        self.assertFalse(result.allows('can_view'))

    def test_folder_that_does_not_inherit_stops_the_walk(self):
        chain = [30, 20, 10]
        rules = [
            rule(10, user_id=1, can_view=False, subfolders=True),
            rule(20, user_id=2, can_edit=True, inherit=False),
        ]
        result = resolve_permissions(1, 'technician', False, chain, rules)
        self.assertEqual(result.source, SOURCE_DEFAULT)
        self.assertTrue(result.allows('can_view'))

        rules[1] = rule(20, user_id=2, can_edit=True, inherit=True)
        result = resolve_permissions(1, 'technician', False, chain, rules)
        self.assertEqual(result.source, SOURCE_INHERITED)
        self.assertEqual(result.folder_id, 10)

    def test_nearest_ancestor_wins(self):
        rules = [
            rule(10, user_id=1, can_edit=False, subfolders=True),
            rule(20, user_id=1, can_edit=True, subfolders=True),
        ]
        result = resolve_permissions(1, 'technician', False, [30, 20, 10], rules)
        self.assertEqual(result.folder_id, 20)
        self.assertTrue(result['can_edit'])

    def test_expired_rules_are_ignored(self):
        now = timezone.now()
        rules = [rule(10, user_id=1, can_view=False, expires_at=now - timedelta(minutes=1))]
        result = resolve_permissions(1, 'technician', False, [10], rules, now=now)
        self.assertEqual(result.source, SOURCE_DEFAULT)
        self.assertTrue(result['can_view'])

    def test_file_types(self):
        self.assertEqual(detect_file_type('application/pdf', 'quote.pdf'), 'pdf')
        self.assertEqual(detect_file_type('', 'contract.docx'), 'document')
        self.assertEqual(detect_file_type('image/jpeg', 'site.jpg'), 'image')
        self.assertEqual(detect_file_type('', 'notes.md'), 'text')
        self.assertEqual(detect_file_type('', 'blob.bin'), 'other')
        self.assertTrue(is_signable('pdf'))
        self.assertFalse(is_signable('image'))


@override_settings(MEDIA_ROOT=MEDIA_ROOT)
class FilesAPITestCase(TestCase):

    @classmethod
    def tearDownClass(cls):
        shutil.rmtree(MEDIA_ROOT, ignore_errors=True)
        super().tearDownClass()

    def setUp(self):
        cache.clear()
        self.manager = TestDataFactory.create_user(role='manager')
        self.organization = self.manager.organization
        self.technician = TestDataFactory.create_user(role='technician', organization=self.organization)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.manager)


class FileAPITests(FilesAPITestCase):
    """Test file endpoints"""

    def test_upload_detects_type(self):
        upload = SimpleUploadedFile('estimate.pdf', b'%PDF-1.4 test', content_type='application/pdf')
        response = self.client.post('/api/v1/files/upload/', {'file': upload, 'tags': 'quote, roof'},
                                    format='multipart')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['file_type'], 'pdf')
        self.assertEqual(response.data['tags'], ['quote', 'roof'])
        self.assertTrue(AuditLog.objects.filter(action='file_upload').exists())

    @override_settings(MAX_UPLOAD_SIZE=10)
    def test_upload_size_limit(self):
        upload = SimpleUploadedFile('big.txt', b'x' * 20, content_type='text/plain')
        response = self.client.post('/api/v1/files/upload/', {'file': upload}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_create_and_edit_text_file(self):
        response = self.client.post('/api/v1/files/create-text/', {'name': 'notes', 'content': 'first'},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['original_name'], 'notes.txt')
        file_id = response.data['id']

        response = self.client.put(f'/api/v1/files/{file_id}/content/', {'content': 'second version'},
                                   format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        response = self.client.get(f'/api/v1/files/{file_id}/content/')
        self.assertEqual(response.data['content'], 'second version')

    def test_list_hides_folders_without_view(self):
        private = TestDataFactory.create_folder(self.organization, name='Private')
        TestDataFactory.create_file(self.organization, folder=private, name='secret.txt')
        FolderPermission.objects.create(organization=self.organization, folder=private,
                                        user=self.technician, can_view=False)

        self.client.authenticate_user(self.technician)
        response = self.client.get('/api/v1/files/', {'folder_id': private.id})
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        response = self.client.get('/api/v1/files/', {'search': 'secret'})
        self.assertEqual(response.data, [])

        self.client.authenticate_user(self.manager)
        response = self.client.get('/api/v1/files/', {'search': 'secret'})
        self.assertEqual(len(response.data), 1)

    def test_global_search_hides_folders_without_view(self):
        hr = TestDataFactory.create_folder(self.organization, name='HR salaries')
        TestDataFactory.create_file(self.organization, folder=hr, name='salaries.pdf')
        FolderPermission.objects.create(organization=self.organization, folder=hr,
                                        user=self.technician, can_view=False)

        self.client.authenticate_user(self.technician)
        response = self.client.get('/api/v1/search/', {'q': 'salaries'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['results']['files'], [])
        self.assertEqual(response.data['results']['folders'], [])

        self.client.authenticate_user(self.manager)
        response = self.client.get('/api/v1/search/', {'q': 'salaries'})
        self.assertEqual([f['name'] for f in response.data['results']['files']], ['salaries.pdf'])
        self.assertEqual([f['id'] for f in response.data['results']['folders']], [hr.id])

    def test_stored_files_are_not_served_anonymously(self):
        item = TestDataFactory.create_file(self.organization, content=b'private')
        response = APIClient().get('/media/' + item.file.name)
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_uploader_can_delete_own_file(self):
        folder = TestDataFactory.create_folder(self.organization)
        own = TestDataFactory.create_file(self.organization, folder=folder, uploaded_by=self.technician)
        other = TestDataFactory.create_file(self.organization, folder=folder, uploaded_by=self.manager)

        self.client.authenticate_user(self.technician)
        response = self.client.delete(f'/api/v1/files/{other.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        response = self.client.delete(f'/api/v1/files/{own.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(FileItem.objects.filter(id=own.id).exists())

    def test_download_counts(self):
        item = TestDataFactory.create_file(self.organization, content=b'abc')
        response = self.client.get(f'/api/v1/files/{item.id}/download/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(b''.join(response.streaming_content), b'abc')
        item.refresh_from_db()
        self.assertEqual(item.download_count, 1)

    def test_other_organization_file_not_found(self):
        item = TestDataFactory.create_file(TestDataFactory.create_organization())
        response = self.client.get(f'/api/v1/files/{item.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class FileMoveTests(FilesAPITestCase):
    """Test moving files and undoing moves"""

    def setUp(self):
        super().setUp()
        self.source = TestDataFactory.create_folder(self.organization, name='Inbox')
        self.target = TestDataFactory.create_folder(self.organization, name='Archive')
        self.item = TestDataFactory.create_file(self.organization, folder=self.source)

    def _move(self, folder_id):
        return self.client.post(f'/api/v1/files/{self.item.id}/move/', {'folder_id': folder_id}, format='json')

    def _undo(self):
        return self.client.post(f'/api/v1/files/{self.item.id}/undo-move/')

    def test_move_and_undo(self):
        response = self._move(self.target.id)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['previous_folder_id'], self.source.id)
        self.item.refresh_from_db()
        self.assertEqual(self.item.folder, self.target)

        response = self._undo()
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.item.refresh_from_db()
        self.assertEqual(self.item.folder, self.source)

        response = self._undo()
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_move_to_root(self):
        response = self._move(None)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.item.refresh_from_db()
        self.assertIsNone(self.item.folder)

    def test_move_to_same_folder(self):
        response = self._move(self.source.id)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_undo_expires(self):
        self._move(self.target.id)
        later = timezone.now() + timedelta(seconds=11)
        with mock.patch('fieldmanager.files.moves.timezone.now', return_value=later):
            response = self._undo()
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.item.refresh_from_db()
        self.assertEqual(self.item.folder, self.target)

    def test_new_move_replaces_undo_slot(self):
        second = TestDataFactory.create_file(self.organization, folder=self.source)
        self._move(self.target.id)
        self.client.post(f'/api/v1/files/{second.id}/move/', {'folder_id': self.target.id}, format='json')
        response = self._undo()
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_technician_needs_move_permission(self):
        self.client.authenticate_user(self.technician)
        response = self._move(self.target.id)
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        FolderPermission.objects.create(organization=self.organization, folder=self.source,
                                        user=self.technician, can_move=True)
        FolderPermission.objects.create(organization=self.organization, folder=self.target,
                                        user=self.technician, can_upload=True)
        response = self._move(self.target.id)
        self.assertEqual(response.status_code, status.HTTP_200_OK)


class ShareAndSignTests(FilesAPITestCase):
    """Test share links and e-signatures"""

    def test_share_link(self):
        item = TestDataFactory.create_file(self.organization, content=b'plans')
        response = self.client.post(f'/api/v1/files/{item.id}/share/', {'permissions': 'view', 'expires_in_days': 7},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        token = response.data['token']
        self.assertIsNotNone(response.data['expires_at'])

        public = AuthenticatedAPIClient()
        response = public.get(f'/api/v1/shared/{token}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['name'], item.original_name)
        response = public.get(f'/api/v1/shared/{token}/', {'download': '1'})
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(FileShare.objects.get(token=token).access_count, 2)

    def test_expired_share(self):
        item = TestDataFactory.create_file(self.organization)
        share = FileShare.objects.create(organization=self.organization, file=item, permissions='download',
                                         expires_at=timezone.now() - timedelta(days=1))
        response = AuthenticatedAPIClient().get(f'/api/v1/shared/{share.token}/')
        self.assertEqual(response.status_code, status.HTTP_410_GONE)

    def test_sign_pdf_once(self):
        item = TestDataFactory.create_file(self.organization, name='contract.pdf', mime_type='application/pdf',
                                           file_type='pdf')
        data = {'signature_data': 'data:image/png;base64,AAAA', 'signer_name': 'Dana Customer'}
        response = self.client.post(f'/api/v1/files/{item.id}/sign/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['signature_status'], 'signed')
        self.assertEqual(response.data['signed_by'], 'Dana Customer')

        response = self.client.post(f'/api/v1/files/{item.id}/sign/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_text_file_cannot_be_signed(self):
        item = TestDataFactory.create_file(self.organization)
        data = {'signature_data': 'x', 'signer_name': 'Dana'}
        response = self.client.post(f'/api/v1/files/{item.id}/sign/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.post(f'/api/v1/files/{item.id}/request-signature/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class FolderAPITests(FilesAPITestCase):
    """Test folder endpoints and permission rules"""

    def test_create_nested_folder(self):
        response = self.client.post('/api/v1/folders/', {'name': 'Jobs'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        parent_id = response.data['id']
        response = self.client.post('/api/v1/folders/', {'name': '2024', 'parent': parent_id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['path'], '/Jobs/2024')

        response = self.client.post('/api/v1/folders/', {'name': 'jobs'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_technician_cannot_create_folder_by_default(self):
        self.client.authenticate_user(self.technician)
        response = self.client.post('/api/v1/folders/', {'name': 'Mine'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_cannot_move_folder_into_descendant(self):
        parent = TestDataFactory.create_folder(self.organization, name='Parent')
        child = TestDataFactory.create_folder(self.organization, name='Child', parent=parent)
        response = self.client.patch(f'/api/v1/folders/{parent.id}/', {'parent': child.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_delete_non_empty_folder_needs_force(self):
        folder = TestDataFactory.create_folder(self.organization)
        TestDataFactory.create_file(self.organization, folder=folder)
        response = self.client.delete(f'/api/v1/folders/{folder.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['file_count'], 1)

        response = self.client.delete(f'/api/v1/folders/{folder.id}/?force=true')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Folder.objects.filter(id=folder.id).exists())
        self.assertFalse(FileItem.objects.filter(folder_id=folder.id).exists())

    def test_permission_rules_and_effective_permissions(self):
        parent = TestDataFactory.create_folder(self.organization, name='Shared')
        child = TestDataFactory.create_folder(self.organization, name='Sub', parent=parent)
        data = {'user_role': 'technician', 'can_view': True, 'can_edit': True,
                'inherit_permissions': True, 'apply_to_subfolders': True}
        response = self.client.post(f'/api/v1/folders/{parent.id}/permissions/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        response = self.client.post(f'/api/v1/folders/{parent.id}/permissions/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        self.client.authenticate_user(self.technician)
        response = self.client.get(f'/api/v1/folders/{child.id}/effective-permissions/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['source'], SOURCE_INHERITED)
        self.assertEqual(response.data['source_folder_id'], parent.id)
        self.assertTrue(response.data['permissions']['can_edit'])

        response = self.client.get(f'/api/v1/folders/{parent.id}/permissions/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_rule_needs_user_or_role(self):
        folder = TestDataFactory.create_folder(self.organization)
        response = self.client.post(f'/api/v1/folders/{folder.id}/permissions/', {'can_view': True}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
