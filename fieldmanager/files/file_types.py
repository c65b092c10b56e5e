"""File type detection from mime type and extension"""
import mimetypes
import os

DOCUMENT_EXTENSIONS = {'.doc', '.docx', '.odt', '.rtf'}
SPREADSHEET_EXTENSIONS = {'.xls', '.xlsx', '.ods', '.csv'}
TEXT_EXTENSIONS = {'.txt', '.md', '.json', '.xml', '.log', '.html', '.css', '.js'}
ARCHIVE_EXTENSIONS = {'.zip', '.tar', '.gz', '.tgz', '.rar', '.7z'}

DOCUMENT_MIME_TYPES = {
    'application/msword',
    'application/vnd.openxmlformats-officedocument.wordprocessingml.document',
    'application/vnd.oasis.opendocument.text',
    'application/rtf',
}
SPREADSHEET_MIME_TYPES = {
    'application/vnd.ms-excel',
    'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
    'application/vnd.oasis.opendocument.spreadsheet',
    'text/csv',
}
ARCHIVE_MIME_TYPES = {
    'application/zip',
    'application/x-tar',
    'application/gzip',
    'application/x-rar-compressed',
    'application/x-7z-compressed',
}

# Types that can carry an e-signature
SIGNABLE_TYPES = ('pdf', 'document')


def guess_mime_type(filename):
    mime_type, _ = mimetypes.guess_type(filename)
    return mime_type or 'application/octet-stream'


def detect_file_type(mime_type, filename):
    mime_type = (mime_type or '').lower()
    extension = os.path.splitext(filename or '')[1].lower()

    if mime_type.startswith('image/'):
        return 'image'
    if mime_type.startswith('video/'):
        return 'video'
    if mime_type.startswith('audio/'):
        return 'audio'
    if mime_type == 'application/pdf' or extension == '.pdf':
        return 'pdf'
    if mime_type in DOCUMENT_MIME_TYPES or extension in DOCUMENT_EXTENSIONS:
        return 'document'
    if mime_type in SPREADSHEET_MIME_TYPES or extension in SPREADSHEET_EXTENSIONS:
        return 'spreadsheet'
    if mime_type in ARCHIVE_MIME_TYPES or extension in ARCHIVE_EXTENSIONS:
        return 'archive'
    if mime_type.startswith('text/') or extension in TEXT_EXTENSIONS:
        return 'text'
    return 'other'


def is_signable(file_type):
    return file_type in SIGNABLE_TYPES
