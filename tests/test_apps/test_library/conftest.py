"""Shared fixtures for library app tests."""

import pytest
from django.core.files.base import ContentFile

from server.apps.library.infrastructure.storage import MirrorStorage
from server.apps.library.logic.document_operations import create_document
from server.apps.library.logic.folder_operations import (
    create_folder,
    ensure_root_folder,
)
from server.apps.library.logic.staging import StagedFile


@pytest.fixture
def mirror_root(tmp_path):
    """Base directory of the mirror tree (created by ensure_root_folder).

    Returns:
        Path of the mirror base directory.
    """
    return tmp_path / 'tree'


@pytest.fixture
def staging_root(tmp_path):
    """Upload staging directory.

    Returns:
        Path of an existing, empty staging directory.
    """
    staging = tmp_path / 'temp'
    staging.mkdir()
    return staging


@pytest.fixture(autouse=True)
def library_storages(settings, mirror_root, staging_root):
    """Point the mirror and staging storages at temporary directories."""
    settings.STORAGES = {
        'default': {
            'BACKEND': 'django.core.files.storage.FileSystemStorage',
        },
        'mirror': {
            'BACKEND': 'server.apps.library.infrastructure.storage.MirrorStorage',
            'OPTIONS': {'location': str(mirror_root)},
        },
        'staging': {
            'BACKEND': 'server.apps.library.infrastructure.storage.StagingStorage',
            'OPTIONS': {'location': str(staging_root)},
        },
    }


@pytest.fixture
def root_folder(db):
    """Create the root folder and mirror base directory.

    Returns:
        Root Folder instance.
    """
    root, _ = ensure_root_folder()
    return root


@pytest.fixture
def make_staged_file(staging_root):
    """Factory writing an upload into the staging area.

    Returns:
        Callable ``(name, content) -> StagedFile``.
    """
    def factory(name='upload.pdf', content=b'%PDF-1.4 test document'):
        (staging_root / name).write_bytes(content)
        return StagedFile(
            name=name,
            original_name=name,
            mime_type='application/pdf',
            size_bytes=len(content),
        )

    return factory


@pytest.fixture
def make_document(make_staged_file):
    """Factory creating a document through the engine.

    Returns:
        Callable ``(parent, name, extension, content) -> Document``.
    """
    def factory(parent, name='Q1', extension='pdf', content=b'quarterly'):
        staged = make_staged_file(f'{name}-upload.{extension}', content)
        return create_document(parent.pk, name, extension, '', staged)

    return factory


@pytest.fixture
def reports_folder(root_folder):
    """Create a 'Reports' folder under the root.

    Returns:
        Folder instance.
    """
    return create_folder('Reports', root_folder.pk)


@pytest.fixture
def pdf_upload():
    """Sample PDF upload.

    Returns:
        ContentFile named like a client upload.
    """
    return ContentFile(b'%PDF-1.4 sample', name='report.pdf')


@pytest.fixture
def mirror_moves(monkeypatch):
    """Record every move/rename the mirror performs.

    Returns:
        List of ``(old_name, new_name)`` tuples, filled as calls happen.
    """
    calls = []
    original = MirrorStorage.move_or_rename

    def spy(self, old_name, new_name):
        calls.append((old_name, new_name))
        original(self, old_name, new_name)

    monkeypatch.setattr(MirrorStorage, 'move_or_rename', spy)
    return calls
