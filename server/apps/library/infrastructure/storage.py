"""Filesystem storage backends for the document mirror."""

import logging
import os
import shutil
from pathlib import Path
from typing import Final, final

from typing_extensions import override

from django.core.files.storage import FileSystemStorage, storages

from server.apps.library.exceptions import MirrorError

_CHUNK_SIZE: Final = 64 * 1024  # 64KB chunks for streaming copies

logger = logging.getLogger(__name__)


def _remove_path(target: Path) -> None:
    """Remove a file or a whole directory tree."""
    if target.is_dir():
        shutil.rmtree(target)
    else:
        target.unlink()


def _relocate(source: Path, destination: Path) -> None:
    """Move source to destination, copying when rename is impossible.

    ``os.rename`` fails across devices, so on any ``OSError`` the source
    is streamed into the destination and removed afterwards. A failed
    copy leaves the source untouched and discards the partial copy.

    Args:
        source: Absolute source path.
        destination: Absolute destination path.

    Raises:
        MirrorError: If the destination exists or both rename and copy
            fail.
    """
    if os.path.lexists(destination):
        logger.error('Refusing to overwrite in mirror: %s', destination)
        raise MirrorError(f'Destination already exists: {destination}')

    try:
        os.rename(source, destination)
    except OSError as rename_error:
        logger.warning(
            'Rename failed (%s), copying instead: %s -> %s',
            rename_error,
            source,
            destination,
        )
    else:
        return

    try:
        if source.is_dir():
            shutil.copytree(source, destination)
        else:
            with source.open('rb') as reader, destination.open('xb') as writer:
                shutil.copyfileobj(reader, writer, _CHUNK_SIZE)
    except OSError as error:
        logger.exception('Copy failed: %s -> %s', source, destination)
        if os.path.lexists(destination):
            _remove_path(destination)
        raise MirrorError(
            f'Error moving {source} to {destination}: {error}',
        ) from error

    # The copy is in place, a leftover source is only an orphan
    try:
        _remove_path(source)
    except OSError:
        logger.exception('Failed to remove source after copy (orphaned): %s', source)


@final
class MirrorStorage(FileSystemStorage):
    """Physical copy of the folder/document tree.

    Names passed to this storage are paths relative to the mirror base
    directory, as produced by the path resolver. The root folder maps
    to the base directory itself (empty name).
    """

    def ensure_base_directory(self) -> None:
        """Create the mirror base directory if it is missing."""
        Path(self.location).mkdir(parents=True, exist_ok=True)

    def create_directory(self, name: str) -> None:
        """Create an empty directory.

        Args:
            name: Relative directory path.

        Raises:
            MirrorError: If it exists already or its parent is missing.
        """
        target = Path(self.path(name))
        try:
            target.mkdir()
        except OSError as error:
            logger.exception('Failed to create directory in mirror: %s', name)
            raise MirrorError(
                f'Error creating directory {name}: {error}',
            ) from error
        logger.info('Created directory in mirror: %s', name)

    def move_or_rename(self, old_name: str, new_name: str) -> None:
        """Move or rename a file or directory inside the mirror.

        Args:
            old_name: Current relative path.
            new_name: New relative path.

        Raises:
            MirrorError: If the entry cannot be moved.
        """
        logger.info('Moving in mirror: %s -> %s', old_name, new_name)
        _relocate(Path(self.path(old_name)), Path(self.path(new_name)))

    def import_file(self, source: Path, name: str) -> None:
        """Move a file from outside the mirror into it.

        Args:
            source: Absolute path of the file to take over.
            name: Relative destination path inside the mirror.

        Raises:
            MirrorError: If the file cannot be moved.
        """
        logger.info('Importing into mirror: %s -> %s', source, name)
        _relocate(source, Path(self.path(name)))

    @override
    def delete(self, name: str) -> None:
        """Delete a file or an empty directory.

        Args:
            name: Relative path to delete.

        Raises:
            MirrorError: If the path is missing, is the base directory
                or is a directory that still has entries.
        """
        if not name:
            raise MirrorError('Refusing to delete the mirror base directory')

        target = Path(self.path(name))
        if target.is_dir() and any(target.iterdir()):
            raise MirrorError(f'Directory not empty: {name}')

        try:
            if target.is_dir():
                target.rmdir()
            else:
                target.unlink()
        except OSError as error:
            logger.exception('Failed to delete from mirror: %s', name)
            raise MirrorError(f'Error deleting {name}: {error}') from error
        logger.info('Deleted from mirror: %s', name)

    def read_bytes(self, name: str) -> bytes:
        """Read a mirrored file.

        Args:
            name: Relative file path.

        Returns:
            File content.

        Raises:
            MirrorError: If the file cannot be read.
        """
        try:
            with self.open(name, 'rb') as mirrored:
                return mirrored.read()
        except OSError as error:
            logger.exception('Failed to read from mirror: %s', name)
            raise MirrorError(f'Error getting file {name}: {error}') from error


@final
class StagingStorage(FileSystemStorage):
    """Temporary area for uploads waiting to become documents."""

    def staged_path(self, name: str) -> Path:
        """Get the absolute path of a staged file.

        Args:
            name: Staged file name.

        Returns:
            Absolute path inside the staging area.
        """
        return Path(self.path(name))

    def clear_staging_area(self) -> int:
        """Delete every file in the staging area.

        Failures are logged and never raised.

        Returns:
            Number of files deleted.
        """
        try:
            _, staged_files = self.listdir('')
        except OSError:
            logger.exception('Failed to list staging area: %s', self.location)
            return 0

        deleted = 0
        for staged_name in staged_files:
            try:
                self.staged_path(staged_name).unlink()
            except OSError:
                logger.exception('Failed to delete staged file: %s', staged_name)
                continue
            deleted += 1
            logger.info('Deleted staged file: %s', staged_name)
        return deleted


def get_mirror_storage() -> MirrorStorage:
    """Get the configured mirror storage backend.

    Returns:
        MirrorStorage instance from the ``mirror`` entry of STORAGES.
    """
    return storages['mirror']  # type: ignore[return-value]


def get_staging_storage() -> StagingStorage:
    """Get the configured staging storage backend.

    Returns:
        StagingStorage instance from the ``staging`` entry of STORAGES.
    """
    return storages['staging']  # type: ignore[return-value]
