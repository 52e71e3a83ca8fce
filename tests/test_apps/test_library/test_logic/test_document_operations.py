"""Tests for document operations business logic."""

import pytest

from server.apps.library.exceptions import (
    MirrorDivergenceError,
    MirrorError,
    MissingFieldsError,
    NotFoundError,
    ResourceExistsError,
    ValidationError,
)
from server.apps.library.logic.document_operations import (
    create_document,
    delete_document,
    get_all_documents,
    get_document,
    move_document,
    rename_document,
    update_document_description,
)
from server.apps.library.logic.folder_operations import create_folder
from server.apps.library.logic.staging import StagedFile
from server.apps.library.models import Document, DocumentFormat


def _documents(folder):
    folder.refresh_from_db()
    return folder.documents


# Create


@pytest.mark.django_db
def test_create_document(reports_folder, make_staged_file, mirror_root, staging_root):
    """Test a document is stored, listed, mirrored and staging emptied."""
    staged = make_staged_file('report.pdf', b'%PDF-1.4 report')

    document = create_document(reports_folder.pk, 'Q1', 'pdf', 'First quarter', staged)

    assert document.name == 'Q1'
    assert document.extension == 'pdf'
    assert document.format == DocumentFormat.FILE
    assert document.description == 'First quarter'
    assert _documents(reports_folder) == [document.pk]
    assert (mirror_root / 'Reports' / 'Q1.pdf').read_bytes() == b'%PDF-1.4 report'
    assert list(staging_root.iterdir()) == []


@pytest.mark.django_db
def test_create_document_appends(reports_folder, make_document):
    """Test new documents go to the end of the folder's list."""
    first = make_document(reports_folder, 'Q1')
    second = make_document(reports_folder, 'Q2')

    assert _documents(reports_folder) == [first.pk, second.pk]


@pytest.mark.django_db
def test_create_document_without_description(reports_folder, make_staged_file):
    """Test a missing description is stored as empty text."""
    document = create_document(reports_folder.pk, 'Q1', 'pdf', None, make_staged_file())

    assert document.description == ''


@pytest.mark.django_db
def test_create_document_duplicate(
    reports_folder,
    make_document,
    make_staged_file,
    mirror_root,
    staging_root,
):
    """Test a duplicate name and extension fails and staging is still cleared."""
    make_document(reports_folder, 'Q1', 'pdf', b'original')
    staged = make_staged_file('again.pdf', b'replacement')

    with pytest.raises(ResourceExistsError):
        create_document(reports_folder.pk, 'Q1', 'pdf', '', staged)

    assert Document.objects.filter(name='Q1').count() == 1
    assert (mirror_root / 'Reports' / 'Q1.pdf').read_bytes() == b'original'
    assert list(staging_root.iterdir()) == []


@pytest.mark.django_db
def test_create_document_same_name_other_extension(reports_folder, make_document, mirror_root):
    """Test siblings may share a name when the extensions differ."""
    make_document(reports_folder, 'Q1', 'pdf')
    make_document(reports_folder, 'Q1', 'docx')

    assert (mirror_root / 'Reports' / 'Q1.pdf').exists()
    assert (mirror_root / 'Reports' / 'Q1.docx').exists()


@pytest.mark.django_db
def test_create_document_missing_parent(root_folder, make_staged_file, staging_root):
    """Test creating in an unknown folder fails and clears staging."""
    with pytest.raises(NotFoundError):
        create_document(root_folder.pk + 1000, 'Q1', 'pdf', '', make_staged_file())

    assert list(staging_root.iterdir()) == []


@pytest.mark.django_db
@pytest.mark.parametrize(('name', 'extension'), [('', 'pdf'), ('Q1', '')])
def test_create_document_missing_name(root_folder, make_staged_file, staging_root, name, extension):
    """Test name and extension are required."""
    with pytest.raises(MissingFieldsError):
        create_document(root_folder.pk, name, extension, '', make_staged_file())

    assert list(staging_root.iterdir()) == []


@pytest.mark.django_db
def test_create_document_missing_file(root_folder):
    """Test a staged file is required."""
    with pytest.raises(MissingFieldsError):
        create_document(root_folder.pk, 'Q1', 'pdf', '', None)

    assert not Document.objects.exists()


@pytest.mark.django_db
def test_create_document_staged_file_gone(root_folder, make_staged_file, staging_root):
    """Test a vanished upload surfaces after commit and keeps the record."""
    staged = make_staged_file()
    (staging_root / staged.name).unlink()

    with pytest.raises(MirrorDivergenceError) as exc_info:
        create_document(root_folder.pk, 'Q1', 'pdf', '', staged)

    assert isinstance(exc_info.value, MirrorError)
    assert Document.objects.filter(name='Q1').exists()


# Rename


@pytest.mark.django_db
def test_rename_document(reports_folder, make_document, mirror_root, mirror_moves):
    """Test renaming keeps the extension and renames the file."""
    document = make_document(reports_folder, 'Q1', 'pdf', b'numbers')

    renamed = rename_document(document.pk, 'Q2')

    assert renamed.name == 'Q2'
    assert renamed.extension == 'pdf'
    assert mirror_moves == [('Reports/Q1.pdf', 'Reports/Q2.pdf')]
    assert (mirror_root / 'Reports' / 'Q2.pdf').read_bytes() == b'numbers'
    assert not (mirror_root / 'Reports' / 'Q1.pdf').exists()


@pytest.mark.django_db
def test_rename_document_same_name_is_noop(reports_folder, make_document, mirror_moves):
    """Test renaming to the current name changes nothing."""
    document = make_document(reports_folder)

    renamed = rename_document(document.pk, 'Q1')

    assert renamed.as_record() == document.as_record()
    assert mirror_moves == []


@pytest.mark.django_db
def test_rename_document_collision(reports_folder, make_document, mirror_moves):
    """Test renaming onto a sibling with the same extension fails."""
    make_document(reports_folder, 'Q1')
    second = make_document(reports_folder, 'Q2')

    with pytest.raises(ResourceExistsError):
        rename_document(second.pk, 'Q1')

    second.refresh_from_db()
    assert second.name == 'Q2'
    assert mirror_moves == []


@pytest.mark.django_db
def test_rename_document_other_extension_is_free(reports_folder, make_document):
    """Test a sibling with another extension does not block a rename."""
    make_document(reports_folder, 'Q1', 'docx')
    document = make_document(reports_folder, 'Q2', 'pdf')

    assert rename_document(document.pk, 'Q1').name == 'Q1'


@pytest.mark.django_db
def test_rename_missing_document(root_folder):
    """Test renaming an unknown document fails."""
    with pytest.raises(NotFoundError):
        rename_document(1000, 'Q2')


# Move


@pytest.mark.django_db
def test_move_document(root_folder, reports_folder, make_document, mirror_root, mirror_moves):
    """Test moving updates parent, both lists and the mirror."""
    archive = create_folder('Archive', root_folder.pk)
    document = make_document(reports_folder, 'Q1', 'pdf', b'numbers')

    moved = move_document(document.pk, archive.pk)

    assert moved.parent_folder_id == archive.pk
    assert _documents(reports_folder) == []
    assert _documents(archive) == [document.pk]
    assert mirror_moves == [('Reports/Q1.pdf', 'Archive/Q1.pdf')]
    assert (mirror_root / 'Archive' / 'Q1.pdf').read_bytes() == b'numbers'


@pytest.mark.django_db
def test_move_document_after_sibling(root_folder, reports_folder, make_document):
    """Test place_after positions the document in the destination list."""
    first = make_document(root_folder, 'first')
    second = make_document(root_folder, 'second')
    document = make_document(reports_folder, 'Q1')

    move_document(document.pk, root_folder.pk, place_after=first.pk)

    assert _documents(root_folder) == [first.pk, document.pk, second.pk]


@pytest.mark.django_db
def test_reorder_documents(reports_folder, make_document, mirror_moves):
    """Test reordering in one folder follows the same rules as folders."""
    doc_a = make_document(reports_folder, 'A')
    doc_b = make_document(reports_folder, 'B')
    doc_c = make_document(reports_folder, 'C')

    move_document(doc_a.pk, reports_folder.pk, place_after=doc_b.pk)
    assert _documents(reports_folder) == [doc_b.pk, doc_a.pk, doc_c.pk]

    move_document(doc_c.pk, reports_folder.pk)
    assert _documents(reports_folder) == [doc_c.pk, doc_b.pk, doc_a.pk]

    move_document(doc_c.pk, reports_folder.pk)
    assert _documents(reports_folder) == [doc_c.pk, doc_b.pk, doc_a.pk]
    assert mirror_moves == []


@pytest.mark.django_db
def test_move_document_collision(root_folder, reports_folder, make_document):
    """Test the destination may not hold the same name and extension."""
    make_document(root_folder, 'Q1', 'pdf')
    document = make_document(reports_folder, 'Q1', 'pdf')

    with pytest.raises(ResourceExistsError):
        move_document(document.pk, root_folder.pk)

    document.refresh_from_db()
    assert document.parent_folder_id == reports_folder.pk


@pytest.mark.django_db
def test_move_document_unknown_target(reports_folder, make_document):
    """Test moving into an unknown folder fails."""
    document = make_document(reports_folder)

    with pytest.raises(NotFoundError):
        move_document(document.pk, reports_folder.pk + 1000)


@pytest.mark.django_db
def test_move_document_unknown_place_after(root_folder, reports_folder, make_document):
    """Test place_after must be a document of the destination."""
    document = make_document(reports_folder)

    with pytest.raises(NotFoundError):
        move_document(document.pk, root_folder.pk, place_after=document.pk + 1000)

    assert _documents(reports_folder) == [document.pk]


# Description


@pytest.mark.django_db
def test_update_document_description(reports_folder, make_document):
    """Test the description is replaced and may be emptied."""
    document = make_document(reports_folder)

    updated = update_document_description(document.pk, 'Audited')
    assert updated.description == 'Audited'

    cleared = update_document_description(document.pk, '')
    cleared.refresh_from_db()
    assert cleared.description == ''


@pytest.mark.django_db
def test_update_document_description_requires_value(reports_folder, make_document):
    """Test None is not accepted as a description."""
    document = make_document(reports_folder)

    with pytest.raises(MissingFieldsError):
        update_document_description(document.pk, None)


@pytest.mark.django_db
def test_update_missing_document_description(root_folder):
    """Test updating an unknown document fails."""
    with pytest.raises(NotFoundError):
        update_document_description(1000, 'Audited')


# Delete


@pytest.mark.django_db
def test_delete_document(reports_folder, make_document, mirror_root):
    """Test deleting removes row, list entry and file."""
    document = make_document(reports_folder)

    deleted = delete_document(document.pk)

    assert deleted.name == 'Q1'
    assert not Document.objects.filter(pk=document.pk).exists()
    assert _documents(reports_folder) == []
    assert not (mirror_root / 'Reports' / 'Q1.pdf').exists()


@pytest.mark.django_db
def test_delete_document_missing_file(reports_folder, make_document, mirror_root):
    """Test a file already gone from the mirror surfaces after commit."""
    document = make_document(reports_folder)
    (mirror_root / 'Reports' / 'Q1.pdf').unlink()

    with pytest.raises(MirrorDivergenceError):
        delete_document(document.pk)

    assert not Document.objects.filter(pk=document.pk).exists()


@pytest.mark.django_db
def test_delete_missing_document(root_folder):
    """Test deleting an unknown document fails."""
    with pytest.raises(NotFoundError):
        delete_document(1000)


# Reads


@pytest.mark.django_db
def test_get_document(reports_folder, make_document):
    """Test reading returns record, mirror path and content."""
    document = make_document(reports_folder, 'Q1', 'pdf', b'numbers')

    read = get_document(document.pk)

    assert read.document.pk == document.pk
    assert read.path == 'Reports/Q1.pdf'
    assert read.content == b'numbers'


@pytest.mark.django_db
def test_get_document_missing_file(reports_folder, make_document, mirror_root):
    """Test a record without its mirrored file fails to read."""
    document = make_document(reports_folder)
    (mirror_root / 'Reports' / 'Q1.pdf').unlink()

    with pytest.raises(MirrorError):
        get_document(document.pk)


@pytest.mark.django_db
def test_get_missing_document(root_folder):
    """Test reading an unknown document fails."""
    with pytest.raises(NotFoundError):
        get_document(1000)


@pytest.mark.django_db
def test_get_all_documents(root_folder, reports_folder, make_document):
    """Test every document is returned in id order."""
    first = make_document(reports_folder, 'Q1')
    second = make_document(root_folder, 'Q2')

    documents = get_all_documents()

    assert [document.pk for document in documents] == [first.pk, second.pk]
    assert documents[0].parent_folder.name == 'Reports'


# Mirror file name clashes


@pytest.mark.django_db
def test_create_document_dotted_extension(
    reports_folder,
    make_document,
    make_staged_file,
    staging_root,
):
    """Test a dotted extension cannot alias another document's file."""
    first = make_document(reports_folder, 'x.y', 'pdf', b'FIRST')

    with pytest.raises(ValidationError, match='contains a dot'):
        create_document(
            reports_folder.pk,
            'x',
            'y.pdf',
            '',
            make_staged_file('second.pdf', b'SECOND'),
        )

    assert get_document(first.pk).content == b'FIRST'
    assert Document.objects.count() == 1
    assert list(staging_root.iterdir()) == []


@pytest.mark.django_db
def test_create_document_named_like_sibling_folder(
    reports_folder,
    make_staged_file,
    mirror_root,
):
    """Test a document file name may not equal a sibling folder name."""
    create_folder('Q1.pdf', reports_folder.pk)

    with pytest.raises(ResourceExistsError):
        create_document(reports_folder.pk, 'Q1', 'pdf', '', make_staged_file())

    assert not Document.objects.exists()
    assert (mirror_root / 'Reports' / 'Q1.pdf').is_dir()


@pytest.mark.django_db
def test_rename_document_onto_sibling_folder(reports_folder, make_document, mirror_moves):
    """Test renaming onto a sibling folder's name fails before any change."""
    create_folder('Q2.pdf', reports_folder.pk)
    document = make_document(reports_folder, 'Q1', 'pdf')

    with pytest.raises(ResourceExistsError):
        rename_document(document.pk, 'Q2')

    document.refresh_from_db()
    assert document.name == 'Q1'
    assert mirror_moves == []


@pytest.mark.django_db
def test_move_document_onto_sibling_folder(
    root_folder,
    reports_folder,
    make_document,
    mirror_root,
):
    """Test the destination may not hold a folder named like the file."""
    create_folder('Q1.pdf', root_folder.pk)
    document = make_document(reports_folder, 'Q1', 'pdf')

    with pytest.raises(ResourceExistsError):
        move_document(document.pk, root_folder.pk)

    document.refresh_from_db()
    assert document.parent_folder_id == reports_folder.pk
    assert (mirror_root / 'Reports' / 'Q1.pdf').is_file()


@pytest.mark.django_db
def test_create_document_staged_outside_staging(root_folder, staging_root):
    """Test a staged name escaping the staging area is a validation error."""
    staged = StagedFile(
        name='../escape.pdf',
        original_name='escape.pdf',
        mime_type='application/pdf',
        size_bytes=1,
    )

    with pytest.raises(ValidationError, match='Invalid staged file'):
        create_document(root_folder.pk, 'Q1', 'pdf', '', staged)

    assert not Document.objects.exists()
