# tests/test_storage_service.py
"""업로드 문서 임시 저장/확정 테스트"""
import io
import os

import pytest
from marshmallow import ValidationError
from werkzeug.datastructures import FileStorage


def _file(content=b'%PDF-1.4 body', filename='proof.pdf', mimetype='application/pdf'):
    return FileStorage(stream=io.BytesIO(content), filename=filename, content_type=mimetype)


@pytest.fixture
def storage(app):
    return app.services['storage']


def _staging(storage):
    return os.listdir(os.path.join(storage.root, '.staging'))


def test_committed_upload_is_moved_to_folder(storage):
    with storage.staged_upload(_file(), 'id-proofs') as staged:
        assert os.path.exists(staged.staged_path)
        reference = staged.commit()

    assert reference.startswith('id-proofs/') and reference.endswith('.pdf')
    with open(storage.absolute_path(reference), 'rb') as stored:
        assert stored.read() == b'%PDF-1.4 body'
    assert _staging(storage) == []


def test_uncommitted_upload_is_discarded_on_error(storage):
    with pytest.raises(RuntimeError):
        with storage.staged_upload(_file(), 'id-proofs') as staged:
            staged_path = staged.staged_path
            raise RuntimeError("rejected")

    assert not os.path.exists(staged_path)
    assert _staging(storage) == []
    assert not os.path.exists(os.path.join(storage.root, 'id-proofs'))


def test_uncommitted_upload_is_discarded_on_normal_exit(storage):
    with storage.staged_upload(_file(), 'id-proofs'):
        pass
    assert _staging(storage) == []


@pytest.mark.parametrize('upload, message', [
    (dict(filename='proof.png', mimetype='image/png'), 'Invalid file type. Only PDF and JPEG files are allowed.'),
    (dict(content=b''), 'Uploaded file is empty.'),
    (dict(content=b'x' * (5 * 1024 * 1024 + 1)), 'File too large. Maximum size is 5MB.'),
])
def test_invalid_documents_are_rejected_before_saving(storage, upload, message):
    with pytest.raises(ValidationError) as excinfo:
        with storage.staged_upload(_file(**upload), 'id-proofs', field_name='idProofFile'):
            pass

    assert excinfo.value.messages == {'idProofFile': [message]}
    assert _staging(storage) == []


def test_jpeg_documents_are_accepted(storage):
    with storage.staged_upload(_file(b'\xff\xd8\xff', 'scan.JPG', 'image/jpeg'), 'id-proofs') as staged:
        assert staged.reference.endswith('.jpg')


def test_delete_removes_stored_file(storage):
    with storage.staged_upload(_file(), 'id-proofs') as staged:
        reference = staged.commit()

    storage.delete(reference)
    assert not os.path.exists(storage.absolute_path(reference))
    storage.delete(reference)


@pytest.mark.parametrize('filename', ['aadhar.pdf/evil', '../../proof.pdf', 'proof', 'proof.exe'])
def test_stored_name_ignores_client_filename(storage, filename):
    """저장 경로는 클라이언트 파일명과 무관하게 uuid + mimetype 확장자로 만들어집니다."""
    with storage.staged_upload(_file(filename=filename), 'id-proofs') as staged:
        assert os.path.dirname(staged.staged_path) == os.path.join(storage.root, '.staging')
        reference = staged.commit()

    folder, name = reference.split('/')
    assert folder == 'id-proofs'
    assert name.endswith('.pdf') and name.count('.') == 1
    assert os.path.exists(storage.absolute_path(reference))
