"""
Test cases for the upload gateway and object storage.
"""
import io

import pytest

from academy.common.storage import LocalObjectStorage, StorageError, allowed_file, generate_key

PNG_BYTES = b'\x89PNG\r\n\x1a\n' + b'0' * 64


def _file(name='pic.png', content=PNG_BYTES):
    return {'file': (io.BytesIO(content), name)}


class TestGenericUpload:
    """Test cases for the generic upload endpoint."""

    def test_upload_and_serve(self, client, make_profile, login):
        """An uploaded file is served back publicly from its URL."""
        login(make_profile())
        response = client.post('/api/upload', data=_file(), content_type='multipart/form-data')
        assert response.status_code == 200
        url = response.get_json()['url']
        assert url.startswith('/uploads/uploads/')
        assert url.endswith('.png')

        client.delete_cookie('sb-access-token')
        served = client.get(url)
        assert served.status_code == 200
        assert served.data == PNG_BYTES
        assert served.headers['X-Frame-Options'] == 'SAMEORIGIN'

    def test_missing_file(self, client, make_profile, login):
        """No file part is a 400."""
        login(make_profile())
        response = client.post('/api/upload', data={}, content_type='multipart/form-data')
        assert response.status_code == 400

    def test_disallowed_type(self, client, make_profile, login):
        """Only configured extensions are accepted."""
        login(make_profile())
        response = client.post('/api/upload', data=_file('run.exe'), content_type='multipart/form-data')
        assert response.status_code == 400

    def test_too_large(self, client, make_profile, login):
        """Files over MAX_FILE_SIZE are a 413."""
        login(make_profile())
        response = client.post('/api/upload', data=_file(content=b'0' * 2048), content_type='multipart/form-data')
        assert response.status_code == 413

    def test_requires_sign_in(self, client):
        """Anonymous uploads are refused."""
        response = client.post('/api/upload', data=_file(), content_type='multipart/form-data')
        assert response.status_code == 401


class TestCourseImageUpload:
    """Test cases for course cover uploads."""

    def test_key_is_under_course(self, client, make_profile, make_course, login):
        """Cover images are stored under the course's prefix."""
        tutor = make_profile(role='tutor')
        ids = make_course(instructor_id=tutor)
        login(tutor)
        data = _file()
        data['courseId'] = ids['course']
        response = client.post('/api/admin/courses/upload-image', data=data, content_type='multipart/form-data')
        assert response.status_code == 200
        assert response.get_json()['url'].startswith(f"/uploads/course-images/courses/{ids['course']}/")

    def test_course_id_required(self, client, make_profile, login):
        """courseId is required."""
        login(make_profile(role='tutor'))
        response = client.post('/api/admin/courses/upload-image', data=_file(), content_type='multipart/form-data')
        assert response.status_code == 400

    def test_other_tutors_course(self, client, make_profile, make_course, login):
        """Tutors cannot change another tutor's cover image."""
        ids = make_course(instructor_id=make_profile(role='tutor'))
        login(make_profile(role='tutor'))
        data = _file()
        data['courseId'] = ids['course']
        response = client.post('/api/admin/courses/upload-image', data=data, content_type='multipart/form-data')
        assert response.status_code == 403

    def test_students_refused(self, client, make_profile, login):
        """Students cannot upload course images."""
        login(make_profile(role='student'))
        data = _file()
        data['courseId'] = 'c1'
        response = client.post('/api/admin/courses/upload-image', data=data, content_type='multipart/form-data')
        assert response.status_code == 403


class TestCertificateUpload:
    """Test cases for certificate background uploads."""

    def test_admin_upload(self, client, make_profile, login):
        """Backgrounds land under templates/ in the certificates bucket."""
        login(make_profile(role='admin'))
        response = client.post('/api/admin/certificates/upload', data=_file(), content_type='multipart/form-data')
        assert response.status_code == 200
        assert response.get_json()['url'].startswith('/uploads/certificates/templates/')

    def test_tutor_refused(self, client, make_profile, login):
        """Only admins upload certificate backgrounds."""
        login(make_profile(role='tutor'))
        response = client.post('/api/admin/certificates/upload', data=_file(), content_type='multipart/form-data')
        assert response.status_code == 403


class TestObjectStorage:
    """Test cases for the local bucket store."""

    def test_unknown_object(self, client):
        """Missing objects and unknown buckets are 404s."""
        assert client.get('/uploads/uploads/nothing.png').status_code == 404
        assert client.get('/uploads/secrets/nothing.png').status_code == 404

    def test_keys_cannot_escape_bucket(self, tmp_path):
        """Keys that climb out of the bucket are refused."""
        storage = LocalObjectStorage(str(tmp_path))
        with pytest.raises(StorageError):
            storage.path_for('uploads', '../certificates/x.png')
        with pytest.raises(StorageError):
            storage.path_for('other', 'x.png')

    def test_generated_keys(self):
        """Keys keep the extension and the prefix."""
        key = generate_key('Photo.JPG', 'courses/c1')
        assert key.startswith('courses/c1/')
        assert key.endswith('.jpg')

    def test_allowed_file(self):
        """Extension checks ignore case."""
        assert allowed_file('A.PNG', {'png'})
        assert not allowed_file('noext', {'png'})
