"""
Test cases for registration, sign-in and the profile helpers.
"""
from academy import db
from academy.auth.models import Profile
from academy.auth.utils import display_name, hash_password, normalize_role, verify_password
from conftest import PASSWORD


class TestUserRegistration:
    """Test cases for user registration endpoints."""

    def test_register_creates_pending_student(self, app, client):
        """A new account defaults to a pending student."""
        response = client.post('/api/auth/register', json={
            'email': 'New.Learner@Example.com',
            'password': PASSWORD,
            'first_name': 'New',
        })
        assert response.status_code == 201
        profile_id = response.get_json()['id']

        with app.app_context():
            profile = db.session.get(Profile, profile_id)
            assert profile.email == 'new.learner@example.com'
            assert profile.role == 'student'
            assert profile.status == 'pending'
            assert verify_password(PASSWORD, profile.password_hash)

    def test_register_missing_fields(self, client):
        """Test registration with missing required fields."""
        response = client.post('/api/auth/register', json={'email': 'test@test.com'})
        assert response.status_code == 400

    def test_register_invalid_email(self, client):
        """Test registration with invalid email."""
        response = client.post('/api/auth/register', json={'email': 'invalid-email', 'password': PASSWORD})
        assert response.status_code == 400

    def test_register_short_password(self, client):
        """Passwords under the minimum length are refused."""
        response = client.post('/api/auth/register', json={'email': 'a@example.com', 'password': '123'})
        assert response.status_code == 400
        assert 'at least 8' in response.get_json()['error']

    def test_register_non_string_password(self, client):
        """A password that is not a string is a 400."""
        response = client.post('/api/auth/register', json={'email': 'n@example.com', 'password': 123456789})
        assert response.status_code == 400
        assert response.get_json()['error'] == 'Password must be a string'

    def test_register_cannot_pick_admin_role(self, client):
        """Only student and tutor can be self-assigned."""
        response = client.post('/api/auth/register', json={
            'email': 'boss@example.com', 'password': PASSWORD, 'role': 'admin',
        })
        assert response.status_code == 400

    def test_register_duplicate_email(self, client, make_profile):
        """An email can only be registered once."""
        make_profile(email='taken@example.com')
        response = client.post('/api/auth/register', json={'email': 'taken@example.com', 'password': PASSWORD})
        assert response.status_code == 400

    def test_register_rejects_non_object_body(self, client):
        """A JSON array is not a valid body."""
        response = client.post('/api/auth/register', json=['not', 'an', 'object'])
        assert response.status_code == 400
        assert response.get_json() == {'error': 'Invalid JSON body'}


class TestUserLogin:
    """Test cases for sign-in and sign-out."""

    def test_login_and_whoami(self, client, make_profile):
        """A correct password signs the profile in for later requests."""
        make_profile(email='learner@example.com', password=PASSWORD)
        response = client.post('/api/auth/login', json={'email': 'learner@example.com', 'password': PASSWORD})
        assert response.status_code == 200
        assert response.get_json()['user']['email'] == 'learner@example.com'

        whoami = client.get('/api/whoami')
        assert whoami.get_json()['user']['email'] == 'learner@example.com'

    def test_login_wrong_password(self, client, make_profile):
        """A wrong password answers 401."""
        make_profile(email='learner@example.com', password=PASSWORD)
        response = client.post('/api/auth/login', json={'email': 'learner@example.com', 'password': 'nope-nope'})
        assert response.status_code == 401

    def test_login_missing_fields(self, client):
        """Test login with missing fields."""
        response = client.post('/api/auth/login', json={'email': 'test@test.com'})
        assert response.status_code == 400

    def test_login_non_string_password(self, client, make_profile):
        """A password that is not a string is a 400."""
        make_profile(email='num@example.com', password=PASSWORD)
        response = client.post('/api/auth/login', json={'email': 'num@example.com', 'password': 12345678})
        assert response.status_code == 400

    def test_login_suspended_account(self, client, make_profile):
        """Suspended profiles cannot sign in."""
        make_profile(email='gone@example.com', password=PASSWORD, status='suspended')
        response = client.post('/api/auth/login', json={'email': 'gone@example.com', 'password': PASSWORD})
        assert response.status_code == 403

    def test_whoami_anonymous(self, client):
        """Anonymous callers get a null user rather than an error."""
        response = client.get('/api/whoami')
        assert response.status_code == 200
        assert response.get_json() == {'user': None}

    def test_signout_clears_auth_cookie(self, client, make_profile, login):
        """Signing out deletes the auth cookie and returns to the login page."""
        login(make_profile())
        response = client.get('/auth/signout')
        assert response.status_code == 302
        assert '/auth/login' in response.headers['Location']
        assert response.headers['Cache-Control'] == 'no-store'
        cookies = response.headers.getlist('Set-Cookie')
        assert any(c.startswith('sb-access-token=;') for c in cookies)

    def test_api_requires_sign_in(self, client):
        """Protected API routes answer 401 JSON, not a redirect."""
        response = client.get('/api/users/me/display-name')
        assert response.status_code == 401
        assert response.get_json() == {'error': 'Not authenticated'}


class TestDisplayName:
    """Test cases for the display name helper and endpoint."""

    def test_name_from_profile(self, client, make_profile, login):
        """First and last names are title-cased."""
        login(make_profile(first_name='ada', last_name='lovelace'))
        data = client.get('/api/users/me/display-name').get_json()
        assert data['displayName'] == 'Ada Lovelace'
        assert data['source'] == 'profiles'

    def test_name_from_email(self):
        """Without a name the local part of the email is used."""
        assert display_name(None, None, 'jane.doe@example.com') == ('Jane Doe', 'email')

    def test_name_fallback(self):
        """Nothing to go on gives a generic name."""
        assert display_name(None, None, None)[0] == 'Learner'


class TestRoleNormalization:
    """Test cases for role spelling variants."""

    def test_variants_of_super_admin(self):
        """Case, separators and the one-word spelling all fold together."""
        for raw in ('Super Admin', 'super_admin', 'SUPER-ADMIN', 'superadmin', '  super   admin '):
            assert normalize_role(raw) == 'super admin'

    def test_unknown_role(self):
        """Unrecognised roles normalize to None."""
        assert normalize_role('wizard') is None
        assert normalize_role('') is None

    def test_password_truncated_at_72_bytes(self):
        """bcrypt only sees the first 72 bytes of a password."""
        long_password = 'x' * 80
        hashed = hash_password(long_password)
        assert verify_password('x' * 72 + 'different', hashed)
