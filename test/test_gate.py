"""
Test cases for the request gate and the response security headers.
"""
from academy.security.gate import has_auth_cookie, is_public_path


class TestPublicPaths:
    """Test cases for the public path rules."""

    def test_root_is_public_only_exactly(self):
        """'/' is public but does not make every path public."""
        assert is_public_path('/')
        assert not is_public_path('/dashboard')

    def test_public_prefixes_match_on_segments(self):
        """A public prefix covers its sub-paths but not look-alike paths."""
        assert is_public_path('/courses')
        assert is_public_path('/courses/abc')
        assert is_public_path('/auth/login')
        assert not is_public_path('/coursesx')
        assert not is_public_path('/admin/courses')

    def test_api_and_assets_are_exempt(self):
        """API routes and stored objects are not gated."""
        assert is_public_path('/api/courses')
        assert is_public_path('/uploads/uploads/a.png')
        assert is_public_path('/static/app.css')

    def test_any_auth_cookie_counts(self):
        """Any one of the configured cookie names is enough."""
        names = ['sb-access-token', 'supabase-auth-token']
        assert has_auth_cookie({'supabase-auth-token': 'x'}, names)
        assert not has_auth_cookie({'other': 'x'}, names)
        assert not has_auth_cookie({'sb-access-token': ''}, names)


class TestGateRedirects:
    """Test cases for gated page requests."""

    def test_private_page_redirects_to_login(self, client):
        """Without an auth cookie the visitor is sent to the login page."""
        response = client.get('/dashboard')
        assert response.status_code == 302
        assert response.headers['Location'].endswith('/auth/login?redirectedFrom=%2Fdashboard')

    def test_public_page_passes(self, client):
        """Public pages render for anonymous visitors."""
        assert client.get('/courses').status_code == 200
        assert client.get('/auth/login').status_code == 200

    def test_signed_in_visitor_passes(self, client, make_profile, login):
        """The session cookie counts as the auth cookie."""
        login(make_profile())
        assert client.get('/dashboard').status_code == 200

    def test_foreign_auth_cookie_passes_gate(self, client):
        """
        Any configured auth cookie passes the gate; the page itself still
        requires a signed-in profile.
        """
        client.set_cookie('supabase-auth-token', 'abc')
        response = client.get('/dashboard')
        assert response.status_code == 302
        assert '/auth/login' in response.headers['Location']
        assert 'redirectedFrom=' in response.headers['Location']


class TestSecurityHeaders:
    """Test cases for headers added to every response."""

    def test_headers_on_api_response(self, client):
        """JSON answers carry the hardening headers and are not cached."""
        response = client.get('/api/courses')
        assert response.headers['X-Content-Type-Options'] == 'nosniff'
        assert response.headers['X-Frame-Options'] == 'DENY'
        assert 'Content-Security-Policy' in response.headers
        assert 'no-store' in response.headers['Cache-Control']

    def test_unknown_api_route_is_json(self, client):
        """Unknown API routes answer with a JSON error."""
        response = client.get('/api/nope')
        assert response.status_code == 404
        assert 'error' in response.get_json()
