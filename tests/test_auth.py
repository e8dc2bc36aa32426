from datetime import datetime, timedelta, timezone
from uuid import uuid4

from fastapi.testclient import TestClient
from app.main import app
from app.models.enums import UserRole
from app.services.refresh_token_store import insert_refresh_token
from app.services.token_signer import AccessClaims, get_token_signer

PASSWORD = 'Secret1!'


def _register_and_login(client: TestClient, email: str | None = None) -> dict:
    email = email or f"{uuid4()}@b.com"
    r = client.post('/api/v1/auth/register', json={'email': email, 'password': PASSWORD})
    assert r.status_code == 201
    login = client.post('/api/v1/auth/login', json={'email': email, 'password': PASSWORD})
    assert login.status_code == 200
    return login.json()


def test_register_login_refresh():
    with TestClient(app) as client:
        email = f"{uuid4()}@b.com"
        r = client.post(
            '/api/v1/auth/register',
            json={'email': email, 'password': PASSWORD, 'first_name': 'Ada', 'last_name': 'Lovelace'},
        )
        assert r.status_code == 201
        assert r.json()['role'] == 'customer'
        assert r.json()['first_name'] == 'Ada'

        login = client.post('/api/v1/auth/login', json={'email': email, 'password': PASSWORD})
        assert login.status_code == 200
        body = login.json()
        assert body['token_type'] == 'bearer'
        assert body['expires_in'] == 1800
        assert body['email'] == email

        refresh = client.post('/api/v1/auth/refresh', json={'refresh_token': body['refresh_token']})
        assert refresh.status_code == 200


def test_register_rejects_duplicate_email():
    with TestClient(app) as client:
        email = f"{uuid4()}@b.com"
        client.post('/api/v1/auth/register', json={'email': email, 'password': PASSWORD})
        again = client.post('/api/v1/auth/register', json={'email': email.upper(), 'password': PASSWORD})
        assert again.status_code == 400
        assert again.json()['detail'] == 'Email already registered'


def test_login_does_not_reveal_which_credential_failed():
    with TestClient(app) as client:
        email = f"{uuid4()}@b.com"
        client.post('/api/v1/auth/register', json={'email': email, 'password': PASSWORD})
        wrong_password = client.post('/api/v1/auth/login', json={'email': email, 'password': 'Wrong1!'})
        missing = client.post('/api/v1/auth/login', json={'email': 'missing@b.com', 'password': PASSWORD})
        assert wrong_password.status_code == missing.status_code == 401
        assert wrong_password.json() == missing.json() == {'detail': 'Invalid email or password'}


def test_rotation_scenario():
    with TestClient(app) as client:
        first = _register_and_login(client)
        second = client.post('/api/v1/auth/refresh', json={'refresh_token': first['refresh_token']})
        assert second.status_code == 200
        assert second.json()['refresh_token'] != first['refresh_token']

        replay = client.post('/api/v1/auth/refresh', json={'refresh_token': first['refresh_token']})
        assert replay.status_code == 401
        assert replay.json()['detail'] == 'Invalid refresh token'
        assert 'token_invalid' in replay.headers['www-authenticate']

        third = client.post('/api/v1/auth/refresh', json={'refresh_token': second.json()['refresh_token']})
        assert third.status_code == 200


def test_unknown_and_revoked_tokens_look_identical():
    with TestClient(app) as client:
        tokens = _register_and_login(client)
        client.post('/api/v1/auth/logout', json={'refresh_token': tokens['refresh_token']})
        revoked = client.post('/api/v1/auth/refresh', json={'refresh_token': tokens['refresh_token']})
        unknown = client.post('/api/v1/auth/refresh', json={'refresh_token': 'never-issued'})
        assert revoked.status_code == unknown.status_code == 401
        assert revoked.json() == unknown.json()
        assert revoked.headers['www-authenticate'] == unknown.headers['www-authenticate']


def test_logout_then_refresh_is_rejected():
    with TestClient(app) as client:
        tokens = _register_and_login(client)
        out = client.post('/api/v1/auth/logout', json={'refresh_token': tokens['refresh_token']})
        assert out.status_code == 200
        assert out.json() == {'status': 'ok'}

        again = client.post('/api/v1/auth/logout', json={'refresh_token': tokens['refresh_token']})
        assert again.status_code == 400
        assert again.json()['detail'] == 'already revoked'

        refresh = client.post('/api/v1/auth/refresh', json={'refresh_token': tokens['refresh_token']})
        assert refresh.status_code == 401


def test_logout_rejects_blank_and_unknown_tokens():
    with TestClient(app) as client:
        blank = client.post('/api/v1/auth/logout', json={'refresh_token': ''})
        assert blank.status_code == 400
        assert blank.json()['detail'] == 'token required'
        unknown = client.post('/api/v1/auth/logout', json={'refresh_token': 'nope'})
        assert unknown.status_code == 400
        assert unknown.json()['detail'] == 'invalid token'


def test_refresh_rejects_blank_token():
    with TestClient(app) as client:
        blank = client.post('/api/v1/auth/refresh', json={'refresh_token': ' '})
        assert blank.status_code == 400
        assert blank.json()['detail'] == 'token required'


def test_expired_refresh_token_scenario(session, make_user):
    user = make_user()
    now = datetime.now(timezone.utc)
    insert_refresh_token(session, user.id, 'seeded-expired', now - timedelta(days=8), now - timedelta(days=1))
    with TestClient(app) as client:
        refresh = client.post('/api/v1/auth/refresh', json={'refresh_token': 'seeded-expired'})
        assert refresh.status_code == 401
        assert refresh.json()['detail'] == 'Refresh token expired'
        assert 'token_expired' in refresh.headers['www-authenticate']

        out = client.post('/api/v1/auth/logout', json={'refresh_token': 'seeded-expired'})
        assert out.status_code == 200


def test_me_uses_access_token_claims():
    with TestClient(app) as client:
        email = f"{uuid4()}@b.com"
        tokens = _register_and_login(client, email)
        headers = {'Authorization': f"Bearer {tokens['access_token']}"}
        me = client.get('/api/v1/me', headers=headers)
        assert me.status_code == 200
        assert me.json()['email'] == email
        assert me.json()['role'] == 'customer'

        sessions = client.get('/api/v1/me/sessions', headers=headers)
        assert sessions.status_code == 200
        assert len(sessions.json()) == 1
        assert 'token' not in sessions.json()[0]


def test_access_token_survives_logout():
    with TestClient(app) as client:
        tokens = _register_and_login(client)
        client.post('/api/v1/auth/logout', json={'refresh_token': tokens['refresh_token']})
        me = client.get('/api/v1/me', headers={'Authorization': f"Bearer {tokens['access_token']}"})
        assert me.status_code == 200


def test_protected_endpoint_rejects_bad_tokens():
    expired = get_token_signer().issue(
        AccessClaims(subject_id=1, email='a@b.com', role=UserRole.ADMIN),
        now=datetime.now(timezone.utc) - timedelta(hours=2),
    )
    with TestClient(app) as client:
        missing = client.get('/api/v1/me')
        garbage = client.get('/api/v1/me', headers={'Authorization': 'Bearer garbage'})
        stale = client.get('/api/v1/me', headers={'Authorization': f'Bearer {expired}'})
        for response in (missing, garbage, stale):
            assert response.status_code == 401
            assert response.json() == {'detail': 'Could not validate credentials'}


def test_role_gates(make_user):
    admin = make_user(role=UserRole.ADMIN, email='boss@b.com')
    staff = make_user(role=UserRole.STAFF, email='staff@b.com')
    with TestClient(app) as client:
        customer_tokens = _register_and_login(client)

        def _token(email):
            return client.post('/api/v1/auth/login', json={'email': email, 'password': PASSWORD}).json()['access_token']

        admin_headers = {'Authorization': f"Bearer {_token('boss@b.com')}"}
        staff_headers = {'Authorization': f"Bearer {_token('staff@b.com')}"}
        customer_headers = {'Authorization': f"Bearer {customer_tokens['access_token']}"}

        assert client.get('/api/v1/users', headers=admin_headers).status_code == 200
        assert client.get('/api/v1/users', headers=staff_headers).status_code == 403
        assert client.get(f'/api/v1/users/{admin.id}', headers=staff_headers).status_code == 200
        assert client.get(f'/api/v1/users/{staff.id}', headers=customer_headers).status_code == 403
        assert client.get('/api/v1/users/9999', headers=admin_headers).status_code == 404


def test_health():
    with TestClient(app) as client:
        assert client.get('/api/v1/health').json() == {'status': 'ok'}


def test_register_enforces_password_rules():
    with TestClient(app) as client:
        for password in ('Ab1!', 'alllowercase1!', 'NoDigits!!', 'NoSpecial12'):
            r = client.post('/api/v1/auth/register', json={'email': f"{uuid4()}@b.com", 'password': password})
            assert r.status_code == 422, password


def test_register_limits_password_by_bytes_not_characters():
    multibyte = 'Aa1!' + 'é' * 35
    assert len(multibyte) < 72 < len(multibyte.encode('utf-8'))
    with TestClient(app) as client:
        r = client.post('/api/v1/auth/register', json={'email': f"{uuid4()}@b.com", 'password': multibyte})
        assert r.status_code == 422
        assert 'bytes' in r.text


def test_register_validates_name_length():
    with TestClient(app) as client:
        short = client.post(
            '/api/v1/auth/register',
            json={'email': f"{uuid4()}@b.com", 'password': PASSWORD, 'first_name': 'A'},
        )
        assert short.status_code == 422
        ok = client.post(
            '/api/v1/auth/register',
            json={'email': f"{uuid4()}@b.com", 'password': PASSWORD, 'first_name': '  Al  '},
        )
        assert ok.status_code == 201
        assert ok.json()['first_name'] == 'Al'
