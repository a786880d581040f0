import asyncio
import uuid

import bcrypt
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from useraccounts.auth.jwt_handler import create_access_token
from useraccounts.data.user_repository import SqlUserRepository
from useraccounts.data.user_service import UserService
from useraccounts.database import build_session_factory
from useraccounts.main import create_app


def _auth(user_id: str, role: str = 'Student') -> dict:
    return {'Authorization': f'Bearer {create_access_token(user_id, role)}'}


def _register(client: TestClient, name='Ann', email='ann@x.com', password='secret1', **extra) -> dict:
    response = client.post('/users', json={'name': name, 'email': email, 'password': password, **extra})
    assert response.status_code == 201
    return response.json()['data']


def test_create_user_hides_password_and_defaults_role(client: TestClient) -> None:
    response = client.post('/users', json={'name': 'Ann', 'email': 'ann@x.com', 'password': 'secret1'})

    body = response.json()
    assert response.status_code == 201
    assert body['status'] == 201
    assert body['message'] == 'Successfully created the following user!'
    assert 'password' not in body['data']
    assert body['data']['role'] == 'Student'
    assert 'secret1' not in response.text


def test_create_user_with_taken_email_is_rejected(client: TestClient) -> None:
    _register(client)

    response = client.post('/users', json={'name': 'Bob', 'email': 'ann@x.com', 'password': 'secret2'})

    assert response.status_code == 400
    assert response.json() == {'status': 400, 'message': 'Email already in use!'}


def test_create_user_reports_validation_failure(client: TestClient) -> None:
    response = client.post('/users', json={'name': 'Ann', 'email': 'ann@x.com', 'password': '123'})

    assert response.status_code == 400
    assert response.json()['message'] == 'Password should be at least 6 characters.'


def test_create_user_rejects_non_text_fields(client: TestClient) -> None:
    response = client.post('/users', json={'name': ['Ann'], 'email': 'ann@x.com', 'password': 'secret1'})

    assert response.status_code == 400
    assert response.json()['status'] == 400


def test_protected_routes_require_credentials(client: TestClient) -> None:
    user_id = str(uuid.uuid4())

    responses = [
        client.get('/users'),
        client.get(f'/users/{user_id}'),
        client.put(f'/users/{user_id}', json={'name': 'Annie'}),
        client.delete(f'/users/{user_id}'),
        client.get('/users', headers={'Authorization': 'Bearer not-a-token'}),
        client.get('/users', headers={'Authorization': 'Basic abc'}),
    ]

    for response in responses:
        assert response.status_code == 401
        assert response.json() == {'status': 401, 'message': 'Unauthorized'}


def test_student_cannot_list_users(client: TestClient) -> None:
    ann = _register(client)

    response = client.get('/users', headers=_auth(ann['id']))

    assert response.status_code == 403
    assert response.json() == {'status': 403, 'message': 'Forbidden'}


def test_instructor_lists_users_with_filters(client: TestClient) -> None:
    _register(client)
    _register(client, name='Bob', email='bob@x.com', role='Instructor')
    headers = _auth(str(uuid.uuid4()), 'Instructor')

    everyone = client.get('/users', headers=headers).json()
    instructors = client.get('/users', params={'role': 'Instructor'}, headers=headers).json()

    assert everyone['message'] == 'Successfully retrieved 2 users!'
    assert all('password' not in user for user in everyone['data'])
    assert [user['name'] for user in instructors['data']] == ['Bob']


def test_instructor_list_with_no_matches_returns_empty_data(client: TestClient) -> None:
    response = client.get('/users', params={'name': 'Nobody'}, headers=_auth(str(uuid.uuid4()), 'Instructor'))

    assert response.status_code == 200
    assert response.json() == {'status': 200, 'message': 'Successfully retrieved 0 users!', 'data': []}


def test_student_reads_own_record_only(client: TestClient) -> None:
    ann = _register(client)
    bob = _register(client, name='Bob', email='bob@x.com')

    own = client.get(f"/users/{ann['id']}", headers=_auth(ann['id']))
    other = client.get(f"/users/{bob['id']}", headers=_auth(ann['id']))

    assert own.status_code == 200
    assert own.json()['data'] == ann
    assert other.status_code == 403


def test_read_user_with_malformed_id_is_bad_request(client: TestClient) -> None:
    response = client.get('/users/abc', headers=_auth('abc'))

    assert response.status_code == 400
    assert response.json()['message'] == 'Invalid ID!'


def test_read_missing_user_is_not_found(client: TestClient) -> None:
    response = client.get(f'/users/{uuid.uuid4()}', headers=_auth(str(uuid.uuid4()), 'Instructor'))

    assert response.status_code == 404
    assert response.json() == {'status': 404, 'message': 'Resource not found!'}


def test_student_updates_own_record(client: TestClient, service: UserService) -> None:
    ann = _register(client)

    response = client.put(f"/users/{ann['id']}", json={'name': 'Annie', 'password': 'changed1'}, headers=_auth(ann['id']))

    body = response.json()
    assert response.status_code == 200
    assert body['message'] == 'Successfully updated the following user!'
    assert body['data'] == {**ann, 'name': 'Annie'}
    stored = asyncio.run(service.read(ann['id']))
    assert bcrypt.checkpw(b'changed1', stored.password.encode())


def test_update_to_taken_email_is_rejected(client: TestClient) -> None:
    ann = _register(client)
    bob = _register(client, name='Bob', email='bob@x.com')

    response = client.put(f"/users/{bob['id']}", json={'email': ann['email']}, headers=_auth(bob['id']))

    assert response.status_code == 400
    assert response.json()['message'] == 'Email already in use!'


def test_student_cannot_update_someone_else(client: TestClient) -> None:
    ann = _register(client)
    bob = _register(client, name='Bob', email='bob@x.com')

    response = client.put(f"/users/{bob['id']}", json={'name': 'Hacked'}, headers=_auth(ann['id']))

    assert response.status_code == 403


def test_instructor_deletes_any_user(client: TestClient) -> None:
    ann = _register(client)
    headers = _auth(str(uuid.uuid4()), 'Instructor')

    response = client.delete(f"/users/{ann['id']}", headers=headers)

    assert response.status_code == 200
    assert response.json() == {'status': 200, 'message': 'Successfully deleted the following user!', 'data': ann}
    assert client.get(f"/users/{ann['id']}", headers=headers).status_code == 404


def test_student_deletes_own_record(client: TestClient) -> None:
    ann = _register(client)

    response = client.delete(f"/users/{ann['id']}", headers=_auth(ann['id']))

    assert response.status_code == 200
    assert response.json()['data']['id'] == ann['id']


def test_unauthenticated_update_with_broken_body_is_unauthorized(client: TestClient) -> None:
    response = client.put(
        f'/users/{uuid.uuid4()}',
        content='{not json',
        headers={'Content-Type': 'application/json'},
    )

    assert response.status_code == 401
    assert response.json() == {'status': 401, 'message': 'Unauthorized'}


def test_forbidden_update_with_broken_body_is_forbidden(client: TestClient) -> None:
    ann = _register(client)

    response = client.put(
        f'/users/{uuid.uuid4()}',
        content='{not json',
        headers={'Content-Type': 'application/json', **_auth(ann['id'])},
    )

    assert response.status_code == 403


def test_authorized_update_with_broken_body_is_bad_request(client: TestClient) -> None:
    ann = _register(client)

    broken = client.put(
        f"/users/{ann['id']}",
        content='{not json',
        headers={'Content-Type': 'application/json', **_auth(ann['id'])},
    )
    wrong_types = client.put(f"/users/{ann['id']}", json={'name': ['Annie']}, headers=_auth(ann['id']))

    assert broken.status_code == 400
    assert broken.json() == {'status': 400, 'message': 'Invalid request body!'}
    assert wrong_types.status_code == 400


def test_app_creates_its_own_schema_on_startup(hasher) -> None:
    engine = create_engine(
        'sqlite:///:memory:',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    service = UserService(SqlUserRepository(build_session_factory(engine)), hasher)

    with TestClient(create_app(service)) as fresh_client:
        created = _register(fresh_client)
        listed = fresh_client.get('/users', headers=_auth(created['id'], 'Instructor'))

    assert listed.json()['data'] == [created]
    engine.dispose()
