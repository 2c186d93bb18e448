"""
Tests for registration, token issuance and profile updates.
"""
import base64
import io

import pytest

from agrilinker.validators import format_nid
from tests.conftest import PASSWORD


def register(client, **overrides):
    payload = {
        'name': 'Karim Mia',
        'email': 'Karim@Example.com',
        'password': PASSWORD,
        'confirm_password': PASSWORD,
        'role': 'farmer',
    }
    payload.update(overrides)
    return client.post('/users', json=payload)


class TestRegistration:

    def test_register_creates_pending_farmer(self, client):
        resp = register(client)
        assert resp.status_code == 201
        assert resp.get_json()['insertedId']

        token = client.post('/jwt', json={'email': 'karim@example.com', 'password': PASSWORD}).get_json()['token']
        user = client.get('/users/karim@example.com', headers={'Authorization': f'Bearer {token}'}).get_json()
        assert user['role'] == 'farmer'
        assert user['verificationStatus'] == 'pending'
        assert user['isVerified'] is False

    def test_existing_email_is_not_inserted_again(self, client):
        register(client)
        resp = register(client, name='Someone Else')
        assert resp.status_code == 200
        assert resp.get_json() == {'message': 'user already exists', 'insertedId': None}

    @pytest.mark.parametrize('password, message', [
        ('a1!', 'at least 6 characters'),
        ('abcdef1', 'one letter, one number, and one special character'),
        ('abcdef!', 'one letter, one number, and one special character'),
    ])
    def test_password_policy(self, client, password, message):
        resp = register(client, password=password, confirm_password=password)
        assert resp.status_code == 400
        assert message in resp.get_json()['message']

    def test_passwords_must_match(self, client):
        resp = register(client, confirm_password='different@1')
        assert resp.status_code == 400
        assert resp.get_json()['message'] == 'Passwords do not match!'

    def test_admin_role_cannot_be_self_assigned(self, client):
        resp = register(client, role='admin')
        assert resp.status_code == 400

    def test_invalid_email(self, client):
        resp = register(client, email='not-an-email')
        assert resp.status_code == 400
        assert resp.get_json()['success'] is False


class TestTokens:

    def test_wrong_password_is_401(self, client, buyer):
        resp = client.post('/jwt', json={'email': buyer.email, 'password': 'wrong@123'})
        assert resp.status_code == 401

    def test_protected_route_without_token_is_401(self, client, buyer):
        resp = client.get(f'/users/{buyer.email}')
        assert resp.status_code == 401
        assert resp.get_json()['message'] == 'Unauthorized access'

    def test_tampered_token_is_401(self, client, buyer):
        headers = {'Authorization': buyer.headers['Authorization'] + 'x'}
        assert client.get(f'/users/{buyer.email}', headers=headers).status_code == 401

    def test_expired_token_is_401(self, app, client, buyer):
        app.config['TOKEN_MAX_AGE_SECONDS'] = -1
        assert client.get(f'/users/{buyer.email}', headers=buyer.headers).status_code == 401

    def test_other_users_record_is_403(self, client, buyer, farmer):
        resp = client.get(f'/users/{farmer.email}', headers=buyer.headers)
        assert resp.status_code == 403

    def test_admin_can_read_any_user(self, client, admin, farmer):
        resp = client.get(f'/users/{farmer.email}', headers=admin.headers)
        assert resp.status_code == 200
        assert resp.get_json()['email'] == farmer.email


class TestProfile:

    def test_update_profile(self, client, buyer):
        resp = client.patch('/users/update-profile', headers=buyer.headers, json={
            'displayName': '  Rahima Begum ',
            'nidNumber': '1234-567-8901',
            'address': 'Bogura, Rajshahi',
        })
        assert resp.status_code == 200
        user = resp.get_json()['user']
        assert user['name'] == 'Rahima Begum'
        assert user['nidNumber'] == '1234-567-8901'
        assert user['address'] == 'Bogura, Rajshahi'

    def test_blank_name_rejected(self, client, buyer):
        resp = client.patch('/users/update-profile', headers=buyer.headers, json={'displayName': '  '})
        assert resp.status_code == 400
        assert resp.get_json()['message'] == 'Full name is required'

    def test_bad_nid_rejected(self, client, buyer):
        resp = client.patch('/users/update-profile', headers=buyer.headers,
                            json={'displayName': 'Rahima', 'nidNumber': '12345678901'})
        assert resp.status_code == 400
        assert 'NID' in resp.get_json()['message']

    def test_legacy_uid_update(self, client, buyer, farmer):
        resp = client.patch(f'/profile/{buyer.uid}', headers=buyer.headers,
                            json={'name': 'New Name', 'photoURL': 'https://img.example/a.png'})
        assert resp.status_code == 200
        assert resp.get_json()['user']['photoURL'] == 'https://img.example/a.png'

        assert client.patch(f'/profile/{farmer.uid}', headers=buyer.headers,
                            json={'name': 'x'}).status_code == 403


def test_format_nid_inserts_dashes():
    assert format_nid('12345678901') == '1234-567-8901'
    assert format_nid('1234abc567') == '1234-567'
    assert format_nid('') == ''


class TestMalformedInput:

    def test_reused_uid_is_conflict(self, client, buyer):
        resp = register(client, uid=buyer.uid)
        assert resp.status_code == 409
        assert resp.get_json()['success'] is False

    def test_client_supplied_uid_is_kept(self, client):
        resp = register(client, uid='firebase-uid-123')
        assert resp.status_code == 201
        assert resp.get_json()['insertedId'] == 'firebase-uid-123'

    @pytest.mark.parametrize('field, value', [
        ('name', 123),
        ('email', 42),
        ('role', ['farmer']),
        ('password', 12345678),
    ])
    def test_non_text_fields_rejected(self, client, field, value):
        resp = register(client, **{field: value})
        assert resp.status_code == 400
        assert resp.get_json()['success'] is False

    def test_token_with_non_text_password(self, client, buyer):
        resp = client.post('/jwt', json={'email': buyer.email, 'password': 123})
        assert resp.status_code == 401

    @pytest.mark.parametrize('payload', [
        {'displayName': 99},
        {'displayName': 'Rahima', 'nidNumber': 12345678901},
        {'displayName': 'Rahima', 'address': {'city': 'Bogura'}},
    ])
    def test_profile_rejects_non_text(self, client, buyer, payload):
        resp = client.patch('/users/update-profile', headers=buyer.headers, json=payload)
        assert resp.status_code == 400


class TestProfilePhoto:

    def test_multipart_upload(self, client, buyer):
        resp = client.post('/profile/upload', headers=buyer.headers,
                           data={'image': (io.BytesIO(b'avatar bytes'), 'me.jpg')},
                           content_type='multipart/form-data')
        assert resp.status_code == 200
        data = resp.get_json()
        assert data['imageUrl'].endswith('_me.jpg')
        assert data['user']['photoURL'] == data['imageUrl']
        assert client.get(data['imageUrl']).data == b'avatar bytes'

    def test_base64_data_url_upload(self, client, buyer):
        image_data = 'data:image/png;base64,' + base64.b64encode(b'png bytes').decode()
        resp = client.post('/profile/upload/imgbb', headers=buyer.headers, json={'imageData': image_data})
        assert resp.status_code == 200
        image_url = resp.get_json()['imageUrl']
        assert image_url.endswith('_profile.png')
        assert client.get(image_url).data == b'png bytes'

        user = client.get(f'/users/{buyer.email}', headers=buyer.headers).get_json()
        assert user['photoURL'] == image_url

    @pytest.mark.parametrize('payload, message', [
        ({}, 'Please select an image'),
        ({'imageData': 'not a data url'}, 'Image data must be a base64 data URL'),
        ({'imageData': 'data:image/png;base64,@@@'}, 'Image data is not valid base64'),
        ({'imageData': 'data:image/svg;base64,AAAA'}, 'Image must be a png, jpg, jpeg, gif or webp file'),
    ])
    def test_bad_uploads(self, client, buyer, payload, message):
        resp = client.post('/profile/upload', headers=buyer.headers, json=payload)
        assert resp.status_code == 400
        assert resp.get_json()['message'] == message

    def test_upload_requires_login(self, client):
        assert client.post('/profile/upload', json={}).status_code == 401
