from conftest import API, register


def test_only_admins_list_users(client, famille, admin):
    assert client.get(f'{API}/users', headers=famille.headers).status_code == 403
    r = client.get(f'{API}/users', headers=admin.headers)
    assert r.status_code == 200
    ids = {u['id'] for u in r.json()}
    assert {famille.id, admin.id} <= ids


def test_get_user_embeds_profile_variant(client, famille, enseignant, admin):
    r = client.get(f'{API}/users/{admin.id}', headers=famille.headers)
    assert r.status_code == 200
    assert r.json()['profile'] == {'role': 'administrator'}
    r = client.get(f'{API}/users/{enseignant.id}', headers=famille.headers)
    assert r.json()['profile']['specialization'] == 'maths'


def test_update_with_empty_username_leaves_it_unchanged(client, famille):
    r = client.put(f'{API}/users/{famille.id}', json={'username': '', 'family_name': 'Dupont'}, headers=famille.headers)
    assert r.status_code == 200
    assert r.json()['username'] == famille.user['username']
    assert r.json()['profile']['family_name'] == 'Dupont'


def test_update_with_empty_email_leaves_it_unchanged(client, famille):
    r = client.put(f'{API}/users/{famille.id}', json={'email': '', 'phone_number': '5'}, headers=famille.headers)
    assert r.status_code == 200
    assert r.json()['email'] == famille.user['email']
    assert r.json()['phone_number'] == '5'
    r = client.put(f'{API}/users/{famille.id}', json={'email': 'not-an-email'}, headers=famille.headers)
    assert r.status_code == 400


def test_update_rejects_short_username(client, famille):
    r = client.put(f'{API}/users/{famille.id}', json={'username': 'ab'}, headers=famille.headers)
    assert r.status_code == 400
    r = client.put(f'{API}/users/{famille.id}', json={'username': 'abc'}, headers=famille.headers)
    assert r.status_code == 200
    assert r.json()['username'] == 'abc'


def test_update_applies_empty_optional_values(client, famille):
    client.put(f'{API}/users/{famille.id}', json={'phone_number': '0102030405'}, headers=famille.headers)
    r = client.put(f'{API}/users/{famille.id}', json={'phone_number': ''}, headers=famille.headers)
    assert r.json()['phone_number'] == ''
    # null means "not sent"
    r = client.put(f'{API}/users/{famille.id}', json={'username': None}, headers=famille.headers)
    assert r.json()['username'] == famille.user['username']


def test_profile_fields_of_other_roles_are_ignored(client, famille):
    r = client.put(f'{API}/users/{famille.id}', json={'specialization': 'chimie'}, headers=famille.headers)
    assert r.status_code == 200
    assert r.json()['profile'] == {'role': 'famille', 'family_name': 'Martin'}


def test_owner_or_admin_may_update(client, famille, enseignant, admin):
    r = client.put(f'{API}/users/{famille.id}', json={'phone_number': '1'}, headers=enseignant.headers)
    assert r.status_code == 403
    r = client.put(f'{API}/users/{famille.id}', json={'phone_number': '2'}, headers=admin.headers)
    assert r.status_code == 200
    assert r.json()['phone_number'] == '2'


def test_delete_missing_user_is_404(client, admin):
    r = client.delete(f'{API}/users/999999', headers=admin.headers)
    assert r.status_code == 404
    assert r.json() == {'error': 'user not found'}


def test_malformed_id_is_400(client, admin):
    assert client.get(f'{API}/users/abc', headers=admin.headers).status_code == 400
    assert client.get(f'{API}/users/0', headers=admin.headers).status_code == 400


def test_soft_deleted_user_disappears_and_loses_access(client, admin):
    victim = register(client, 'famille')
    assert client.delete(f'{API}/users/{victim.id}', headers=victim.headers).status_code == 403
    r = client.delete(f'{API}/users/{victim.id}', headers=admin.headers)
    assert r.status_code == 204
    assert client.get(f'{API}/users/{victim.id}', headers=admin.headers).status_code == 404
    assert client.get(f'{API}/profile', headers=victim.headers).status_code == 401
    ids = {u['id'] for u in client.get(f'{API}/users', headers=admin.headers).json()}
    assert victim.id not in ids
    # the row is retained, so its email stays reserved
    r = client.post(f'{API}/auth/register', json={
        'username': 'brand_new',
        'email': victim.user['email'],
        'password': 'secret123',
        'role': 'famille',
    })
    assert r.status_code == 409


def test_user_subcollections(client, famille, enseignant):
    client.post(f'{API}/addresses', json={
        'street': '1 rue de la Paix', 'city': 'Paris', 'postal_code': '75002', 'country': 'France',
    }, headers=famille.headers)
    client.post(f'{API}/payments', json={'amount': 40, 'type': 'advance'}, headers=famille.headers)
    r = client.get(f'{API}/users/{famille.id}/addresses', headers=famille.headers)
    assert [a['city'] for a in r.json()] == ['Paris']
    r = client.get(f'{API}/users/{famille.id}/payments', headers=famille.headers)
    assert [p['amount'] for p in r.json()] == [40.0]
    assert client.get(f'{API}/users/{famille.id}/payments', headers=enseignant.headers).status_code == 403
    r = client.get(f'{API}/users/{famille.id}/resources', headers=famille.headers)
    assert r.status_code == 200
    assert r.json() == []
