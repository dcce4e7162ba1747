from conftest import API, register


ADDRESS = {'street': '12 rue des Ecoles', 'city': 'Lyon', 'postal_code': '69001', 'country': 'France', 'latitude': 45.76, 'longitude': 4.83}


def test_famille_directory(client, famille, enseignant, mission, course, admin):
    r = client.get(f'{API}/familles', headers=enseignant.headers)
    assert [u['id'] for u in r.json()] == [famille.id]
    r = client.get(f'{API}/familles/{famille.id}', headers=enseignant.headers)
    body = r.json()
    assert body['profile']['family_name'] == 'Martin'
    assert [m['id'] for m in body['missions']] == [mission['id']]
    assert [c['id'] for c in body['courses']] == [course['id']]
    assert body['options'] == []
    assert len(client.get(f'{API}/familles/{famille.id}/missions', headers=famille.headers).json()) == 1
    assert len(client.get(f'{API}/familles/{famille.id}/courses', headers=famille.headers).json()) == 1
    # an enseignant id is not a famille
    assert client.get(f'{API}/familles/{enseignant.id}', headers=famille.headers).status_code == 404

    r = client.put(f'{API}/familles/{famille.id}', json={'family_name': 'Bernard'}, headers=famille.headers)
    assert r.json()['profile']['family_name'] == 'Bernard'
    assert client.put(f'{API}/familles/{famille.id}', json={'family_name': 'X'}, headers=enseignant.headers).status_code == 403
    assert client.delete(f'{API}/familles/{famille.id}', headers=famille.headers).status_code == 403
    assert client.delete(f'{API}/familles/999999', headers=admin.headers).status_code == 404
    assert client.delete(f'{API}/familles/{famille.id}', headers=admin.headers).status_code == 204
    assert client.get(f'{API}/familles', headers=enseignant.headers).json() == []


def test_family_reviews_are_not_implemented(client, famille, enseignant):
    r = client.post(f'{API}/familles/{famille.id}/reviews', json={'rating': 5}, headers=enseignant.headers)
    assert r.status_code == 501
    assert 'error' in r.json()


def test_enseignant_directory(client, famille, enseignant, mission, course, admin):
    r = client.get(f'{API}/enseignants/{enseignant.id}', headers=famille.headers)
    body = r.json()
    assert body['profile'] == {'role': 'enseignant', 'specialization': 'maths', 'qualifications': 'CAPES'}
    assert [m['id'] for m in body['missions']] == [mission['id']]
    assert [c['id'] for c in body['courses']] == [course['id']]
    assert body['reports'] == [] and body['options'] == []
    assert len(client.get(f'{API}/enseignants/{enseignant.id}/missions', headers=famille.headers).json()) == 1
    assert len(client.get(f'{API}/enseignants/{enseignant.id}/courses', headers=famille.headers).json()) == 1
    assert client.get(f'{API}/enseignants/{enseignant.id}/options', headers=famille.headers).json() == []

    r = client.get(f'{API}/enseignants/nearby', headers=famille.headers)
    assert r.status_code == 200
    assert [u['id'] for u in r.json()] == [enseignant.id]

    r = client.put(f'{API}/enseignants/{enseignant.id}', json={'qualifications': ''}, headers=enseignant.headers)
    assert r.json()['profile']['qualifications'] == ''
    assert r.json()['profile']['specialization'] == 'maths'


def test_admin_creates_enseignant(client, admin, famille):
    payload = {'username': 'prof_leroy', 'email': 'leroy@example.com', 'password': 'secret123', 'specialization': 'histoire'}
    assert client.post(f'{API}/enseignants', json=payload, headers=famille.headers).status_code == 403
    r = client.post(f'{API}/enseignants', json=payload, headers=admin.headers)
    assert r.status_code == 201
    assert r.json()['role'] == 'enseignant'
    assert r.json()['profile']['specialization'] == 'histoire'
    assert client.post(f'{API}/enseignants', json=payload, headers=admin.headers).status_code == 409
    r = client.post(f'{API}/auth/login', json={'email': 'leroy@example.com', 'password': 'secret123'})
    assert r.status_code == 200
    assert client.delete(f"{API}/enseignants/{r.json()['user']['id']}", headers=admin.headers).status_code == 204


def test_address_crud_and_ownership(client, famille, enseignant, admin):
    r = client.post(f'{API}/addresses', json=ADDRESS, headers=famille.headers)
    assert r.status_code == 201
    address = r.json()
    assert address['user_id'] == famille.id
    assert client.post(f'{API}/addresses', json={**ADDRESS, 'city': ''}, headers=famille.headers).status_code == 400

    r = client.put(f"{API}/addresses/{address['id']}", json={'city': '', 'latitude': 0}, headers=famille.headers)
    assert r.json()['city'] == 'Lyon'
    assert r.json()['latitude'] == 0
    assert client.get(f"{API}/addresses/{address['id']}", headers=enseignant.headers).status_code == 403
    assert client.get(f"{API}/addresses/{address['id']}", headers=admin.headers).status_code == 200

    client.post(f'{API}/addresses', json=ADDRESS, headers=enseignant.headers)
    assert len(client.get(f'{API}/addresses', headers=famille.headers).json()) == 1
    assert len(client.get(f'{API}/addresses', headers=admin.headers).json()) == 2

    assert client.delete(f"{API}/addresses/{address['id']}", headers=famille.headers).status_code == 204
    assert client.get(f'{API}/addresses', headers=famille.headers).json() == []


def test_course_can_reference_address(client, famille, mission):
    address_id = client.post(f'{API}/addresses', json=ADDRESS, headers=famille.headers).json()['id']
    r = client.post(f'{API}/courses', json={
        'mission_id': mission['id'], 'scheduled_time': '2025-09-10T17:00:00', 'duration': 45,
        'location': 'Domicile', 'address_id': address_id,
    }, headers=famille.headers)
    assert r.status_code == 201
    assert r.json()['address_id'] == address_id


def test_geocode_and_route_placeholders(client, famille):
    r = client.get(f'{API}/addresses/geocode', params={'address': '1 place Bellecour, Lyon'}, headers=famille.headers)
    assert r.status_code == 200
    assert r.json()['latitude'] == 0.0 and r.json()['longitude'] == 0.0
    a = client.post(f'{API}/addresses', json=ADDRESS, headers=famille.headers).json()['id']
    b = client.post(f'{API}/addresses', json={**ADDRESS, 'street': '3 quai Perrache'}, headers=famille.headers).json()['id']
    r = client.get(f'{API}/addresses/route', params={'origin_id': a, 'destination_id': b}, headers=famille.headers)
    assert r.status_code == 200
    assert set(r.json()) == {'distance', 'duration', 'route'}
    assert len(r.json()['route']) == 2
    r = client.get(f'{API}/addresses/route', params={'origin_id': a, 'destination_id': 999999}, headers=famille.headers)
    assert r.status_code == 404
    assert client.get(f'{API}/addresses/route', params={'origin_id': a}, headers=famille.headers).status_code == 400


def test_resource_visibility_and_sharing(client, admin, famille, enseignant):
    def create(**extra):
        payload = {'title': 'Fiche', 'type': 'document', 'url': 'https://example.com/fiche.pdf', 'mime_type': 'application/pdf'}
        payload.update(extra)
        r = client.post(f'{API}/resources', json=payload, headers=admin.headers)
        assert r.status_code == 201, r.text
        return r.json()

    public = create(title='Public', is_public=True)
    private = create(title='Private')
    assert public['managed_by_id'] == admin.id
    assert client.post(f'{API}/resources', json={'title': 'x', 'type': 'link', 'url': 'u'}, headers=famille.headers).status_code == 403

    titles = [x['title'] for x in client.get(f'{API}/resources', headers=famille.headers).json()]
    assert titles == ['Public']
    assert client.get(f"{API}/resources/{private['id']}", headers=famille.headers).status_code == 403
    assert len(client.get(f'{API}/resources', headers=admin.headers).json()) == 2

    r = client.post(f"{API}/resources/{private['id']}/share", json={'user_ids': [famille.id, famille.id]}, headers=admin.headers)
    assert r.status_code == 200
    assert client.get(f"{API}/resources/{private['id']}", headers=famille.headers).status_code == 200
    assert client.get(f"{API}/resources/{private['id']}", headers=enseignant.headers).status_code == 403
    assert [x['id'] for x in client.get(f'{API}/users/{famille.id}/resources', headers=famille.headers).json()] == [private['id']]
    r = client.get(f'{API}/resources', params={'is_public': False}, headers=famille.headers)
    assert [x['title'] for x in r.json()] == ['Private']
    assert client.post(f"{API}/resources/{private['id']}/share", json={'user_ids': [999999]}, headers=admin.headers).status_code == 404
    assert client.post(f"{API}/resources/{private['id']}/share", json={'user_ids': []}, headers=admin.headers).status_code == 400

    assert client.delete(f"{API}/resources/{private['id']}/share/{famille.id}", headers=admin.headers).status_code == 204
    assert client.delete(f"{API}/resources/{private['id']}/share/{famille.id}", headers=admin.headers).status_code == 404
    assert client.get(f"{API}/resources/{private['id']}", headers=famille.headers).status_code == 403

    r = client.put(f"{API}/resources/{private['id']}", json={'is_public': True, 'url': ''}, headers=admin.headers)
    assert r.json()['is_public'] is True
    assert r.json()['url'] == 'https://example.com/fiche.pdf'
    assert client.get(f"{API}/resources/{private['id']}", headers=enseignant.headers).status_code == 200
    assert client.delete(f"{API}/resources/{public['id']}", headers=admin.headers).status_code == 204
    assert client.get(f"{API}/resources/{public['id']}", headers=admin.headers).status_code == 404
