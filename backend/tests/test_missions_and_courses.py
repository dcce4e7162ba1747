from conftest import API, register


def test_created_mission_defaults(client, mission, famille, enseignant):
    assert mission['status'] == 'active'
    assert mission['end_date'] is None
    assert mission['famille_id'] == famille.id
    assert mission['enseignant_id'] == enseignant.id


def test_end_date_kept_when_supplied(client, famille, enseignant):
    r = client.post(f'{API}/missions', json={
        'start_date': '2025-09-01T09:00:00',
        'end_date': '2025-12-20T18:00:00+02:00',
        'enseignant_id': enseignant.id,
    }, headers=famille.headers)
    assert r.status_code == 201
    # stored as UTC
    assert r.json()['end_date'].startswith('2025-12-20T16:00:00')


def test_marketplace_scenario(client, famille, enseignant):
    # famille books the enseignant
    r = client.post(f'{API}/missions', json={
        'start_date': '2025-09-01T09:00:00',
        'enseignant_id': enseignant.id,
    }, headers=famille.headers)
    mission_id = r.json()['id']
    r = client.post(f'{API}/courses', json={
        'mission_id': mission_id,
        'scheduled_time': '2025-09-03T17:00:00',
        'duration': 60,
        'location': 'Bibliotheque',
    }, headers=famille.headers)
    course_id = r.json()['id']

    r = client.get(f'{API}/courses/{course_id}', headers=famille.headers)
    assert r.status_code == 200
    assert r.json()['famille_id'] == famille.id
    assert r.json()['enseignant_id'] == enseignant.id
    assert r.json()['payments'] == []

    r = client.put(f'{API}/missions/{mission_id}/stop', headers=famille.headers)
    assert r.status_code == 200
    assert r.json()['status'] == 'stopped'
    assert r.json()['end_date'] is not None

    r = client.post(f'{API}/options', json={'famille_id': famille.id, 'enseignant_id': enseignant.id}, headers=famille.headers)
    option_id = r.json()['id']
    r = client.put(f'{API}/options/{option_id}/decline', headers=enseignant.headers)
    assert r.status_code == 200
    assert r.json()['status'] == 'expired'


def test_course_copies_mission_participants(client, course, mission):
    assert course['mission_id'] == mission['id']
    assert course['famille_id'] == mission['famille_id']
    assert course['enseignant_id'] == mission['enseignant_id']
    assert course['status'] == 'scheduled'


def test_only_famille_or_admin_create_missions(client, famille, enseignant, admin):
    payload = {'start_date': '2025-09-01T09:00:00', 'enseignant_id': enseignant.id}
    assert client.post(f'{API}/missions', json=payload, headers=enseignant.headers).status_code == 403
    # an admin must name the famille
    assert client.post(f'{API}/missions', json=payload, headers=admin.headers).status_code == 400
    r = client.post(f'{API}/missions', json={**payload, 'famille_id': famille.id}, headers=admin.headers)
    assert r.status_code == 201
    assert r.json()['famille_id'] == famille.id
    # the named users must have the right roles
    r = client.post(f'{API}/missions', json={**payload, 'enseignant_id': famille.id}, headers=famille.headers)
    assert r.status_code == 404
    other = register(client, 'famille')
    r = client.post(f'{API}/missions', json={**payload, 'famille_id': other.id}, headers=famille.headers)
    assert r.status_code == 403


def test_mission_transitions_and_update(client, mission, famille, enseignant):
    mid = mission['id']
    assert client.put(f'{API}/missions/{mid}/pause', headers=enseignant.headers).json()['status'] == 'paused'
    # extending does not check the date against start_date and reactivates
    r = client.put(f'{API}/missions/{mid}/extend', json={'end_date': '2020-01-01T00:00:00'}, headers=famille.headers)
    assert r.json()['status'] == 'active'
    assert r.json()['end_date'].startswith('2020-01-01')
    assert client.put(f'{API}/missions/{mid}/complete', headers=famille.headers).json()['status'] == 'completed'
    r = client.put(f'{API}/missions/{mid}', json={'description': 'Maths 3e'}, headers=famille.headers)
    assert r.json()['description'] == 'Maths 3e'
    assert r.json()['status'] == 'completed'


def test_outsiders_cannot_touch_mission(client, mission):
    outsider = register(client, 'famille')
    mid = mission['id']
    assert client.put(f'{API}/missions/{mid}/stop', headers=outsider.headers).status_code == 403
    assert client.delete(f'{API}/missions/{mid}', headers=outsider.headers).status_code == 403


def test_mission_detail_and_delete(client, mission, course, famille, enseignant):
    client.post(f'{API}/reports', json={'mission_id': mission['id'], 'content': 'Bon debut'}, headers=enseignant.headers)
    r = client.get(f"{API}/missions/{mission['id']}", headers=famille.headers)
    assert [c['id'] for c in r.json()['courses']] == [course['id']]
    assert len(r.json()['reports']) == 1
    assert client.delete(f"{API}/missions/{mission['id']}", headers=famille.headers).status_code == 204
    assert client.get(f"{API}/missions/{mission['id']}", headers=famille.headers).status_code == 404
    assert client.delete(f'{API}/missions/999999', headers=famille.headers).status_code == 404


def test_mission_payments_fan_out(client, mission, famille):
    mid = mission['id']
    # no courses yet
    r = client.get(f'{API}/missions/{mid}/payments', headers=famille.headers)
    assert r.status_code == 200
    assert r.json() == []
    r = client.post(f'{API}/courses', json={
        'mission_id': mid, 'scheduled_time': '2025-09-04T17:00:00', 'duration': 60, 'location': 'Domicile',
    }, headers=famille.headers)
    course_id = r.json()['id']
    client.post(f'{API}/payments', json={'amount': 30, 'type': 'course', 'course_id': course_id}, headers=famille.headers)
    client.post(f'{API}/payments', json={'amount': 99, 'type': 'advance'}, headers=famille.headers)
    r = client.get(f'{API}/missions/{mid}/payments', headers=famille.headers)
    assert [p['amount'] for p in r.json()] == [30.0]
    r = client.get(f'{API}/courses/{course_id}', headers=famille.headers)
    assert [p['amount'] for p in r.json()['payments']] == [30.0]
    assert len(client.get(f'{API}/courses/{course_id}/payments', headers=famille.headers).json()) == 1


def test_mission_filters(client, famille, enseignant, mission):
    other = register(client, 'enseignant')
    client.post(f'{API}/missions', json={
        'start_date': '2026-01-10T09:00:00', 'enseignant_id': other.id,
    }, headers=famille.headers)
    r = client.get(f'{API}/missions', params={'enseignant_id': other.id}, headers=famille.headers)
    assert len(r.json()) == 1
    r = client.get(f'{API}/missions', params={'date_from': '2026-01-01T00:00:00'}, headers=famille.headers)
    assert [m['enseignant_id'] for m in r.json()] == [other.id]
    r = client.get(f'{API}/missions', params={'status': 'active', 'famille_id': famille.id}, headers=famille.headers)
    assert len(r.json()) == 2
    assert client.get(f'{API}/missions', params={'status': 'bogus'}, headers=famille.headers).status_code == 400


def test_course_validation_and_transitions(client, mission, course, famille, enseignant):
    base = {'mission_id': mission['id'], 'scheduled_time': '2025-09-05T17:00:00', 'location': 'Domicile'}
    assert client.post(f'{API}/courses', json={**base, 'duration': 10}, headers=famille.headers).status_code == 400
    assert client.post(f'{API}/courses', json={**base, 'duration': 600}, headers=famille.headers).status_code == 400
    r = client.post(f'{API}/courses', json={**base, 'duration': 60, 'mission_id': 999999}, headers=famille.headers)
    assert r.status_code == 404
    r = client.post(f'{API}/courses', json={**base, 'duration': 60, 'address_id': 999999}, headers=famille.headers)
    assert r.status_code == 404

    cid = course['id']
    r = client.put(f'{API}/courses/{cid}/declare', json={'hours': 1.5}, headers=enseignant.headers)
    assert r.json()['status'] == 'in_progress'
    assert client.put(f'{API}/courses/{cid}/cancel', headers=famille.headers).json()['status'] == 'cancelled'
    assert client.put(f'{API}/courses/{cid}/schedule', headers=famille.headers).json()['status'] == 'scheduled'
    assert client.put(f'{API}/courses/{cid}/complete', headers=famille.headers).json()['status'] == 'completed'
    r = client.put(f'{API}/courses/{cid}', json={'location': '', 'duration': 120}, headers=famille.headers)
    assert r.json()['location'] == 'Domicile'
    assert r.json()['duration'] == 120


def test_course_filters_embed_payments(client, course, famille, enseignant):
    r = client.get(f'{API}/courses', params={'enseignant_id': enseignant.id}, headers=famille.headers)
    assert [c['id'] for c in r.json()] == [course['id']]
    assert r.json()[0]['payments'] == []
    r = client.get(f'{API}/courses', params={'date_to': '2025-01-01T00:00:00'}, headers=famille.headers)
    assert r.json() == []
    # 19:00+02:00 is the 17:00Z start of the course
    r = client.get(f'{API}/courses', params={'date_from': '2025-09-02T19:00:00+02:00'}, headers=famille.headers)
    assert [c['id'] for c in r.json()] == [course['id']]
    r = client.get(f'{API}/courses', params={'date_to': '2025-09-02T18:59:00+02:00'}, headers=famille.headers)
    assert r.json() == []


def test_mission_date_filter_converts_offsets(client, famille, enseignant):
    client.post(f'{API}/missions', json={
        'start_date': '2026-01-01T02:00:00Z', 'enseignant_id': enseignant.id,
    }, headers=famille.headers)
    # 05:00+05:00 is midnight UTC, two hours before the start
    r = client.get(f'{API}/missions', params={'date_from': '2026-01-01T05:00:00+05:00'}, headers=famille.headers)
    assert r.status_code == 200
    assert len(r.json()) == 1
    r = client.get(f'{API}/missions', params={'date_from': '2026-01-01T08:00:00+05:00'}, headers=famille.headers)
    assert r.json() == []


def test_teachers_of_family_and_students_of_teacher(client, famille, enseignant, mission, course):
    other_teacher = register(client, 'enseignant')
    client.post(f'{API}/missions', json={
        'start_date': '2025-10-01T09:00:00', 'enseignant_id': other_teacher.id,
    }, headers=famille.headers)
    r = client.get(f'{API}/familles/{famille.id}/teachers', headers=famille.headers)
    assert sorted(u['id'] for u in r.json()) == sorted([enseignant.id, other_teacher.id])
    r = client.get(f'{API}/enseignants/{enseignant.id}/students', headers=enseignant.headers)
    assert [u['id'] for u in r.json()] == [famille.id]
    assert client.get(f'{API}/familles/{enseignant.id}/teachers', headers=famille.headers).status_code == 404
