from conftest import unit_vector

from interview_assistant.models import Interview

REALTIME = (
    '* 0:01 ✅ : (Adam Perlis) Welcome, thanks for making the time today.\n'
    '* 0:05 ✅ : (Jane Doe) Thanks for having me, excited to chat.\n'
)


def _seed(make_interview):
    return {
        'alice_interview': make_interview(owner_email='alice@example.com', meeting_type='Interview'),
        'alice_private': make_interview(owner_email='alice@example.com', meeting_type='1-on-1',
                                        candidate_name='Private Person'),
        'bob_private': make_interview(owner_email='bob@example.com', meeting_type='1-on-1'),
        'bob_call': make_interview(owner_email='bob@example.com', meeting_type='Client Call'),
        'legacy': make_interview(owner_email=None, meeting_type='Sales Meeting'),
    }


def test_requires_login(client):
    resp = client.get('/api/interviews')
    assert resp.status_code == 401
    assert resp.get_json() == {'error': 'Unauthorized'}


def test_list_mine_includes_legacy_rows(client, users, login, make_interview):
    rows = _seed(make_interview)
    resp = login(users['alice']).get('/api/interviews')
    ids = {r['id'] for r in resp.get_json()['interviews']}
    assert ids == {rows['alice_interview'].id, rows['alice_private'].id, rows['legacy'].id}
    assert resp.get_json()['count'] == 3


def test_list_all_hides_other_owners_private_types(client, users, login, make_interview):
    rows = _seed(make_interview)
    resp = login(users['alice']).get('/api/interviews?view=all')
    ids = {r['id'] for r in resp.get_json()['interviews']}
    assert rows['bob_private'].id not in ids
    assert rows['bob_call'].id in ids
    assert rows['legacy'].id in ids


def test_admin_sees_everything(client, users, login, make_interview):
    _seed(make_interview)
    resp = login(users['admin']).get('/api/interviews?view=all&limit=50')
    assert resp.get_json()['count'] == 5


def test_pagination_validation(client, users, login):
    resp = login(users['alice']).get('/api/interviews?limit=500')
    assert resp.status_code == 400


def test_get_interview_access(client, users, login, make_interview):
    rows = _seed(make_interview)
    c = login(users['alice'])
    assert c.get(f"/api/interviews/{rows['bob_private'].id}").status_code == 403
    assert c.get(f"/api/interviews/{rows['bob_call'].id}").status_code == 200
    assert c.get('/api/interviews/9999').status_code == 404


def test_delete_rules(client, users, login, make_interview):
    rows = _seed(make_interview)
    bob_call_id = rows['bob_call'].id
    legacy_id = rows['legacy'].id
    c = login(users['alice'])
    assert c.delete(f'/api/interviews/{bob_call_id}').status_code == 403
    assert c.delete(f'/api/interviews/{legacy_id}').status_code == 200
    assert Interview.query.filter_by(id=legacy_id).first() is None


def test_create_realtime_dedupes_by_meeting_code(client, users, login):
    c = login(users['alice'])
    body = {'transcript': REALTIME, 'meetingCode': 'abc-defg-hij', 'title': 'Design chat'}

    first = c.post('/api/interviews/create', json=body)
    assert first.status_code == 200
    assert first.get_json()['status'] == 'created'

    second = c.post('/api/interviews/create', json=body)
    assert second.get_json() == {'success': True, 'id': first.get_json()['id'], 'status': 'updated_existing'}

    row = Interview.query.one()
    assert row.drive_file_id == 'meet-abc-defg-hij'
    assert row.transcript_file_name == '[Realtime] Design chat'
    assert row.owner_email == 'alice@example.com'
    # realtime titles leave the interviewer out
    assert row.meeting_title.startswith('Jane Doe — Interview')


def test_create_realtime_rejects_short_transcript(client, users, login):
    resp = login(users['alice']).post('/api/interviews/create', json={'transcript': 'too short'})
    assert resp.status_code == 400


def test_create_realtime_validation_error_keeps_cors_headers(client, users, login):
    resp = login(users['alice']).post(
        '/api/interviews/create',
        json={'transcript': 'too short'},
        headers={'Origin': 'https://meet.google.com'},
    )
    assert resp.status_code == 400
    assert 'error' in resp.get_json()
    assert resp.headers['Access-Control-Allow-Origin'] == 'https://meet.google.com'
    assert resp.headers['Access-Control-Allow-Credentials'] == 'true'


def test_create_realtime_cors_preflight(client):
    resp = client.options('/api/interviews/create', headers={'Origin': 'chrome-extension://abcdef'})
    assert resp.status_code == 204
    assert resp.headers['Access-Control-Allow-Origin'] == 'chrome-extension://abcdef'
    assert resp.headers['Access-Control-Allow-Credentials'] == 'true'


def test_keyword_search_filters_by_access(client, users, login, make_interview):
    rows = _seed(make_interview)
    resp = login(users['bob']).post('/api/interviews/search', json={'query': 'Private', 'searchType': 'keyword'})
    assert resp.status_code == 200
    ids = [r['id'] for r in resp.get_json()['results']]
    assert rows['alice_private'].id not in ids

    resp = login(users['alice']).post('/api/interviews/search', json={'query': 'Private', 'searchType': 'keyword'})
    results = resp.get_json()['results']
    assert [r['id'] for r in results] == [rows['alice_private'].id]
    assert results[0]['similarity'] == 1.0
    assert results[0]['searchType'] == 'keyword'


def test_hybrid_search_merges_semantic_hits(client, users, login, make_interview, fake_gemini):
    kw = make_interview(owner_email='alice@example.com', candidate_name='Figma Fan',
                        embedding=unit_vector(1))
    sem = make_interview(owner_email='alice@example.com', candidate_name='Other',
                         transcript='Talked about component libraries at length.', embedding=unit_vector(0))
    make_interview(owner_email='alice@example.com', candidate_name='Far away',
                   transcript='Nothing relevant here at all.', embedding=unit_vector(2))
    fake_gemini['embedding'] = unit_vector(0)

    resp = login(users['alice']).post('/api/interviews/search', json={'query': 'Figma'})
    results = resp.get_json()['results']
    assert [r['id'] for r in results] == [kw.id, sem.id]
    assert results[0]['keywordMatch'] is True
    assert results[1]['searchType'] == 'semantic'
    assert results[1]['similarity'] == 1.0


def test_search_validation(client, users, login):
    resp = login(users['alice']).post('/api/interviews/search', json={'query': ''})
    assert resp.status_code == 400


def test_dedupe_is_admin_only(client, users, login, make_interview):
    make_interview(drive_file_id='d1')
    make_interview(drive_file_id='d1')
    assert login(users['alice']).post('/api/interviews/dedupe').status_code == 403

    resp = login(users['admin']).post('/api/interviews/dedupe?dryRun=true')
    assert resp.status_code == 200
    assert resp.get_json()['dryRun'] is True
    assert Interview.query.count() == 2


def test_fix_owner_email_claims_drive_rows(client, users, login, make_interview):
    make_interview(drive_file_id='d1', owner_email=None)
    make_interview(drive_file_id=None, owner_email=None)
    resp = login(users['admin']).post('/api/interviews/fix-owner-email')
    assert resp.get_json()['updated'] == 1
    assert Interview.query.filter_by(owner_email='admin@example.com').count() == 1


def test_reparse_updates_placeholder_rows(client, users, login, make_interview):
    row = make_interview(candidate_name='Unknown Candidate', interviewer='Unknown',
                         summary='Imported from Drive', transcript=REALTIME)
    row_id = row.id
    resp = login(users['alice']).post('/api/interviews/reparse')
    assert resp.get_json()['updated'] == 1
    row = Interview.query.filter_by(id=row_id).one()
    assert row.candidate_name == 'Jane Doe'
    assert row.meeting_title.startswith('Jane Doe <> Adam Perlis')


def test_reparse_all_is_admin_only(client, users, login):
    assert login(users['alice']).post('/api/interviews/reparse-all').status_code == 403
    resp = login(users['admin']).post('/api/interviews/reparse-all')
    assert resp.get_json() == {'message': 'No interviews found', 'updated': 0}
