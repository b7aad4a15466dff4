from datetime import datetime

from interview_assistant.models import Interview, UserSetting

TEXT = (
    '* 0:01 ✅ : (Adam Perlis) Welcome, thanks for making the time today.\n'
    '* 0:05 ✅ : (Jane Doe) Thanks for having me, excited to chat.\n'
)


def _doc(i):
    return {'id': f'doc-{i}', 'name': f'Transcript {i}', 'createdTime': '2025-01-01T10:00:00Z',
            'modifiedTime': '2025-01-01T11:00:00Z'}


def test_files_flags_imported(client, users, login, make_interview, fake_drive):
    fake_drive.files = [_doc(0), _doc(1), _doc(2)]
    make_interview(drive_file_id='doc-0')
    make_interview(transcript_file_name='Transcript 1')

    resp = login(users['alice']).get('/api/drive/files?folderId=folder-1')
    data = resp.get_json()
    assert [f['alreadyImported'] for f in data['files']] == [True, True, False]
    assert data['newCount'] == 1
    assert data['importedCount'] == 2


def test_files_rejects_bad_folder_id(client, users, login, fake_drive):
    resp = login(users['alice']).get("/api/drive/files?folderId=abc'%20or%201=1")
    assert resp.status_code == 400


def test_import_folder(client, users, login, fake_drive):
    fake_drive.files = [_doc(0)]
    fake_drive.texts = {'doc-0': TEXT}
    resp = login(users['alice']).post('/api/drive/import', json={'folderId': 'folder-1', 'folderName': 'Meet'})
    data = resp.get_json()
    assert data['totalFiles'] == 1
    assert data['results'][0]['status'] == 'imported'
    assert Interview.query.one().owner_email == 'alice@example.com'
    assert UserSetting.for_user('alice@example.com').drive_folder_id == 'folder-1'


def test_manual_poll_requires_folder(client, users, login, fake_drive):
    resp = login(users['alice']).post('/api/poll-drive', json={})
    assert resp.status_code == 400


def test_manual_poll(client, users, login, settings_for, fake_drive):
    settings_for('alice@example.com', drive_folder_id='folder-1')
    fake_drive.files = [_doc(0), _doc(1)]
    fake_drive.texts = {'doc-0': TEXT, 'doc-1': 'short'}
    resp = login(users['alice']).post('/api/poll-drive', json={'fastMode': False, 'includeSubfolders': False})
    data = resp.get_json()
    assert data['success'] is True
    assert data['imported'] == 1
    assert data['skipped'] == 1
    assert data['totalFiles'] == 2


def test_drive_without_google_token_is_401(client, users, login, fake_drive):
    c = login(users['alice'])
    with c.session_transaction() as sess:
        sess.pop('google_token')
    resp = c.get('/api/drive/folders')
    assert resp.status_code == 401


def test_cron_requires_secret(client):
    assert client.get('/api/cron/poll-drive').status_code == 401
    resp = client.get('/api/cron/poll-drive', headers={'Authorization': 'Bearer wrong'})
    assert resp.status_code == 401


def test_cron_runs_inline_without_redis(client, app, settings_for, monkeypatch):
    settings_for('alice@example.com', drive_folder_id='f1', auto_poll_enabled=True,
                 encrypted_refresh_token='x', last_poll_time=None)
    settings_for('bob@example.com', drive_folder_id='f2', auto_poll_enabled=True,
                 encrypted_refresh_token='x', last_poll_time=datetime.utcnow())
    settings_for('carol@example.com', drive_folder_id='f3', auto_poll_enabled=False, encrypted_refresh_token='x')

    polled = []

    def fake_poll_user(email, folder_id):
        polled.append((email, folder_id))
        return {'imported': 1, 'skipped': 0, 'errors': 0}

    monkeypatch.setattr('interview_assistant.jobs.poll_drive.poll_user', fake_poll_user)
    resp = client.post('/api/cron/poll-drive', headers={'Authorization': 'Bearer cron-secret'})
    data = resp.get_json()
    assert resp.status_code == 200
    assert polled == [('alice@example.com', 'f1')]
    assert data['results'] == [{'email': 'alice@example.com', 'imported': 1, 'skipped': 0, 'errors': 0}]


def test_cron_reports_per_user_failures(client, settings_for, monkeypatch):
    settings_for('alice@example.com', drive_folder_id='f1', auto_poll_enabled=True, encrypted_refresh_token='x')

    def broken(email, folder_id):
        raise RuntimeError('token revoked')

    monkeypatch.setattr('interview_assistant.jobs.poll_drive.poll_user', broken)
    data = client.post('/api/cron/poll-drive', headers={'Authorization': 'Bearer cron-secret'}).get_json()
    assert data['results'] == [{'email': 'alice@example.com', 'error': 'token revoked'}]
