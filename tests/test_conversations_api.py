from interview_assistant.models import Conversation

MESSAGES = [
    {'id': 'm1', 'role': 'user', 'content': 'Who knows Figma?', 'timestamp': '2025-01-01T10:00:00Z'},
    {'id': 'm2', 'role': 'assistant', 'content': 'Jane does.', 'timestamp': '2025-01-01T10:00:02Z'},
]


def test_create_and_list(client, users, login):
    c = login(users['alice'])
    resp = c.post('/api/conversations', json={'title': 'Figma people', 'messages': MESSAGES})
    conv = resp.get_json()['conversation']
    assert conv['message_count'] == 2
    assert conv['user_email'] == 'alice@example.com'

    listed = c.get('/api/conversations').get_json()['conversations']
    assert [x['id'] for x in listed] == [conv['id']]


def test_update_replaces_messages(client, users, login):
    c = login(users['alice'])
    conv = c.post('/api/conversations', json={'title': 'T', 'messages': MESSAGES[:1]}).get_json()['conversation']
    resp = c.post('/api/conversations', json={'id': conv['id'], 'title': 'Renamed', 'messages': MESSAGES})
    updated = resp.get_json()['conversation']
    assert updated['id'] == conv['id']
    assert updated['title'] == 'Renamed'
    assert updated['message_count'] == 2
    assert Conversation.query.count() == 1


def test_scoped_to_user(client, users, login):
    c = login(users['alice'])
    conv = c.post('/api/conversations', json={'title': 'Mine', 'messages': MESSAGES}).get_json()['conversation']

    c = login(users['bob'])
    assert c.get('/api/conversations').get_json()['conversations'] == []
    assert c.get(f"/api/conversations/{conv['id']}").status_code == 404
    assert c.post('/api/conversations', json={'id': conv['id'], 'title': 'x', 'messages': []}).status_code == 404
    assert c.delete(f"/api/conversations/{conv['id']}").status_code == 404


def test_filter_by_interview_and_search(client, users, login, make_interview):
    row = make_interview(owner_email='alice@example.com')
    c = login(users['alice'])
    c.post('/api/conversations', json={'title': 'Global', 'messages': MESSAGES})
    c.post('/api/conversations', json={'title': 'About Jane', 'interviewId': row.id, 'messages': []})

    by_interview = c.get(f'/api/conversations?interviewId={row.id}').get_json()['conversations']
    assert [x['title'] for x in by_interview] == ['About Jane']

    global_only = c.get('/api/conversations?interviewId=null').get_json()['conversations']
    assert [x['title'] for x in global_only] == ['Global']

    found = c.get('/api/conversations?search=figma').get_json()['conversations']
    assert [x['title'] for x in found] == ['Global']


def test_delete(client, users, login):
    c = login(users['alice'])
    conv = c.post('/api/conversations', json={'title': 'Bye', 'messages': []}).get_json()['conversation']
    assert c.delete(f"/api/conversations?id={conv['id']}").get_json() == {'success': True}
    assert Conversation.query.count() == 0
    assert c.delete('/api/conversations').status_code == 400


def test_missing_title(client, users, login):
    resp = login(users['alice']).post('/api/conversations', json={'messages': []})
    assert resp.status_code == 400
