from datetime import datetime

from interview_assistant.services.drive import DriveClient, drive_time, parse_drive_time


class FakeRequest:
    def __init__(self, result):
        self.result = result

    def execute(self):
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


class FakeFiles:
    def __init__(self, pages):
        self.pages = list(pages)
        self.list_params = []
        self.updates = []
        self.exported = b''

    def list(self, **params):
        self.list_params.append(dict(params))
        return FakeRequest(self.pages.pop(0) if self.pages else {'files': []})

    def export(self, fileId, mimeType):
        return FakeRequest(self.exported)

    def update(self, fileId, body, fields):
        self.updates.append((fileId, body))
        return FakeRequest({'id': fileId, 'name': body['name']})


class FakeService:
    def __init__(self, pages=()):
        self._files = FakeFiles(pages)

    def files(self):
        return self._files


def test_parse_drive_time():
    assert parse_drive_time('2025-03-01T10:20:30.123Z') == datetime(2025, 3, 1, 10, 20, 30, 123000)
    assert parse_drive_time('2025-03-01T12:00:00+02:00') == datetime(2025, 3, 1, 10, 0)
    assert parse_drive_time('garbage') is None
    assert parse_drive_time(None) is None


def test_drive_time_format():
    assert drive_time(datetime(2025, 3, 1, 10, 20, 30, 123456)) == '2025-03-01T10:20:30.123Z'


def test_list_documents_paginates_and_caps(app):
    service = FakeService([
        {'files': [{'id': 'a'}, {'id': 'b'}], 'nextPageToken': 't1'},
        {'files': [{'id': 'c'}, {'id': 'd'}]},
    ])
    drive = DriveClient(service)
    files = drive.list_documents(['f1', "it's"], modified_after=datetime(2025, 1, 1), max_files=3)

    assert [f['id'] for f in files] == ['a', 'b', 'c']
    first, second = service.files().list_params
    assert "'f1' in parents or 'it\\'s' in parents" in first['q']
    assert "modifiedTime > '2025-01-01T00:00:00.000Z'" in first['q']
    assert first['orderBy'] == 'modifiedTime desc'
    assert first['pageSize'] == 3
    assert second['pageToken'] == 't1'


def test_list_subfolders_recursive(app):
    service = FakeService([
        {'files': [{'id': 's1', 'name': 'one'}]},
        {'files': [{'id': 's2', 'name': 'two'}]},
        {'files': []},
    ])
    assert DriveClient(service).list_subfolders('root') == ['s1', 's2']


def test_export_text_strips_bom(app):
    service = FakeService()
    service.files().exported = '\ufeffHello'.encode('utf-8')
    assert DriveClient(service).export_text('doc') == 'Hello'


def test_rename_file(app):
    service = FakeService()
    DriveClient(service).rename_file('doc', 'New name')
    assert service.files().updates == [('doc', {'name': 'New name'})]


def test_find_recent_transcript_falls_through_queries(app):
    service = FakeService([
        {'files': []},
        {'files': [{'id': 'hit', 'name': 'Design chat - Transcript'}]},
    ])
    found = DriveClient(service).find_recent_transcript(title='Design chat', code='abc-defg-hij')
    assert found['id'] == 'hit'
    queries = [p['q'] for p in service.files().list_params]
    assert "name contains 'abc-defg-hij'" in queries[0]
    assert "name contains 'Design chat'" in queries[1]
