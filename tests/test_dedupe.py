from types import SimpleNamespace

from interview_assistant.models import Interview
from interview_assistant.services.dedupe import find_duplicates, remove_duplicates


def _row(id, drive_file_id=None, name=None):
    return SimpleNamespace(id=id, drive_file_id=drive_file_id, transcript_file_name=name, meeting_title=f't{id}')


def test_find_duplicates_keeps_first_seen():
    rows = [
        _row(5, 'd1', 'a'),
        _row(4, 'd1', 'a'),
        _row(3, None, 'a'),
        _row(2, 'd2', 'b'),
        _row(1, None, None),
    ]
    dupes = find_duplicates(rows)
    assert [d['id'] for d in dupes] == [4, 3]
    assert dupes[0]['reason'] == 'duplicate drive_file_id: d1'
    assert dupes[1]['reason'] == 'duplicate file name: a'


def test_remove_duplicates_dry_run(app, make_interview):
    make_interview(drive_file_id='d1')
    make_interview(drive_file_id='d1')
    result = remove_duplicates(dry_run=True)
    assert result['dryRun'] is True
    assert len(result['duplicates']) == 1
    assert Interview.query.count() == 2


def test_remove_duplicates_deletes_older_rows(app, make_interview):
    older = make_interview(drive_file_id='d1')
    newer = make_interview(drive_file_id='d1')
    make_interview(transcript_file_name='x.txt')
    make_interview(transcript_file_name='x.txt')
    older_id, newer_id = older.id, newer.id

    result = remove_duplicates()
    assert result['deleted'] == 2
    remaining = {r.id for r in Interview.query.all()}
    assert newer_id in remaining
    assert older_id not in remaining
    assert len(remaining) == 2


def test_remove_duplicates_nothing_to_do(app, make_interview):
    assert remove_duplicates()['message'] == 'No interviews found'
    make_interview(drive_file_id='d1')
    assert remove_duplicates()['message'] == 'No duplicates found'
