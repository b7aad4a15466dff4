"""Turning Drive transcript docs into ``interviews`` rows.

Used by the manual poll and import endpoints and by the cron job. Each file
is handled on its own: a failure is logged and counted, never raised out of
the loop.
"""
from datetime import datetime, timedelta
from typing import Optional

from flask import current_app

from ..extensions import db
from ..models.interview import Interview, NOT_ANALYZED
from ..models.user_setting import UserSetting
from . import gemini_wrap
from .drive import parse_drive_time
from .transcript_parser import build_meeting_title, parse_transcript_metadata

IMPORTED = 'imported'
SKIPPED = 'skipped'
TOO_SHORT = 'too_short'
ERROR = 'error'


def find_existing(drive_file_id: Optional[str] = None, file_name: Optional[str] = None) -> Optional[Interview]:
    """Match an already stored transcript by Drive id, then by file name."""
    if drive_file_id:
        row = Interview.query.filter_by(drive_file_id=drive_file_id).first()
        if row is not None:
            return row
    if file_name:
        return Interview.query.filter_by(transcript_file_name=file_name).first()
    return None


def ingest_transcript(text: str, file_name: Optional[str] = None, drive_file_id: Optional[str] = None,
                      meeting_date: Optional[datetime] = None, owner_email: Optional[str] = None,
                      meeting_code: Optional[str] = None, include_interviewer: bool = True) -> Interview:
    """Parse, embed and insert a transcript. Commits and returns the new row."""
    metadata = parse_transcript_metadata(text, file_name or '')
    embedding = gemini_wrap.generate_embedding(text)
    when = meeting_date or datetime.utcnow()

    row = Interview(
        meeting_code=meeting_code,
        meeting_title=build_meeting_title(metadata, when, include_interviewer=include_interviewer),
        meeting_type=metadata.meeting_category,
        meeting_date=when,
        transcript=text,
        transcript_file_name=file_name,
        drive_file_id=drive_file_id,
        embedding=embedding,
        summary=metadata.summary,
        rating=NOT_ANALYZED,
        candidate_name=metadata.candidate_name,
        interviewer=metadata.interviewer,
        position=metadata.position or '',
        owner_email=owner_email,
    )
    db.session.add(row)
    db.session.commit()
    return row


def _min_chars():
    return int(current_app.config.get('MIN_TRANSCRIPT_CHARS', 50))


def process_file(drive, f: dict, owner_email: Optional[str]) -> str:
    """Import a single listed Drive file. Returns one of the status constants."""
    file_id, name = f.get('id'), f.get('name')
    if find_existing(file_id, name) is not None:
        return SKIPPED

    try:
        text = drive.export_text(file_id)
        if not text or len(text) < _min_chars():
            return TOO_SHORT

        row = ingest_transcript(
            text,
            file_name=name,
            drive_file_id=file_id,
            meeting_date=parse_drive_time(f.get('createdTime')),
            owner_email=owner_email,
        )
    except Exception:
        db.session.rollback()
        current_app.logger.exception('Failed to import Drive file %r (%s)', name, file_id)
        return ERROR

    try:
        drive.rename_file(file_id, row.meeting_title)
        current_app.logger.info('Renamed Drive file %r -> %r', name, row.meeting_title)
    except Exception as exc:
        current_app.logger.warning('Failed to rename Drive file %r: %s', name, exc)
    return IMPORTED


def _folder_ids(drive, folder_id, include_subfolders):
    ids = [folder_id]
    if include_subfolders:
        try:
            ids.extend(drive.list_subfolders(folder_id))
        except Exception:
            current_app.logger.warning('Could not list subfolders of %s', folder_id, exc_info=True)
    return ids


def poll_folder(drive, folder_id: str, user_email: str, fast_mode: bool = True,
                include_subfolders: bool = True) -> dict:
    """Import new transcripts from a folder.

    Fast mode only looks at files modified since shortly before the last
    poll, caps the listing, and stops once a run of already imported files
    shows there is nothing new left.
    """
    cfg = current_app.config
    batch_size = int(cfg.get('POLL_BATCH_SIZE', 5))
    early_stop = int(cfg.get('POLL_EARLY_STOP', 10))

    settings = UserSetting.for_user(user_email)
    modified_after = None
    max_files = None
    if fast_mode:
        max_files = int(cfg.get('POLL_FAST_MAX_FILES', 30))
        if settings is not None and settings.last_poll_time:
            modified_after = settings.last_poll_time - timedelta(minutes=int(cfg.get('POLL_LOOKBACK_MINUTES', 5)))

    files = drive.list_documents(
        _folder_ids(drive, folder_id, include_subfolders),
        modified_after=modified_after,
        max_files=max_files,
    )
    current_app.logger.info('[Poll] %s: %s candidate files in %s (fast=%s)', user_email, len(files), folder_id, fast_mode)

    imported = skipped = errors = 0
    consecutive_skipped = 0
    for start in range(0, len(files), batch_size):
        if fast_mode and consecutive_skipped >= early_stop:
            current_app.logger.info('[Poll] Early stop after %s consecutive already-imported files', consecutive_skipped)
            break

        results = [process_file(drive, f, user_email) for f in files[start:start + batch_size]]
        batch_skipped = 0
        for r in results:
            if r == IMPORTED:
                imported += 1
            elif r == ERROR:
                errors += 1
            else:
                skipped += 1
                batch_skipped += 1

        if IMPORTED in results:
            consecutive_skipped = 0
        else:
            consecutive_skipped += batch_skipped

    settings = UserSetting.for_user(user_email, create=True)
    settings.last_poll_time = datetime.utcnow()
    settings.last_poll_file_count = len(files)
    db.session.commit()

    current_app.logger.info('[Poll] %s: imported=%s skipped=%s errors=%s', user_email, imported, skipped, errors)
    return {'imported': imported, 'skipped': skipped, 'errors': errors}


def import_folder(drive, folder_id: str, user_email: str, folder_name: Optional[str] = None) -> dict:
    """Import every Google Doc in a folder and remember it as the user's folder."""
    files = drive.list_documents(folder_id)
    total = len(files)
    results = []
    for i, f in enumerate(files, start=1):
        status = process_file(drive, f, user_email)
        entry = {'name': f.get('name'), 'status': status, 'progress': {'current': i, 'total': total}}
        if status == SKIPPED:
            entry['reason'] = 'already_imported'
        elif status == IMPORTED:
            row = find_existing(f.get('id'))
            if row is not None:
                entry['name'] = row.meeting_title
        results.append(entry)

    settings = UserSetting.for_user(user_email, create=True)
    settings.drive_folder_id = folder_id
    if folder_name:
        settings.folder_name = folder_name
    db.session.commit()

    return {'results': results, 'totalFiles': total}


def backfill_drive_ids(drive, folder_id: str, owner_email: str) -> dict:
    """Fill ``drive_file_id`` on the user's rows by matching transcript file names."""
    by_name = {}
    for f in drive.list_documents(folder_id):
        if f.get('name') and f.get('id'):
            by_name[f['name']] = f['id']

    rows = Interview.query.filter(
        Interview.owner_email == owner_email,
        Interview.drive_file_id.is_(None),
    ).all()

    updates = []
    for row in rows:
        drive_id = by_name.get(row.transcript_file_name) if row.transcript_file_name else None
        if drive_id:
            row.drive_file_id = drive_id
            updates.append({'id': row.id, 'title': row.meeting_title or 'Untitled', 'driveId': drive_id})
    db.session.commit()

    return {
        'success': True,
        'totalDriveFiles': len(by_name),
        'recordsWithoutDriveId': len(rows),
        'matched': len(updates),
        'updated': len(updates),
        'unmatched': len(rows) - len(updates),
        'sampleUpdates': updates[:10],
    }
