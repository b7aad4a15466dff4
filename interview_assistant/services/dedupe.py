from flask import current_app

from ..extensions import db
from ..models.interview import Interview

DELETE_BATCH = 50


def find_duplicates(rows):
    """Rows must be ordered newest first; the first row of each group is kept.

    A row is a duplicate when its Drive id was already seen, or failing that
    when its transcript file name was.
    """
    seen_ids = set()
    seen_names = set()
    dupes = []
    for row in rows:
        reason = None
        if row.drive_file_id:
            if row.drive_file_id in seen_ids:
                reason = f'duplicate drive_file_id: {row.drive_file_id}'
            else:
                seen_ids.add(row.drive_file_id)
        if reason is None and row.transcript_file_name:
            if row.transcript_file_name in seen_names:
                reason = f'duplicate file name: {row.transcript_file_name}'
            else:
                seen_names.add(row.transcript_file_name)
        if reason:
            dupes.append({'id': row.id, 'reason': reason, 'title': row.meeting_title})
    return dupes


def remove_duplicates(dry_run=False):
    rows = (
        Interview.query
        .with_entities(Interview.id, Interview.drive_file_id, Interview.transcript_file_name, Interview.meeting_title)
        .order_by(Interview.created_at.desc(), Interview.id.desc())
        .all()
    )
    if not rows:
        return {'message': 'No interviews found', 'deleted': 0}

    dupes = find_duplicates(rows)
    if not dupes:
        return {'message': 'No duplicates found', 'deleted': 0}
    if dry_run:
        return {'message': f'Dry run: would delete {len(dupes)} duplicate(s)', 'dryRun': True, 'duplicates': dupes}

    deleted = 0
    ids = [d['id'] for d in dupes]
    for start in range(0, len(ids), DELETE_BATCH):
        batch = ids[start:start + DELETE_BATCH]
        try:
            Interview.query.filter(Interview.id.in_(batch)).delete(synchronize_session=False)
            db.session.commit()
            deleted += len(batch)
        except Exception:
            db.session.rollback()
            current_app.logger.exception('[Dedupe] batch delete failed for ids %s', batch)

    current_app.logger.info('[Dedupe] deleted %s duplicate(s)', deleted)
    return {'message': f'Deleted {deleted} duplicate(s)', 'deleted': deleted, 'duplicates': dupes}
