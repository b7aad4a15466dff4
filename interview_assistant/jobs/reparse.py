from flask import current_app
from sqlalchemy import or_

from ..extensions import db
from ..models.interview import Interview
from ..services.transcript_parser import (
    UNKNOWN_CANDIDATE, UNKNOWN_INTERVIEWER, build_meeting_title, parse_transcript_metadata,
)

REPARSE_LIMIT = 50
PLACEHOLDER_SUMMARIES = ('Imported from Drive', 'Interview conversation')


def needs_reparse_query():
    return Interview.query.filter(or_(
        Interview.candidate_name.is_(None),
        Interview.candidate_name == UNKNOWN_CANDIDATE,
        Interview.summary.in_(PLACEHOLDER_SUMMARIES),
        Interview.interviewer.is_(None),
        Interview.interviewer == UNKNOWN_INTERVIEWER,
    ))


def reparse_interview(row):
    metadata = parse_transcript_metadata(row.transcript, row.transcript_file_name or '')
    row.candidate_name = metadata.candidate_name
    row.interviewer = metadata.interviewer
    row.meeting_title = build_meeting_title(metadata, row.meeting_date)
    row.meeting_type = metadata.meeting_category
    row.summary = metadata.summary
    row.position = metadata.position or row.position


def reparse_interviews(force_all=False):
    """Re-run metadata extraction on placeholder rows (or every row when forced)."""
    if force_all:
        rows = Interview.query.all()
    else:
        rows = needs_reparse_query().limit(REPARSE_LIMIT).all()

    if not rows:
        msg = 'No interviews found' if force_all else 'No interviews need reparsing'
        return {'message': msg, 'updated': 0}

    updated = 0
    errors = []
    for row in rows:
        label = row.transcript_file_name or f'interview {row.id}'
        try:
            reparse_interview(row)
            db.session.commit()
            updated += 1
        except Exception:
            db.session.rollback()
            current_app.logger.exception('Reparse failed for %s', label)
            errors.append(f'{label}: Update failed')

    result = {
        'message': f'Updated {updated} out of {len(rows)} interviews',
        'updated': updated,
        'total': len(rows),
    }
    if errors:
        result['errors'] = errors
    return result
