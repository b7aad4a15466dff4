from datetime import datetime

from flask import current_app, jsonify, request
from flask_login import current_user, login_required

from . import bp
from ...extensions import db
from ...models.interview import Interview
from ...services import access
from ...services.ask import answer_question
from ...services.dedupe import remove_duplicates
from ...services.drive import DriveClient
from ...services.google_oauth import get_access_token
from ...services.ingest import backfill_drive_ids, ingest_transcript
from ...services.rate_limit import rate_limited
from ...services.search import search_interviews
from ...jobs.reparse import reparse_interviews
from ...models.user_setting import UserSetting
from ...utils.decorators import admin_required, extension_cors
from ...utils.errors import APIError, error_response
from ...utils.validation import AskQuestion, Pagination, RealtimeTranscript, SearchQuery, validate_args, validate_body


def _get_or_404(interview_id):
    row = db.session.get(Interview, interview_id)
    if row is None:
        raise APIError('Interview not found', 404)
    return row


@bp.get("")
@login_required
def list_interviews():
    params = validate_args(Pagination)
    view = request.args.get('view', 'mine')
    q = access.scoped_query(current_user, view)
    total = q.count()
    rows = (
        q.order_by(Interview.meeting_date.desc())
        .offset(params.offset)
        .limit(params.limit)
        .all()
    )
    return jsonify({
        'interviews': [r.to_dict() for r in rows],
        'count': total,
        'limit': params.limit,
        'offset': params.offset,
    })


@bp.get("/<int:interview_id>")
@login_required
def get_interview(interview_id):
    row = _get_or_404(interview_id)
    if not access.can_view(current_user, row):
        return jsonify({'error': 'Access denied'}), 403
    return jsonify(row.to_dict())


@bp.delete("/<int:interview_id>")
@login_required
def delete_interview(interview_id):
    row = _get_or_404(interview_id)
    if not current_user.is_admin and row.owner_email and row.owner_email != current_user.email:
        return jsonify({'error': 'Access denied'}), 403
    db.session.delete(row)
    db.session.commit()
    return jsonify({'success': True})


@bp.route("/create", methods=["POST", "OPTIONS"])
@extension_cors('POST, OPTIONS')
@login_required
def create_realtime():
    """Realtime transcript upload from the Chrome extension, deduplicated by meeting code."""
    body = validate_body(RealtimeTranscript)
    unique_id = f'meet-{body.meeting_code}' if body.meeting_code else None
    file_name = f"[Realtime] {body.title or 'Meeting'}"

    try:
        if unique_id:
            existing = Interview.query.filter_by(drive_file_id=unique_id).first()
            if existing is not None:
                existing.updated_at = datetime.utcnow()
                db.session.commit()
                return jsonify({'success': True, 'id': existing.id, 'status': 'updated_existing'})

        row = ingest_transcript(
            body.transcript,
            file_name=file_name,
            drive_file_id=unique_id,
            owner_email=current_user.email,
            meeting_code=body.meeting_code,
            include_interviewer=False,
        )
    except Exception as exc:
        db.session.rollback()
        return error_response(exc, 'Realtime upload error')

    return jsonify({'success': True, 'id': row.id, 'status': 'created'})


@bp.post("/search")
@login_required
@rate_limited('search')
def search():
    body = validate_body(SearchQuery)
    try:
        pairs = search_interviews(body.query, body.search_type, body.limit)
    except Exception as exc:
        return error_response(exc, 'Error searching interviews')
    results = [d for row, d in pairs if access.visible_in_results(current_user, row)]
    return jsonify({'results': results[:body.limit]})


@bp.post("/ask")
@login_required
@rate_limited('ai')
def ask():
    body = validate_body(AskQuestion)
    try:
        result = answer_question(current_user, body.question, body.history, body.interview_id)
    except Exception as exc:
        return error_response(exc, 'Error asking question')
    return jsonify(result)


@bp.post("/dedupe")
@admin_required
def dedupe():
    dry_run = request.args.get('dryRun') == 'true'
    return jsonify(remove_duplicates(dry_run=dry_run))


@bp.post("/reparse")
@login_required
def reparse():
    try:
        return jsonify(reparse_interviews(force_all=False))
    except Exception as exc:
        return error_response(exc, 'Error reparsing interviews')


@bp.post("/reparse-all")
@admin_required
def reparse_all():
    try:
        return jsonify(reparse_interviews(force_all=True))
    except Exception as exc:
        return error_response(exc, 'Error reparsing interviews')


@bp.post("/backfill-drive-ids")
@login_required
def backfill():
    settings = UserSetting.for_user(current_user.email)
    if settings is None or not settings.drive_folder_id:
        return jsonify({'error': 'No Drive folder configured'}), 400
    try:
        drive = DriveClient.from_token(get_access_token(current_user))
        result = backfill_drive_ids(drive, settings.drive_folder_id, current_user.email)
    except Exception as exc:
        db.session.rollback()
        return error_response(exc, 'Backfill')
    current_app.logger.info('[Backfill] %s: matched %s of %s', current_user.email, result['matched'], result['recordsWithoutDriveId'])
    return jsonify(result)


@bp.post("/fix-owner-email")
@admin_required
def fix_owner_email():
    """Claim every Drive-imported row for the calling admin."""
    rows = Interview.query.filter(Interview.drive_file_id.isnot(None)).all()
    for r in rows:
        r.owner_email = current_user.email
    db.session.commit()
    return jsonify({'success': True, 'updated': len(rows), 'records': [r.meeting_title for r in rows]})
