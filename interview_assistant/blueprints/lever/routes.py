from datetime import datetime

from flask import current_app, jsonify, request
from flask_login import current_user, login_required

from . import bp
from ...extensions import db
from ...models.interview import Interview
from ...services.ingest import ingest_transcript
from ...services.lever import LeverClient, LeverError
from ...services.rate_limit import rate_limited
from ...utils.decorators import extension_cors
from ...utils.errors import APIError, error_response
from ...utils.validation import LeverSearch, LeverSubmit, StageUpdate, validate_args, validate_body


def _lever_failure(exc, context):
    if isinstance(exc, LeverError):
        current_app.logger.warning('[%s] %s', context, exc)
        return jsonify({'error': f'Failed: {context}', 'message': str(exc)}), 502
    return error_response(exc, context)


@bp.get("/templates")
@login_required
def templates():
    try:
        items = LeverClient.from_config().templates()
    except Exception as exc:
        return _lever_failure(exc, 'Lever templates')
    return jsonify({'success': True, 'templates': items})


@bp.get("/candidates")
@login_required
def candidates():
    try:
        items = LeverClient.from_config().candidates(request.args.get('postingId'))
    except Exception as exc:
        return _lever_failure(exc, 'Lever candidates')
    return jsonify({'success': True, 'candidates': items})


@bp.get("/postings")
@login_required
def postings():
    try:
        items = LeverClient.from_config().postings()
    except Exception as exc:
        return _lever_failure(exc, 'Lever postings')
    return jsonify({'success': True, 'postings': items})


@bp.get("/stages")
@login_required
def stages():
    try:
        items = LeverClient.from_config().stages()
    except Exception as exc:
        return _lever_failure(exc, 'Lever stages')
    return jsonify({'success': True, 'stages': items})


@bp.route("/search", methods=["GET", "OPTIONS"])
@extension_cors('GET, OPTIONS')
@login_required
def search():
    try:
        params = validate_args(LeverSearch)
    except APIError:
        return jsonify({'error': 'Search query is required'}), 400
    try:
        return jsonify(LeverClient.from_config().search(params.q))
    except Exception as exc:
        return _lever_failure(exc, 'Lever search')


@bp.post("/candidates/<opportunity_id>/stage")
@login_required
def update_stage(opportunity_id):
    body = validate_body(StageUpdate)
    try:
        data = LeverClient.from_config().update_stage(opportunity_id, body.stage_id)
    except Exception as exc:
        return _lever_failure(exc, 'Lever stage update')
    return jsonify({'success': True, 'data': data})


@bp.get("/candidates/<opportunity_id>/resume-info")
@login_required
def resume_info(opportunity_id):
    try:
        return jsonify(LeverClient.from_config().resume_info(opportunity_id))
    except Exception:
        current_app.logger.exception('Error fetching resume info for %s', opportunity_id)
        return jsonify({'years': None})


def _record_submission(body: LeverSubmit):
    """Mark the matching interview as submitted, or store the transcript if new."""
    now = datetime.utcnow()
    row = None
    if body.meeting_code:
        row = Interview.query.filter_by(drive_file_id=f'meet-{body.meeting_code}').first()
    if row is None and body.meeting_code:
        row = Interview.query.filter_by(meeting_code=body.meeting_code).first()

    if row is None and body.transcript:
        row = ingest_transcript(
            body.transcript,
            file_name=f"[Realtime] {body.meeting_title or 'Meeting'}",
            drive_file_id=f'meet-{body.meeting_code}' if body.meeting_code else None,
            owner_email=current_user.email,
            meeting_code=body.meeting_code,
            include_interviewer=False,
        )

    if row is None:
        return None

    row.submitted_at = now
    row.rating = body.feedback.rating
    row.candidate_id = body.opportunity_id
    if body.candidate_name:
        row.candidate_name = body.candidate_name
    if body.candidate_email:
        row.candidate_email = body.candidate_email
    if body.position:
        row.position = body.position
    if not row.owner_email:
        row.owner_email = current_user.email
    db.session.commit()
    return row.id


@bp.post("/submit")
@login_required
@rate_limited('standard')
def submit():
    body = validate_body(LeverSubmit)
    client = LeverClient.from_config()
    field_values = [fv.model_dump() for fv in body.field_values]
    try:
        data = client.submit_feedback(
            body.opportunity_id,
            body.template_id,
            body.feedback.model_dump(by_alias=True),
            field_values=field_values,
        )
    except Exception as exc:
        return _lever_failure(exc, 'Lever submit')

    try:
        interview_id = _record_submission(body)
    except Exception:
        db.session.rollback()
        current_app.logger.exception('Feedback submitted to Lever but local record update failed')
        interview_id = None

    return jsonify({'success': True, 'data': data, 'interviewId': interview_id})
