from flask import jsonify, request
from flask_login import current_user, login_required
from sqlalchemy import or_

from . import bp
from ...extensions import db
from ...models.candidate import CandidateNote, CandidateProfile
from ...models.interview import Interview
from ...services.access import scoped_query
from ...utils.errors import APIError
from ...utils.validation import NoteCreate, validate_body

MEETING_INFO_LIMIT = 5


def _email(raw):
    """The UI sends ``unknown`` when it has no address for the candidate."""
    return None if not raw or raw == 'unknown' else raw.strip().lower()


@bp.get("/<path:email>/notes")
@login_required
def list_notes(email):
    email = _email(email)
    if email is None:
        return jsonify({'notes': []})
    rows = (
        CandidateNote.query.filter_by(candidate_email=email)
        .order_by(CandidateNote.created_at.desc(), CandidateNote.id.desc())
        .all()
    )
    return jsonify({'notes': [r.to_dict() for r in rows]})


@bp.post("/<path:email>/notes")
@login_required
def add_note(email):
    email = _email(email)
    if email is None:
        return jsonify({'error': 'Email and content are required'}), 400
    body = validate_body(NoteCreate)
    note = CandidateNote(
        candidate_email=email,
        content=body.content,
        created_by=body.author or current_user.name or current_user.email,
    )
    db.session.add(note)
    db.session.commit()
    return jsonify({'success': True, 'note': note.to_dict()})


@bp.get("/<path:email>/profile")
@login_required
def get_profile(email):
    email = _email(email)
    if email is None:
        return jsonify({'profile': None})
    profile = CandidateProfile.query.filter_by(candidate_email=email).first()
    return jsonify({'profile': profile.to_dict() if profile else None})


@bp.post("/<path:email>/profile")
@login_required
def save_profile(email):
    email = _email(email)
    if email is None:
        return jsonify({'error': 'Email is required'}), 400
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise APIError('Invalid JSON body', 400)

    profile = CandidateProfile.query.filter_by(candidate_email=email).first()
    if profile is None:
        profile = CandidateProfile(candidate_email=email)
        db.session.add(profile)
    for key in CandidateProfile.EDITABLE:
        if key in data:
            setattr(profile, key, data[key])
    db.session.commit()
    return jsonify({'success': True, 'data': profile.to_dict()})


@bp.get("/<path:email>/meeting-info")
@login_required
def meeting_info(email):
    """Most recent meetings that mention the candidate by email or name."""
    email = _email(email)
    name = (request.args.get('name') or '').strip()
    if not email and not name:
        return jsonify({'error': 'Email or name is required'}), 400

    conditions = []
    if email:
        conditions += [
            Interview.candidate_email == email,
            Interview.candidate_name.ilike(f'%{email}%'),
            Interview.transcript.ilike(f'%{email}%'),
        ]
    if name:
        conditions.append(Interview.candidate_name.ilike(f'%{name}%'))

    rows = (
        scoped_query(current_user, 'all')
        .filter(or_(*conditions))
        .order_by(Interview.meeting_date.desc())
        .limit(MEETING_INFO_LIMIT)
        .all()
    )
    meetings = [
        {
            'id': r.id,
            'candidate_name': r.candidate_name,
            'summary': r.summary,
            'created_at': r.created_at.isoformat() if r.created_at else None,
            'meeting_date': r.meeting_date.isoformat() if r.meeting_date else None,
        }
        for r in rows
    ]
    return jsonify({'meetings': meetings})
