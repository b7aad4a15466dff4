from datetime import datetime

from flask import jsonify, request
from flask_login import current_user, login_required
from sqlalchemy import String, cast, or_

from . import bp
from ...extensions import db
from ...models.conversation import Conversation
from ...utils.errors import APIError
from ...utils.validation import ConversationSave, Pagination, validate_args, validate_body


def _owned(conversation_id):
    row = Conversation.query.filter_by(id=conversation_id, user_email=current_user.email).first()
    if row is None:
        raise APIError('Conversation not found', 404)
    return row


@bp.get("")
@login_required
def list_conversations():
    args = request.args
    page = validate_args(Pagination)
    q = Conversation.query.filter_by(user_email=current_user.email)

    interview_id = args.get('interviewId') or args.get('interview_id')
    if interview_id == 'null':
        q = q.filter(Conversation.interview_id.is_(None))
    elif interview_id:
        if not interview_id.isdigit():
            raise APIError('Invalid interview id', 400)
        q = q.filter(Conversation.interview_id == int(interview_id))

    search = (args.get('search') or '').strip()
    if search:
        like = f'%{search}%'
        q = q.filter(or_(Conversation.title.ilike(like), cast(Conversation.messages, String).ilike(like)))

    rows = (
        q.order_by(Conversation.last_message_at.desc(), Conversation.id.desc())
        .offset(page.offset)
        .limit(page.limit)
        .all()
    )
    return jsonify({'conversations': [r.to_dict() for r in rows]})


@bp.get("/<int:conversation_id>")
@login_required
def get_conversation(conversation_id):
    return jsonify({'conversation': _owned(conversation_id).to_dict()})


@bp.post("")
@login_required
def save_conversation():
    """Create a conversation, or replace the messages of one the user owns."""
    body = validate_body(ConversationSave)
    now = datetime.utcnow()
    if body.id is not None:
        row = _owned(body.id)
    else:
        row = Conversation(
            user_email=current_user.email,
            user_name=current_user.name,
            interview_id=body.interview_id,
        )
        db.session.add(row)

    row.title = body.title
    row.messages = body.messages
    row.message_count = len(body.messages)
    row.last_message_at = now
    row.updated_at = now
    db.session.commit()
    return jsonify({'conversation': row.to_dict()})


def _delete(conversation_id):
    row = _owned(conversation_id)
    db.session.delete(row)
    db.session.commit()
    return jsonify({'success': True})


@bp.delete("/<int:conversation_id>")
@login_required
def delete_conversation(conversation_id):
    return _delete(conversation_id)


@bp.delete("")
@login_required
def delete_conversation_by_query():
    conversation_id = request.args.get('id', '')
    if not conversation_id.isdigit():
        return jsonify({'error': 'Missing conversation ID'}), 400
    return _delete(int(conversation_id))
