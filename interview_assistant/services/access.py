"""Who may see which interview rows.

Owners see all of their own meetings. Everyone sees legacy rows without an
owner and meetings of the shareable types. Admins see everything.
"""
from flask import current_app
from sqlalchemy import or_

from ..models.interview import Interview


def allowed_types():
    return list(current_app.config.get('ALLOWED_MEETING_TYPES') or [])


def scoped_query(user, view='mine'):
    """Interview query filtered for the list view (`mine` or `all`)."""
    q = Interview.query
    if view == 'all':
        if user.is_admin:
            return q
        return q.filter(or_(
            Interview.meeting_type.in_(allowed_types()),
            Interview.owner_email == user.email,
            Interview.owner_email.is_(None),
        ))
    return q.filter(or_(Interview.owner_email == user.email, Interview.owner_email.is_(None)))


def can_view(user, row) -> bool:
    """Single-row check: a restricted type is hidden from non-admin non-owners."""
    if user.is_admin:
        return True
    if row.owner_email and row.owner_email == user.email:
        return True
    return not row.meeting_type or row.meeting_type in allowed_types()


def visible_in_results(user, row) -> bool:
    """Filter applied to search and ask results."""
    if user.is_admin:
        return True
    return bool(
        (row.meeting_type and row.meeting_type in allowed_types())
        or row.owner_email == user.email
        or not row.owner_email
    )


def filter_visible(user, rows):
    return [r for r in rows if visible_in_results(user, r)]
