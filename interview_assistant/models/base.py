from ..extensions import db


class TimestampMixin:
    created_at = db.Column(db.DateTime, server_default=db.func.now())
    updated_at = db.Column(db.DateTime, server_default=db.func.now(), onupdate=db.func.now())


class OwnedMixin:
    """Rows that belong to a signed-in Google account (by email)."""
    owner_email = db.Column(db.String(255), index=True)
