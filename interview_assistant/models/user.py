from flask import current_app
from flask_login import UserMixin
from ..extensions import db
from .base import TimestampMixin


class User(db.Model, UserMixin, TimestampMixin):
    __tablename__ = "users"
    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False)
    name = db.Column(db.String(255))
    image = db.Column(db.String(512))

    @property
    def is_admin(self):
        admins = [e.lower() for e in current_app.config.get('ADMIN_EMAILS', [])]
        return bool(self.email) and self.email.lower() in admins

    def to_dict(self):
        return {"name": self.name, "email": self.email, "image": self.image}

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email!r}>"
