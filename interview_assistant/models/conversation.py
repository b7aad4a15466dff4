from ..extensions import db
from .base import TimestampMixin


class Conversation(db.Model, TimestampMixin):
    __tablename__ = "ai_conversations"
    id = db.Column(db.Integer, primary_key=True)
    user_email = db.Column(db.String(255), nullable=False, index=True)
    user_name = db.Column(db.String(255))
    interview_id = db.Column(db.Integer, db.ForeignKey("interviews.id", ondelete="SET NULL"), nullable=True)
    title = db.Column(db.String(255), nullable=False)
    # [{"id", "role", "content", "timestamp", "sources"}]
    messages = db.Column(db.JSON, nullable=False, default=list)
    message_count = db.Column(db.Integer, nullable=False, default=0)
    last_message_at = db.Column(db.DateTime, server_default=db.func.now(), index=True)

    def to_dict(self):
        return {
            "id": self.id,
            "user_email": self.user_email,
            "user_name": self.user_name,
            "interview_id": self.interview_id,
            "title": self.title,
            "messages": self.messages or [],
            "message_count": self.message_count,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "last_message_at": self.last_message_at.isoformat() if self.last_message_at else None,
        }
