from ..extensions import db
from .base import TimestampMixin


class CandidateNote(db.Model, TimestampMixin):
    __tablename__ = "candidate_notes"
    id = db.Column(db.Integer, primary_key=True)
    candidate_email = db.Column(db.String(254), nullable=False, index=True)
    content = db.Column(db.Text, nullable=False)
    created_by = db.Column(db.String(255))

    def to_dict(self):
        return {
            "id": self.id,
            "candidate_email": self.candidate_email,
            "content": self.content,
            "created_by": self.created_by,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class CandidateProfile(db.Model, TimestampMixin):
    __tablename__ = "candidate_profiles"
    id = db.Column(db.Integer, primary_key=True)
    candidate_email = db.Column(db.String(254), nullable=False, unique=True)
    name = db.Column(db.String(200))
    position = db.Column(db.String(200))
    years_experience = db.Column(db.String(20))
    links = db.Column(db.JSON)      # {"linkedin": ..., "portfolio": ...}
    details = db.Column(db.JSON)    # free-form fields from the UI

    EDITABLE = ('name', 'position', 'years_experience', 'links', 'details')

    def to_dict(self):
        return {
            "id": self.id,
            "candidate_email": self.candidate_email,
            "name": self.name,
            "position": self.position,
            "years_experience": self.years_experience,
            "links": self.links or {},
            "details": self.details or {},
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
