from pgvector.sqlalchemy import Vector
from ..extensions import db
from .base import OwnedMixin, TimestampMixin

MEETING_CATEGORIES = (
    'Interview', 'Client Debrief', 'Sales Meeting', 'Status Update',
    'Planning Meeting', 'Team Sync', 'Client Call', '1-on-1', 'All Hands',
    'Standup', 'Retrospective', 'Demo', 'Other',
)

NOT_ANALYZED = 'Not Analyzed'


class Interview(db.Model, OwnedMixin, TimestampMixin):
    __tablename__ = "interviews"

    id = db.Column(db.Integer, primary_key=True)
    # OwnedMixin: owner_email (NULL for legacy rows)

    # meeting
    meeting_code = db.Column(db.String(50))
    meeting_title = db.Column(db.String(255))
    meeting_type = db.Column(db.String(40), index=True)  # one of MEETING_CATEGORIES
    meeting_date = db.Column(db.DateTime, index=True)
    interviewer = db.Column(db.String(200))

    # candidate
    candidate_id = db.Column(db.String(64))  # Lever opportunity id
    candidate_name = db.Column(db.String(200))
    candidate_email = db.Column(db.String(254))
    position = db.Column(db.String(200))

    # content
    transcript = db.Column(db.Text, nullable=False)
    transcript_file_name = db.Column(db.String(512), index=True)
    drive_file_id = db.Column(db.String(128), index=True)  # Drive id or meet-<code>
    summary = db.Column(db.Text)
    rating = db.Column(db.String(40), default=NOT_ANALYZED)
    submitted_at = db.Column(db.DateTime)
    embedding = db.Column(Vector(768))

    __table_args__ = (
        db.CheckConstraint(
            "meeting_type IS NULL OR meeting_type IN (%s)" % ", ".join("'%s'" % c for c in MEETING_CATEGORIES),
            name='check_meeting_type',
        ),
    )

    def to_dict(self, similarity=None):
        d = {
            "id": self.id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "meeting_code": self.meeting_code,
            "meeting_title": self.meeting_title,
            "meeting_type": self.meeting_type,
            "meeting_date": self.meeting_date.isoformat() if self.meeting_date else None,
            "candidate_id": self.candidate_id,
            "candidate_name": self.candidate_name,
            "candidate_email": self.candidate_email,
            "owner_email": self.owner_email,
            "position": self.position,
            "interviewer": self.interviewer,
            "submitted_at": self.submitted_at.isoformat() if self.submitted_at else None,
            "transcript": self.transcript,
            "transcript_file_name": self.transcript_file_name,
            "drive_file_id": self.drive_file_id,
            "rating": self.rating,
            "summary": self.summary,
        }
        if similarity is not None:
            d["similarity"] = similarity
        return d

    def __repr__(self) -> str:
        return f"<Interview id={self.id} title={self.meeting_title!r}>"
