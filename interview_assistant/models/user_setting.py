from ..extensions import db
from .base import TimestampMixin


class UserSetting(db.Model, TimestampMixin):
    __tablename__ = 'user_settings'
    id = db.Column(db.Integer, primary_key=True)
    user_email = db.Column(db.String(255), nullable=False, unique=True, index=True)
    drive_folder_id = db.Column(db.String(100))
    folder_name = db.Column(db.String(255))
    auto_poll_enabled = db.Column(db.Boolean, nullable=False, default=False)
    poll_interval_minutes = db.Column(db.Integer, nullable=False, default=15)
    last_poll_time = db.Column(db.DateTime)
    last_poll_file_count = db.Column(db.Integer, default=0)
    # iv:ciphertext:tag, see services.crypto
    encrypted_refresh_token = db.Column(db.Text)

    DEFAULTS = {
        "driveFolderId": None,
        "autoPollEnabled": False,
        "pollIntervalMinutes": 15,
        "lastPollTime": None,
        "folderName": None,
        "lastPollFileCount": 0,
    }

    @classmethod
    def for_user(cls, email, create=False):
        s = cls.query.filter_by(user_email=email).first()
        if s is None and create:
            s = cls(user_email=email, auto_poll_enabled=False, poll_interval_minutes=15, last_poll_file_count=0)
            db.session.add(s)
        return s

    def to_dict(self):
        return {
            "driveFolderId": self.drive_folder_id,
            "autoPollEnabled": bool(self.auto_poll_enabled),
            "pollIntervalMinutes": self.poll_interval_minutes,
            "lastPollTime": self.last_poll_time.isoformat() if self.last_poll_time else None,
            "folderName": self.folder_name,
            "lastPollFileCount": self.last_poll_file_count or 0,
        }

    def __repr__(self):
        return f"<UserSetting user_email={self.user_email} folder={self.drive_folder_id}>"
