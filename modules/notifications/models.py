"""SQLAlchemy model for advisory notifications."""

from extensions import db
from utils import isoformat, utcnow

NOTIFICATION_TYPES = ["info", "warning", "error", "success"]


class Notification(db.Model):
    __tablename__ = "notifications"

    seq = db.Column(db.Integer, primary_key=True, autoincrement=True)
    id = db.Column(db.String(64), unique=True, nullable=False)
    type = db.Column(db.String(16), nullable=False, default="info")
    title = db.Column(db.String(255), nullable=False)
    message = db.Column(db.Text, nullable=False)
    timestamp = db.Column(db.DateTime, default=utcnow, nullable=False)
    read = db.Column(db.Boolean, default=False, nullable=False)
    part_id = db.Column(db.String(64))
    technician_id = db.Column(db.String(64))

    # (rule, subject_id) identifies an evaluator finding; both empty for user feedback
    rule = db.Column(db.String(32))
    subject_id = db.Column(db.String(64))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type,
            "title": self.title,
            "message": self.message,
            "timestamp": isoformat(self.timestamp),
            "read": bool(self.read),
            "part_id": self.part_id,
            "technician_id": self.technician_id,
            "rule": self.rule,
        }
