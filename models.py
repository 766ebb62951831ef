"""Shared SQLAlchemy models: shop personnel and technician performance."""

from flask_login import UserMixin
from sqlalchemy import UniqueConstraint

from extensions import db
from utils import utcnow

ROLES = ("manager", "technician", "inspector")

# stats patch keys grouped per period, the rest are flat
STAT_GROUPS = {
    "repaired_count": ("repaired_today", "repaired_week", "repaired_month"),
    "hours_worked": ("hours_today", "hours_week", "hours_month"),
}
STAT_FIELDS = ("avg_repair_time", "scrap_rate", "efficiency", "on_time_delivery")
PERIODS = ("today", "week", "month")


class User(UserMixin, db.Model):
    """Anyone who can log in: manager, technician or inspector."""

    __tablename__ = "users"

    id = db.Column(db.String(64), primary_key=True)
    name = db.Column(db.String(150), nullable=False)
    photo = db.Column(db.String(255))
    role = db.Column(db.String(32), nullable=False)  # manager, technician, inspector
    password = db.Column(db.String(255))  # optional; demo accounts log in without one
    skills = db.Column(db.JSON, default=list)
    join_date = db.Column(db.Date)

    stats = db.relationship("TechnicianStats", uselist=False, back_populates="technician",
                            cascade="all, delete-orphan")
    badges = db.relationship("TechnicianBadge", back_populates="technician",
                             cascade="all, delete-orphan",
                             order_by="TechnicianBadge.id")

    @property
    def is_technician(self) -> bool:
        return self.role == "technician"

    @property
    def badge_names(self) -> list[str]:
        return [b.name for b in self.badges]

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "name": self.name,
            "photo": self.photo,
            "role": self.role,
        }
        if self.is_technician:
            data.update(
                skills=list(self.skills or []),
                stats=self.stats.to_dict() if self.stats else TechnicianStats().to_dict(),
                badges=self.badge_names,
                join_date=self.join_date.isoformat() if self.join_date else None,
            )
        return data

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<User {self.id} ({self.role})>"


class TechnicianStats(db.Model):
    """Mutable performance block of one technician."""

    __tablename__ = "technician_stats"

    technician_id = db.Column(db.String(64), db.ForeignKey("users.id"), primary_key=True)

    repaired_today = db.Column(db.Integer, default=0, nullable=False)
    repaired_week = db.Column(db.Integer, default=0, nullable=False)
    repaired_month = db.Column(db.Integer, default=0, nullable=False)
    avg_repair_time = db.Column(db.Float, default=0.0, nullable=False)
    scrap_rate = db.Column(db.Float, default=0.0, nullable=False)
    hours_today = db.Column(db.Float, default=0.0, nullable=False)
    hours_week = db.Column(db.Float, default=0.0, nullable=False)
    hours_month = db.Column(db.Float, default=0.0, nullable=False)
    efficiency = db.Column(db.Float, default=0.0, nullable=False)
    on_time_delivery = db.Column(db.Float, default=0.0, nullable=False)

    technician = db.relationship("User", back_populates="stats")

    def apply_patch(self, patch: dict) -> None:
        """
        Shallow merge of a stats patch:
            {"scrap_rate": 4.0, "repaired_count": {"week": 9}, "hours_worked": {"today": 7.5}}
        Period groups merge per period; unknown keys are ignored.
        """
        for group, columns in STAT_GROUPS.items():
            values = patch.get(group)
            if not isinstance(values, dict):
                continue
            for period, column in zip(PERIODS, columns):
                if period in values and values[period] is not None:
                    setattr(self, column, values[period])
        for field in STAT_FIELDS:
            if patch.get(field) is not None:
                setattr(self, field, patch[field])

    def to_dict(self) -> dict:
        return {
            "repaired_count": {
                "today": self.repaired_today or 0,
                "week": self.repaired_week or 0,
                "month": self.repaired_month or 0,
            },
            "avg_repair_time": self.avg_repair_time or 0.0,
            "scrap_rate": self.scrap_rate or 0.0,
            "hours_worked": {
                "today": self.hours_today or 0.0,
                "week": self.hours_week or 0.0,
                "month": self.hours_month or 0.0,
            },
            "efficiency": self.efficiency or 0.0,
            "on_time_delivery": self.on_time_delivery or 0.0,
        }


class TechnicianBadge(db.Model):
    __tablename__ = "technician_badges"

    id = db.Column(db.Integer, primary_key=True)
    technician_id = db.Column(db.String(64), db.ForeignKey("users.id"), nullable=False)
    name = db.Column(db.String(64), nullable=False)
    awarded_at = db.Column(db.DateTime, default=utcnow)

    technician = db.relationship("User", back_populates="badges")

    __table_args__ = (
        UniqueConstraint("technician_id", "name", name="uq_badge_technician_name"),
    )
