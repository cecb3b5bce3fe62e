from datetime import UTC, datetime

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()


def _utcnow():
    return datetime.now(UTC)


# ── Service Calendar ───────────────────────────────────────────────


class ServiceCalendar(db.Model):
    """One generated year of services.

    ``entries`` holds the whole ordered sequence as a single JSON document so
    a regeneration replaces it in one row write.
    """

    __tablename__ = "service_calendars"

    id = db.Column(db.Integer, primary_key=True)
    year = db.Column(db.Integer, unique=True, nullable=False, index=True)
    entries = db.Column(db.JSON, nullable=False, default=list)
    summary = db.Column(db.JSON, nullable=False, default=dict)  # total/principal/special counts
    algorithm_version = db.Column(db.String(20), nullable=False)
    generated_at = db.Column(db.DateTime, nullable=False, default=_utcnow)

    __table_args__ = (
        db.CheckConstraint("year >= 1 AND year <= 9999", name="ck_service_calendars_year_range"),
    )

    def to_dict(self):
        return {
            "year": self.year,
            "entries": self.entries,
            "metadata": self.summary,
            "algorithm_version": self.algorithm_version,
            "generated_at": self.generated_at.isoformat() if self.generated_at else None,
        }

    def __repr__(self):
        return f"<ServiceCalendar {self.year} ({len(self.entries or [])} services)>"


# ── Special Service ────────────────────────────────────────────────


class SpecialService(db.Model):
    """A one-off service declared by an administrator.

    Picked up by the next regeneration of the year it falls in.
    """

    __tablename__ = "special_services"

    id = db.Column(db.Integer, primary_key=True)
    service_date = db.Column(db.Date, unique=True, nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=_utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "date": self.service_date.isoformat(),
            "name": self.name,
        }

    def __repr__(self):
        return f"<SpecialService {self.service_date} {self.name}>"


# ── Audit Log ──────────────────────────────────────────────────────


class AuditLog(db.Model):
    __tablename__ = "audit_logs"

    id = db.Column(db.Integer, primary_key=True)
    timestamp = db.Column(db.DateTime, nullable=False, default=_utcnow, index=True)
    action = db.Column(db.String(100), nullable=False, index=True)
    target_type = db.Column(db.String(50), nullable=True)  # service_calendar, special_service
    target_id = db.Column(db.Integer, nullable=True)
    detail = db.Column(db.Text, nullable=True)
    ip_address = db.Column(db.String(45), nullable=True)

    def __repr__(self):
        return f"<AuditLog {self.action} at {self.timestamp}>"
