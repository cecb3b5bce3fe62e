from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..audit import log_event
from ..liturgical import SUNDAY, InvalidYearError, anchors_for_year, classify
from ..models import ServiceCalendar, SpecialService, db
from .special_days import DEFAULT_SPECIAL_DAYS, special_day_occurrences

# Bump whenever a change to the classifier or the enumeration would alter
# stored entries, so stale calendars show up in validation reports.
ALGORITHM_VERSION = "1.0.0"

_WEEKDAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


class GenerationError(RuntimeError):
    """Raised when a service calendar cannot be generated or saved."""


class NotFoundError(LookupError):
    """Raised when a calendar is requested for a year never generated."""


def _utcnow():
    return datetime.now(UTC)


@dataclass(frozen=True)
class GeneratedCalendar:
    year: int
    entries: list
    summary: dict


def _principal_days(year, weekday):
    first = date(year, 1, 1)
    first += timedelta(days=(weekday - first.weekday()) % 7)
    # Offsets rather than stepping past Dec 31, which overflows in year 9999.
    for offset in range(0, (date(year, 12, 31) - first).days + 1, 7):
        yield first + timedelta(days=offset)


def build_service_calendar(year, principal_weekday=SUNDAY, special_day_keys=DEFAULT_SPECIAL_DAYS, extra_services=()):
    """Enumerate and classify every service of ``year`` in memory.

    Pure: the same arguments always produce the same entries.  Names from
    ``extra_services`` override configured special-day names, which override
    the feast name the classifier finds for a date.
    """
    anchors_for_year(year)  # raises InvalidYearError for unsupported years
    if not 0 <= principal_weekday <= 6:
        raise ValueError(f"Principal service weekday must be 0-6, got {principal_weekday}.")

    names = {}
    for day in _principal_days(year, principal_weekday):
        names[day] = None
    for day, name in special_day_occurrences(year, special_day_keys):
        if day.year == year:
            names[day] = name
    for day, name in extra_services:
        if day.year == year:
            names[day] = name

    entries = []
    for day in sorted(names):
        info = classify(day)
        entries.append(
            {
                "date": day.isoformat(),
                "day_of_week": _WEEKDAY_NAMES[day.weekday()],
                "season": info.season.value,
                "season_name": info.display_name,
                "color": info.color.value,
                "special_day_name": names[day] or info.special_day_name,
                "is_principal_day": day.weekday() == principal_weekday,
            }
        )

    principal_count = sum(1 for entry in entries if entry["is_principal_day"])
    summary = {
        "total_services": len(entries),
        "principal_services": principal_count,
        "special_services": len(entries) - principal_count,
    }
    return GeneratedCalendar(year=year, entries=entries, summary=summary)


def _declared_special_services(year):
    rows = (
        SpecialService.query.filter(
            SpecialService.service_date >= date(year, 1, 1),
            SpecialService.service_date <= date(year, 12, 31),
        )
        .order_by(SpecialService.service_date.asc())
        .all()
    )
    return [(row.service_date, row.name) for row in rows]


def _generate_from_config(year):
    anchors_for_year(year)
    config = current_app.config
    return build_service_calendar(
        year,
        principal_weekday=int(config.get("PRINCIPAL_SERVICE_WEEKDAY", SUNDAY)),
        special_day_keys=config.get("SERVICE_SPECIAL_DAYS", DEFAULT_SPECIAL_DAYS),
        extra_services=_declared_special_services(year),
    )


def _upsert_statement(values):
    """Build a single INSERT .. ON CONFLICT (year) DO UPDATE statement.

    Replacing the row in one statement means readers see either the old
    calendar or the new one, never an empty or half-written year.
    """
    dialect = db.engine.dialect.name
    if dialect == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    elif dialect == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    else:
        raise GenerationError(f"Atomic calendar replacement is not supported on the {dialect} backend.")

    stmt = insert(ServiceCalendar.__table__).values(**values)
    return stmt.on_conflict_do_update(
        index_elements=[ServiceCalendar.__table__.c.year],
        set_={key: stmt.excluded[key] for key in values if key != "year"},
    )


def regenerate_service_calendar(year):
    """Generate ``year`` and replace any stored calendar for it.

    Raises GenerationError when the year is unsupported, the store cannot be
    read, or the write fails. The calendar row and its audit entry commit
    together; on failure both are rolled back and the previous calendar
    stays intact.
    """
    try:
        generated = _generate_from_config(year)
    except InvalidYearError as exc:
        raise GenerationError(str(exc)) from exc
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Reading special services for %s failed.", year)
        raise GenerationError(f"Could not generate the service calendar for {year}. Please try again.") from exc

    values = {
        "year": generated.year,
        "entries": generated.entries,
        "summary": generated.summary,
        "algorithm_version": ALGORITHM_VERSION,
        "generated_at": _utcnow(),
    }
    try:
        db.session.execute(_upsert_statement(values))
        calendar = ServiceCalendar.query.filter_by(year=year).one()
        log_event(
            action="service_calendar_regenerated",
            target_type="service_calendar",
            target_id=calendar.id,
            detail=f"Generated {generated.summary['total_services']} services for {year} "
            f"(algorithm {ALGORITHM_VERSION})",
            commit=False,
        )
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Saving the service calendar for %s failed.", year)
        raise GenerationError(f"Could not save the service calendar for {year}. Please try again.") from exc

    current_app.logger.info(
        "Regenerated service calendar %s: %d services (%d special).",
        year,
        generated.summary["total_services"],
        generated.summary["special_services"],
    )
    return calendar


def get_service_calendar(year):
    calendar = ServiceCalendar.query.filter_by(year=year).first()
    if calendar is None:
        raise NotFoundError(f"No service calendar has been generated for {year}.")
    return calendar


def list_generated_years():
    """Return every year with a stored calendar, ascending."""
    rows = db.session.query(ServiceCalendar.year).order_by(ServiceCalendar.year.asc()).all()
    return [year for (year,) in rows]


def validate_service_calendar(year):
    """Compare the stored calendar for ``year`` with a fresh generation.

    Read-only; reports dates the stored calendar is missing, dates it has
    that the current configuration would not produce, and entries whose
    season, color or special-day name no longer match.
    """
    stored = get_service_calendar(year)
    fresh = _generate_from_config(year)

    stored_by_date = {entry["date"]: entry for entry in stored.entries}
    fresh_by_date = {entry["date"]: entry for entry in fresh.entries}

    mismatches = []
    for day in sorted(stored_by_date.keys() & fresh_by_date.keys()):
        for field in ("season", "color", "special_day_name"):
            if stored_by_date[day].get(field) != fresh_by_date[day][field]:
                mismatches.append(
                    {
                        "date": day,
                        "field": field,
                        "stored": stored_by_date[day].get(field),
                        "expected": fresh_by_date[day][field],
                    }
                )

    missing = sorted(fresh_by_date.keys() - stored_by_date.keys())
    extra = sorted(stored_by_date.keys() - fresh_by_date.keys())
    return {
        "year": year,
        "is_current": not (missing or extra or mismatches),
        "missing_dates": missing,
        "extra_dates": extra,
        "mismatches": mismatches,
        "stored_algorithm_version": stored.algorithm_version,
        "algorithm_version": ALGORITHM_VERSION,
    }
