"""JSON API for liturgical information and generated service calendars."""

from datetime import MAXYEAR, MINYEAR, date

from flask import abort, current_app, jsonify, request
from sqlalchemy.exc import IntegrityError

from .. import limiter
from ..audit import log_event
from ..liturgical import (
    anchors_for_year,
    days_remaining_in_season,
    get_current_liturgical_info,
    liturgical_year,
    next_season,
    season_info_for,
    season_runs,
)
from ..models import SpecialService, db
from .common import _parse_iso_date, admin_required, schedule_bp
from .service import (
    get_service_calendar,
    list_generated_years,
    regenerate_service_calendar,
    validate_service_calendar,
)


def _regenerate_rate_limit():
    return current_app.config.get("REGENERATE_RATE_LIMIT", "10 per minute")


# ── Liturgical info ────────────────────────────────────────────────


@schedule_bp.route("/liturgical/current")
def current_liturgical_info():
    raw = request.args.get("date")
    day = _parse_iso_date(raw) if raw else date.today()
    info = get_current_liturgical_info(day)
    return {
        "date": day.isoformat(),
        "liturgical_year": liturgical_year(day),
        **info.to_dict(),
        "days_remaining_in_season": days_remaining_in_season(day),
        "next_season": season_info_for(next_season(info.season)).to_dict(),
    }


@schedule_bp.route("/liturgical/seasons")
def seasons_for_year():
    year = request.args.get("year", type=int)
    if year is None:
        abort(400, description="'year' query parameter is required and must be an integer.")
    return {
        "year": year,
        "anchors": anchors_for_year(year).to_dict(),
        "seasons": [run.to_dict() for run in season_runs(year)],
    }


# ── Service calendars ──────────────────────────────────────────────


@schedule_bp.route("/service-calendar/available-years")
def available_years():
    return jsonify(list_generated_years())


@schedule_bp.route("/service-calendar/<int:year>")
def service_calendar(year):
    return get_service_calendar(year).to_dict()


@schedule_bp.route("/service-calendar/<int:year>/regenerate", methods=["POST"])
@limiter.limit(_regenerate_rate_limit)
@admin_required
def regenerate(year):
    calendar = regenerate_service_calendar(year)
    return calendar.to_dict(), 201


@schedule_bp.route("/service-calendar/<int:year>/validate")
def validate(year):
    return validate_service_calendar(year)


# ── Special services ───────────────────────────────────────────────


@schedule_bp.route("/special-services")
def list_special_services():
    query = SpecialService.query
    year = request.args.get("year", type=int)
    if year is not None:
        if not MINYEAR <= year <= MAXYEAR:
            abort(400, description=f"'year' must be between {MINYEAR} and {MAXYEAR}.")
        query = query.filter(
            SpecialService.service_date >= date(year, 1, 1),
            SpecialService.service_date <= date(year, 12, 31),
        )
    services = query.order_by(SpecialService.service_date.asc()).all()
    return jsonify([service.to_dict() for service in services])


@schedule_bp.route("/special-services", methods=["POST"])
@admin_required
def add_special_service():
    payload = request.get_json(silent=True) or {}
    service_date = _parse_iso_date(payload.get("date"))
    name = (payload.get("name") or "").strip()
    if not name:
        abort(400, description="'name' is required.")
    if len(name) > 255:
        abort(400, description="'name' must be at most 255 characters.")

    service = SpecialService(service_date=service_date, name=name)
    db.session.add(service)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        abort(409, description=f"A special service is already declared for {service_date.isoformat()}.")

    log_event(
        action="special_service_added",
        target_type="special_service",
        target_id=service.id,
        detail=f"Declared '{name}' on {service_date.isoformat()}",
    )
    return service.to_dict(), 201


@schedule_bp.route("/special-services/<int:service_id>", methods=["DELETE"])
@admin_required
def delete_special_service(service_id):
    service = db.session.get(SpecialService, service_id)
    if service is None:
        abort(404, description="Special service not found.")

    detail = f"Removed '{service.name}' on {service.service_date.isoformat()}"
    db.session.delete(service)
    db.session.commit()

    log_event(
        action="special_service_removed",
        target_type="special_service",
        target_id=service_id,
        detail=detail,
    )
    return "", 204
