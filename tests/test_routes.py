"""Tests for the liturgical and service calendar JSON API."""

from datetime import date

from tests.conftest import _make_special_service
from worship_calendar.models import AuditLog, SpecialService

# ── Liturgical info ────────────────────────────────────────────────


def test_current_info_for_given_date(client):
    rv = client.get("/api/liturgical/current?date=2024-03-29")
    assert rv.status_code == 200
    assert rv.get_json() == {
        "date": "2024-03-29",
        "liturgical_year": 2024,
        "season": "holy_week",
        "season_name": "Holy Week",
        "color": "red",
        "special_day_name": "Good Friday",
        "days_remaining_in_season": 1,
        "next_season": {
            "season": "easter",
            "season_name": "Easter",
            "color": "white",
            "special_day_name": None,
        },
    }


def test_current_info_defaults_to_today(client):
    rv = client.get("/api/liturgical/current")
    assert rv.status_code == 200
    assert rv.get_json()["date"] == date.today().isoformat()


def test_current_info_advent_opens_next_church_year(client):
    data = client.get("/api/liturgical/current?date=2024-12-01").get_json()
    assert data["season"] == "advent"
    assert data["liturgical_year"] == 2025


def test_current_info_counts_christmas_into_january(client):
    data = client.get("/api/liturgical/current?date=2024-12-26").get_json()
    assert data["season"] == "christmas"
    assert data["days_remaining_in_season"] == 10
    assert data["next_season"]["season"] == "epiphany"
    assert data["next_season"]["color"] == "green"


def test_current_info_on_last_day_of_season(client):
    data = client.get("/api/liturgical/current?date=2024-05-19").get_json()
    assert data["season"] == "pentecost"
    assert data["days_remaining_in_season"] == 0
    assert data["next_season"]["season"] == "ordinary_time"


def test_current_info_rejects_bad_date(client):
    rv = client.get("/api/liturgical/current?date=29/03/2024")
    assert rv.status_code == 400
    assert "YYYY-MM-DD" in rv.get_json()["error"]


def test_seasons_for_year(client):
    rv = client.get("/api/liturgical/seasons?year=2024")
    assert rv.status_code == 200
    data = rv.get_json()
    assert data["anchors"]["easter"] == "2024-03-31"
    assert [run["season"] for run in data["seasons"]] == [
        "christmas",
        "epiphany",
        "lent",
        "holy_week",
        "easter",
        "pentecost",
        "ordinary_time",
        "advent",
        "christmas",
    ]


def test_seasons_requires_year(client):
    rv = client.get("/api/liturgical/seasons")
    assert rv.status_code == 400


def test_seasons_rejects_unsupported_year(client):
    rv = client.get("/api/liturgical/seasons?year=10000")
    assert rv.status_code == 400
    assert "between" in rv.get_json()["error"]


# ── Service calendars ──────────────────────────────────────────────


def test_calendar_not_generated_returns_404(client):
    rv = client.get("/api/service-calendar/2024")
    assert rv.status_code == 404
    assert "2024" in rv.get_json()["error"]


def test_regenerate_requires_admin_token(client):
    rv = client.post("/api/service-calendar/2024/regenerate")
    assert rv.status_code == 403
    rv = client.post("/api/service-calendar/2024/regenerate", headers={"X-Admin-Token": "wrong"})
    assert rv.status_code == 403
    assert client.get("/api/service-calendar/available-years").get_json() == []


def test_regenerate_refused_when_no_token_configured(app, client):
    app.config["ADMIN_API_TOKEN"] = ""
    rv = client.post("/api/service-calendar/2024/regenerate", headers={"X-Admin-Token": ""})
    assert rv.status_code == 403


def test_regenerate_then_fetch(client, admin_headers):
    rv = client.post("/api/service-calendar/2024/regenerate", headers=admin_headers)
    assert rv.status_code == 201
    created = rv.get_json()
    assert created["year"] == 2024
    assert created["metadata"] == {"total_services": 56, "principal_services": 52, "special_services": 4}

    rv = client.get("/api/service-calendar/2024")
    assert rv.status_code == 200
    data = rv.get_json()
    assert data["entries"] == created["entries"]
    assert data["entries"][0] == {
        "date": "2024-01-07",
        "day_of_week": "Sunday",
        "season": "epiphany",
        "season_name": "Epiphany",
        "color": "green",
        "special_day_name": "Baptism of Our Lord",
        "is_principal_day": True,
    }
    assert client.get("/api/service-calendar/available-years").get_json() == [2024]


def test_regenerate_unsupported_year_returns_400(client, admin_headers):
    rv = client.post("/api/service-calendar/10000/regenerate", headers=admin_headers)
    assert rv.status_code == 400
    assert client.get("/api/service-calendar/available-years").get_json() == []


def test_regenerate_storage_failure_returns_503(client, admin_headers, monkeypatch):
    from worship_calendar.schedule import service

    def _unsupported(values):
        raise service.GenerationError("Atomic calendar replacement is not supported on the mysql backend.")

    monkeypatch.setattr(service, "_upsert_statement", _unsupported)
    rv = client.post("/api/service-calendar/2024/regenerate", headers=admin_headers)
    assert rv.status_code == 503
    assert "not supported" in rv.get_json()["error"]


def test_regenerate_read_failure_returns_503(client, admin_headers, monkeypatch):
    from sqlalchemy.exc import OperationalError

    from worship_calendar.schedule import service

    def _fail_read(year):
        raise OperationalError("SELECT special_services", {}, Exception("database is locked"))

    monkeypatch.setattr(service, "_declared_special_services", _fail_read)
    rv = client.post("/api/service-calendar/2024/regenerate", headers=admin_headers)
    assert rv.status_code == 503
    assert "try again" in rv.get_json()["error"]


def test_regenerate_rate_limit_counts_refused_tokens(app, client, admin_headers, monkeypatch):
    from worship_calendar import limiter

    monkeypatch.setitem(app.config, "REGENERATE_RATE_LIMIT", "2 per minute")
    monkeypatch.setattr(limiter, "enabled", True)
    limiter.reset()
    try:
        for _ in range(2):
            rv = client.post("/api/service-calendar/2024/regenerate", headers={"X-Admin-Token": "guess"})
            assert rv.status_code == 403
        rv = client.post("/api/service-calendar/2024/regenerate", headers=admin_headers)
        assert rv.status_code == 429
        assert "error" in rv.get_json()
    finally:
        limiter.reset()


def test_regenerate_rejects_get(client):
    rv = client.get("/api/service-calendar/2024/regenerate")
    assert rv.status_code == 405


def test_available_years_sorted(client, admin_headers):
    for year in (2025, 2023, 2024):
        client.post(f"/api/service-calendar/{year}/regenerate", headers=admin_headers)
    assert client.get("/api/service-calendar/available-years").get_json() == [2023, 2024, 2025]


def test_validate_route(client, admin_headers):
    assert client.get("/api/service-calendar/2024/validate").status_code == 404
    client.post("/api/service-calendar/2024/regenerate", headers=admin_headers)
    rv = client.get("/api/service-calendar/2024/validate")
    assert rv.status_code == 200
    assert rv.get_json()["is_current"] is True


# ── Special services ───────────────────────────────────────────────


def test_add_special_service(client, admin_headers):
    rv = client.post(
        "/api/special-services",
        json={"date": "2024-07-04", "name": "Service of Thanksgiving for the Nation"},
        headers=admin_headers,
    )
    assert rv.status_code == 201
    assert rv.get_json()["date"] == "2024-07-04"
    assert SpecialService.query.count() == 1
    assert AuditLog.query.filter_by(action="special_service_added").count() == 1


def test_add_special_service_requires_admin(client):
    rv = client.post("/api/special-services", json={"date": "2024-07-04", "name": "Vigil"})
    assert rv.status_code == 403
    assert SpecialService.query.count() == 0


def test_add_special_service_validates_payload(client, admin_headers):
    rv = client.post("/api/special-services", json={"date": "2024-07-04"}, headers=admin_headers)
    assert rv.status_code == 400
    rv = client.post("/api/special-services", json={"date": "July 4", "name": "Vigil"}, headers=admin_headers)
    assert rv.status_code == 400
    rv = client.post("/api/special-services", json={"date": "2024-07-04", "name": "x" * 256}, headers=admin_headers)
    assert rv.status_code == 400
    assert SpecialService.query.count() == 0


def test_add_duplicate_special_service_conflicts(client, admin_headers):
    _make_special_service(date(2024, 3, 29), "Good Friday")
    rv = client.post(
        "/api/special-services",
        json={"date": "2024-03-29", "name": "Tenebrae"},
        headers=admin_headers,
    )
    assert rv.status_code == 409


def test_list_special_services_filters_by_year(client):
    _make_special_service(date(2025, 1, 1), "New Year")
    _make_special_service(date(2024, 7, 4), "Independence Day")
    _make_special_service(date(2024, 3, 29), "Good Friday")

    all_services = client.get("/api/special-services").get_json()
    assert [service["date"] for service in all_services] == ["2024-03-29", "2024-07-04", "2025-01-01"]

    in_2024 = client.get("/api/special-services?year=2024").get_json()
    assert [service["name"] for service in in_2024] == ["Good Friday", "Independence Day"]


def test_list_special_services_rejects_bad_year(client):
    assert client.get("/api/special-services?year=0").status_code == 400


def test_delete_special_service(client, admin_headers):
    service = _make_special_service()
    rv = client.delete(f"/api/special-services/{service.id}", headers=admin_headers)
    assert rv.status_code == 204
    assert SpecialService.query.count() == 0
    assert AuditLog.query.filter_by(action="special_service_removed").count() == 1


def test_delete_missing_special_service(client, admin_headers):
    rv = client.delete("/api/special-services/999", headers=admin_headers)
    assert rv.status_code == 404


def test_special_service_flows_into_regenerated_calendar(app, client, admin_headers):
    app.config["SERVICE_SPECIAL_DAYS"] = "christmas_eve,ash_wednesday"
    client.post("/api/service-calendar/2024/regenerate", headers=admin_headers)
    client.post("/api/special-services", json={"date": "2024-03-29", "name": "Good Friday"}, headers=admin_headers)

    # Declaring a service does not touch the stored calendar until regeneration.
    assert len(client.get("/api/service-calendar/2024").get_json()["entries"]) == 54

    client.post("/api/service-calendar/2024/regenerate", headers=admin_headers)
    entries = client.get("/api/service-calendar/2024").get_json()["entries"]
    assert len(entries) == 55
    good_friday = next(entry for entry in entries if entry["date"] == "2024-03-29")
    assert good_friday["season"] == "holy_week"
    assert good_friday["color"] == "red"
    assert good_friday["special_day_name"] == "Good Friday"
