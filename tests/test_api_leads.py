from __future__ import annotations

from datetime import datetime, timedelta

from leadform.models import NOT_AVAILABLE, Lead


def _seed(gateway, count: int) -> None:
    base = datetime(2025, 1, 1, 12, 0, 0)
    # Inserted out of date order on purpose
    for offset in (2, 0, 1, 4, 3)[:count]:
        gateway.insert(
            Lead(
                full_name=f"Lead {offset}",
                email_address=f"lead{offset}@example.com",
                project_details="details",
                submission_date=base + timedelta(hours=offset),
            )
        )


def test_empty_store_returns_empty_list(client) -> None:
    response = client.get("/api/leads")

    assert response.status_code == 200
    assert response.get_json() == []


def test_leads_are_returned_newest_first(client, fake_gateway) -> None:
    _seed(fake_gateway, 5)

    payload = client.get("/api/leads").get_json()

    dates = [item["submission_date"] for item in payload]
    assert dates == sorted(dates, reverse=True)
    assert payload[0]["full_name"] == "Lead 4"


def test_submit_then_read_scenario(client) -> None:
    client.post("/submit_contact", data={"name": "Ann", "email": "a@x.com", "message": "hello"})

    payload = client.get("/api/leads").get_json()

    assert len(payload) == 1
    first = payload[0]
    assert first["full_name"] == "Ann"
    assert first["email_address"] == "a@x.com"
    assert first["project_details"] == "hello"
    assert first["tel"] == NOT_AVAILABLE
    assert first["id"]
    assert first["submission_date"].endswith("Z")


def test_tel_is_returned_when_given(client) -> None:
    client.post("/submit_contact", data={"name": "Ann", "email": "a@x.com", "message": "hi", "tel": "555"})

    assert client.get("/api/leads").get_json()[0]["tel"] == "555"


def test_unreachable_store_returns_500_with_error_indicator(client, fake_gateway) -> None:
    fake_gateway.fail = True

    response = client.get("/api/leads")

    assert response.status_code == 500
    assert response.get_json() == {"error": "Failed to fetch leads from database"}
    # the process keeps serving
    fake_gateway.fail = False
    assert client.get("/api/leads").status_code == 200


def test_sql_backend_orders_and_serializes(sql_client, sql_app) -> None:
    with sql_app.app_context():
        _seed(sql_app.extensions["lead_gateway"], 3)

    payload = sql_client.get("/api/leads").get_json()

    assert [item["full_name"] for item in payload] == ["Lead 2", "Lead 1", "Lead 0"]
    assert payload[0]["submission_date"] == "2025-01-01T14:00:00.000Z"
    assert all(item["tel"] == NOT_AVAILABLE for item in payload)


def test_static_pages_are_served(client) -> None:
    assert client.get("/").status_code == 200
    assert client.get("/thank_you.html").status_code == 200
    assert client.get("/leads.html").status_code == 200
    assert client.get("/no-such-page").status_code == 404


def test_health(client) -> None:
    body = client.get("/health").get_json()

    assert body["ok"] is True
    assert body["time"].endswith("Z")
