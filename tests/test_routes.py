from sqlalchemy.exc import OperationalError

from clinicsync import config, rate_limiter
from clinicsync.domain.bookings.repository import BookingRepository


def api_key(settings):
    return {"x-api-key": settings.N8N_WEBHOOK_SECRET}


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}


def test_sync_then_list_and_summary(client, fake_clinic, make_record):
    fake_clinic.records = [
        make_record(101, hour_schedule="10:00:00"),
        make_record(102, hour_schedule="08:00:00", client="ANA LIMA"),
    ]

    response = client.post(
        "/api/bookings/sync", json={"start_date": "2026-02-19", "end_date": "2026-02-19"}
    )

    assert response.status_code == 200
    assert response.json()["count"] == 2
    assert fake_clinic.requests[-1].url.params["start_date"] == "19/02/2026"

    listed = client.get("/api/bookings", params={"date": "2026-02-19"}).json()
    assert [b["externalId"] for b in listed] == [102, 101]
    assert listed[0]["patientName"] == "ANA LIMA"
    assert listed[0]["confirmationStatus"] == "PENDING"

    summary = client.get("/api/bookings/summary", params={"date": "19/02/2026"}).json()
    assert summary["total"] == 2 and summary["eligible"] == 2


def test_sync_rejects_bad_dates(client):
    response = client.post("/api/bookings/sync", json={"start_date": "19-02-2026", "end_date": "x"})

    assert response.status_code == 400


def test_sync_upstream_failure_maps_to_502(client, fake_clinic):
    fake_clinic.bookings_status = 503

    response = client.post(
        "/api/bookings/sync", json={"start_date": "19/02/2026", "end_date": "19/02/2026"}
    )

    assert response.status_code == 502


def test_list_filters_by_confirmation_status(client, add_booking):
    add_booking(101)
    add_booking(102, confirmation_status="CONFIRMED")

    listed = client.get(
        "/api/bookings", params={"date": "19/02/2026", "confirmation_status": "CONFIRMED"}
    ).json()

    assert [b["externalId"] for b in listed] == [102]


def test_unpadded_day_finds_stored_bookings(client, add_booking):
    add_booking(101, date_schedule="09/02/2026")

    summary = client.get("/api/bookings/summary", params={"date": "9/2/2026"}).json()

    assert summary["date"] == "09/02/2026"
    assert summary["total"] == 1 and summary["eligible"] == 1


def test_cancel_refused_by_clinic_returns_409(client, fake_clinic, add_booking):
    booking = add_booking(101)
    fake_clinic.cancel_status = 500

    response = client.patch(f"/api/bookings/{booking.id}/status", json={"status": "CANCELLED"})

    assert response.status_code == 409


def test_status_update_for_unknown_booking(client):
    response = client.patch("/api/bookings/missing/status", json={"status": "CONFIRMED"})

    assert response.status_code == 404


def test_trigger_without_eligible_bookings_is_not_an_error(client):
    response = client.post("/api/notifications/trigger", json={"date": "2026-02-19"})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is False
    assert body["error_kind"] == "nothing_to_do"


def test_trigger_dispatches(client, fake_orchestrator, add_booking):
    add_booking(101)

    response = client.post("/api/notifications/trigger", json={"date": "19/02/2026"})

    assert response.json()["count"] == 1
    assert len(fake_orchestrator.batches[0]["bookings"]) == 1


def test_template_lifecycle(client):
    first = client.post("/api/templates", json={"name": "Padrão", "content": "Oi {{patientName}}"})
    second = client.post("/api/templates", json={"name": "Sexta", "content": "Bom dia"})
    first_id, second_id = first.json()["data"]["id"], second.json()["data"]["id"]

    assert client.delete(f"/api/templates/{first_id}").status_code == 409

    assert client.post(f"/api/templates/{second_id}/activate").status_code == 200
    templates = {t["id"]: t["isActive"] for t in client.get("/api/templates").json()}
    assert templates == {first_id: False, second_id: True}

    assert client.put(f"/api/templates/{first_id}", json={"name": "Antigo", "content": "x"}).status_code == 200
    assert client.delete(f"/api/templates/{first_id}").status_code == 200
    assert client.post("/api/templates/missing/activate").status_code == 404


def test_template_preview(client):
    response = client.post("/api/templates/preview", json={"content": "{{diaSemana}} {{ doctor }}"})

    assert response.json() == {"rendered": "QUINTA Maria Souza"}


def test_webhook_confirms_pending_booking(client, add_booking, settings):
    add_booking(101)

    response = client.post(
        "/api/webhooks/status",
        json={"phone": "5541999998888", "status": "CONFIRMED"},
        headers=api_key(settings),
    )

    assert response.status_code == 200
    assert response.json() == {"success": True, "updated": 1}


def test_webhook_rejects_wrong_key(client, add_booking):
    add_booking(101)

    response = client.post(
        "/api/webhooks/status",
        json={"phone": "5541999998888", "status": "CONFIRMED"},
        headers={"x-api-key": "guess"},
    )

    assert response.status_code == 401


def test_webhook_closed_when_secret_not_configured(client, monkeypatch):
    monkeypatch.setattr(config, "N8N_WEBHOOK_SECRET", None)

    response = client.post(
        "/api/webhooks/status",
        json={"phone": "5541999998888", "status": "CONFIRMED"},
        headers={"x-api-key": ""},
    )

    assert response.status_code == 401


def test_webhook_validates_payload(client, settings):
    for payload in ({"phone": "123", "status": "CONFIRMED"}, {"phone": "5541999998888", "status": "PENDING"}):
        response = client.post("/api/webhooks/status", json=payload, headers=api_key(settings))
        assert response.status_code == 400

    response = client.post(
        "/api/webhooks/status", content=b"not json", headers=api_key(settings)
    )
    assert response.status_code == 400


def test_webhook_is_rate_limited(client, settings, monkeypatch):
    monkeypatch.setattr(rate_limiter, "memory_cache", {})
    limiter_key = "webhook_status:testclient"
    rate_limiter.memory_cache[limiter_key] = {
        "count": config.WEBHOOK_RATE_LIMIT,
        "reset_time": 2**31,
        "last_redis_sync": 2**31,
    }

    response = client.post(
        "/api/webhooks/status",
        json={"phone": "5541999998888", "status": "CONFIRMED"},
        headers=api_key(settings),
    )

    assert response.status_code == 429
    assert "Retry-After" in response.headers


def test_cancel_saved_only_in_clinic_returns_500(client, fake_clinic, add_booking, monkeypatch):
    booking = add_booking(101)

    def failing_write(*args, **kwargs):
        raise OperationalError("UPDATE bookings", {}, Exception("database is locked"))

    monkeypatch.setattr(BookingRepository, "set_confirmation_status", staticmethod(failing_write))

    response = client.patch(f"/api/bookings/{booking.id}/status", json={"status": "CANCELLED"})

    assert response.status_code == 500
    assert "clinic" in response.json()["detail"]
    assert fake_clinic.cancelled == [101]
