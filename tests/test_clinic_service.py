import pytest

from clinicsync import config
from clinicsync.errors import ConfigurationError, ContractValidationError, UpstreamHttpError


async def test_fetch_bookings_sends_range_token_and_no_cache(fake_clinic, clinic_client, make_record):
    fake_clinic.records = [make_record(101), make_record(102, client="ANA LIMA")]

    bookings = await clinic_client.fetch_bookings("19/02/2026", "20/02/2026")

    assert [b.id for b in bookings] == [101, 102]
    assert bookings[1].client == "ANA LIMA"

    request = fake_clinic.requests[-1]
    assert request.method == "GET"
    assert request.url.params["start_date"] == "19/02/2026"
    assert request.url.params["end_date"] == "20/02/2026"
    assert request.headers["Authorization"] == "Bearer token-1"
    assert "no-cache" in request.headers["Cache-Control"]
    assert request.headers["Pragma"] == "no-cache"


async def test_fetch_reuses_cached_token(fake_clinic, clinic_client):
    await clinic_client.fetch_bookings("19/02/2026", "19/02/2026")
    await clinic_client.fetch_bookings("20/02/2026", "20/02/2026")

    assert fake_clinic.token_requests == 1


async def test_fetch_tolerates_extra_fields(fake_clinic, clinic_client, make_record):
    fake_clinic.records = [make_record(101, room="3B")]

    bookings = await clinic_client.fetch_bookings("19/02/2026", "19/02/2026")

    assert bookings[0].id == 101


async def test_non_success_status_raises_http_error(fake_clinic, clinic_client):
    fake_clinic.bookings_status = 503

    with pytest.raises(UpstreamHttpError) as exc_info:
        await clinic_client.fetch_bookings("19/02/2026", "19/02/2026")

    assert exc_info.value.status_code == 503


async def test_unauthorized_response_drops_cached_token(fake_clinic, clinic_client):
    await clinic_client.fetch_bookings("19/02/2026", "19/02/2026")
    fake_clinic.bookings_status = 401

    with pytest.raises(UpstreamHttpError):
        await clinic_client.fetch_bookings("19/02/2026", "19/02/2026")

    fake_clinic.bookings_status = 200
    await clinic_client.fetch_bookings("19/02/2026", "19/02/2026")
    assert fake_clinic.token_requests == 2


@pytest.mark.parametrize(
    "body",
    [
        {"result": {"items": [{"id": "101"}]}},
        {"items": []},
        {"result": {"items": [{"id": 101, "doctor": "X", "doctor_id": 1, "client": "Y",
                               "mobile": 41999998888, "date_schedule": "19/02/2026",
                               "hour_schedule": "08:30", "status": "ok"}]}},
    ],
)
async def test_contract_violation_is_not_an_http_error(fake_clinic, clinic_client, body):
    fake_clinic.raw_bookings_body = body

    with pytest.raises(ContractValidationError):
        await clinic_client.fetch_bookings("19/02/2026", "19/02/2026")


async def test_missing_facility_is_a_configuration_error(monkeypatch, fake_clinic, clinic_client):
    monkeypatch.setattr(config, "CLINIC_FACILITY_ID", None)

    with pytest.raises(ConfigurationError):
        await clinic_client.fetch_bookings("19/02/2026", "19/02/2026")

    assert fake_clinic.requests == []


async def test_cancel_booking_deletes_the_slot(fake_clinic, clinic_client):
    await clinic_client.cancel_booking(101)

    assert fake_clinic.cancelled == [101]
    request = fake_clinic.requests[-1]
    assert request.method == "DELETE"
    assert request.headers["Authorization"] == "Bearer token-1"


async def test_cancel_booking_failure(fake_clinic, clinic_client):
    fake_clinic.cancel_status = 422

    with pytest.raises(UpstreamHttpError) as exc_info:
        await clinic_client.cancel_booking(101)

    assert exc_info.value.status_code == 422
