"""
Clinic Scheduling API Service
Fetches bookings by date range and releases slots on the clinic side
"""

import logging
from typing import Optional

import httpx
from pydantic import ValidationError

from .. import config
from ..errors import ContractValidationError, UpstreamHttpError
from .clinic_auth_service import ClinicTokenCache, clinic_token_cache
from .clinic_schemas import ClinicBooking, ClinicBookingsResponse

logger = logging.getLogger(__name__)

# Booking state changes on the clinic side at any time; never reuse a cached response
NO_CACHE_HEADERS = {"Cache-Control": "no-cache, no-store", "Pragma": "no-cache"}


class ClinicApiClient:
    """Thin client over the clinic integration endpoints"""

    def __init__(
        self,
        token_cache: ClinicTokenCache = clinic_token_cache,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.token_cache = token_cache
        self.transport = transport

    def _bookings_url(self) -> str:
        settings = config.require_settings(
            CLINIC_API_URL=config.CLINIC_API_URL,
            CLINIC_FACILITY_ID=config.CLINIC_FACILITY_ID,
            CLINIC_DOCTOR_ID=config.CLINIC_DOCTOR_ID,
        )
        return (
            f"{settings['CLINIC_API_URL'].rstrip('/')}/api/v1/integration"
            f"/facilities/{settings['CLINIC_FACILITY_ID']}"
            f"/doctors/{settings['CLINIC_DOCTOR_ID']}"
            f"/addresses/{config.CLINIC_ADDRESS_ID or '1'}/bookings"
        )

    async def _headers(self) -> dict:
        access_token = await self.token_cache.get_access_token()
        return {
            "Authorization": f"Bearer {access_token}",
            "Accept": "application/json",
            **NO_CACHE_HEADERS,
        }

    async def fetch_bookings(self, start_date: str, end_date: str) -> list[ClinicBooking]:
        """
        Fetch every booking between start_date and end_date (inclusive).

        Dates are in the clinic's dd/mm/yyyy form.

        Raises:
            ConfigurationError: Clinic settings missing
            UpstreamAuthError: Token exchange rejected
            UpstreamHttpError: Non-success response from the bookings endpoint
            ContractValidationError: Response body does not match the contract
        """
        url = self._bookings_url()
        headers = await self._headers()

        logger.info(f"📥 Fetching clinic bookings: {start_date} → {end_date}")
        async with httpx.AsyncClient(
            transport=self.transport, timeout=config.CLINIC_HTTP_TIMEOUT
        ) as client:
            try:
                response = await client.get(
                    url,
                    params={"start_date": start_date, "end_date": end_date},
                    headers=headers,
                )
            except httpx.TransportError as e:
                logger.error(f"❌ Clinic API unreachable: {e}")
                raise UpstreamHttpError(None, service="clinic", detail=str(e)) from e

        if not response.is_success:
            logger.error(f"❌ Clinic API error {response.status_code}: {response.text}")
            if response.status_code == 401:
                self.token_cache.invalidate()
            raise UpstreamHttpError(response.status_code, service="clinic", detail=response.text)

        try:
            parsed = ClinicBookingsResponse.model_validate(response.json())
        except (ValidationError, ValueError) as e:
            logger.error(f"❌ Clinic bookings response failed contract validation: {e}")
            logger.debug(f"Raw clinic payload: {response.text}")
            raise ContractValidationError("Unexpected clinic bookings response") from e

        logger.info(f"✅ Clinic returned {len(parsed.result.items)} booking(s)")
        return parsed.result.items

    async def cancel_booking(self, external_id: int) -> None:
        """
        Release a slot on the clinic side.

        Raises the same errors as fetch_bookings (minus contract validation).
        """
        url = f"{self._bookings_url()}/{external_id}"
        headers = await self._headers()

        logger.info(f"🗑️ Cancelling clinic booking {external_id}")
        async with httpx.AsyncClient(
            transport=self.transport, timeout=config.CLINIC_HTTP_TIMEOUT
        ) as client:
            try:
                response = await client.delete(url, headers=headers)
            except httpx.TransportError as e:
                logger.error(f"❌ Clinic API unreachable while cancelling {external_id}: {e}")
                raise UpstreamHttpError(None, service="clinic", detail=str(e)) from e

        if not response.is_success:
            logger.error(
                f"❌ Clinic cancel failed for booking {external_id}: "
                f"{response.status_code} {response.text}"
            )
            if response.status_code == 401:
                self.token_cache.invalidate()
            raise UpstreamHttpError(response.status_code, service="clinic", detail=response.text)

        logger.info(f"✅ Clinic booking {external_id} cancelled")


clinic_api_client = ClinicApiClient()
