"""
Clinic API authentication
Obtains and caches the OAuth2 client-credentials bearer token
"""

import asyncio
import logging
import time
from typing import Callable, Optional

import httpx
from pydantic import ValidationError

from .. import config
from ..errors import ContractValidationError, UpstreamAuthError, UpstreamHttpError
from .clinic_schemas import ClinicToken

logger = logging.getLogger(__name__)


class ClinicTokenCache:
    """
    Process-wide bearer token cache.

    Holds {token, expires_at} behind an asyncio.Lock so concurrent callers that
    find the token expired wait for a single refresh instead of each issuing one.
    The lock is created on first use and again whenever the running event loop
    changes, as the global instance can outlive a loop.
    """

    def __init__(
        self,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.transport = transport
        self.clock = clock
        self._token: Optional[str] = None
        self._expires_at: float = 0.0
        self._lock: Optional[asyncio.Lock] = None
        self._lock_loop: Optional[asyncio.AbstractEventLoop] = None

    def _is_valid(self) -> bool:
        return self._token is not None and self.clock() < self._expires_at

    def _get_lock(self) -> asyncio.Lock:
        loop = asyncio.get_running_loop()
        if self._lock is None or self._lock_loop is not loop:
            self._lock = asyncio.Lock()
            self._lock_loop = loop
        return self._lock

    def invalidate(self) -> None:
        """Drop the cached token so the next call fetches a fresh one"""
        self._token = None
        self._expires_at = 0.0

    async def get_access_token(self) -> str:
        if self._is_valid():
            return self._token

        async with self._get_lock():
            # Another caller may have refreshed while we waited
            if self._is_valid():
                return self._token
            return await self._refresh()

    async def _refresh(self) -> str:
        settings = config.require_settings(
            CLINIC_API_URL=config.CLINIC_API_URL,
            CLINIC_CLIENT_ID=config.CLINIC_CLIENT_ID,
            CLINIC_CLIENT_SECRET=config.CLINIC_CLIENT_SECRET,
        )
        url = f"{settings['CLINIC_API_URL'].rstrip('/')}/oauth/v1/token"

        logger.info("🔄 Requesting new clinic API access token...")
        async with httpx.AsyncClient(
            transport=self.transport, timeout=config.CLINIC_HTTP_TIMEOUT
        ) as client:
            try:
                response = await client.post(
                    url,
                    auth=(settings["CLINIC_CLIENT_ID"], settings["CLINIC_CLIENT_SECRET"]),
                    data={"grant_type": "client_credentials"},
                    headers={"Cache-Control": "no-store"},
                )
            except httpx.TransportError as e:
                logger.error(f"❌ Clinic token endpoint unreachable: {e}")
                raise UpstreamHttpError(None, service="clinic-auth", detail=str(e)) from e

        if not response.is_success:
            logger.error(f"❌ Clinic token request failed: {response.status_code} {response.text}")
            raise UpstreamAuthError(response.status_code, response.text)

        try:
            token = ClinicToken.model_validate(response.json())
        except (ValidationError, ValueError) as e:
            logger.error(f"❌ Clinic token response failed contract validation: {e}")
            raise ContractValidationError("Unexpected clinic token response") from e

        ttl = token.expires_in or config.CLINIC_TOKEN_DEFAULT_TTL
        self._token = token.access_token
        self._expires_at = self.clock() + ttl - config.CLINIC_TOKEN_SAFETY_MARGIN

        logger.info(f"✅ Clinic access token cached (ttl={ttl}s)")
        return self._token


# Global instance shared by every request in the process
clinic_token_cache = ClinicTokenCache()
