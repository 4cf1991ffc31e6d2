"""
n8n Orchestrator Service
Posts rendered confirmation messages to the automation workflow
"""

import logging
from typing import Optional

import httpx

from .. import config
from ..errors import UpstreamHttpError

logger = logging.getLogger(__name__)


class OrchestratorClient:
    """Outbound side of the n8n integration"""

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.transport = transport

    async def dispatch(self, bookings: list[dict]) -> None:
        """
        POST {"bookings": [...]} to the orchestrator webhook.

        A 2xx only means n8n accepted the batch, not that any message was delivered.

        Raises:
            ConfigurationError: N8N_WEBHOOK_URL or N8N_WEBHOOK_SECRET missing
            UpstreamHttpError: Orchestrator answered with a non-success status
        """
        settings = config.require_settings(
            N8N_WEBHOOK_URL=config.N8N_WEBHOOK_URL,
            N8N_WEBHOOK_SECRET=config.N8N_WEBHOOK_SECRET,
        )

        logger.info(f"🚀 Dispatching {len(bookings)} confirmation(s) to n8n")
        async with httpx.AsyncClient(
            transport=self.transport, timeout=config.CLINIC_HTTP_TIMEOUT
        ) as client:
            try:
                response = await client.post(
                    settings["N8N_WEBHOOK_URL"],
                    json={"bookings": bookings},
                    headers={"x-api-key": settings["N8N_WEBHOOK_SECRET"]},
                )
            except httpx.TransportError as e:
                logger.error(f"❌ n8n unreachable: {e}")
                raise UpstreamHttpError(None, service="n8n", detail=str(e)) from e

        if not response.is_success:
            logger.error(f"❌ n8n rejected dispatch: {response.status_code} {response.text}")
            raise UpstreamHttpError(response.status_code, service="n8n", detail=response.text)

        logger.info("✅ n8n accepted the dispatch batch")


orchestrator_client = OrchestratorClient()
