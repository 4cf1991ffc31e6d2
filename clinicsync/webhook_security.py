"""
Webhook Security Module

Shared-secret verification for inbound n8n webhooks. The secret travels in the
x-api-key header and is compared in constant time.
"""

import hmac
import logging
from typing import Optional

from fastapi import HTTPException, Request

from . import config

logger = logging.getLogger(__name__)

API_KEY_HEADER = "x-api-key"


def constant_time_compare(a: Optional[str], b: Optional[str]) -> bool:
    """
    Compare two strings in constant time to prevent timing attacks.
    Empty values never match, so an unset secret cannot be satisfied by an empty header.
    """
    if not a or not b:
        return False
    return hmac.compare_digest(a.encode("utf-8"), b.encode("utf-8"))


def verify_shared_secret(request: Request, secret: Optional[str]) -> None:
    """
    Raise 401 unless the request carries the expected API key.

    A missing secret in configuration rejects everything instead of leaving the
    endpoint open.
    """
    if not secret:
        logger.error("❌ N8N_WEBHOOK_SECRET is not configured; rejecting webhook")
        raise HTTPException(status_code=401, detail="Unauthorized")

    received = request.headers.get(API_KEY_HEADER)
    if not received:
        logger.warning(f"🚫 Webhook without {API_KEY_HEADER} header from {request.client}")
        raise HTTPException(status_code=401, detail="Unauthorized")

    if not constant_time_compare(received, secret):
        logger.warning("🚫 Webhook API key mismatch")
        raise HTTPException(status_code=401, detail="Unauthorized")


async def require_n8n_api_key(request: Request) -> None:
    """FastAPI dependency guarding the n8n webhook routes"""
    verify_shared_secret(request, config.N8N_WEBHOOK_SECRET)
