from fastapi import Header, HTTPException
from typing import Optional
import hmac
import logging

from accounts.utils.config import settings

logger = logging.getLogger(__name__)


def _check_bearer(authorization: Optional[str], expected_token: str) -> str:

    if not authorization:
        raise HTTPException(
            status_code=401,
            detail="Authorization header required"
        )

    try:
        scheme, token = authorization.split()
    except ValueError:
        raise HTTPException(
            status_code=401,
            detail="Invalid authorization header format"
        )

    if scheme.lower() != 'bearer':
        raise HTTPException(
            status_code=401,
            detail="Invalid authentication scheme"
        )

    # An unset token disables the endpoint instead of accepting anything
    if not expected_token or not hmac.compare_digest(token, expected_token):
        logger.warning("Rejected request with invalid API token")
        raise HTTPException(
            status_code=401,
            detail="Unauthorized"
        )

    return token


async def verify_crm_token(authorization: Optional[str] = Header(None)) -> str:
    return _check_bearer(authorization, settings.CRM_API_TOKEN)


async def verify_admin_token(authorization: Optional[str] = Header(None)) -> str:
    return _check_bearer(authorization, settings.ADMIN_API_TOKEN)
