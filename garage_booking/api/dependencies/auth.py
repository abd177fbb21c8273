"""
Request context dependency.

Authentication happens upstream: the auth gateway verifies the caller and
forwards who they are as headers. Applications with a different auth
front can override ``get_request_context`` via ``app.dependency_overrides``.
"""

import logging
from typing import List, Optional

from fastapi import Header, HTTPException, status

from ...core.config import settings
from ...principal import RequestContext

logger = logging.getLogger(__name__)

USER_ID_HEADER = "X-User-Id"
PERMISSIONS_HEADER = "X-User-Permissions"
GARAGE_IDS_HEADER = "X-Garage-Ids"


def _split_header(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


def get_request_context(
    x_user_id: Optional[str] = Header(None, alias=USER_ID_HEADER),
    x_user_permissions: Optional[str] = Header(None, alias=PERMISSIONS_HEADER),
    x_garage_ids: Optional[str] = Header(None, alias=GARAGE_IDS_HEADER),
) -> RequestContext:
    """Build the caller's RequestContext from gateway headers."""
    if not settings.trust_gateway_headers:
        logger.error("Gateway headers are not trusted and no request context override is set")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"message": "Unauthenticated", "code": "UNAUTHENTICATED"},
        )
    user_id = (x_user_id or "").strip()
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"message": "Unauthenticated", "code": "UNAUTHENTICATED"},
        )
    return RequestContext.build(
        user_id=user_id,
        permissions=_split_header(x_user_permissions),
        garage_ids=_split_header(x_garage_ids),
    )
