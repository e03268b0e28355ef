"""
Admin guard for the taxonomy and plugin administration routes.

When `settings.admin_token` is configured every admin request must carry it
in the X-Admin-Token header.
"""

import logging
import secrets

from fastapi import Header

from ectaxonomy.config import settings
from ectaxonomy.exceptions import AuthorizationError

logger = logging.getLogger(__name__)


async def require_admin(x_admin_token: str | None = Header(default=None)) -> None:
    expected = settings.admin_token
    if not expected:
        return
    if not x_admin_token or not secrets.compare_digest(x_admin_token, expected):
        logger.warning("Rejected admin request with missing or wrong token")
        raise AuthorizationError()
