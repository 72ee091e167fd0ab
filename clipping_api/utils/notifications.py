from datetime import datetime, timezone
from typing import List, Optional

from fastapi.logger import logger
from httpx import AsyncClient, HTTPError
from httpx import Response as HTTPXResponse

from ..crud import site_polygons as site_polygons_crud
from ..crud import sites as sites_crud
from ..errors import RecordNotFoundError
from ..settings.globals import EMAIL_SERVICE_URL, SERVICE_ACCOUNT_TOKEN

CLIPPING_COMPLETE_TEMPLATE = "polygonClippingComplete"


async def send_clipping_complete_email(
    user_id: int,
    site_uuid: Optional[str],
    polygon_uuids: List[str],
    completed_at: datetime,
    site_polygon_store=site_polygons_crud,
    site_store=sites_crud,
) -> bool:
    """Ask the email service to tell the user their polygons were clipped.

    Only single site runs are announced. Returns True if the email was
    handed over.
    """
    if not EMAIL_SERVICE_URL:
        logger.warning("EMAIL_SERVICE_URL is not set, skipping clipping email")
        return False

    if site_uuid is None and polygon_uuids:
        site_polygons = await site_polygon_store.get_active_site_polygons(
            polygon_uuids
        )
        site_uuids = {sp.site_id for sp in site_polygons if sp.site_id is not None}
        if len(site_uuids) != 1:
            logger.warning(
                f"Skipping email: polygons span {len(site_uuids)} sites "
                "(email only sent for single-site operations)"
            )
            return False
        site_uuid = site_uuids.pop()

    if site_uuid is None:
        logger.error("Could not determine site UUID for clipping email")
        return False

    try:
        site = await site_store.get_site(site_uuid)
    except RecordNotFoundError:
        logger.error(f"Site not found [{site_uuid}]")
        return False

    completed_utc = completed_at.astimezone(timezone.utc)
    payload = {
        "template": CLIPPING_COMPLETE_TEMPLATE,
        "userId": user_id,
        "replacements": {
            "{siteName}": site.name or "Unknown Site",
            "{time}": completed_utc.strftime("%H:%M GMT"),
        },
        "additionalValues": {
            "link": f"/site/{site.uuid}",
            "transactional": "transactional",
        },
    }
    headers = {"Authorization": f"Bearer {SERVICE_ACCOUNT_TOKEN}"}

    async with AsyncClient() as client:
        response: HTTPXResponse = await client.post(
            EMAIL_SERVICE_URL, json=payload, headers=headers, timeout=10.0
        )

    if response.status_code >= 300:
        raise HTTPError(
            f"Email service responded with {response.status_code}: {response.text}"
        )

    logger.info(
        f"Sent polygon clipping complete email to user {user_id} for site {site_uuid}"
    )
    return True
