from __future__ import annotations

from typing import Any

import httpx
import structlog
from pydantic import ValidationError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from .engine.errors import RosterSyncError
from .schemas import CoachContact, CoachProfile

logger = structlog.get_logger(__name__)

RETRY_CONFIG = {
    "stop": stop_after_attempt(3),
    "wait": wait_exponential(multiplier=0.5, min=0.5, max=5),
    "retry": retry_if_exception_type((httpx.NetworkError, httpx.TimeoutException)),
    "reraise": True,
}


def coach_from_roster_row(row: dict[str, Any]) -> CoachProfile:
    """Map an accounts-service profile row onto a directory entry."""
    contact = row.get("contact") if isinstance(row.get("contact"), dict) else {}
    email = contact.get("email") or row.get("email")
    phone = contact.get("phone") or row.get("phone")
    name = row.get("name") or row.get("full_name") or email or "Coach"
    return CoachProfile(
        id=str(row["id"]),
        name=name,
        specialization=row.get("specialization") or "General Training",
        experience=row.get("experience") or "Professional",
        rating=row.get("rating") or 0.0,
        languages=list(row.get("languages") or []),
        certifications=list(row.get("certifications") or []),
        contact=CoachContact(phone=phone or "Not provided", email=email or "No email"),
        joined_at=row.get("joined_at") or row.get("created_at"),
    )


class RosterSyncClient:
    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = httpx.Timeout(connect=min(timeout, 5.0), read=timeout, write=timeout, pool=timeout)
        self._transport = transport

    @retry(**RETRY_CONFIG)
    async def _get(self, url: str, params: dict[str, str]) -> httpx.Response:
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            return await client.get(url, params=params, follow_redirects=True)

    async def fetch_coaches(self) -> list[CoachProfile]:
        url = f"{self._base_url}/profiles"
        try:
            resp = await self._get(url, {"role": "coach"})
        except httpx.HTTPError as exc:
            logger.warning("roster_fetch_failed", url=url, error=str(exc))
            raise RosterSyncError("Failed to fetch coach roster") from exc

        if resp.status_code >= 400:
            logger.warning(
                "roster_fetch_bad_status",
                url=url,
                status_code=resp.status_code,
                body=resp.text[:200],
            )
            raise RosterSyncError(f"Roster service responded with {resp.status_code}")

        try:
            data = resp.json()
        except ValueError as exc:
            logger.warning("roster_fetch_invalid_json", url=url, error=str(exc))
            raise RosterSyncError("Invalid roster response") from exc

        rows = data.get("items") if isinstance(data, dict) else data
        if not isinstance(rows, list):
            raise RosterSyncError("Invalid roster response")

        coaches: list[CoachProfile] = []
        for row in rows:
            if not isinstance(row, dict) or not row.get("id"):
                continue
            if row.get("role", "coach") != "coach":
                continue
            try:
                coaches.append(coach_from_roster_row(row))
            except ValidationError as exc:
                logger.warning("roster_row_skipped", coach_id=row.get("id"), error=str(exc))
        logger.info("roster_fetched", url=url, coaches=len(coaches))
        return coaches
