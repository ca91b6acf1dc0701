"""HTTP client for the member roster published by the parliament."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional
import json
import logging

import httpx

from ..core.types import MemberRecord

LOGGER = logging.getLogger(__name__)


class RosterClientError(RuntimeError):
    """Raised when the member roster cannot be fetched or understood."""


class RosterClient:
    """Minimal client for downloading the member roster as JSON."""

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        *,
        members_path: str = "/members",
        timeout: float = 30.0,
        max_retries: int = 3,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._members_path = "/" + members_path.lstrip("/")
        self._max_retries = max(1, max_retries)
        self._client = httpx.Client(timeout=timeout)

    # --- public API -----------------------------------------------------
    def fetch_members(self) -> List[MemberRecord]:
        """Download the complete roster."""

        data = self._request("GET", self._members_path)
        return parse_roster(data)

    def close(self) -> None:
        """Close the underlying HTTP client."""

        self._client.close()

    def __enter__(self) -> "RosterClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # --- helpers --------------------------------------------------------
    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    def _request(self, method: str, path: str, params: Optional[Dict[str, str]] = None) -> Any:
        url = f"{self._base_url}{path}"
        last_exc: Optional[Exception] = None
        error_message: Optional[str] = None
        for attempt in range(1, self._max_retries + 1):
            try:
                response = self._client.request(method, url, headers=self._headers(), params=params)
                response.raise_for_status()
                return response.json()
            except httpx.HTTPStatusError as exc:  # pragma: no cover - network errors are rare in tests
                last_exc = exc
                status = exc.response.status_code
                LOGGER.warning("Roster endpoint returned status %s for %s %s", status, method, url)
                if status in (401, 403):
                    error_message = (
                        f"The roster endpoint refused access with status {status}. "
                        "Check the configured API key."
                    )
                    break
                if status == 404:
                    error_message = f"The roster endpoint {url} does not exist (status 404)."
                    break
                error_message = f"The roster endpoint rejected the request with status {status}."
            except httpx.HTTPError as exc:  # pragma: no cover - network errors are rare in tests
                last_exc = exc
                LOGGER.warning(
                    "HTTP error while requesting %s %s (attempt %s/%s): %s",
                    method,
                    url,
                    attempt,
                    self._max_retries,
                    exc,
                )
            except ValueError as exc:
                raise RosterClientError(f"Roster endpoint {url} did not return JSON") from exc
        if error_message:
            raise RosterClientError(error_message) from last_exc
        raise RosterClientError(f"Failed to request {url}") from last_exc


def _parse_member(entry: Dict[str, Any]) -> MemberRecord:
    name = entry.get("name") or entry.get("nama")
    constituency = entry.get("constituency") or entry.get("kawasan")
    if not name or not constituency:
        raise RosterClientError(f"Roster entry is missing a name or constituency: {entry!r}")
    raw_id = entry.get("id") or entry.get("mpId")
    party = entry.get("party") or entry.get("parti")
    return MemberRecord(
        id=str(raw_id) if raw_id else "",
        name=str(name).strip(),
        constituency=str(constituency).strip(),
        party=str(party).strip() if party else None,
    )


def parse_roster(data: Any) -> List[MemberRecord]:
    """Convert a roster payload (a list or ``{"members": [...]}``) to records."""

    if isinstance(data, dict):
        data = data.get("members") or data.get("data") or []
    if not isinstance(data, list):
        raise RosterClientError("Roster payload must be a list of members")
    return [_parse_member(entry) for entry in data]


def load_roster_file(path: Path) -> List[MemberRecord]:
    """Read a roster from a local JSON file."""

    with path.open("r", encoding="utf8") as fh:
        return parse_roster(json.load(fh))


__all__ = ["RosterClient", "RosterClientError", "load_roster_file", "parse_roster"]
