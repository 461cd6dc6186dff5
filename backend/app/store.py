"""Grant persistence boundary.

Routers talk to a ``GrantStore``; the bundled ``InMemoryGrantStore`` keeps
records in a dict and is what the API and tests run against.  Records are
plain dicts shaped like the ``grant`` schema.
"""

import logging
import threading
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Protocol, Tuple

from app.models.core import GrantStatus

logger = logging.getLogger(__name__)

GrantRecord = Dict[str, Any]


def new_id() -> str:
    """Collision-resistant id in CUID shape: ``c`` followed by 24 hex chars."""
    return "c" + uuid.uuid4().hex[:24]


class DuplicateGrantNumber(Exception):
    """Raised when a grant number is already taken."""


class GrantStore(Protocol):
    def list(
        self,
        *,
        search: Optional[str] = None,
        status: Optional[str] = None,
        agency_name: Optional[str] = None,
        principal_investigator_id: Optional[str] = None,
        start_date_from: Any = None,
        start_date_to: Any = None,
        limit: int = 50,
        cursor: Optional[str] = None,
    ) -> Tuple[List[GrantRecord], Optional[str]]: ...

    def get(self, grant_id: str) -> Optional[GrantRecord]: ...

    def get_by_number(self, grant_number: str) -> Optional[GrantRecord]: ...

    def create(self, data: Dict[str, Any]) -> GrantRecord: ...

    def update(self, grant_id: str, data: Dict[str, Any]) -> Optional[GrantRecord]: ...

    def delete(self, grant_id: str) -> bool: ...

    def stats(self, principal_investigator_id: Optional[str] = None) -> Dict[str, int]: ...


class InMemoryGrantStore:
    """Thread-safe dict-backed store, newest update first."""

    def __init__(self) -> None:
        self._grants: Dict[str, GrantRecord] = {}
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _ordered(self) -> List[GrantRecord]:
        return sorted(
            self._grants.values(),
            key=lambda g: (g["updated_at"], g["id"]),
            reverse=True,
        )

    def list(
        self,
        *,
        search: Optional[str] = None,
        status: Optional[str] = None,
        agency_name: Optional[str] = None,
        principal_investigator_id: Optional[str] = None,
        start_date_from: Any = None,
        start_date_to: Any = None,
        limit: int = 50,
        cursor: Optional[str] = None,
    ) -> Tuple[List[GrantRecord], Optional[str]]:
        """Filtered page of grants plus the id to resume from, if any.

        *search* matches title, grant number or agency, case-insensitively.
        The cursor record itself is the first item of the next page.
        """
        with self._lock:
            grants = self._ordered()

        if search:
            needle = search.lower()
            grants = [
                g
                for g in grants
                if needle in g["grant_title"].lower()
                or needle in g["grant_number_master"].lower()
                or needle in g["agency_name"].lower()
            ]
        if status:
            grants = [g for g in grants if g["status"] == status]
        if agency_name:
            grants = [g for g in grants if agency_name.lower() in g["agency_name"].lower()]
        if principal_investigator_id:
            grants = [
                g for g in grants if g["principal_investigator_id"] == principal_investigator_id
            ]
        if start_date_from is not None:
            grants = [g for g in grants if g["start_date"] >= start_date_from]
        if start_date_to is not None:
            grants = [g for g in grants if g["start_date"] <= start_date_to]

        if cursor:
            ids = [g["id"] for g in grants]
            grants = grants[ids.index(cursor):] if cursor in ids else []

        page = grants[: limit + 1]
        next_cursor = None
        if len(page) > limit:
            next_cursor = page.pop()["id"]
        return [dict(g) for g in page], next_cursor

    def get(self, grant_id: str) -> Optional[GrantRecord]:
        with self._lock:
            grant = self._grants.get(grant_id)
        return dict(grant) if grant else None

    def get_by_number(self, grant_number: str) -> Optional[GrantRecord]:
        with self._lock:
            for grant in self._grants.values():
                if grant["grant_number_master"] == grant_number:
                    return dict(grant)
        return None

    def stats(self, principal_investigator_id: Optional[str] = None) -> Dict[str, int]:
        with self._lock:
            grants = list(self._grants.values())
        if principal_investigator_id:
            grants = [
                g for g in grants if g["principal_investigator_id"] == principal_investigator_id
            ]

        def count(status: GrantStatus) -> int:
            return sum(1 for g in grants if g["status"] == status.value)

        return {
            "total_grants": len(grants),
            "active_grants": count(GrantStatus.ACTIVE),
            "draft_grants": count(GrantStatus.DRAFT),
            "closed_grants": count(GrantStatus.CLOSED),
        }

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create(self, data: Dict[str, Any]) -> GrantRecord:
        now = datetime.now(timezone.utc)
        record = {
            "current_year_number": 1,
            "description": None,
            **data,
            "id": new_id(),
            "created_at": now,
            "updated_at": now,
        }
        with self._lock:
            if any(
                g["grant_number_master"] == record["grant_number_master"]
                for g in self._grants.values()
            ):
                raise DuplicateGrantNumber(record["grant_number_master"])
            self._grants[record["id"]] = record
        logger.info("Created grant %s (%s)", record["id"], record["grant_number_master"])
        return dict(record)

    def update(self, grant_id: str, data: Dict[str, Any]) -> Optional[GrantRecord]:
        with self._lock:
            grant = self._grants.get(grant_id)
            if grant is None:
                return None
            number = data.get("grant_number_master")
            if number is not None and any(
                g["grant_number_master"] == number and g["id"] != grant_id
                for g in self._grants.values()
            ):
                raise DuplicateGrantNumber(number)
            grant.update(data)
            grant["updated_at"] = datetime.now(timezone.utc)
            result = dict(grant)
        logger.info("Updated grant %s: %s", grant_id, sorted(data))
        return result

    def delete(self, grant_id: str) -> bool:
        with self._lock:
            removed = self._grants.pop(grant_id, None)
        if removed is not None:
            logger.info("Deleted grant %s", grant_id)
        return removed is not None
