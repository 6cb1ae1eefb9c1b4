"""Load venue fixtures (venues, plans, templates, amenities, reservations) from YAML."""

from __future__ import annotations

from datetime import date, datetime, time, timezone
from pathlib import Path
from typing import Any

import yaml

from venue_chat.log import get_logger
from venue_chat.storage.database import from_db_timestamp
from venue_chat.storage.models import Amenity, MessageTemplate, Plan, Reservation, Venue
from venue_chat.storage.venue_repo import VenueRepository

logger = get_logger(__name__)


def _as_datetime(value: Any) -> datetime:
    # PyYAML already turns unquoted timestamps into date/datetime objects
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, date):
        return datetime.combine(value, time(), tzinfo=timezone.utc)
    return from_db_timestamp(str(value))


async def seed_fixture(venues: VenueRepository, data: dict[str, Any]) -> dict[str, int]:
    """Insert every record of a parsed fixture; returns counts per section."""
    counts = {"venues": 0, "plans": 0, "templates": 0, "amenities": 0, "reservations": 0}

    for item in data.get("venues") or []:
        await venues.add_venue(Venue(**item))
        counts["venues"] += 1

    for item in data.get("plans") or []:
        await venues.add_plan(Plan(**item))
        counts["plans"] += 1

    for item in data.get("templates") or []:
        await venues.add_template(MessageTemplate(**item))
        counts["templates"] += 1

    for item in data.get("amenities") or []:
        item = dict(item)
        venue_ids = tuple(item.pop("venues", None) or ())
        plan_ids = tuple(item.pop("plans", None) or ())
        await venues.add_amenity(Amenity(**item), venue_ids=venue_ids, plan_ids=plan_ids)
        counts["amenities"] += 1

    for item in data.get("reservations") or []:
        item = dict(item)
        duration = item.pop("duration", None)
        await venues.add_reservation(
            Reservation(
                start=_as_datetime(item.pop("date")),
                duration=str(duration) if duration is not None else None,
                **item,
            )
        )
        counts["reservations"] += 1

    logger.info("fixture_seeded", **counts)
    return counts


async def seed_file(venues: VenueRepository, path: str | Path) -> dict[str, int]:
    fixture = Path(path)
    if not fixture.exists():
        raise FileNotFoundError(f"Fixture file not found: {fixture}")
    data = yaml.safe_load(fixture.read_text(encoding="utf-8")) or {}
    return await seed_fixture(venues, data)
