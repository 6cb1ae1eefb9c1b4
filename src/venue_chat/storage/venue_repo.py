"""Read access to venues and their plans, templates, amenities and reservations.

The admin CRUD layer owns these tables; the assistant only reads them. The
``add_*`` helpers exist for seeding fixtures.
"""

from __future__ import annotations

from dataclasses import asdict, fields
from typing import Any, Optional

from venue_chat.storage.database import Database, from_db_timestamp, to_db_timestamp
from venue_chat.storage.models import Amenity, MessageTemplate, Plan, Reservation, Venue

_PLAN_FLAGS = ("includes_food", "includes_beverages", "includes_overnight", "includes_rooms", "is_active")


class VenueRepository:
    def __init__(self, db: Database):
        self._db = db

    # -- reads ---------------------------------------------------------------

    async def get_venue(self, venue_id: str) -> Optional[Venue]:
        cursor = await self._db.conn.execute("SELECT * FROM venues WHERE id = ?", (venue_id,))
        row = await cursor.fetchone()
        return Venue(**dict(row)) if row else None

    async def list_active_plans(self, venue_id: str) -> list[Plan]:
        cursor = await self._db.conn.execute(
            "SELECT * FROM venue_plans WHERE venue_id = ? AND is_active = 1 ORDER BY rowid",
            (venue_id,),
        )
        return [self._row_to_plan(row) for row in await cursor.fetchall()]

    async def list_applicable_templates(self, venue_id: str) -> list[MessageTemplate]:
        """Active templates of the venue plus active global system templates."""
        cursor = await self._db.conn.execute(
            """SELECT * FROM message_templates
               WHERE is_active = 1
                 AND (venue_id = ? OR (venue_id IS NULL AND is_system = 1))
               ORDER BY rowid""",
            (venue_id,),
        )
        return [
            MessageTemplate(
                id=row["id"],
                venue_id=row["venue_id"],
                name=row["name"],
                content=row["content"],
                is_system=bool(row["is_system"]),
                is_active=bool(row["is_active"]),
            )
            for row in await cursor.fetchall()
        ]

    async def list_reservations(self, venue_id: str) -> list[Reservation]:
        cursor = await self._db.conn.execute(
            "SELECT * FROM accommodations WHERE venue_id = ?", (venue_id,)
        )
        return [
            Reservation(
                id=row["id"],
                venue_id=row["venue_id"],
                start=from_db_timestamp(row["date"]),
                duration=row["duration"],
                adults=row["adults"],
                children=row["children"],
            )
            for row in await cursor.fetchall()
        ]

    async def list_active_amenities(self, venue_id: str) -> list[Amenity]:
        cursor = await self._db.conn.execute(
            """SELECT a.* FROM amenities a
               JOIN venue_amenities va ON va.amenity_id = a.id
               WHERE va.venue_id = ? AND a.is_active = 1
               ORDER BY a.name""",
            (venue_id,),
        )
        return [self._row_to_amenity(row) for row in await cursor.fetchall()]

    async def list_amenities_for_plan(self, plan_id: str) -> list[Amenity]:
        cursor = await self._db.conn.execute(
            """SELECT a.* FROM amenities a
               JOIN plan_amenities pa ON pa.amenity_id = a.id
               WHERE pa.plan_id = ? AND a.is_active = 1
               ORDER BY a.name""",
            (plan_id,),
        )
        return [self._row_to_amenity(row) for row in await cursor.fetchall()]

    # -- seeding -------------------------------------------------------------

    async def add_venue(self, venue: Venue) -> None:
        await self._insert("venues", asdict(venue))

    async def add_plan(self, plan: Plan) -> None:
        await self._insert("venue_plans", asdict(plan))

    async def add_template(self, template: MessageTemplate) -> None:
        await self._insert("message_templates", asdict(template))

    async def add_amenity(
        self,
        amenity: Amenity,
        venue_ids: tuple[str, ...] = (),
        plan_ids: tuple[str, ...] = (),
    ) -> None:
        await self._insert("amenities", asdict(amenity), commit=False)
        for venue_id in venue_ids:
            await self._insert(
                "venue_amenities", {"venue_id": venue_id, "amenity_id": amenity.id}, commit=False
            )
        for plan_id in plan_ids:
            await self._insert(
                "plan_amenities", {"plan_id": plan_id, "amenity_id": amenity.id}, commit=False
            )
        await self._db.conn.commit()

    async def add_reservation(self, reservation: Reservation) -> None:
        await self._insert(
            "accommodations",
            {
                "id": reservation.id,
                "venue_id": reservation.venue_id,
                "date": to_db_timestamp(reservation.start),
                "duration": reservation.duration,
                "adults": reservation.adults,
                "children": reservation.children,
            },
        )

    async def _insert(self, table: str, values: dict[str, Any], commit: bool = True) -> None:
        columns = ", ".join(values)
        placeholders = ", ".join("?" for _ in values)
        await self._db.conn.execute(
            f"INSERT INTO {table} ({columns}) VALUES ({placeholders})",
            tuple(values.values()),
        )
        if commit:
            await self._db.conn.commit()

    @staticmethod
    def _row_to_plan(row) -> Plan:
        data = {f.name: row[f.name] for f in fields(Plan)}
        for flag in _PLAN_FLAGS:
            data[flag] = bool(data[flag])
        return Plan(**data)

    @staticmethod
    def _row_to_amenity(row) -> Amenity:
        return Amenity(
            id=row["id"],
            name=row["name"],
            description=row["description"],
            category=row["category"],
            is_active=bool(row["is_active"]),
        )
