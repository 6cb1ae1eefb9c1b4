"""Estimate persistence (insert-only from the assistant's side)."""

from __future__ import annotations

import uuid
from datetime import date
from typing import Optional

from venue_chat.log import get_logger
from venue_chat.storage.database import Database, from_db_timestamp, to_db_timestamp
from venue_chat.storage.models import Estimate

logger = get_logger(__name__)


class EstimateRepository:
    def __init__(self, db: Database):
        self._db = db

    async def create(self, estimate: Estimate) -> Estimate:
        estimate.id = estimate.id or str(uuid.uuid4())
        await self._db.conn.execute(
            """INSERT INTO estimates
               (id, venue_id, plan_id, customer_name, contact_type, contact_value,
                check_in, check_out, adults, children, calculated_price, notes,
                conversation_id, status, created_by, created_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                estimate.id,
                estimate.venue_id,
                estimate.plan_id,
                estimate.customer_name,
                estimate.contact_type,
                estimate.contact_value,
                estimate.check_in.isoformat() if estimate.check_in else None,
                estimate.check_out.isoformat() if estimate.check_out else None,
                estimate.adults,
                estimate.children,
                estimate.calculated_price,
                estimate.notes,
                estimate.conversation_id,
                estimate.status,
                estimate.created_by,
                to_db_timestamp(estimate.created_at),
            ),
        )
        await self._db.conn.commit()
        logger.info(
            "estimate_created",
            estimate_id=estimate.id,
            venue_id=estimate.venue_id,
            conversation_id=estimate.conversation_id,
        )
        return estimate

    async def get(self, estimate_id: str) -> Optional[Estimate]:
        cursor = await self._db.conn.execute("SELECT * FROM estimates WHERE id = ?", (estimate_id,))
        row = await cursor.fetchone()
        return self._row_to_estimate(row) if row else None

    async def list_for_conversation(self, conversation_id: str) -> list[Estimate]:
        cursor = await self._db.conn.execute(
            "SELECT * FROM estimates WHERE conversation_id = ? ORDER BY created_at",
            (conversation_id,),
        )
        return [self._row_to_estimate(row) for row in await cursor.fetchall()]

    @staticmethod
    def _row_to_estimate(row) -> Estimate:
        return Estimate(
            id=row["id"],
            venue_id=row["venue_id"],
            plan_id=row["plan_id"],
            customer_name=row["customer_name"],
            contact_type=row["contact_type"],
            contact_value=row["contact_value"],
            check_in=date.fromisoformat(row["check_in"]) if row["check_in"] else None,
            check_out=date.fromisoformat(row["check_out"]) if row["check_out"] else None,
            adults=row["adults"],
            children=row["children"],
            calculated_price=row["calculated_price"],
            notes=row["notes"],
            conversation_id=row["conversation_id"],
            status=row["status"],
            created_by=row["created_by"],
            created_at=from_db_timestamp(row["created_at"]),
        )
