"""Per-feature model provider selection (``ai_settings``)."""

from __future__ import annotations

from typing import Optional

from venue_chat.storage.database import Database, from_db_timestamp, to_db_timestamp
from venue_chat.storage.models import AISetting, utcnow


class SettingsRepository:
    def __init__(self, db: Database):
        self._db = db

    async def get_provider_code(self, feature: str) -> Optional[str]:
        cursor = await self._db.conn.execute(
            "SELECT provider_code FROM ai_settings WHERE setting_key = ?", (feature,)
        )
        row = await cursor.fetchone()
        return row["provider_code"] if row else None

    async def list_settings(self) -> list[AISetting]:
        cursor = await self._db.conn.execute("SELECT * FROM ai_settings ORDER BY setting_key")
        return [
            AISetting(
                setting_key=row["setting_key"],
                provider_code=row["provider_code"],
                model=row["model"],
                updated_at=from_db_timestamp(row["updated_at"]),
            )
            for row in await cursor.fetchall()
        ]

    async def save_setting(self, feature: str, provider_code: str, model: str) -> None:
        await self._db.conn.execute(
            """INSERT INTO ai_settings (setting_key, provider_code, model, updated_at)
               VALUES (?, ?, ?, ?)
               ON CONFLICT(setting_key)
               DO UPDATE SET provider_code = excluded.provider_code,
                             model = excluded.model,
                             updated_at = excluded.updated_at""",
            (feature, provider_code, model, to_db_timestamp(utcnow())),
        )
        await self._db.conn.commit()
