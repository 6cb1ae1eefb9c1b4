"""SQLite database connection manager with schema migration."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import aiosqlite

from venue_chat.log import get_logger

logger = get_logger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS venues (
    id                  TEXT PRIMARY KEY,
    name                TEXT NOT NULL,
    address             TEXT,
    city                TEXT,
    department          TEXT,
    address_reference   TEXT,
    wifi_ssid           TEXT,
    wifi_password       TEXT,
    whatsapp            TEXT,
    instagram           TEXT,
    venue_info          TEXT,
    delivery_info       TEXT,
    waze_link           TEXT,
    google_maps_link    TEXT
);

CREATE TABLE IF NOT EXISTS venue_plans (
    id                  TEXT PRIMARY KEY,
    venue_id            TEXT NOT NULL REFERENCES venues(id),
    name                TEXT NOT NULL,
    plan_type           TEXT,
    description         TEXT,
    adult_price         REAL,
    child_price         REAL,
    min_guests          INTEGER,
    max_capacity        INTEGER,
    check_in_time       TEXT,
    check_out_time      TEXT,
    includes_food       INTEGER NOT NULL DEFAULT 0,
    food_description    TEXT,
    food_almuerzo       TEXT,
    food_cena           TEXT,
    includes_beverages  INTEGER NOT NULL DEFAULT 0,
    includes_overnight  INTEGER NOT NULL DEFAULT 0,
    includes_rooms      INTEGER NOT NULL DEFAULT 0,
    is_active           INTEGER NOT NULL DEFAULT 1
);

CREATE INDEX IF NOT EXISTS idx_plans_venue ON venue_plans(venue_id, is_active);

CREATE TABLE IF NOT EXISTS message_templates (
    id          TEXT PRIMARY KEY,
    venue_id    TEXT REFERENCES venues(id),
    name        TEXT NOT NULL,
    content     TEXT NOT NULL,
    is_system   INTEGER NOT NULL DEFAULT 0,
    is_active   INTEGER NOT NULL DEFAULT 1
);

CREATE TABLE IF NOT EXISTS amenities (
    id          TEXT PRIMARY KEY,
    name        TEXT NOT NULL,
    description TEXT,
    category    TEXT,
    is_active   INTEGER NOT NULL DEFAULT 1
);

CREATE TABLE IF NOT EXISTS venue_amenities (
    venue_id    TEXT NOT NULL REFERENCES venues(id),
    amenity_id  TEXT NOT NULL REFERENCES amenities(id),
    PRIMARY KEY (venue_id, amenity_id)
);

CREATE TABLE IF NOT EXISTS plan_amenities (
    plan_id     TEXT NOT NULL REFERENCES venue_plans(id),
    amenity_id  TEXT NOT NULL REFERENCES amenities(id),
    PRIMARY KEY (plan_id, amenity_id)
);

CREATE TABLE IF NOT EXISTS accommodations (
    id          TEXT PRIMARY KEY,
    venue_id    TEXT NOT NULL REFERENCES venues(id),
    date        TEXT NOT NULL,
    duration    TEXT,
    adults      INTEGER NOT NULL DEFAULT 0,
    children    INTEGER NOT NULL DEFAULT 0
);

CREATE INDEX IF NOT EXISTS idx_accommodations_venue ON accommodations(venue_id);

CREATE TABLE IF NOT EXISTS chat_conversations (
    id          TEXT PRIMARY KEY,
    venue_id    TEXT NOT NULL,
    source      TEXT NOT NULL DEFAULT 'web',
    external_id TEXT,
    phone       TEXT,
    name        TEXT,
    created_at  TEXT NOT NULL,
    updated_at  TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_conversations_venue
    ON chat_conversations(venue_id, updated_at);

CREATE TABLE IF NOT EXISTS chat_messages (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    conversation_id TEXT    NOT NULL REFERENCES chat_conversations(id),
    role            TEXT    NOT NULL CHECK(role IN ('user','assistant')),
    content         TEXT    NOT NULL,
    provider        TEXT,
    model           TEXT,
    tokens_used     INTEGER,
    tools_used      TEXT    NOT NULL DEFAULT '[]',
    created_at      TEXT    NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_messages_conversation
    ON chat_messages(conversation_id, created_at);

CREATE TABLE IF NOT EXISTS tool_invocations (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    conversation_id TEXT NOT NULL REFERENCES chat_conversations(id),
    tool_name       TEXT NOT NULL,
    created_at      TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_tool_invocations_window
    ON tool_invocations(conversation_id, tool_name, created_at);

CREATE TABLE IF NOT EXISTS estimates (
    id                  TEXT PRIMARY KEY,
    venue_id            TEXT NOT NULL,
    plan_id             TEXT,
    customer_name       TEXT NOT NULL,
    contact_type        TEXT NOT NULL,
    contact_value       TEXT NOT NULL DEFAULT '',
    check_in            TEXT,
    check_out           TEXT,
    adults              INTEGER NOT NULL DEFAULT 0,
    children            INTEGER NOT NULL DEFAULT 0,
    calculated_price    REAL,
    notes               TEXT,
    conversation_id     TEXT,
    status              TEXT NOT NULL DEFAULT 'pending',
    created_by          TEXT NOT NULL,
    created_at          TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS ai_settings (
    setting_key     TEXT PRIMARY KEY,
    provider_code   TEXT NOT NULL,
    model           TEXT NOT NULL,
    updated_at      TEXT NOT NULL
);
"""

_TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%f"


def to_db_timestamp(value: datetime) -> str:
    """Format a datetime as a sortable UTC string."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime(_TIMESTAMP_FORMAT)


def from_db_timestamp(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class Database:
    """Async SQLite database manager."""

    def __init__(self, db_path: str):
        self._db_path = db_path
        self._conn: aiosqlite.Connection | None = None

    async def initialize(self) -> None:
        """Open connection and run migrations."""
        if self._db_path != ":memory:":
            Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
        self._conn = await aiosqlite.connect(self._db_path)
        self._conn.row_factory = aiosqlite.Row
        await self._conn.execute("PRAGMA journal_mode=WAL")
        await self._conn.execute("PRAGMA foreign_keys=ON")
        await self._conn.executescript(SCHEMA_SQL)
        await self._conn.commit()
        logger.info("database_initialized", path=self._db_path)

    @property
    def conn(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise RuntimeError("Database not initialized. Call initialize() first.")
        return self._conn

    async def close(self) -> None:
        if self._conn:
            await self._conn.close()
            self._conn = None
            logger.info("database_closed")
