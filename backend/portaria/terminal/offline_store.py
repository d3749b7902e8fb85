"""
Terminal-local offline store.

A small SQLite file next to the terminal that holds:
- carts sold while the backend was unreachable (offline_sales), replayed
  by OfflineSync once connectivity returns
- the last known ticket-type list and report snapshot (cached_payloads),
  so the sale screen keeps working offline

This runs outside any Flask app, so it owns its engine and sessions.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timedelta

from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text, create_engine, select
from sqlalchemy.orm import declarative_base, sessionmaker

from portaria.time_utils import utcnow


logger = logging.getLogger(__name__)

Base = declarative_base()

# Synced records older than this are deleted by clean_old_synced_sales
SYNCED_RETENTION = timedelta(days=7)

TICKET_TYPES_KEY = "ticket_types"
REPORT_KEY = "report"


class OfflineSaleRecord(Base):
    """
    One cart sold while offline.

    items is a JSON list of {"ticket_type_id", "quantity"}; the whole cart
    shares payment_method.
    """
    __tablename__ = "offline_sales"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True)
    timestamp = Column(DateTime, nullable=False, default=utcnow, index=True)
    items = Column(Text, nullable=False)
    payment_method = Column(String(16), nullable=False)
    synced = Column(Boolean, nullable=False, default=False, index=True)
    sync_attempts = Column(Integer, nullable=False, default=0)
    error = Column(Text, nullable=True)

    def item_list(self) -> list[dict]:
        return json.loads(self.items) if self.items else []

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
            "items": self.item_list(),
            "payment_method": self.payment_method,
            "synced": self.synced,
            "sync_attempts": self.sync_attempts,
            "error": self.error,
        }


class CachedPayload(Base):
    """Last known server response for a key (ticket types, report)."""
    __tablename__ = "cached_payloads"

    key = Column(String(64), primary_key=True)
    payload = Column(Text, nullable=False)
    cached_at = Column(DateTime, nullable=False, default=utcnow)


class OfflineStore:
    def __init__(self, path: str):
        self.path = path
        url = "sqlite://" if path == ":memory:" else f"sqlite:///{path}"
        self.engine = create_engine(url)
        Base.metadata.create_all(self.engine)
        self._sessions = sessionmaker(bind=self.engine, expire_on_commit=False)

    def close(self) -> None:
        self.engine.dispose()

    # -- offline sales -----------------------------------------------------

    def save_offline_sale(self, items: list[dict], payment_method: str, timestamp: datetime | None = None) -> int:
        """Queue a cart; returns its local id."""
        normalized = [
            {
                "ticket_type_id": int(item["ticket_type_id"]),
                "quantity": int(item["quantity"]),
            }
            for item in items
        ]
        record = OfflineSaleRecord(
            timestamp=timestamp or utcnow(),
            items=json.dumps(normalized),
            payment_method=payment_method,
            synced=False,
            sync_attempts=0,
        )
        with self._sessions() as session:
            session.add(record)
            session.commit()
            logger.info("Offline sale %s queued (%d items)", record.id, len(normalized))
            return record.id

    def get_unsynced_sales(self) -> list[OfflineSaleRecord]:
        """Pending carts, oldest first."""
        with self._sessions() as session:
            stmt = (
                select(OfflineSaleRecord)
                .where(OfflineSaleRecord.synced.is_(False))
                .order_by(OfflineSaleRecord.id.asc())
            )
            return list(session.scalars(stmt))

    def get_sale(self, sale_id: int) -> OfflineSaleRecord | None:
        with self._sessions() as session:
            return session.get(OfflineSaleRecord, sale_id)

    def mark_as_synced(self, sale_id: int) -> None:
        with self._sessions() as session:
            record = session.get(OfflineSaleRecord, sale_id)
            if record is None:
                return
            record.synced = True
            record.error = None
            session.commit()

    def update_sync_attempt(self, sale_id: int, error: str | None = None) -> None:
        with self._sessions() as session:
            record = session.get(OfflineSaleRecord, sale_id)
            if record is None:
                return
            record.sync_attempts = (record.sync_attempts or 0) + 1
            if error:
                record.error = error
            session.commit()

    def get_pending_sales_count(self) -> int:
        return len(self.get_unsynced_sales())

    def clean_old_synced_sales(self, now: datetime | None = None) -> int:
        """Delete synced carts older than the retention window; returns how many."""
        cutoff = (now or utcnow()) - SYNCED_RETENTION
        with self._sessions() as session:
            old = session.scalars(
                select(OfflineSaleRecord).where(
                    OfflineSaleRecord.synced.is_(True),
                    OfflineSaleRecord.timestamp < cutoff,
                )
            ).all()
            for record in old:
                session.delete(record)
            session.commit()
        if old:
            logger.info("Cleaned %d synced offline sales", len(old))
        return len(old)

    # -- cached server data --------------------------------------------------

    def _put(self, key: str, data) -> None:
        with self._sessions() as session:
            row = session.get(CachedPayload, key)
            if row is None:
                row = CachedPayload(key=key)
                session.add(row)
            row.payload = json.dumps(data)
            row.cached_at = utcnow()
            session.commit()

    def _get(self, key: str):
        with self._sessions() as session:
            row = session.get(CachedPayload, key)
            return json.loads(row.payload) if row else None

    def cache_ticket_types(self, ticket_types: list[dict]) -> None:
        self._put(TICKET_TYPES_KEY, ticket_types)

    def get_cached_ticket_types(self) -> list[dict] | None:
        return self._get(TICKET_TYPES_KEY)

    def cache_report_data(self, report: dict) -> None:
        self._put(REPORT_KEY, report)

    def get_cached_report_data(self) -> dict | None:
        return self._get(REPORT_KEY)
