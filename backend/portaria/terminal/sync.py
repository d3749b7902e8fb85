"""
Offline sale queue and replay.

While the backend is unreachable, carts are recorded in the local
OfflineStore. When connectivity returns they are replayed one cart at a
time, one ticket at a time, as tickets.create calls.

A cart is marked synced only after every ticket in it was created. A cart
that fails midway stays pending; replaying it again re-creates the tickets
that already went through (there is no idempotency key on tickets.create).
"""

from __future__ import annotations

import logging
import threading

import httpx

from .offline_store import OfflineStore
from .rpc_client import OFFLINE_CUSTOMER_NAME, RpcClient, RpcClientError


logger = logging.getLogger(__name__)


class OfflineSync:
    def __init__(self, client: RpcClient, store: OfflineStore, online: bool = True):
        self.client = client
        self.store = store
        self.online = online
        self._sync_lock = threading.Lock()

    @property
    def is_syncing(self) -> bool:
        return self._sync_lock.locked()

    def is_online(self) -> bool:
        """Probe system.health and remember the answer."""
        try:
            self.client.health()
        except (httpx.TransportError, RpcClientError) as exc:
            logger.info("Backend unreachable: %s", exc)
            self.online = False
        else:
            self.online = True
        return self.online

    def refresh_cache(self) -> None:
        """Cache ticket types and stats for offline use. Best-effort."""
        try:
            self.store.cache_ticket_types(self.client.list_ticket_types())
            self.store.cache_report_data(self.client.stats())
        except (httpx.TransportError, RpcClientError) as exc:
            logger.warning("Could not refresh offline cache: %s", exc)

    def ticket_types(self) -> list[dict]:
        """Live ticket types, falling back to the cached list while offline."""
        try:
            types = self.client.list_ticket_types()
        except httpx.TransportError:
            self.online = False
            return self.store.get_cached_ticket_types() or []
        self.store.cache_ticket_types(types)
        return types

    def sell(self, items: list[dict], payment_method: str, customer_name: str = OFFLINE_CUSTOMER_NAME, **customer) -> dict:
        """
        Sell a cart of {"ticket_type_id", "quantity"} items.

        Returns {"tickets": [...created...], "offlineSaleId": id or None}.
        When the backend is unreachable, the units not yet created are queued
        as one offline sale. RPC errors (bad input, missing type) propagate
        with the tickets already created attached as `exc.created`.
        """
        units = [
            item["ticket_type_id"]
            for item in items
            for _ in range(int(item["quantity"]))
        ]
        created: list[dict] = []

        if self.online:
            try:
                for ticket_type_id in units:
                    created.append(self.client.create_ticket(
                        ticket_type_id, payment_method, customer_name=customer_name, **customer
                    ))
                return {"tickets": created, "offlineSaleId": None}
            except RpcClientError as exc:
                exc.created = created
                raise
            except httpx.TransportError as exc:
                logger.warning("Backend unreachable during sale, queueing offline: %s", exc)
                self.online = False

        remaining = units[len(created):]
        counts: dict[int, int] = {}
        for ticket_type_id in remaining:
            counts[ticket_type_id] = counts.get(ticket_type_id, 0) + 1
        sale_id = self.store.save_offline_sale(
            [
                {"ticket_type_id": type_id, "quantity": qty}
                for type_id, qty in counts.items()
            ],
            payment_method,
        )
        return {"tickets": created, "offlineSaleId": sale_id}

    def sync_offline_sales(self) -> dict | None:
        """
        Replay every pending cart. Returns {"synced", "failed", "pending"}.

        No-op (returns None) while offline or while another sync is running.
        """
        if not self.online:
            return None
        if not self._sync_lock.acquire(blocking=False):
            logger.info("Sync already running, skipping")
            return None

        synced = failed = 0
        try:
            pending = self.store.get_unsynced_sales()
            logger.info("Starting sync of %d offline sales", len(pending))

            for sale in pending:
                try:
                    for item in sale.item_list():
                        for _ in range(item["quantity"]):
                            self.client.create_ticket(
                                item["ticket_type_id"],
                                sale.payment_method,
                                customer_name=OFFLINE_CUSTOMER_NAME,
                            )
                except (httpx.TransportError, RpcClientError) as exc:
                    failed += 1
                    logger.error("Offline sale %s failed to sync: %s", sale.id, exc)
                    self.store.update_sync_attempt(sale.id, str(exc) or exc.__class__.__name__)
                    if isinstance(exc, httpx.TransportError):
                        self.online = False
                        break
                    continue

                self.store.mark_as_synced(sale.id)
                synced += 1
                logger.info("Offline sale %s synced", sale.id)

            self.store.clean_old_synced_sales()
        finally:
            self._sync_lock.release()

        return {"synced": synced, "failed": failed, "pending": self.store.get_pending_sales_count()}

    def on_connectivity_change(self, online: bool) -> dict | None:
        """Record a connectivity change; coming back online triggers a sync."""
        was_online = self.online
        self.online = online
        if online and not was_online:
            logger.info("Connection restored")
        elif not online and was_online:
            logger.info("Connection lost")

        if online and self.store.get_pending_sales_count() > 0:
            return self.sync_offline_sales()
        return None
