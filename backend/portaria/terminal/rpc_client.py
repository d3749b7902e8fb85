"""
HTTP client for the backend RPC endpoint (/api/trpc/<procedure>).

RPC failures raise RpcClientError(message, code). Network failures are
left as httpx.TransportError so callers can tell "server said no" apart
from "server unreachable".
"""

from __future__ import annotations

import json
import logging
import time

import httpx


logger = logging.getLogger(__name__)

OFFLINE_CUSTOMER_NAME = "Cliente (Venda Offline)"


class RpcClientError(Exception):
    def __init__(self, message: str, code: str = "INTERNAL_SERVER_ERROR", status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        # Set by OfflineSync.sell: tickets created before the failure
        self.created: list[dict] = []


class RpcClient:
    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ):
        headers = {"accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._http = httpx.Client(
            base_url=base_url.rstrip("/") + "/api/trpc/",
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    def close(self) -> None:
        self._http.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    @staticmethod
    def _unwrap(response: httpx.Response):
        try:
            body = response.json()
        except ValueError:
            raise RpcClientError(
                f"Unexpected response (HTTP {response.status_code})",
                status_code=response.status_code,
            )

        error = body.get("error") if isinstance(body, dict) else None
        if error or response.status_code >= 400:
            error = error or {}
            raise RpcClientError(
                error.get("message") or f"HTTP {response.status_code}",
                code=error.get("code") or "INTERNAL_SERVER_ERROR",
                status_code=response.status_code,
            )
        return body["result"]["data"]

    def query(self, name: str, input=None):
        params = {"input": json.dumps(input)} if input is not None else None
        return self._unwrap(self._http.get(name, params=params))

    def mutation(self, name: str, input=None):
        return self._unwrap(self._http.post(name, json=input))

    # -- procedures used by the terminal -----------------------------------

    def health(self) -> dict:
        return self.query("system.health", {"timestamp": int(time.time() * 1000)})

    def list_ticket_types(self) -> list[dict]:
        return self.query("ticketTypes.list")

    def stats(self, start: str | None = None, end: str | None = None) -> dict:
        params = {}
        if start:
            params["startDate"] = start
        if end:
            params["endDate"] = end
        return self.query("reports.stats", params or None)

    def create_ticket(
        self,
        ticket_type_id: int,
        payment_method: str,
        customer_name: str = OFFLINE_CUSTOMER_NAME,
        customer_email: str | None = None,
        customer_phone: str | None = None,
    ) -> dict:
        payload = {
            "customerName": customer_name,
            "ticketTypeId": ticket_type_id,
            "paymentMethod": payment_method,
        }
        if customer_email:
            payload["customerEmail"] = customer_email
        if customer_phone:
            payload["customerPhone"] = customer_phone
        return self.mutation("tickets.create", payload)
