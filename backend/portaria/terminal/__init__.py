# Overview: Point-of-sale terminal client; keeps selling while the backend is unreachable.

from .offline_store import OfflineStore
from .rpc_client import RpcClient, RpcClientError
from .sync import OfflineSync

__all__ = ["OfflineStore", "RpcClient", "RpcClientError", "OfflineSync"]
