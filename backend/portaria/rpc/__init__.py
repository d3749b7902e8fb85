# Overview: RPC procedures; importing this package registers every procedure.

from .registry import PROCEDURES, Procedure, RpcContext, RpcError
from . import system, auth, access, tickets, ticket_types, reports

__all__ = ["PROCEDURES", "Procedure", "RpcContext", "RpcError"]
