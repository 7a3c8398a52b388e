"""Realtime — WebSocket connection wrapper and per-connection state."""

from perch.realtime.state import StateAlreadySet, StateCell
from perch.realtime.websocket import WebSocket, decode_inbound, encode_outbound

__all__ = [
    "StateAlreadySet",
    "StateCell",
    "WebSocket",
    "decode_inbound",
    "encode_outbound",
]
