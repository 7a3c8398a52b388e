"""Guards — the pre-request pipeline.

Guards run after routing and before the handler (or the WebSocket
bridge). Each one allows, rejects, or short-circuits the request.
"""

from perch.guards.pipeline import run_guards
from perch.guards.protocol import ALLOW, Allow, Guard, Reject, ShortCircuit, Verdict

__all__ = [
    "ALLOW",
    "Allow",
    "Guard",
    "Reject",
    "ShortCircuit",
    "Verdict",
    "run_guards",
]
