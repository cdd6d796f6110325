"""Protocol vocabulary: envelopes and remote method names.

Nothing here performs I/O; the correlator in sdk.transport moves
envelopes over the socket.
"""

from .envelope import MessageKind, Request, classify, decode, encode
from .methods import DebuggerEvent, DebuggerMethod

__all__ = [
    "MessageKind",
    "Request",
    "classify",
    "decode",
    "encode",
    "DebuggerEvent",
    "DebuggerMethod",
]
