"""Host contract and a snapshot-backed in-memory host.

Contains:
- protocol: the `HostBridge` / `HostTable` seams the panel consumes
- memory: `InMemoryHost`, a complete host over a JSON snapshot
"""

from .memory import FIELD_METADATA, HostUnavailableError, InMemoryHost, InMemoryTable
from .protocol import Disposer, HostBridge, HostTable, Listener

__all__ = [
    "FIELD_METADATA",
    "Disposer",
    "HostBridge",
    "HostTable",
    "HostUnavailableError",
    "InMemoryHost",
    "InMemoryTable",
    "Listener",
]
