"""
Data models for manager protocol results.

This module contains:

- Packet, the decoded key-value block, and ListResponse for list actions
- PeerStatus and normalize_status for peer reachability
- DatabaseEntry for AstDB results
"""

from amiconnect.models.packets import ActionResult, ListResponse, Packet
from amiconnect.models.status import PeerStatus, normalize_status
from amiconnect.models.database import DatabaseEntry

__all__ = [
    # Packets
    "Packet",
    "ListResponse",
    "ActionResult",
    # Status
    "PeerStatus",
    "normalize_status",
    # Database
    "DatabaseEntry",
]
