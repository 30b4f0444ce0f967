"""
Convenience commands built on ManagerClient.send().

AsteriskManager adds typed wrappers for common manager actions: AstDB
access, module availability checks and channel/peer listings. Every
wrapper is a thin pass-through: it builds the action, sends it and shapes
the reply.

Failure handling follows the action kind:

- Queries (listings, db_get, db_get_tree) report failure as an empty
  result, so a missing channel driver reads as "no peers".
- Database writes return False when the server refuses the action.
  Connection failures still propagate.
- Module checks return False on any failure.
"""

from __future__ import annotations

import logging
from typing import Any

from amiconnect.client import ManagerClient
from amiconnect.exceptions import AMIError, ActionError
from amiconnect.models.database import DatabaseEntry
from amiconnect.models.packets import ActionResult, ListResponse, Packet
from amiconnect.models.status import normalize_status
from amiconnect.protocol.constants import Field
from amiconnect.protocol.values import encode_value

logger = logging.getLogger(__name__)


def _entries(result: ActionResult) -> list[Packet]:
    if isinstance(result, ListResponse):
        return list(result.items)
    return []


def _text(packet: Packet, name: str) -> str:
    value = packet.get(name)
    return "" if value is None else encode_value(value)


class AsteriskManager(ManagerClient):
    """
    Manager client with convenience wrappers for common actions.

    Example:
        >>> async with AsteriskManager(user="admin", password="secret") as ami:
        ...     if await ami.has_chan_pjsip():
        ...         for contact in await ami.pjsip_contacts():
        ...             print(contact["URI"], contact["Online"])
        ...     await ami.db_put("cidname", "5551234", "Alice")
        ...     entry = await ami.db_get("cidname", "5551234")
    """

    async def _query(self, action: dict[str, Any]) -> list[Packet]:
        try:
            result = await self.send(action)
        except AMIError as e:
            logger.debug("%s failed: %s", action[Field.ACTION], e)
            return []
        return _entries(result)

    async def _execute(self, action: dict[str, Any]) -> bool:
        try:
            result = await self.send(action)
        except ActionError as e:
            logger.debug("%s refused: %s", action[Field.ACTION], e.message)
            return False
        return result.is_success

    # ------------------------------------------------------------------
    # AstDB
    # ------------------------------------------------------------------

    async def db_get(self, family: str, key: str) -> DatabaseEntry | None:
        """
        Get a single database entry.

        Returns:
            The entry, keyed "/family/key", or None if it does not exist or
            the query failed.
        """
        records = await self._query({"Action": "DBGet", "Family": family, "Key": key})
        if not records:
            return None

        record = records[0]
        return DatabaseEntry(
            key=f"/{family}/{_text(record, 'Key')}",
            value=_text(record, "Val"),
        )

    async def db_get_tree(
        self,
        family: str | None = None,
        key: str | None = None,
    ) -> list[DatabaseEntry]:
        """
        Get database entries, optionally below a family (and key).

        The key is only sent together with a family.
        """
        action: dict[str, Any] = {"Action": "DBGetTree"}
        if family:
            action["Family"] = family
            if key:
                action["Key"] = key

        return [
            DatabaseEntry(key=_text(record, "Key"), value=_text(record, "Val"))
            for record in await self._query(action)
        ]

    async def db_put(self, family: str, key: str, value: str) -> bool:
        """Store a database entry."""
        return await self._execute({"Action": "DBPut", "Family": family, "Key": key, "Val": value})

    async def db_del(self, family: str, key: str) -> bool:
        """Delete a database entry."""
        return await self._execute({"Action": "DBDel", "Family": family, "Key": key})

    async def db_del_tree(self, family: str, key: str | None = None) -> bool:
        """Delete a database family, or the subtree below one of its keys."""
        action: dict[str, Any] = {"Action": "DBDelTree", "Family": family}
        if key:
            action["Key"] = key
        return await self._execute(action)

    # ------------------------------------------------------------------
    # Modules
    # ------------------------------------------------------------------

    async def has_chan_sip(self) -> bool:
        return await self.module_check("chan_sip")

    async def has_chan_pjsip(self) -> bool:
        return await self.module_check("chan_pjsip")

    async def has_chan_iax2(self) -> bool:
        return await self.module_check("chan_iax2")

    # ------------------------------------------------------------------
    # Listings
    # ------------------------------------------------------------------

    async def sip_peers(self) -> list[Packet]:
        """List chan_sip peers with normalized Status, Online and Time."""
        return [normalize_status(peer) for peer in await self._query({"Action": "SIPPeers"})]

    async def pjsip_endpoints(self) -> list[Packet]:
        return await self._query({"Action": "PJSIPEndpoints"})

    async def pjsip_contacts(self) -> list[Packet]:
        """List PJSIP contacts with normalized Status, Online and Time."""
        return [
            normalize_status(contact)
            for contact in await self._query({"Action": "PJSIPContacts"})
        ]

    async def channels(self) -> list[Packet]:
        """List active channels."""
        return await self._query({"Action": "CoreShowChannels"})

    async def iax2_peers(self) -> list[Packet]:
        """List chan_iax2 peers with normalized Status, Online and Time."""
        return [normalize_status(peer) for peer in await self._query({"Action": "IAX2Peers"})]
