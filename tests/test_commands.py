"""Tests for AsteriskManager convenience commands."""

import pytest

from amiconnect.exceptions import ConnectionError, TransportError
from amiconnect.models.database import DatabaseEntry
from conftest import list_reply


def db_list(*records):
    return list_reply("Result will follow", "DBGetResponse", list(records))


class TestDatabase:
    """AstDB wrappers."""

    @pytest.mark.asyncio
    async def test_db_get(self, manager, server):
        server.handle("DBGet", lambda action: db_list({"Family": "cidname", "Key": "5551234", "Val": "Alice"}))

        entry = await manager.db_get("cidname", "5551234")

        assert entry == DatabaseEntry(key="/cidname/5551234", value="Alice")
        (request,) = server.requests_for("DBGet")
        assert request["Family"] == "cidname"
        assert request["Key"] == "5551234"

    @pytest.mark.asyncio
    async def test_db_get_coerced_value_rendered_back(self, manager, server):
        server.handle("DBGet", lambda action: db_list({"Key": "dnd", "Val": "yes"}))
        entry = await manager.db_get("user", "dnd")
        assert entry.value == "yes"

    @pytest.mark.asyncio
    async def test_db_get_missing(self, manager, server):
        server.handle("DBGet", lambda action: [{"Response": "Error", "Message": "Database entry not found"}])
        assert await manager.db_get("cidname", "000") is None

    @pytest.mark.asyncio
    async def test_db_get_empty_list(self, manager, server):
        server.handle("DBGet", lambda action: db_list())
        assert await manager.db_get("cidname", "000") is None

    @pytest.mark.asyncio
    async def test_db_get_tree(self, manager, server):
        server.handle(
            "DBGetTree",
            lambda action: db_list(
                {"Key": "/cidname/1001", "Val": "Alice"},
                {"Key": "/cidname/1002", "Val": "Bob"},
            ),
        )

        entries = await manager.db_get_tree("cidname")

        assert entries == [
            DatabaseEntry(key="/cidname/1001", value="Alice"),
            DatabaseEntry(key="/cidname/1002", value="Bob"),
        ]
        request = server.requests_for("DBGetTree")[0]
        assert request["Family"] == "cidname"
        assert "Key" not in request

    @pytest.mark.asyncio
    async def test_db_get_tree_without_family_ignores_key(self, manager, server):
        server.handle("DBGetTree", lambda action: db_list())

        assert await manager.db_get_tree(key="orphan") == []
        request = server.requests_for("DBGetTree")[0]
        assert "Family" not in request
        assert "Key" not in request

    @pytest.mark.asyncio
    async def test_db_get_tree_family_and_key(self, manager, server):
        server.handle("DBGetTree", lambda action: db_list())
        await manager.db_get_tree("cidname", "1001")
        request = server.requests_for("DBGetTree")[0]
        assert request["Key"] == "1001"

    @pytest.mark.asyncio
    async def test_db_get_tree_failure(self, manager, server):
        server.handle("DBGetTree", lambda action: [{"Response": "Error", "Message": "Database entry not found"}])
        assert await manager.db_get_tree("nothing") == []

    @pytest.mark.asyncio
    async def test_db_put(self, manager, server):
        server.handle("DBPut", lambda action: [{"Response": "Success", "Message": "Updated database successfully"}])

        assert await manager.db_put("cidname", "5551234", "Alice") is True
        request = server.requests_for("DBPut")[0]
        assert request["Val"] == "Alice"

    @pytest.mark.asyncio
    async def test_db_put_refused(self, manager, server):
        server.handle("DBPut", lambda action: [{"Response": "Error", "Message": "Failed to update entry"}])
        assert await manager.db_put("cidname", "5551234", "Alice") is False

    @pytest.mark.asyncio
    async def test_db_del(self, manager, server):
        server.handle("DBDel", lambda action: [{"Response": "Success", "Message": "Key deleted successfully"}])
        assert await manager.db_del("cidname", "5551234") is True

    @pytest.mark.asyncio
    async def test_db_del_tree(self, manager, server):
        server.handle("DBDelTree", lambda action: [{"Response": "Success", "Message": "Key tree deleted successfully"}])

        assert await manager.db_del_tree("cidname") is True
        assert "Key" not in server.requests_for("DBDelTree")[0]

    @pytest.mark.asyncio
    async def test_write_failure_propagates(self, manager, transport):
        await manager.login()
        transport.write_error = TransportError("broken pipe")

        with pytest.raises(ConnectionError):
            await manager.db_put("cidname", "5551234", "Alice")


class TestModules:
    """Channel driver availability checks."""

    @pytest.fixture(autouse=True)
    def modules(self, server):
        loaded = {"chan_pjsip"}
        server.handle(
            "ModuleCheck",
            lambda action: [{"Response": "Success", "Version": ""}]
            if action["Module"] in loaded
            else [{"Response": "Error", "Message": "Module not loaded"}],
        )

    @pytest.mark.asyncio
    async def test_has_chan_pjsip(self, manager):
        assert await manager.has_chan_pjsip() is True

    @pytest.mark.asyncio
    async def test_has_chan_sip(self, manager):
        assert await manager.has_chan_sip() is False

    @pytest.mark.asyncio
    async def test_has_chan_iax2(self, manager, server):
        assert await manager.has_chan_iax2() is False
        assert server.requests_for("ModuleCheck")[0]["Module"] == "chan_iax2"


class TestListings:
    """Peer, contact and channel listings."""

    @pytest.mark.asyncio
    async def test_sip_peers_normalized(self, manager, server):
        server.handle(
            "SIPPeers",
            lambda action: list_reply(
                "Peer status list will follow",
                "PeerEntry",
                [
                    {"ObjectName": "1001", "IPport": "5060", "Status": "OK (5 ms)"},
                    {"ObjectName": "1002", "IPport": "0", "Status": "UNKNOWN"},
                ],
            ),
        )

        peers = await manager.sip_peers()

        assert [peer["ObjectName"] for peer in peers] == ["1001", "1002"]
        assert peers[0]["Online"] is True
        assert peers[0]["Time"] == 5
        assert peers[0]["Status"] == "OK"
        assert peers[0]["IPport"] == 5060
        assert peers[1]["Online"] is False
        assert peers[1]["Time"] == -1

    @pytest.mark.asyncio
    async def test_iax2_peers_normalized(self, manager, server):
        server.handle(
            "IAX2Peers",
            lambda action: list_reply(
                "Peer status list will follow",
                "PeerEntry",
                [{"ObjectName": "trunk", "Status": "OK (20 ms)"}],
            ),
        )
        (peer,) = await manager.iax2_peers()
        assert peer["Time"] == 20

    @pytest.mark.asyncio
    async def test_pjsip_contacts_normalized(self, manager, server):
        server.handle(
            "PJSIPContacts",
            lambda action: list_reply(
                "A listing of Contacts follows, presentation ends with ContactListComplete",
                "ContactList",
                [{"URI": "sip:1001@10.0.0.5:5060", "Status": "Reachable"}],
            ),
        )
        (contact,) = await manager.pjsip_contacts()
        assert contact["Status"] == "Reachable"
        assert contact["Online"] is False

    @pytest.mark.asyncio
    async def test_pjsip_endpoints(self, manager, server):
        server.handle(
            "PJSIPEndpoints",
            lambda action: list_reply(
                "A listing of Endpoints follows, presentation ends with EndpointListComplete",
                "EndpointList",
                [{"ObjectName": "1001", "DeviceState": "Not in use"}],
            ),
        )
        (endpoint,) = await manager.pjsip_endpoints()
        assert endpoint["DeviceState"] == "Not in use"
        assert "Online" not in endpoint

    @pytest.mark.asyncio
    async def test_channels(self, manager, server):
        server.handle(
            "CoreShowChannels",
            lambda action: list_reply(
                "Channels will follow",
                "CoreShowChannel",
                [{"Channel": "PJSIP/1001-00000001"}],
            ),
        )
        (channel,) = await manager.channels()
        assert channel["Channel"] == "PJSIP/1001-00000001"

    @pytest.mark.asyncio
    async def test_listing_failure_is_empty(self, manager):
        # The fake server does not know SIPPeers: "Invalid/unknown command"
        assert await manager.sip_peers() == []

    @pytest.mark.asyncio
    async def test_listing_login_failure_is_empty(self, manager, server):
        server.password = "other"
        assert await manager.channels() == []
