"""Tests for the JID codec."""

from __future__ import annotations

import pytest

from lid_mapping.jid import (
    FullJid,
    Namespace,
    are_jids_same_user,
    get_jid_device,
    get_jid_user,
    get_jid_with_device,
    get_jid_without_device,
    is_jid_group,
    is_lid_user,
    is_pn_user,
    is_valid_jid,
    jid_decode,
    jid_encode,
    jid_normalized_user,
    namespace_of,
    transfer_device,
)


class TestEncodeDecode:
    def test_encode_plain_user(self):
        assert jid_encode("15551234567", "s.whatsapp.net") == "15551234567@s.whatsapp.net"

    def test_encode_with_device_and_agent(self):
        assert jid_encode("123", "lid", 4, "1") == "123_1:4@lid"

    def test_encode_keeps_device_zero(self):
        assert jid_encode("123", "lid", 0) == "123:0@lid"

    def test_encode_requires_user_and_server(self):
        assert jid_encode("", "lid") == ""
        assert jid_encode("123", None) == ""

    def test_decode_full_jid(self):
        assert jid_decode("123_1:4@lid") == FullJid(user="123", server="lid", device=4, agent="1")

    def test_decode_without_device(self):
        decoded = jid_decode("15551234567@s.whatsapp.net")
        assert decoded is not None
        assert decoded.user == "15551234567"
        assert decoded.device is None
        assert decoded.agent is None
        assert decoded.domain_type == 0

    def test_lid_domain_type(self):
        assert jid_decode("123@lid").domain_type == 1

    @pytest.mark.parametrize("value", [None, 42, "no-at-sign", "@lid", "123:x@lid"])
    def test_decode_rejects_malformed(self, value):
        assert jid_decode(value) is None


class TestPredicates:
    def test_namespace_membership(self):
        assert is_pn_user("1@s.whatsapp.net")
        assert not is_pn_user("1@lid")
        assert is_lid_user("1:2@lid")
        assert not is_lid_user(None)
        assert is_jid_group("1-2@g.us")

    def test_namespace_of(self):
        assert namespace_of("1@s.whatsapp.net") is Namespace.PN
        assert namespace_of("1@lid") is Namespace.LID
        assert namespace_of("1-2@g.us") is None

    def test_namespace_properties(self):
        assert Namespace.PN.server == "s.whatsapp.net"
        assert Namespace.LID.cache_prefix == "lid:"
        assert Namespace.PN.opposite is Namespace.LID
        assert Namespace.LID.contains("9@lid")

    def test_is_valid_jid(self):
        assert is_valid_jid("1@lid")
        assert not is_valid_jid("1@")
        assert not is_valid_jid("plain")


class TestHelpers:
    def test_normalized_user_drops_device_and_maps_legacy_server(self):
        assert jid_normalized_user("155_2:3@c.us") == "155@s.whatsapp.net"
        assert jid_normalized_user("garbage") == ""

    def test_same_user(self):
        assert are_jids_same_user("1:2@lid", "1@s.whatsapp.net")
        assert not are_jids_same_user("1@lid", "2@lid")
        assert not are_jids_same_user("bad", "bad")

    def test_device_helpers(self):
        assert get_jid_user("77:5@lid") == "77"
        assert get_jid_device("77:5@lid") == 5
        assert get_jid_device("77@lid") == 0
        assert get_jid_with_device("77@lid", 9) == "77:9@lid"
        assert get_jid_without_device("77:9@lid") == "77@lid"

    def test_transfer_device(self):
        assert transfer_device("1:7@s.whatsapp.net", "99@lid") == "99:7@lid"
        assert transfer_device("1@s.whatsapp.net", "99:3@lid") == "99:0@lid"
        assert transfer_device("bad", "99@lid") == "99@lid"
