"""JID encoding, decoding and namespace predicates.

A JID has the shape ``user[_agent][:device]@server``. The mapping store only
cares about two user namespaces: phone-number JIDs (``@s.whatsapp.net``)
and linked identity JIDs (``@lid``).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

S_WHATSAPP_NET = "s.whatsapp.net"
LID_SERVER = "lid"
LEGACY_USER_SERVER = "c.us"

STORIES_JID = "status@broadcast"


class Namespace(str, Enum):
    """The two user namespaces the mapping store translates between."""

    PN = "pn"
    LID = "lid"

    @property
    def server(self) -> str:
        return S_WHATSAPP_NET if self is Namespace.PN else LID_SERVER

    @property
    def cache_prefix(self) -> str:
        """Prefix of cache keys whose *source* user lives in this namespace."""
        return f"{self.value}:"

    @property
    def opposite(self) -> Namespace:
        return Namespace.LID if self is Namespace.PN else Namespace.PN

    def contains(self, jid: object) -> bool:
        return is_pn_user(jid) if self is Namespace.PN else is_lid_user(jid)


@dataclass(frozen=True)
class FullJid:
    """Decoded components of a JID."""

    user: str
    server: str
    device: int | None = None
    agent: str | None = None

    @property
    def domain_type(self) -> int:
        return 1 if self.server == LID_SERVER else 0


def jid_encode(
    user: str | None,
    server: str | None,
    device: int | None = None,
    agent: str | None = None,
) -> str:
    if not user or not server:
        return ""
    agent_part = f"_{agent}" if agent else ""
    device_part = f":{device}" if device is not None else ""
    return f"{user}{agent_part}{device_part}@{server}"


def jid_decode(jid: object) -> FullJid | None:
    """Split a JID into its components, or None when it is not decodable."""
    if not isinstance(jid, str):
        return None
    user_combined, sep, server = jid.partition("@")
    if not sep or not user_combined:
        return None

    user_agent, _, device_raw = user_combined.partition(":")
    user, _, agent = user_agent.partition("_")
    if not user:
        return None

    device: int | None = None
    if device_raw:
        try:
            device = int(device_raw)
        except ValueError:
            return None

    return FullJid(user=user, server=server, device=device, agent=agent or None)


def is_pn_user(jid: object) -> bool:
    return isinstance(jid, str) and jid.endswith(f"@{S_WHATSAPP_NET}")


def is_lid_user(jid: object) -> bool:
    return isinstance(jid, str) and jid.endswith(f"@{LID_SERVER}")


def is_jid_group(jid: object) -> bool:
    return isinstance(jid, str) and jid.endswith("@g.us")


def is_jid_broadcast(jid: object) -> bool:
    return isinstance(jid, str) and jid.endswith("@broadcast")


def is_jid_status_broadcast(jid: object) -> bool:
    return jid == STORIES_JID


def is_jid_newsletter(jid: object) -> bool:
    return isinstance(jid, str) and jid.endswith("@newsletter")


def is_valid_jid(jid: object) -> bool:
    decoded = jid_decode(jid)
    return decoded is not None and bool(decoded.server)


def namespace_of(jid: object) -> Namespace | None:
    """Return the user namespace of *jid*, or None for any other JID."""
    if is_pn_user(jid):
        return Namespace.PN
    if is_lid_user(jid):
        return Namespace.LID
    return None


def jid_normalized_user(jid: object) -> str:
    """Drop device and agent; legacy ``c.us`` users become ``s.whatsapp.net``."""
    decoded = jid_decode(jid)
    if decoded is None:
        return ""
    server = S_WHATSAPP_NET if decoded.server == LEGACY_USER_SERVER else decoded.server
    return jid_encode(decoded.user, server)


def are_jids_same_user(jid1: object, jid2: object) -> bool:
    decoded1 = jid_decode(jid1)
    decoded2 = jid_decode(jid2)
    return decoded1 is not None and decoded2 is not None and decoded1.user == decoded2.user


def get_jid_user(jid: object) -> str:
    decoded = jid_decode(jid)
    return decoded.user if decoded else ""


def get_jid_device(jid: object) -> int:
    decoded = jid_decode(jid)
    if decoded is None or decoded.device is None:
        return 0
    return decoded.device


def get_jid_with_device(jid: str, device: int) -> str:
    decoded = jid_decode(jid)
    if decoded is None:
        return jid
    return jid_encode(decoded.user, decoded.server, device, decoded.agent)


def get_jid_without_device(jid: str) -> str:
    decoded = jid_decode(jid)
    if decoded is None:
        return jid
    return jid_encode(decoded.user, decoded.server, None, decoded.agent)


def transfer_device(from_jid: str, to_jid: str) -> str:
    """Return *to_jid* carrying the device of *from_jid* (0 when it has none)."""
    from_decoded = jid_decode(from_jid)
    to_decoded = jid_decode(to_jid)
    if from_decoded is None or to_decoded is None:
        return to_jid
    device = from_decoded.device if from_decoded.device is not None else 0
    return jid_encode(to_decoded.user, to_decoded.server, device, to_decoded.agent)
