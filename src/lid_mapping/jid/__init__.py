"""JID codec — parse and build user identifiers."""

from lid_mapping.jid.codec import (
    LID_SERVER,
    S_WHATSAPP_NET,
    FullJid,
    Namespace,
    are_jids_same_user,
    get_jid_device,
    get_jid_user,
    get_jid_with_device,
    get_jid_without_device,
    is_jid_broadcast,
    is_jid_group,
    is_jid_newsletter,
    is_jid_status_broadcast,
    is_lid_user,
    is_pn_user,
    is_valid_jid,
    jid_decode,
    jid_encode,
    jid_normalized_user,
    namespace_of,
    transfer_device,
)

__all__ = [
    "FullJid",
    "LID_SERVER",
    "Namespace",
    "S_WHATSAPP_NET",
    "are_jids_same_user",
    "get_jid_device",
    "get_jid_user",
    "get_jid_with_device",
    "get_jid_without_device",
    "is_jid_broadcast",
    "is_jid_group",
    "is_jid_newsletter",
    "is_jid_status_broadcast",
    "is_lid_user",
    "is_pn_user",
    "is_valid_jid",
    "jid_decode",
    "jid_encode",
    "jid_normalized_user",
    "namespace_of",
    "transfer_device",
]
