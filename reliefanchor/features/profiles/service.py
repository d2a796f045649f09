"""
reliefanchor/features/profiles/service.py

Owner id -> isolated storage key namespace.

Owner ids are email-like and treated case-insensitively, so "A@X.com" and
"a@x.com" share one namespace on purpose.
"""

import re

from reliefanchor.core.errors import ValidationError
from reliefanchor.models.session import ProfileKeys

RECORD_PREFIX = "relief_anchor_user"
MOODS_PREFIX = "relief_anchor_moods"
CHAT_PREFIX = "relief_anchor_chat"
JOURNAL_PREFIX = "relief_anchor_journal"

_UNSAFE_CHARS = re.compile(r"[^a-z0-9@._-]")


def normalize_owner_id(raw: str) -> str:
    """Stable owner identity: trimmed and case-folded."""
    if not isinstance(raw, str):
        raise ValidationError("Owner id must be a string")
    normalized = raw.strip().casefold()
    # "|" delimits recovery token claims
    if "|" in normalized:
        raise ValidationError("Owner id cannot contain '|'")
    return normalized


def namespace_suffix(raw: str) -> str:
    suffix = _UNSAFE_CHARS.sub("", normalize_owner_id(raw))
    if not suffix:
        raise ValidationError("Owner id has no usable characters")
    return suffix


def derive_keys(raw: str) -> ProfileKeys:
    suffix = namespace_suffix(raw)
    return ProfileKeys(
        record=f"{RECORD_PREFIX}_{suffix}",
        moods=f"{MOODS_PREFIX}_{suffix}",
        chat=f"{CHAT_PREFIX}_{suffix}",
        journal=f"{JOURNAL_PREFIX}_{suffix}",
    )
