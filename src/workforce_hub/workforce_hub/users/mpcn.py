"""MPCN IDs: the short, human-facing form of a user's public id.

``MPCN-`` followed by the first eight characters of the public UUID,
upper-cased, e.g. ``MPCN-1A2B3C4D``.
"""
from __future__ import annotations

import re

from ..core.constants import MPCN_ID_LENGTH, MPCN_ID_MIN_LENGTH, MPCN_ID_PREFIX

_HEX_PREFIX = re.compile(rf"^[0-9a-f]{{{MPCN_ID_MIN_LENGTH},{MPCN_ID_LENGTH}}}$")


def format_mpcn_id(public_id: str) -> str:
    return f"{MPCN_ID_PREFIX}{public_id[:MPCN_ID_LENGTH].upper()}"


def normalize_mpcn_id(raw: str) -> str:
    """Return the id prefix to match against public ids (lower-case, no prefix).

    Anything other than 6-8 hex digits normalizes to "" and matches nobody.
    """
    value = (raw or "").strip().upper()
    if value.startswith(MPCN_ID_PREFIX):
        value = value[len(MPCN_ID_PREFIX):]
    value = value.lower()
    return value if _HEX_PREFIX.match(value) else ""


def looks_like_mpcn_id(identifier: str) -> bool:
    return "@" not in (identifier or "")


def mask_email(email: str) -> str:
    local, _, domain = email.partition("@")
    if len(local) > 2:
        local = local[0] + "*" * min(len(local) - 1, 5)
    return f"{local}@{domain}"
