"""Instruction discriminators: SHA256("global:<name>")[:8]."""

from __future__ import annotations

import hashlib
from typing import Dict

from .constants import INSTRUCTION_DISCRIMINATOR_SIZE
from .errors import PreconditionError

# Pre-computed for the entrypoints this client calls.
KNOWN_DISCRIMINATORS: Dict[str, bytes] = {
    "create_tournament": bytes.fromhex("9e89e9e74984bf44"),
    "join_tournament": bytes.fromhex("4d15d4ce4d527c1f"),
    "initialize_participant_list": bytes.fromhex("48b702b7f2b5cab2"),
}


def compute_discriminator(name: str, namespace: str = "global") -> bytes:
    return hashlib.sha256(f"{namespace}:{name}".encode("utf-8")).digest()[
        :INSTRUCTION_DISCRIMINATOR_SIZE
    ]


def resolve_discriminator(name: str) -> bytes:
    if not isinstance(name, str) or not name:
        raise PreconditionError("instruction name must be a non-empty string")
    known = KNOWN_DISCRIMINATORS.get(name)
    if known is not None:
        return known
    return compute_discriminator(name)
