"""Wallet implementations used to sign and broadcast transactions.

One `Wallet` interface, two implementations: `KeypairWallet` signs with a
local keypair file, `UnavailableWallet` stands in when signing is disabled
for this runtime. `create_wallet` picks one at startup.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, Optional

from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.transaction import Transaction

from .config import DEFAULT_KEYPAIR_PATH, ProgramConfig
from .errors import PreconditionError, UserRejection
from .rpc import FusionRpc

logger = logging.getLogger(__name__)

ApproveCallback = Callable[[Transaction], bool]


def load_keypair(path: str | Path) -> Keypair:
    path = Path(path).expanduser()
    if not path.exists():
        raise FileNotFoundError(f"Keypair file not found: {path}")
    try:
        raw = json.loads(path.read_text())
    except json.JSONDecodeError as exc:
        raise PreconditionError(f"Keypair file is not valid JSON: {path}") from exc
    if not isinstance(raw, list) or len(raw) != 64:
        raise PreconditionError(f"Keypair file must hold a 64-byte array: {path}")
    return Keypair.from_bytes(bytes(raw))


class Wallet(ABC):
    """Signer and broadcaster for a single account."""

    available: bool = True

    @property
    @abstractmethod
    def public_key(self) -> Optional[Pubkey]:
        ...

    @property
    def connected(self) -> bool:
        return self.public_key is not None

    @abstractmethod
    async def connect(self) -> Pubkey:
        ...

    @abstractmethod
    async def disconnect(self) -> None:
        ...

    @abstractmethod
    async def sign_and_send(self, tx: Transaction, rpc: FusionRpc) -> Signature:
        ...


class KeypairWallet(Wallet):
    """Signs with a local keypair file.

    ``approve`` is consulted before every signature; returning False raises
    UserRejection, the same outcome as declining a wallet prompt. After an
    approval the blockhash is fetched again so the prompt does not eat into
    its validity window.
    """

    def __init__(self, keypair_path: str | Path, approve: Optional[ApproveCallback] = None) -> None:
        self.keypair_path = Path(keypair_path).expanduser()
        self._approve = approve
        self._keypair: Optional[Keypair] = None

    @classmethod
    def from_keypair(cls, keypair: Keypair, approve: Optional[ApproveCallback] = None) -> "KeypairWallet":
        wallet = cls("<memory>", approve=approve)
        wallet._keypair = keypair
        return wallet

    @property
    def public_key(self) -> Optional[Pubkey]:
        return self._keypair.pubkey() if self._keypair is not None else None

    async def connect(self) -> Pubkey:
        if self._keypair is None:
            self._keypair = load_keypair(self.keypair_path)
            logger.debug("loaded keypair %s from %s", self._keypair.pubkey(), self.keypair_path)
        return self._keypair.pubkey()

    async def disconnect(self) -> None:
        self._keypair = None

    async def sign_and_send(self, tx: Transaction, rpc: FusionRpc) -> Signature:
        if self._keypair is None:
            raise PreconditionError("Wallet not connected")
        blockhash = tx.message.recent_blockhash
        if self._approve is not None:
            if not self._approve(tx):
                raise UserRejection("User rejected the request")
            # Time spent at the prompt counts against the blockhash window.
            blockhash = await rpc.get_latest_blockhash()
        tx.sign([self._keypair], blockhash)
        return await rpc.send_raw_transaction(bytes(tx))


class UnavailableWallet(Wallet):
    """Placeholder used when no signer is configured for this runtime."""

    available = False

    @property
    def public_key(self) -> Optional[Pubkey]:
        return None

    async def connect(self) -> Pubkey:
        raise PreconditionError("Wallet not available: signing is disabled in this configuration")

    async def disconnect(self) -> None:
        return None

    async def sign_and_send(self, tx: Transaction, rpc: FusionRpc) -> Signature:
        raise PreconditionError("Wallet not available: signing is disabled in this configuration")


def create_wallet(config: ProgramConfig, approve: Optional[ApproveCallback] = None) -> Wallet:
    if not config.wallet_enabled:
        return UnavailableWallet()
    if config.keypair_path:
        return KeypairWallet(config.keypair_path, approve=approve)
    if DEFAULT_KEYPAIR_PATH.exists():
        return KeypairWallet(DEFAULT_KEYPAIR_PATH, approve=approve)
    logger.debug("no keypair configured and %s missing; signing disabled", DEFAULT_KEYPAIR_PATH)
    return UnavailableWallet()
