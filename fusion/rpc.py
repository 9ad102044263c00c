"""Async RPC access for the Fusion client.

Thin wrapper over solana-py's AsyncClient that returns plain values and
turns transport and RPC failures into NetworkError. No retries: the caller
decides whether a failed read or broadcast is worth repeating.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, List, Optional, Tuple, TypeVar

from solana.exceptions import SolanaRpcException
from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Commitment
from solana.rpc.core import RPCException
from solana.rpc.types import TokenAccountOpts, TxOpts
from solders.hash import Hash
from solders.pubkey import Pubkey
from solders.signature import Signature

from .config import ProgramConfig
from .errors import NetworkError

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def _call(what: str, awaitable: Awaitable[T]) -> T:
    try:
        return await awaitable
    except (SolanaRpcException, RPCException) as exc:
        raise NetworkError(f"{what} failed: {exc}") from exc


class FusionRpc:
    """RPC reads and broadcast against one cluster endpoint."""

    def __init__(self, rpc_url: str, commitment: str = "confirmed", client: Any = None) -> None:
        self.rpc_url = rpc_url
        self.commitment = Commitment(commitment)
        self._client = client if client is not None else AsyncClient(rpc_url, commitment=self.commitment)

    @classmethod
    def from_config(cls, config: ProgramConfig) -> "FusionRpc":
        return cls(config.rpc_url, config.commitment)

    async def close(self) -> None:
        await self._client.close()

    async def __aenter__(self) -> "FusionRpc":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def get_account_data(self, pubkey: Pubkey) -> Optional[bytes]:
        """Raw account bytes, or None when the account does not exist."""
        resp = await _call(f"getAccountInfo {pubkey}", self._client.get_account_info(pubkey))
        if resp.value is None:
            return None
        return bytes(resp.value.data)

    async def get_balance(self, pubkey: Pubkey) -> int:
        resp = await _call(f"getBalance {pubkey}", self._client.get_balance(pubkey))
        return int(resp.value)

    async def get_token_accounts(self, owner: Pubkey, mint: Pubkey) -> List[Tuple[Pubkey, bytes]]:
        resp = await _call(
            f"getTokenAccountsByOwner {owner}",
            self._client.get_token_accounts_by_owner(owner, TokenAccountOpts(mint=mint)),
        )
        return [(keyed.pubkey, bytes(keyed.account.data)) for keyed in resp.value]

    async def get_latest_blockhash(self) -> Hash:
        resp = await _call("getLatestBlockhash", self._client.get_latest_blockhash())
        return resp.value.blockhash

    async def send_raw_transaction(self, raw: bytes, *, skip_preflight: bool = False) -> Signature:
        opts = TxOpts(skip_preflight=skip_preflight, preflight_commitment=self.commitment)
        resp = await _call("sendTransaction", self._client.send_raw_transaction(raw, opts=opts))
        logger.info("submitted transaction %s", resp.value)
        return resp.value
