"""Native and token balance reads."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from solders.pubkey import Pubkey

from .codec import Reader, from_minor_units
from .config import ProgramConfig
from .constants import LAMPORTS_PER_SOL, TOKEN_ACCOUNT_AMOUNT_OFFSET
from .pda import derive_associated_token_address
from .rpc import FusionRpc

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenBalance:
    raw: int
    decimals: int

    @property
    def amount(self) -> Decimal:
        return from_minor_units(self.raw, self.decimals)


@dataclass(frozen=True)
class WalletBalances:
    lamports: int
    usdc: TokenBalance

    @property
    def sol(self) -> float:
        return self.lamports / LAMPORTS_PER_SOL


def read_token_amount(data: bytes) -> int:
    """Read the u64 amount field from an SPL token account."""
    return Reader(data, TOKEN_ACCOUNT_AMOUNT_OFFSET).u64()


async def get_native_balance(rpc: FusionRpc, owner: Pubkey) -> int:
    return await rpc.get_balance(owner)


async def get_token_balance(
    rpc: FusionRpc,
    config: ProgramConfig,
    owner: Pubkey,
    mint: Optional[Pubkey] = None,
) -> TokenBalance:
    """Token balance of ``owner`` for ``mint`` (USDC by default).

    No token account reads as zero. With several accounts the associated
    token account wins; without one the first account is used and a warning
    is logged.
    """
    mint = config.usdc_mint if mint is None else mint
    accounts = await rpc.get_token_accounts(owner, mint)
    if not accounts:
        return TokenBalance(raw=0, decimals=config.token_decimals)
    _, data = accounts[0]
    if len(accounts) > 1:
        ata = derive_associated_token_address(config, owner, mint)
        chosen = next((item for item in accounts if item[0] == ata), None)
        if chosen is None:
            logger.warning(
                "%d token accounts for owner %s mint %s and none is associated; using %s",
                len(accounts),
                owner,
                mint,
                accounts[0][0],
            )
        else:
            _, data = chosen
    return TokenBalance(raw=read_token_amount(data), decimals=config.token_decimals)


async def get_wallet_balances(rpc: FusionRpc, config: ProgramConfig, owner: Pubkey) -> WalletBalances:
    lamports = await get_native_balance(rpc, owner)
    usdc = await get_token_balance(rpc, config, owner)
    return WalletBalances(lamports=lamports, usdc=usdc)
