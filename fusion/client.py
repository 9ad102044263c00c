"""High-level async client for the Fusion tournament program."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

from solders.pubkey import Pubkey
from solders.signature import Signature

from .accounts import PlatformAccount, TournamentAccount, decode_platform, decode_tournament
from .balances import WalletBalances, get_token_balance, get_wallet_balances
from .config import ProgramConfig
from .errors import PreconditionError
from .instructions import (
    CreateTournamentParams,
    JoinTournamentParams,
    build_create_tournament_ix,
    build_join_tournament_ix,
    entry_fee_minor_units,
    validate_create_params,
    validate_squad,
)
from .pda import derive_platform_address, derive_tournament_address
from .rpc import FusionRpc
from .transaction import submit_instruction
from .wallet import Wallet

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CreateTournamentResult:
    signature: Signature
    on_chain_id: int


class FusionClient:
    """Reads program state and submits create/join transactions.

    Holds no cached addresses or state: every call derives and fetches what
    it needs at call time.
    """

    def __init__(
        self,
        config: ProgramConfig,
        rpc: FusionRpc,
        wallet: Wallet,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.config = config
        self.rpc = rpc
        self.wallet = wallet
        self._clock = clock

    def _require_signer(self) -> Pubkey:
        owner = self.wallet.public_key
        if owner is None:
            raise PreconditionError("Wallet not connected")
        return owner

    async def get_platform(self) -> PlatformAccount:
        data = await self.rpc.get_account_data(derive_platform_address(self.config))
        if data is None:
            raise PreconditionError("Platform not initialized. Please initialize the platform first.")
        return decode_platform(data)

    async def get_tournament(self, tournament_id: int) -> Optional[TournamentAccount]:
        address = derive_tournament_address(self.config, tournament_id)
        data = await self.rpc.get_account_data(address)
        if data is None:
            return None
        return decode_tournament(data, self.config.token_decimals)

    async def get_balances(self, owner: Optional[Pubkey] = None) -> WalletBalances:
        owner = self._require_signer() if owner is None else owner
        return await get_wallet_balances(self.rpc, self.config, owner)

    async def create_tournament(self, params: CreateTournamentParams) -> CreateTournamentResult:
        """Create a tournament under the next platform-assigned id.

        The counter is read without a lock. If another creator claims the
        same id first, the program rejects this transaction and the caller
        should retry, which re-reads the counter.
        """
        validate_create_params(params)
        entry_fee_minor_units(params.entry_fee, self.config.token_decimals)
        if params.registration_deadline <= int(self._clock()):
            raise PreconditionError("Registration deadline must be in the future")
        creator = self._require_signer()

        platform = await self.get_platform()
        tournament_id = platform.next_tournament_id
        ix = build_create_tournament_ix(self.config, creator, tournament_id, params)
        signature = await submit_instruction(ix, self.wallet, self.rpc)
        logger.info("created tournament %d: %s", tournament_id, signature)
        return CreateTournamentResult(signature=signature, on_chain_id=tournament_id)

    async def join_tournament(self, params: JoinTournamentParams, *, check_balance: bool = True) -> Signature:
        """Join a tournament with a 15-player squad.

        The balance check only gives an early, readable error; the program
        enforces the fee transfer itself.
        """
        validate_squad(params.player_ids)
        if not isinstance(params.team_name, str) or not params.team_name.strip():
            raise PreconditionError("team_name must be a non-empty string")
        participant = self._require_signer()

        if check_balance:
            tournament = await self.get_tournament(params.tournament_id)
            if tournament is None:
                raise PreconditionError(f"Tournament {params.tournament_id} not found on-chain")
            balance = await get_token_balance(self.rpc, self.config, participant)
            if balance.raw < tournament.entry_fee_raw:
                raise PreconditionError(
                    f"Insufficient USDC: need {tournament.entry_fee:.2f}, have {balance.amount:.2f}"
                )

        ix = build_join_tournament_ix(self.config, participant, params)
        signature = await submit_instruction(ix, self.wallet, self.rpc)
        logger.info("joined tournament %d: %s", params.tournament_id, signature)
        return signature
