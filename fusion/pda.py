"""Program-derived address helpers matching the Fusion program seeds.

Seeds:
  - platform          = [b"platform"]
  - tournament        = [b"tournament", u64le(id)]
  - prize vault       = [b"prize_vault", u64le(id)]
  - team              = [b"team", u64le(id), participant]
  - player stats      = [b"player_stats", participant]
  - participant list  = [b"participant_list", u64le(id)]
  - associated token  = [owner, token_program, mint] under the ATA program
"""

from __future__ import annotations

from typing import Optional, Sequence, Tuple

from solders.errors import PubkeyError
from solders.pubkey import Pubkey

from .config import ProgramConfig
from .constants import (
    MAX_SEED_LEN,
    MAX_SEEDS,
    SEED_PARTICIPANT_LIST,
    SEED_PLATFORM,
    SEED_PLAYER_STATS,
    SEED_PRIZE_VAULT,
    SEED_TEAM,
    SEED_TOURNAMENT,
    U64_MAX,
)
from .errors import DerivationError, PreconditionError


def _check_seeds(seeds: Sequence[bytes]) -> None:
    # One slot is reserved for the bump byte.
    if len(seeds) >= MAX_SEEDS:
        raise PreconditionError(f"at most {MAX_SEEDS - 1} seeds allowed, got {len(seeds)}")
    for idx, seed in enumerate(seeds):
        if not isinstance(seed, (bytes, bytearray)):
            raise PreconditionError(f"seed {idx} must be bytes")
        if len(seed) > MAX_SEED_LEN:
            raise PreconditionError(f"seed {idx} is {len(seed)} bytes (max {MAX_SEED_LEN})")


def create_program_address(seeds: Sequence[bytes], program_id: Pubkey) -> Optional[Pubkey]:
    """Candidate address for ``seeds``; None when it lands on the curve."""
    try:
        return Pubkey.create_program_address([bytes(seed) for seed in seeds], program_id)
    except PubkeyError:
        return None


def find_program_address(seeds: Sequence[bytes], program_id: Pubkey) -> Tuple[Pubkey, int]:
    _check_seeds(seeds)
    for bump in range(255, -1, -1):
        address = create_program_address([*seeds, bytes([bump])], program_id)
        if address is not None:
            return address, bump
    raise DerivationError(f"no off-curve bump found for {len(seeds)} seeds under {program_id}")


def tournament_id_seed(tournament_id: int) -> bytes:
    if isinstance(tournament_id, bool) or not isinstance(tournament_id, int):
        raise PreconditionError("tournament id must be an integer")
    if tournament_id < 0 or tournament_id > U64_MAX:
        raise PreconditionError("tournament id must be within u64 range")
    return tournament_id.to_bytes(8, "little")


def derive_platform_address(config: ProgramConfig) -> Pubkey:
    address, _ = find_program_address([SEED_PLATFORM], config.program_id)
    return address


def derive_tournament_address(config: ProgramConfig, tournament_id: int) -> Pubkey:
    address, _ = find_program_address(
        [SEED_TOURNAMENT, tournament_id_seed(tournament_id)], config.program_id
    )
    return address


def derive_prize_vault_address(config: ProgramConfig, tournament_id: int) -> Pubkey:
    address, _ = find_program_address(
        [SEED_PRIZE_VAULT, tournament_id_seed(tournament_id)], config.program_id
    )
    return address


def derive_team_address(config: ProgramConfig, tournament_id: int, participant: Pubkey) -> Pubkey:
    address, _ = find_program_address(
        [SEED_TEAM, tournament_id_seed(tournament_id), bytes(participant)],
        config.program_id,
    )
    return address


def derive_player_stats_address(config: ProgramConfig, participant: Pubkey) -> Pubkey:
    address, _ = find_program_address([SEED_PLAYER_STATS, bytes(participant)], config.program_id)
    return address


def derive_participant_list_address(config: ProgramConfig, tournament_id: int) -> Pubkey:
    address, _ = find_program_address(
        [SEED_PARTICIPANT_LIST, tournament_id_seed(tournament_id)], config.program_id
    )
    return address


def derive_associated_token_address(
    config: ProgramConfig,
    owner: Pubkey,
    mint: Optional[Pubkey] = None,
) -> Pubkey:
    mint = config.usdc_mint if mint is None else mint
    address, _ = find_program_address(
        [bytes(owner), bytes(config.token_program_id), bytes(mint)],
        config.associated_token_program_id,
    )
    return address
