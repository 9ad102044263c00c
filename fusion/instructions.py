"""Build Fusion program instructions.

Each builder produces a `solders.instruction.Instruction` with:
  - 8-byte discriminator for the entrypoint
  - arguments serialized in the program's declared order
  - account metas in the exact order the program's accounts struct expects
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Sequence

from solders.instruction import AccountMeta, Instruction
from solders.pubkey import Pubkey

from .codec import encode_i64, encode_string, encode_u16, encode_u32_vec, encode_u64, to_minor_units
from .config import ProgramConfig
from .constants import I64_MAX, I64_MIN, SQUAD_SIZE, U16_MAX, U32_MAX
from .discriminators import resolve_discriminator
from .errors import EncodingError, PreconditionError
from .pda import (
    derive_associated_token_address,
    derive_participant_list_address,
    derive_platform_address,
    derive_player_stats_address,
    derive_prize_vault_address,
    derive_team_address,
    derive_tournament_address,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CreateTournamentParams:
    name: str
    competition: str
    entry_fee: float | str  # decimal USDC, converted to minor units on encode
    max_participants: int
    registration_deadline: int  # unix seconds
    duration_days: int


@dataclass(frozen=True)
class JoinTournamentParams:
    tournament_id: int
    team_name: str
    player_ids: Sequence[int]


def _require_text(value: object, name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise PreconditionError(f"{name} must be a non-empty string")
    return value


def _require_int(value: object, name: str, low: int, high: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise PreconditionError(f"{name} must be an integer")
    if value < low or value > high:
        raise PreconditionError(f"{name} must be within {low}..{high}, got {value}")
    return value


def entry_fee_minor_units(entry_fee: float, decimals: int) -> int:
    try:
        return to_minor_units(entry_fee, decimals)
    except EncodingError as exc:
        raise PreconditionError(f"entry fee {entry_fee!r} is not a valid amount: {exc}") from exc


def validate_create_params(params: CreateTournamentParams) -> None:
    _require_text(params.name, "name")
    _require_text(params.competition, "competition")
    _require_int(params.max_participants, "max_participants", 2, U16_MAX)
    _require_int(params.registration_deadline, "registration_deadline", I64_MIN, I64_MAX)
    _require_int(params.duration_days, "duration_days", 1, U16_MAX)


def validate_squad(player_ids: Sequence[int]) -> List[int]:
    ids = list(player_ids)
    if len(ids) != SQUAD_SIZE:
        raise PreconditionError(f"Must select exactly {SQUAD_SIZE} players, got {len(ids)}")
    for idx, player_id in enumerate(ids):
        _require_int(player_id, f"player_ids[{idx}]", 0, U32_MAX)
    return ids


# --- create_tournament ---
def build_create_tournament_ix(
    config: ProgramConfig,
    creator: Pubkey,
    tournament_id: int,
    params: CreateTournamentParams,
) -> Instruction:
    """Build create_tournament for the id the program will assign next.

    ``tournament_id`` must be the platform counter + 1 read just before
    building; the program rejects any other id.
    """
    validate_create_params(params)
    entry_fee_raw = entry_fee_minor_units(params.entry_fee, config.token_decimals)

    platform = derive_platform_address(config)
    tournament = derive_tournament_address(config, tournament_id)
    prize_vault = derive_prize_vault_address(config, tournament_id)

    data = (
        resolve_discriminator("create_tournament")
        + encode_string(params.name)
        + encode_string(params.competition)
        + encode_u64(entry_fee_raw)
        + encode_u16(params.max_participants)
        + encode_i64(params.registration_deadline)
        + encode_u16(params.duration_days)
    )
    accounts = [
        AccountMeta(platform, is_signer=False, is_writable=True),
        AccountMeta(tournament, is_signer=False, is_writable=True),
        AccountMeta(prize_vault, is_signer=False, is_writable=True),
        AccountMeta(config.usdc_mint, is_signer=False, is_writable=False),
        AccountMeta(creator, is_signer=True, is_writable=True),
        AccountMeta(config.system_program_id, is_signer=False, is_writable=False),
        AccountMeta(config.token_program_id, is_signer=False, is_writable=False),
        AccountMeta(config.rent_sysvar, is_signer=False, is_writable=False),
    ]
    logger.debug(
        "create_tournament id=%d tournament=%s vault=%s payload=%d bytes",
        tournament_id,
        tournament,
        prize_vault,
        len(data),
    )
    return Instruction(config.program_id, data, accounts)


# --- join_tournament ---
def build_join_tournament_ix(
    config: ProgramConfig,
    participant: Pubkey,
    params: JoinTournamentParams,
) -> Instruction:
    player_ids = validate_squad(params.player_ids)
    _require_text(params.team_name, "team_name")

    platform = derive_platform_address(config)
    tournament = derive_tournament_address(config, params.tournament_id)
    team = derive_team_address(config, params.tournament_id, participant)
    player_stats = derive_player_stats_address(config, participant)
    participant_list = derive_participant_list_address(config, params.tournament_id)
    participant_token = derive_associated_token_address(config, participant)
    prize_vault = derive_prize_vault_address(config, params.tournament_id)

    data = (
        resolve_discriminator("join_tournament")
        + encode_string(params.team_name)
        + encode_u32_vec(player_ids)
    )
    accounts = [
        AccountMeta(platform, is_signer=False, is_writable=True),
        AccountMeta(tournament, is_signer=False, is_writable=True),
        AccountMeta(team, is_signer=False, is_writable=True),
        AccountMeta(player_stats, is_signer=False, is_writable=True),
        AccountMeta(participant_list, is_signer=False, is_writable=True),
        AccountMeta(participant_token, is_signer=False, is_writable=True),
        AccountMeta(prize_vault, is_signer=False, is_writable=True),
        AccountMeta(participant, is_signer=True, is_writable=True),
        AccountMeta(config.system_program_id, is_signer=False, is_writable=False),
        AccountMeta(config.token_program_id, is_signer=False, is_writable=False),
        AccountMeta(config.rent_sysvar, is_signer=False, is_writable=False),
    ]
    logger.debug(
        "join_tournament id=%d team=%s payload=%d bytes",
        params.tournament_id,
        team,
        len(data),
    )
    return Instruction(config.program_id, data, accounts)
