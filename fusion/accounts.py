"""Decode persisted Fusion program accounts.

All accounts start with an 8-byte discriminator, which is skipped here
rather than checked: callers fetch by derived address, so the type is known.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from solders.pubkey import Pubkey

from .codec import Reader, from_minor_units
from .constants import ACCOUNT_DISCRIMINATOR_SIZE, TOURNAMENT_STATUSES, USDC_DECIMALS
from .errors import EncodingError


def status_name(index: int) -> str:
    if index < 0 or index >= len(TOURNAMENT_STATUSES):
        raise EncodingError(f"unknown tournament status index {index}")
    return TOURNAMENT_STATUSES[index]


@dataclass(frozen=True)
class TournamentAccount:
    id: int  # u64
    creator: Pubkey
    name: str
    competition: str
    entry_fee_raw: int  # u64 minor units
    max_participants: int  # u16
    current_participants: int  # u32
    prize_pool_raw: int  # u64 minor units
    registration_deadline: int  # i64 unix seconds
    duration_days: int  # u16
    end_time: int  # i64 unix seconds
    current_gameweek: int  # u32
    status: str
    prizes_distributed: bool
    decimals: int = USDC_DECIMALS

    @property
    def entry_fee(self) -> Decimal:
        return from_minor_units(self.entry_fee_raw, self.decimals)

    @property
    def prize_pool(self) -> Decimal:
        return from_minor_units(self.prize_pool_raw, self.decimals)

    @property
    def is_open(self) -> bool:
        return self.status == "Created" and self.current_participants < self.max_participants

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "creator": str(self.creator),
            "name": self.name,
            "competition": self.competition,
            "entry_fee": format(self.entry_fee, "f"),
            "entry_fee_raw": self.entry_fee_raw,
            "max_participants": self.max_participants,
            "current_participants": self.current_participants,
            "prize_pool": format(self.prize_pool, "f"),
            "prize_pool_raw": self.prize_pool_raw,
            "registration_deadline": self.registration_deadline,
            "duration_days": self.duration_days,
            "end_time": self.end_time,
            "current_gameweek": self.current_gameweek,
            "status": self.status,
            "prizes_distributed": self.prizes_distributed,
        }


@dataclass(frozen=True)
class PlatformAccount:
    authority: Pubkey
    tournament_counter: int  # u64

    @property
    def next_tournament_id(self) -> int:
        return self.tournament_counter + 1


def decode_tournament(data: bytes, decimals: int = USDC_DECIMALS) -> TournamentAccount:
    """Decode a Tournament account.

    Layout (after 8-byte discriminator):
      8   id (u64)
      32  creator (Pubkey)
      4+n name (string)
      4+n competition (string)
      8   entry_fee (u64)
      2   max_participants (u16)
      4   current_participants (u32)
      8   prize_pool (u64)
      8   registration_deadline (i64)
      2   duration_days (u16)
      8   end_time (i64)
      4   current_gameweek (u32)
      1   status (enum)
      1   prizes_distributed (bool)
    """
    reader = Reader(data)
    reader.skip(ACCOUNT_DISCRIMINATOR_SIZE)
    tournament_id = reader.u64()
    creator = Pubkey.from_bytes(reader.pubkey_bytes())
    name = reader.string()
    competition = reader.string()
    entry_fee_raw = reader.u64()
    max_participants = reader.u16()
    current_participants = reader.u32()
    prize_pool_raw = reader.u64()
    registration_deadline = reader.i64()
    duration_days = reader.u16()
    end_time = reader.i64()
    current_gameweek = reader.u32()
    status = status_name(reader.u8())
    prizes_distributed = reader.flag()
    return TournamentAccount(
        id=tournament_id,
        creator=creator,
        name=name,
        competition=competition,
        entry_fee_raw=entry_fee_raw,
        max_participants=max_participants,
        current_participants=current_participants,
        prize_pool_raw=prize_pool_raw,
        registration_deadline=registration_deadline,
        duration_days=duration_days,
        end_time=end_time,
        current_gameweek=current_gameweek,
        status=status,
        prizes_distributed=prizes_distributed,
        decimals=decimals,
    )


def decode_platform(data: bytes) -> PlatformAccount:
    reader = Reader(data)
    reader.skip(ACCOUNT_DISCRIMINATOR_SIZE)
    authority = Pubkey.from_bytes(reader.pubkey_bytes())
    counter = reader.u64()
    return PlatformAccount(authority=authority, tournament_counter=counter)
