"""Fusion program constants, seeds and account layouts."""

# Default Football Fusion program ID (devnet v0).
DEFAULT_PROGRAM_ID = "5AaoN6kBmNoEqTiNPaV2y1am9QrEEHwgRHneR1QNExLm"
# Devnet USDC mint used for entry fees.
DEFAULT_USDC_MINT = "4zMMC9srt5Ri5X14GAgXhaHii3GnPAEERYPJgZJDncDU"
TOKEN_PROGRAM_ID = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"
ASSOCIATED_TOKEN_PROGRAM_ID = "ATokenGPvbdGVxr1b2hvZbsiqW5xWH25efTNsLJA8knL"
SYSTEM_PROGRAM_ID = "11111111111111111111111111111111"
RENT_SYSVAR = "SysvarRent111111111111111111111111111111111"

USDC_DECIMALS = 6
LAMPORTS_PER_SOL = 1_000_000_000

# PDA seed tags from the program's account constraints.
SEED_PLATFORM = b"platform"
SEED_TOURNAMENT = b"tournament"
SEED_PRIZE_VAULT = b"prize_vault"
SEED_TEAM = b"team"
SEED_PLAYER_STATS = b"player_stats"
SEED_PARTICIPANT_LIST = b"participant_list"

MAX_SEEDS = 16
MAX_SEED_LEN = 32
PUBKEY_SIZE = 32

# Every persisted account starts with an 8-byte type tag.
ACCOUNT_DISCRIMINATOR_SIZE = 8
INSTRUCTION_DISCRIMINATOR_SIZE = 8

# Platform layout: discriminator, authority, tournament_counter.
PLATFORM_AUTHORITY_OFFSET = ACCOUNT_DISCRIMINATOR_SIZE
PLATFORM_COUNTER_OFFSET = PLATFORM_AUTHORITY_OFFSET + PUBKEY_SIZE

# SPL token account layout: mint, owner, amount.
TOKEN_ACCOUNT_AMOUNT_OFFSET = 64

SQUAD_SIZE = 15

TOURNAMENT_STATUSES = ("Created", "Active", "Completed", "Cancelled")

U8_MAX = 0xFF
U16_MAX = 0xFFFF
U32_MAX = 0xFFFF_FFFF
U64_MAX = 2**64 - 1
I64_MIN = -(2**63)
I64_MAX = 2**63 - 1
