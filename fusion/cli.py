"""CLI entrypoint for the Fusion tournament client."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path

from solders.pubkey import Pubkey
from solders.transaction import Transaction

from .client import FusionClient
from .config import DEFAULT_CONFIG_PATH, ProgramConfig, config_to_dict, parse_pubkey, resolve_config, write_config
from .discriminators import KNOWN_DISCRIMINATORS, resolve_discriminator
from .errors import FusionError, PreconditionError, UserRejection
from .instructions import CreateTournamentParams, JoinTournamentParams
from .pda import (
    derive_associated_token_address,
    derive_participant_list_address,
    derive_platform_address,
    derive_player_stats_address,
    derive_prize_vault_address,
    derive_team_address,
    derive_tournament_address,
)
from .rpc import FusionRpc
from .wallet import ApproveCallback, create_wallet

PDA_KINDS = [
    "platform",
    "tournament",
    "prize-vault",
    "team",
    "player-stats",
    "participant-list",
    "token-account",
]


def _resolve(args: argparse.Namespace) -> ProgramConfig:
    return resolve_config(
        args.config,
        cluster=args.cluster,
        rpc_url=args.rpc_url,
        program_id=args.program_id,
        keypair=args.keypair,
    )


def _parse_deadline(raw: str) -> int:
    text = raw.strip()
    if text.lstrip("-").isdigit():
        return int(text)
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as exc:
        raise PreconditionError(
            f"deadline must be unix seconds or ISO-8601, got {raw!r}"
        ) from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return int(parsed.timestamp())


def _parse_players(raw: str) -> list[int]:
    ids: list[int] = []
    for part in raw.split(","):
        part = part.strip()
        if not part:
            continue
        if not part.isdigit():
            raise PreconditionError(f"player id must be a non-negative integer, got {part!r}")
        ids.append(int(part))
    return ids


def _prompt_approval(label: str) -> ApproveCallback:
    def approve(tx: Transaction) -> bool:
        print(f"{label}")
        print(f"  fee payer: {tx.message.account_keys[0]}")
        try:
            answer = input("Sign and send? [y/N] ").strip().lower()
        except (EOFError, KeyboardInterrupt):
            # No answer is a decline.
            print()
            return False
        return answer in {"y", "yes"}

    return approve


async def _with_client(config: ProgramConfig, approve: ApproveCallback | None, action):
    wallet = create_wallet(config, approve=approve)
    async with FusionRpc.from_config(config) as rpc:
        client = FusionClient(config, rpc, wallet)
        return await action(client)


# ── config ─────────────────────────────────────────────────────────


def _cmd_config_init(args: argparse.Namespace) -> int:
    out = Path(args.out) if args.out else DEFAULT_CONFIG_PATH
    if out.exists() and not args.force:
        raise PreconditionError(f"{out} already exists (use --force to overwrite)")
    config = resolve_config(
        None,
        cluster=args.cluster,
        rpc_url=args.rpc_url,
        program_id=args.program_id,
        keypair=args.keypair,
    )
    if args.no_wallet:
        config = replace(config, wallet_enabled=False)
    write_config(out, config)
    print(f"Wrote {out}")
    return 0


def _cmd_config_show(args: argparse.Namespace) -> int:
    config = _resolve(args)
    print(json.dumps(config_to_dict(config), indent=2))
    return 0


# ── pda / discriminator ────────────────────────────────────────────


def _require_id(args: argparse.Namespace) -> int:
    if args.id is None:
        raise PreconditionError(f"--id is required for {args.kind}")
    return args.id


def _require_owner(args: argparse.Namespace) -> Pubkey:
    if not args.owner:
        raise PreconditionError(f"--owner is required for {args.kind}")
    return parse_pubkey(args.owner, "--owner")


def _cmd_pda(args: argparse.Namespace) -> int:
    config = _resolve(args)
    kind = args.kind
    if kind == "platform":
        address = derive_platform_address(config)
    elif kind == "tournament":
        address = derive_tournament_address(config, _require_id(args))
    elif kind == "prize-vault":
        address = derive_prize_vault_address(config, _require_id(args))
    elif kind == "team":
        address = derive_team_address(config, _require_id(args), _require_owner(args))
    elif kind == "player-stats":
        address = derive_player_stats_address(config, _require_owner(args))
    elif kind == "participant-list":
        address = derive_participant_list_address(config, _require_id(args))
    else:
        address = derive_associated_token_address(config, _require_owner(args))
    print(address)
    return 0


def _cmd_discriminator(args: argparse.Namespace) -> int:
    disc = resolve_discriminator(args.name)
    source = "table" if args.name in KNOWN_DISCRIMINATORS else "sha256"
    print(f"{args.name}: {list(disc)} (0x{disc.hex()}, {source})")
    return 0


# ── tournaments ────────────────────────────────────────────────────


def _cmd_tournament_show(args: argparse.Namespace) -> int:
    config = _resolve(args)

    async def action(client: FusionClient):
        return await client.get_tournament(args.id)

    tournament = asyncio.run(_with_client(config, None, action))
    if tournament is None:
        print(f"Tournament {args.id} not found")
        return 1
    if args.json:
        print(json.dumps(tournament.to_dict(), indent=2))
        return 0
    print("Tournament:")
    print(f"  id: {tournament.id}")
    print(f"  name: {tournament.name}")
    print(f"  competition: {tournament.competition}")
    print(f"  creator: {tournament.creator}")
    print(f"  status: {tournament.status}")
    print(f"  entry_fee: {tournament.entry_fee:.6f} ({tournament.entry_fee_raw} raw)")
    print(f"  prize_pool: {tournament.prize_pool:.6f} ({tournament.prize_pool_raw} raw)")
    print(f"  participants: {tournament.current_participants}/{tournament.max_participants}")
    print(f"  registration_deadline: {tournament.registration_deadline}")
    print(f"  duration_days: {tournament.duration_days}")
    print(f"  end_time: {tournament.end_time}")
    print(f"  current_gameweek: {tournament.current_gameweek}")
    print(f"  prizes_distributed: {str(tournament.prizes_distributed).lower()}")
    return 0


def _cmd_tournament_create(args: argparse.Namespace) -> int:
    config = _resolve(args)
    params = CreateTournamentParams(
        name=args.name,
        competition=args.competition,
        entry_fee=args.entry_fee,
        max_participants=args.max_participants,
        registration_deadline=_parse_deadline(args.deadline),
        duration_days=args.duration_days,
    )
    approve = None if args.yes else _prompt_approval(f"Create tournament '{params.name}'")

    async def action(client: FusionClient):
        await client.wallet.connect()
        return await client.create_tournament(params)

    result = asyncio.run(_with_client(config, approve, action))
    print("Tournament created:")
    print(f"  on_chain_id: {result.on_chain_id}")
    print(f"  signature: {result.signature}")
    return 0


def _cmd_tournament_join(args: argparse.Namespace) -> int:
    config = _resolve(args)
    params = JoinTournamentParams(
        tournament_id=args.id,
        team_name=args.team_name,
        player_ids=_parse_players(args.players),
    )
    approve = None if args.yes else _prompt_approval(f"Join tournament {params.tournament_id}")

    async def action(client: FusionClient):
        await client.wallet.connect()
        return await client.join_tournament(params, check_balance=not args.skip_balance_check)

    signature = asyncio.run(_with_client(config, approve, action))
    print(f"Joined tournament {params.tournament_id}: {signature}")
    return 0


def _cmd_balance(args: argparse.Namespace) -> int:
    config = _resolve(args)
    owner = parse_pubkey(args.owner, "--owner") if args.owner else None

    async def action(client: FusionClient):
        if owner is None:
            await client.wallet.connect()
        return await client.get_balances(owner)

    balances = asyncio.run(_with_client(config, None, action))
    print("Balances:")
    print(f"  sol: {balances.sol:.9f} ({balances.lamports} lamports)")
    print(f"  usdc: {balances.usdc.amount:.6f} ({balances.usdc.raw} raw)")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog=os.path.basename(sys.argv[0]))
    parser.add_argument("--config", help=f"Config file (default: {DEFAULT_CONFIG_PATH})")
    parser.add_argument("--cluster", choices=["localnet", "devnet", "mainnet"], help="Cluster to target")
    parser.add_argument("--rpc-url", help="Override RPC URL")
    parser.add_argument("--program-id", help=argparse.SUPPRESS)
    parser.add_argument("--keypair", help="Signer keypair path")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="cmd", required=True)

    p_config = sub.add_parser("config", help="Manage client configuration")
    p_config_sub = p_config.add_subparsers(dest="config_cmd", required=True)

    p_config_init = p_config_sub.add_parser("init", help="Write a config file")
    p_config_init.add_argument("--out", help=f"Output path (default: {DEFAULT_CONFIG_PATH})")
    p_config_init.add_argument("--no-wallet", action="store_true", help="Disable signing")
    p_config_init.add_argument("--force", action="store_true", help="Overwrite an existing file")
    p_config_init.set_defaults(func=_cmd_config_init)

    p_config_show = p_config_sub.add_parser("show", help="Print the resolved configuration")
    p_config_show.set_defaults(func=_cmd_config_show)

    p_pda = sub.add_parser("pda", help="Derive a program address")
    p_pda.add_argument("kind", choices=PDA_KINDS)
    p_pda.add_argument("--id", type=int, help="Tournament id")
    p_pda.add_argument("--owner", help="Participant/owner address")
    p_pda.set_defaults(func=_cmd_pda)

    p_disc = sub.add_parser("discriminator", help="Print an instruction discriminator")
    p_disc.add_argument("name", help="Instruction name, e.g. create_tournament")
    p_disc.set_defaults(func=_cmd_discriminator)

    p_tournament = sub.add_parser("tournament", help="Tournament operations")
    p_tournament_sub = p_tournament.add_subparsers(dest="tournament_cmd", required=True)

    p_show = p_tournament_sub.add_parser("show", help="Fetch and decode a tournament")
    p_show.add_argument("--id", type=int, required=True, help="On-chain tournament id")
    p_show.add_argument("--json", action="store_true", help="Emit JSON")
    p_show.set_defaults(func=_cmd_tournament_show)

    p_create = p_tournament_sub.add_parser("create", help="Create a tournament")
    p_create.add_argument("--name", required=True)
    p_create.add_argument("--competition", required=True)
    p_create.add_argument("--entry-fee", required=True, help="Entry fee in USDC, e.g. 10.5")
    p_create.add_argument("--max-participants", type=int, required=True)
    p_create.add_argument("--deadline", required=True, help="Registration deadline (unix seconds or ISO-8601)")
    p_create.add_argument("--duration-days", type=int, required=True)
    p_create.add_argument("--yes", "-y", action="store_true", help="Sign without prompting")
    p_create.set_defaults(func=_cmd_tournament_create)

    p_join = p_tournament_sub.add_parser("join", help="Join a tournament with a squad")
    p_join.add_argument("--id", type=int, required=True, help="On-chain tournament id")
    p_join.add_argument("--team-name", required=True)
    p_join.add_argument("--players", required=True, help="Comma-separated list of 15 player ids")
    p_join.add_argument("--skip-balance-check", action="store_true", help="Skip the client-side USDC check")
    p_join.add_argument("--yes", "-y", action="store_true", help="Sign without prompting")
    p_join.set_defaults(func=_cmd_tournament_join)

    p_balance = sub.add_parser("balance", help="Show SOL and USDC balances")
    p_balance.add_argument("--owner", help="Address to inspect (default: signer)")
    p_balance.set_defaults(func=_cmd_balance)

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        return args.func(args)
    except UserRejection:
        print("Cancelled: transaction was not signed.")
        return 2
    except FileNotFoundError as exc:
        print(str(exc))
        return 1
    except (FusionError, ValueError) as exc:
        print(str(exc))
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
