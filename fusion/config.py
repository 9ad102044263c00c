"""Client configuration: cluster, program identifiers and wallet selection."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, Optional

import tomli_w
from solders.pubkey import Pubkey

from .constants import (
    ASSOCIATED_TOKEN_PROGRAM_ID,
    DEFAULT_PROGRAM_ID,
    DEFAULT_USDC_MINT,
    RENT_SYSVAR,
    SYSTEM_PROGRAM_ID,
    TOKEN_PROGRAM_ID,
    USDC_DECIMALS,
)
from .errors import PreconditionError

CLUSTER_URLS: Dict[str, str] = {
    "localnet": "http://127.0.0.1:8899",
    "devnet": "https://api.devnet.solana.com",
    "mainnet": "https://api.mainnet-beta.solana.com",
}

COMMITMENTS = {"processed", "confirmed", "finalized"}

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "fusion" / "config.toml"
DEFAULT_KEYPAIR_PATH = Path.home() / ".config" / "solana" / "id.json"

ENV_CLUSTER = "FUSION_CLUSTER"
ENV_RPC_URL = "FUSION_RPC_URL"
ENV_PROGRAM_ID = "FUSION_PROGRAM_ID"
ENV_KEYPAIR = "FUSION_KEYPAIR"


@dataclass(frozen=True)
class ProgramConfig:
    """Immutable set of network and program identifiers.

    Built once at startup and passed to every builder and reader so an
    alternate cluster or a test program can be swapped in without touching
    module state.
    """

    program_id: Pubkey
    usdc_mint: Pubkey
    token_program_id: Pubkey
    associated_token_program_id: Pubkey
    system_program_id: Pubkey
    rent_sysvar: Pubkey
    token_decimals: int = USDC_DECIMALS
    cluster: str = "devnet"
    rpc_url: str = CLUSTER_URLS["devnet"]
    commitment: str = "confirmed"
    wallet_enabled: bool = True
    keypair_path: Optional[str] = None


DEFAULT_CONFIG = ProgramConfig(
    program_id=Pubkey.from_string(DEFAULT_PROGRAM_ID),
    usdc_mint=Pubkey.from_string(DEFAULT_USDC_MINT),
    token_program_id=Pubkey.from_string(TOKEN_PROGRAM_ID),
    associated_token_program_id=Pubkey.from_string(ASSOCIATED_TOKEN_PROGRAM_ID),
    system_program_id=Pubkey.from_string(SYSTEM_PROGRAM_ID),
    rent_sysvar=Pubkey.from_string(RENT_SYSVAR),
)


def _load_toml(path: Path) -> Dict[str, Any]:
    try:
        import tomllib  # Python 3.11+
    except ImportError:  # pragma: no cover
        import tomli as tomllib  # type: ignore
    return tomllib.loads(path.read_text())


def _clean(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    return stripped if stripped else None


def parse_pubkey(value: str, name: str) -> Pubkey:
    try:
        return Pubkey.from_string(value)
    except ValueError as exc:
        raise PreconditionError(f"{name} is not a valid base58 address: {value!r}") from exc


def _table(data: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise PreconditionError(f"[{key}] must be a table")
    return value


def config_from_dict(data: Dict[str, Any], base: ProgramConfig = DEFAULT_CONFIG) -> ProgramConfig:
    cluster_tbl = _table(data, "cluster")
    program_tbl = _table(data, "program")
    wallet_tbl = _table(data, "wallet")

    updates: Dict[str, Any] = {}

    cluster = _clean(cluster_tbl.get("name"))
    if cluster is not None:
        if cluster not in CLUSTER_URLS:
            raise PreconditionError(
                f"cluster.name must be one of {', '.join(sorted(CLUSTER_URLS))}"
            )
        updates["cluster"] = cluster
        updates["rpc_url"] = CLUSTER_URLS[cluster]
    rpc_url = _clean(cluster_tbl.get("rpc_url"))
    if rpc_url is not None:
        updates["rpc_url"] = rpc_url
    commitment = _clean(cluster_tbl.get("commitment"))
    if commitment is not None:
        if commitment not in COMMITMENTS:
            raise PreconditionError("cluster.commitment must be processed, confirmed, or finalized")
        updates["commitment"] = commitment

    for key in (
        "program_id",
        "usdc_mint",
        "token_program_id",
        "associated_token_program_id",
        "system_program_id",
        "rent_sysvar",
    ):
        raw = _clean(program_tbl.get(key))
        if raw is not None:
            updates[key] = parse_pubkey(raw, f"program.{key}")
    decimals = program_tbl.get("token_decimals")
    if decimals is not None:
        if isinstance(decimals, bool) or not isinstance(decimals, int) or not 0 <= decimals <= 18:
            raise PreconditionError("program.token_decimals must be an integer in 0..18")
        updates["token_decimals"] = decimals

    enabled = wallet_tbl.get("enabled")
    if enabled is not None:
        if not isinstance(enabled, bool):
            raise PreconditionError("wallet.enabled must be true or false")
        updates["wallet_enabled"] = enabled
    keypair = _clean(wallet_tbl.get("keypair"))
    if keypair is not None:
        updates["keypair_path"] = keypair

    return replace(base, **updates)


def load_config(path: str | Path) -> ProgramConfig:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    return config_from_dict(_load_toml(path))


def apply_env(config: ProgramConfig, env: Optional[Dict[str, str]] = None) -> ProgramConfig:
    env = os.environ if env is None else env
    updates: Dict[str, Any] = {}
    cluster = _clean(env.get(ENV_CLUSTER))
    if cluster is not None:
        if cluster not in CLUSTER_URLS:
            raise PreconditionError(f"{ENV_CLUSTER} must be one of {', '.join(sorted(CLUSTER_URLS))}")
        updates["cluster"] = cluster
        updates["rpc_url"] = CLUSTER_URLS[cluster]
    rpc_url = _clean(env.get(ENV_RPC_URL))
    if rpc_url is not None:
        updates["rpc_url"] = rpc_url
    program_id = _clean(env.get(ENV_PROGRAM_ID))
    if program_id is not None:
        updates["program_id"] = parse_pubkey(program_id, ENV_PROGRAM_ID)
    keypair = _clean(env.get(ENV_KEYPAIR))
    if keypair is not None:
        updates["keypair_path"] = keypair
    return replace(config, **updates) if updates else config


def resolve_config(
    path: str | Path | None = None,
    *,
    cluster: Optional[str] = None,
    rpc_url: Optional[str] = None,
    program_id: Optional[str] = None,
    keypair: Optional[str] = None,
    env: Optional[Dict[str, str]] = None,
) -> ProgramConfig:
    """Resolve config from file, environment and explicit overrides.

    Precedence: explicit argument > environment > config file > defaults.
    A missing default config file is not an error; a missing explicit one is.
    """
    if path is not None:
        config = load_config(path)
    elif DEFAULT_CONFIG_PATH.exists():
        config = load_config(DEFAULT_CONFIG_PATH)
    else:
        config = DEFAULT_CONFIG
    config = apply_env(config, env)

    updates: Dict[str, Any] = {}
    if cluster:
        if cluster not in CLUSTER_URLS:
            raise PreconditionError(f"cluster must be one of {', '.join(sorted(CLUSTER_URLS))}")
        updates["cluster"] = cluster
        updates["rpc_url"] = CLUSTER_URLS[cluster]
    if rpc_url:
        updates["rpc_url"] = rpc_url
    if program_id:
        updates["program_id"] = parse_pubkey(program_id, "program_id")
    if keypair:
        updates["keypair_path"] = keypair
    return replace(config, **updates) if updates else config


def config_to_dict(config: ProgramConfig) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "cluster": {
            "name": config.cluster,
            "rpc_url": config.rpc_url,
            "commitment": config.commitment,
        },
        "program": {
            "program_id": str(config.program_id),
            "usdc_mint": str(config.usdc_mint),
            "token_program_id": str(config.token_program_id),
            "associated_token_program_id": str(config.associated_token_program_id),
            "system_program_id": str(config.system_program_id),
            "rent_sysvar": str(config.rent_sysvar),
            "token_decimals": config.token_decimals,
        },
        "wallet": {"enabled": config.wallet_enabled},
    }
    if config.keypair_path:
        data["wallet"]["keypair"] = config.keypair_path
    return data


def write_config(path: str | Path, config: ProgramConfig) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(tomli_w.dumps(config_to_dict(config)).encode())
