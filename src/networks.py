# /src/networks.py
import os
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from jsonschema import Draft202012Validator
from web3 import Web3

# =========================
# Minimal ABIs
# =========================
REFERRAL_ABI = [
    {"name": "getReferralCode", "inputs": [{"name": "user", "type": "address"}],
     "outputs": [{"type": "string", "name": ""}], "stateMutability": "view", "type": "function"},
]

SUBSCRIPTION_ABI = [
    {"name": "hasSubscription", "inputs": [{"name": "user", "type": "address"}],
     "outputs": [{"type": "bool", "name": ""}], "stateMutability": "view", "type": "function"},
]

# =========================
# Defaults
# =========================
DEFAULT_NETWORKS: List[Dict[str, Any]] = [
    {"name": "Linea", "rpc_url": "https://rpc.linea.build",
     "referral_contract": "0xB78F9d52405DcF40D6fC684032fDaf658dA67725"},
    {"name": "Arbitrum", "rpc_url": "https://arb1.arbitrum.io/rpc",
     "referral_contract": "0xAd2969f87Def708FE5BaCbA4662a9e704dE8cdC4"},
    {"name": "Ethereum", "rpc_url": "https://1rpc.io/eth",
     "referral_contract": "0xDFe1AF29E0Acfe73D61374619091A11582E56696"},
    {"name": "Base", "rpc_url": "https://base.drpc.org",
     "referral_contract": "0xf7523828D4934F468F23A2AECdB1D7CA224E8d38"},
    {"name": "BSC", "rpc_url": "https://1rpc.io/bnb",
     "referral_contract": "0xBf67C207031B0Bdc8f64265B885ffAe95C2076d9"},
]

DEFAULT_ALLOWED_ORIGINS: Tuple[str, ...] = (
    "https://galxe.com",
    "https://app.galxe.com",
    "https://dashboard.galxe.com",
)

DEFAULT_RPC_TIMEOUT = 10.0

SCHEMA_DIR = Path(__file__).resolve().parent.parent / "schemas"
NETWORKS_SCHEMA_PATH = SCHEMA_DIR / "networks.schema.json"


class ConfigError(ValueError):
    """Raised when the network table or an environment override is unusable."""


@dataclass(frozen=True)
class NetworkEndpoint:
    name: str
    rpc_url: str
    referral_contract: str
    subscription_contract: Optional[str] = None


@dataclass(frozen=True)
class Settings:
    networks: Tuple[NetworkEndpoint, ...]
    rpc_timeout: float = DEFAULT_RPC_TIMEOUT
    allowed_origins: Tuple[str, ...] = DEFAULT_ALLOWED_ORIGINS


# =========================
# Helpers
# =========================
def _env_key(name: str, suffix: str) -> str:
    return "".join(c if c.isalnum() else "_" for c in name).upper() + "_" + suffix


def _checksum(value: str, field: str, network: str) -> str:
    if not Web3.is_address(value):
        raise ConfigError(f"{network}: '{field}' is not a valid address: {value!r}")
    return Web3.to_checksum_address(value)


def validate_network_table(table: Any) -> None:
    """Check a raw network table against schemas/networks.schema.json."""
    schema = json.loads(NETWORKS_SCHEMA_PATH.read_text(encoding="utf-8"))
    validator = Draft202012Validator(schema)
    errors = sorted(validator.iter_errors(table), key=lambda e: list(e.path))
    if errors:
        first = errors[0]
        where = "/".join(str(p) for p in first.path) or "<root>"
        raise ConfigError(f"Invalid network table at {where}: {first.message}")


def build_networks(table: List[Dict[str, Any]], env: Optional[Dict[str, str]] = None) -> Tuple[NetworkEndpoint, ...]:
    """
    Turn a raw network table into immutable endpoints.

    Per-network environment overrides:
      <NAME>_RPC_URL                 replaces rpc_url
      <NAME>_SUBSCRIPTION_CONTRACT   sets subscription_contract
    """
    env = os.environ if env is None else env
    validate_network_table(table)

    seen = set()
    out: List[NetworkEndpoint] = []
    for row in table:
        name = row["name"]
        if name.lower() in seen:
            raise ConfigError(f"Duplicate network name: {name}")
        seen.add(name.lower())

        rpc_url = env.get(_env_key(name, "RPC_URL")) or row["rpc_url"]
        sub = env.get(_env_key(name, "SUBSCRIPTION_CONTRACT")) or row.get("subscription_contract")

        out.append(NetworkEndpoint(
            name=name,
            rpc_url=rpc_url,
            referral_contract=_checksum(row["referral_contract"], "referral_contract", name),
            subscription_contract=_checksum(sub, "subscription_contract", name) if sub else None,
        ))
    return tuple(out)


def load_network_table(path: Optional[str]) -> List[Dict[str, Any]]:
    if not path:
        return [dict(row) for row in DEFAULT_NETWORKS]
    p = Path(path)
    try:
        return json.loads(p.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigError(f"Cannot read network config {p}: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"Network config {p} is not valid JSON: {e}") from e


def load_settings(env: Optional[Dict[str, str]] = None) -> Settings:
    """Build Settings from the environment (call load_dotenv first if wanted)."""
    env = os.environ if env is None else env

    table = load_network_table(env.get("NETWORKS_CONFIG"))
    networks = build_networks(table, env)

    raw_timeout = env.get("RPC_TIMEOUT_SECONDS")
    try:
        timeout = float(raw_timeout) if raw_timeout else DEFAULT_RPC_TIMEOUT
    except ValueError as e:
        raise ConfigError(f"RPC_TIMEOUT_SECONDS must be a number, got {raw_timeout!r}") from e
    if timeout <= 0:
        raise ConfigError("RPC_TIMEOUT_SECONDS must be positive")

    raw_origins = env.get("ALLOWED_ORIGINS")
    if raw_origins:
        origins = tuple(o.strip() for o in raw_origins.split(",") if o.strip())
    else:
        origins = DEFAULT_ALLOWED_ORIGINS

    return Settings(networks=networks, rpc_timeout=timeout, allowed_origins=origins)
