# /src/handler.py
import os
import json
import asyncio
import logging
import argparse
from functools import lru_cache
from typing import Any, Dict, Mapping, Optional

from dotenv import load_dotenv

from networks import DEFAULT_ALLOWED_ORIGINS, Settings, load_settings
from poller import CheckType, InvalidInput, NetworkPoller

logger = logging.getLogger(__name__)

# =========================
# HTTP constants
# =========================
ALLOW_METHODS = "GET, POST, OPTIONS"
ALLOW_HEADERS = "Content-Type, Authorization"

INVALID_ADDRESS_BODY = {"error": "A valid address is required"}
INTERNAL_ERROR_BODY = {"score": 0}


def configure_logging() -> None:
    logging.basicConfig(
        level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )


@lru_cache(maxsize=1)
def default_settings() -> Settings:
    load_dotenv(dotenv_path=os.path.join(os.getcwd(), ".env"), override=True)
    return load_settings()


@lru_cache(maxsize=1)
def default_poller() -> NetworkPoller:
    return NetworkPoller.from_settings(default_settings())


# =========================
# Helpers
# =========================
def _header(headers: Mapping[str, Any], name: str) -> Optional[str]:
    name = name.lower()
    for k, v in headers.items():
        if k.lower() == name:
            return v
    return None


def _query_value(query: Mapping[str, Any], name: str) -> Optional[str]:
    value = query.get(name)
    # parse_qs style: {"address": ["0x..."]}
    if isinstance(value, (list, tuple)):
        value = value[0] if value else None
    return value


def cors_headers(origin: Optional[str], allowed_origins) -> Dict[str, str]:
    return {
        "Access-Control-Allow-Origin": origin if origin and origin in allowed_origins else "*",
        "Access-Control-Allow-Methods": ALLOW_METHODS,
        "Access-Control-Allow-Headers": ALLOW_HEADERS,
    }


def _response(status: int, headers: Dict[str, str], body: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    if body is None:
        return {"statusCode": status, "headers": headers, "body": ""}
    return {
        "statusCode": status,
        "headers": {**headers, "Content-Type": "application/json"},
        "body": json.dumps(body),
    }


# =========================
# Serverless entrypoint
# =========================
def handler(event: Dict[str, Any], poller: Optional[NetworkPoller] = None,
            settings: Optional[Settings] = None) -> Dict[str, Any]:
    """
    Platform-neutral request handler. The event looks like:
      { "method": "GET", "headers": {"Origin": "..."}, "query": {"address": "0x...", "type": "referral"} }

    Returns { "statusCode": int, "headers": {...}, "body": "<json or empty>" }.
    """
    method = (event.get("method") or "GET").upper()
    headers = event.get("headers") or {}
    query = event.get("query") or {}

    settings_failed = False
    try:
        allowed = (settings or default_settings()).allowed_origins
    except Exception:
        logger.exception("Failed to load settings")
        settings_failed = True
        allowed = DEFAULT_ALLOWED_ORIGINS

    cors = cors_headers(_header(headers, "Origin"), allowed)

    # preflight never depends on the network table
    if method == "OPTIONS":
        return _response(200, cors, None)
    if settings_failed:
        return _response(500, cors, INTERNAL_ERROR_BODY)

    address = _query_value(query, "address")
    check_type = CheckType.parse(_query_value(query, "type"))

    try:
        if poller is None:
            poller = NetworkPoller.from_settings(settings) if settings else default_poller()
        result = asyncio.run(poller.compute_score(address, check_type))
    except InvalidInput:
        return _response(400, cors, INVALID_ADDRESS_BODY)
    except Exception:
        logger.exception("Main API error")
        return _response(500, cors, INTERNAL_ERROR_BODY)

    return _response(200, cors, result)


# =========================
# Local CLI helper (optional)
# =========================
def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Multichain referral/subscription score for a wallet, JSON output with --json-only"
    )
    parser.add_argument("address", nargs="?", help="Wallet address (checksum or hex).")
    parser.add_argument("--type", dest="check_type", default=CheckType.REFERRAL.value,
                        choices=[c.value for c in CheckType], help="Which score to compute.")
    parser.add_argument("--networks", dest="networks_config", default=None,
                        help="JSON network table replacing the built-in one.")
    parser.add_argument("--timeout", type=float, default=None, help="Per-network RPC timeout in seconds.")
    parser.add_argument("--json-only", action="store_true",
                        help="Print ONLY the JSON score to stdout (no prompts, no banners).")
    return parser.parse_args()


if __name__ == "__main__":
    # Local testing:
    #   python src/handler.py --json-only 0xYourAddress
    #   python src/handler.py --type subscription --networks examples/networks.example.json 0xYourAddress
    load_dotenv(dotenv_path=os.path.join(os.getcwd(), ".env"), override=True)
    args = _parse_args()
    if args.networks_config:
        os.environ["NETWORKS_CONFIG"] = args.networks_config
    if args.timeout is not None:
        os.environ["RPC_TIMEOUT_SECONDS"] = str(args.timeout)
    configure_logging()

    addr = args.address or os.environ.get("MY_ADDRESS")
    if not addr:
        if args.json_only:
            raise SystemExit("Missing address. Provide as CLI arg or MY_ADDRESS in .env.")
        addr = input("Please enter your wallet address: ").strip()
        if not addr:
            raise SystemExit("Error: No address provided. Exiting.")

    cli_poller = NetworkPoller.from_settings(load_settings())
    try:
        score = asyncio.run(cli_poller.compute_score(addr, CheckType(args.check_type)))
    except InvalidInput as e:
        raise SystemExit(f"Error: Invalid address '{addr}'. {e}")

    if args.json_only:
        print(json.dumps(score, ensure_ascii=False))
    else:
        print(f"Checking {args.check_type} for {addr} across {len(cli_poller.networks)} networks...")
        print("\n--- Score ---")
        print(json.dumps(score, indent=2, ensure_ascii=False))
