# /src/poller.py
import asyncio
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

import aiohttp
from web3 import AsyncHTTPProvider, AsyncWeb3, Web3

from networks import (
    DEFAULT_RPC_TIMEOUT,
    REFERRAL_ABI,
    SUBSCRIPTION_ABI,
    NetworkEndpoint,
    Settings,
)

logger = logging.getLogger(__name__)


class InvalidInput(ValueError):
    """The caller supplied a missing or malformed wallet address."""


class CheckType(str, Enum):
    REFERRAL = "referral"          # count of networks holding a referral code
    SUBSCRIPTION = "subscription"  # 1 if any network reports an active subscription
    REGISTERED = "registered"      # 1 if any network holds a referral code

    @classmethod
    def parse(cls, raw: Optional[str]) -> "CheckType":
        """Unknown or missing values fall back to REFERRAL."""
        if not raw:
            return cls.REFERRAL
        try:
            return cls(raw.strip().lower())
        except ValueError:
            logger.warning("Unknown check type %r, falling back to %s", raw, cls.REFERRAL.value)
            return cls.REFERRAL


Reader = Callable[[NetworkEndpoint, CheckType, str], Awaitable[Any]]

# value a network contributes when its call fails
NEGATIVE: Dict[CheckType, Any] = {
    CheckType.REFERRAL: "",
    CheckType.SUBSCRIPTION: False,
    CheckType.REGISTERED: "",
}


# =========================
# Reduction rules
# =========================
def _present(code: Any) -> bool:
    return isinstance(code, str) and code != ""


def count_present(results: Sequence[Any]) -> int:
    return sum(1 for r in results if _present(r))


def any_present(results: Sequence[Any]) -> int:
    return 1 if any(_present(r) for r in results) else 0


def any_true(results: Sequence[Any]) -> int:
    return 1 if any(r is True for r in results) else 0


REDUCERS: Dict[CheckType, Callable[[Sequence[Any]], int]] = {
    CheckType.REFERRAL: count_present,
    CheckType.SUBSCRIPTION: any_true,
    CheckType.REGISTERED: any_present,
}


# =========================
# On-chain reader
# =========================
class Web3Reader:
    """Reads one value from one network with a fresh AsyncWeb3 provider."""

    def __init__(self, timeout: float = DEFAULT_RPC_TIMEOUT):
        self.timeout = timeout

    async def __call__(self, network: NetworkEndpoint, check_type: CheckType, address: str) -> Any:
        if check_type is CheckType.SUBSCRIPTION:
            if not network.subscription_contract:
                raise LookupError("no subscription contract configured")
            contract_address, abi, fn_name = network.subscription_contract, SUBSCRIPTION_ABI, "hasSubscription"
        else:
            contract_address, abi, fn_name = network.referral_contract, REFERRAL_ABI, "getReferralCode"

        provider = AsyncHTTPProvider(
            network.rpc_url,
            request_kwargs={"timeout": aiohttp.ClientTimeout(total=self.timeout)},
        )
        w3 = AsyncWeb3(provider)
        try:
            contract = w3.eth.contract(address=contract_address, abi=abi)
            fn = getattr(contract.functions, fn_name)
            return await fn(address).call()
        finally:
            await provider.disconnect()


def _describe(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__


# =========================
# Aggregator
# =========================
class NetworkPoller:
    """
    Fans one read out to every configured network, waits for all of them to
    settle, and reduces the results to a single score.

    A failing network contributes its negative value; it never fails the
    request and never cancels the other calls.
    """

    def __init__(self, networks: Sequence[NetworkEndpoint], reader: Optional[Reader] = None,
                 timeout: float = DEFAULT_RPC_TIMEOUT):
        self.networks = tuple(networks)
        self.timeout = timeout
        self.reader = reader or Web3Reader(timeout)

    @classmethod
    def from_settings(cls, settings: Settings, reader: Optional[Reader] = None) -> "NetworkPoller":
        return cls(settings.networks, reader=reader, timeout=settings.rpc_timeout)

    async def _check(self, network: NetworkEndpoint, check_type: CheckType, address: str) -> Any:
        try:
            return await asyncio.wait_for(self.reader(network, check_type, address), timeout=self.timeout)
        except Exception as e:
            logger.warning("Error checking %s for %s: %s", network.name, address, _describe(e))
            return NEGATIVE[check_type]

    async def collect(self, address: str, check_type: CheckType) -> List[Any]:
        """One result per network, in configuration order."""
        return list(await asyncio.gather(*(self._check(n, check_type, address) for n in self.networks)))

    async def compute_score(self, address: Optional[str], check_type: CheckType = CheckType.REFERRAL) -> Dict[str, int]:
        if not address or not isinstance(address, str) or not Web3.is_address(address):
            raise InvalidInput("A valid address is required")
        user_address = Web3.to_checksum_address(address)

        results = await self.collect(user_address, check_type)
        score = REDUCERS[check_type](results)
        logger.info("Score for %s (%s): %d across %d networks", user_address, check_type.value, score, len(results))
        return {"score": score}
