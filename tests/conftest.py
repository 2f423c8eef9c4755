"""
Pytest fixtures for the score API. Network access is replaced by FakeReader,
an async callable that returns canned per-network values and records calls.
"""

from __future__ import annotations

import asyncio

import pytest

from networks import NetworkEndpoint, Settings
from poller import NEGATIVE, NetworkPoller

WALLET = "0x1111111111111111111111111111111111111111"
NETWORK_NAMES = ["Linea", "Arbitrum", "Ethereum", "Base", "BSC"]
GALXE = "https://app.galxe.com"


class FakeReader:
    def __init__(self, values=None, errors=None, delays=None):
        self.values = values or {}
        self.errors = errors or {}
        self.delays = delays or {}
        self.calls = []

    async def __call__(self, network, check_type, address):
        self.calls.append((network.name, check_type, address))
        if network.name in self.delays:
            await asyncio.sleep(self.delays[network.name])
        if network.name in self.errors:
            raise self.errors[network.name]
        return self.values.get(network.name, NEGATIVE[check_type])


@pytest.fixture
def networks():
    return tuple(
        NetworkEndpoint(
            name=name,
            rpc_url=f"https://rpc.{name.lower()}.invalid",
            referral_contract="0x" + f"{i + 1:02d}" * 20,
            subscription_contract="0x" + f"{i + 11:02d}" * 20,
        )
        for i, name in enumerate(NETWORK_NAMES)
    )


@pytest.fixture
def settings(networks):
    return Settings(networks=networks, rpc_timeout=1.0, allowed_origins=(GALXE, "https://galxe.com"))


@pytest.fixture
def make_poller(networks):
    def _make(reader, timeout=1.0):
        return NetworkPoller(networks, reader=reader, timeout=timeout)
    return _make
