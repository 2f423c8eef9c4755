"""
Tests for Web3Reader against a local aiohttp JSON-RPC server that answers
eth_call with ABI-encoded values. Exercises contract binding, result decoding,
the per-call deadline and provider cleanup without touching a public RPC.
"""

from __future__ import annotations

import asyncio
import time

import pytest
from aiohttp import web
from eth_abi import encode

from conftest import WALLET
from networks import NetworkEndpoint
from poller import CheckType, NetworkPoller, Web3Reader

CALL_RESULTS = {
    "referral": "0x" + encode(["string"], ["ABC"]).hex(),
    "unregistered": "0x" + encode(["string"], [""]).hex(),
    "subscription": "0x" + encode(["bool"], [True]).hex(),
}


class JsonRpcStub:
    """Serves POST /<mode>; modes prefixed with 'slow-' hold the reply until released."""

    def __init__(self):
        self.release = asyncio.Event()
        self.methods = []

    async def handle(self, request):
        mode = request.match_info["mode"]
        payload = await request.json()
        self.methods.append(payload["method"])

        if mode.startswith("slow-"):
            try:
                await asyncio.wait_for(self.release.wait(), timeout=5)
            except asyncio.TimeoutError:
                pass
            mode = mode[len("slow-"):]

        if payload["method"] == "eth_chainId":
            result = "0x1"
        elif payload["method"] == "eth_call":
            result = CALL_RESULTS[mode]
        else:
            result = None
        return web.json_response({"jsonrpc": "2.0", "id": payload["id"], "result": result})


async def with_stub(fn):
    stub = JsonRpcStub()
    app = web.Application()
    app.router.add_post("/{mode}", stub.handle)
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "127.0.0.1", 0)
    await site.start()
    port = runner.addresses[0][1]
    try:
        return await fn(f"http://127.0.0.1:{port}", stub)
    finally:
        stub.release.set()
        await runner.cleanup()


def endpoint(name, rpc_url):
    return NetworkEndpoint(
        name=name,
        rpc_url=rpc_url,
        referral_contract="0x" + "01" * 20,
        subscription_contract="0x" + "02" * 20,
    )


def test_referral_code_is_decoded_to_string():
    async def run(base, stub):
        reader = Web3Reader(timeout=5)
        code = await reader(endpoint("Linea", base + "/referral"), CheckType.REFERRAL, WALLET)
        empty = await reader(endpoint("Base", base + "/unregistered"), CheckType.REFERRAL, WALLET)
        return code, empty, stub.methods

    code, empty, methods = asyncio.run(with_stub(run))

    assert code == "ABC"
    assert empty == ""
    assert "eth_call" in methods


def test_default_reader_scores_subscription():
    async def run(base, stub):
        poller = NetworkPoller([endpoint("Arbitrum", base + "/subscription")], timeout=5)
        assert isinstance(poller.reader, Web3Reader)
        return await poller.compute_score(WALLET, CheckType.SUBSCRIPTION)

    assert asyncio.run(with_stub(run)) == {"score": 1}


def test_slow_rpc_counts_as_negative_within_deadline():
    async def run(base, stub):
        poller = NetworkPoller(
            [endpoint("Ethereum", base + "/slow-referral"), endpoint("BSC", base + "/referral")],
            timeout=0.5,
        )
        started = time.perf_counter()
        result = await poller.compute_score(WALLET, CheckType.REFERRAL)
        return result, time.perf_counter() - started

    result, elapsed = asyncio.run(with_stub(run))

    assert result == {"score": 1}
    assert elapsed < 3


def test_reader_requires_subscription_contract():
    network = NetworkEndpoint(
        name="Linea",
        rpc_url="https://rpc.linea.invalid",
        referral_contract="0x" + "01" * 20,
    )
    with pytest.raises(LookupError):
        asyncio.run(Web3Reader(timeout=0.1)(network, CheckType.SUBSCRIPTION, WALLET))
