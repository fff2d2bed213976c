import json
from decimal import Decimal

import httpx
import pytest
import respx

from baxela.config import Settings
from baxela.errors import ConfigurationError, ProviderError, ValidationFailed
from baxela.payments import (
    PAY_SELECTOR,
    RpcPaymentGateway,
    SimulatedPaymentGateway,
    create_payment_gateway,
    parse_amount,
    to_wei,
)

RPC_URL = "https://rpc.example.org"
CONTRACT = "0x00000000000000000000000000000000000000cc"
SENDER = "0x00000000000000000000000000000000000000dd"
TX_HASH = "0x" + "ab" * 32


@pytest.mark.parametrize("amount", ["0", "-1", "abc", "NaN", "Infinity", None])
def test_parse_amount_rejects(amount):
    with pytest.raises(ValidationFailed) as exc_info:
        parse_amount(amount)
    assert exc_info.value.errors == ["Invalid payment amount"]


def test_to_wei():
    assert to_wei(parse_amount("0.01")) == 10_000_000_000_000_000
    assert to_wei(Decimal("1.5")) == 1_500_000_000_000_000_000


def test_create_payment_gateway():
    assert isinstance(create_payment_gateway(Settings(_env_file=None)), SimulatedPaymentGateway)
    gateway = create_payment_gateway(Settings(
        _env_file=None,
        payment_mode="rpc",
        payment_rpc_url=RPC_URL,
        payment_contract_address=CONTRACT,
        payment_from_address=SENDER,
    ))
    assert isinstance(gateway, RpcPaymentGateway)


def test_rpc_gateway_needs_configuration():
    with pytest.raises(ConfigurationError):
        RpcPaymentGateway("", CONTRACT, SENDER)


async def test_simulated_payment():
    tx_hash = await SimulatedPaymentGateway(delay_seconds=0).submit_payment("0.01")
    assert tx_hash.startswith("0x")
    assert len(tx_hash) == 66


@respx.mock
async def test_rpc_payment():
    route = respx.post(RPC_URL).mock(
        return_value=httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": TX_HASH})
    )
    gateway = RpcPaymentGateway(RPC_URL, CONTRACT, SENDER)

    assert await gateway.submit_payment("0.01") == TX_HASH
    body = json.loads(route.calls.last.request.content)
    assert body["method"] == "eth_sendTransaction"
    assert body["params"] == [{
        "from": SENDER,
        "to": CONTRACT,
        "value": "0x2386f26fc10000",
        "data": PAY_SELECTOR,
    }]


@respx.mock
async def test_rpc_error_response():
    respx.post(RPC_URL).mock(return_value=httpx.Response(
        200, json={"jsonrpc": "2.0", "id": 1, "error": {"code": -32000, "message": "insufficient funds"}}
    ))
    with pytest.raises(ProviderError) as exc_info:
        await RpcPaymentGateway(RPC_URL, CONTRACT, SENDER).submit_payment(1)
    assert exc_info.value.message == "Payment RPC error: insufficient funds"


@respx.mock
async def test_rpc_http_failure():
    respx.post(RPC_URL).mock(return_value=httpx.Response(503, text="unavailable"))
    with pytest.raises(ProviderError) as exc_info:
        await RpcPaymentGateway(RPC_URL, CONTRACT, SENDER).submit_payment(1)
    assert exc_info.value.upstream_status == 503
