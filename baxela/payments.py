"""Payment gateways: submit a payment and get back a transaction reference.

``SimulatedPaymentGateway`` waits for a configurable delay and returns a
random transaction hash. ``RpcPaymentGateway`` sends a ``pay()`` call with
the amount attached to the payment contract through an EVM JSON-RPC node.
"""

import asyncio
import secrets
from abc import ABC, abstractmethod
from decimal import Decimal, InvalidOperation
from typing import Any, Optional, Union

import httpx
import structlog

from .config import Settings
from .errors import ConfigurationError, ProviderError, ValidationFailed

logger = structlog.get_logger(__name__)

WEI_PER_ETHER = 10 ** 18
# First four bytes of keccak256("pay()")
PAY_SELECTOR = "0x1b9265b8"

Amount = Union[str, int, float, Decimal]


def new_transaction_hash() -> str:
    return "0x" + secrets.token_hex(32)


def parse_amount(amount: Amount) -> Decimal:
    try:
        value = Decimal(str(amount))
    except (InvalidOperation, ValueError):
        raise ValidationFailed(["Invalid payment amount"])
    if not value.is_finite() or value <= 0:
        raise ValidationFailed(["Invalid payment amount"])
    return value


def to_wei(amount: Decimal) -> int:
    return int(amount * WEI_PER_ETHER)


class PaymentGateway(ABC):
    @abstractmethod
    async def submit_payment(self, amount: Amount) -> str:
        """Pay ``amount`` (in ether) and return the transaction reference."""


class SimulatedPaymentGateway(PaymentGateway):
    def __init__(self, delay_seconds: float = 2.0) -> None:
        self.delay_seconds = delay_seconds

    async def submit_payment(self, amount: Amount) -> str:
        value = parse_amount(amount)
        if self.delay_seconds > 0:
            await asyncio.sleep(self.delay_seconds)
        tx_hash = new_transaction_hash()
        logger.info("payment_simulated", amount=str(value), transaction_hash=tx_hash)
        return tx_hash


class RpcPaymentGateway(PaymentGateway):
    def __init__(
        self,
        rpc_url: str,
        contract_address: str,
        from_address: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        if not rpc_url or not from_address:
            raise ConfigurationError("Payment RPC url and sender address must be configured")
        self.rpc_url = rpc_url
        self.contract_address = contract_address
        self.from_address = from_address
        self._timeout = timeout
        self._transport = transport

    async def _call(self, method: str, params: list) -> Any:
        payload = {"jsonrpc": "2.0", "id": 1, "method": method, "params": params}
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(self.rpc_url, json=payload)
                response.raise_for_status()
                body = response.json()
        except httpx.HTTPStatusError as e:
            logger.warning("rpc_http_error", method=method, status=e.response.status_code)
            raise ProviderError(
                f"Payment RPC failed: {e.response.status_code}",
                upstream_status=e.response.status_code,
                detail=e.response.text,
            )
        except httpx.RequestError as e:
            logger.warning("rpc_request_error", method=method, error=str(e))
            raise ProviderError(f"Payment RPC unreachable: {e}")

        if body.get("error"):
            error = body["error"]
            raise ProviderError(f"Payment RPC error: {error.get('message', 'unknown error')}", detail=str(error))
        return body.get("result")

    async def submit_payment(self, amount: Amount) -> str:
        value = parse_amount(amount)
        tx = {
            "from": self.from_address,
            "to": self.contract_address,
            "value": hex(to_wei(value)),
            "data": PAY_SELECTOR,
        }
        tx_hash = await self._call("eth_sendTransaction", [tx])
        logger.info("payment_submitted", amount=str(value), transaction_hash=tx_hash)
        return tx_hash


def create_payment_gateway(settings: Settings) -> PaymentGateway:
    if settings.payment_mode == "rpc":
        return RpcPaymentGateway(
            settings.payment_rpc_url,
            settings.payment_contract_address,
            settings.payment_from_address,
            timeout=settings.http_timeout_seconds,
        )
    return SimulatedPaymentGateway(settings.payment_delay_seconds)
