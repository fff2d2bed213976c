"""Client for the Pinata pinning service (content-addressed storage on IPFS).

All calls fail with ``ConfigurationError`` while the API key/secret are
missing or still set to the placeholder values, and with ``ProviderError``
when Pinata answers with an error status or cannot be reached.
"""

import json
from typing import Any, Dict, Optional

import httpx
import structlog

from .config import PLACEHOLDER_API_KEY, PLACEHOLDER_API_SECRET, Settings
from .errors import ConfigurationError, ProviderError

logger = structlog.get_logger(__name__)

NOT_CONFIGURED = (
    "IPFS credentials not configured. Please set PINATA_API_KEY and PINATA_API_SECRET"
)


class PinningClient:
    provider = "Pinata"

    def __init__(
        self,
        api_key: str,
        api_secret: str,
        api_url: str = "https://api.pinata.cloud",
        gateway_url: str = "https://gateway.pinata.cloud/ipfs",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.api_key = api_key or ""
        self.api_secret = api_secret or ""
        self.api_url = api_url.rstrip("/")
        self.gateway_url = gateway_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport
        if not self.configured:
            logger.warning("pinning_disabled", reason="credentials missing")

    @classmethod
    def from_settings(cls, settings: Settings) -> "PinningClient":
        return cls(
            settings.pinata_api_key,
            settings.pinata_api_secret,
            api_url=settings.pinata_api_url,
            gateway_url=settings.pinata_gateway_url,
            timeout=settings.http_timeout_seconds,
        )

    @property
    def configured(self) -> bool:
        return bool(
            self.api_key
            and self.api_secret
            and self.api_key != PLACEHOLDER_API_KEY
            and self.api_secret != PLACEHOLDER_API_SECRET
        )

    def gateway_link(self, content_id: str) -> str:
        return f"{self.gateway_url}/{content_id}"

    def _headers(self) -> Dict[str, str]:
        if not self.configured:
            raise ConfigurationError(NOT_CONFIGURED)
        return {
            "pinata_api_key": self.api_key,
            "pinata_secret_api_key": self.api_secret,
        }

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self._timeout, transport=self._transport)

    async def _send(self, action: str, method: str, url: str, **kwargs) -> httpx.Response:
        headers = self._headers()
        try:
            async with self._client() as client:
                response = await client.request(method, url, headers=headers, **kwargs)
                response.raise_for_status()
                return response
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.warning("pinning_http_error", action=action, url=url, status=status)
            raise ProviderError(
                f"{action} failed: {status} - {e.response.text}",
                upstream_status=status,
                detail=e.response.text,
            )
        except httpx.RequestError as e:
            logger.warning("pinning_request_error", action=action, url=url, error=str(e))
            raise ProviderError(f"{action} failed: {e}")

    @staticmethod
    def _content_id(action: str, response: httpx.Response) -> str:
        try:
            content_id = response.json()["IpfsHash"]
        except (ValueError, KeyError, TypeError):
            content_id = None
        if not isinstance(content_id, str) or not content_id:
            logger.warning("pinning_unexpected_response", action=action, status=response.status_code)
            raise ProviderError(f"{action} failed: unexpected response - {response.text}", detail=response.text)
        return content_id

    async def pin_json(
        self,
        payload: Any,
        name: Optional[str] = None,
        keyvalues: Optional[Dict[str, str]] = None,
    ) -> str:
        body: Dict[str, Any] = {
            "pinataContent": payload,
            "pinataOptions": {"cidVersion": 1},
        }
        if name or keyvalues:
            body["pinataMetadata"] = {"name": name, "keyvalues": keyvalues or {}}

        response = await self._send("Pinata upload", "POST", f"{self.api_url}/pinning/pinJSONToIPFS", json=body)
        content_id = self._content_id("Pinata upload", response)
        logger.info("json_pinned", content_id=content_id, name=name)
        return content_id

    async def pin_incident(self, incident: Dict[str, Any]) -> str:
        return await self.pin_json(
            incident,
            name=f"incident-{incident['id']}",
            keyvalues={
                "type": "incident_report",
                "category": str(incident.get("category")),
                "severity": str(incident.get("severity")),
                "timestamp": str(incident.get("timestamp")),
            },
        )

    async def pin_file(self, filename: str, content: bytes, content_type: str = "application/octet-stream") -> str:
        metadata = {
            "name": filename,
            "keyvalues": {
                "type": "incident_attachment",
                "filename": filename,
                "size": str(len(content)),
            },
        }
        response = await self._send(
            "File upload",
            "POST",
            f"{self.api_url}/pinning/pinFileToIPFS",
            files={"file": (filename, content, content_type)},
            data={
                "pinataMetadata": json.dumps(metadata),
                "pinataOptions": json.dumps({"cidVersion": 1}),
            },
        )
        content_id = self._content_id("File upload", response)
        logger.info("file_pinned", content_id=content_id, filename=filename, size=len(content))
        return content_id

    async def fetch_json(self, content_id: str) -> Any:
        response = await self._send("IPFS fetch", "GET", self.gateway_link(content_id))
        try:
            return response.json()
        except ValueError:
            raise ProviderError(f"IPFS fetch failed: content {content_id} is not JSON")

    async def test_connectivity(self) -> bool:
        """Probe Pinata's authentication endpoint. Transport errors count as down."""
        headers = self._headers()
        try:
            async with self._client() as client:
                response = await client.get(f"{self.api_url}/data/testAuthentication", headers=headers)
        except httpx.RequestError as e:
            logger.warning("pinning_probe_failed", error=str(e))
            return False
        return response.is_success
