import json

import httpx
import pytest
import respx

from baxela.config import PLACEHOLDER_API_KEY, PLACEHOLDER_API_SECRET, Settings
from baxela.errors import ConfigurationError, ProviderError
from baxela.incidents import Attachment
from baxela.ipfs import PinningClient

API = "https://api.pinata.cloud"
GATEWAY = "https://gateway.pinata.cloud/ipfs"
CID = "bafkreigh2akiscaildcqabsyg3dfr6chu3fgpregiymsck7e7aqa4s52zy"


@pytest.fixture
def pinning():
    return PinningClient("key-123", "secret-456")


def test_placeholder_credentials_count_as_missing():
    assert not PinningClient(PLACEHOLDER_API_KEY, PLACEHOLDER_API_SECRET).configured
    assert not PinningClient("", "secret").configured
    assert PinningClient("key", "secret").configured


def test_from_settings():
    settings = Settings(
        _env_file=None,
        pinata_api_key="k",
        pinata_api_secret="s",
        pinata_gateway_url="https://ipfs.example.com/ipfs/",
    )
    client = PinningClient.from_settings(settings)
    assert client.configured
    assert client.gateway_link(CID) == f"https://ipfs.example.com/ipfs/{CID}"


@respx.mock(assert_all_called=False)
async def test_unconfigured_client_never_calls_out():
    route = respx.post(f"{API}/pinning/pinJSONToIPFS")
    client = PinningClient(PLACEHOLDER_API_KEY, PLACEHOLDER_API_SECRET)
    with pytest.raises(ConfigurationError) as exc_info:
        await client.pin_json({"a": 1})
    assert "PINATA_API_KEY" in exc_info.value.message
    assert not route.called


@respx.mock
async def test_pin_json(pinning):
    route = respx.post(f"{API}/pinning/pinJSONToIPFS").mock(
        return_value=httpx.Response(200, json={"IpfsHash": CID, "PinSize": 12, "Timestamp": "2026-10-18T12:00:00Z"})
    )

    content_id = await pinning.pin_json({"hello": "world"}, name="greeting", keyvalues={"type": "test"})

    assert content_id == CID
    request = route.calls.last.request
    assert request.headers["pinata_api_key"] == "key-123"
    assert request.headers["pinata_secret_api_key"] == "secret-456"
    body = json.loads(request.content)
    assert body == {
        "pinataContent": {"hello": "world"},
        "pinataOptions": {"cidVersion": 1},
        "pinataMetadata": {"name": "greeting", "keyvalues": {"type": "test"}},
    }


@respx.mock
async def test_pin_incident_metadata(pinning):
    route = respx.post(f"{API}/pinning/pinJSONToIPFS").mock(
        return_value=httpx.Response(200, json={"IpfsHash": CID})
    )
    await pinning.pin_incident({
        "id": "incident-1",
        "category": "violence",
        "severity": "critical",
        "timestamp": "2026-10-18T12:00:00Z",
    })
    metadata = json.loads(route.calls.last.request.content)["pinataMetadata"]
    assert metadata["name"] == "incident-incident-1"
    assert metadata["keyvalues"] == {
        "type": "incident_report",
        "category": "violence",
        "severity": "critical",
        "timestamp": "2026-10-18T12:00:00Z",
    }


@respx.mock
async def test_pin_json_error_status(pinning):
    respx.post(f"{API}/pinning/pinJSONToIPFS").mock(return_value=httpx.Response(401, text="Invalid API key"))
    with pytest.raises(ProviderError) as exc_info:
        await pinning.pin_json({"a": 1})
    error = exc_info.value
    assert error.message == "Pinata upload failed: 401 - Invalid API key"
    assert error.upstream_status == 401


@respx.mock
async def test_pin_json_unreachable(pinning):
    respx.post(f"{API}/pinning/pinJSONToIPFS").mock(side_effect=httpx.ConnectError("connection refused"))
    with pytest.raises(ProviderError) as exc_info:
        await pinning.pin_json({"a": 1})
    assert exc_info.value.message.startswith("Pinata upload failed")


@respx.mock
async def test_pin_file(pinning):
    route = respx.post(f"{API}/pinning/pinFileToIPFS").mock(
        return_value=httpx.Response(200, json={"IpfsHash": CID})
    )
    content_id = await pinning.pin_file("photo.jpg", b"\xff\xd8jpeg", "image/jpeg")

    assert content_id == CID
    request = route.calls.last.request
    content = request.read()
    assert request.headers["content-type"].startswith("multipart/form-data")
    assert b'filename="photo.jpg"' in content
    assert b"incident_attachment" in content


@respx.mock
async def test_pin_file_error(pinning):
    respx.post(f"{API}/pinning/pinFileToIPFS").mock(return_value=httpx.Response(500, text="boom"))
    with pytest.raises(ProviderError) as exc_info:
        await pinning.pin_file("a.txt", b"a")
    assert exc_info.value.message == "File upload failed: 500 - boom"


@respx.mock
async def test_fetch_json(pinning):
    respx.get(f"{GATEWAY}/{CID}").mock(return_value=httpx.Response(200, json={"title": "Pinned"}))
    assert await pinning.fetch_json(CID) == {"title": "Pinned"}


@respx.mock
async def test_fetch_json_not_found(pinning):
    respx.get(f"{GATEWAY}/{CID}").mock(return_value=httpx.Response(404, text="not found"))
    with pytest.raises(ProviderError) as exc_info:
        await pinning.fetch_json(CID)
    assert exc_info.value.upstream_status == 404


@respx.mock
async def test_fetch_json_not_json(pinning):
    respx.get(f"{GATEWAY}/{CID}").mock(return_value=httpx.Response(200, text="<html>"))
    with pytest.raises(ProviderError):
        await pinning.fetch_json(CID)


@respx.mock
async def test_connectivity_probe(pinning):
    respx.get(f"{API}/data/testAuthentication").mock(
        return_value=httpx.Response(200, json={"message": "Congratulations!"})
    )
    assert await pinning.test_connectivity() is True


@respx.mock
async def test_connectivity_probe_rejected_credentials(pinning):
    respx.get(f"{API}/data/testAuthentication").mock(return_value=httpx.Response(401, json={"error": "Invalid"}))
    assert await pinning.test_connectivity() is False


@respx.mock
async def test_connectivity_probe_unreachable(pinning):
    respx.get(f"{API}/data/testAuthentication").mock(side_effect=httpx.ConnectTimeout("timed out"))
    assert await pinning.test_connectivity() is False


async def test_connectivity_probe_unconfigured():
    with pytest.raises(ConfigurationError):
        await PinningClient("", "").test_connectivity()


@respx.mock
async def test_pin_json_without_content_id(pinning):
    respx.post(f"{API}/pinning/pinJSONToIPFS").mock(return_value=httpx.Response(200, json={}))
    with pytest.raises(ProviderError) as exc_info:
        await pinning.pin_json({"a": 1})
    assert exc_info.value.message == "Pinata upload failed: unexpected response - {}"


@respx.mock
async def test_pin_file_with_non_json_body(pinning):
    respx.post(f"{API}/pinning/pinFileToIPFS").mock(return_value=httpx.Response(200, text="<html>ok</html>"))
    with pytest.raises(ProviderError) as exc_info:
        await pinning.pin_file("a.txt", b"a")
    assert exc_info.value.message.startswith("File upload failed: unexpected response")


@respx.mock
async def test_incident_is_stored_when_pin_response_is_malformed(services):
    respx.post(f"{API}/pinning/pinFileToIPFS").mock(return_value=httpx.Response(200, json={"IpfsHash": CID}))
    respx.post(f"{API}/pinning/pinJSONToIPFS").mock(
        return_value=httpx.Response(200, json={"unexpected": "shape"})
    )
    store = services.incidents
    store.pinning = PinningClient("key-123", "secret-456")

    created = await store.create(
        {
            "title": "Ballots left unattended",
            "description": "Sealed ballot bags left in the hallway overnight.",
            "location": "Civic Center, Boston, MA",
            "category": "irregularities",
            "reported_by": "0x00000000000000000000000000000000000000ab",
        },
        [Attachment("hallway.jpg", b"jpeg", "image/jpeg", "image")],
    )

    assert created.ipfs_hash is None
    assert created.attachment_hashes == [CID]
    assert store.get(created.incident.id).attachments == [CID]
