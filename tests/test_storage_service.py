"""
Pinata storage gateway tests using httpx.MockTransport
"""

import json

import httpx
import pytest

from services.storage_service import PinataStorage
from utils.errors import ObjectStorageError


def make_storage(handler, jwt="test-jwt") -> PinataStorage:
    return PinataStorage(
        jwt,
        api_url="https://pinata.test",
        gateway_url="https://gateway.test/",
        transport=httpx.MockTransport(handler),
    )


async def test_pin_file():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = request.read()
        return httpx.Response(200, json={"IpfsHash": "bafyfile", "PinSize": 4})

    result = await make_storage(handler).pin_file(b"%PDF", "license.pdf")

    assert result.cid == "bafyfile"
    assert result.gateway_url == "https://gateway.test/ipfs/bafyfile"
    assert seen["path"] == "/pinning/pinFileToIPFS"
    assert seen["auth"] == "Bearer test-jwt"
    assert b"license.pdf" in seen["body"]


async def test_pin_json():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["payload"] = json.loads(request.read())
        return httpx.Response(200, json={"IpfsHash": "bafyjson"})

    result = await make_storage(handler).pin_json({"a": 1}, "vc")

    assert result.cid == "bafyjson"
    assert seen["path"] == "/pinning/pinJSONToIPFS"
    assert seen["payload"]["pinataContent"] == {"a": 1}
    assert seen["payload"]["pinataMetadata"] == {"name": "vc"}


async def test_gateway_error_is_wrapped():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, text="invalid key")

    with pytest.raises(ObjectStorageError) as exc_info:
        await make_storage(handler).pin_file(b"x", "x.txt")

    assert "401" in exc_info.value.message


async def test_missing_credentials():
    storage = make_storage(lambda request: httpx.Response(200), jwt="")

    with pytest.raises(ObjectStorageError):
        await storage.pin_json({}, "empty")


async def test_empty_file_rejected():
    storage = make_storage(lambda request: httpx.Response(200, json={"IpfsHash": "x"}))

    with pytest.raises(ObjectStorageError):
        await storage.pin_file(b"", "empty.txt")
