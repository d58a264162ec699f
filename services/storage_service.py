"""
Object storage gateway: pins files and JSON documents to IPFS through Pinata
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from utils import settings
from utils.errors import ObjectStorageError

logger = logging.getLogger(__name__)


@dataclass
class PinResult:
    cid: str
    gateway_url: str


class PinataStorage:
    def __init__(
        self,
        jwt: str,
        api_url: str = "https://api.pinata.cloud",
        gateway_url: str = "https://gateway.pinata.cloud",
        timeout: float = 60,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.jwt = jwt
        self.api_url = api_url.rstrip("/")
        self.gateway = gateway_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    def gateway_url(self, cid: str) -> str:
        return f"{self.gateway}/ipfs/{cid}"

    def _client(self) -> httpx.AsyncClient:
        if not self.jwt:
            raise ObjectStorageError("Pinata credentials not configured")
        return httpx.AsyncClient(
            base_url=self.api_url,
            headers={"Authorization": f"Bearer {self.jwt}"},
            timeout=self.timeout,
            transport=self.transport,
        )

    async def _pin(self, path: str, **request) -> PinResult:
        async with self._client() as client:
            try:
                response = await client.post(path, **request)
                response.raise_for_status()
                cid = response.json()["IpfsHash"]
            except httpx.HTTPStatusError as e:
                raise ObjectStorageError(
                    f"Pinata returned {e.response.status_code}: {e.response.text}"
                ) from e
            except (httpx.HTTPError, KeyError, ValueError) as e:
                raise ObjectStorageError(f"Pinata request failed: {e}") from e

        return PinResult(cid=cid, gateway_url=self.gateway_url(cid))

    async def pin_file(self, content: bytes, filename: str) -> PinResult:
        """Pin raw bytes under the given filename"""
        if not content:
            raise ObjectStorageError("Refusing to pin an empty file")
        result = await self._pin(
            "/pinning/pinFileToIPFS",
            files={"file": (filename, content)},
            data={"pinataMetadata": json.dumps({"name": filename})},
        )
        logger.info("📌 Pinned %s -> %s", filename, result.cid)
        return result

    async def pin_json(self, document: Dict[str, Any], name: str) -> PinResult:
        result = await self._pin(
            "/pinning/pinJSONToIPFS",
            json={"pinataContent": document, "pinataMetadata": {"name": name}},
        )
        logger.info("📌 Pinned JSON %s -> %s", name, result.cid)
        return result


_storage: Optional[PinataStorage] = None


def get_storage() -> PinataStorage:
    """Dependency returning the process-wide storage gateway"""
    global _storage
    if _storage is None:
        _storage = PinataStorage(
            settings.PINATA_JWT,
            settings.PINATA_API_URL,
            settings.PINATA_GATEWAY_URL,
            settings.PINATA_TIMEOUT,
        )
    return _storage
