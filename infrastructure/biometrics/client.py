"""
Face Recognition Registry Client
Registers visitor faces and recognizes faces seen at the kiosk camera
"""
import re
from dataclasses import dataclass
from typing import Optional, Dict, Any

import httpx
import structlog

from config import settings

logger = structlog.get_logger(__name__)

_DATA_URI_PREFIX = re.compile(r"^data:image/[a-zA-Z0-9.+-]+;base64,")


class BiometricUnavailable(Exception):
    """Registry unreachable, timed out, or answered with an error"""


@dataclass(frozen=True)
class MatchResult:
    matched: bool
    subject_id: Optional[str] = None
    similarity: Optional[float] = None


def strip_data_uri(image_base64: str) -> str:
    """Drop a leading `data:image/...;base64,` prefix if present"""
    return _DATA_URI_PREFIX.sub("", image_base64.strip(), count=1)


class BiometricGatewayClient:
    """Client for a CompreFace-style recognition API.

    Subjects are keyed by visitor id:
    - POST /subjects              create subject
    - POST /faces?subject=<id>    attach a face image to the subject
    - POST /recognize             best matching subjects for an image
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_token: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or settings.biometric_api_url).rstrip("/")
        self.api_token = api_token if api_token is not None else settings.biometric_api_token
        self.timeout = timeout or settings.biometric_timeout_seconds
        self.headers = {
            "x-api-token": self.api_token,
            "Content-Type": "application/json",
        }
        self._transport = transport

    async def _request(
        self,
        method: str,
        endpoint: str,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        """Make authenticated request to the registry"""
        url = f"{self.base_url}{endpoint}"

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.request(
                    method,
                    url,
                    json=json,
                    params=params,
                    headers=self.headers,
                )
                response.raise_for_status()
                return response.json() if response.content else {}

        except httpx.TimeoutException as e:
            logger.error("biometric_request_timeout", endpoint=endpoint, timeout=self.timeout)
            raise BiometricUnavailable(f"Registry timed out after {self.timeout}s") from e
        except httpx.HTTPStatusError as e:
            logger.error(
                "biometric_request_rejected",
                endpoint=endpoint,
                status=e.response.status_code,
                body=e.response.text[:200],
            )
            raise BiometricUnavailable(f"Registry answered {e.response.status_code}") from e
        except httpx.HTTPError as e:
            logger.error("biometric_request_failed", endpoint=endpoint, error=str(e))
            raise BiometricUnavailable(str(e)) from e
        except ValueError as e:
            logger.error("biometric_response_invalid", endpoint=endpoint, error=str(e))
            raise BiometricUnavailable("Registry returned a non-JSON body") from e

    async def add_subject(self, subject_id: str) -> Dict[str, Any]:
        return await self._request("POST", "/subjects", json={"subject": subject_id})

    async def add_face(self, subject_id: str, image_base64: str) -> Dict[str, Any]:
        return await self._request(
            "POST",
            "/faces",
            json={"file": strip_data_uri(image_base64)},
            params={"subject": subject_id},
        )

    async def register(self, subject_id: str, image_base64: str) -> None:
        """Create the subject, then upload its reference face"""
        await self.add_subject(subject_id)
        await self.add_face(subject_id, image_base64)
        logger.info("biometric_subject_registered", subject_id=subject_id)

    async def recognize(self, image_base64: str) -> MatchResult:
        """Best match for a face image.

        The registry answers `{"result": [{"subjects": [{"subject", "similarity"}]}]}`
        with subjects sorted by similarity; only the first face and its best
        subject are considered.
        """
        data = await self._request(
            "POST",
            "/recognize",
            json={"file": strip_data_uri(image_base64)},
        )

        faces = data.get("result") or []
        if not isinstance(faces, list) or not faces:
            return MatchResult(matched=False)

        subjects = faces[0].get("subjects") or []
        if not subjects:
            return MatchResult(matched=False)

        best = subjects[0]
        similarity = best.get("similarity")
        return MatchResult(
            matched=True,
            subject_id=best.get("subject"),
            similarity=float(similarity) if similarity is not None else None,
        )

    async def check_connection(self) -> bool:
        """Check if the registry is reachable"""
        try:
            await self._request("GET", "/subjects")
        except BiometricUnavailable:
            return False
        return True


_client: Optional[BiometricGatewayClient] = None


def get_biometric_client() -> BiometricGatewayClient:
    """Get or create the shared registry client"""
    global _client

    if _client is None:
        _client = BiometricGatewayClient()

    return _client
