from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

import httpx

logger = logging.getLogger(__name__)

GENERIC_FAILURE_MESSAGE = "Failed to generate content."


class ContentType(str, Enum):
    blog = "blog"
    x = "x"
    facebook = "facebook"
    linkedin = "linkedin"
    newsletter = "newsletter"


class AspectRatio(str, Enum):
    widescreen = "16:9"
    square = "1:1"
    portrait = "4:5"
    standard = "4:3"


class ErrorKind(str, Enum):
    transport = "transport"
    service = "service"
    malformed_response = "malformed_response"


class GenerationServiceError(RuntimeError):
    """Raised when the generation service call fails or returns an unusable body."""

    def __init__(
        self,
        message: str,
        kind: ErrorKind,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.status_code = status_code


@dataclass(frozen=True)
class GenerationRequest:
    url: str
    content_type: ContentType
    image_prompt_override: str | None = None
    aspect_ratio: AspectRatio | None = AspectRatio.widescreen

    def to_payload(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "content_type": self.content_type.value,
            "image_prompt_override": self.image_prompt_override or None,
            "aspect_ratio": self.aspect_ratio.value if self.aspect_ratio else None,
        }


def _error_detail(response: httpx.Response) -> str | None:
    try:
        payload = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None
    if not isinstance(payload, dict):
        return None
    detail = payload.get("detail")
    if isinstance(detail, str) and detail.strip():
        return detail
    return None


class GenerationClient:
    """POST generation requests to the remote content service."""

    def __init__(
        self,
        endpoint: str,
        timeout: float | None = 300.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._endpoint = endpoint
        self._timeout = timeout
        self._transport = transport

    @property
    def endpoint(self) -> str:
        return self._endpoint

    async def generate(self, request: GenerationRequest) -> Any:
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout,
                transport=self._transport,
            ) as client:
                response = await client.post(
                    self._endpoint,
                    json=request.to_payload(),
                    headers={"Content-Type": "application/json"},
                )
        except httpx.HTTPError as exc:
            logger.warning("Generation request to %s failed: %s", self._endpoint, exc)
            raise GenerationServiceError(
                GENERIC_FAILURE_MESSAGE, ErrorKind.transport
            ) from exc

        if not response.is_success:
            detail = _error_detail(response)
            logger.warning(
                "Generation service returned %s for %s", response.status_code, request.url
            )
            raise GenerationServiceError(
                detail or GENERIC_FAILURE_MESSAGE,
                ErrorKind.service,
                status_code=response.status_code,
            )

        try:
            return response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise GenerationServiceError(
                GENERIC_FAILURE_MESSAGE,
                ErrorKind.malformed_response,
                status_code=response.status_code,
            ) from exc
