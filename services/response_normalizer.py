from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any
from urllib.parse import urljoin, urlsplit

from pydantic import BaseModel, ConfigDict, StrictStr, ValidationError, field_validator

from services.generation_client import GenerationRequest

logger = logging.getLogger(__name__)


class ResponseShape(str, Enum):
    flattened = "flattened"
    nested = "nested"
    nested_with_image = "nested_with_image"
    unrecognized = "unrecognized"


@dataclass(frozen=True)
class GenerationResult:
    source_url: str
    content_type: str
    body: str
    image_url: str | None = None


class _Envelope(BaseModel):
    """Metadata every backend revision may echo next to the content."""

    model_config = ConfigDict(extra="ignore")

    url: str | None = None
    content_type: str | None = None
    image_url: str | None = None

    @field_validator("url", "content_type", "image_url", mode="before")
    @classmethod
    def _strings_only(cls, value: Any) -> str | None:
        if isinstance(value, str) and value.strip():
            return value
        return None


class _FlattenedShape(BaseModel):
    model_config = ConfigDict(extra="ignore")

    content: StrictStr


class _TaskOutput(BaseModel):
    model_config = ConfigDict(extra="ignore")

    raw: StrictStr


class _NestedShape(BaseModel):
    model_config = ConfigDict(extra="ignore")

    content: _TaskOutput


def _parse_flattened(payload: dict[str, Any]) -> str:
    return _FlattenedShape.model_validate(payload).content


def _parse_nested(payload: dict[str, Any]) -> str:
    return _NestedShape.model_validate(payload).content.raw


# Tried in order; the first shape that validates wins.
_BODY_PARSERS = (
    (ResponseShape.flattened, _parse_flattened),
    (ResponseShape.nested, _parse_nested),
)


class ResponseNormalizer:
    """Map every known generation service payload onto a GenerationResult."""

    def __init__(self, service_base_url: str, static_prefix: str = "/static/") -> None:
        self._service_base_url = service_base_url.rstrip("/")
        self._static_prefix = static_prefix

    def detect_shape(self, payload: Any) -> tuple[ResponseShape, str]:
        if not isinstance(payload, dict):
            return ResponseShape.unrecognized, ""

        for shape, parser in _BODY_PARSERS:
            try:
                body = parser(payload)
            except ValidationError:
                continue
            if shape is ResponseShape.nested and "image_url" in payload:
                shape = ResponseShape.nested_with_image
            return shape, body

        return ResponseShape.unrecognized, ""

    def absolutize_image_url(self, image_url: str | None) -> str | None:
        if not image_url:
            return None
        if image_url.startswith(self._static_prefix):
            return f"{self._service_base_url}{image_url}"
        parts = urlsplit(image_url)
        if parts.scheme and parts.netloc:
            return image_url
        return urljoin(f"{self._service_base_url}/", image_url)

    def normalize(self, payload: Any, request: GenerationRequest) -> GenerationResult:
        shape, body = self.detect_shape(payload)
        envelope = _Envelope.model_validate(payload if isinstance(payload, dict) else {})

        if shape is ResponseShape.unrecognized:
            logger.warning("Unrecognized generation payload for %s; using empty body", request.url)
        else:
            logger.debug("Generation payload for %s matched %s shape", request.url, shape.value)

        return GenerationResult(
            source_url=envelope.url or request.url,
            content_type=envelope.content_type or request.content_type.value,
            body=body,
            image_url=self.absolutize_image_url(envelope.image_url),
        )
