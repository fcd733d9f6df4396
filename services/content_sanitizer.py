from __future__ import annotations

import re
from dataclasses import replace

from services.response_normalizer import GenerationResult

# Both patterns are anchored at the start of the (trimmed) body and must be
# followed by at least one blank line.
_MARKDOWN_IMAGE = re.compile(r"\A!\[[^\]\n]*\]\([^)\n]*\)[ \t]*\r?\n(?:[ \t]*\r?\n)+")
_PLAIN_IMAGE_LINE = re.compile(r"\AImage: [^\r\n]*\r?\n(?:[ \t]*\r?\n)+")

_LEADING_IMAGE_PATTERNS = (_MARKDOWN_IMAGE, _PLAIN_IMAGE_LINE)


def strip_leading_image_reference(body: str) -> str:
    """Remove one image reference some backends prepend to the generated text.

    Only a match at the very start of the body is removed; image references
    further down are left alone. Exactly one reference is stripped per call,
    so repeated calls only return the same text when the body starts with at
    most one reference: ``"![a](b)\\n\\n![c](d)\\n\\nHello"`` loses ``![a](b)``
    on the first call and ``![c](d)`` on the second.
    """
    text = body.strip()
    for pattern in _LEADING_IMAGE_PATTERNS:
        match = pattern.match(text)
        if match:
            return text[match.end():].strip()
    return text


def sanitize_result(result: GenerationResult) -> GenerationResult:
    return replace(result, body=strip_leading_image_reference(result.body))
