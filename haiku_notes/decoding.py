"""
Haiku Notes Backend: Strict JSON Body Decoder
==============================================

What:  Turns an HTTP request body into a validated Pydantic payload, or
       raises a RequestDecodeError describing exactly what is wrong.
How:   Content-Type check → bounded read → JSON syntax → schema (unknown
       fields, value types) → trailing-content check.
Who:   Route handlers for every endpoint that accepts a body.

Rules, in the order they are applied:
    1. Content-Type, when present and non-empty, must be application/json
       (parameters after ';' are ignored)                           → 415
    2. Body must not exceed MAX_BODY_BYTES (Content-Length is checked
       before reading, the stream while reading)                    → 413
    3. Body must arrive within the read timeout, when one is given  → 408
    4. Body must not be empty or whitespace only                    → 400
    5. Body must be UTF-8 and syntactically valid JSON; the error
       names the byte offset where parsing failed                   → 400
    6. The first value must be an object whose fields all exist on
       the target model and hold values of the right type; errors
       name the field (and for type errors, the byte offset just
       past the offending value)                                    → 400
    7. Nothing but whitespace may follow the first value            → 400

Offsets are byte offsets into the raw body, counted the way a streaming
decoder counts them: the number of bytes consumed when the error was found.
"""

import asyncio
import json
import logging
from json.decoder import scanstring
from typing import AsyncIterator, Dict, Optional, Tuple, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from haiku_notes.exceptions import (
    MalformedBodyError,
    PayloadTooLargeError,
    RequestTimeoutError,
    UnsupportedMediaTypeError,
)

logger = logging.getLogger(__name__)

# 1 MiB
MAX_BODY_BYTES = 1_048_576

JSON_MEDIA_TYPE = "application/json"

# JSON insignificant whitespace (RFC 8259 §2)
_JSON_WHITESPACE = " \t\r\n"

ModelT = TypeVar("ModelT", bound=BaseModel)


class _NonStandardConstant(ValueError):
    """NaN / Infinity are accepted by the json module but are not JSON."""


def _reject_constant(name: str) -> None:
    raise _NonStandardConstant(name)


_DECODER = json.JSONDecoder(parse_constant=_reject_constant)


# ══════════════════════════════════════════════════════════════════════════
# Content-Type negotiation
# ══════════════════════════════════════════════════════════════════════════


def media_type(content_type: str) -> str:
    """
    Lower-cased media type of a Content-Type header value.

    >>> media_type("Application/JSON; charset=utf-8")
    'application/json'
    """
    return content_type.split(";", 1)[0].strip().lower()


def check_content_type(content_type: Optional[str]) -> None:
    """
    Raises:
        UnsupportedMediaTypeError: header present and not application/json.
    """
    if not content_type:
        return
    if media_type(content_type) != JSON_MEDIA_TYPE:
        raise UnsupportedMediaTypeError(context={"content_type": content_type})


# ══════════════════════════════════════════════════════════════════════════
# Bounded body read
# ══════════════════════════════════════════════════════════════════════════


async def read_body(
    chunks: AsyncIterator[bytes],
    size_limit: int = MAX_BODY_BYTES,
    content_length: Optional[str] = None,
) -> bytes:
    """
    Collect the body from an async byte stream, refusing anything larger
    than `size_limit`.

    Raises:
        PayloadTooLargeError: declared or actual size above the limit.
    """
    if content_length:
        try:
            declared = int(content_length)
        except ValueError:
            declared = None
        if declared is not None and declared > size_limit:
            raise PayloadTooLargeError(
                context={"limit_bytes": size_limit, "declared_bytes": declared},
            )

    buffer = bytearray()
    async for chunk in chunks:
        buffer.extend(chunk)
        if len(buffer) > size_limit:
            raise PayloadTooLargeError(context={"limit_bytes": size_limit})
    return bytes(buffer)


# ══════════════════════════════════════════════════════════════════════════
# JSON parsing and schema validation
# ══════════════════════════════════════════════════════════════════════════


def _byte_offset(text: str, char_index: int) -> int:
    return len(text[:char_index].encode("utf-8"))


def _skip_whitespace(text: str, idx: int) -> int:
    while idx < len(text) and text[idx] in _JSON_WHITESPACE:
        idx += 1
    return idx


def _member_spans(text: str, start: int) -> Dict[str, Tuple[int, int]]:
    """
    Map each top-level member name of the object at `start` to the
    (start, end) character span of its value.

    Only called on text that already parsed, so the walk cannot fail.
    Duplicate names keep the last span, like the parsed object does.
    """
    spans: Dict[str, Tuple[int, int]] = {}
    idx = _skip_whitespace(text, start + 1)
    if text[idx] == "}":
        return spans

    while True:
        name, idx = scanstring(text, idx + 1)
        idx = _skip_whitespace(text, idx)
        idx = _skip_whitespace(text, idx + 1)
        _, end = _DECODER.raw_decode(text, idx)
        spans[name] = (idx, end)
        idx = _skip_whitespace(text, end)
        if text[idx] != ",":
            return spans
        idx = _skip_whitespace(text, idx + 1)


def _schema_error(
    exc: PydanticValidationError,
    text: str,
    spans: Dict[str, Tuple[int, int]],
) -> MalformedBodyError:
    """
    Convert the first (in document order) Pydantic error into a
    MalformedBodyError naming the field.
    """

    def position(err: dict) -> int:
        loc = err.get("loc") or ()
        span = spans.get(str(loc[0])) if loc else None
        return span[0] if span else len(text)

    err = min(exc.errors(), key=position)
    loc = err.get("loc") or ()
    field = str(loc[0]) if loc else ""

    if err.get("type") == "extra_forbidden":
        return MalformedBodyError(
            message=f'Request body contains unknown field "{field}"',
            context={"field": field},
        )

    if not field:
        # Rejected by the model's own JSON parser (lone surrogates, nesting
        # limit), not by a field validator
        return MalformedBodyError(
            message="Request body contains badly-formed JSON",
            context={"reason": err.get("msg", "")},
        )

    span = spans.get(field)
    offset = _byte_offset(text, span[1]) if span else _byte_offset(text, len(text))
    return MalformedBodyError(
        message=(
            f'Request body contains an invalid value for the "{field}" field '
            f"(at position {offset})"
        ),
        context={"field": field, "offset": offset, "reason": err.get("msg", "")},
    )


def parse_json_body(raw: bytes, model: Type[ModelT]) -> ModelT:
    """
    Decode `raw` as exactly one JSON object conforming to `model`.

    The model should forbid extra fields and validate strictly; the decoder
    reports whatever the model rejects.

    Raises:
        MalformedBodyError: for every rule violation listed in the module docstring.
    """
    if not raw.strip(_JSON_WHITESPACE.encode()):
        raise MalformedBodyError(message="Request body must not be empty")

    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise MalformedBodyError(
            message="Request body contains badly-formed JSON",
            context={"offset": e.start},
        ) from e

    start = _skip_whitespace(text, 0)
    try:
        value, end = _DECODER.raw_decode(text, start)
    except json.JSONDecodeError as e:
        if e.pos >= len(text.rstrip(_JSON_WHITESPACE)):
            # Input ended in the middle of a value
            raise MalformedBodyError(
                message="Request body contains badly-formed JSON",
            ) from e
        offset = _byte_offset(text, e.pos + 1)
        raise MalformedBodyError(
            message=f"Request body contains badly-formed JSON (at position {offset})",
            context={"offset": offset},
        ) from e
    except _NonStandardConstant as e:
        raise MalformedBodyError(
            message="Request body contains badly-formed JSON",
            context={"constant": str(e)},
        ) from e
    except RecursionError as e:
        raise MalformedBodyError(
            message="Request body contains badly-formed JSON",
            context={"reason": "nesting too deep"},
        ) from e

    if not isinstance(value, dict):
        raise MalformedBodyError(
            message="Request body must contain a JSON object",
            context={"offset": _byte_offset(text, end)},
        )

    try:
        payload = model.model_validate_json(text[start:end])
    except PydanticValidationError as e:
        spans = _member_spans(text, start)
        err = _schema_error(e, text, spans)
        logger.debug("Rejected %s body: %s", model.__name__, err.message)
        raise err from e

    if text[end:].strip(_JSON_WHITESPACE):
        raise MalformedBodyError(
            message="Request body must only contain a single JSON object",
            context={"offset": _byte_offset(text, end)},
        )

    return payload


# ══════════════════════════════════════════════════════════════════════════
# Full pipeline
# ══════════════════════════════════════════════════════════════════════════


async def decode_body(
    content_type: Optional[str],
    body_stream: AsyncIterator[bytes],
    model: Type[ModelT],
    size_limit: int = MAX_BODY_BYTES,
    read_timeout: Optional[float] = None,
    content_length: Optional[str] = None,
) -> ModelT:
    """
    Apply every decoding rule to a streamed body.

    Args:
        content_type: raw Content-Type header value, or None when absent
        body_stream: async iterator of body chunks (e.g. Request.stream())
        model: Pydantic model the body must match
        size_limit: maximum body size in bytes
        read_timeout: seconds allowed to receive the whole body; None waits forever
        content_length: raw Content-Length header value, or None

    Raises:
        UnsupportedMediaTypeError, PayloadTooLargeError, RequestTimeoutError,
        MalformedBodyError
    """
    check_content_type(content_type)

    reading = read_body(body_stream, size_limit=size_limit, content_length=content_length)
    if read_timeout is None:
        raw = await reading
    else:
        try:
            raw = await asyncio.wait_for(reading, timeout=read_timeout)
        except asyncio.TimeoutError as e:
            raise RequestTimeoutError(timeout=read_timeout) from e

    return parse_json_body(raw, model)
