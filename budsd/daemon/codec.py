"""JSON encoding of socket requests and responses."""

from __future__ import annotations

import json

from jsonschema import ValidationError

from budsd.core.errors import RequestDecodeError
from budsd.core.model import Request, Response
from budsd.core.plugin_loader import schema_validator


def decode_request(line: bytes) -> Request:
    try:
        doc = json.loads(line)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise RequestDecodeError(f"Request is not valid JSON: {exc}") from exc
    try:
        schema_validator("request.schema.json").validate(doc)
    except ValidationError as exc:
        raise RequestDecodeError(f"Invalid request: {exc.message}") from exc
    return Request.from_dict(doc)


def encode_request(request: Request) -> bytes:
    return json.dumps(request.to_dict(), separators=(",", ":")).encode("utf-8") + b"\n"


def encode_response(response: Response) -> bytes:
    return json.dumps(response.to_dict(), separators=(",", ":")).encode("utf-8")


def decode_response(data: bytes) -> Response:
    try:
        doc = json.loads(data)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise RequestDecodeError(f"Response is not valid JSON: {exc}") from exc
    if not isinstance(doc, dict) or doc.get("status") not in ("success", "error"):
        raise RequestDecodeError("Response is missing a valid status")
    return Response.from_dict(doc)
