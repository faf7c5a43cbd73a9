"""
JSON envelopes for extraction results and errors.
"""

from __future__ import annotations

import json
from typing import Any, NamedTuple

from .errors import GatewayError

JSON_CONTENT_TYPE = "application/json;charset=UTF-8"


class FormattedResponse(NamedTuple):
    body: bytes
    content_type: str
    status_code: int


def _dumps(payload: Any, pretty: bool) -> bytes:
    if pretty:
        text = json.dumps(payload, ensure_ascii=False, indent=2)
    else:
        text = json.dumps(payload, ensure_ascii=False, separators=(",", ":"))
    return text.encode("utf-8")


def format_result(result: str, pretty: bool = False) -> FormattedResponse:
    """Success envelope: ``{"result": ...}`` with status 200."""
    return FormattedResponse(_dumps({"result": result}, pretty), JSON_CONTENT_TYPE, 200)


def format_error(error: GatewayError, pretty: bool = False) -> FormattedResponse:
    """Error envelope: ``{"error": {"message": ..., "kind": ...}}``."""
    payload = {"error": {"message": error.message, "kind": error.kind}}
    return FormattedResponse(_dumps(payload, pretty), JSON_CONTENT_TYPE, error.status_code)
