"""Postman Collection v2.x parser.

Flattens the nested item tree of a Postman collection into ContractEndpoint
models carrying the example request and response bodies.
"""

import json
import logging
import re
from pathlib import Path
from typing import Any

from .base import ContractEndpoint

logger = logging.getLogger(__name__)

PREFERRED_RESPONSE_CODES = (200, 201)

_SCHEME_AND_HOST = re.compile(r"^(?:[a-zA-Z][a-zA-Z0-9+.-]*://[^/]*|\{\{[^}]*\}\})")


class ContractError(Exception):
    """Raised when the contract document cannot be read or decoded."""
    pass


def parse_postman(file_path: Path) -> list[ContractEndpoint]:
    """Parse a Postman collection file into a list of ContractEndpoint."""
    try:
        text = file_path.read_text(encoding="utf-8")
    except OSError as e:
        raise ContractError(f"Cannot read contract {file_path}: {e}") from e
    try:
        collection = json.loads(text)
    except json.JSONDecodeError as e:
        raise ContractError(f"Contract {file_path} is not valid JSON: {e}") from e
    if not isinstance(collection, dict):
        raise ContractError(f"Contract {file_path} is not a Postman collection")
    return load_collection(collection)


def load_collection(collection: dict | None) -> list[ContractEndpoint]:
    """Flatten a decoded Postman collection, preserving document order."""
    if collection is None:
        raise ValueError("collection must not be None")
    return _parse_items(collection.get("item") or [])


def _parse_items(items: list[dict]) -> list[ContractEndpoint]:
    """Recursively parse items (supports folders)."""
    endpoints: list[ContractEndpoint] = []
    for item in items:
        if "item" in item:
            endpoints.extend(_parse_items(item["item"] or []))
        elif "request" in item:
            endpoints.append(_parse_request(item))
        else:
            logger.warning("Skipping collection item without request: %s", item.get("name", "<unnamed>"))
    return endpoints


def _parse_request(item: dict) -> ContractEndpoint:
    req = item["request"]
    if isinstance(req, str):
        req = {"method": "GET", "url": req}
    method = (req.get("method") or "GET").upper()
    path = _parse_path(req.get("url"))
    name = item.get("name") or f"{method} {path}"

    return ContractEndpoint(
        name=name,
        method=method,
        path=path,
        request_body=_parse_body(req.get("body"), name),
        response_body=_parse_response(item.get("response") or [], name),
    )


def _parse_path(url: dict | str | None) -> str:
    if not url:
        return ""
    if isinstance(url, str):
        path = _path_from_raw(url)
    elif isinstance(url.get("path"), list):
        path = "/".join(_segment_text(segment) for segment in url["path"])
    elif isinstance(url.get("path"), str):
        path = url["path"]
    else:
        path = _path_from_raw(url.get("raw", ""))
    return path[1:] if path.startswith("/") else path


def _segment_text(segment: Any) -> str:
    # v2.1 segments may be objects like {"type": "any", "value": ":id"}
    if isinstance(segment, dict):
        return str(segment.get("value") or "")
    return str(segment)


def _path_from_raw(raw: str) -> str:
    path = _SCHEME_AND_HOST.sub("", raw)
    return re.split(r"[?#]", path, maxsplit=1)[0]


def _parse_body(body: dict | None, name: str) -> Any:
    if not body or body.get("mode") != "raw" or not body.get("raw"):
        return None
    try:
        return json.loads(body["raw"])
    except json.JSONDecodeError:
        logger.warning("Failed to parse request body for endpoint: %s", name)
        return None


def _parse_response(responses: list[dict], name: str) -> Any:
    if not responses:
        logger.warning("No example response for endpoint: %s", name)
        return None
    example = next(
        (r for r in responses if r.get("code") in PREFERRED_RESPONSE_CODES),
        responses[0],
    )
    if not example.get("body"):
        logger.warning("Example response has no body for endpoint: %s", name)
        return None
    try:
        return json.loads(example["body"])
    except json.JSONDecodeError:
        logger.warning("Failed to parse response body for endpoint: %s", name)
        return None
