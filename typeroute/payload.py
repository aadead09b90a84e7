"""
Extraction of one flat payload mapping from query and body data.
"""

import json
import logging
from typing import Any, Callable, Dict, Mapping, Optional, Union
from urllib.parse import parse_qsl

from .models import HTTPMethod

logger = logging.getLogger(__name__)

PayloadProvider = Callable[[], Mapping[str, Any]]

BODY_METHODS = frozenset({HTTPMethod.POST, HTTPMethod.PUT, HTTPMethod.PATCH, HTTPMethod.DELETE})


def parse_fields(encoded: str) -> Dict[str, Any]:
    """Parse URL-encoded fields.

    Keys ending in ``[]`` collect every occurrence into a list under the bare
    name; any other repeated key keeps its last value.
    """
    data: Dict[str, Any] = {}
    for key, value in parse_qsl(encoded, keep_blank_values=True):
        if key.endswith("[]"):
            bucket = data.setdefault(key[:-2], [])
            if isinstance(bucket, list):
                bucket.append(value)
            else:
                data[key[:-2]] = [value]
        else:
            data[key] = value
    return data


def extract_payload(
    method: Union[str, HTTPMethod],
    query: Union[str, Mapping[str, Any], None] = None,
    body: Optional[Union[str, bytes]] = None,
    content_type: Optional[str] = None,
) -> Dict[str, Any]:
    """Merge query data with body data into one payload mapping.

    Body data is only read for POST, PUT, PATCH and DELETE. A JSON body (any
    content type containing ``application/json``) is merged over the query
    data when it decodes to an object; undecodable or non-object JSON
    contributes nothing. Every other body is parsed as form fields.

    Args:
        method: HTTP method of the request
        query: Raw query string or an already parsed mapping
        body: Raw request body
        content_type: Value of the Content-Type header
    """
    data: Dict[str, Any] = {}
    if isinstance(query, str):
        data.update(parse_fields(query))
    elif query:
        data.update(query)

    if HTTPMethod.parse(method) not in BODY_METHODS or not body:
        return data

    if isinstance(body, bytes):
        body = body.decode("utf-8", errors="replace")

    if content_type and "application/json" in content_type:
        try:
            decoded = json.loads(body)
        except json.JSONDecodeError as e:
            logger.debug(f"Ignoring undecodable JSON body: {e}")
            return data
        if isinstance(decoded, dict):
            data.update(decoded)
    else:
        data.update(parse_fields(body))
    return data


def resolve_payload(source: Union[Mapping[str, Any], PayloadProvider, None]) -> Mapping[str, Any]:
    """Obtain the payload from a provider callable, or use a mapping as-is."""
    if source is None:
        return {}
    if callable(source):
        return source()
    return source
