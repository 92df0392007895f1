"""AWS Lambda entry points.

``s3_handler`` is subscribed to object-created notifications on the upload
bucket; ``api_handler`` sits behind an API Gateway proxy integration and
routes on method and path.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from pydantic import BaseModel

from doc_retrieval.config import configure_logging
from doc_retrieval.errors import ConfigurationError, InvalidInputError
from doc_retrieval.service import RetrievalService, build_service

configure_logging()
logger = logging.getLogger(__name__)

# Reused across warm invocations, so the vector index survives between calls.
_service: RetrievalService | None = None


def get_service() -> RetrievalService:
    global _service
    if _service is None:
        _service = build_service()
    return _service


def _response(status_code: int, body: Any) -> dict[str, Any]:
    if isinstance(body, BaseModel):
        body = body.model_dump(mode="json", by_alias=True)
    return {
        "statusCode": status_code,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps(body, default=str),
    }


def _parse_limit(value: Any) -> int | None:
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise InvalidInputError(f"limit must be an integer, got {value!r}") from None


def s3_handler(event: dict[str, Any], context: Any = None) -> dict[str, Any]:
    """Process every record of an S3 upload notification."""
    logger.info("Document processor triggered with %d record(s)", len(event.get("Records", [])))
    outcomes = get_service().process_event(event)
    return {"outcomes": [o.model_dump(mode="json", by_alias=True) for o in outcomes]}


def api_handler(event: dict[str, Any], context: Any = None) -> dict[str, Any]:
    """Route an API Gateway proxy event to generate / search / status."""
    path = event.get("path") or ""
    method = (event.get("httpMethod") or "GET").upper()
    logger.info("Processing %s %s", method, path)

    try:
        service = get_service()
        if method == "POST" and "generate-embeddings" in path:
            return _response(200, service.generate_embeddings_for_all_chunks())
        if method == "POST" and "search" in path:
            body = json.loads(event.get("body") or "{}")
            query = body.get("query") or ""
            results = service.search(query, _parse_limit(body.get("limit")))
            return _response(
                200,
                {
                    "query": query,
                    "results": [r.model_dump(mode="json", by_alias=True) for r in results],
                    "totalFound": len(results),
                },
            )
        if method == "GET" and "status" in path:
            return _response(200, service.status())
        return _response(404, {"error": "Endpoint not found"})
    except InvalidInputError as exc:
        return _response(400, {"error": str(exc)})
    except json.JSONDecodeError as exc:
        return _response(400, {"error": f"Invalid JSON body: {exc}"})
    except ConfigurationError as exc:
        logger.critical("Configuration error: %s", exc)
        return _response(500, {"error": "Internal server error", "details": str(exc)})
    except Exception as exc:
        logger.exception("Error in embeddings handler")
        return _response(500, {"error": "Internal server error", "details": str(exc)})
