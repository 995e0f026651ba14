"""Global handlers — status codes, envelopes, Retry-After on database failures."""

import json

from starlette.requests import Request

from app.api.error_handlers import (
    DATABASE_RETRY_AFTER_SECONDS, handle_domain_error, handle_unexpected_error,
)
from app.core.errors import (
    ConflictError, DatabaseError, ErrorContext, ResourceNotFoundError,
)


def _request(path: str = "/api/v1/deals") -> Request:
    return Request({
        "type": "http", "method": "GET", "scheme": "http",
        "server": ("test", 80), "path": path,
        "query_string": b"", "headers": [],
    })


async def test_database_error_sets_retry_after():
    res = await handle_domain_error(_request(), DatabaseError("gone", "execute"))
    assert res.status_code == 503
    assert res.headers["retry-after"] == str(DATABASE_RETRY_AFTER_SECONDS)
    assert json.loads(res.body)["error"]["code"] == "DATABASE_ERROR"


async def test_not_found_has_no_retry_after():
    err = ResourceNotFoundError("Deal", "7", ErrorContext(deal_id=7))
    res = await handle_domain_error(_request(), err)
    assert res.status_code == 404
    assert "retry-after" not in res.headers


async def test_unexpected_error_hides_details():
    res = await handle_unexpected_error(_request(), KeyError("secret_column"))
    body = json.loads(res.body)
    assert res.status_code == 500
    assert body["error"]["code"] == "INTERNAL_ERROR"
    assert "secret_column" not in res.body.decode()


async def test_conflict_is_409_without_retry_after():
    res = await handle_domain_error(_request(), ConflictError("duplicate"))
    assert res.status_code == 409
    assert "retry-after" not in res.headers
    assert json.loads(res.body)["error"]["category"] == "conflict"
