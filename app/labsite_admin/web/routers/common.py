from __future__ import annotations

from typing import Any

from fastapi import Request

from labsite_admin.web.http.errors import ApiError, ERROR_CODE_BAD_REQUEST


async def read_json_body(request: Request) -> dict[str, Any]:
    try:
        body = await request.json()
    except ValueError:
        raise ApiError(status_code=400, code=ERROR_CODE_BAD_REQUEST, message="Request body must be JSON.") from None
    if not isinstance(body, dict):
        raise ApiError(status_code=400, code=ERROR_CODE_BAD_REQUEST, message="Request body must be a JSON object.")
    return body
