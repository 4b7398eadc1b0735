"""
Response envelope helpers.

Every endpoint answers `{success, data?, error?, meta?}`. Routers return
`success(...)`/`paginated(...)`; the exception handlers in main.py build the
error variant with `error_body(...)`.
"""

from typing import Any

from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel

from helpers.pagination import PageParams, build_meta


def _dump(data: Any) -> Any:
    if isinstance(data, BaseModel):
        return data.model_dump(mode="json", by_alias=True)
    if isinstance(data, list):
        return [_dump(item) for item in data]
    return jsonable_encoder(data)


def success(data: Any = None, meta: dict[str, Any] | None = None) -> dict[str, Any]:
    """
    Wrap a payload in a success envelope.

    Args:
        data: Pydantic model, list of models, or plain JSON-able value
        meta: Optional pagination block

    Returns:
        Envelope dict
    """
    body: dict[str, Any] = {"success": True, "data": _dump(data)}
    if meta is not None:
        body["meta"] = meta
    return body


def paginated(items: list[Any], params: PageParams, total: int) -> dict[str, Any]:
    return success(items, meta=build_meta(params, total))


def error_body(code: str, message: str, **extra: Any) -> dict[str, Any]:
    """
    Build an error envelope.

    Args:
        code: Machine-readable error code
        message: Human-readable message
        **extra: Additional fields placed inside `error` (e.g. correlation_id)

    Returns:
        Envelope dict
    """
    error: dict[str, Any] = {"code": code, "message": message}
    error.update({key: value for key, value in extra.items() if value is not None})
    return {"success": False, "error": error}
