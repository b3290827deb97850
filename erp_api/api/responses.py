"""Response envelope helpers."""
from __future__ import annotations
from typing import Any, Optional

from flask import jsonify


def _plain(data: Any) -> Any:
    if hasattr(data, "to_dict"):
        return data.to_dict()
    if isinstance(data, (list, tuple)):
        return [_plain(item) for item in data]
    if isinstance(data, dict):
        return {key: _plain(value) for key, value in data.items()}
    return data


def api_response(data: Any = None, message: Optional[str] = None, status: int = 200):
    """Render ``{"success": true, "data"?, "message"?}`` with ``status``."""
    body: dict = {"success": True}
    if data is not None:
        body["data"] = _plain(data)
    if message:
        body["message"] = message
    return jsonify(body), status


def error_response(error: str, status: int):
    """Render ``{"success": false, "error": error}`` with ``status``."""
    return jsonify({"success": False, "error": error}), status
