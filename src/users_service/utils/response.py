from __future__ import annotations

import time
from typing import Any

from pydantic import BaseModel


def _now_ms() -> int:
    return int(time.time() * 1000)


def success(data: Any, message: str = "request processed successfully") -> dict[str, Any]:
    if isinstance(data, BaseModel):
        data = data.model_dump(mode="json")
    return {"status": "success", "message": message, "data": data, "timestamp": _now_ms()}


def failure(message: str) -> dict[str, Any]:
    return {"status": "failure", "message": message, "timestamp": _now_ms()}
