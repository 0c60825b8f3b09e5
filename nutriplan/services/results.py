# nutriplan/services/results.py
"""
Result envelope shared by the services:

    {"ok": True,  "data": ...,  "diagnostics": {...}}
    {"ok": False, "error": "...", "diagnostics": {...}}

Routers turn `error` codes into HTTP status codes; services never raise for
expected failures (not found, invalid input, generation failure).
"""
from __future__ import annotations

from typing import Any, Dict, Optional


def make_result(
    ok: bool,
    data: Any = None,
    error: Optional[str] = None,
    diagnostics: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    res: Dict[str, Any] = {"ok": ok}
    if ok:
        res["data"] = data
    else:
        res["error"] = error or "unknown_error"
    res["diagnostics"] = diagnostics or {}
    return res


def ok_result(data: Any, diagnostics: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    return make_result(True, data=data, diagnostics=diagnostics)


def error_result(err: str, diagnostics: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    return make_result(False, error=err, diagnostics=diagnostics)
