from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from fastapi import Request
from fastapi.responses import JSONResponse

from gemmarket.chain.errors import ChainError


@dataclass
class ApiError(Exception):
    status_code: int
    code: str
    message: str
    details: Dict[str, Any]

    @staticmethod
    def bad_request(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> "ApiError":
        return ApiError(400, code, message, details or {})

    @staticmethod
    def forbidden(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> "ApiError":
        return ApiError(403, code, message, details or {})

    @staticmethod
    def not_found(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> "ApiError":
        return ApiError(404, code, message, details or {})

    @staticmethod
    def internal(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> "ApiError":
        return ApiError(500, code, message, details or {})

    @staticmethod
    def bad_gateway(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> "ApiError":
        return ApiError(502, code, message, details or {})

    @staticmethod
    def unavailable(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> "ApiError":
        return ApiError(503, code, message, details or {})


async def api_error_handler(_request: Request, exc: ApiError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"ok": False, "error": {"code": exc.code, "message": exc.message, "details": exc.details}},
    )


async def chain_error_handler(_request: Request, exc: ChainError) -> JSONResponse:
    """Map chain node failures: unreachable node -> 503, anything else -> 502."""
    if exc.code == "url_error":
        err = ApiError.unavailable("chain_unavailable", "blockchain node unreachable", {"reason": exc.reason})
    else:
        err = ApiError.bad_gateway("chain_error", exc.reason, {"chain_code": exc.code})
    return await api_error_handler(_request, err)
