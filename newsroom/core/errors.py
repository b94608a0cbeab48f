from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

logger = logging.getLogger(__name__)

class PayloadInvalid(Exception):
    """A payload passed shape validation but misses a conditionally required field."""

    def __init__(self, details: list[str]):
        super().__init__("; ".join(details))
        self.details = details

class SlugCollisionError(RuntimeError):
    """No free slug suffix was found before the attempt ceiling."""

class NotFound(Exception):
    def __init__(self, what: str = "Not found"):
        super().__init__(what)
        self.what = what

class Conflict(Exception):
    def __init__(self, what: str):
        super().__init__(what)
        self.what = what

def error_body(message: str, details: list[str] | None = None) -> dict:
    body: dict = {"error": message}
    if details is not None:
        body["details"] = details
    return body

def _flatten(errors) -> list[str]:
    out = []
    for err in errors:
        # Drop the "body" / "query" prefix FastAPI adds to locations
        loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path")]
        msg = err.get("msg", "invalid value")
        out.append(f"{'.'.join(loc)}: {msg}" if loc else msg)
    return out

def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(HTTPException)
    async def _http_error(_request: Request, exc: HTTPException):
        return JSONResponse(error_body(str(exc.detail)), status_code=exc.status_code, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def _shape_error(_request: Request, exc: RequestValidationError):
        return JSONResponse(error_body("Invalid JSON or body", _flatten(exc.errors())), status_code=400)

    @app.exception_handler(PayloadInvalid)
    async def _payload_error(_request: Request, exc: PayloadInvalid):
        return JSONResponse(error_body("Invalid JSON or body", exc.details), status_code=400)

    @app.exception_handler(NotFound)
    async def _not_found(_request: Request, exc: NotFound):
        return JSONResponse(error_body(exc.what), status_code=404)

    @app.exception_handler(Conflict)
    async def _conflict(_request: Request, exc: Conflict):
        return JSONResponse(error_body(exc.what), status_code=409)

    @app.exception_handler(SlugCollisionError)
    async def _slug_loop(request: Request, exc: SlugCollisionError):
        logger.error("%s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(error_body("Internal Server Error"), status_code=500)

    @app.exception_handler(Exception)
    async def _server_error(request: Request, exc: Exception):
        logger.exception("%s %s failed", request.method, request.url.path)
        return JSONResponse(error_body("Internal Server Error"), status_code=500)
