from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.routing import Match

from wiki_backend.auth import AuthorizationGate
from wiki_backend.config import LOG_LEVEL, WikiSettings, load_settings
from wiki_backend.credentials import VerifyFunc, UserRecord, bcrypt_verify, load_users, verify_credentials
from wiki_backend.errors import AuthError, WikiError
from wiki_backend.journal import recover_pending_relocations
from wiki_backend.relocation import RelocationRequest
from wiki_backend.responses import emit, emit_error
from wiki_backend.service import RelocationService
from wiki_backend.sessions import Role, SessionStore


logger = logging.getLogger("wiki_backend.server")

# Reachable without a session even on a private wiki.
_PUBLIC_API_PATHS = {"/api/login", "/api/logout", "/api/session"}


def _method_mismatch(request: Request) -> bool:
    """True when a route serves this path but not this method (answered with 405)."""
    matches = [route.matches(request.scope)[0] for route in request.app.router.routes]
    return Match.PARTIAL in matches and Match.FULL not in matches


class MoveRequest(BaseModel):
    sourcePath: str = ""
    targetPath: str = ""
    newSlug: str = ""


class LoginRequest(BaseModel):
    username: str = ""
    password: str = ""
    keepLoggedIn: bool = False


class SessionInfo(BaseModel):
    authenticated: bool
    username: Optional[str] = None
    role: Optional[str] = None


def create_app(
    settings: WikiSettings | None = None,
    store: SessionStore | None = None,
    users: list[UserRecord] | None = None,
    verify: VerifyFunc = bcrypt_verify,
) -> FastAPI:
    settings = settings or load_settings()
    store = store or SessionStore()
    relocations = RelocationService.from_settings(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Create the store roots, then finish any relocation a crash left half done.
        relocations.layout.ensure_dirs()
        recovered = recover_pending_relocations(relocations.layout, relocations.journal)
        if recovered:
            logger.info("Recovered %d pending relocation(s)", recovered)
        yield

    app = FastAPI(lifespan=lifespan)
    app.state.settings = settings
    app.state.sessions = store
    app.state.gate = AuthorizationGate(store, settings)
    app.state.relocations = relocations
    app.state.users = users if users is not None else load_users(settings.users_file)
    app.state.verify = verify

    @app.exception_handler(WikiError)
    async def _wiki_error(request: Request, exc: WikiError) -> JSONResponse:
        return emit_error(exc)

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        message = "Method not allowed" if exc.status_code == 405 else str(exc.detail)
        response = emit(False, message, exc.status_code)
        if exc.headers:
            response.headers.update(exc.headers)
        return response

    @app.exception_handler(RequestValidationError)
    async def _invalid_body(request: Request, exc: RequestValidationError) -> JSONResponse:
        return emit(False, "Invalid request format", 400)

    @app.exception_handler(Exception)
    async def _unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return emit(False, "Internal server error", 500)

    @app.middleware("http")
    async def _private_wiki_guard(request: Request, call_next):
        path = request.url.path
        if path.startswith("/api/") and path not in _PUBLIC_API_PATHS and not _method_mismatch(request):
            if not request.app.state.gate.is_request_allowed(request):
                return emit(False, "Authentication required", 401)
        return await call_next(request)

    @app.post("/api/login")
    def login(payload: LoginRequest, request: Request) -> JSONResponse:
        role = verify_credentials(
            payload.username,
            payload.password,
            request.app.state.users,
            verify=request.app.state.verify,
        )
        if role is None:
            logger.info("Failed login for %r", payload.username)
            raise AuthError("Invalid username or password")

        response = emit(True, "Login successful", 200)
        request.app.state.gate.login(response, payload.username, role, remember_me=payload.keepLoggedIn)
        return response

    @app.post("/api/logout")
    def logout(request: Request) -> JSONResponse:
        response = emit(True, "Logged out", 200)
        request.app.state.gate.logout(request, response)
        return response

    @app.get("/api/session")
    def session_info(request: Request) -> JSONResponse:
        session = request.app.state.gate.current_session(request)
        if session is None:
            return JSONResponse(SessionInfo(authenticated=False).model_dump(exclude_none=True))
        info = SessionInfo(authenticated=True, username=session.username, role=session.role.value)
        return JSONResponse(info.model_dump(exclude_none=True))

    @app.post("/api/move")
    def move_document(payload: MoveRequest, request: Request) -> JSONResponse:
        # Sync handler: runs in the threadpool, one thread per request.
        session = request.app.state.gate.require(request, Role.EDITOR)
        result = request.app.state.relocations.relocate(
            RelocationRequest(
                source_path=payload.sourcePath,
                target_path=payload.targetPath,
                new_slug=payload.newSlug,
            )
        )
        logger.info("%s moved %s to %s", session.username, result.old_path, result.new_path)
        return emit(
            True,
            "Document moved successfully",
            200,
            new_path=result.new_path,
            old_path=result.old_path,
            warnings=result.warnings,
        )

    return app


app = create_app()


if __name__ == "__main__":
    # Convenience: python server.py
    import uvicorn

    logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    port = int(os.environ.get("PORT", "8010"))
    uvicorn.run("server:app", host="127.0.0.1", port=port, reload=False, log_level=LOG_LEVEL.lower())
