from __future__ import annotations

import logging

from fastapi import Request, Response

from .config import SESSION_COOKIE_NAME, USER_COOKIE_NAME, WikiSettings
from .errors import AuthError
from .security import is_well_formed_token
from .sessions import Role, Session, SessionStore, require_role


logger = logging.getLogger(__name__)

_UNAUTHORIZED_MESSAGES = {
    Role.ADMIN: "Unauthorized. Admin access required.",
    Role.EDITOR: "Unauthorized. Admin or editor access required.",
    Role.VIEWER: "Unauthorized. Please log in.",
}


def set_session_cookies(
    response: Response,
    token: str,
    username: str,
    settings: WikiSettings,
    remember_me: bool = False,
) -> None:
    max_age = settings.remember_me_max_age if remember_me else settings.session_max_age
    secure = not settings.allow_insecure_cookies

    # Token cookie: never readable from client-side scripts.
    response.set_cookie(
        SESSION_COOKIE_NAME,
        token,
        max_age=max_age,
        path="/",
        secure=secure,
        httponly=True,
        samesite="strict",
    )
    # Username cookie: readable by the UI for display only.
    response.set_cookie(
        USER_COOKIE_NAME,
        username,
        max_age=max_age,
        path="/",
        secure=secure,
        httponly=False,
        samesite="strict",
    )


def clear_session_cookies(response: Response, settings: WikiSettings) -> None:
    secure = not settings.allow_insecure_cookies
    for name, httponly in ((SESSION_COOKIE_NAME, True), (USER_COOKIE_NAME, False)):
        response.set_cookie(
            name,
            "",
            max_age=0,
            expires=0,
            path="/",
            secure=secure,
            httponly=httponly,
            samesite="strict",
        )


class AuthorizationGate:
    """Answers "who is this request" and "may it do X" for route handlers."""

    def __init__(self, store: SessionStore, settings: WikiSettings) -> None:
        self.store = store
        self.settings = settings

    def current_session(self, request: Request) -> Session | None:
        token = request.cookies.get(SESSION_COOKIE_NAME)
        if not is_well_formed_token(token):
            return None
        return self.store.lookup(token)

    def is_request_allowed(self, request: Request) -> bool:
        if not self.settings.private:
            return True
        return self.current_session(request) is not None

    def has_role(self, request: Request, required_role: Role | str) -> bool:
        return require_role(self.current_session(request), required_role)

    def require(self, request: Request, required_role: Role | str) -> Session:
        session = self.current_session(request)
        if not require_role(session, required_role):
            raise AuthError(_UNAUTHORIZED_MESSAGES.get(Role.parse(required_role), "Unauthorized."))
        return session

    def login(self, response: Response, username: str, role: Role | str, remember_me: bool = False) -> str:
        token = self.store.issue(username, role)
        set_session_cookies(response, token, username, self.settings, remember_me=remember_me)
        return token

    def logout(self, request: Request, response: Response) -> None:
        token = request.cookies.get(SESSION_COOKIE_NAME)
        session = self.store.lookup(token)
        self.store.revoke(token)
        clear_session_cookies(response, self.settings)
        if session is not None:
            logger.info("Session closed for %s", session.username)
