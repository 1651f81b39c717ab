# Overview: Signed and encrypted cookie session holding {user_id, username}.

"""
Cookie session store.

The cookie value is a Fernet token (AES-128-CBC + HMAC) keyed from
SESSION_ENCRYPT_KEY, wrapped in an itsdangerous TimestampSigner keyed from
SESSION_AUTH_KEY. The signer timestamp enforces the session lifetime on the
server side even if a browser keeps the cookie past its expiry.

session.new is True when the request carried no valid cookie; the auth
middleware relies on that to tell "never logged in" from "logged in".

SECURITY: only user_id is trusted from the cookie. Permission checks always
reload the user from the database.
"""

from __future__ import annotations

import base64
import hashlib
import json
import logging

from cryptography.fernet import Fernet, InvalidToken
from flask.sessions import SecureCookieSession, SessionInterface
from itsdangerous import BadSignature, TimestampSigner

logger = logging.getLogger(__name__)

SIGNER_SALT = "cc-app-session"


class CardSession(SecureCookieSession):
    """Dict-like session that remembers whether it came from a cookie."""

    def __init__(self, initial=None, new: bool = False):
        super().__init__(initial)
        self.new = new


def _fernet_for(key: str) -> Fernet:
    digest = hashlib.sha256(key.encode("utf-8")).digest()
    return Fernet(base64.urlsafe_b64encode(digest))


class EncryptedCookieSessionInterface(SessionInterface):
    session_class = CardSession

    def _signer(self, app) -> TimestampSigner:
        key = app.config.get("SESSION_AUTH_KEY") or app.secret_key
        return TimestampSigner(key, salt=SIGNER_SALT)

    def _fernet(self, app) -> Fernet:
        key = app.config.get("SESSION_ENCRYPT_KEY") or app.secret_key
        return _fernet_for(key)

    def open_session(self, app, request):
        raw = request.cookies.get(self.get_cookie_name(app))
        if not raw:
            return self.session_class(new=True)

        max_age = int(app.permanent_session_lifetime.total_seconds())
        try:
            token = self._signer(app).unsign(raw, max_age=max_age)
            data = json.loads(self._fernet(app).decrypt(token))
        except (BadSignature, InvalidToken, ValueError) as exc:
            logger.info("Discarding unreadable session cookie: %s", exc.__class__.__name__)
            return self.session_class(new=True)

        if not isinstance(data, dict):
            return self.session_class(new=True)
        return self.session_class(data)

    def save_session(self, app, session, response) -> None:
        name = self.get_cookie_name(app)
        domain = self.get_cookie_domain(app)
        path = self.get_cookie_path(app)
        secure = self.get_cookie_secure(app)
        samesite = self.get_cookie_samesite(app)
        httponly = self.get_cookie_httponly(app)

        if not session:
            if session.modified:
                response.delete_cookie(
                    name, domain=domain, path=path, secure=secure, samesite=samesite, httponly=httponly
                )
            return

        if not self.should_set_cookie(app, session):
            return

        payload = json.dumps(dict(session), separators=(",", ":")).encode("utf-8")
        token = self._fernet(app).encrypt(payload)
        value = self._signer(app).sign(token).decode("ascii")

        response.set_cookie(
            name,
            value,
            expires=self.get_expiration_time(app, session),
            httponly=httponly,
            domain=domain,
            path=path,
            secure=secure,
            samesite=samesite,
        )


# =============================================================================
# HELPERS USED BY ROUTES AND MIDDLEWARE
# =============================================================================

def start(session, user_id: int, username: str) -> None:
    """Replace whatever is in the session with a fresh login."""
    session.clear()
    session["user_id"] = user_id
    session["username"] = username
    session.permanent = True


def destroy(session) -> None:
    session.clear()


def renew(session) -> None:
    """Push the cookie expiry out by the configured lifetime."""
    session.permanent = True
    session.modified = True


def user_id_of(session) -> int:
    try:
        return int(session.get("user_id", 0))
    except (TypeError, ValueError):
        return 0
