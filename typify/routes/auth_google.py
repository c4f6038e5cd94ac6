import json
import logging
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.orm import Session
from authlib.integrations.starlette_client import OAuth, OAuthError
from typify.db import get_db
from typify.models import User
from typify.schemas import HandshakeOut, HandshakeStatusOut, UserOut
from typify.security.auth import create_user_token, set_auth_cookie
from typify.services.accounts import upsert_provider_user, post_login_redirect
from typify.services import oauth_popup
from typify.services.oauth_popup import HandshakeNotFound
from typify.i18n import detect_language, t
from typify.config import settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

oauth = OAuth()
oauth.register(
    name='google',
    client_id=settings.google_client_id or "",
    client_secret=settings.google_client_secret or "",
    server_metadata_url='https://accounts.google.com/.well-known/openid-configuration',
    client_kwargs={
        'scope': 'openid email profile'
    }
)

SESSION_HANDSHAKE_KEY = "handshake_id"

CALLBACK_HTML = """<!doctype html>
<html lang="{lang}">
<head>
  <meta charset="utf-8" />
  <title>Typify</title>
  <script src="https://cdn.tailwindcss.com"></script>
</head>
<body class="bg-slate-950 text-white min-h-screen flex items-center justify-center">
  <div class="text-center space-y-3">
    <div class="text-2xl font-black italic tracking-tighter">TYPIFY</div>
    <p class="text-slate-400 text-sm">{message}</p>
  </div>
  <script>
    (function() {{
      var payload = {payload};
      if (window.opener && !window.opener.closed) {{
        window.opener.postMessage(payload, window.location.origin);
      }}
      setTimeout(function() {{ window.close(); }}, {close_after_ms});
    }})();
  </script>
</body>
</html>
"""

def _callback_page(request: Request, *, success: bool, error: str | None = None,
                   redirect_url: str | None = None, status_code: int = 200) -> HTMLResponse:
    lang = detect_language(request)
    if success:
        payload = {"type": "TYPIFY_AUTH_SUCCESS", "redirectUrl": redirect_url}
        message, close_after_ms = t("callback.success", lang), 1000
    else:
        payload = {"type": "TYPIFY_AUTH_ERROR", "error": error or t("login.failed", lang)}
        message, close_after_ms = t("callback.error", lang), 2000
    # "</" would end the inline script early
    payload_js = json.dumps(payload).replace("</", "<\\/")
    return HTMLResponse(
        CALLBACK_HTML.format(lang=lang, message=message, payload=payload_js, close_after_ms=close_after_ms),
        status_code=status_code,
    )

def _status_out(handshake, db: Session) -> HandshakeStatusOut:
    out = HandshakeStatusOut(handshake_id=handshake.id, status=handshake.status, error=handshake.error)
    if handshake.status == oauth_popup.COMPLETED and handshake.user_id:
        user = db.get(User, handshake.user_id)
        if user:
            out.user = UserOut.model_validate(user)
            out.redirect_url = post_login_redirect(user)
    return out

def _closed_handshake_page(request: Request, db: Session, handshake_id: str) -> HTMLResponse | None:
    """Error page for a popup login that is no longer pending, else None."""
    try:
        handshake = oauth_popup.get_handshake(db, handshake_id)
    except HandshakeNotFound:
        handshake = None
    if handshake and handshake.status == oauth_popup.PENDING:
        return None
    logger.warning(f"Callback for closed login session {handshake_id}")
    error = (handshake.error if handshake else None) or "Login session not found"
    return _callback_page(request, success=False, error=error, status_code=409)

@router.post("/popup", response_model=HandshakeOut)
def start_popup_login(db: Session = Depends(get_db)):
    """Opens a handshake the parent window polls while the popup signs in."""
    handshake = oauth_popup.start_handshake(db)
    return HandshakeOut(
        handshake_id=handshake.id,
        authorization_url=f"/auth/google/start?handshake={handshake.id}",
        poll_interval=settings.oauth_popup_poll_seconds,
        timeout=settings.oauth_popup_timeout_seconds,
    )

@router.get("/popup/{handshake_id}", response_model=HandshakeStatusOut)
def poll_popup_login(handshake_id: str, db: Session = Depends(get_db)):
    try:
        handshake = oauth_popup.get_handshake(db, handshake_id)
    except HandshakeNotFound:
        raise HTTPException(status_code=404, detail="Login session not found")
    return _status_out(handshake, db)

@router.delete("/popup/{handshake_id}", response_model=HandshakeStatusOut)
def cancel_popup_login(handshake_id: str, db: Session = Depends(get_db)):
    try:
        handshake = oauth_popup.cancel_handshake(db, handshake_id)
    except HandshakeNotFound:
        raise HTTPException(status_code=404, detail="Login session not found")
    return _status_out(handshake, db)

@router.get("/google/start")
async def google_login(request: Request, handshake: str | None = None, db: Session = Depends(get_db)):
    """Redirects the user (or the popup) to the Google OAuth consent screen."""
    if not oauth.google.client_id or not oauth.google.client_secret:
        raise HTTPException(status_code=500, detail="Google Client ID or Secret not configured on server.")

    if handshake:
        try:
            pending = oauth_popup.get_handshake(db, handshake)
        except HandshakeNotFound:
            raise HTTPException(status_code=404, detail="Login session not found")
        if pending.status != oauth_popup.PENDING:
            raise HTTPException(status_code=400, detail=f"Login session is {pending.status}")
        request.session[SESSION_HANDSHAKE_KEY] = handshake
    else:
        request.session.pop(SESSION_HANDSHAKE_KEY, None)

    redirect_uri = request.url_for('google_auth')
    return await oauth.google.authorize_redirect(request, str(redirect_uri))

@router.get("/google/callback")
async def google_auth(request: Request, db: Session = Depends(get_db)):
    """Handles the OAuth callback, provisions the profile, and sets the JWT cookie."""
    handshake_id = request.session.pop(SESSION_HANDSHAKE_KEY, None)
    if handshake_id:
        closed = _closed_handshake_page(request, db, handshake_id)
        if closed:
            return closed

    try:
        token = await oauth.google.authorize_access_token(request)
        user_info = token.get('userinfo')
        if not user_info or not user_info.get("email"):
            raise OAuthError(error="missing_userinfo", description="Email not provided by Google")
        if user_info.get("email_verified") not in (True, "true"):
            raise OAuthError(error="email_not_verified", description="Google account email is not verified")
    except OAuthError as e:
        logger.warning(f"Google OAuth verification failed: {e}")
        if handshake_id:
            try:
                oauth_popup.fail_handshake(db, handshake_id, str(e))
            except HandshakeNotFound:
                pass
            return _callback_page(request, success=False, error=str(e), status_code=400)
        raise HTTPException(status_code=400, detail=f"OAuth verification failed: {e}")

    user, _ = upsert_provider_user(
        db,
        provider_id=user_info.get("sub"),
        email=user_info["email"],
        name=user_info.get("name"),
        avatar_url=user_info.get("picture"),
        given_name=user_info.get("given_name"),
        email_verified=True,
    )
    access_token = create_user_token(user)
    redirect_url = post_login_redirect(user)

    if handshake_id:
        try:
            handshake = oauth_popup.complete_handshake(db, handshake_id, user.id)
        except HandshakeNotFound:
            handshake = None
        if not handshake or handshake.status != oauth_popup.COMPLETED:
            # Closed while the user was at Google
            return _closed_handshake_page(request, db, handshake_id)
        response = _callback_page(request, success=True, redirect_url=redirect_url)
    else:
        response = RedirectResponse(url=redirect_url, status_code=303)

    set_auth_cookie(response, access_token)
    return response
