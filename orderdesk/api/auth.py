import logging

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from orderdesk.api.deps import get_context
from orderdesk.context import AppContext
from orderdesk.views.login import LoginView
from orderdesk.views.templates import render_login

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


@router.get("/login", response_class=HTMLResponse)
def login_page(ctx: AppContext = Depends(get_context)):
    return render_login(ctx.settings.APP_NAME)


@router.post("/login", response_class=HTMLResponse)
async def login(request: Request, email: str = Form(...), password: str = Form(...),
                ctx: AppContext = Depends(get_context)):
    # a browser logging in again gives up the client of its previous login
    await ctx.sessions.drop(request.cookies.get(ctx.settings.SESSION_COOKIE))
    response = RedirectResponse("/", status_code=303)

    async def on_login(sid, store):
        response.set_cookie(
            ctx.settings.SESSION_COOKIE,
            sid,
            httponly=True,
            samesite="lax",
            secure=ctx.settings.COOKIE_SECURE,
        )

    view = LoginView(ctx.sessions, on_login)
    if await view.submit(email, password):
        return response
    return HTMLResponse(render_login(ctx.settings.APP_NAME, error=view.error, email=email), status_code=401)


@router.post("/logout")
async def logout(request: Request, ctx: AppContext = Depends(get_context)):
    try:
        await ctx.sessions.logout(request.cookies.get(ctx.settings.SESSION_COOKIE))
    except Exception as e:
        logger.error(f"Sign-out failed: {e}")
    response = RedirectResponse("/login", status_code=303)
    response.delete_cookie(ctx.settings.SESSION_COOKIE, httponly=True, samesite="lax", secure=ctx.settings.COOKIE_SECURE)
    return response
