# webapp/auth.py
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.security import HTTPBasic, HTTPBasicCredentials
from loguru import logger

from mailgate import MailboxManager, MailSession
from mailgate.auth import PasswordAuth

basic = HTTPBasic(auto_error=False)

router = APIRouter(tags=["auth"])


def get_session(request: Request) -> MailSession:
    return request.app.state.session


async def require_session(
    credentials: Optional[HTTPBasicCredentials] = Depends(basic),
    session: MailSession = Depends(get_session),
) -> MailSession:
    """
    Authenticate the request's Basic credentials against the mailbox session,
    creating the session on first use. An existing session is reused as-is.
    """
    auth = None
    if credentials is not None:
        auth = PasswordAuth(username=credentials.username, password=credentials.password)

    result = await session.ensure(auth)
    if not result.ok:
        raise HTTPException(status_code=401, detail="You are not authenticated")
    if result.created:
        logger.info(f"Mailbox session created for {credentials.username!r}")
    return session


def get_manager(session: MailSession = Depends(require_session)) -> MailboxManager:
    return MailboxManager(session)


@router.get("/login")
async def login(session: MailSession = Depends(require_session)) -> dict:
    return {"message": "Logged in"}


@router.get("/logout")
async def logout(session: MailSession = Depends(get_session)) -> dict:
    try:
        await session.invalidate()
    except Exception as e:
        logger.exception(f"Logout failed: {e}")
        raise HTTPException(status_code=500, detail="Error logging out")
    return {"message": "Logged out"}


@router.get("/logged-in")
async def logged_in(session: MailSession = Depends(get_session)) -> dict:
    try:
        authed = session.is_authenticated
    except Exception as e:
        logger.exception(f"Login status check failed: {e}")
        raise HTTPException(status_code=500, detail="Error checking login status")
    if not authed:
        raise HTTPException(status_code=401, detail="Not logged in")
    return {"message": "Logged in"}
