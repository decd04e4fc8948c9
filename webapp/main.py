# webapp/main.py
import re
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from mailgate import MailboxManager, MailSession
from mailgate.errors import FolderNotFound

from webapp.auth import get_manager, router as auth_router
from webapp.context import build_session, configure_logging

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 10

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")

router = APIRouter(tags=["mail"])

# fixed 500 body per endpoint; malformed requests get the same message
FAILURE_MESSAGES = {
    "/send-email": "Error sending email",
    "/send-reply": "Error sending reply",
    "/mark-as-unread": "Error marking email as unread",
    "/mark-as-read": "Error marking email as seen",
    "/get-emails": "Error fetching emails",
    "/move-to-folder": "Error moving email",
    "/delete-email": "Error deleting email",
}

class SendEmailRequest(BaseModel):
    to: str
    subject: str
    message: str

class ReplyRequest(BaseModel):
    id: int
    text: str

class MessageIdRequest(BaseModel):
    id: int

class MoveRequest(BaseModel):
    id: int
    sourceFolder: str
    folder: str

def _positive_int(raw: Optional[str], default: int) -> int:
    """Leading integer of `raw`, or `default` when absent, unparsable or < 1."""
    if raw is None:
        return default
    m = _LEADING_INT.match(raw)
    if not m:
        return default
    value = int(m.group(1))
    return value if value >= 1 else default


@router.post("/send-email")
async def send_email(payload: SendEmailRequest, manager: MailboxManager = Depends(get_manager)) -> dict:
    try:
        await manager.send(to=payload.to, subject=payload.subject, html=payload.message)
    except Exception as e:
        logger.exception(f"Sending email to {payload.to!r} failed: {e}")
        raise HTTPException(status_code=500, detail=FAILURE_MESSAGES["/send-email"])
    return {"message": "Email sent"}

@router.post("/send-reply")
async def send_reply(payload: ReplyRequest, manager: MailboxManager = Depends(get_manager)) -> dict:
    try:
        await manager.reply(payload.id, payload.text)
    except Exception as e:
        logger.exception(f"Replying to message {payload.id} failed: {e}")
        raise HTTPException(status_code=500, detail=FAILURE_MESSAGES["/send-reply"])
    return {"message": "Reply sent"}

@router.post("/mark-as-unread")
async def mark_as_unread(payload: MessageIdRequest, manager: MailboxManager = Depends(get_manager)) -> dict:
    try:
        await manager.mark_unread(payload.id)
    except Exception as e:
        logger.exception(f"Marking message {payload.id} unread failed: {e}")
        raise HTTPException(status_code=500, detail=FAILURE_MESSAGES["/mark-as-unread"])
    return {"message": "Email marked as unread"}

@router.post("/mark-as-read")
async def mark_as_read(payload: MessageIdRequest, manager: MailboxManager = Depends(get_manager)) -> dict:
    try:
        await manager.mark_read(payload.id)
    except Exception as e:
        logger.exception(f"Marking message {payload.id} seen failed: {e}")
        raise HTTPException(status_code=500, detail=FAILURE_MESSAGES["/mark-as-read"])
    return {"message": "Email marked as seen"}

@router.get("/get-emails")
async def get_emails(
    folder: str = "INBOX",
    page: Optional[str] = None,
    perPage: Optional[str] = None,
    manager: MailboxManager = Depends(get_manager),
) -> dict:
    """
    One newest-first page of `folder`. The folder name is matched
    case-insensitively against the live folder list.
    """
    page_no = _positive_int(page, DEFAULT_PAGE)
    page_size = _positive_int(perPage, DEFAULT_PAGE_SIZE)
    logger.info(f"Fetching emails from folder {folder!r} (page={page_no}, perPage={page_size})")

    try:
        result = await manager.fetch_page(folder or "INBOX", page=page_no, page_size=page_size)
    except FolderNotFound:
        raise HTTPException(status_code=404, detail="Folder not found")
    except Exception as e:
        logger.exception(f"Fetching emails from {folder!r} failed: {e}")
        raise HTTPException(status_code=500, detail=FAILURE_MESSAGES["/get-emails"])
    return result.to_dict()

@router.post("/move-to-folder")
async def move_to_folder(payload: MoveRequest, manager: MailboxManager = Depends(get_manager)) -> dict:
    try:
        await manager.move(payload.id, src_folder=payload.sourceFolder, dst_folder=payload.folder)
    except Exception as e:
        logger.exception(f"Moving message {payload.id} to {payload.folder!r} failed: {e}")
        raise HTTPException(status_code=500, detail=FAILURE_MESSAGES["/move-to-folder"])
    return {"message": "Email moved"}

@router.post("/delete-email")
async def delete_email(payload: MessageIdRequest, manager: MailboxManager = Depends(get_manager)) -> dict:
    try:
        await manager.delete(payload.id)
    except Exception as e:
        logger.exception(f"Deleting message {payload.id} failed: {e}")
        raise HTTPException(status_code=500, detail=FAILURE_MESSAGES["/delete-email"])
    return {"message": "Email deleted"}

def create_app(session: Optional[MailSession] = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if getattr(app.state, "session", None) is None:
            app.state.session = build_session()
        logger.info("Mail gateway ready")
        yield
        logger.info("Shutting down, closing mailbox session")
        await app.state.session.close()

    app = FastAPI(title="mailgate", lifespan=lifespan)
    app.state.session = session

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["Content-Type", "Authorization"],
    )

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        return JSONResponse({"message": exc.detail}, status_code=exc.status_code, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def invalid_request(request: Request, exc: RequestValidationError):
        logger.warning(f"Rejected malformed request to {request.url.path}: {exc.errors()}")
        message = FAILURE_MESSAGES.get(request.url.path)
        if message is None:
            return JSONResponse({"message": "Invalid request"}, status_code=400)
        return JSONResponse({"message": message}, status_code=500)

    app.include_router(auth_router)
    app.include_router(router)
    return app

configure_logging()
app = create_app()
