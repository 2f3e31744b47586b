"""
HTTP API for a review session.

Routes:
- GET    /api/document
- GET    /api/comments
- POST   /api/comments
- PUT    /api/comments/{comment_id}
- DELETE /api/comments/{comment_id}
- GET    /api/stale
- DELETE /api/stale
- POST   /api/finish
- GET    /api/health

Session routes are plain functions, so FastAPI runs them on its threadpool
and concurrent requests meet at the document lock.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import APIRouter, BackgroundTasks, FastAPI, HTTPException, Request
from pydantic import BaseModel

from . import __version__
from .comment_schema import Comment
from .errors import NotFoundError, ValidationError
from .session import ReviewSession

router = APIRouter(prefix="/api", tags=["review"])


class NewComment(BaseModel):
    start_line: int
    end_line: int
    body: str


class CommentEdit(BaseModel):
    body: str


def _session(request: Request) -> ReviewSession:
    return request.app.state.session


@router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/document")
def get_document(request: Request) -> dict:
    """Source file name and content."""
    return _session(request).get_document()


@router.get("/comments", response_model=list[Comment])
def list_comments(request: Request) -> list[Comment]:
    return _session(request).get_comments()


@router.post("/comments", response_model=Comment, status_code=201)
def create_comment(request: Request, payload: NewComment) -> Comment:
    """Add a comment on a line range."""
    try:
        return _session(request).add_comment(payload.start_line, payload.end_line, payload.body)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.put("/comments/{comment_id}", response_model=Comment)
def edit_comment(request: Request, comment_id: str, payload: CommentEdit) -> Comment:
    """Replace a comment's body."""
    try:
        return _session(request).update_comment(comment_id, payload.body)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/comments/{comment_id}")
def remove_comment(request: Request, comment_id: str) -> dict[str, str]:
    if not _session(request).delete_comment(comment_id):
        raise HTTPException(status_code=404, detail="Comment not found")
    return {"status": "deleted"}


@router.get("/stale")
def get_stale(request: Request) -> dict[str, str]:
    return {"notice": _session(request).get_stale_notice()}


@router.delete("/stale")
def dismiss_stale(request: Request) -> dict[str, str]:
    _session(request).clear_stale_notice()
    return {"status": "ok"}


@router.post("/finish")
def finish(request: Request, background_tasks: BackgroundTasks) -> dict[str, str]:
    """Flush both artifacts, respond, then ask the host to stop."""
    session = _session(request)
    result = session.finish()
    background_tasks.add_task(session.request_shutdown)
    return result


def create_app(session: ReviewSession) -> FastAPI:
    """
    Build the API application for one review session.

    The session is closed (final flush included) when the app shuts down,
    which uvicorn runs before it re-raises SIGINT or SIGTERM.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        session.close()

    app = FastAPI(
        title="crit",
        version=__version__,
        description="Line-range review comments for a single file",
        lifespan=lifespan,
    )
    app.state.session = session
    app.include_router(router)
    return app


__all__ = ["create_app"]
