"""Collaborative editor routes - serve a draft's file and accept saves."""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import FileResponse

from draftsync.app.api.deps import get_services
from draftsync.app.bootstrap import Services
from draftsync.app.drafts.editor import EditorCallback
from draftsync.app.errors import DraftNotFound
from draftsync.app.models.drafts import DraftFileStatus
from draftsync.app.sync.synchronizer import mime_type_for

router = APIRouter(prefix="/editor", tags=["editor"])


@router.get("/document/{draft_id}")
async def get_document(
    draft_id: int,
    services: Annotated[Services, Depends(get_services)],
) -> FileResponse:
    """Serve the draft's local file to the editor.

    Raises:
        HTTPException: 404 if the draft or its file does not exist
    """
    try:
        _, path = services.lifecycle.get(draft_id)
    except DraftNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e

    if not path.is_file():
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"File for draft {draft_id} not found",
        )

    return FileResponse(path, media_type=mime_type_for(path.name), filename=path.name)


@router.post("/callback/{draft_id}")
async def editor_callback(
    draft_id: int,
    callback: EditorCallback,
    services: Annotated[Services, Depends(get_services)],
) -> dict[str, int]:
    """Save callback from the editor. Always answers 200 with ``{"error": 0|1}``."""
    return await services.editor_saves.handle_callback(draft_id, callback)


@router.get("/config/{draft_id}")
async def editor_config(
    draft_id: int,
    services: Annotated[Services, Depends(get_services)],
    user_id: Annotated[str, Query()] = "user1",
    user_name: Annotated[str, Query()] = "User",
) -> dict[str, Any]:
    """Editor configuration for opening the draft's file."""
    try:
        return services.editor_session.editor_config(
            draft_id, user_id=user_id, user_name=user_name
        )
    except DraftNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e


@router.get("/status/{draft_id}", response_model=DraftFileStatus)
async def draft_status(
    draft_id: int,
    services: Annotated[Services, Depends(get_services)],
) -> DraftFileStatus:
    """Draft status and local file state, polled by the editor page."""
    try:
        return services.lifecycle.status(draft_id)
    except DraftNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
