"""Buffer API endpoints"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException

from format_modifications.models.buffer import BufferResponse, BufferUpdateRequest
from format_modifications.services.attachments import AttachmentRegistry
from format_modifications.services.buffers import BufferNotFound, BufferStore, TextBuffer

router = APIRouter()


def buffer_response(buffer: TextBuffer) -> BufferResponse:
    attachments = AttachmentRegistry.get_instance().for_buffer(buffer.buffer_id)
    return BufferResponse(
        buffer_id=buffer.buffer_id,
        path=buffer.path,
        content=buffer.content,
        attached_clients=[a.client.client_id for a in attachments],
    )


def get_buffer_or_404(buffer_id: str) -> TextBuffer:
    try:
        return BufferStore.get_instance().get(buffer_id)
    except BufferNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.put("/{buffer_id}", response_model=BufferResponse)
def open_buffer(buffer_id: str, request: BufferUpdateRequest) -> BufferResponse:
    """Open a buffer or replace its content"""
    buffer = BufferStore.get_instance().open(buffer_id, request.path, request.content)
    return buffer_response(buffer)


@router.get("/{buffer_id}", response_model=BufferResponse)
def get_buffer(buffer_id: str) -> BufferResponse:
    """Get the current content of a buffer"""
    return buffer_response(get_buffer_or_404(buffer_id))


@router.delete("/{buffer_id}")
def close_buffer(buffer_id: str) -> dict:
    """Close a buffer and drop its attachments"""
    try:
        BufferStore.get_instance().close(buffer_id)
    except BufferNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    detached = AttachmentRegistry.get_instance().detach(buffer_id)
    return {"status": "success", "buffer_id": buffer_id, "detached": detached}
