"""Formatting API endpoints"""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException
from pydantic import ValidationError

from format_modifications.models.format import (
    AttachRequest,
    AttachResponse,
    FormatBufferRequest,
    FormatBufferResponse,
    FormatterClientConfig,
)
from format_modifications.services.attachments import AttachError, AttachmentRegistry
from format_modifications.services.config_manager import ConfigManager
from format_modifications.services.convergence import ConvergenceError
from format_modifications.services.formatter_client import FormatterClient, FormatterError
from format_modifications.services.hunk_extractor import HunkExtractor
from format_modifications.services.modification_formatter import ModificationFormatter, Trigger
from format_modifications.services.notify import Notifier

from .buffers import get_buffer_or_404

logger = logging.getLogger(__name__)

router = APIRouter()
hunk_extractor = HunkExtractor()


def build_client(client_id: str, config: dict) -> FormatterClient:
    """Formatter client for a configured formatter name"""
    definition = config.get("formatters", {}).get(client_id)
    if definition is None:
        raise HTTPException(status_code=404, detail=f"unknown formatter client {client_id}")

    try:
        client_config = FormatterClientConfig.model_validate({**definition, "name": client_id})
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=f"invalid formatter definition: {e}")

    return FormatterClient(client_config, timeout_s=config.get("command_timeout_s"))


@router.post("/attach", response_model=AttachResponse)
def attach(request: AttachRequest) -> AttachResponse:
    """Attach a formatter client to a buffer"""
    get_buffer_or_404(request.buffer_id)
    config_manager = ConfigManager.get_instance()
    client = build_client(request.client_id, config_manager.get_config())

    try:
        attachment = AttachmentRegistry.get_instance().attach(
            request.buffer_id,
            client,
            config_manager.base_attach_config(),
            request.config,
        )
    except AttachError as e:
        logger.error("Attach failed: %s", e)
        raise HTTPException(status_code=400, detail=str(e))

    return AttachResponse(
        buffer_id=attachment.buffer_id,
        client_id=attachment.client.client_id,
        config=attachment.config,
    )


def run_formatting(buffer_id: str, trigger: Trigger) -> FormatBufferResponse:
    buffer = get_buffer_or_404(buffer_id)
    config = ConfigManager.get_instance().get_config()
    formatter = ModificationFormatter(command_timeout_s=config.get("command_timeout_s"))
    notifier = Notifier()

    # editor updates wait until the response snapshot is taken
    with buffer.lock:
        before = buffer.get_lines()
        try:
            outcomes = formatter.format_buffer(
                buffer,
                AttachmentRegistry.get_instance().for_buffer(buffer_id),
                notifier,
                trigger=trigger,
            )
        except FormatterError as e:
            logger.error("Formatter failed on %s: %s", buffer.path, e)
            raise HTTPException(status_code=502, detail={"message": str(e), "stderr": e.stderr})
        except ConvergenceError as e:
            logger.error("Formatting %s did not settle: %s", buffer.path, e)
            raise HTTPException(status_code=502, detail={"message": str(e), "stderr": []})

        after = buffer.get_lines()
        content = buffer.content
        path = buffer.path

    changed = after != before
    return FormatBufferResponse(
        buffer_id=buffer_id,
        content=content,
        changed=changed,
        outcomes=outcomes,
        notifications=notifier.notifications,
        diff=hunk_extractor.generate_diff(before, after, path) if changed else None,
    )


@router.post("/modifications", response_model=FormatBufferResponse)
def format_modifications(request: FormatBufferRequest) -> FormatBufferResponse:
    """Format the modified lines of a buffer with every attached client"""
    return run_formatting(request.buffer_id, "command")


@router.post("/save", response_model=FormatBufferResponse)
def format_on_save(request: FormatBufferRequest) -> FormatBufferResponse:
    """Editor is about to write the buffer; run the clients that format on save"""
    return run_formatting(request.buffer_id, "save")
