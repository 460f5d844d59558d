"""
Attachment Registry - Which formatter clients apply to which buffer, and how
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from format_modifications.models.format import AttachConfig

from .formatter_client import FormatterClient
from .vcs import VCS_CLIENTS

logger = logging.getLogger(__name__)


class AttachError(Exception):
    pass


@dataclass
class Attachment:
    buffer_id: str
    client: FormatterClient
    config: AttachConfig


def merge_config(base: dict[str, Any], provided: dict[str, Any]) -> dict[str, Any]:
    """Provided keys win over the base; diff options are merged key by key"""
    merged = {**base, **provided}
    if isinstance(provided.get("diff_options"), dict):
        merged["diff_options"] = {**base.get("diff_options", {}), **provided["diff_options"]}
    return merged


def attach_prechecks(client: FormatterClient, config: AttachConfig) -> str | None:
    if not client.supports_range_formatting:
        return f"client {client.client_id} does not have a range formatting provider"

    if config.vcs not in VCS_CLIENTS:
        return f"VCS {config.vcs} isn't supported"

    return None


class AttachmentRegistry:
    """Attachments keyed by (buffer_id, client_id)"""

    _instance = None

    def __init__(self):
        self._attachments: dict[tuple[str, str], Attachment] = {}
        self._lock = threading.Lock()

    @classmethod
    def get_instance(cls) -> "AttachmentRegistry":
        """Get singleton instance"""
        if cls._instance is None:
            cls._instance = AttachmentRegistry()
        return cls._instance

    def attach(
        self,
        buffer_id: str,
        client: FormatterClient,
        base_config: dict[str, Any],
        provided_config: dict[str, Any] | None = None,
    ) -> Attachment:
        """Record ``client`` for ``buffer_id``; attaching again replaces the config"""
        try:
            config = AttachConfig.model_validate(merge_config(base_config, provided_config or {}))
        except ValidationError as e:
            raise AttachError(f"invalid configuration: {e}") from e

        err = attach_prechecks(client, config)
        if err is not None:
            raise AttachError(f"failed checks: {err}")

        attachment = Attachment(buffer_id=buffer_id, client=client, config=config)
        with self._lock:
            self._attachments[(buffer_id, client.client_id)] = attachment
        logger.info("Attached %s to buffer %s", client.client_id, buffer_id)
        return attachment

    def for_buffer(self, buffer_id: str) -> list[Attachment]:
        with self._lock:
            return [a for (bufnr, _), a in self._attachments.items() if bufnr == buffer_id]

    def detach(self, buffer_id: str, client_id: str | None = None) -> int:
        """Drop attachments of a buffer, all of them unless ``client_id`` is given"""
        with self._lock:
            keys = [
                key
                for key in self._attachments
                if key[0] == buffer_id and (client_id is None or key[1] == client_id)
            ]
            for key in keys:
                del self._attachments[key]
        return len(keys)
