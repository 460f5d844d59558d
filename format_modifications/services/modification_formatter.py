"""
Modification Formatter - Decide what to format and dispatch to the engine
"""

from __future__ import annotations

import logging
from typing import Callable, Literal

from format_modifications.models.format import (
    AttachConfig,
    FormatOutcome,
    FormatRange,
    FormatRequest,
    FormatStatus,
)

from .attachments import Attachment
from .buffers import TextBuffer
from .convergence import ConvergenceEngine
from .formatter_client import FormatterClient
from .hunk_extractor import HunkExtractor
from .notify import Notifier
from .vcs import ComparisonUnavailable, NotARepository, QueryFailed, VersionControlSource, get_vcs_client

logger = logging.getLogger(__name__)

Trigger = Literal["command", "save"]


class ModificationFormatter:
    """Format only the lines of a buffer that differ from version control"""

    def __init__(
        self,
        vcs_factory: Callable[..., VersionControlSource] = get_vcs_client,
        command_timeout_s: float | None = None,
        max_passes: int | None = None,
        extractor: HunkExtractor | None = None,
    ):
        self.vcs_factory = vcs_factory
        self.command_timeout_s = command_timeout_s
        self.max_passes = max_passes
        self.extractor = extractor or HunkExtractor()

    def format_modifications(
        self,
        client: FormatterClient,
        buffer: TextBuffer,
        config: AttachConfig,
        notifier: Notifier,
    ) -> FormatOutcome:
        """Run one formatting request for one client against one buffer"""
        vcs_client = self.vcs_factory(config.vcs, timeout_s=self.command_timeout_s)

        def format_callback(format_range: FormatRange | None = None) -> None:
            request = FormatRequest(
                client_id=client.client_id,
                buffer_id=buffer.buffer_id,
                range=format_range,
            )
            client.format(buffer, request)

        try:
            vcs_client.init(buffer.path)
        except NotARepository as e:
            notifier.warn(f"{e}, doing nothing")
            return FormatOutcome(client_id=client.client_id, status=FormatStatus.SKIPPED_NOT_REPOSITORY)

        try:
            file_info = vcs_client.file_info(buffer.path)
        except QueryFailed as e:
            notifier.error(f"failed to get file info, {e} -- consider raising an issue")
            return FormatOutcome(client_id=client.client_id, status=FormatStatus.QUERY_FAILED)

        if not file_info.is_tracked:
            # the file is new, so skip the diff entirely and format everything
            format_callback()
            return FormatOutcome(
                client_id=client.client_id,
                status=FormatStatus.FORMATTED_FILE,
                format_calls=1,
            )

        if file_info.has_conflicts:
            # conflict markers are likely present, leave the buffer alone
            return FormatOutcome(client_id=client.client_id, status=FormatStatus.SKIPPED_CONFLICTS)

        try:
            comparison_lines = vcs_client.comparison_lines(buffer.path)
        except ComparisonUnavailable as e:
            notifier.error(f"failed to get comparee, {e} -- consider raising an issue")
            return FormatOutcome(client_id=client.client_id, status=FormatStatus.COMPARISON_UNAVAILABLE)

        engine = ConvergenceEngine(config.diff_options, self.extractor, self.max_passes)
        report = engine.run("\n".join(comparison_lines), buffer.get_lines, format_callback)

        return FormatOutcome(
            client_id=client.client_id,
            status=FormatStatus.FORMATTED_MODIFICATIONS,
            passes=report.passes,
            format_calls=report.format_calls,
            mutations=report.mutations,
        )

    def format_buffer(
        self,
        buffer: TextBuffer,
        attachments: list[Attachment],
        notifier: Notifier,
        trigger: Trigger = "command",
    ) -> list[FormatOutcome]:
        """Run every attached client over the buffer.

        ``trigger="save"`` runs only the attachments that asked for format on
        save. The caller holds ``buffer.lock`` for the whole request.
        """
        if not attachments:
            # attaching was never done, or no attached client qualified
            notifier.warn("no supported formatter clients attached to buffer, nothing to do")
            return []

        if trigger == "save":
            attachments = [a for a in attachments if a.config.format_on_save]

        outcomes = []
        for attachment in attachments:
            logger.debug(
                "Formatting buffer %s with %s (%s)",
                buffer.buffer_id,
                attachment.client.client_id,
                trigger,
            )
            outcomes.append(
                self.format_modifications(attachment.client, buffer, attachment.config, notifier)
            )
        return outcomes
