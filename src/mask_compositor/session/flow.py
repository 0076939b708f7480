"""Platform-agnostic state machine for the photo → format → result conversation.

A messaging adapter feeds user events in and delivers the returned
:class:`Reply` objects; downloads, uploads and session storage stay on the
adapter side.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

from mask_compositor.assets.masks import MaskCatalog, default_catalog, select_mask
from mask_compositor.exceptions import CompositorError
from mask_compositor.models.formats import OUTPUT_FORMATS, MaskOption, TargetFormat
from mask_compositor.session import messages

logger = logging.getLogger(__name__)

FORMAT_CALLBACK_PREFIX = "format_"

ImageProcessor = Callable[[bytes, TargetFormat, MaskOption], bytes]


class SessionState(str, Enum):
    AWAITING_IMAGE = "awaiting_image"
    AWAITING_FORMAT = "awaiting_format"
    PROCESSING = "processing"
    DONE = "done"


class InvalidTransitionError(RuntimeError):
    """Raised when an event arrives in a state that cannot handle it."""


@dataclass(slots=True)
class Reply:
    text: str
    photo: bytes | None = None
    keyboard: list[list[tuple[str, str]]] | None = None


@dataclass(slots=True)
class FormatSelection:
    """Outcome of a format choice: the callback acknowledgement plus follow-up replies."""

    notice: str | None
    replies: list[Reply] = field(default_factory=list)


def format_keyboard() -> list[list[tuple[str, str]]]:
    return [
        [
            (messages.FORMAT_LABELS["stories"], f"{FORMAT_CALLBACK_PREFIX}stories"),
            (messages.FORMAT_LABELS["square"], f"{FORMAT_CALLBACK_PREFIX}square"),
        ]
    ]


class ConversationSession:
    def __init__(self, processor: ImageProcessor, catalog: MaskCatalog | None = None) -> None:
        self._processor = processor
        self._catalog = catalog or default_catalog()
        self.state = SessionState.DONE
        self.image: bytes | None = None
        self.selected_format: TargetFormat | None = None
        self.selected_mask: MaskOption | None = None

    def _require(self, expected: SessionState) -> None:
        if self.state is not expected:
            raise InvalidTransitionError(f"Expected state {expected.value}, session is {self.state.value}")

    def start(self) -> list[Reply]:
        self.state = SessionState.AWAITING_IMAGE
        self.image = None
        self.selected_format = None
        self.selected_mask = None
        return [Reply(messages.ASK_FOR_PHOTO)]

    def help(self) -> list[Reply]:
        return [Reply(messages.HELP)]

    def receive_image(self, data: bytes | None) -> list[Reply]:
        if self.state is SessionState.DONE:
            # A photo outside the conversation: /start has to come first.
            return [Reply(messages.START_FIRST)]
        self._require(SessionState.AWAITING_IMAGE)
        if not data:
            return [Reply(messages.NOT_AN_IMAGE)]

        self.image = data
        self.state = SessionState.AWAITING_FORMAT
        return [
            Reply(messages.DOWNLOADING),
            Reply(messages.ASK_FOR_FORMAT, keyboard=format_keyboard()),
        ]

    def select_format(self, callback_data: str) -> FormatSelection:
        self._require(SessionState.AWAITING_FORMAT)
        kind = callback_data.removeprefix(FORMAT_CALLBACK_PREFIX)
        target = OUTPUT_FORMATS.get(kind) if kind != callback_data else None
        if target is None:
            return FormatSelection(notice=None, replies=[Reply(messages.ASK_FOR_FORMAT, keyboard=format_keyboard())])

        self.selected_format = target
        self.selected_mask = select_mask(self._catalog, kind)
        self.state = SessionState.PROCESSING
        notice = messages.FORMAT_CHOSEN.format(label=messages.FORMAT_LABELS[kind])
        replies = [Reply(messages.PROCESSING), self._process()]
        return FormatSelection(notice=notice, replies=replies)

    def _process(self) -> Reply:
        if self.image is None or self.selected_format is None or self.selected_mask is None:
            raise InvalidTransitionError("Processing requires an image, a format and a mask")
        try:
            result = self._processor(self.image, self.selected_format, self.selected_mask)
        except CompositorError as exc:
            logger.error("Error processing image: %s", exc)
            return Reply(messages.PROCESSING_FAILED)
        finally:
            self.state = SessionState.DONE
        return Reply(messages.DONE, photo=result)
