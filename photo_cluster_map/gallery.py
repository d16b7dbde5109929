"""Gallery navigation state machine."""

import logging
from typing import Sequence

from .exceptions import GalleryError
from .types import GalleryClosed, GalleryOpen, GalleryState, OpenGallery, Photo


class Gallery:
    """Closed, or open on a list of photos with a current index. Starts closed."""

    def __init__(self, logger: logging.Logger):
        self.logger = logger
        self.state: GalleryState = GalleryClosed()

    @property
    def is_open(self) -> bool:
        return isinstance(self.state, GalleryOpen)

    @property
    def current(self) -> Photo | None:
        return self.state.current if isinstance(self.state, GalleryOpen) else None

    def open_with(self, images: Sequence[Photo], start_index: int = 0) -> GalleryOpen:
        """
        Open on `images` at `start_index`.

        Raises:
            GalleryError: If images is empty or start_index is out of range
        """
        images = tuple(images)
        if not images:
            raise GalleryError("Cannot open the gallery without images")
        if not 0 <= start_index < len(images):
            raise GalleryError(f"Start index {start_index} out of range for {len(images)} images")

        self.state = GalleryOpen(images=images, index=start_index)
        self.logger.debug(f"Gallery opened: {self.state.position_label}")
        return self.state

    def open(self, outcome: OpenGallery) -> GalleryOpen:
        """Open from a click outcome."""
        return self.open_with(outcome.images, outcome.start_index)

    def next(self) -> GalleryState:
        return self._step(1)

    def prev(self) -> GalleryState:
        return self._step(-1)

    def select(self, index: int) -> GalleryState:
        """Jump straight to an image, as a thumbnail strip does."""
        if not isinstance(self.state, GalleryOpen):
            return self.state
        if not 0 <= index < len(self.state.images):
            raise GalleryError(f"Index {index} out of range for {len(self.state.images)} images")
        self.state = GalleryOpen(images=self.state.images, index=index)
        return self.state

    def close(self) -> GalleryClosed:
        self.state = GalleryClosed()
        return self.state

    def _step(self, delta: int) -> GalleryState:
        state = self.state
        if not isinstance(state, GalleryOpen) or len(state.images) <= 1:
            return state
        self.state = GalleryOpen(images=state.images, index=(state.index + delta) % len(state.images))
        return self.state
