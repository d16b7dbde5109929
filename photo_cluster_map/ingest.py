"""Batched, non-blocking ingestion of image files into geotagged photos."""

import asyncio
import itertools
import logging
import mimetypes
import secrets
import time
from dataclasses import dataclass
from pathlib import Path
from typing import AsyncIterator, Callable, Iterable, Protocol, Sequence

from .constants import Constants
from .exceptions import ExtractionError, GeoTagError, NoGeotagError
from .gps import GeoTagExtractor, validate_coordinates
from .types import Coordinates, IngestConfig, Photo, Progress


Extractor = Callable[[bytes], Coordinates | None]
ProgressCallback = Callable[[Progress], None]


class FileHandle(Protocol):
    """A user-selected file. Only `read` may block."""

    @property
    def name(self) -> str: ...

    @property
    def media_type(self) -> str | None: ...

    @property
    def url(self) -> str: ...

    def read(self) -> bytes: ...


@dataclass(frozen=True)
class LocalFile:
    """FileHandle backed by a path on the local file system."""
    path: Path

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def media_type(self) -> str | None:
        media_type, _ = mimetypes.guess_type(self.path.name)
        return media_type

    @property
    def url(self) -> str:
        return self.path.resolve().as_uri()

    def read(self) -> bytes:
        return self.path.read_bytes()


def is_image(file: FileHandle) -> bool:
    """Check whether a handle declares an image media type."""
    media_type = file.media_type
    return bool(media_type) and media_type.startswith(Constants.IMAGE_MEDIA_TYPE_PREFIX)


class PhotoIdGenerator:
    """Produces ids of the form photo-<epoch ms>-<sequence>-<random hex>."""

    def __init__(self):
        self._sequence = itertools.count()

    def __call__(self) -> str:
        millis = time.time_ns() // 1_000_000
        return f"photo-{millis}-{next(self._sequence)}-{secrets.token_hex(5)}"


class IngestionPipeline:
    """
    Turns a list of file handles into geotagged Photo records.

    Files are processed in fixed-size batches. Every extraction in a batch runs
    concurrently and the batch settles only when all of them have finished;
    each outcome is recorded on its own, so one bad file never aborts the
    batch. Control returns to the event loop between batches.
    """

    def __init__(
        self,
        ingest_config: IngestConfig,
        logger: logging.Logger,
        extractor: Extractor | None = None,
        id_generator: Callable[[], str] | None = None,
    ):
        self.ingest_config = ingest_config
        self.logger = logger
        self.extractor = extractor or GeoTagExtractor(logger)
        self.id_generator = id_generator or PhotoIdGenerator()

    async def ingest(
        self, files: Iterable[FileHandle], on_progress: ProgressCallback | None = None
    ) -> list[Photo]:
        """
        Run one ingestion session to completion.

        Args:
            files: Handles to ingest; non-images are skipped
            on_progress: Called with every Progress update of the session

        Returns:
            All successfully geotagged photos, in submission order
        """
        photos: list[Photo] = []
        async for progress, batch_photos in self.iter_batches(files):
            photos.extend(batch_photos)
            if on_progress:
                on_progress(progress)
        self.logger.info(f"Ingestion complete: {len(photos)} geotagged photos")
        return photos

    async def iter_batches(
        self, files: Iterable[FileHandle]
    ) -> AsyncIterator[tuple[Progress, list[Photo]]]:
        """
        Yield (progress, photos of the batch) once before the first batch and after each batch.

        The first item always carries processed=0. Counters are local to this call.
        """
        queue = [file for file in files if is_image(file)]
        total = len(queue)
        processed = 0
        batch_size = max(1, self.ingest_config.batch_size)

        self.logger.info(f"Ingesting {total} image files in batches of {batch_size}")
        yield Progress(processed=0, total=total), []

        for start in range(0, total, batch_size):
            batch = queue[start:start + batch_size]
            batch_photos = await self._process_batch(batch)
            processed += len(batch)
            yield Progress(processed=processed, total=total), batch_photos

            if processed < total:
                await asyncio.sleep(0)

    async def _process_batch(self, batch: Sequence[FileHandle]) -> list[Photo]:
        """Run the batch concurrently and keep the successes."""
        results = await asyncio.gather(
            *(self._process_file(file) for file in batch), return_exceptions=True
        )

        photos = []
        for file, result in zip(batch, results):
            if isinstance(result, Photo):
                photos.append(result)
            elif isinstance(result, NoGeotagError):
                self.logger.info(f"No GPS data found for photo: {result}")
            elif isinstance(result, ExtractionError):
                self.logger.warning(f"Error extracting GPS data: {result}")
            elif isinstance(result, Exception):
                self.logger.error(f"Unexpected error processing {file.name}: {result}")
            else:
                raise result
        return photos

    async def _process_file(self, file: FileHandle) -> Photo:
        """
        Extract one file into a Photo.

        Raises:
            NoGeotagError: If the image has no usable coordinates
            ExtractionError: If the file cannot be read or parsed
        """
        url = file.url
        try:
            data = await asyncio.to_thread(file.read)
        except OSError as e:
            raise ExtractionError(f"could not read file: {e}", file.name) from e

        try:
            coords = await asyncio.to_thread(self.extractor, data)
        except GeoTagError as e:
            raise type(e)(e.message, file.name) from e
        except Exception as e:  # pylint: disable=broad-exception-caught
            # The extractor is opaque; any failure inside it is a failed extraction
            raise ExtractionError(str(e) or type(e).__name__, file.name) from e

        lat, lng = validate_coordinates(file.name, coords)
        return Photo(id=self.id_generator(), url=url, name=file.name, lat=lat, lng=lng)
