"""Photo collection ownership and index lifecycle."""

import logging
from typing import Callable, Iterable

from .clustering import ClusteringEngine, SpatialIndex
from .ingest import Extractor, FileHandle, IngestionPipeline, ProgressCallback
from .query import ClusterQueryEngine
from .types import (
    BoundingBox,
    ClickOutcome,
    ClusterConfig,
    IngestConfig,
    Photo,
    RenderNode,
)


CollectionListener = Callable[[SpatialIndex], None]


class PhotoLibrary:
    """
    Owns the photo collection and the current SpatialIndex snapshot.

    The collection only changes here, after an ingestion session has fully
    completed. Each change builds a new index, swaps the reference, and then
    notifies subscribers so they can re-run their viewport query.
    """

    def __init__(
        self,
        cluster_config: ClusterConfig,
        ingest_config: IngestConfig,
        logger: logging.Logger,
        extractor: Extractor | None = None,
    ):
        self.logger = logger
        self.clustering_engine = ClusteringEngine(cluster_config, logger)
        self.query_engine = ClusterQueryEngine(logger)
        self.ingest_config = ingest_config
        self.extractor = extractor
        self._photos: dict[str, Photo] = {}
        self._listeners: list[CollectionListener] = []
        self.index: SpatialIndex = self.clustering_engine.build(())

    @property
    def photos(self) -> list[Photo]:
        return list(self._photos.values())

    def __len__(self) -> int:
        return len(self._photos)

    def subscribe(self, listener: CollectionListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: CollectionListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    async def ingest(
        self, files: Iterable[FileHandle], on_progress: ProgressCallback | None = None
    ) -> list[Photo]:
        """
        Ingest files and append the geotagged results to the collection.

        A fresh pipeline (and so fresh progress counters) is used per call.

        Returns:
            The photos added by this session
        """
        pipeline = IngestionPipeline(self.ingest_config, self.logger, extractor=self.extractor)
        new_photos = await pipeline.ingest(files, on_progress=on_progress)
        self.add_photos(new_photos)
        return new_photos

    def add_photos(self, photos: Iterable[Photo]) -> None:
        """Append photos (ids already present are replaced) and rebuild the index."""
        for photo in photos:
            self._photos[photo.id] = photo
        self._rebuild()

    def clear(self) -> None:
        """Discard the whole collection."""
        self._photos = {}
        self._rebuild()

    def query(self, bbox: BoundingBox, zoom: float) -> list[RenderNode]:
        return self.query_engine.query(self.index, bbox, zoom)

    def expand(self, cluster_id: str) -> list[Photo]:
        return self.query_engine.expand(self.index, cluster_id)

    def click(self, node: RenderNode) -> ClickOutcome:
        return self.query_engine.click(self.index, node)

    def _rebuild(self) -> None:
        index = self.clustering_engine.build(self._photos.values())
        self.index = index
        for listener in list(self._listeners):
            listener(index)
