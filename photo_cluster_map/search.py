"""Viewport resolution from explicit bounds, addresses or coordinates."""

import logging

from geopy.distance import distance
from geopy.exc import GeocoderServiceError, GeocoderTimedOut
from geopy.geocoders import Nominatim

from .constants import Constants
from .exceptions import ConfigurationError
from .types import BoundingBox, ViewportConfig


WORLD_BBOX = BoundingBox(west=-180.0, south=-90.0, east=180.0, north=90.0)


class ViewportResolver:
    """Turns a ViewportConfig into the bounding box to query."""

    def __init__(self, viewport_config: ViewportConfig, logger: logging.Logger):
        self.viewport_config = viewport_config
        self.logger = logger
        self.center: tuple[float, float] | None = None
        self.geolocator = Nominatim(user_agent=Constants.DEFAULT_USER_AGENT)

    def resolve(self) -> BoundingBox:
        """
        Resolve the viewport.

        Priority: explicit bbox, then address, then latitude/longitude, then the whole world.

        Raises:
            ConfigurationError: If geocoding fails or finds nothing
        """
        config = self.viewport_config
        if config.bbox:
            return BoundingBox(*config.bbox)

        if config.address:
            self.center = self._geocode(config.address)
        elif config.latitude is not None and config.longitude is not None:
            self.center = (config.latitude, config.longitude)
        else:
            self.logger.info("No viewport configured, using the whole world")
            return WORLD_BBOX

        bbox = self.bbox_around(self.center, config.radius)
        self.logger.info(f"Viewport: {config.radius} miles around {self.center} -> {tuple(bbox)}")
        return bbox

    def _geocode(self, address: str) -> tuple[float, float]:
        try:
            location = self.geolocator.geocode(
                query=address, timeout=Constants.GEOCODING_TIMEOUT_SECONDS
            )
        except (GeocoderTimedOut, GeocoderServiceError) as e:
            raise ConfigurationError(f"Geocoding failed: {e}") from e

        if not location:
            raise ConfigurationError(f"No location found from Nominatim for {address!r}")

        self.logger.info(f"Nominatim address: {location.address}")
        self.logger.info(f"Lat, Lon: {location.latitude}, {location.longitude}")
        return (location.latitude, location.longitude)

    @staticmethod
    def bbox_around(center: tuple[float, float], radius_miles: float) -> BoundingBox:
        """Bounding box reaching `radius_miles` north, east, south and west of center."""
        reach = distance(miles=radius_miles)
        north = reach.destination(center, bearing=0).latitude
        east = reach.destination(center, bearing=90).longitude
        south = reach.destination(center, bearing=180).latitude
        west = reach.destination(center, bearing=270).longitude
        return BoundingBox(west=west, south=south, east=east, north=north)
