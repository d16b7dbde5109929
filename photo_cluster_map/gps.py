"""GPS metadata extraction from raw image bytes."""

import logging

from exif import Image

from .exceptions import ExtractionError, NoGeotagError
from .types import Coordinates


class GeoTagExtractor:
    """Reads EXIF GPS tags from image bytes and converts them to decimal degrees."""

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def __call__(self, data: bytes) -> Coordinates | None:
        return self.extract(data)

    def extract(self, data: bytes) -> Coordinates | None:
        """
        Extract GPS coordinates from the bytes of one image.

        Args:
            data: Raw file contents

        Returns:
            Coordinates dict, or None if the image has no GPS metadata

        Raises:
            ExtractionError: If the bytes cannot be parsed as an image with EXIF data
        """
        my_image = self._load_image(data)
        if not my_image.has_exif:
            return None

        lat_deg_dec, long_deg_dec = self._get_decimal_coords(my_image)
        if lat_deg_dec is None or long_deg_dec is None:
            return None

        return Coordinates(latitude=lat_deg_dec, longitude=long_deg_dec)

    def _load_image(self, data: bytes) -> Image:
        """Parse the image container, mapping parser failures to ExtractionError."""
        try:
            return Image(data)
        except (OSError, MemoryError) as e:
            raise ExtractionError(f"corrupt file? {e}") from e
        except (ValueError, TypeError, KeyError) as e:
            raise ExtractionError(f"invalid image format: {e}") from e

    def _get_decimal_coords(self, image: Image) -> tuple[float | None, float | None]:
        """
        Extract and convert GPS coordinates from an image to decimal degrees format.

        Args:
            image: An image object that may contain GPS metadata

        Returns:
            Tuple containing (latitude, longitude) in decimal degrees format
        """
        lat_deg_dec = None
        long_deg_dec = None

        try:
            lat = image.gps_latitude
            lat_ref = getattr(image, "gps_latitude_ref", "N")
            decimal_latitude = self._convert_dhms_to_decimal(lat)
            if decimal_latitude is not None:
                lat_deg_dec = -decimal_latitude if lat_ref == "S" else decimal_latitude
        except (AttributeError, KeyError) as e:
            self.logger.debug(f"Image has no latitude GPS data: {e}")

        try:
            lon = image.gps_longitude
            lon_ref = getattr(image, "gps_longitude_ref", "E")
            decimal_longitude = self._convert_dhms_to_decimal(lon)
            if decimal_longitude is not None:
                long_deg_dec = -decimal_longitude if lon_ref == "W" else decimal_longitude
        except (AttributeError, KeyError) as e:
            self.logger.debug(f"Image has no longitude GPS data: {e}")

        return lat_deg_dec, long_deg_dec

    def _convert_dhms_to_decimal(self, dhms) -> float | None:
        """
        Convert degrees, minutes, seconds (DMS) format to decimal degrees.

        Returns None for missing or short values.
        """
        if not dhms or len(dhms) < 3:
            return None

        degrees = float(dhms[0])
        minutes = float(dhms[1]) / 60
        seconds = float(dhms[2]) / 3600
        return degrees + minutes + seconds


def validate_coordinates(filename: str, coords: Coordinates | dict | None) -> tuple[float, float]:
    """
    Check an extractor result and return (lat, lng).

    Raises:
        NoGeotagError: If coords is empty, lacks latitude/longitude, or is out of WGS84 range
    """
    if not coords:
        raise NoGeotagError("no GPS data found", filename)

    lat = coords.get("latitude")
    lng = coords.get("longitude")
    if lat is None or lng is None:
        raise NoGeotagError("GPS latitude or longitude missing", filename)

    try:
        lat = float(lat)
        lng = float(lng)
    except (TypeError, ValueError) as e:
        raise NoGeotagError(f"GPS value is not numeric: {e}", filename) from e

    if not -90.0 <= lat <= 90.0 or not -180.0 <= lng <= 180.0:
        raise NoGeotagError(f"GPS position out of range: {lat}, {lng}", filename)

    return lat, lng
