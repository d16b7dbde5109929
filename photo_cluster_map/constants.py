"""Constants and error codes for the photo cluster map application."""


class Constants:
    """
    Constants used throughout the photo_cluster_map application.

    Attributes:
        IMAGE_MEDIA_TYPE_PREFIX (str): Declared media type prefix accepted for ingestion.
        DEFAULT_BATCH_SIZE (int): Number of files extracted concurrently per batch.
        DEFAULT_CLUSTER_RADIUS (int): Cluster radius in pixels at the reference extent.
        DEFAULT_EXTENT (int): Tile extent in pixels used to scale the cluster radius.
        DEFAULT_MIN_ZOOM (int): Lowest zoom level with a precomputed cluster level.
        DEFAULT_MAX_ZOOM (int): Zoom level at and above which points are never merged.
        DEFAULT_MIN_POINTS (int): Minimum number of photos that form a cluster.
        CLICK_ZOOM_DELTA (int): Zoom increment used when a cluster cannot be expanded.
        DEFAULT_VIEWPORT_ZOOM (int): Zoom used by the CLI when none is configured.
        DEFAULT_RADIUS_MILES (float): Viewport radius around a centre point, in miles.
        DEFAULT_USER_AGENT (str): User agent string for geocoding requests.
        GEOCODING_TIMEOUT_SECONDS (int): Timeout for geocoding operations in seconds.
        KML_CLUSTER_VIEW_RANGE (int): Default view range for KML cluster placemarks in meters.
        KML_POINT_VIEW_RANGE (int): Default view range for KML photo placemarks in meters.

    Classes:
        ErrorCodes: Application exit codes.
    """

    IMAGE_MEDIA_TYPE_PREFIX = "image/"
    DEFAULT_BATCH_SIZE = 10

    # Clustering
    DEFAULT_CLUSTER_RADIUS = 40
    DEFAULT_EXTENT = 512
    DEFAULT_MIN_ZOOM = 0
    DEFAULT_MAX_ZOOM = 16
    DEFAULT_MIN_POINTS = 2
    CLICK_ZOOM_DELTA = 2

    # Viewport
    DEFAULT_VIEWPORT_ZOOM = 7
    DEFAULT_RADIUS_MILES = 25.0
    DEFAULT_USER_AGENT = "photo_cluster_map"
    GEOCODING_TIMEOUT_SECONDS = 10

    # KML view ranges in meters
    KML_CLUSTER_VIEW_RANGE = 2000
    KML_POINT_VIEW_RANGE = 50

    class ErrorCodes:
        """
        Integer exit codes returned by the command line front end.

        Attributes:
            SUCCESS (int): Operation completed successfully.
            INTERRUPTED (int): Operation was interrupted.
            NO_PHOTOS_FOUND (int): No geotagged photos fall inside the viewport.
            FILE_OPERATION_ERROR (int): Error occurred during file operation.
            CONFIGURATION_ERROR (int): Error in application configuration.
            GENERAL_ERROR (int): General or unspecified error.
        """

        SUCCESS = 0
        INTERRUPTED = 1
        NO_PHOTOS_FOUND = 9
        FILE_OPERATION_ERROR = 17
        CONFIGURATION_ERROR = 19
        GENERAL_ERROR = 20
