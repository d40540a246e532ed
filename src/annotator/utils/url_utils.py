# src/annotator/utils/url_utils.py
import logging
from urllib.parse import urlparse

logger = logging.getLogger(__name__)


class UrlUtils:
    """Static helpers for turning asset references into resolvable locations."""

    @staticmethod
    def is_external(location: str) -> bool:
        """True for absolute http(s) URLs, which are fetched instead of read from disk."""
        if not isinstance(location, str):
            return False
        try:
            parsed = urlparse(location.strip())
        except ValueError:
            logger.debug(f"Could not parse location: {location}")
            return False
        return parsed.scheme.lower() in ("http", "https") and bool(parsed.netloc)

    @staticmethod
    def strip_public_path(location: str, public_path: str) -> str:
        """
        Replaces the build's public path prefix with '/', mapping e.g.
        '/my-app/assets/app.js' onto '/assets/app.js'. Locations without the
        prefix are returned unchanged.
        """
        if not public_path or not location.startswith(public_path):
            return location
        return "/" + location[len(public_path):]
