# src/sri_cli/core/utils/path_utils.py
import logging
from pathlib import Path
from typing import Union

logger = logging.getLogger(__name__)


class PathUtils:
    """
    A central utility for reliably retrieving important package and build paths.
    """

    # --- Package specific paths

    @staticmethod
    def get_shell_package_root() -> Path:
        """Returns the directory of the sri_cli package (where settings.json lives)."""
        return Path(__file__).resolve().parents[2]

    @staticmethod
    def get_settings_file() -> Path:
        return PathUtils.get_shell_package_root() / "settings.json"

    # --- Build output paths ---

    @staticmethod
    def get_index_html_path(output_path: Union[str, Path], index_file: str = "index.html") -> Path:
        """
        Returns the path of the generated HTML entry point.
        (e.g., /path/to/dist/index.html)
        """
        return Path(output_path) / index_file

    @staticmethod
    def resolve_asset_path(output_path: Union[str, Path], file_name: str) -> Path:
        """
        Maps a normalized asset name ('/assets/app.js') onto the build output directory.
        Raises ValueError when the result would escape the output directory.
        """
        root = Path(output_path).resolve()
        candidate = (root / file_name.lstrip("/")).resolve()
        if candidate != root and root not in candidate.parents:
            raise ValueError(f"Asset '{file_name}' resolves outside of {root}")
        return candidate
