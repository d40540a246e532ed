from __future__ import annotations

import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import List, Optional, Tuple, Union

from bs4 import BeautifulSoup, Tag

from annotator.errors import DocumentError
from annotator.model import AssetReference
from annotator.utils.url_utils import UrlUtils

logger = logging.getLogger(__name__)

# Tag name -> attribute carrying the asset location
ASSET_ATTRIBUTES = {
    "script": "src",
    "link": "href",
}


class HtmlDocumentService:
    """
    Loads, inspects and persists the generated HTML entry point.
    Note: parsing is delegated to BeautifulSoup; this service only knows
    which elements carry asset references.
    """

    def __init__(self, index_path: Union[str, Path]):
        self.index_path = Path(index_path)

    def load(self) -> BeautifulSoup:
        """Reads the entry point as UTF-8 and parses it into a mutable tree."""
        try:
            content = self.index_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise DocumentError(f"Could not read {self.index_path}: {e}") from e
        return BeautifulSoup(content, "html.parser")

    def save(self, soup: BeautifulSoup) -> None:
        """
        Replaces the entry point with the serialized tree.
        The markup goes to a sibling temp file first, so index.html is either
        the old document or the new one, never a partial write.
        """
        tmp_path = None
        try:
            with tempfile.NamedTemporaryFile(
                    "w",
                    encoding="utf-8",
                    dir=self.index_path.parent,
                    prefix=f".{self.index_path.name}.",
                    suffix=".tmp",
                    delete=False,
            ) as tmp:
                tmp_path = Path(tmp.name)
                tmp.write(str(soup))
            if self.index_path.exists():
                shutil.copymode(self.index_path, tmp_path)
            os.replace(tmp_path, self.index_path)
        except OSError as e:
            if tmp_path is not None:
                tmp_path.unlink(missing_ok=True)
            raise DocumentError(f"Could not write {self.index_path}: {e}") from e
        logger.debug("Wrote %s", self.index_path)

    # -------- Element Extraction --------

    @staticmethod
    def find_asset_elements(soup: BeautifulSoup) -> List[Tag]:
        """All <script> elements followed by all <link> elements."""
        return [*soup.find_all("script"), *soup.find_all("link")]

    @staticmethod
    def extract_reference(tag: Tag, public_path: str) -> Optional[AssetReference]:
        """
        Builds the AssetReference for a script/link element.
        Returns None for elements without a location (e.g. inline scripts).
        """
        attribute = ASSET_ATTRIBUTES.get(tag.name)
        if attribute is None:
            return None

        location = tag.get(attribute)
        if not location:
            return None

        return AssetReference(
            tag_kind=tag.name,
            location=location,
            file_name=UrlUtils.strip_public_path(location, public_path),
            existing_integrity=tag.get("integrity") or None,
        )

    def collect_references(self, soup: BeautifulSoup, public_path: str) -> Tuple[List[Tuple[Tag, AssetReference]], int]:
        """
        Pairs every asset element with its reference.
        Returns the pairs and the number of elements without a location.
        """
        pairs = []
        without_location = 0
        for tag in self.find_asset_elements(soup):
            reference = self.extract_reference(tag, public_path)
            if reference is None:
                without_location += 1
                continue
            pairs.append((tag, reference))
        return pairs, without_location
