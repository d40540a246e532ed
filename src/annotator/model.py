# src/annotator/model.py (Annotate Layer)
import logging
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from annotator.utils.url_utils import UrlUtils

logger = logging.getLogger(__name__)

HASH_ALGORITHM = "sha384"
CROSSORIGIN_VALUE = "anonymous"
# Injected by the dev server, never written to the build output
LIVE_RELOAD_ASSET = "/ember-cli-live-reload.js"

TagKind = Literal["script", "link"]


class AssetReference(BaseModel):
    """The asset a single <script src> or <link href> element points at."""
    tag_kind: TagKind
    location: str
    file_name: str
    existing_integrity: Optional[str] = None

    @property
    def is_external(self) -> bool:
        return UrlUtils.is_external(self.file_name)

    @property
    def is_live_reload(self) -> bool:
        return self.file_name == LIVE_RELOAD_ASSET


class IntegrityResult(BaseModel):
    algorithm: str = HASH_ALGORITHM
    digest: str

    @property
    def value(self) -> str:
        """The canonical integrity attribute, e.g. 'sha384-oqVuAfXR...'."""
        return f"{self.algorithm}-{self.digest}"

    def __str__(self) -> str:
        return self.value


class IntegrityWarning(BaseModel):
    """An external asset whose hash was computed but deliberately not applied."""
    file_name: str
    integrity: IntegrityResult
    suggested_markup: str
    message: str


class AnnotateSettings(BaseModel):
    index_file: str = Field(default="index.html")
    timeout: float = Field(default=30.0, description="Total timeout in seconds for one external fetch.")
    concurrency: int = Field(default=50, description="Maximum simultaneous external fetches.")
    show_progress: bool = Field(default=False)
    color: bool = Field(default=True, description="Prefix the warning report with an ANSI red escape.")

    @field_validator("timeout")
    @classmethod
    def _positive_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("timeout must be positive")
        return v

    @field_validator("concurrency")
    @classmethod
    def _positive_concurrency(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("concurrency must be positive")
        return v


class AnnotateReport(BaseModel):
    """Summary of a successful run."""
    index_path: str
    annotated: int = 0
    trusted_external: int = 0
    skipped: int = 0
