from typing import List, Optional

from annotator.model import IntegrityWarning

WARNING_DIVIDER = "\n\n------\n"


class AnnotatorError(Exception):
    """Base class for every failure raised while annotating a build."""


class DocumentError(AnnotatorError):
    """The HTML entry point could not be read or written."""


class ResolutionError(AnnotatorError):
    """An asset could not be read from disk or fetched over the network."""

    def __init__(self, location: str, reason: str, status: Optional[int] = None):
        self.location = location
        self.reason = reason
        self.status = status
        super().__init__(f"Could not resolve asset '{location}': {reason}")


class UntrustedExternalAssetError(AnnotatorError):
    """
    One or more external assets lack an integrity attribute.
    The message is the combined report of every warning.
    """

    def __init__(self, warnings: List[IntegrityWarning]):
        self.warnings = list(warnings)
        super().__init__(WARNING_DIVIDER.join(w.message for w in self.warnings))

    @property
    def file_names(self) -> List[str]:
        return [w.file_name for w in self.warnings]
