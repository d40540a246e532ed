import copy
import logging

from bs4 import Tag

from annotator.model import CROSSORIGIN_VALUE, IntegrityResult, IntegrityWarning

logger = logging.getLogger(__name__)

RED = "\x1b[31m"
RESET = "\x1b[0m"


class WarningReportService:
    """Builds the warnings for external assets that are hashed but not trusted."""

    def __init__(self, color: bool = True):
        self.color = color

    @staticmethod
    def suggest_markup(tag: Tag, integrity: IntegrityResult) -> str:
        """
        Returns the element's markup as it would look with the integrity applied.
        Works on a detached copy; the tag itself is never modified.
        """
        suggestion = copy.copy(tag)
        suggestion["integrity"] = integrity.value
        suggestion["crossorigin"] = CROSSORIGIN_VALUE
        return str(suggestion)

    def format_message(self, file_name: str, suggested_markup: str) -> str:
        text = (
            f"\n🚨 The {file_name} resource is served from an external URL and does not "
            "contain an integrity hash. We have hashed the file as it exists today, "
            "we don't automatically apply this so you can detect when an external "
            "resource has been changed.\n\n"
            "If you trust the file please update the resource as follows in your index.html:\n\n"
            f"{suggested_markup}"
        )
        if self.color:
            return f"{RED}{text}{RESET}"
        return text

    def build_warning(self, file_name: str, integrity: IntegrityResult, tag: Tag) -> IntegrityWarning:
        markup = self.suggest_markup(tag, integrity)
        logger.warning("External asset %s has no integrity attribute (computed %s)", file_name, integrity)
        return IntegrityWarning(
            file_name=file_name,
            integrity=integrity,
            suggested_markup=markup,
            message=self.format_message(file_name, markup),
        )
