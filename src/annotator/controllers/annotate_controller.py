import asyncio
import logging
from pathlib import Path
from typing import List, Optional, Tuple, Union

from bs4 import Tag
from tqdm.asyncio import tqdm

from annotator.errors import UntrustedExternalAssetError
from annotator.model import (
    CROSSORIGIN_VALUE,
    AnnotateReport,
    AnnotateSettings,
    AssetReference,
    IntegrityWarning,
)
from annotator.services.asset_resolver_service import AssetResolver, AssetResolverService
from annotator.services.digest_service import DigestComputer, DigestService
from annotator.services.document_service import HtmlDocumentService
from annotator.services.warning_report_service import WarningReportService
from sri_cli.core.utils.path_utils import PathUtils

logger = logging.getLogger(__name__)

# Terminal states of a single element
ANNOTATED = "annotated"
TRUSTED = "trusted"
SKIPPED = "skipped"
WARNED = "warned"

ElementOutcome = Tuple[str, Optional[IntegrityWarning]]


class AnnotateController:
    """
    Adds Subresource Integrity attributes to the assets referenced by a build's
    index.html.

    1.  **Load:** Parses <output_path>/index.html with `HtmlDocumentService`.
    2.  **Resolve & Hash:** Every <script src>/<link href> is resolved and hashed
        concurrently. Local assets get `integrity` + `crossorigin` set in place.
    3.  **Guard:** External assets without an integrity value are hashed but left
        untouched; each produces an IntegrityWarning instead.
    4.  **Persist:** The document is written back only when no warnings exist.
    """

    def __init__(
            self,
            output_path: Union[str, Path],
            public_path: str = "/",
            settings: Optional[AnnotateSettings] = None,
            resolver: Optional[AssetResolver] = None,
            digest: Optional[DigestComputer] = None,
            report_service: Optional[WarningReportService] = None,
    ):
        """
        Args:
            output_path: Directory holding the build artifacts.
            public_path: URL prefix the build prepends to emitted asset references.
            settings: Run settings; defaults apply when omitted.
            resolver: Asset resolver; an `AssetResolverService` bound to
                output_path is created (and closed) per run when omitted.
            digest: Digest computer; sha384 when omitted.
            report_service: Warning builder; honours `settings.color` when omitted.
        """
        self.output_path = Path(output_path)
        self.public_path = public_path
        self.settings = settings or AnnotateSettings()
        self.resolver = resolver
        self.digest = digest or DigestService()
        self.report_service = report_service or WarningReportService(color=self.settings.color)

        self.index_path = PathUtils.get_index_html_path(self.output_path, self.settings.index_file)
        self.document = HtmlDocumentService(self.index_path)

    async def run(self) -> AnnotateReport:
        soup = self.document.load()
        pairs, without_location = self.document.collect_references(soup, self.public_path)
        logger.info("Found %d asset reference(s) in %s", len(pairs), self.index_path)

        if self.resolver is not None:
            outcomes = await self._process_all(pairs, self.resolver)
        else:
            async with AssetResolverService(
                    self.output_path,
                    timeout=self.settings.timeout,
                    concurrency=self.settings.concurrency,
            ) as resolver:
                outcomes = await self._process_all(pairs, resolver)

        warnings = [warning for state, warning in outcomes if state == WARNED]
        if warnings:
            logger.error(
                "%d external asset(s) without integrity; %s was not modified.",
                len(warnings), self.index_path
            )
            raise UntrustedExternalAssetError(warnings)

        self.document.save(soup)

        states = [state for state, _ in outcomes]
        report = AnnotateReport(
            index_path=str(self.index_path),
            annotated=states.count(ANNOTATED),
            trusted_external=states.count(TRUSTED),
            skipped=states.count(SKIPPED) + without_location,
        )
        logger.info(
            "Annotated %d asset(s), kept %d trusted external integrity value(s), skipped %d element(s).",
            report.annotated, report.trusted_external, report.skipped
        )
        return report

    async def _process_all(
            self, pairs: List[Tuple[Tag, AssetReference]], resolver: AssetResolver
    ) -> List[ElementOutcome]:
        """
        Runs every element concurrently. The first failure propagates; the
        remaining tasks are cancelled and their results discarded.
        """
        tasks = [
            asyncio.ensure_future(self._process_element(tag, reference, resolver))
            for tag, reference in pairs
        ]
        try:
            for next_done in tqdm.as_completed(
                    tasks,
                    total=len(tasks),
                    desc="Hashing assets",
                    unit="asset",
                    leave=False,
                    disable=not self.settings.show_progress,
            ):
                await next_done
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        return [task.result() for task in tasks]

    async def _process_element(
            self, tag: Tag, reference: AssetReference, resolver: AssetResolver
    ) -> ElementOutcome:
        if reference.is_live_reload:
            logger.debug("Skipping %s; it only exists on the dev server.", reference.file_name)
            return SKIPPED, None

        if reference.is_external:
            if reference.existing_integrity:
                logger.debug("Keeping existing integrity for %s", reference.file_name)
                return TRUSTED, None

            payload = await resolver.resolve(reference.file_name)
            integrity = self.digest.compute(payload)
            return WARNED, self.report_service.build_warning(reference.file_name, integrity, tag)

        payload = await resolver.resolve(reference.file_name)
        integrity = self.digest.compute(payload)

        tag["integrity"] = integrity.value
        tag["crossorigin"] = CROSSORIGIN_VALUE
        logger.debug("%s -> %s", reference.file_name, integrity)
        return ANNOTATED, None


async def annotate_async(
        output_path: Union[str, Path],
        public_path: str = "/",
        settings: Optional[AnnotateSettings] = None,
        resolver: Optional[AssetResolver] = None,
        digest: Optional[DigestComputer] = None,
) -> AnnotateReport:
    """Coroutine form of `annotate` for callers already running an event loop."""
    controller = AnnotateController(
        output_path, public_path, settings=settings, resolver=resolver, digest=digest
    )
    return await controller.run()


def annotate(
        output_path: Union[str, Path],
        public_path: str = "/",
        settings: Optional[AnnotateSettings] = None,
        resolver: Optional[AssetResolver] = None,
        digest: Optional[DigestComputer] = None,
) -> AnnotateReport:
    """
    Adds integrity/crossorigin attributes to <output_path>/index.html.

    Raises:
        UntrustedExternalAssetError: External assets lack integrity; nothing was written.
        ResolutionError: An asset could not be read or fetched; nothing was written.
        DocumentError: index.html could not be read or written.
    """
    return asyncio.run(
        annotate_async(output_path, public_path, settings=settings, resolver=resolver, digest=digest)
    )
