# src/annotator/services/asset_resolver_service.py
import abc
import asyncio
import logging
import time
from pathlib import Path
from typing import Optional, Union

import aiohttp

from annotator.errors import ResolutionError
from annotator.utils.url_utils import UrlUtils
from sri_cli.core.utils.path_utils import PathUtils

logger = logging.getLogger(__name__)


class AssetResolver(metaclass=abc.ABCMeta):
    """Returns the bytes behind an asset location (local build file or URL)."""

    @abc.abstractmethod
    async def resolve(self, location: str) -> bytes:
        raise NotImplementedError("Every resolver must implement 'resolve'.")


class AssetResolverService(AssetResolver):
    """
    Resolves asset locations to bytes.
    Absolute http(s) URLs are fetched with a shared aiohttp session, anything
    else is read from the build output directory. Failures raise ResolutionError;
    nothing is retried.
    """

    def __init__(self, output_path: Union[str, Path], timeout: float = 30.0, concurrency: int = 50):
        self.output_path = Path(output_path)
        self.timeout = float(timeout)
        self.max_concurrency = int(concurrency)

        self.semaphore = asyncio.Semaphore(self.max_concurrency)
        self.session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self):
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def initialize(self):
        if not self.session or self.session.closed:
            self.session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )
            logger.debug("AssetResolverService: Session initialized (timeout=%ss).", self.timeout)

    async def close(self):
        if self.session and not self.session.closed:
            await self.session.close()
            logger.debug("AssetResolverService: Session closed.")

    async def resolve(self, location: str) -> bytes:
        if UrlUtils.is_external(location):
            return await self._fetch(location)
        return await self._read_local(location)

    # =========================================================================
    #  NETWORK
    # =========================================================================
    async def _fetch(self, url: str) -> bytes:
        if not self.session or self.session.closed:
            await self.initialize()

        start_time = time.perf_counter()
        try:
            async with self.semaphore:
                async with self.session.get(url) as response:
                    status = response.status
                    if not 200 <= status < 300:
                        raise ResolutionError(url, f"HTTP status {status}", status=status)
                    payload = await response.read()
        except asyncio.TimeoutError as e:
            raise ResolutionError(url, f"timed out after {self.timeout}s") from e
        except aiohttp.ClientError as e:
            raise ResolutionError(url, str(e) or type(e).__name__) from e

        logger.debug(
            "Fetched %s (%d bytes) in %.1f ms",
            url, len(payload), (time.perf_counter() - start_time) * 1000
        )
        return payload

    # =========================================================================
    #  BUILD OUTPUT
    # =========================================================================
    async def _read_local(self, file_name: str) -> bytes:
        try:
            path = PathUtils.resolve_asset_path(self.output_path, file_name)
        except ValueError as e:
            raise ResolutionError(file_name, str(e)) from e

        loop = asyncio.get_running_loop()
        try:
            payload = await loop.run_in_executor(None, path.read_bytes)
        except FileNotFoundError as e:
            raise ResolutionError(file_name, f"file not found: {path}") from e
        except OSError as e:
            raise ResolutionError(file_name, f"could not read {path}: {e}") from e

        logger.debug("Read %s (%d bytes)", path, len(payload))
        return payload
