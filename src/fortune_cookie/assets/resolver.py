"""Cookie image resolution.

Probes an ordered list of candidate image locations once per session and
settles on the first one that exists, or on the fallback glyph.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

import aiohttp
from PIL import Image

logger = logging.getLogger(__name__)

FALLBACK_GLYPH = "🥠"


@dataclass(frozen=True)
class AssetHandle:
    """Resolved cookie image, or the fallback glyph when ``locator`` is None."""
    locator: Optional[str] = None
    glyph: str = FALLBACK_GLYPH

    @property
    def is_fallback(self) -> bool:
        return self.locator is None


FALLBACK = AssetHandle()


class AssetProbe(ABC):
    """Existence check for a single candidate locator."""

    @abstractmethod
    async def exists(self, locator: str) -> bool:
        ...


class FileProbe(AssetProbe):
    """Checks a local file is present and decodes as an image."""

    def __init__(self, base_path: Path | None = None, timeout: float = 3.0):
        self.base_path = Path(base_path) if base_path else None
        self.timeout = timeout

    def resolve_path(self, locator: str) -> Path:
        path = Path(locator.lstrip("/")) if self.base_path else Path(locator)
        if self.base_path and not path.is_absolute():
            path = self.base_path / path
        return path

    async def exists(self, locator: str) -> bool:
        path = self.resolve_path(locator)
        return await asyncio.wait_for(
            asyncio.to_thread(self._verify, path),
            timeout=self.timeout,
        )

    @staticmethod
    def _verify(path: Path) -> bool:
        if not path.is_file():
            return False
        with Image.open(path) as img:
            img.verify()
        return True


class HttpProbe(AssetProbe):
    """Checks a remote image with a HEAD request; any 2xx counts as present.

    Hosts that refuse HEAD (405 or 501) are asked again with a GET whose
    body is never read.
    """

    def __init__(self, timeout: float = 3.0):
        self.timeout = timeout
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            )
        return self._session

    async def exists(self, locator: str) -> bool:
        session = await self._get_session()
        async with session.head(locator, allow_redirects=True) as response:
            status = response.status
        if status in (405, 501):
            logger.debug(f"HEAD not allowed for {locator}, retrying with GET")
            async with session.get(locator, allow_redirects=True) as response:
                status = response.status
        return 200 <= status < 300

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None


class LocatorProbe(AssetProbe):
    """Routes http(s) locators to an HttpProbe and everything else to a FileProbe."""

    def __init__(self, file_probe: FileProbe, http_probe: HttpProbe):
        self.file_probe = file_probe
        self.http_probe = http_probe

    async def exists(self, locator: str) -> bool:
        if locator.startswith(("http://", "https://")):
            return await self.http_probe.exists(locator)
        return await self.file_probe.exists(locator)

    async def close(self) -> None:
        await self.http_probe.close()


class AssetResolver:
    """First-match-wins resolver with a session-lifetime cache.

    Candidates are probed one at a time in order, so the result is
    deterministic. A probe that raises counts as a miss.
    """

    def __init__(self, candidates: Sequence[str], probe: AssetProbe):
        self._candidates = tuple(candidates)
        self._probe = probe
        self._handle: Optional[AssetHandle] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def handle(self) -> Optional[AssetHandle]:
        """Cached handle, or None while resolution has not finished."""
        return self._handle

    @property
    def current(self) -> AssetHandle:
        """What to render right now (fallback while still probing)."""
        return self._handle or FALLBACK

    async def resolve(self) -> AssetHandle:
        """Resolve once; concurrent and later callers share the first result."""
        if self._handle is not None:
            return self._handle
        if self._task is None:
            self._task = asyncio.create_task(self._probe_all())
        return await asyncio.shield(self._task)

    async def _probe_all(self) -> AssetHandle:
        for locator in self._candidates:
            try:
                found = await self._probe.exists(locator)
            except Exception as e:
                logger.debug(f"Probe failed for {locator}: {e}")
                found = False
            if found:
                logger.info(f"Cookie image resolved: {locator}")
                self._handle = AssetHandle(locator=locator)
                return self._handle

        logger.info("No cookie image found, using fallback glyph")
        self._handle = FALLBACK
        return self._handle

    def mark_load_failed(self) -> AssetHandle:
        """Downgrade to the fallback glyph after a runtime load failure.

        Does not re-run the probe sequence.
        """
        if self._handle is not None and not self._handle.is_fallback:
            logger.warning(f"Cookie image failed to load ({self._handle.locator}), using fallback glyph")
        self._handle = FALLBACK
        return self._handle
