"""Cookie image asset resolution."""

from fortune_cookie.assets.resolver import (
    AssetHandle,
    AssetProbe,
    AssetResolver,
    FileProbe,
    HttpProbe,
    LocatorProbe,
    FALLBACK,
    FALLBACK_GLYPH,
)

__all__ = [
    "AssetHandle",
    "AssetProbe",
    "AssetResolver",
    "FileProbe",
    "HttpProbe",
    "LocatorProbe",
    "FALLBACK",
    "FALLBACK_GLYPH",
]
