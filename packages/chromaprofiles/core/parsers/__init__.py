"""XML parsing for lighting configuration files."""

from chromaprofiles.core.parsers.lighting import (
    LightingProfileParser,
    ParsedLightingFile,
    ProfileParseError,
    rgb_to_hex,
)
from chromaprofiles.core.parsers.xml import XMLParser

__all__ = [
    "XMLParser",
    "LightingProfileParser",
    "ParsedLightingFile",
    "ProfileParseError",
    "rgb_to_hex",
]
