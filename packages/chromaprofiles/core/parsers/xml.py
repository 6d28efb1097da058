"""ElementTree access for extracted lighting documents.

Archive members are untrusted files; every failure to read or parse one is
reported as ``FileNotFoundError`` or ``ValueError`` so the lighting parser
has two cases to handle.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from pathlib import Path

from chromaprofiles.core.utils.logging import get_logger

logger = get_logger(__name__)


class XMLParser:
    """Loads lighting XML from an extracted member or an in-memory string.

    Malformed markup is reported as ``ValueError`` naming the offending
    member path, which ends up in the analyzer's warning log.

    Example:
        >>> parser = XMLParser()
        >>> root = parser.parse("Lighting.xml").getroot()
        >>> root = parser.parse_string("<LightingEffects><Name>X</Name></LightingEffects>")
    """

    def parse(self, file_path: Path | str) -> ET.ElementTree:
        """Parse an extracted member file.

        Raises:
            FileNotFoundError: If file does not exist
            ValueError: If XML is malformed
        """
        path = Path(file_path)

        if not path.is_file():
            raise FileNotFoundError(f"XML file does not exist: {path}")

        try:
            logger.debug(f"Parsing XML file: {path}")
            return ET.parse(path)
        except ET.ParseError as e:
            raise ValueError(f"Malformed XML in {path}: {e}") from e

    def parse_string(self, xml_str: str | bytes) -> ET.Element:
        """Parse a lighting document held in memory and return its root.

        Raises:
            ValueError: If XML is malformed
        """
        try:
            return ET.fromstring(xml_str)
        except ET.ParseError as e:
            raise ValueError(f"Malformed XML string: {e}") from e
