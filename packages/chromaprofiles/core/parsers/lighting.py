"""Parser for lighting-effect configuration files.

Archives contain XML members shaped like::

    <LightingEffects>
      <Name>MyProfile</Name>
      <Devices><Device><Name>Keyboard</Name></Device></Devices>
      <Colors><RzColor><Red>255</Red><Green>0</Green><Blue>16</Blue></RzColor></Colors>
      <EffectLayers><EffectLayer><Effect>wave</Effect></EffectLayer></EffectLayers>
    </LightingEffects>

No schema is enforced: each section is read independently and a missing
section yields an empty list.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from collections.abc import Iterable
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from chromaprofiles.core.links.models import NONE_EFFECT, LightingEffect
from chromaprofiles.core.parsers.xml import XMLParser
from chromaprofiles.core.utils.logging import get_logger

logger = get_logger(__name__)

ROOT_TAG = "LightingEffects"


class ProfileParseError(ValueError):
    """Raised when a lighting file is not well-formed XML."""


def _component(value: object) -> int:
    """Coerce one colour channel to 0..255; unreadable values become 0."""
    if value is None:
        return 0
    try:
        number = int(float(str(value).strip()))
    except (TypeError, ValueError, OverflowError):
        return 0
    return max(0, min(255, number))


def rgb_to_hex(red: object, green: object, blue: object) -> str:
    """Convert an RGB triple to a lowercase ``#rrggbb`` string.

    Example:
        >>> rgb_to_hex(255, 0, 16)
        '#ff0010'
        >>> rgb_to_hex("12", None, "x")
        '#0c0000'
    """
    return "#{:02x}{:02x}{:02x}".format(_component(red), _component(green), _component(blue))


def _unique(values: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(values))


def _text(element: ET.Element | None) -> str:
    if element is None or element.text is None:
        return ""
    return element.text.strip()


class ParsedLightingFile(BaseModel):
    """Structured content of one lighting configuration file."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = ""
    devices: list[str] = Field(default_factory=list)
    colours: list[str] = Field(default_factory=list)
    effects: list[str] = Field(default_factory=list)
    source: str | None = None

    @property
    def is_usable(self) -> bool:
        """Usable files name at least one device and one colour."""
        return bool(self.devices) and bool(self.colours)

    def to_lighting_effect(self) -> LightingEffect:
        return LightingEffect(
            name=self.name,
            devices=self.devices,
            colours=self.colours,
            effects=self.effects,
        )


class LightingProfileParser:
    """Extract devices, colours, effects and name from lighting XML.

    Example:
        >>> parsed = LightingProfileParser().parse("profile/Lighting.xml")
        >>> parsed.colours
        ['#ff0010']
    """

    def __init__(self, xml_parser: XMLParser | None = None) -> None:
        self.xml_parser = xml_parser or XMLParser()

    def parse(self, path: Path | str) -> ParsedLightingFile:
        """Parse one extracted file.

        Raises:
            FileNotFoundError: If the file does not exist
            ProfileParseError: If the file is not well-formed XML
        """
        try:
            tree = self.xml_parser.parse(path)
        except ValueError as e:
            raise ProfileParseError(str(e)) from e
        return self._extract(tree.getroot(), source=str(path))

    def parse_string(self, xml_str: str | bytes) -> ParsedLightingFile:
        """Parse lighting XML held in memory.

        Raises:
            ProfileParseError: If the content is not well-formed XML
        """
        try:
            root = self.xml_parser.parse_string(xml_str)
        except ValueError as e:
            raise ProfileParseError(str(e)) from e
        return self._extract(root)

    def _extract(self, root: ET.Element, source: str | None = None) -> ParsedLightingFile:
        parsed = ParsedLightingFile(
            name=self._name(root),
            devices=self._devices(root),
            colours=self._colours(root),
            effects=self._effects(root),
            source=source,
        )
        logger.debug(
            f"Parsed {source or '<string>'}: {len(parsed.devices)} devices, "
            f"{len(parsed.colours)} colours, {len(parsed.effects)} effects"
        )
        return parsed

    @staticmethod
    def _name(root: ET.Element) -> str:
        # Only a Name that is a direct child of LightingEffects counts.
        for effects_node in root.iter(ROOT_TAG):
            name = _text(effects_node.find("Name"))
            if name:
                return name
        return ""

    @staticmethod
    def _devices(root: ET.Element) -> list[str]:
        names = (
            _text(name)
            for section in root.iter("Devices")
            for device in section.iter("Device")
            for name in device.iter("Name")
        )
        return _unique(n for n in names if n)

    @staticmethod
    def _colours(root: ET.Element) -> list[str]:
        colours = (
            rgb_to_hex(_text(rz.find("Red")), _text(rz.find("Green")), _text(rz.find("Blue")))
            for section in root.iter("Colors")
            for rz in section.iter("RzColor")
        )
        return _unique(colours)

    @staticmethod
    def _effects(root: ET.Element) -> list[str]:
        effects = (
            _text(effect)
            for layer in root.iter("EffectLayer")
            for effect in layer.iter("Effect")
        )
        return _unique(e for e in effects if e and e != NONE_EFFECT)
