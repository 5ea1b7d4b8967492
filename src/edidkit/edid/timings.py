"""
Timing Normalization
====================

An EDID lists supported video modes in four different encodings:
established timing bitmaps, two-byte standard timings, 18-byte detailed
timing descriptors and (in DisplayID extensions) 20-byte type I timings.
``collect_timings`` flattens all of them, from a decoded tree, into one
list of TimingMode records in wire order.

    >>> result = decode_edid(data)
    >>> for mode in collect_timings(result.tree):
    ...     print(mode)
    1920x1080@60Hz (detailed, preferred)
"""

from dataclasses import dataclass
from typing import Iterator, Optional
import re

from edidkit.bitstream import Field, FieldStruct

# "1024x768@87Hz(I)", "1280x768@60Hz(RB)"
_ESTABLISHED_RE = re.compile(r"^(\d+)x(\d+)@(\d+)Hz(?:\((I|RB)\))?$")


@dataclass
class TimingMode:
    """
    One supported video mode.

    Attributes:
        width: Horizontal addressable pixels
        height: Vertical addressable lines
        refresh: Vertical refresh rate in Hz
        source: Encoding it came from ("established", "standard",
            "detailed" or "displayid")
        pixel_clock: Pixel clock in MHz (detailed encodings only)
        interlaced: True for interlaced modes
        preferred: True for the display's preferred mode
        reduced_blanking: True for CVT reduced-blanking modes
        path: Tree path of the node the mode was read from
    """
    width: int
    height: int
    refresh: float
    source: str
    pixel_clock: Optional[float] = None
    interlaced: bool = False
    preferred: bool = False
    reduced_blanking: bool = False
    path: str = ""

    @property
    def resolution(self) -> str:
        return f"{self.width}x{self.height}"

    def __str__(self) -> str:
        notes = [self.source]
        if self.interlaced:
            notes.append("interlaced")
        if self.reduced_blanking:
            notes.append("reduced blanking")
        if self.preferred:
            notes.append("preferred")
        return f"{self.resolution}@{self.refresh:g}Hz ({', '.join(notes)})"


def refresh_rate(pixel_clock_10khz: int, h_total: int, v_total: int) -> float:
    """Vertical refresh in Hz, rounded to two decimals (0 if undefined)."""
    if pixel_clock_10khz <= 0 or h_total <= 0 or v_total <= 0:
        return 0.0
    return round(pixel_clock_10khz * 10_000 / (h_total * v_total), 2)


def collect_timings(tree: FieldStruct) -> list[TimingMode]:
    """Every timing in a decoded tree, in wire order."""
    return list(_iter_timings(tree))


def _iter_timings(tree: FieldStruct) -> Iterator[TimingMode]:
    for node in tree.walk():
        if isinstance(node, Field):
            if node.name == "timing" and isinstance(node.symbol, str):
                mode = _established(node)
                if mode is not None:
                    yield mode
        elif isinstance(node, FieldStruct):
            if "refresh_rate" in node and "horizontal_addressable_pixels" in node:
                yield _standard(node)
            elif "horizontal_addressable_video" in node:
                yield _detailed(node)
            elif "horizontal_active" in node:
                yield _displayid(node)


def _established(field: Field) -> Optional[TimingMode]:
    match = _ESTABLISHED_RE.match(field.symbol)
    if match is None:
        # Reserved bits
        return None
    width, height, refresh, flag = match.groups()
    return TimingMode(
        width=int(width),
        height=int(height),
        refresh=float(refresh),
        source="established",
        interlaced=flag == "I",
        reduced_blanking=flag == "RB",
        path=field.path,
    )


def _standard(node: FieldStruct) -> TimingMode:
    return TimingMode(
        width=node["horizontal_addressable_pixels"].symbol,
        height=node["vertical_addressable_pixels"].value,
        refresh=float(node["refresh_rate"].symbol),
        source="standard",
        path=node.path,
    )


def _detailed(node: FieldStruct) -> TimingMode:
    clock = node["pixel_clock"].value
    width = node["horizontal_addressable_video"].value
    height = node["vertical_addressable_video"].value
    h_total = width + node["horizontal_blanking"].value
    v_total = height + node["vertical_blanking"].value
    return TimingMode(
        width=width,
        height=height,
        refresh=refresh_rate(clock, h_total, v_total),
        source="detailed",
        pixel_clock=clock / 100,
        interlaced=node["signal_interface_type"].value == 1,
        preferred=node.name == "preferred_timing_mode",
        path=node.path,
    )


def _displayid(node: FieldStruct) -> TimingMode:
    clock = node["pixel_clock"].value
    width = node["horizontal_active"].value
    height = node["vertical_active"].value
    h_total = width + node["horizontal_blank"].value
    v_total = height + node["vertical_blank"].value
    return TimingMode(
        width=width,
        height=height,
        refresh=refresh_rate(clock, h_total, v_total),
        source="displayid",
        pixel_clock=clock / 100,
        interlaced=node["scan_type"].value == 1,
        preferred=node["preferred"].value,
        path=node.path,
    )
