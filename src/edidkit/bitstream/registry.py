"""
Sub-Format Registry
===================

Maps a discriminant byte to the decoder for that sub-format. A registry is
an ordinary object built once and handed to the decoder; there is no
process-wide table, so two decodes with different registries never
interfere.

    >>> registry = FormatRegistry()
    >>> registry.register(0x02, SubFormat("cea861", "CEA-861 Timing Extension", decode_cea861))
    >>> registry.resolve(0x02).name
    'cea861'
    >>> registry.resolve(0x99) is None
    True
"""

from dataclasses import dataclass
from typing import Callable, Iterator, Optional

from edidkit.errors import RegistryError


@dataclass(frozen=True)
class SubFormat:
    """
    A registered sub-format decoder.

    Attributes:
        name: Short identifier, used as the struct name in the tree
        description: Human-readable name
        decode: Callable ``(decoder, context) -> None`` that decodes one
            framed record starting at the tag byte
    """
    name: str
    description: str
    decode: Callable


class FormatRegistry:
    """Tag-keyed table of sub-format decoders."""

    def __init__(self):
        self._formats: dict[int, SubFormat] = {}

    def register(self, tag: int, fmt: SubFormat) -> None:
        """
        Register ``fmt`` for ``tag``.

        Raises:
            RegistryError: If the tag is out of byte range or already taken
        """
        if not 0 <= tag <= 0xFF:
            raise RegistryError(f"Tag must be a byte value, got {tag}")
        if tag in self._formats:
            raise RegistryError(
                f"Tag 0x{tag:02X} already registered to '{self._formats[tag].name}'"
            )
        self._formats[tag] = fmt

    def resolve(self, tag: int) -> Optional[SubFormat]:
        return self._formats.get(tag)

    def __contains__(self, tag: int) -> bool:
        return tag in self._formats

    def __iter__(self) -> Iterator[tuple[int, SubFormat]]:
        return iter(sorted(self._formats.items()))

    def __len__(self) -> int:
        return len(self._formats)
