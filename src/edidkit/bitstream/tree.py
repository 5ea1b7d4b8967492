"""
Decoded Field Tree
==================

The decoder produces an ordered tree of three node types:

- **Field**: a leaf with a name, a bit range, the extracted value and the
  annotations added by the mapper pipeline (symbol, description, unit).
- **FieldStruct**: named children in emission order.
- **FieldArray**: an ordered list of items.

Every node remembers the bit range it came from so the tree can be
inspected against a hex dump. Split fields (e.g. a value whose low 8 bits
and high 4 bits live in different bytes) are a single Field spanning the
union of their physical ranges.

Lookup
------
Structs index by child name, arrays by position:

    >>> result.tree["header"]["edid_version"].value
    1
    >>> result.tree["standard_timings"][0]["refresh_rate"].symbol
    60
"""

from dataclasses import dataclass, field
from typing import Any, Iterator, Optional, Union

from edidkit.errors import ValidationFailure


@dataclass
class Field:
    """
    A decoded leaf value.

    Attributes:
        name: Field name
        first_bit: First bit of the field's range (absolute)
        n_bits: Length of the range; zero for synthetic (derived) fields
        value: The value after numeric reinterpretation (usually the raw bits)
        raw: The value exactly as extracted from the buffer
        symbol: Display symbol added by a mapper (label, scaled number, ...)
        description: Free-text description added by a mapper
        unit: Semantic unit ("cm", "MHz", ...)
        hex: Render the value in hex
        validations: Non-fatal failures detected on this field
    """
    name: str
    first_bit: int
    n_bits: int
    value: Any
    raw: Any = None
    symbol: Any = None
    description: Optional[str] = None
    unit: Optional[str] = None
    hex: bool = False
    validations: list[ValidationFailure] = field(default_factory=list)
    path: str = ""

    @property
    def display(self) -> Any:
        """The symbol when there is one, otherwise the value."""
        return self.value if self.symbol is None else self.symbol

    @property
    def is_valid(self) -> bool:
        return not self.validations

    @property
    def is_synthetic(self) -> bool:
        return self.n_bits == 0

    def walk(self) -> Iterator["Node"]:
        yield self

    def to_dict(self) -> Any:
        """
        Convert to plain data.

        A field without annotations is just its value; otherwise a dict with
        the value and each annotation that is set.
        """
        value = _plain(self.value)
        if (self.symbol is None and self.description is None and self.unit is None
                and not self.validations):
            return value
        result = {"value": value}
        if self.symbol is not None:
            result["symbol"] = _plain(self.symbol)
        if self.description is not None:
            result["description"] = self.description
        if self.unit is not None:
            result["unit"] = self.unit
        if self.validations:
            result["errors"] = [v.message for v in self.validations]
        return result


@dataclass
class FieldStruct:
    """A named, ordered group of child nodes."""
    name: str
    first_bit: int
    children: list["Node"] = field(default_factory=list)
    path: str = ""

    @property
    def n_bits(self) -> int:
        return _span(self.first_bit, self.children)

    def append(self, node: "Node") -> None:
        self.children.append(node)

    def get(self, name: str, default: Any = None) -> Any:
        for child in self.children:
            if child.name == name:
                return child
        return default

    def __getitem__(self, name: str) -> "Node":
        child = self.get(name)
        if child is None:
            raise KeyError(name)
        return child

    def __contains__(self, name: str) -> bool:
        return self.get(name) is not None

    def __iter__(self) -> Iterator["Node"]:
        return iter(self.children)

    def __len__(self) -> int:
        return len(self.children)

    def keys(self) -> list[str]:
        return [child.name for child in self.children]

    def find_all(self, name: str) -> list["Node"]:
        """All nodes named ``name`` anywhere below this struct."""
        return [node for node in self.walk() if node is not self and node.name == name]

    def walk(self) -> Iterator["Node"]:
        yield self
        for child in self.children:
            yield from child.walk()

    def validations(self) -> list[ValidationFailure]:
        return [v for node in self.walk() if isinstance(node, Field) for v in node.validations]

    def to_dict(self) -> dict:
        result = {}
        for child in self.children:
            key = child.name
            # Repeated names in a struct are rare; keep them all
            suffix = 1
            while key in result:
                suffix += 1
                key = f"{child.name}_{suffix}"
            result[key] = child.to_dict()
        return result


@dataclass
class FieldArray:
    """An ordered list of nodes."""
    name: str
    first_bit: int
    items: list["Node"] = field(default_factory=list)
    path: str = ""

    @property
    def n_bits(self) -> int:
        return _span(self.first_bit, self.items)

    @property
    def children(self) -> list["Node"]:
        return self.items

    def append(self, node: "Node") -> None:
        self.items.append(node)

    def __getitem__(self, index: int) -> "Node":
        return self.items[index]

    def __iter__(self) -> Iterator["Node"]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def walk(self) -> Iterator["Node"]:
        yield self
        for item in self.items:
            yield from item.walk()

    def validations(self) -> list[ValidationFailure]:
        return [v for node in self.walk() if isinstance(node, Field) for v in node.validations]

    def to_dict(self) -> list:
        return [item.to_dict() for item in self.items]


Node = Union[Field, FieldStruct, FieldArray]


def _span(first_bit: int, nodes: list) -> int:
    end = first_bit
    for node in nodes:
        end = max(end, node.first_bit + node.n_bits)
    return end - first_bit


def _plain(value: Any) -> Any:
    """Make a value JSON friendly."""
    if isinstance(value, (bytes, bytearray)):
        return value.hex()
    return value
