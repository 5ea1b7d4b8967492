"""
Value Mappers
=============

Mappers enrich a raw scalar with a display symbol, a description or a unit
without touching the bits it was read from. A mapper is a plain callable
taking a MappedValue and returning a new one; a pipeline is an ordered
sequence of mappers applied left to right:

    >>> apply_mappers(MappedValue(24), [add(60), unit("Hz")])
    MappedValue(actual=24, symbol=84, description=None, unit='Hz', hex=False)

A later mapper may overwrite the symbol set by an earlier one. Lookup
mappers pass unknown values through unchanged. A mapper that raises stops
the pipeline: the field keeps whatever annotations it had before that
mapper and decoding carries on.
"""

from dataclasses import dataclass, replace
from typing import Any, Callable, Iterable, Mapping, Optional
import logging

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MappedValue:
    """
    A scalar travelling through the mapper pipeline.

    Attributes:
        actual: The numeric value (raw bits unless a mapper rewrote it)
        symbol: Display symbol
        description: Free-text description
        unit: Semantic unit
        hex: Render the value in hexadecimal
    """
    actual: Any
    symbol: Any = None
    description: Optional[str] = None
    unit: Optional[str] = None
    hex: bool = False


Mapper = Callable[[MappedValue], MappedValue]

# Mapper failures that are absorbed rather than aborting the decode
MAPPER_ERRORS = (LookupError, ValueError, ArithmeticError, TypeError)


def apply_mappers(value: MappedValue, mappers: Iterable[Mapper]) -> MappedValue:
    """Fold ``mappers`` over ``value`` left to right."""
    for mapper in mappers:
        try:
            value = mapper(value)
        except MAPPER_ERRORS as e:
            logger.debug(f"Mapper failed on {value.actual!r}: {e}")
            break
    return value


# =============================================================================
# Table Lookups
# =============================================================================

def sym_map(table: Mapping[int, Any]) -> Mapper:
    """Look the value up in ``table`` and use the result as the symbol."""
    def mapper(v: MappedValue) -> MappedValue:
        if v.actual in table:
            return replace(v, symbol=table[v.actual])
        return v
    return mapper


def desc_map(table: Mapping[int, str]) -> Mapper:
    """Look the value up in ``table`` and use the result as the description."""
    def mapper(v: MappedValue) -> MappedValue:
        if v.actual in table:
            return replace(v, description=table[v.actual])
        return v
    return mapper


def sym_desc_map(table: Mapping[int, tuple[Any, Optional[str]]]) -> Mapper:
    """Look up a ``(symbol, description)`` pair."""
    def mapper(v: MappedValue) -> MappedValue:
        if v.actual in table:
            symbol, description = table[v.actual]
            return replace(v, symbol=symbol, description=description)
        return v
    return mapper


def bool_map(table: Optional[Mapping[int, bool]] = None) -> Mapper:
    table = table if table is not None else {0: False, 1: True}
    return sym_map(table)


# =============================================================================
# Numeric Reinterpretation
# =============================================================================

def add(n: float) -> Mapper:
    """Symbol = value + n."""
    return formula(lambda actual: actual + n)


def multiply(n: float) -> Mapper:
    """Symbol = value * n."""
    return formula(lambda actual: actual * n)


def divide(n: float) -> Mapper:
    """Symbol = value / n."""
    return formula(lambda actual: actual / n)


def actual_add(n: int) -> Mapper:
    """Rewrite the value itself (not the symbol) by adding ``n``."""
    def mapper(v: MappedValue) -> MappedValue:
        return replace(v, actual=v.actual + n)
    return mapper


def formula(fn: Callable[[Any], Any]) -> Mapper:
    """Symbol computed from the value by an arbitrary function."""
    def mapper(v: MappedValue) -> MappedValue:
        return replace(v, symbol=fn(v.actual))
    return mapper


# =============================================================================
# Annotations
# =============================================================================

def unit(text: str) -> Mapper:
    def mapper(v: MappedValue) -> MappedValue:
        return replace(v, unit=text)
    return mapper


def description(text: str) -> Mapper:
    def mapper(v: MappedValue) -> MappedValue:
        return replace(v, description=text)
    return mapper


def hex_display(v: MappedValue) -> MappedValue:
    return replace(v, hex=True)


def trim(chars: str) -> Mapper:
    """Strip ``chars`` from the right of a string value."""
    def mapper(v: MappedValue) -> MappedValue:
        return replace(v, actual=v.actual.rstrip(chars))
    return mapper


def set_bits(flags: int, width: int = 8) -> list[int]:
    """
    Indexes of the set bits of ``flags``, most significant first.

    Used for bitmap capabilities where each set bit names a mode:

        >>> set_bits(0b10000101)
        [7, 2, 0]
    """
    return [i for i in range(width - 1, -1, -1) if flags >> i & 1]


# =============================================================================
# Common Formulas
# =============================================================================

year = add(1990)                    # week/year bytes count from 1990
gamma = formula(lambda actual: actual / 100 + 1)
pixel_clock = divide(100)           # 10 kHz units to MHz
