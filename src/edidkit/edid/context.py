"""Per-decode state shared between the base record and its sub-decoders."""

from dataclasses import dataclass, field
from typing import Optional

from edidkit.bitstream.registry import FormatRegistry
from edidkit.config import DecoderConfig


@dataclass
class EDIDContext:
    """
    Values decoded early that change how later fields are read.

    Attributes:
        version: EDID version byte (18)
        revision: EDID revision byte (19); gates the meaning of bit 1 of the
            feature support byte and the standard timing aspect table
        is_digital: Video input definition bit 7
        continuous_frequency: Feature support bit 0
        registry: Extension sub-format registry
        config: Decoder options
    """
    version: int = 1
    revision: int = 3
    is_digital: bool = False
    continuous_frequency: bool = False
    registry: Optional[FormatRegistry] = None
    config: DecoderConfig = field(default_factory=DecoderConfig)

    @property
    def before_1_3(self) -> bool:
        return (self.version, self.revision) < (1, 3)
