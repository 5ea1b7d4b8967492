"""
Decoder Configuration
=====================

Options that change how strictly a buffer is decoded. Configuration can
come from:
- Default values (defined here)
- Environment variables (``DecoderConfig.from_env()``)
- Command-line flags (the CLI overrides individual fields)
"""

from dataclasses import dataclass
import os

# An EDID has at most 255 records: the base block plus the extension count
MAX_EXTENSIONS = 254


@dataclass
class DecoderConfig:
    """
    Configuration for one decode call.

    Attributes:
        strict_checksums: Raise ChecksumError after decoding if any record
            checksum failed (default: False, failures are only recorded)
        max_extensions: Upper bound on extension records walked, whatever
            the base record declares (default: 254)
        decode_extensions: Dispatch extensions through the registry; when
            False every extension is captured as opaque bytes
        trim_strings: Characters stripped from the right of descriptor
            strings (default: newline and space)
    """
    strict_checksums: bool = False
    max_extensions: int = MAX_EXTENSIONS
    decode_extensions: bool = True
    trim_strings: str = "\n "

    @classmethod
    def from_env(cls) -> "DecoderConfig":
        """
        Create a DecoderConfig from environment variables.

        Environment variables (all optional):
            EDIDKIT_STRICT: "1"/"true"/"yes" enables strict checksums
            EDIDKIT_MAX_EXTENSIONS: Extension limit (integer)
            EDIDKIT_DECODE_EXTENSIONS: "0"/"false"/"no" disables dispatch
        """
        config = cls()

        if strict := os.environ.get("EDIDKIT_STRICT"):
            config.strict_checksums = strict.lower() in ("1", "true", "yes")

        if limit := os.environ.get("EDIDKIT_MAX_EXTENSIONS"):
            try:
                config.max_extensions = max(0, min(int(limit), MAX_EXTENSIONS))
            except ValueError:
                pass  # Ignore invalid values

        if dispatch := os.environ.get("EDIDKIT_DECODE_EXTENSIONS"):
            config.decode_extensions = dispatch.lower() not in ("0", "false", "no")

        return config
