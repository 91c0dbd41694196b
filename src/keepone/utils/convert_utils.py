"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

utils/convert_utils.py
Byte counts to and from the short human form used on the command line and in reports.
"""
import re

_UNITS = ("B", "KB", "MB", "GB", "TB", "PB")
_MULTIPLIERS = {unit[0]: 1024 ** power for power, unit in enumerate(_UNITS) if power}

_SIZE_PATTERN = re.compile(
    r"^(?P<sign>-)?(?P<number>\d+(?:\.\d+)?)\s*(?P<prefix>[KMGTP])?(?P<suffix>B)?$"
)


class ConvertUtils:
    @staticmethod
    def bytes_to_human(size_bytes: int) -> str:
        """1536 -> '1.50KB'. Two decimals, binary units."""
        value = float(max(size_bytes, 0))
        for unit in _UNITS[:-1]:
            if value < 1024:
                return f"{value:.2f}{unit}"
            value /= 1024
        return f"{value:.2f}{_UNITS[-1]}"

    @staticmethod
    def human_to_bytes(size_str: str) -> int:
        """
        Parse '1.5GB', '2048KB', '1000', '1K', '1m' and the like (case-insensitive,
        surrounding whitespace ignored). Raises ValueError for negative or malformed input.
        """
        text = size_str.strip().upper()
        match = _SIZE_PATTERN.match(text)
        if not match:
            raise ValueError(
                f"Invalid size format: '{text}'. "
                f"Supported formats: 1.5GB, 2048KB, 1000, 1K, 1M, etc."
            )
        if match.group("sign"):
            raise ValueError(f"Negative size not allowed: '{text}'")

        multiplier = _MULTIPLIERS.get(match.group("prefix"), 1)
        return int(float(match.group("number")) * multiplier)

    @staticmethod
    def is_valid_size_format(size_str: str) -> bool:
        try:
            ConvertUtils.human_to_bytes(size_str)
        except ValueError:
            return False
        return True

    @staticmethod
    def short_digest(fingerprint: bytes, length: int = 12) -> str:
        """Hex prefix of a fingerprint for compact listings."""
        return fingerprint.hex()[:length]
