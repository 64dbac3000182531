"""
Nama count formatting in the Indian numbering system.

Usage:
    from namabank.utils.numbers import format_indian_count

    format_indian_count(25_000_000) -> "2.5 Crores"
    format_indian_count(150_000)    -> "1.5 Lacs"
    format_indian_count(1_008)      -> "1.01 Thousand"
    format_indian_count(108)        -> "108"
"""

_UNITS = (
    (10_000_000, "Crores"),
    (100_000, "Lacs"),
    (1_000, "Thousand"),
)


def _trim(value: float) -> str:
    """Two decimals with trailing zeros (and a bare point) removed."""
    text = f"{value:.2f}"
    return text.rstrip("0").rstrip(".")


def format_indian_count(n: int) -> str:
    for size, label in _UNITS:
        if n >= size:
            return f"{_trim(n / size)} {label}"
    return str(n)
