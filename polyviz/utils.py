# polyviz/utils.py
from typing import List


def parse_complex(s: str) -> complex:
    """
    Parse strings like '0.3+0.5j', '-0.4-0.6i', '2i', '-i' or '3' into a complex number.
    """
    s = s.strip().lower().replace(" ", "").replace("i", "j")
    if not s:
        raise ValueError("Empty complex literal")
    try:
        return complex(s)
    except ValueError:
        raise ValueError(f"Invalid complex literal: {s!r}") from None


def parse_complex_list(s: str) -> List[complex]:
    """Comma separated complex literals, e.g. '-1, 0, 0, 1'."""
    return [parse_complex(part) for part in s.split(",") if part.strip()]


def clamp(v, vmin, vmax):
    return max(vmin, min(v, vmax))
