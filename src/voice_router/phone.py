"""Phone number normalization for CRM lookups.

The CRM indexes phone numbers in whichever format they were entered
(+19092601366, 19092601366, 9092601366, "(909) 260-1366"), so a lookup
has to try several renderings of the same number.
"""

import re
from dataclasses import dataclass
from typing import Tuple

DOMESTIC_COUNTRY_CODE = "1"

_NON_DIGITS = re.compile(r"\D")


@dataclass(frozen=True)
class NormalizedPhone:
    original: str
    digits: str
    with_country_code: str
    had_plus: bool
    assumed_domestic: bool
    valid: bool
    variants: Tuple[str, ...]

    @property
    def with_plus(self) -> str:
        return "+" + self.with_country_code


def normalize(raw: str) -> NormalizedPhone:
    """Normalize a raw phone string into ordered lookup variants.

    Variants for a valid number, most likely match first:
      1. digits with country code
      2. national digits (domestic 11-digit numbers only)
      3. ``+`` followed by the country-coded digits

    Fewer than 10 digits is invalid and yields the bare digit string as
    the only variant.
    """
    raw = raw or ""
    had_plus = raw.strip().startswith("+")
    digits = _NON_DIGITS.sub("", raw)

    if len(digits) < 10:
        return NormalizedPhone(
            original=raw,
            digits=digits,
            with_country_code=digits,
            had_plus=had_plus,
            assumed_domestic=False,
            valid=False,
            variants=(digits,),
        )

    assumed_domestic = False
    if len(digits) == 10:
        with_country_code = DOMESTIC_COUNTRY_CODE + digits
        assumed_domestic = True
    else:
        # 11 digits starting with 1 is domestic with its code; anything
        # longer carries its own country code.
        with_country_code = digits

    candidates = [with_country_code]
    if with_country_code.startswith(DOMESTIC_COUNTRY_CODE) and len(with_country_code) == 11:
        candidates.append(with_country_code[1:])
    candidates.append("+" + with_country_code)

    return NormalizedPhone(
        original=raw,
        digits=digits,
        with_country_code=with_country_code,
        had_plus=had_plus,
        assumed_domestic=assumed_domestic,
        valid=True,
        variants=tuple(dict.fromkeys(candidates)),
    )


def lookup_variants(raw: str) -> Tuple[str, ...]:
    """Shortcut returning only the ordered variant tuple."""
    return normalize(raw).variants
