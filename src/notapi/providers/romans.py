"""Roman numeral conversion for integers 1 to 3999."""

import re
from typing import List, Tuple

from notapi.utils.exceptions import ProviderError

MAX_VALUE = 3999

NUMERALS: List[Tuple[int, str]] = [
    (1000, "M"), (900, "CM"), (500, "D"), (400, "CD"),
    (100, "C"), (90, "XC"), (50, "L"), (40, "XL"),
    (10, "X"), (9, "IX"), (5, "V"), (4, "IV"), (1, "I"),
]

# Canonical (subtractive) form only: rejects "IIII", "VX", "MMMM".
CANONICAL = re.compile(r"^M{0,3}(CM|CD|D?C{0,3})(XC|XL|L?X{0,3})(IX|IV|V?I{0,3})$")


def romanize(value: str) -> str:
    """
    Convert an integer-valued string to a Roman numeral.

    Raises:
        ProviderError: If the value is not a positive integer or exceeds 3999
    """
    text = value.strip()
    if not text.isascii() or not text.isdigit():
        raise ProviderError("requires an unsigned integer", context={"input": value})
    number = int(text)
    if number <= 0:
        raise ProviderError("requires an unsigned integer", context={"input": value})
    if number > MAX_VALUE:
        raise ProviderError(f"requires a value of {MAX_VALUE} or less", context={"input": value})

    parts = []
    for amount, numeral in NUMERALS:
        count, number = divmod(number, amount)
        parts.append(numeral * count)
    return "".join(parts)


def deromanize(numeral: str) -> int:
    """
    Convert a Roman numeral to its integer value.

    Raises:
        ProviderError: If the numeral is empty or not in canonical form
    """
    text = numeral.strip().upper()
    if not text or not CANONICAL.match(text):
        raise ProviderError("requires valid roman numeral string", context={"input": numeral})

    total = 0
    index = 0
    for amount, symbol in NUMERALS:
        while text.startswith(symbol, index):
            total += amount
            index += len(symbol)
    return total
