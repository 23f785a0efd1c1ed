import re
import string
from typing import Iterable

PREFIX = "INV-"
START_SUFFIX = "0000"
FALLBACK_NUMBER = f"{PREFIX}0001"
OVERFLOW_SUFFIX = "AAA1"

SEQUENCE_PATTERN = re.compile(r"INV-[0-9A-Z]{4}")
DIGITS_PATTERN = re.compile(r"[0-9]{4}")
LETTER_DIGITS_PATTERN = re.compile(r"([A-Z])([0-9]{3})")
TWO_LETTERS_DIGITS_PATTERN = re.compile(r"([A-Z]{2})([0-9]{2})")

LETTERS = string.ascii_uppercase


def next_letter(letter: str) -> str | None:
    """Letter after ``letter``, or None once ``Z`` is reached."""
    position = LETTERS.index(letter)
    if position + 1 >= len(LETTERS):
        return None
    return LETTERS[position + 1]


def increment_suffix(current: str) -> str:
    if DIGITS_PATTERN.fullmatch(current):
        number = int(current)
        if number < 9999:
            return f"{number + 1:04d}"
        return "A001"

    match = LETTER_DIGITS_PATTERN.fullmatch(current)
    if match:
        letter, number = match.group(1), int(match.group(2))
        if number < 999:
            return f"{letter}{number + 1:03d}"
        following = next_letter(letter)
        if following is None:
            return "AA01"
        return f"{following}001"

    match = TWO_LETTERS_DIGITS_PATTERN.fullmatch(current)
    if match:
        first, second = match.group(1)
        number = int(match.group(2))
        if number < 99:
            return f"{first}{second}{number + 1:02d}"
        following = next_letter(second)
        if following is not None:
            return f"{first}{following}01"
        following = next_letter(first)
        if following is not None:
            return f"{following}A01"
        return OVERFLOW_SUFFIX

    return "0001"


def is_sequence_number(number: str | None) -> bool:
    return bool(number) and SEQUENCE_PATTERN.fullmatch(number) is not None


def highest_suffix(existing_numbers: Iterable[str]) -> str:
    # Plain string comparison: "9999" < "A001" < "AA01" in this alphabet.
    highest = START_SUFFIX
    for number in existing_numbers:
        if not is_sequence_number(number):
            continue
        suffix = number[len(PREFIX):]
        if suffix > highest:
            highest = suffix
    return highest


def next_invoice_number(existing_numbers: Iterable[str]) -> str:
    return f"{PREFIX}{increment_suffix(highest_suffix(existing_numbers))}"
