from __future__ import annotations

import math
import re

from screenpad_broker.errors import ValidationError

MIN_BRIGHTNESS = 0
MAX_BRIGHTNESS = 255
OFF = 0

_DECIMAL = re.compile(r"[0-9]{1,3}")


def validate(value: object) -> int:
    """Return ``value`` if it is an int brightness in [0, 255], else raise."""

    # bool is an int subclass; True is not a brightness.
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"brightness must be an integer, got {value!r}")
    if not MIN_BRIGHTNESS <= value <= MAX_BRIGHTNESS:
        raise ValidationError(
            f"brightness must be between {MIN_BRIGHTNESS} and {MAX_BRIGHTNESS}, got {value}"
        )
    return value


def parse(text: str) -> int:
    """Parse a decimal brightness argument.

    Only 1-3 ASCII digits are accepted: no sign, no whitespace, no other
    bases.
    """

    if not isinstance(text, str) or not _DECIMAL.fullmatch(text):
        raise ValidationError(f"not a decimal brightness value: {text!r}")
    return validate(int(text))


def from_slider(slider: float) -> int:
    """Map a slider position in [0.0, 1.0] to a brightness in [1, 255].

    0 is reserved for "off" and is only reached through an explicit toggle.
    """

    if isinstance(slider, bool) or not isinstance(slider, (int, float)) or math.isnan(slider):
        raise ValidationError(f"slider value must be a number, got {slider!r}")
    slider = min(max(float(slider), 0.0), 1.0)
    return math.floor(slider * (MAX_BRIGHTNESS - 1)) + 1
