"""Static length analysis for regex constraints.

Deriving the length range an arbitrary pattern accepts is undecidable in
general, so only one shape is recognised: a single atom under one quantifier,
anchored at both ends, with no flags that change anchoring. Examples:

    ^[a-z0-9]{3,30}$    -> (3, 31)   ``$`` also matches before a final newline
    ^\\d{4}\\Z          -> (4, 4)
    ^.+$                -> (1, None)

Anything else returns None and the pattern is evaluated on its own.
"""

import re

# =============================================================================
# Built-in Format Patterns
# =============================================================================

# Email: Basic RFC 5322 compliant pattern
EMAIL_PATTERN = re.compile(
    r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}\Z"
)

ALPHANUM_PATTERN = re.compile(r"^[a-zA-Z0-9]+\Z")


# =============================================================================
# Implied Length
# =============================================================================

_ANCHORED_ATOM = re.compile(
    r"""
    ^(?:\^|\\A)
    (?P<atom>
        \[\^?\]?(?:\\.|[^\]\\])*\]    # character class
      | \\[dDwWsS]                    # class escape
      | \\[^A-Za-z0-9]                # escaped punctuation
      | \.
      | [A-Za-z0-9 _-]
    )
    (?P<quant>
        \{(?P<low>\d+)(?P<comma>,(?P<high>\d*))?\}
      | [*+?]
    )?
    (?P<end>\$|\\Z)$
    """,
    re.VERBOSE,
)

# Flags that change what ^ and $ anchor to
_ANCHOR_FLAGS = re.MULTILINE


def implied_length(pattern: re.Pattern) -> tuple[int, int | None] | None:
    """Return the (min, max) length every match of ``pattern`` satisfies.

    ``max`` is None when unbounded. Returns None when the range cannot be
    derived statically.
    """
    if not isinstance(pattern.pattern, str) or pattern.flags & _ANCHOR_FLAGS:
        return None

    match = _ANCHORED_ATOM.match(pattern.pattern)
    if match is None:
        return None

    quant = match.group("quant")
    low: int
    high: int | None
    if quant is None:
        low, high = 1, 1
    elif quant == "*":
        low, high = 0, None
    elif quant == "+":
        low, high = 1, None
    elif quant == "?":
        low, high = 0, 1
    else:
        low = int(match.group("low"))
        if match.group("comma") is None:
            high = low
        elif match.group("high"):
            high = int(match.group("high"))
        else:
            high = None
        if high is not None and high < low:
            return None

    if high is not None and match.group("end") == "$":
        high += 1
    return low, high
