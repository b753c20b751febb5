"""RGI Classification Code Decoder

The RGI packs four glacier attributes into one string, one character each:
form, terminus type, surge evidence and tongue activity. The glacier view
publishes two of them, decoded here through lookup tables so a new code is a
data change rather than a new branch.
"""

import warnings
from enum import Enum
from typing import Any, Dict, FrozenSet, Optional

from pydantic import BaseModel, ConfigDict, Field

CODE_LENGTH = 4

# 0-based positions within the packed code
TERMINUS_POSITION = 1
SURGE_POSITION = 2


class MalformedCodeWarning(UserWarning):
    """Issued when a classification code does not have the expected shape.

    The code still decodes (to Unknown / not surging); the warning only lets
    callers count how many inputs needed the fallback.
    """


class TerminusType(str, Enum):
    """How a glacier terminates."""
    LAND_TERMINATING = "LandTerminating"
    TIDEWATER = "Tidewater"
    LAKE = "Lake"
    UNKNOWN = "Unknown"

    @property
    def code(self) -> Optional[int]:
        """Integer code published in the view's ``gltype`` column."""
        return _TERMINUS_INTEGER_CODES.get(self)


_TERMINUS_INTEGER_CODES: Dict[TerminusType, int] = {
    TerminusType.LAND_TERMINATING: 0,
    TerminusType.TIDEWATER: 1,
    TerminusType.LAKE: 2,
}

TERMINUS_CODE_TABLE: Dict[str, TerminusType] = {
    '0': TerminusType.LAND_TERMINATING,
    '1': TerminusType.TIDEWATER,
    '2': TerminusType.LAKE,
}

# 1 = possible, 3 = observed. Probable (2) is deliberately not flagged.
SURGE_CODE_TABLE: FrozenSet[str] = frozenset({'1', '3'})


class DecodedAttributes(BaseModel):
    """Semantic attributes decoded from one classification code."""

    model_config = ConfigDict(frozen=True)

    terminus_type: TerminusType = Field(TerminusType.UNKNOWN, description="Decoded terminus type")
    is_surging: bool = Field(False, description="Whether the glacier shows surge behaviour")

    @property
    def terminus_code(self) -> Optional[int]:
        return self.terminus_type.code


UNKNOWN_ATTRIBUTES = DecodedAttributes()


def decode_classification_code(code: Any) -> DecodedAttributes:
    """Decode a packed RGI classification code.

    Decoding is total: anything that is not a 4-character string decodes to
    ``Unknown`` / not surging and issues a :class:`MalformedCodeWarning`.
    Characters missing from the lookup tables decode the same way without a
    warning, since the RGI defines codes (e.g. ``9`` = not assigned) the view
    does not publish.

    Args:
        code: Packed code such as ``"0100"``

    Returns:
        DecodedAttributes for the code
    """
    if not isinstance(code, str) or len(code) != CODE_LENGTH:
        warnings.warn(
            f"Classification code {code!r} is not a {CODE_LENGTH}-character string",
            MalformedCodeWarning,
            stacklevel=2
        )
        return UNKNOWN_ATTRIBUTES

    return DecodedAttributes(
        terminus_type=TERMINUS_CODE_TABLE.get(code[TERMINUS_POSITION], TerminusType.UNKNOWN),
        is_surging=code[SURGE_POSITION] in SURGE_CODE_TABLE
    )
