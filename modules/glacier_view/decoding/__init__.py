"""RGI Classification Code Decoding

Pure decoding of the packed 4-character RGI glacier type code into the
semantic attributes published on the glacier view.
"""

from .code_decoder import (
    TerminusType,
    DecodedAttributes,
    MalformedCodeWarning,
    TERMINUS_CODE_TABLE,
    SURGE_CODE_TABLE,
    decode_classification_code,
)

__all__ = [
    'TerminusType',
    'DecodedAttributes',
    'MalformedCodeWarning',
    'TERMINUS_CODE_TABLE',
    'SURGE_CODE_TABLE',
    'decode_classification_code',
]
