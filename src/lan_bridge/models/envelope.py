"""
Message envelope — the unit exchanged between bridge clients and the hub.
"""

from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, model_validator


class EnvelopeType(str, Enum):
    TEXT = "text"
    FILE = "file"
    IMAGE = "image"
    ERROR = "error"


BINARY_TYPES = {EnvelopeType.FILE, EnvelopeType.IMAGE}


class MessageEnvelope(BaseModel):
    type: EnvelopeType
    payload: Optional[str] = None     # text, error message, or base64 bytes (inbound file/image)
    name: Optional[str] = None        # file/image only
    reference: Optional[str] = None   # outbound file/image only, assigned by the payload store
    timestamp: Optional[Union[int, float, str]] = None  # producer clock, informational only

    @model_validator(mode="after")
    def _check_shape(self) -> "MessageEnvelope":
        if self.type in BINARY_TYPES:
            if not self.name:
                raise ValueError(f"{self.type.value} envelope requires a name")
            # raw bytes on the way in, reference on the way out, never both
            if (self.payload is None) == (self.reference is None):
                raise ValueError("exactly one of payload or reference is required")
        else:
            if self.payload is None:
                raise ValueError(f"{self.type.value} envelope requires a payload")
            if self.name is not None or self.reference is not None:
                raise ValueError(f"{self.type.value} envelope cannot carry name or reference")
        return self

    @property
    def is_binary(self) -> bool:
        return self.type in BINARY_TYPES

    def to_json(self) -> str:
        return self.model_dump_json(exclude_none=True)
