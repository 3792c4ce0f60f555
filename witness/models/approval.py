"""Approval (baseline promotion) outcomes."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ApprovalErrorKind(str, Enum):
    FILE_NOT_FOUND = "FILE_NOT_FOUND"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    NO_SPACE = "NO_SPACE"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


class ApprovalResult(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, use_enum_values=True,
    )

    success: bool
    message: str
    snapshot_name: Optional[str] = None
    error: Optional[ApprovalErrorKind] = None
