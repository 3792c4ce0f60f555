"""Capture records produced by test instrumentation."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

DOM_ERROR_PLACEHOLDER = "<error>Failed to capture DOM</error>"


class Viewport(BaseModel):
    width: int
    height: int


class Capture(BaseModel):
    """One observed UI state. Lives in memory until the run is flushed."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    name: str
    screenshot_path: str = ""
    dom_snippet: str = ""
    timestamp: str
    environment: Optional[str] = None
    viewport: Optional[Viewport] = None
    test_file: Optional[str] = None
    test_title: Optional[str] = None
    error: Optional[str] = None


class RunPayload(BaseModel):
    """Normalized end-of-run payload built from the capture log."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    account_id: str
    build_id: str
    timestamp: str
    captures: list[Capture] = Field(default_factory=list)
    test_files: list[str] = Field(default_factory=list)
