"""Prompt text for workflow agents and correction requests."""

from forgeloop.prompts.agents import (
    DEFAULT_INSTRUCTIONS,
    FILE_BLOCK_FORMAT,
    STRICT_FORMAT_REQUEST,
    build_system_prompt,
    correction_request,
    frame_previous_output,
    infer_role,
    runtime_fix_request,
)

__all__ = [
    "DEFAULT_INSTRUCTIONS",
    "FILE_BLOCK_FORMAT",
    "STRICT_FORMAT_REQUEST",
    "build_system_prompt",
    "correction_request",
    "frame_previous_output",
    "infer_role",
    "runtime_fix_request",
]
