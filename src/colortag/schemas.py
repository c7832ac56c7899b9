"""Pydantic schemas for YAML interaction scripts."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, model_validator


class ScriptStep(BaseModel):
    """One simulated input: click/touch/hover/leave on a target, or a key press."""

    action: Literal["click", "touch", "key", "hover", "leave"]
    target: str | None = None  # selector; key presses default to the focused element
    key: str | None = None

    @model_validator(mode="after")
    def check_arguments(self) -> ScriptStep:
        if self.action == "key":
            if not self.key:
                raise ValueError("'key' steps need a key")
        elif not self.target:
            raise ValueError(f"'{self.action}' steps need a target selector")
        return self


class ScriptSchema(BaseModel):
    """Schema for an interaction script."""

    steps: list[ScriptStep] = Field(default_factory=list)
