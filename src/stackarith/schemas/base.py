"""Shared pydantic base for the configuration layers.

ParamConfig, UserConfig, CLIConfig and InternalConfig all derive from
StackarithBaseModel, so a misspelled key in a user file or a bad CLI value
fails at load time instead of silently falling back to a default.
"""

from pydantic import BaseModel, ConfigDict


class StackarithBaseModel(BaseModel):
    """Strict model: unknown keys are errors and assignments are re-validated."""

    model_config = ConfigDict(
        extra='forbid',
        validate_assignment=True,
        use_enum_values=True,
        str_strip_whitespace=True,  # " DEBUG " from a config file is "DEBUG"
    )
