"""InternalConfig: Authoritative runtime configuration.

This is the ONLY config schema that the evaluator and the engines see. It
is fully validated, frozen, and has an explicit value for every setting.
"""

from typing import Optional
from pydantic import Field, ConfigDict
from stackarith.schemas.base import StackarithBaseModel
from stackarith.schemas.param import LogLevel


class InternalEvaluatorConfig(StackarithBaseModel):
    """Runtime evaluator configuration."""
    num_threads: int = Field(ge=1)
    quiet: bool
    write_all: bool


class InternalStatisticsConfig(StackarithBaseModel):
    clip_max_converge: int = Field(ge=1)


class InternalFillConfig(StackarithBaseModel):
    """Runtime fill configuration."""
    max_flagged_fraction: float = Field(gt=0, le=1.0)
    erode_iterations: int = Field(ge=0)
    dilate_iterations_1d: int = Field(ge=0)
    dilate_iterations_nd: int = Field(ge=0)


class InternalOutputConfig(StackarithBaseModel):
    """Runtime output configuration."""
    path: Optional[str]
    name: Optional[str]
    units: Optional[str]
    comment: Optional[str]


class InternalLoggingConfig(StackarithBaseModel):
    level: LogLevel


class InternalConfig(StackarithBaseModel):
    """Authoritative runtime configuration.

    Usage
    -----
    Runtime classes receive InternalConfig and access fields directly:

        def __init__(self, config: InternalConfig):
            self.num_threads = config.evaluator.num_threads  # NOT .get()

    Rules
    -----
    - NO .get() calls
    - NO fallback defaults
    - NO validation in runtime code
    """

    evaluator: InternalEvaluatorConfig
    statistics: InternalStatisticsConfig
    fill: InternalFillConfig
    output: InternalOutputConfig
    logging: InternalLoggingConfig

    model_config = ConfigDict(
        extra='forbid',
        validate_assignment=True,
        use_enum_values=True,
        str_strip_whitespace=True,
        frozen=True,  # Immutable after construction
    )
