"""ParamConfig: Expert defaults for the evaluator and its engines.

Every tunable parameter has its default here. No runtime code defines
fallback values; it only ever receives an InternalConfig.
"""

import os
from typing import Literal, Optional
from pydantic import Field
from stackarith.schemas.base import StackarithBaseModel


LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def _default_num_threads() -> int:
    return os.cpu_count() or 1


# =============================================================================
# Nested Configuration Models
# =============================================================================

class EvaluatorConfig(StackarithBaseModel):
    """Stack evaluation settings."""
    num_threads: int = Field(default_factory=_default_num_threads, ge=1,
                             description="Worker threads per engine operator")
    quiet: bool = Field(False, description="Suppress warnings about likely user mistakes")
    write_all: bool = Field(False, description="Allow more than one dataset left on the stack")


class StatisticsConfig(StackarithBaseModel):
    """Clipping primitive settings."""
    clip_max_converge: int = Field(50, ge=1, description="Maximum number of clipping rounds")


class FillConfig(StackarithBaseModel):
    """Mask reconstruction used by the ``-fill`` collapse operators."""
    max_flagged_fraction: float = Field(0.95, gt=0, le=1.0)
    erode_iterations: int = Field(2, ge=0)
    dilate_iterations_1d: int = Field(4, ge=0)
    dilate_iterations_nd: int = Field(2, ge=0)


class OutputConfig(StackarithBaseModel):
    """Where and how final datasets are written."""
    path: Optional[str] = None
    name: Optional[str] = None
    units: Optional[str] = None
    comment: Optional[str] = None


class LoggingConfig(StackarithBaseModel):
    """Logging configuration."""
    level: LogLevel = "INFO"


# =============================================================================
# Main ParamConfig
# =============================================================================

class ParamConfig(StackarithBaseModel):
    """Complete expert configuration with all defaults.

    Usage
    -----
    Not used directly by runtime code; it is the base layer of

        internal_cfg = resolve_config(param_cfg, user_cfg, cli_cfg)
    """

    evaluator: EvaluatorConfig = Field(default_factory=EvaluatorConfig)
    statistics: StatisticsConfig = Field(default_factory=StatisticsConfig)
    fill: FillConfig = Field(default_factory=FillConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
