"""UserConfig: Forgiving, minimal user-facing configuration.

Users only specify what they want to override from the expert defaults,
either with flat upper-case keys (``NUM_THREADS``, ``QUIET``, ...) or with
nested sections mirroring InternalConfig.
"""

from typing import Optional
from pydantic import Field, field_validator
from stackarith.schemas.base import StackarithBaseModel
from stackarith.schemas.param import LogLevel


class UserEvaluatorConfig(StackarithBaseModel):
    """User-facing evaluator config."""
    num_threads: Optional[int] = None
    quiet: Optional[bool] = None
    write_all: Optional[bool] = None


class UserStatisticsConfig(StackarithBaseModel):
    clip_max_converge: Optional[int] = None


class UserFillConfig(StackarithBaseModel):
    """User-facing fill config."""
    max_flagged_fraction: Optional[float] = None
    erode_iterations: Optional[int] = None
    dilate_iterations_1d: Optional[int] = None
    dilate_iterations_nd: Optional[int] = None

    @field_validator("max_flagged_fraction", mode="before")
    @classmethod
    def coerce_fraction(cls, v):
        """Accept int or float for the fraction."""
        if v is not None:
            return float(v)
        return v


class UserConfig(StackarithBaseModel):
    """User-facing configuration schema.

    Usage
    -----
        user_cfg = UserConfig(NUM_THREADS=4, OUTPUT="result.nc")
        internal = resolve_config(param_cfg, user_cfg, cli_cfg)
    """

    # Flat aliases
    num_threads: Optional[int] = Field(None, alias="NUM_THREADS")
    quiet: Optional[bool] = Field(None, alias="QUIET")
    write_all: Optional[bool] = Field(None, alias="WRITE_ALL")
    clip_max_converge: Optional[int] = Field(None, alias="CLIP_MAX_CONVERGE")
    output: Optional[str] = Field(None, alias="OUTPUT")
    metaname: Optional[str] = Field(None, alias="METANAME")
    metaunit: Optional[str] = Field(None, alias="METAUNIT")
    metacomment: Optional[str] = Field(None, alias="METACOMMENT")
    log_level: Optional[LogLevel] = Field(None, alias="LOG_LEVEL")

    # Nested overrides (advanced users)
    evaluator: Optional[UserEvaluatorConfig] = None
    statistics: Optional[UserStatisticsConfig] = None
    fill: Optional[UserFillConfig] = None

    model_config = StackarithBaseModel.model_config.copy()
    # Forgiving input dictionaries (ignore unknown keys)
    model_config.update({"populate_by_name": True, "extra": "ignore"})

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v):
        """Accept any case for the log level."""
        if isinstance(v, str):
            return v.upper().strip()
        return v

    def to_internal_overrides(self) -> dict:
        """Convert flat UserConfig to nested InternalConfig structure.

        Returns
        -------
        dict
            Nested dictionary matching InternalConfig structure
        """
        overrides = {}

        evaluator = {}
        if self.num_threads is not None:
            evaluator["num_threads"] = self.num_threads
        if self.quiet is not None:
            evaluator["quiet"] = self.quiet
        if self.write_all is not None:
            evaluator["write_all"] = self.write_all
        if self.evaluator is not None:
            evaluator.update(self.evaluator.model_dump(exclude_none=True))
        if evaluator:
            overrides["evaluator"] = evaluator

        statistics = {}
        if self.clip_max_converge is not None:
            statistics["clip_max_converge"] = self.clip_max_converge
        if self.statistics is not None:
            statistics.update(self.statistics.model_dump(exclude_none=True))
        if statistics:
            overrides["statistics"] = statistics

        if self.fill is not None:
            fill = self.fill.model_dump(exclude_none=True)
            if fill:
                overrides["fill"] = fill

        output = {}
        if self.output is not None:
            output["path"] = self.output
        if self.metaname is not None:
            output["name"] = self.metaname
        if self.metaunit is not None:
            output["units"] = self.metaunit
        if self.metacomment is not None:
            output["comment"] = self.metacomment
        if output:
            overrides["output"] = output

        if self.log_level is not None:
            overrides["logging"] = {"level": self.log_level}

        return overrides
