"""CLIConfig: Command-line operational overrides.

Settings that commonly change between runs: thread count, output path,
output metadata and verbosity.
"""

from typing import Optional
from pydantic import Field
from stackarith.schemas.base import StackarithBaseModel
from stackarith.schemas.param import LogLevel


class CLIConfig(StackarithBaseModel):
    """Command-line configuration overrides.

    Highest priority in config resolution.

    Usage
    -----
        cli_cfg = CLIConfig(num_threads=2, output="out.npy", quiet=True)
        internal = resolve_config(param_cfg, user_cfg, cli_cfg)
    """

    num_threads: Optional[int] = Field(None, ge=1)
    quiet: Optional[bool] = None
    write_all: Optional[bool] = None
    output: Optional[str] = None
    metaname: Optional[str] = None
    metaunit: Optional[str] = None
    metacomment: Optional[str] = None
    log_level: Optional[LogLevel] = None

    def to_internal_overrides(self) -> dict:
        """Convert CLI config to internal config structure.

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
        if evaluator:
            overrides["evaluator"] = evaluator

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
