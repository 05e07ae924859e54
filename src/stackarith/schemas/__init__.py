"""Pydantic configuration schemas for stackarith.

Exports
-------
resolve_config : function
    Single entrypoint for configuration resolution
InternalConfig : class
    Fully validated, authoritative runtime configuration
ParamConfig : class
    Expert defaults (complete)
UserConfig : class
    User-facing configuration (forgiving, minimal)
CLIConfig : class
    Command-line operational overrides
"""

from stackarith.schemas.resolve import resolve_config
from stackarith.schemas.internal import InternalConfig
from stackarith.schemas.param import ParamConfig
from stackarith.schemas.user import UserConfig
from stackarith.schemas.cli import CLIConfig

__all__ = [
    'resolve_config',
    'InternalConfig',
    'ParamConfig',
    'UserConfig',
    'CLIConfig',
]
