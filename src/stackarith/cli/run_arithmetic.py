"""Expression runner behind the ``stackarith`` command.

This module resolves configuration, runs the evaluator and hands its
results to the output convention. Scripts are thin wrappers around it.
"""

import argparse
import importlib.util
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

import xarray as xr
from pydantic import ValidationError

from stackarith.contracts import ContractViolation
from stackarith.core.loader import DatasetLoader
from stackarith.errors import UserInputError
from stackarith.evaluator import ReversePolishEvaluator, format_output
from stackarith.schemas import CLIConfig, InternalConfig, ParamConfig, UserConfig, resolve_config

__all__ = ['DEFAULT_OUTPUT', 'load_user_config_dict', 'setup_logging',
           'output_paths', 'run_arithmetic', 'main']

logger = logging.getLogger(__name__)

# Array results are written here when no output file is configured.
DEFAULT_OUTPUT = "stackarith_output.nc"


def load_user_config_dict(config_path: str) -> dict:
    """Load the ``CONFIG`` dict from a Python file.

    Returns the raw dict before Pydantic validation.

    Raises
    ------
    FileNotFoundError
        If the config file does not exist.
    ValueError
        If no CONFIG dict is found in the file.
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config not found: {path}")

    spec = importlib.util.spec_from_file_location("config_module", path)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)

    for name in dir(module):
        if name.startswith('CONFIG'):
            obj = getattr(module, name)
            if isinstance(obj, dict):
                return obj

    raise ValueError(f"No CONFIG dict found in {path}")


def setup_logging(config: InternalConfig) -> None:
    """Route every logger to stderr at the configured level."""
    level = getattr(logging, config.logging.level.upper(), logging.INFO)
    formatter = logging.Formatter(
        fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    root = logging.getLogger()
    root.setLevel(level)
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    ch = logging.StreamHandler()
    ch.setLevel(level)
    ch.setFormatter(formatter)
    root.addHandler(ch)


def output_paths(path: Union[str, Path], count: int) -> List[Path]:
    """File names for ``count`` results: ``path`` itself for one result,
    ``stem-1.suffix``, ``stem-2.suffix``, ... for more.
    """
    path = Path(path)
    if count == 1:
        return [path]
    return [path.with_name(f"{path.stem}-{i}{path.suffix}") for i in range(1, count + 1)]


def run_arithmetic(
    tokens: Union[str, Sequence[str]],
    user_config_path: Optional[str] = None,
    cli_args: Optional[Dict[str, Any]] = None,
    datasets: Optional[Mapping[str, xr.DataArray]] = None,
    verbose: bool = False,
) -> list:
    """Evaluate an expression and deliver its results.

    This is the core execution function. It:
    1. Loads and resolves configuration (Param < User < CLI)
    2. Evaluates the tokens
    3. Returns scalars and writes every array result to a file

    Parameters
    ----------
    tokens : str or sequence of str
        The expression in Reverse Polish order.
    user_config_path : str, optional
        Python file with a ``CONFIG`` dict.
    cli_args : dict, optional
        Command-line overrides (keys of ``CLIConfig``). ``None`` values are
        ignored.
    datasets : mapping, optional
        Datasets the expression can refer to by name.
    verbose : bool, optional
        Enable DEBUG logging and print the resolved configuration.

    Returns
    -------
    list
        One entry per result, bottom of the stack first: a Python scalar,
        or the path of the file the result was written to.

    Examples
    --------
    >>> run_arithmetic("1 2 +")
    [3]
    >>> run_arithmetic("3 3 image.nc filter-median", cli_args={"output": "smooth.nc"})
    [PosixPath('smooth.nc')]
    """
    param_cfg = ParamConfig()

    user_cfg = UserConfig()
    if user_config_path is not None:
        user_cfg = UserConfig.model_validate(load_user_config_dict(user_config_path))

    cli_args = dict(cli_args or {})
    if verbose and "log_level" not in cli_args:
        cli_args["log_level"] = "DEBUG"
    cli_dict = {k: v for k, v in cli_args.items() if v is not None}
    cli_cfg = CLIConfig.model_validate(cli_dict) if cli_dict else CLIConfig()

    config = resolve_config(param_cfg, user_cfg, cli_cfg)
    setup_logging(config)
    if verbose:
        print(json.dumps(config.model_dump(), indent=2), file=sys.stderr)

    loader = DatasetLoader()
    result = ReversePolishEvaluator(config, loader).run(tokens, datasets)

    formatted = [format_output(ds, config) for ds in result.datasets]
    arrays = [out for out in formatted if isinstance(out, xr.DataArray)]
    paths = iter(output_paths(config.output.path or DEFAULT_OUTPUT, len(arrays)))

    delivered = []
    for out in formatted:
        if isinstance(out, xr.DataArray):
            delivered.append(loader.write(out, next(paths)))
        else:
            delivered.append(out)
    return delivered


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Evaluate a Reverse Polish expression over N-dimensional datasets",
        epilog="Example: stackarith image.nc 0 gt 1 erode 1 dilate -o mask.nc",
    )
    parser.add_argument("tokens", nargs="+", help="Expression tokens (numbers, files, operators)")
    parser.add_argument("-c", "--config", help="Path to user config file")
    parser.add_argument("-o", "--output", help="Output file (.npy or .nc)")
    parser.add_argument("-N", "--num-threads", type=int, help="Number of worker threads")
    parser.add_argument("-q", "--quiet", action="store_true", default=None,
                        help="Do not warn about likely operand mistakes")
    parser.add_argument("--write-all", action="store_true", default=None,
                        help="Write every dataset left on the stack")
    parser.add_argument("--metaname", help="Name of the output dataset")
    parser.add_argument("--metaunit", help="Units of the output dataset")
    parser.add_argument("--metacomment", help="Comment attached to the output dataset")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args(argv)

    cli_args = {
        "output": args.output,
        "num_threads": args.num_threads,
        "quiet": args.quiet,
        "write_all": args.write_all,
        "metaname": args.metaname,
        "metaunit": args.metaunit,
        "metacomment": args.metacomment,
    }

    try:
        delivered = run_arithmetic(args.tokens, args.config, cli_args, verbose=args.verbose)
    except (UserInputError, ValidationError, FileNotFoundError) as exc:
        logger.error("%s", exc)
        return 1
    except ContractViolation as exc:
        logger.error("%s\nThis is a bug in stackarith; please report it with the "
                     "command that triggered it.", exc)
        return 2

    for out in delivered:
        print(out)
    return 0


if __name__ == "__main__":
    sys.exit(main())
