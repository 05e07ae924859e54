"""stackarith user configuration.

Modify settings here to customize the evaluator. Advanced settings are in
``stackarith.schemas.param`` (ParamConfig).

Usage:
    python scripts/run_arithmetic.py -c scripts/user_config.py 3 3 image.nc filter-median
    python scripts/run_arithmetic.py -c scripts/user_config.py cube.nc 3 collapse-sum -o sum.nc
"""

CONFIG = {
    # ========================================================================
    # EVALUATION
    # ========================================================================
    "NUM_THREADS": 4,         # Worker threads of the filter and collapse engines
    "QUIET": False,           # Suppress warnings about likely operand mistakes
    "WRITE_ALL": False,       # Keep every dataset left on the stack

    # ========================================================================
    # OUTPUT
    # ========================================================================
    "OUTPUT": None,           # Output file (.npy or .nc); None = stackarith_output.nc
    "METANAME": None,         # Name of the output dataset
    "METAUNIT": None,         # Units of the output dataset
    "METACOMMENT": None,      # Comment attached to the output dataset

    # ========================================================================
    # CLIPPING STATISTICS
    # ========================================================================
    "CLIP_MAX_CONVERGE": 50,  # Hard limit on clipping rounds

    # Note: the morphology used by the "-fill" clipping statistics is
    # configured under the "fill" section of ParamConfig.

    "LOG_LEVEL": "INFO",
}
