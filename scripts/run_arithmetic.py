#!/usr/bin/env python3
"""``stackarith`` expression runner.

Usage:
    python scripts/run_arithmetic.py 1 2 +
    python scripts/run_arithmetic.py 5 5 image.nc filter-median -o smooth.nc
    python scripts/run_arithmetic.py -c scripts/user_config.py cube.nc 3 collapse-median

Note: User config in scripts/user_config.py, expert defaults in
stackarith.schemas.param
"""

import sys

from stackarith.cli.run_arithmetic import main

if __name__ == "__main__":
    sys.exit(main())
