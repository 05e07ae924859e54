"""Command-line runner."""

import logging
from pathlib import Path

import numpy as np
import pytest

from stackarith.cli.run_arithmetic import (
    DEFAULT_OUTPUT,
    load_user_config_dict,
    main,
    output_paths,
    run_arithmetic,
)
from stackarith.core.dataset import make_dataset
from stackarith.core.loader import DatasetLoader

pytestmark = pytest.mark.integration


@pytest.fixture(autouse=True)
def restore_root_logger():
    """The runner reconfigures the root logger; put it back afterwards."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def user_config_file(tmp_path):
    path = tmp_path / "user_config.py"
    path.write_text('CONFIG = {"NUM_THREADS": 2, "QUIET": True, "LOG_LEVEL": "warning"}\n')
    return path


class TestRunArithmetic:

    def test_scalar_result(self):
        assert run_arithmetic("1 2 +") == [3]

    def test_array_written_with_metadata(self, tmp_path, image_2x3):
        target = tmp_path / "sums.nc"
        delivered = run_arithmetic(
            "img 1 collapse-sum",
            cli_args={"output": str(target), "metaunit": "counts", "num_threads": None},
            datasets={"img": image_2x3},
        )
        assert delivered == [target]
        back = DatasetLoader().load(target)
        np.testing.assert_array_equal(back.values, [6, 15])
        assert back.attrs["units"] == "counts"

    def test_default_output_file(self, tmp_path, monkeypatch, image_2x3):
        monkeypatch.chdir(tmp_path)
        delivered = run_arithmetic("img 2 x", datasets={"img": image_2x3})
        assert str(delivered[0]) == DEFAULT_OUTPUT
        assert (tmp_path / DEFAULT_OUTPUT).exists()

    def test_write_all_numbers_files(self, tmp_path):
        a = make_dataset(np.arange(3, dtype=np.uint8))
        delivered = run_arithmetic(
            "a a 1 + 7",
            cli_args={"output": str(tmp_path / "out.npy"), "write_all": True},
            datasets={"a": a},
        )
        assert delivered[0] == tmp_path / "out-1.npy"
        assert delivered[1] == tmp_path / "out-2.npy"
        np.testing.assert_array_equal(np.load(delivered[1]), [1, 2, 3])
        assert delivered[2] == tmp_path / "out-3.npy"

    def test_user_config_file(self, user_config_file):
        assert run_arithmetic("2 2 x", user_config_path=str(user_config_file)) == [4]


class TestMain:

    def test_prints_scalar(self, capsys):
        assert main(["1", "2", "+"]) == 0
        assert capsys.readouterr().out.strip() == "3"

    def test_user_error_exit_status(self):
        assert main(["1", "+"]) == 1

    def test_invalid_option_value(self):
        assert main(["-N", "0", "1"]) == 1

    def test_config_option(self, user_config_file, capsys):
        assert main(["-c", str(user_config_file), "6", "3", "/"]) == 0
        assert capsys.readouterr().out.strip() == "2.0"


class TestHelpers:

    def test_output_paths(self, tmp_path):
        assert output_paths(tmp_path / "a.nc", 1) == [tmp_path / "a.nc"]
        assert output_paths("a.nc", 2) == [Path("a-1.nc"), Path("a-2.nc")]

    def test_missing_config(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_user_config_dict(str(tmp_path / "nope.py"))

    def test_config_without_dict(self, tmp_path):
        path = tmp_path / "empty.py"
        path.write_text("VALUE = 1\n")
        with pytest.raises(ValueError, match="No CONFIG dict"):
            load_user_config_dict(str(path))
