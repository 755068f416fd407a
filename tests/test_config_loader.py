import logging
import pytest
from unittest.mock import mock_open

from plantops.analysis.models import AnalyticsThresholds, DEFAULT_THRESHOLDS
from plantops.services import config_loader

# This is a fake config.ini file that we'll "load"
FAKE_INI_CONTENT = """
[basic]
default_material = OPC
log_dir = logs/log

[record_store]
url = http://localhost:8090
token = secret-token
timeout = 15
per_page = 200
max_retries = 3
readings_collection = ccr_parameter_data
"""

FAKE_THRESHOLDS_INI = """
[analytics_thresholds]
outlier_sigma = 2.5
top_n = 5
operator_role = Shift Lead
qaf_good = lots
mystery_knob = 1
"""


def test_load_config_parses_correctly(mocker):
    """
    Tests that the loader correctly parses strings and integers.
    """
    # 1. Mock 'open': When open() is called, pretend to read FAKE_INI_CONTENT
    mocker.patch("builtins.open", mock_open(read_data=FAKE_INI_CONTENT))

    # 2. Mock 'os.path.exists' to return True so it finds the "file"
    mocker.patch("os.path.exists", return_value=True)

    # 3. Run the function
    config = config_loader.load_config(section='record_store')

    # 4. Assert the results
    assert config['url'] == 'http://localhost:8090'
    assert config['readings_collection'] == 'ccr_parameter_data'
    # Check that it correctly converted the numeric keys to int
    assert config['timeout'] == 15
    assert isinstance(config['per_page'], int)
    assert config['max_retries'] == 3


def test_load_config_raises_file_not_found(mocker):
    """
    Tests that it raises an error if the file doesn't exist.
    """
    mocker.patch("os.path.exists", return_value=False)

    with pytest.raises(FileNotFoundError):
        config_loader.load_config(section='basic')


def test_load_config_raises_key_error_for_missing_section(mocker):
    mocker.patch("builtins.open", mock_open(read_data=FAKE_INI_CONTENT))
    mocker.patch("os.path.exists", return_value=True)

    with pytest.raises(KeyError):
        config_loader.load_config(section='does_not_exist')


def test_load_config_bad_integer_becomes_none(mocker):
    mocker.patch("builtins.open", mock_open(read_data="[record_store]\ntimeout = soon\n"))
    mocker.patch("os.path.exists", return_value=True)

    assert config_loader.load_config(section='record_store')['timeout'] is None


class TestLoadAnalyticsThresholds:
    """Test threshold overrides from [analytics_thresholds]."""

    def test_missing_file_gives_defaults(self, mocker):
        mocker.patch("os.path.exists", return_value=False)
        assert config_loader.load_analytics_thresholds() is DEFAULT_THRESHOLDS

    def test_missing_section_gives_defaults(self, mocker):
        mocker.patch("builtins.open", mock_open(read_data=FAKE_INI_CONTENT))
        mocker.patch("os.path.exists", return_value=True)
        assert config_loader.load_analytics_thresholds() is DEFAULT_THRESHOLDS

    def test_overrides_are_typed(self, mocker, caplog):
        mocker.patch("builtins.open", mock_open(read_data=FAKE_THRESHOLDS_INI))
        mocker.patch("os.path.exists", return_value=True)

        with caplog.at_level(logging.WARNING):
            thresholds = config_loader.load_analytics_thresholds()

        assert isinstance(thresholds, AnalyticsThresholds)
        assert thresholds.outlier_sigma == pytest.approx(2.5)
        assert thresholds.top_n == 5
        assert isinstance(thresholds.top_n, int)
        assert thresholds.operator_role == "Shift Lead"
        # Untouched options keep their defaults
        assert thresholds.min_points == DEFAULT_THRESHOLDS.min_points

    def test_bad_value_falls_back_to_default(self, mocker, caplog):
        mocker.patch("builtins.open", mock_open(read_data=FAKE_THRESHOLDS_INI))
        mocker.patch("os.path.exists", return_value=True)

        with caplog.at_level(logging.WARNING):
            thresholds = config_loader.load_analytics_thresholds()

        assert thresholds.qaf_good == DEFAULT_THRESHOLDS.qaf_good
        assert "qaf_good" in caplog.text

    def test_unknown_option_is_reported(self, mocker, caplog):
        mocker.patch("builtins.open", mock_open(read_data=FAKE_THRESHOLDS_INI))
        mocker.patch("os.path.exists", return_value=True)

        with caplog.at_level(logging.WARNING):
            config_loader.load_analytics_thresholds()

        assert "mystery_knob" in caplog.text
