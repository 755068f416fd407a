# plantops/services/config_loader.py
import os
import logging
from configparser import ConfigParser
from dataclasses import fields
from typing import Dict, Any

logger = logging.getLogger(__name__)

THRESHOLDS_SECTION = 'analytics_thresholds'


def _config_path(filename: str) -> str:
    module_path = os.path.dirname(os.path.abspath(__file__))
    return os.path.join(module_path, '..', '..', 'config', filename)


def load_config(filename: str = 'config.ini', section: str = 'record_store') -> Dict[str, Any]:
    """
    Loads a specific section from the config.ini file.

    Args:
        filename (str): The name of the config file (default: 'config.ini').
        section (str): The [section] in the INI file to load.

    Returns:
        Dict[str, Any]: A dictionary of the settings.

    Raises:
        FileNotFoundError: If the config.ini file cannot be found.
        KeyError: If the specified section is not found in the file.
    """
    config_path = _config_path(filename)

    if not os.path.exists(config_path):
        logger.error(f"Configuration file not found at: {config_path}")
        raise FileNotFoundError(f"Configuration file not found at: {config_path}")

    parser = ConfigParser()
    parser.read(config_path)

    if not parser.has_section(section):
        logger.error(f"Section '{section}' not found in the {config_path} file")
        raise KeyError(f"Section '{section}' not found in the {config_path} file")

    # Keys that should be converted to integers
    int_keys = {'timeout', 'per_page', 'max_retries', 'retry_delay'}

    config: Dict[str, Any] = {}
    for key, value in parser.items(section):
        if key in int_keys and value:
            try:
                config[key] = int(value)
            except ValueError:
                logger.warning(f"Invalid integer value for '{key}': {value}. Using None.")
                config[key] = None
        else:
            config[key] = value

    return config


def load_analytics_thresholds(filename: str = 'config.ini'):
    """
    Loads analytics thresholds from the config file.

    If the [analytics_thresholds] section doesn't exist or any option is
    missing, the corresponding default value is used. Options with an
    unparsable value are logged and fall back to their default.

    Returns:
        AnalyticsThresholds: thresholds with config overrides applied
    """
    from ..analysis.models import AnalyticsThresholds, DEFAULT_THRESHOLDS

    config_path = _config_path(filename)

    if not os.path.exists(config_path):
        logger.info(f"Config file not found at {config_path}, using default analytics thresholds")
        return DEFAULT_THRESHOLDS

    parser = ConfigParser()
    parser.read(config_path)

    if not parser.has_section(THRESHOLDS_SECTION):
        logger.debug(f"No [{THRESHOLDS_SECTION}] section in config, using defaults")
        return DEFAULT_THRESHOLDS

    getters = {
        int: parser.getint,
        float: parser.getfloat,
        str: parser.get,
    }

    kwargs = {}
    for f in fields(AnalyticsThresholds):
        if not parser.has_option(THRESHOLDS_SECTION, f.name):
            continue
        getter = getters.get(f.type, parser.get)
        try:
            kwargs[f.name] = getter(THRESHOLDS_SECTION, f.name)
        except ValueError as e:
            logger.warning(f"Invalid value for '{f.name}': {e}. Using default.")

    unknown = set(parser.options(THRESHOLDS_SECTION)) - {f.name for f in fields(AnalyticsThresholds)}
    for option in sorted(unknown):
        logger.warning(f"Unknown option '{option}' in [{THRESHOLDS_SECTION}], ignored.")

    logger.info(f"Loaded analytics thresholds from {config_path} ({len(kwargs)} custom parameters)")
    return AnalyticsThresholds(**kwargs)
