import json
import logging
from configparser import ConfigParser
from typing import Any, Dict

from .config_loader import THRESHOLDS_SECTION, _config_path, load_analytics_thresholds, load_config
from .record_client import RecordClient

logger = logging.getLogger(__name__)

SECRET_KEYS = ('password', 'token')


def _censor_config(config: Dict[str, Any]) -> str:
    """
    Takes a config dictionary, censors secrets, and returns a formatted JSON string.
    """
    censored_config = {}
    for key, value in config.items():
        if any(secret in str(key).lower() for secret in SECRET_KEYS) and value:
            censored_config[key] = f"***{str(value)[-2:]}"
        else:
            censored_config[key] = value

    return json.dumps(censored_config, indent=2)


def _log_thresholds():
    from ..analysis.models import DEFAULT_THRESHOLDS

    thresholds = load_analytics_thresholds()

    custom_params = []
    parser = ConfigParser()
    if parser.read(_config_path('config.ini')) and parser.has_section(THRESHOLDS_SECTION):
        custom_params = parser.options(THRESHOLDS_SECTION)

    if custom_params:
        logger.info(f"✅ Using analytics thresholds from config ({len(custom_params)} custom parameters)")
    else:
        logger.info(f"ℹ️  Using default analytics thresholds (no [{THRESHOLDS_SECTION}] section in config)")

    logger.info("   All analytics threshold parameters:")
    custom_set = set(custom_params)
    for param in sorted(vars(DEFAULT_THRESHOLDS).keys()):
        current_val = getattr(thresholds, param, None)
        default_val = getattr(DEFAULT_THRESHOLDS, param, None)
        if param in custom_set and current_val != default_val:
            logger.info(f"   • {param} = {current_val} [CUSTOM] (default: {default_val})")
        else:
            logger.info(f"   • {param} = {current_val}")


def check_configurations() -> bool:
    """
    Loads all configs, logs them, and checks the record store connection.
    Returns True if all checks passed, False otherwise.
    """
    all_ok = True

    # --- 1. Load [basic] config ---
    try:
        logger.info("--- [basic] Configuration ---")
        basic_config = load_config(section='basic')
        logger.info(_censor_config(basic_config))
    except (FileNotFoundError, KeyError) as e:
        logger.error(f"Failed to load [basic] config: {e}")
        return False

    # --- 2. Check record store connection ---
    logger.info("--- Checking Record Store Connection ---")
    try:
        store_config = load_config(section='record_store')
        logger.info(f"[record_store] Config: {_censor_config(store_config)}")

        client = RecordClient(
            store_config.get('url'),
            token=store_config.get('token'),
            timeout=store_config.get('timeout'),
            max_retries=store_config.get('max_retries'),
        )
        try:
            if not client.is_connected():
                raise ConnectionError("RecordClient.is_connected() returned False")
        finally:
            client.close()
        logger.info("✅ Record store connection: OK")
    except (KeyError, ValueError, ConnectionError) as e:
        logger.error("❌ Record store connection: FAILED")
        logger.error(f"   Error: {e}")
        all_ok = False

    # --- 3. Check material default ---
    from ..core.models import MaterialType
    material = basic_config.get('default_material')
    if material and MaterialType.parse(material) is None:
        logger.warning(f"⚠️  Unknown default_material '{material}', general bounds will be used")

    # --- 4. Analytics thresholds ---
    logger.info("--- Analytics Thresholds ---")
    try:
        _log_thresholds()
    except (ValueError, KeyError) as e:
        logger.warning(f"⚠️  Could not check analytics thresholds: {e}")
        logger.warning("   This is not critical - defaults will be used during processing")

    return all_ok
