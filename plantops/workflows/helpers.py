"""Helper functions for workflow processing."""
import calendar
import logging
from datetime import date, datetime
from typing import Any, Dict, List, Tuple

from ..analysis.repository import AnalyticsRepository
from ..services.config_loader import load_config
from ..services.record_client import RecordClient

logger = logging.getLogger(__name__)

COLLECTION_KEYS = {
    'parameters': 'parameters_collection',
    'readings': 'readings_collection',
    'operators': 'operators_collection',
}


def get_common_configs() -> Tuple[Dict[str, Any], Dict[str, Any]]:
    """Loads the [basic] and [record_store] sections.

    Returns:
        Tuple of (basic_config, store_config)
    """
    basic_config = load_config(section='basic')
    store_config = load_config(section='record_store')
    return basic_config, store_config


def build_repository(store_config: Dict[str, Any]) -> AnalyticsRepository:
    """Creates a RecordClient from [record_store] and wraps it in a repository."""
    client = RecordClient(
        store_config.get('url'),
        token=store_config.get('token'),
        timeout=store_config.get('timeout'),
        per_page=store_config.get('per_page'),
        max_retries=store_config.get('max_retries'),
        retry_delay=store_config.get('retry_delay'),
    )
    collections = {name: store_config.get(key) for name, key in COLLECTION_KEYS.items()}
    return AnalyticsRepository(client, collections)


def parse_month(month_str: str) -> Tuple[int, int]:
    """Parses 'YYYY-MM' into (year, month).

    Raises:
        ValueError: If the string is not a valid month.
    """
    parsed = datetime.strptime(month_str.strip(), "%Y-%m")
    return parsed.year, parsed.month


def month_dates(year: int, month: int) -> List[date]:
    """Every calendar date of the month, in order."""
    days = calendar.monthrange(year, month)[1]
    return [date(year, month, day) for day in range(1, days + 1)]


def load_thresholds():
    """Load analytics thresholds from config file with fallback to defaults.

    If the config file doesn't exist or the [analytics_thresholds] section
    is missing, the default thresholds are returned.
    """
    from ..services.config_loader import load_analytics_thresholds

    try:
        thresholds = load_analytics_thresholds()
        logger.debug("Loaded analytics thresholds from config")
        return thresholds
    except (OSError, ValueError, KeyError) as e:
        logger.warning(f"Failed to load analytics thresholds: {e}. Using defaults.")
        from ..analysis.models import DEFAULT_THRESHOLDS
        return DEFAULT_THRESHOLDS
