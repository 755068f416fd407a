# plantops/analysis/repository.py
import logging
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional

from ..core.models import HOURS_PER_DAY, HourlyReading, Operator, Parameter
from ..core.utils import clean_value
from ..services.record_client import RecordClient

logger = logging.getLogger(__name__)

HOUR_FIELDS = [f"hour{i}" for i in range(1, HOURS_PER_DAY + 1)]

DEFAULT_COLLECTIONS = {
    'parameters': 'parameter_settings',
    'readings': 'ccr_parameter_data',
    'operators': 'users',
}


def _parse_date(value) -> date:
    """Accepts 'YYYY-MM-DD' or a record store datetime ('YYYY-MM-DD HH:MM:SS.sssZ')."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value or '').strip()
    if not text:
        raise ValueError("missing date")
    return datetime.strptime(text[:10], "%Y-%m-%d").date()


def _quote(value: str) -> str:
    return '"' + str(value).replace('\\', '\\\\').replace('"', '\\"') + '"'


class AnalyticsRepository:
    """
    Reads master data and hourly readings from the record store.
    This is the *only* place record store filters and field names exist.
    """
    def __init__(self, client: RecordClient, collections: Optional[Dict[str, str]] = None):
        self.client = client
        self.collections = dict(DEFAULT_COLLECTIONS)
        if collections:
            self.collections.update({k: v for k, v in collections.items() if v})
        logger.debug(f"AnalyticsRepository initialized with collections {self.collections}")

    # --- Parsing ---

    @staticmethod
    def _parse_parameter(record: Dict[str, Any]) -> Parameter:
        pid = record.get('id')
        name = record.get('parameter')
        if not pid or not name:
            raise ValueError("parameter record without id or name")
        return Parameter(
            id=str(pid),
            name=str(name),
            unit_of_measure=str(record.get('unit_of_measure') or ''),
            category=str(record.get('category') or ''),
            unit=str(record.get('unit') or ''),
            min_value=clean_value(record.get('min_value')),
            max_value=clean_value(record.get('max_value')),
            opc_min_value=clean_value(record.get('opc_min_value')),
            opc_max_value=clean_value(record.get('opc_max_value')),
            pcc_min_value=clean_value(record.get('pcc_min_value')),
            pcc_max_value=clean_value(record.get('pcc_max_value')),
        )

    @staticmethod
    def _parse_reading(record: Dict[str, Any]) -> HourlyReading:
        pid = record.get('parameter_id')
        if not pid:
            raise ValueError("reading record without parameter_id")
        return HourlyReading(
            operator_name=str(record.get('name') or ''),
            parameter_id=str(pid),
            date=_parse_date(record.get('date')),
            hours=tuple(record.get(key) for key in HOUR_FIELDS),
        )

    @staticmethod
    def _parse_operator(record: Dict[str, Any]) -> Operator:
        oid = record.get('id')
        if not oid:
            raise ValueError("user record without id")
        return Operator(
            id=str(oid),
            name=str(record.get('name') or ''),
            role=str(record.get('role') or ''),
            active=bool(record.get('is_active', True)),
        )

    def _parse_all(self, records: Iterable[Dict[str, Any]], parser, kind: str) -> List:
        parsed = []
        skipped = 0
        for record in records:
            try:
                parsed.append(parser(record))
            except (ValueError, TypeError, AttributeError) as e:
                skipped += 1
                logger.warning(f"Skipping malformed {kind} record {record.get('id') if isinstance(record, dict) else record!r}: {e}")
        if skipped:
            logger.warning(f"{skipped} malformed {kind} record(s) skipped")
        return parsed

    # --- Queries ---

    def list_parameters(self, category: Optional[str] = None, unit: Optional[str] = None) -> List[Parameter]:
        """Parameter master data, optionally narrowed to a category and unit."""
        clauses = []
        if category:
            clauses.append(f"category = {_quote(category)}")
        if unit:
            clauses.append(f"unit = {_quote(unit)}")
        records = self.client.list_records(
            self.collections['parameters'],
            filter=' && '.join(clauses) or None,
            sort='parameter',
        )
        parameters = self._parse_all(records, self._parse_parameter, 'parameter')
        logger.info(f"Loaded {len(parameters)} parameter(s) (category={category}, unit={unit})")
        return parameters

    def list_hourly_readings(self, start: date, end: date,
                             parameter_ids: Optional[Iterable[str]] = None) -> List[HourlyReading]:
        """
        Hourly readings dated within [start, end], inclusive.
        When `parameter_ids` is given, readings of other parameters are dropped.
        """
        date_filter = f'date >= "{start.isoformat()}" && date <= "{end.isoformat()}"'
        records = self.client.list_records(
            self.collections['readings'],
            filter=date_filter,
            fields=','.join(['name', 'parameter_id', 'date'] + HOUR_FIELDS),
        )
        if parameter_ids is not None:
            wanted = set(parameter_ids)
            records = [r for r in records if r.get('parameter_id') in wanted]
        readings = self._parse_all(records, self._parse_reading, 'reading')
        logger.info(f"Loaded {len(readings)} hourly reading(s) from {start} to {end}")
        return readings

    def list_operators(self) -> List[Operator]:
        """The user master list; filtering by role and status is left to the engines."""
        records = self.client.list_records(
            self.collections['operators'],
            fields='id,name,role,is_active',
        )
        operators = self._parse_all(records, self._parse_operator, 'user')
        logger.info(f"Loaded {len(operators)} user(s)")
        return operators
