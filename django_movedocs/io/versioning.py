"""
Django MoveDocs, derived from Django Ledger created by Miguel Sanda <msanda@arrobalytics.com>.
Copyright© EDMA Group Inc licensed under the GPLv3 Agreement.

Field level diffs between two receipt snapshots, used to build version records.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict


def normalize_value(value: Any) -> Any:
    """Converts a snapshot value into a JSON friendly form that compares by value."""
    if isinstance(value, Decimal):
        # 1000 and 1000.00 are the same amount.
        if value == value.to_integral_value():
            return str(value.quantize(Decimal(1)))
        return str(value.normalize())
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: normalize_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [normalize_value(v) for v in value]
    return value


def diff_snapshots(old: Dict[str, Any], new: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
    """
    Computes the field level differences between two flat snapshots.

    Parameters
    ----------
    old: dict
        Snapshot before the edit.
    new: dict
        Snapshot after the edit.

    Returns
    -------
    dict
        A mapping of field name to {'from': old value, 'to': new value} for every field whose normalized value
        changed. An empty dict means the edit changes nothing.
    """
    changes = dict()
    for key in sorted(set(old) | set(new)):
        old_value = normalize_value(old.get(key))
        new_value = normalize_value(new.get(key))
        if old_value != new_value:
            changes[key] = {
                'from': old_value,
                'to': new_value
            }
    return changes
