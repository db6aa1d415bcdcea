"""
Backup export and import.

The backup document is exactly the persisted snapshot document, pretty
printed. Import is all-or-nothing: a document that fails the structural
check or model validation is rejected as a whole.
"""

import json
from typing import Any, Mapping, Union

from pydantic import ValidationError

from local_ledger.exceptions import ImportRejectedError
from local_ledger.models.ledger import LedgerSnapshot
from local_ledger.services.storage.migration import snapshot_from_document

REQUIRED_SECTIONS = ("profile", "settings")

# chitFunds, otherSavings and notificationHistory postdate these and may be absent
REQUIRED_COLLECTIONS = ("incomes", "expenses", "loans", "borrowed", "reminders")


def export_snapshot(snapshot: LedgerSnapshot) -> str:
    """Pretty-printed camelCase JSON for the whole ledger."""
    return json.dumps(snapshot.to_document(), indent=2, ensure_ascii=False)


def check_structure(raw: Any) -> None:
    """
    Structural sanity check applied before model validation.

    Raises:
        ImportRejectedError: Not an object, or a required section or core
            collection is missing
    """
    if not isinstance(raw, Mapping):
        raise ImportRejectedError("Backup is not a JSON object")
    missing = [key for key in REQUIRED_SECTIONS if not isinstance(raw.get(key), Mapping)]
    if missing:
        raise ImportRejectedError(f"Backup is missing required section(s): {', '.join(missing)}")
    absent = [key for key in REQUIRED_COLLECTIONS if not isinstance(raw.get(key), list)]
    if absent:
        raise ImportRejectedError(f"Backup is missing data collection(s): {', '.join(absent)}")


def parse_backup(source: Union[str, bytes, Mapping[str, Any]]) -> LedgerSnapshot:
    """
    Parse a backup document into a snapshot.

    Args:
        source: JSON text or an already-decoded mapping

    Raises:
        ImportRejectedError: The document is malformed; nothing is imported
    """
    if isinstance(source, (str, bytes)):
        try:
            raw = json.loads(source)
        except ValueError as e:
            raise ImportRejectedError(f"Backup is not valid JSON: {e}")
    else:
        raw = source

    check_structure(raw)
    try:
        return snapshot_from_document(dict(raw))
    except ValidationError as e:
        raise ImportRejectedError(f"Backup failed validation: {e.error_count()} error(s)") from e
