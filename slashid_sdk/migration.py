"""Bulk import of persons through a CSV upload."""

from __future__ import annotations

import json
from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING

import structlog

from slashid_sdk.person import Bucket, PersonLike
from slashid_sdk.types import MigrationResult

if TYPE_CHECKING:
    from slashid_sdk.client import SlashIdClient

BULK_IMPORT_PATH = "/persons/bulk-import"
CSV_HEADER = (
    "slashid:emails",
    "slashid:phone_numbers",
    "slashid:region",
    "slashid:roles",
    "slashid:groups",
    "slashid:attributes",
    "slashid:password",
)

logger = structlog.get_logger(__name__)


def _csv_line(columns: Iterable[str]) -> str:
    return ",".join('"' + column.replace('"', '""') + '"' for column in columns)


def _person_columns(person: PersonLike) -> tuple[str, ...]:
    attributes = {
        Bucket(bucket).value: values for bucket, values in person.get_all_attributes().items()
    }
    return (
        ",".join(person.get_email_addresses()),
        ",".join(person.get_phone_numbers()),
        person.get_region() or "",
        "",
        ",".join(person.get_groups()),
        json.dumps(attributes, separators=(",", ":"), ensure_ascii=False),
        person.get_legacy_password_to_migrate() or "",
    )


def build_csv(persons: Iterable[PersonLike]) -> str:
    """Render persons in the bulk-import CSV format.

    Every field is quoted, rows end with ``\\n`` and the file ends with a newline.
    """
    lines = [_csv_line(CSV_HEADER)]
    lines.extend(_csv_line(_person_columns(person)) for person in persons)
    return "\n".join(lines) + "\n"


class MigrationExporter:
    """Submit person batches to the bulk import endpoint."""

    def __init__(self, client: SlashIdClient) -> None:
        self._client = client

    def migrate(self, persons: Sequence[PersonLike]) -> MigrationResult:
        """Upload ``persons`` and return the server's per-batch outcome."""
        result = self._client.upload(BULK_IMPORT_PATH, "persons", "persons.csv", build_csv(persons))
        outcome: MigrationResult = result or {}
        logger.info(
            "persons_migrated",
            submitted=len(persons),
            successful_imports=outcome.get("successful_imports"),
            failed_imports=outcome.get("failed_imports"),
        )
        return outcome
