"""CSV backup of people (no relationships), compatible with the web client's export."""

import csv
import io
import logging
from collections.abc import Iterable

from famitree.application.store import FamilyTreeStore
from famitree.domain import Person, ValidationError, safe_person_name

logger = logging.getLogger(__name__)

# CSV header -> Person attribute
CSV_COLUMNS = (
    ("id", "id"),
    ("name", "name"),
    ("title", "title"),
    ("address", "address"),
    ("birthDate", "birth_date"),
    ("deathDate", "death_date"),
    ("gender", "gender"),
    ("notes", "notes"),
)

BOM = "\ufeff"


def export_people_csv(people: Iterable[Person]) -> str:
    """Header row plus one row per person, CRLF line endings, prefixed with a BOM for spreadsheets."""
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\r\n")
    writer.writerow([header for header, _ in CSV_COLUMNS])
    for person in people:
        row = []
        for _, attr in CSV_COLUMNS:
            value = getattr(person, attr)
            row.append("" if value is None else getattr(value, "value", value))
        writer.writerow(row)
    return BOM + buf.getvalue()


def import_people_csv(store: FamilyTreeStore, text: str) -> int:
    """Upsert every row with an id through store.import_person. Returns the number of rows imported.

    Headers are matched case-insensitively; rows without an id are skipped; a
    blank name becomes the placeholder. Rows with an invalid gender are skipped
    and logged.
    """
    text = text.removeprefix(BOM)
    reader = csv.reader(io.StringIO(text))
    header = next(reader, None)
    if header is None:
        return 0
    index = {h.strip().lower(): i for i, h in enumerate(header)}
    count = 0
    for line_no, fields in enumerate(reader, start=2):
        if not fields:
            continue

        def cell(column: str) -> str | None:
            i = index.get(column.lower())
            if i is None or i >= len(fields):
                return None
            return fields[i].strip() or None

        person_id = cell("id")
        if not person_id:
            continue
        values = {attr: cell(header_name) for header_name, attr in CSV_COLUMNS}
        values["id"] = person_id
        values["name"] = safe_person_name(values["name"])
        try:
            person = Person(**values)
        except ValidationError as e:
            logger.warning("Skipping CSV line %d: %s", line_no, e)
            continue
        store.import_person(person)
        count += 1
    return count
