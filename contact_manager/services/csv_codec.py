# contact_manager/services/csv_codec.py

import csv
import io
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from contact_manager.core.errors import CsvImportError

CSV_COLUMNS = ["first_name", "last_name", "email", "phone", "company", "notes", "is_favorite"]
MANDATORY_COLUMNS = ("first_name", "last_name", "email")
OPTIONAL_TEXT_COLUMNS = ("phone", "company", "notes")


@dataclass
class ParsedCsv:
    rows: List[Dict[str, Any]] = field(default_factory=list)
    dropped: int = 0


# ===========
# Export
# ===========
def _cell(value: Any) -> str:
    return "" if value is None else str(value)


def export_contacts_csv(contacts: Iterable[Mapping[str, Any]]) -> str:
    """
    Serializa contactos a CSV con cabecera fija. Los opcionales ausentes van vacíos
    y is_favorite como 'true'/'false'.
    """
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(CSV_COLUMNS)
    for c in contacts:
        writer.writerow([
            _cell(c.get("first_name")),
            _cell(c.get("last_name")),
            _cell(c.get("email")),
            _cell(c.get("phone")),
            _cell(c.get("company")),
            _cell(c.get("notes")),
            "true" if c.get("is_favorite") else "false",
        ])
    return buf.getvalue()


# ===========
# Import
# ===========
def _decode(data: Union[bytes, str]) -> str:
    if isinstance(data, str):
        return data.lstrip("\ufeff")
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise CsvImportError(f"CSV file is not valid UTF-8: {e}")


def _row_to_contact(record: Mapping[str, str]) -> Optional[Dict[str, Any]]:
    contact: Dict[str, Any] = {
        name: (record.get(name) or "").strip() for name in MANDATORY_COLUMNS
    }
    if not all(contact[name] for name in MANDATORY_COLUMNS):
        return None
    for name in OPTIONAL_TEXT_COLUMNS:
        contact[name] = (record.get(name) or "").strip() or None
    # Sólo el literal exacto 'true' cuenta como favorito
    contact["is_favorite"] = record.get("is_favorite") == "true"
    return contact


def parse_contacts_csv(data: Union[bytes, str]) -> ParsedCsv:
    """
    Parsea un CSV con cabecera. Errores estructurales abortan todo con CsvImportError;
    filas sin first_name/last_name/email se descartan en silencio.
    Si no queda ninguna fila válida también es un error.
    """
    text = _decode(data)
    reader = csv.reader(io.StringIO(text, newline=""), strict=True)

    try:
        rows = [(reader.line_num, row) for row in reader if row]
    except csv.Error as e:
        raise CsvImportError(f"Failed to parse CSV file: {e}")

    if not rows:
        raise CsvImportError("CSV file is empty")

    header = [h.strip() for h in rows[0][1]]
    missing = [c for c in MANDATORY_COLUMNS if c not in header]
    if missing:
        raise CsvImportError(f"CSV header is missing required columns: {', '.join(missing)}")

    parsed = ParsedCsv()
    for line_no, row in rows[1:]:
        if len(row) != len(header):
            raise CsvImportError(
                f"Failed to parse CSV file: line {line_no} has {len(row)} fields, expected {len(header)}"
            )
        contact = _row_to_contact(dict(zip(header, row)))
        if contact is None:
            parsed.dropped += 1
            continue
        parsed.rows.append(contact)

    if not parsed.rows:
        raise CsvImportError("No valid contacts found in CSV file")
    return parsed
