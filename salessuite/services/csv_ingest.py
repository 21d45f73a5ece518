"""
CSV ingestion for the client data validator.

Deliberately naive: lines are split on every comma and all double quotes are
stripped. Commas inside quoted fields will misparse; uploads are validated
exactly as this parser reads them.
"""
from typing import Dict, List, Tuple

from salessuite.errors import ValidationInputError


def decode_upload(data: bytes) -> str:
    """Decode an uploaded file as UTF-8, tolerating a byte-order mark."""
    try:
        return data.decode('utf-8-sig')
    except UnicodeDecodeError:
        raise ValidationInputError("The file must be a UTF-8 encoded CSV.")


def _split(line: str) -> List[str]:
    return [value.strip().replace('"', '') for value in line.split(',')]


def parse_csv(text: str) -> Tuple[List[str], List[Dict[str, str]]]:
    """
    Parse CSV text into headers and row dicts.

    Args:
        text: File contents; first line is the header row.

    Returns:
        (headers, rows) where each row maps every header to its value, or ''
        when the line has fewer values than headers.

    Raises:
        ValidationInputError: If the text is empty.
    """
    if not text or not text.strip():
        raise ValidationInputError("The CSV file is empty.")

    lines = text.strip().split('\n')
    headers = _split(lines[0])

    rows = []
    for line in lines[1:]:
        values = _split(line)
        rows.append({
            header: values[index] if index < len(values) else ''
            for index, header in enumerate(headers)
        })
    return headers, rows
