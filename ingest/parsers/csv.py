from __future__ import annotations

import csv
import io


def parse_csv_records(data: bytes) -> list[dict]:
    text = data.decode("utf-8", errors="replace")
    reader = csv.DictReader(io.StringIO(text))
    if not reader.fieldnames:
        raise ValueError("empty CSV payload")
    return [
        {str(k).strip(): (v or "").strip() for k, v in row.items() if k is not None}
        for row in reader
    ]
