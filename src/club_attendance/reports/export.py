"""CSV / Excel rendering of report data (kept in memory, never written to disk)."""

from __future__ import annotations

import csv
import io

import pandas as pd

from .service import ReportData

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def to_csv_bytes(data: ReportData) -> bytes:
    out = io.StringIO()
    fieldnames = list(data.rows[0].keys()) if data.rows else []
    writer = csv.DictWriter(out, fieldnames=fieldnames)
    writer.writeheader()
    for row in data.rows:
        writer.writerow(row)
    # utf-8-sig so Excel opens non-ASCII names correctly
    return out.getvalue().encode("utf-8-sig")


def to_excel_bytes(data: ReportData, *, sheet_name: str = "Report") -> bytes:
    output = io.BytesIO()
    with pd.ExcelWriter(output, engine="openpyxl") as writer:
        pd.DataFrame(data.rows).to_excel(writer, index=False, sheet_name=sheet_name[:31])
        if data.summary:
            pd.DataFrame(data.summary).to_excel(writer, index=False, sheet_name="Summary")
    return output.getvalue()
