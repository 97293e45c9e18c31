# jobboard/services/export.py
from io import BytesIO
from typing import Any, Dict, Iterable

from openpyxl import Workbook

HEADERS = [
    "Applicant",
    "Email",
    "Mobile Number",
    "Job Title",
    "Technical Skills",
    "Soft Skills",
    "Resume",
    "Applied At",
]

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def applications_workbook(rows: Iterable[Dict[str, Any]], title: str = "Applications") -> bytes:
    """Render already-fetched application rows as an .xlsx file.

    Each row is a dict keyed by the entries of ``HEADERS``; missing keys are
    written as empty cells and list values are joined with commas.
    """
    wb = Workbook()
    ws = wb.active
    ws.title = title[:31]
    ws.append(HEADERS)
    for row in rows:
        values = []
        for header in HEADERS:
            value = row.get(header)
            if isinstance(value, (list, tuple)):
                value = ", ".join(str(v) for v in value)
            values.append(value if value is not None else "")
        ws.append(values)
    buf = BytesIO()
    wb.save(buf)
    return buf.getvalue()
