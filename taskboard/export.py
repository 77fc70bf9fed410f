# PURPOSE: flat CSV rendering of an export projection.

import csv
import io
from collections.abc import Iterable

from .models import TaskExportRow

CSV_HEADER = ("title", "description", "priority", "dueDate", "status", "completed")


def render_csv(rows: Iterable[TaskExportRow]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for row in rows:
        writer.writerow(
            (
                row.title,
                row.description or "",
                row.priority,
                row.due_date.isoformat() if row.due_date else "",
                row.status,
                "true" if row.completed else "false",
            )
        )
    return buf.getvalue()
