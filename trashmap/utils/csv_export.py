"""CSV export of report listings for the admin dashboard."""

import csv
import io
from typing import Iterable

from trashmap.schemas.reports import WasteReport

CSV_HEADERS = ["ID", "Type", "Status", "Priority", "Address", "Reported By", "Date", "Notes"]


def reports_to_csv(reports: Iterable[WasteReport]) -> str:
    """Render reports as CSV text with every cell quoted."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for report in reports:
        writer.writerow(
            [
                str(report.id),
                report.waste_type.value,
                report.status.value,
                report.priority.value if report.priority else "N/A",
                report.address,
                report.user_name,
                report.created_at.isoformat(),
                report.notes or "",
            ]
        )
    return buffer.getvalue()
