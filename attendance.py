"""
Turns the rows scraped from the OASYS attendance table into records.

The report has 8 columns per course row:
  Code | Description | Max. hours | Att. hours | Absent hours | Average % | OD/ML % | Total %
Rows with a different number of cells (headers, totals, notes) are skipped.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from margin import DivisionByZero, Margin, margin, percentage

logger = logging.getLogger(__name__)

ROW_COLUMNS = 8
CODE_COL = 0
DESCRIPTION_COL = 1
MAX_HOURS_COL = 2
ATTENDED_HOURS_COL = 3


@dataclass(frozen=True)
class RawRow:
    cells: List[str]
    markup: str = ""


@dataclass(frozen=True)
class AttendanceRecord:
    course_code: str
    description: str
    max_hours: int
    attended_hours: int
    raw_row_markup: str
    margin: Optional[Margin]

    @property
    def percentage(self):
        if self.max_hours <= 0:
            return 0.0
        return percentage(self.attended_hours, self.max_hours)


def parse_hours(text):
    """Parse an hours cell, anything malformed counts as 0."""
    try:
        return int((text or "").strip())
    except ValueError:
        logger.debug(f"Malformed hours cell {text!r}, using 0")
        return 0


def extract(raw_rows) -> List[AttendanceRecord]:
    records = []
    skipped = 0
    for row in raw_rows:
        cells = [cell.strip() for cell in row.cells]
        if len(cells) != ROW_COLUMNS:
            skipped += 1
            continue

        max_hours = parse_hours(cells[MAX_HOURS_COL])
        attended_hours = parse_hours(cells[ATTENDED_HOURS_COL])
        try:
            row_margin = margin(attended_hours, max_hours)
        except DivisionByZero:
            logger.warning(f"No hours conducted yet for {cells[CODE_COL]}, margin not available")
            row_margin = None

        records.append(AttendanceRecord(
            course_code=cells[CODE_COL],
            description=cells[DESCRIPTION_COL],
            max_hours=max_hours,
            attended_hours=attended_hours,
            raw_row_markup=row.markup,
            margin=row_margin,
        ))

    logger.info(f"Extracted {len(records)} attendance records, skipped {skipped} rows")
    return records


def summary(records):
    """Overall attended/total hours across every course."""
    attended = sum(record.attended_hours for record in records)
    total = sum(record.max_hours for record in records)
    return {
        "attended_hours": attended,
        "max_hours": total,
        "percentage": percentage(attended, total) if total > 0 else 0.0,
    }
