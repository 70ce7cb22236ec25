"""
Sample parser: read accelerometer recordings from CSV files.

Accepted row layouts (an optional header row is skipped):
  ts_ms,x,y,z
  x,y,z
"""

import csv
from typing import Iterator, Optional

from geokit.motion.types import Sample
from geokit.utils.log import get_logger

logger = get_logger(__name__)


def parse_row(row: list[str]) -> Optional[Sample]:
    """
    Convert one CSV row into a Sample.

    Parameters
    ----------
    row : list[str]
        Raw CSV cells.

    Returns
    -------
    Optional[Sample]
        The parsed sample, or None if the row is not numeric or has the wrong width.
    """
    cells = [c.strip() for c in row if c.strip() != ""]
    try:
        if len(cells) == 4:
            return Sample(x=float(cells[1]), y=float(cells[2]), z=float(cells[3]), ts_ms=int(float(cells[0])))
        if len(cells) == 3:
            return Sample(x=float(cells[0]), y=float(cells[1]), z=float(cells[2]))
    except ValueError:
        return None
    return None


def parse_samples(file_path: str) -> Iterator[Sample]:
    """
    Yield every valid sample of a CSV recording, in file order.
    """
    with open(file_path, "r", encoding="utf-8", newline="") as f:
        for lineno, row in enumerate(csv.reader(f), start=1):
            if not row:
                continue
            sample = parse_row(row)
            if sample is None:
                if lineno > 1:
                    logger.warning("Skipping malformed row %d in %s", lineno, file_path)
                continue
            yield sample
