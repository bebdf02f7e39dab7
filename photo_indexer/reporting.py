import csv
import logging
from pathlib import Path
from typing import List

from .models import ScanReport


class ReportGenerator:
    def __init__(self, report: ScanReport):
        self.report = report

    def log_summary(self):
        """
        Logs one line per tree, then every skipped or failed item.
        """
        for tree in self.report.trees:
            name = tree.marker or tree.marker_path
            if tree.status == "done":
                logging.info(f"[{name}] added={tree.added} known={tree.known} failed={len(tree.failures)}")
            else:
                logging.warning(f"[{name}] {tree.status}: {tree.error}")

        failures = self.report.failures
        if failures:
            logging.warning(f"{len(failures)} file(s) skipped:")
            for failure in failures:
                logging.warning(f"  {failure.stage}: {failure.path} ({failure.error})")

        logging.info(
            f"Totals: {self.report.added} added, {self.report.known} already known, "
            f"{len(failures)} skipped"
        )

    def rows(self) -> List[list]:
        rows = []
        for tree in self.report.trees:
            if tree.status in ("skipped", "failed"):
                rows.append([str(tree.marker_path), tree.marker or "", "tree", tree.status, tree.error or ""])
            for failure in tree.failures:
                rows.append([str(failure.path), tree.marker or "", "file", failure.stage, failure.error])
        return rows

    def write_csv(self, output_csv: Path):
        """Writes skipped trees and failed files to a CSV for follow-up."""
        headers = ["Path", "Marker", "Level", "Reason", "Error"]
        rows = self.rows()
        with open(output_csv, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            writer.writerow(headers)
            writer.writerows(rows)
        logging.info(f"Wrote {len(rows)} problem(s) to {output_csv}")
