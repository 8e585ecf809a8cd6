"""
Run statistics for one indexing run
"""

import logging
import time
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List

logger = logging.getLogger(__name__)


@dataclass
class RunStatistics:
    """
    Counters and cumulative durations for a single run.

    Created by the orchestrator at the start of a run, mutated only by it,
    and returned to the caller when the walk ends.
    """

    # Walk
    files_visited: int = 0
    files_skipped: int = 0
    limit_reached: bool = False

    # Archives
    archives_processed: int = 0
    archives_extracted: int = 0
    archives_without_wads: int = 0
    members_extracted: int = 0
    members_hidden: int = 0
    reference_matches: int = 0

    # Containers
    wads_indexed: int = 0
    lumps_indexed: int = 0
    levels_indexed: int = 0

    # Store
    zips_inserted: int = 0
    wads_inserted: int = 0
    level_mappings_inserted: int = 0
    duplicates: int = 0

    # Timing (seconds)
    checksum_ops: int = 0
    checksum_seconds: float = 0.0
    extraction_seconds: float = 0.0
    parse_seconds: float = 0.0

    # Errors
    archive_errors: int = 0
    checksum_errors: int = 0
    parse_errors: int = 0
    store_errors: int = 0

    started_at: float = field(default_factory=time.monotonic)
    finished_at: float = 0.0

    @property
    def errors(self) -> int:
        return self.archive_errors + self.checksum_errors + self.parse_errors + self.store_errors

    @property
    def elapsed(self) -> float:
        end = self.finished_at or time.monotonic()
        return end - self.started_at

    def finish(self) -> "RunStatistics":
        self.finished_at = time.monotonic()
        return self

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data.pop("started_at")
        data.pop("finished_at")
        data["errors"] = self.errors
        data["elapsed_seconds"] = round(self.elapsed, 3)
        return data

    def summary_lines(self) -> List[str]:
        lines = [
            f"Files visited: {self.files_visited} (skipped {self.files_skipped})",
            f"Archives processed: {self.archives_processed}, extracted: {self.archives_extracted}, "
            f"without WADs: {self.archives_without_wads}",
            f"WADs indexed: {self.wads_indexed}, lumps: {self.lumps_indexed}, levels: {self.levels_indexed}",
            f"Rows inserted: zipfiles={self.zips_inserted}, wads={self.wads_inserted}, "
            f"levels_to_wads={self.level_mappings_inserted}, duplicates skipped={self.duplicates}",
            f"Checksums: {self.checksum_ops} in {self.checksum_seconds:.2f}s; "
            f"extraction {self.extraction_seconds:.2f}s; parsing {self.parse_seconds:.2f}s",
            f"Errors: {self.errors} (archive={self.archive_errors}, checksum={self.checksum_errors}, "
            f"parse={self.parse_errors}, store={self.store_errors})",
            f"Elapsed: {self.elapsed:.2f}s",
        ]
        if self.reference_matches:
            lines.insert(2, f"idGames matches: {self.reference_matches}")
        if self.limit_reached:
            lines.append("Stopped early: file limit reached")
        return lines

    def report(self, log: logging.Logger = logger) -> None:
        for line in self.summary_lines():
            log.info(line)
