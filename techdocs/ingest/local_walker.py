"""
Local directory ingestion.

Walks a directory depth-first, applying the same inclusion rules as the
GitHub fetcher, and returns unranked FileRecords.
"""

import logging
import os
from pathlib import Path
from typing import List, Optional

from techdocs.errors import PerFileIngestionSkip
from techdocs.ingest import rules
from techdocs.models import FileRecord

logger = logging.getLogger(__name__)


class SourceWalker:
    """
    Enumerates eligible files beneath a root directory.

    Usage:
        walker = SourceWalker()
        records = walker.walk("/path/to/project")
    """

    def __init__(self, max_depth: int = rules.MAX_DEPTH):
        self.max_depth = max_depth
        self.skipped: List[PerFileIngestionSkip] = []

    def walk(self, root: str) -> List[FileRecord]:
        """
        Collect FileRecords for every eligible file under root.

        Unreadable directories and files are logged and skipped, never fatal.

        Args:
            root: Directory to walk

        Returns:
            FileRecords in traversal order (rank them afterwards)
        """
        self.skipped = []
        base = Path(root)
        records: List[FileRecord] = []
        self._walk_directory(base, base, records, depth=0)
        logger.info(
            f"Collected {len(records)} files from {root} ({len(self.skipped)} skipped)"
        )
        return records

    def _walk_directory(
        self,
        current: Path,
        base: Path,
        records: List[FileRecord],
        depth: int,
    ) -> None:
        if depth > self.max_depth:
            return

        try:
            entries = sorted(os.scandir(current), key=lambda entry: entry.name)
        except OSError as e:
            logger.warning(f"Error reading directory {current}: {e}")
            return

        for entry in entries:
            relative_path = Path(entry.path).relative_to(base).as_posix()
            if rules.should_skip_path(relative_path):
                continue

            try:
                if entry.is_dir():
                    self._walk_directory(Path(entry.path), base, records, depth + 1)
                elif entry.is_file():
                    size = entry.stat().st_size
                    if not rules.should_include_file(relative_path, size):
                        continue
                    record = self._read_record(Path(entry.path), relative_path, size)
                    if record is not None:
                        records.append(record)
            except OSError as e:
                self._skip(relative_path, str(e))

    def _read_record(self, path: Path, relative_path: str, size: int) -> Optional[FileRecord]:
        try:
            raw = path.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            self._skip(relative_path, f"read failed: {e}")
            return None

        content = rules.prepare_content(raw)
        if content is None:
            self._skip(relative_path, "binary content")
            return None

        return FileRecord(
            path=relative_path,
            content=content,
            language=rules.detect_language(relative_path),
            size=size,
        )

    def _skip(self, path: str, reason: str) -> None:
        skip = PerFileIngestionSkip(path=path, reason=reason)
        self.skipped.append(skip)
        logger.warning(str(skip))
