"""
Line-level differential for vendor feed files

Feeds are re-downloaded whole on every run; only the lines that were not
present in the previous copy need to be imported. Previous copies are kept
per vendor and feed under VENDOR_DOWNLOADS_DIR and replaced only after a
successful run.

Author: TM3
Date: 2025-10-17
"""
import os
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from bestprice.core.config import settings

logger = logging.getLogger(__name__)


@dataclass
class LineDiff:
    has_changes: bool
    changed_lines: List[str] = field(default_factory=list)
    total_lines: int = 0
    changed_count: int = 0
    added_lines: int = 0
    removed_lines: int = 0

    @property
    def changed_content(self) -> str:
        return "\n".join(self.changed_lines)


def _non_blank_lines(content: Optional[str]) -> List[str]:
    return [line.rstrip("\r") for line in (content or "").split("\n") if line.strip()]


def compute_changed_lines(new_content: str, previous_content: Optional[str]) -> LineDiff:
    """
    Lines of new_content absent from previous_content, header first

    Blank lines are ignored. Counts exclude the header line.
    """
    new_lines = _non_blank_lines(new_content)
    if not new_lines:
        return LineDiff(has_changes=False)

    header, body = new_lines[0], new_lines[1:]

    if previous_content is None:
        return LineDiff(
            has_changes=bool(body),
            changed_lines=new_lines,
            total_lines=len(new_lines),
            changed_count=len(body),
            added_lines=len(body),
            removed_lines=0,
        )

    previous_lines = _non_blank_lines(previous_content)
    previous_set = set(previous_lines)
    new_set = set(new_lines)

    changed = [line for line in body if line not in previous_set]
    removed = sum(1 for line in previous_lines[1:] if line not in new_set)

    return LineDiff(
        has_changes=bool(changed),
        changed_lines=[header] + changed,
        total_lines=len(new_lines),
        changed_count=len(changed),
        added_lines=len(changed),
        removed_lines=removed,
    )


class PreviousFeedStore:
    """Last successfully processed copy of each vendor feed"""

    def __init__(self, base_dir: Optional[str] = None):
        self.base_dir = base_dir or settings.VENDOR_DOWNLOADS_DIR

    def _path(self, vendor: str, feed: str) -> str:
        return os.path.join(self.base_dir, vendor, f"previous_{feed}.csv")

    def load(self, vendor: str, feed: str) -> Optional[str]:
        path = self._path(vendor, feed)
        if not os.path.exists(path):
            return None
        with open(path, "r", encoding="utf-8") as f:
            return f.read()

    def save(self, vendor: str, feed: str, content: str):
        path = self._path(vendor, feed)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        tmp_path = f"{path}.tmp"
        with open(tmp_path, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(tmp_path, path)
        logger.debug(f"Stored previous {vendor} {feed} feed ({len(content)} characters)")

    def clear(self, vendor: str, feed: str):
        path = self._path(vendor, feed)
        if os.path.exists(path):
            os.remove(path)
