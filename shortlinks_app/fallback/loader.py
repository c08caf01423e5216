"""
Fallback links loaded once at startup.

The fallback set is a static token -> URL mapping read from a CSV file
(``token,url`` per line). It backs up the primary store: a token that is
not an active row in the database is looked up here before giving up.

After loading the mapping is frozen; lookups are plain dict access and
never touch the disk again.
"""

import csv
import logging
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterator, Mapping, Optional, Union

logger = logging.getLogger(__name__)


class FallbackSet:
    """
    Immutable token -> URL mapping.

    Args:
        links: Mapping of token to destination URL (copied on construction)
    """

    def __init__(self, links: Optional[Mapping[str, str]] = None):
        self._links: Mapping[str, str] = MappingProxyType(dict(links or {}))

    def lookup(self, token: str) -> Optional[str]:
        """Return the destination URL for token, or None. Pure memory access."""
        return self._links.get(token)

    def __contains__(self, token: object) -> bool:
        return token in self._links

    def __len__(self) -> int:
        return len(self._links)

    def __iter__(self) -> Iterator[str]:
        return iter(self._links)

    def __repr__(self) -> str:
        return f"FallbackSet({len(self)} links)"


def _is_header(row) -> bool:
    return row[0].strip().lower() == "token"


def _has_undecodable_bytes(row) -> bool:
    # surrogateescape maps each invalid byte to U+DC80..U+DCFF
    return any("\udc80" <= char <= "\udcff" for cell in row for char in cell)


def load_fallback_links(path: Union[str, Path]) -> FallbackSet:
    """
    Load the fallback CSV into a FallbackSet.

    Rules:
    - A missing file yields an empty set (not an error)
    - An unreadable file is logged and yields an empty set
    - A first row starting with "token" is treated as a header
    - A UTF-8 byte order mark is ignored
    - Blank lines are ignored
    - Lines that are not valid UTF-8 are skipped with a warning
    - Rows with fewer than two columns, or an empty token/url, are skipped
      with a warning
    - Later duplicates override earlier ones

    Args:
        path: Path to the CSV file

    Returns:
        Frozen FallbackSet
    """
    path = Path(path)

    if not path.exists():
        logger.info(f"CSV file {path} not found, skipping CSV lookup")
        return FallbackSet()

    links: Dict[str, str] = {}

    try:
        with path.open(newline="", encoding="utf-8-sig", errors="surrogateescape") as handle:
            reader = csv.reader(handle)
            while True:
                try:
                    row = next(reader)
                except StopIteration:
                    break
                except csv.Error as e:
                    logger.warning(f"Skipping unparsable CSV line {reader.line_num} in {path}: {e}")
                    continue

                if not row or not any(cell.strip() for cell in row):
                    continue

                if reader.line_num == 1 and _is_header(row):
                    continue

                if _has_undecodable_bytes(row):
                    logger.warning(f"Skipping CSV line {reader.line_num} in {path}: not valid UTF-8")
                    continue

                if len(row) < 2:
                    logger.warning(f"Skipping malformed CSV line {reader.line_num} in {path}: expected token,url")
                    continue

                token, url = row[0].strip(), row[1].strip()
                if not token or not url:
                    logger.warning(f"Skipping CSV line {reader.line_num} in {path}: empty token or url")
                    continue

                links[token] = url
    except OSError as e:
        logger.warning(f"Failed to read CSV file {path}: {e}")
        return FallbackSet()

    logger.info(f"Loaded {len(links)} links from CSV file {path}")
    return FallbackSet(links)
