# src/storage/layout.py — v1
"""Report directory structure definition.

Layout under REPORTS_ROOT:
    {document_dir}/report_v001.json
    {document_dir}/report_v002.json
    {document_dir}/latest.json

Document ids are free-form, so directory names are a sanitized prefix plus
a short digest of the id.
"""

from __future__ import annotations

import hashlib
import re
from pathlib import Path

LATEST_FILE = "latest.json"
REPORT_PREFIX = "report_v"

_REPORT_RE = re.compile(rf"^{REPORT_PREFIX}(\d+)\.json$")


def safe_name(identifier: str) -> str:
    """Filesystem-safe, collision-resistant name for an identifier."""
    safe = "".join(c if c.isalnum() or c in "-_." else "_" for c in identifier)
    digest = hashlib.sha256(identifier.encode("utf-8")).hexdigest()[:12]
    return f"{safe[:64]}_{digest}"


def document_dir(reports_root: Path, document_id: str) -> Path:
    """Return the report directory for a document."""
    return reports_root / safe_name(document_id)


def report_path(doc_dir: Path, version: int) -> Path:
    return doc_dir / f"{REPORT_PREFIX}{version:03d}.json"


def latest_path(doc_dir: Path) -> Path:
    return doc_dir / LATEST_FILE


def report_version(path: Path) -> int | None:
    """Version number encoded in a report file name, or None."""
    m = _REPORT_RE.match(path.name)
    return int(m.group(1)) if m else None
