# src/storage/report_store.py — v1
"""Versioned report persistence on the local filesystem.

Each save writes an immutable report_v{NNN}.json and refreshes latest.json.
Versions start at 1 and increase per document id; re-analysis never
overwrites an earlier version.
"""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path

from docsim.core.errors import DocumentNotFoundError
from docsim.core.models import AnalysisReport
from docsim.storage import layout
from docsim.storage.models import ReportSummary

logger = logging.getLogger(__name__)


class ReportStore:
    """Filesystem store for analysis reports.

    Args:
        reports_root: Directory holding one sub-directory per document.
    """

    def __init__(self, reports_root: Path | str) -> None:
        self._root = Path(reports_root).expanduser()
        self._root.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    @property
    def root(self) -> Path:
        return self._root

    def next_version(self, document_id: str) -> int:
        """Version number the next saved report for this document will get."""
        versions = self._versions(layout.document_dir(self._root, document_id))
        return (versions[-1] + 1) if versions else 1

    def save(self, report: AnalysisReport) -> Path:
        """Write a report and point latest.json at it.

        Raises:
            FileExistsError: If this document already has a report with the
                same version.
        """
        doc_dir = layout.document_dir(self._root, report.document_id)
        path = layout.report_path(doc_dir, report.version)
        payload = report.model_dump_json(indent=2)
        with self._lock:
            doc_dir.mkdir(parents=True, exist_ok=True)
            self._write(doc_dir, path, payload)
        logger.info(
            "Saved report v%d for %s to %s", report.version, report.document_id, path,
        )
        return path

    def save_next(self, report: AnalysisReport) -> AnalysisReport:
        """Save a report under the next free version of its document.

        The version is chosen and claimed while holding the store lock, and
        the report file is created exclusively, so concurrent saves for the
        same document each get their own version.

        Returns:
            The report as saved, carrying its assigned version.
        """
        doc_dir = layout.document_dir(self._root, report.document_id)
        with self._lock:
            doc_dir.mkdir(parents=True, exist_ok=True)
            version = self.next_version(report.document_id)
            while True:
                versioned = report.model_copy(update={"version": version})
                path = layout.report_path(doc_dir, version)
                try:
                    self._write(doc_dir, path, versioned.model_dump_json(indent=2))
                except FileExistsError:
                    version += 1
                    continue
                break
        logger.info(
            "Saved report v%d for %s to %s", version, report.document_id, path,
        )
        return versioned

    def load_latest(self, document_id: str) -> AnalysisReport | None:
        """Most recent report for a document, or None if never analyzed."""
        path = layout.latest_path(layout.document_dir(self._root, document_id))
        if not path.exists():
            return None
        return _read_report(path)

    def load_version(self, document_id: str, version: int) -> AnalysisReport:
        """Load one specific report version.

        Raises:
            DocumentNotFoundError: If that version was never saved.
        """
        path = layout.report_path(layout.document_dir(self._root, document_id), version)
        if not path.exists():
            raise DocumentNotFoundError(
                f"No report version {version}", document_id=document_id,
            )
        return _read_report(path)

    def history(self, document_id: str) -> list[ReportSummary]:
        """Summaries of every saved version, oldest first."""
        doc_dir = layout.document_dir(self._root, document_id)
        return [
            ReportSummary.from_report(_read_report(layout.report_path(doc_dir, v)))
            for v in self._versions(doc_dir)
        ]

    def list_documents(self) -> list[str]:
        """Ids of every document with at least one saved report, sorted."""
        ids: list[str] = []
        for doc_dir in self._root.iterdir():
            latest = layout.latest_path(doc_dir)
            if not latest.is_file():
                continue
            try:
                ids.append(json.loads(latest.read_text(encoding="utf-8"))["document_id"])
            except (json.JSONDecodeError, KeyError) as e:
                logger.warning("Skipping unreadable report %s: %s", latest, e)
        return sorted(ids)

    def latest_reports(self) -> list[AnalysisReport]:
        """Latest report of every document, ordered by document id."""
        reports = [self.load_latest(document_id) for document_id in self.list_documents()]
        return [r for r in reports if r is not None]

    @staticmethod
    def _write(doc_dir: Path, path: Path, payload: str) -> None:
        with path.open("x", encoding="utf-8") as fh:
            fh.write(payload)
        tmp = layout.latest_path(doc_dir).with_suffix(".tmp")
        tmp.write_text(payload, encoding="utf-8")
        tmp.replace(layout.latest_path(doc_dir))

    @staticmethod
    def _versions(doc_dir: Path) -> list[int]:
        if not doc_dir.is_dir():
            return []
        versions = (layout.report_version(p) for p in doc_dir.iterdir())
        return sorted(v for v in versions if v is not None)


def _read_report(path: Path) -> AnalysisReport:
    return AnalysisReport.model_validate_json(path.read_text(encoding="utf-8"))
