"""Persist the finalized dataset and session reports."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Sequence

from abx_client.config.models import ExportConfig
from abx_client.core.errors import ExportError
from abx_client.protocol.codec import MarketMessage
from abx_client.telemetry.events import SessionReport
from abx_client.telemetry.progress import progress_bar


class ExportStorage:
    """Write the ordered dataset and run summaries to disk.

    The dataset is a JSON array of ``{"assetCode", "orderDirection", "size",
    "cost", "sequenceNum"}`` objects in the order given (ascending sequence
    after finalization). Reports are optional and land in ``reports_dir``.
    """

    def __init__(
        self,
        *,
        reports_dir: Path | None = None,
        progress: bool = False,
    ) -> None:
        self._reports_dir = reports_dir
        self._progress = progress
        if self._reports_dir is not None:
            self._reports_dir.mkdir(parents=True, exist_ok=True)

    # ------------------------------------------------------------------
    # Dataset (JSON array)
    # ------------------------------------------------------------------
    def write_dataset(self, messages: Sequence[MarketMessage], path: Path) -> Path:
        """Write ``messages`` to ``path`` as an indented JSON array."""

        records: List[Dict[str, Any]] = []
        with progress_bar(len(messages), "Exporting", enabled=self._progress) as bar:
            for message in messages:
                records.append(message.to_dict())
                bar.update(1)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with path.open("w", encoding="utf-8") as handle:
                json.dump(records, handle, indent=4, ensure_ascii=False)
                handle.write("\n")
        except OSError as exc:
            raise ExportError(f"Failed to write dataset to {path}: {exc}") from exc
        return path

    # ------------------------------------------------------------------
    # Session report JSON
    # ------------------------------------------------------------------
    def write_session_report(self, report: SessionReport) -> Path | None:
        """Persist ``report`` to ``reports/session_report_YYYYMMDD_HHMMSS.json``."""

        if self._reports_dir is None:
            return None
        stamp = report.finished_at.strftime("%Y%m%d_%H%M%S")
        path = self._reports_dir / f"session_report_{stamp}.json"
        try:
            with path.open("w", encoding="utf-8") as handle:
                json.dump(report.to_dict(), handle, indent=2, ensure_ascii=False)
        except OSError as exc:  # pragma: no cover
            raise ExportError(f"Failed to write session report: {exc}") from exc
        return path


def default_storage(export: ExportConfig, *, progress: bool = False) -> ExportStorage:
    """Factory returning storage configured from the ``export`` section."""

    reports_dir = Path(export.reports_dir) if export.reports_dir else None
    return ExportStorage(reports_dir=reports_dir, progress=progress)


__all__ = ["ExportStorage", "default_storage"]
