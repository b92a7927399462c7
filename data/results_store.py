import json
import logging
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from config.settings import StorageConfig
from data.logger import JsonlLogger
from data.models import SessionContext, TrialResult, utc_now_iso

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SaveOutcome:
    success: bool
    fallback: bool = False
    path: Optional[Path] = None
    error: Optional[str] = None


def load_pending_runs(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError):
        logger.warning("Pending runs file %s is unreadable, ignoring it", path)
        return {}
    runs = payload.get("runs") if isinstance(payload, dict) else None
    if isinstance(runs, dict):
        return runs
    return {}


def save_pending_runs(path: Path, runs: Dict[str, Any]) -> None:
    if not runs:
        path.unlink(missing_ok=True)
        return
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(".tmp")
    tmp.write_text(json.dumps({"runs": runs}, ensure_ascii=False, indent=2), encoding="utf-8")
    tmp.replace(path)


class ResultsStore:
    """
    Local persistence for finished blocks.

    Primary target: one JSONL file per task. If that write fails, the block
    is parked in the pending-runs file and flush_pending() tries again later.
    """

    def __init__(self, config: StorageConfig) -> None:
        self.config = config

    def results_path(self, task_id: str) -> Path:
        return self.config.results_path(task_id)

    def save_block(
        self,
        task_id: str,
        block: str,
        results: Sequence[TrialResult],
        session: Optional[SessionContext] = None,
    ) -> SaveOutcome:
        session = session or SessionContext()
        records = [session.enrich(r.to_record()) for r in results]
        path = self.results_path(task_id)
        try:
            JsonlLogger(path).write_many(records)
        except OSError as exc:
            logger.warning("Could not write %d %s results to %s: %s", len(records), task_id, path, exc)
            return self._park(task_id, block, records, str(exc))
        logger.info("Saved %d %s %s results to %s", len(records), task_id, block, path)
        return SaveOutcome(success=True, path=path)

    def flush_pending(self) -> int:
        """Retry parked blocks; returns how many were written."""
        pending_path = self.config.pending_path
        runs = load_pending_runs(pending_path)
        if not runs:
            return 0
        flushed = 0
        for run_id in list(runs):
            run = runs[run_id]
            try:
                JsonlLogger(self.results_path(run["task_id"])).write_many(run["records"])
            except OSError as exc:
                logger.warning("Pending run %s still cannot be written: %s", run_id, exc)
                continue
            del runs[run_id]
            flushed += 1
        save_pending_runs(pending_path, runs)
        if flushed:
            logger.info("Flushed %d pending runs", flushed)
        return flushed

    def pending_count(self) -> int:
        return len(load_pending_runs(self.config.pending_path))

    def load(self, task_id: str) -> List[TrialResult]:
        return [TrialResult.from_record(record) for record in JsonlLogger(self.results_path(task_id)).read()]

    def _park(self, task_id: str, block: str, records: List[Dict[str, Any]], error: str) -> SaveOutcome:
        pending_path = self.config.pending_path
        runs = load_pending_runs(pending_path)
        runs[uuid.uuid4().hex] = {
            "task_id": task_id,
            "block": block,
            "saved_at": utc_now_iso(),
            "error": error,
            "records": records,
        }
        try:
            save_pending_runs(pending_path, runs)
        except OSError as exc:
            logger.error("Fallback save failed too, %d results are lost: %s", len(records), exc)
            return SaveOutcome(success=False, error=f"{error}; fallback: {exc}")
        return SaveOutcome(success=False, fallback=True, path=pending_path, error=error)
