import os
from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True)
class WindowConfig:
    width: int = 1280
    height: int = 720
    fps: int = 60
    title: str = "MindTrials"


@dataclass(frozen=True)
class EngineConfig:
    # pause before the first trial of a block, and between trials
    settle_delay_ms: int = 100
    practice_feedback_ms: int = 800


@dataclass(frozen=True)
class StorageConfig:
    data_dir: Path = Path("data") / "results"
    results_suffix: str = "_results.jsonl"
    pending_file: str = "pending_runs.json"

    def results_path(self, task_id: str) -> Path:
        return self.data_dir / f"{task_id}{self.results_suffix}"

    @property
    def pending_path(self) -> Path:
        return self.data_dir / self.pending_file


@dataclass(frozen=True)
class AppSettings:
    window: WindowConfig = field(default_factory=WindowConfig)
    engine: EngineConfig = field(default_factory=EngineConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    log_level: str = "INFO"


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def load_settings() -> AppSettings:
    data_dir = Path(os.getenv("MINDTRIALS_DATA_DIR", str(StorageConfig.data_dir))).expanduser()
    log_level = os.getenv("MINDTRIALS_LOG_LEVEL", "INFO").strip().upper() or "INFO"
    fps = _int_env("MINDTRIALS_FPS", WindowConfig.fps)
    return AppSettings(
        window=WindowConfig(fps=max(1, fps)),
        storage=StorageConfig(data_dir=data_dir),
        log_level=log_level,
    )
