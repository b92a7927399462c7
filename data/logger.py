import json
from pathlib import Path
from typing import Any, Dict, Iterator, List


class JsonlLogger:
    """Append-only JSON lines file, one record per line."""

    def __init__(self, path) -> None:
        self.path = Path(path)

    def write(self, record: Dict[str, Any]) -> None:
        self.write_many([record])

    def write_many(self, records: List[Dict[str, Any]]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("a", encoding="utf-8") as f:
            for record in records:
                f.write(json.dumps(record, ensure_ascii=False) + "\n")

    def read(self) -> Iterator[Dict[str, Any]]:
        if not self.path.exists():
            return
        with self.path.open("r", encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if line:
                    yield json.loads(line)
