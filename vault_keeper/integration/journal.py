"""
Rebalancing phase journal (imperative shell).

Every phase transition of a rebalancing flow is appended here, so a crash
mid-flow can be diagnosed from the journal and the chain's transaction history
instead of being retried on stale assumptions. With a path configured, records
are appended as canonical JSON lines and flushed immediately.
"""

from __future__ import annotations

import time
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..state.canonical import canonical_json_bytes


def _append_jsonl(path: Path, obj: Dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("a", encoding="utf-8") as fh:
        fh.write(canonical_json_bytes(obj).decode("utf-8") + "\n")
        fh.flush()


@dataclass(frozen=True)
class PhaseRecord:
    flow_id: str
    flow: str
    phase: str
    tx_id: Optional[str] = None
    detail: Dict[str, Any] = field(default_factory=dict)
    at: int = 0


class PhaseJournal:
    def __init__(self, path: Optional[str | Path] = None) -> None:
        self._path = Path(path) if path is not None else None
        self._records: List[PhaseRecord] = []
        self._flow_seq = 0

    def new_flow_id(self, flow: str) -> str:
        self._flow_seq += 1
        return f"{flow}-{int(time.time())}-{self._flow_seq}"

    def append(
        self,
        flow_id: str,
        flow: str,
        phase: str,
        *,
        tx_id: Optional[str] = None,
        **detail: Any,
    ) -> PhaseRecord:
        record = PhaseRecord(
            flow_id=flow_id,
            flow=flow,
            phase=phase,
            tx_id=tx_id,
            detail=dict(detail),
            at=int(time.time()),
        )
        self._records.append(record)
        if self._path is not None:
            _append_jsonl(self._path, asdict(record))
        return record

    @property
    def records(self) -> List[PhaseRecord]:
        return list(self._records)

    def phases(self, flow_id: str) -> List[str]:
        return [r.phase for r in self._records if r.flow_id == flow_id]
