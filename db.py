import json
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any
from uuid import uuid4

from sqlmodel import Field, Session, SQLModel, create_engine, select


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


@dataclass
class RunRecord:
    id: str
    width: int
    height: int
    seed: int | None
    outcome: str
    steps: int
    waves: int
    explored: int
    created_at: str


def _new_record(
    width: int,
    height: int,
    seed: int | None,
    outcome: str,
    steps: int,
    waves: int,
    explored: int,
) -> RunRecord:
    return RunRecord(
        id=str(uuid4()),
        width=width,
        height=height,
        seed=seed,
        outcome=outcome,
        steps=steps,
        waves=waves,
        explored=explored,
        created_at=_utc_now_iso(),
    )


def _shortest_first(runs: list[dict[str, Any]], width: int, height: int, limit: int) -> list[dict[str, Any]]:
    items = [r for r in runs if r["outcome"] == "solved" and r["width"] == width and r["height"] == height]
    items.sort(key=lambda r: (r["steps"], r["explored"]))
    return items[:limit]


class JsonRunRepository:
    """Solve history kept in a single JSON document."""

    def __init__(self, path: str | Path, schema_version: int = 1):
        self.path = Path(path)
        self.schema_version = schema_version
        self._ensure_store()

    def _empty_doc(self) -> dict[str, Any]:
        return {"schema_version": self.schema_version, "runs": {}}

    def _ensure_store(self) -> None:
        if self.path.exists():
            return
        self._write_doc(self._empty_doc())

    def _read_doc(self) -> dict[str, Any]:
        if not self.path.exists():
            return self._empty_doc()
        raw = self.path.read_text(encoding="utf-8").strip()
        if not raw:
            return self._empty_doc()
        doc = json.loads(raw)
        doc.setdefault("schema_version", self.schema_version)
        doc.setdefault("runs", {})
        return doc

    def _write_doc(self, doc: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(doc, indent=2, sort_keys=True), encoding="utf-8")
        tmp_path.replace(self.path)

    def record_run(
        self,
        width: int,
        height: int,
        seed: int | None,
        outcome: str,
        steps: int,
        waves: int,
        explored: int,
    ) -> dict[str, Any]:
        doc = self._read_doc()
        record = asdict(_new_record(width, height, seed, outcome, steps, waves, explored))
        record["seq"] = len(doc["runs"])
        doc["runs"][record["id"]] = record
        doc["schema_version"] = self.schema_version
        self._write_doc(doc)
        return record

    def recent_runs(self, limit: int = 10) -> list[dict[str, Any]]:
        runs = list(self._read_doc()["runs"].values())
        runs.sort(key=lambda r: r.get("seq", 0), reverse=True)
        return runs[:limit]

    def shortest_runs(self, width: int, height: int, limit: int = 10) -> list[dict[str, Any]]:
        return _shortest_first(list(self._read_doc()["runs"].values()), width, height, limit)

    def close(self) -> None:
        pass


class SolveRunModel(SQLModel, table=True):
    __tablename__ = "solve_runs"
    seq: int | None = Field(default=None, primary_key=True)
    id: str = Field(index=True, unique=True)
    width: int
    height: int
    seed: int | None = None
    outcome: str
    steps: int
    waves: int
    explored: int
    created_at: str


def _row_to_dict(row: SolveRunModel) -> dict[str, Any]:
    return {
        "id": row.id,
        "seq": row.seq,
        "width": row.width,
        "height": row.height,
        "seed": row.seed,
        "outcome": row.outcome,
        "steps": row.steps,
        "waves": row.waves,
        "explored": row.explored,
        "created_at": row.created_at,
    }


class SqliteRunRepository:
    """SQLite-backed solve history using SQLModel. Same interface as JsonRunRepository."""

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        url = f"sqlite:///{self.path}"
        self.engine = create_engine(url, connect_args={"check_same_thread": False})
        SQLModel.metadata.create_all(self.engine)

    def record_run(
        self,
        width: int,
        height: int,
        seed: int | None,
        outcome: str,
        steps: int,
        waves: int,
        explored: int,
    ) -> dict[str, Any]:
        record = _new_record(width, height, seed, outcome, steps, waves, explored)
        with Session(self.engine) as session:
            row = SolveRunModel(**asdict(record))
            session.add(row)
            session.commit()
            session.refresh(row)
            return _row_to_dict(row)

    def recent_runs(self, limit: int = 10) -> list[dict[str, Any]]:
        with Session(self.engine) as session:
            stmt = select(SolveRunModel).order_by(SolveRunModel.seq.desc()).limit(limit)
            return [_row_to_dict(row) for row in session.exec(stmt).all()]

    def shortest_runs(self, width: int, height: int, limit: int = 10) -> list[dict[str, Any]]:
        with Session(self.engine) as session:
            stmt = (
                select(SolveRunModel)
                .where(SolveRunModel.outcome == "solved")
                .where(SolveRunModel.width == width)
                .where(SolveRunModel.height == height)
            )
            rows = [_row_to_dict(row) for row in session.exec(stmt).all()]
        return _shortest_first(rows, width, height, limit)

    def close(self) -> None:
        self.engine.dispose()


def open_repo(path: str | Path):
    """Return SqliteRunRepository for .db paths, JsonRunRepository otherwise."""
    path = Path(path)
    if path.suffix == ".db":
        return SqliteRunRepository(path)
    return JsonRunRepository(path)
