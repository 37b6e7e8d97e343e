from __future__ import annotations

from pathlib import Path
from typing import Any, Sequence

import duckdb

from tbg.core.ids import make_id, now_utc
from tbg.roster import Activity, Group


class BalanceHistoryStore:
    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def connect(self) -> Any:
        return duckdb.connect(str(self.db_path))

    def initialize_schema(self) -> None:
        with self.connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS balance_runs (
                    run_id VARCHAR PRIMARY KEY,
                    created_at TIMESTAMP,
                    activity_id VARCHAR,
                    activity_name VARCHAR,
                    group_count INTEGER,
                    seed BIGINT
                );

                CREATE TABLE IF NOT EXISTS run_groups (
                    run_id VARCHAR,
                    group_id VARCHAR,
                    group_name VARCHAR,
                    target_size INTEGER,
                    member_count INTEGER,
                    group_rating INTEGER,
                    PRIMARY KEY(run_id, group_id)
                );

                CREATE TABLE IF NOT EXISTS run_members (
                    run_id VARCHAR,
                    group_id VARCHAR,
                    participant_id VARCHAR,
                    tag VARCHAR,
                    rating INTEGER,
                    reserve BOOLEAN,
                    PRIMARY KEY(run_id, participant_id)
                );
                """
            )

    def record_assignment(self, activity: Activity, groups: Sequence[Group], seed: int | None = None) -> str:
        self.initialize_schema()
        run_id = make_id("run")
        group_rows = [
            (run_id, g.group_id, g.name, g.target_size, g.current_size, g.group_rating())
            for g in groups
        ]
        member_rows = [
            (run_id, g.group_id, p.participant_id, p.tag, p.rating_for(activity), reserve)
            for g in groups
            for reserve, members in ((False, g.primary), (True, g.reserve))
            for p in members
        ]
        with self.connect() as conn:
            conn.execute(
                "INSERT INTO balance_runs VALUES (?, ?, ?, ?, ?, ?)",
                [run_id, now_utc().replace(tzinfo=None), activity.activity_id, activity.name, len(groups), seed],
            )
            if group_rows:
                conn.executemany("INSERT INTO run_groups VALUES (?, ?, ?, ?, ?, ?)", group_rows)
            if member_rows:
                conn.executemany("INSERT INTO run_members VALUES (?, ?, ?, ?, ?, ?)", member_rows)
        return run_id

    def list_runs(self) -> list[dict[str, Any]]:
        self.initialize_schema()
        with self.connect() as conn:
            rows = conn.execute(
                "SELECT run_id, created_at, activity_name, group_count, seed FROM balance_runs ORDER BY created_at"
            ).fetchall()
        return [
            {"run_id": r[0], "created_at": r[1], "activity": r[2], "group_count": r[3], "seed": r[4]}
            for r in rows
        ]

    def group_ratings(self, run_id: str) -> dict[str, int]:
        self.initialize_schema()
        with self.connect() as conn:
            rows = conn.execute(
                "SELECT group_name, group_rating FROM run_groups WHERE run_id = ? ORDER BY group_name",
                [run_id],
            ).fetchall()
        return {name: int(rating) for name, rating in rows}

    def rating_spread(self, run_id: str) -> int:
        self.initialize_schema()
        with self.connect() as conn:
            row = conn.execute(
                "SELECT MAX(group_rating) - MIN(group_rating) FROM run_groups WHERE run_id = ?",
                [run_id],
            ).fetchone()
        if row is None or row[0] is None:
            raise RuntimeError(f"no recorded groups for run {run_id}")
        return int(row[0])

    def export_runs(self, output_dir: Path) -> list[Path]:
        self.initialize_schema()
        output_dir.mkdir(parents=True, exist_ok=True)
        outputs: list[Path] = []
        with self.connect() as conn:
            outputs.extend(self._export_table(conn, "balance_runs", output_dir / "balance_runs"))
            outputs.extend(self._export_table(conn, "run_groups", output_dir / "run_groups"))
            outputs.extend(self._export_table(conn, "run_members", output_dir / "run_members"))
        return outputs

    def _export_table(self, conn: Any, table: str, stem: Path) -> list[Path]:
        csv_path = stem.with_suffix(".csv")
        parquet_path = stem.with_suffix(".parquet")
        conn.execute(f"COPY (SELECT * FROM {table}) TO '{csv_path.as_posix()}' (HEADER, DELIMITER ',')")
        conn.execute(f"COPY (SELECT * FROM {table}) TO '{parquet_path.as_posix()}' (FORMAT PARQUET)")
        return [csv_path, parquet_path]
