from sqlite3 import Connection
from typing import Optional
from geokit.utils.validate import Run, TransitionRecord, PolicyRecord
from geokit.storage.db import init_db
from geokit.utils.log import get_logger

logger = get_logger(__name__)


class DAO:
    """
    Encapsulates all inserts/queries against a geokit mission DB.
    """

    def __init__(self, db_path: str):
        """
        Create/connect and apply schema if needed.
        """
        self.conn: Connection = init_db(db_path)

    def add_run(self, run: Run) -> None:
        """
        Insert a new replay run.
        """
        with self.conn:
            self.conn.execute(
                """
                INSERT INTO runs
                  (id, mission, src_file, n_samples, preset)
                VALUES (?, ?, ?, ?, ?)
                """,
                (run.id, run.mission, run.src_file, run.n_samples, run.preset),
            )

    def update_run_samples(self, run_id: str, n_samples: int) -> None:
        with self.conn:
            self.conn.execute(
                "UPDATE runs SET n_samples = ? WHERE id = ?",
                (n_samples, run_id),
            )

    def add_transition(self, rec: TransitionRecord) -> None:
        """
        Record one committed motion-state transition.
        """
        with self.conn:
            self.conn.execute(
                "INSERT INTO transitions (run_id, seq, ts_ms, state) VALUES (?, ?, ?, ?)",
                (rec.run_id, rec.seq, rec.ts_ms, rec.state),
            )

    def add_policy(self, rec: PolicyRecord) -> None:
        """
        Record one applied polling policy.
        """
        with self.conn:
            self.conn.execute(
                "INSERT INTO policies (run_id, seq, priority, interval_ms) VALUES (?, ?, ?, ?)",
                (rec.run_id, rec.seq, rec.priority, rec.interval_ms),
            )

    def get_runs(self) -> list[Run]:
        rows = self.conn.execute(
            "SELECT id, mission, src_file, n_samples, preset FROM runs ORDER BY rowid"
        ).fetchall()
        return [Run(**dict(row)) for row in rows]

    def get_transitions(self, run_id: Optional[str] = None) -> list[TransitionRecord]:
        """
        Return transitions, optionally restricted to one run, in commit order.
        """
        sql = "SELECT run_id, seq, ts_ms, state FROM transitions"
        params: tuple = ()
        if run_id is not None:
            sql += " WHERE run_id = ?"
            params = (run_id,)
        sql += " ORDER BY rowid"
        return [TransitionRecord(**dict(row)) for row in self.conn.execute(sql, params)]

    def get_policies(self, run_id: Optional[str] = None) -> list[PolicyRecord]:
        sql = "SELECT run_id, seq, priority, interval_ms FROM policies"
        params: tuple = ()
        if run_id is not None:
            sql += " WHERE run_id = ?"
            params = (run_id,)
        sql += " ORDER BY rowid"
        return [PolicyRecord(**dict(row)) for row in self.conn.execute(sql, params)]

    def get_state_counts(self) -> list[tuple[str, int]]:
        """
        Count transitions per target state across all runs.
        """
        rows = self.conn.execute(
            "SELECT state, COUNT(*) AS n FROM transitions GROUP BY state ORDER BY state"
        ).fetchall()
        return [(r["state"], r["n"]) for r in rows]
