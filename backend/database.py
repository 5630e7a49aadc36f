"""SQLite storage for workouts, exercises and sets.

Every call opens its own connection and commits before returning, so the
database always matches the in-memory store after a mutation.
"""

from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
import logging
import sqlite3

from backend import DEFAULT_DB_PATH, SCHEMA_PATH
from backend.models import Workout, Exercise, ExerciseSet


class WorkoutDatabase:
    """Persistence collaborator used by :class:`~backend.store.WorkoutStore`."""

    def __init__(
        self,
        db_path: Path = DEFAULT_DB_PATH,
        *,
        schema_path: Path = SCHEMA_PATH,
        create: bool = True,
    ) -> None:
        self.db_path = Path(db_path)
        self.schema_path = Path(schema_path)
        if create:
            self.create_schema()

    @contextmanager
    def connect(self):
        """Yield a connection with foreign keys enabled, committing on exit."""

        conn = sqlite3.connect(str(self.db_path))
        conn.execute("PRAGMA foreign_keys = ON")
        try:
            yield conn
            conn.commit()
        except sqlite3.Error:
            conn.rollback()
            logging.exception("Database operation failed on %s", self.db_path)
            raise
        finally:
            conn.close()

    def create_schema(self) -> None:
        """Create the tables if they do not exist yet."""

        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.schema_path, "r", encoding="utf-8") as fh:
            schema = fh.read()
        with self.connect() as conn:
            conn.executescript(schema)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
    def insert(self, entity) -> None:
        """Insert ``entity`` together with everything it owns."""

        with self.connect() as conn:
            cur = conn.cursor()
            if isinstance(entity, Workout):
                self._insert_workout(cur, entity)
            elif isinstance(entity, Exercise):
                self._insert_exercise(cur, entity)
            elif isinstance(entity, ExerciseSet):
                self._insert_set(cur, entity)
            else:
                raise TypeError(f"Cannot insert {type(entity).__name__}")

    def _insert_workout(self, cur: sqlite3.Cursor, workout: Workout) -> None:
        cur.execute(
            "INSERT INTO workouts (id, title, segment) VALUES (?, ?, ?)",
            (workout.id, workout.title, workout.segment),
        )
        for exercise in workout.exercises:
            self._insert_exercise(cur, exercise)

    def _insert_exercise(self, cur: sqlite3.Cursor, exercise: Exercise) -> None:
        cur.execute(
            "SELECT COALESCE(MAX(position) + 1, 0) FROM exercises WHERE workout_id = ?",
            (exercise.workout_id,),
        )
        position = cur.fetchone()[0]
        cur.execute(
            "INSERT INTO exercises (id, workout_id, name, position) VALUES (?, ?, ?, ?)",
            (exercise.id, exercise.workout_id, exercise.name, position),
        )
        for exercise_set in exercise.sets:
            self._insert_set(cur, exercise_set)

    def _insert_set(self, cur: sqlite3.Cursor, exercise_set: ExerciseSet) -> None:
        cur.execute(
            """
            INSERT INTO exercise_sets (id, exercise_id, set_number, repetitions, weight)
            VALUES (?, ?, ?, ?, ?)
            """,
            (
                exercise_set.id,
                exercise_set.exercise_id,
                exercise_set.set_number,
                exercise_set.repetitions,
                exercise_set.weight,
            ),
        )

    def update(self, entity) -> None:
        """Write the scalar fields of ``entity``."""

        with self.connect() as conn:
            if isinstance(entity, Workout):
                conn.execute(
                    "UPDATE workouts SET title = ?, segment = ? WHERE id = ?",
                    (entity.title, entity.segment, entity.id),
                )
            elif isinstance(entity, Exercise):
                conn.execute(
                    "UPDATE exercises SET name = ? WHERE id = ?",
                    (entity.name, entity.id),
                )
            elif isinstance(entity, ExerciseSet):
                conn.execute(
                    """
                    UPDATE exercise_sets
                       SET set_number = ?, repetitions = ?, weight = ?
                     WHERE id = ?
                    """,
                    (entity.set_number, entity.repetitions, entity.weight, entity.id),
                )
            else:
                raise TypeError(f"Cannot update {type(entity).__name__}")

    def delete(self, entity) -> None:
        """Delete ``entity`` and all rows it owns."""

        with self.connect() as conn:
            cur = conn.cursor()
            if isinstance(entity, Workout):
                cur.execute(
                    """
                    DELETE FROM exercise_sets WHERE exercise_id IN
                        (SELECT id FROM exercises WHERE workout_id = ?)
                    """,
                    (entity.id,),
                )
                cur.execute("DELETE FROM exercises WHERE workout_id = ?", (entity.id,))
                cur.execute("DELETE FROM workouts WHERE id = ?", (entity.id,))
            elif isinstance(entity, Exercise):
                cur.execute(
                    "DELETE FROM exercise_sets WHERE exercise_id = ?", (entity.id,)
                )
                cur.execute("DELETE FROM exercises WHERE id = ?", (entity.id,))
            elif isinstance(entity, ExerciseSet):
                cur.execute("DELETE FROM exercise_sets WHERE id = ?", (entity.id,))
                # Close the gap so set_number stays 1..n within the exercise.
                cur.execute(
                    """
                    UPDATE exercise_sets
                       SET set_number = (
                           SELECT COUNT(*) FROM exercise_sets AS other
                            WHERE other.exercise_id = exercise_sets.exercise_id
                              AND other.set_number <= exercise_sets.set_number
                       )
                     WHERE exercise_id = ?
                    """,
                    (entity.exercise_id,),
                )
            else:
                raise TypeError(f"Cannot delete {type(entity).__name__}")

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def query_all(self) -> list[Workout]:
        """Return every workout with its exercises and sets, sorted by title."""

        with self.connect() as conn:
            cur = conn.cursor()
            cur.execute("SELECT id, title, segment FROM workouts ORDER BY title, rowid")
            workouts = []
            for workout_id, title, segment in cur.fetchall():
                cur.execute(
                    "SELECT id, name FROM exercises WHERE workout_id = ? ORDER BY position",
                    (workout_id,),
                )
                exercises = []
                for exercise_id, name in cur.fetchall():
                    cur.execute(
                        """
                        SELECT id, set_number, repetitions, weight
                          FROM exercise_sets
                         WHERE exercise_id = ?
                         ORDER BY set_number
                        """,
                        (exercise_id,),
                    )
                    sets = [
                        ExerciseSet(number, reps, weight, id=set_id)
                        for set_id, number, reps, weight in cur.fetchall()
                    ]
                    exercises.append(Exercise(name, sets=sets, id=exercise_id))
                workouts.append(
                    Workout(title, segment, exercises=exercises, id=workout_id)
                )
            return workouts

