"""In-memory workout hierarchy with the mutations used by the gym screen.

:class:`WorkoutStore` owns every :class:`~backend.models.Workout` together
with its exercises and sets.  All mutations run synchronously and, when a
database is attached, are written through to it before the call returns.

Deleting the last workout of a segment, the last exercise of a workout or
the last set of an exercise is refused: the method returns ``False`` and
nothing changes.  Callers are expected to check :meth:`can_delete_workout`,
:meth:`can_delete_exercise` or :meth:`can_remove_set` before offering the
action.  Unknown ids raise :class:`KeyError`.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Callable, TYPE_CHECKING

from backend import (
    SEGMENTS,
    DEFAULT_REPETITIONS,
    DEFAULT_WEIGHT,
    DEFAULT_WORKOUT_PREFIX,
    DEFAULT_EXERCISE_PREFIX,
)
from backend.models import Workout, Exercise, ExerciseSet
from backend.view_state import ViewState

if TYPE_CHECKING:
    from backend.database import WorkoutDatabase


DEFAULTS = {
    "repetitions": DEFAULT_REPETITIONS,
    "weight": DEFAULT_WEIGHT,
    "workout_prefix": DEFAULT_WORKOUT_PREFIX,
    "exercise_prefix": DEFAULT_EXERCISE_PREFIX,
}


class WorkoutStore:
    """Ordered-by-title collection of workouts and their subtrees."""

    def __init__(
        self,
        db: "WorkoutDatabase | None" = None,
        *,
        defaults: dict | None = None,
        view_state: ViewState | None = None,
    ) -> None:
        self.db = db
        self.defaults: dict = {**DEFAULTS, **(defaults or {})}
        self.view_state = view_state or ViewState()
        self._workouts: dict[str, Workout] = {}
        self._exercises: dict[str, Exercise] = {}
        self._sets: dict[str, ExerciseSet] = {}
        self._observers: list[Callable[[str], None]] = []

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------
    def bind(self, callback: Callable[[str], None]) -> None:
        """Call ``callback(workout_id)`` after every mutation of a workout."""

        if callback not in self._observers:
            self._observers.append(callback)

    def unbind(self, callback: Callable[[str], None]) -> None:
        if callback in self._observers:
            self._observers.remove(callback)

    def _notify(self, workout_id: str) -> None:
        for callback in list(self._observers):
            callback(workout_id)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------
    def load(self) -> list[Workout]:
        """Replace the in-memory state with the database contents."""

        self._workouts.clear()
        self._exercises.clear()
        self._sets.clear()
        self.view_state.clear()
        if self.db is not None:
            for workout in self.db.query_all():
                self._index(workout)
        logging.debug("Loaded %d workouts", len(self._workouts))
        return self.workouts

    def ensure_segment_defaults(self) -> list[Workout]:
        """Create one workout in every segment that has none."""

        created = []
        for segment in SEGMENTS:
            if not self.segment_count(segment):
                created.append(self.create_workout(segment))
        return created

    def _index(self, workout: Workout) -> None:
        self._workouts[workout.id] = workout
        for exercise in workout.exercises:
            self._index_exercise(exercise)

    def _index_exercise(self, exercise: Exercise) -> None:
        self._exercises[exercise.id] = exercise
        for exercise_set in exercise.sets:
            self._sets[exercise_set.id] = exercise_set

    # ------------------------------------------------------------------
    # Read-only accessors
    # ------------------------------------------------------------------
    @property
    def workouts(self) -> list[Workout]:
        """All workouts sorted by title."""

        return sorted(self._workouts.values(), key=lambda w: w.title)

    def workouts_for_segment(self, segment: str) -> list[Workout]:
        if segment not in SEGMENTS:
            raise ValueError(f"Unknown segment '{segment}'")
        return [w for w in self.workouts if w.segment == segment]

    def segment_count(self, segment: str) -> int:
        return len(self.workouts_for_segment(segment))

    def get_workout(self, workout_id: str) -> Workout:
        try:
            return self._workouts[workout_id]
        except KeyError:
            raise KeyError(f"Workout '{workout_id}' not found") from None

    def get_exercise(self, exercise_id: str) -> Exercise:
        try:
            return self._exercises[exercise_id]
        except KeyError:
            raise KeyError(f"Exercise '{exercise_id}' not found") from None

    def get_set(self, set_id: str) -> ExerciseSet:
        try:
            return self._sets[set_id]
        except KeyError:
            raise KeyError(f"Set '{set_id}' not found") from None

    def is_expanded(self, entity_id: str) -> bool:
        return self.view_state.is_expanded(entity_id)

    # ------------------------------------------------------------------
    # Guard predicates
    # ------------------------------------------------------------------
    def can_delete_workout(self, workout_id: str) -> bool:
        workout = self.get_workout(workout_id)
        return self.segment_count(workout.segment) > 1

    def can_delete_exercise(self, exercise_id: str) -> bool:
        exercise = self.get_exercise(exercise_id)
        return len(self.get_workout(exercise.workout_id).exercises) > 1

    def can_remove_set(self, exercise_id: str) -> bool:
        return len(self.get_exercise(exercise_id).sets) > 1

    # ------------------------------------------------------------------
    # Workouts
    # ------------------------------------------------------------------
    def create_workout(self, segment: str) -> Workout:
        """Add a workout titled ``"Workout N"`` to ``segment``."""

        number = self.segment_count(segment) + 1
        workout = Workout(
            f"{self.defaults['workout_prefix']} {number}", segment
        )
        if self.db is not None:
            self.db.insert(workout)
        self._workouts[workout.id] = workout
        logging.debug("Created workout %s in %s", workout.title, segment)
        self._notify(workout.id)
        return workout

    def delete_workout(self, workout_id: str) -> bool:
        """Delete a workout and everything it owns.

        Returns ``False`` without changes when it is the last workout of
        its segment.
        """

        workout = self.get_workout(workout_id)
        if not self.can_delete_workout(workout_id):
            logging.debug("Refused to delete last workout in %s", workout.segment)
            return False
        if self.db is not None:
            self.db.delete(workout)
        for exercise in workout.exercises:
            self._drop_exercise(exercise)
        workout.exercises.clear()
        del self._workouts[workout_id]
        self.view_state.forget(workout_id)
        logging.debug("Deleted workout %s", workout.title)
        self._notify(workout_id)
        return True

    def toggle_workout_expanded(self, workout_id: str) -> bool:
        self.get_workout(workout_id)
        value = self.view_state.toggle(workout_id)
        self._notify(workout_id)
        return value

    def rename_workout(self, workout_id: str, title: str) -> None:
        workout = self.get_workout(workout_id)
        self._write_fields(workout, title=title)
        self._notify(workout_id)

    def _write_fields(self, entity, **fields) -> None:
        """Set ``fields`` on ``entity`` and persist them.

        The previous values are put back if the database write fails.
        """

        previous = {name: getattr(entity, name) for name in fields}
        for name, value in fields.items():
            setattr(entity, name, value)
        if self.db is None:
            return
        try:
            self.db.update(entity)
        except sqlite3.Error:
            for name, value in previous.items():
                setattr(entity, name, value)
            raise

    # ------------------------------------------------------------------
    # Exercises
    # ------------------------------------------------------------------
    def add_exercise(self, workout_id: str) -> Exercise:
        """Append ``"Exercise N"`` with a single default set."""

        workout = self.get_workout(workout_id)
        exercise = Exercise(
            f"{self.defaults['exercise_prefix']} {len(workout.exercises) + 1}",
            workout_id=workout.id,
            repetitions=self.defaults["repetitions"],
            weight=self.defaults["weight"],
        )
        if self.db is not None:
            self.db.insert(exercise)
        workout.exercises.append(exercise)
        self._index_exercise(exercise)
        self._notify(workout_id)
        return exercise

    def delete_exercise(self, workout_id: str, exercise_id: str) -> bool:
        """Delete an exercise and its sets unless it is the last one."""

        workout = self.get_workout(workout_id)
        exercise = self.get_exercise(exercise_id)
        if exercise.workout_id != workout.id:
            raise KeyError(
                f"Exercise '{exercise_id}' does not belong to workout '{workout_id}'"
            )
        if not self.can_delete_exercise(exercise_id):
            logging.debug("Refused to delete last exercise of %s", workout.title)
            return False
        if self.db is not None:
            self.db.delete(exercise)
        self._drop_exercise(exercise)
        workout.exercises.remove(exercise)
        self._notify(workout_id)
        return True

    def _drop_exercise(self, exercise: Exercise) -> None:
        for exercise_set in exercise.sets:
            self._sets.pop(exercise_set.id, None)
        self._exercises.pop(exercise.id, None)
        self.view_state.forget(exercise.id)

    def toggle_exercise_expanded(self, exercise_id: str) -> bool:
        exercise = self.get_exercise(exercise_id)
        value = self.view_state.toggle(exercise_id)
        self._notify(exercise.workout_id)
        return value

    def rename_exercise(self, exercise_id: str, name: str) -> None:
        exercise = self.get_exercise(exercise_id)
        self._write_fields(exercise, name=name)
        self._notify(exercise.workout_id)

    # ------------------------------------------------------------------
    # Sets
    # ------------------------------------------------------------------
    def add_set(self, exercise_id: str) -> ExerciseSet:
        exercise = self.get_exercise(exercise_id)
        exercise_set = ExerciseSet(
            len(exercise.sets) + 1,
            self.defaults["repetitions"],
            self.defaults["weight"],
            exercise_id=exercise.id,
        )
        if self.db is not None:
            self.db.insert(exercise_set)
        exercise.sets.append(exercise_set)
        self._sets[exercise_set.id] = exercise_set
        self._notify(exercise.workout_id)
        return exercise_set

    def remove_set(self, exercise_id: str) -> bool:
        """Remove the last set and renumber the rest.

        Does nothing and returns ``False`` when only one set is left.
        """

        exercise = self.get_exercise(exercise_id)
        if not self.can_remove_set(exercise_id):
            logging.debug("Refused to remove last set of %s", exercise.name)
            return False
        last = exercise.sets[-1]
        if self.db is not None:
            # Deletes the row and renumbers the remaining ones in one commit.
            self.db.delete(last)
        exercise.sets.pop()
        self._sets.pop(last.id, None)
        exercise.renumber_sets()
        self._notify(exercise.workout_id)
        return True

    def edit_set(
        self,
        set_id: str,
        repetitions: str | None = None,
        weight: str | None = None,
    ) -> None:
        exercise_set = self.get_set(set_id)
        fields = {}
        if repetitions is not None:
            fields["repetitions"] = repetitions
        if weight is not None:
            fields["weight"] = weight
        self._write_fields(exercise_set, **fields)
        self._notify(self.get_exercise(exercise_set.exercise_id).workout_id)
