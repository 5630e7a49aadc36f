"""Workout, exercise and set entities.

The three classes form a strict ownership tree.  A :class:`Workout` owns its
exercises and an :class:`Exercise` owns its sets.  Children only keep the id
of their owner (``workout_id`` / ``exercise_id``) so navigation upwards goes
through :class:`~backend.store.WorkoutStore` rather than object references.
"""

from __future__ import annotations

import uuid

from backend import SEGMENTS, DEFAULT_REPETITIONS, DEFAULT_WEIGHT


def new_id() -> str:
    """Return a fresh opaque identifier."""

    return uuid.uuid4().hex


class ExerciseSet:
    """Single set of an exercise."""

    def __init__(
        self,
        set_number: int = 1,
        repetitions: str = DEFAULT_REPETITIONS,
        weight: str = DEFAULT_WEIGHT,
        *,
        exercise_id: str | None = None,
        id: str | None = None,
    ) -> None:
        self.id: str = id or new_id()
        self.set_number: int = set_number
        self.repetitions: str = repetitions
        self.weight: str = weight
        self.exercise_id: str | None = exercise_id

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "set_number": self.set_number,
            "repetitions": self.repetitions,
            "weight": self.weight,
        }

    def __repr__(self) -> str:
        return f"ExerciseSet({self.set_number}, {self.repetitions!r}, {self.weight!r})"


class Exercise:
    """Exercise inside a workout.

    A new exercise always starts with exactly one set.  Passing ``sets``
    replaces that default, which is how rows loaded from the database are
    rebuilt.
    """

    def __init__(
        self,
        name: str = "Exercise",
        *,
        workout_id: str | None = None,
        sets: list[ExerciseSet] | None = None,
        repetitions: str = DEFAULT_REPETITIONS,
        weight: str = DEFAULT_WEIGHT,
        id: str | None = None,
    ) -> None:
        self.id: str = id or new_id()
        self.name: str = name
        self.workout_id: str | None = workout_id
        if sets is None:
            sets = [ExerciseSet(1, repetitions, weight)]
        self.sets: list[ExerciseSet] = []
        for exercise_set in sets:
            exercise_set.exercise_id = self.id
            self.sets.append(exercise_set)

    def renumber_sets(self) -> None:
        """Make ``set_number`` match each set's position (1-based)."""

        for index, exercise_set in enumerate(self.sets):
            exercise_set.set_number = index + 1

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "sets": [s.to_dict() for s in self.sets],
        }

    def __repr__(self) -> str:
        return f"Exercise({self.name!r}, sets={len(self.sets)})"


class Workout:
    """Workout belonging to exactly one segment."""

    def __init__(
        self,
        title: str = "Workout",
        segment: str = SEGMENTS[0],
        *,
        exercises: list[Exercise] | None = None,
        id: str | None = None,
    ) -> None:
        if segment not in SEGMENTS:
            raise ValueError(f"Unknown segment '{segment}'")
        self.id: str = id or new_id()
        self.title: str = title
        self.segment: str = segment
        self.exercises: list[Exercise] = []
        for exercise in exercises or []:
            exercise.workout_id = self.id
            self.exercises.append(exercise)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "segment": self.segment,
            "exercises": [e.to_dict() for e in self.exercises],
        }

    def __repr__(self) -> str:
        return f"Workout({self.title!r}, {self.segment!r})"
