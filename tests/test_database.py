import sqlite3

import pytest

from backend.database import WorkoutDatabase
from backend.models import Workout, Exercise, ExerciseSet
from backend.store import WorkoutStore


def _reload(db):
    store = WorkoutStore(db)
    store.load()
    return store


def test_schema_created(db):
    with sqlite3.connect(db.db_path) as conn:
        tables = {
            r[0]
            for r in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
        }
    assert {"workouts", "exercises", "exercise_sets"} <= tables


def test_insert_workout_with_children(db, count_rows):
    w = Workout("Pull", "back", exercises=[Exercise("Row"), Exercise("Curl")])
    db.insert(w)
    assert count_rows(db, "workouts") == 1
    assert count_rows(db, "exercises") == 2
    assert count_rows(db, "exercise_sets") == 2
    [loaded] = db.query_all()
    assert loaded.to_dict() == w.to_dict()


def test_query_all_sorted_by_title(db):
    for title in ("Workout 2", "Arms", "Workout 1"):
        db.insert(Workout(title, "legs"))
    assert [w.title for w in db.query_all()] == ["Arms", "Workout 1", "Workout 2"]


def test_segment_check_constraint(db):
    with sqlite3.connect(db.db_path) as conn:
        with pytest.raises(sqlite3.IntegrityError):
            conn.execute(
                "INSERT INTO workouts (id, title, segment) VALUES ('x', 't', 'arms')"
            )


def test_unsupported_entity(db):
    with pytest.raises(TypeError):
        db.insert(object())


def test_store_round_trip(db_store, db):
    w = db_store.workouts_for_segment("chest")[0]
    ex = db_store.add_exercise(w.id)
    db_store.add_exercise(w.id)
    db_store.add_set(ex.id)
    db_store.add_set(ex.id)
    db_store.remove_set(ex.id)
    db_store.rename_workout(w.id, "Push")
    db_store.rename_exercise(ex.id, "Bench")
    db_store.edit_set(ex.sets[1].id, repetitions="8", weight="80 kg")

    reloaded = _reload(db)
    assert {x.id: x.to_dict() for x in reloaded.workouts} == {
        x.id: x.to_dict() for x in db_store.workouts
    }
    loaded = reloaded.get_exercise(ex.id)
    assert [s.set_number for s in loaded.sets] == [1, 2]
    assert loaded.sets[1].weight == "80 kg"
    assert loaded.workout_id == w.id


def test_delete_exercise_leaves_no_orphans(db_store, db, count_rows):
    w = db_store.workouts_for_segment("back")[0]
    db_store.add_exercise(w.id)
    ex = db_store.add_exercise(w.id)
    db_store.add_set(ex.id)
    assert count_rows(db, "exercise_sets") == 3
    assert db_store.delete_exercise(w.id, ex.id)
    assert count_rows(db, "exercises") == 1
    assert count_rows(db, "exercise_sets") == 1


def test_delete_workout_cascades_in_database(db_store, db, count_rows):
    w = db_store.create_workout("legs")
    ex = db_store.add_exercise(w.id)
    db_store.add_set(ex.id)
    assert db_store.delete_workout(w.id)
    assert count_rows(db, "workouts") == 3
    assert count_rows(db, "exercises") == 0
    assert count_rows(db, "exercise_sets") == 0


def test_exercise_order_preserved(db_store, db):
    w = db_store.workouts_for_segment("back")[0]
    names = [db_store.add_exercise(w.id).name for _ in range(3)]
    first = w.exercises[0]
    db_store.delete_exercise(w.id, first.id)
    db_store.add_exercise(w.id)
    loaded = _reload(db).get_workout(w.id)
    assert [e.name for e in loaded.exercises] == names[1:] + ["Exercise 3"]


def test_reopen_existing_database(tmp_path):
    path = tmp_path / "workout.db"
    WorkoutDatabase(path).insert(Workout("Legs A", "legs"))
    assert [w.title for w in WorkoutDatabase(path).query_all()] == ["Legs A"]


def test_errors_are_logged_and_raised(db, caplog):
    w = Workout("Dup", "back")
    db.insert(w)
    with pytest.raises(sqlite3.IntegrityError):
        db.insert(w)
    assert "Database operation failed" in caplog.text


class FailingDatabase(WorkoutDatabase):
    """Database whose writes fail once ``broken`` is set."""

    broken = False

    def _check(self):
        if self.broken:
            raise sqlite3.OperationalError("disk I/O error")

    def insert(self, entity):
        self._check()
        super().insert(entity)

    def update(self, entity):
        self._check()
        super().update(entity)

    def delete(self, entity):
        self._check()
        super().delete(entity)


@pytest.fixture
def failing_store(tmp_path):
    db = FailingDatabase(tmp_path / "workout.db")
    store = WorkoutStore(db)
    store.ensure_segment_defaults()
    return store


def test_failed_insert_leaves_store_unchanged(failing_store):
    store = failing_store
    w = store.workouts_for_segment("back")[0]
    ex = store.add_exercise(w.id)
    seen = []
    store.bind(seen.append)
    store.db.broken = True
    with pytest.raises(sqlite3.OperationalError):
        store.create_workout("back")
    with pytest.raises(sqlite3.OperationalError):
        store.add_exercise(w.id)
    with pytest.raises(sqlite3.OperationalError):
        store.add_set(ex.id)
    assert store.segment_count("back") == 1
    assert w.exercises == [ex]
    assert len(ex.sets) == 1
    assert seen == []


def test_failed_delete_leaves_store_unchanged(failing_store):
    store = failing_store
    extra = store.create_workout("back")
    first = store.add_exercise(extra.id)
    second = store.add_exercise(extra.id)
    store.add_set(first.id)
    store.db.broken = True
    with pytest.raises(sqlite3.OperationalError):
        store.remove_set(first.id)
    with pytest.raises(sqlite3.OperationalError):
        store.delete_exercise(extra.id, second.id)
    with pytest.raises(sqlite3.OperationalError):
        store.delete_workout(extra.id)
    assert [s.set_number for s in first.sets] == [1, 2]
    assert extra.exercises == [first, second]
    assert store.get_set(second.sets[0].id) is second.sets[0]
    assert store.segment_count("back") == 2

    store.db.broken = False
    reloaded = _reload(store.db)
    assert reloaded.segment_count("back") == 2
    assert len(reloaded.get_workout(extra.id).exercises) == 2


def test_failed_update_restores_fields(failing_store):
    store = failing_store
    w = store.workouts_for_segment("legs")[0]
    ex = store.add_exercise(w.id)
    s = ex.sets[0]
    store.db.broken = True
    with pytest.raises(sqlite3.OperationalError):
        store.rename_workout(w.id, "Leg day")
    with pytest.raises(sqlite3.OperationalError):
        store.rename_exercise(ex.id, "Squat")
    with pytest.raises(sqlite3.OperationalError):
        store.edit_set(s.id, repetitions="5", weight="100 kg")
    assert w.title == "Workout 1"
    assert ex.name == "Exercise 1"
    assert (s.repetitions, s.weight) == ("10", "75 kg")


class CountingDatabase(WorkoutDatabase):
    connections = 0

    def connect(self):
        self.connections += 1
        return super().connect()


def test_remove_set_uses_one_transaction(tmp_path):
    db = CountingDatabase(tmp_path / "workout.db")
    store = WorkoutStore(db)
    w = store.create_workout("chest")
    ex = store.add_exercise(w.id)
    for _ in range(3):
        store.add_set(ex.id)
    db.connections = 0
    store.remove_set(ex.id)
    assert db.connections == 1
    assert [s.set_number for s in _reload(db).get_exercise(ex.id).sets] == [1, 2, 3]


def test_deleting_a_middle_set_renumbers_rows(db):
    ex = Exercise("Dip", sets=[ExerciseSet(1), ExerciseSet(2), ExerciseSet(3)])
    db.insert(Workout("Push", "chest", exercises=[ex]))
    db.delete(ex.sets[1])
    [loaded] = db.query_all()
    sets = loaded.exercises[0].sets
    assert [s.id for s in sets] == [ex.sets[0].id, ex.sets[2].id]
    assert [s.set_number for s in sets] == [1, 2]


def test_equal_titles_keep_insertion_order(db_store, db):
    created = [db_store.create_workout("legs") for _ in range(3)]
    for workout in created:
        db_store.rename_workout(workout.id, "Leg day")
    expected = [w.id for w in db_store.workouts if w.title == "Leg day"]
    assert expected == [w.id for w in created]
    for _ in range(3):
        assert [w.id for w in db.query_all() if w.title == "Leg day"] == expected
        assert [w.id for w in _reload(db).workouts if w.title == "Leg day"] == expected
