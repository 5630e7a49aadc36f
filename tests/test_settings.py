import json

from backend import settings as app_settings


def test_defaults_written_on_first_run(settings_file):
    assert not settings_file.exists()
    assert app_settings.get_value("default_repetitions") == "10"
    assert settings_file.exists()
    keys = [item["key"] for item in json.loads(settings_file.read_text())]
    assert keys == [item["key"] for item in app_settings.DEFAULT_SETTINGS]


def test_set_value_persists(settings_file):
    app_settings.set_value("default_weight", "40 lb")
    app_settings.reset_cache()
    assert app_settings.get_value("default_weight") == "40 lb"


def test_unknown_key_added(settings_file):
    app_settings.set_value("sound_on", True)
    data = json.loads(settings_file.read_text())
    assert {"key": "sound_on", "value": True, "type": "bool"} in data


def test_corrupt_file_falls_back_to_defaults(settings_file, caplog):
    settings_file.write_text("{not json")
    assert app_settings.get_value("start_segment") == "back"
    assert "Could not read settings" in caplog.text


def test_missing_key_uses_builtin_default(settings_file):
    settings_file.write_text(json.dumps([{"key": "default_weight", "value": "20 kg"}]))
    assert app_settings.get_value("default_weight") == "20 kg"
    assert app_settings.get_value("default_repetitions") == "10"
    assert app_settings.get_value("nope", "fallback") == "fallback"


def test_store_defaults(settings_file):
    app_settings.set_value("exercise_name_prefix", "Lift")
    defaults = app_settings.get_store_defaults()
    assert defaults == {
        "repetitions": "10",
        "weight": "75 kg",
        "workout_prefix": "Workout",
        "exercise_prefix": "Lift",
    }


def test_start_segment_validated(settings_file):
    app_settings.set_value("start_segment", "legs")
    assert app_settings.get_start_segment() == "legs"
    app_settings.set_value("start_segment", "arms")
    assert app_settings.get_start_segment() == "back"
