"""Widgets rendering the workout → exercise → set hierarchy.

Widgets never mutate the model directly.  Every action goes through the
:class:`~backend.store.WorkoutStore` passed in, and the screen rebuilds the
affected rows when the store notifies it.  Text fields commit their value
when they lose focus or on enter so rebuilding never steals focus while the
user is typing.
"""

from kivy.metrics import dp
from kivy.uix.behaviors import ButtonBehavior
from kivymd.uix.boxlayout import MDBoxLayout
from kivymd.uix.button import MDIconButton
from kivymd.uix.card import MDCard, MDSeparator
from kivymd.uix.label import MDLabel
from kivymd.uix.textfield import MDTextField

from ui.dialogs import confirm_delete


def _auto_height(layout) -> None:
    layout.bind(minimum_height=layout.setter("height"))


def _commit_on_blur(field: MDTextField, commit) -> None:
    """Call ``commit(text)`` when ``field`` loses focus or enter is pressed."""

    def _on_focus(inst, focused):
        if not focused:
            commit(inst.text)

    field.bind(focus=_on_focus)
    field.bind(on_text_validate=lambda inst: commit(inst.text))


class SetRow(MDBoxLayout):
    """Set number followed by editable repetitions and weight."""

    def __init__(self, store, exercise_set, **kwargs):
        super().__init__(
            orientation="horizontal",
            spacing=dp(12),
            padding=(dp(8), 0),
            size_hint_y=None,
            height=dp(48),
            **kwargs,
        )
        self.store = store
        self.set_id = exercise_set.id
        self.add_widget(
            MDLabel(text=str(exercise_set.set_number), halign="center")
        )
        self.reps_field = MDTextField(
            text=exercise_set.repetitions,
            hint_text="Reps",
            halign="center",
            multiline=False,
        )
        self.weight_field = MDTextField(
            text=exercise_set.weight,
            hint_text="Weight",
            halign="center",
            multiline=False,
        )
        _commit_on_blur(self.reps_field, self._commit_reps)
        _commit_on_blur(self.weight_field, self._commit_weight)
        self.add_widget(self.reps_field)
        self.add_widget(self.weight_field)

    def _commit_reps(self, text: str) -> None:
        if text != self.store.get_set(self.set_id).repetitions:
            self.store.edit_set(self.set_id, repetitions=text)

    def _commit_weight(self, text: str) -> None:
        if text != self.store.get_set(self.set_id).weight:
            self.store.edit_set(self.set_id, weight=text)


class ExerciseCard(MDCard):
    """Card with the exercise header and, when expanded, its sets."""

    def __init__(self, store, exercise, **kwargs):
        super().__init__(
            orientation="vertical",
            padding=dp(20),
            radius=[dp(24)],
            size_hint_y=None,
            **kwargs,
        )
        _auto_height(self)
        self.store = store
        self.exercise_id = exercise.id
        expanded = store.is_expanded(exercise.id)

        header = MDBoxLayout(orientation="horizontal", size_hint_y=None, height=dp(48))
        self.name_field = MDTextField(
            text=exercise.name, hint_text="Exercise name", multiline=False
        )
        _commit_on_blur(self.name_field, self._commit_name)
        header.add_widget(self.name_field)
        header.add_widget(
            MDIconButton(
                icon="chevron-up" if expanded else "chevron-down",
                on_release=lambda *_: store.toggle_exercise_expanded(self.exercise_id),
            )
        )
        self.remove_set_btn = MDIconButton(
            icon="minus",
            disabled=not store.can_remove_set(exercise.id),
            on_release=lambda *_: store.remove_set(self.exercise_id),
        )
        self.add_set_btn = MDIconButton(
            icon="plus", on_release=lambda *_: store.add_set(self.exercise_id)
        )
        self.delete_btn = MDIconButton(
            icon="trash-can-outline",
            disabled=not store.can_delete_exercise(exercise.id),
            on_release=lambda *_: self._confirm_delete(),
        )
        header.add_widget(self.remove_set_btn)
        header.add_widget(self.add_set_btn)
        header.add_widget(self.delete_btn)
        self.add_widget(header)

        if expanded:
            body = MDBoxLayout(orientation="vertical", spacing=dp(8), size_hint_y=None)
            _auto_height(body)
            titles = MDBoxLayout(
                orientation="horizontal",
                spacing=dp(12),
                padding=(dp(8), 0),
                size_hint_y=None,
                height=dp(32),
            )
            for text in ("Set", "Reps", "Weight"):
                titles.add_widget(
                    MDLabel(text=text, halign="center", theme_text_color="Secondary")
                )
            body.add_widget(titles)
            body.add_widget(MDSeparator())
            for index, exercise_set in enumerate(exercise.sets):
                if index:
                    body.add_widget(MDSeparator())
                body.add_widget(SetRow(store, exercise_set))
            self.add_widget(body)

    def _commit_name(self, text: str) -> None:
        if text != self.store.get_exercise(self.exercise_id).name:
            self.store.rename_exercise(self.exercise_id, text)

    def _confirm_delete(self) -> None:
        exercise = self.store.get_exercise(self.exercise_id)
        confirm_delete(
            f"Delete exercise '{exercise.name}'?",
            lambda: self.store.delete_exercise(exercise.workout_id, exercise.id),
        )


class AddRow(ButtonBehavior, MDBoxLayout):
    """Tappable "Add ..." row with a trailing plus icon."""

    def __init__(self, text: str, on_add, **kwargs):
        super().__init__(
            orientation="horizontal",
            padding=(dp(24), dp(12)),
            size_hint_y=None,
            height=dp(56),
            **kwargs,
        )
        self.add_widget(MDLabel(text=text, theme_text_color="Secondary"))
        self.add_widget(
            MDIconButton(icon="plus", on_release=lambda *_: on_add())
        )
        self.bind(on_release=lambda *_: on_add())


class WorkoutSection(MDBoxLayout):
    """Workout title row followed by its exercise cards."""

    def __init__(self, store, workout, **kwargs):
        super().__init__(
            orientation="vertical",
            padding=(0, dp(8)),
            size_hint_y=None,
            **kwargs,
        )
        _auto_height(self)
        self.store = store
        self.workout_id = workout.id
        expanded = store.is_expanded(workout.id)

        header = MDBoxLayout(
            orientation="horizontal",
            padding=(dp(24), dp(12)),
            size_hint_y=None,
            height=dp(64),
        )
        self.title_field = MDTextField(
            text=workout.title, hint_text="Workout title", multiline=False
        )
        _commit_on_blur(self.title_field, self._commit_title)
        header.add_widget(self.title_field)
        self.delete_btn = MDIconButton(
            icon="trash-can-outline",
            disabled=not store.can_delete_workout(workout.id),
            on_release=lambda *_: self._confirm_delete(),
        )
        header.add_widget(self.delete_btn)
        header.add_widget(
            MDIconButton(
                icon="chevron-down" if expanded else "chevron-up",
                on_release=lambda *_: store.toggle_workout_expanded(self.workout_id),
            )
        )
        self.add_widget(header)

        self.exercise_cards = []
        if expanded:
            for exercise in workout.exercises:
                card = ExerciseCard(store, exercise)
                self.exercise_cards.append(card)
                self.add_widget(card)
            self.add_widget(
                AddRow("Add exercise", lambda: store.add_exercise(self.workout_id))
            )

    def _commit_title(self, text: str) -> None:
        if text != self.store.get_workout(self.workout_id).title:
            self.store.rename_workout(self.workout_id, text)

    def _confirm_delete(self) -> None:
        workout = self.store.get_workout(self.workout_id)
        confirm_delete(
            f"Delete workout '{workout.title}'?",
            lambda: self.store.delete_workout(workout.id),
        )
