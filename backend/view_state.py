"""Display-only expanded/collapsed state kept apart from the model."""

from __future__ import annotations


class ViewState:
    """Map entity ids to their expanded flag.

    Entities nobody has toggled yet are shown expanded.
    """

    def __init__(self, default: bool = True) -> None:
        self.default = default
        self._expanded: dict[str, bool] = {}

    def is_expanded(self, entity_id: str) -> bool:
        return self._expanded.get(entity_id, self.default)

    def set_expanded(self, entity_id: str, value: bool) -> None:
        self._expanded[entity_id] = bool(value)

    def toggle(self, entity_id: str) -> bool:
        """Flip the flag for ``entity_id`` and return the new value."""

        value = not self.is_expanded(entity_id)
        self._expanded[entity_id] = value
        return value

    def forget(self, entity_id: str) -> None:
        self._expanded.pop(entity_id, None)

    def clear(self) -> None:
        self._expanded.clear()
