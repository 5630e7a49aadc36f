"""Confirmation dialog used before destructive actions."""

from __future__ import annotations

from kivymd.uix.button import MDFlatButton
from kivymd.uix.dialog import MDDialog


def confirm_delete(text: str, on_confirm) -> MDDialog:
    """Open a dialog asking to confirm a delete and return it.

    ``on_confirm`` is called with no arguments when the user accepts.
    """

    dialog = None

    def _accept(*_):
        dialog.dismiss()
        on_confirm()

    dialog = MDDialog(
        text=text,
        buttons=[
            MDFlatButton(text="Cancel", on_release=lambda *_: dialog.dismiss()),
            MDFlatButton(text="Delete", on_release=_accept),
        ],
    )
    dialog.open()
    return dialog
