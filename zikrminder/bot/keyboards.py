"""Inline keyboard builders."""

from telegram import InlineKeyboardButton, InlineKeyboardMarkup


def pause_button(paused: bool, callback_data: str = "pause:toggle") -> InlineKeyboardButton:
    label = "▶️ Resume Reminders" if paused else "⏸ Pause Reminders"
    return InlineKeyboardButton(label, callback_data=callback_data)


def status_keyboard(paused: bool) -> InlineKeyboardMarkup:
    """Keyboard for the status view: pause toggle, list, settings."""
    return InlineKeyboardMarkup(
        [
            [pause_button(paused)],
            [
                InlineKeyboardButton("📿 Adhkar", callback_data="view:list"),
                InlineKeyboardButton("⚙️ Settings", callback_data="view:settings"),
            ],
        ]
    )


def fired_keyboard(paused: bool, item_id: int, holding: bool = False) -> InlineKeyboardMarkup:
    """Keyboard attached to mirrored reminders: pause, dismiss, keep open."""
    if holding:
        hold = InlineKeyboardButton("🔓 Let Close", callback_data=f"prompt:release:{item_id}")
    else:
        hold = InlineKeyboardButton("📌 Keep Open", callback_data=f"prompt:hold:{item_id}")

    return InlineKeyboardMarkup(
        [
            [pause_button(paused, f"pause:fired:{item_id}")],
            [
                InlineKeyboardButton("✖ Dismiss", callback_data=f"prompt:dismiss:{item_id}"),
                hold,
            ],
        ]
    )


def delete_confirm_keyboard(item_id: int) -> InlineKeyboardMarkup:
    """Keyboard for delete confirmation: Confirm, Cancel."""
    return InlineKeyboardMarkup(
        [
            [
                InlineKeyboardButton("🗑 Delete", callback_data=f"delete:{item_id}"),
                InlineKeyboardButton("✗ Cancel", callback_data="cancel:delete"),
            ]
        ]
    )
