"""Terminal surface for the floating display."""

import logging

from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from zikrminder.db.models import Prompt
from zikrminder.utils.constants import APP_TITLE

logger = logging.getLogger(__name__)

# theme -> (panel style, border style); "system" leaves the terminal's colours alone
THEME_STYLES = {
    "dark": ("white on grey11", "grey50"),
    "light": ("grey11 on grey93", "grey70"),
    "system": ("", "cyan"),
}


class ConsoleSurface:
    """Renders each prompt as a rich panel on the console."""

    def __init__(self, console: Console | None = None, width: int = 48):
        self.console = console or Console()
        self.width = width
        self.theme = "system"
        self.visible: Prompt | None = None

    def show(self, prompt: Prompt) -> None:
        theme = prompt.theme or self.theme
        style, border = THEME_STYLES.get(theme, THEME_STYLES["system"])
        align = "right" if prompt.rtl else "left"

        self.console.print(
            Panel(
                Text(prompt.text, justify=align),
                title=APP_TITLE,
                title_align=align,
                style=style,
                border_style=border,
                width=self.width,
            )
        )
        self.visible = prompt

    def hide(self) -> None:
        if self.visible is not None:
            logger.debug(f"Prompt for adhkar {self.visible.item_id} closed")
        self.visible = None

    def apply_theme(self, theme: str) -> None:
        self.theme = theme
