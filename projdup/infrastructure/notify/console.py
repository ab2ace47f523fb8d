"""Notifier that prints to the terminal through rich."""

from rich.console import Console as RichConsole

from projdup.domain.transfer.port.notifier import Notifier, Variant

_STYLES: dict[Variant, tuple[str, str]] = {
    Variant.INFO: ("dim", "•"),
    Variant.SUCCESS: ("green", "✓"),
    Variant.WARNING: ("yellow", "⚠"),
    Variant.ERROR: ("red", "✗"),
}


class ConsoleNotifier(Notifier):
    def __init__(self, console: RichConsole | None = None, *, quiet: bool = False) -> None:
        self._console = console or RichConsole(stderr=True)
        self._quiet = quiet

    def notify(self, message: str, variant: Variant = Variant.INFO) -> None:
        if self._quiet and variant is Variant.INFO:
            return
        style, marker = _STYLES[variant]
        self._console.print(f"[{style}]{marker}[/{style}] {message}", highlight=False)
