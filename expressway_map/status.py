"""
User-facing status channel.

A single slot: every new message replaces the previous one, there is no
queue. Rendering is delegated to a callback so the channel itself stays
UI-agnostic; notify_renderer() gives the NiceGUI rendering.
"""

from dataclasses import dataclass
from typing import Callable, Optional

SEVERITIES = ('info', 'success', 'error')

# ui.notify types per severity
NOTIFY_TYPES = {
    'info': 'info',
    'success': 'positive',
    'error': 'negative',
}


@dataclass(frozen=True)
class StatusMessage:
    text: str
    severity: str = 'info'


class StatusChannel:
    def __init__(self, renderer: Optional[Callable[[Optional[StatusMessage]], None]] = None):
        self._current: Optional[StatusMessage] = None
        self._renderer = renderer

    @property
    def current(self) -> Optional[StatusMessage]:
        return self._current

    def show(self, text: str, severity: str = 'info') -> StatusMessage:
        if severity not in SEVERITIES:
            raise ValueError(f"Unknown severity {severity!r}; expected one of {SEVERITIES}")
        self._current = StatusMessage(text=text, severity=severity)
        self._render()
        return self._current

    def clear(self) -> None:
        self._current = None
        self._render()

    def _render(self):
        if self._renderer:
            self._renderer(self._current)


def notify_renderer(label=None) -> Callable[[Optional[StatusMessage]], None]:
    """
    Render status messages with ui.notify, mirrored into an optional label.

    The label is the single slot the user can read back; toasts are transient.
    """
    from nicegui import ui

    def render(message: Optional[StatusMessage]):
        if label is not None:
            label.set_text(message.text if message else '')
            label.classes(
                remove='text-green-400 text-red-400 text-gray-300',
                add={'success': 'text-green-400', 'error': 'text-red-400'}.get(
                    message.severity if message else '', 'text-gray-300'),
            )
        if message is not None:
            ui.notify(message.text, type=NOTIFY_TYPES[message.severity], position='bottom', timeout=2000)

    return render
