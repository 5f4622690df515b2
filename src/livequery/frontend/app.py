"""Terminal front end: a prompt_toolkit application hosting one session.

Layout (panel):

    [status] jq -M '.items[]' <input>
    ...filter output, sized by the resize style...
    query> .items[]

The overlay method shows the status and output in a centered frame instead.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from prompt_toolkit.application import Application
from prompt_toolkit.buffer import Buffer
from prompt_toolkit.document import Document
from prompt_toolkit.filters import Condition
from prompt_toolkit.formatted_text import AnyFormattedText, StyleAndTextTuples
from prompt_toolkit.history import InMemoryHistory
from prompt_toolkit.key_binding import KeyBindings, KeyPressEvent
from prompt_toolkit.layout import (
    ConditionalContainer,
    Float,
    FloatContainer,
    HSplit,
    Layout,
    VSplit,
    Window,
)
from prompt_toolkit.layout.containers import Container
from prompt_toolkit.layout.controls import BufferControl, FormattedTextControl
from prompt_toolkit.layout.dimension import Dimension
from prompt_toolkit.styles import Style
from prompt_toolkit.widgets import Frame

from livequery.config.schema import DisplayMethod, SessionOptions
from livequery.frontend.render import to_formatted_text
from livequery.logging import get_logger
from livequery.session.state import Status

if TYPE_CHECKING:
    from prompt_toolkit.input import Input
    from prompt_toolkit.output import Output

    from livequery.session.controller import SessionController

log = get_logger("frontend")

STYLE = Style.from_dict(
    {
        "status.waiting": "bg:#444444 #ffffff",
        "status.running": "bg:#005f87 #ffffff",
        "status.succeed": "bg:#008700 #ffffff",
        "status.error": "bg:#af0000 #ffffff",
        "status.null": "bg:#875f00 #ffffff",
        "header": "#aaaaaa",
        "message": "#ff5f5f",
        "prompt": "bold",
        "prompt.command": "bold #ffaf00",
    }
)

QUERY_PROMPT = "query> "
COMMAND_PROMPT = "command> "

_DEFAULT_COLUMNS = 80


class FilterApp:
    """Interactive query UI. Implements the session Host protocol.

    Create it, pass it as the host when opening a session, then attach()
    the returned controller and await run().
    """

    def __init__(
        self,
        *,
        input: Input | None = None,
        output: Output | None = None,
    ) -> None:
        self._input = input
        self._output_device = output
        self._options = SessionOptions()
        self._controller: SessionController | None = None
        self.buffer: Buffer | None = None
        self.application: Application[bool] | None = None

        # Surface state
        self._surface_visible = False
        self._height = self._options.min_height
        self._output: AnyFormattedText = ""
        self._status = Status.WAITING
        self._header = ""
        self._message: str | None = None

        # Command editing swaps the buffer text for the command text
        self._editing_command = False
        self._saved_query = ""

    # -------------------------------------------------------------------------
    # Setup
    # -------------------------------------------------------------------------

    def attach(self, controller: SessionController) -> None:
        """Bind a session and build the application around it."""
        session = controller.session
        self._controller = controller
        self._options = session.options
        self._height = session.options.min_height

        self.buffer = Buffer(
            document=Document(session.query),
            multiline=False,
            history=InMemoryHistory(list(session.history)),
            on_text_changed=self._on_text_changed,
        )
        self.application = Application(
            layout=Layout(self._build_layout(self.buffer), focused_element=self.buffer),
            key_bindings=self._build_key_bindings(),
            style=STYLE,
            full_screen=session.options.display is DisplayMethod.OVERLAY,
            input=self._input,
            output=self._output_device,
        )

    def _columns(self) -> int:
        if self.application is None:
            return _DEFAULT_COLUMNS
        return self.application.output.get_size().columns

    def _build_layout(self, buffer: Buffer) -> Container:
        visible = Condition(lambda: self._surface_visible)

        status_line = Window(FormattedTextControl(self._status_fragments), height=1)
        output_window = Window(
            FormattedTextControl(lambda: self._output),
            height=lambda: Dimension.exact(self._height),
            wrap_lines=False,
        )
        prompt_line = VSplit(
            [
                Window(
                    FormattedTextControl(self._prompt_fragments),
                    dont_extend_width=True,
                ),
                Window(BufferControl(buffer=buffer), height=1),
            ],
            height=1,
        )

        if self._options.display is DisplayMethod.OVERLAY:
            frame = ConditionalContainer(
                Frame(HSplit([status_line, output_window])),
                filter=visible,
            )
            return FloatContainer(
                content=HSplit([Window(), prompt_line]),
                floats=[Float(frame, width=self._overlay_width)],
            )

        surface = ConditionalContainer(HSplit([status_line, output_window]), filter=visible)
        return HSplit([surface, prompt_line])

    def _overlay_width(self) -> int:
        return max(20, int(self._columns() * self._options.width_fraction))

    def _status_fragments(self) -> StyleAndTextTuples:
        fragments: StyleAndTextTuples = [
            (f"class:status.{self._status.value}", f" {self._status.value} "),
            ("", " "),
            ("class:header", self._header),
        ]
        if self._message:
            fragments.append(("class:message", f"  {self._message}"))
        return fragments

    def _prompt_fragments(self) -> StyleAndTextTuples:
        if self._editing_command:
            return [("class:prompt.command", COMMAND_PROMPT)]
        return [("class:prompt", QUERY_PROMPT)]

    # -------------------------------------------------------------------------
    # Keys
    # -------------------------------------------------------------------------

    def _build_key_bindings(self) -> KeyBindings:
        kb = KeyBindings()

        @kb.add("enter")
        def _enter(event: KeyPressEvent) -> None:
            if self._editing_command:
                self._apply_command()
            else:
                event.app.exit(result=True)

        @kb.add("escape", eager=True)
        def _escape(event: KeyPressEvent) -> None:
            if self._editing_command:
                self._leave_command_edit()
            else:
                event.app.exit(result=False)

        @kb.add("c-c")
        def _abort(event: KeyPressEvent) -> None:
            event.app.exit(result=False)

        @kb.add("c-o")
        def _cycle(event: KeyPressEvent) -> None:
            if self._controller is not None and not self._editing_command:
                self._controller.cycle_write_format()

        @kb.add("c-e")
        def _edit(event: KeyPressEvent) -> None:
            if self._editing_command:
                self._leave_command_edit()
            else:
                self._enter_command_edit()

        return kb

    def _on_text_changed(self, buffer: Buffer) -> None:
        if self._editing_command or self._controller is None:
            return
        self._controller.on_query_changed(buffer.text)

    def _enter_command_edit(self) -> None:
        if self._controller is None or self.buffer is None:
            return
        self._saved_query = self.buffer.text
        self._editing_command = True
        self.buffer.document = Document(self._controller.session.template.text)

    def _leave_command_edit(self) -> None:
        if self.buffer is not None:
            self.buffer.document = Document(self._saved_query)
        self._editing_command = False

    def _apply_command(self) -> None:
        if self.buffer is None:
            return
        text = self.buffer.text
        self._leave_command_edit()
        if self._controller is not None:
            self._controller.modify_command(text)

    # -------------------------------------------------------------------------
    # Host protocol
    # -------------------------------------------------------------------------

    def _invalidate(self) -> None:
        if self.application is not None and self.application.is_running:
            self.application.invalidate()

    def render_output(self, output: bytes, ansi: bool, mode_hint: str | None) -> None:
        self._output = to_formatted_text(output, ansi, mode_hint, width=self._columns())
        self._invalidate()

    def show_surface(self, height: int) -> None:
        self._height = height
        self._surface_visible = True
        self._invalidate()

    def hide_surface(self) -> None:
        self._surface_visible = False
        self._invalidate()

    def resize_surface(self, height: int) -> None:
        self._height = height
        self._invalidate()

    def show_status(self, status: Status, header: str, message: str | None) -> None:
        self._status = status
        self._header = header
        self._message = message
        self._invalidate()

    # -------------------------------------------------------------------------
    # Running
    # -------------------------------------------------------------------------

    async def run(self) -> bool:
        """Run until the user accepts or aborts, then tear the session down.

        Returns:
            True if the user accepted the result.
        """
        if self._controller is None or self.application is None:
            raise RuntimeError("No session attached")
        controller = self._controller
        try:
            accepted = await self.application.run_async(pre_run=controller.start)
        finally:
            controller.end_session()
        log.debug("Application finished, accepted=%s", accepted)
        return bool(accepted)
