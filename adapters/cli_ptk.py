#!/usr/bin/env python3
"""
One-shot CLI interface for asking a single question.

This module provides the terminal side: prompt_toolkit for reading the
question, rich for printing the answer or the error.
"""

import sys
import logging
from contextlib import contextmanager, nullcontext
from typing import Callable, Optional, Union

from prompt_toolkit import PromptSession
from prompt_toolkit.input import create_input

# Rich imports for CLI formatting
from rich.console import Console
from rich.markup import escape

from core.llm_service import LLMService
from core.results import Completion, CompletionError, ErrorKind

PROMPT_LABEL = "Ask Question : "

KIND_LABELS = {
    ErrorKind.AUTH: "Authentication error",
    ErrorKind.TRANSPORT: "Network error",
    ErrorKind.REMOTE: "Service error",
    ErrorKind.UNKNOWN: "Unexpected error",
}


class LineInput:
    """
    Reads exactly one line from the console.

    Uses a prompt_toolkit session on an interactive terminal, or a plain
    text stream when input is piped or redirected.
    """

    def __init__(self, label: str = PROMPT_LABEL, session=None, stream=None, output=None):
        if session is None and stream is None:
            raise ValueError("Either a prompt session or an input stream is required")
        self.label = label
        self.session = session
        self.stream = stream
        self.output = output
        self.closed = False

    def read_line(self) -> str:
        """
        Prompt with the label and wait for one line.

        Returns:
            The line without its trailing newline, or "" at end of input
        """
        if self.closed:
            raise ValueError("Line input already released")

        if self.session is not None:
            try:
                line = self.session.prompt(self.label)
            except EOFError:
                return ""
        else:
            output = self.output or sys.stdout
            output.write(self.label)
            output.flush()
            line = self.stream.readline()

        if line.endswith("\n"):
            line = line[:-1]
        if line.endswith("\r"):
            line = line[:-1]
        return line

    def close(self) -> None:
        """Release the input resource. Safe to call more than once."""
        if self.closed:
            return
        self.closed = True
        if self.session is not None:
            self.session.input.close()
        self.session = None
        self.stream = None


@contextmanager
def open_line_input(label: str = PROMPT_LABEL, session=None, stream=None):
    """
    Acquire console input for a single line, releasing it on every exit path.

    Args:
        label: Prompt shown to the operator
        session: Optional prompt_toolkit session to read from
        stream: Optional text stream to read from instead of a session

    Yields:
        LineInput ready for one read_line() call
    """
    if session is None and stream is None:
        if sys.stdin is not None and sys.stdin.isatty():
            session = PromptSession(input=create_input())
        else:
            stream = sys.stdin
            # Undecodable bytes become U+FFFD instead of aborting the read
            if hasattr(stream, "reconfigure"):
                stream.reconfigure(errors="replace")

    line_input = LineInput(label, session=session, stream=stream)
    try:
        yield line_input
    finally:
        line_input.close()


class ResultReporter:
    """Prints the answer to stdout, or a one-line error to stderr."""

    def __init__(self, console: Optional[Console] = None, error_console: Optional[Console] = None):
        self.console = console or Console(highlight=False, soft_wrap=True)
        self.error_console = error_console or Console(stderr=True, highlight=False, soft_wrap=True)

    def report(self, outcome: Union[Completion, CompletionError]) -> None:
        if isinstance(outcome, Completion):
            # Verbatim, bypassing rich rendering
            self.console.file.write(outcome.text + "\n")
            self.console.file.flush()
            return

        label = KIND_LABELS.get(outcome.kind, KIND_LABELS[ErrorKind.UNKNOWN])
        message = " ".join(str(outcome.message).split())
        self.error_console.print(f"[bold red]{label}:[/bold red] {escape(message)}")


class AskCLI:
    """Single-question CLI application."""

    def __init__(
        self,
        llm_service: LLMService,
        reporter: Optional[ResultReporter] = None,
        line_input_factory: Callable = open_line_input,
    ):
        """
        Initialize the CLI.

        Args:
            llm_service: LLMService instance
            reporter: ResultReporter instance (default: rich consoles on stdout/stderr)
            line_input_factory: Context manager factory yielding a LineInput
        """
        self.llm_service = llm_service
        self.reporter = reporter or ResultReporter()
        self.line_input_factory = line_input_factory
        self.logger = logging.getLogger("app.prompt")

    def _thinking(self):
        """Spinner on stderr while the request is in flight, terminals only."""
        console = self.reporter.error_console
        if console.is_terminal:
            return console.status("[bold green]Thinking...", spinner="dots")
        return nullcontext()

    def run(self) -> Optional[Union[Completion, CompletionError]]:
        """
        Read one question, ask it and report the outcome.

        Returns:
            The reported outcome, or None when interrupted
        """
        try:
            with self.line_input_factory() as line_input:
                user_input = line_input.read_line()

            self.logger.info(f"User input: {user_input!r}")

            try:
                with self._thinking():
                    outcome = self.llm_service.ask(user_input)
            except CompletionError as e:
                outcome = e

            self.reporter.report(outcome)
            return outcome

        except KeyboardInterrupt:
            self.logger.info("Interrupted by user")
            self.reporter.error_console.print("\n[dim]Goodbye![/dim]")
            return None


def run_once(llm_service: LLMService, reporter: Optional[ResultReporter] = None):
    """
    Run the CLI for a single question.

    Args:
        llm_service: LLMService instance
        reporter: Optional ResultReporter
    """
    cli = AskCLI(llm_service, reporter=reporter)
    return cli.run()
