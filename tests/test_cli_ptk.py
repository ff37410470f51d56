import io
from contextlib import contextmanager

import pytest

from adapters import cli_ptk as mod
from core.llm_service import LLMService
from core.prompt_builder import PromptBuilder
from core.results import (
    AuthError,
    Completion,
    RemoteError,
    TransportError,
    UnknownError,
)


class FakeInput:
    def __init__(self):
        self.closed = False

    def close(self):
        self.closed = True


class FakeSession:
    """Minimal stand-in for prompt_toolkit's PromptSession."""

    def __init__(self, line=None, error=None):
        self.line = line
        self.error = error
        self.labels = []
        self.input = FakeInput()

    def prompt(self, label):
        self.labels.append(label)
        if self.error is not None:
            raise self.error
        return self.line


class StubClient:
    def __init__(self, text="T", error=None):
        self.text = text
        self.error = error
        self.prompts = []

    def build_api_params(self):
        return {"model": "stub-model"}

    def complete(self, prompt):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.text


def session_factory(session):
    @contextmanager
    def factory():
        with mod.open_line_input(session=session) as line_input:
            yield line_input
    return factory


def make_cli(client, session):
    service = LLMService(PromptBuilder(), client)
    return mod.AskCLI(service, line_input_factory=session_factory(session))


# Line input

def test_read_line_from_session():
    session = FakeSession("cats")
    with mod.open_line_input(session=session) as line_input:
        assert line_input.read_line() == "cats"
    assert session.labels == ["Ask Question : "]


def test_end_of_input_reads_empty_string():
    session = FakeSession(error=EOFError())
    with mod.open_line_input(session=session) as line_input:
        assert line_input.read_line() == ""


def test_input_released_after_read():
    session = FakeSession("cats")
    with mod.open_line_input(session=session) as line_input:
        line_input.read_line()
    assert session.input.closed
    assert line_input.closed


def test_input_released_on_error():
    session = FakeSession("cats")
    with pytest.raises(RuntimeError):
        with mod.open_line_input(session=session):
            raise RuntimeError("boom")
    assert session.input.closed


def test_input_released_on_interrupt():
    session = FakeSession(error=KeyboardInterrupt())
    with pytest.raises(KeyboardInterrupt):
        with mod.open_line_input(session=session) as line_input:
            line_input.read_line()
    assert session.input.closed


def test_read_after_release_fails():
    with mod.open_line_input(session=FakeSession("cats")) as line_input:
        pass
    with pytest.raises(ValueError):
        line_input.read_line()


def test_read_line_from_stream(capsys):
    with mod.open_line_input(stream=io.StringIO("the Eiffel Tower\r\nignored\n")) as line_input:
        assert line_input.read_line() == "the Eiffel Tower"
    assert capsys.readouterr().out == "Ask Question : "


def test_stream_end_of_input():
    output = io.StringIO()
    line_input = mod.LineInput(stream=io.StringIO(""), output=output)
    assert line_input.read_line() == ""
    assert output.getvalue() == "Ask Question : "


def test_invalid_utf8_on_piped_stdin(monkeypatch, capsys):
    stdin = io.TextIOWrapper(io.BytesIO(b"caf\xff\n"), encoding="utf-8")
    monkeypatch.setattr(mod.sys, "stdin", stdin)

    with mod.open_line_input() as line_input:
        assert line_input.read_line() == "caf\ufffd"


def test_run_once_survives_invalid_utf8(monkeypatch, capsys):
    stdin = io.TextIOWrapper(io.BytesIO(b"caf\xff\n"), encoding="utf-8")
    monkeypatch.setattr(mod.sys, "stdin", stdin)
    client = StubClient(text="T")

    outcome = mod.run_once(LLMService(PromptBuilder(), client))

    assert outcome == Completion(text="T")
    assert client.prompts == ["you are an expert in everythings now tell me about caf\ufffd"]


# Reporter

def test_report_success_prints_text_exactly(capsys):
    mod.ResultReporter().report(Completion(text="[bold]T[/bold] :smile:"))
    captured = capsys.readouterr()
    assert captured.out == "[bold]T[/bold] :smile:\n"
    assert captured.err == ""


@pytest.mark.parametrize("text", ["a\tb", "x\r\ny", "\tindented\n\x1b[0m done"])
def test_report_success_keeps_whitespace_and_control_chars(capsys, text):
    mod.ResultReporter().report(Completion(text=text))
    assert capsys.readouterr().out == text + "\n"


@pytest.mark.parametrize(
    "error, label",
    [
        (AuthError("key rejected"), "Authentication error"),
        (TransportError("DNS failure"), "Network error"),
        (RemoteError("quota [exceeded]"), "Service error"),
        (UnknownError("odd"), "Unexpected error"),
    ],
)
def test_report_failure_names_kind(capsys, error, label):
    mod.ResultReporter().report(error)
    captured = capsys.readouterr()
    assert captured.out == ""
    assert captured.err.count("\n") == 1
    assert label in captured.err
    assert error.message in captured.err


def test_report_failure_is_single_line(capsys):
    mod.ResultReporter().report(RemoteError("first\nsecond"))
    err = capsys.readouterr().err
    assert err.count("\n") == 1
    assert "first second" in err


# Pipeline

def test_pipeline_prints_completion(capsys):
    client = StubClient(text="T")
    outcome = make_cli(client, FakeSession("cats")).run()

    assert outcome == Completion(text="T")
    assert client.prompts == ["you are an expert in everythings now tell me about cats"]
    assert capsys.readouterr().out == "T\n"


def test_pipeline_reports_auth_error(capsys):
    client = StubClient(error=AuthError("API key not valid"))
    outcome = make_cli(client, FakeSession("cats")).run()

    assert isinstance(outcome, AuthError)
    captured = capsys.readouterr()
    assert "Authentication error" in captured.err
    assert "Traceback" not in captured.err
    assert captured.out == ""


def test_pipeline_calls_client_on_empty_input():
    client = StubClient()
    make_cli(client, FakeSession(error=EOFError())).run()

    assert client.prompts == ["you are an expert in everythings now tell me about "]


def test_pipeline_interrupted_while_reading(capsys):
    client = StubClient()
    session = FakeSession(error=KeyboardInterrupt())

    assert make_cli(client, session).run() is None
    assert client.prompts == []
    assert session.input.closed
    assert "Goodbye" in capsys.readouterr().err


def test_run_once_uses_piped_stdin(monkeypatch, capsys):
    monkeypatch.setattr(mod.sys, "stdin", io.StringIO("cats\n"))
    client = StubClient(text="T")

    mod.run_once(LLMService(PromptBuilder(), client))

    assert client.prompts == ["you are an expert in everythings now tell me about cats"]
    assert capsys.readouterr().out == "Ask Question : T\n"
