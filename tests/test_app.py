import logging

import pytest

import config
from conftest import GRADING_PAYLOAD, QUESTION_PAYLOAD, ScriptedAgent
from errors import AuthorizationError, InvalidInputError
from llm.clients.provider_registry import ProviderClientRegistry
import main
from main import parse_args
from pipeline.solve_pipeline import StageTimings
from runtime.app import AppMode, MathTutorApp
from runtime.practice_session import GENERATE_FAILED_MESSAGE
from runtime.renderer import LoggingRenderer, SafeRenderer


@pytest.fixture
def no_api_key(monkeypatch):
    for name in config.API_KEY_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    ProviderClientRegistry.reset()
    yield
    ProviderClientRegistry.reset()


# -------------------------
# Application shell
# -------------------------
async def test_missing_api_key_warns_but_loads(no_api_key, png_image, caplog):
    with caplog.at_level(logging.WARNING):
        app = MathTutorApp(timings=StageTimings.zero())

    assert app.api_key_warning == config.MISSING_API_KEY_WARNING
    assert "Missing API Key" in caplog.text

    with pytest.raises(AuthorizationError):
        await app.practice.new_round()
    assert app.practice.snapshot().error == GENERATE_FAILED_MESSAGE

    assert await app.pipeline.submit(png_image) is None
    assert app.pipeline.stage.value == "error"


def test_api_key_present_means_no_warning(monkeypatch):
    monkeypatch.setenv("GOOGLE_API_KEY", "test-key")

    app = MathTutorApp()

    assert app.api_key_warning is None


def test_api_key_fallback_names(no_api_key, monkeypatch):
    monkeypatch.setenv("API_KEY", "legacy-key")
    assert config.get_api_key() == "legacy-key"


def test_model_name_override(monkeypatch):
    monkeypatch.setenv("GEMINI_MODEL", "gemini-custom")
    assert config.get_model_name() == "gemini-custom"

    monkeypatch.delenv("GEMINI_MODEL")
    assert config.get_model_name() == config.DEFAULT_MODEL


async def test_app_shares_one_client():
    agent = ScriptedAgent(QUESTION_PAYLOAD)
    app = MathTutorApp(agent=agent, difficulty="Easy")

    assert app.pipeline.client is app.practice.client
    assert (await app.practice.new_round()).id == "q1"


def test_switch_mode():
    app = MathTutorApp(agent=ScriptedAgent())
    assert app.mode is AppMode.SOLVER

    assert app.switch_mode("practice") is AppMode.PRACTICE

    with pytest.raises(InvalidInputError):
        app.switch_mode("quiz")
    assert app.mode is AppMode.PRACTICE


# -------------------------
# Typesetting boundary
# -------------------------
class RecordingRenderer:
    def __init__(self):
        self.events = []

    def clear(self):
        self.events.append(("clear",))

    async def render(self, expression, display_mode):
        self.events.append(("render", expression, display_mode))


class BrokenRenderer:
    async def render(self, expression, display_mode):
        raise RuntimeError("MathJax not loaded")


async def test_safe_renderer_clears_before_render():
    inner = RecordingRenderer()
    renderer = SafeRenderer(inner)

    await renderer.render("x = 2", True)
    await renderer.render("y", False)

    assert inner.events == [
        ("clear",),
        ("render", "x = 2", True),
        ("clear",),
        ("render", "y", False),
    ]


async def test_safe_renderer_logs_failures(caplog):
    renderer = SafeRenderer(BrokenRenderer())

    await renderer.render("x = 2", True)

    assert "[RENDER FAIL]" in caplog.text
    assert "MathJax not loaded" in caplog.text


async def test_safe_renderer_without_backend(caplog):
    renderer = SafeRenderer(None)

    await renderer.render("x", False)
    await renderer.render("y", False)

    assert caplog.text.count("[RENDER SKIPPED]") == 1


async def test_logging_renderer_delimiters():
    lines = []
    renderer = LoggingRenderer(write=lines.append)

    await renderer.render("x^2", True)
    await renderer.render("y", False)

    assert lines == ["$$x^2$$", "$y$"]


# -------------------------
# CLI
# -------------------------
def test_parse_args_practice():
    args = parse_args(["--fast", "practice", "--difficulty", "Hard"])

    assert args.command == "practice"
    assert args.difficulty == "Hard"
    assert args.fast is True


def test_parse_args_solve():
    args = parse_args(["solve", "problem.png"])

    assert args.command == "solve"
    assert args.image == "problem.png"
    assert args.timeout == config.DEFAULT_TIMEOUT_SEC


@pytest.mark.parametrize("choice", ["", "y", "Yes"])
async def test_practice_yes_keeps_difficulty(choice, monkeypatch, capsys):
    agent = ScriptedAgent(QUESTION_PAYLOAD, GRADING_PAYLOAD, QUESTION_PAYLOAD)
    app = MathTutorApp(agent=agent, renderer=LoggingRenderer(), difficulty="Easy")
    monkeypatch.setattr(main, "build_app", lambda args: app)

    answers = iter(["x=2", choice, "q"])

    async def scripted_prompt(text):
        return next(answers)

    monkeypatch.setattr(main, "_prompt", scripted_prompt)

    assert await main.run_practice(parse_args(["--fast", "practice"])) == 0

    assert "Unknown difficulty" not in capsys.readouterr().out
    assert app.practice.difficulty.value == "Easy"
    assert len(agent.calls) == 3
    assert '"Easy"' in agent.calls[2]["user_prompt"]
