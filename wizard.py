"""Thesis wizard as a command dispatcher.

Each user action is a command; ``dispatch`` maps ``(state, command)`` to a new
state and at most one effect. Rendering is left to the caller, and the only
effect that touches the network, ``RequestGeneration``, is carried out by
``run_command`` through a ``RetryOrchestrator``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Protocol, Tuple, Union

from models import GenerationResult, Ok

_NUMBERED_LINE = re.compile(r"^\d+\.\s")


class Step(str, Enum):
    """Wizard steps that call the generator."""

    TITLES = "titles"
    PROBLEMS = "problems"
    OUTLINE = "outline"


@dataclass(frozen=True)
class WizardState:
    major: str = ""
    interest: str = ""
    titles: Tuple[str, ...] = ()
    selected_title: Optional[str] = None
    problems: Optional[str] = None
    outline: Optional[str] = None
    error: Optional[str] = None
    busy: bool = False

    @property
    def can_request_titles(self) -> bool:
        return not self.busy

    @property
    def can_request_problems(self) -> bool:
        return not self.busy and bool(self.selected_title)

    @property
    def can_request_outline(self) -> bool:
        return not self.busy and bool(self.selected_title) and bool(self.problems)


@dataclass(frozen=True)
class SubmitTopic:
    major: str
    interest: str


@dataclass(frozen=True)
class SelectTitle:
    title: str


@dataclass(frozen=True)
class RequestProblems:
    pass


@dataclass(frozen=True)
class RequestOutline:
    pass


@dataclass(frozen=True)
class GenerationSucceeded:
    step: Step
    text: str


@dataclass(frozen=True)
class GenerationFailed:
    step: Step
    message: str


Command = Union[
    SubmitTopic,
    SelectTitle,
    RequestProblems,
    RequestOutline,
    GenerationSucceeded,
    GenerationFailed,
]


@dataclass(frozen=True)
class RequestGeneration:
    step: Step
    prompt: str


@dataclass(frozen=True)
class ShowError:
    message: str


Effect = Union[RequestGeneration, ShowError, None]


def titles_prompt(major: str, interest: str) -> str:
    return (
        f'Suggest 5-7 engaging and relevant thesis title ideas for a student of "{major}" '
        f'focusing on the topic "{interest}". Make the titles specific, with good research '
        "potential. Present the result as a numbered list (for example: 1. Title A)."
    )


def problems_prompt(title: str) -> str:
    return (
        f'Based on the thesis title "{title}", write 3-5 sharp, specific and testable '
        "problem statements. Present the result as a numbered list."
    )


def outline_prompt(title: str, problems: str) -> str:
    return (
        "You are an academic assistant. Draft a comprehensive outline of chapter one of a "
        "thesis proposal with the following details:\n"
        f'- Title: "{title}"\n'
        f"- Problem statements to answer:\n{problems}\n\n"
        "The output must cover the following points, each with a short explanation:\n"
        "A. Background (context, phenomena, supporting data if any, and why the problem "
        "matters for this title)\n"
        "B. Problem Statements (restate the given problem statements)\n"
        "C. Research Objectives (matching the problem statements)\n"
        "D. Research Benefits (theoretical and practical)\n\n"
        "Use formal, academic language."
    )


def parse_titles(text: str) -> Tuple[str, ...]:
    """Return the numbered lines of ``text`` without their ``N. `` prefix."""
    titles = []
    for line in text.split("\n"):
        if _NUMBERED_LINE.match(line):
            title = _NUMBERED_LINE.sub("", line, count=1).strip()
            if title:
                titles.append(title)
    return tuple(titles)


def _fail(state: WizardState, message: str) -> Tuple[WizardState, Effect]:
    return replace(state, error=message), ShowError(message)


def _start(state: WizardState, step: Step, prompt: str) -> Tuple[WizardState, Effect]:
    return replace(state, busy=True, error=None), RequestGeneration(step, prompt)


def dispatch(  # pylint: disable=too-many-return-statements
    state: WizardState, command: Command
) -> Tuple[WizardState, Effect]:
    """Apply ``command`` to ``state`` and return the new state and effect."""
    if isinstance(command, SubmitTopic):
        if not state.can_request_titles:
            return state, None
        major, interest = command.major.strip(), command.interest.strip()
        if not major or not interest:
            return _fail(state, "Please fill in the study program and topic of interest first.")
        fresh = WizardState(major=major, interest=interest)
        return _start(fresh, Step.TITLES, titles_prompt(major, interest))

    if isinstance(command, SelectTitle):
        if command.title not in state.titles:
            return state, None
        return replace(state, selected_title=command.title, problems=None, outline=None), None

    if isinstance(command, RequestProblems):
        if not state.can_request_problems or state.selected_title is None:
            return state, None
        return _start(state, Step.PROBLEMS, problems_prompt(state.selected_title))

    if isinstance(command, RequestOutline):
        if not state.can_request_outline or state.selected_title is None:
            return state, None
        return _start(
            state, Step.OUTLINE, outline_prompt(state.selected_title, state.problems or "")
        )

    if isinstance(command, GenerationSucceeded):
        idle = replace(state, busy=False)
        if command.step is Step.TITLES:
            titles = parse_titles(command.text)
            if not titles:
                return _fail(
                    replace(idle, titles=()),
                    "The AI could not produce titles from that input. "
                    "Try a more specific topic.",
                )
            return replace(idle, titles=titles, selected_title=None), None
        if command.step is Step.PROBLEMS:
            return replace(idle, problems=command.text, outline=None), None
        return replace(idle, outline=command.text), None

    if isinstance(command, GenerationFailed):
        message = f"Failed to reach the AI: {command.message}."
        if command.step is Step.TITLES:
            message += " Please try again later."
        return _fail(replace(state, busy=False), message)

    raise TypeError(f"unknown wizard command: {command!r}")


class Generator(Protocol):  # pylint: disable=too-few-public-methods
    """Anything that turns a prompt into a ``GenerationResult``."""

    async def generate(self, prompt_text: str, max_retries: int = ...) -> GenerationResult:
        """Generate text for ``prompt_text``."""


async def run_command(
    state: WizardState,
    command: Command,
    generator: Generator,
    max_retries: Optional[int] = None,
) -> Tuple[WizardState, Effect]:
    """Dispatch ``command`` and carry out any generation it requests."""
    state, effect = dispatch(state, command)
    if not isinstance(effect, RequestGeneration):
        return state, effect

    if max_retries is None:
        result = await generator.generate(effect.prompt)
    else:
        result = await generator.generate(effect.prompt, max_retries)

    follow_up: Command
    if isinstance(result, Ok):
        follow_up = GenerationSucceeded(effect.step, result.text)
    else:
        follow_up = GenerationFailed(effect.step, result.message)
    return dispatch(state, follow_up)


__all__ = [
    "GenerationFailed",
    "GenerationSucceeded",
    "RequestGeneration",
    "RequestOutline",
    "RequestProblems",
    "SelectTitle",
    "ShowError",
    "Step",
    "SubmitTopic",
    "WizardState",
    "dispatch",
    "outline_prompt",
    "parse_titles",
    "problems_prompt",
    "run_command",
    "titles_prompt",
]
