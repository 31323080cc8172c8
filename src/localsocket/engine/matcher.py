"""Train matching state machine.

Each announcement is fed to every live listener through :func:`advance`. The
result says whether the listener completed a match on this announcement and,
if so, which payload its callback should receive.

Single listeners match on name equality and receive the payload untouched.

Sequence listeners ("trains") keep a :class:`~localsocket.events.Progress`
between announcements:

* ``strict``: names must arrive exactly in pattern order, consecutively. An
  announcement that does not extend the matched prefix restarts the run if it
  equals the first pattern name, otherwise clears it.
* ``loose``: names may arrive in any order. Any announcement whose name is not
  in the pattern clears the run. The train completes once every distinct
  pattern name has been seen.

Both disciplines reset progress on completion so a persistent listener can
match again from scratch. Exhausted one-shot listeners never advance.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from localsocket.events import Listener, Progress, SequenceListener, SingleListener


@dataclass(frozen=True)
class Match:
    """Outcome of feeding one announcement to one listener."""

    matched: bool
    payload: Any = None


NO_MATCH = Match(matched=False)


def advance(listener: Listener, name: str, payload: Any) -> Match:
    """Apply announcement ``(name, payload)`` to ``listener``."""
    if listener.exhausted:
        return NO_MATCH
    if isinstance(listener, SingleListener):
        return Match(True, payload) if listener.name == name else NO_MATCH
    if isinstance(listener, SequenceListener):
        if listener.ordering == "strict":
            return _advance_strict(listener, name, payload)
        return _advance_loose(listener, name, payload)
    raise TypeError(f"Unsupported listener type: {type(listener).__name__}")


def _advance_strict(listener: SequenceListener, name: str, payload: Any) -> Match:
    progress = listener.progress
    pattern = listener.names
    position = len(progress.matched)

    if position < len(pattern) and pattern[position] == name:
        progress.matched.append(name)
        progress.payloads[name] = payload
    elif pattern[0] == name:
        progress.restart(name, payload)
    else:
        progress.reset()
        return NO_MATCH

    if len(progress.matched) == len(pattern):
        return _complete(progress)
    return NO_MATCH


def _advance_loose(listener: SequenceListener, name: str, payload: Any) -> Match:
    progress = listener.progress
    pattern = listener.names

    if name not in pattern:
        progress.reset()
        return NO_MATCH

    if name not in progress.matched:
        progress.matched.append(name)
    progress.payloads[name] = payload

    if len(progress.matched) == len(set(pattern)):
        return _complete(progress)
    return NO_MATCH


def _complete(progress: Progress) -> Match:
    collected = dict(progress.payloads)
    progress.reset()
    return Match(True, collected)
