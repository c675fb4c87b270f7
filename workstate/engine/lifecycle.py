"""Session lifecycle state machines.

Defines valid transitions and enforces them. Invalid transitions
raise InvalidTransitionError (a ValueError) rather than silently
proceeding.

Initial load (one-way):

    UNRESOLVED ──> RESOLVING ──> RESOLVED
         │                          ^
         └──────────────────────────┘   (reset-on-load before any fetch)

Splash:

    HIDDEN ──> VISIBLE ──> ESCALATED ──> VISIBLE   (keep waiting)
                  │            │
                  └──> HIDDEN <┘                    (ready settled)
"""
from __future__ import annotations

from enum import Enum

from .errors import InvalidTransitionError
from .models import ResolutionState, SplashState

RESOLUTION_TRANSITIONS: dict[ResolutionState, set[ResolutionState]] = {
    ResolutionState.UNRESOLVED: {
        ResolutionState.RESOLVING,
        ResolutionState.RESOLVED,
    },
    ResolutionState.RESOLVING: {
        ResolutionState.RESOLVED,
    },
    ResolutionState.RESOLVED: set(),
}

SPLASH_TRANSITIONS: dict[SplashState, set[SplashState]] = {
    SplashState.HIDDEN: {
        SplashState.VISIBLE,
    },
    SplashState.VISIBLE: {
        SplashState.ESCALATED,
        SplashState.HIDDEN,
    },
    SplashState.ESCALATED: {
        SplashState.VISIBLE,
        SplashState.HIDDEN,
    },
}


def _validate(table: dict, current: Enum, target: Enum) -> None:
    allowed = table.get(current, set())
    if target not in allowed:
        raise InvalidTransitionError(
            current.value,
            target.value,
            sorted(s.value for s in allowed),
        )


def validate_resolution_transition(
    current: ResolutionState, target: ResolutionState,
) -> None:
    """Validate an initial-load transition. Raises if invalid."""
    _validate(RESOLUTION_TRANSITIONS, current, target)


def validate_splash_transition(
    current: SplashState, target: SplashState,
) -> None:
    """Validate a splash transition. Raises if invalid."""
    _validate(SPLASH_TRANSITIONS, current, target)
