"""
Enrollment lifecycle state machine.

The wire format overloads ``Enrollment.status = None`` to mean "rejected",
while a missing record means "no enrollment". Inside the core the state is an
explicit tagged value; translation happens only in ``state_from_record`` and
``apply_to_record``.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Literal

from assist_tracker.domain.entities import Enrollment, EnrollmentStatus, ProgramStatus

StateKind = Literal["no_enrollment", "enrolled", "ongoing", "completed", "rejected"]
Action = Literal["enroll", "mark_ongoing", "mark_completed", "mark_rejected"]

ACTIONS: tuple[Action, ...] = ("enroll", "mark_ongoing", "mark_completed", "mark_rejected")
TERMINAL_KINDS: frozenset[StateKind] = frozenset({"completed", "rejected"})

_TARGETS: dict[Action, StateKind] = {
    "enroll": "enrolled",
    "mark_ongoing": "ongoing",
    "mark_completed": "completed",
    "mark_rejected": "rejected",
}

_ALLOWED: dict[StateKind, tuple[Action, ...]] = {
    "no_enrollment": ACTIONS,
    "enrolled": ("mark_ongoing", "mark_completed", "mark_rejected"),
    # Re-affirming ongoing is accepted and only refreshes updated_at.
    "ongoing": ("mark_ongoing", "mark_completed", "mark_rejected"),
    "completed": (),
    "rejected": (),
}


@dataclass(frozen=True)
class EnrollmentState:
    kind: StateKind
    completion_date: date | None = None

    @property
    def is_terminal(self) -> bool:
        return self.kind in TERMINAL_KINDS


NO_ENROLLMENT = EnrollmentState("no_enrollment")


# --- Errors ---


class TransitionError(ValueError):
    code = "illegal_transition"

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        if code is not None:
            self.code = code


class InvalidTransition(TransitionError):
    code = "illegal_transition"


class ProgramNotOpen(TransitionError):
    code = "program_not_open"


class CompletionDateError(TransitionError):
    code = "completion_date_required"


# --- Boundary translation ---


def state_from_record(enrollment: Enrollment | None) -> EnrollmentState:
    if enrollment is None:
        return NO_ENROLLMENT
    if enrollment.status is None:
        return EnrollmentState("rejected")
    if enrollment.status == "completed":
        return EnrollmentState("completed", enrollment.completion_date)
    return EnrollmentState(enrollment.status)


def status_for_state(state: EnrollmentState) -> EnrollmentStatus | None:
    if state.kind == "no_enrollment":
        raise ValueError("no_enrollment has no stored status")
    if state.kind == "rejected":
        return None
    return state.kind


# --- Rules ---


def check_transition(
    state: EnrollmentState,
    action: Action,
    program_status: ProgramStatus,
    completion_date: date | None,
    today: date,
) -> None:
    """
    Raise a TransitionError subclass if ``action`` is not legal from ``state``.
    """
    if state.is_terminal:
        raise InvalidTransition(f"Enrollment is {state.kind} and cannot be changed")

    if action not in _ALLOWED[state.kind]:
        raise InvalidTransition(f"Cannot {action} from {state.kind}")

    # Entry into a program needs it to be open; later updates do not.
    if state.kind == "no_enrollment" and program_status != "open":
        raise ProgramNotOpen(
            f"Program is currently {program_status}; enrollment is not available"
        )

    if action == "mark_completed":
        if completion_date is None:
            raise CompletionDateError("A completion date is required")
        if completion_date > today:
            raise CompletionDateError(
                "Completion date cannot be in the future",
                code="completion_date_in_future",
            )


def can_transition(
    state: EnrollmentState,
    action: Action,
    program_status: ProgramStatus,
    completion_date: date | None = None,
    today: date | None = None,
) -> bool:
    try:
        check_transition(state, action, program_status, completion_date, today or date.today())
    except TransitionError:
        return False
    return True


def transition(
    state: EnrollmentState,
    action: Action,
    program_status: ProgramStatus,
    completion_date: date | None,
    today: date,
) -> EnrollmentState:
    """
    Return the state reached by applying ``action``.
    Raises TransitionError if the transition is invalid.
    """
    check_transition(state, action, program_status, completion_date, today)
    target = _TARGETS[action]
    if target == "completed":
        return EnrollmentState("completed", completion_date)
    return EnrollmentState(target)


def available_actions(
    state: EnrollmentState, program_status: ProgramStatus
) -> tuple[Action, ...]:
    """Actions the presentation layer may offer for this state."""
    if state.kind == "no_enrollment" and program_status != "open":
        return ()
    return _ALLOWED[state.kind]


def requires_external_handoff(before: EnrollmentState, action: Action) -> bool:
    """Only the first-time "Enroll Now" path hands off to the external portal."""
    return before.kind == "no_enrollment" and action == "enroll"


def apply_to_record(
    record: Enrollment | None,
    new_state: EnrollmentState,
    *,
    user_id: str,
    program_id: str,
    now: datetime,
) -> Enrollment:
    """
    Return a NEW Enrollment reflecting ``new_state``.
    """
    updates: dict[str, Any] = {
        "status": status_for_state(new_state),
        "completion_date": new_state.completion_date,
        "updated_at": now,
    }

    if record is None:
        return Enrollment(user_id=user_id, program_id=program_id, enrolled_at=now, **updates)

    return record.model_copy(update=updates)
