"""
Visit status graph and pure-function graph validation.

The graph is plain data so it can be checked without any model lifecycle.
Validated once at import; tests call validate_status_graph() directly.
"""

WAITING = "waiting"
EYE_MEASUREMENT = "eye_measurement"
WITH_DOCTOR = "with_doctor"
IN_CONSULTATION = "in_consultation"
PHARMACY = "pharmacy"
COMPLETED = "completed"

# Legacy values still present in older rows
REGISTERED = "registered"
PRESCRIBED = "prescribed"

INITIAL_STATUS = WAITING
TERMINAL_STATUSES = [COMPLETED]
LEGACY_STATUSES = [REGISTERED, PRESCRIBED]

STATUSES = [
    WAITING,
    EYE_MEASUREMENT,
    WITH_DOCTOR,
    IN_CONSULTATION,
    PHARMACY,
    COMPLETED,
    REGISTERED,
    PRESCRIBED,
]

TRANSITIONS = {
    REGISTERED: [WAITING],
    WAITING: [EYE_MEASUREMENT, WITH_DOCTOR, IN_CONSULTATION],
    EYE_MEASUREMENT: [WITH_DOCTOR],
    WITH_DOCTOR: [IN_CONSULTATION, PHARMACY, COMPLETED],
    IN_CONSULTATION: [PHARMACY, COMPLETED],
    PRESCRIBED: [PHARMACY, COMPLETED],
    PHARMACY: [COMPLETED],
    COMPLETED: [],
}

# Statuses in which the doctor owns the visit
DOCTOR_STATUSES = frozenset({WITH_DOCTOR, IN_CONSULTATION})

# Statuses shown in a doctor's own queue
DOCTOR_QUEUE_STATUSES = frozenset({WAITING, WITH_DOCTOR, IN_CONSULTATION})


def validate_status_graph(
    statuses: list[str],
    transitions: dict[str, list[str]],
    initial_status: str,
    terminal_statuses: list[str],
    legacy_statuses: list[str] = (),
) -> list[str]:
    """
    Validate the status graph is sane and usable.

    Returns list of error messages (empty = valid).

    Checks:
    - initial_status and terminal_statuses exist in statuses
    - all transition sources and targets exist in statuses
    - terminal statuses have no outgoing transitions
    - nothing transitions back into the initial status
    - every non-legacy status is reachable from initial_status
    """
    errors = []
    statuses_set = set(statuses)

    if initial_status not in statuses_set:
        errors.append(f"initial_status '{initial_status}' not in statuses")

    for ts in terminal_statuses:
        if ts not in statuses_set:
            errors.append(f"terminal_status '{ts}' not in statuses")

    for from_status, to_statuses in transitions.items():
        if from_status not in statuses_set:
            errors.append(f"transition from unknown status '{from_status}'")
        for to_status in to_statuses:
            if to_status not in statuses_set:
                errors.append(f"transition to unknown status '{to_status}'")
            if to_status == initial_status and from_status not in legacy_statuses:
                errors.append(f"transition from '{from_status}' back to initial status")

    for ts in terminal_statuses:
        if transitions.get(ts):
            errors.append(f"terminal status '{ts}' has outgoing transitions")

    if initial_status in statuses_set:
        reachable = find_reachable(initial_status, transitions)
        for status in statuses:
            if status not in reachable and status not in legacy_statuses:
                errors.append(f"status '{status}' unreachable from initial_status")

    return errors


def find_reachable(start: str, transitions: dict[str, list[str]]) -> set[str]:
    """BFS over transitions; the result includes start itself."""
    visited = {start}
    queue = [start]

    while queue:
        current = queue.pop(0)
        for next_status in transitions.get(current, []):
            if next_status not in visited:
                visited.add(next_status)
                queue.append(next_status)

    return visited


def allowed_transitions(status: str) -> list[str]:
    """Get the statuses a visit in `status` may move to."""
    if status in TERMINAL_STATUSES:
        return []
    return list(TRANSITIONS.get(status, []))


def is_forward(from_status: str, to_status: str) -> bool:
    """True if to_status is a direct successor of from_status."""
    return to_status in allowed_transitions(from_status)


_errors = validate_status_graph(
    STATUSES, TRANSITIONS, INITIAL_STATUS, TERMINAL_STATUSES, LEGACY_STATUSES
)
if _errors:
    raise RuntimeError("Invalid visit status graph: " + "; ".join(_errors))
