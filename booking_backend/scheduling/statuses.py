from booking_backend.scheduling.errors import InvalidTransitionError

PENDING = 'pending'
CONFIRMED = 'confirmed'
IN_PROGRESS = 'in_progress'
COMPLETED = 'completed'
CANCELLED = 'cancelled'
NO_SHOW = 'no_show'

APPOINTMENT_STATUSES = (PENDING, CONFIRMED, IN_PROGRESS, COMPLETED, CANCELLED, NO_SHOW)

ALLOWED_TRANSITIONS = {
    PENDING: {CONFIRMED, CANCELLED},
    CONFIRMED: {IN_PROGRESS, CANCELLED, NO_SHOW},
    IN_PROGRESS: {COMPLETED, NO_SHOW},
    COMPLETED: set(),
    CANCELLED: set(),
    NO_SHOW: set(),
}


def transition(current: str, target: str) -> str:
    if target not in APPOINTMENT_STATUSES:
        raise InvalidTransitionError(f'Unknown appointment status: {target}.')
    if target not in ALLOWED_TRANSITIONS.get(current, set()):
        raise InvalidTransitionError(f'Cannot change an appointment from {current} to {target}.')
    return target
