# app/payouts/state_machine.py

class InvalidTransition(Exception):
    pass


ALLOWED = {
    "pending": {"approved", "rejected"},
    "approved": {"processing"},
    "processing": {"completed", "failed"},
    "completed": set(),
    "rejected": set(),
    "failed": set(),
}


def can_transition(old: str, new: str) -> bool:
    return new in ALLOWED.get(old, set())


def assert_transition(old: str, new: str) -> None:
    if not can_transition(old, new):
        raise InvalidTransition(f"Illegal payout transition: {old} -> {new}")


def assert_transfer_invariant(new_status: str, transfer_code: str | None) -> None:
    """
    Invariant: a payout can only be COMPLETED once a provider transfer code is stored.
    """
    if new_status == "completed" and not (transfer_code or "").strip():
        raise ValueError("Invariant violation: status=completed requires transfer_code")
