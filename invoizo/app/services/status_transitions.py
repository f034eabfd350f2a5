"""Invoice status state machine.

DRAFT -> SENT | CANCELLED
SENT -> VIEWED | PAID | OVERDUE | CANCELLED
VIEWED -> PAID | OVERDUE | CANCELLED
OVERDUE -> PAID | CANCELLED
PAID and CANCELLED are terminal.
"""

import logging
from typing import FrozenSet, Optional

from invoizo.app.core.enums import InvoiceStatus
from invoizo.app.core.exceptions import InvalidStatusTransition

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
    InvoiceStatus.DRAFT: frozenset({InvoiceStatus.SENT, InvoiceStatus.CANCELLED}),
    InvoiceStatus.SENT: frozenset(
        {InvoiceStatus.VIEWED, InvoiceStatus.PAID, InvoiceStatus.OVERDUE, InvoiceStatus.CANCELLED}
    ),
    InvoiceStatus.VIEWED: frozenset({InvoiceStatus.PAID, InvoiceStatus.OVERDUE, InvoiceStatus.CANCELLED}),
    InvoiceStatus.OVERDUE: frozenset({InvoiceStatus.PAID, InvoiceStatus.CANCELLED}),
    InvoiceStatus.PAID: frozenset(),
    InvoiceStatus.CANCELLED: frozenset(),
}


def effective_status(status) -> InvoiceStatus:
    """Missing status reads as DRAFT."""
    if status is None:
        return InvoiceStatus.DRAFT
    return InvoiceStatus(status)


def allowed_transitions(from_status) -> FrozenSet[InvoiceStatus]:
    return ALLOWED_TRANSITIONS[effective_status(from_status)]


def is_valid_transition(from_status, to_status) -> bool:
    if to_status is None:
        return False
    return InvoiceStatus(to_status) in allowed_transitions(from_status)


def validate_transition(from_status, to_status) -> None:
    if not is_valid_transition(from_status, to_status):
        raise InvalidStatusTransition(effective_status(from_status), to_status)


def force_status(invoice, new_status, *, actor: str) -> Optional[InvoiceStatus]:
    """Set ``new_status`` without consulting the transition table.

    Reserved for system actors (overdue sweep, cash payments). Returns the
    previous effective status.
    """
    previous = effective_status(invoice.status)
    target = InvoiceStatus(new_status)
    if is_valid_transition(previous, target):
        logger.info(f"{actor} moved invoice {invoice.id} from {previous.value} to {target.value}")
    else:
        logger.warning(
            f"{actor} moved invoice {invoice.id} from {previous.value} to {target.value} "
            "outside the allowed transitions"
        )
    invoice.status = target.value
    return previous
