"""
Consignment Service — The single public interface for consignment operations.

Usage:
    from consignman import consignment, ConsignmentError

    session = consignment.acquire_session(agreement, user)
    consignment.record_count(session, "SKU-001", 12, user)
    boleta = consignment.finalize_session(session, user)
    consignment.transition(boleta, "pending", user, erp_movement_id="MV-9001")
"""

from consignman.services.agreements import AgreementRules
from consignman.services.documents import RestockDocuments
from consignman.services.queries import ConsignmentQueries
from consignman.services.sessions import CountingSessions
from consignman.services.transitions import DocumentTransitions


class Consignment(
    AgreementRules,
    CountingSessions,
    RestockDocuments,
    DocumentTransitions,
    ConsignmentQueries,
):
    """
    Single interface for all consignment operations.

    Parameter convention: (target, ..., user)
    Targets accept a model instance or its pk.

    IMPORTANT: All state-changing methods use atomic transactions
    with row locks. See each method's docstring.
    """
