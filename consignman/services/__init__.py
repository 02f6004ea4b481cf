"""
Consignment services — modular organization of consignment operations.

Re-exports the service classes composed by consignman.service.Consignment:
    from consignman.services import CountingSessions, RestockDocuments, DocumentTransitions
"""

from consignman.services.agreements import AgreementRules
from consignman.services.audit import AuditLog
from consignman.services.documents import DocumentDetails, RestockDocuments
from consignman.services.queries import ActiveSession, ConsignmentQueries
from consignman.services.sessions import CountingSessions
from consignman.services.transitions import DocumentTransitions

__all__ = [
    'AgreementRules',
    'AuditLog',
    'CountingSessions',
    'RestockDocuments',
    'DocumentDetails',
    'DocumentTransitions',
    'ConsignmentQueries',
    'ActiveSession',
]
