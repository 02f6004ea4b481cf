"""
Consignman Models.

Core models for consignment restocking:
- ConsignmentAgreement / ProductRule: contract and per-product ceilings
- CountingSession / CountingLine: exclusive in-progress count (the lock)
- RestockDocument / DocumentLine: boleta generated from a finished count
- HistoryEntry: append-only audit trail per document
"""

from consignman.models.agreement import ConsignmentAgreement, ProductRule
from consignman.models.document import DocumentLine, RestockDocument
from consignman.models.enums import DocumentAction, DocumentStatus
from consignman.models.history import HistoryEntry
from consignman.models.session import CountingLine, CountingSession

__all__ = [
    'DocumentStatus',
    'DocumentAction',
    'ConsignmentAgreement',
    'ProductRule',
    'CountingSession',
    'CountingLine',
    'RestockDocument',
    'DocumentLine',
    'HistoryEntry',
]
