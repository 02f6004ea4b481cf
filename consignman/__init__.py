"""
Django Consignman — Contagem e Reposição de Consignação.

Sessões de contagem exclusivas por acordo e o ciclo de vida da boleta
de reposição.

Uso:
    from consignman import consignment, ConsignmentError

    sessao = consignment.acquire_session(acordo, usuario)
    consignment.record_count(sessao, "SKU-001", 12, usuario)
    boleta = consignment.finalize_session(sessao, usuario)
"""


def __getattr__(name):
    """Lazy import to avoid circular imports during app loading."""
    if name == 'consignment':
        from consignman.service import Consignment
        return Consignment
    elif name in ('ConsignmentError', 'Locked', 'NotOwner', 'ValidationError', 'NotFound'):
        from consignman import exceptions
        return getattr(exceptions, name)
    elif name in ('ConsignmentAgreement', 'ProductRule'):
        from consignman.models import agreement
        return getattr(agreement, name)
    elif name in ('CountingSession', 'CountingLine'):
        from consignman.models import session
        return getattr(session, name)
    elif name in ('RestockDocument', 'DocumentLine'):
        from consignman.models import document
        return getattr(document, name)
    elif name == 'HistoryEntry':
        from consignman.models.history import HistoryEntry
        return HistoryEntry
    elif name == 'DocumentStatus':
        from consignman.models.enums import DocumentStatus
        return DocumentStatus
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    'consignment',
    'ConsignmentError',
    'Locked',
    'NotOwner',
    'ValidationError',
    'NotFound',
    'ConsignmentAgreement',
    'ProductRule',
    'CountingSession',
    'CountingLine',
    'RestockDocument',
    'DocumentLine',
    'HistoryEntry',
    'DocumentStatus',
]

__version__ = '0.1.0'
