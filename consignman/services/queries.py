"""
Consignment queries — read-only operations.

No locking; results reflect the latest committed state.
"""

from dataclasses import dataclass
from datetime import date, datetime

from django.db.models import Count

from consignman.adapters import get_user_directory
from consignman.models.document import RestockDocument
from consignman.models.session import CountingSession


@dataclass(frozen=True)
class ActiveSession:
    """One held counting lock, as listed for administrators."""

    session_id: int
    agreement_id: int
    client_id: str
    client_name: str
    user_id: int
    user_name: str
    lines: int
    created_at: datetime


class ConsignmentQueries:
    """Read-only document and session query methods."""

    @classmethod
    def list_documents(cls, statuses=None, agreement=None,
                       date_from: date | None = None, date_to: date | None = None):
        """
        Documents newest first, optionally filtered.

        Args:
            statuses: Iterable of DocumentStatus values (None = all)
            agreement: Agreement instance or pk (None = all)
            date_from, date_to: Inclusive bounds on the creation date
        """
        qs = RestockDocument.objects.select_related('agreement', 'created_by')
        if statuses:
            qs = qs.filter(status__in=list(statuses))
        if agreement is not None:
            qs = qs.for_agreement(agreement)
        if date_from is not None:
            qs = qs.filter(created_at__date__gte=date_from)
        if date_to is not None:
            qs = qs.filter(created_at__date__lte=date_to)
        return qs.order_by('-created_at', '-pk')

    @classmethod
    def list_active_sessions(cls) -> list[ActiveSession]:
        """Every in-progress counting session, oldest first."""
        directory = get_user_directory()
        sessions = (
            CountingSession.objects
            .select_related('agreement', 'user')
            .annotate(line_count=Count('lines'))
            .order_by('created_at', 'pk')
        )
        return [
            ActiveSession(
                session_id=session.pk,
                agreement_id=session.agreement_id,
                client_id=session.agreement.client_id,
                client_name=session.agreement.client_name,
                user_id=session.user_id,
                user_name=directory.resolve_user_name(session.user),
                lines=session.line_count,
                created_at=session.created_at,
            )
            for session in sessions
        ]
