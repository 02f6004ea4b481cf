"""
Exceptions for Consignman.

All errors are ConsignmentError with a structured code for programmatic
handling. Subclasses group codes by kind, so callers can catch the family
(Locked, NotOwner, ValidationError, NotFound) or inspect ``e.code``.
"""

from decimal import Decimal
from typing import Any


class ConsignmentError(Exception):
    """
    Structured exception for consignment operations.

    Usage:
        try:
            consignment.acquire_session(agreement, user)
        except Locked as e:
            print(e.message)  # "Sessão de contagem em uso por Ana Souza"
            print(e.data['user_name'])

    Attributes:
        code: Error code for programmatic handling
        message: Human-readable message
        data: Additional context data
        kind: Error family ('locked', 'not_owner', 'validation_error', 'not_found')
    """

    kind = 'error'
    default_code = 'CONSIGNMENT_ERROR'

    _default_messages = {
        'CONSIGNMENT_ERROR': 'Não foi possível concluir a operação',
        'LOCKED': 'Sessão de contagem em uso por {user_name}',
        'NOT_OWNER': 'A sessão pertence a outro usuário',
        'PERMISSION_DENIED': 'Permissão necessária: {permission}',
        'INVALID_TRANSITION': 'Transição inválida: {current} → {target}',
        'INVALID_STATUS': 'Status desconhecido: {status}',
        'FIELD_REQUIRED': 'Campo obrigatório ausente: {field}',
        'INVALID_QUANTITY': 'Quantidade inválida (informe um número não negativo)',
        'DOCUMENT_NOT_EDITABLE': 'Boleta não pode ser editada no status {status}',
        'SESSION_IN_PROGRESS': 'Finalize ou abandone a contagem em andamento antes de iniciar outra',
        'AGREEMENT_INACTIVE': 'Acordo de consignação inativo',
        'AGREEMENT_HAS_DOCUMENTS': 'Acordo possui {documents} boleta(s) e não pode ser excluído',
        'COUNTER_DECREASE': 'O consecutivo não pode retroceder (atual: {current})',
        'DIRECT_STATUS_WRITE': 'Status da boleta só muda por transição',
        'SESSION_NOT_FOUND': 'Sessão de contagem não encontrada',
        'DOCUMENT_NOT_FOUND': 'Boleta não encontrada',
        'LINE_NOT_FOUND': 'Linha da boleta não encontrada',
        'AGREEMENT_NOT_FOUND': 'Acordo de consignação não encontrado',
    }

    def __init__(self, code: str | None = None, message: str | None = None, **data):
        self.code = code or self.default_code
        self.data = data
        template = message or self._default_messages.get(self.code, self.code)
        try:
            self.message = template.format(**data)
        except (KeyError, IndexError):
            self.message = template
        super().__init__(self.message)

    def as_dict(self) -> dict[str, Any]:
        """Serialize to dict (useful for APIs)."""
        return {
            'kind': self.kind,
            'code': self.code,
            'message': self.message,
            'data': {
                k: str(v) if isinstance(v, Decimal) else v
                for k, v in self.data.items()
            }
        }


class Locked(ConsignmentError):
    """Another user holds the agreement's counting session."""

    kind = 'locked'
    default_code = 'LOCKED'

    @property
    def user_name(self) -> str:
        """Shortcut for data['user_name']."""
        return self.data.get('user_name', '')


class NotOwner(ConsignmentError):
    """Caller lacks the required relationship (ownership or permission)."""

    kind = 'not_owner'
    default_code = 'NOT_OWNER'


class ValidationError(ConsignmentError):
    """Request cannot be applied as given; the caller must correct it."""

    kind = 'validation_error'
    default_code = 'INVALID_TRANSITION'

    @property
    def field(self) -> str | None:
        """Shortcut for data['field']."""
        return self.data.get('field')


class NotFound(ConsignmentError):
    """Session, document, line or agreement does not exist."""

    kind = 'not_found'
    default_code = 'DOCUMENT_NOT_FOUND'
