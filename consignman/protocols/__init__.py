"""
Consignman Protocols.

Defines interfaces for external system integration.
"""

from consignman.protocols.authorization import Authorizer
from consignman.protocols.events import ConsignmentEvent, EventSink
from consignman.protocols.lookups import ProductCatalog, UserDirectory

__all__ = [
    "Authorizer",
    "ConsignmentEvent",
    "EventSink",
    "ProductCatalog",
    "UserDirectory",
]
