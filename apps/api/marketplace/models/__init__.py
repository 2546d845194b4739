"""Expose ORM models."""
from .application import Application, ApplicationStatus, Guarantor
from .audit import ApplicationAuditEntry
from .availability import AvailabilitySlot
from .document import ApplicantType, ApplicationDocument, DocumentStatus
from .message import ApplicationMessage
from .offer import Offer, OfferStatus
from .profile import Profile
from .property import ListingType, Property, PropertyImage, PropertyStatus
from .visit import VisitRequest, VisitStatus

__all__ = [
    "ApplicantType",
    "Application",
    "ApplicationAuditEntry",
    "ApplicationDocument",
    "ApplicationMessage",
    "ApplicationStatus",
    "AvailabilitySlot",
    "DocumentStatus",
    "Guarantor",
    "ListingType",
    "Offer",
    "OfferStatus",
    "Profile",
    "Property",
    "PropertyImage",
    "PropertyStatus",
    "VisitRequest",
    "VisitStatus",
]
