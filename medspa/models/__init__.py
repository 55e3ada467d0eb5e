"""
SQLAlchemy Models Package
MedSpa Database Models
"""

from medspa.models.location import Location
from medspa.models.user import User
from medspa.models.client import Client
from medspa.models.appointment import Appointment, AppointmentStatus
from medspa.models.payment import Payment, PaymentStatus
from medspa.models.catalog import Service, Package, Product
from medspa.models.clinical import Treatment, ConsentForm
from medspa.models.notification import Notification

__all__ = [
    "Location",
    "User",
    "Client",
    "Appointment",
    "AppointmentStatus",
    "Payment",
    "PaymentStatus",
    "Service",
    "Package",
    "Product",
    "Treatment",
    "ConsentForm",
    "Notification",
]
