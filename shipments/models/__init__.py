# shipments/models/__init__.py
from .shipments import Shipment, ShipmentStatus, PaymentType, KodePenerus
from .tracking import ShipmentTracking
