from fleetdesk.models.user import User
from fleetdesk.models.reference import (
    BodyType, Client, ClientType, Insurer, StickerType, VehicleCategory, VehicleType,
)
from fleetdesk.models.vehicle import Vehicle
from fleetdesk.models.sticker import StickerStatus, StickerStock
from fleetdesk.models.audit import AuditLog

__all__ = [
    "User",
    "Client", "ClientType",
    "BodyType", "VehicleCategory", "VehicleType",
    "Insurer", "StickerType",
    "Vehicle",
    "StickerStock", "StickerStatus",
    "AuditLog",
]
