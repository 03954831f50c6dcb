from .base import WorkflowDocument, DocumentItem
from .pickups import PickupRequest, Pickup, PickupItem
from .loadings import Loading, LoadingItem
from .deliveries import Delivery, DeliveryItem
from .returns import Return, ReturnItem
