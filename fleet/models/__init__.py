from .vehicles import Vehicle, VehicleType
from .queues import ResourceQueue, TruckQueue, VehicleQueue, QueueSequence
