from .branches import TimeStampedModel, Branch, Customer
from .number_sequences import CodeSequence
from .settings import CoreSetting
