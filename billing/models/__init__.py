from .collections import Collection, CollectionItem, CollectionPayment, CollectionStatus, CustomerRole
