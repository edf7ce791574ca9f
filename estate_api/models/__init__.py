# Importing the package registers every mapped class on Base.metadata
from estate_api.models.tenant import Tenant
from estate_api.models.user import User
from estate_api.models.property import Property
from estate_api.models.bid import Bid
from estate_api.models.audit_log import AuditLog

__all__ = ["Tenant", "User", "Property", "Bid", "AuditLog"]
