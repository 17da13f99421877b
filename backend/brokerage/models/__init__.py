from brokerage.models.policy import Policy, PolicyStatus
from brokerage.models.commission import Commission, CommissionPart, CommissionStatus, CommissionType
from brokerage.models.collaborator import Collaborator

__all__ = [
    "Policy",
    "PolicyStatus",
    "Commission",
    "CommissionPart",
    "CommissionStatus",
    "CommissionType",
    "Collaborator",
]
