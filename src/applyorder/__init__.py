"""applyorder - Safe apply and prune ordering for interrelated cluster resources."""

from .config import OrderConfig
from .dependency import ApplyPlan, DependencyPlanner, Edge, Graph
from .models import ObjMetadata

__version__ = "0.1.0"
__all__ = [
    "ApplyPlan",
    "DependencyPlanner",
    "Edge",
    "Graph",
    "ObjMetadata",
    "OrderConfig",
]
