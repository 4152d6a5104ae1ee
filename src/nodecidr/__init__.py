"""nodecidr - Populate Kubernetes node pod CIDRs from NetBox."""

from .cli import app
from .config import ControllerConfig
from .core.resolver import NodeCIDRResolver

__version__ = "0.1.0"
__all__ = ["app", "ControllerConfig", "NodeCIDRResolver"]
