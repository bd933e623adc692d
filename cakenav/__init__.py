"""cakenav - Resolve CakePHP view, cell and asset references to files."""

from cakenav.config import FileInfo, ResolverConfig, ResourceKind
from cakenav.resolver import Resolver
from cakenav.workspace import Workspace

__version__ = "0.1.0"
__all__ = ["FileInfo", "Resolver", "ResolverConfig", "ResourceKind", "Workspace"]
