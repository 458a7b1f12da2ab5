"""Registry bootstrap (import side-effect)."""
from .api import compatibility, set_registry
from ._bootstrap import build_registry

set_registry(build_registry(compatibility()))
