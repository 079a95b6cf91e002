"""Runtime lookups against the compiled registry."""

from .service import RegistryService, load_artifact_module, registry_from_module

__all__ = ["RegistryService", "load_artifact_module", "registry_from_module"]
