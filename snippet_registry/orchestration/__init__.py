"""Registry compilation and artifact emission."""

from .compiler import GenerationResult, RegistryCompiler

__all__ = ["GenerationResult", "RegistryCompiler"]
