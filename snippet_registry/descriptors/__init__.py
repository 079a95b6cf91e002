"""Descriptor module discovery helpers."""

from .loader import DescriptorLoader, build_descriptor_table, descriptors_from_module

__all__ = ["DescriptorLoader", "build_descriptor_table", "descriptors_from_module"]
