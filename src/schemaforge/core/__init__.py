"""Base kinds, constraint kinds and builtin type descriptors."""
