from __future__ import annotations


class PackageGenerationError(RuntimeError):
    pass


class RegistryError(RuntimeError):
    pass
