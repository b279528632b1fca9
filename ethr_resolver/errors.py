from __future__ import annotations


class ResolverError(Exception):
    pass


class UnsupportedMethod(ResolverError):
    """DID method or identifier format is not handled; raised before any I/O."""
    pass


class RegistryUnavailable(ResolverError):
    """Transport or node failure while reading the registry. Always fatal."""
    pass


class MalformedEvent(RegistryUnavailable):
    pass


class ResolutionCancelled(RegistryUnavailable):
    pass


class UnrecognizedAttribute(ResolverError):
    """Attribute name or value the key encoder cannot interpret.

    Never escapes resolution: the encoder catches it and keeps the attribute
    in the raw view only.
    """
    pass
