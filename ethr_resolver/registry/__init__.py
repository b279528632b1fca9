# ethr_resolver/registry/__init__.py

from .models import ChangeEvent, OwnerChanged, DelegateChanged, AttributeChanged
from .provider import RegistryProvider
from .providers.memory_provider import InMemoryRegistry
from .providers.rpc_provider import JsonRpcRegistry
from ethr_resolver.constants import DEFAULT_REGISTRY_ADDRESS, DEFAULT_RPC_TIMEOUT, DEFAULT_RPC_URL
import os


def load_registry_provider(config: dict | None = None) -> RegistryProvider:
    """
    Factory resolver for selecting the registry backend.

        - rpc (default): JSON-RPC against an Ethereum node
        - memory: in-process contract simulation
    """
    config = config or {}
    provider = config.get("provider") or os.getenv("ETHR_REGISTRY_PROVIDER", "rpc")

    if provider == "memory":
        return InMemoryRegistry()

    if provider == "rpc":
        rpc_url = config.get("rpc_url") or os.getenv("ETHR_RPC_URL", DEFAULT_RPC_URL)
        registry = config.get("registry") or os.getenv("ETHR_REGISTRY_ADDRESS", DEFAULT_REGISTRY_ADDRESS)
        timeout = float(config.get("timeout") or os.getenv("ETHR_RPC_TIMEOUT", DEFAULT_RPC_TIMEOUT))
        return JsonRpcRegistry(rpc_url, registry, timeout=timeout)

    raise ValueError(f"Unknown registry provider: {provider}")


__all__ = [
    "ChangeEvent",
    "OwnerChanged",
    "DelegateChanged",
    "AttributeChanged",
    "RegistryProvider",
    "InMemoryRegistry",
    "JsonRpcRegistry",
    "load_registry_provider",
]
