from .client import PhoenixClient
from .config import ClientConfig, RetryPolicy
from .decorators import mock_phoenix
from .patch import patch_phoenix, start_patch_phoenix, stop_patch_phoenix


# Lazy import for seeding
def __getattr__(name: str):
    if name == "seed_table":
        from .seeding import seed_table
        return seed_table
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

__all__ = [
    "ClientConfig",
    "PhoenixClient",
    "RetryPolicy",
    "mock_phoenix",
    "patch_phoenix",
    "seed_table",
    "start_patch_phoenix",
    "stop_patch_phoenix",
]
