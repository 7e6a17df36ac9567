from .base import HttpxProviderBase, search_term
from .knaben import KnabenProvider
from .registry import PROVIDER_CLASSES, build_providers
from .tpb import ThePirateBayProvider
from .zilean import ZileanProvider

__all__ = [
    "PROVIDER_CLASSES",
    "HttpxProviderBase",
    "KnabenProvider",
    "ThePirateBayProvider",
    "ZileanProvider",
    "build_providers",
    "search_term",
]
