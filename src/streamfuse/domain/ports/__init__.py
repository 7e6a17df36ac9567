from .catalog import CatalogStorePort
from .debrid import DebridApiPort
from .extractor import ExtractorPort
from .metadata import MetadataPort
from .provider import ProviderPort

__all__ = [
    "CatalogStorePort",
    "DebridApiPort",
    "ExtractorPort",
    "MetadataPort",
    "ProviderPort",
]
