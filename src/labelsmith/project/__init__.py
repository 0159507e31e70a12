"""Project discovery and corpus resolution."""

from .corpus import Corpus, CorpusResolver
from .locators import (
    DEFAULT_MANIFEST_NAME,
    ManifestLocator,
    MasterFileLocator,
    ProjectLocator,
    StaticProjectLocator,
)

__all__ = [
    "Corpus",
    "CorpusResolver",
    "DEFAULT_MANIFEST_NAME",
    "ManifestLocator",
    "MasterFileLocator",
    "ProjectLocator",
    "StaticProjectLocator",
]
