"""Market listing from the Morpho GraphQL indexer."""
from .morpho import MorphoIndexerSource

__all__ = ["MorphoIndexerSource"]
