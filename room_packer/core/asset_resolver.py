import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, Optional

from room_packer.core.exceptions import AssetUnresolved

logger = logging.getLogger(__name__)


class AssetResolver(ABC):
    """
    Turns an opaque asset reference into something the host can use.

    Resolution blocks the caller; a failed resolution only skips the
    placement attempt that asked for it.
    """

    @abstractmethod
    def resolve(self, asset_id: str) -> Optional[Any]:
        """Return the resolved asset, or None if it cannot be resolved"""
        pass

    def require(self, asset_id: str, cell=None) -> Any:
        """
        Resolve an asset or raise.

        Raises:
            AssetUnresolved: If resolve() returned None
        """
        asset = self.resolve(asset_id)
        if asset is None:
            raise AssetUnresolved(asset_id, cell)
        return asset


class CatalogAssetResolver(AssetResolver):
    """
    Resolves asset ids against an optional catalog.

    Without a catalog every non-empty id resolves to itself. Results are
    cached per id, so each asset is looked up once.
    """

    def __init__(self, catalog: Optional[Iterable[str]] = None):
        self.catalog = set(catalog) if catalog is not None else None
        self._cache: Dict[str, Optional[str]] = {}

    def resolve(self, asset_id: str) -> Optional[str]:
        if asset_id in self._cache:
            return self._cache[asset_id]

        if not asset_id:
            resolved = None
        elif self.catalog is None:
            resolved = asset_id
        else:
            resolved = asset_id if asset_id in self.catalog else None

        if resolved is None:
            logger.debug(f"Asset '{asset_id}' not found in catalog")

        self._cache[asset_id] = resolved
        return resolved
