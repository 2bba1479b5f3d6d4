"""
Plate template registry and loader.

The template set is fixed: one blank plate image per emirate and vehicle
class. Keys look like `dubai`, `dubai_bike`, `dubai_classic` or `abudhabi2`
(second-generation Abu Dhabi art).
"""

import re
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Mapping, Optional, Union
from pathlib import Path

from PIL import Image

from .assets import AssetLoader
from .errors import AssetLoadFailure, TemplateNotFound

logger = logging.getLogger(__name__)


class VehicleClass(Enum):
    """Plate shape families."""
    PRIVATE = "private"
    BIKE = "bike"
    CLASSIC = "classic"


# Registry key -> asset file name (relative to the template base)
PLATE_TEMPLATES: Dict[str, str] = {
    "abudhabi": "abudhabi-plate.webp",
    "abudhabi2": "abudhabi-plate2.webp",
    "abudhabi_bike": "AD-B-plate.webp",
    "abudhabi_classic": "AD-C-Plate.webp",
    "dubai": "dubai-plate.webp",
    "dubai_bike": "Dubai-B-plate.webp",
    "dubai_classic": "Dubai-C-Plate.webp",
    "ajman": "ajman-plate.webp",
    "ajman_bike": "Ajman-B-plate.webp",
    "ajman_classic": "ajman-C-plate.webp",
    "rak": "rak-plate.webp",
    "rak_bike": "RAK-B-plate.webp",
    "rak_classic": "RAK-C-Plate.webp",
    "fujairah": "fujariah-plate.webp",
    "fujairah_bike": "FUJ-B-plate.webp",
    "sharjah": "sharjah-plate.webp",
    "sharjah_bike": "SHJ-B-plate.webp",
    "sharjah_classic": "Shj-C-Plate.webp",
    "umm_al_quwain": "umm-al-q-plate.webp",
    "umm_al_quwain_bike": "UAQ-B-plate.webp",
}

# Display name -> region key
REGION_ALIASES: Dict[str, str] = {
    "abu dhabi": "abudhabi",
    "dubai": "dubai",
    "sharjah": "sharjah",
    "ajman": "ajman",
    "umm al quwain": "umm_al_quwain",
    "ras al khaimah": "rak",
    "fujairah": "fujairah",
}

# Region key -> storage folder
REGION_FOLDERS: Dict[str, str] = {
    "abudhabi": "abu-dhabi",
    "dubai": "dubai",
    "sharjah": "sharjah",
    "ajman": "ajman",
    "umm_al_quwain": "umm-al-quwain",
    "rak": "ras-al-khaimah",
    "fujairah": "fujairah",
}


def normalize_region(region: str) -> str:
    """
    Map a display name or loose key to a registry region key.

    Examples:
        >>> normalize_region("Ras Al Khaimah")
        'rak'
        >>> normalize_region("Umm Al Quwain")
        'umm_al_quwain'
    """
    cleaned = (region or "").strip()
    alias = REGION_ALIASES.get(cleaned.lower())
    if alias:
        return alias
    return re.sub(r"\s+", "_", cleaned.lower())


def region_folder(region: str) -> str:
    """Storage folder for a region (`umm_al_quwain` -> `umm-al-quwain`)."""
    key = normalize_region(region)
    return REGION_FOLDERS.get(key, key.replace("_", "-"))


def coerce_vehicle_class(value: Union[str, VehicleClass, None]) -> VehicleClass:
    """Anything that isn't bike/classic is a private plate."""
    if isinstance(value, VehicleClass):
        return value
    try:
        return VehicleClass((value or "private").lower())
    except ValueError:
        return VehicleClass.PRIVATE


def template_key(region: str, vehicle_class: Union[str, VehicleClass] = VehicleClass.PRIVATE, version: int = 1) -> str:
    """
    Registry key for a region/class pair.

    bike/classic append a suffix; private v2 plates use the `{region}2` art.
    """
    region = normalize_region(region)
    vehicle_class = coerce_vehicle_class(vehicle_class)
    if vehicle_class != VehicleClass.PRIVATE:
        return f"{region}_{vehicle_class.value}"
    if version == 2:
        return f"{region}2"
    return region


@dataclass
class TemplateAsset:
    """A loaded blank plate."""
    key: str
    image: Image.Image

    @property
    def size(self):
        return self.image.size


class TemplateRegistry:
    """
    Read-only mapping from template key to asset location.

    Locations are resolved against `base`, which can be a directory or an
    http(s) URL prefix.
    """

    def __init__(self, base: Union[str, Path] = "", templates: Optional[Mapping[str, str]] = None):
        self.base = str(base)
        self._templates = dict(PLATE_TEMPLATES if templates is None else templates)

    def location(self, key: str) -> Optional[str]:
        """Resolved location for a key, or None if the key is not registered."""
        name = self._templates.get(key)
        if name is None:
            return None
        if name.startswith(("http://", "https://", "data:", "/")) or not self.base:
            return name
        if self.base.startswith(("http://", "https://")):
            return f"{self.base.rstrip('/')}/{name}"
        return str(Path(self.base) / name)

    def keys(self) -> List[str]:
        return sorted(self._templates)

    def regions(self) -> List[str]:
        return sorted(key for key in self._templates if key in REGION_FOLDERS)

    def __contains__(self, key: str) -> bool:
        return key in self._templates


class TemplateLoader:
    """
    Resolves (region, vehicle class) to a loaded template.

    Fallback policy: the class-suffixed key first; if it is unregistered or
    fails to load, the bare region key once; then TemplateNotFound.
    """

    def __init__(self, registry: TemplateRegistry, loader: Optional[AssetLoader] = None):
        self.registry = registry
        self.loader = loader or AssetLoader()

    async def load(
        self,
        region: str,
        vehicle_class: Union[str, VehicleClass] = VehicleClass.PRIVATE,
        version: int = 1,
    ) -> TemplateAsset:
        """
        Load the template for a plate.

        Args:
            region: Region key or display name
            vehicle_class: private / bike / classic
            version: Plate art generation (2 only exists for Abu Dhabi)

        Returns:
            TemplateAsset with the resolved key

        Raises:
            TemplateNotFound: if neither the specific nor the bare key loads
        """
        bare = normalize_region(region)
        key = template_key(bare, vehicle_class, version)

        asset = await self._try_load(key)
        if asset is None and key != bare:
            logger.info(f"Template {key} unavailable, falling back to {bare}")
            asset = await self._try_load(bare)
        if asset is None:
            raise TemplateNotFound(key, bare)
        return asset

    async def _try_load(self, key: str) -> Optional[TemplateAsset]:
        location = self.registry.location(key)
        if location is None:
            return None
        try:
            image = await self.loader.load_image(location)
        except AssetLoadFailure as e:
            logger.warning(f"Failed to load template {key}: {e}")
            return None
        return TemplateAsset(key=key, image=image)
