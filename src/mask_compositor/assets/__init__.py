from .masks import CatalogValidationError, MaskCatalog, default_catalog, load_mask_catalog, load_overlay, select_mask

__all__ = [
    "CatalogValidationError",
    "MaskCatalog",
    "default_catalog",
    "load_mask_catalog",
    "load_overlay",
    "select_mask",
]
