"""Asset update service."""

from .service import ICON_TABLES, AssetService, AssetUpdateOutput, resize_icon

__all__ = ["ICON_TABLES", "AssetService", "AssetUpdateOutput", "resize_icon"]
