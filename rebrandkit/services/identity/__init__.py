"""Identity rewrite service."""

from .android import AndroidIdentityRewriter
from .descriptors import RuntimeConfigRewriter, VersionFormat, VersionStamper
from .ios import IosIdentityRewriter
from .service import IdentityRewriteOutput, IdentityRewriteService

__all__ = [
    "AndroidIdentityRewriter",
    "IosIdentityRewriter",
    "IdentityRewriteOutput",
    "IdentityRewriteService",
    "RuntimeConfigRewriter",
    "VersionFormat",
    "VersionStamper",
]
