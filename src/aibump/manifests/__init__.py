"""Version arithmetic and versioned manifest documents."""

from aibump.manifests.documents import (
    ManifestDocument,
    ManifestError,
    ManifestKind,
    dump_manifest,
    load_manifest,
    save_manifest,
)
from aibump.manifests.lockfile import refresh_lockfile
from aibump.manifests.semver import BumpKind, VersionFormatError, VersionTriple, bump_version

__all__ = [
    "BumpKind",
    "ManifestDocument",
    "ManifestError",
    "ManifestKind",
    "VersionFormatError",
    "VersionTriple",
    "bump_version",
    "dump_manifest",
    "load_manifest",
    "refresh_lockfile",
    "save_manifest",
]
