"""Image manifests: reading schema 2 manifests and manifest lists from JSON."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

FOREIGN_LAYER_MEDIA_TYPE = "application/vnd.docker.image.rootfs.foreign.diff.tar.gzip"

_U32_MAX = 2**32 - 1
_U64_MAX = 2**64 - 1


class MediaType(str, Enum):
    """Media types a manifest may declare."""

    DOCKER_V1 = "application/vnd.docker.distribution.manifest.v1+json"
    DOCKER_V2 = "application/vnd.docker.distribution.manifest.v2+json"
    OCI_V1 = "application/vnd.oci.image.manifest.v1+json"
    DOCKER_LIST = "application/vnd.docker.distribution.manifest.list.v2+json"
    OCI_INDEX = "application/vnd.oci.image.index.v1+json"
    # The media type is optional in the JSON; OCI v1 is assumed when absent.
    DEFAULT = "application/vnd.oci.image.manifest.v1+json"


class InvalidManifest(ValueError):
    """Raised when JSON does not describe a supported manifest."""

    def __init__(self, err: str) -> None:
        self.err = err
        super().__init__(f"Invalid Manifest: {err}")


def _is_uint(value: Any, maximum: int) -> bool:
    return (
        isinstance(value, int)
        and not isinstance(value, bool)
        and 0 <= value <= maximum
    )


def _require_object(obj: Any, context: str) -> dict[str, Any]:
    if not isinstance(obj, dict):
        raise InvalidManifest(f"{context} must be an object")
    return obj


def _require_str(obj: dict[str, Any], key: str, context: str) -> str:
    value = obj.get(key)
    if not isinstance(value, str):
        raise InvalidManifest(f"field `{key}` of {context} must be a string")
    return value


def _optional_str(obj: dict[str, Any], key: str, context: str) -> str | None:
    value = obj.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise InvalidManifest(f"field `{key}` of {context} must be a string")
    return value


def _require_uint(obj: dict[str, Any], key: str, maximum: int, context: str) -> int:
    value = obj.get(key)
    if not _is_uint(value, maximum):
        raise InvalidManifest(f"field `{key}` of {context} must be an unsigned integer")
    return value


def _optional_uint(
    obj: dict[str, Any], key: str, maximum: int, context: str
) -> int | None:
    if obj.get(key) is None:
        return None
    return _require_uint(obj, key, maximum, context)


def _require_list(obj: dict[str, Any], key: str, context: str) -> list[Any]:
    value = obj.get(key)
    if not isinstance(value, list):
        raise InvalidManifest(f"field `{key}` of {context} must be an array")
    return value


@dataclass(frozen=True)
class Platform:
    """The platform an entry of a manifest list is built for."""

    architecture: str
    os: str
    os_version: str | None = None
    os_features: str | None = None
    variant: str | None = None
    features: list[str] | None = None

    @classmethod
    def _from_json(cls, raw: Any) -> Platform:
        ctx = "platform"
        obj = _require_object(raw, ctx)
        features = obj.get("features")
        if features is not None:
            if not isinstance(features, list) or not all(
                isinstance(f, str) for f in features
            ):
                raise InvalidManifest("field `features` of platform must be a list of strings")
            features = list(features)
        return cls(
            architecture=_require_str(obj, "architecture", ctx),
            os=_require_str(obj, "os", ctx),
            os_version=_optional_str(obj, "os.version", ctx),
            os_features=_optional_str(obj, "os.features", ctx),
            variant=_optional_str(obj, "variant", ctx),
            features=features,
        )


@dataclass(frozen=True)
class ManifestListEntry:
    """One manifest referenced by a manifest list."""

    media_type: str
    size: int
    digest: str
    platform: Platform

    @classmethod
    def _from_json(cls, raw: Any) -> ManifestListEntry:
        ctx = "manifest list entry"
        obj = _require_object(raw, ctx)
        if "platform" not in obj:
            raise InvalidManifest("field `platform` of manifest list entry is required")
        return cls(
            media_type=_require_str(obj, "mediaType", ctx),
            size=_require_uint(obj, "size", _U32_MAX, ctx),
            digest=_require_str(obj, "digest", ctx),
            platform=Platform._from_json(obj["platform"]),
        )


@dataclass(frozen=True)
class ManifestObject:
    """A config or layer referenced by a manifest."""

    media_type: str
    digest: str
    size: int | None = None

    @classmethod
    def _from_json(cls, raw: Any, context: str) -> ManifestObject:
        obj = _require_object(raw, context)
        return cls(
            media_type=_require_str(obj, "mediaType", context),
            digest=_require_str(obj, "digest", context),
            size=_optional_uint(obj, "size", _U64_MAX, context),
        )


@dataclass(frozen=True)
class ManifestList:
    """A manifest list (or OCI index) pointing at per-platform manifests."""

    schema_version: int
    media_type: str
    manifests: list[ManifestListEntry]

    @classmethod
    def _from_json(cls, raw: dict[str, Any]) -> ManifestList:
        ctx = "manifest list"
        return cls(
            schema_version=_require_uint(raw, "schemaVersion", 255, ctx),
            media_type=_require_str(raw, "mediaType", ctx),
            manifests=[
                ManifestListEntry._from_json(entry)
                for entry in _require_list(raw, "manifests", ctx)
            ],
        )

    def get_local_asset_digests(self) -> list[str]:
        """Digests of the manifests the list refers to."""
        return [entry.digest for entry in self.manifests]

    def get_media_type(self) -> str:
        return self.media_type


@dataclass(frozen=True)
class ManifestV2:
    """A schema 2 image manifest: a config and a list of layers."""

    schema_version: int
    media_type: str | None
    config: ManifestObject
    layers: list[ManifestObject]

    @classmethod
    def _from_json(cls, raw: dict[str, Any]) -> ManifestV2:
        ctx = "manifest"
        if "config" not in raw:
            raise InvalidManifest("field `config` of manifest is required")
        return cls(
            schema_version=_require_uint(raw, "schemaVersion", 255, ctx),
            media_type=_optional_str(raw, "mediaType", ctx),
            config=ManifestObject._from_json(raw["config"], "config"),
            layers=[
                ManifestObject._from_json(layer, "layer")
                for layer in _require_list(raw, "layers", ctx)
            ],
        )

    def get_local_asset_digests(self) -> list[str]:
        """Digests of all layers except foreign ones, followed by the config."""
        digests = [
            layer.digest
            for layer in self.layers
            if layer.media_type != FOREIGN_LAYER_MEDIA_TYPE
        ]
        digests.append(self.config.digest)
        return digests

    def get_media_type(self) -> str:
        return self.media_type if self.media_type is not None else MediaType.DEFAULT.value


Manifest = Union[ManifestV2, ManifestList]


def _schema_2(raw: dict[str, Any]) -> Manifest:
    media_type = raw.get("mediaType")
    if not isinstance(media_type, str):
        media_type = MediaType.DEFAULT.value

    if media_type in (MediaType.DOCKER_V2.value, MediaType.OCI_V1.value):
        return ManifestV2._from_json(raw)
    if media_type in (MediaType.DOCKER_LIST.value, MediaType.OCI_INDEX.value):
        return ManifestList._from_json(raw)
    raise InvalidManifest(f"Media Type {media_type} is not supported.")


def from_json(raw: Any) -> Manifest:
    """Build a manifest from parsed JSON, raising InvalidManifest if unsupported."""
    version = raw.get("schemaVersion") if isinstance(raw, dict) else None
    if not _is_uint(version, _U64_MAX):
        raise InvalidManifest("schemaVersion is required")
    if version == 1:
        raise InvalidManifest(
            "Manifest Schema version 1 is not supported. Please update."
        )
    if version == 2:
        return _schema_2(raw)
    raise InvalidManifest(f"Unsupported version: {version}")