"""Storage interfaces for blobs and manifests, with their errors and records."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import BinaryIO

from trow.digest import Digest, DigestAlgorithm


class StorageDriverError(Exception):
    """Base class of every error a storage driver raises."""

    message = "Internal storage error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message if message is not None else self.message)


class InvalidNameError(StorageDriverError):
    """The repository or tag name is not valid."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"the name `{name}` is not valid")


class InvalidManifestError(StorageDriverError):
    message = "manifest is not valid"


class InvalidDigestError(StorageDriverError):
    message = "Digest did not match content"


class UnsupportedError(StorageDriverError):
    message = "Unsupported Operation"


class InvalidContentRangeError(StorageDriverError):
    message = "Requested index does not match actual"


class InternalStorageError(StorageDriverError):
    message = "Internal storage error"


@dataclass(frozen=True)
class ContentInfo:
    """Length of an uploaded chunk and the inclusive byte range it covers."""

    length: int
    range: tuple[int, int]


@dataclass(frozen=True)
class UploadInfo:
    """Progress of a resumable upload."""

    name: str
    session_id: str
    uploaded: int
    size: int


@dataclass(frozen=True)
class Stored:
    """Result of storing a chunk of a blob."""

    total_stored: int
    chunk: int
    complete: bool  # False if the transfer hit the data cap


@dataclass
class BlobReader:
    """A readable, seekable stream over a blob and the digest it has."""

    digest: Digest
    reader: BinaryIO

    def __enter__(self) -> BlobReader:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.reader.close()


@dataclass
class ManifestReader:
    """A readable, seekable stream over a manifest, its media type and digest."""

    content_type: str
    digest: Digest
    reader: BinaryIO

    def __enter__(self) -> ManifestReader:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.reader.close()


class BlobStorage(ABC):
    """Operations on the blobs of a registry."""

    @abstractmethod
    def get_blob(self, name: str, digest: Digest) -> BlobReader:
        """Return the blob in repository ``name`` identified by ``digest``."""

    @abstractmethod
    def delete_blob(self, name: str, digest: Digest) -> None:
        """Delete the blob identified by ``name`` and ``digest``."""

    @abstractmethod
    def start_blob_upload(self, name: str) -> str:
        """Start a resumable upload and return its session identifier."""

    @abstractmethod
    def status_blob_upload(self, name: str, session_id: str) -> UploadInfo:
        """Return the progress of the upload ``session_id``."""

    @abstractmethod
    def store_blob_chunk(
        self,
        name: str,
        session_id: str,
        data_info: ContentInfo | None,
        data: BinaryIO,
    ) -> Stored:
        """Append a chunk read from ``data`` to the upload ``session_id``.

        ``data_info``, when given, describes the range the chunk must cover.
        """

    @abstractmethod
    def complete_and_verify_blob_upload(
        self, name: str, session_id: str, digest: Digest
    ) -> None:
        """Finish the upload and check the blob matches ``digest``."""

    @abstractmethod
    def cancel_blob_upload(self, name: str, session_id: str) -> None:
        """Abandon the upload ``session_id`` and release what it holds."""

    @abstractmethod
    def has_blob(self, name: str, digest: Digest) -> bool:
        """Whether the blob exists."""


class ManifestStorage(ABC):
    """Operations on the manifests of a registry."""

    @abstractmethod
    def get_manifest(self, name: str, tag: str) -> ManifestReader:
        """Return the manifest for ``name`` at ``tag``, a tag or a digest."""

    @abstractmethod
    def store_manifest(self, name: str, tag: str, data: BinaryIO) -> Digest:
        """Store the manifest read from ``data`` under ``tag`` and return its digest."""

    @abstractmethod
    def delete_manifest(self, name: str, digest: Digest) -> None:
        """Delete the manifest identified by ``digest``."""

    @abstractmethod
    def has_manifest(
        self, name: str, algo: DigestAlgorithm, reference: str
    ) -> bool:
        """Whether the manifest exists."""