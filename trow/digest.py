"""Content digests: algorithms, parsing and hashing of byte streams."""

from __future__ import annotations

import hashlib
import re
from dataclasses import dataclass
from enum import Enum
from typing import BinaryIO

BUFFER_SIZE = 1024

_ALGO_PATTERN = re.compile(r"[A-Za-z0-9_+.-]+")
_HASH_PATTERN = re.compile(r"[A-Fa-f0-9]+")


class DigestError(ValueError):
    """Raised when a string cannot be read as a digest."""


class DigestAlgorithm(Enum):
    """Hash algorithms a digest may use."""

    SHA256 = "sha256"
    SHA512 = "sha512"

    @classmethod
    def from_str(cls, s: str) -> DigestAlgorithm:
        """Read an algorithm name, in lower or upper case."""
        names = {
            "sha256": cls.SHA256,
            "SHA256": cls.SHA256,
            "sha512": cls.SHA512,
            "SHA512": cls.SHA512,
        }
        try:
            return names[s]
        except KeyError:
            raise DigestError(f"'{s}' is not a valid DigestAlgorithm") from None

    @classmethod
    def default(cls) -> DigestAlgorithm:
        return cls.SHA256

    def __str__(self) -> str:
        return self.value


SUPPORTED_DIGEST_ALGORITHMS = (DigestAlgorithm.SHA256, DigestAlgorithm.SHA512)


@dataclass(frozen=True)
class Digest:
    """An algorithm together with the hex-encoded hash it produced."""

    algo: DigestAlgorithm
    hash: str

    def __str__(self) -> str:
        return f"{self.algo}:{self.hash}"


def _hex_digest(algo: DigestAlgorithm, reader: BinaryIO) -> str:
    hasher = hashlib.new(algo.value)
    while True:
        chunk = reader.read(BUFFER_SIZE)
        hasher.update(chunk)
        # A short read is taken as the end of the stream.
        if len(chunk) < BUFFER_SIZE:
            break
    return hasher.hexdigest()


def sha256_digest(reader: BinaryIO) -> str:
    """Return the hex SHA-256 hash of everything read from ``reader``."""
    return _hex_digest(DigestAlgorithm.SHA256, reader)


def sha256_tag_digest(reader: BinaryIO) -> str:
    """Return ``sha256:<hex>`` for the content of ``reader``."""
    return f"{DigestAlgorithm.SHA256}:{sha256_digest(reader)}"


def sha512_digest(reader: BinaryIO) -> str:
    """Return the hex SHA-512 hash of everything read from ``reader``."""
    return _hex_digest(DigestAlgorithm.SHA512, reader)


def sha512_tag_digest(reader: BinaryIO) -> str:
    """Return ``sha512:<hex>`` for the content of ``reader``."""
    return f"{DigestAlgorithm.SHA512}:{sha512_digest(reader)}"


def hash_tag(algo: DigestAlgorithm, reader: BinaryIO) -> str:
    """Return a hash in the form ``algo:hash``."""
    if algo is DigestAlgorithm.SHA512:
        return sha512_tag_digest(reader)
    return sha256_tag_digest(reader)


def hash_reference(algo: DigestAlgorithm, reader: BinaryIO) -> str:
    """Return the bare hex hash, without the algorithm prefix."""
    if algo is DigestAlgorithm.SHA512:
        return sha512_digest(reader)
    return sha256_digest(reader)


def parse(component: str) -> Digest:
    """Parse ``algo:hash`` into a :class:`Digest`."""
    parts = component.split(":")
    if len(parts) < 2:
        raise DigestError(f"Component cannot be parsed into a digest: {component}")

    algo, hex_hash = parts[0], parts[1]

    if not _ALGO_PATTERN.fullmatch(algo):
        raise DigestError(
            "Component cannot be parsed into a TAG wrong digest algorithm: "
            f"{component} - {algo}"
        )
    if not _HASH_PATTERN.fullmatch(hex_hash):
        raise DigestError(
            "Component cannot be parsed into a TAG wrong digest format: "
            f"{component} - {hex_hash}"
        )

    return Digest(algo=DigestAlgorithm.from_str(algo), hash=hex_hash)