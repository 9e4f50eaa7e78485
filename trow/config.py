"""Registry configuration and the builder that assembles it."""

from __future__ import annotations

import base64
import hashlib
import hmac
import json
import os
import uuid
from dataclasses import dataclass, field
from pathlib import Path

_HASH_SCHEME = "pbkdf2-sha256"
_HASH_ITERATIONS = 100_000


class ConfigError(Exception):
    """Raised when the configuration cannot be used."""

    def __init__(self, message: str = "invalid data directory") -> None:
        super().__init__(message)


@dataclass(frozen=True)
class NetAddr:
    """A host name or interface and a port."""

    host: str
    port: int

    def __post_init__(self) -> None:
        if not 0 <= self.port <= 0xFFFF:
            raise ValueError(f"port out of range: {self.port}")


@dataclass(frozen=True)
class TlsConfig:
    """Paths to the TLS certificate and private key."""

    cert_file: str
    key_file: str


def _hash_password(password: str, salt: bytes, iterations: int) -> bytes:
    return hashlib.pbkdf2_hmac("sha256", password.encode(), salt, iterations)


@dataclass(frozen=True)
class UserConfig:
    """The user allowed to log in, with an encoded salted password hash."""

    user: str
    hash_encoded: str

    @classmethod
    def _from_password(cls, user: str, password: str) -> UserConfig:
        salt = uuid.uuid4().bytes
        digest = _hash_password(password, salt, _HASH_ITERATIONS)
        encoded = "${}$i={}${}${}".format(
            _HASH_SCHEME,
            _HASH_ITERATIONS,
            base64.b64encode(salt).decode(),
            base64.b64encode(digest).decode(),
        )
        return cls(user=user, hash_encoded=encoded)

    def verify(self, password: str) -> bool:
        """Whether ``password`` matches the stored hash."""
        try:
            _, scheme, rounds, salt_b64, hash_b64 = self.hash_encoded.split("$")
            if scheme != _HASH_SCHEME or not rounds.startswith("i="):
                raise ValueError(scheme)
            iterations = int(rounds[2:])
            salt = base64.b64decode(salt_b64)
            expected = base64.b64decode(hash_b64)
        except ValueError as exc:
            raise ConfigError(f"malformed password hash: {exc}") from exc
        return hmac.compare_digest(_hash_password(password, salt, iterations), expected)


@dataclass
class TrowConfig:
    """Everything the registry front end and back end need to start."""

    data_dir: str
    addr: NetAddr
    grpc_listen: str
    host_names: list[str]
    proxy_hub: bool
    allow_prefixes: list[str]
    allow_images: list[str]
    deny_prefixes: list[str]
    deny_images: list[str]
    dry_run: bool
    max_manifest_size: int
    max_blob_size: int
    cors: bool
    log_level: str
    token_secret: str = field(default_factory=lambda: str(uuid.uuid4()))
    tls: TlsConfig | None = None
    hub_user: str | None = None
    hub_pass: str | None = None
    user: UserConfig | None = None


def _debug_list(items: list[str]) -> str:
    return json.dumps(items)


class TrowBuilder:
    """Collects the registry configuration step by step."""

    def __init__(
        self,
        data_dir: str,
        addr: NetAddr,
        listen: str,
        host_names: list[str],
        proxy_hub: bool,
        allow_prefixes: list[str],
        allow_images: list[str],
        deny_prefixes: list[str],
        deny_images: list[str],
        dry_run: bool,
        cors: bool,
        max_manifest_size: int,
        max_blob_size: int,
        log_level: str,
    ) -> None:
        self.config = TrowConfig(
            data_dir=data_dir,
            addr=addr,
            grpc_listen=listen,
            host_names=list(host_names),
            proxy_hub=proxy_hub,
            allow_prefixes=list(allow_prefixes),
            allow_images=list(allow_images),
            deny_prefixes=list(deny_prefixes),
            deny_images=list(deny_images),
            dry_run=dry_run,
            max_manifest_size=max_manifest_size,
            max_blob_size=max_blob_size,
            cors=cors,
            log_level=log_level,
        )

    def with_tls(self, cert_file: str, key_file: str) -> TrowBuilder:
        self.config.tls = TlsConfig(cert_file=cert_file, key_file=key_file)
        return self

    def with_user(self, user: str, password: str) -> TrowBuilder:
        self.config.user = UserConfig._from_password(user, password)
        return self

    def with_hub_auth(self, hub_user: str, token: str) -> TrowBuilder:
        self.config.hub_user = hub_user
        self.config.hub_pass = token
        return self

    def check_tls(self) -> None:
        """Raise ConfigError if TLS is on but the certificate or key is missing."""
        tls = self.config.tls
        if tls is None:
            return
        if not (Path(tls.cert_file).is_file() and Path(tls.key_file).is_file()):
            raise ConfigError(
                "Trow requires a TLS certificate and key, but failed to find them. "
                f"{os.linesep}Expected to find TLS certificate at {tls.cert_file} "
                f"and key at {tls.key_file}"
            )

    def summary(self) -> str:
        """Describe the configuration as printed at start-up."""
        cfg = self.config
        lines = [
            f"Starting Trow on {cfg.addr.host}:{cfg.addr.port}",
            f"\nMaximum blob size: {cfg.max_blob_size} Mebibytes",
            f"Maximum manifest size: {cfg.max_manifest_size} Mebibytes",
            "\n**Validation callback configuration\n",
            "  By default all remote images are denied, and all local images "
            "present in the repository are allowed\n",
            "  These host names will be considered local (refer to this registry): "
            + _debug_list(cfg.host_names),
            "  Images with these prefixes are explicitly allowed: "
            + _debug_list(cfg.allow_prefixes),
            "  Images with these names are explicitly allowed: "
            + _debug_list(cfg.allow_images),
            "  Local images with these prefixes are explicitly denied: "
            + _debug_list(cfg.deny_prefixes),
            "  Local images with these names are explicitly denied: "
            + _debug_list(cfg.deny_images)
            + "\n",
        ]
        if cfg.proxy_hub:
            lines.append("  Docker Hub repostories are being proxy-cached under f/docker/\n")
        if cfg.cors:
            lines.append("  Cross-Origin Resource Sharing(CORS) requests are allowed\n")
        return "\n".join(lines) + "\n"