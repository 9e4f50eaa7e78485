"""Command line entry point: parse options and assemble the registry configuration."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from collections.abc import Sequence
from importlib.metadata import PackageNotFoundError, version

from trow.config import ConfigError, NetAddr, TrowBuilder

PROGRAM_NAME = "Trow"
PROGRAM_DESC = "The Cluster Registry"
DEFAULT_CERT_PATH = "./certs/domain.crt"
DEFAULT_KEY_PATH = "./certs/domain.key"
DEFAULT_DATA_PATH = "./data"
DEFAULT_HOST = "0.0.0.0"
DEFAULT_TLS_PORT = 8443
DEFAULT_PLAIN_PORT = 8000
DEFAULT_MANIFEST_SIZE = 4  # mebibytes
DEFAULT_BLOB_SIZE = 8192  # mebibytes
GRPC_LISTEN = "127.0.0.1:51000"
LOG_ENV_VAR = "TROW_LOG"
DEFAULT_LOG_LEVEL = "error"

_LOG_LEVELS = {
    "off": logging.CRITICAL + 10,
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
    "trace": logging.DEBUG,
}

_USER_SECRET_MISSING = "Either --password or --password-file must be set if --user is set"


def _program_version() -> str:
    try:
        return version("trow")
    except PackageNotFoundError:
        return "0.1"


def parse_list(names: str) -> list[str]:
    """Split a list on commas and whitespace, dropping empty items."""
    return names.replace(",", " ").split()


def read_secret_file(path: str) -> str:
    """Read a secret from ``path``, dropping one trailing newline (LF or CRLF)."""
    with open(path, encoding="utf-8", newline="") as handle:
        text = handle.read()
    if text.endswith("\n"):
        text = text[:-1]
        if text.endswith("\r"):
            text = text[:-1]
    return text


def _port(text: str) -> int:
    try:
        value = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Failed to parse port number: {text}") from None
    if not 0 <= value <= 0xFFFF:
        raise argparse.ArgumentTypeError(f"Failed to parse port number: {text}")
    return value


def _size(text: str) -> int:
    try:
        value = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Failed to parse size: {text}") from None
    if not 0 <= value <= 0xFFFFFFFF:
        raise argparse.ArgumentTypeError(f"Failed to parse size: {text}")
    return value


def build_parser() -> argparse.ArgumentParser:
    """Return the parser for the command line options."""
    parser = argparse.ArgumentParser(prog=PROGRAM_NAME.lower(), description=PROGRAM_DESC)
    parser.add_argument(
        "--host",
        help=f"Name of the host or interface to start Trow on. Defaults to {DEFAULT_HOST}",
    )
    parser.add_argument(
        "--port",
        type=_port,
        help="The port that trow will listen on. "
        f"Defaults to {DEFAULT_TLS_PORT} with TLS, {DEFAULT_PLAIN_PORT} without.",
    )
    parser.add_argument(
        "--no-tls",
        action="store_true",
        help="Turns off TLS. Normally only used in development and debugging.",
    )
    parser.add_argument(
        "-c", "--cert", help=f"Path to TLS certificate. Defaults to {DEFAULT_CERT_PATH}."
    )
    parser.add_argument(
        "-k", "--key", help=f"Path to TLS private key. Defaults to {DEFAULT_KEY_PATH}."
    )
    parser.add_argument(
        "-d", "--data-dir", help="Directory to store images and metadata in."
    )
    parser.add_argument(
        "-n",
        "--names",
        help="Host names for registry. Used in validation callbacks. "
        "Separate with comma or use quotes and spaces",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Don't actually run Trow, just validate arguments.",
    )
    parser.add_argument(
        "--allow-docker-official",
        action="store_true",
        help="Docker official images will be allowed in validation callbacks.",
    )
    parser.add_argument(
        "--deny-k8s-images",
        action="store_true",
        help="Deny the Kubernetes system images that validation callbacks allow by default.",
    )
    parser.add_argument(
        "--allow-prefixes",
        help="Images that begin with any of the listed prefixes will be allowed.",
    )
    parser.add_argument(
        "--allow-images",
        help="Images that match a full name in the list will be allowed.",
    )
    parser.add_argument(
        "--disallow-local-prefixes",
        help="Disallow local images that match the prefix, not including any host name.",
    )
    parser.add_argument(
        "--disallow-local-images",
        help="Disallow local images that match the full name, not including any host name.",
    )
    parser.add_argument(
        "-u",
        "--user",
        help="Username that can be used to access Trow. "
        "Must be used with --password or --password-file",
    )
    parser.add_argument(
        "-p", "--password", help="Password that can be used to access Trow."
    )
    parser.add_argument(
        "--password-file", help="Location of file with the password to access Trow."
    )
    parser.add_argument(
        "-v", "--version", action="store_true", help="Get the version number of Trow"
    )
    parser.add_argument(
        "--proxy-docker-hub",
        action="store_true",
        help="Proxies repos at f/docker/<repo_name> to docker.io/<repo_name>.",
    )
    parser.add_argument(
        "--hub-user",
        help="Username for the Docker Hub, used when proxying Docker Hub images.",
    )
    parser.add_argument(
        "--hub-token", help="Token for the Docker Hub, used when proxying."
    )
    parser.add_argument(
        "--hub-token-file", help="Location of file with the Docker Hub token."
    )
    parser.add_argument(
        "--enable-cors",
        action="store_true",
        help="Enable Cross-Origin Resource Sharing(CORS) requests.",
    )
    parser.add_argument(
        "--max-manifest-size",
        type=_size,
        help="Maximum size in mebibytes of manifest file that can be uploaded.",
    )
    parser.add_argument(
        "--max-blob-size",
        type=_size,
        help="Maximum size in mebibytes of a blob that can be uploaded.",
    )
    parser.add_argument(
        "--log-level",
        help="The log level: OFF, ERROR, WARN, INFO, DEBUG or TRACE",
    )
    return parser


def builder_from_args(args: argparse.Namespace) -> TrowBuilder:
    """Assemble a TrowBuilder from parsed options; raise ConfigError on bad input."""
    log_level = args.log_level or os.environ.get(LOG_ENV_VAR, DEFAULT_LOG_LEVEL)
    no_tls = args.no_tls
    host = args.host if args.host is not None else DEFAULT_HOST
    default_port = DEFAULT_PLAIN_PORT if no_tls else DEFAULT_TLS_PORT
    port = args.port if args.port is not None else default_port
    cert_path = args.cert or DEFAULT_CERT_PATH
    key_path = args.key or DEFAULT_KEY_PATH
    data_path = args.data_dir or DEFAULT_DATA_PATH
    host_names = parse_list(args.names if args.names is not None else host)

    max_manifest_size = (
        args.max_manifest_size
        if args.max_manifest_size is not None
        else DEFAULT_MANIFEST_SIZE
    )
    max_blob_size = (
        args.max_blob_size if args.max_blob_size is not None else DEFAULT_BLOB_SIZE
    )

    allow_prefixes = parse_list(args.allow_prefixes or "")
    if args.allow_docker_official:
        allow_prefixes.append("docker.io/")
    if not args.deny_k8s_images:
        allow_prefixes.append("k8s.gcr.io/")
        allow_prefixes.append("docker.io/containersol/trow")

    builder = TrowBuilder(
        data_dir=data_path,
        addr=NetAddr(host=host, port=port),
        listen=GRPC_LISTEN,
        host_names=host_names,
        proxy_hub=args.proxy_docker_hub,
        allow_prefixes=allow_prefixes,
        allow_images=parse_list(args.allow_images or ""),
        deny_prefixes=parse_list(args.disallow_local_prefixes or ""),
        deny_images=parse_list(args.disallow_local_images or ""),
        dry_run=args.dry_run,
        cors=args.enable_cors,
        max_manifest_size=max_manifest_size,
        max_blob_size=max_blob_size,
        log_level=log_level,
    )

    if not no_tls:
        builder.with_tls(cert_path, key_path)

    if args.user is not None:
        if args.password is not None:
            builder.with_user(args.user, args.password)
        elif args.password_file is not None:
            try:
                secret = read_secret_file(args.password_file)
            except OSError as exc:
                raise ConfigError(
                    f"Failed to read password file {args.password_file}"
                ) from exc
            builder.with_user(args.user, secret)
        else:
            raise ConfigError(_USER_SECRET_MISSING)

    if args.proxy_docker_hub and args.hub_user is not None:
        if args.hub_token is not None:
            builder.with_hub_auth(args.hub_user, args.hub_token)
        elif args.hub_token_file is not None:
            try:
                hub_secret = read_secret_file(args.hub_token_file)
            except OSError as exc:
                raise ConfigError(
                    f"Failed to read Docker Hub token file {args.hub_token_file}"
                ) from exc
            builder.with_hub_auth(args.hub_user, hub_secret)
        else:
            raise ConfigError(_USER_SECRET_MISSING)

    return builder


def _init_logging(log_level: str) -> None:
    level = _LOG_LEVELS.get(log_level.lower())
    if level is None:
        raise ConfigError(f"invalid log level: {log_level}")
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(name)s] %(levelname)s %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        force=True,
    )


def _launch(builder: TrowBuilder) -> None:
    _init_logging(builder.config.log_level)
    builder.check_tls()
    print(builder.summary(), end="")
    if builder.config.dry_run:
        return
    raise ConfigError("no registry server is available to launch in this installation")


def main(argv: Sequence[str] | None = None) -> int:
    """Run the command; return the exit status."""
    args = build_parser().parse_args(argv)

    if args.version:
        vcs_ref = os.environ.get("VCS_REF", "")
        print(f"Trow version {_program_version()} {vcs_ref}")
        return 0

    try:
        builder = builder_from_args(args)
    except (ConfigError, ValueError) as exc:
        print(exc, file=sys.stderr)
        return 1

    try:
        _launch(builder)
    except ConfigError as exc:
        print(f"Error launching Trow:\n\n{exc}", file=sys.stderr)
        return 1

    print("Dry run, exiting.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())