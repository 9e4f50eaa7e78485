# trow

Core pieces of a container registry meant to run inside a cluster:

- `trow.digest`: content digests (`sha256`, `sha512`) and parsing of
  `algo:hash` references,
- `trow.manifest`: reading and checking image manifests (Docker v2, OCI,
  manifest lists and indexes),
- `trow.validation`: admission validation of images against local hosts,
  allow lists and deny lists,
- `trow.history`: tag history records and the catalog interface,
- `trow.metrics`: disk space gauges and request counters in the text
  exposition format,
- `trow.storage`: the blob and manifest storage interfaces and their errors,
- `trow.config` and `trow.cli`: the registry configuration and its command line.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Command line

The `trow` command reads the registry settings, checks them and prints a
summary of the configuration.

```
trow --help
trow --version
trow --no-tls --dry-run
trow --host 0.0.0.0 --port 8443 --cert ./certs/domain.crt --key ./certs/domain.key --dry-run
```

`--version` prints `Trow version <version>` followed by the value of the
`VCS_REF` environment variable, if set.

Without `--no-tls` the certificate and key must exist, by default at
`./certs/domain.crt` and `./certs/domain.key`, or the command exits with
status 1; the port defaults to 8443 with TLS and 8000 without. Lists such as
`--names`, `--allow-prefixes`, `--allow-images`, `--disallow-local-prefixes`
and `--disallow-local-images` may be separated by commas or spaces; `--names`
defaults to the host. Unless `--deny-k8s-images` is given, `k8s.gcr.io/` and
`docker.io/containersol/trow` are allowed; `--allow-docker-official` adds
`docker.io/`.

A login is set with `--user` together with `--password` or `--password-file`;
Docker Hub credentials with `--proxy-docker-hub --hub-user` together with
`--hub-token` or `--hub-token-file`. A trailing newline (LF or CRLF) in a
password or token file is ignored. Manifests are limited to 4 MiB and blobs
to 8192 MiB unless `--max-manifest-size` or `--max-blob-size` says otherwise.
The log level is taken from `--log-level`, else from the `TROW_LOG`
environment variable, else `error`; valid values are OFF, ERROR, WARN, INFO,
DEBUG and TRACE.

## What this package does not do

There is no registry server here: no HTTP API, no backend service and no
storage driver. `BlobStorage`, `ManifestStorage` and `CatalogOperations` are
abstract interfaces only. Run without `--dry-run`, the `trow` command prints
its summary and then exits with status 1, saying that no registry server is
available to launch.

## Library use

### Digests

```python
import io
from trow.digest import parse, sha256_tag_digest

tag = sha256_tag_digest(io.BytesIO(b"hello world"))
# 'sha256:b94d27b9934d3e08a52e52d7da7dabfac484efe37a5380ee9088f7ace2efcde9'

digest = parse(tag)
print(digest.algo, digest.hash)
print(str(digest) == tag)  # True
```

`hash_tag` and `hash_reference` take a `DigestAlgorithm` and a binary stream.
`parse` raises `DigestError` for anything that is not a supported
`algorithm:hex` pair.

### Manifests

```python
from trow.manifest import from_json, InvalidManifest

manifest = from_json({
    "schemaVersion": 2,
    "mediaType": "application/vnd.docker.distribution.manifest.v2+json",
    "config": {
        "mediaType": "application/vnd.docker.container.image.v1+json",
        "digest": "sha256:4a415e3663882fbc554ee830889c68a33b3585503892cc718a4698e91ef2a526",
    },
    "layers": [],
})
print(manifest.get_media_type())
print(manifest.get_local_asset_digests())
```

`from_json` returns a `ManifestV2` or a `ManifestList`. Schema version 1
manifests, unknown media types and malformed fields raise `InvalidManifest`.
A missing media type is taken as OCI v1. Layers of foreign blobs are left out
of `get_local_asset_digests`.

### Admission validation

```python
from trow.validation import parse_image, check_image

image = parse_image("localhost:8080/mydir/myimage:test")
print(image.host, image.repo, image.tag)  # localhost:8080 mydir/myimage test

allowed, reason = check_image(
    "quay.io/mydir/myimage:test",
    ["localhost:8080"],
    lambda image: True,   # image is stored in this registry
    lambda image: False,  # image is on the local deny list
    lambda image: False,  # image is on the allow list
)
print(allowed, reason)
```

Images with no host refer to `docker.io`, and images with no tag to `latest`.
`validate_images` applies the same check to a list of images and stops at the
first one that is refused; `AdmissionResponse.from_decision` turns a decision
into a response with a `Success` or `Failure` status.

### History and metrics

`ManifestHistory` records the digests a tag has pointed to; `to_dict` and
`from_dict` convert it to and from a JSON-ready form with dates written as
`YYYY-MM-DD HH:MM:SS UTC`. `MetricsRegistry` keeps the disk gauges and the
manifest and blob request counters; `gather(path)` refreshes the gauges from
the filesystem holding the parent of `path` and returns all metrics as text.

### Configuration

`TrowBuilder` collects the registry settings; `with_tls`, `with_user` and
`with_hub_auth` add TLS files, a login (stored as a salted hash that
`UserConfig.verify` checks) and Docker Hub credentials, `check_tls` raises
`ConfigError` if the certificate or key is missing, and `summary` describes
the configuration in the form the command line prints.