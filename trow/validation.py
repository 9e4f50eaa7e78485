"""Admission validation: parsing image names and deciding whether they may run."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

DOCKER_HUB_HOSTNAME = "docker.io"

ImagePredicate = Callable[["Image"], bool]


class ValidationError(Exception):
    """Raised when an admission request cannot be validated."""

    def __init__(self, message: str = "Internal validation error") -> None:
        super().__init__(message)


@dataclass(frozen=True)
class Image:
    """An image reference split into registry host, repository and tag."""

    host: str
    repo: str
    tag: str


@dataclass(frozen=True)
class Status:
    """Outcome attached to an admission response."""

    status: str  # "Success" or "Failure"
    message: str | None = None  # Human readable, shown by kubectl
    code: int | None = None  # Suggested HTTP return code


@dataclass(frozen=True)
class AdmissionRequest:
    """A request to admit an object into a cluster."""

    uid: str
    object: Any
    namespace: str
    operation: str  # CREATE, UPDATE, DELETE or CONNECT


@dataclass(frozen=True)
class AdmissionResponse:
    """The answer to an admission request."""

    uid: str
    allowed: bool
    status: Status | None = None

    @classmethod
    def from_decision(cls, uid: str, allowed: bool, reason: str) -> AdmissionResponse:
        """Build a response from a decision and the reason given for a refusal."""
        if allowed:
            status = Status(status="Success")
        else:
            status = Status(status="Failure", message=reason)
        return cls(uid=uid, allowed=allowed, status=status)


def parse_image(image_str: str) -> Image:
    """Split an image name the way Docker does.

    Names without a registry host belong to the Docker Hub; a missing tag
    means ``latest``.
    """
    left, slash, rest = image_str.partition("/")
    if slash and (left.startswith("localhost") or ":" in left or "." in left):
        host, after_host = left, rest
    else:
        host, after_host = DOCKER_HUB_HOSTNAME, image_str

    repo, colon, tag = after_host.partition(":")
    if not colon:
        tag = "latest"

    return Image(host=host, repo=repo, tag=tag)


def check_image(
    image_raw: str,
    local_hosts: Sequence[str],
    image_exists: ImagePredicate,
    deny: ImagePredicate,
    allow: ImagePredicate,
) -> tuple[bool, str]:
    """Decide whether one image may run; return the decision and a reason for refusal."""
    image = parse_image(image_raw)
    if image.host in local_hosts:
        if image_exists(image):
            if deny(image):
                return False, f"Local image {image_raw} on deny list"
            logger.info("Image %s allowed as local image", image_raw)
            return True, ""
        if allow(image):
            logger.info(
                "Local image %s allowed as on allow list (but not in registry)",
                image_raw,
            )
            return True, ""
        reason = (
            f"Local image {image_raw} disallowed as not contained in this registry "
            "and not in allow list"
        )
        logger.info("%s", reason)
        return False, reason

    if allow(image):
        logger.info("Remote image %s allowed as on allow list", image_raw)
        return True, ""
    return (
        False,
        f"Remote image {image_raw} disallowed as not contained in this registry "
        "and not in allow list",
    )


def validate_images(
    images: Iterable[str],
    host_names: Sequence[str],
    image_exists: ImagePredicate,
    deny: ImagePredicate,
    allow: ImagePredicate,
) -> tuple[bool, str]:
    """Check every image in turn, stopping at the first one refused."""
    for image_raw in images:
        valid, reason = check_image(image_raw, host_names, image_exists, deny, allow)
        if not valid:
            return False, reason
    return True, ""