import pytest

from trow.validation import (
    AdmissionResponse,
    Image,
    Status,
    ValidationError,
    check_image,
    parse_image,
    validate_images,
)

LOCAL = ["localhost:8080"]


def always(_image):
    return True


def never(_image):
    return False


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("debian", Image("docker.io", "debian", "latest")),
        ("amouat/network-utils", Image("docker.io", "amouat/network-utils", "latest")),
        ("amouat/network-utils:beta", Image("docker.io", "amouat/network-utils", "beta")),
        ("localhost:8080/myimage:test", Image("localhost:8080", "myimage", "test")),
        (
            "localhost:8080/mydir/myimage:test",
            Image("localhost:8080", "mydir/myimage", "test"),
        ),
        (
            "quay.io/mydir/another/myimage:test",
            Image("quay.io", "mydir/another/myimage", "test"),
        ),
    ],
)
def test_parse(raw, expected):
    assert parse_image(raw) == expected


def test_check_local_present_allowed():
    valid, reason = check_image(
        "localhost:8080/mydir/myimage:test", LOCAL, always, never, never
    )
    assert valid is True
    assert reason == ""


def test_check_local_absent_denied():
    valid, reason = check_image(
        "localhost:8080/mydir/myimage:test", LOCAL, never, never, never
    )
    assert valid is False
    assert "disallowed as not contained in this registry" in reason


def test_check_local_absent_but_allowed():
    valid, _ = check_image(
        "localhost:8080/mydir/myimage:test", LOCAL, never, never, always
    )
    assert valid is True


def test_check_local_present_on_deny_list():
    valid, reason = check_image(
        "localhost:8080/mydir/myimage:test", LOCAL, always, always, never
    )
    assert valid is False
    assert reason == "Local image localhost:8080/mydir/myimage:test on deny list"


def test_check_remote_not_allowed():
    valid, reason = check_image("quay.io/mydir/myimage:test", LOCAL, always, never, never)
    assert valid is False
    assert reason.startswith("Remote image quay.io/mydir/myimage:test disallowed")


def test_check_remote_allowed():
    valid, _ = check_image("quay.io/mydir/myimage:test", LOCAL, always, never, always)
    assert valid is True


def test_check_passes_parsed_image_to_predicates():
    seen = []

    def allow(image):
        seen.append(image)
        return True

    check_image("quay.io/mydir/myimage:test", LOCAL, always, never, allow)
    assert seen == [Image("quay.io", "mydir/myimage", "test")]


def test_validate_images_all_allowed():
    assert validate_images(["quay.io/a:1", "quay.io/b:2"], LOCAL, never, never, always) == (
        True,
        "",
    )


def test_validate_images_stops_at_first_refusal():
    calls = []

    def allow(image):
        calls.append(image.repo)
        return image.repo != "bad"

    valid, reason = validate_images(
        ["quay.io/good", "quay.io/bad", "quay.io/later"], LOCAL, never, never, allow
    )
    assert valid is False
    assert "quay.io/bad" in reason
    assert calls == ["good", "bad"]


def test_validate_images_empty_is_allowed():
    assert validate_images([], LOCAL, never, never, never) == (True, "")


def test_response_from_allowed_decision():
    response = AdmissionResponse.from_decision("uid-1", True, "")
    assert response.uid == "uid-1"
    assert response.allowed is True
    assert response.status == Status(status="Success", message=None, code=None)


def test_response_from_refused_decision():
    response = AdmissionResponse.from_decision("uid-2", False, "nope")
    assert response.allowed is False
    assert response.status == Status(status="Failure", message="nope")


def test_validation_error_message():
    assert str(ValidationError()) == "Internal validation error"