from datetime import datetime, timedelta, timezone

import pytest

from trow.history import (
    CatalogOperations,
    HistoryEntry,
    ManifestHistory,
    format_history_date,
    parse_history_date,
)

DIGEST_A = "sha256:4a415e3663882fbc554ee830889c68a33b3585503892cc718a4698e91ef2a526"
DIGEST_B = "sha256:1e76f742da490c8d7c921e811e5233def206e76683ee28d735397ec2231f131d"


def test_epoch_format():
    epoch = datetime.fromtimestamp(0, tz=timezone.utc)
    assert format_history_date(epoch) == "1970-01-01 00:00:00 UTC"


def test_millisecond_fraction_is_shortened():
    date = datetime(2021, 3, 4, 5, 6, 7, 500000, tzinfo=timezone.utc)
    assert format_history_date(date) == "2021-03-04 05:06:07.500 UTC"


def test_microsecond_fraction_kept():
    date = datetime(2021, 3, 4, 5, 6, 7, 123456, tzinfo=timezone.utc)
    assert format_history_date(date).endswith(".123456 UTC")


@pytest.mark.parametrize("micros", [0, 1000, 123456, 999999])
def test_date_round_trip(micros):
    date = datetime(2020, 12, 31, 23, 59, 58, micros, tzinfo=timezone.utc)
    assert parse_history_date(format_history_date(date)) == date


def test_aware_date_converted_to_utc():
    offset = timezone(timedelta(hours=2))
    date = datetime(2020, 6, 1, 12, 0, 0, tzinfo=offset)
    parsed = parse_history_date(format_history_date(date))
    assert parsed == date
    assert parsed.utcoffset() == timedelta(0)


def test_parse_rejects_garbage():
    with pytest.raises(ValueError):
        parse_history_date("yesterday")


def test_insert_keeps_order():
    history = ManifestHistory("repo:latest")
    first = datetime(2020, 1, 1, tzinfo=timezone.utc)
    second = datetime(2020, 1, 2, tzinfo=timezone.utc)
    history.insert(DIGEST_A, first)
    history.insert(DIGEST_B, second)
    assert history.history == [
        HistoryEntry(DIGEST_A, first),
        HistoryEntry(DIGEST_B, second),
    ]


def test_to_dict_uses_image_key():
    history = ManifestHistory("repo:latest")
    history.insert(DIGEST_A, datetime(2020, 1, 1, tzinfo=timezone.utc))
    data = history.to_dict()
    assert data["image"] == "repo:latest"
    assert [entry["digest"] for entry in data["history"]] == [DIGEST_A]
    assert parse_history_date(data["history"][0]["date"]) == datetime(
        2020, 1, 1, tzinfo=timezone.utc
    )


def test_dict_round_trip():
    history = ManifestHistory("repo:v1")
    history.insert(DIGEST_A, datetime(2019, 5, 6, 7, 8, 9, 250000, tzinfo=timezone.utc))
    history.insert(DIGEST_B, datetime(2019, 5, 7, 7, 8, 9, tzinfo=timezone.utc))
    assert ManifestHistory.from_dict(history.to_dict()) == history


def test_empty_history_round_trip():
    history = ManifestHistory("repo:empty")
    assert ManifestHistory.from_dict(history.to_dict()) == history
    assert history.to_dict()["history"] == []


def test_from_dict_missing_field():
    with pytest.raises(ValueError):
        ManifestHistory.from_dict({"history": []})


def test_catalog_operations_is_abstract():
    with pytest.raises(TypeError):
        CatalogOperations()