"""Tests for JobRecord and ExtractionResult."""

import re

import pytest

from jobcollector.models import (
    DEFAULT_COMPANY,
    DEFAULT_TITLE,
    ExtractionResult,
    JobRecord,
    new_record_id,
    utc_timestamp,
)


@pytest.mark.unit
def test_record_ids_are_unique_and_shaped():
    ids = {new_record_id() for _ in range(500)}
    assert len(ids) == 500
    assert all(re.fullmatch(r"item_\d+_[0-9a-z]{9}", i) for i in ids)


@pytest.mark.unit
def test_timestamp_is_iso_utc():
    assert re.fullmatch(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z", utc_timestamp())


@pytest.mark.unit
def test_from_payload_coerces_loose_json():
    result = ExtractionResult.from_payload({
        "title": "  Backend Engineer ",
        "company": None,
        "location": "",
        "salary": 30000,
        "requirements": ["Python", "", None, 5],
        "unexpected": "ignored",
    })
    assert result.title == "Backend Engineer"
    assert result.company is None
    assert result.location is None
    assert result.salary == "30000"
    assert result.requirements == ["Python", "5"]


@pytest.mark.unit
def test_from_payload_splits_requirement_text():
    result = ExtractionResult.from_payload({"requirements": "- 3 years Go\n- Kubernetes\n\n"})
    assert result.requirements == ["3 years Go", "Kubernetes"]


@pytest.mark.unit
@pytest.mark.parametrize("payload", [None, [], "text", 42])
def test_from_payload_non_object_is_empty(payload):
    assert ExtractionResult.from_payload(payload).is_empty()


@pytest.mark.unit
def test_from_extraction_fills_defaults():
    record = JobRecord.from_extraction(ExtractionResult(), url="https://example.com/job")
    assert record.title == DEFAULT_TITLE
    assert record.company == DEFAULT_COMPANY
    assert record.location == ""
    assert record.salary == ""
    assert record.description == ""
    assert record.requirements == []
    assert record.url == "https://example.com/job"
    assert record.status == "captured"
    assert record.id.startswith("item_")


@pytest.mark.unit
def test_invalid_status_rejected():
    with pytest.raises(ValueError):
        JobRecord(id="item_1", status="ghosted")
    record = JobRecord(id="item_1")
    with pytest.raises(ValueError):
        record.with_changes(status="offer")


@pytest.mark.unit
def test_none_text_field_rejected():
    with pytest.raises(ValueError):
        JobRecord(id="item_1", title=None)


@pytest.mark.unit
def test_dict_round_trip_uses_camel_case_date():
    record = JobRecord(id="item_1", title="SRE", requirements=["on-call"], status="interview")
    data = record.to_dict()
    assert "dateCaptured" in data and "date_captured" not in data
    assert JobRecord.from_dict(data) == record


@pytest.mark.unit
def test_from_dict_tolerates_missing_fields():
    record = JobRecord.from_dict({"id": "item_9", "title": "QA", "status": "applied"})
    assert record.company == ""
    assert record.requirements == []
    assert record.status == "applied"


@pytest.mark.unit
def test_from_dict_requires_id():
    with pytest.raises(ValueError):
        JobRecord.from_dict({"title": "no id"})


@pytest.mark.unit
def test_status_label():
    assert JobRecord(id="x", status="rejected").status_label == "未通过"
