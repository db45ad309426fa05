"""Domain Types — enum values and lenient detail parsing."""

from skyview.core.domain_types import (
    AuditAction, AuditEntityType, CutoutDetail, CutoutProvider, ShortId,
)


def test_enums_serialize_to_string():
    assert CutoutDetail.MAX.value == "max"
    assert CutoutProvider.SECONDARY.value == "secondary"
    assert AuditAction.CREATE == "create"
    assert AuditEntityType.VIEWER_STATE == "viewer_state"


def test_detail_parse_is_case_and_whitespace_insensitive():
    assert CutoutDetail.parse("  High ") is CutoutDetail.HIGH
    assert CutoutDetail.parse("") is CutoutDetail.STANDARD


def test_short_id_wraps_str():
    assert ShortId("aB3dE5gH") == "aB3dE5gH"
