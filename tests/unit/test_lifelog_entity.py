"""
Tests unitarios para SourceRecord.
"""
from lifelog_sync.domain.entities.lifelog import SourceRecord


class TestEffectiveTimestamp:
    """Prioridad updatedAt > endTime > startTime."""

    def test_prefers_updated_at(self) -> None:
        record = SourceRecord.from_api({
            "startTime": "2025-01-01T00:00:00Z",
            "endTime": "2025-01-01T00:10:00Z",
            "updatedAt": "2025-01-01T00:20:00Z",
        })

        assert record.effective_timestamp == "2025-01-01T00:20:00Z"

    def test_falls_back_to_end_time(self) -> None:
        record = SourceRecord.from_api({
            "startTime": "2025-01-01T00:00:00Z",
            "endTime": "2025-01-01T00:10:00Z",
        })

        assert record.effective_timestamp == "2025-01-01T00:10:00Z"

    def test_falls_back_to_start_time(self) -> None:
        record = SourceRecord.from_api({"startTime": "2025-01-01T00:00:00Z"})

        assert record.effective_timestamp == "2025-01-01T00:00:00Z"

    def test_undefined_when_all_absent(self) -> None:
        record = SourceRecord.from_api({"id": "a", "title": "T"})

        assert record.effective_timestamp is None
        assert record.effective_datetime is None

    def test_unparsable_timestamp_has_no_datetime(self) -> None:
        record = SourceRecord.from_api({"updatedAt": "not-a-date"})

        assert record.effective_timestamp == "not-a-date"
        assert record.effective_datetime is None


class TestContentHelpers:
    """Tests para body_content, display_title y log_id."""

    def test_body_prefers_markdown(self) -> None:
        record = SourceRecord.from_api({"markdown": "# md", "text": "plain"})

        assert record.body_content == "# md"

    def test_body_uses_text_without_markdown(self) -> None:
        record = SourceRecord.from_api({"text": "plain"})

        assert record.body_content == "plain"

    def test_display_title_from_contents(self) -> None:
        record = SourceRecord.from_api({"contents": [{"type": "heading1", "content": "Reunion"}]})

        assert record.display_title == "Reunion"

    def test_display_title_defaults_to_untitled(self) -> None:
        assert SourceRecord.from_api({}).display_title == "Untitled"

    def test_log_id_defaults_to_unknown(self) -> None:
        assert SourceRecord.from_api({"title": "x"}).log_id == "unknown"

    def test_raw_keeps_original_payload(self) -> None:
        payload = {"id": "a", "contents": [], "extra": 1}

        assert SourceRecord.from_api(payload).raw == payload
