"""Tests for timer models and offset arithmetic."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from structlog.testing import capture_logs

from timerspine.core.errors import InvalidConfigError, MissingConfigError
from timerspine.timers.models import Coordinate, PendingTimer, TimerSpec, TimeSourceKind
from timerspine.timers.offset import OffsetFields, apply_offset, parse_offset

TZ = timezone(timedelta(hours=1))


class TestTimeSourceKind:
    @pytest.mark.parametrize(
        "time, kind",
        [
            ("sunset", TimeSourceKind.SOLAR),
            ("nauticalDawn", TimeSourceKind.SOLAR),
            ("on", TimeSourceKind.REACTIVE),
            ("trigger", TimeSourceKind.REACTIVE),
            ("0 0 23 * * *", TimeSourceKind.CRON),
            ("Sunset", TimeSourceKind.CRON),
        ],
    )
    def test_classify(self, time, kind):
        assert TimeSourceKind.classify(time) is kind

    def test_recurring(self):
        assert TimeSourceKind.CRON.recurring
        assert TimeSourceKind.SOLAR.recurring
        assert not TimeSourceKind.REACTIVE.recurring


class TestTimerSpec:
    def test_kind_is_derived(self):
        spec = TimerSpec(device_id="A1", plugin_id="KAKU", time=" sunset ", state="on")
        assert spec.time == "sunset"
        assert spec.kind is TimeSourceKind.SOLAR
        assert spec.device_name == "A1"

    def test_key_and_label(self):
        spec = TimerSpec(device_id="A1", plugin_id="KAKU", time="on", state="off", device_name="lamp", index=2)
        assert spec.key == "lamp#2"
        assert spec.label == "lamp -> off"

    def test_rejects_unknown_state(self):
        with pytest.raises(InvalidConfigError) as exc_info:
            TimerSpec(device_id="A1", plugin_id="KAKU", time="sunset", state="dim")
        assert exc_info.value.key == "state"

    @pytest.mark.parametrize("field", ["device_id", "plugin_id", "time", "state"])
    def test_rejects_empty_fields(self, field):
        values = {"device_id": "A1", "plugin_id": "KAKU", "time": "sunset", "state": "on", field: "  "}
        with pytest.raises(MissingConfigError):
            TimerSpec(**values)

    def test_frozen(self):
        spec = TimerSpec(device_id="A1", plugin_id="KAKU", time="sunset", state="on")
        with pytest.raises(AttributeError):
            spec.state = "off"


class TestCoordinate:
    def test_bounds(self):
        with pytest.raises(InvalidConfigError):
            Coordinate(91, 0)
        with pytest.raises(InvalidConfigError):
            Coordinate(0, -181)


class TestPendingTimer:
    def test_identity_comparison(self):
        spec = TimerSpec(device_id="A1", plugin_id="KAKU", time="sunset", state="on")
        a = PendingTimer(spec=spec, due_at=1000, action=lambda t: None)
        b = PendingTimer(spec=spec, due_at=1000, action=lambda t: None)
        assert a != b
        assert a.id != b.id
        assert a.label == "A1 -> on"
        assert a.remaining_ms(400) == 600


class TestParseOffset:
    def test_six_fields(self):
        assert parse_offset("1 2 3 4 5 6") == OffsetFields(1, 2, 3, 4, 5, 6)

    def test_empty(self):
        assert parse_offset(None) == OffsetFields()
        assert parse_offset("   ") == OffsetFields()

    def test_too_few_fields_logs_and_applies_present(self):
        with capture_logs() as logs:
            fields = parse_offset("1 2 3")
        assert fields == OffsetFields(seconds=1, minutes=2, hours=3)
        assert [entry["event"] for entry in logs] == ["offset.malformed"]
        assert logs[0]["error_type"] == "MalformedOffset"

    def test_surplus_fields_ignored(self):
        with capture_logs() as logs:
            fields = parse_offset("0 0 0 0 0 0 9")
        assert fields == OffsetFields()
        assert logs[0]["event"] == "offset.malformed"

    def test_non_integer_field_is_zero(self):
        with capture_logs() as logs:
            fields = parse_offset("x 5 0 0 0 0")
        assert fields == OffsetFields(minutes=5)
        assert logs[0]["event"] == "offset.field_not_integer"
        assert logs[0]["field"] == "seconds"

    @pytest.mark.parametrize(
        ("raw", "minutes"),
        [("10abc", 10), ("-5m", -5), ("+7", 7), ("1.5", 1)],
    )
    def test_leading_integer_is_used(self, raw, minutes):
        with capture_logs() as logs:
            fields = parse_offset(f"0 {raw} 0 0 0 0")
        assert fields == OffsetFields(minutes=minutes)
        if raw != "+7":
            assert logs[0]["event"] == "offset.field_not_integer"
            assert logs[0]["used"] == minutes


class TestApplyOffset:
    def test_no_offset_returns_base(self):
        base = datetime(2026, 6, 21, 18, 0, tzinfo=TZ)
        assert apply_offset(base, None) is base
        assert apply_offset(base, "") is base

    def test_thirty_minutes(self):
        base = datetime(2026, 6, 21, 18, 0, tzinfo=TZ)
        assert apply_offset(base, "0 30 0 0 0 0") == datetime(2026, 6, 21, 18, 30, tzinfo=TZ)

    def test_negative_hour(self):
        base = datetime(2026, 6, 21, 0, 30, tzinfo=TZ)
        assert apply_offset(base, "0 0 -1 0 0 0") == datetime(2026, 6, 20, 23, 30, tzinfo=TZ)

    def test_month_end_clamps(self):
        assert apply_offset(datetime(2026, 1, 31, 12, 0), "0 0 0 0 1 0") == datetime(2026, 2, 28, 12, 0)
        assert apply_offset(datetime(2024, 1, 31, 12, 0), "0 0 0 0 1 0") == datetime(2024, 2, 29, 12, 0)

    def test_year_rollover(self):
        assert apply_offset(datetime(2026, 12, 31, 23, 59, 30), "45 0 0 0 0 0") == datetime(2027, 1, 1, 0, 0, 15)

    def test_leap_day_plus_year(self):
        assert apply_offset(datetime(2024, 2, 29), "0 0 0 0 0 1") == datetime(2025, 2, 28)

    def test_fields_apply_in_order(self):
        # days before months: Jan 30 + 1 day = Jan 31, + 1 month = Feb 28
        assert apply_offset(datetime(2026, 1, 30), "0 0 0 1 1 0") == datetime(2026, 2, 28)
