"""Tests for actions.py – choosing what to do with a class row."""
import pytest

from pilates_booking.actions import (
    ActionKind,
    OnclickCall,
    classify_label,
    not_found,
    parse_onclick,
    resolve_action,
)
from pilates_booking.timetable import locate_slot

from conftest import timetable


def resolve(action_cell, course="바렐 체어(승정쌤)(4/8)"):
    row = locate_slot(timetable(action_cell, course=course), "10:30")
    assert row is not None
    return resolve_action(row)


class TestResolveAction:
    def test_reserve(self):
        outcome = resolve('<a href="#">예약하기</a>')
        assert outcome.kind == ActionKind.RESERVE
        assert outcome.control.label == "예약하기"
        assert outcome.requires_submit
        assert not outcome.expects_dialog
        assert outcome.course.current == 4

    def test_delete_means_already_booked(self):
        outcome = resolve('<a href="#">삭제</a>')
        assert outcome.kind == ActionKind.ALREADY_BOOKED
        assert outcome.control is None
        assert not outcome.actionable

    def test_cancel_variants(self):
        assert resolve('<a href="#">예약취소</a>').kind == ActionKind.ALREADY_BOOKED
        assert resolve('<a href="#">대기취소</a>').kind == ActionKind.ALREADY_BOOKED

    def test_waitlist_link(self):
        outcome = resolve('<a href="#" onclick="wait_ok(3)">대기예약</a>', course="요가(8/8)")
        assert outcome.kind == ActionKind.WAITLIST
        assert outcome.via == "link"
        assert outcome.expects_dialog
        assert outcome.control.onclick == "wait_ok(3)"

    def test_reserve_preferred_over_other_controls(self):
        outcome = resolve('<a href="#">삭제</a> <a href="#">대기예약</a> <a href="#">예약하기</a>')
        assert outcome.kind == ActionKind.RESERVE
        assert outcome.control.index == 2

    def test_waitlist_preferred_over_cancel(self):
        assert resolve('<a href="#">삭제</a><a href="#">대기</a>').kind == ActionKind.WAITLIST

    def test_full_class_without_control_uses_checkbox(self):
        outcome = resolve('<input type="checkbox" name="wait_chk">', course="요가(8/8)")
        assert outcome.kind == ActionKind.WAITLIST
        assert outcome.via == "checkbox"
        assert outcome.requires_submit
        assert outcome.control is None

    def test_full_class_without_anything_clicks_row(self):
        outcome = resolve("마감", course="요가(8/8)")
        assert outcome.kind == ActionKind.WAITLIST
        assert outcome.via == "row"

    def test_closed(self):
        outcome = resolve("시간마감")
        assert outcome.kind == ActionKind.CLOSED
        assert "시간마감" in outcome.message

    def test_unrecognized_link_on_open_class_is_closed(self):
        assert resolve('<a href="#">상세보기</a>').kind == ActionKind.CLOSED

    def test_not_found_outcome(self):
        outcome = not_found("10:30")
        assert outcome.kind == ActionKind.NOT_FOUND
        assert "10:30" in outcome.message


class TestClassifyLabel:
    @pytest.mark.parametrize("label, kind", [
        ("예약하기", ActionKind.RESERVE),
        ("Reserve", ActionKind.RESERVE),
        ("대기예약", ActionKind.WAITLIST),
        ("Join Waitlist", ActionKind.WAITLIST),
        ("삭제", ActionKind.ALREADY_BOOKED),
        ("Cancel", ActionKind.ALREADY_BOOKED),
        ("상세보기", None),
        ("", None),
    ])
    def test_labels(self, label, kind):
        assert classify_label(label) == kind


class TestParseOnclick:
    def test_simple_call(self):
        assert parse_onclick("res_ok(3)") == OnclickCall("res_ok", (3,))

    def test_quoted_numbers_and_return(self):
        assert parse_onclick("javascript:goDate('2025', '3', '11'); return false;") == \
            OnclickCall("goDate", (2025, 3, 11))

    def test_no_arguments(self):
        assert parse_onclick("submitForm()") == OnclickCall("submitForm", ())

    @pytest.mark.parametrize("attr", [
        None,
        "",
        "alert(document.cookie)",
        "res_ok(3); fetch('/x')",
        "location.href='/res.php?no=3'",
        "res_ok(get())",
        "window['res_ok'](3)",
    ])
    def test_rejects_anything_else(self, attr):
        assert parse_onclick(attr) is None
