from datetime import date, datetime

from staffplan.services.scheduling import template_codec
from staffplan.services.scheduling.availability import add_custom_shift, set_custom_time, toggle_shift
from staffplan.services.scheduling.expander import expand_schedule
from staffplan.services.scheduling.templates import (
    apply_template,
    build_shift_groups,
    build_template_from_draft,
    clear_template,
    default_template_name,
    disable_auto_generate,
    enable_auto_generate,
    enable_save_as_template,
)
from staffplan.services.scheduling.types import (
    AutoGenerateSettings,
    ScheduleDraft,
    ScheduleType,
    ShiftGroup,
    TimeWindow,
    Weekday,
)


class TestApplyTemplate:
    def test_multi_shift_template(self, draft, multi_shift_template):
        apply_template(multi_shift_template, draft)

        assert draft.enabled_days == [Weekday.MONDAY, Weekday.TUESDAY]
        for day in [Weekday.MONDAY, Weekday.TUESDAY]:
            assert draft.day(day).shifts == ["MORNING"]
            assert draft.custom_times.get_override(day, "MORNING") == TimeWindow("07:00", "11:00")

    def test_multi_shift_template_expands_with_override(self, draft, multi_shift_template, today):
        apply_template(multi_shift_template, draft)

        instances = expand_schedule(draft, today)

        assert [(i.date, i.start_time, i.end_time) for i in instances] == [
            (date(2025, 6, 2), "07:00", "11:00"),
            (date(2025, 6, 3), "07:00", "11:00"),
        ]

    def test_copies_template_fields(self, draft, multi_shift_template):
        apply_template(multi_shift_template, draft)

        assert draft.title == "Weekday mornings"
        assert draft.type == ScheduleType.PERSONAL_TRAINING
        assert draft.branch_id == "branch-2"
        assert draft.time_range == TimeWindow("07:00", "11:00")
        assert draft.source_template_id == 7
        assert draft.template.save_as_template is True
        assert draft.template.name == "Weekday mornings"

    def test_staff_template_locks_staff(self, draft, multi_shift_template):
        apply_template(multi_shift_template, draft)

        assert draft.staff_id == "staff-9"
        assert draft.staff_locked is True
        assert draft.staff_hint.name == "Alex Tran"

    def test_staff_hint_default_label(self, draft, multi_shift_template):
        multi_shift_template.staff_name = None
        apply_template(multi_shift_template, draft)
        assert draft.staff_hint.name == "Personal Trainer"

    def test_template_without_staff_keeps_selection_open(self, draft, legacy_template):
        apply_template(legacy_template, draft)

        assert draft.staff_id == "staff-1"
        assert draft.staff_locked is False
        assert draft.staff_hint is None

    def test_legacy_template(self, draft, legacy_template):
        apply_template(legacy_template, draft)

        assert draft.enabled_days == [Weekday.SATURDAY, Weekday.SUNDAY]
        for day in [Weekday.SATURDAY, Weekday.SUNDAY]:
            entry = draft.day(day)
            assert entry.shifts == ["MORNING", "AFTERNOON"]
            assert (entry.start_time, entry.end_time) == ("10:00", "16:00")
        assert draft.custom_times.to_dict() == {}

    def test_replaces_previous_availability(self, draft, multi_shift_template):
        toggle_shift(draft, "FRIDAY", "EVENING")
        set_custom_time(draft, "FRIDAY", "EVENING", TimeWindow("19:00", "23:00"))

        apply_template(multi_shift_template, draft)

        assert draft.day("FRIDAY").enabled is False
        assert draft.custom_times.for_day("FRIDAY") == {}

    def test_first_class_shifts(self, draft, legacy_template):
        legacy_template.shifts = [
            ShiftGroup("EVENING", "10:00", "16:00", [Weekday.SATURDAY, Weekday.SUNDAY]),
        ]

        apply_template(legacy_template, draft)

        assert draft.day("SATURDAY").shifts == ["EVENING"]
        assert draft.custom_times.get_override("SATURDAY", "EVENING") == TimeWindow("10:00", "16:00")

    def test_auto_generate_copied(self, draft, multi_shift_template):
        multi_shift_template.auto_generate = AutoGenerateSettings(
            enabled=True, advance_days=14, end_date=date(2025, 9, 1),
        )
        apply_template(multi_shift_template, draft)
        assert draft.template.auto_generate == AutoGenerateSettings(True, 14, date(2025, 9, 1))


class TestClearTemplate:
    def test_clears_template_but_keeps_availability(self, draft, multi_shift_template):
        apply_template(multi_shift_template, draft)

        clear_template(draft)

        assert draft.source_template_id is None
        assert draft.staff_locked is False
        assert draft.staff_id == ""
        assert draft.branch_id == ""
        assert draft.template.save_as_template is False
        assert draft.enabled_days == [Weekday.MONDAY, Weekday.TUESDAY]
        assert draft.schedule_date == date(2025, 6, 2)


class TestBuildTemplate:
    def test_groups_by_shift_key(self, draft):
        toggle_shift(draft, "MONDAY", "MORNING")
        toggle_shift(draft, "MONDAY", "EVENING")
        toggle_shift(draft, "WEDNESDAY", "MORNING")

        groups = build_shift_groups(draft)

        assert [(g.shift_type, g.start_time, g.end_time, g.days_of_week) for g in groups] == [
            ("MORNING", "08:00", "12:00", [Weekday.MONDAY, Weekday.WEDNESDAY]),
            ("EVENING", "18:00", "22:00", [Weekday.MONDAY]),
        ]

    def test_first_override_wins(self, draft):
        toggle_shift(draft, "MONDAY", "MORNING")
        toggle_shift(draft, "TUESDAY", "MORNING")
        set_custom_time(draft, "TUESDAY", "MORNING", TimeWindow("06:00", "10:00"))

        groups = build_shift_groups(draft)

        assert (groups[0].start_time, groups[0].end_time) == ("06:00", "10:00")

    def test_custom_shift_group(self, draft):
        key = add_custom_shift(draft, "FRIDAY", TimeWindow("09:30", "11:00"))
        groups = build_shift_groups(draft)
        assert groups[0].shift_type == key
        assert (groups[0].start_time, groups[0].end_time) == ("09:30", "11:00")

    def test_record_from_draft(self, draft):
        toggle_shift(draft, "MONDAY", "MORNING")
        toggle_shift(draft, "TUESDAY", "AFTERNOON")
        draft.template.save_as_template = True
        draft.template.name = "  Front desk week "

        record = build_template_from_draft(draft)

        assert record.name == "Front desk week"
        assert record.days_of_week == [Weekday.MONDAY, Weekday.TUESDAY]
        assert record.staff_id == "staff-1"
        assert (record.start_time, record.end_time) == ("08:00", "12:00")
        assert record.shifts == build_shift_groups(draft)
        assert template_codec.decode(record.notes) == record.shifts
        assert record.auto_generate == AutoGenerateSettings(enabled=False, advance_days=7, end_date=None)

    def test_record_round_trips_through_apply(self, draft):
        toggle_shift(draft, "MONDAY", "MORNING")
        set_custom_time(draft, "MONDAY", "MORNING", TimeWindow("07:00", "11:00"))
        toggle_shift(draft, "THURSDAY", "EVENING")
        record = build_template_from_draft(draft)

        fresh = ScheduleDraft(title="x", staff_id="s", branch_id="b", schedule_date=draft.schedule_date)
        apply_template(record, fresh)

        assert fresh.enabled_days == [Weekday.MONDAY, Weekday.THURSDAY]
        assert fresh.custom_times.get_override("MONDAY", "MORNING") == TimeWindow("07:00", "11:00")
        assert fresh.custom_times.get_override("THURSDAY", "EVENING") == TimeWindow("18:00", "22:00")

    def test_record_without_shifts_uses_time_range(self, draft):
        draft.time_range = TimeWindow("10:00", "15:00")
        record = build_template_from_draft(draft)
        assert record.notes is None
        assert record.shifts is None
        assert (record.start_time, record.end_time) == ("10:00", "15:00")

    def test_auto_generate_carried_when_enabled(self, draft):
        toggle_shift(draft, "MONDAY", "MORNING")
        draft.template.auto_generate = AutoGenerateSettings(True, 14, date(2025, 8, 1))
        record = build_template_from_draft(draft)
        assert record.auto_generate == AutoGenerateSettings(True, 14, date(2025, 8, 1))


class TestTemplateSettings:
    def test_default_name(self):
        assert default_template_name("Front Desk", datetime(2025, 5, 20, 9, 15, 0)) == "Front Desk - 2025-05-20T09-15-00"

    def test_enable_save_as_template_names_it(self, draft):
        enable_save_as_template(draft, datetime(2025, 5, 20, 9, 15, 0))
        assert draft.template.save_as_template is True
        assert draft.template.name == "Front Desk - 2025-05-20T09-15-00"

    def test_enable_save_keeps_applied_template_name(self, draft, multi_shift_template):
        apply_template(multi_shift_template, draft)
        enable_save_as_template(draft, datetime(2025, 5, 20, 9, 15, 0))
        assert draft.template.name == "Weekday mornings"

    def test_auto_generate_default_end_date(self, draft):
        auto = enable_auto_generate(draft)
        assert auto.enabled is True
        assert auto.end_date == date(2025, 7, 2)

    def test_default_end_date_computed_once(self, draft):
        enable_auto_generate(draft)
        draft.template.auto_generate.advance_days = 20
        draft.schedule_date = date(2025, 6, 9)
        enable_auto_generate(draft)
        assert draft.template.auto_generate.end_date == date(2025, 7, 2)

    def test_disable_auto_generate(self, draft):
        enable_auto_generate(draft)
        disable_auto_generate(draft)
        assert draft.template.auto_generate.enabled is False
