"""Tests for the role-profile cascade scheduler."""

from eduhooks.hooks.types import Operation
from eduhooks.triggers.cascade import schedule_profile_cascade


class TestScheduleProfileCascade:
    def test_student_profile(self):
        intents = schedule_profile_cascade({"id": "acc_1", "role": "student", "grade": "9"})
        assert len(intents) == 1
        assert intents[0].entity == "StudentProfile"
        assert intents[0].operation == Operation.ADD
        assert intents[0].data == {"userId": "acc_1", "grade": "9"}

    def test_student_grade_defaults_empty(self):
        intents = schedule_profile_cascade({"id": "acc_1", "role": "student"})
        assert intents[0].data["grade"] == ""

    def test_teacher_profile_defaults(self):
        intents = schedule_profile_cascade({"id": "acc_2", "role": "teacher"})
        assert len(intents) == 1
        assert intents[0].entity == "TeacherProfile"
        assert intents[0].data == {
            "userId": "acc_2",
            "bio": "",
            "isVerified": False,
            "isIndependent": True,
        }

    def test_teacher_flags_from_input(self):
        intents = schedule_profile_cascade(
            {"id": "acc_2", "role": "teacher", "isVerified": True, "isIndependent": False}
        )
        assert intents[0].data["isVerified"] is True
        assert intents[0].data["isIndependent"] is False

    def test_school_admin_with_school(self):
        intents = schedule_profile_cascade(
            {"id": "acc_3", "role": "school_admin", "schoolId": "sch_1"}
        )
        assert len(intents) == 1
        assert intents[0].entity == "SchoolAdminProfile"
        assert intents[0].data == {"userId": "acc_3", "schoolId": "sch_1"}

    def test_school_admin_without_school_is_skipped(self):
        assert schedule_profile_cascade({"id": "acc_3", "role": "school_admin"}) == []

    def test_unknown_role(self):
        assert schedule_profile_cascade({"id": "acc_4", "role": "parent"}) == []

    def test_same_account_gives_same_intents(self):
        account = {"id": "acc_1", "role": "teacher"}
        assert schedule_profile_cascade(account) == schedule_profile_cascade(account)
