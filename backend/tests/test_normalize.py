"""Tests for the field normalizer."""

import json
import re
from datetime import datetime, timedelta, timezone

import pytest

from eduhooks.config import Settings
from eduhooks.triggers.normalize import (
    derive_grade_code,
    normalize,
    normalize_account_create,
    normalize_account_update,
    normalize_educational_context_create,
    normalize_grade_level_create,
    normalize_grade_level_names,
    normalize_image,
    normalize_session_create,
    slugify,
)

NOW = datetime(2024, 9, 1, 8, 30, tzinfo=timezone.utc)


@pytest.fixture
def settings():
    return Settings()


# =============================================================================
# slugify
# =============================================================================


class TestSlugify:
    def test_example_name(self):
        assert slugify("Jane  O'Brien!!") == "jane-o-brien"

    def test_empty_falls_back_to_user(self):
        assert slugify("") == "user"
        assert slugify("!!!") == "user"
        assert slugify("   ") == "user"

    def test_custom_fallback(self):
        assert slugify("", fallback="student") == "student"

    @pytest.mark.parametrize(
        "text",
        [
            "Jane  O'Brien!!",
            "  --Ms. Ada Lovelace--  ",
            "Zoë Ångström",
            "ada@example.com",
            "Room 101 / Period 3",
            "a---b",
        ],
    )
    def test_shape_and_idempotence(self, text):
        slug = slugify(text)
        assert re.fullmatch(r"[a-z0-9]+(-[a-z0-9]+)*", slug)
        assert slugify(slug) == slug


# =============================================================================
# Account
# =============================================================================


class TestAccountCreate:
    def test_teacher_from_email(self, settings):
        record = normalize_account_create({"email": "ada@example.com"}, settings, NOW)
        assert record["name"] == "ada"
        assert record["role"] == "teacher"
        assert record["slug"] == "ada"
        assert record["emailVerified"] is False
        assert record["createdAt"] == NOW
        assert record["updatedAt"] == NOW

    def test_slug_prefers_name(self, settings):
        record = normalize_account_create(
            {"email": "x@example.com", "name": "Jane  O'Brien!!", "role": "teacher"},
            settings,
            NOW,
        )
        assert record["slug"] == "jane-o-brien"

    def test_explicit_values_kept(self, settings):
        record = normalize_account_create(
            {
                "email": "ada@example.com",
                "name": "Ada",
                "role": "school_admin",
                "slug": "head-office",
                "emailVerified": True,
            },
            settings,
            NOW,
        )
        assert record["role"] == "school_admin"
        assert record["slug"] == "head-office"
        assert record["emailVerified"] is True

    def test_no_name_no_email_is_student_placeholder(self, settings):
        record = normalize_account_create({}, settings, NOW)
        assert record["name"] == "User"
        assert record["role"] == "student"
        assert record["username"] == "user"
        assert record["email"] == "user@student.school.com"
        assert record["slug"] == "user"

    def test_student_identity_derived(self, settings):
        record = normalize_account_create(
            {"name": "Jane Doe", "role": "student", "teacherId": "acc_t"}, settings, NOW
        )
        assert record["username"] == "jane.doe"
        assert record["email"] == "jane.doe@student.school.com"
        assert record["slug"] == "jane.doe"
        assert record["isActive"] is True
        assert record["emailVerified"] is False

    def test_student_email_verified_forced_false(self, settings):
        record = normalize_account_create(
            {"name": "Jane", "role": "student", "emailVerified": True}, settings, NOW
        )
        assert record["emailVerified"] is False

    def test_student_inactive_flag_kept(self, settings):
        record = normalize_account_create(
            {"name": "Jane", "role": "student", "isActive": False}, settings, NOW
        )
        assert record["isActive"] is False

    def test_student_domain_from_settings(self):
        settings = Settings(student_email_domain="pupils.example.org")
        record = normalize_account_create({"name": "Sam Lee", "role": "student"}, settings, NOW)
        assert record["email"] == "sam.lee@pupils.example.org"

    def test_input_not_mutated(self, settings):
        data = {"email": "ada@example.com"}
        normalize_account_create(data, settings, NOW)
        assert data == {"email": "ada@example.com"}


class TestAccountUpdate:
    def test_restamps_updated_at(self, settings):
        record = normalize_account_update({"department": "Math"}, settings, NOW)
        assert record["updatedAt"] == NOW
        assert "createdAt" not in record

    def test_name_change_regenerates_slug(self, settings):
        record = normalize_account_update({"name": "Ada Lovelace"}, settings, NOW)
        assert record["slug"] == "ada-lovelace"

    def test_explicit_slug_wins(self, settings):
        record = normalize_account_update({"name": "Ada Lovelace", "slug": "ada"}, settings, NOW)
        assert record["slug"] == "ada"

    def test_empty_image_cleared(self, settings):
        assert normalize_account_update({"image": ""}, settings, NOW)["image"] is None

    def test_filename_src_rewritten(self, settings):
        image = {"key": "avatars/ada.png", "src": "ada.png"}
        record = normalize_account_update({"image": image}, settings, NOW)
        assert record["image"]["src"] == "https://storage.ronin.co/avatars/ada.png"
        assert image["src"] == "ada.png"


class TestNormalizeImage:
    def test_absolute_src_untouched(self, settings):
        image = {"key": "k", "src": "https://cdn.example.com/k"}
        assert normalize_image(image, settings) == image

    def test_plain_string_untouched(self, settings):
        assert normalize_image("https://example.com/a.png", settings) == "https://example.com/a.png"

    def test_custom_base_url(self):
        settings = Settings(blob_base_url="https://blobs.example.com")
        result = normalize_image({"key": "a/b", "src": "b"}, settings)
        assert result["src"] == "https://blobs.example.com/a/b"


# =============================================================================
# Session
# =============================================================================


class TestSessionCreate:
    def test_default_expiry(self, settings):
        record = normalize_session_create({"token": "t"}, settings, NOW)
        assert record["expiresAt"] == NOW + timedelta(hours=24)
        assert record["createdAt"] == NOW

    def test_expiry_kept(self, settings):
        expires = NOW + timedelta(hours=1)
        record = normalize_session_create({"token": "t", "expiresAt": expires}, settings, NOW)
        assert record["expiresAt"] == expires

    def test_ttl_from_settings(self):
        record = normalize_session_create({"token": "t"}, Settings(session_ttl_hours=2), NOW)
        assert record["expiresAt"] == NOW + timedelta(hours=2)


# =============================================================================
# GradeLevel
# =============================================================================


class TestGradeLevel:
    @pytest.mark.parametrize(
        "name,code",
        [
            ("9th Grade", "9"),
            ("Grade 10", "10"),
            ("Beginner", "BEG"),
            ("Kindergarten", "KIN"),
            ("Grade", "Grade"),
        ],
    )
    def test_derive_code(self, name, code):
        assert derive_grade_code(name) == code

    def test_numeric_code_sorts_by_number(self, settings):
        record = normalize_grade_level_create({"name": "9th Grade"}, settings, NOW)
        assert record["code"] == "9"
        assert record["sortOrder"] == 9
        assert record["isActive"] is True

    def test_non_numeric_sorts_last(self, settings):
        record = normalize_grade_level_create({"name": "Beginner"}, settings, NOW)
        assert record["code"] == "BEG"
        assert record["sortOrder"] == 1000

    def test_explicit_code_and_sort_order(self, settings):
        record = normalize_grade_level_create(
            {"name": "Kindergarten", "code": "K", "sortOrder": 0}, settings, NOW
        )
        assert record["code"] == "K"
        assert record["sortOrder"] == 0

    def test_only_explicit_false_disables(self, settings):
        assert normalize_grade_level_create(
            {"name": "A", "isActive": False}, settings, NOW
        )["isActive"] is False
        assert normalize_grade_level_create(
            {"name": "A", "isActive": None}, settings, NOW
        )["isActive"] is True


# =============================================================================
# EducationalContext
# =============================================================================


class TestEducationalContext:
    def test_list_serialized(self):
        assert normalize_grade_level_names(["9th Grade", "10th Grade"]) == json.dumps(
            ["9th Grade", "10th Grade"]
        )

    def test_json_list_string_kept(self):
        assert json.loads(normalize_grade_level_names('["A","B"]')) == ["A", "B"]

    @pytest.mark.parametrize("value", [None, "", "not json", '{"a": 1}', "42", 7])
    def test_unusable_becomes_empty_list(self, value):
        assert normalize_grade_level_names(value) == "[]"

    def test_create_defaults(self, settings):
        record = normalize_educational_context_create(
            {"name": "Homeschool", "defaultGradeLevels": "[broken"}, settings, NOW
        )
        assert record["defaultGradeLevels"] == "[]"
        assert record["isActive"] is True
        assert record["createdAt"] == NOW


# =============================================================================
# normalize() dispatch
# =============================================================================


class TestNormalizeDispatch:
    def test_batch_normalized_independently(self, settings):
        batch = [{"name": "9th Grade"}, {"name": "Beginner"}]
        result = normalize("GradeLevel", batch, settings, now=NOW)
        assert [r["code"] for r in result] == ["9", "BEG"]
        assert batch == [{"name": "9th Grade"}, {"name": "Beginner"}]

    def test_entity_without_rule_is_stamped(self, settings):
        record = normalize("Waitlist", {"email": "a@b.c"}, settings, now=NOW)
        assert record["createdAt"] == NOW

    def test_update_stamps_any_entity(self, settings):
        record = normalize("GradeLevel", {"name": "X"}, settings, update=True, now=NOW)
        assert record == {"name": "X", "updatedAt": NOW}

    def test_default_settings(self):
        record = normalize("Account", {"name": "Sam", "role": "student"}, now=NOW)
        assert record["email"] == "sam@student.school.com"
