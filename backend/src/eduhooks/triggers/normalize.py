"""Field normalizer: per-entity defaults and derived fields.

Every function here is pure. Inputs are never mutated; a new dict comes
back. The clock is passed in so results are reproducible in tests.

    normalize("GradeLevel", {"name": "9th Grade"})
    # -> {"name": "9th Grade", "code": "9", "sortOrder": 9, "isActive": True, ...}
"""

import json
import re
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any

from eduhooks.config import Settings

ROLE_STUDENT = "student"
ROLE_TEACHER = "teacher"
ROLE_SCHOOL_ADMIN = "school_admin"
ROLES = (ROLE_STUDENT, ROLE_TEACHER, ROLE_SCHOOL_ADMIN)

_WHITESPACE = re.compile(r"\s+")
_NOT_SLUG = re.compile(r"[^a-z0-9-]")
_HYPHENS = re.compile(r"-+")
_DIGITS = re.compile(r"\d+")
_NUMERIC = re.compile(r"^\d+$")

Record = dict[str, Any]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def slugify(text: str, fallback: str = "user") -> str:
    """Turn free text into a url-safe handle.

    Lower-case, whitespace to hyphens, anything outside [a-z0-9-] to a
    hyphen, repeated hyphens collapsed, edge hyphens trimmed. Never empty.

    >>> slugify("Jane  O'Brien!!")
    'jane-o-brien'
    """
    slug = _WHITESPACE.sub("-", text.lower())
    slug = _NOT_SLUG.sub("-", slug)
    slug = _HYPHENS.sub("-", slug).strip("-")
    return slug or fallback


def email_local_part(email: str) -> str:
    return email.split("@")[0]


def _stamp(record: Record, now: datetime) -> None:
    record["createdAt"] = now
    record["updatedAt"] = now


# =============================================================================
# Account
# =============================================================================


def normalize_account_create(
    data: Record, settings: Settings, now: datetime | None = None
) -> Record:
    now = now or utcnow()
    record = dict(data)
    email = record.get("email")

    if not record.get("name"):
        record["name"] = email_local_part(email) if email else settings.placeholder_name

    if not record.get("role"):
        # Students are provisioned by a teacher and may lack a login email
        record["role"] = ROLE_TEACHER if email else ROLE_STUDENT

    if record["role"] == ROLE_STUDENT:
        _derive_student_identity(record, settings)
    else:
        if not record.get("slug"):
            if record.get("name"):
                base = record["name"]
            elif email:
                base = email.replace("@", "-at-")
            else:
                base = "user"
            record["slug"] = slugify(base)
        if record.get("emailVerified") is None:
            record["emailVerified"] = False

    _stamp(record, now)
    return record


def _derive_student_identity(record: Record, settings: Settings) -> None:
    if not record.get("username"):
        record["username"] = _WHITESPACE.sub(".", record["name"].lower())

    if not record.get("email"):
        record["email"] = f"{record['username']}@{settings.student_email_domain}"

    if not record.get("slug"):
        if record.get("username"):
            record["slug"] = record["username"]
        elif record.get("email"):
            local = email_local_part(record["email"]).lower()
            record["slug"] = _NOT_SLUG.sub("", local) or "student"
        else:
            record["slug"] = "student"

    if record.get("isActive") is None:
        record["isActive"] = True
    record["emailVerified"] = False


def normalize_account_update(
    payload: Record, settings: Settings, now: datetime | None = None
) -> Record:
    now = now or utcnow()
    record = dict(payload)
    record["updatedAt"] = now

    if record.get("name") and not record.get("slug"):
        record["slug"] = slugify(record["name"])

    if "image" in record:
        record["image"] = normalize_image(record["image"], settings)

    return record


def canonical_blob_src(key: str, settings: Settings) -> str:
    return f"{settings.blob_base_url}/{key}"


def normalize_image(value: Any, settings: Settings) -> Any:
    """Normalize an avatar value on its way into the store.

    Empty values clear the avatar. A stored object whose ``src`` is only a
    filename gets the canonical blob address built from its ``key``.
    """
    if value is None or value == "":
        return None
    if isinstance(value, dict) and "key" in value and "src" in value:
        src = value["src"]
        if isinstance(src, str) and not src.startswith("https://"):
            return {**value, "src": canonical_blob_src(value["key"], settings)}
    return value


# =============================================================================
# Session
# =============================================================================


def normalize_session_create(
    data: Record, settings: Settings, now: datetime | None = None
) -> Record:
    now = now or utcnow()
    record = dict(data)
    _stamp(record, now)
    if not record.get("expiresAt"):
        record["expiresAt"] = now + timedelta(hours=settings.session_ttl_hours)
    return record


# =============================================================================
# GradeLevel
# =============================================================================


def derive_grade_code(name: str) -> str:
    """ "9th Grade" -> "9", "Beginner" -> "BEG"."""
    if "Grade" in name:
        match = _DIGITS.search(name)
        if match:
            return match.group(0)
        return name
    return name[:3].upper()


def normalize_grade_level_create(
    data: Record, settings: Settings, now: datetime | None = None
) -> Record:
    now = now or utcnow()
    record = dict(data)

    if not record.get("code") and record.get("name"):
        record["code"] = derive_grade_code(str(record["name"]))

    if record.get("sortOrder") is None:
        code = record.get("code")
        if code is not None and _NUMERIC.match(str(code)):
            record["sortOrder"] = int(str(code))
        else:
            # Non-numeric levels sort after numbered grades
            record["sortOrder"] = settings.sort_sentinel

    record["isActive"] = record.get("isActive") is not False
    _stamp(record, now)
    return record


# =============================================================================
# EducationalContext
# =============================================================================


def normalize_grade_level_names(value: Any) -> str:
    """Serialize a default grade level list; anything unusable becomes "[]"."""
    if isinstance(value, list):
        return json.dumps(value)
    if isinstance(value, str) and value:
        try:
            parsed = json.loads(value)
        except ValueError:
            return "[]"
        if isinstance(parsed, list):
            return json.dumps(parsed)
    return "[]"


def normalize_educational_context_create(
    data: Record, settings: Settings, now: datetime | None = None
) -> Record:
    now = now or utcnow()
    record = dict(data)
    record["defaultGradeLevels"] = normalize_grade_level_names(
        record.get("defaultGradeLevels")
    )
    record["isActive"] = record.get("isActive") is not False
    _stamp(record, now)
    return record


# =============================================================================
# Generic
# =============================================================================


def stamp_created(data: Record, settings: Settings, now: datetime | None = None) -> Record:
    record = dict(data)
    _stamp(record, now or utcnow())
    return record


def stamp_updated(data: Record, settings: Settings, now: datetime | None = None) -> Record:
    record = dict(data)
    record["updatedAt"] = now or utcnow()
    return record


Normalizer = Callable[..., Record]

CREATE_NORMALIZERS: dict[str, Normalizer] = {
    "Account": normalize_account_create,
    "Session": normalize_session_create,
    "GradeLevel": normalize_grade_level_create,
    "EducationalContext": normalize_educational_context_create,
    "TeacherProfile": stamp_created,
    "StudentProfile": stamp_created,
    "SchoolAdminProfile": stamp_created,
}

UPDATE_NORMALIZERS: dict[str, Normalizer] = {
    "Account": normalize_account_update,
}


def normalize(
    entity_name: str,
    pending: Record | list[Record],
    settings: Settings | None = None,
    *,
    update: bool = False,
    now: datetime | None = None,
) -> Record | list[Record]:
    """Apply the entity's normalizer to one record or to each in a batch.

    Entities without a specific rule still get their timestamps stamped.
    """
    settings = settings or Settings()
    table = UPDATE_NORMALIZERS if update else CREATE_NORMALIZERS
    fn = table.get(entity_name, stamp_updated if update else stamp_created)
    now = now or utcnow()
    if isinstance(pending, list):
        return [fn(item, settings, now) for item in pending]
    return fn(pending, settings, now)
