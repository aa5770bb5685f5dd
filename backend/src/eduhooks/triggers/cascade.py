"""Cascade scheduler: role profiles that follow an Account creation.

No existence check happens here. If the same accepted account is cascaded
twice (an upstream retry), the second profile insert hits the store's
uniqueness constraint on ``userId`` and the pipeline treats that as a
harmless duplicate.
"""

from typing import Any

from eduhooks.hooks.types import Operation, WriteIntent
from eduhooks.triggers.normalize import ROLE_SCHOOL_ADMIN, ROLE_STUDENT, ROLE_TEACHER

PROFILE_ENTITIES = {
    ROLE_STUDENT: "StudentProfile",
    ROLE_TEACHER: "TeacherProfile",
    ROLE_SCHOOL_ADMIN: "SchoolAdminProfile",
}


def schedule_profile_cascade(account: dict[str, Any]) -> list[WriteIntent]:
    """Write-intents creating the role profile for an accepted account.

    Returns an empty list for a school admin without ``schoolId``; the
    caller reports that as a soft failure.
    """
    role = account.get("role")
    account_id = account.get("id")

    if role == ROLE_STUDENT:
        return [
            WriteIntent(
                entity=PROFILE_ENTITIES[ROLE_STUDENT],
                operation=Operation.ADD,
                data={"userId": account_id, "grade": account.get("grade") or ""},
                reason="student profile",
            )
        ]

    if role == ROLE_TEACHER:
        return [
            WriteIntent(
                entity=PROFILE_ENTITIES[ROLE_TEACHER],
                operation=Operation.ADD,
                data={
                    "userId": account_id,
                    "bio": "",
                    "isVerified": bool(account.get("isVerified") or False),
                    "isIndependent": account.get("isIndependent") is not False,
                },
                reason="teacher profile",
            )
        ]

    if role == ROLE_SCHOOL_ADMIN and account.get("schoolId"):
        return [
            WriteIntent(
                entity=PROFILE_ENTITIES[ROLE_SCHOOL_ADMIN],
                operation=Operation.ADD,
                data={"userId": account_id, "schoolId": account["schoolId"]},
                reason="school admin profile",
            )
        ]

    return []
