# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Caller roles carried in access tokens."""

from enum import Enum


class Role(str, Enum):
    SUPER_ADMIN = "super_admin"
    SCHOOL_ADMIN = "school_admin"
    TEACHER = "teacher"
    STUDENT = "student"
    PARENT = "parent"


ADMIN_ROLES = frozenset({Role.SUPER_ADMIN.value, Role.SCHOOL_ADMIN.value})
STAFF_ROLES = ADMIN_ROLES | {Role.TEACHER.value}
