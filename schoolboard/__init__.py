"""SchoolBoard Backend.

Multi-tenant school administration service: directories of students,
teachers, parents, subjects and classes, their relationships, and
per-session class assignment of students.

Copyright (C) 2025 Global Digital Labs (gdlabs.io)
SPDX-License-Identifier: LGPL-3.0-or-later
"""

__version__ = "1.0.0"
