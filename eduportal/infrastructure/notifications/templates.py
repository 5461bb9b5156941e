# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""SMS-length message templates.

Pure formatters; the same text is stored on the notification record
and sent over SMS.
"""

ANNOUNCEMENT_PREVIEW_LENGTH = 100


def truncate(text: str, length: int = ANNOUNCEMENT_PREVIEW_LENGTH) -> str:
    """Cut text to length characters, marking the cut with "..."."""
    if len(text) <= length:
        return text
    return f"{text[:length]}..."


def announcement(
    title: str,
    content: str,
    preview_length: int = ANNOUNCEMENT_PREVIEW_LENGTH,
) -> str:
    return (
        f"📢 New Announcement: {title}\n\n"
        f"{truncate(content, preview_length)}\n\n"
        "Check the app for full details."
    )


def exam_result(student_name: str, exam_name: str, grade: str) -> str:
    return (
        "📊 Exam Result Published\n\n"
        f"Hi {student_name}!\n"
        f"Exam: {exam_name}\n"
        f"Grade: {grade}\n\n"
        "View details in the student portal."
    )


def event_reminder(event_name: str, date: str, location: str | None = None) -> str:
    location_line = f"\nLocation: {location}" if location else ""
    return (
        f"📅 Event Reminder: {event_name}\n\n"
        f"Date: {date}{location_line}\n\n"
        "Don't forget to attend!"
    )


def urgent_alert(message: str) -> str:
    return (
        f"🚨 URGENT: {message}\n\n"
        "Please check the app immediately for more information."
    )


def welcome(student_name: str, school_name: str) -> str:
    return (
        f"🎓 Welcome to {school_name}, {student_name}!\n\n"
        "Your account has been created. Download our app to stay updated "
        "with announcements, grades, and events."
    )
