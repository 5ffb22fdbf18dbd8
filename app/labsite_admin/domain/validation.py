from __future__ import annotations

import re
from collections.abc import Callable
from datetime import date, datetime
from typing import Any
from urllib.parse import urlparse

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
PHONE_PATTERN = re.compile(r"^1[3-9]\d{9}$")
DOI_PATTERN = re.compile(r"^10\.\d{4,}/.+")
VERSION_PATTERN = re.compile(r"^\d+\.\d+\.\d+")
YEAR_MIN = 1900
YEAR_FUTURE_SLACK = 5
PASSWORD_MIN_LENGTH = 6

FormValidator = Callable[..., dict[str, str]]


def _text(form: dict[str, Any], key: str) -> str:
    value = form.get(key)
    if value is None:
        return ""
    return str(value).strip()


def is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def is_email(value: str) -> bool:
    return bool(EMAIL_PATTERN.match(str(value or "").strip()))


def is_phone(value: str) -> bool:
    return bool(PHONE_PATTERN.match(str(value or "").strip()))


def is_url(value: str) -> bool:
    parsed = urlparse(str(value or "").strip())
    return parsed.scheme in {"http", "https"} and bool(parsed.netloc)


def is_doi(value: str) -> bool:
    return bool(DOI_PATTERN.match(str(value or "").strip()))


def is_version(value: str) -> bool:
    return bool(VERSION_PATTERN.match(str(value or "").strip()))


def parse_date(value: Any) -> date | None:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value or "").strip()
    if not text:
        return None
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        return None


def parse_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    text = str(value or "").strip()
    if not re.fullmatch(r"-?\d+", text):
        return None
    return int(text)


def parse_number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    try:
        return float(str(value).strip())
    except ValueError:
        return None


def max_year(today: date | None = None) -> int:
    return (today or date.today()).year + YEAR_FUTURE_SLACK


class _Checks:
    """Collects the first failing message per field."""

    def __init__(self, form: dict[str, Any]) -> None:
        self.form = dict(form or {})
        self.errors: dict[str, str] = {}

    def fail(self, key: str, message: str) -> None:
        self.errors.setdefault(key, message)

    def present(self, key: str) -> bool:
        return not is_blank(self.form.get(key))

    def required(self, key: str, message: str) -> bool:
        if self.present(key):
            return True
        self.fail(key, message)
        return False

    def length(self, key: str, label: str, *, min_length: int = 0, max_length: int = 0) -> None:
        if not self.present(key):
            return
        size = len(_text(self.form, key))
        if min_length and size < min_length:
            self.fail(key, f"{label} must be at least {min_length} characters.")
        elif max_length and size > max_length:
            self.fail(key, f"{label} must be at most {max_length} characters.")

    def pattern(self, key: str, predicate: Callable[[str], bool], message: str) -> None:
        if self.present(key) and not predicate(_text(self.form, key)):
            self.fail(key, message)

    def url(self, *keys: str) -> None:
        for key in keys:
            self.pattern(key, is_url, "Enter a valid URL (http or https).")

    def date(self, key: str, label: str) -> date | None:
        if not self.present(key):
            return None
        parsed = parse_date(self.form.get(key))
        if parsed is None:
            self.fail(key, f"{label} must be a valid date (YYYY-MM-DD).")
        return parsed

    def year(self, key: str, label: str) -> None:
        if not self.present(key):
            return
        parsed = parse_int(self.form.get(key))
        upper = max_year()
        if parsed is None or not (YEAR_MIN <= parsed <= upper):
            self.fail(key, f"{label} must be a year between {YEAR_MIN} and {upper}.")

    def non_negative_int(self, key: str, label: str) -> None:
        if not self.present(key):
            return
        parsed = parse_int(self.form.get(key))
        if parsed is None or parsed < 0:
            self.fail(key, f"{label} must be a whole number of zero or more.")


def validate_user_form(form: dict[str, Any], *, is_edit: bool = False) -> dict[str, str]:
    checks = _Checks(form)
    if checks.required("username", "Username is required."):
        checks.length("username", "Username", min_length=3, max_length=50)
    if checks.required("email", "Email is required."):
        checks.pattern("email", is_email, "Enter a valid email address.")
    checks.required("roleType", "Role is required.")
    checks.length("name", "Name", max_length=50)
    checks.pattern("phone", is_phone, "Enter a valid mobile phone number.")

    password = _text(checks.form, "password")
    if not is_edit:
        checks.required("password", "Password is required.")
    if password:
        if len(password) < PASSWORD_MIN_LENGTH:
            checks.fail("password", f"Password must be at least {PASSWORD_MIN_LENGTH} characters.")
        if password != _text(checks.form, "confirmPassword"):
            checks.fail("confirmPassword", "Passwords do not match.")
    return checks.errors


def validate_publication_form(form: dict[str, Any], *, is_edit: bool = False) -> dict[str, str]:
    checks = _Checks(form)
    if checks.required("title", "Title is required."):
        checks.length("title", "Title", min_length=5, max_length=300)
    checks.required("authors", "At least one author is required.")
    if checks.required("journal", "Journal is required."):
        checks.length("journal", "Journal", max_length=100)
    if checks.required("year", "Publication year is required."):
        checks.year("year", "Publication year")
    checks.pattern("doi", is_doi, "Enter a valid DOI (for example 10.1000/xyz123).")
    checks.url("url")
    return checks.errors


def validate_tool_form(form: dict[str, Any], *, is_edit: bool = False) -> dict[str, str]:
    checks = _Checks(form)
    if checks.required("name", "Tool name is required."):
        checks.length("name", "Tool name", min_length=2)
    if checks.required("description", "Description is required."):
        checks.length("description", "Description", min_length=10)
    checks.length("shortDescription", "Short description", max_length=200)
    checks.required("category", "Category is required.")
    checks.pattern("version", is_version, "Version must look like 1.0.0.")
    checks.url("url", "homepage", "repository", "documentation")
    released = checks.date("releaseDate", "Release date")
    updated = checks.date("lastUpdate", "Last update")
    if released and updated and updated < released:
        checks.fail("lastUpdate", "Last update cannot be earlier than the release date.")
    return checks.errors


def validate_news_form(form: dict[str, Any], *, is_edit: bool = False) -> dict[str, str]:
    checks = _Checks(form)
    if checks.required("title", "Title is required."):
        checks.length("title", "Title", min_length=2, max_length=100)
    if checks.required("content", "Content is required."):
        checks.length("content", "Content", min_length=10)
    checks.length("summary", "Summary", max_length=200)
    return checks.errors


def validate_team_member_form(form: dict[str, Any], *, is_edit: bool = False) -> dict[str, str]:
    checks = _Checks(form)
    if checks.required("name", "Name is required."):
        checks.length("name", "Name", min_length=2, max_length=50)
    checks.pattern("email", is_email, "Enter a valid email address.")
    checks.pattern("phone", is_phone, "Enter a valid mobile phone number.")
    # Uploaded photos are stored as site-relative paths.
    if _text(checks.form, "photo").startswith(("http://", "https://")):
        checks.url("photo")
    checks.year("graduationYear", "Graduation year")
    enrolled = checks.date("enrollmentDate", "Enrollment date")
    graduated = checks.date("graduationDate", "Graduation date")
    if enrolled and graduated and enrolled > graduated:
        checks.fail("graduationDate", "Graduation date cannot be earlier than the enrollment date.")
    return checks.errors


def validate_award_form(form: dict[str, Any], *, is_edit: bool = False) -> dict[str, str]:
    checks = _Checks(form)
    checks.required("awardee", "Awardee name is required.")
    checks.length("awardName", "Award name", max_length=200)
    award_date = checks.date("awardDate", "Award date")
    if award_date and award_date > date.today():
        checks.fail("awardDate", "Award date cannot be in the future.")
    return checks.errors


def validate_article_form(form: dict[str, Any], *, is_edit: bool = False) -> dict[str, str]:
    checks = _Checks(form)
    if checks.required("title", "Title is required."):
        checks.length("title", "Title", min_length=5, max_length=200)
    checks.required("authors", "Authors are required.")
    checks.required("journal", "Journal is required.")
    if checks.required("publishedDate", "Published date is required."):
        checks.date("publishedDate", "Published date")
    checks.pattern("doi", is_doi, "Enter a valid DOI (for example 10.1000/xyz123).")
    checks.length("abstract", "Abstract", max_length=1000)
    if checks.present("impactFactor"):
        impact = parse_number(checks.form.get("impactFactor"))
        if impact is None or impact < 0:
            checks.fail("impactFactor", "Impact factor must be a number of zero or more.")
    checks.non_negative_int("citationCount", "Citation count")
    return checks.errors


def validate_footer_form(form: dict[str, Any], *, is_edit: bool = False) -> dict[str, str]:
    checks = _Checks(form)
    checks.required("title", "Title is required.")
    checks.required("description", "Description is required.")
    checks.required("copyright", "Copyright notice is required.")
    checks.pattern("email", is_email, "Enter a valid email address.")
    links = checks.form.get("links") or []
    if not isinstance(links, list):
        checks.fail("links", "Links must be a list of name and URL pairs.")
        return checks.errors
    for index, link in enumerate(links):
        link = link if isinstance(link, dict) else {}
        if is_blank(link.get("name")):
            checks.fail("links", f"Link {index + 1} needs a name.")
        elif not is_url(str(link.get("url") or "")):
            checks.fail("links", f"Link {index + 1} needs a valid URL (http or https).")
    return checks.errors
