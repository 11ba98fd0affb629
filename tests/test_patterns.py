"""Tests for built-in format patterns and implied regex lengths."""

import re

import pytest

from schemaforge.schema.patterns import ALPHANUM_PATTERN, EMAIL_PATTERN, implied_length


class TestPatterns:
    """Test the regex patterns used for format constraints."""

    def test_email_valid(self):
        valid_emails = [
            "test@example.com",
            "user.name@domain.co.uk",
            "user+tag@example.org",
            "user123@test.io",
        ]
        for email in valid_emails:
            assert EMAIL_PATTERN.match(email), f"{email} should be valid"

    def test_email_invalid(self):
        invalid_emails = [
            "not-an-email",
            "@example.com",
            "user@",
            "user@.com",
            "user name@example.com",
        ]
        for email in invalid_emails:
            assert not EMAIL_PATTERN.match(email), f"{email} should be invalid"

    def test_alphanum(self):
        assert ALPHANUM_PATTERN.match("bob1")
        assert not ALPHANUM_PATTERN.match("bob_1")
        assert not ALPHANUM_PATTERN.match("")

    def test_trailing_newline(self):
        assert not ALPHANUM_PATTERN.search("bob1\n")
        assert not EMAIL_PATTERN.search("b@x.com\n")


class TestImpliedLength:
    @pytest.mark.parametrize(
        "pattern, expected",
        [
            (r"^[a-z0-9]{3,30}$", (3, 31)),
            (r"^[a-z0-9]{3,30}\Z", (3, 30)),
            (r"\A\d{4}\Z", (4, 4)),
            (r"^.+$", (1, None)),
            (r"^x*\Z", (0, None)),
            (r"^a?\Z", (0, 1)),
            (r"^\w\Z", (1, 1)),
            (r"^[^\]]{2,}\Z", (2, None)),
        ],
    )
    def test_derivable(self, pattern, expected):
        assert implied_length(re.compile(pattern)) == expected

    @pytest.mark.parametrize(
        "pattern",
        [
            r"[a-z]{3}",          # unanchored
            r"^abc$",             # more than one atom
            r"^(ab){2}$",         # group
            r"^[a-z]{3}|\d$",     # alternation
        ],
    )
    def test_not_derivable(self, pattern):
        assert implied_length(re.compile(pattern)) is None

    def test_multiline_is_not_derivable(self):
        assert implied_length(re.compile(r"^[a-z]{3}$", re.MULTILINE)) is None

    def test_case_insensitive_is_still_derivable(self):
        assert implied_length(re.compile(r"^[a-z]{3}\Z", re.IGNORECASE)) == (3, 3)
