"""Tests for action URL and text cleaning rules."""

import pytest

from relohub.errors import ValidationError
from relohub.notifications.service import clean_text, validate_action_url

PUBLIC = "https://relohub.example.com"


class TestValidateActionUrl:
    @pytest.mark.parametrize(
        "url",
        [
            "/dashboard",
            "/dashboard/tasks?id=1",
            "https://relohub.example.com/plans",
            "https://app.relohub.example.com/plans",
            "http://localhost:3000/x",
            "http://127.0.0.1:8000/x",
        ],
    )
    def test_allowed(self, url):
        assert validate_action_url(url, PUBLIC) == url

    @pytest.mark.parametrize(
        "url",
        [
            "//evil.example.net/x",
            "javascript:alert(1)",
            "data:text/html,hi",
            "ftp://relohub.example.com/file",
            "https://evil.example.net",
            "https://relohub.example.com.evil.net",
            "https://notrelohub.example.com",
        ],
    )
    def test_rejected(self, url):
        with pytest.raises(ValidationError, match="Invalid or unauthorized action URL"):
            validate_action_url(url, PUBLIC)


class TestCleanText:
    def test_strips_tags_and_trims(self):
        assert clean_text("  <script>x</script>Hello <b>there</b> ", 100) == "xHello there"

    def test_caps_length(self):
        assert clean_text("a" * 120, 100) == "a" * 100
