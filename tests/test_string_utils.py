import pytest

from certtracker.utils.string_utils import normalize_email_addresses, truncate


@pytest.mark.unit
class TestNormalizeEmailAddresses:
    def test_splits_on_semicolons_and_commas(self):
        assert normalize_email_addresses(
            " a@example.com; b@example.com ,c@example.com "
        ) == ["a@example.com", "b@example.com", "c@example.com"]

    def test_drops_blank_entries(self):
        assert normalize_email_addresses(["a@example.com", "", " ; ,"]) == [
            "a@example.com"
        ]

    def test_appends_default_domain_to_bare_usernames(self):
        assert normalize_email_addresses(["jdoe", "x@other.org"], "example.com") == [
            "jdoe@example.com",
            "x@other.org",
        ]

    def test_leaves_bare_usernames_without_default_domain(self):
        assert normalize_email_addresses("jdoe") == ["jdoe"]

    def test_none_gives_empty_list(self):
        assert normalize_email_addresses(None) == []


@pytest.mark.unit
def test_truncate():
    assert truncate("abcdef", 3) == "abc"
    assert truncate("ab", 3) == "ab"
    assert truncate(None, 3) is None
