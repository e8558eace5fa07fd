# tests/unit/test_provider_duplicates.py
"""
Unit tests for duplicate provider and contact detection and merge.
"""

import pytest

from src.linksy.domains.providers.services import (
    get_contact_merge_service,
    get_merge_service,
    group_contacts_by_email,
)
from src.linksy.domains.providers.services.duplicates import (
    calculate_similarity,
    find_duplicate_groups,
    levenshtein_distance,
    names_match,
)
from src.linksy.errors import NotFoundError, ValidationError


# =============================================================================
# SIMILARITY
# =============================================================================

class TestLevenshtein:

    @pytest.mark.parametrize("a,b,expected", [
        ("", "", 0),
        ("abc", "", 3),
        ("kitten", "sitting", 3),
        ("flaw", "lawn", 2),
        ("same", "same", 0),
    ])
    def test_distance(self, a, b, expected):
        assert levenshtein_distance(a, b) == expected

    def test_symmetric(self):
        assert levenshtein_distance("pantry", "party") == levenshtein_distance("party", "pantry")


class TestSimilarity:

    def test_identical(self):
        assert calculate_similarity("food bank", "food bank") == 1.0

    def test_both_empty(self):
        assert calculate_similarity("", "") == 1.0

    def test_scaled_by_longer_string(self):
        # kitten -> sitting: 3 edits over 7 characters
        assert calculate_similarity("kitten", "sitting") == pytest.approx(4 / 7)

    def test_substring_matches_regardless_of_score(self):
        assert names_match("harbor food pantry", "harbor food pantry inc", threshold=0.99)

    def test_threshold(self):
        assert names_match("helping hands", "helping handz", threshold=0.9)
        assert not names_match("helping hands", "city library", threshold=0.7)


class TestGrouping:

    def test_groups_similar_names(self):
        providers = [
            {"id": "1", "name": "Harbor Food Pantry"},
            {"id": "2", "name": "harbor food pantry "},
            {"id": "3", "name": "City Library"},
            {"id": "4", "name": "Harbour Food Pantry"},
        ]

        groups = find_duplicate_groups(providers, threshold=0.7)

        assert len(groups) == 1
        assert [p["id"] for p in groups[0]] == ["1", "2", "4"]

    def test_provider_in_one_group_only(self):
        providers = [
            {"id": "1", "name": "Hope Center"},
            {"id": "2", "name": "Hope Center East"},
            {"id": "3", "name": "Hope Center East Annex"},
        ]

        groups = find_duplicate_groups(providers)
        ids = [p["id"] for group in groups for p in group]

        assert len(ids) == len(set(ids))

    def test_singletons_are_dropped(self):
        providers = [{"id": "1", "name": "Alpha"}, {"id": "2", "name": "Zulu Services"}]
        assert find_duplicate_groups(providers) == []

    def test_missing_names(self):
        providers = [{"id": "1", "name": None}, {"id": "2", "name": None}]
        assert len(find_duplicate_groups(providers)) == 1


# =============================================================================
# MERGE SERVICE
# =============================================================================

@pytest.fixture
def merge_data(mock_supabase, provider_factory, contact_factory, ticket_factory):
    mock_supabase.seed_data("linksy_providers", [
        provider_factory("keep", "Harbor Food Pantry", phone="555-0100"),
        provider_factory("dupe", "Harbor Food Pantry Inc", phone="555-0199", website="https://harbor.example.org"),
        provider_factory("other", "City Library"),
    ])
    mock_supabase.seed_data("linksy_provider_contacts", [
        contact_factory("c-keep", user_id="u-shared", provider_id="keep"),
        contact_factory("c-shared", user_id="u-shared", provider_id="dupe"),
        contact_factory("c-moved", user_id="u-only-dupe", provider_id="dupe"),
    ])
    mock_supabase.seed_data("linksy_tickets", [
        ticket_factory("t-1", provider_id="dupe"),
        ticket_factory("t-2", provider_id="keep"),
    ])
    mock_supabase.seed_data("linksy_provider_needs", [
        {"id": "pn-1", "provider_id": "keep", "need_id": "food"},
        {"id": "pn-2", "provider_id": "dupe", "need_id": "food"},
        {"id": "pn-3", "provider_id": "dupe", "need_id": "shelter", "source": "manual", "is_confirmed": True},
    ])
    mock_supabase.seed_data("linksy_search_sessions", [
        {"id": "s-1", "services_clicked": ["other", "dupe"]},
        {"id": "s-2", "services_clicked": ["other"]},
    ])
    return mock_supabase


class TestMergeValidation:

    def test_both_ids_required(self, mock_supabase):
        with pytest.raises(ValidationError, match="Both primaryProviderId and mergeProviderId are required"):
            get_merge_service().merge("keep", None)

    def test_cannot_merge_with_itself(self, mock_supabase):
        with pytest.raises(ValidationError, match="Cannot merge a provider with itself"):
            get_merge_service().merge("keep", "keep")

    def test_unknown_provider(self, merge_data):
        with pytest.raises(NotFoundError, match="One or both providers not found"):
            get_merge_service().merge("keep", "missing")


class TestMerge:

    def test_result(self, merge_data):
        result = get_merge_service().merge("keep", "dupe")

        assert result["success"] is True
        assert result["primaryProviderId"] == "keep"
        assert "Harbor Food Pantry Inc" in result["message"]

    def test_merged_provider_is_deleted(self, merge_data):
        get_merge_service().merge("keep", "dupe")

        ids = {p["id"] for p in merge_data.rows("linksy_providers")}
        assert ids == {"keep", "other"}

    def test_field_choices_copy_from_merged(self, merge_data):
        get_merge_service().merge("keep", "dupe", {"phone": "dupe", "website": "dupe", "name": "keep"})

        keep = next(p for p in merge_data.rows("linksy_providers") if p["id"] == "keep")
        assert keep["phone"] == "555-0199"
        assert keep["website"] == "https://harbor.example.org"
        assert keep["name"] == "Harbor Food Pantry"

    def test_tickets_follow(self, merge_data):
        get_merge_service().merge("keep", "dupe")

        assert {t["provider_id"] for t in merge_data.rows("linksy_tickets")} == {"keep"}

    def test_contacts_move_unless_user_already_on_primary(self, merge_data):
        get_merge_service().merge("keep", "dupe")

        contacts = {c["id"]: c["provider_id"] for c in merge_data.rows("linksy_provider_contacts")}
        assert contacts == {"c-keep": "keep", "c-moved": "keep"}

    def test_needs_are_unioned(self, merge_data):
        get_merge_service().merge("keep", "dupe")

        needs = merge_data.rows("linksy_provider_needs")
        assert sorted(n["need_id"] for n in needs) == ["food", "shelter"]
        assert all(n["provider_id"] == "keep" for n in needs)

    def test_search_sessions_rewritten(self, merge_data):
        get_merge_service().merge("keep", "dupe")

        sessions = {s["id"]: s["services_clicked"] for s in merge_data.rows("linksy_search_sessions")}
        assert sessions == {"s-1": ["other", "keep"], "s-2": ["other"]}


class TestFindDuplicates:

    def test_groups_with_counts(self, merge_data):
        result = get_merge_service().find_duplicates(threshold=0.7, limit=50)

        assert result["total"] == 1
        group = result["duplicates"][0]
        assert group["similarity"] == "high"

        by_id = {p["id"]: p for p in group["providers"]}
        assert set(by_id) == {"keep", "dupe"}
        assert by_id["dupe"]["counts"] == {"locations": 0, "contacts": 2, "notes": 0, "tickets": 1}


# =============================================================================
# CONTACTS
# =============================================================================

class TestGroupContactsByEmail:

    def test_email_is_normalized(self):
        contacts = [
            {"id": "c-1", "user_id": "u-1"},
            {"id": "c-2", "user_id": "u-2"},
            {"id": "c-3", "user_id": "u-3"},
        ]
        users = {
            "u-1": {"id": "u-1", "email": "Dana@Example.org"},
            "u-2": {"id": "u-2", "email": "  dana@example.org"},
            "u-3": {"id": "u-3", "email": "sam@example.org"},
        }

        [group] = group_contacts_by_email(contacts, users)

        assert group["email"] == "dana@example.org"
        assert [c["id"] for c in group["contacts"]] == ["c-1", "c-2"]

    def test_contacts_without_user_email_are_skipped(self):
        contacts = [{"id": "c-1", "user_id": None}, {"id": "c-2", "user_id": None}]
        assert group_contacts_by_email(contacts, {}) == []


class TestContactMerge:

    def test_same_user_keeps_references(self, mock_supabase, contact_factory):
        mock_supabase.seed_data("linksy_provider_contacts", [
            contact_factory("c-1", user_id="u-1"),
            contact_factory("c-2", user_id="u-1"),
        ])
        mock_supabase.seed_data("linksy_tickets", [{"id": "t-1", "provider_id": "prov-1", "assigned_to": "u-1"}])

        get_contact_merge_service().merge("c-1", "c-2")

        assert [c["id"] for c in mock_supabase.rows("linksy_provider_contacts")] == ["c-1"]
        assert mock_supabase.rows("linksy_tickets")[0]["assigned_to"] == "u-1"

    def test_primary_flags_are_not_cleared(self, mock_supabase, contact_factory):
        mock_supabase.seed_data("linksy_provider_contacts", [
            contact_factory("c-1", user_id="u-1", is_default_referral_handler=True),
            contact_factory("c-2", user_id="u-2"),
        ])

        get_contact_merge_service().merge("c-1", "c-2", "prov-1")

        assert mock_supabase.rows("linksy_provider_contacts")[0]["is_default_referral_handler"] is True

    def test_missing_ids(self, mock_supabase):
        with pytest.raises(ValidationError):
            get_contact_merge_service().merge(None, "c-2")

    def test_unknown_contact(self, mock_supabase, contact_factory):
        mock_supabase.seed_data("linksy_provider_contacts", [contact_factory("c-1")])
        with pytest.raises(NotFoundError):
            get_contact_merge_service().merge("c-1", "ghost")
