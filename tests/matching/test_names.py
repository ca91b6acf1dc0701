from __future__ import annotations

import pytest

from hansard_mine.core import MemberRecord, RegistrySnapshot
from hansard_mine.matching import (
    ConstituencyIndex,
    NameResolver,
    SubstringStrategy,
    normalize_constituency,
    normalize_name,
)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("Yang Berhormat Dato' Sri Haji Ahmad bin Ali", "ahmad ali"),
        ("Rajesh a/l Kumar", "rajesh kumar"),
        ("Tuan  John   Tan", "john tan"),
        ("Dato’ Lim Wei Ming", "lim wei ming"),
        ("Minister John Tan (Kota Bharu)", "john tan"),
        ("O'Neil, Sarah", "o'neil sarah"),
    ],
)
def test_normalize_name_strips_honorifics_and_connectors(raw, expected):
    assert normalize_name(raw) == expected


def test_normalize_constituency_keeps_letters_only():
    assert normalize_constituency("Sungai  Petani") == "sungaipetani"
    assert normalize_constituency("Batu-Pahat ") == "batupahat"
    assert normalize_constituency("") == ""


def test_exact_name_resolution(snapshot):
    resolver = NameResolver(snapshot)

    resolution = resolver.match("Yang Berhormat Tuan John Tan")

    assert resolution is not None
    assert resolution.member.id == "m-john"
    assert resolution.strategy == "exact"


def test_surname_first_variant_resolves(snapshot):
    resolver = NameResolver(snapshot)

    assert resolver.resolve("Tan John").id == "m-john"


def test_constituency_resolves_when_name_is_unknown(snapshot):
    resolver = NameResolver(snapshot)

    resolution = resolver.match("Somebody Else", "Sungai Petani")

    assert resolution.member.id == "m-siti"
    assert resolution.strategy == "constituency"


def test_exact_name_wins_over_constituency(snapshot):
    resolver = NameResolver(snapshot)

    assert resolver.resolve("John Tan", "Sungai Petani").id == "m-john"


def test_substring_resolution(snapshot):
    resolver = NameResolver(snapshot)

    resolution = resolver.match("Tuan Wei Ming")

    assert resolution.member.id == "m-lim"
    assert resolution.strategy == "substring"


def test_short_fragments_never_fuzzy_match(snapshot):
    resolver = NameResolver(snapshot)

    assert resolver.resolve("Dato' Lim") is None
    assert resolver.resolve("Tan") is None


def test_fuzzy_ambiguity_prefers_first_member_in_snapshot():
    snapshot = RegistrySnapshot.of(
        [
            MemberRecord(id="a", name="Ahmad Ali", constituency="Alor Setar"),
            MemberRecord(id="b", name="Ahmad Alias", constituency="Arau"),
        ]
    )
    strategy = SubstringStrategy(snapshot, min_length=4)

    assert strategy.resolve("Ahmad", None).id == "a"


def test_aliases_are_checked_first(snapshot):
    resolver = NameResolver(snapshot, aliases={"Menteri Kewangan": "John Tan"})

    assert resolver.resolve("Menteri Kewangan").id == "m-john"


def test_unknown_speaker_is_not_resolved(snapshot):
    resolver = NameResolver(snapshot)

    assert resolver.resolve("Ahmad Zaki", "Kuala Kedah") is None
    assert resolver.resolve(None, None) is None


def test_suggestions_use_constituency_then_word_overlap(snapshot):
    resolver = NameResolver(snapshot)

    assert resolver.suggest("Nobody", "Petaling Jaya") == ("m-lim",)
    assert resolver.suggest("Siti Aminah Hassan") == ("m-siti",)
    assert resolver.suggest("Unknown Person") == ()


def test_constituency_index_keeps_first_member_and_dedupes(members):
    duplicate = MemberRecord(id="m-other", name="Other", constituency="kota bharu")
    index = ConstituencyIndex([*members, duplicate])

    assert index.get("KOTA BHARU").id == "m-john"
    assert "Ipoh Timur" in index
    assert "Bukit Bintang" not in index
    resolved = index.resolve_all(["Kota Bharu", "Bukit Bintang", "Kota  Bharu", "Ipoh Timur"])
    assert [member.id for member in resolved] == ["m-john", "m-raj"]
