from __future__ import annotations

from datetime import datetime, timezone

from hansard_mine.core import MemberRecord, RegistrySnapshot, UnmatchedSpeaker


def test_unmatched_key_combines_available_fragments():
    assert UnmatchedSpeaker(name="Ahmad Zaki", constituency="Kuala Kedah").key == "Ahmad Zaki (Kuala Kedah)"
    assert UnmatchedSpeaker(name="", constituency="Kuala Kedah").key == "(Kuala Kedah)"
    assert UnmatchedSpeaker(name="Ahmad Zaki").key == "Ahmad Zaki"


def test_snapshot_lookup_and_order(members):
    taken_at = datetime(2024, 1, 1, tzinfo=timezone.utc)
    snapshot = RegistrySnapshot.of(reversed(members), taken_at=taken_at)

    assert snapshot.taken_at == taken_at
    assert len(snapshot) == 4
    assert [member.id for member in snapshot][0] == "m-raj"
    assert "m-john" in snapshot
    assert "m-ghost" not in snapshot
    assert snapshot.get("m-siti").constituency == "Sungai Petani"
    assert snapshot.get("m-ghost") is None


def test_snapshot_is_not_affected_by_later_changes():
    source = [MemberRecord(id="a", name="A Member", constituency="Arau")]
    snapshot = RegistrySnapshot.of(source)
    source.append(MemberRecord(id="b", name="B Member", constituency="Beruas"))

    assert len(snapshot) == 1
