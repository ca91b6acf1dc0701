from __future__ import annotations

from typing import List

import pytest

from hansard_mine.core import MemberRecord, RegistrySnapshot
from hansard_mine.database import create_storage


SAMPLE_TRANSCRIPT = """\
PARLIMEN KELIMA BELAS
PENGGAL KEDUA
MESYUARAT PERTAMA
DR.1.3.2023

KANDUNGAN
PERTANYAAN-PERTANYAAN MULUT DARIPADA MENTERI
RANG UNDANG-UNDANG DIBAWA KE DALAM MESYUARAT
KEHADIRAN

Ahli-Ahli Yang Hadir:
1. Yang Berhormat Tuan John Tan (Kota Bharu)
2. Yang Berhormat Puan Siti Aminah binti Abdullah (Sungai Petani)
3. Yang Berhormat Dato' Lim Wei Ming (Petaling Jaya)

Ahli-Ahli Yang Tidak Hadir:
1. Yang Berhormat Tuan Rajesh a/l Kumar (Ipoh Timur)
2. Yang Berhormat Tuan Ahmad Zaki (Bukit Bintang)

PERTANYAAN-PERTANYAAN MULUT

Tuan Yang di-Pertua: Ahli-ahli Yang Berhormat, persidangan dimulakan.
Minister John Tan: Thank you. The ministry has answered the question.
(Sungai Petani): I wish to ask a supplementary question.
Tuan Ahmad Zaki (Kuala Kedah): Terima kasih.
Minister John Tan: A second answer for the House.
"""


@pytest.fixture()
def members() -> List[MemberRecord]:
    return [
        MemberRecord(id="m-john", name="John Tan", constituency="Kota Bharu", party="PH"),
        MemberRecord(id="m-siti", name="Siti Aminah binti Abdullah", constituency="Sungai Petani", party="PN"),
        MemberRecord(id="m-lim", name="Lim Wei Ming", constituency="Petaling Jaya", party="PH"),
        MemberRecord(id="m-raj", name="Rajesh a/l Kumar", constituency="Ipoh Timur", party="PH"),
    ]


@pytest.fixture()
def snapshot(members) -> RegistrySnapshot:
    return RegistrySnapshot.of(members)


@pytest.fixture()
def sample_transcript() -> str:
    return SAMPLE_TRANSCRIPT


@pytest.fixture()
def storage(tmp_path):
    database_url = f"sqlite:///{(tmp_path / 'hansard.db').as_posix()}"
    instance = create_storage(database_url)
    yield instance
    instance.dispose()


@pytest.fixture()
def seeded_storage(storage, members):
    storage.upsert_members(members)
    return storage
