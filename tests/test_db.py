import pytest

from listsearch.db import KBStore, SessionLocal, init_db, KBInfoRow
from listsearch.errors import InvalidRequestError, MalformedPayloadError, NotFoundError
from listsearch.models import KBInfo, RankerType


@pytest.fixture
def store():
    init_db()
    with SessionLocal() as db:
        db.query(KBInfoRow).delete()
        db.commit()
    return KBStore()


def _kb(kb_id: str, name: str, **kw) -> KBInfo:
    return KBInfo(
        kb_id=kb_id,
        kb_name=name,
        question_field="Title",
        answer_fields='[{"Name": "q", "DisplayName": "City"}]',
        sharepoint_url=f"https://contoso.sharepoint.com/Lists/{name}",
        **kw,
    )


def test_save_and_get(store):
    store.save(_kb("kb-1", "Cities", ranker_type=RankerType.DEFAULT))

    kb = store.get_kb_info("kb-1")

    assert kb.kb_name == "Cities"
    assert kb.ranker_type == RankerType.DEFAULT
    assert [c.display_name for c in kb.parsed_answer_fields()] == ["City"]


def test_missing_ranker_stays_none(store):
    store.save(_kb("kb-old", "Legacy"))
    assert store.get_kb_info("kb-old").ranker_type is None


def test_unknown_kb_raises_not_found(store):
    with pytest.raises(NotFoundError):
        store.get_kb_info("nope")


def test_empty_kb_id_rejected(store):
    with pytest.raises(InvalidRequestError):
        store.get_kb_info("")


def test_upsert_overwrites(store):
    store.save(_kb("kb-1", "Cities"))
    store.save(_kb("kb-1", "Towns"))

    assert store.get_kb_info("kb-1").kb_name == "Towns"
    assert len(store.get_all_kbs(["KBId"])) == 1


def test_get_all_kbs_projects_requested_fields(store):
    store.save(_kb("kb-2", "Zebras"))
    store.save(_kb("kb-1", "Apples"))

    kbs = store.get_all_kbs(["KBName", "KBId"])

    assert [(k.kb_name, k.kb_id) for k in kbs] == [("Apples", "kb-1"), ("Zebras", "kb-2")]
    assert all(k.sharepoint_url is None and k.answer_fields is None for k in kbs)


def test_get_all_kbs_rejects_unknown_field(store):
    with pytest.raises(InvalidRequestError):
        store.get_all_kbs(["KBName", "Secret"])


def test_delete(store):
    store.save(_kb("kb-1", "Cities"))
    assert store.delete("kb-1") is True
    assert store.delete("kb-1") is False


def test_bad_answer_fields_json():
    kb = KBInfo(kb_id="kb-x", kb_name="Broken", answer_fields="{not json")
    with pytest.raises(MalformedPayloadError):
        kb.parsed_answer_fields()
