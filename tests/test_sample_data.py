from tagweb.merger import normalize
from tagweb.sample_data import SAMPLE_AVATAR, SAMPLE_URL, make_sample_batch


def test_sample_batch_shape():
    batch = make_sample_batch(3, 4, id_factory=lambda: "x")
    (record,) = batch["articles"]
    assert record["id"] == "add_articlex"
    assert record["title"] == "sample_articlex"
    assert record["url"] == SAMPLE_URL
    assert (record["x"], record["y"]) == (3, 4)
    assert record["user"] == {"__typename": "User", "username": "sample_userx", "avatar": SAMPLE_AVATAR}
    assert record["tags"] == [{"__typename": "Tag", "name": "sample_tagx"}]


def test_sample_batch_normalizes_to_three_nodes():
    sub = normalize(make_sample_batch(0, 0))
    assert [n.kind for n in sub.nodes] == ["Article", "User", "Tag"]
    assert len(sub.links) == 2


def test_default_ids_are_unique():
    ids = {make_sample_batch(0, 0)["articles"][0]["id"] for _ in range(50)}
    assert len(ids) == 50
