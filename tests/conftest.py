import pytest


def make_article(article_id, title="T", username="u1", tags=("tag1",), x=None, y=None,
                 url="https://example.com/a", avatar="https://example.com/avatar.png"):
    record = {
        "__typename": "Article",
        "id": article_id,
        "title": title,
        "url": url,
        "user": {"__typename": "User", "username": username, "avatar": avatar},
        "tags": [{"__typename": "Tag", "name": name} for name in tags],
    }
    if x is not None:
        record["x"] = x
    if y is not None:
        record["y"] = y
    return record


class QueuedFetch:
    """Fetch dispatcher that holds requests until the test completes them."""

    def __init__(self):
        self.pending = []

    def __call__(self, request, on_completed, on_failed):
        self.pending.append((request, on_completed, on_failed))

    def complete(self, batch, index=0):
        _, on_completed, _ = self.pending.pop(index)
        on_completed(batch)

    def fail(self, error, index=0):
        _, _, on_failed = self.pending.pop(index)
        on_failed(error)


@pytest.fixture
def article():
    return make_article


@pytest.fixture
def queued_fetch():
    return QueuedFetch()
