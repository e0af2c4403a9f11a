"""
Synthetic batches for the "add node here" background click.

The generated batch has the same shape as a fetched one (one article, its
author, one tag), so it goes through the normal normalize/merge path.
Ids embed a fresh uuid4 fragment, so they never collide with existing nodes.
"""

import uuid
from typing import Any, Callable, Dict, Optional

SAMPLE_URL = "https://teamaround.notion.site/How-To-Use-Workspaces-Beta-e280bdbbabfc4b7aa5db2f3e74d83e10"
SAMPLE_AVATAR = "https://ca.slack-edge.com/T01KP8N13EF-U01L1M32R7T-d601688eb306-512"


def _short_id() -> str:
    return uuid.uuid4().hex[:8]


def make_sample_batch(x: float, y: float, id_factory: Optional[Callable[[], str]] = None) -> Dict[str, Any]:
    """Build a one-article batch seeded at graph coordinates (x, y)."""
    new_id = id_factory or _short_id
    article_suffix, user_suffix, tag_suffix = new_id(), new_id(), new_id()
    return {
        "articles": [
            {
                "__typename": "Article",
                "id": f"add_article{article_suffix}",
                "url": SAMPLE_URL,
                "title": f"sample_article{article_suffix}",
                "x": x,
                "y": y,
                "user": {
                    "__typename": "User",
                    "username": f"sample_user{user_suffix}",
                    "avatar": SAMPLE_AVATAR,
                },
                "tags": [
                    {"__typename": "Tag", "name": f"sample_tag{tag_suffix}"},
                ],
            }
        ]
    }
