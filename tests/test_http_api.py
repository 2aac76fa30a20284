import msgpack
import pytest
from fastapi.testclient import TestClient

from archview.http.api import create_app
from archview.http.routes.annotate import annotate_text
from archview.http.routes.search import run_search
from archview.http.schemas import AnnotateBody

from conftest import PNG


@pytest.fixture
def client(tmp_path):
    return TestClient(create_app(config_path=tmp_path / "config.json"))


@pytest.fixture
def loaded(client, archive_bytes):
    resp = client.post(
        "/api/archive",
        files={"archive": ("export.msgpack", archive_bytes, "application/octet-stream")},
    )
    assert resp.status_code == 200
    return client


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_upload_returns_archive_tree(client, archive_bytes):
    resp = client.post(
        "/api/archive",
        files={"archive": ("export.msgpack", archive_bytes, "application/octet-stream")},
    )
    data = resp.json()
    assert data["messageCount"] == 10
    assert data["userCount"] == 3
    assert data["server"] == {"name": "Test Server", "iconUrl": "/api/assets/server-icon"}
    general = data["categories"][0]
    assert general["name"] == "General"
    assert general["channels"][0] == {"name": "general", "private": False, "threads": ["Plans"]}
    assert client.get("/api/archive").json() == data


def test_requests_before_loading_conflict(client):
    assert client.get("/api/archive").status_code == 409
    assert client.get("/api/channels/General/general").status_code == 409
    assert client.get("/api/search", params={"q": "hello"}).status_code == 409


def test_bad_upload_is_rejected_and_keeps_previous_snapshot(loaded):
    resp = loaded.post(
        "/api/archive",
        files={"archive": ("bad.msgpack", msgpack.packb([1, 2]), "application/octet-stream")},
    )
    assert resp.status_code == 400
    assert loaded.get("/api/archive").json()["messageCount"] == 10


def test_channel_view(loaded):
    data = loaded.get("/api/channels/General/general").json()
    assert data["title"] == "# general"
    assert data["threadNames"] == ["Plans"]
    groups = data["groups"]
    assert [len(g["messages"]) for g in groups] == [2, 1, 1, 1, 1]

    first, second = groups[0]["messages"]
    assert first["isHeader"] and not second["isHeader"]
    assert first["authorName"] == "Alice"
    assert first["avatarUrl"] == "/api/assets/avatars/1"
    assert second["avatarUrl"] is None
    assert first["timeLabel"] == "2024/03/10 12:00:00"
    assert second["timeLabel"] == "12:01"

    mention = groups[1]["messages"][0]
    assert '<span class="mention user">@Alice</span>' in mention["html"]

    reply = groups[2]["messages"][0]["reply"]
    assert reply["messageId"] == "100"
    assert reply["authorName"] == "Alice"
    assert reply["text"] == "hello world"

    image = groups[3]["messages"][0]
    assert image["threadLink"] == "Plans"
    assert image["attachments"] == [
        {
            "url": "/api/assets/attachments/General/general/104/0",
            "filename": "a.png",
            "contentType": "image/png",
            "isImage": True,
        }
    ]

    poll = groups[4]["messages"][0]
    assert poll["kind"] == "poll"
    assert poll["authorName"] == "3"
    assert poll["poll"]["totalVotes"] == 4
    assert [a["percentage"] for a in poll["poll"]["answers"]] == [75.0, 25.0]


def test_unknown_channel_is_not_found(loaded):
    assert loaded.get("/api/channels/General/nope").status_code == 404
    assert loaded.get("/api/channels/General/general/threads/nope").status_code == 404


def test_thread_view_and_selection(loaded):
    data = loaded.get("/api/channels/General/general/threads/Plans").json()
    assert data["title"] == "\U0001F4AC Plans"
    assert len(data["groups"]) == 1
    assert loaded.get("/api/selection").json()["state"] == "thread"

    closed = loaded.delete("/api/selection/thread").json()
    assert closed == {
        "state": "channel",
        "category": "General",
        "channel": "general",
        "thread": None,
    }


def test_search_and_open_hit(loaded):
    data = loaded.get("/api/search", params={"q": "from:alice hello"}).json()
    assert data["count"] == 2
    first = data["results"][0]
    assert first["channel"] == "secret"
    assert first["previewHtml"] == "<mark>hello</mark> secret"
    assert first["matchedQualifiers"] == {"from": ["alice"], "text": ["hello"]}

    opened = loaded.get(
        "/api/search/open",
        params={"category": "General", "channel": "general", "messageId": "103"},
    ).json()
    assert opened["groupIndex"] == 2
    assert opened["view"]["channel"] == "general"
    assert loaded.get("/api/selection").json()["state"] == "channel"


def test_empty_search_returns_nothing(loaded):
    assert loaded.get("/api/search", params={"q": ""}).json()["count"] == 0


def test_open_unknown_hit(loaded):
    resp = loaded.get(
        "/api/search/open",
        params={"category": "General", "channel": "general", "messageId": "999"},
    )
    assert resp.status_code == 404


def test_suggestions(loaded):
    data = loaded.get(
        "/api/search/suggestions", params={"text": "from:al rest", "caret": 7}
    ).json()
    assert data["kind"] == "users"
    assert data["users"] == [{"id": "1", "name": "Alice", "avatarUrl": "/api/assets/avatars/1"}]
    assert data["highlightHtml"] == "<mark>from:al</mark> rest"


def test_calendar(client):
    data = client.get("/api/search/calendar", params={"year": 2024, "month": 2}).json()
    assert len(data["days"]) == 42
    assert data["days"][0]["date"] == "2024-01-28"
    assert client.get("/api/search/calendar", params={"month": 13}).status_code == 422


def test_calendar_at_the_edges_of_the_date_range(client):
    resp = client.get("/api/search/calendar", params={"year": 9999, "month": 12})
    assert resp.status_code == 200
    days = resp.json()["days"]
    assert days[33]["date"] == "9999-12-31"
    assert days[-1] is None

    resp = client.get("/api/search/calendar", params={"year": 1, "month": 1})
    assert resp.status_code == 200
    days = resp.json()["days"]
    assert days[0] is None
    assert days[1] == {"date": "0001-01-01", "day": 1, "inMonth": True, "today": False}


def test_apply_suggestion_at_caret(client):
    resp = client.post(
        "/api/search/suggestions/apply",
        json={"text": "hello from:al rest", "caret": 13, "qualifier": "from", "value": "Alice"},
    )
    assert resp.status_code == 200
    assert resp.json() == {
        "text": 'hello from:"Alice" rest',
        "highlightHtml": "hello <mark>from:&quot;Alice&quot;</mark> rest",
    }

    data = client.post(
        "/api/search/suggestions/apply",
        json={"text": "x before:", "qualifier": "before", "value": "2024-01-02"},
    ).json()
    assert data["text"] == "x before:2024-01-02 "

    bad = client.post(
        "/api/search/suggestions/apply",
        json={"text": "x", "qualifier": "nope", "value": "y"},
    )
    assert bad.status_code == 422


def test_assets(loaded):
    avatar = loaded.get("/api/assets/avatars/1")
    assert avatar.status_code == 200
    assert avatar.headers["content-type"] == "image/png"
    assert avatar.content == PNG
    assert loaded.get("/api/assets/avatars/2").status_code == 404
    assert loaded.get("/api/assets/emojis/20").headers["content-type"] == "image/gif"
    assert loaded.get("/api/assets/server-icon").status_code == 200
    attachment = loaded.get("/api/assets/attachments/General/general/104/0")
    assert attachment.content == PNG
    assert loaded.get("/api/assets/attachments/General/general/104/1").status_code == 404


def test_annotate_endpoint(loaded):
    resp = loaded.post("/api/annotate", json={"text": "<:blob:20> hi", "highlight": ["hi"]})
    assert resp.json() == {
        "html": '<img class="emoji" src="/api/assets/emojis/20" alt=":blob:"> <mark>hi</mark>',
        "emojiOnly": False,
    }


def test_theme_setting(client):
    assert client.get("/api/settings/theme").json() == {"theme": None}
    assert client.put("/api/settings/theme", json={"theme": "dark"}).json() == {"theme": "dark"}
    assert client.get("/api/settings/theme").json() == {"theme": "dark"}
    assert client.put("/api/settings/theme", json={"theme": "blue"}).status_code == 422


def test_reset_archive(loaded):
    assert loaded.delete("/api/archive").status_code == 204
    assert loaded.get("/api/archive").status_code == 409


@pytest.mark.asyncio
async def test_route_functions_can_be_called_directly(index):
    dto = await annotate_text(AnnotateBody(text="<@1>"), index=index)
    assert dto.html == '<span class="mention user">@Alice</span>'
    results = await run_search(q="hello", index=index)
    assert [r.message_id for r in results.results] == ["200", "100", "300"]
