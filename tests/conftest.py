import sys
from datetime import datetime
from pathlib import Path

import msgpack
import pytest

root = Path(__file__).resolve().parents[1] / "archview"
sys.path.append(str(root))

from archview.archive import ArchiveIndex, load_archive  # noqa: E402

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 8
GIF = b"GIF89a" + b"\x00" * 8
T0 = datetime(2024, 3, 10, 12, 0).timestamp()
OLD = datetime(2023, 12, 31, 10, 0).timestamp()


def sample_bundle() -> dict:
    return {
        "Users": {
            "1": ["Alice", None, PNG, "#ff0000"],
            "2": ["Bob", None, None, None],
            "3": ["", None, None, None],
        },
        "Roles": {"10": ["Mods", "#00ff00"]},
        "Emojis": {"20": ["blob", GIF, True]},
        "__server_icon__": ["Test Server", None, PNG],
        "General": {
            "general": {
                "private": False,
                "messages": {
                    "100": {"author_id": "1", "ts": T0, "type": "text", "text": "hello world"},
                    "101": {"author_id": "1", "ts": T0 + 60, "text": "second line"},
                    "102": {"author_id": "2", "ts": T0 + 120, "text": "hi <@1>"},
                    "103": {
                        "author_id": "2",
                        "ts": T0 + 180,
                        "text": "replying",
                        "reply_to": "100",
                    },
                    "104": {
                        "author_id": "1",
                        "ts": T0 + 3600,
                        "text": "image",
                        "attachments": [
                            {"content_type": "image/png", "filename": "a.png", "data": PNG}
                        ],
                        "thread_title": "Plans",
                    },
                    "105": {
                        "author_id": "3",
                        "ts": T0 + 2 * 86400,
                        "type": "poll",
                        "poll": {
                            "question": "Lunch?",
                            "answers": [
                                {"text": "Pizza", "votes": 3},
                                {"text": "Soup", "votes": 1},
                            ],
                        },
                    },
                },
                "threads": {
                    "Plans": {
                        "150": {"author_id": "1", "ts": T0 + 4000, "text": "plan A"},
                        "151": {
                            "author_id": "1",
                            "ts": T0 + 4060,
                            "text": "reply in thread",
                            "reply_to": "150",
                        },
                    }
                },
            },
            "secret": {
                "private": True,
                "messages": {
                    "200": {"author_id": "1", "ts": T0 + 500, "text": "hello secret"},
                },
            },
        },
        "Archive": {
            "old-chat": {
                "messages": {
                    "300": {"author_id": "2", "ts": OLD, "text": "hello from last year"},
                },
            },
        },
    }


def pack(bundle: dict) -> bytes:
    return msgpack.packb(bundle, use_bin_type=True)


@pytest.fixture
def archive_bytes() -> bytes:
    return pack(sample_bundle())


@pytest.fixture
def archive(archive_bytes):
    return load_archive(archive_bytes)


@pytest.fixture
def index(archive) -> ArchiveIndex:
    return ArchiveIndex(archive)
