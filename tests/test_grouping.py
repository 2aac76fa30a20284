import pytest

from archview.archive import Message
from archview.grouping import (
    GROUP_GAP_SECONDS,
    find_group,
    group_messages,
    sort_messages,
)


def _msg(mid, author, ts, reply_to=None):
    return mid, Message(id=mid, author_id=author, ts=ts, reply_to=reply_to)


def _ids(groups):
    return [[mid for mid, _ in g] for g in groups]


def test_consecutive_messages_by_one_author_share_a_group():
    items = [_msg("a", "1", 0), _msg("b", "1", 60), _msg("c", "2", 120), _msg("d", "1", 180)]
    assert _ids(group_messages(items)) == [["a", "b"], ["c"], ["d"]]


@pytest.mark.parametrize(
    "gap, expected",
    [
        (GROUP_GAP_SECONDS, [["a", "b"]]),
        (GROUP_GAP_SECONDS + 1, [["a"], ["b"]]),
    ],
)
def test_time_gap_boundary(gap, expected):
    items = [_msg("a", "1", 1000), _msg("b", "1", 1000 + gap)]
    assert _ids(group_messages(items)) == expected


def test_gap_is_measured_from_the_previous_message():
    items = [_msg("a", "1", 0), _msg("b", "1", 400), _msg("c", "1", 800)]
    assert _ids(group_messages(items)) == [["a", "b", "c"]]


def test_reply_starts_group_only_in_channel_mode():
    items = [_msg("a", "1", 0), _msg("b", "1", 10, reply_to="x")]
    assert _ids(group_messages(items, break_on_reply=True)) == [["a"], ["b"]]
    assert _ids(group_messages(items, break_on_reply=False)) == [["a", "b"]]


def test_grouping_is_a_lossless_partition():
    items = [
        _msg(str(i), str(i % 3 // 2), i * 200, reply_to="0" if i % 4 == 0 else None)
        for i in range(20)
    ]
    groups = group_messages(items)
    assert [item for g in groups for item in g] == items
    assert all(groups)


def test_empty_input_gives_no_groups():
    assert group_messages([]) == []


def test_sort_messages_is_stable_by_timestamp():
    mapping = dict([_msg("b", "1", 5), _msg("a", "1", 5), _msg("c", "1", 1)])
    assert [mid for mid, _ in sort_messages(mapping)] == ["c", "b", "a"]


def test_find_group():
    groups = group_messages([_msg("a", "1", 0), _msg("b", "2", 1), _msg("c", "2", 2)])
    assert find_group(groups, "c") == 1
    assert find_group(groups, "zzz") is None
