import pytest

from archview.search import search
from archview.state import (
    NoArchiveLoaded,
    Selection,
    SelectionError,
    ViewerState,
)


@pytest.fixture
def viewer(archive):
    state = ViewerState()
    state.load(archive)
    return state


def _ids(groups):
    return [[mid for mid, _ in g] for g in groups]


def test_selection_requires_an_archive():
    state = ViewerState()
    assert state.selection == Selection.EMPTY
    with pytest.raises(NoArchiveLoaded):
        state.select_channel("General", "general")


def test_select_channel_groups_messages(viewer):
    view = viewer.select_channel("General", "general")
    assert viewer.selection == Selection.CHANNEL
    assert view.title == "# general"
    assert not view.private
    assert view.thread_names == ["Plans"]
    assert _ids(view.groups) == [["100", "101"], ["102"], ["103"], ["104"], ["105"]]


def test_private_channel_title(viewer):
    view = viewer.select_channel("General", "secret")
    assert view.title == "\U0001F512# secret"
    assert view.private


def test_unknown_channel_raises(viewer):
    with pytest.raises(SelectionError):
        viewer.select_channel("General", "missing")
    with pytest.raises(SelectionError):
        viewer.select_thread("General", "general", "missing")


def test_select_and_close_thread(viewer):
    view = viewer.select_thread("General", "general", "Plans")
    assert viewer.selection == Selection.THREAD
    assert view.title == "\U0001F4AC Plans"
    # replies do not split groups inside a thread
    assert _ids(view.groups) == [["150", "151"]]
    assert viewer.channel_view.channel.name == "general"

    viewer.close_thread()
    assert viewer.selection == Selection.CHANNEL
    assert viewer.thread_view is None
    assert viewer.channel_view is not None


def test_selecting_another_channel_closes_the_thread(viewer):
    viewer.select_thread("General", "general", "Plans")
    viewer.select_channel("General", "secret")
    assert viewer.selection == Selection.CHANNEL
    assert viewer.thread_view is None


def test_loading_resets_selection(viewer, archive):
    viewer.select_thread("General", "general", "Plans")
    viewer.load(archive)
    assert viewer.selection == Selection.EMPTY
    assert viewer.channel_view is None
    assert viewer.thread_view is None


def test_reset_forgets_the_archive(viewer):
    viewer.reset()
    assert viewer.archive is None
    with pytest.raises(NoArchiveLoaded):
        viewer.select_channel("General", "general")


def test_open_hit_selects_channel_and_locates_group(viewer):
    hit = search("replying", viewer.index)[0]
    view, group_index = viewer.open_hit(hit)
    assert viewer.selection == Selection.CHANNEL
    assert view.channel.name == "general"
    assert group_index == 2
