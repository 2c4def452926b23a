import json

from models import ClickEvent, ClickMode, MouseButton, Pattern
from pattern_store import PatternStore, sanitize_file_name


def make_pattern(name="farm"):
    return Pattern(
        name=name,
        events=[
            ClickEvent(1, 2, 0, MouseButton.LEFT, ClickMode.SINGLE),
            ClickEvent(3, 4, 150, MouseButton.RIGHT, ClickMode.TRIPLE),
        ],
    )


def test_put_get_list(store):
    assert store.put(make_pattern("a"))
    assert store.put(make_pattern("b"))
    assert store.list_names() == ["a", "b"]
    assert store.get("a").events[1].delay_millis == 150
    assert store.get("missing") is None


def test_delete_unknown_returns_false_and_keeps_names(store):
    store.put(make_pattern("a"))
    assert not store.delete("nope")
    assert store.list_names() == ["a"]


def test_delete_removes_file(store):
    store.put(make_pattern("a b"))
    path = store.storage_dir / "a_b.json"
    assert path.exists()
    assert store.delete("a b")
    assert not path.exists()
    assert store.list_names() == []


def test_reload_preserves_events(tmp_path):
    directory = tmp_path / "patterns"
    PatternStore(directory).put(make_pattern("farm"))
    reloaded = PatternStore(directory)
    assert reloaded.load_all() == ["farm"]
    assert reloaded.get("farm") == make_pattern("farm")


def test_corrupt_files_are_skipped(tmp_path):
    directory = tmp_path / "patterns"
    PatternStore(directory).put(make_pattern("good"))
    (directory / "bad.json").write_text("{not json", encoding="utf-8")
    (directory / "list.json").write_text(json.dumps([1, 2]), encoding="utf-8")
    store = PatternStore(directory)
    assert store.load_all() == ["good"]


def test_missing_directory_loads_nothing(tmp_path):
    assert PatternStore(tmp_path / "none").load_all() == []


def test_unnamed_pattern_is_rejected(store):
    assert not store.put(Pattern(name="  "))
    assert store.list_names() == []


def test_sanitize_file_name():
    assert sanitize_file_name("my pattern/1.v2-x") == "my_pattern_1.v2-x"


def test_names_sharing_a_file_are_refused(store):
    assert store.put(make_pattern("a b"))
    assert not store.put(make_pattern("a_b"))
    assert store.list_names() == ["a b"]

    reloaded = PatternStore(store.storage_dir)
    assert reloaded.load_all() == ["a b"]


def test_overwriting_same_name_is_allowed(store):
    assert store.put(make_pattern("a b"))
    assert store.put(make_pattern("a b"))
    assert store.list_names() == ["a b"]
