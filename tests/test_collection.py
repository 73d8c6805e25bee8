from toolbelt.collection import Collection


def test_push_appends_in_order():
    collection = Collection()
    collection.push("item1")
    collection.push("item2")
    assert list(collection) == ["item1", "item2"]


def test_pad_with_map():
    collection = Collection(["a"])
    collection.pad_with_map(3)
    assert len(collection) == 3
    assert collection[0] == "a"
    assert collection[1] == {} and collection[2] == {}


def test_pad_with_map_does_not_shrink():
    collection = Collection([1, 2, 3])
    collection.pad_with_map(1)
    assert list(collection) == [1, 2, 3]


def test_range_stops_when_handler_returns_false():
    source = ["a", "b", "c", "d"]
    collection = Collection(source)
    seen = []

    def handler(item, index):
        seen.append((index, item))
        return index < 1

    collection.range(handler)
    assert seen == list(enumerate(source[:2]))


def test_range_map_passes_none_for_non_maps():
    first = {"k": 1}
    collection = Collection([first, "text"])
    seen = []
    collection.range_map(lambda item, index: seen.append(item) is None)
    assert seen == [first, None]


def test_range_string_and_int():
    collection = Collection(["1", "20", 3])
    strings = []
    ints = []
    collection.range_string(lambda item, index: strings.append(item) is None)
    collection.range_int(lambda item, index: ints.append(item) is None)
    assert strings == ["1", "20", "3"]
    assert ints == [1, 20, 3]


def test_range_propagates_errors():
    collection = Collection([1])

    def handler(item, index):
        raise RuntimeError("boom")

    try:
        collection.range(handler)
    except RuntimeError as err:
        assert str(err) == "boom"
    else:
        raise AssertionError("handler error was swallowed")


def test_str():
    assert str(Collection([1, "a"])) == "[1,a]"