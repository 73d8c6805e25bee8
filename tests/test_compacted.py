import datetime
import json

import pytest

from toolbelt.compacted import CompactedSlice, NilGroup, RecordIterator


def test_add_and_range_omits_empty():
    collection = CompactedSlice(True, True)
    collection.add({"f1": 1, "f12": 1, "f15": 1, "f20": 1, "f11": None, "f13": ""})
    collection.add(
        {
            "f1": 1,
            "f32": 1,
            "f35": 1,
            "f30": 1,
            "f31": None,
            "f33": "",
            "f11": 0,
            "f36": 0.0,
        }
    )
    assert collection.size() == 2
    actual = []
    collection.range(lambda item: actual.append(item) is None)
    assert len(actual) == 2
    assert actual[0] == {"f1": 1, "f12": 1, "f15": 1, "f20": 1}
    assert actual[1] == {"f1": 1, "f32": 1, "f35": 1, "f30": 1}
    assert collection.size() == 0


def test_optimized_storage():
    collection = CompactedSlice(True, True)
    data = [None, None, None, "123", None, None, "abc", 12, None, None, None, "a"]
    compressed = [NilGroup(3), "123", NilGroup(2), "abc", 12, NilGroup(3), "a"]
    assert collection.compress(data) == compressed
    assert collection.uncompress(compressed, 12) == data


def test_compress_single_nil_and_trailing():
    collection = CompactedSlice()
    assert collection.compress([1, None, 2, None, None]) == [1, None, 2]


SORT_CASES = [
    (
        "int sorting",
        ["id"],
        [
            {"id": 10, "name": "name 10"},
            {"id": 3, "name": "name 3"},
            {"id": 1, "name": "name 1"},
            {"id": 2, "name": "name 2"},
        ],
        [1, 2, 3, 10],
    ),
    (
        "float sorting",
        ["id"],
        [
            {"id": 10.0, "name": "name 10"},
            {"id": 3.1, "name": "name 3"},
            {"id": 1.2, "name": "name 1"},
            {"id": 2.2, "name": "name 2"},
        ],
        [1.2, 2.2, 3.1, 10.0],
    ),
    (
        "string sorting",
        ["id"],
        [
            {"id": "010", "name": "name 10"},
            {"id": "003", "name": "name 3"},
            {"id": "001", "name": "name 1"},
            {"id": "022", "name": "name 2"},
        ],
        ["001", "003", "010", "022"],
    ),
    (
        "combined index sorting",
        ["id"],
        [
            {"id": 1, "u": 1, "name": "name 10"},
            {"id": 3, "u": 2, "name": "name 3"},
            {"id": 2, "u": 2, "name": "name 1"},
            {"id": 4, "u": 6, "name": "name 2"},
        ],
        [1, 2, 3, 4],
    ),
]


def _filled(records):
    collection = CompactedSlice(True, True)
    for record in records:
        collection.add(record)
    return collection


@pytest.mark.parametrize("description, index_by, records, expected", SORT_CASES)
def test_sorted_range(description, index_by, records, expected):
    collection = _filled(records)
    actual = []
    collection.sorted_range(
        index_by, lambda item: actual.append(item[index_by[0]]) is None
    )
    assert actual == expected, description


@pytest.mark.parametrize("description, index_by, records, expected", SORT_CASES)
def test_sorted_iterator(description, index_by, records, expected):
    collection = _filled(records)
    iterator = collection.sorted_iterator(index_by)
    actual = []
    while iterator.has_next():
        actual.append(next(iterator)[index_by[0]])
    assert actual == expected, description


def test_sorted_range_missing_field():
    collection = _filled([{"id": 1, "u": 1, "name": "name 10"}])
    with pytest.raises(KeyError):
        collection.sorted_range(["field1"], lambda item: True)


def test_sorted_iterator_missing_field():
    collection = _filled([{"id": 1, "u": 1, "name": "name 10"}])
    with pytest.raises(KeyError):
        collection.sorted_iterator(["field1"])


def test_sorted_range_unsupported_type():
    collection = _filled([{"id": datetime.datetime.now(), "u": 1, "name": "name 10"}])
    with pytest.raises(ValueError):
        collection.sorted_range(["id"], lambda item: True)


def test_sorted_iterator_unsupported_type():
    collection = _filled([{"id": datetime.datetime.now(), "u": 1, "name": "name 10"}])
    with pytest.raises(ValueError):
        collection.sorted_iterator(["id"])


def test_sorted_iterator_empty_index():
    collection = _filled([{"id": 1}])
    with pytest.raises(ValueError):
        collection.sorted_iterator([])


@pytest.mark.parametrize(
    "records, expected",
    [
        (
            [
                {"id": 10, "name": "name 10"},
                {"id": 3, "name": "name 3"},
                {"id": 1, "name": "name 1"},
            ],
            [10, 3, 1],
        ),
        (
            [
                {"id": 10.0, "name": "name 10"},
                {"id": 3.1, "name": "name 3"},
                {"id": 2.2, "name": "name 2"},
            ],
            [10.0, 3.1, 2.2],
        ),
    ],
)
def test_iterator(records, expected):
    collection = _filled(records)
    iterator = collection.iterator()
    assert isinstance(iterator, RecordIterator)
    actual = [record["id"] for record in iterator]
    assert actual == expected
    assert collection.size() == 0


def test_to_json():
    records = [
        {"id": 10.0, "name": "name 10"},
        {"id": 3.0, "name": "name 3"},
        {"id": 1.0, "name": "name 1"},
    ]
    collection = _filled(records)
    assert json.loads(collection.to_json()) == records
    assert collection.size() == len(records)


def test_ranger_moves_records():
    records = [{"id": 1, "name": "a"}, {"id": 2, "name": "b"}]
    collection = _filled(records)
    moved = collection.ranger()
    assert collection.size() == 0
    assert moved.size() == len(records)
    actual = []
    moved.range(lambda item: actual.append(item) is None)
    assert actual == records


def test_range_stops_early():
    collection = _filled([{"id": 1}, {"id": 2}, {"id": 3}])
    seen = []

    def handler(item):
        seen.append(item["id"])
        return False

    collection.range(handler)
    assert seen == [1]
    # range takes the records out of the slice, processed or not
    assert list(collection.iterator()) == []


def test_records_without_compression():
    collection = CompactedSlice(False, False)
    collection.add({"a": 1})
    collection.add({"b": 2, "a": 0})
    actual = []
    collection.range(lambda item: actual.append(item) is None)
    assert actual == [{"a": 1}, {"b": 2, "a": 0}]
    assert [field.name for field in collection.fields()] == ["a", "b"]