import json
import types

import pytest

from toolbelt.collection import Collection
from toolbelt.datamap import DataMap
from toolbelt.helper import as_int


@pytest.fixture
def state():
    a_map = DataMap()
    sub_collection = Collection(["item1", "item2"])
    a_map.put("cc", sub_collection)
    a_map.put("keys", DataMap({"k1": 1, "k2": 1}))
    a_map.put("meta", {"USER": 7})
    collection = Collection(["1", "20", "30"])
    a_map.put("collection", collection)
    a_map.put("a", DataMap({"i": 10, "col": collection}))
    a_map.put("b", "123")
    a_map.put("c", "b")
    return a_map


def test_get_value_index_access(state):
    assert state.get_value("cc[0]") == ("item1", True)
    assert state.get_value("keys[k1]") == (1, True)
    assert state.get_value("keys[k10]")[1] is False


def test_get_value_nested_and_set(state):
    value, found = state.get_value("meta.USER")
    assert found and value == 7
    state.set_value("meta.USER", as_int(value) + 1)
    assert state.get_value("meta.USER") == (8, True)


def test_get_value_simple_and_reference(state):
    assert state.get_value("c") == ("b", True)
    value, found = state.get_value("a.col")
    assert found and list(value) == ["1", "20", "30"]
    assert state.get_value("$c") == ("123", True)


def test_increments(state):
    assert state.get_value("a.i++") == (10, True)
    assert state.get_value("a.i++") == (11, True)
    assert state.get_value("++a.i") == (13, True)
    assert state.get_value("++a.i") == (14, True)


def test_shift(state):
    assert state.get_value("<-collection") == ("1", True)
    assert state.get_value("<-collection") == ("20", True)
    assert state.get_value("<-collection") == ("30", True)
    assert state.get_value("<-collection") == (None, False)


def test_array_index_into_maps(state):
    state.put("c", Collection([{"k1": 1, "K2": 2}, {"k2": 3, "K3": 4}]))
    assert state.get_value("c[0].k1") == (1, True)
    assert state.get_value("c[1].k2") == (3, True)
    assert state.get_value("c[5].k2") == (None, False)


def test_nested_collection_index():
    a_map = DataMap()
    a_map.put("s", DataMap({"c": Collection(["item1", "item2"])}))
    assert a_map.get_value("s.c[0]") == ("item1", True)


def test_get_value_missing_and_empty():
    a_map = DataMap({"x": 1})
    assert a_map.get_value("") == (None, False)
    assert a_map.get_value("y") == (None, False)
    assert a_map.get_value("x.y.z") == (None, False)
    assert a_map.get_value("{x}") == (1, True)


def test_get_value_calls_functions():
    a_map = DataMap({"now": lambda: 42, "lookup": DataMap(), "fn": lambda key: key.upper()})
    assert a_map.get_value("now") == (42, True)
    assert a_map.get_value("fn.abc") == ("ABC", True)


def test_set_value_simple():
    a_map = DataMap()
    assert a_map.get_value("z.a")[1] is False
    a_map.set_value("z.a", "123")
    assert a_map.get_value("z.a") == ("123", True)


def test_set_value_reference():
    a_map = DataMap()
    a_map.set_value("z.b", "111")
    assert a_map.get_value("z.b") == ("111", True)
    a_map.set_value("zzz", "z.b")
    a_map.set_value("$zzz", "222")
    assert a_map.get_value("z.b") == ("222", True)


def test_set_value_push():
    a_map = DataMap()
    a_map.set_value("->a.v", 1)
    a_map.set_value("->a.v", 2)
    value, found = a_map.get_value("a.v")
    assert found and list(value) == [1, 2]


def test_set_value_mutates_nested_array_item():
    a_map = DataMap()
    item = {"key": 1, "attr": 2}
    a_map.put("col", Collection([item]))
    a_map.set_value("col[0].x", 20)
    a_map.set_value("col[0].attr", 30)
    assert item == {"key": 1, "attr": 30, "x": 20}


def test_set_value_ignores_none_and_empty():
    a_map = DataMap()
    a_map.set_value("a", None)
    a_map.set_value("", 1)
    assert a_map == {}


def test_delete():
    a_map = DataMap()
    a_map.set_value("k1.v1", 1)
    a_map.set_value("k1.v2", 1)
    a_map.put("k2", 1)
    a_map.delete("k1.v1", "k2")
    assert len(a_map) == 1
    assert len(a_map.get_map("k1")) == 1


def test_replace():
    a_map = DataMap()
    a_map.set_value("k1.v1", 1)
    a_map.set_value("k1.v2", 1)
    a_map.put("k2", 1)
    a_map.replace("k1.v1", "v100")
    a_map.replace("k2", "v200")
    assert a_map.get_value("k1.v1") == ("v100", True)
    assert a_map["k2"] == "v200"


def test_sub_state_with_read_only_mapping():
    a_map = DataMap()
    a_map.put("meta", types.MappingProxyType({"TABLE": 1}))
    value, found = a_map.get_value("meta.TABLE")
    assert found
    a_map.set_value("meta.TABLE", as_int(value) + 1)
    assert a_map.get_value("meta.TABLE") == (2, True)


def test_typed_getters():
    a_map = DataMap({"s": 12, "i": "7", "f": "1.5", "b": "true"})
    assert a_map.get_string("s") == "12"
    assert a_map.get_int("i") == 7
    assert a_map.get_float("f") == 1.5
    assert a_map.get_boolean("b") is True
    assert a_map.get_string("none") == ""
    assert a_map.get_int("none") == 0
    assert a_map.get_float("none") == 0.0
    assert a_map.get_boolean("none") is False
    assert a_map.has("s") and not a_map.has("none")


def test_get_collection_and_map():
    a_map = DataMap({"l": [1, 2], "t": (3,), "x": 5, "m": types.MappingProxyType({"a": 1})})
    assert a_map.get_collection("l") == [1, 2]
    assert isinstance(a_map.get_collection("t"), Collection)
    assert a_map.get_collection("x") is None
    converted = a_map.get_map("m")
    assert converted == {"a": 1}
    assert a_map["m"] is converted
    assert a_map.get_map("x") is None


def test_apply_and_clone():
    a_map = DataMap({"a": 1})
    a_map.apply({"b": 2, "n": DataMap({"c": 3})})
    clone = a_map.clone()
    clone["n"]["c"] = 4
    assert a_map["n"]["c"] == 3
    assert clone == {"a": 1, "b": 2, "n": {"c": 4}}


def test_as_encodable_map():
    a_map = DataMap(
        {
            "f": lambda x, y: x,
            "n": None,
            "b": True,
            "i": 1,
            "l": [1, {"x": print}],
            "m": {"k": "v"},
        }
    )
    encodable = a_map.as_encodable_map()
    assert encodable == {
        "f": "func()",
        "b": "true",
        "i": 1,
        "l": [1, {"x": "func()"}],
        "m": {"k": "v"},
    }
    assert json.loads(json.dumps(encodable)) == encodable