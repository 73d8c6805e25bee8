# toolbelt

Utilities for working with loosely typed data: dictionaries addressed by path
expressions, memory-friendly record collections, identifier case conversion,
JSON/YAML/delimited codecs, a library of small data functions, and a batching
file logger.

## Installation

```
pip install toolbelt
```

To run the tests:

```
pip install "toolbelt[test]"
pytest
```

## Modules

### `toolbelt.datamap` – path-addressed maps

`DataMap` is a `dict` that understands dotted paths, indexes and a few
operators.

```python
from toolbelt.datamap import DataMap

state = DataMap()
state.set_value("build.target", "app")   # creates the nested map
state.get_value("build.target")          # ("app", True)

state.set_value("->items", 1)            # push onto a Collection
state.set_value("->items", 2)
state.get_value("<-items")               # (1, True), removes the first element
```

`get_value` returns a `(value, found)` pair and accepts `a.b.c`, `list[0]`,
`map[key]`, `$key` (the content of `key` names the path), `key++`, `++key`
and `<-key`. `set_value` ignores `None` values and replaces `$name`
references in the path before setting. Other members: `put`, `has`, `delete`
and `replace` (both take dotted paths), `apply`, `get_string`, `get_int`,
`get_float`, `get_boolean`, `get_collection`, `get_map`, `clone` and
`as_encodable_map` (functions become the text `"func()"`).

### `toolbelt.collection`

`Collection` is a `list` with `push`, `pad_with_map(size)` and the
iteration helpers `range`, `range_map`, `range_string` and `range_int`, which
call `handler(item, index)` while it returns true.

### `toolbelt.compacted` – compacted record slices

`CompactedSlice` stores maps with shared keys as positional records. With
`omit_empty=True` empty strings and zero numbers are dropped; with
`compress_nils=True` runs of missing values are stored as `NilGroup` markers.

```python
from toolbelt.compacted import CompactedSlice

records = CompactedSlice(omit_empty=True, compress_nils=True)
records.add({"id": 10, "name": "name 10"})
records.add({"id": 3, "name": "name 3"})

iterator = records.sorted_iterator(["id"])
while iterator.has_next():
    print(next(iterator))
```

`range`, `sorted_range`, `iterator` and `sorted_iterator` consume the stored
records; `ranger` moves them into a new slice; `to_json` returns them as a JSON
array without consuming them. Sorting works on int, float or string keys and
raises `ValueError` for other key types and `KeyError` for unknown fields.

### `toolbelt.case_format` – case conversion

```python
from toolbelt.case_format import Case, new_case

Case.LOWER_CAMEL.format("thisIsMyTest", Case.LOWER_UNDERSCORE)  # "this_is_my_test"
new_case("uc")                                                 # Case.UPPER_CAMEL
```

`new_case` raises `ValueError` for an unknown name.

### `toolbelt.codec` – decoders and encoders

Factories create decoders for a reader (a file-like object, `str` or `bytes`)
and encoders for a writer:

- `JSONDecoderFactory(use_number=False)` – successive JSON values; raises
  `EOFError` at the end of input. `use_number` parses decimals as `Decimal`.
- `YamlDecoderFactory`, `FlexYamlDecoderFactory` – a whole YAML document; the
  flex decoder folds lists of maps into a single map.
- `DelimiterDecoderFactory` – one delimited line into a `DelimitedRecord`; the
  first line read fills `columns`, later lines fill `record`.
- `UnmarshalerDecoderFactory` / `MarshalerEncoderFactory` – delegate to the
  target's `unmarshal(data)` or the object's `marshal()` method.
- `JSONEncoderFactory`, `YamlEncoderFactory` – write values as a line of
  compact JSON or as YAML.

```python
import io
from toolbelt.codec import DelimitedRecord, DelimiterDecoderFactory

record = DelimitedRecord(delimiter=",")
DelimiterDecoderFactory().create(io.StringIO("a,b,c")).decode(record)
record.columns  # ["a", "b", "c"]
```

### `toolbelt.udf_convert` and `toolbelt.udf_util` – data functions

Each function takes `(source, state)`. Conversions: `as_int`, `as_string`,
`as_float`, `as_float32`, `as_bool`, `as_map`, `as_collection`, `as_data`
(JSON or YAML text into data), `as_json`, `as_string_map`, `to_lower`,
`to_upper`, `type_of`, `load_json` (JSON or new-line delimited JSON files) and
`elapsed` (e.g. `"1h0s"` since an RFC 3339 time).

Utilities: `length`, `replace`, `join`, `split`, `keys`, `values`,
`index_of`, the `base64_*` functions, `query_escape`, `query_unescape`,
`trim_space`, `count`, `sum_values`, `select`, `as_number`, `rand`, `concat`,
`merge` and `as_new_line_delimited_json`.

```python
from toolbelt.datamap import DataMap
from toolbelt import udf_util

state = DataMap()
state.set_value("node1.obj.k1.amount", 1)
state.set_value("node1.obj.k2.amount", 2)
udf_util.sum_values("node1/obj/*/amount", state)   # 3
udf_util.select(["node1/obj/*", "amount:total"], state)
```

`select` paths may end in a predicate such as `orders[amount > 11 & vendor = v1]`,
with `&` for and and `|` for or.

`udf_util.register(a_map)` puts all of these functions into a mapping under
names such as `"AsInt"`, `"Split"`, `"Sum"` and `"Base64Encode"`.

### `toolbelt.file_logger` – batching file logger

```python
from toolbelt.file_logger import FileLoggerConfig, LogMessage, new_file_logger

with new_file_logger(FileLoggerConfig(
    log_type="app",
    file_template="/tmp/app[yyyy].log",
    queue_flush_count=10,
    max_queue_size=100,
    flush_frequency_in_ms=500,
    max_idle_time_in_sec=5,
)) as logger:
    logger.log(LogMessage(message_type="app", message="started"))
```

Messages are queued per file and written by a worker thread when
`queue_flush_count` have accumulated or the flush interval has passed; a
stream idle longer than `max_idle_time_in_sec` is closed. Maps, lists and
dataclasses are written as JSON. `notify()` writes everything pending and
closes all streams; `validate()` raises `ValueError` for missing settings.
The logger does not install signal handlers itself.

### `toolbelt.dumper`, `toolbelt.errors`, `toolbelt.helper`

`dump` prints compact JSON; `dump_indent(data, remove_empty_keys)` prints
indented JSON, optionally via `delete_empty_keys`. `errors` defines
`NilPointerError`, `NotFoundError` and `reclassify_not_found_if_matched`.
`helper` holds the conversion helpers (`as_string`, `as_int`, `as_float`,
`as_boolean`, `is_map`, `is_slice`, `extract_path`, `sort_keys`).

## What it does not do

`DataMap` does not expand `$name` or `$Func(args)` expressions embedded in
text, so the registered functions are stored by name but are called directly
rather than from template strings. There is no time-formatting function and no
reader of source-code declarations.