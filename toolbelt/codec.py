"""Stream decoders and encoders for JSON, YAML, delimited text and custom formats."""

from __future__ import annotations

import base64
import csv
import dataclasses
import decimal
import io
import json
from collections.abc import Iterator, Mapping, MutableMapping, MutableSequence
from dataclasses import dataclass, field
from typing import Any

import yaml

from toolbelt.helper import as_string, is_map, is_slice


def _read_all(reader: Any) -> bytes:
    """Read everything from a file-like object, or take str/bytes content as is."""
    if isinstance(reader, (bytes, bytearray)):
        return bytes(reader)
    if isinstance(reader, str):
        return reader.encode("utf-8")
    data = reader.read()
    if data is None:
        return b""
    if isinstance(data, str):
        return data.encode("utf-8")
    return bytes(data)


def _write_all(writer: Any, data: bytes) -> None:
    """Write all of data to writer, retrying partial writes."""
    if isinstance(writer, io.TextIOBase):
        writer.write(data.decode("utf-8"))
        return
    view = memoryview(data)
    total = 0
    while total < len(data):
        written = writer.write(view[total:])
        if written is None:
            written = len(data) - total
        if written <= 0:
            raise OSError(
                f"failed to write all data, written {total}, expected: {len(data)}"
            )
        total += written


def _assign(target: Any, value: Any) -> None:
    """Copy a decoded value into a caller-supplied container."""
    if target is None:
        return
    if isinstance(target, MutableMapping):
        if not isinstance(value, Mapping):
            raise TypeError(
                f"cannot decode {type(value).__name__} into {type(target).__name__}"
            )
        target.update(value)
    elif isinstance(target, MutableSequence):
        if not is_slice(value):
            raise TypeError(
                f"cannot decode {type(value).__name__} into {type(target).__name__}"
            )
        target[:] = list(value)
    else:
        raise TypeError(f"unsupported decode target: {type(target).__name__}")


def _load_yaml(data: bytes) -> Any:
    try:
        return yaml.safe_load(data)
    except yaml.YAMLError as exc:
        raise ValueError(f"invalid YAML: {exc}") from exc


class JSONDecoder:
    """Decodes successive JSON values from a stream."""

    def __init__(self, reader: Any, use_number: bool = False) -> None:
        self._reader = reader
        self._decoder = json.JSONDecoder(
            parse_float=decimal.Decimal if use_number else None
        )
        self._text: str | None = None
        self._position = 0

    def decode(self, target: Any = None) -> Any:
        """Decode the next JSON value, store it into target if given, and return it."""
        if self._text is None:
            self._text = _read_all(self._reader).decode("utf-8")
        text = self._text
        position = self._position
        while position < len(text) and text[position].isspace():
            position += 1
        self._position = position
        if position >= len(text):
            raise EOFError("EOF")
        value, end = self._decoder.raw_decode(text, position)
        self._position = end
        _assign(target, value)
        return value


@dataclass
class JSONDecoderFactory:
    """Creates JSON decoders; use_number keeps decimal numbers exact."""

    use_number: bool = False

    def create(self, reader: Any) -> JSONDecoder:
        """Return a decoder for reader."""
        return JSONDecoder(reader, self.use_number)


class UnmarshalerDecoder:
    """Passes the whole stream to the target's unmarshal method."""

    def __init__(self, reader: Any) -> None:
        self._reader = reader

    def decode(self, target: Any) -> Any:
        """Read all input and call target.unmarshal with it."""
        data = _read_all(self._reader)
        unmarshal = getattr(target, "unmarshal", None)
        if not callable(unmarshal):
            raise TypeError(
                f"failed to decode - {type(target).__name__} has no unmarshal method"
            )
        unmarshal(data)
        return target


class UnmarshalerDecoderFactory:
    """Creates decoders that delegate to the target's unmarshal method."""

    def create(self, reader: Any) -> UnmarshalerDecoder:
        """Return a decoder for reader."""
        return UnmarshalerDecoder(reader)


@dataclass
class DelimitedRecord:
    """A delimited text record: its column names, delimiter and values."""

    columns: list[str] = field(default_factory=list)
    delimiter: str = ","
    record: dict[str, Any] = field(default_factory=dict)

    def is_empty(self) -> bool:
        """Return True if every value is missing or empty."""
        for value in self.record.values():
            if value is None:
                continue
            if as_string(value) in ("", "<nil>"):
                continue
            return False
        return True


class DelimiterDecoder:
    """Decodes one delimited line into a DelimitedRecord.

    When the record has no columns yet the line is taken as the header.
    """

    def __init__(self, reader: Any) -> None:
        self._reader = reader

    def decode(self, target: Any) -> DelimitedRecord:
        """Read a line into target's columns or, if they are known, its values."""
        if not isinstance(target, DelimitedRecord):
            raise TypeError(
                f"invalid target type, expected DelimitedRecord but had {type(target).__name__}"
            )
        if not target.delimiter:
            raise ValueError("delimiter was empty")
        text = _read_all(self._reader).decode("utf-8")
        reader = csv.reader(
            io.StringIO(text, newline=""), delimiter=target.delimiter[0], strict=True
        )
        try:
            row = next(reader, None)
        except csv.Error as exc:
            raise ValueError(f"invalid delimited data: {exc}") from exc
        if row is None:
            return target
        if not target.columns:
            target.columns = [value.strip() for value in row]
            return target
        if len(row) > len(target.columns):
            raise ValueError(
                f"record has {len(row)} fields but only {len(target.columns)} columns"
            )
        for name, value in zip(target.columns, row):
            target.record[name] = value
        return target


class DelimiterDecoderFactory:
    """Creates delimited text decoders."""

    def create(self, reader: Any) -> DelimiterDecoder:
        """Return a decoder for reader."""
        return DelimiterDecoder(reader)


class YamlDecoder:
    """Decodes a whole YAML document."""

    def __init__(self, reader: Any) -> None:
        self._reader = reader

    def decode(self, target: Any = None) -> Any:
        """Decode the document, store it into target if given, and return it."""
        value = _load_yaml(_read_all(self._reader))
        if value is None:
            return None
        _assign(target, value)
        return value


class YamlDecoderFactory:
    """Creates YAML decoders."""

    def create(self, reader: Any) -> YamlDecoder:
        """Return a decoder for reader."""
        return YamlDecoder(reader)


def _pairs(source: Any) -> Iterator[tuple[Any, Any]]:
    """Yield key/value pairs from a map or a list of maps or pairs."""
    if is_map(source):
        yield from source.items()
        return
    if is_slice(source):
        for item in source:
            if is_map(item):
                yield from item.items()
            elif is_slice(item) and len(item) == 2:
                yield item[0], item[1]
            else:
                raise ValueError(f"unsupported key/value item: {type(item).__name__}")
        return
    raise ValueError(f"unsupported key/value source: {type(source).__name__}")


def _normalize_map(source: Any, deep: bool) -> dict[str, Any]:
    """Turn a map or a YAML-style list of maps into a dict with string keys."""
    result: dict[str, Any] = {}
    if source is None:
        return result
    for raw_key, value in _pairs(source):
        key = as_string(raw_key)
        result[key] = value
        if not deep or value is None:
            continue
        if is_map(value):
            try:
                result[key] = _normalize_map(value, deep)
            except ValueError:
                pass
        elif is_slice(value):
            items = list(value)
            if not items:
                continue
            if is_map(items[0]):
                try:
                    result[key] = _normalize_map(items, deep)
                except ValueError:
                    pass
            elif is_slice(items[0]):
                try:
                    result[key] = [_normalize_map(item, deep) for item in items]
                except ValueError:
                    pass
    return result


class FlexYamlDecoder:
    """Decodes a YAML map, folding lists of single-key maps into maps."""

    def __init__(self, reader: Any) -> None:
        self._reader = reader

    def decode(self, target: Any = None) -> dict[str, Any]:
        """Decode and normalize the document, store it into target if given, and return it."""
        value = _load_yaml(_read_all(self._reader))
        if value is None:
            value = {}
        if not is_map(value):
            raise ValueError(f"expected a YAML map, but had {type(value).__name__}")
        try:
            normalized = _normalize_map(value, True)
        except ValueError:
            normalized = dict(value)
        _assign(target, normalized)
        return normalized


class FlexYamlDecoderFactory:
    """Creates normalizing YAML decoders."""

    def create(self, reader: Any) -> FlexYamlDecoder:
        """Return a decoder for reader."""
        return FlexYamlDecoder(reader)


_JSON_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}


def _json_default(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, decimal.Decimal):
        return float(value)
    if isinstance(value, (bytes, bytearray)):
        return base64.b64encode(bytes(value)).decode("ascii")
    raise TypeError(f"unsupported type: {type(value).__name__}")


class JSONEncoder:
    """Writes each value as a line of compact JSON."""

    def __init__(self, writer: Any) -> None:
        self._writer = writer

    def encode(self, obj: Any) -> None:
        """Write obj as JSON followed by a newline."""
        text = json.dumps(
            obj,
            separators=(",", ":"),
            sort_keys=True,
            ensure_ascii=False,
            default=_json_default,
        )
        for char, escape in _JSON_ESCAPES.items():
            text = text.replace(char, escape)
        _write_all(self._writer, (text + "\n").encode("utf-8"))


class JSONEncoderFactory:
    """Creates JSON encoders."""

    def create(self, writer: Any) -> JSONEncoder:
        """Return an encoder for writer."""
        return JSONEncoder(writer)


class MarshalerEncoder:
    """Writes the bytes produced by an object's marshal method."""

    def __init__(self, writer: Any) -> None:
        self._writer = writer

    def encode(self, obj: Any) -> None:
        """Call obj.marshal and write its result."""
        marshal = getattr(obj, "marshal", None)
        if not callable(marshal):
            raise TypeError(
                f"failed to encode - {type(obj).__name__} has no marshal method"
            )
        data = marshal()
        if isinstance(data, str):
            data = data.encode("utf-8")
        _write_all(self._writer, bytes(data))


class MarshalerEncoderFactory:
    """Creates encoders that delegate to the object's marshal method."""

    def create(self, writer: Any) -> MarshalerEncoder:
        """Return an encoder for writer."""
        return MarshalerEncoder(writer)


def _plain(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {key: _plain(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(item) for item in value]
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return _plain(dataclasses.asdict(value))
    return value


class YamlEncoder:
    """Writes values as YAML documents."""

    def __init__(self, writer: Any) -> None:
        self._writer = writer

    def encode(self, obj: Any) -> None:
        """Write obj as YAML."""
        try:
            text = yaml.safe_dump(_plain(obj), default_flow_style=False, allow_unicode=True)
        except yaml.YAMLError as exc:
            raise ValueError(f"unable to encode YAML: {exc}") from exc
        _write_all(self._writer, text.encode("utf-8"))


class YamlEncoderFactory:
    """Creates YAML encoders."""

    def create(self, writer: Any) -> YamlEncoder:
        """Return an encoder for writer."""
        return YamlEncoder(writer)