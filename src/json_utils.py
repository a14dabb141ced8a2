"""JSON helpers backed by orjson."""

import orjson

JSONDecodeError = orjson.JSONDecodeError


def json_loads(b):
    if isinstance(b, str):
        b = b.encode("utf-8")
    return orjson.loads(b)


def json_dumps(obj) -> str:
    return orjson.dumps(obj).decode("utf-8")


def json_dump_bytes(obj, pretty: bool = False) -> bytes:
    if pretty:
        return orjson.dumps(obj, option=orjson.OPT_INDENT_2)
    return orjson.dumps(obj)
