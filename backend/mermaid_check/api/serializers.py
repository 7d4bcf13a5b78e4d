from dataclasses import fields, is_dataclass
from enum import Enum
from typing import Any

from mermaid_check.ir.base import Diagram


PRIMITIVE_TYPES = (str, int, float, bool, type(None))


def serialize_tree(obj: Any):
    """
    Serialize a syntax tree into JSON-compatible structures.
    Deterministic: dataclass fields keep declaration order.
    Every tree node carries its class name under "type".
    """

    if isinstance(obj, PRIMITIVE_TYPES):
        return obj

    if isinstance(obj, Enum):
        return obj.value

    if isinstance(obj, (list, tuple)):
        return [serialize_tree(item) for item in obj]

    if isinstance(obj, dict):
        return {k: serialize_tree(v) for k, v in obj.items()}

    if is_dataclass(obj):
        data = {"type": type(obj).__name__}
        for f in fields(obj):
            if f.name == "source" and isinstance(obj, Diagram):
                # the caller already has the diagram text
                continue
            data[f.name] = serialize_tree(getattr(obj, f.name))
        return data

    return str(obj)
