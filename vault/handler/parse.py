# vault/handler/parse.py
import dataclasses
import types
from typing import Any, Dict, get_type_hints, Union, get_origin, get_args


def convert_to_type(value, expected_type):
    if value is None:
        origin = get_origin(expected_type)
        # Check if the expected type is a Union (including new union syntax in Python 3.10+)
        if (origin is Union or isinstance(expected_type, types.UnionType)) \
           and (type(None) in get_args(expected_type)):
            return None
        raise ValueError(f"Cannot convert None to {expected_type}")

    # Nested argument objects.
    if dataclasses.is_dataclass(expected_type) and isinstance(expected_type, type):
        if not isinstance(value, dict):
            raise ValueError(f"Expected object for {expected_type.__name__}, got {type(value).__name__}")
        return parse_dataclass(expected_type, value)

    # Handle list[...] types.
    if get_origin(expected_type) is list:
        (inner_type,) = get_args(expected_type)
        if not isinstance(value, list):
            raise ValueError(f"Expected list for {expected_type}, got {type(value).__name__}")
        return [convert_to_type(item, inner_type) for item in value]

    # Handle Union[...] by trying each sub-type.
    if get_origin(expected_type) in (Union,) or isinstance(expected_type, types.UnionType):
        for sub_type in get_args(expected_type):
            if sub_type is type(None):
                continue
            try:
                return convert_to_type(value, sub_type)
            except ValueError:
                pass
        raise ValueError(f"Cannot convert {value!r} to any of {get_args(expected_type)}")

    # Byte strings (addresses, transactions) travel hex-encoded.
    if expected_type is bytes:
        if not isinstance(value, str):
            raise ValueError(f"Expected hex string, got {type(value).__name__}")
        hex_value = value[2:] if value.lower().startswith("0x") else value
        try:
            return bytes.fromhex(hex_value)
        except ValueError:
            raise ValueError(f"Invalid hex string: {value!r}")

    # Integers may arrive as JSON numbers or decimal strings (uint64 fields).
    if expected_type is int:
        if isinstance(value, bool) or isinstance(value, float):
            raise ValueError(f"Cannot convert {value!r} to int")
        try:
            return int(value)
        except (TypeError, ValueError):
            raise ValueError(f"Cannot convert {value!r} to int")

    if expected_type is str and not isinstance(value, str):
        raise ValueError(f"Expected string, got {type(value).__name__}")

    # Otherwise, attempt a direct conversion.
    try:
        return expected_type(value)
    except Exception as e:
        raise ValueError(f"Error converting {value!r} to {expected_type}: {e}")


def parse_dataclass(cls, raw_args: Dict[str, Any]):
    """
    Build an instance of the dataclass ``cls`` from ``raw_args`` (a dict of JSON
    fields), converting each field to its annotated type. If a required field
    is missing, raises ValueError. If any leftover fields exist in `raw_args`,
    also raises ValueError (to ensure strictness).

    Example usage within a dispatcher:
      args = parse_dataclass(SendArgs, params)
    """
    if not isinstance(raw_args, dict):
        raise ValueError(f"Expected object for {cls.__name__}, got {type(raw_args).__name__}")

    hints = get_type_hints(cls)
    declared = {f.name: f for f in dataclasses.fields(cls)}
    parsed_args = {}

    # 1) For each declared field:
    for name, f in declared.items():
        has_default = (
            f.default is not dataclasses.MISSING
            or f.default_factory is not dataclasses.MISSING
        )
        if name not in raw_args:
            # If field is missing from raw_args and there's no default => error
            if not has_default:
                raise ValueError(f"Missing required parameter: '{name}'")
            continue
        parsed_args[name] = convert_to_type(raw_args[name], hints[name])

    # 2) Disallow leftover JSON fields not declared on the dataclass
    leftover = set(raw_args.keys()) - set(declared.keys())
    if leftover:
        leftover_list = ", ".join(sorted(leftover))
        raise ValueError(f"Unexpected extra field(s) in JSON: {leftover_list}")

    return cls(**parsed_args)
