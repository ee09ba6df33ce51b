# borshkit

A pure-Python implementation of the Borsh binary format: compact,
deterministic, little-endian serialization. Schemas describe the layout of
encoded data, and a value can be written together with its schema so that a
reader can check it is decoding the right type.

No third-party packages are needed.

## Type descriptions

Every type description is a `borshkit.primitives.BorshType` and offers:

- `to_bytes(value)`: encode a value into a new `bytes` object.
- `from_bytes(data)`: decode a value; raises if any bytes are left over.
- `serialize(value, writer)`: write to a binary stream such as `io.BytesIO`.
- `deserialize(reader)`: read one value from a `borshkit.reader.Reader`.
- `declaration()`: the type's schema name, such as `Vec<u64>` or
  `HashMap<u64, string>`.
- `add_definitions_recursively(definitions)` and `schema_container()`: the
  definitions needed to decode the type, collected into a
  `BorshSchemaContainer`.

### Primitives (`borshkit.primitives`)

- `Integer(bits, signed=False)` for widths 8, 16, 32, 64 and 128, with ready
  instances `U8` … `U128` and `I8` … `I128`. Out-of-range values raise
  `ValueError`.
- `Float(bits=64)` for 32 or 64 bits (`F32`, `F64`). NaN is refused: writing
  it raises `ValueError`, reading it raises `BorshError`.
- `Bool` (`BOOL`): one byte, 0 or 1.
- `String` (`STRING`): UTF-8 bytes prefixed with a u32 length.
- `Unit` (`UNIT`): no bytes; decodes to `None`; declared as `nil`.
- `Ipv4Addr`, `Ipv6Addr`: raw octets, decoded to `ipaddress` objects.
- `SocketAddrV4`, `SocketAddrV6`: `(address, port)` pairs.
- `SocketAddr`: either kind, tagged 0 for IPv4 and 1 for IPv6.

The address types encode and decode but have no schema declaration.

### Containers (`borshkit.containers`)

- `Vec(element)`: u32 length then the elements. `Vec(U8)` reads and writes
  `bytes`.
- `Array(element, length)`: fixed length, no prefix. `Array(U8, n)` reads
  and writes `bytes`.
- `Option(element)`: `None` is absent, anything else is present.
- `Result(ok, err)`: values are `Ok(value)` (tag 1) or `Err(value)` (tag 0).
- `Tuple(*elements)`: two or more element types, decoded to a Python tuple.
- `HashMap(key, value)`, `BTreeMap(key, value)`: decoded to `dict`;
  `BTreeMap` returns entries in key order.
- `HashSet(element)`, `BTreeSet(element)`: decoded to `set`.
- `BinaryHeap(element)`: a list in max-heap order; decoding restores the heap
  property.
- `cautious(hint, element_size)`: bounds a length prefix to a safe
  preallocation size of at least one element.

Maps and sets are written sorted, so equal collections encode identically.
Schemas are available for `Vec`, `Array`, `Option`, `Result`, `Tuple` and
`HashMap`, and for the primitives other than the address types.

```python
from borshkit.containers import HashMap, Vec
from borshkit.primitives import STRING, U64

kind = HashMap(U64, STRING)
data = kind.to_bytes({1: "one", 2: "two"})
assert kind.from_bytes(data) == {1: "one", 2: "two"}
print(kind.declaration())  # HashMap<u64, string>
```

## Schemas (`borshkit.schema`)

Definitions are frozen dataclasses: `ArrayDef`, `SequenceDef`, `TupleDef`,
`EnumDef` and `StructDef`, whose fields are `NamedFields`, `UnnamedFields` or
`EmptyFields`. A `BorshSchemaContainer` holds a declaration and a dictionary
of definitions. `add_definition(declaration, definition, definitions)` keeps
an equal existing entry and raises `SchemaConflictError` for a different one.

## Schema-prefixed data (`borshkit.schema_helpers`)

- `serialize_container(container)` / `deserialize_container(reader)` encode
  and decode a schema container.
- `container_schema()` returns the schema of schema containers themselves.
- `try_to_vec_with_schema(borsh_type, value)` writes the type's schema
  followed by the value.
- `try_from_slice_with_schema(borsh_type, data)` reads both back and raises
  `BorshError` with `Borsh schema does not match` if the schema differs.

## Errors (`borshkit.reader`)

Malformed input raises `BorshError`, whose `kind` is an `ErrorKind` and
whose message names the problem, such as `Unexpected length of input`,
`Not all bytes read`, `Invalid bool representation: 2` or
`Invalid Option representation: 5. The first byte must be 0 or 1`.
`Reader` is the byte cursor used by `deserialize`.

## Command

```
borshkit-schema-schema [output]
```

prints the schema of schema containers and writes its Borsh encoding to
`output`, by default `schema_schema.dat` in the current directory.

## What is not included

There is no generic builder for user-defined structs or enums: to encode
your own record types, compose the types above or subclass `BorshType`
yourself.

## Tests

```
pip install -e ".[test]"
pytest
```