from adattrdump.parser.schema import PrefixEntry, PrefixMap, SchemaInfo
from adattrdump.parser.oid import OidPrefix

import uuid

# 2.5.4 at prefix 0, 2.5.6 at prefix 1
PREFIX_MAP = bytes.fromhex('02000000' '14000000' '0000' '0200' '5504' '0100' '0200' '5506')


def test_prefix_map():
    prefix_map = PrefixMap.from_bytes(PREFIX_MAP)
    assert prefix_map.prefixes == [
        PrefixEntry(0, OidPrefix((2, 5, 4), 0, 16384)),
        PrefixEntry(1, OidPrefix((2, 5, 6), 0, 16384)),
    ]
    assert str(prefix_map.prefixes[1].oid_prefix) == '2.5.6.(0..16384)'


def test_prefix_map_size_checks():
    # byte count disagrees with the buffer
    assert PrefixMap.from_bytes(PREFIX_MAP + b'\x00') is None
    assert PrefixMap.from_bytes(PREFIX_MAP[:-1]) is None
    # one entry announced, two present
    assert PrefixMap.from_bytes(b'\x01' + PREFIX_MAP[1:]) is None
    assert PrefixMap.from_bytes(b'') is None


def test_schema_info():
    invocation_id = uuid.UUID('743aa10a-1fb6-4511-a8fe-94e4c378778e')
    data = bytes.fromhex('ff' '0000002a') + invocation_id.bytes_le
    info = SchemaInfo.from_bytes(data)
    assert info.version == 42
    assert info.invocation_id == invocation_id

    assert SchemaInfo.from_bytes(b'\x00' + data[1:]) is None
    assert SchemaInfo.from_bytes(data + b'\x00') is None
