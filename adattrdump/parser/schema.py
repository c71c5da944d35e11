from adattrdump.parser.structure import structure, bigendian, unpack
from adattrdump.parser.bits import guid_from_bytes
from adattrdump.parser.oid import OidPrefix

from dataclasses import dataclass
import uuid


@dataclass(frozen=True)
class PrefixEntry:
    db_prefix: int
    oid_prefix: OidPrefix


# prefixMap on the schema container
@dataclass(frozen=True)
class PrefixMap:
    prefixes: list

    @classmethod
    def from_bytes(cls, data):
        data = bytes(data)
        header = unpack(structure.PrefixMapHeader, data)
        # a different total means the format changed
        if header is None or header.numBytes != len(data):
            return None

        prefixes = []
        pos = len(structure.PrefixMapHeader)
        for _ in range(header.numEntries):
            entry = unpack(structure.PrefixEntryHeader, data, pos)
            if entry is None:
                return None
            pos += len(structure.PrefixEntryHeader)
            if pos + entry.berLength > len(data):
                return None
            prefixes.append(PrefixEntry(entry.dbPrefix, OidPrefix.from_ber(data[pos:pos + entry.berLength])))
            pos += entry.berLength

        if pos != len(data):
            return None
        return cls(prefixes)


# https://learn.microsoft.com/en-us/openspecs/windows_protocols/ms-adts/0fa1a3db-c2d8-4a3a-9e1f-6b8ab5a12d45
@dataclass(frozen=True)
class SchemaInfo:
    version: int
    invocation_id: uuid.UUID

    @classmethod
    def from_bytes(cls, data):
        if len(data) != len(bigendian.SchemaInfo):
            return None
        info = bigendian.SchemaInfo(bytes(data))
        if info.marker != 0xFF:
            return None
        return cls(info.version, guid_from_bytes(info.invocationId))
