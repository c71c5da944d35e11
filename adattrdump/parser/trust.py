from adattrdump.parser.structure import structure, unpack, Cursor, ShortRead
from adattrdump.parser.bits import ticks_or_raw
from adattrdump.parser.sid import Sid

from dataclasses import dataclass
from enum import IntEnum, IntFlag
import logging


class ForestTrustRecordType(IntEnum):
    TOP_LEVEL_NAME = 0
    TOP_LEVEL_NAME_EX = 1
    DOMAIN_INFO = 2
    BINARY_INFO = 3
    SCANNER_INFO = 4


class NameFlags(IntFlag):
    DISABLED_NEW = 0x1
    DISABLED_ADMIN = 0x2
    DISABLED_CONFLICT = 0x4


class DomainFlags(IntFlag):
    SID_DISABLED_ADMIN = 0x1
    SID_DISABLED_CONFLICT = 0x2
    NETBIOS_DISABLED_ADMIN = 0x4
    NETBIOS_DISABLED_CONFLICT = 0x8


@dataclass(frozen=True)
class TopLevelNameRecord:
    record_type: ForestTrustRecordType
    flags: NameFlags
    timestamp: object
    name: str


@dataclass(frozen=True)
class DomainInfoRecord:
    flags: DomainFlags
    timestamp: object
    sid: Sid
    dns_name: str
    netbios_name: str


@dataclass(frozen=True)
class ScannerInfoRecord:
    flags: int
    timestamp: object
    sub_record_type: int
    sid: Sid
    dns_name: str
    netbios_name: str


@dataclass(frozen=True)
class BinaryInfoRecord:
    flags: int
    timestamp: object
    sub_record_type: int
    binary_data: bytes


@dataclass(frozen=True)
class OtherTrustRecord:
    record_type: int
    binary_info: BinaryInfoRecord


def _counted_string(cursor):
    return cursor.take(cursor.u32()).decode('utf-8')


def _counted_sid(cursor, length):
    if length == 0:
        return None
    sid = Sid.from_bytes(cursor.take(length))
    if sid is None:
        raise ValueError('malformed SID')
    return sid


def _parse_record(data):
    header = unpack(structure.ForestTrustRecordHeader, data)
    if header is None or header.recordLength != len(data) - 4:
        return None

    timestamp = ticks_or_raw((header.timestampHigh << 32) | header.timestampLow)
    cursor = Cursor(data, len(structure.ForestTrustRecordHeader))
    try:
        if header.recordType in (ForestTrustRecordType.TOP_LEVEL_NAME, ForestTrustRecordType.TOP_LEVEL_NAME_EX):
            record = TopLevelNameRecord(ForestTrustRecordType(header.recordType), NameFlags(header.flags),
                                        timestamp, _counted_string(cursor))
        elif header.recordType == ForestTrustRecordType.DOMAIN_INFO:
            sid = _counted_sid(cursor, cursor.u32())
            if sid is None:
                return None
            record = DomainInfoRecord(DomainFlags(header.flags), timestamp, sid,
                                      _counted_string(cursor), _counted_string(cursor))
        elif header.recordType == ForestTrustRecordType.SCANNER_INFO:
            binary_length = cursor.u32()
            if binary_length > len(data) - cursor.pos:
                return None
            sub_record_type = cursor.u32()
            sid = _counted_sid(cursor, cursor.u8())
            record = ScannerInfoRecord(header.flags, timestamp, sub_record_type, sid,
                                       _counted_string(cursor), _counted_string(cursor))
        else:
            full_length = cursor.u32()
            if full_length < 4:
                return None
            sub_record_type = cursor.u32()
            binary = BinaryInfoRecord(header.flags, timestamp, sub_record_type, cursor.take(full_length - 4))
            if header.recordType == ForestTrustRecordType.BINARY_INFO:
                record = binary
            else:
                record = OtherTrustRecord(header.recordType, binary)
    except (ShortRead, UnicodeDecodeError, ValueError) as e:
        logging.debug('Skipping forest trust record of type %d: %s', header.recordType, e)
        return None

    if not cursor.at_end():
        return None
    return record


# https://learn.microsoft.com/en-us/openspecs/windows_protocols/ms-adts/96e44639-eb3e-48c3-a565-1d67cceb3bad
@dataclass(frozen=True)
class TrustForestTrustInfo:
    version: int
    records: list

    @classmethod
    def from_bytes(cls, data):
        data = bytes(data)
        header = unpack(structure.ForestTrustInfoHeader, data)
        if header is None:
            return None

        records = []
        pos = len(structure.ForestTrustInfoHeader)
        for _ in range(header.recordCount):
            if pos + 4 > len(data):
                return None
            end = pos + 4 + int.from_bytes(data[pos:pos + 4], 'little')
            if end > len(data):
                return None
            record = _parse_record(data[pos:end])
            if record is None:
                return None
            records.append(record)
            pos = end

        if pos != len(data):
            return None
        return cls(header.version, records)
