from adattrdump.parser.trust import (BinaryInfoRecord, DomainFlags, DomainInfoRecord, ForestTrustRecordType,
                                     NameFlags, OtherTrustRecord, ScannerInfoRecord, TopLevelNameRecord,
                                     TrustForestTrustInfo)

import datetime

FOREST_TRUST_INFO = bytes.fromhex(
    '01000000030000002400000000000000EB53BF0180A9D4240013000000616474657374732E6578616D706C652E636F6D4A00'
    '000000000000EB53BF0180A9D42402180000000104000000000005150000004DE640BBD6872723B760931B13000000616474'
    '657374732E6578616D706C652E636F6D060000004144544553543700000000000000EB53BF0180A9D4240426000000040000'
    '000013000000616474657374732E6578616D706C652E636F6D06000000414454455354')

RECORD_TIME = datetime.datetime(1999, 12, 31, 23, 59, 59, tzinfo=datetime.timezone.utc)


def record(record_type, body, flags=0):
    data = flags.to_bytes(4, 'little') + bytes(8) + bytes([record_type]) + body
    return len(data).to_bytes(4, 'little') + data


def info(*records):
    return bytes.fromhex('01000000') + len(records).to_bytes(4, 'little') + b''.join(records)


def test_forest_trust_info():
    trust = TrustForestTrustInfo.from_bytes(FOREST_TRUST_INFO)
    assert trust.version == 1
    assert len(trust.records) == 3

    top_level, domain, scanner = trust.records
    assert isinstance(top_level, TopLevelNameRecord)
    assert top_level.record_type == ForestTrustRecordType.TOP_LEVEL_NAME
    assert top_level.flags == NameFlags(0)
    assert top_level.timestamp == RECORD_TIME
    assert top_level.name == 'adtests.example.com'

    assert isinstance(domain, DomainInfoRecord)
    assert domain.flags == DomainFlags(0)
    assert str(domain.sid) == 'S-1-5-21-3141592653-589793238-462643383'
    assert domain.dns_name == 'adtests.example.com'
    assert domain.netbios_name == 'ADTEST'
    assert domain.timestamp.timestamp() == 946684799

    assert isinstance(scanner, ScannerInfoRecord)
    assert scanner.sub_record_type == 4
    assert scanner.sid is None
    assert scanner.dns_name == 'adtests.example.com'
    assert scanner.netbios_name == 'ADTEST'


def test_forest_trust_info_truncated():
    for cut in range(8, len(FOREST_TRUST_INFO)):
        assert TrustForestTrustInfo.from_bytes(FOREST_TRUST_INFO[:cut]) is None
    assert TrustForestTrustInfo.from_bytes(FOREST_TRUST_INFO + b'\x00') is None


def test_forest_trust_disabled_name():
    body = len(b'example.com').to_bytes(4, 'little') + b'example.com'
    trust = TrustForestTrustInfo.from_bytes(info(record(1, body, flags=NameFlags.DISABLED_ADMIN)))
    assert trust.records[0].record_type == ForestTrustRecordType.TOP_LEVEL_NAME_EX
    assert trust.records[0].flags == NameFlags.DISABLED_ADMIN


def test_forest_trust_binary_records():
    body = bytes.fromhex('06000000' '07000000' 'aabb')
    trust = TrustForestTrustInfo.from_bytes(info(record(3, body), record(9, body)))

    binary, other = trust.records
    assert isinstance(binary, BinaryInfoRecord)
    assert binary.sub_record_type == 7
    assert binary.binary_data == b'\xaa\xbb'
    assert isinstance(other, OtherTrustRecord)
    assert other.record_type == 9
    assert other.binary_info.binary_data == b'\xaa\xbb'


def test_forest_trust_record_with_trailing_bytes():
    body = len(b'example.com').to_bytes(4, 'little') + b'example.com' + b'\x00'
    assert TrustForestTrustInfo.from_bytes(info(record(0, body))) is None
