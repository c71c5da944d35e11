from adattrdump.parser.dns import (AF_INET, AF_INET6, Address, DnsBoolean, DnsProperty, DnsPropertyId, DnsRank,
                                   DnsRecord, DnsRecordFlags, DnsRecordType, DnsValidationStatus, NodeName,
                                   RawData, Service, StringList, ZoneType)

import datetime
import ipaddress

MASTER_SERVERS_DA = bytes.fromhex(
    'A001000017000035000000000100000091000000060000000600000000000000000000000000000000000000000000000000'
    '000002000035C0A80C2200000000000000000000000000000000000000000000000010000000000000000000000000000000'
    '00000000000000000000000000000000170000350000000020010db800000000000000000000003400000000000000001C00'
    '00000000000000000000000000000000000000000000000000000000000002000035C0A80C59000000000000000000000000'
    '0000000000000000000000001000000000000000000000000000000000000000000000000000000000000000170000350000'
    '000020010db800000000000000000000008900000000000000001C0000000000000000000000000000000000000000000000'
    '000000000000000002000035C0A80C2A00000000000000000000000000000000000000000000000010000000000000000000'
    '00000000000000000000000000000000000000000000170000350000000020010db800000000000000000000004200000000'
    '000000001C00000000000000000000000000000000000000000000000000000000000000800F800F')

# dataLength 0x14, count name dc01.example.com.
DC01 = '12' '03' '04' + b'dc01'.hex() + '07' + b'example'.hex() + '03' + b'com'.hex() + '00'


def property_blob(property_id, payload, version=1):
    return (len(payload).to_bytes(4, 'little') + bytes(4) + bytes(4) + version.to_bytes(4, 'little')
            + property_id.to_bytes(4, 'little') + payload + b'\x00')


def record_blob(record_type, payload, rank=0xF0, ttl=3600):
    return (len(payload).to_bytes(2, 'little') + record_type.to_bytes(2, 'little') + bytes([5, rank])
            + bytes.fromhex('0000' '01000000') + ttl.to_bytes(4, 'big') + bytes(8) + payload)


def test_dns_property_master_servers():
    prop = DnsProperty.from_bytes(MASTER_SERVERS_DA)
    assert prop.version == 1
    assert prop.name_length == 889192471
    assert prop.flag == 0
    assert prop.id == DnsPropertyId.MASTER_SERVERS_DA
    assert not prop.is_default

    assert [a.address for a in prop.data] == [
        ipaddress.ip_address('192.168.12.34'), ipaddress.ip_address('2001:db8::34'),
        ipaddress.ip_address('192.168.12.89'), ipaddress.ip_address('2001:db8::89'),
        ipaddress.ip_address('192.168.12.42'), ipaddress.ip_address('2001:db8::42'),
    ]
    assert [a.family for a in prop.data] == [AF_INET, AF_INET6] * 3
    for addr in prop.data:
        assert addr.port == 53
        assert addr.rtt_10ms == 0
        assert addr.subnet_length == 0
        assert addr.validation_status == DnsValidationStatus.SUCCESS
        assert addr.dns_over_tcp_available


def test_dns_property_rejects_other_versions():
    data = bytearray(MASTER_SERVERS_DA)
    data[12] = 2
    assert DnsProperty.from_bytes(data) is None
    assert DnsProperty.from_bytes(MASTER_SERVERS_DA[:100]) is None


def test_dns_property_defaults_for_empty_payload():
    prop = DnsProperty.from_bytes(property_blob(DnsPropertyId.TYPE, b''))
    assert prop.is_default
    assert prop.data == ZoneType.PRIMARY

    prop = DnsProperty.from_bytes(property_blob(DnsPropertyId.REFRESH_INTERVAL, b''))
    assert prop.data == datetime.timedelta(hours=168)

    prop = DnsProperty.from_bytes(property_blob(DnsPropertyId.SCAVENGING_SERVERS, b''))
    assert prop.data == ()


def test_dns_property_values():
    prop = DnsProperty.from_bytes(property_blob(DnsPropertyId.AGING_STATE, bytes.fromhex('01000000')))
    assert prop.data == DnsBoolean.TRUE

    prop = DnsProperty.from_bytes(property_blob(DnsPropertyId.NOREFRESH_INTERVAL, bytes.fromhex('18000000')))
    assert prop.data == datetime.timedelta(hours=24)

    payload = bytes.fromhex('02000000' 'c0a80101' 'c0a80102')
    prop = DnsProperty.from_bytes(property_blob(DnsPropertyId.MASTER_SERVERS, payload))
    assert prop.data == [ipaddress.IPv4Address('192.168.1.1'), ipaddress.IPv4Address('192.168.1.2')]

    payload = 'dc01'.encode('utf-16-le') + b'\x00\x00'
    prop = DnsProperty.from_bytes(property_blob(DnsPropertyId.DELETED_FROM_HOSTNAME, payload))
    assert prop.data == 'dc01'


def test_dns_property_unknown_id_keeps_payload():
    prop = DnsProperty.from_bytes(property_blob(0x1234, b'\xaa\xbb'))
    assert prop.id == 0x1234
    assert prop.data == b'\xaa\xbb'


def test_dns_property_bad_payload():
    assert DnsProperty.from_bytes(property_blob(DnsPropertyId.AGING_STATE, b'\x01\x00')) is None
    # count larger than the array
    payload = bytes.fromhex('05000000' 'c0a80101')
    assert DnsProperty.from_bytes(property_blob(DnsPropertyId.MASTER_SERVERS, payload)) is None


def test_dns_record_a():
    data = bytes.fromhex('0400' '0100' '05' 'F0' '0000' '01000000' '00000E10' '00000000' '00000000' 'C0A80101')
    record = DnsRecord.from_bytes(data)
    assert record.record_type == DnsRecordType.A
    assert record.version == 5
    assert record.rank == DnsRank.ZONE
    assert record.flags == DnsRecordFlags(0)
    assert record.serial == 1
    assert record.ttl_seconds == 3600
    assert record.data == Address(ipaddress.IPv4Address('192.168.1.1'))


def test_dns_record_cname():
    record = DnsRecord.from_bytes(record_blob(DnsRecordType.CNAME, bytes.fromhex(DC01)))
    assert record.data == NodeName('dc01.example.com.')


def test_dns_record_srv():
    payload = bytes.fromhex('0000' '0064' '0185' + DC01)
    record = DnsRecord.from_bytes(record_blob(DnsRecordType.SRV, payload))
    assert record.data == Service(priority=0, weight=100, port=389, target='dc01.example.com.')


def test_dns_record_txt():
    payload = b'\x05hello\x05world'
    record = DnsRecord.from_bytes(record_blob(DnsRecordType.TXT, payload))
    assert record.data == StringList(['hello', 'world'])


def test_dns_record_unknown_type_is_raw():
    record = DnsRecord.from_bytes(record_blob(0x1234, b'\x01\x02'))
    assert record.record_type == 0x1234
    assert record.data == RawData(b'\x01\x02')


def test_dns_record_malformed():
    assert DnsRecord.from_bytes(b'') is None
    # length mismatch
    assert DnsRecord.from_bytes(record_blob(DnsRecordType.A, bytes(4))[:-1]) is None
    assert DnsRecord.from_bytes(record_blob(DnsRecordType.A, bytes(5))) is None
    # trailing byte after the name
    assert DnsRecord.from_bytes(record_blob(DnsRecordType.CNAME, bytes.fromhex(DC01 + '00'))) is None
