from adattrdump.parser.bits import (INT64_MIN, bit_is_set, extract_bits, format_duration, guid_from_bytes,
                                    negative_interval_to_duration, parse_integer, seconds_or_raw, ticks_or_raw,
                                    ticks_to_utc, to_unsigned, utf16le_at)
from adattrdump.parser.oid import OidPrefix
from adattrdump.parser.sid import Sid

import datetime
import uuid

UNIX_EPOCH_TICKS = 116444736000000000


def test_bits():
    assert bit_is_set(0x80000000, 31)
    assert not bit_is_set(0x7FFFFFFF, 31)
    assert extract_bits(0xABCD, 4, 8) == 0xBC
    assert to_unsigned(-1, 32) == 0xFFFFFFFF
    assert to_unsigned(-2147483646, 32) == 0x80000002


def test_parse_integer():
    assert parse_integer('514') == 514
    assert parse_integer('-1', 32) == -1
    assert parse_integer('2147483648', 32) is None
    assert parse_integer('9223372036854775807') == 2 ** 63 - 1
    assert parse_integer('9223372036854775808') is None
    assert parse_integer('12a') is None
    assert parse_integer(' 12') is None
    assert parse_integer('') is None


def test_ticks():
    epoch = datetime.datetime(1970, 1, 1, tzinfo=datetime.timezone.utc)
    assert ticks_to_utc(UNIX_EPOCH_TICKS) == epoch
    assert ticks_to_utc(UNIX_EPOCH_TICKS + 15) == epoch + datetime.timedelta(microseconds=1)
    assert ticks_or_raw(2 ** 63 - 1) == 2 ** 63 - 1
    assert seconds_or_raw(UNIX_EPOCH_TICKS // 10_000_000) == epoch
    assert seconds_or_raw(2 ** 62) == 2 ** 62


def test_intervals():
    assert negative_interval_to_duration(INT64_MIN) is None
    # 42 days, the default maxPwdAge
    duration = negative_interval_to_duration(-36288000000000)
    assert duration == datetime.timedelta(days=42)
    assert format_duration(duration) == '42d 0h 0min 0s'
    assert format_duration(datetime.timedelta(seconds=90061.5)) == '1d 1h 1min 1s'


def test_guid_from_bytes():
    guid = uuid.UUID('00299570-246d-11d0-a768-00aa006e0529')
    assert guid_from_bytes(guid.bytes_le) == guid
    assert guid_from_bytes(guid.bytes_le[:15]) is None


def test_utf16le_at():
    data = b'\xff\xff' + 'ab'.encode('utf-16-le') + b'\x00\x00'
    assert utf16le_at(data, 2) == 'ab'
    assert utf16le_at(data[:-1], 2) is None


def test_oid_prefix_complete_arcs():
    prefix = OidPrefix.from_ber(bytes([0x2A, 0x03, 0x04]))
    assert prefix.arcs == (1, 2, 3, 4)
    assert (prefix.start, prefix.end) == (0, 16384)


def test_oid_prefix_open_arc():
    prefix = OidPrefix.from_ber(bytes([0x2A, 0x03, 0x04, 0x82]))
    assert prefix.arcs == (1, 2, 3, 4)
    assert (prefix.start, prefix.end) == (32768, 49152)
    assert str(prefix) == '1.2.3.4.(32768..49152)'

    prefix = OidPrefix.from_ber(bytes([0x2A, 0x03, 0x04, 0x81]))
    assert (prefix.start, prefix.end) == (16384, 32768)


def test_oid_prefix_multibyte_arc():
    # 1.2.840.113556
    prefix = OidPrefix.from_ber(bytes.fromhex('2a864886f714'))
    assert prefix.arcs == (1, 2, 840, 113556)
    assert OidPrefix.from_ber(b'').arcs == ()


def test_sid_text_round_trip():
    text = 'S-1-5-21-3141592653-589793238-462643383'
    sid = Sid.from_string(text)
    assert sid.authority == 5
    assert sid.sub_authorities == (21, 3141592653, 589793238, 462643383)
    assert str(sid) == text
    assert Sid.from_bytes(sid.to_bytes()) == sid


def test_sid_bytes():
    data = bytes.fromhex('01020000000000052000000020020000')
    sid = Sid.from_bytes(data)
    assert str(sid) == 'S-1-5-32-544'
    assert sid.alias == 'BA'
    assert sid.to_sddl() == 'BA'
    assert Sid.get_length(data + b'\x00\x00') == 16


def test_sid_without_alias():
    sid = Sid.from_string('S-1-5-21-1-2-3-500')
    assert sid.alias is None
    assert sid.to_sddl() == 'S-1-5-21-1-2-3-500'


def test_sid_malformed():
    assert Sid.from_bytes(bytes.fromhex('0102000000000005200000002002')) is None
    assert Sid.from_bytes(bytes.fromhex('02010000000000051200000000')) is None
    assert Sid.from_bytes(b'') is None
    assert Sid.get_length(bytes.fromhex('0102000000000005')) is None
    assert Sid.from_string('S-2-5-18') is None
    assert Sid.from_string('S-1-5-4294967296') is None
    assert Sid.from_string('S-1-281474976710656') is None
    assert Sid.from_string('not a sid') is None
