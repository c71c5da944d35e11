import datetime
import re
import uuid

FILETIME_EPOCH = datetime.datetime(1601, 1, 1, tzinfo=datetime.timezone.utc)

INT64_MIN = -0x8000000000000000
INT64_MAX = 0x7FFFFFFFFFFFFFFF

INTEGER_RE = re.compile(r"^-?[0-9]+\Z")


def bit_is_set(value, index):
    return (value >> index) & 1 == 1


def extract_bits(value, lowest_index, count):
    return (value >> lowest_index) & ((1 << count) - 1)


def ticks_to_utc(ticks):
    """Convert 100ns ticks since 1601-01-01 to an aware UTC datetime (None if out of range).

    The sub-microsecond remainder cannot be held by datetime; callers that need it
    work from the ticks value directly.
    """
    try:
        return FILETIME_EPOCH + datetime.timedelta(microseconds=ticks // 10)
    except OverflowError:
        return None


def seconds_to_utc(seconds):
    try:
        return FILETIME_EPOCH + datetime.timedelta(seconds=seconds)
    except OverflowError:
        return None


def negative_interval_to_duration(raw):
    """Return the timedelta for an interval stored as negative ticks, or None for "never"."""
    if raw == INT64_MIN:
        return None
    return datetime.timedelta(microseconds=(-raw) // 10)


def format_duration(duration):
    total = int(duration.total_seconds())
    sign = '-' if total < 0 else ''
    total = abs(total)
    days, rest = divmod(total, 86400)
    hours, rest = divmod(rest, 3600)
    minutes, seconds = divmod(rest, 60)
    return f"{sign}{days}d {hours}h {minutes}min {seconds}s"


def guid_from_bytes(data):
    if len(data) != 16:
        return None
    return uuid.UUID(bytes_le=bytes(data))


def utf16le_at(data, offset):
    """Decode a NUL-terminated UTF-16LE string starting at offset; None if unterminated or invalid."""
    end = offset
    while end + 2 <= len(data):
        if data[end] == 0 and data[end + 1] == 0:
            try:
                return bytes(data[offset:end]).decode('utf-16-le')
            except UnicodeDecodeError:
                return None
        end += 2
    return None


def ticks_or_raw(ticks):
    """ticks_to_utc, keeping the raw tick count when it lies outside datetime's range."""
    converted = ticks_to_utc(ticks)
    return ticks if converted is None else converted


def seconds_or_raw(seconds):
    converted = seconds_to_utc(seconds)
    return seconds if converted is None else converted


def parse_integer(text, bits=64, signed=True):
    """Parse a decimal directory integer, None unless it fits the given width."""
    if not INTEGER_RE.match(text):
        return None
    value = int(text)
    low, high = (-(1 << (bits - 1)), (1 << (bits - 1)) - 1) if signed else (0, (1 << bits) - 1)
    if not low <= value <= high:
        return None
    return value


def to_unsigned(value, bits):
    return value & ((1 << bits) - 1)
