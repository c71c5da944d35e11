from adattrdump.parser.structure import structure, bigendian, unpack
from adattrdump.parser.flags import lookup
from adattrdump.parser.bits import bit_is_set, extract_bits, seconds_or_raw, ticks_or_raw
from frozendict import frozendict

from dataclasses import dataclass
import datetime
import enum
import ipaddress
import struct


# https://learn.microsoft.com/en-us/openspecs/windows_protocols/ms-dnsp/3af63871-0cc4-4179-916c-5caade55a8f3
class DnsPropertyId(enum.IntEnum):
    TYPE = 0x00000001
    ALLOW_UPDATE = 0x00000002
    SECURE_TIME = 0x00000008
    NOREFRESH_INTERVAL = 0x00000010
    SCAVENGING_SERVERS = 0x00000011
    AGING_ENABLED_TIME = 0x00000012
    REFRESH_INTERVAL = 0x00000020
    AGING_STATE = 0x00000040
    DELETED_FROM_HOSTNAME = 0x00000080
    MASTER_SERVERS = 0x00000081
    AUTO_NS_SERVERS = 0x00000082
    DCPROMO_CONVERT = 0x00000083
    SCAVENGING_SERVERS_DA = 0x00000090
    MASTER_SERVERS_DA = 0x00000091
    AUTO_NS_SERVERS_DA = 0x00000092
    NODE_DBFLAGS = 0x00000100


class ZoneType(enum.IntEnum):
    CACHE = 0x00
    PRIMARY = 0x01
    SECONDARY = 0x02
    STUB = 0x03
    FORWARDER = 0x04
    SECONDARY_CACHE = 0x05


class AllowUpdate(enum.IntEnum):
    OFF = 0x00
    UNSECURE = 0x01
    SECURE = 0x02


class DnsBoolean(enum.IntEnum):
    FALSE = 0
    TRUE = 1


class DcPromoFlag(enum.IntEnum):
    CONVERT_NONE = 0x00
    CONVERT_DOMAIN = 0x01
    CONVERT_FOREST = 0x02


class DnsRpcNodeFlags(enum.IntFlag):
    SUPPRESS_NOTIFY = 0x00010000
    AGING_ON = 0x00020000
    OPEN_ACL = 0x00040000
    RECORD_WIRE_FORMAT = 0x00100000
    SUPPRESS_RECORD_UPDATE_PTR = 0x00200000
    NODE_COMPLETE = 0x00800000
    NODE_STICKY = 0x01000000
    RECORD_CREATE_PTR = 0x02000000
    RECORD_TTL_CHANGE = 0x04000000
    RECORD_DEFAULT_TTL = 0x08000000
    ZONE_DELEGATION = 0x10000000
    AUTH_ZONE_ROOT = 0x20000000
    ZONE_ROOT = 0x40000000
    CACHE_DATA = 0x80000000


class DnsValidationStatus(enum.IntEnum):
    SUCCESS = 0x0000
    INVALID_ADDR = 0x0001
    UNREACHABLE = 0x0002
    NO_RESPONSE = 0x0003
    NOT_AUTH_FOR_ZONE = 0x0004
    UNKNOWN_ERROR = 0x00FF


AF_INET = 0x0002
AF_INET6 = 0x0017


@dataclass(frozen=True)
class DnsAddr:
    family: int
    address: object
    port: int
    subnet_length: int
    dns_over_tcp_available: bool
    rtt_10ms: int
    validation_status: object

    @classmethod
    def from_bytes(cls, data):
        addr = unpack(structure.DnsAddr, data)
        if addr is None or not 4 <= addr.sockaddrLength <= 32:
            return None

        raw = bytes(addr.address)
        if addr.family == AF_INET:
            if addr.sockaddrLength < 8:
                return None
            address = ipaddress.IPv4Address(raw[0:4])
        elif addr.family == AF_INET6:
            # the first four address bytes belong to the IPv4 slot
            if addr.sockaddrLength < 24:
                return None
            address = ipaddress.IPv6Address(raw[4:20])
        else:
            address = raw[:addr.sockaddrLength - 4]

        return cls(
            family=addr.family,
            address=address,
            port=int.from_bytes(addr.port, 'big'),
            subnet_length=addr.subnetLength,
            dns_over_tcp_available=not bit_is_set(addr.flags, 31),
            rtt_10ms=extract_bits(addr.flags, 12, 12),
            validation_status=lookup(DnsValidationStatus, extract_bits(addr.flags, 0, 12)),
        )


def parse_ip4_array(data):
    if len(data) < 4 or len(data) % 4 != 0:
        return None
    count = struct.unpack_from('<I', data)[0]
    if count > len(data) // 4 - 1:
        return None
    # addresses are in network order
    return [ipaddress.IPv4Address(data[i:i + 4]) for i in range(4, len(data), 4)]


def parse_dns_addr_array(data):
    header = unpack(structure.DnsAddrArrayHeader, data)
    if header is None or header.maxCount != header.addrCount:
        return None
    body = data[len(structure.DnsAddrArrayHeader):]
    size = len(structure.DnsAddr)
    if len(body) % size != 0 or len(body) // size < header.addrCount:
        return None

    addrs = []
    for offset in range(0, len(body), size):
        addr = DnsAddr.from_bytes(body[offset:offset + size])
        if addr is None:
            return None
        addrs.append(addr)
    return addrs


def _u32_value(data, convert=int):
    if len(data) != 4:
        return None
    return convert(struct.unpack('<I', data)[0])


def _hours(data):
    return _u32_value(data, lambda hours: datetime.timedelta(hours=hours))


def _allow_update(data):
    if len(data) == 1:
        return lookup(AllowUpdate, data[0])
    return _u32_value(data, lambda v: lookup(AllowUpdate, v))


def _secure_time(data):
    if len(data) != 8:
        return None
    return seconds_or_raw(struct.unpack('<q', data)[0])


def _deleted_from_hostname(data):
    if len(data) % 2 != 0:
        return None
    end = next((i for i in range(0, len(data), 2) if data[i:i + 2] == b'\x00\x00'), len(data))
    try:
        return data[:end].decode('utf-16-le')
    except UnicodeDecodeError:
        return None


# id -> (decoder for the payload, value used when the payload is empty)
DNS_PROPERTY_DECODERS = frozendict({
    DnsPropertyId.TYPE: (lambda d: _u32_value(d, lambda v: lookup(ZoneType, v)), ZoneType.PRIMARY),
    DnsPropertyId.ALLOW_UPDATE: (_allow_update, None),
    DnsPropertyId.SECURE_TIME: (_secure_time, seconds_or_raw(0)),
    DnsPropertyId.NOREFRESH_INTERVAL: (_hours, datetime.timedelta(hours=168)),
    DnsPropertyId.REFRESH_INTERVAL: (_hours, datetime.timedelta(hours=168)),
    DnsPropertyId.AGING_STATE: (lambda d: _u32_value(d, lambda v: lookup(DnsBoolean, v)), DnsBoolean.FALSE),
    DnsPropertyId.SCAVENGING_SERVERS: (parse_ip4_array, ()),
    DnsPropertyId.AGING_ENABLED_TIME: (_hours, datetime.timedelta(0)),
    DnsPropertyId.DELETED_FROM_HOSTNAME: (_deleted_from_hostname, None),
    DnsPropertyId.MASTER_SERVERS: (parse_ip4_array, ()),
    DnsPropertyId.AUTO_NS_SERVERS: (parse_ip4_array, ()),
    DnsPropertyId.DCPROMO_CONVERT: (lambda d: _u32_value(d, lambda v: lookup(DcPromoFlag, v)), None),
    DnsPropertyId.SCAVENGING_SERVERS_DA: (parse_dns_addr_array, ()),
    DnsPropertyId.MASTER_SERVERS_DA: (parse_dns_addr_array, ()),
    DnsPropertyId.AUTO_NS_SERVERS_DA: (parse_dns_addr_array, ()),
    DnsPropertyId.NODE_DBFLAGS: (lambda d: _u32_value(d, DnsRpcNodeFlags), None),
})


# https://learn.microsoft.com/en-us/openspecs/windows_protocols/ms-dnsp/445c7843-e4a1-4222-8c0f-630c230a4c80
@dataclass(frozen=True)
class DnsProperty:
    name_length: int
    flag: int
    version: int
    id: object
    is_default: bool
    data: object

    @classmethod
    def from_bytes(cls, data):
        data = bytes(data)
        header = unpack(structure.DnsPropertyHeader, data)
        # a different version may mean a different layout
        if header is None or header.version != 1:
            return None
        start = len(structure.DnsPropertyHeader)
        if len(data) < start + 1 + header.dataLength:
            return None

        payload = data[start:start + header.dataLength]
        is_default = header.dataLength == 0
        property_id = lookup(DnsPropertyId, header.id)

        if property_id in DNS_PROPERTY_DECODERS:
            decoder, default = DNS_PROPERTY_DECODERS[property_id]
            value = default if is_default and default is not None else decoder(payload)
            if value is None:
                return None
        else:
            value = payload

        return cls(header.nameLength, header.flag, header.version, property_id, is_default, value)


class DnsRecordType(enum.IntEnum):
    ZERO = 0x0000
    A = 0x0001
    NS = 0x0002
    MD = 0x0003
    MF = 0x0004
    CNAME = 0x0005
    SOA = 0x0006
    MB = 0x0007
    MG = 0x0008
    MR = 0x0009
    NULL = 0x000A
    WKS = 0x000B
    PTR = 0x000C
    HINFO = 0x000D
    MINFO = 0x000E
    MX = 0x000F
    TXT = 0x0010
    RP = 0x0011
    AFSDB = 0x0012
    X25 = 0x0013
    ISDN = 0x0014
    RT = 0x0015
    SIG = 0x0018
    KEY = 0x0019
    AAAA = 0x001C
    NXT = 0x001E
    SRV = 0x0021
    ATMA = 0x0022
    NAPTR = 0x0023
    DNAME = 0x0027
    DS = 0x002B
    RRSIG = 0x002E
    NSEC = 0x002F
    DNSKEY = 0x0030
    DHCID = 0x0031
    NSEC3 = 0x0032
    NSEC3PARAM = 0x0033
    TLSA = 0x0034
    WINS = 0xFF01
    WINSR = 0xFF02


class DnsRank(enum.IntEnum):
    CACHE_BIT = 0x01
    ROOT_HINT = 0x08
    OUTSIDE_GLUE = 0x20
    CACHE_NA_ADDITIONAL = 0x31
    CACHE_NA_AUTHORITY = 0x41
    CACHE_A_ADDITIONAL = 0x51
    CACHE_NA_ANSWER = 0x61
    CACHE_A_AUTHORITY = 0x71
    GLUE = 0x80
    NS_GLUE = 0x82
    CACHE_A_ANSWER = 0xC1
    ZONE = 0xF0


class DnsRecordFlags(enum.IntFlag):
    RECORD_WIRE_FORMAT = 0x0010
    AUTH_ZONE_ROOT = 0x2000
    ZONE_ROOT = 0x4000
    CACHE_DATA = 0x8000


class WinsMappingFlag(enum.IntFlag):
    LOCAL = 0x00010000
    SCOPE = 0x80000000


@dataclass(frozen=True)
class Tombstone:
    entombed_time: object


@dataclass(frozen=True)
class Address:
    address: object


@dataclass(frozen=True)
class NodeName:
    name: str


@dataclass(frozen=True)
class StartOfAuthority:
    serial_number: int
    refresh: int
    retry: int
    expire: int
    minimum_ttl: int
    primary_server: str
    zone_admin_email: str


@dataclass(frozen=True)
class RawData:
    value: bytes


@dataclass(frozen=True)
class WellKnownServices:
    address: ipaddress.IPv4Address
    ip_protocol: int
    service_bitmask: bytes


@dataclass(frozen=True)
class StringList:
    values: list


@dataclass(frozen=True)
class Mailbox:
    mailbox: str
    error_mailbox: str


@dataclass(frozen=True)
class PreferenceName:
    preference: int
    name: str


@dataclass(frozen=True)
class Signature:
    type_covered: int
    algorithm: int
    label_count: int
    original_ttl: int
    signature_expiration: int
    signature_inception: int
    key_tag: int
    signer: str
    signature: bytes


@dataclass(frozen=True)
class Key:
    flags: int
    protocol: int
    algorithm: int
    key: bytes


@dataclass(frozen=True)
class NextDomain:
    record_type_mask: bytes
    next_name: str


@dataclass(frozen=True)
class Service:
    priority: int
    weight: int
    port: int
    target: str


@dataclass(frozen=True)
class Atma:
    format: int
    address: bytes


@dataclass(frozen=True)
class NamingAuthorityPointer:
    order: int
    preference: int
    flags: str
    service: str
    substitution: str
    replacement: str


@dataclass(frozen=True)
class DelegationSigner:
    key_tag: int
    algorithm: int
    digest_type: int
    digest: bytes


@dataclass(frozen=True)
class NextSecure:
    signer: str
    bitmap: bytes


@dataclass(frozen=True)
class NextSecure3:
    algorithm: int
    flags: int
    iterations: int
    salt: bytes
    next_hashed_owner_name: bytes
    bitmaps: bytes


@dataclass(frozen=True)
class NextSecure3Parameters:
    algorithm: int
    flags: int
    iterations: int
    salt: bytes


@dataclass(frozen=True)
class TlsAssociation:
    cert_usage: int
    selector: int
    matching_type: int
    certificate_association_data: bytes


@dataclass(frozen=True)
class Wins:
    mapping_flag: WinsMappingFlag
    lookup_timeout: int
    cache_timeout: int
    wins_servers: list


@dataclass(frozen=True)
class WinsReverse:
    mapping_flag: WinsMappingFlag
    lookup_timeout: int
    cache_timeout: int
    name_result_domain: str


def _string(data, pos):
    """Length-prefixed UTF-8 string at pos; returns (value, next position) or None."""
    if pos >= len(data):
        return None
    end = pos + 1 + data[pos]
    if end > len(data):
        return None
    try:
        return data[pos + 1:end].decode('utf-8'), end
    except UnicodeDecodeError:
        return None


def _count_name(data, pos):
    """DNS_COUNT_NAME at pos; returns (dotted name, next position) or None."""
    if pos + 2 > len(data):
        return None
    total, label_count = data[pos], data[pos + 1]
    labels = data[pos + 2:pos + 2 + total]
    if len(labels) != total:
        return None

    name = ''
    i = 0
    for _ in range(label_count):
        if i >= len(labels) or i + 1 + labels[i] > len(labels):
            return None
        try:
            name += labels[i + 1:i + 1 + labels[i]].decode('utf-8') + '.'
        except UnicodeDecodeError:
            return None
        i += 1 + labels[i]

    if i >= len(labels) or labels[i] != 0 or i + 1 != len(labels):
        return None
    return name, pos + 2 + total


def _exact(result, data):
    if result is None or result[1] != len(data):
        return None
    return result[0]


def _tombstone(data):
    if len(data) != 8:
        return None
    return Tombstone(ticks_or_raw(struct.unpack('<q', data)[0]))


def _ipv4(data):
    return Address(ipaddress.IPv4Address(data)) if len(data) == 4 else None


def _ipv6(data):
    return Address(ipaddress.IPv6Address(data)) if len(data) == 16 else None


def _node_name(data):
    name = _exact(_count_name(data, 0), data)
    return NodeName(name) if name is not None else None


def _soa(data):
    header = unpack(structure.DnsSoaHeader, data)
    if header is None or len(data) < 22:
        return None
    primary = _count_name(data, len(structure.DnsSoaHeader))
    if primary is None:
        return None
    email = _exact(_count_name(data, primary[1]), data)
    if email is None:
        return None
    return StartOfAuthority(header.serialNumber, header.refresh, header.retry, header.expire,
                            header.minimumTtl, primary[0], email)


def _wks(data):
    if len(data) < 5:
        return None
    return WellKnownServices(ipaddress.IPv4Address(data[0:4]), data[4], data[5:])


def _strings(data):
    values = []
    pos = 0
    while pos < len(data):
        result = _string(data, pos)
        if result is None:
            return None
        value, pos = result
        values.append(value)
    return StringList(values)


def _mailbox(data):
    mailbox = _count_name(data, 0)
    if mailbox is None:
        return None
    error_mailbox = _exact(_count_name(data, mailbox[1]), data)
    if error_mailbox is None:
        return None
    return Mailbox(mailbox[0], error_mailbox)


def _preference_name(data):
    header = unpack(bigendian.DnsPreference, data)
    if header is None or len(data) < 3:
        return None
    name = _exact(_count_name(data, len(bigendian.DnsPreference)), data)
    if name is None:
        return None
    return PreferenceName(header.preference, name)


def _signature(data):
    header = unpack(bigendian.DnsSignatureHeader, data)
    if header is None or len(data) < 19:
        return None
    signer = _count_name(data, len(bigendian.DnsSignatureHeader))
    if signer is None:
        return None
    return Signature(header.typeCovered, header.algorithm, header.labelCount, header.originalTtl,
                     header.signatureExpiration, header.signatureInception, header.keyTag,
                     signer[0], data[signer[1]:])


def _key(data):
    header = unpack(bigendian.DnsKeyHeader, data)
    if header is None:
        return None
    return Key(header.flags, header.protocol, header.algorithm, data[len(bigendian.DnsKeyHeader):])


def _next_domain(data):
    if len(data) < 16:
        return None
    name = _exact(_count_name(data, 16), data)
    if name is None:
        return None
    return NextDomain(data[:16], name)


def _service(data):
    header = unpack(bigendian.DnsServiceHeader, data)
    if header is None or len(data) < 7:
        return None
    target = _exact(_count_name(data, len(bigendian.DnsServiceHeader)), data)
    if target is None:
        return None
    return Service(header.priority, header.weight, header.port, target)


def _atma(data):
    if len(data) < 1:
        return None
    return Atma(data[0], data[1:])


def _naptr(data):
    header = unpack(structure.DnsNaptrHeader, data)
    if header is None or len(data) < 8:
        return None
    pos = len(structure.DnsNaptrHeader)
    strings = []
    for _ in range(3):
        result = _string(data, pos)
        if result is None:
            return None
        value, pos = result
        strings.append(value)
    replacement = _exact(_count_name(data, pos), data)
    if replacement is None:
        return None
    return NamingAuthorityPointer(header.order, header.preference, *strings, replacement)


def _delegation_signer(data):
    header = unpack(bigendian.DnsDelegationSignerHeader, data)
    if header is None:
        return None
    return DelegationSigner(header.keyTag, header.algorithm, header.digestType,
                            data[len(bigendian.DnsDelegationSignerHeader):])


def _nsec(data):
    signer = _count_name(data, 0)
    if signer is None:
        return None
    return NextSecure(signer[0], data[signer[1]:])


def _nsec3(data):
    header = unpack(bigendian.DnsNsec3Header, data)
    if header is None:
        return None
    pos = len(bigendian.DnsNsec3Header)
    salt_end = pos + header.saltLength
    hash_end = salt_end + header.hashLength
    if hash_end > len(data):
        return None
    return NextSecure3(header.algorithm, header.flags, header.iterations,
                       data[pos:salt_end], data[salt_end:hash_end], data[hash_end:])


def _nsec3param(data):
    header = unpack(bigendian.DnsNsec3ParamHeader, data)
    if header is None:
        return None
    pos = len(bigendian.DnsNsec3ParamHeader)
    if pos + header.saltLength != len(data):
        return None
    return NextSecure3Parameters(header.algorithm, header.flags, header.iterations, data[pos:])


def _tlsa(data):
    header = unpack(bigendian.DnsTlsaHeader, data)
    if header is None:
        return None
    return TlsAssociation(header.certUsage, header.selector, header.matchingType,
                          data[len(bigendian.DnsTlsaHeader):])


def _wins(data):
    header = unpack(structure.DnsWinsHeader, data)
    if header is None or len(data) < 16:
        return None
    count = struct.unpack_from('<I', data, 12)[0]
    if 16 + 4 * count != len(data):
        return None
    servers = [ipaddress.IPv4Address(data[i:i + 4]) for i in range(16, len(data), 4)]
    return Wins(WinsMappingFlag(header.mappingFlag), header.lookupTimeout, header.cacheTimeout, servers)


def _wins_reverse(data):
    header = unpack(structure.DnsWinsHeader, data)
    if header is None or len(data) < 13:
        return None
    domain = _exact(_string(data, len(structure.DnsWinsHeader)), data)
    if domain is None:
        return None
    return WinsReverse(WinsMappingFlag(header.mappingFlag), header.lookupTimeout, header.cacheTimeout, domain)


DNS_RECORD_DECODERS = frozendict({
    DnsRecordType.ZERO: _tombstone,
    DnsRecordType.A: _ipv4,
    DnsRecordType.NS: _node_name,
    DnsRecordType.MD: _node_name,
    DnsRecordType.MF: _node_name,
    DnsRecordType.CNAME: _node_name,
    DnsRecordType.SOA: _soa,
    DnsRecordType.MB: _node_name,
    DnsRecordType.MG: _node_name,
    DnsRecordType.MR: _node_name,
    DnsRecordType.NULL: RawData,
    DnsRecordType.WKS: _wks,
    DnsRecordType.PTR: _node_name,
    DnsRecordType.HINFO: _strings,
    DnsRecordType.MINFO: _mailbox,
    DnsRecordType.MX: _preference_name,
    DnsRecordType.TXT: _strings,
    DnsRecordType.RP: _mailbox,
    DnsRecordType.AFSDB: _preference_name,
    DnsRecordType.X25: _strings,
    DnsRecordType.ISDN: _strings,
    DnsRecordType.RT: _preference_name,
    DnsRecordType.SIG: _signature,
    DnsRecordType.KEY: _key,
    DnsRecordType.AAAA: _ipv6,
    DnsRecordType.NXT: _next_domain,
    DnsRecordType.SRV: _service,
    DnsRecordType.ATMA: _atma,
    DnsRecordType.NAPTR: _naptr,
    DnsRecordType.DNAME: _node_name,
    DnsRecordType.DS: _delegation_signer,
    DnsRecordType.RRSIG: _signature,
    DnsRecordType.NSEC: _nsec,
    DnsRecordType.DNSKEY: _key,
    DnsRecordType.DHCID: RawData,
    DnsRecordType.NSEC3: _nsec3,
    DnsRecordType.NSEC3PARAM: _nsec3param,
    DnsRecordType.TLSA: _tlsa,
    DnsRecordType.WINS: _wins,
    DnsRecordType.WINSR: _wins_reverse,
})


# https://learn.microsoft.com/en-us/openspecs/windows_protocols/ms-dnsp/ac793981-1c60-43b8-be59-cdbb5c4ecb8a
@dataclass(frozen=True)
class DnsRecord:
    record_type: object
    version: int
    rank: object
    flags: DnsRecordFlags
    serial: int
    ttl_seconds: int
    timestamp: int
    reserved: int
    data: object

    @classmethod
    def from_bytes(cls, data):
        data = bytes(data)
        header = unpack(structure.DnsRecordHeader, data)
        start = len(structure.DnsRecordHeader)
        if header is None or len(data) != start + header.dataLength:
            return None

        record_type = lookup(DnsRecordType, header.recordType)
        payload = data[start:]
        decoder = DNS_RECORD_DECODERS.get(record_type, RawData)
        value = decoder(payload)
        if value is None:
            return None

        return cls(record_type, header.version, lookup(DnsRank, header.rank), DnsRecordFlags(header.flags),
                   header.serial, int.from_bytes(header.ttlSeconds, 'big'), header.timestamp,
                   header.reserved, value)
