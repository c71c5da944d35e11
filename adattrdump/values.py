from adattrdump.parser.bits import (INT64_MAX, INT64_MIN, format_duration, guid_from_bytes,
                                    negative_interval_to_duration, parse_integer, ticks_to_utc, to_unsigned)
from adattrdump.parser.oid import OidPrefix
from adattrdump.parser.sid import Sid
from adattrdump.parser.flags import (
    lookup, known_bits, has_unknown_bits, flag_names,
    UserAccountControl, GroupType, GenericSystemFlags, CrossRefSystemFlags, ClassSchemaSystemFlags,
    AttributeSchemaSystemFlags, InstanceType, OptionalFeatureFlags, PasswordProperties, SearchFlags,
    InterSiteTransportOptions, DsConnectionOptions, DsaSettingsOptions, SiteSettingsOptions,
    SiteConnectionOptions, TrustDirection, TrustAttributes, SupportedEncryptionTypes, Rid, SamAccountType,
    FunctionalityLevel, TrustType, ObjectClassCategory, OmSyntax, ReplAuthenticationMode, ServerState,
    AttributeSyntax, OmObjectClass,
)
from adattrdump.parser.security import SecurityDescriptor, KeyCredentialLink
from adattrdump.parser.dns import DnsProperty, DnsRecord
from adattrdump.parser.replication import ReplUpToDateVector2, RepsFromTo, DsaSignatureState1
from adattrdump.parser.trust import TrustForestTrustInfo
from adattrdump.parser.schema import PrefixMap, SchemaInfo
from adattrdump.parser.terminalservices import UserParameters
from adattrdump.parser.dfsr import schedule_to_string
from adattrdump.parser import exchange

from requests.structures import CaseInsensitiveDict

import base64
import dataclasses
import datetime
import enum
import ipaddress
import json
import uuid

TIMESTAMP_ATTRIBUTES = [
    'accountExpires', 'lastLogon', 'lastLogonTimestamp', 'badPasswordTime', 'pwdLastSet', 'lastLogoff',
    'lockoutTime', 'msDS-LastSuccessfulInteractiveLogonTime', 'msDS-LastFailedInteractiveLogonTime',
    'msDS-UserPasswordExpiryTimeComputed', 'creationTime',
]

INTERVAL_ATTRIBUTES = [
    'maxPwdAge', 'minPwdAge', 'lockoutDuration', 'lockOutObservationWindow', 'forceLogoff',
    'msDS-MaximumPasswordAge', 'msDS-MinimumPasswordAge', 'msDS-LockoutDuration',
    'msDS-LockoutObservationWindow',
]

GUID_ATTRIBUTES = [
    'objectGUID', 'mS-DS-ConsistencyGuid', 'msExchMailboxGuid', 'schemaIDGUID', 'attributeSecurityGUID',
    'rightsGuid', 'msDFSR-ContentSetGuid', 'msDFSR-ReplicationGroupGuid', 'msExchArchiveGUID', 'invocationId',
]

SID_ATTRIBUTES = [
    'objectSid', 'sIDHistory', 'securityIdentifier', 'tokenGroups', 'msExchMasterAccountSid', 'mS-DS-CreatorSID',
]

SECURITY_DESCRIPTOR_ATTRIBUTES = [
    'nTSecurityDescriptor', 'msDS-AllowedToActOnBehalfOfOtherIdentity', 'msExchMailboxSecurityDescriptor',
    'fRSRootSecurity', 'msDFSR-RootSecurity', 'pKIEnrollmentAccess', 'msDS-GroupMSAMembership',
]

# attribute -> (flag family, bit width)
FLAG_ATTRIBUTES = {
    'userAccountControl': (UserAccountControl, 32),
    'msDS-User-Account-Control-Computed': (UserAccountControl, 32),
    'groupType': (GroupType, 32),
    'instanceType': (InstanceType, 32),
    'msDS-OptionalFeatureFlags': (OptionalFeatureFlags, 32),
    'pwdProperties': (PasswordProperties, 32),
    'searchFlags': (SearchFlags, 32),
    'trustDirection': (TrustDirection, 32),
    'trustAttributes': (TrustAttributes, 32),
    'msDS-SupportedEncryptionTypes': (SupportedEncryptionTypes, 32),
    'msExchAddressBookFlags': (exchange.AddressBookFlags, 32),
    'msExchProvisioningFlags': (exchange.ProvisioningFlags, 32),
    'msExchELCMailboxFlags': (exchange.ElcMailboxFlags, 32),
    'msExchRecipientSoftDeletedStatus': (exchange.SoftDeletedStatus, 32),
    'msExchRecipientTypeDetails': (exchange.RecipientTypeDetails, 64),
    'msExchModerationFlags': (exchange.ModerationFlags, 32),
    'msExchTransportRecipientSettingsFlags': (exchange.TransportSettingFlags, 32),
    'msExchMobileMailboxFlags': (exchange.MobileMailboxFlags, 32),
    'msExchLocalizationFlags': (exchange.LocalizationFlags, 32),
    'msExchMailboxFolderSet': (exchange.MailboxFolderSet, 32),
    'msExchMailboxAuditAdmin': (exchange.MailboxAuditOperations, 32),
    'msExchMailboxAuditDelegate': (exchange.MailboxAuditOperations, 32),
    'msExchMailboxAuditOwner': (exchange.MailboxAuditOperations, 32),
    'msExchDeviceClientType': (exchange.DeviceClientType, 32),
}

ENUM_ATTRIBUTES = {
    'sAMAccountType': SamAccountType,
    'primaryGroupID': Rid,
    'msDS-Behavior-Version': FunctionalityLevel,
    'domainFunctionality': FunctionalityLevel,
    'forestFunctionality': FunctionalityLevel,
    'domainControllerFunctionality': FunctionalityLevel,
    'trustType': TrustType,
    'objectClassCategory': ObjectClassCategory,
    'oMSyntax': OmSyntax,
    'msDS-ReplAuthenticationMode': ReplAuthenticationMode,
    'serverState': ServerState,
}

# checked in order; the first object class the entry carries wins
SYSTEM_FLAGS_BY_CLASS = (
    ('crossRef', CrossRefSystemFlags),
    ('classSchema', ClassSchemaSystemFlags),
    ('attributeSchema', AttributeSchemaSystemFlags),
)

OPTIONS_BY_CLASS = (
    ('interSiteTransport', InterSiteTransportOptions),
    ('nTDSConnection', DsConnectionOptions),
    ('nTDSDSA', DsaSettingsOptions),
    ('nTDSSiteSettings', SiteSettingsOptions),
    ('siteLink', SiteConnectionOptions),
)


def is_safe_string(value):
    if not value:
        return True
    if value[0] in '\0\n\r :<':
        return False
    return not any(c in '\0\n\r' for c in value[1:])


def string_lines(name, value):
    if is_safe_string(value):
        return [f'{name}: {value}']
    return [f'{name}:: {base64.b64encode(value.encode("utf-8")).decode("ascii")}']


def hexdump_lines(name, data):
    lines = [f'{name}:::']
    for offset in range(0, len(data), 16):
        row = f' {offset:08X}'
        for i, b in enumerate(data[offset:offset + 16]):
            if i == 8:
                row += ' '
            row += f' {b:02X}'
        lines.append(row)
    return lines


def format_flags(flag):
    names = flag_names(flag)
    rest = int(flag) & ~known_bits(type(flag))
    if rest:
        names.append(f'0x{rest:X}')
    return ' | '.join(names) or '0'


class StructureDumper(object):
    """Multi-line debug rendering of decoded values."""

    indent = '    '

    def dump(self, obj):
        if isinstance(obj, (Sid, OidPrefix, uuid.UUID, ipaddress.IPv4Address, ipaddress.IPv6Address)):
            return [str(obj)]
        elif isinstance(obj, exchange.ExchangeVersion) and obj.friendly_name:
            return [obj.friendly_name]
        elif dataclasses.is_dataclass(obj) and not isinstance(obj, type):
            return self.dump_record(obj)
        elif isinstance(obj, (list, tuple)):
            return self.dump_list(obj)
        return [self.encode_scalar(obj)]

    def dump_record(self, obj):
        lines = [f'{type(obj).__name__} {{']
        for field in dataclasses.fields(obj):
            inner = self.dump(getattr(obj, field.name))
            lines.append(f'{self.indent}{field.name}: {inner[0]}')
            lines.extend(self.indent + line for line in inner[1:])
            lines[-1] += ','
        lines.append('}')
        return lines

    def dump_list(self, items):
        if not items:
            return ['[]']
        lines = ['[']
        for item in items:
            inner = self.dump(item)
            lines.extend(self.indent + line for line in inner)
            lines[-1] += ','
        lines.append(']')
        return lines

    def encode_scalar(self, obj):
        if obj is None:
            return 'None'
        elif isinstance(obj, enum.Flag):
            return format_flags(obj)
        elif isinstance(obj, enum.Enum):
            return obj.name
        elif isinstance(obj, bytes):
            return obj.hex()
        elif isinstance(obj, str):
            return json.dumps(obj, ensure_ascii=False)
        elif isinstance(obj, datetime.datetime):
            return obj.isoformat()
        elif isinstance(obj, datetime.timedelta):
            return format_duration(obj)
        return str(obj)


dumper = StructureDumper()


def structured_lines(name, obj):
    return [f'{name}:::'] + [' ' + line for line in dumper.dump(obj)]


def _text_lines(name, text):
    return [f'{name}:::'] + [' ' + line for line in text.split('\n')]


def format_timestamp(ticks):
    """Local-time rendering of a FILETIME tick count with the shortest exact fraction, or None."""
    if ticks in (0, INT64_MAX):
        return None
    utc = ticks_to_utc(ticks)
    if utc is None:
        return None
    try:
        local = utc.astimezone()
    except (OverflowError, OSError, ValueError):
        return None

    nanos = (ticks % 10_000_000) * 100
    if nanos == 0:
        fraction = ''
    elif nanos % 1_000_000 == 0:
        fraction = f'.{nanos // 1_000_000:03d}'
    elif nanos % 1000 == 0:
        fraction = f'.{nanos // 1000:06d}'
    else:
        fraction = f'.{nanos:09d}'
    return local.strftime('%Y-%m-%dT%H:%M:%S') + fraction + local.strftime('%z')


def _parse_word(value, bits):
    """Integer text that fits either the signed or the unsigned range of bits, reduced to unsigned."""
    number = parse_integer(value, bits + 1)
    if number is None or not -(1 << (bits - 1)) <= number < (1 << bits):
        return None
    return to_unsigned(number, bits)


def _flag_lines(name, value, flag_cls, bits=32):
    number = _parse_word(value, bits)
    if number is None:
        return None
    if number == 0:
        return [f'{name}: {value}']
    flag = flag_cls(number)
    if has_unknown_bits(flag):
        return [f'{name}: {value}']
    return [f'{name}: {value} ({" | ".join(flag_names(flag))})']


def _enum_lines(name, value, enum_cls, bits=32):
    number = _parse_word(value, bits)
    if number is None:
        return None
    member = lookup(enum_cls, number)
    if number == 0 or not isinstance(member, enum_cls):
        return [f'{name}: {value}']
    return [f'{name}: {value} ({member.name})']


def _flag_decoder(flag_cls, bits):
    def decode(name, value, object_classes):
        return _flag_lines(name, value, flag_cls, bits)
    return decode


def _enum_decoder(enum_cls):
    def decode(name, value, object_classes):
        return _enum_lines(name, value, enum_cls)
    return decode


def _class_dependent(table):
    def decode(name, value, object_classes):
        classes = {oc.lower() for oc in object_classes}
        for object_class, flag_cls in table:
            if object_class.lower() in classes:
                return _flag_lines(name, value, flag_cls)
        return None
    return decode


def decode_system_flags(name, value, object_classes):
    return (_class_dependent(SYSTEM_FLAGS_BY_CLASS)(name, value, object_classes)
            or _flag_lines(name, value, GenericSystemFlags))


decode_options = _class_dependent(OPTIONS_BY_CLASS)


def decode_timestamp(name, value, object_classes):
    ticks = parse_integer(value, 64)
    if ticks is None:
        return None
    rendered = format_timestamp(ticks)
    if rendered is None:
        return [f'{name}: {value}']
    return [f'{name}: {value} ({rendered})']


def decode_interval(name, value, object_classes):
    ticks = parse_integer(value, 64)
    if ticks is None:
        return None
    if ticks == INT64_MIN:
        return [f'{name}: {value} (never)']
    if ticks < 0:
        return [f'{name}: {value} ({format_duration(negative_interval_to_duration(ticks))})']
    return [f'{name}: {value}']


def decode_attribute_syntax(name, value, object_classes):
    member = lookup(AttributeSyntax, value)
    if not isinstance(member, AttributeSyntax):
        return None
    return [f'{name}: {value} ({member.name})']


def decode_exchange_version(name, value, object_classes):
    version = exchange.ExchangeVersion.from_string(value)
    if version is None:
        return None
    if version.friendly_name:
        return [f'{name}: {value} ({version.friendly_name})']
    return structured_lines(name, version)


def _structured(parse):
    def decode(name, value, object_classes):
        parsed = parse(value)
        if parsed is None:
            return None
        return structured_lines(name, parsed)
    return decode


def decode_guid(name, value, object_classes):
    guid = guid_from_bytes(value)
    if guid is None:
        return None
    return [f'{name}: {guid}']


def decode_sid(name, value, object_classes):
    sid = Sid.from_bytes(value)
    if sid is None:
        return None
    if sid.alias:
        return [f'{name}: {sid} ({sid.alias})']
    return [f'{name}: {sid}']


def decode_security_descriptor(name, value, object_classes):
    sd = SecurityDescriptor.from_bytes(value)
    if sd is None:
        return None
    sddl = sd.try_to_string()
    if sddl is not None:
        return [f'{name}: {sddl}']
    return structured_lines(name, sd)


def decode_schedule(name, value, object_classes):
    grid = schedule_to_string(value)
    if grid is None:
        return None
    return _text_lines(name, grid)


def decode_om_object_class(name, value, object_classes):
    member = lookup(OmObjectClass, bytes(value))
    if not isinstance(member, OmObjectClass):
        return None
    return [f'{name}: {bytes(value).hex()} ({member.name})']


TEXT_DECODERS = CaseInsensitiveDict()
for attribute in TIMESTAMP_ATTRIBUTES:
    TEXT_DECODERS[attribute] = decode_timestamp
for attribute in INTERVAL_ATTRIBUTES:
    TEXT_DECODERS[attribute] = decode_interval
for attribute, (flag_cls, bits) in FLAG_ATTRIBUTES.items():
    TEXT_DECODERS[attribute] = _flag_decoder(flag_cls, bits)
for attribute, enum_cls in ENUM_ATTRIBUTES.items():
    TEXT_DECODERS[attribute] = _enum_decoder(enum_cls)
TEXT_DECODERS.update({
    'systemFlags': decode_system_flags,
    'options': decode_options,
    'attributeSyntax': decode_attribute_syntax,
    'msDS-KeyCredentialLink': _structured(KeyCredentialLink.from_string),
    'userParameters': _structured(UserParameters.from_string),
    'msExchVersion': decode_exchange_version,
    'msExchTextMessagingState': _structured(exchange.TextMessagingState.from_string),
    'internetEncoding': _structured(exchange.InternetEncoding.from_string),
})

BINARY_DECODERS = CaseInsensitiveDict()
for attribute in GUID_ATTRIBUTES:
    BINARY_DECODERS[attribute] = decode_guid
for attribute in SID_ATTRIBUTES:
    BINARY_DECODERS[attribute] = decode_sid
for attribute in SECURITY_DESCRIPTOR_ATTRIBUTES:
    BINARY_DECODERS[attribute] = decode_security_descriptor
BINARY_DECODERS.update({
    'schemaInfo': _structured(SchemaInfo.from_bytes),
    'prefixMap': _structured(PrefixMap.from_bytes),
    'dnsRecord': _structured(DnsRecord.from_bytes),
    'dNSProperty': _structured(DnsProperty.from_bytes),
    'repsFrom': _structured(RepsFromTo.from_bytes),
    'repsTo': _structured(RepsFromTo.from_bytes),
    'replUpToDateVector': _structured(ReplUpToDateVector2.from_bytes),
    'msDS-TrustForestTrustInfo': _structured(TrustForestTrustInfo.from_bytes),
    'dSASignature': _structured(DsaSignatureState1.from_bytes),
    'schedule': decode_schedule,
    'oMObjectClass': decode_om_object_class,
})


def render_binary(name, value, object_classes=()):
    decoder = BINARY_DECODERS.get(name)
    if decoder is not None:
        lines = decoder(name, value, object_classes)
        if lines is not None:
            return lines
    return hexdump_lines(name, value)


def render_text(name, value, object_classes=()):
    decoder = TEXT_DECODERS.get(name)
    if decoder is not None:
        lines = decoder(name, value, object_classes)
        if lines is not None:
            return lines

    # the directory sometimes hands out binary data that happens to be valid UTF-8
    decoder = BINARY_DECODERS.get(name)
    if decoder is not None:
        lines = decoder(name, value.encode('utf-8'), object_classes)
        if lines is not None:
            return lines

    return string_lines(name, value)


def render_value(name, value, object_classes=()):
    if isinstance(value, (bytes, bytearray)):
        return render_binary(name, bytes(value), object_classes)
    return render_text(name, value, object_classes)


def render_values(name, values, object_classes=()):
    lines = []
    for value in values:
        lines.extend(render_value(name, value, object_classes))
    return lines
