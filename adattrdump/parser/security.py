from adattrdump.parser.structure import structure, unpack
from adattrdump.parser.flags import lookup, has_unknown_bits
from adattrdump.parser.bits import guid_from_bytes, utf16le_at, ticks_or_raw
from adattrdump.parser.sid import Sid
from frozendict import frozendict

from dataclasses import dataclass
import binascii
import enum
import logging
import re
import struct
import uuid


# https://learn.microsoft.com/en-us/openspecs/windows_protocols/ms-dtyp/628ebb1d-c509-4ea0-a10f-77ef97ca4586
class AceType(enum.IntEnum):
    ACCESS_ALLOWED = 0x00
    ACCESS_DENIED = 0x01
    SYSTEM_AUDIT = 0x02
    ACCESS_ALLOWED_OBJECT = 0x05
    ACCESS_DENIED_OBJECT = 0x06
    SYSTEM_AUDIT_OBJECT = 0x07
    ACCESS_ALLOWED_CALLBACK = 0x09
    ACCESS_DENIED_CALLBACK = 0x0A
    ACCESS_ALLOWED_CALLBACK_OBJECT = 0x0B
    ACCESS_DENIED_CALLBACK_OBJECT = 0x0C
    SYSTEM_AUDIT_CALLBACK = 0x0D
    SYSTEM_AUDIT_CALLBACK_OBJECT = 0x0F
    SYSTEM_MANDATORY_LABEL = 0x11
    SYSTEM_RESOURCE_ATTRIBUTE = 0x12
    SYSTEM_SCOPED_POLICY_ID = 0x13


class AceFlags(enum.IntFlag):
    OBJECT_INHERIT = 0x01
    CONTAINER_INHERIT = 0x02
    NO_PROPAGATE_INHERIT = 0x04
    INHERIT_ONLY = 0x08
    INHERITED = 0x10
    SUCCESSFUL_ACCESS = 0x40
    FAILED_ACCESS = 0x80


class AccessMask(enum.IntFlag):
    DS_CREATE_CHILD = 0x00000001
    DS_DELETE_CHILD = 0x00000002
    DS_LIST_CHILDREN = 0x00000004
    DS_SELF_WRITE = 0x00000008
    DS_READ_PROP = 0x00000010
    DS_WRITE_PROP = 0x00000020
    DS_DELETE_TREE = 0x00000040
    DS_LIST_OBJECT = 0x00000080
    DS_CONTROL_ACCESS = 0x00000100
    DELETE = 0x00010000
    READ_CONTROL = 0x00020000
    WRITE_DAC = 0x00040000
    WRITE_OWNER = 0x00080000


class MandatoryMask(enum.IntFlag):
    NO_WRITE_UP = 0x1
    NO_READ_UP = 0x2
    NO_EXECUTE_UP = 0x4


class ObjectAceFlags(enum.IntFlag):
    OBJECT_TYPE_PRESENT = 0x1
    INHERITED_OBJECT_TYPE_PRESENT = 0x2


class SecurityDescriptorControl(enum.IntFlag):
    OWNER_DEFAULTED = 0x0001
    GROUP_DEFAULTED = 0x0002
    DACL_PRESENT = 0x0004
    DACL_DEFAULTED = 0x0008
    SACL_PRESENT = 0x0010
    SACL_DEFAULTED = 0x0020
    DACL_AUTO_INHERIT_REQ = 0x0100
    SACL_AUTO_INHERIT_REQ = 0x0200
    DACL_AUTO_INHERITED = 0x0400
    SACL_AUTO_INHERITED = 0x0800
    DACL_PROTECTED = 0x1000
    SACL_PROTECTED = 0x2000
    RM_CONTROL_VALID = 0x4000
    SELF_RELATIVE = 0x8000


# https://learn.microsoft.com/en-us/openspecs/windows_protocols/ms-dtyp/a29a4e5b-6a2c-4a56-9b5b-7b4d2d5d4e67
class ClaimFlags(enum.IntFlag):
    NON_INHERITABLE = 0x0001
    VALUE_CASE_SENSITIVE = 0x0002
    USE_FOR_DENY_ONLY = 0x0004
    DISABLED_BY_DEFAULT = 0x0008
    DISABLED = 0x0010
    MANDATORY = 0x0020
    FCI_MANUAL = 0x10000
    FCI_POLICY_DERIVED = 0x20000


class ClaimValueType(enum.IntEnum):
    INT64 = 0x0001
    UINT64 = 0x0002
    STRING = 0x0003
    SID = 0x0005
    BOOLEAN = 0x0006
    OCTET_STRING = 0x0010


BASIC_ACE_TYPES = frozenset([
    AceType.ACCESS_ALLOWED, AceType.ACCESS_DENIED, AceType.SYSTEM_AUDIT,
    AceType.ACCESS_ALLOWED_CALLBACK, AceType.ACCESS_DENIED_CALLBACK,
    AceType.SYSTEM_AUDIT_CALLBACK, AceType.SYSTEM_SCOPED_POLICY_ID,
])

OBJECT_ACE_TYPES = frozenset([
    AceType.ACCESS_ALLOWED_OBJECT, AceType.ACCESS_DENIED_OBJECT, AceType.SYSTEM_AUDIT_OBJECT,
    AceType.ACCESS_ALLOWED_CALLBACK_OBJECT, AceType.ACCESS_DENIED_CALLBACK_OBJECT,
    AceType.SYSTEM_AUDIT_CALLBACK_OBJECT,
])

# the two callback object types have no SDDL code and are left out
SDDL_ACE_TYPES = frozendict({
    AceType.ACCESS_ALLOWED: 'A',
    AceType.ACCESS_DENIED: 'D',
    AceType.SYSTEM_AUDIT: 'AU',
    AceType.ACCESS_ALLOWED_OBJECT: 'OA',
    AceType.ACCESS_DENIED_OBJECT: 'OD',
    AceType.SYSTEM_AUDIT_OBJECT: 'OU',
    AceType.ACCESS_ALLOWED_CALLBACK: 'XA',
    AceType.ACCESS_DENIED_CALLBACK: 'XD',
    AceType.ACCESS_ALLOWED_CALLBACK_OBJECT: 'ZA',
    AceType.SYSTEM_AUDIT_CALLBACK: 'XU',
    AceType.SYSTEM_MANDATORY_LABEL: 'ML',
    AceType.SYSTEM_RESOURCE_ATTRIBUTE: 'RA',
    AceType.SYSTEM_SCOPED_POLICY_ID: 'SP',
})

SDDL_ACE_FLAGS = (
    ('CI', AceFlags.CONTAINER_INHERIT),
    ('OI', AceFlags.OBJECT_INHERIT),
    ('NP', AceFlags.NO_PROPAGATE_INHERIT),
    ('IO', AceFlags.INHERIT_ONLY),
    ('ID', AceFlags.INHERITED),
    ('SA', AceFlags.SUCCESSFUL_ACCESS),
    ('FA', AceFlags.FAILED_ACCESS),
)

SDDL_RIGHTS = (
    ('CC', AccessMask.DS_CREATE_CHILD),
    ('DC', AccessMask.DS_DELETE_CHILD),
    ('LC', AccessMask.DS_LIST_CHILDREN),
    ('SW', AccessMask.DS_SELF_WRITE),
    ('RP', AccessMask.DS_READ_PROP),
    ('WP', AccessMask.DS_WRITE_PROP),
    ('DT', AccessMask.DS_DELETE_TREE),
    ('LO', AccessMask.DS_LIST_OBJECT),
    ('CR', AccessMask.DS_CONTROL_ACCESS),
    ('SD', AccessMask.DELETE),
    ('RC', AccessMask.READ_CONTROL),
    ('WD', AccessMask.WRITE_DAC),
    ('WO', AccessMask.WRITE_OWNER),
)

SDDL_MANDATORY_RIGHTS = (
    ('NR', MandatoryMask.NO_READ_UP),
    ('NW', MandatoryMask.NO_WRITE_UP),
    ('NX', MandatoryMask.NO_EXECUTE_UP),
)

SDDL_UNSUPPORTED_CONTROL = (SecurityDescriptorControl.OWNER_DEFAULTED | SecurityDescriptorControl.GROUP_DEFAULTED
                            | SecurityDescriptorControl.DACL_DEFAULTED | SecurityDescriptorControl.SACL_DEFAULTED
                            | SecurityDescriptorControl.RM_CONTROL_VALID)


def _codes(table, value):
    return ''.join(code for code, bit in table if value & bit)


def _split_sid(data):
    length = Sid.get_length(data)
    if length is None:
        return None, data
    return Sid.from_bytes(data[:length]), data[length:]


def _u32(data, offset):
    if offset < 0 or offset + 4 > len(data):
        return None
    return struct.unpack_from('<I', data, offset)[0]


@dataclass(frozen=True)
class ClaimSecurityAttribute:
    name: str
    value_type: ClaimValueType
    reserved: int
    flags: ClaimFlags
    values: list

    @classmethod
    def from_bytes(cls, data):
        header = unpack(structure.ClaimAttributeHeader, data)
        if header is None or header.nameOffset >= len(data):
            return None
        name = utf16le_at(data, header.nameOffset)
        if name is None:
            return None

        offsets = []
        for i in range(header.valueCount):
            offset = _u32(data, 16 + 4 * i)
            if offset is None or offset >= len(data):
                return None
            offsets.append(offset)

        value_type = lookup(ClaimValueType, header.valueType)
        if not isinstance(value_type, ClaimValueType):
            return None

        values = []
        for offset in offsets:
            if value_type in (ClaimValueType.INT64, ClaimValueType.UINT64, ClaimValueType.BOOLEAN):
                if offset + 8 > len(data):
                    return None
                fmt = '<q' if value_type == ClaimValueType.INT64 else '<Q'
                value = struct.unpack_from(fmt, data, offset)[0]
                if value_type == ClaimValueType.BOOLEAN:
                    if value not in (0, 1):
                        return None
                    value = bool(value)
            elif value_type == ClaimValueType.STRING:
                value = utf16le_at(data, offset)
            elif value_type == ClaimValueType.SID:
                text = utf16le_at(data, offset)
                value = Sid.from_string(text) if text is not None else None
            elif value_type == ClaimValueType.OCTET_STRING:
                length = _u32(data, offset)
                if length is None or offset + 4 + length > len(data):
                    return None
                value = bytes(data[offset + 4:offset + 4 + length])

            if value is None:
                return None
            values.append(value)

        return cls(name, value_type, header.reserved, ClaimFlags(header.flags), values)


@dataclass(frozen=True)
class Ace:
    ace_type: object
    flags: AceFlags
    mask: object = None
    object_flags: ObjectAceFlags = None
    object_type: uuid.UUID = None
    inherited_object_type: uuid.UUID = None
    sid: Sid = None
    attribute: ClaimSecurityAttribute = None
    application_data: bytes = b''

    @staticmethod
    def get_length(data):
        header = unpack(structure.AceHeader, data)
        return header.aceSize if header else None

    @classmethod
    def from_bytes(cls, data):
        data = bytes(data)
        header = unpack(structure.AceHeader, data)
        if header is None or header.aceSize != len(data):
            return None

        ace_type = lookup(AceType, header.aceType)
        flags = AceFlags(header.aceFlags)
        body = data[len(structure.AceHeader):]

        if ace_type in BASIC_ACE_TYPES or ace_type in (AceType.SYSTEM_MANDATORY_LABEL, AceType.SYSTEM_RESOURCE_ATTRIBUTE):
            mask = _u32(body, 0)
            if mask is None:
                return None
            sid, rest = _split_sid(body[4:])
            if sid is None:
                return None

            if ace_type == AceType.SYSTEM_MANDATORY_LABEL:
                return cls(ace_type, flags, MandatoryMask(mask), sid=sid, application_data=rest)
            if ace_type == AceType.SYSTEM_RESOURCE_ATTRIBUTE:
                attribute = ClaimSecurityAttribute.from_bytes(rest)
                if attribute is None:
                    return None
                return cls(ace_type, flags, AccessMask(mask), sid=sid, attribute=attribute)
            return cls(ace_type, flags, AccessMask(mask), sid=sid, application_data=rest)

        if ace_type in OBJECT_ACE_TYPES:
            object_header = unpack(structure.ObjectAceHeader, body)
            if object_header is None:
                return None
            object_flags = ObjectAceFlags(object_header.flags)
            offset = len(structure.ObjectAceHeader)

            object_type = inherited_object_type = None
            if object_flags & ObjectAceFlags.OBJECT_TYPE_PRESENT:
                object_type = guid_from_bytes(body[offset:offset + 16])
                if object_type is None:
                    return None
                offset += 16
            if object_flags & ObjectAceFlags.INHERITED_OBJECT_TYPE_PRESENT:
                inherited_object_type = guid_from_bytes(body[offset:offset + 16])
                if inherited_object_type is None:
                    return None
                offset += 16

            sid, rest = _split_sid(body[offset:])
            if sid is None:
                return None
            return cls(ace_type, flags, AccessMask(object_header.mask), object_flags,
                       object_type, inherited_object_type, sid, application_data=rest)

        return cls(ace_type, flags, application_data=body)

    def try_to_string(self):
        if self.application_data:
            return None
        code = SDDL_ACE_TYPES.get(self.ace_type)
        if code is None or has_unknown_bits(self.flags):
            return None
        if self.mask is None or self.sid is None or has_unknown_bits(self.mask):
            return None

        if isinstance(self.mask, MandatoryMask):
            rights = _codes(SDDL_MANDATORY_RIGHTS, self.mask)
        else:
            rights = _codes(SDDL_RIGHTS, self.mask)

        object_type = str(self.object_type) if self.object_type else ''
        inherited_object_type = str(self.inherited_object_type) if self.inherited_object_type else ''
        return (f"({code};{_codes(SDDL_ACE_FLAGS, self.flags)};{rights};"
                f"{object_type};{inherited_object_type};{self.sid.to_sddl()})")


@dataclass(frozen=True)
class Acl:
    revision: int
    sbz1: int
    sbz2: int
    entries: list

    @staticmethod
    def get_length(data):
        header = unpack(structure.AclHeader, data)
        if header is None or header.aclRevision not in (2, 4):
            return None
        return header.aclSize

    @classmethod
    def from_bytes(cls, data):
        data = bytes(data)
        header = unpack(structure.AclHeader, data)
        if header is None or header.aclRevision not in (2, 4) or header.aclSize != len(data):
            return None

        offset = len(structure.AclHeader)
        entries = []
        for _ in range(header.aceCount):
            size = Ace.get_length(data[offset:])
            if not size or offset + size > len(data):
                return None
            ace = Ace.from_bytes(data[offset:offset + size])
            if ace is None:
                return None
            entries.append(ace)
            offset += size

        if offset != len(data):
            logging.debug('ACL declares %d bytes but its entries cover %d', len(data), offset)
            return None

        return cls(header.aclRevision, header.sbz1, header.sbz2, entries)

    def try_to_string(self):
        rendered = []
        for ace in self.entries:
            text = ace.try_to_string()
            if text is None:
                return None
            rendered.append(text)
        return ''.join(rendered)


@dataclass(frozen=True)
class SecurityDescriptor:
    revision: int
    sbz1: int
    control: SecurityDescriptorControl
    owner: Sid = None
    group: Sid = None
    sacl: Acl = None
    dacl: Acl = None

    @classmethod
    def from_bytes(cls, data):
        data = bytes(data)
        header = unpack(structure.SecurityDescriptorHeader, data)
        if header is None or header.revision != 1:
            return None
        control = SecurityDescriptorControl(header.control)
        if not control & SecurityDescriptorControl.SELF_RELATIVE:
            return None

        parts = {}
        for key, offset, decoder in (
                ('owner', header.offsetOwner, Sid),
                ('group', header.offsetGroup, Sid),
                ('sacl', header.offsetSacl, Acl),
                ('dacl', header.offsetDacl, Acl)):
            if offset == 0:
                parts[key] = None
                continue
            if offset >= len(data):
                return None
            length = decoder.get_length(data[offset:])
            if length is None or offset + length > len(data):
                return None
            parts[key] = decoder.from_bytes(data[offset:offset + length])
            if parts[key] is None:
                return None

        return cls(header.revision, header.sbz1, control, **parts)

    def try_to_string(self):
        if self.control & SDDL_UNSUPPORTED_CONTROL:
            return None

        out = ''
        if self.owner:
            out += f'O:{self.owner.to_sddl()}'
        if self.group:
            out += f'G:{self.group.to_sddl()}'
        for prefix, acl, protected, auto_inherit_req, auto_inherited in (
                ('D:', self.dacl, SecurityDescriptorControl.DACL_PROTECTED,
                 SecurityDescriptorControl.DACL_AUTO_INHERIT_REQ, SecurityDescriptorControl.DACL_AUTO_INHERITED),
                ('S:', self.sacl, SecurityDescriptorControl.SACL_PROTECTED,
                 SecurityDescriptorControl.SACL_AUTO_INHERIT_REQ, SecurityDescriptorControl.SACL_AUTO_INHERITED)):
            if acl is None:
                continue
            aces = acl.try_to_string()
            if aces is None:
                return None
            out += prefix
            out += _codes((('P', protected), ('AR', auto_inherit_req), ('AI', auto_inherited)), self.control)
            out += aces
        return out


# https://learn.microsoft.com/en-us/openspecs/windows_protocols/ms-adts/de61eb56-b75f-4743-b8af-e9be154b47af
KEY_CREDENTIAL_LINK_RE = re.compile(r'^B:([0-9]+):((?:[0-9A-F][0-9A-F])+):(.*)\Z')
KEY_CREDENTIAL_VERSION = 0x00000200


class KeyCredentialEntryType(enum.IntEnum):
    KEY_ID = 0x01
    KEY_HASH = 0x02
    KEY_MATERIAL = 0x03
    KEY_USAGE = 0x04
    KEY_SOURCE = 0x05
    DEVICE_ID = 0x06
    CUSTOM_KEY_INFORMATION = 0x07
    KEY_APPROXIMATE_LAST_LOGON_TIMESTAMP = 0x08
    KEY_CREATION_TIME = 0x09


class KeyUsage(enum.IntEnum):
    NGC = 0x01
    FIDO = 0x07
    FEK = 0x08


class KeySource(enum.IntEnum):
    AD = 0x00


class CustomKeyInformationFlags(enum.IntFlag):
    ATTESTATION = 0x01
    MFA_NOT_USED = 0x02


class VolumeType(enum.IntEnum):
    NONE = 0x00
    OPERATING_SYSTEM = 0x01
    FIXED_DATA = 0x02
    REMOVABLE_DATA = 0x03


class SupportsNotification(enum.IntEnum):
    FALSE = 0x00
    TRUE = 0x01


class KeyStrength(enum.IntEnum):
    UNKNOWN = 0x00
    WEAK = 0x01
    NORMAL = 0x02


@dataclass(frozen=True)
class CustomKeyInformation:
    version: int
    flags: CustomKeyInformationFlags
    volume_type: object = None
    supports_notification: object = None
    fek_key_version: int = None
    key_strength: object = None
    reserved: bytes = None
    extended_version: int = None
    cbor_data: bytes = None

    @classmethod
    def from_bytes(cls, data):
        if len(data) < 2:
            return None
        version, flags = data[0], CustomKeyInformationFlags(data[1])
        if len(data) == 2:
            return cls(version, flags)

        fields = {'volume_type': lookup(VolumeType, data[2])}
        if len(data) > 3:
            fields['supports_notification'] = lookup(SupportsNotification, data[3])
        if len(data) > 4:
            fields['fek_key_version'] = data[4]
        if len(data) > 5:
            fields['key_strength'] = lookup(KeyStrength, data[5])
        fields['reserved'] = bytes(data[6:16])
        if len(data) > 17:
            size = data[17]
            if len(data) == 18 + size:
                fields.update(extended_version=data[16], cbor_data=bytes(data[18:]))
        return cls(version, flags, **fields)


@dataclass(frozen=True)
class KeyCredentialEntry:
    identifier: object
    value: object


def _key_credential_value(identifier, data):
    if identifier in (KeyCredentialEntryType.KEY_ID, KeyCredentialEntryType.KEY_HASH,
                      KeyCredentialEntryType.KEY_MATERIAL):
        return data
    if identifier == KeyCredentialEntryType.KEY_USAGE:
        return lookup(KeyUsage, data[0]) if len(data) == 1 else None
    if identifier == KeyCredentialEntryType.KEY_SOURCE:
        return lookup(KeySource, data[0]) if len(data) == 1 else None
    if identifier == KeyCredentialEntryType.DEVICE_ID:
        return guid_from_bytes(data) or data
    if identifier == KeyCredentialEntryType.CUSTOM_KEY_INFORMATION:
        return CustomKeyInformation.from_bytes(data)
    if identifier in (KeyCredentialEntryType.KEY_APPROXIMATE_LAST_LOGON_TIMESTAMP,
                      KeyCredentialEntryType.KEY_CREATION_TIME):
        if len(data) != 8:
            return None
        return ticks_or_raw(struct.unpack('<q', data)[0])
    return data


@dataclass(frozen=True)
class KeyCredentialLink:
    version: int
    entries: list
    dn: str

    @classmethod
    def from_string(cls, value):
        m = KEY_CREDENTIAL_LINK_RE.match(value)
        if not m or int(m.group(1)) != len(m.group(2)):
            return None
        return cls.from_bytes(binascii.unhexlify(m.group(2)), m.group(3))

    @classmethod
    def from_bytes(cls, data, dn=''):
        version = _u32(data, 0)
        if version != KEY_CREDENTIAL_VERSION:
            return None

        offset = 4
        entries = []
        while offset < len(data):
            header = unpack(structure.KeyCredentialEntryHeader, data, offset)
            if header is None:
                return None
            start = offset + len(structure.KeyCredentialEntryHeader)
            end = start + header.length
            if end > len(data):
                return None

            identifier = lookup(KeyCredentialEntryType, header.identifier)
            value = _key_credential_value(identifier, bytes(data[start:end]))
            if value is None:
                return None
            entries.append(KeyCredentialEntry(identifier, value))
            offset = end

        return cls(version, entries, dn)
