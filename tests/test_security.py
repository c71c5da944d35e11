from adattrdump.parser.security import (Ace, AceFlags, AceType, AccessMask, Acl, ClaimSecurityAttribute,
                                         ClaimValueType, CustomKeyInformation, KeyCredentialEntryType,
                                         KeyCredentialLink, KeySource, KeyUsage, SecurityDescriptor,
                                         SecurityDescriptorControl, VolumeType)

import datetime
import uuid

OWNER_BA = '01020000000000052000000020020000'
GROUP_SY = '010100000000000512000000'
ACE_ALLOW_AU = '00021400' '94000200' '01010000000000050b000000'
DACL = '02001c0001000000' + ACE_ALLOW_AU

# self-relative, DACL present; owner at 20, group at 36, DACL at 48
SD = bytes.fromhex('01000480' '14000000' '24000000' '00000000' '30000000' + OWNER_BA + GROUP_SY + DACL)

FORCE_CHANGE_PASSWORD = uuid.UUID('00299570-246d-11d0-a768-00aa006e0529')
OBJECT_ACE = bytes.fromhex('05002800' '00010000' '01000000') + FORCE_CHANGE_PASSWORD.bytes_le + bytes.fromhex(
    '010100000000000100000000')


def with_byte(data, offset, value):
    return data[:offset] + bytes([value]) + data[offset + 1:]


def test_security_descriptor_decode():
    sd = SecurityDescriptor.from_bytes(SD)
    assert sd.control == SecurityDescriptorControl.SELF_RELATIVE | SecurityDescriptorControl.DACL_PRESENT
    assert str(sd.owner) == 'S-1-5-32-544'
    assert str(sd.group) == 'S-1-5-18'
    assert sd.sacl is None
    assert len(sd.dacl.entries) == 1

    ace = sd.dacl.entries[0]
    assert ace.ace_type == AceType.ACCESS_ALLOWED
    assert ace.flags == AceFlags.CONTAINER_INHERIT
    assert ace.mask == (AccessMask.DS_LIST_CHILDREN | AccessMask.DS_READ_PROP | AccessMask.DS_LIST_OBJECT
                        | AccessMask.READ_CONTROL)
    assert str(ace.sid) == 'S-1-5-11'


def test_security_descriptor_sddl():
    assert SecurityDescriptor.from_bytes(SD).try_to_string() == 'O:BAG:SYD:(A;CI;LCRPLORC;;;AU)'


def test_security_descriptor_protected_dacl():
    # DACL_PROTECTED | DACL_AUTO_INHERITED
    data = with_byte(SD, 3, 0x94)
    assert SecurityDescriptor.from_bytes(data).try_to_string() == 'O:BAG:SYD:PAI(A;CI;LCRPLORC;;;AU)'


def test_sddl_bails_out_on_unknown_ace_flag():
    # ACE flags byte sits right after the ACE type at offset 56 + 1
    data = with_byte(SD, 57, 0x22)
    sd = SecurityDescriptor.from_bytes(data)
    assert sd is not None
    assert sd.try_to_string() is None


def test_sddl_bails_out_on_unknown_mask_bit():
    # bit 0x200 of the access mask has no right code
    data = with_byte(SD, 61, 0x02)
    sd = SecurityDescriptor.from_bytes(data)
    assert sd is not None
    assert sd.try_to_string() is None


def test_sddl_bails_out_on_defaulted_owner():
    data = with_byte(SD, 2, 0x05)
    sd = SecurityDescriptor.from_bytes(data)
    assert sd.control & SecurityDescriptorControl.OWNER_DEFAULTED
    assert sd.try_to_string() is None


def test_security_descriptor_malformed():
    assert SecurityDescriptor.from_bytes(b'') is None
    assert SecurityDescriptor.from_bytes(with_byte(SD, 0, 2)) is None
    # not self-relative
    assert SecurityDescriptor.from_bytes(with_byte(SD, 3, 0x00)) is None
    # DACL offset past the end
    assert SecurityDescriptor.from_bytes(with_byte(SD, 16, 0xFF)) is None
    for cut in range(len(SD)):
        assert SecurityDescriptor.from_bytes(SD[:cut]) is None


def test_acl_size_must_match():
    assert Acl.from_bytes(bytes.fromhex(DACL)) is not None
    assert Acl.from_bytes(bytes.fromhex(DACL) + b'\x00') is None
    assert Acl.get_length(bytes.fromhex(DACL)) == 28


def test_object_ace():
    ace = Ace.from_bytes(OBJECT_ACE)
    assert ace.ace_type == AceType.ACCESS_ALLOWED_OBJECT
    assert ace.object_type == FORCE_CHANGE_PASSWORD
    assert ace.inherited_object_type is None
    assert ace.try_to_string() == '(OA;;CR;00299570-246d-11d0-a768-00aa006e0529;;WD)'


def test_ace_with_application_data_has_no_sddl():
    data = bytes.fromhex('0000180094000200' '01010000000000050b000000' 'deadbeef')
    ace = Ace.from_bytes(data)
    assert ace.application_data == bytes.fromhex('deadbeef')
    assert ace.try_to_string() is None


def test_unknown_ace_type_keeps_body():
    ace = Ace.from_bytes(bytes.fromhex('42000800aabbccdd'))
    assert ace.ace_type == 0x42
    assert ace.application_data == bytes.fromhex('aabbccdd')
    assert ace.try_to_string() is None


def test_claim_security_attribute():
    data = bytes.fromhex('1c000000' '0100' '0000' '00000000' '01000000' '14000000' '0500000000000000'
                         '610062000000')
    claim = ClaimSecurityAttribute.from_bytes(data)
    assert claim.name == 'ab'
    assert claim.value_type == ClaimValueType.INT64
    assert claim.values == [5]


def test_claim_security_attribute_unknown_type():
    data = bytes.fromhex('10000000' '0400' '0000' '00000000' '00000000' '61000000')
    assert ClaimSecurityAttribute.from_bytes(data) is None


def key_credential_blob(device_id, ticks):
    return (bytes.fromhex('00020000')
            + bytes.fromhex('0100' '04' '01')
            + bytes.fromhex('0100' '05' '00')
            + bytes.fromhex('1000' '06') + device_id.bytes_le
            + bytes.fromhex('0800' '09') + ticks.to_bytes(8, 'little')
            + bytes.fromhex('0400' '07' '01000000'))


def test_key_credential_link():
    device_id = uuid.UUID('5fef3270-3934-46f3-8b63-b5fc9c55f981')
    blob = key_credential_blob(device_id, 116444736000000000).hex().upper()
    link = KeyCredentialLink.from_string(f'B:{len(blob)}:{blob}:CN=test,DC=example,DC=com')

    assert link.dn == 'CN=test,DC=example,DC=com'
    assert [e.identifier for e in link.entries] == [
        KeyCredentialEntryType.KEY_USAGE, KeyCredentialEntryType.KEY_SOURCE, KeyCredentialEntryType.DEVICE_ID,
        KeyCredentialEntryType.KEY_CREATION_TIME, KeyCredentialEntryType.CUSTOM_KEY_INFORMATION,
    ]
    assert link.entries[0].value == KeyUsage.NGC
    assert link.entries[1].value == KeySource.AD
    assert link.entries[2].value == device_id
    assert link.entries[3].value == datetime.datetime(1970, 1, 1, tzinfo=datetime.timezone.utc)

    custom = link.entries[4].value
    assert isinstance(custom, CustomKeyInformation)
    assert custom.version == 1
    assert custom.volume_type == VolumeType.NONE


def test_key_credential_link_rejects_bad_envelope():
    blob = key_credential_blob(uuid.UUID(int=0), 0).hex().upper()
    assert KeyCredentialLink.from_string(f'B:{len(blob) - 2}:{blob}:CN=x') is None
    assert KeyCredentialLink.from_string(f'B:{len(blob)}:{blob.lower()}:CN=x') is None
    assert KeyCredentialLink.from_string('CN=x') is None


def test_key_credential_link_rejects_bad_version():
    assert KeyCredentialLink.from_bytes(bytes.fromhex('00010000')) is None
    # entry length runs past the end
    assert KeyCredentialLink.from_bytes(bytes.fromhex('00020000' '0500' '01' 'aabb')) is None
