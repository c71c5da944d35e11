from adattrdump.parser.terminalservices import CtxCfgFlags1, ShadowType, UserParameter, UserParameters

import datetime


def squish(value):
    # one UTF-16 unit per byte, high nibble digit in the low byte
    return ''.join(chr(ord(f'{b:02x}'[0]) | (ord(f'{b:02x}'[1]) << 8)) for b in value)


def parameter(name, value, parameter_type=1):
    return chr(len(name) * 2) + chr(len(value) * 2) + chr(parameter_type) + name + squish(value)


def user_parameters(*parameters, legacy=' ' * 48):
    return legacy + 'P' + chr(len(parameters)) + ''.join(parameters)


def test_user_parameters():
    text = user_parameters(
        parameter('CtxCfgFlags1', bytes.fromhex('0c000000')),
        parameter('CtxMaxIdleTime', bytes.fromhex('0f000000')),
        parameter('CtxShadow', bytes.fromhex('01000000')),
        parameter('CtxMinEncryptionLevel', b'\x02'),
        parameter('CtxWFProfilePath', b'\\\\srv\\profiles'),
    )
    params = UserParameters.from_string(text)
    assert params.legacy_data is None
    assert params.parameters == [
        UserParameter('CtxCfgFlags1', 1, CtxCfgFlags1.DISABLE_AUDIO_REDIR | CtxCfgFlags1.WALLPAPER_DISABLED),
        UserParameter('CtxMaxIdleTime', 1, datetime.timedelta(minutes=15)),
        UserParameter('CtxShadow', 1, ShadowType.ENABLE_INPUT_NOTIFY),
        UserParameter('CtxMinEncryptionLevel', 1, 2),
        UserParameter('CtxWFProfilePath', 1, '\\\\srv\\profiles'),
    ]


def test_user_parameters_keeps_unknown_values_raw():
    text = user_parameters(
        parameter('Foo', b'\xaa'),
        parameter('CtxShadow', bytes.fromhex('01000000'), parameter_type=2),
        parameter('CtxShadow', b'\x01\x00'),
        legacy='legacy'.ljust(48, '\x00'),
    )
    params = UserParameters.from_string(text)
    assert params.legacy_data == 'legacy'.ljust(48, '\x00')
    assert params.parameters == [
        UserParameter('Foo', 1, b'\xaa'),
        UserParameter('CtxShadow', 2, bytes.fromhex('01000000')),
        UserParameter('CtxShadow', 1, b'\x01\x00'),
    ]


def test_user_parameters_malformed():
    assert UserParameters.from_string('') is None
    assert UserParameters.from_string(' ' * 49) is None
    # missing signature
    assert UserParameters.from_string(' ' * 48 + 'Q\x00') is None
    # more parameters announced than present
    assert UserParameters.from_string(user_parameters(parameter('Foo', b'\xaa'))[:-1]) is None
    # value characters that are not hex digits
    assert UserParameters.from_string(user_parameters('\x06\x02\x01Fooz')) is None


def test_user_parameters_without_parameters():
    params = UserParameters.from_string(user_parameters())
    assert params.legacy_data is None
    assert params.parameters == []
