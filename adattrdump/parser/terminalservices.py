from adattrdump.parser.flags import lookup

from dataclasses import dataclass
from enum import IntEnum, IntFlag
import datetime
import logging

from frozendict import frozendict

USER_PARAMETERS_SIGNATURE = 0x0050  # 'P'
LEGACY_DATA_UNITS = 48


# https://learn.microsoft.com/en-us/openspecs/windows_protocols/ms-tsts/0bd1a91d-3cd6-4e97-b5fa-5cf35d90f005
class CtxCfgFlags1(IntFlag):
    DISABLE_AUDIO_REDIR = 0x00000004
    WALLPAPER_DISABLED = 0x00000008
    DISABLE_EXE = 0x00000010
    DISABLE_CLIPBOARD_REDIR = 0x00000020
    DISABLE_LPT_PORT_REDIR = 0x00000040
    DISABLE_COM_PORT_REDIR = 0x00000080
    DISABLE_DRIVE_REDIR = 0x00000100
    DISABLE_PRINTER_REDIR = 0x00000200
    USE_DEFAULT_GINA = 0x00000400
    HOME_DIRECTORY_MAP_ROOT = 0x00000800
    DISABLE_ENCRYPTION = 0x00001000
    FORCE_REDIRECTED_PRINTER_AS_DEFAULT = 0x00002000
    AUTO_REDIRECT_PRINTERS = 0x00004000
    AUTO_REDIRECT_DRIVES = 0x00008000
    LOGON_DISABLED = 0x00010000
    RECONNECT_SAME_SESSION_FROM_ANY_CLIENT = 0x00020000
    LOGOFF_NOT_DISCONNECT_IDLE_SESSION = 0x00040000
    IGNORE_CLIENT_CREDENTIALS_AND_PROMPT = 0x00080000
    INHERIT_SECURITY = 0x00100000
    INHERIT_AUTO_REDIRECT = 0x00200000
    INHERIT_MAX_IDLE_TIME = 0x00400000
    INHERIT_MAX_DISCONNECTION_TIME = 0x00800000
    INHERIT_MAX_SESSION_TIME = 0x01000000
    INHERIT_SHADOW = 0x02000000
    INHERIT_CALLBACK_NUMBER = 0x04000000
    INHERIT_CALLBACK = 0x08000000
    INHERIT_INITIAL_PROGRAM = 0x10000000
    INHERIT_RECONNECT_SAME_SESSION = 0x20000000
    INHERIT_LOGOFF_NOT_DISCONNECT_IDLE = 0x40000000
    INHERIT_AUTO_LOGON = 0x80000000


class ShadowType(IntEnum):
    DISABLE = 0
    ENABLE_INPUT_NOTIFY = 1
    ENABLE_INPUT_NO_NOTIFY = 2
    ENABLE_NO_INPUT_NOTIFY = 3
    ENABLE_NO_INPUT_NO_NOTIFY = 4


def _u32(convert):
    def decode(value):
        if len(value) != 4:
            return None
        return convert(int.from_bytes(value, 'little'))
    return decode


def _u8(value):
    if len(value) != 1:
        return None
    return value[0]


def _string(value):
    try:
        return value.decode('utf-8')
    except UnicodeDecodeError:
        return None


def _minutes(value):
    return datetime.timedelta(minutes=value)


# parameter name -> decoder returning None when the value does not have the expected shape
PARAMETER_DECODERS = frozendict({
    'CtxCfgPresent': _u32(int),
    'CtxCfgFlags1': _u32(CtxCfgFlags1),
    'CtxCallBack': _u32(int),
    'CtxKeyboardLayout': _u32(int),
    'CtxNWLogonServer': _u32(int),
    'CtxMaxConnectionTime': _u32(_minutes),
    'CtxMaxDisconnectionTime': _u32(_minutes),
    'CtxMaxIdleTime': _u32(_minutes),
    'CtxShadow': _u32(lambda v: lookup(ShadowType, v)),
    'CtxMinEncryptionLevel': _u8,
    'CtxWFHomeDir': _string,
    'CtxWFHomeDirDrive': _string,
    'CtxInitialProgram': _string,
    'CtxWFProfilePath': _string,
    'CtxWorkDirectory': _string,
    'CtxCallbackNumber': _string,
})


@dataclass(frozen=True)
class UserParameter:
    """One Terminal Services setting; value is raw bytes for unknown names, types or shapes."""
    name: str
    parameter_type: int
    value: object

    @classmethod
    def decode(cls, parameter_type, name, value):
        decoder = PARAMETER_DECODERS.get(name)
        if parameter_type == 1 and decoder is not None:
            decoded = decoder(value)
            if decoded is not None:
                return cls(name, parameter_type, decoded)
        return cls(name, parameter_type, value)


def _nibble(char):
    if 0x30 <= char <= 0x39:
        return char - 0x30
    if 0x61 <= char <= 0x66:
        return char - 0x61 + 10
    if 0x41 <= char <= 0x46:
        return char - 0x41 + 10
    return None


def _unsquish(units):
    """Each UTF-16 unit carries one byte as two hex digit characters, high nibble in the low byte."""
    out = bytearray()
    for unit in units:
        high, low = _nibble(unit & 0xFF), _nibble(unit >> 8)
        if high is None or low is None:
            return None
        out.append((high << 4) | low)
    return bytes(out)


def _from_units(units):
    try:
        return b''.join(u.to_bytes(2, 'little') for u in units).decode('utf-16-le')
    except UnicodeDecodeError:
        return None


# userParameters: the directory hands out UTF-16 data that went through UTF-8, so it is decoded from text
@dataclass(frozen=True)
class UserParameters:
    legacy_data: str
    parameters: list

    @classmethod
    def from_string(cls, text):
        raw = text.encode('utf-16-le', errors='surrogatepass')
        units = [int.from_bytes(raw[i:i + 2], 'little') for i in range(0, len(raw), 2)]
        if len(units) < LEGACY_DATA_UNITS + 2:
            return None

        legacy = units[:LEGACY_DATA_UNITS]
        legacy_data = None if all(u == 0x20 for u in legacy) else _from_units(legacy)
        if units[LEGACY_DATA_UNITS] != USER_PARAMETERS_SIGNATURE:
            return None

        parameters = []
        pos = LEGACY_DATA_UNITS + 2
        for _ in range(units[LEGACY_DATA_UNITS + 1]):
            if pos + 3 > len(units):
                return None
            name_bytes, value_bytes, parameter_type = units[pos:pos + 3]
            pos += 3
            if name_bytes % 2 or value_bytes % 2:
                return None
            name_end = pos + name_bytes // 2
            value_end = name_end + value_bytes // 2
            if value_end > len(units):
                return None

            name = _from_units(units[pos:name_end])
            value = _unsquish(units[name_end:value_end])
            if name is None or value is None:
                logging.debug('Undecodable userParameters entry at unit %d', pos)
                return None
            parameters.append(UserParameter.decode(parameter_type, name, value))
            pos = value_end

        return cls(legacy_data, parameters)
