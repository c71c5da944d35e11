import enum
import functools
import operator


def lookup(enum_cls, value):
    """Member of enum_cls for value, or value itself when it is not a known code."""
    try:
        return enum_cls(value)
    except ValueError:
        return value


@functools.lru_cache
def known_bits(flag_cls):
    return functools.reduce(operator.or_, (m.value for m in flag_cls.__members__.values()), 0)


def has_unknown_bits(flag):
    return int(flag) & ~known_bits(type(flag)) != 0


def flag_names(flag):
    """Names of the known bits set in flag, in definition order."""
    value = int(flag)
    return [name for name, m in type(flag).__members__.items() if m.value and value & m.value == m.value]


# https://learn.microsoft.com/en-us/openspecs/windows_protocols/ms-adts/dd302fd1-0aa7-406b-ad91-2a6b35738557
class UserAccountControl(enum.IntFlag):
    SCRIPT = 0x0001
    ACCOUNTDISABLE = 0x0002
    HOMEDIR_REQUIRED = 0x0008
    LOCKOUT = 0x0010
    PASSWD_NOTREQD = 0x0020
    PASSWD_CANT_CHANGE = 0x0040
    ENCRYPTED_TEXT_PWD_ALLOWED = 0x0080
    TEMP_DUPLICATE_ACCOUNT = 0x0100
    NORMAL_ACCOUNT = 0x0200
    INTERDOMAIN_TRUST_ACCOUNT = 0x0800
    WORKSTATION_TRUST_ACCOUNT = 0x1000
    SERVER_TRUST_ACCOUNT = 0x2000
    DONT_EXPIRE_PASSWORD = 0x10000
    MNS_LOGON_ACCOUNT = 0x20000
    SMARTCARD_REQUIRED = 0x40000
    TRUSTED_FOR_DELEGATION = 0x80000
    NOT_DELEGATED = 0x100000
    USE_DES_KEY_ONLY = 0x200000
    DONT_REQ_PREAUTH = 0x400000
    PASSWORD_EXPIRED = 0x800000
    TRUSTED_TO_AUTH_FOR_DELEGATION = 0x1000000
    NO_AUTH_DATA_REQUIRED = 0x2000000
    PARTIAL_SECRETS_ACCOUNT = 0x04000000
    USE_AES_KEYS = 0x08000000


# stored as a signed 32-bit integer
class GroupType(enum.IntFlag):
    BUILTIN_LOCAL_GROUP = 0x00000001
    ACCOUNT_GROUP = 0x00000002
    RESOURCE_GROUP = 0x00000004
    UNIVERSAL_GROUP = 0x00000008
    APP_BASIC_GROUP = 0x00000010
    APP_QUERY_GROUP = 0x00000020
    SECURITY_ENABLED = 0x80000000


# https://learn.microsoft.com/en-us/openspecs/windows_protocols/ms-adts/1e38247d-8234-4273-9de3-bbf313548631
class GenericSystemFlags(enum.IntFlag):
    DISALLOW_MOVE_ON_DELETE = 0x02000000
    DOMAIN_DISALLOW_MOVE = 0x04000000
    DOMAIN_DISALLOW_RENAME = 0x08000000
    CONFIG_ALLOW_LIMITED_MOVE = 0x10000000
    CONFIG_ALLOW_MOVE = 0x20000000
    CONFIG_ALLOW_RENAME = 0x40000000
    DISALLOW_DELETE = 0x80000000


class CrossRefSystemFlags(enum.IntFlag):
    NC = 0x00000001
    DOMAIN = 0x00000002
    NOT_GC_REPLICATED = 0x00000004
    DISALLOW_MOVE_ON_DELETE = 0x02000000
    DOMAIN_DISALLOW_MOVE = 0x04000000
    DOMAIN_DISALLOW_RENAME = 0x08000000
    CONFIG_ALLOW_LIMITED_MOVE = 0x10000000
    CONFIG_ALLOW_MOVE = 0x20000000
    CONFIG_ALLOW_RENAME = 0x40000000
    DISALLOW_DELETE = 0x80000000


class ClassSchemaSystemFlags(enum.IntFlag):
    SCHEMA_BASE_OBJECT = 0x00000010
    DISALLOW_MOVE_ON_DELETE = 0x02000000
    DOMAIN_DISALLOW_MOVE = 0x04000000
    DOMAIN_DISALLOW_RENAME = 0x08000000
    CONFIG_ALLOW_LIMITED_MOVE = 0x10000000
    CONFIG_ALLOW_MOVE = 0x20000000
    CONFIG_ALLOW_RENAME = 0x40000000
    DISALLOW_DELETE = 0x80000000


class AttributeSchemaSystemFlags(enum.IntFlag):
    ATTR_NOT_REPLICATED = 0x00000001
    ATTR_REQ_PARTIAL_SET_MEMBER = 0x00000002
    ATTR_IS_CONSTRUCTED = 0x00000004
    ATTR_IS_OPERATIONAL = 0x00000008
    SCHEMA_BASE_OBJECT = 0x00000010
    ATTR_IS_RDN = 0x00000020
    DISALLOW_MOVE_ON_DELETE = 0x02000000
    DOMAIN_DISALLOW_MOVE = 0x04000000
    DOMAIN_DISALLOW_RENAME = 0x08000000
    CONFIG_ALLOW_LIMITED_MOVE = 0x10000000
    CONFIG_ALLOW_MOVE = 0x20000000
    CONFIG_ALLOW_RENAME = 0x40000000
    DISALLOW_DELETE = 0x80000000


class InstanceType(enum.IntFlag):
    NC_HEAD = 0x01
    REPLICA_NOT_INSTANTIATED = 0x02
    WRITABLE = 0x04
    NC_ABOVE_HELD = 0x08
    NC_UNDER_CONSTRUCTION = 0x10
    NC_BEING_REMOVED = 0x20


class OptionalFeatureFlags(enum.IntFlag):
    FOREST = 0x01
    DOMAIN = 0x02
    DISABLABLE = 0x04
    SERVER = 0x08


class PasswordProperties(enum.IntFlag):
    COMPLEX = 0x01
    NO_ANON_CHANGE = 0x02
    NO_CLEAR_CHANGE = 0x04
    LOCKOUT_ADMINS = 0x08
    STORE_CLEARTEXT = 0x10
    REFUSE_CHANGE = 0x20
    NO_LWM_OWF_CHANGE = 0x40


class SearchFlags(enum.IntFlag):
    INDEX = 0x0001
    CONTAINER_INDEX = 0x0002
    AMBIGUOUS_NAME_RESOLUTION = 0x0004
    PRESERVE_ON_DELETE = 0x0008
    COPY = 0x0010
    TUPLE_INDEX = 0x0020
    SUBTREE_INDEX = 0x0040
    CONFIDENTIAL = 0x0080
    NEVER_AUDIT_VALUE = 0x0100
    RODC_FILTERED = 0x0200
    EXTENDED_LINK_TRACKING = 0x0400
    BASE_ONLY = 0x0800
    PARTITION_SECRET = 0x1000


class InterSiteTransportOptions(enum.IntFlag):
    IGNORE_SCHEDULES = 0x01
    BRIDGES_REQUIRED = 0x02


class DsConnectionOptions(enum.IntFlag):
    GENERATED = 0x01
    TWOWAY_SYNC = 0x02
    OVERRIDE_NOTIFY_DEFAULT = 0x04
    USE_NOTIFY = 0x08
    DISABLE_INTERSITE_COMPRESSION = 0x10
    USER_OWNED_SCHEDULE = 0x20
    RODC_TOPOLOGY = 0x40


class DsaSettingsOptions(enum.IntFlag):
    IS_GC = 0x01
    DISABLE_INBOUND_REPL = 0x02
    DISABLE_OUTBOUND_REPL = 0x04
    DISABLE_NTDSCONN_XLATE = 0x08
    DISABLE_SPN_REGISTRATION = 0x10
    GENERATE_OWN_TOPO = 0x20


class SiteSettingsOptions(enum.IntFlag):
    AUTO_TOPOLOGY_DISABLED = 0x0001
    TOPL_CLEANUP_DISABLED = 0x0002
    TOPL_MIN_HOPS_DISABLED = 0x0004
    TOPL_DETECT_STALE_DISABLED = 0x0008
    INTER_SITE_AUTO_TOPOLOGY_DISABLED = 0x0010
    GROUP_CACHING_ENABLED = 0x0020
    FORCE_KCC_WHISTLER_BEHAVIOR = 0x0040
    FORCE_KCC_W2K_ELECTION = 0x0080
    RAND_BH_SELECTION_DISABLED = 0x0100
    SCHEDULE_HASHING_ENABLED = 0x0200
    REDUNDANT_SERVER_TOPOLOGY_ENABLED = 0x0400


class SiteConnectionOptions(enum.IntFlag):
    USE_NOTIFY = 0x01
    TWOWAY_SYNC = 0x02
    DISABLE_COMPRESSION = 0x04


class TrustDirection(enum.IntFlag):
    INBOUND = 0x01
    OUTBOUND = 0x02


class TrustAttributes(enum.IntFlag):
    NON_TRANSITIVE = 0x00000001
    UPLEVEL_ONLY = 0x00000002
    QUARANTINED_DOMAIN = 0x00000004
    FOREST_TRANSITIVE = 0x00000008
    CROSS_ORGANIZATION = 0x00000010
    WITHIN_FOREST = 0x00000020
    TREAT_AS_EXTERNAL = 0x00000040
    USES_RC4_ENCRYPTION = 0x00000080
    CROSS_ORGANIZATION_NO_TGT_DELEGATION = 0x00000200
    PIM_TRUST = 0x00000400
    CROSS_ORGANIZATION_ENABLE_TGT_DELEGATION = 0x00000800
    DISABLE_AUTH_TARGET_VALIDATION = 0x00001000


# https://learn.microsoft.com/en-us/openspecs/windows_protocols/ms-kile/6cfc7b50-11ed-4b4d-846d-6f08f0812919
class SupportedEncryptionTypes(enum.IntFlag):
    DES_CBC_CRC = 0x00001
    DES_CBC_MD5 = 0x00002
    RC4_HMAC = 0x00004
    AES128_CTS_HMAC_SHA1_96 = 0x00008
    AES256_CTS_HMAC_SHA1_96 = 0x00010
    AES256_CTS_HMAC_SHA1_96_SK = 0x00020
    FAST_SUPPORTED = 0x10000
    COMPOUND_IDENTITY_SUPPORTED = 0x20000
    CLAIMS_SUPPORTED = 0x40000
    RESOURCE_SID_COMPRESSION_DISABLED = 0x80000


# https://learn.microsoft.com/en-us/openspecs/windows_protocols/ms-adts/b9475e91-f00f-4c25-9117-a48e70584625
class Rid(enum.IntEnum):
    DOMAIN_GROUP_RID_ADMINS = 0x200
    DOMAIN_GROUP_RID_USERS = 0x201
    DOMAIN_GROUP_RID_GUESTS = 0x202
    DOMAIN_GROUP_RID_COMPUTERS = 0x203
    DOMAIN_GROUP_RID_CONTROLLERS = 0x204
    DOMAIN_GROUP_RID_CERT_ADMINS = 0x205
    DOMAIN_GROUP_RID_SCHEMA_ADMINS = 0x206
    DOMAIN_GROUP_RID_ENTERPRISE_ADMINS = 0x207
    DOMAIN_GROUP_RID_POLICY_ADMINS = 0x208
    DOMAIN_GROUP_RID_READONLY_CONTROLLERS = 0x209
    DOMAIN_ALIAS_RID_ADMINS = 0x220
    DOMAIN_ALIAS_RID_USERS = 0x221
    DOMAIN_ALIAS_RID_GUESTS = 0x222
    DOMAIN_ALIAS_RID_POWER_USERS = 0x223
    DOMAIN_ALIAS_RID_ACCOUNT_OPS = 0x224
    DOMAIN_ALIAS_RID_SYSTEM_OPS = 0x225
    DOMAIN_ALIAS_RID_PRINT_OPS = 0x226
    DOMAIN_ALIAS_RID_BACKUP_OPS = 0x227
    DOMAIN_ALIAS_RID_REPLICATOR = 0x228
    DOMAIN_ALIAS_RID_RAS_SERVERS = 0x229
    DOMAIN_ALIAS_RID_PREW2KCOMPACCESS = 0x22A
    DOMAIN_ALIAS_RID_REMOTE_DESKTOP_USERS = 0x22B
    DOMAIN_ALIAS_RID_NETWORK_CONFIGURATION_OPS = 0x22C
    DOMAIN_ALIAS_RID_INCOMING_FOREST_TRUST_BUILDERS = 0x22D
    DOMAIN_ALIAS_RID_MONITORING_USERS = 0x22E
    DOMAIN_ALIAS_RID_LOGGING_USERS = 0x22F
    DOMAIN_ALIAS_RID_AUTHORIZATIONACCESS = 0x230
    DOMAIN_ALIAS_RID_TS_LICENSE_SERVERS = 0x231
    DOMAIN_ALIAS_RID_DCOM_USERS = 0x232
    DOMAIN_ALIAS_RID_IUSERS = 0x238
    DOMAIN_ALIAS_RID_CRYPTO_OPERATORS = 0x239
    DOMAIN_ALIAS_RID_CACHEABLE_PRINCIPALS_GROUP = 0x23B
    DOMAIN_ALIAS_RID_NON_CACHEABLE_PRINCIPALS_GROUP = 0x23C


class SamAccountType(enum.IntEnum):
    SAM_DOMAIN_OBJECT = 0x0
    SAM_GROUP_OBJECT = 0x10000000
    SAM_NON_SECURITY_GROUP_OBJECT = 0x10000001
    SAM_ALIAS_OBJECT = 0x20000000
    SAM_NON_SECURITY_ALIAS_OBJECT = 0x20000001
    SAM_USER_OBJECT = 0x30000000
    SAM_MACHINE_ACCOUNT = 0x30000001
    SAM_TRUST_ACCOUNT = 0x30000002
    SAM_APP_BASIC_GROUP = 0x40000000
    SAM_APP_QUERY_GROUP = 0x40000001
    SAM_ACCOUNT_TYPE_MAX = 0x7fffffff


class FunctionalityLevel(enum.IntEnum):
    WIN2000 = 0
    WIN2003_MIXED = 1
    WIN2003 = 2
    WIN2008 = 3
    WIN2008R2 = 4
    WIN2012 = 5
    WIN2012R2 = 6
    WIN2016 = 7


class TrustType(enum.IntEnum):
    DOWNLEVEL = 1
    UPLEVEL = 2
    MIT = 3
    DCE = 4
    AAD = 5


class ObjectClassCategory(enum.IntEnum):
    STRUCTURAL = 1
    ABSTRACT = 2
    AUXILIARY = 3


# mostly matches the ASN.1 tags
class OmSyntax(enum.IntEnum):
    BOOLEAN = 1
    INTEGER = 2
    BIT_STRING = 3
    OCTET_STRING = 4
    NULL = 5
    OBJECT_IDENTIFIER = 6
    OBJECT_DESCRIPTOR = 7
    ENCODING_STRING = 8
    ENUMERATION = 10
    NUMERIC_STRING = 18
    PRINTABLE_STRING = 19
    TELETEX_STRING = 20
    VIDEOTEX_STRING = 21
    IA5_STRING = 22
    UTC_TIME_STRING = 23
    GENERALIZED_TIME_STRING = 24
    GRAPHIC_STRING = 25
    VISIBLE_STRING = 26
    GENERAL_STRING = 27
    UNICODE_STRING = 64
    I8 = 65
    OBJECT_SECURITY_DESCRIPTOR = 66
    OBJECT = 127


class ReplAuthenticationMode(enum.IntEnum):
    NEGOTIATE_PASS_THROUGH = 1
    NEGOTIATE = 2
    MUTUAL_AUTH_REQUIRED = 3


class ServerState(enum.IntEnum):
    ENABLED = 1
    DISABLED = 2


class AttributeSyntax(enum.Enum):
    DISTINGUISHED_NAME = '2.5.5.1'
    OBJECT_IDENTIFIER = '2.5.5.2'
    STRING_CASE = '2.5.5.3'
    STRING_TELETEX = '2.5.5.4'
    STRING_IA5 = '2.5.5.5'
    STRING_NUMERIC = '2.5.5.6'
    DN_BINARY = '2.5.5.7'
    BOOLEAN = '2.5.5.8'
    INTEGER = '2.5.5.9'
    OCTET_STRING = '2.5.5.10'
    TIME = '2.5.5.11'
    STRING_UNICODE = '2.5.5.12'
    ADDRESS = '2.5.5.13'
    DN_STRING = '2.5.5.14'
    NT_SECURITY_DESCRIPTOR = '2.5.5.15'
    LARGE_INTEGER = '2.5.5.16'
    SID = '2.5.5.17'


class OmObjectClass(enum.Enum):
    OR_NAME = b'\x56\x06\x01\x02\x05\x0b\x1d'
    ACCESS_POINT = b'\x2b\x0c\x02\x87\x73\x1c\x00\x85\x3e'
