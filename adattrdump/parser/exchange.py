from adattrdump.parser.bits import bit_is_set, extract_bits, parse_integer, to_unsigned

from dataclasses import dataclass
from enum import Enum, IntEnum, IntFlag

from frozendict import frozendict


class AddressBookFlags(IntFlag):
    SHOW_GAL_AS_DEFAULT_VIEW = 0x1


class ProvisioningFlags(IntFlag):
    RESERVED_FLAG = 0x1
    EXCLUDED_FROM_PROVISIONING = 0x2
    SUSPENDED_FROM_PROVISIONING = 0x4
    OUT_OF_SERVICE = 0x8
    EXCLUDED_FROM_INITIAL_PROVISIONING = 0x10
    EXCLUDED_FROM_PROVISIONING_BY_SPACE_MONITORING = 0x20
    EXCLUDED_FROM_PROVISIONING_BY_SCHEMA_VERSION_MONITORING = 0x40
    EXCLUDED_FROM_PROVISIONING_FOR_DRAINING = 0x80
    EXCLUDED_FROM_PROVISIONING_BY_OPERATOR = 0x100
    EXCLUDED_FROM_PROVISIONING_DUE_TO_LOGICAL_CORRUPTION = 0x200


class ElcMailboxFlags(IntFlag):
    EXPIRATION_SUSPENDED = 0x1
    ELC_V2 = 0x2
    DISABLE_CALENDAR_LOGGING = 0x4
    LITIGATION_HOLD = 0x8
    SINGLE_ITEM_RECOVERY = 0x10
    VALID_ARCHIVE_DATABASE = 0x20
    SHOULD_USE_DEFAULT_RETENTION_POLICY = 0x80
    ENABLE_SITE_MAILBOX_MESSAGE_DEDUP = 0x100
    ELC_PROCESSING_DISABLED = 0x200
    COMPLIANCE_TAG_HOLD = 0x400


class SoftDeletedStatus(IntFlag):
    REMOVED = 0x1
    DISABLED = 0x2
    INCLUDE_IN_GARBAGE_COLLECTION = 0x4
    INACTIVE = 0x8


# 64-bit
class RecipientTypeDetails(IntFlag):
    USER_MAILBOX = 0x1
    LINKED_MAILBOX = 0x2
    SHARED_MAILBOX = 0x4
    LEGACY_MAILBOX = 0x8
    ROOM_MAILBOX = 0x10
    EQUIPMENT_MAILBOX = 0x20
    MAIL_CONTACT = 0x40
    MAIL_USER = 0x80
    MAIL_UNIVERSAL_DISTRIBUTION_GROUP = 0x100
    MAIL_NON_UNIVERSAL_GROUP = 0x200
    MAIL_UNIVERSAL_SECURITY_GROUP = 0x400
    DYNAMIC_DISTRIBUTION_GROUP = 0x800
    PUBLIC_FOLDER = 0x1000
    SYSTEM_ATTENDANT_MAILBOX = 0x2000
    SYSTEM_MAILBOX = 0x4000
    MAIL_FOREST_CONTACT = 0x8000
    USER = 0x10000
    CONTACT = 0x20000
    UNIVERSAL_DISTRIBUTION_GROUP = 0x40000
    UNIVERSAL_SECURITY_GROUP = 0x80000
    NON_UNIVERSAL_GROUP = 0x100000
    DISABLED_USER = 0x200000
    MICROSOFT_EXCHANGE = 0x400000
    ARBITRATION_MAILBOX = 0x800000
    MAILBOX_PLAN = 0x1000000
    LINKED_USER = 0x2000000
    ROOM_LIST = 0x10000000
    DISCOVERY_MAILBOX = 0x20000000
    ROLE_GROUP = 0x40000000
    REMOTE_USER_MAILBOX = 0x80000000
    COMPUTER = 0x1_00000000
    REMOTE_ROOM_MAILBOX = 0x2_00000000
    REMOTE_EQUIPMENT_MAILBOX = 0x4_00000000
    REMOTE_SHARED_MAILBOX = 0x8_00000000
    PUBLIC_FOLDER_MAILBOX = 0x10_00000000
    TEAM_MAILBOX = 0x20_00000000
    REMOTE_TEAM_MAILBOX = 0x40_00000000
    MONITORING_MAILBOX = 0x80_00000000
    GROUP_MAILBOX = 0x100_00000000
    LINKED_ROOM_MAILBOX = 0x200_00000000
    AUDIT_LOG_MAILBOX = 0x400_00000000
    REMOTE_GROUP_MAILBOX = 0x800_00000000
    SCHEDULING_MAILBOX = 0x1000_00000000
    GUEST_MAIL_USER = 0x2000_00000000
    AUX_AUDIT_LOG_MAILBOX = 0x4000_00000000
    SUPERVISORY_REVIEW_POLICY_MAILBOX = 0x8000_00000000
    EXCHANGE_SECURITY_GROUP = 0x1_0000_00000000


class ModerationFlags(IntFlag):
    NOTIFY_INTERNAL = 0x2
    NOTIFY_EXTERNAL = 0x4


class TransportSettingFlags(IntFlag):
    MESSAGE_TRACKING_READ_STATUS_DISABLED = 0x4
    INTERNAL_ONLY = 0x8
    OPEN_DOMAIN_ROUTING_DISABLED = 0x10
    QUERY_BASE_DN_RESTRICTION_ENABLED = 0x20
    ALLOW_ARCHIVE_ADDRESS_SYNC = 0x40
    MESSAGE_COPY_FOR_SENT_AS_ENABLED = 0x80
    MESSAGE_COPY_FOR_SEND_ON_BEHALF_ENABLED = 0x100


class MobileMailboxFlags(IntFlag):
    HAS_DEVICE_PARTNERSHIP = 0x1
    ACTIVE_SYNC_SUPPRESS_READ_RECEIPT = 0x2


class LocalizationFlags(IntFlag):
    LOCALIZATION_DISABLED = 0x1


class MailboxFolderSet(IntFlag):
    GLOBAL_ADDRESS_LIST_ENABLED = 0x00000001
    CALENDAR_ENABLED = 0x00000002
    CONTACTS_ENABLED = 0x00000004
    TASKS_ENABLED = 0x00000008
    JOURNAL_ENABLED = 0x00000010
    NOTES_ENABLED = 0x00000020
    PUBLIC_FOLDERS_ENABLED = 0x00000040
    ORGANIZATION_ENABLED = 0x00000080
    REMINDERS_AND_NOTIFICATIONS_ENABLED = 0x00000100
    PREMIUM_CLIENT_ENABLED = 0x00000200
    SPELL_CHECKER_ENABLED = 0x00000400
    S_MIME_ENABLED = 0x00000800
    SEARCH_FOLDERS_ENABLED = 0x00001000
    SIGNATURES_ENABLED = 0x00002000
    RULES_ENABLED = 0x00004000
    THEME_SELECTION_ENABLED = 0x00008000
    JUNK_EMAIL_ENABLED = 0x00010000
    UM_INTEGRATION_ENABLED = 0x00020000
    WSS_ACCESS_ON_PUBLIC_COMPUTERS_ENABLED = 0x00040000
    WSS_ACCESS_ON_PRIVATE_COMPUTERS_ENABLED = 0x00080000
    UNC_ACCESS_ON_PUBLIC_COMPUTERS_ENABLED = 0x00100000
    UNC_ACCESS_ON_PRIVATE_COMPUTERS_ENABLED = 0x00200000
    ACTIVE_SYNC_INTEGRATION_ENABLED = 0x00400000
    EXPLICIT_LOGON_ENABLED = 0x00800000
    ALL_ADDRESS_LISTS_ENABLED = 0x01000000
    RECOVER_DELETED_ITEMS_ENABLED = 0x02000000
    CHANGE_PASSWORD_ENABLED = 0x04000000
    INSTANT_MESSAGING_ENABLED = 0x08000000
    TEXT_MESSAGING_ENABLED = 0x10000000
    OWA_LIGHT_ENABLED = 0x20000000
    DELEGATE_ACCESS_ENABLED = 0x40000000
    IRM_ENABLED = 0x80000000


class MailboxAuditOperations(IntFlag):
    UPDATE = 0x00001
    COPY = 0x00002
    MOVE = 0x00004
    MOVE_TO_DELETED_ITEMS = 0x00008
    SOFT_DELETE = 0x00010
    HARD_DELETE = 0x00020
    FOLDER_BIND = 0x00040
    SEND_AS = 0x00080
    SEND_ON_BEHALF = 0x00100
    MESSAGE_BIND = 0x00200
    CREATE = 0x00400
    MAILBOX_LOGIN = 0x00800
    UPDATE_FOLDER_PERMISSIONS = 0x01000
    ADD_FOLDER_PERMISSIONS = 0x02000
    MODIFY_FOLDER_PERMISSIONS = 0x04000
    REMOVE_FOLDER_PERMISSIONS = 0x08000
    UPDATE_INBOX_RULES = 0x10000
    UPDATE_CALENDAR_DELEGATION = 0x20000


class DeviceClientType(IntFlag):
    EAS = 0x1
    MOWA = 0x2
    OUTLOOK = 0x4
    REST = 0x8


@dataclass(frozen=True)
class TextMessagingState:
    m2p_priority: int
    p2p_priority: int
    identity: int
    delivery_point_type: int
    m2p_enabled: bool
    p2p_enabled: bool
    shared: bool

    @classmethod
    def from_string(cls, text):
        value = parse_integer(text, 32)
        # top bit set means an unknown layout
        if value is None or value < 0:
            return None
        return cls(
            m2p_priority=extract_bits(value, 0, 8),
            p2p_priority=extract_bits(value, 8, 8),
            identity=extract_bits(value, 16, 8),
            delivery_point_type=extract_bits(value, 24, 4),
            m2p_enabled=bit_is_set(value, 28),
            p2p_enabled=bit_is_set(value, 29),
            shared=bit_is_set(value, 30),
        )


# (major, minor, build_major, build_minor, build, build_revision) -> product
EXCHANGE_RELEASES = frozendict({
    (0, 0, 6, 5, 6500, 0): 'Exchange2003',
    (0, 1, 8, 0, 535, 0): 'Exchange2007',
    (0, 10, 14, 0, 100, 0): 'Exchange2010',
    (0, 20, 15, 0, 0, 0): 'Exchange2012',
    (0, 30, 15, 1, 0, 0): 'Exchange2016',
    (0, 40, 15, 2, 0, 0): 'Exchange2019',
    (0, 50, 15, 20, 0, 0): 'Exchange2020',
})


# msExchVersion
@dataclass(frozen=True)
class ExchangeVersion:
    major: int
    minor: int
    build_major: int
    build_minor: int
    build: int
    build_revision: int

    @classmethod
    def from_string(cls, text):
        value = parse_integer(text, 64)
        if value is None:
            return None
        value = to_unsigned(value, 64)
        return cls(
            major=extract_bits(value, 50, 8),
            minor=extract_bits(value, 42, 8),
            build_major=extract_bits(value, 34, 8),
            build_minor=extract_bits(value, 26, 8),
            build=extract_bits(value, 10, 16),
            build_revision=extract_bits(value, 0, 10),
        )

    @property
    def friendly_name(self):
        return EXCHANGE_RELEASES.get((self.major, self.minor, self.build_major, self.build_minor,
                                      self.build, self.build_revision))


class MessageFormat(Enum):
    TEXT = 'text'
    MIME = 'mime'


class BodyFormat(IntEnum):
    TEXT = 0
    HTML = 1
    TEXT_AND_HTML = 2


class MacAttachmentFormat(IntEnum):
    BINHEX = 0
    UUENCODE = 1
    APPLE_SINGLE = 2
    APPLE_DOUBLE = 3


@dataclass(frozen=True)
class InternetEncoding:
    use_preferred_message_format: bool
    message_format: MessageFormat
    body_format: BodyFormat
    mac_attachment_format: MacAttachmentFormat

    @classmethod
    def from_string(cls, text):
        value = parse_integer(text, 32)
        if value is None:
            return None
        value = to_unsigned(value, 32)
        return cls(
            use_preferred_message_format=bit_is_set(value, 17),
            message_format=MessageFormat.MIME if bit_is_set(value, 18) else MessageFormat.TEXT,
            # both body bits set also means text and HTML
            body_format=BodyFormat(min(extract_bits(value, 19, 2), BodyFormat.TEXT_AND_HTML)),
            mac_attachment_format=MacAttachmentFormat(extract_bits(value, 21, 2)),
        )
