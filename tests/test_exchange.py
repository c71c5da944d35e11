from adattrdump.parser.exchange import (BodyFormat, ExchangeVersion, InternetEncoding, MacAttachmentFormat,
                                        MessageFormat, RecipientTypeDetails, TextMessagingState)


def test_exchange_version_known_release():
    version = ExchangeVersion.from_string('44220983382016')
    assert (version.major, version.minor, version.build_major, version.build_minor) == (0, 10, 14, 0)
    assert (version.build, version.build_revision) == (100, 0)
    assert version.friendly_name == 'Exchange2010'


def test_exchange_version_unknown_release():
    version = ExchangeVersion.from_string('1')
    assert version.build_revision == 1
    assert version.friendly_name is None

    # negative values are the same 64 bits
    version = ExchangeVersion.from_string('-1')
    assert version.major == 0xFF
    assert version.build == 0xFFFF

    assert ExchangeVersion.from_string('abc') is None


def test_text_messaging_state():
    state = TextMessagingState.from_string(str(0x30000102))
    assert state.m2p_priority == 2
    assert state.p2p_priority == 1
    assert state.identity == 0
    assert state.delivery_point_type == 0
    assert state.m2p_enabled
    assert state.p2p_enabled
    assert not state.shared

    assert TextMessagingState.from_string('-1') is None
    assert TextMessagingState.from_string('4294967296') is None


def test_internet_encoding():
    encoding = InternetEncoding.from_string('1310720')
    assert not encoding.use_preferred_message_format
    assert encoding.message_format == MessageFormat.MIME
    assert encoding.body_format == BodyFormat.TEXT_AND_HTML
    assert encoding.mac_attachment_format == MacAttachmentFormat.BINHEX

    encoding = InternetEncoding.from_string(str((1 << 17) | (3 << 19) | (2 << 21)))
    assert encoding.use_preferred_message_format
    assert encoding.message_format == MessageFormat.TEXT
    assert encoding.body_format == BodyFormat.TEXT_AND_HTML
    assert encoding.mac_attachment_format == MacAttachmentFormat.APPLE_SINGLE


def test_recipient_type_details_high_bits():
    assert RecipientTypeDetails(0x1_00000001) == RecipientTypeDetails.COMPUTER | RecipientTypeDetails.USER_MAILBOX
