from dissect.cstruct import cstruct

structure = cstruct()
structure.load("""
    struct SidHeader {
        uint8 revision;
        uint8 subAuthorityCount;
        char identifierAuthority[6]; // big endian
    };

    struct SecurityDescriptorHeader {
        uint8 revision;
        uint8 sbz1;
        uint16 control;
        uint32 offsetOwner;
        uint32 offsetGroup;
        uint32 offsetSacl;
        uint32 offsetDacl;
    };

    struct AclHeader {
        uint8 aclRevision;
        uint8 sbz1;
        uint16 aclSize;
        uint16 aceCount;
        uint16 sbz2;
    };

    struct AceHeader {
        uint8 aceType;
        uint8 aceFlags;
        uint16 aceSize;
    };

    struct ObjectAceHeader {
        uint32 mask;
        uint32 flags; // decides which of the two GUIDs follow
    };

    struct ClaimAttributeHeader {
        uint32 nameOffset;
        uint16 valueType;
        uint16 reserved;
        uint32 flags;
        uint32 valueCount;
    };

    struct DnsPropertyHeader {
        uint32 dataLength;
        uint32 nameLength;
        uint32 flag;
        uint32 version;
        uint32 id;
    };

    struct DnsAddrArrayHeader {
        uint32 maxCount;
        uint32 addrCount;
        uint32 tag;
        uint16 family;
        uint16 wordReserved;
        uint32 flags;
        uint32 matchFlag;
        uint32 reserved1;
        uint32 reserved2;
    };

    struct DnsAddr {
        uint16 family;
        char port[2]; // network order
        char address[28];
        uint32 sockaddrLength;
        uint32 subnetLength;
        uint32 flags;
        char padding[20];
    };

    struct DnsRecordHeader {
        uint16 dataLength;
        uint16 recordType;
        uint8 version;
        uint8 rank;
        uint16 flags;
        uint32 serial;
        char ttlSeconds[4]; // network order
        uint32 reserved;
        uint32 timestamp; // hours since 1601
    };

    struct DnsSoaHeader {
        uint32 serialNumber;
        uint32 refresh;
        uint32 retry;
        uint32 expire;
        uint32 minimumTtl;
    };

    struct DnsNaptrHeader {
        uint16 order;
        uint16 preference;
    };

    struct DnsWinsHeader {
        uint32 mappingFlag;
        uint32 lookupTimeout;
        uint32 cacheTimeout;
    };

    struct ReplUpToDateVectorHeader {
        uint32 version;
        uint32 reserved1;
        uint32 numCursors;
        uint32 reserved2;
    };

    struct ReplCursor {
        char uuidDsa[16];
        uint64 usnHighPropUpdate;
        int64 timeLastSyncSuccess; // seconds since 1601
    };

    struct RepsFromToHeader {
        uint32 version;
        uint32 reserved0;
        uint32 cb;
        uint32 consecutiveFailures;
        int64 timeLastSuccess;
        int64 timeLastAttempt;
        uint32 resultLastAttempt;
        uint32 otherDraOffset;
        uint32 otherDraLength;
        uint32 replicaFlags;
        char schedule[84];
        uint32 reserved1;
        uint64 usnHighObjUpdate;
        uint64 usnReserved;
        uint64 usnHighPropUpdate;
        char dsaObject[16];
        char invocationId[16];
        char transportObject[16];
        uint32 reserved2;
    };

    struct DsaRpcInstHeader {
        uint32 cb;
        uint32 serverOffset;
        uint32 annotationOffset;
        uint32 instanceOffset;
        uint32 instanceGuidOffset;
    };

    struct DsaSignatureState {
        uint32 version;
        uint32 cb;
        uint32 flags;
        uint32 padding0;
        uint64 backupErrorLatencySecs;
        char dsaGuid[16];
    };

    struct ForestTrustInfoHeader {
        uint32 version;
        uint32 recordCount;
    };

    struct ForestTrustRecordHeader {
        uint32 recordLength; // excludes this field
        uint32 flags;
        int32 timestampHigh;
        uint32 timestampLow;
        uint8 recordType;
    };

    struct KeyCredentialEntryHeader {
        uint16 length;
        uint8 identifier;
    };

    struct PrefixMapHeader {
        uint32 numEntries;
        uint32 numBytes;
    };

    struct PrefixEntryHeader {
        uint16 dbPrefix;
        uint16 berLength;
    };
""", compiled=True)

bigendian = cstruct(endian=">")
bigendian.load("""
    struct SchemaInfo {
        uint8 marker;
        uint32 version;
        char invocationId[16]; // little-endian GUID
    };

    struct DnsPreference {
        uint16 preference;
    };

    struct DnsSignatureHeader {
        uint16 typeCovered;
        uint8 algorithm;
        uint8 labelCount;
        uint32 originalTtl;
        uint32 signatureExpiration;
        uint32 signatureInception;
        uint16 keyTag;
    };

    struct DnsKeyHeader {
        uint16 flags;
        uint8 protocol;
        uint8 algorithm;
    };

    struct DnsServiceHeader {
        uint16 priority;
        uint16 weight;
        uint16 port;
    };

    struct DnsDelegationSignerHeader {
        uint16 keyTag;
        uint8 algorithm;
        uint8 digestType;
    };

    struct DnsNsec3Header {
        uint8 algorithm;
        uint8 flags;
        uint16 iterations;
        uint8 saltLength;
        uint8 hashLength;
    };

    struct DnsNsec3ParamHeader {
        uint8 algorithm;
        uint8 flags;
        uint16 iterations;
        uint8 saltLength;
    };

    struct DnsTlsaHeader {
        uint8 certUsage;
        uint8 selector;
        uint8 matchingType;
    };
""", compiled=True)


def unpack(struct_type, data, offset=0):
    """Parse a fixed-size structure at offset, or return None if data is too short."""
    size = len(struct_type)
    if offset < 0 or len(data) < offset + size:
        return None
    return struct_type(bytes(data[offset:offset + size]))


class ShortRead(Exception):
    pass


class Cursor(object):
    """Sequential reader over a byte buffer; every read raises ShortRead instead of running past the end."""

    def __init__(self, data, pos=0):
        self.data = bytes(data)
        self.pos = pos

    def take(self, count):
        if count < 0 or self.pos + count > len(self.data):
            raise ShortRead(f'need {count} bytes at offset {self.pos}, have {len(self.data) - self.pos}')
        chunk = self.data[self.pos:self.pos + count]
        self.pos += count
        return chunk

    def u8(self):
        return self.take(1)[0]

    def u32(self):
        return int.from_bytes(self.take(4), 'little')

    def at_end(self):
        return self.pos == len(self.data)
