from adattrdump.parser.structure import structure, unpack
from adattrdump.parser.bits import guid_from_bytes, seconds_or_raw, utf16le_at

from dataclasses import dataclass
import uuid


@dataclass(frozen=True)
class ReplCursor:
    uuid_dsa: uuid.UUID
    usn_high_prop_update: int
    time_last_sync_success: object


# layout gleaned from ldp.exe
@dataclass(frozen=True)
class ReplUpToDateVector2:
    version: int
    reserved1: int
    reserved2: int
    cursors: list

    @classmethod
    def from_bytes(cls, data):
        data = bytes(data)
        header = unpack(structure.ReplUpToDateVectorHeader, data)
        if header is None or header.version != 2:
            return None
        start = len(structure.ReplUpToDateVectorHeader)
        size = len(structure.ReplCursor)
        if len(data) != start + header.numCursors * size:
            return None

        cursors = []
        for offset in range(start, len(data), size):
            cursor = structure.ReplCursor(data[offset:offset + size])
            cursors.append(ReplCursor(guid_from_bytes(cursor.uuidDsa), cursor.usnHighPropUpdate,
                                      seconds_or_raw(cursor.timeLastSyncSuccess)))
        return cls(header.version, header.reserved1, header.reserved2, cursors)


@dataclass(frozen=True)
class UsnVector:
    usn_high_obj_update: int
    usn_reserved: int
    usn_high_prop_update: int


# https://learn.microsoft.com/en-us/openspecs/windows_protocols/ms-drsr/107b7c0e-0f0d-4fe2-8232-14ec3b78f40d
@dataclass(frozen=True)
class MtxAddr:
    name: bytes

    @classmethod
    def from_bytes(cls, data):
        if len(data) < 1 or data[0] > len(data) - 1:
            return None
        return cls(bytes(data[1:1 + data[0]]))


# https://learn.microsoft.com/en-us/openspecs/windows_protocols/ms-drsr/88a39619-6dbe-4ba1-8435-5966c1a490a7
@dataclass(frozen=True)
class DsaRpcInst:
    server: str
    annotation: str
    instance: str
    instance_guid: uuid.UUID

    @classmethod
    def from_bytes(cls, data):
        header = unpack(structure.DsaRpcInstHeader, data)
        # all four offsets zero is the smallest valid record
        if header is None or not len(structure.DsaRpcInstHeader) <= header.cb <= len(data):
            return None

        offsets = (header.serverOffset, header.annotationOffset, header.instanceOffset)
        if any(offset >= len(data) for offset in offsets):
            return None
        guid_offset = header.instanceGuidOffset
        if guid_offset > 0 and guid_offset + 16 > len(data):
            return None

        server, annotation, instance = (utf16le_at(data, offset) if offset else None for offset in offsets)
        instance_guid = guid_from_bytes(data[guid_offset:guid_offset + 16]) if guid_offset else None
        return cls(server, annotation, instance, instance_guid)


# https://learn.microsoft.com/en-us/openspecs/windows_protocols/ms-drsr/f8e930ea-d847-4585-8d58-993e05f55e45
@dataclass(frozen=True)
class RepsFromTo:
    """repsFrom/repsTo value (REPS_FROM version 1 or 2).

    The other DRA is an MtxAddr for version 1 and a DsaRpcInst for version 2.
    """
    version: int
    reserved0: int
    consecutive_failures: int
    time_last_success: object
    time_last_attempt: object
    result_last_attempt: int
    other_dra: object
    replica_flags: int
    schedule: bytes
    reserved1: int
    usn_vec: UsnVector
    dsa_object: uuid.UUID
    invocation_id: uuid.UUID
    transport_object: uuid.UUID
    reserved2: int

    @classmethod
    def from_bytes(cls, data):
        data = bytes(data)
        header = unpack(structure.RepsFromToHeader, data)
        if header is None or header.version not in (1, 2) or header.cb != len(data):
            return None

        start, end = header.otherDraOffset, header.otherDraOffset + header.otherDraLength
        if end > len(data):
            return None
        if header.version == 1:
            other_dra = MtxAddr.from_bytes(data[start:end])
        else:
            other_dra = DsaRpcInst.from_bytes(data[start:end])
        if other_dra is None:
            return None

        return cls(
            version=header.version,
            reserved0=header.reserved0,
            consecutive_failures=header.consecutiveFailures,
            time_last_success=seconds_or_raw(header.timeLastSuccess),
            time_last_attempt=seconds_or_raw(header.timeLastAttempt),
            result_last_attempt=header.resultLastAttempt,
            other_dra=other_dra,
            replica_flags=header.replicaFlags,
            schedule=bytes(header.schedule),
            reserved1=header.reserved1,
            usn_vec=UsnVector(header.usnHighObjUpdate, header.usnReserved, header.usnHighPropUpdate),
            dsa_object=guid_from_bytes(header.dsaObject),
            invocation_id=guid_from_bytes(header.invocationId),
            transport_object=guid_from_bytes(header.transportObject),
            reserved2=header.reserved2,
        )


# dSASignature, version 1 (MS KB2789917)
@dataclass(frozen=True)
class DsaSignatureState1:
    version: int
    flags: int
    padding0: int
    backup_error_latency_secs: int
    dsa_guid: uuid.UUID

    @classmethod
    def from_bytes(cls, data):
        state = unpack(structure.DsaSignatureState, data)
        if state is None or state.version != 1:
            return None
        if not len(structure.DsaSignatureState) <= state.cb <= len(data):
            return None
        return cls(state.version, state.flags, state.padding0, state.backupErrorLatencySecs,
                   guid_from_bytes(state.dsaGuid))
