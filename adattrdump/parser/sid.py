import re
import struct
from dataclasses import dataclass

from frozendict import frozendict

from adattrdump.parser.structure import structure, unpack

SID_STRING_RE = re.compile(r'^S-([0-9]+)-([0-9]+)((?:-[0-9]+)*)\Z')

MAX_AUTHORITY = 0xFFFFFFFFFFFF
MAX_SUB_AUTHORITY = 0xFFFFFFFF

# (authority, sub-authorities) -> SDDL alias; domain-relative RIDs need the domain SID and are not listed
WELL_KNOWN_SIDS = frozendict({
    (1, (0,)): 'WD',
    (3, (0,)): 'CO',
    (3, (1,)): 'CG',
    (3, (4,)): 'OW',
    (5, (2,)): 'NU',
    (5, (4,)): 'IU',
    (5, (6,)): 'SU',
    (5, (7,)): 'AN',
    (5, (9,)): 'ED',
    (5, (10,)): 'PS',
    (5, (11,)): 'AU',
    (5, (12,)): 'RC',
    (5, (18,)): 'SY',
    (5, (19,)): 'LS',
    (5, (20,)): 'NS',
    (5, (33,)): 'WR',
    (5, (32, 544)): 'BA',
    (5, (32, 545)): 'BU',
    (5, (32, 546)): 'BG',
    (5, (32, 547)): 'PU',
    (5, (32, 548)): 'AO',
    (5, (32, 549)): 'SO',
    (5, (32, 550)): 'PO',
    (5, (32, 551)): 'BO',
    (5, (32, 552)): 'RE',
    (5, (32, 553)): 'RS',
    (5, (32, 554)): 'RU',
    (5, (32, 555)): 'RD',
    (5, (32, 556)): 'NO',
    (5, (32, 558)): 'MU',
    (5, (32, 559)): 'LU',
    (5, (32, 568)): 'IS',
    (5, (32, 569)): 'CY',
    (5, (32, 573)): 'ER',
    (5, (32, 574)): 'CD',
    (5, (32, 575)): 'RA',
    (5, (32, 576)): 'ES',
    (5, (32, 578)): 'HA',
    (5, (32, 579)): 'AA',
    (5, (32, 584)): 'HO',
    (15, (2, 1)): 'AC',
    (16, (4096,)): 'LW',
    (16, (8192,)): 'ME',
    (16, (8448,)): 'MP',
    (16, (12288,)): 'HI',
    (16, (16384,)): 'SI',
    (18, (2,)): 'SS',
})


@dataclass(frozen=True)
class Sid:
    version: int
    authority: int
    sub_authorities: tuple

    @staticmethod
    def get_length(data):
        """Byte length announced by the SID header at the start of data, if it fits."""
        header = unpack(structure.SidHeader, data)
        if header is None or header.revision != 1:
            return None
        length = len(structure.SidHeader) + 4 * header.subAuthorityCount
        if len(data) < length:
            return None
        return length

    @classmethod
    def from_bytes(cls, data):
        header = unpack(structure.SidHeader, data)
        if header is None or header.revision != 1:
            return None
        count = header.subAuthorityCount
        if len(data) != 8 + 4 * count:
            return None

        authority = int.from_bytes(header.identifierAuthority, 'big')
        sub_authorities = struct.unpack_from(f'<{count}I', data, 8)
        return cls(header.revision, authority, tuple(sub_authorities))

    @classmethod
    def from_string(cls, value):
        m = SID_STRING_RE.match(value)
        if not m:
            return None

        version = int(m.group(1))
        authority = int(m.group(2))
        if version != 1 or authority > MAX_AUTHORITY:
            return None
        subs = tuple(int(s) for s in m.group(3).split('-')[1:])
        if any(s > MAX_SUB_AUTHORITY for s in subs) or len(subs) > 0xFF:
            return None
        return cls(version, authority, subs)

    def to_bytes(self):
        return (struct.pack('<BB', self.version, len(self.sub_authorities))
                + self.authority.to_bytes(6, 'big')
                + struct.pack(f'<{len(self.sub_authorities)}I', *self.sub_authorities))

    @property
    def alias(self):
        return WELL_KNOWN_SIDS.get((self.authority, self.sub_authorities))

    def to_sddl(self):
        return self.alias or str(self)

    def __str__(self):
        return f"S-{self.version}-{self.authority}" + ''.join(f'-{s}' for s in self.sub_authorities)
