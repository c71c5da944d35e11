from dataclasses import dataclass

# range of the last arc when the input ends on a complete arc (14-bit block)
DEFAULT_RANGE = (0, 0x4000)


def _base128(groups):
    value = 0
    for b in groups:
        value = (value << 7) | (b & 0x7F)
    return value


@dataclass(frozen=True, order=True)
class OidPrefix:
    """BER-encoded object identifier prefix as stored in a schema prefix map.

    Trailing bytes that do not complete an arc leave the last arc open; it is
    kept as the half-open range of values the missing bytes could produce.
    Ordering is lexicographic on (arcs, start, end) and only meant for sorting.
    """
    arcs: tuple
    start: int
    end: int

    @classmethod
    def from_ber(cls, data):
        arcs = []
        groups = []
        for b in data:
            groups.append(b)
            if b & 0x80:
                continue

            value = _base128(groups)
            groups = []
            if arcs:
                arcs.append(value)
            elif value < 40:
                arcs.extend((0, value))
            elif value < 80:
                arcs.extend((1, value - 40))
            else:
                arcs.extend((2, value - 80))

        if groups:
            smallest = _base128(groups + [0x80, 0x00])
            largest = _base128(groups + [0xFF, 0x7F])
            return cls(tuple(arcs), smallest, largest + 1)

        return cls(tuple(arcs), *DEFAULT_RANGE)

    def __str__(self):
        return ''.join(f'{arc}.' for arc in self.arcs) + f'({self.start}..{self.end})'
