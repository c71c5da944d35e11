SCHEDULE_LENGTH = 336
WEEKDAYS = ('Su', 'Mo', 'Tu', 'We', 'Th', 'Fr', 'Sa')


def schedule_to_string(schedule):
    """Render a DFSR replication schedule as a weekday by hour grid, one hex byte per quarter hour."""
    if len(schedule) != SCHEDULE_LENGTH:
        return None

    lines = ['  |' + ''.join(f'┌{hour:2}┐' for hour in range(24)),
             '  |' + '▂▄▆█' * 24]
    for day, start in zip(WEEKDAYS, range(0, SCHEDULE_LENGTH, 48)):
        lines.append(f'{day}|' + ''.join(f'{b:02X}' for b in schedule[start:start + 48]))
    return '\n'.join(lines)
