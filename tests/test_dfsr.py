from adattrdump.parser.dfsr import schedule_to_string


def test_schedule_grid():
    schedule = bytes(48) + b'\x0f' * 48 + bytes(240)
    lines = schedule_to_string(schedule).split('\n')
    assert len(lines) == 9
    assert lines[0].startswith('  |┌ 0┐┌ 1┐')
    assert lines[0].endswith('┌23┐')
    assert lines[1] == '  |' + '▂▄▆█' * 24
    assert lines[2] == 'Su|' + '00' * 48
    assert lines[3] == 'Mo|' + '0F' * 48
    assert lines[8].startswith('Sa|')
    # every row lines up with the hour header
    assert len({len(line) for line in lines}) == 1


def test_schedule_wrong_length():
    assert schedule_to_string(bytes(335)) is None
    assert schedule_to_string(b'') is None
