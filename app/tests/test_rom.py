from returns.result import Failure, Success

from chip8.emulator import Emulator
from chip8.rom import Rom


def test_from_bytes_success():
    result = Rom.from_bytes(b"\x60\x05\x70\x03")
    assert isinstance(result, Success)
    rom = result.unwrap()
    assert len(rom) == 4
    assert rom.name == "<memory>"


def test_from_bytes_rejects_empty_and_oversized():
    assert isinstance(Rom.from_bytes(b""), Failure)

    result = Rom.from_bytes(bytes(0xE01))
    assert isinstance(result, Failure)
    assert "too large" in result.failure()


def test_from_bytes_rejects_non_bytes():
    result = Rom.from_bytes("6005")  # type: ignore[arg-type]
    assert isinstance(result, Failure)


def test_from_file(tmp_path):
    path = tmp_path / "maze.ch8"
    path.write_bytes(b"\x00\xe0")
    result = Rom.from_file(path)
    rom = result.unwrap()
    assert rom.file == str(path)
    assert rom.name == "maze"
    assert Rom.is_valid_file(path) == (True, None)


def test_from_missing_file(tmp_path):
    result = Rom.from_file(tmp_path / "missing.ch8")
    assert isinstance(result, Failure)
    valid, message = Rom.is_valid_file(tmp_path / "missing.ch8")
    assert not valid
    assert "Failed to read file" in message


def test_emulator_loads_rom_object():
    emu = Emulator()
    emu.Load(Rom.from_bytes(b"\x60\x2a").unwrap())
    emu.step()
    assert emu.registers.get(0) == 0x2A
    assert emu.rom is not None
