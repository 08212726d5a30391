import pytest
from returns.result import Failure, Success

from chip8.emulator import Emulator, StepState
from chip8.exception import RomTooLarge, StackOverflow, StackUnderflow, UnknownInstruction
from chip8.memory import MAX_PROGRAM_SIZE


def V(emu: Emulator, x: int) -> int:
    return emu.registers.get(x)


# END-TO-END SCENARIOS
def test_load_and_add(make_emulator):
    emu = make_emulator(0x6005, 0x7003)
    assert emu.step() == Success(StepState.Advanced)
    assert emu.step() == Success(StepState.Advanced)
    assert V(emu, 0) == 8
    assert emu.registers.PC == 0x204


def test_clear_screen_on_dirty_display(make_emulator):
    emu = make_emulator(0x00E0)
    emu.display.draw(0, 0, bytes([0xFF]))
    emu.step()
    assert not emu.display.frame.any()
    assert emu.display.dirty


def test_draw_font_glyph_at_origin(make_emulator):
    emu = make_emulator(0xA000, 0xD015)
    emu.run(2)
    assert emu.display.dirty
    assert V(emu, 0xF) == 0
    rows = [[emu.display.pixel(x, y) for x in range(8)] for y in range(5)]
    assert rows[0] == [True, True, True, True, False, False, False, False]
    assert rows[1] == [True, False, False, True, False, False, False, False]


def test_draw_reads_sprite_from_index(make_emulator):
    # glyph "0" stored right after the two instructions, at 0x204
    emu = make_emulator(0xA204, 0xD005, 0xF090, 0x9090, 0xF000)
    emu.run(2)
    assert emu.display.dirty
    assert V(emu, 0xF) == 0
    lit = {(x, y) for y in range(32) for x in range(64) if emu.display.pixel(x, y)}
    outline = {(x, 0) for x in range(4)} | {(x, 4) for x in range(4)}
    outline |= {(0, y) for y in (1, 2, 3)} | {(3, y) for y in (1, 2, 3)}
    assert lit == outline


def test_draw_twice_sets_collision(make_emulator):
    emu = make_emulator(0xA000, 0xD015, 0xD015)
    emu.run(2)
    assert V(emu, 0xF) == 0
    emu.step()
    assert V(emu, 0xF) == 1
    assert not emu.display.frame.any()


# FLOW
def test_call_then_return_restores_pc(make_emulator):
    emu = make_emulator(0x2206, 0x0000, 0x0000, 0x00EE)
    emu.step()
    assert emu.registers.PC == 0x206
    assert emu.stack.depth == 1
    emu.step()
    assert emu.registers.PC == 0x202
    assert emu.stack.depth == 0


def test_jump(make_emulator):
    emu = make_emulator(0x1ABC)
    emu.step()
    assert emu.registers.PC == 0xABC


def test_return_with_empty_stack_halts(make_emulator):
    emu = make_emulator(0x00EE)
    result = emu.step()
    assert isinstance(result, Failure)
    assert isinstance(result.failure(), StackUnderflow)
    assert emu.halted


def test_recursive_call_overflows_after_sixteen_frames(make_emulator):
    emu = make_emulator(0x2200)
    for _ in range(16):
        assert isinstance(emu.step(), Success)
    result = emu.step()
    assert isinstance(result.failure(), StackOverflow)


def test_halted_machine_keeps_failing_until_reset(make_emulator):
    emu = make_emulator(0x0123, 0x6001)
    first = emu.step()
    assert isinstance(first.failure(), UnknownInstruction)
    assert first.failure().raw == 0x0123
    assert emu.step().failure() is first.failure()
    assert V(emu, 0) == 0

    emu.Reset()
    assert not emu.halted
    assert emu.registers.PC == 0x200


@pytest.mark.parametrize("raw", [0x0000, 0x5121, 0x800F, 0x9AB1, 0xE000, 0xF0FF])
def test_unassigned_encodings_halt(make_emulator, raw):
    emu = make_emulator(raw)
    result = emu.step()
    assert isinstance(result.failure(), UnknownInstruction)


def test_halted_event_is_emitted(make_emulator):
    emu = make_emulator(0xFFFF)
    seen = []

    @emu.on("halted")
    def _(error):
        seen.append(error)

    emu.step()
    assert len(seen) == 1 and isinstance(seen[0], UnknownInstruction)


# SKIPS
@pytest.mark.parametrize(
    "words, expected_pc",
    [
        ((0x6042, 0x3042), 0x206),  # SE Vx, NN taken
        ((0x6041, 0x3042), 0x204),
        ((0x6041, 0x4042), 0x206),  # SNE Vx, NN taken
        ((0x6042, 0x4042), 0x204),
        ((0x6107, 0x5010), 0x204),  # SE Vx, Vy: 0 != 7
        ((0x6107, 0x9010), 0x206),  # SNE Vx, Vy
    ],
)
def test_conditional_skips(make_emulator, words, expected_pc):
    emu = make_emulator(*words)
    emu.run(2)
    assert emu.registers.PC == expected_pc


# ARITHMETIC
@pytest.mark.parametrize("a, b", [(0, 0), (1, 254), (1, 255), (200, 100), (255, 255), (128, 128)])
def test_add_with_carry(make_emulator, a, b):
    emu = make_emulator(0x6000 | a, 0x6100 | b, 0x8014)
    emu.run(3)
    assert V(emu, 0) == (a + b) % 256
    assert V(emu, 0xF) == (1 if a + b > 255 else 0)


@pytest.mark.parametrize("a, b", [(5, 3), (3, 5), (7, 7), (0, 255), (255, 0)])
def test_subtract_with_borrow(make_emulator, a, b):
    emu = make_emulator(0x6000 | a, 0x6100 | b, 0x8015)
    emu.run(3)
    assert V(emu, 0) == (a - b) % 256
    assert V(emu, 0xF) == (1 if a >= b else 0)


@pytest.mark.parametrize("a, b", [(5, 3), (3, 5), (7, 7)])
def test_reverse_subtract(make_emulator, a, b):
    emu = make_emulator(0x6000 | a, 0x6100 | b, 0x8017)
    emu.run(3)
    assert V(emu, 0) == (b - a) % 256
    assert V(emu, 0xF) == (1 if b >= a else 0)


def test_add_immediate_wraps_without_touching_flag(make_emulator):
    emu = make_emulator(0x6FFF, 0x60FF, 0x7002)
    emu.run(3)
    assert V(emu, 0) == 1
    assert V(emu, 0xF) == 0xFF


def test_flag_wins_when_vf_is_destination(make_emulator):
    emu = make_emulator(0x6FFF, 0x6102, 0x8F14)
    emu.run(3)
    assert V(emu, 0xF) == 1


@pytest.mark.parametrize("low, expected", [(0x0, 0x3C), (0x1, 0xFC), (0x2, 0x0C), (0x3, 0xF0)])
def test_logic_ops(make_emulator, low, expected):
    emu = make_emulator(0x60CC, 0x613C, 0x8010 | low)
    emu.run(3)
    assert V(emu, 0) == expected


# SHIFT QUIRKS
def test_shift_right_modern_uses_vx(make_emulator):
    emu = make_emulator(0x6005, 0x6180, 0x8016)
    emu.run(3)
    assert V(emu, 0) == 0x02
    assert V(emu, 0xF) == 1


def test_shift_right_legacy_copies_vy(make_emulator):
    emu = make_emulator(0x6005, 0x6180, 0x8016, legacy_mode=True)
    emu.run(3)
    assert V(emu, 0) == 0x40
    assert V(emu, 0xF) == 0


def test_shift_left_modern_and_legacy(make_emulator):
    modern = make_emulator(0x6081, 0x6101, 0x801E)
    modern.run(3)
    assert (V(modern, 0), V(modern, 0xF)) == (0x02, 1)

    legacy = make_emulator(0x6081, 0x6101, 0x801E, legacy_mode=True)
    legacy.run(3)
    assert (V(legacy, 0), V(legacy, 0xF)) == (0x02, 0)


# INDEX / MEMORY
def test_set_and_add_index(make_emulator):
    emu = make_emulator(0xAFFF, 0x6003, 0xF01E)
    emu.run(3)
    assert emu.registers.I == 0x1002
    assert V(emu, 0xF) == 0


def test_font_lookup(make_emulator):
    emu = make_emulator(0x600A, 0xF029)
    emu.run(2)
    assert emu.registers.I == 50


def test_bcd(make_emulator):
    emu = make_emulator(0x60FE, 0xA300, 0xF033)
    emu.run(3)
    assert emu.memory.read_block(0x300, 3) == bytes([2, 5, 4])


def test_store_range_is_inclusive_modern_keeps_index(make_emulator):
    emu = make_emulator(0x6011, 0x6122, 0x6233, 0xA300, 0xF155)
    emu.run(5)
    assert emu.memory.read_block(0x300, 3) == bytes([0x11, 0x22, 0x00])
    assert emu.registers.I == 0x300


def test_store_range_legacy_advances_index(make_emulator):
    emu = make_emulator(0x6011, 0x6122, 0xA300, 0xF155, legacy_mode=True)
    emu.run(4)
    assert emu.memory.read_block(0x300, 2) == bytes([0x11, 0x22])
    assert emu.registers.I == 0x302


def test_load_range(make_emulator):
    emu = make_emulator(0xA000, 0xF265)
    emu.run(2)
    assert [V(emu, i) for i in range(4)] == [0xF0, 0x90, 0x90, 0x00]
    assert emu.registers.I == 0x000

    legacy = make_emulator(0xA000, 0xF265, legacy_mode=True)
    legacy.run(2)
    assert [V(legacy, i) for i in range(3)] == [0xF0, 0x90, 0x90]
    assert legacy.registers.I == 0x003


# JUMP WITH OFFSET
def test_jump_offset_legacy_uses_v0(make_emulator):
    emu = make_emulator(0x6010, 0x6220, 0xB300, legacy_mode=True)
    emu.run(3)
    assert emu.registers.PC == 0x310


def test_jump_offset_modern_uses_vx_and_low_byte(make_emulator):
    emu = make_emulator(0x6010, 0x6320, 0xB340)
    emu.run(3)
    assert emu.registers.PC == 0x40 + 0x20


# RANDOM
def test_random_is_masked(make_emulator):
    emu = make_emulator(*([0xC00F] * 20))
    for _ in range(20):
        emu.step()
        assert V(emu, 0) & 0xF0 == 0


def test_random_is_reproducible_with_seed(make_emulator):
    a = make_emulator(0xC0FF, 0xC1FF, seed=7)
    b = make_emulator(0xC0FF, 0xC1FF, seed=7)
    a.run(2)
    b.run(2)
    assert (V(a, 0), V(a, 1)) == (V(b, 0), V(b, 1))


# TIMERS
def test_timer_get_set(make_emulator):
    emu = make_emulator(0x6009, 0xF015, 0xF018, 0xF107)
    emu.run(3)
    assert emu.timers.delay == 9
    assert emu.timers.sound == 9
    emu.tick_timers()
    emu.step()
    assert V(emu, 1) == 8


def test_tone_off_event(make_emulator):
    emu = make_emulator(0x6001, 0xF018)
    emu.run(2)
    events = []

    @emu.on("tone_off")
    def _():
        events.append("off")

    assert emu.tick_timers() is True
    assert emu.tick_timers() is False
    assert events == ["off"]


# KEYS
def test_skip_if_key_pressed(make_emulator):
    emu = make_emulator(0x6005, 0xE09E)
    emu.Input(5, True)
    emu.run(2)
    assert emu.registers.PC == 0x206

    emu = make_emulator(0x6005, 0xE0A1)
    emu.run(2)
    assert emu.registers.PC == 0x206


def test_key_wait_blocks_until_pressed(make_emulator):
    emu = make_emulator(0xF30A, 0x6001)
    assert emu.step() == Success(StepState.Blocked)
    assert emu.registers.PC == 0x200
    assert emu.step() == Success(StepState.Blocked)

    emu.Input(0xC, True)
    emu.Input(0x7, True)
    assert emu.step() == Success(StepState.Advanced)
    assert V(emu, 3) == 0x7
    assert emu.registers.PC == 0x202


def test_input_rejects_bad_key():
    emu = Emulator()
    with pytest.raises(ValueError):
        emu.Input(16, True)


# LOADING / RESET
def test_load_rejects_oversized_rom():
    emu = Emulator()
    with pytest.raises(RomTooLarge):
        emu.Load(bytes(MAX_PROGRAM_SIZE + 1))
    assert emu.rom is None


def test_second_load_starts_from_a_clean_machine(make_emulator):
    emu = make_emulator(0x6001, 0x6102, 0x6203)
    emu.run(3)
    emu.Load(bytes([0x60, 0x09]))

    assert emu.memory.read_word(0x200) == 0x6009
    assert emu.memory.read_word(0x202) == 0
    assert emu.memory.read_word(0x204) == 0
    assert emu.registers.PC == 0x200
    assert V(emu, 1) == 0
    assert emu.cycles == 0


def test_reset_reloads_rom_and_clears_state(make_emulator):
    emu = make_emulator(0x6005, 0xA123, 0x2300)
    emu.run(3)
    emu.display.draw(0, 0, b"\xff")
    emu.Reset()

    assert emu.registers.PC == 0x200
    assert emu.registers.I == 0
    assert V(emu, 0) == 0
    assert emu.stack.depth == 0
    assert not emu.display.frame.any()
    assert emu.memory.read_word(0x200) == 0x6005
    assert emu.cycles == 0


def test_trace_log_records_instructions(make_emulator):
    emu = make_emulator(0x6005, 0x7003)
    emu.debug.Logging = True
    emu.run(2)
    assert len(emu.tracelog) == 2
    assert "6005" in emu.tracelog[0]
    assert "LD V0, 05" in emu.tracelog[0]
    assert emu.tracelog[1].startswith("202:")


def test_step_hooks_receive_pc_and_state(make_emulator):
    emu = make_emulator(0x6005, 0xF00A)
    seen = []

    @emu.on("before_step")
    def _(pc):
        seen.append(("before", pc))

    @emu.on("after_step")
    def _(state):
        seen.append(("after", state))

    emu.run(2)
    assert seen == [
        ("before", 0x200),
        ("after", StepState.Advanced),
        ("before", 0x202),
        ("after", StepState.Blocked),
    ]
