from collections import deque
from dataclasses import dataclass
from enum import Enum
from string import Template
from typing import Any, Callable, Dict, Final, Optional, Union, assert_never

import numpy as np
from returns.result import Failure, Result, Success

from chip8.display import Display
from chip8.exception import Chip8Error, RomTooLarge
from chip8.keypad import Keypad
from chip8.logger import log as _logger
from chip8.memory import GLYPH_SIZE, MAX_PROGRAM_SIZE, MEMORY_SIZE, Memory
from chip8.opcodes import Instruction, OpCode, decode, disassemble
from chip8.registers import Registers
from chip8.rom import Rom
from chip8.stack import CallStack
from chip8.timers import Timers

ADDRESS_MASK: Final[int] = MEMORY_SIZE - 1

TEMPLATE: Final[Template] = Template("${PC}: opcode: ${OP} ${ASM} | I: ${I} | SP: ${SP} | V: ${V}")


class StepState(Enum):
    """Outcome of a successfully dispatched instruction."""

    Advanced = "advanced"
    Blocked = "blocked"  # key wait: the same instruction runs again next step


StepResult = Result[StepState, Chip8Error]


@dataclass
class Debug:
    Logging: bool = False
    TraceDepth: int = 1024


class Emulator:
    """
    CHIP-8 virtual machine.

    One instance owns the whole machine state (memory, registers, call stack,
    timers, display, keypad) and the legacy/modern quirk flag. The host drives
    it by calling `step()` at its chosen instruction rate and `tick_timers()`
    at 60 Hz; neither call blocks.

    Quirk flag (`legacy_mode`):
      - 8XY6 / 8XYE: legacy shifts VY into VX, modern shifts VX in place
      - FX55 / FX65: legacy advances I by X + 1 after the transfer
      - BNNN: legacy jumps to NNN + V0, modern to NN + VX
    """

    def __init__(
        self,
        legacy_mode: bool = False,
        seed: Optional[int] = None,
        rng: Optional[np.random.Generator] = None,
        debug: Optional[Debug] = None,
    ) -> None:
        self.legacy_mode: Final[bool] = legacy_mode
        self.memory: Final[Memory] = Memory()
        self.registers: Final[Registers] = Registers()
        self.stack: Final[CallStack] = CallStack()
        self.timers: Final[Timers] = Timers()
        self.display: Final[Display] = Display()
        self.keypad: Final[Keypad] = Keypad()
        self.rom: Optional[Rom] = None
        self.rng: np.random.Generator = rng if rng is not None else np.random.default_rng(seed)
        self.debug: Debug = debug if debug is not None else Debug()
        self.tracelog: deque[str] = deque(maxlen=self.debug.TraceDepth)
        self.cycles: int = 0
        self._halt: Optional[Chip8Error] = None
        self._events: Dict[str, deque[Callable[..., Any]]] = {}

    def __repr__(self) -> str:
        mode = "legacy" if self.legacy_mode else "modern"
        return f"<Emulator {mode} PC={self.registers.PC:04X} cycles={self.cycles} halted={self.halted}>"

    @property
    def halted(self) -> bool:
        return self._halt is not None

    @property
    def error(self) -> Optional[Chip8Error]:
        return self._halt

    def on(self, event_name: str):
        def decorator(func: Callable):
            self._events.setdefault(event_name, deque()).append(func)
            return func

        return decorator

    def _emit(self, event_name: str, *args: Any, **kwargs: Any) -> None:
        """Emit an event to all registered callbacks."""
        for callback in self._events.get(event_name, ()):
            callback(*args, **kwargs)

    def _tracelogger(self, pc: int, instruction: Instruction) -> None:
        line = TEMPLATE.substitute(
            PC=f"{pc:03X}",
            OP=f"{instruction.raw:04X}",
            ASM=f"{disassemble(instruction):<16}",
            I=f"{self.registers.I:04X}",
            SP=f"{self.stack.depth:02d}",
            V=" ".join(f"{int(v):02X}" for v in self.registers.V),
        )
        self.tracelog.append(line)

    def Reset(self) -> None:
        """Rebuild machine state and reload the current ROM, if any."""
        _logger.info("Resetting emulator...")
        self.memory.reset()
        self.registers.reset()
        self.stack.reset()
        self.timers.reset()
        self.display.reset()
        self.keypad.release_all()
        self.tracelog.clear()
        self.cycles = 0
        self._halt = None

        if self.rom is not None:
            self.memory.load(self.rom.data)
            _logger.debug(f"Reloaded {self.rom!r}")

    def Load(self, rom: Union[Rom, bytes, bytearray]) -> None:
        """
        Power-cycle the machine with a new program at 0x200.

        Memory, registers, stack, timers and display start from scratch, so
        nothing from a previously loaded program survives.

        Raises:
            RomTooLarge: if the image exceeds 0xE00 bytes.
        """
        if not isinstance(rom, Rom):
            rom = Rom(bytes(rom))
        if len(rom) > MAX_PROGRAM_SIZE:
            raise RomTooLarge(len(rom), MAX_PROGRAM_SIZE)

        self.rom = rom
        self.Reset()
        _logger.info(f"Loaded {rom.name} ({len(rom)} bytes, {'legacy' if self.legacy_mode else 'modern'} mode)")

    def Input(self, key: int, pressed: bool) -> None:
        """Set the state of one hexadecimal key."""
        if not 0 <= key <= 0xF:
            raise ValueError(f"Invalid key {key!r}. Use 0x0 - 0xF.")
        self.keypad[key] = pressed

    def tick_timers(self) -> bool:
        """Advance both timers by one 60 Hz tick; True on tone-off."""
        tone_off = self.timers.tick()
        if tone_off:
            self._emit("tone_off")
        return tone_off

    def fetch(self) -> int:
        pc = self.registers.PC & ADDRESS_MASK
        return self.memory.read_word(pc)

    def step(self) -> StepResult:
        """
        Fetch, decode and execute one instruction.

        Returns:
            Success(StepState.Advanced) after a normal instruction,
            Success(StepState.Blocked) while FX0A waits for a key, or
            Failure(error) once the machine has halted. A halted machine
            keeps returning the same failure until `Reset()`.
        """
        if self._halt is not None:
            return Failure(self._halt)

        pc = self.registers.PC
        self._emit("before_step", pc)

        try:
            raw = self.fetch()
            self.registers.PC = pc + 2
            instruction = decode(raw, pc & ADDRESS_MASK)

            if self.debug.Logging:
                self._tracelogger(pc, instruction)

            state = self._do_execute_opcode(instruction)
        except Chip8Error as e:
            self._halt = e
            _logger.error(f"Halted at PC=${pc:03X}: {e}")
            self._emit("halted", e)
            return Failure(e)

        self.cycles += 1
        self._emit("after_step", state)
        return Success(state)

    def run(self, steps: int) -> StepResult:
        """Execute up to `steps` instructions, stopping early on a halt."""
        result: StepResult = Success(StepState.Advanced)
        for _ in range(steps):
            result = self.step()
            if isinstance(result, Failure):
                break
        return result

    def _skip_if(self, condition: bool) -> None:
        if condition:
            self.registers.PC += 2

    def _do_execute_opcode(self, instruction: Instruction) -> StepState:
        """
        Execute a decoded instruction. PC already points past it.
        """
        regs = self.registers
        V = regs.V
        x, y = instruction.x, instruction.y
        vx, vy = int(V[x]), int(V[y])

        match instruction.opcode:
            # FLOW
            case OpCode.CLS:
                self.display.clear()

            case OpCode.RET:
                regs.PC = self.stack.pop()

            case OpCode.JP:
                regs.PC = instruction.nnn

            case OpCode.CALL:
                self.stack.push(regs.PC)
                regs.PC = instruction.nnn

            case OpCode.JP_OFFSET:
                if self.legacy_mode:
                    regs.PC = instruction.nnn + int(V[0])
                else:
                    regs.PC = instruction.nn + vx

            # CONDITIONALS
            case OpCode.SE_BYTE:
                self._skip_if(vx == instruction.nn)

            case OpCode.SNE_BYTE:
                self._skip_if(vx != instruction.nn)

            case OpCode.SE_REG:
                self._skip_if(vx == vy)

            case OpCode.SNE_REG:
                self._skip_if(vx != vy)

            case OpCode.SKP:
                self._skip_if(self.keypad[vx & 0xF])

            case OpCode.SKNP:
                self._skip_if(not self.keypad[vx & 0xF])

            # REGISTERS
            case OpCode.LD_BYTE:
                regs.set(x, instruction.nn)

            case OpCode.ADD_BYTE:
                regs.set(x, vx + instruction.nn)

            case OpCode.LD_REG:
                regs.set(x, vy)

            case OpCode.OR:
                regs.set(x, vx | vy)

            case OpCode.AND:
                regs.set(x, vx & vy)

            case OpCode.XOR:
                regs.set(x, vx ^ vy)

            # ARITHMETIC (flag written last so VF as a destination ends up holding the flag)
            case OpCode.ADD_REG:
                total = vx + vy
                regs.set(x, total)
                regs.flag = total > 0xFF

            case OpCode.SUB:
                regs.set(x, vx - vy)
                regs.flag = vx >= vy

            case OpCode.SUBN:
                regs.set(x, vy - vx)
                regs.flag = vy >= vx

            case OpCode.SHR:
                source = vy if self.legacy_mode else vx
                regs.set(x, source >> 1)
                regs.flag = source & 0x01

            case OpCode.SHL:
                source = vy if self.legacy_mode else vx
                regs.set(x, source << 1)
                regs.flag = (source >> 7) & 0x01

            case OpCode.RND:
                regs.set(x, int(self.rng.integers(0, 256)) & instruction.nn)

            # DISPLAY
            case OpCode.DRW:
                sprite = self.memory.read_block(regs.I & ADDRESS_MASK, instruction.n)
                regs.flag = self.display.draw(vx, vy, sprite)

            # TIMERS
            case OpCode.LD_VX_DT:
                regs.set(x, self.timers.delay)

            case OpCode.LD_DT_VX:
                self.timers.delay = vx

            case OpCode.LD_ST_VX:
                self.timers.sound = vx

            # KEY WAIT
            case OpCode.LD_VX_K:
                key = self.keypad.first_pressed()
                if key is None:
                    regs.PC -= 2
                    return StepState.Blocked
                regs.set(x, key)

            # INDEX / MEMORY
            case OpCode.LD_I:
                regs.I = instruction.nnn

            case OpCode.ADD_I:
                regs.I += vx

            case OpCode.LD_F:
                regs.I = GLYPH_SIZE * vx

            case OpCode.LD_B:
                self.memory.write_block(regs.I & ADDRESS_MASK, [vx // 100, (vx // 10) % 10, vx % 10])

            case OpCode.LD_MEM_VX:
                self.memory.write_block(regs.I & ADDRESS_MASK, [int(v) for v in V[: x + 1]])
                if self.legacy_mode:
                    regs.I += x + 1

            case OpCode.LD_VX_MEM:
                data = self.memory.read_block(regs.I & ADDRESS_MASK, x + 1)
                V[: x + 1] = np.frombuffer(data, dtype=np.uint8)
                if self.legacy_mode:
                    regs.I += x + 1

            case _ as unreachable:
                assert_never(unreachable)

        return StepState.Advanced
