from chip8.display import DISPLAY_HEIGHT, DISPLAY_WIDTH, Display
from chip8.emulator import Debug, Emulator, StepResult, StepState
from chip8.exception import Chip8Error, RomTooLarge, StackOverflow, StackUnderflow, UnknownInstruction
from chip8.keypad import Keypad
from chip8.memory import Memory
from chip8.registers import Registers
from chip8.rom import Rom
from chip8.stack import CallStack
from chip8.timers import Timers

__all__ = [
    "CallStack",
    "Chip8Error",
    "Debug",
    "DISPLAY_HEIGHT",
    "DISPLAY_WIDTH",
    "Display",
    "Emulator",
    "Keypad",
    "Memory",
    "Registers",
    "Rom",
    "RomTooLarge",
    "StackOverflow",
    "StackUnderflow",
    "StepResult",
    "StepState",
    "Timers",
    "UnknownInstruction",
]
