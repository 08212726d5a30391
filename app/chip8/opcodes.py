from dataclasses import dataclass
from enum import Enum
from typing import Dict, Final, TypedDict

from chip8.exception import UnknownInstruction


class OpCode(Enum):
    """Every assigned CHIP-8 instruction encoding."""

    CLS = "00E0"
    RET = "00EE"
    JP = "1NNN"
    CALL = "2NNN"
    SE_BYTE = "3XNN"
    SNE_BYTE = "4XNN"
    SE_REG = "5XY0"
    LD_BYTE = "6XNN"
    ADD_BYTE = "7XNN"
    LD_REG = "8XY0"
    OR = "8XY1"
    AND = "8XY2"
    XOR = "8XY3"
    ADD_REG = "8XY4"
    SUB = "8XY5"
    SHR = "8XY6"
    SUBN = "8XY7"
    SHL = "8XYE"
    SNE_REG = "9XY0"
    LD_I = "ANNN"
    JP_OFFSET = "BNNN"
    RND = "CXNN"
    DRW = "DXYN"
    SKP = "EX9E"
    SKNP = "EXA1"
    LD_VX_DT = "FX07"
    LD_VX_K = "FX0A"
    LD_DT_VX = "FX15"
    LD_ST_VX = "FX18"
    ADD_I = "FX1E"
    LD_F = "FX29"
    LD_B = "FX33"
    LD_MEM_VX = "FX55"
    LD_VX_MEM = "FX65"


class OpCodeInfo(TypedDict):
    mnemonic: str
    operands: str


list_OpCode: Final[Dict[OpCode, OpCodeInfo]] = {
    OpCode.CLS: {"mnemonic": "CLS", "operands": ""},
    OpCode.RET: {"mnemonic": "RET", "operands": ""},
    OpCode.JP: {"mnemonic": "JP", "operands": "{nnn:03X}"},
    OpCode.CALL: {"mnemonic": "CALL", "operands": "{nnn:03X}"},
    OpCode.SE_BYTE: {"mnemonic": "SE", "operands": "V{x:X}, {nn:02X}"},
    OpCode.SNE_BYTE: {"mnemonic": "SNE", "operands": "V{x:X}, {nn:02X}"},
    OpCode.SE_REG: {"mnemonic": "SE", "operands": "V{x:X}, V{y:X}"},
    OpCode.LD_BYTE: {"mnemonic": "LD", "operands": "V{x:X}, {nn:02X}"},
    OpCode.ADD_BYTE: {"mnemonic": "ADD", "operands": "V{x:X}, {nn:02X}"},
    OpCode.LD_REG: {"mnemonic": "LD", "operands": "V{x:X}, V{y:X}"},
    OpCode.OR: {"mnemonic": "OR", "operands": "V{x:X}, V{y:X}"},
    OpCode.AND: {"mnemonic": "AND", "operands": "V{x:X}, V{y:X}"},
    OpCode.XOR: {"mnemonic": "XOR", "operands": "V{x:X}, V{y:X}"},
    OpCode.ADD_REG: {"mnemonic": "ADD", "operands": "V{x:X}, V{y:X}"},
    OpCode.SUB: {"mnemonic": "SUB", "operands": "V{x:X}, V{y:X}"},
    OpCode.SHR: {"mnemonic": "SHR", "operands": "V{x:X}, V{y:X}"},
    OpCode.SUBN: {"mnemonic": "SUBN", "operands": "V{x:X}, V{y:X}"},
    OpCode.SHL: {"mnemonic": "SHL", "operands": "V{x:X}, V{y:X}"},
    OpCode.SNE_REG: {"mnemonic": "SNE", "operands": "V{x:X}, V{y:X}"},
    OpCode.LD_I: {"mnemonic": "LD", "operands": "I, {nnn:03X}"},
    OpCode.JP_OFFSET: {"mnemonic": "JP", "operands": "V0, {nnn:03X}"},
    OpCode.RND: {"mnemonic": "RND", "operands": "V{x:X}, {nn:02X}"},
    OpCode.DRW: {"mnemonic": "DRW", "operands": "V{x:X}, V{y:X}, {n:X}"},
    OpCode.SKP: {"mnemonic": "SKP", "operands": "V{x:X}"},
    OpCode.SKNP: {"mnemonic": "SKNP", "operands": "V{x:X}"},
    OpCode.LD_VX_DT: {"mnemonic": "LD", "operands": "V{x:X}, DT"},
    OpCode.LD_VX_K: {"mnemonic": "LD", "operands": "V{x:X}, K"},
    OpCode.LD_DT_VX: {"mnemonic": "LD", "operands": "DT, V{x:X}"},
    OpCode.LD_ST_VX: {"mnemonic": "LD", "operands": "ST, V{x:X}"},
    OpCode.ADD_I: {"mnemonic": "ADD", "operands": "I, V{x:X}"},
    OpCode.LD_F: {"mnemonic": "LD", "operands": "F, V{x:X}"},
    OpCode.LD_B: {"mnemonic": "LD", "operands": "B, V{x:X}"},
    OpCode.LD_MEM_VX: {"mnemonic": "LD", "operands": "[I], V{x:X}"},
    OpCode.LD_VX_MEM: {"mnemonic": "LD", "operands": "V{x:X}, [I]"},
}


@dataclass(frozen=True, slots=True)
class Instruction:
    raw: int
    opcode: OpCode

    @property
    def op(self) -> int:
        return (self.raw >> 12) & 0xF

    @property
    def x(self) -> int:
        return (self.raw >> 8) & 0xF

    @property
    def y(self) -> int:
        return (self.raw >> 4) & 0xF

    @property
    def n(self) -> int:
        return self.raw & 0xF

    @property
    def nn(self) -> int:
        return self.raw & 0xFF

    @property
    def nnn(self) -> int:
        return self.raw & 0xFFF

    def __str__(self) -> str:
        return disassemble(self)


def classify(raw: int) -> OpCode | None:
    """Map a 16-bit instruction word to its OpCode, or None if unassigned."""
    nibble = raw & 0xF
    low = raw & 0xFF

    match (raw >> 12) & 0xF:
        case 0x0:
            match raw & 0x0FFF:
                case 0x0E0:
                    return OpCode.CLS
                case 0x0EE:
                    return OpCode.RET
                case _:
                    return None
        case 0x1:
            return OpCode.JP
        case 0x2:
            return OpCode.CALL
        case 0x3:
            return OpCode.SE_BYTE
        case 0x4:
            return OpCode.SNE_BYTE
        case 0x5:
            return OpCode.SE_REG if nibble == 0x0 else None
        case 0x6:
            return OpCode.LD_BYTE
        case 0x7:
            return OpCode.ADD_BYTE
        case 0x8:
            match nibble:
                case 0x0:
                    return OpCode.LD_REG
                case 0x1:
                    return OpCode.OR
                case 0x2:
                    return OpCode.AND
                case 0x3:
                    return OpCode.XOR
                case 0x4:
                    return OpCode.ADD_REG
                case 0x5:
                    return OpCode.SUB
                case 0x6:
                    return OpCode.SHR
                case 0x7:
                    return OpCode.SUBN
                case 0xE:
                    return OpCode.SHL
                case _:
                    return None
        case 0x9:
            return OpCode.SNE_REG if nibble == 0x0 else None
        case 0xA:
            return OpCode.LD_I
        case 0xB:
            return OpCode.JP_OFFSET
        case 0xC:
            return OpCode.RND
        case 0xD:
            return OpCode.DRW
        case 0xE:
            match low:
                case 0x9E:
                    return OpCode.SKP
                case 0xA1:
                    return OpCode.SKNP
                case _:
                    return None
        case 0xF:
            match low:
                case 0x07:
                    return OpCode.LD_VX_DT
                case 0x0A:
                    return OpCode.LD_VX_K
                case 0x15:
                    return OpCode.LD_DT_VX
                case 0x18:
                    return OpCode.LD_ST_VX
                case 0x1E:
                    return OpCode.ADD_I
                case 0x29:
                    return OpCode.LD_F
                case 0x33:
                    return OpCode.LD_B
                case 0x55:
                    return OpCode.LD_MEM_VX
                case 0x65:
                    return OpCode.LD_VX_MEM
                case _:
                    return None
        case _:
            return None


def decode(raw: int, address: int = 0) -> Instruction:
    """
    Decode an instruction word.

    Raises:
        UnknownInstruction: if `raw` is not an assigned encoding.
    """
    raw &= 0xFFFF
    opcode = classify(raw)
    if opcode is None:
        raise UnknownInstruction(raw, address)
    return Instruction(raw, opcode)


def disassemble(instruction: Instruction | int) -> str:
    """
    Render an instruction in conventional CHIP-8 assembly.

    Examples:
        >>> disassemble(0x6005)
        'LD V0, 05'
        >>> disassemble(0xD015)
        'DRW V0, V1, 5'
        >>> disassemble(0x0123)
        'DW 0123'
    """
    if isinstance(instruction, int):
        opcode = classify(instruction & 0xFFFF)
        if opcode is None:
            return f"DW {instruction & 0xFFFF:04X}"
        instruction = Instruction(instruction & 0xFFFF, opcode)

    entry = list_OpCode[instruction.opcode]
    operands = entry["operands"].format(
        x=instruction.x, y=instruction.y, n=instruction.n, nn=instruction.nn, nnn=instruction.nnn
    )
    return f"{entry['mnemonic']} {operands}" if operands else entry["mnemonic"]
