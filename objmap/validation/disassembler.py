"""
Bytecode disassembler producing field-access and call-site events.

A code object is run through a small symbolic stack machine: loads push
symbols describing where a value came from (a local, a global, an
attribute of another symbol, a constant, the result of a call), and the
instructions the validator cares about emit events:

  - ``AttributeStore``: ``owner.name = ...``
  - ``AttributeLoad``: ``owner.name``
  - ``LocalBinding``: ``name = <symbol>``
  - ``CallSite``: a call with its candidate callees and arguments
  - ``ValueReturn``: ``return <symbol>``

Control flow is followed linearly; stack snapshots taken at jump sources
are restored at their targets after an instruction that does not fall
through. Everything opcode-specific lives in this module, so the
coverage walk never looks at raw instructions.
"""

import dis
import sys
from types import CodeType
from typing import Any, NamedTuple, Union

# 3.12 folded LOAD_METHOD into LOAD_ATTR, flagged by the low oparg bit
_LOAD_ATTR_HAS_METHOD_FLAG = sys.version_info >= (3, 12)

_JUMP_OPCODES = (
    frozenset(dis.hasjrel) | frozenset(dis.hasjabs) | frozenset(getattr(dis, "hasjump", ()))
)

_NO_FALLTHROUGH = frozenset({
    "RETURN_VALUE",
    "RETURN_CONST",
    "RAISE_VARARGS",
    "RERAISE",
    "JUMP",
    "JUMP_FORWARD",
    "JUMP_BACKWARD",
    "JUMP_BACKWARD_NO_INTERRUPT",
    "JUMP_ABSOLUTE",
})

# Instructions with a negative stack effect that push nothing back
_CONSUMING_PREFIXES = (
    "POP_",
    "STORE_",
    "DELETE_",
    "RETURN_",
    "RAISE_",
    "RERAISE",
    "END_FOR",
    "JUMP_IF_",
    "LIST_APPEND",
    "LIST_EXTEND",
    "SET_ADD",
    "SET_UPDATE",
    "MAP_ADD",
    "DICT_UPDATE",
    "DICT_MERGE",
    "IMPORT_STAR",
)

# Instructions with zero stack effect that replace the top of the stack
_TRANSFORMING_PREFIXES = (
    "UNARY_",
    "TO_BOOL",
    "GET_ITER",
    "GET_AWAITABLE",
    "GET_AITER",
    "GET_YIELD_FROM_ITER",
    "FORMAT_SIMPLE",
    "CONVERT_VALUE",
    "CALL_INTRINSIC_1",
)


# ─── Symbols ──────────────────────────────────────────────────────────


class Unknown:
    """A stack value whose origin is not tracked."""

    _instance: "Unknown | None" = None

    def __new__(cls) -> "Unknown":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNKNOWN"


UNKNOWN = Unknown()


class Local(NamedTuple):
    """A fast local, cell or free variable."""

    name: str


class Global(NamedTuple):
    name: str


class Attribute(NamedTuple):
    owner: "Symbol"
    name: str


class Constant(NamedTuple):
    value: Any


class CallResult(NamedTuple):
    call: "CallSite"


Symbol = Union[Unknown, Local, Global, Attribute, Constant, CallResult]


# ─── Events ───────────────────────────────────────────────────────────


class AttributeStore(NamedTuple):
    owner: Symbol
    name: str
    value: Symbol


class AttributeLoad(NamedTuple):
    owner: Symbol
    name: str


class LocalBinding(NamedTuple):
    name: str
    value: Symbol


class CallSite(NamedTuple):
    """
    One call. ``callees`` holds the two stack slots below the arguments;
    depending on the interpreter version and call form either may be the
    callable, the other is ``self``, a NULL marker or the callable again.
    """

    callees: tuple[Symbol, Symbol]
    arguments: tuple[Symbol, ...]
    keywords: tuple[str, ...]

    @property
    def positional(self) -> tuple[Symbol, ...]:
        return self.arguments[: len(self.arguments) - len(self.keywords)]


class ValueReturn(NamedTuple):
    value: Symbol


Event = Union[AttributeStore, AttributeLoad, LocalBinding, CallSite, ValueReturn]


# ─── Public API ───────────────────────────────────────────────────────


def disassemble(code: CodeType, nested: bool = True) -> tuple[Event, ...]:
    """
    Return the events of ``code`` in instruction order.

    With ``nested`` the events of code objects defined inside it
    (lambdas, inner functions, comprehensions) follow its own.
    """
    events = _StackMachine(code).run()
    if nested:
        for const in code.co_consts:
            if isinstance(const, CodeType):
                events.extend(disassemble(const, nested=True))
    return tuple(events)


# ─── Internal ─────────────────────────────────────────────────────────


class _StackMachine:
    def __init__(self, code: CodeType) -> None:
        self._code = code
        self._stack: list[Symbol] = []
        self._events: list[Event] = []
        self._kwnames: tuple[str, ...] = ()

    def run(self) -> list[Event]:
        snapshots: dict[int, list[Symbol]] = {}
        falls_through = True

        for instr in dis.get_instructions(self._code):
            if not falls_through:
                self._stack = list(snapshots.get(instr.offset, ()))
            falls_through = instr.opname not in _NO_FALLTHROUGH

            self._step(instr)

            if instr.opcode in _JUMP_OPCODES:
                target = _jump_target(instr)
                if target is not None:
                    snapshots.setdefault(target, list(self._stack))

        return self._events

    # ── stack primitives ──

    def _push(self, symbol: Symbol) -> None:
        self._stack.append(symbol)

    def _pop(self) -> Symbol:
        return self._stack.pop() if self._stack else UNKNOWN

    def _pop_many(self, count: int) -> tuple[Symbol, ...]:
        items = [self._pop() for _ in range(count)]
        items.reverse()
        return tuple(items)

    def _bind(self, name: str) -> None:
        self._events.append(LocalBinding(name, self._pop()))

    # ── instruction dispatch ──

    def _step(self, instr: dis.Instruction) -> None:
        op = instr.opname

        if op.startswith("LOAD_FAST") or op in ("LOAD_DEREF", "LOAD_CLOSURE"):
            names = instr.argval if isinstance(instr.argval, tuple) else (instr.argval,)
            for name in names:
                self._push(Local(name))

        elif op == "STORE_FAST_LOAD_FAST":
            store, load = instr.argval
            self._bind(store)
            self._push(Local(load))

        elif op == "STORE_FAST_STORE_FAST":
            for name in instr.argval:
                self._bind(name)

        elif op in ("STORE_FAST", "STORE_DEREF"):
            self._bind(instr.argval)

        elif op in ("LOAD_GLOBAL", "LOAD_NAME"):
            symbol = Global(instr.argval)
            self._push(symbol)
            if op == "LOAD_GLOBAL" and instr.arg is not None and instr.arg & 1:
                self._push(symbol)

        elif op == "LOAD_CONST":
            self._push(Constant(instr.argval))

        elif op in ("LOAD_ATTR", "LOAD_METHOD"):
            owner = self._pop()
            self._events.append(AttributeLoad(owner, instr.argval))
            symbol = Attribute(owner, instr.argval)
            self._push(symbol)
            if op == "LOAD_METHOD" or (
                _LOAD_ATTR_HAS_METHOD_FLAG and instr.arg is not None and instr.arg & 1
            ):
                self._push(symbol)

        elif op == "STORE_ATTR":
            owner = self._pop()
            value = self._pop()
            self._events.append(AttributeStore(owner, instr.argval, value))

        elif op == "RETURN_VALUE":
            self._events.append(ValueReturn(self._pop()))

        elif op == "KW_NAMES":
            names = instr.argval
            if not isinstance(names, tuple):
                names = self._code.co_consts[instr.arg]
            self._kwnames = tuple(names)

        elif op == "PRECALL":
            pass

        elif op == "CALL":
            self._call(instr.arg or 0, self._kwnames)
            self._kwnames = ()

        elif op == "CALL_KW":
            names = self._pop()
            keywords = ()
            if isinstance(names, Constant) and isinstance(names.value, tuple):
                keywords = names.value
            self._call(instr.arg or 0, keywords)

        else:
            self._generic(instr)

    def _call(self, argc: int, keywords: tuple[str, ...]) -> None:
        arguments = self._pop_many(argc)
        upper = self._pop()
        lower = self._pop()
        call = CallSite((lower, upper), arguments, tuple(keywords))
        self._events.append(call)
        self._push(CallResult(call))

    def _generic(self, instr: dis.Instruction) -> None:
        effect = _stack_effect(instr)
        op = instr.opname

        if effect < 0:
            if op.startswith(_CONSUMING_PREFIXES):
                self._pop_many(-effect)
            else:
                self._pop_many(1 - effect)
                self._push(UNKNOWN)
        elif effect == 0:
            if op.startswith(_TRANSFORMING_PREFIXES):
                self._pop()
                self._push(UNKNOWN)
        else:
            for _ in range(effect):
                self._push(UNKNOWN)


def _stack_effect(instr: dis.Instruction) -> int:
    arg = instr.arg if instr.opcode >= dis.HAVE_ARGUMENT else None
    try:
        return dis.stack_effect(instr.opcode, arg, jump=False)
    except ValueError:
        return 0


def _jump_target(instr: dis.Instruction) -> int | None:
    target = getattr(instr, "jump_target", None)
    if target is None and isinstance(instr.argval, int):
        target = instr.argval
    return target
