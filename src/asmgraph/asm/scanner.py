"""Body pass: instruction counts and direct call targets per function.

A function body starts at the unindented label of a symbol the directive pass
classified as a function, and ends at the next ``.size`` directive::

    foo:                      <- opens "foo"
    .LFB0:                    <- directive-prefixed, skipped
            .cfi_startproc    <- directive, skipped
            pushq   %rbp      <- counted
            call    bar@PLT   <- counted, edge foo -> bar
            ret               <- counted
            .size   foo, .-foo  <- closes "foo"

Blank lines and ``#`` comment lines are neither counted nor inspected.
"""

from __future__ import annotations

import re
from collections.abc import Collection

from asmgraph.asm.directives import classify, parse_symbol
from asmgraph.asm.models import CallSite, Classification, ParsedListing, ScanResult
from asmgraph.config.constants import DEFAULT_CALL_MNEMONICS
from asmgraph.core.errors import AsmParseError
from asmgraph.core.logging import get_logger

log = get_logger("asm.scanner")

# Instruction prefixes that may precede a call mnemonic
_CALL_PREFIXES = frozenset({"notrack", "bnd", "rex64", "data16"})

# Bare register operands; only meaningful after .intel_syntax, AT&T uses '%'
_INTEL_REGISTER = re.compile(
    r"(?:[re]?(?:[abcd]x|[sd]i|[sb]p|ip)|r(?:[89]|1[0-5])[dwb]?)", re.IGNORECASE
)


def decode_listing(data: str | bytes, source: str) -> str:
    """Return listing text, decoding bytes as UTF-8.

    Raises:
        AsmParseError: UNDECODABLE_INPUT if the bytes are not UTF-8 text.
    """
    if isinstance(data, str):
        return data
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise AsmParseError.undecodable(source, e.start, e.reason) from e


def _label_name(raw: str) -> str | None:
    """Name defined by an unindented ``name:`` line, if the line is one."""
    if not raw or raw[0].isspace():
        return None
    # clang appends "# @name" to function labels
    line = raw.split("#", 1)[0].rstrip() if not raw.startswith('"') else raw.rstrip()
    if not line.endswith(":") or len(line) < 2:
        return None
    return parse_symbol(line[:-1])


def _call_operand(line: str, call_mnemonics: Collection[str]) -> str | None:
    """Operand text of a call instruction, or None if the line is not a call."""
    parts = line.split(None, 1)
    while parts and parts[0].lower() in _CALL_PREFIXES:
        parts = parts[1].split(None, 1) if len(parts) > 1 else []
    if not parts or parts[0].lower() not in call_mnemonics:
        return None
    operand = parts[1] if len(parts) > 1 else ""
    return operand.split("#", 1)[0].strip()


def _is_indirect(operand: str, *, intel_syntax: bool) -> bool:
    if operand.startswith(("*", "%")):
        return True
    if "[" in operand or " ptr " in operand.lower():
        return True
    return intel_syntax and _INTEL_REGISTER.fullmatch(operand) is not None


def _call_target(operand: str) -> str | None:
    """Bare callee name with any ``@PLT``-style suffix removed."""
    if operand.startswith('"'):
        end = operand.find('"', 1)
        if end <= 1:
            return None
        return operand[1:end]
    return parse_symbol(operand.split("@", 1)[0])


def scan(
    text: str,
    classification: Classification,
    *,
    call_mnemonics: Collection[str] = DEFAULT_CALL_MNEMONICS,
    strict_orphan_calls: bool = True,
) -> ScanResult:
    """Walk function bodies of one listing.

    Raises:
        AsmParseError: ORPHAN_CALL if a call line appears outside any function
            body and ``strict_orphan_calls`` is set.
    """
    result = ScanResult()
    defined: set[str] = set()
    current: str | None = None
    intel_syntax = False

    for line_no, raw in enumerate(text.splitlines(), start=1):
        label = _label_name(raw)
        if label is not None and label in classification.functions:
            current = label
            if label not in defined:
                defined.add(label)
                result.definitions.append(label)
                result.instructions.setdefault(label, 0)
            continue

        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith((".intel_syntax", ".att_syntax")):
            intel_syntax = line.startswith(".intel_syntax")

        if current is None:
            if not line.startswith(".") and _call_operand(line, call_mnemonics) is not None:
                if strict_orphan_calls:
                    raise AsmParseError.orphan_call(line_no, raw)
                result.orphan_calls += 1
                log.debug("orphan_call_skipped", line=line_no, raw=line)
            continue

        if line.startswith("."):
            if line.startswith(".size") and (len(line) == 5 or line[5].isspace()):
                current = None
            else:
                result.skipped_directives += 1
            continue

        result.instructions[current] += 1

        operand = _call_operand(line, call_mnemonics)
        if operand is None:
            continue
        if operand and _is_indirect(operand, intel_syntax=intel_syntax):
            result.indirect_calls += 1
            continue
        target = _call_target(operand) if operand else None
        if target is None:
            issue = AsmParseError.unresolvable_operand(line_no, raw)
            result.issues.append(issue)
            result.dropped_calls += 1
            log.debug("call_dropped", **issue.to_dict())
            continue
        result.calls.append(
            CallSite(caller=current, callee=classification.resolve_alias(target), line=line_no)
        )

    return result


def parse_listing_text(
    data: str | bytes,
    source: str,
    *,
    call_mnemonics: Collection[str] = DEFAULT_CALL_MNEMONICS,
    strict_orphan_calls: bool = True,
) -> ParsedListing:
    """Decode and run both passes over one listing."""
    text = decode_listing(data, source)
    classification = classify(text)
    result = scan(
        text,
        classification,
        call_mnemonics=call_mnemonics,
        strict_orphan_calls=strict_orphan_calls,
    )
    log.debug(
        "listing_scanned",
        source=source,
        functions=len(result.definitions),
        instructions=result.total_instructions,
        calls=len(result.calls),
        indirect_calls=result.indirect_calls,
        dropped_calls=result.dropped_calls,
    )
    return ParsedListing(source=source, classification=classification, scan=result)
