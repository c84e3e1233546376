"""Directive pass: which symbols are functions, their linkage, and aliases.

Recognized GNU as directives::

    .type   name, @function       (also #function, %function, "function", STT_FUNC)
    .globl  name[, name...]       (also .global)
    .weak   name[, name...]
    .set    old, new              (also .equ)

Everything else is ignored. A recognized directive whose operands do not have
the expected shape is recorded as a MALFORMED_DIRECTIVE issue and skipped.
"""

from __future__ import annotations

import re

from asmgraph.asm.models import Classification, Linkage
from asmgraph.core.errors import AsmParseError
from asmgraph.core.logging import get_logger

log = get_logger("asm.directives")

# Plain symbol token: letters, digits, '_', '.', '$'; not starting with a digit
SYMBOL = re.compile(r"[A-Za-z_.$][\w.$]*")
QUOTED_SYMBOL = re.compile(r'"((?:[^"\\]|\\.)+)"')

_DIRECTIVE = re.compile(r"\.(?P<keyword>[A-Za-z_][\w]*)(?:\s+(?P<operands>.*))?$")
_TYPE_COMMA = re.compile(r'(?P<name>"[^"]+"|[^,\s]+)\s*,\s*[#@%"]?(?P<kind>[A-Za-z_]+)"?\s*$')
_TYPE_STT = re.compile(r'(?P<name>"[^"]+"|\S+)\s+(?P<kind>STT_[A-Z_]+)\s*$')

_FUNCTION_KINDS = frozenset({"function", "gnu_indirect_function", "STT_FUNC", "STT_GNU_IFUNC"})
_LINKAGE_KEYWORDS = {"globl": Linkage.GLOBAL, "global": Linkage.GLOBAL, "weak": Linkage.WEAK}
_ALIAS_KEYWORDS = frozenset({"set", "equ"})

# Characters an alias target may carry in front of the bare name
_ALIAS_TARGET_DECORATION = ",= \t"


def parse_symbol(token: str) -> str | None:
    """Return the bare symbol name for a token, or None if it is not a symbol."""
    token = token.strip()
    if quoted := QUOTED_SYMBOL.fullmatch(token):
        return quoted.group(1)
    if SYMBOL.fullmatch(token):
        return token
    return None


def strip_comment(operands: str) -> str:
    """Remove a trailing ``#`` comment from directive operands.

    clang ends directives with comments such as ``# -- Begin function foo``.
    A ``#`` inside quotes, or a ``#function`` type tag right after a comma, is
    operand text.
    """
    in_quotes = False
    for i, ch in enumerate(operands):
        if ch == '"' and operands[i - 1 : i] != "\\":
            in_quotes = not in_quotes
        elif ch == "#" and not in_quotes:
            if operands[:i].rstrip().endswith(",") and operands[i + 1 : i + 2].isalpha():
                continue
            return operands[:i].strip()
    return operands.strip()


def classify(text: str) -> Classification:
    """Scan all directive lines of a listing.

    Never raises for content problems; malformed directives are collected in
    ``Classification.issues``.
    """
    result = Classification()

    for line_no, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line.startswith("."):
            continue
        match = _DIRECTIVE.match(line)
        if match is None:
            continue
        keyword = match.group("keyword")
        operands = strip_comment(match.group("operands") or "")

        if keyword == "type":
            _handle_type(result, operands, line_no, raw)
        elif keyword in _LINKAGE_KEYWORDS:
            _handle_linkage(result, _LINKAGE_KEYWORDS[keyword], operands, line_no, raw)
        elif keyword in _ALIAS_KEYWORDS:
            _handle_alias(result, operands, line_no, raw)

    log.debug(
        "listing_classified",
        functions=len(result.functions),
        external=sum(1 for v in result.linkage.values() if v.is_external),
        aliases=len(result.aliases),
        malformed=len(result.issues),
    )
    return result


def _malformed(result: Classification, line_no: int, raw: str, reason: str) -> None:
    issue = AsmParseError.malformed_directive(line_no, raw, reason)
    result.issues.append(issue)
    log.debug("directive_skipped", **issue.to_dict())


def _handle_type(result: Classification, operands: str, line_no: int, raw: str) -> None:
    match = _TYPE_COMMA.match(operands) or _TYPE_STT.match(operands)
    if match is None:
        _malformed(result, line_no, raw, "expected '.type name, @kind'")
        return
    name = parse_symbol(match.group("name"))
    if name is None:
        _malformed(result, line_no, raw, "type directive names no symbol")
        return
    if match.group("kind") in _FUNCTION_KINDS:
        result.functions.add(name)


def _handle_linkage(
    result: Classification, linkage: Linkage, operands: str, line_no: int, raw: str
) -> None:
    names = [n for n in operands.split(",") if n.strip()]
    if not names:
        _malformed(result, line_no, raw, "linkage directive names no symbol")
        return
    for token in names:
        name = parse_symbol(token)
        if name is None:
            _malformed(result, line_no, raw, f"not a symbol: {token.strip()!r}")
            continue
        # Global beats weak if a listing declares both
        if result.linkage.get(name) is not Linkage.GLOBAL:
            result.linkage[name] = linkage


def _handle_alias(result: Classification, operands: str, line_no: int, raw: str) -> None:
    old, sep, target = operands.partition(",")
    if not sep:
        _malformed(result, line_no, raw, "expected '.set old, new'")
        return
    old_name = parse_symbol(old)
    target_name = parse_symbol(target.lstrip(_ALIAS_TARGET_DECORATION))
    if old_name is None or target_name is None:
        # Expressions like '.set .LANCHOR0, . + 0' are not symbol aliases
        _malformed(result, line_no, raw, "alias operands are not plain symbols")
        return
    if old_name != target_name:
        result.aliases[old_name] = target_name
