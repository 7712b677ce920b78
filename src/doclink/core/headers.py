"""
Statement header analysis.

A header is the run of code tokens between the previous statement boundary
and a ``{`` or ``;``. These heuristics decide whether a header declares a
class, a function (named or anonymous) or nothing at all, without parsing
the language grammar.
"""

from dataclasses import dataclass
from enum import Enum

from doclink.core.dialects.rules import DialectRules
from doclink.core.models import DeclarationKind, ScopeKind
from doclink.core.tokenizer import CodeToken, TokenKind

_OPENERS = {"(": ")", "[": "]", "{": "}"}
_CLOSERS = {")": "(", "]": "[", "}": "{"}

# Words that end the name run after a class keyword
_CLASS_NAME_STOP = frozenset({
    "extends", "implements", "for", "where", "final", "sealed", "constructor",
    "with", "of", "private", "public", "protected", "internal",
})

# Tokens that cannot follow a parameter list in a declaration header
_TRAILER_REJECT = frozenset({
    "=", "+", "-", "/", "%", "!", "==", "!=", "===", "!==", "||", "+=",
    "-=", "*=", "/=", "%=", "?.", "??", "=>",
})

# Tokens allowed right before a declared name in a body-less prototype
_TYPE_SUFFIXES = frozenset({"*", "&", "&&", ">", "]", "?"})

_NON_TYPE_WORDS = frozenset({
    "return", "new", "delete", "throw", "await", "yield", "else", "case",
    "goto", "in", "of", "typeof", "instanceof",
})

_PURE_SPECIFIERS = frozenset({"0", "default", "delete"})

_BINDING_WORDS = frozenset({"var", "let", "const", "val", "auto", "this", "self"})


class HeaderShape(str, Enum):
    """What a header declares."""

    CLASS = "class"
    FUNCTION = "function"


@dataclass(frozen=True)
class HeaderMatch:
    """
    A declaration recognised in a header.

    Attributes:
        shape: CLASS or FUNCTION
        name: Declared or assigned name, empty when anonymous
        start: Offset of the first token of the declaring statement
    """

    shape: HeaderShape
    name: str
    start: int

    def declaration_kind(self, enclosing: ScopeKind) -> DeclarationKind:
        """
        Resolve the declaration kind given the nearest enclosing class or
        function frame.

        Functions without a name are anonymous. Named functions are methods
        inside a class, local (anonymous) functions inside another function's
        body and plain functions at file level.
        """
        if self.shape is HeaderShape.CLASS:
            return DeclarationKind.CLASS
        if not self.name:
            return DeclarationKind.ANONYMOUS_FUNCTION
        if enclosing is ScopeKind.CLASS:
            return DeclarationKind.METHOD
        if enclosing in (ScopeKind.FUNCTION, ScopeKind.ANONYMOUS_FUNCTION):
            return DeclarationKind.ANONYMOUS_FUNCTION
        return DeclarationKind.FUNCTION


def analyze_header(
    tokens: list[CodeToken],
    terminator: str,
    rules: DialectRules,
    enclosing: ScopeKind,
) -> HeaderMatch | None:
    """
    Decide what the header before a terminator declares.

    Args:
        tokens: Header tokens, oldest first
        terminator: ``"{"`` for a body, ``";"`` for a body-less statement
        rules: Dialect rules
        enclosing: Kind of the nearest enclosing non-block frame

    Returns:
        HeaderMatch, or None when the header is not a declaration.
    """
    tail = _tail(tokens, rules.bar_closures)
    if not tail:
        return None
    start = tail[0].start

    tail = _strip_decorations(tail, rules)
    if not tail:
        return None

    left, expr = _split_assignment(tail)
    assigned = _assigned_name(left) if left is not None else ""
    expr = _strip_modifiers(expr, rules)

    # ``x = foo();`` is a call, while ``r = new Runnable() {`` opens a class body
    signatures = left is None or terminator == "{"
    match = _match_expression(expr, terminator, rules, enclosing, signatures) if expr else None
    if match is None and left and terminator == ";":
        # ``fun area() = w * h`` and ``virtual void draw() = 0;`` declare on the left
        match = _match_expression(_strip_modifiers(left, rules), terminator, rules, enclosing)
        if match is not None and match[0] is not HeaderShape.FUNCTION:
            match = None
        assigned = ""
    if match is None:
        return None
    shape, name = match
    if name is None:
        name = ""
    elif not name:
        name = assigned
    return HeaderMatch(shape, name, start)


def is_decoration_only(tokens: list[CodeToken], rules: DialectRules) -> bool:
    """True when a header holds nothing but decorators and modifiers."""
    stripped = _strip_decorations(tokens, rules)
    return all(t.text in rules.modifier_keywords for t in stripped)


def _match_expression(
    expr: list[CodeToken],
    terminator: str,
    rules: DialectRules,
    enclosing: ScopeKind,
    signatures: bool = True,
) -> tuple[HeaderShape, str | None] | None:
    texts = [t.text for t in expr]
    depths = _depths(expr)

    # Lambdas: a trailing arrow before a body, or an expression-bodied arrow
    arrow = _find_depth0(texts, depths, rules.lambda_arrows)
    if arrow is not None:
        before = expr[:arrow]
        if terminator == ";" and rules.signature_functions:
            signature = _match_signature(before, ";", rules, enclosing)
            if signature is not None:
                return signature
        if terminator == "{" and arrow != len(expr) - 1:
            return None
        return HeaderShape.FUNCTION, ""

    if rules.bar_closures and _is_bar_closure(texts):
        return HeaderShape.FUNCTION, ""

    if rules.bracket_lambdas and texts[0] == "[" and texts[1:2] != ["["] and terminator == "{":
        return HeaderShape.FUNCTION, ""

    klass = _match_class(expr, texts, depths, terminator, rules)
    if klass is not None:
        return klass

    if rules.function_keywords:
        function = _match_keyword_function(expr, texts, depths, rules)
        if function is not None:
            return function

    if rules.signature_functions and signatures:
        return _match_signature(expr, terminator, rules, enclosing)
    return None


def _match_class(
    expr: list[CodeToken],
    texts: list[str],
    depths: list[int],
    terminator: str,
    rules: DialectRules,
) -> tuple[HeaderShape, str | None] | None:
    keyword = None
    for i, tok in enumerate(expr):
        if depths[i] == 0 and tok.is_word and tok.text in rules.class_keywords:
            if i > 0 and texts[i - 1] in (".", "::", "?."):
                continue
            keyword = i
            break
    if keyword is None:
        return None

    j = keyword + 1
    while j < len(expr) and texts[j] in rules.class_keywords:
        j += 1
    names: list[str] = []
    while j < len(expr):
        text = texts[j]
        if text == "<":
            j = _skip_angle(texts, j)
            continue
        if text == "::" or text == ".":
            j += 1
            continue
        if not expr[j].is_word or text in _CLASS_NAME_STOP:
            break
        names.append(text)
        j += 1
    name = names[-1] if names else ""

    if "for" in texts[keyword:]:
        after_for = texts.index("for", keyword) + 1
        if after_for < len(expr) and expr[after_for].is_word:
            name = texts[after_for]

    # ``struct point make_point(...)`` returns a struct, it does not declare one
    if rules.signature_functions:
        paren = _find_depth0(texts, depths, {"("}, start=keyword)
        if paren is not None and paren > 0:
            before = texts[paren - 1]
            if (
                expr[paren - 1].is_word
                and (len(names) > 1 or before != name)
                and before not in rules.control_keywords
            ):
                return None

    # ``struct Unit;`` declares, ``struct point origin;`` defines a variable
    if terminator == ";" and (len(names) != 1 or j < len(expr) and texts[j] not in ("(", "<", ":")):
        return None
    return HeaderShape.CLASS, name


def _match_keyword_function(
    expr: list[CodeToken],
    texts: list[str],
    depths: list[int],
    rules: DialectRules,
) -> tuple[HeaderShape, str | None] | None:
    keyword = None
    for i, tok in enumerate(expr):
        if depths[i] == 0 and tok.is_word and tok.text in rules.function_keywords:
            if i > 0 and texts[i - 1] in (".", "?."):
                continue
            keyword = i
            break
    if keyword is None:
        return None

    paren = _find_depth0(texts, depths, {"("}, start=keyword + 1)
    if paren is None:
        return None
    j = paren - 1
    if texts[j] == ">":
        j = _skip_angle_back(texts, j)
    if j > keyword and expr[j].is_word:
        return HeaderShape.FUNCTION, texts[j]
    return HeaderShape.FUNCTION, ""


def _match_signature(
    expr: list[CodeToken],
    terminator: str,
    rules: DialectRules,
    enclosing: ScopeKind,
) -> tuple[HeaderShape, str | None] | None:
    if not expr:
        return None
    texts = [t.text for t in expr]
    depths = _depths(expr)
    paren = _find_depth0(texts, depths, {"("})
    if paren is None or paren == 0:
        return None

    j = paren - 1
    if texts[j] == ">":
        j = _skip_angle_back(texts, j)
        if j < 0:
            return None
    if not expr[j].is_word:
        return None
    name = texts[j]
    prev = texts[j - 1] if j > 0 else None

    if prev == "new":
        # Anonymous class bodies never take the name they are assigned to
        if terminator == "{":
            return HeaderShape.CLASS, None
        return None
    if name in rules.control_keywords:
        return None
    if prev in (".", "?.", "->"):
        return None

    close = _matching_close(texts, paren)
    if close is None:
        return None
    trailer = texts[close + 1:]

    if terminator == ";":
        trailer = _drop_pure_specifier(trailer)
        if enclosing is not ScopeKind.CLASS:
            if prev is None or prev in _NON_TYPE_WORDS or prev in rules.control_keywords:
                return None
            if not (expr[j - 1].is_word or prev in _TYPE_SUFFIXES):
                return None

    if any(text in _TRAILER_REJECT for text in trailer):
        return None
    return HeaderShape.FUNCTION, name


def _drop_pure_specifier(trailer: list[str]) -> list[str]:
    """Drop ``= 0``, ``= default`` and ``= delete`` from a prototype trailer."""
    if len(trailer) >= 2 and trailer[-2] == "=" and trailer[-1] in _PURE_SPECIFIERS:
        return trailer[:-2]
    return trailer


def _is_bar_closure(texts: list[str]) -> bool:
    body = texts[1:] if texts and texts[0] == "move" else texts
    if not body:
        return False
    if body[0] == "||":
        return True
    return body[0] == "|" and "|" in body[1:]


def _tail(tokens: list[CodeToken], bar_closures: bool = False) -> list[CodeToken]:
    """
    Return the innermost expression at the end of a header.

    Drops everything up to the innermost unclosed bracket and, within it,
    up to the last top-level comma, so ``describe("x", function () {`` yields
    ``function ()``. With bar closures, commas between ``|`` bars belong to
    the closure's parameter list.
    """
    stack: list[int] = []
    for i, tok in enumerate(tokens):
        if tok.text in _OPENERS:
            stack.append(i)
        elif tok.text in _CLOSERS and stack:
            stack.pop()
    begin = stack[-1] + 1 if stack else 0

    depth = 0
    in_bars = False
    for i in range(begin, len(tokens)):
        text = tokens[i].text
        if text in _OPENERS:
            depth += 1
        elif text in _CLOSERS:
            depth = max(depth - 1, 0)
        elif text == "|" and depth == 0 and bar_closures:
            in_bars = not in_bars
        elif text == "," and depth == 0 and not in_bars:
            begin = i + 1
    return tokens[begin:]


def _strip_decorations(tokens: list[CodeToken], rules: DialectRules) -> list[CodeToken]:
    """Remove decorators, annotations, attributes and template prefixes."""
    texts = [t.text for t in tokens]
    kept: list[CodeToken] = []
    i = 0
    n = len(tokens)
    at_start = True
    while i < n:
        text = texts[i]
        if rules.decorator_prefix and text == rules.decorator_prefix and i + 1 < n and tokens[i + 1].is_word:
            if texts[i + 1] == "interface":
                i += 1
                continue
            i += 2
            while i + 1 < n and texts[i] == "." and tokens[i + 1].is_word:
                i += 2
            if i < n and texts[i] == "(":
                i = _skip_group(texts, i)
            continue
        if text in rules.attribute_openers and at_start:
            j = i + 1 if text == "#" else i
            if j < n and texts[j] == "!":
                j += 1
            if j < n and texts[j] == "[":
                i = _skip_group(texts, j)
                continue
        if text == "template" and i + 1 < n and texts[i + 1] == "<":
            i = _skip_angle(texts, i + 1)
            continue
        kept.append(tokens[i])
        at_start = False
        i += 1
    return kept


def _strip_modifiers(tokens: list[CodeToken], rules: DialectRules) -> list[CodeToken]:
    """Drop leading modifier keywords that are followed by more header."""
    i = 0
    while i + 1 < len(tokens):
        tok = tokens[i]
        follower = tokens[i + 1]
        if tok.is_word and tok.text in rules.modifier_keywords and (
            follower.is_word or follower.text in ("*", "#", "[", "<")
        ):
            i += 1
            continue
        break
    return tokens[i:]


def _split_assignment(tokens: list[CodeToken]) -> tuple[list[CodeToken] | None, list[CodeToken]]:
    """
    Split ``left = right`` at the last top-level ``=``, or an object property
    ``key: function`` at its colon. Returns (None, tokens) when there is none.
    """
    texts = [t.text for t in tokens]
    depths = _depths(tokens)
    for i in range(len(tokens) - 1, -1, -1):
        if depths[i] == 0 and texts[i] == "=":
            return tokens[:i], tokens[i + 1:]
    if len(tokens) > 2 and texts[1] == ":" and tokens[0].kind in (TokenKind.WORD, TokenKind.LITERAL):
        return tokens[:1], tokens[2:]
    return None, tokens


def _assigned_name(left: list[CodeToken]) -> str:
    texts = [t.text for t in left]
    depths = _depths(left)
    colon = _find_depth0(texts, depths, {":"})
    candidates = left[:colon] if colon is not None else left
    for tok in reversed(candidates):
        if tok.kind is TokenKind.LITERAL:
            return tok.text.strip("'\"`")
        if tok.is_word:
            return "" if tok.text in _BINDING_WORDS else tok.text
    return ""


def _depths(tokens: list[CodeToken]) -> list[int]:
    """Bracket depth of each token; openers sit at the outer depth."""
    depths = []
    depth = 0
    for tok in tokens:
        if tok.text in _CLOSERS:
            depth = max(depth - 1, 0)
        depths.append(depth)
        if tok.text in _OPENERS:
            depth += 1
    return depths


def _find_depth0(
    texts: list[str], depths: list[int], wanted, start: int = 0
) -> int | None:
    for i in range(start, len(texts)):
        if depths[i] == 0 and texts[i] in wanted:
            return i
    return None


def _matching_close(texts: list[str], open_index: int) -> int | None:
    depth = 0
    for i in range(open_index, len(texts)):
        if texts[i] in _OPENERS:
            depth += 1
        elif texts[i] in _CLOSERS:
            depth -= 1
            if depth == 0:
                return i
    return None


def _skip_group(texts: list[str], open_index: int) -> int:
    """Index just past the bracket group opened at open_index."""
    close = _matching_close(texts, open_index)
    return len(texts) if close is None else close + 1


def _skip_angle(texts: list[str], open_index: int) -> int:
    """Index just past the ``<...>`` group opened at open_index."""
    depth = 0
    for i in range(open_index, len(texts)):
        if texts[i] == "<":
            depth += 1
        elif texts[i] == ">":
            depth -= 1
            if depth == 0:
                return i + 1
        elif texts[i] in ("{", ";"):
            break
    return open_index + 1


def _skip_angle_back(texts: list[str], close_index: int) -> int:
    """Index of the token before the ``<...>`` group closed at close_index."""
    depth = 0
    for i in range(close_index, -1, -1):
        if texts[i] == ">":
            depth += 1
        elif texts[i] == "<":
            depth -= 1
            if depth == 0:
                return i - 1
    return -1
