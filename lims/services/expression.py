"""Arithmetic evaluation for formula parameters.

Only numbers, ``+ - * /``, unary signs and parentheses are accepted. The
input is the formula string after dependency names have been replaced by
their values, e.g. ``"70 / (175/100 * 175/100)"``.

Grammar::

    expr   := term (("+" | "-") term)*
    term   := factor (("*" | "/") factor)*
    factor := ("+" | "-") factor | NUMBER | "(" expr ")"
"""

from __future__ import annotations

import math
import re

_TOKEN_RE = re.compile(r"\s*(?:(\d+(?:\.\d*)?(?:[eE][+-]?\d+)?|\.\d+(?:[eE][+-]?\d+)?)|(.))")


class ExpressionError(ValueError):
    pass


def tokenize(text: str) -> list[str]:
    tokens: list[str] = []
    pos = 0
    text = text.rstrip()
    while pos < len(text):
        match = _TOKEN_RE.match(text, pos)
        if not match:
            raise ExpressionError(f"Unexpected input at position {pos}")
        number, op = match.groups()
        if number is not None:
            tokens.append(number)
        elif op in "+-*/()":
            tokens.append(op)
        else:
            raise ExpressionError(f"Unexpected character {op!r}")
        pos = match.end()
    return tokens


class _Parser:
    def __init__(self, tokens: list[str]):
        self.tokens = tokens
        self.pos = 0

    def peek(self) -> str | None:
        return self.tokens[self.pos] if self.pos < len(self.tokens) else None

    def take(self) -> str:
        token = self.peek()
        if token is None:
            raise ExpressionError("Unexpected end of expression")
        self.pos += 1
        return token

    def parse(self) -> float:
        if not self.tokens:
            raise ExpressionError("Empty expression")
        value = self.expr()
        if self.peek() is not None:
            raise ExpressionError(f"Unexpected token {self.peek()!r}")
        return value

    def expr(self) -> float:
        value = self.term()
        while self.peek() in ("+", "-"):
            if self.take() == "+":
                value += self.term()
            else:
                value -= self.term()
        return value

    def term(self) -> float:
        value = self.factor()
        while self.peek() in ("*", "/"):
            op = self.take()
            rhs = self.factor()
            if op == "*":
                value *= rhs
            elif rhs == 0:
                raise ExpressionError("Division by zero")
            else:
                value /= rhs
        return value

    def factor(self) -> float:
        token = self.take()
        if token == "+":
            return self.factor()
        if token == "-":
            return -self.factor()
        if token == "(":
            value = self.expr()
            if self.take() != ")":
                raise ExpressionError("Missing closing parenthesis")
            return value
        if token in ("*", "/", ")"):
            raise ExpressionError(f"Unexpected token {token!r}")
        return float(token)


def evaluate_expression(text: str) -> float:
    result = _Parser(tokenize(text)).parse()
    if math.isnan(result) or math.isinf(result):
        raise ExpressionError("Expression did not produce a finite number")
    return result
