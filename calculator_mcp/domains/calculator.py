"""
Calculator Domain

Arithmetic tools on two numbers.

This domain provides:
- add, subtract, multiply, divide
"""

from __future__ import annotations

import logging

from ..capabilities import ParamSpec, ParamType, ToolSpec
from ..models import CalculatorResult

logger = logging.getLogger(__name__)

Number = int | float

_OPERANDS: dict[str, ParamSpec] = {
    "a": ParamSpec(type=ParamType.NUMBER.value, description="First number"),
    "b": ParamSpec(type=ParamType.NUMBER.value, description="Second number"),
}


def format_number(value: Number) -> str:
    """Render a number the way a JSON client would: 3.0 becomes "3"."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _formula(a: Number, symbol: str, b: Number, result: Number) -> str:
    return f"{format_number(a)} {symbol} {format_number(b)} = {format_number(result)}"


class CalculatorTools:
    """Service backing the calculator tools."""

    def add(self, a: Number, b: Number) -> CalculatorResult:
        logger.info(f"Adding {a} + {b}")
        result = a + b
        return CalculatorResult(
            operation="addition",
            result=result,
            formula=_formula(a, "+", b, result),
        )

    def subtract(self, a: Number, b: Number) -> CalculatorResult:
        logger.info(f"Subtracting {a} - {b}")
        result = a - b
        return CalculatorResult(
            operation="subtraction",
            result=result,
            formula=_formula(a, "-", b, result),
        )

    def multiply(self, a: Number, b: Number) -> CalculatorResult:
        logger.info(f"Multiplying {a} × {b}")
        result = a * b
        return CalculatorResult(
            operation="multiplication",
            result=result,
            formula=_formula(a, "×", b, result),
        )

    def divide(self, a: Number, b: Number) -> CalculatorResult:
        """Divide a by b. Division by zero is reported in the result, not raised."""
        logger.info(f"Dividing {a} ÷ {b}")
        if b == 0:
            return CalculatorResult(operation="division", error="Cannot divide by zero")

        result = a / b
        return CalculatorResult(
            operation="division",
            result=result,
            formula=_formula(a, "÷", b, result),
        )

    def tools(self) -> list[ToolSpec]:
        """Capability table for this service."""
        return [
            ToolSpec(
                name="add",
                title="Addition Tool",
                description="Add two numbers.",
                params=dict(_OPERANDS),
                handler=self.add,
            ),
            ToolSpec(
                name="subtract",
                title="Subtraction Tool",
                description="Subtract the second number from the first.",
                params=dict(_OPERANDS),
                handler=self.subtract,
            ),
            ToolSpec(
                name="multiply",
                title="Multiplication Tool",
                description="Multiply two numbers.",
                params=dict(_OPERANDS),
                handler=self.multiply,
            ),
            ToolSpec(
                name="divide",
                title="Division Tool",
                description="Divide the first number by the second.",
                params={
                    "a": ParamSpec(type=ParamType.NUMBER.value, description="Dividend"),
                    "b": ParamSpec(type=ParamType.NUMBER.value, description="Divisor"),
                },
                handler=self.divide,
            ),
        ]
