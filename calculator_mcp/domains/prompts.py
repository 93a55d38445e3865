"""
Development Prompts Domain

Prompt templates for everyday code work. Several arguments come with
completers so clients can offer suggestions while the user types.

This domain provides:
- review-code, generate-docs, analyze-performance, generate-tests, refactor-code
- team-greeting, whose name suggestions depend on the chosen department
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Literal

import mcp.types as types

from ..capabilities import PromptArgument, PromptSpec, prefix_completer, substring_completer

DEPARTMENTS = ["engineering", "sales", "marketing", "support", "design", "product"]

NAMES_BY_DEPARTMENT: dict[str, list[str]] = {
    "engineering": ["Alice", "Bob", "Charlie", "Diana", "Edward"],
    "sales": ["David", "Eve", "Frank", "Grace", "Helen"],
    "marketing": ["Grace", "Henry", "Iris", "Jack", "Karen"],
    "support": ["Linda", "Mike", "Nancy", "Oscar", "Paula"],
    "design": ["Quinn", "Rachel", "Sam", "Tina", "Victor"],
    "product": ["Walter", "Xara", "Yuki", "Zane", "Anna"],
}


def _message(role: Literal["user", "assistant"], text: str) -> types.PromptMessage:
    return types.PromptMessage(role=role, content=types.TextContent(type="text", text=text))


def complete_team_member(value: str, context: Mapping[str, str]) -> list[str]:
    """Suggest names from the department already chosen, or a guest."""
    names = NAMES_BY_DEPARTMENT.get(context.get("department", ""), ["Guest"])
    return prefix_completer(names)(value, context)


class DevelopmentPrompts:
    """Service backing the prompt templates."""

    async def review_code(self, arguments: dict[str, str]) -> list[types.PromptMessage]:
        code = arguments["code"]
        return [
            _message(
                "user",
                "Please review this code for best practices, potential issues, "
                f"and improvements:\n\n```\n{code}\n```",
            )
        ]

    async def team_greeting(self, arguments: dict[str, str]) -> list[types.PromptMessage]:
        department = arguments["department"]
        name = arguments["name"]
        return [
            _message(
                "assistant",
                f"Hello {name}! Welcome to the {department} team! "
                "We're excited to have you on board.",
            )
        ]

    async def generate_docs(self, arguments: dict[str, str]) -> list[types.PromptMessage]:
        doc_type = arguments["type"]
        code = arguments["code"]
        doc_format = arguments["format"]
        return [
            _message(
                "user",
                f"Generate {doc_format} documentation for this {doc_type}:\n\n```\n{code}\n```\n\n"
                "Please include:\n"
                "- Purpose and functionality\n"
                "- Parameters and return values\n"
                "- Usage examples\n"
                "- Any important notes or warnings",
            )
        ]

    async def analyze_performance(self, arguments: dict[str, str]) -> list[types.PromptMessage]:
        language = arguments["language"]
        code = arguments["code"]
        context = arguments["context"]
        return [
            _message(
                "user",
                f"Analyze this {language} code for performance issues in the context of "
                f"a {context}:\n\n```{language.lower()}\n{code}\n```\n\n"
                "Focus on:\n"
                "- Time complexity\n"
                "- Memory usage\n"
                "- Potential bottlenecks\n"
                "- Optimization suggestions\n"
                f"- Best practices for {context}",
            )
        ]

    async def generate_tests(self, arguments: dict[str, str]) -> list[types.PromptMessage]:
        framework = arguments["framework"]
        code = arguments["code"]
        coverage = arguments["coverage"]
        return [
            _message(
                "user",
                f"Generate {coverage.lower()} unit tests using {framework} for this code:"
                f"\n\n```\n{code}\n```\n\n"
                "Include:\n"
                "- Happy path tests\n"
                "- Error cases\n"
                "- Edge cases\n"
                "- Mock setups if needed\n"
                "- Test descriptions and assertions",
            )
        ]

    async def refactor_code(self, arguments: dict[str, str]) -> list[types.PromptMessage]:
        focus = arguments["focus"]
        code = arguments["code"]
        constraints = arguments.get("constraints")
        constraints_text = f"\n\nConstraints: {constraints}" if constraints else ""
        return [
            _message(
                "user",
                f"Refactor this code focusing on {focus}:\n\n```\n{code}\n```{constraints_text}\n\n"
                "Provide:\n"
                "- Refactored code\n"
                "- Explanation of changes\n"
                "- Benefits of the refactoring\n"
                "- Any trade-offs or considerations",
            )
        ]

    def prompts(self) -> list[PromptSpec]:
        """Capability table for this service."""
        return [
            PromptSpec(
                name="review-code",
                title="Code Review",
                description="Review code for best practices and potential issues",
                handler=self.review_code,
                arguments=[PromptArgument("code", "The code to review")],
            ),
            PromptSpec(
                name="team-greeting",
                title="Team Greeting",
                description="Generate a greeting for team members",
                handler=self.team_greeting,
                arguments=[
                    PromptArgument(
                        "department", "Department name", complete=prefix_completer(DEPARTMENTS)
                    ),
                    PromptArgument("name", "Team member name", complete=complete_team_member),
                ],
            ),
            PromptSpec(
                name="generate-docs",
                title="Generate Documentation",
                description="Generate documentation for code or API endpoints",
                handler=self.generate_docs,
                arguments=[
                    PromptArgument(
                        "type",
                        "Type of documentation",
                        complete=substring_completer(["API", "Function", "Class", "Module", "README"]),
                    ),
                    PromptArgument("code", "Code or API to document"),
                    PromptArgument(
                        "format",
                        "Output format",
                        complete=substring_completer(["Markdown", "Docstring", "OpenAPI", "Plain Text"]),
                    ),
                ],
            ),
            PromptSpec(
                name="analyze-performance",
                title="Performance Analysis",
                description="Analyze code for performance issues and optimization opportunities",
                handler=self.analyze_performance,
                arguments=[
                    PromptArgument(
                        "language",
                        "Programming language",
                        complete=substring_completer(
                            ["JavaScript", "TypeScript", "Python", "Java", "C#", "Go", "Rust"]
                        ),
                    ),
                    PromptArgument("code", "Code to analyze"),
                    PromptArgument(
                        "context",
                        "Application context",
                        complete=substring_completer(
                            [
                                "Web Application",
                                "API Server",
                                "Database Query",
                                "Frontend Component",
                                "Background Job",
                            ]
                        ),
                    ),
                ],
            ),
            PromptSpec(
                name="generate-tests",
                title="Generate Unit Tests",
                description="Generate comprehensive unit tests for code",
                handler=self.generate_tests,
                arguments=[
                    PromptArgument(
                        "framework",
                        "Testing framework",
                        complete=substring_completer(
                            ["Jest", "Mocha", "Jasmine", "Vitest", "PyTest", "JUnit"]
                        ),
                    ),
                    PromptArgument("code", "Code to test"),
                    PromptArgument(
                        "coverage",
                        "Test coverage level",
                        complete=substring_completer(
                            ["Basic", "Comprehensive", "Edge Cases", "Integration"]
                        ),
                    ),
                ],
            ),
            PromptSpec(
                name="refactor-code",
                title="Code Refactoring",
                description="Suggest refactoring improvements for better code quality",
                handler=self.refactor_code,
                arguments=[
                    PromptArgument(
                        "focus",
                        "Refactoring focus",
                        complete=substring_completer(
                            [
                                "Clean Code",
                                "SOLID Principles",
                                "Design Patterns",
                                "Performance",
                                "Maintainability",
                            ]
                        ),
                    ),
                    PromptArgument("code", "Code to refactor"),
                    PromptArgument(
                        "constraints", "Any constraints or requirements", required=False
                    ),
                ],
            ),
        ]
