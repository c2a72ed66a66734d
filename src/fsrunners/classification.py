"""Classification of backend output into outcome categories.

Each backend phrases failures differently ("cannot find the path",
"No such file or directory", "Cannot find path ..."). The phrasing lives in
one YAML rule table per backend under ``fsrunners/rules``; the matching logic
here is shared and knows nothing about any particular shell.
"""

from __future__ import annotations

import errno
import logging
import re
from collections.abc import Sequence
from importlib import resources
from typing import Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from fsrunners.types import (
    ClassifiedOutcome,
    InvocationResult,
    Operation,
    OperationKind,
    OutcomeCategory,
)

logger = logging.getLogger(__name__)

RULES_PACKAGE = "fsrunners"
RULES_DIR = "rules"


class RuleTableError(Exception):
    """A rule table is missing or malformed."""

    pass


class ClassificationRule(BaseModel):
    """One (pattern -> category) rule."""

    model_config = ConfigDict(frozen=True)

    pattern: str
    category: OutcomeCategory
    regex: bool = False
    source: Literal["stdout", "stderr", "combined"] = "combined"
    kinds: frozenset[OperationKind] | None = None

    def applies_to(self, kind: OperationKind) -> bool:
        """Check whether the rule is scoped to this operation kind."""
        return self.kinds is None or kind in self.kinds

    def matches(self, operation: Operation, result: InvocationResult) -> bool:
        """Check whether the rule matches an invocation result.

        Args:
            operation: Operation that produced the result.
            result: Invocation result to test.

        Returns:
            True if the rule applies to the operation and its pattern occurs
            in the selected stream.
        """
        if not self.applies_to(operation.kind):
            return False
        if self.source == "stdout":
            text = result.stdout
        elif self.source == "stderr":
            text = result.stderr
        else:
            text = result.combined_text
        if self.regex:
            return re.search(self.pattern, text) is not None
        return self.pattern in text


class RuleTable(BaseModel):
    """Ordered rule table for a shell backend."""

    backend: str
    rules: list[ClassificationRule] = Field(default_factory=list)


class ErrorCodeTable(BaseModel):
    """Error-code table for the native backend."""

    backend: str
    winerror: dict[int, OutcomeCategory] = Field(default_factory=dict)
    errno: dict[str, OutcomeCategory] = Field(default_factory=dict)


def _load_yaml(backend: str) -> dict:
    resource = resources.files(RULES_PACKAGE).joinpath(RULES_DIR).joinpath(f"{backend}.yaml")
    try:
        data = yaml.safe_load(resource.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise RuleTableError(f"No rule table for backend '{backend}'") from e
    except yaml.YAMLError as e:
        raise RuleTableError(f"Invalid rule table for backend '{backend}': {e}") from e
    if not isinstance(data, dict):
        raise RuleTableError(f"Rule table for backend '{backend}' must be a mapping")
    return data


def load_rule_table(backend: str) -> RuleTable:
    """Load the packaged rule table for a shell backend.

    Args:
        backend: Backend name (bash, cmd, powershell).

    Returns:
        Parsed RuleTable.

    Raises:
        RuleTableError: If the table is missing or invalid.
    """
    try:
        return RuleTable.model_validate(_load_yaml(backend))
    except ValidationError as e:
        raise RuleTableError(f"Invalid rule table for backend '{backend}': {e}") from e


def load_error_code_table(backend: str = "native") -> ErrorCodeTable:
    """Load the packaged error-code table for the native backend."""
    try:
        return ErrorCodeTable.model_validate(_load_yaml(backend))
    except ValidationError as e:
        raise RuleTableError(f"Invalid error-code table for backend '{backend}': {e}") from e


class OutputClassifier:
    """Maps an invocation result to a classified outcome.

    Rules are tried in order and the first match wins, regardless of exit
    status. With no match, exit status 0 is SUCCESS and anything else is
    UNKNOWN. A timed-out invocation is always UNKNOWN.
    """

    def __init__(self, rules: Sequence[ClassificationRule], runner: str = "") -> None:
        """Initialize with an ordered rule list.

        Args:
            rules: Rules in priority order.
            runner: Backend name recorded on produced outcomes.
        """
        self.rules = tuple(rules)
        self.runner = runner

    @classmethod
    def for_backend(cls, backend: str) -> OutputClassifier:
        """Create a classifier from a backend's packaged rule table."""
        table = load_rule_table(backend)
        return cls(table.rules, runner=table.backend)

    def classify(self, operation: Operation, result: InvocationResult) -> ClassifiedOutcome:
        """Classify the result of running an operation.

        Args:
            operation: Operation that was run.
            result: Captured process result.

        Returns:
            ClassifiedOutcome for the operation.
        """
        raw_text = result.combined_text
        if result.timed_out:
            category = OutcomeCategory.UNKNOWN
            raw_text = f"(timed out)\n{raw_text}" if raw_text else "(timed out)"
        else:
            category = self._match(operation, result)

        logger.debug("[%s] %s -> %s", self.runner, operation.describe(), category.value)
        return ClassifiedOutcome(
            operation=operation,
            category=category,
            raw_text=raw_text,
            output=result.stdout,
            runner=self.runner,
        )

    def _match(self, operation: Operation, result: InvocationResult) -> OutcomeCategory:
        for rule in self.rules:
            if rule.matches(operation, result):
                return rule.category
        if result.exit_code == 0:
            return OutcomeCategory.SUCCESS
        return OutcomeCategory.UNKNOWN


class ErrorCodeClassifier:
    """Maps an ``OSError`` to an outcome category by error code.

    Windows error codes are consulted first since they are more specific
    (a sharing violation surfaces as EACCES through ``errno``).
    """

    def __init__(self, table: ErrorCodeTable) -> None:
        self.table = table
        self._by_errno: dict[int, OutcomeCategory] = {}
        for name, category in table.errno.items():
            code = getattr(errno, name, None)
            if code is None:
                logger.debug("Skipping errno %s: not defined on this platform", name)
                continue
            self._by_errno[code] = category

    @classmethod
    def for_backend(cls, backend: str = "native") -> ErrorCodeClassifier:
        return cls(load_error_code_table(backend))

    def category_for(self, error: OSError) -> OutcomeCategory:
        winerror = getattr(error, "winerror", None)
        if winerror is not None and winerror in self.table.winerror:
            return self.table.winerror[winerror]
        if error.errno is not None and error.errno in self._by_errno:
            return self._by_errno[error.errno]
        return OutcomeCategory.UNKNOWN
