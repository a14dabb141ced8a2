"""Rule evaluation: decides which rule, if any, handles a URL."""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from constants import LOGGER_NAME, RuleOperator
from models import Condition, Rule
from operands import create_subject, get_operand
from operators import Operator

logger = logging.getLogger(f"{LOGGER_NAME}.evaluators")

Subject = Dict[str, Optional[str]]


@dataclass(frozen=True)
class EvaluationOptions:
    # evaluate conditions flagged inactive as if they were active
    include_inactive_conditions: bool = False
    # treat starts_with/ends_with literals as plain text instead of regex
    strict_literals: bool = False


DEFAULT_OPTIONS = EvaluationOptions()


def evaluate_condition(condition: Condition, subject: Subject,
                       options: EvaluationOptions = DEFAULT_OPTIONS) -> bool:
    # operand/operator pairing is not checked here, any configured combination runs
    operand = get_operand(condition.operand)
    operator = Operator(condition.operator, condition.text, strict_literal=options.strict_literals)
    return operator.evaluate(subject.get(operand.uid))


def _conditions(rule: Rule, options: EvaluationOptions) -> Optional[List[Condition]]:
    conditions = list(rule.conditions)
    if options.include_inactive_conditions:
        return conditions
    active = [c for c in conditions if c.is_active]
    if conditions and not active:
        return None
    return active


def evaluate_rule(rule: Rule, subject: Subject,
                  options: EvaluationOptions = DEFAULT_OPTIONS) -> bool:
    conditions = _conditions(rule, options)
    if conditions is None:
        # every condition switched off
        return False
    results = (evaluate_condition(c, subject, options) for c in conditions)
    if rule.operator == RuleOperator.ANY.value:
        return any(results)
    return all(results)


def evaluate_rules(rules: Iterable[Rule], url: str,
                   options: Optional[EvaluationOptions] = None) -> Optional[Rule]:
    """Return the first rule matching ``url``, in the given order, or None.

    The URL is parsed once and the resulting subject is shared by every
    condition. Rules are not filtered by ``is_active``; callers pass the
    active subset.
    """
    options = options or DEFAULT_OPTIONS
    subject = create_subject(url)
    for rule in rules:
        if evaluate_rule(rule, subject, options):
            logger.debug("Rule '%s' matched %s", rule.name, url)
            return rule
    logger.debug("No rule matched %s", url)
    return None
