"""Condition operands and the evaluation subject.

An operand names the URL attribute a condition inspects. The subject is the
attribute bag derived once from the URL being dispatched and shared by every
condition of an evaluation pass.
"""

import logging
from types import MappingProxyType
from typing import Dict, List, NamedTuple, Optional, Tuple
from urllib.parse import SplitResult, urlsplit

from constants import LOGGER_NAME, ConditionOperand, ConditionOperator
from errors import MalformedUrl, UnknownOperand

logger = logging.getLogger(f"{LOGGER_NAME}.operands")

Op = ConditionOperator

_EQUALITY = (Op.IS.value, Op.IS_NOT.value)
_STRING = (
    Op.IS.value,
    Op.IS_NOT.value,
    Op.CONTAINS.value,
    Op.NOT_CONTAINS.value,
    Op.STARTS_WITH.value,
    Op.NOT_STARTS_WITH.value,
    Op.ENDS_WITH.value,
    Op.NOT_ENDS_WITH.value,
)


class OperandDescriptor(NamedTuple):
    uid: str
    supported_operators: Tuple[str, ...]


HOST = OperandDescriptor(ConditionOperand.HOST.value, _STRING)
SCHEME = OperandDescriptor(ConditionOperand.SCHEME.value, _EQUALITY)
PATH = OperandDescriptor(ConditionOperand.PATH.value, _STRING)
PORT = OperandDescriptor(ConditionOperand.PORT.value, _EQUALITY)
URL = OperandDescriptor(ConditionOperand.URL.value, (Op.REGEX.value,))
# reserved, never populated in the subject
APP = OperandDescriptor(ConditionOperand.APP.value, _EQUALITY)
EXTENSION = OperandDescriptor(ConditionOperand.EXTENSION.value, _EQUALITY)

OPERANDS = MappingProxyType({d.uid: d for d in (HOST, SCHEME, PATH, PORT, URL)})
RESERVED_OPERANDS = MappingProxyType({d.uid: d for d in (APP, EXTENSION)})


def _key(uid) -> str:
    return uid.value if isinstance(uid, ConditionOperand) else uid


def get_operand(uid) -> OperandDescriptor:
    try:
        return OPERANDS[_key(uid)]
    except (KeyError, TypeError):
        raise UnknownOperand(uid) from None


def supported_operators(uid) -> List[str]:
    return list(get_operand(uid).supported_operators)


def operands_table() -> Dict[str, List[str]]:
    """Operand id -> operator ids the UI may offer for it."""
    return {uid: list(d.supported_operators) for uid, d in OPERANDS.items()}


def _raw_port(netloc: str) -> Optional[str]:
    """Port digits as written, taken after the last ':' past any ']' of an IPv6 host."""
    hostport = netloc.rpartition("@")[2]
    tail = hostport.rpartition("]")[2]
    _, sep, port = tail.rpartition(":")
    if not sep or not port.isdigit():
        return None
    return port


def parse_url(value: str) -> Tuple[SplitResult, Optional[str]]:
    if not isinstance(value, str):
        raise MalformedUrl(repr(value), "not a string")
    try:
        parts = urlsplit(value.strip())
    except ValueError as exc:
        raise MalformedUrl(value, str(exc)) from exc
    # port kept as written: no int conversion, no range check
    return parts, _raw_port(parts.netloc)


def create_subject(value: str) -> Dict[str, Optional[str]]:
    subject = {
        URL.uid: value,
        HOST.uid: None,
        SCHEME.uid: None,
        PATH.uid: None,
        PORT.uid: None,
    }
    try:
        parts, port = parse_url(value)
    except MalformedUrl as exc:
        logger.debug("%s", exc)
        return subject

    path = parts.path
    if not path and parts.netloc:
        path = "/"
    subject[HOST.uid] = parts.hostname
    subject[SCHEME.uid] = f"{parts.scheme}:" if parts.scheme else None
    subject[PATH.uid] = path or None
    subject[PORT.uid] = port
    return subject
