"""
Best-effort recovery of a Backlog from raw LLM output.

The text may be a bare YAML document, a document wrapped in a fenced code
block, a document surrounded by prose, or a JSON-leaning fragment with
unquoted keys. Extraction produces candidate documents in a fixed order;
the first candidate that parses (directly, or after one repair pass) wins
and is then validated.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

import yaml
from pydantic import ValidationError

from .errors import EmptyInputError, StructuralParseError
from .graph import validate_backlog
from .model import Backlog

logger = logging.getLogger(__name__)

PROJECT_KEY = "project:"
TASKS_KEY = "tasks:"
FENCE = "```"
TAGGED_FENCES = ("```yaml", "```yml")
# Checked in this order; the first one present ends the document.
SECTION_TERMINATORS = ("\n\n", "\r\n\r\n", "---", "###")


# ---------------------- extraction ----------------------


def _looks_like_document(text: str) -> bool:
    return text.strip().startswith(PROJECT_KEY) or (PROJECT_KEY in text and TASKS_KEY in text)


def _fenced_block(text: str, opener: str) -> Optional[str]:
    start = text.find(opener)
    if start == -1:
        return None
    body_start = start + len(opener)
    end = text.find(FENCE, body_start)
    if end == -1 or end == body_start:
        return None
    body = text[body_start:end].strip()
    return body or None


def _tagged_block(text: str) -> Optional[str]:
    for opener in TAGGED_FENCES:
        block = _fenced_block(text, opener)
        if block is not None:
            return block
    return None


def _project_section(text: str) -> Optional[str]:
    start = text.find(PROJECT_KEY)
    if start == -1:
        return None
    rest = text[start:]
    for marker in SECTION_TERMINATORS:
        end = rest.find(marker)
        if end > 0:
            return rest[:end].strip()
    return rest.strip()


def _staged_candidates(text: str) -> List[Tuple[str, str]]:
    stages = (
        ("document", lambda s: s if _looks_like_document(s) else None),
        ("yaml-fence", _tagged_block),
        ("fence", lambda s: _fenced_block(s, FENCE)),
        ("project-section", _project_section),
    )
    candidates: List[Tuple[str, str]] = []
    for name, stage in stages:
        found = stage(text)
        if found is None or any(found == c for _, c in candidates):
            continue
        candidates.append((name, found))
    return candidates or [("input", text)]


def extract_candidates(text: str) -> List[str]:
    """
    Candidate documents, in the order they should be tried:

    1. the whole input, when it already looks like a backlog document
    2. the body of a ```yaml fenced block
    3. the body of the first plain ``` fenced block
    4. the text from the first ``project:`` up to a blank line, ``---`` or ``###``

    When none of the stages apply the input itself is the only candidate.
    """
    return [c for _, c in _staged_candidates(text)]


def extract_document(text: str) -> str:
    """The most plausible document substring of `text`."""
    return extract_candidates(text)[0]


# ---------------------- repair ----------------------


@dataclass(frozen=True)
class RepairRule:
    name: str
    pattern: re.Pattern[str]
    replacement: str

    def apply(self, text: str) -> str:
        return self.pattern.sub(self.replacement, text)


def _quote_key_rule(key: str) -> RepairRule:
    # Bare key only: not already quoted, not the tail of a longer word.
    return RepairRule(
        name=f"quote-{key}-key",
        pattern=re.compile(rf'(?<![\w"\'-]){re.escape(key)}:'),
        replacement=f'"{key}":',
    )


REPAIR_RULES: Tuple[RepairRule, ...] = tuple(
    _quote_key_rule(key) for key in ("id", "title", "depends", "deliverable", "done_when")
)


def repair_document(text: str, rules: Tuple[RepairRule, ...] = REPAIR_RULES) -> str:
    for rule in rules:
        text = rule.apply(text)
    return text


# ---------------------- parsing ----------------------


def parse_backlog(text: str) -> Backlog:
    """
    Strict parse: the text must be a YAML mapping that validates as a Backlog.
    Raises StructuralParseError otherwise. No dependency checks are done here.
    """
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise StructuralParseError(str(e)) from e
    if not isinstance(data, dict):
        raise StructuralParseError(f"expected a mapping at the top level, got {type(data).__name__}")
    try:
        return Backlog.model_validate(data)
    except ValidationError as e:
        raise StructuralParseError(str(e)) from e


def _iter_parse_attempts(candidates: List[Tuple[str, str]]) -> Iterator[Tuple[str, str, str]]:
    for stage, candidate in candidates:
        yield stage, "strict", candidate
        repaired = repair_document(candidate)
        if repaired != candidate:
            yield stage, "repaired", repaired


def recover_document(raw: str) -> Backlog:
    """
    Recover a Backlog from raw text without running dependency validation.
    """
    if not raw.strip():
        raise EmptyInputError()

    first_error: Optional[StructuralParseError] = None
    for stage, mode, text in _iter_parse_attempts(_staged_candidates(raw)):
        try:
            backlog = parse_backlog(text)
        except StructuralParseError as e:
            if first_error is None:
                first_error = e
            logger.debug("%s candidate from stage %s did not parse: %s", mode, stage, e.detail)
            continue
        if mode == "repaired":
            logger.warning("backlog from stage %s parsed only after repairing unquoted keys", stage)
        logger.debug("accepted %s candidate from stage %s", mode, stage)
        return backlog

    logger.warning("Failed to parse YAML; response sample: %r", raw[:200])
    detail = first_error.detail if first_error is not None else "no candidate document"
    raise StructuralParseError(detail) from first_error


def recover_and_parse(raw: str) -> Backlog:
    """
    Recover a Backlog from raw text and validate it.

    Raises EmptyInputError, StructuralParseError, or a BacklogValidationError
    subclass. A returned Backlog has always passed validate_backlog.
    """
    backlog = recover_document(raw)
    validate_backlog(backlog)
    return backlog
