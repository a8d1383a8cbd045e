"""
Utilities for find/replace templating of project files
"""

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Union

Pattern = Union[str, List[str]]


class TemplateError(ValueError):
    """
    Raised when a substitution cannot be applied safely
    """


@dataclass
class FindReplaceRule:
    """
    Replacement of `source` text by `to` in a single file

    `source` and `to` may be equal-length lists, paired by position.
    With `regex` set, `source` is a regular expression.
    """
    file: Path
    source: Pattern
    to: Pattern
    regex: bool = False

    def pairs(self) -> List[tuple]:
        if isinstance(self.source, str):
            if not isinstance(self.to, str):
                raise TemplateError(f"{self.file}: a single pattern needs a single replacement")
            return [(self.source, self.to)]

        to = [self.to] * len(self.source) if isinstance(self.to, str) else list(self.to)
        if len(to) != len(self.source):
            raise TemplateError(
                f"{self.file}: {len(self.source)} patterns but {len(to)} replacements"
            )
        return list(zip(self.source, to))


def find_text_between(beginning: str, end: str, document: str) -> str:
    """
    Finds the text between two markers within a document

    Args:
        beginning: Start marker
        end: End marker
        document: Text to search

    Returns:
        str: Text from the start of `beginning` through the end of `end`,
        both markers included, or an empty string if either is missing or
        `end` starts before `beginning`
    """
    beginning_pos = document.find(beginning)
    end_pos = document.find(end)
    if beginning_pos == -1 or end_pos == -1 or end_pos < beginning_pos:
        return ""
    return document[beginning_pos:end_pos + len(end)]


def replace_in_text(text: str, rule: FindReplaceRule) -> str:
    for source, to in rule.pairs():
        if not source:
            raise TemplateError(f"{rule.file}: refusing to replace an empty pattern")
        if rule.regex:
            text = re.sub(source, lambda _match, value=to: value, text, flags=re.S)
        else:
            text = text.replace(source, to)
    return text


def apply_substitutions(rules: Iterable[FindReplaceRule]) -> int:
    """
    Rewrites each rule's file in place

    Files are processed one by one; an error part way through leaves the
    earlier files already rewritten.

    Returns:
        int: Number of files whose content changed
    """
    changed = 0
    for rule in rules:
        path = Path(rule.file)
        content = path.read_text()
        updated = replace_in_text(content, rule)
        if updated != content:
            path.write_text(updated)
            changed += 1
            print(f"✅ Updated {path}")
        else:
            print(f"ℹ️ Nothing to replace in {path}")
    return changed
