"""Parser for the kernel's per-process accounting record (/proc/<pid>/stat).

Only the scheduling columns are extracted. Column positions follow proc(5):
field 18 is the kernel priority, field 19 the nice value and field 40 the
real-time priority (zero-based token indices 17, 18 and 39).
"""

from dataclasses import dataclass, fields

PRIORITY_INDEX = 17
NICE_INDEX = 18
RT_PRIORITY_INDEX = 39

# Records shorter than this are truncated or not a stat record at all.
MIN_TOKENS = 15


@dataclass(slots=True, frozen=True)
class SchedFields:
    """Scheduling attributes of a process; None means unresolved."""

    priority: int | None = None
    nice: int | None = None
    rt_priority: int | None = None

    @property
    def is_complete(self) -> bool:
        """Whether every field holds a value."""
        return all(getattr(self, f.name) is not None for f in fields(self))


def tokenize(text: str) -> list[str]:
    """
    Split a stat record into its whitespace-delimited fields.

    The command name in field 2 is wrapped in parentheses and may contain
    spaces, so everything up to the last ``)`` is kept as two tokens.
    """
    close = text.rfind(")")
    if close == -1:
        return text.split()

    head = text[: close + 1].strip().split(" ", 1)
    if len(head) != 2:
        return text.split()
    return head + text[close + 1 :].split()


def _int_at(tokens: list[str], index: int) -> int:
    """Integer value at ``index``, or 0 when it is absent or unparseable."""
    try:
        return int(tokens[index])
    except (IndexError, ValueError):
        return 0


def parse_stat(text: str) -> SchedFields | None:
    """
    Extract the scheduling fields from raw stat text.

    Returns:
        The parsed fields, or None if the record has fewer than MIN_TOKENS
        tokens. A single column that cannot be parsed becomes 0 without
        affecting the others.
    """
    tokens = tokenize(text)
    if len(tokens) < MIN_TOKENS:
        return None

    return SchedFields(
        priority=_int_at(tokens, PRIORITY_INDEX),
        nice=_int_at(tokens, NICE_INDEX),
        rt_priority=_int_at(tokens, RT_PRIORITY_INDEX),
    )
