import re
from typing import Callable, List, Optional

from npc_brain.core.directives import COMMAND_MARKER, Directive, DirectiveKind
from npc_brain.core.errors import ParseFailure

# Turns script lines written by the Script Service into Directives the Character understands.
# Matchers are tried in priority order. Each one either returns a Directive, returns None
# ("not mine"), or raises ParseFailure ("mine, but broken").

MOVE_PREFIX = "move to"
SAY_PREFIX = "say"

# Script grammar, searched against the text after "move to"
_MOVE_TALK_EMOTION_RE = re.compile(r"\*\*(.*?)\*\*\s+and\s+talk\s+#(\w+)\s+\((.*?)\)")
_MOVE_EMOTION_RE = re.compile(r"\*\*(.*?)\*\*\s*\((.*?)\)")
_MOVE_ONLY_RE = re.compile(r"\*\*(.*?)\*\*")

# Canonical output, recognised so re-parsing is a no-op
_CANONICAL_MOVE_RE = re.compile(
    r"^\$[Mm]ove to (?P<location>.+?)(?: #(?P<topic>\w+))?(?: \((?P<emotion>[^()]*)\))?$"
)
_CANONICAL_SAY_RE = re.compile(r'^Say"(?P<text>.*)"$', re.DOTALL)

Matcher = Callable[[str, str, bool], Optional[Directive]]


def _match_move(line: str, body: str, marked: bool) -> Optional[Directive]:
    if not body.startswith(MOVE_PREFIX):
        return None
    rest = body[len(MOVE_PREFIX):].strip()

    m = _MOVE_TALK_EMOTION_RE.search(rest)
    if m:
        location, topic, emotion = m.group(1), m.group(2), m.group(3)
        return Directive(
            text=f"$Move to {location} #{topic} ({emotion})",
            kind=DirectiveKind.MOVE, raw=line, marked=marked,
            location=location, topic=topic, emotion=emotion,
        )

    m = _MOVE_EMOTION_RE.search(rest)
    if m:
        location, emotion = m.group(1), m.group(2)
        return Directive(
            text=f"$move to {location} ({emotion})",
            kind=DirectiveKind.MOVE, raw=line, marked=marked,
            location=location, emotion=emotion,
        )

    m = _MOVE_ONLY_RE.search(rest)
    if m:
        location = m.group(1)
        return Directive(
            text=f"$move to {location}",
            kind=DirectiveKind.MOVE, raw=line, marked=marked,
            location=location,
        )

    # "$move to Podium" is canonical already, let the marker rule take it
    if marked:
        return None
    raise ParseFailure(line, "Failed to parse move command")


def _match_say(line: str, body: str, marked: bool) -> Optional[Directive]:
    if not body.startswith(SAY_PREFIX):
        return None

    start = body.find("{")
    end = body.rfind("}")
    if start < 0 or end <= start + 1:
        raise ParseFailure(line, "Failed to parse say command")

    text = body[start + 1:end]
    return Directive(text=f'Say"{text}"', kind=DirectiveKind.SAY, raw=line, marked=marked)


def _match_canonical_say(line: str, body: str, marked: bool) -> Optional[Directive]:
    if _CANONICAL_SAY_RE.match(line):
        return Directive(text=line, kind=DirectiveKind.SAY, raw=line, marked=marked)
    return None


def _match_marked(line: str, body: str, marked: bool) -> Optional[Directive]:
    if not marked:
        return None

    m = _CANONICAL_MOVE_RE.match(line)
    if m:
        return Directive(
            text=line, kind=DirectiveKind.MOVE, raw=line, marked=True,
            location=m.group("location"), topic=m.group("topic"), emotion=m.group("emotion"),
        )
    # e.g. "$dance"
    return Directive(text=line, kind=DirectiveKind.PASSTHROUGH, raw=line, marked=True)


_MATCHERS: List[Matcher] = [_match_move, _match_say, _match_canonical_say, _match_marked]


def parse(raw_line: str) -> Directive:
    """
    Converts one raw script line into a Directive. Never raises.

    Lines that match no rule are returned unchanged with `error` set, so the
    caller can log them and still forward the text as a degraded directive.
    """
    line = raw_line.strip()
    marked = line.startswith(COMMAND_MARKER)
    body = line[len(COMMAND_MARKER):] if marked else line
    body = body.strip().strip('"').strip()

    try:
        for matcher in _MATCHERS:
            directive = matcher(line, body, marked)
            if directive is not None:
                return directive
        raise ParseFailure(line, "Unknown command format")
    except ParseFailure as e:
        return Directive(
            text=line, kind=DirectiveKind.UNKNOWN, raw=line, marked=marked, error=str(e)
        )
