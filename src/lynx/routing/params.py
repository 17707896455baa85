"""Route path syntax.

Paths follow the Express convention::

    /users/:id              named parameter
    /users/:id(\\d+)        parameter with a regex constraint
    /posts/:slug?           optional parameter
    /files/*                wildcard

Matching is case-insensitive and tolerates a trailing slash.
``argument_names`` is the single source of parameter order for both
registration and dispatch.
"""

import re
from dataclasses import dataclass
from urllib.parse import unquote

# (optional leading slash) :name (optional regex) (optional "?") | "*"
_TOKEN_RE = re.compile(r"(/)?:(\w+)(?:\(((?:\\.|[^\\()])+)\))?(\?)?|(\*)")

_DEFAULT_SEGMENT = r"[^/]+?"


def argument_names(path: str) -> list[str]:
    """Parameter names of *path*, left to right.

    Segments starting with ``:`` are parameters; a regex constraint
    or optional marker is stripped from the name::

        >>> argument_names("/:id(\\d+)/sub/:name?")
        ['id', 'name']
    """
    names: list[str] = []
    for segment in path.split("/"):
        if not segment.startswith(":"):
            continue
        name = segment[1:].split("(", 1)[0].rstrip("?")
        if name:
            names.append(name)
    return names


def join_paths(base: str, path: str) -> str:
    """Join a controller base path and a route path, collapsing ``//``.

    A trailing slash is dropped (except for the root itself).
    """
    joined = re.sub(r"//+", "/", f"/{base}/{path}")
    return joined.rstrip("/") or "/"


@dataclass(frozen=True, slots=True)
class CompiledPath:
    """A path pattern compiled to a regex with ordered parameter names."""

    path: str
    regex: re.Pattern[str]
    names: tuple[str, ...]

    def match(self, target: str) -> dict[str, str] | None:
        """Parameters of *target* if it matches, else ``None``."""
        m = self.regex.match(target)
        if m is None:
            return None
        params: dict[str, str] = {}
        for index, name in enumerate(self.names):
            value = m.group(f"p{index}")
            if value is not None:
                params[name] = unquote(value)
        return params


def compile_path(path: str, *, end: bool = True) -> CompiledPath:
    """Compile an Express-style *path*.

    With ``end=False`` the pattern matches any path it is a prefix of
    (on a segment boundary), which is how middleware mounts work.
    """
    names: list[str] = []
    parts: list[str] = []
    position = 0
    wildcards = 0

    for token in _TOKEN_RE.finditer(path):
        parts.append(re.escape(path[position : token.start()]))
        position = token.end()
        slash, name, constraint, optional, star = token.groups()
        group = f"p{len(names)}"

        if star:
            names.append(str(wildcards))
            wildcards += 1
            parts.append(f"(?P<{group}>.*)")
            continue

        names.append(name)
        capture = f"(?P<{group}>{constraint or _DEFAULT_SEGMENT})"
        lead = "/" if slash else ""
        if optional:
            parts.append(f"(?:{lead}{capture})?")
        else:
            parts.append(f"{lead}{capture}")

    parts.append(re.escape(path[position:]))
    pattern = "".join(parts)
    if pattern.endswith("/"):
        pattern = pattern[:-1]
    suffix = "/?$" if end else "/?(?=/|$)"
    return CompiledPath(path, re.compile(f"^{pattern}{suffix}", re.IGNORECASE), tuple(names))
