"""Parser for Debian ifupdown/ifupdown2 interfaces files.

Reads the subset of the syntax this tool writes and that Proxmox uses:
``auto``/``allow-*`` lines, ``iface <name> <family> <method>`` stanzas
with indented options, ``source`` lines, full-line comments and
backslash line continuations. Option names are kept as written;
lookups treat ``bridge_ports`` and ``bridge-ports`` as the same option.
"""

from __future__ import annotations

from dataclasses import dataclass, field

_TOP_LEVEL = ("iface", "auto", "mapping", "source", "source-directory")


@dataclass
class IfaceStanza:
    """One ``iface`` block.

    Attributes:
        name: Interface name (e.g. 'vmbr2.55')
        family: Address family ('inet', 'inet6')
        method: Configuration method ('static', 'manual', 'loopback')
        options: (option, value) pairs in file order
        line: 1-based line number of the ``iface`` line
    """

    name: str
    family: str
    method: str
    options: list[tuple[str, str]] = field(default_factory=list)
    line: int = 0

    def get_all(self, key: str) -> list[str]:
        variants = {key, key.replace("-", "_"), key.replace("_", "-")}
        return [value for k, value in self.options if k in variants]

    def get(self, key: str) -> str | None:
        values = self.get_all(key)
        return values[0] if values else None

    @property
    def ovs_type(self) -> str | None:
        return self.get("ovs_type")

    @property
    def mtu(self) -> int | None:
        value = self.get("ovs_mtu") or self.get("mtu")
        if value is None:
            return None
        try:
            return int(value.split()[0])
        except ValueError:
            return None

    def ovs_options(self) -> dict[str, str]:
        """Split ``ovs_options`` into key=value pairs.

        >>> s = IfaceStanza('vmbr2.55', 'inet', 'static',
        ...                 [('ovs_options', 'tag=55 vlan_mode=access')])
        >>> s.ovs_options()['tag']
        '55'
        """
        result: dict[str, str] = {}
        for value in self.get_all("ovs_options"):
            for token in value.split():
                key, sep, val = token.partition("=")
                if sep:
                    result[key] = val
        return result


@dataclass
class InterfacesFile:
    """A parsed interfaces file."""

    auto: list[str] = field(default_factory=list)
    stanzas: list[IfaceStanza] = field(default_factory=list)
    sources: list[str] = field(default_factory=list)

    def find(self, name: str) -> list[IfaceStanza]:
        return [s for s in self.stanzas if s.name == name]

    def first(self, name: str) -> IfaceStanza | None:
        found = self.find(name)
        return found[0] if found else None

    @property
    def names(self) -> list[str]:
        return [s.name for s in self.stanzas]


def _logical_lines(text: str) -> list[tuple[int, str]]:
    """Join continuation lines and drop comments and blank lines.

    Returns (line_number, content) pairs, where line_number is the first
    physical line of each logical line.
    """
    result: list[tuple[int, str]] = []
    pending = ""
    start = 0
    for number, raw in enumerate(text.splitlines(), start=1):
        if not pending and raw.lstrip().startswith("#"):
            continue
        line = raw.rstrip()
        if not pending:
            start = number
        if line.endswith("\\"):
            pending += line[:-1].rstrip() + " "
            continue
        line = pending + (line.strip() if pending else line)
        pending = ""
        if line.strip():
            result.append((start, line))
    if pending.strip():
        result.append((start, pending.rstrip()))
    return result


def parse_interfaces(text: str) -> InterfacesFile:
    """Parse interfaces file text into stanzas.

    Unknown top-level keywords and malformed ``iface`` lines are
    skipped; option lines outside any stanza are ignored.
    """
    parsed = InterfacesFile()
    current: IfaceStanza | None = None

    for number, line in _logical_lines(text):
        indented = line[:1].isspace()
        words = line.split()
        keyword = words[0]

        if not indented and (keyword in _TOP_LEVEL or keyword.startswith("allow-")):
            current = None
            if keyword == "iface" and len(words) >= 4:
                current = IfaceStanza(
                    name=words[1], family=words[2], method=words[3], line=number,
                )
                parsed.stanzas.append(current)
            elif keyword == "auto" or keyword.startswith("allow-"):
                parsed.auto.extend(words[1:])
            elif keyword in ("source", "source-directory"):
                parsed.sources.extend(words[1:])
            continue

        if current is not None:
            value = " ".join(words[1:])
            current.options.append((keyword, value))

    return parsed
