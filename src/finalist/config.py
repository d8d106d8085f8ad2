"""Reporting options and the source pragmas that set them."""

from __future__ import annotations

from dataclasses import dataclass, replace

PRAGMA_PREFIX = "finalist:"


@dataclass(frozen=True)
class Options:
    """Which variable families are surfaced. Both default to on."""

    report_locals: bool = True
    report_parameters: bool = True

    def with_overrides(
        self, no_locals: bool = False, no_parameters: bool = False
    ) -> Options:
        out = self
        if no_locals:
            out = replace(out, report_locals=False)
        if no_parameters:
            out = replace(out, report_parameters=False)
        return out


def _extract_pragmas(source: str) -> list[str]:
    """Scan leading comment lines for `// finalist: ...` pragmas."""
    pragmas: list[str] = []
    for line in source.split("\n"):
        stripped = line.strip()
        if stripped == "":
            continue
        if not stripped.startswith("//"):
            break
        body = stripped[2:].strip()
        if body.startswith(PRAGMA_PREFIX):
            pragmas.append(body[len(PRAGMA_PREFIX) :].strip())
    return pragmas


def options_from_pragmas(source: str, base: Options | None = None) -> Options:
    """Options for source: base (or defaults) adjusted by leading pragmas."""
    options = base if base is not None else Options()
    for pragma in _extract_pragmas(source):
        if pragma == "no-locals":
            options = replace(options, report_locals=False)
        elif pragma == "no-parameters":
            options = replace(options, report_parameters=False)
        elif pragma == "locals":
            options = replace(options, report_locals=True)
        elif pragma == "parameters":
            options = replace(options, report_parameters=True)
    return options
