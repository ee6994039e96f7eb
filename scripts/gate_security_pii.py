#!/usr/bin/env python3
"""Security & PII gate for source files.

Fails if:
- print( found in runtime code (src/**)
- a logger call mentions sender data (phone, email, text) without going
  through the masking helpers
- a logger call's literal text contains a credential term (those records
  would be dropped by the credential guard at runtime anyway)

Logger calls are checked over their full argument span, so multi-line
`extra={"extra_fields": safe_log_context(...)}` blocks count as redacted.

Usage:
    python scripts/gate_security_pii.py
"""

import re
import sys
from pathlib import Path

# Identifiers that carry sender PII
SENSITIVE_KEYWORDS = (
    "sender_id",
    "sender_name",
    "raw_text",
    "phone",
    "email",
    "payload",
    "request.json",
)

# Pattern for print statements
PRINT_PATTERN = re.compile(r"\bprint\s*\(")

# Pattern for logger calls: logger.info/debug/warning/error/critical(...)
LOGGER_CALL_PATTERN = re.compile(
    r"logger\.(debug|info|warning|error|critical|exception)\s*\("
)

# Quoted literals inside a logger call
STRING_LITERAL_PATTERN = re.compile(r"(['\"])(.*?)\1")

CREDENTIAL_TERM_PATTERN = re.compile(r"password|token|secret|key", re.IGNORECASE)

# Patterns that indicate proper redaction usage
REDACTION_PATTERNS = (
    "safe_log_context",
    "redact_value",
    "redact_string",
    "mask_phone",
    "mask_email",
)


def _call_span(lines: list[str], start: int) -> tuple[str, int]:
    """Return the text of a call starting at lines[start] and its last index.

    Balances parentheses; string contents are not parsed, which is good
    enough for logger calls.
    """
    depth = 0
    chunk: list[str] = []
    for idx in range(start, len(lines)):
        line = lines[idx]
        chunk.append(line)
        depth += line.count("(") - line.count(")")
        if depth <= 0:
            return "\n".join(chunk), idx
    return "\n".join(chunk), len(lines) - 1


def check_file(filepath: Path) -> list[str]:
    """Check a single file for violations. Returns list of error messages."""
    errors = []
    try:
        content = filepath.read_text(encoding="utf-8")
    except UnicodeDecodeError:
        return []  # Skip binary files

    lines = content.splitlines()

    for lineno, line in enumerate(lines, start=1):
        stripped = line.lstrip()

        # Skip comments
        if stripped.startswith("#"):
            continue

        code_part = line.split("#")[0] if "#" in line else line
        if PRINT_PATTERN.search(code_part):
            errors.append(f"{filepath}:{lineno}: print() not allowed in runtime code")

        if not LOGGER_CALL_PATTERN.search(code_part):
            continue

        call, _ = _call_span(lines, lineno - 1)
        call_lower = call.lower()
        has_redaction = any(rp in call for rp in REDACTION_PATTERNS)

        for keyword in SENSITIVE_KEYWORDS:
            if keyword in call_lower and not has_redaction:
                errors.append(
                    f"{filepath}:{lineno}: logger call with '{keyword}' "
                    "must use redaction (safe_log_context/mask_phone/mask_email)"
                )

        for _, literal in STRING_LITERAL_PATTERN.findall(call):
            if CREDENTIAL_TERM_PATTERN.search(literal):
                errors.append(
                    f"{filepath}:{lineno}: logger call text mentions a credential term"
                )
                break

    return errors


def main() -> int:
    """Run gate check on src directory."""
    src_dir = Path("src")

    if not src_dir.exists():
        # Try from project root
        src_dir = Path(__file__).parent.parent / "src"

    if not src_dir.exists():
        sys.stderr.write("Error: src directory not found\n")
        return 1

    all_errors: list[str] = []

    for pyfile in sorted(src_dir.rglob("*.py")):
        all_errors.extend(check_file(pyfile))

    if all_errors:
        sys.stderr.write("Security/PII gate FAILED - violations found:\n")
        for err in all_errors:
            sys.stderr.write(f"  {err}\n")
        return 1

    sys.stdout.write("Security/PII gate PASSED - no violations found\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
