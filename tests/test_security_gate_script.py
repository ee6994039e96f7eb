"""Tests for the source-tree security/PII gate script."""

import importlib.util
from pathlib import Path

import pytest

SCRIPT = Path(__file__).resolve().parent.parent / "scripts" / "gate_security_pii.py"


@pytest.fixture(scope="module")
def gate_script():
    loader_spec = importlib.util.spec_from_file_location("gate_security_pii", SCRIPT)
    module = importlib.util.module_from_spec(loader_spec)
    loader_spec.loader.exec_module(module)
    return module


def _write(tmp_path, body: str) -> Path:
    path = tmp_path / "sample.py"
    path.write_text(body, encoding="utf-8")
    return path


class TestCheckFile:
    def test_print_is_flagged(self, gate_script, tmp_path):
        errors = gate_script.check_file(_write(tmp_path, "print('hi')\n"))
        assert any("print()" in e for e in errors)

    def test_unredacted_sender_is_flagged(self, gate_script, tmp_path):
        path = _write(tmp_path, 'logger.info("got %s", event.sender_id)\n')
        errors = gate_script.check_file(path)
        assert any("sender_id" in e for e in errors)

    def test_multiline_redacted_call_passes(self, gate_script, tmp_path):
        body = (
            "logger.info(\n"
            '    "inbound event rejected",\n'
            '    extra={"extra_fields": safe_log_context(\n'
            "        sender=event.sender_id,\n"
            "    )},\n"
            ")\n"
        )
        assert gate_script.check_file(_write(tmp_path, body)) == []

    def test_credential_term_in_text_is_flagged(self, gate_script, tmp_path):
        path = _write(tmp_path, 'logger.info("refreshing token")\n')
        errors = gate_script.check_file(path)
        assert any("credential" in e for e in errors)

    def test_project_sources_pass(self, gate_script):
        src = SCRIPT.parent.parent / "src"
        errors = [e for f in sorted(src.rglob("*.py")) for e in gate_script.check_file(f)]
        assert errors == []
