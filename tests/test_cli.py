"""
Test: command-line interface, covering status envelopes and exit codes.
"""

import json

import pytest

from report_layout.cli import EXIT_INVALID_PAYLOAD, EXIT_OK, main


def last_envelope(capsys):
    lines = capsys.readouterr().out.strip().splitlines()
    return json.loads(lines[-1])


class TestCli:
    def test_health(self, capsys):
        assert main(["health"]) == EXIT_OK
        assert last_envelope(capsys) == {"status": "success", "message": "Service is running"}

    def test_demo_then_render_pdf(self, tmp_path, capsys):
        payload_path = tmp_path / "sample.json"
        assert main(["demo", "--rows", "3", "--out", str(payload_path)]) == EXIT_OK
        payload = json.loads(payload_path.read_text(encoding="utf-8"))
        assert payload["reportType"] == "orders"
        capsys.readouterr()

        out = tmp_path / "report.pdf"
        assert main(["render", str(payload_path), "--out", str(out)]) == EXIT_OK
        result = last_envelope(capsys)
        assert result["status"] == "success"
        assert result["data"]["contentType"] == "application/pdf"
        assert out.read_bytes().startswith(b"%PDF")

    def test_render_xlsx(self, tmp_path, capsys):
        payload_path = tmp_path / "sample.json"
        main(["demo", "--out", str(payload_path)])
        out = tmp_path / "report.xlsx"

        assert main(["render", str(payload_path), "--format", "xlsx", "--out", str(out)]) == EXIT_OK
        assert out.read_bytes()[:2] == b"PK"

    def test_invalid_payload(self, tmp_path, capsys):
        payload_path = tmp_path / "bad.json"
        payload_path.write_text(json.dumps({"reportType": "x"}), encoding="utf-8")

        assert main(["render", str(payload_path), "--out", str(tmp_path / "x.pdf")]) == EXIT_INVALID_PAYLOAD
        result = last_envelope(capsys)
        assert result["status"] == "error"
        assert "title" in result["message"]
        assert not (tmp_path / "x.pdf").exists()

    def test_missing_input(self, tmp_path, capsys):
        assert main(["render", str(tmp_path / "nope.json")]) == EXIT_INVALID_PAYLOAD
        assert last_envelope(capsys)["status"] == "error"

    def test_missing_config(self, tmp_path, capsys):
        payload_path = tmp_path / "sample.json"
        main(["demo", "--out", str(payload_path)])
        capsys.readouterr()

        args = ["render", str(payload_path), "--config", str(tmp_path / "missing.yaml"), "--out", str(tmp_path / "r.pdf")]
        assert main(args) == EXIT_INVALID_PAYLOAD
        result = last_envelope(capsys)
        assert result["status"] == "error"
        assert "missing.yaml" in result["message"]
        assert not (tmp_path / "r.pdf").exists()

    def test_unknown_config_key(self, tmp_path, capsys):
        payload_path = tmp_path / "sample.json"
        main(["demo", "--out", str(payload_path)])
        config_path = tmp_path / "config.yaml"
        config_path.write_text("page_colour: red\n", encoding="utf-8")
        capsys.readouterr()

        assert main(["render", str(payload_path), "--config", str(config_path)]) == EXIT_INVALID_PAYLOAD
        result = last_envelope(capsys)
        assert result["status"] == "error"
        assert "Invalid configuration" in result["message"]

    def test_demo_is_deterministic(self, tmp_path):
        first, second = tmp_path / "a.json", tmp_path / "b.json"
        main(["demo", "--seed", "3", "--out", str(first)])
        main(["demo", "--seed", "3", "--out", str(second)])
        assert first.read_text(encoding="utf-8") == second.read_text(encoding="utf-8")

    def test_command_required(self):
        with pytest.raises(SystemExit):
            main([])
