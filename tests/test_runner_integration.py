"""
Integration test for the CLI runner (no provider credentials, no network).

Verifies the runner works end-to-end:
1. Single request -> canonical JSON on stdout
2. JSONL batch -> raw and summary CSVs
3. Health check exit status
"""

import json

import pandas as pd
import pytest
from unittest.mock import patch

from pte_scoring_core.runner import load_requests, main, parse_args
from pte_scoring_core.domain.errors import InvalidRequest


@pytest.fixture(autouse=True)
def no_credentials():
    """Run without API keys and without reading a local .env"""
    with patch.dict("os.environ", {}, clear=True), patch("pte_scoring_core.runner.load_dotenv"):
        yield


def _write_jsonl(path, rows):
    path.write_text("\n".join(json.dumps(r) for r in rows) + "\n", encoding="utf-8")


class TestParseArgs:
    def test_mode_required(self):
        with pytest.raises(SystemExit):
            parse_args([])

    def test_modes_are_exclusive(self):
        with pytest.raises(SystemExit):
            parse_args(["--request", "a.json", "--health"])

    def test_defaults(self):
        args = parse_args(["--batch", "in.jsonl"])
        assert args.output_dir == "results"
        assert args.providers is None
        assert args.timeout_ms is None


class TestLoadRequests:
    def test_blank_lines_skipped(self, tmp_path):
        path = tmp_path / "in.jsonl"
        path.write_text('{"section": "reading"}\n\n{"section": "writing"}\n', encoding="utf-8")
        assert [r["section"] for r in load_requests(path)] == ["reading", "writing"]

    def test_invalid_line_raises(self, tmp_path):
        path = tmp_path / "in.jsonl"
        path.write_text('{"section": "reading"}\nnot json\n', encoding="utf-8")
        with pytest.raises(InvalidRequest, match=":2:"):
            load_requests(path)


class TestSingleRequest:
    def test_prints_canonical_json(self, tmp_path, capsys):
        path = tmp_path / "request.json"
        path.write_text(json.dumps({
            "section": "listening",
            "question_type": "write_from_dictation",
            "payload": {"targetText": "the cat sat down", "userText": "the dog sat down"},
        }), encoding="utf-8")

        main(["--request", str(path)])

        data = json.loads(capsys.readouterr().out)
        assert data["overall"] == 70
        assert data["subscores"] == {"wer": 75, "correctness": 68}
        assert data["metadata"]["provider"] == "deterministic"

    def test_subjective_without_credentials_falls_back(self, tmp_path, capsys):
        path = tmp_path / "request.json"
        path.write_text(json.dumps({
            "section": "writing",
            "question_type": "write_essay",
            "payload": {"text": "Cities grow quickly. Transport must keep up."},
        }), encoding="utf-8")

        main(["--request", str(path), "--timeout-ms", "500"])

        data = json.loads(capsys.readouterr().out)
        assert data["metadata"]["fallback"] == "heuristic"
        assert "aiError" in data["metadata"]

    def test_invalid_request_exits_non_zero(self, tmp_path):
        path = tmp_path / "request.json"
        path.write_text(json.dumps({"section": "reading", "question_type": "multiple_choice_single"}))
        with pytest.raises(SystemExit) as exc:
            main(["--request", str(path)])
        assert exc.value.code == 1


class TestBatch:
    def test_writes_raw_and_summary(self, tmp_path, capsys):
        input_path = tmp_path / "requests.jsonl"
        _write_jsonl(input_path, [
            {
                "section": "reading",
                "question_type": "reorder_paragraphs",
                "payload": {"userOrder": ["A", "C", "B"], "correctOrder": ["A", "B", "C"]},
            },
            {
                "section": "reading",
                "question_type": "reorder_paragraphs",
                "payload": {"userOrder": ["A", "B", "C"], "correctOrder": ["A", "B", "C"]},
            },
            {"section": "reading", "question_type": "reorder_paragraphs", "payload": {}},
        ])
        output_dir = tmp_path / "out"

        main(["--batch", str(input_path), "--output-dir", str(output_dir)])

        raw_files = list(output_dir.glob("raw_scores_*.csv"))
        summary_files = list(output_dir.glob("summary_*.csv"))
        assert len(raw_files) == 1
        assert len(summary_files) == 1

        raw_df = pd.read_csv(raw_files[0])
        assert len(raw_df) == 3
        summary_df = pd.read_csv(summary_files[0])
        assert summary_df.loc[0, "count"] == 2
        assert summary_df.loc[0, "mean_overall"] == 75.0
        assert summary_df.loc[0, "invalid"] == 1

        out = capsys.readouterr().out
        assert "=== Summary ===" in out
        assert "INVALID" in out

    def test_bad_jsonl_exits_non_zero(self, tmp_path):
        input_path = tmp_path / "requests.jsonl"
        input_path.write_text("{broken\n", encoding="utf-8")
        with pytest.raises(SystemExit) as exc:
            main(["--batch", str(input_path), "--output-dir", str(tmp_path / "out")])
        assert exc.value.code == 1


class TestHealth:
    def test_no_credentials_exits_non_zero(self, capsys):
        with pytest.raises(SystemExit) as exc:
            main(["--health", "--providers", "openai,claude"])
        assert exc.value.code == 1
        out = capsys.readouterr().out
        assert "openai... FAILED" in out
        assert "claude... FAILED" in out
        assert "gemini" not in out

    def test_invalid_env_timeout_still_runs(self, tmp_path, capsys):
        """Unparsable numeric env values fall back to defaults instead of aborting"""
        path = tmp_path / "request.json"
        path.write_text(json.dumps({
            "section": "reading",
            "question_type": "multiple_choice_single",
            "payload": {"selectedOption": "B", "correctOption": "B"},
        }), encoding="utf-8")
        with patch.dict("os.environ", {"PTE_SCORING_TIMEOUT_MS": "soon", "PTE_SCORING_MAX_RETRIES": "many"}):
            main(["--request", str(path)])
        assert json.loads(capsys.readouterr().out)["overall"] == 90
