from __future__ import annotations

import io
import unittest
from contextlib import redirect_stderr
from unittest import mock

from fastapi.testclient import TestClient

from bfcr.transpiler import BrainfuckTranspiler
from bfcr.webui import create_app
from bfcr.webui.__main__ import main as serve_main


class TranslateApiTests(unittest.TestCase):
    def setUp(self) -> None:
        self.client = TestClient(create_app())

    def test_translate_returns_code(self) -> None:
        response = self.client.post("/api/translate", json={"source": "++>."})
        self.assertEqual(response.status_code, 200, response.text)
        payload = response.json()
        self.assertEqual(payload["code"], BrainfuckTranspiler().translate("++>."))
        self.assertEqual(payload["initial_cells"], 1)
        self.assertEqual(payload["helpers"], ["cinc", "pinc", "wc"])
        self.assertEqual(payload["statement_count"], 3)

    def test_translate_with_initial_cells(self) -> None:
        response = self.client.post(
            "/api/translate", json={"source": ">>>", "initial_cells": 100}
        )
        self.assertEqual(response.status_code, 200, response.text)
        self.assertEqual(response.json()["initial_cells"], 100)

    def test_translate_rejects_negative_initial_cells(self) -> None:
        response = self.client.post(
            "/api/translate", json={"source": ">", "initial_cells": -1}
        )
        self.assertEqual(response.status_code, 422)

    def test_translate_rejects_initial_cells_above_max_index(self) -> None:
        response = self.client.post(
            "/api/translate", json={"source": ">", "initial_cells": 2**70}
        )
        self.assertEqual(response.status_code, 422)

    def test_translate_reports_syntax_error(self) -> None:
        response = self.client.post("/api/translate", json={"source": "+]"})
        self.assertEqual(response.status_code, 422, response.text)
        detail = response.json()["detail"]
        self.assertEqual(detail["kind"], "unmatched_close_bracket")
        self.assertEqual(detail["line"], 1)
        self.assertEqual(detail["column"], 2)

    def test_translate_reports_unclosed_loop(self) -> None:
        response = self.client.post("/api/translate", json={"source": "[["})
        self.assertEqual(response.status_code, 422, response.text)
        self.assertEqual(response.json()["detail"]["kind"], "unmatched_open_bracket")


class RunApiTests(unittest.TestCase):
    def setUp(self) -> None:
        self.client = TestClient(create_app())

    def test_run_echoes_input(self) -> None:
        response = self.client.post("/api/run", json={"source": ",.,.", "input": "hi"})
        self.assertEqual(response.status_code, 200, response.text)
        payload = response.json()
        self.assertEqual(payload["output"], "hi")
        self.assertEqual(payload["exit_status"], 0)
        self.assertFalse(payload["aborted"])
        self.assertFalse(payload["input_exhausted"])

    def test_run_stops_on_exhausted_input(self) -> None:
        response = self.client.post("/api/run", json={"source": ",.,.+."})
        payload = response.json()
        self.assertEqual(payload["output"], "")
        self.assertTrue(payload["input_exhausted"])
        self.assertEqual(payload["exit_status"], 0)

    def test_run_reports_pointer_abort(self) -> None:
        response = self.client.post("/api/run", json={"source": "+.<."})
        self.assertEqual(response.status_code, 200, response.text)
        payload = response.json()
        self.assertTrue(payload["aborted"])
        self.assertEqual(payload["exit_status"], 101)
        self.assertEqual(payload["message"], "Left bound reached.")
        self.assertEqual(payload["output"], "\x01")

    def test_run_step_limit_conflict(self) -> None:
        response = self.client.post("/api/run", json={"source": "+[]", "max_steps": 5})
        self.assertEqual(response.status_code, 409, response.text)
        self.assertIn("detail", response.json())

    def test_run_rejects_missing_step_limit(self) -> None:
        response = self.client.post("/api/run", json={"source": "+[]", "max_steps": None})
        self.assertEqual(response.status_code, 422)

    def test_run_rejects_excessive_step_limit(self) -> None:
        response = self.client.post("/api/run", json={"source": "+[]", "max_steps": 10**12})
        self.assertEqual(response.status_code, 422)

    def test_run_rejects_wide_characters(self) -> None:
        response = self.client.post("/api/run", json={"source": ",.", "input": "あ"})
        self.assertEqual(response.status_code, 422)


class ServeCommandTests(unittest.TestCase):
    def test_passes_options_to_uvicorn(self) -> None:
        with mock.patch("bfcr.webui.__main__.uvicorn") as server:
            exit_code = serve_main(["--port", "9000", "--log-level", "debug"])
        self.assertEqual(exit_code, 0)
        _, kwargs = server.run.call_args
        self.assertEqual(kwargs, {"host": "127.0.0.1", "port": 9000, "log_level": "debug"})

    def test_reports_missing_uvicorn(self) -> None:
        stderr = io.StringIO()
        with mock.patch("bfcr.webui.__main__.uvicorn", None), redirect_stderr(stderr):
            exit_code = serve_main([])
        self.assertEqual(exit_code, 1)
        self.assertIn("[Error] Cannot serve the bfcr API without uvicorn", stderr.getvalue())


if __name__ == "__main__":
    unittest.main()
