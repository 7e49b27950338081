import json
import os
import unittest
from unittest.mock import patch

import requests

from competitii.directory import TelegramDirectoryClient, display_name_from_chat

TOKEN = "123456:secret-token"


class DummyResponse:
    def __init__(self, json_data=None, status_code: int = 200):
        self._json = json_data
        self.status_code = status_code
        self.content = json.dumps(json_data).encode() if json_data is not None else b""

    def json(self):
        return self._json

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(
                f"{self.status_code} Client Error for url: "
                f"https://api.telegram.org/bot{TOKEN}/getChat"
            )


class DummySession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def request(self, method, url, headers=None, params=None, timeout=None):
        self.calls.append(
            {
                "method": method,
                "url": url,
                "headers": headers,
                "params": params,
                "timeout": timeout,
            }
        )
        if self.error is not None:
            raise self.error
        return self.response


class TestDisplayNameFromChat(unittest.TestCase):
    def test_prefers_username(self):
        chat = {"username": "alice", "first_name": "Alice"}
        self.assertEqual(display_name_from_chat(chat), "@alice")

    def test_full_name(self):
        self.assertEqual(
            display_name_from_chat({"first_name": "Ana", "last_name": "Pop"}), "Ana Pop"
        )
        self.assertEqual(display_name_from_chat({"first_name": " Ana "}), "Ana")

    def test_title_and_empty(self):
        self.assertEqual(display_name_from_chat({"title": "Giveaways"}), "Giveaways")
        self.assertIsNone(display_name_from_chat({}))
        self.assertIsNone(display_name_from_chat({"first_name": "   "}))


class TestTelegramDirectoryClient(unittest.TestCase):
    @patch("competitii.directory.api.load_dotenv")
    def test_requires_token(self, mock_load_dotenv):
        with patch.dict(os.environ, {}, clear=True):
            with self.assertRaises(ValueError):
                TelegramDirectoryClient()

    @patch("competitii.directory.api.load_dotenv")
    def test_token_from_environment(self, mock_load_dotenv):
        session = DummySession(DummyResponse({"ok": True, "result": {"username": "bob"}}))
        with patch.dict(os.environ, {"BOT_TOKEN": TOKEN}, clear=True):
            client = TelegramDirectoryClient(session=session)
        self.assertEqual(client.resolve_display_name(7), "@bob")

    def test_get_chat_request_shape(self):
        session = DummySession(DummyResponse({"ok": True, "result": {"id": 7}}))
        client = TelegramDirectoryClient(
            token=TOKEN, base_url="https://bot.example/", timeout=3, session=session
        )
        self.assertEqual(client.get_chat(7), {"id": 7})
        call = session.calls[0]
        self.assertEqual(call["method"], "GET")
        self.assertEqual(call["url"], f"https://bot.example/bot{TOKEN}/getChat")
        self.assertEqual(call["params"], {"chat_id": 7})
        self.assertEqual(call["timeout"], 3)

    def test_api_error_raises_runtime_error(self):
        session = DummySession(
            DummyResponse({"ok": False, "description": "Bad Request: chat not found"})
        )
        client = TelegramDirectoryClient(token=TOKEN, session=session)
        with self.assertRaises(RuntimeError) as ctx:
            client.get_chat(1)
        self.assertIn("chat not found", str(ctx.exception))

    def test_unknown_user_resolves_to_none(self):
        session = DummySession(DummyResponse({"ok": False, "description": "not found"}))
        client = TelegramDirectoryClient(token=TOKEN, session=session)
        with self.assertLogs("competitii.directory.api", level="WARNING"):
            self.assertIsNone(client.resolve_display_name(1))

    def test_http_error_does_not_leak_token(self):
        session = DummySession(DummyResponse(status_code=403))
        client = TelegramDirectoryClient(token=TOKEN, session=session)
        with self.assertLogs("competitii.directory.api", level="WARNING") as logs:
            self.assertIsNone(client.resolve_display_name(1))
        output = "\n".join(logs.output)
        self.assertNotIn(TOKEN, output)
        self.assertIn("<token>", output)

    def test_network_error_resolves_to_none(self):
        session = DummySession(error=requests.ConnectionError("connection refused"))
        client = TelegramDirectoryClient(token=TOKEN, session=session)
        with self.assertLogs("competitii.directory.api", level="WARNING"):
            self.assertIsNone(client.resolve_display_name(1))


if __name__ == "__main__":
    unittest.main()
