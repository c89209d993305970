"""
Chatbot Server: AWS / GitHub / Atlassian assistant powered by OpenAI GPT.
Streams responses and tool-result cards via SSE.
Run: cd chatbot && python server.py -> http://0.0.0.0:3851
"""
import asyncio
import json
import logging
import sys
import urllib.parse
from http.server import HTTPServer, BaseHTTPRequestHandler
from socketserver import ThreadingMixIn
from pathlib import Path

DIR = Path(__file__).resolve().parent
ROOT = DIR.parent

if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from assistant import server as api  # noqa: E402
from assistant.config import ConfigError, get_settings, load_env  # noqa: E402

logger = logging.getLogger("chatbot")

MIME_TYPES = {
    ".html": "text/html; charset=utf-8",
    ".css": "text/css; charset=utf-8",
    ".js": "application/javascript; charset=utf-8",
    ".json": "application/json; charset=utf-8",
    ".png": "image/png",
    ".svg": "image/svg+xml",
    ".ico": "image/x-icon",
}

# ──────────────────────── Handler ────────────────────────

class Handler(BaseHTTPRequestHandler):

    def do_OPTIONS(self):
        self.send_response(200)
        self.send_header("Access-Control-Allow-Origin", "*")
        self.send_header("Access-Control-Allow-Methods", "GET, POST, OPTIONS")
        self.send_header("Access-Control-Allow-Headers", "Content-Type")
        self.end_headers()

    def do_GET(self):
        parsed = urllib.parse.urlparse(self.path)
        path = parsed.path.rstrip("/") or "/"

        if path == "/api/health":
            self.send_json(api.health())
            return

        if path == "/api/models":
            self.send_json(api.models())
            return

        if path == "/api/aws/account":
            qs = urllib.parse.parse_qs(parsed.query)
            region = qs.get("region", [None])[0]
            try:
                self.send_json(api.aws_account(region))
            except Exception as e:
                logger.exception("[chatbot] account lookup failed")
                self.send_json({"success": False, "error": str(e)}, 500)
            return

        if path == "/" or path == "/index.html":
            self.serve_file(DIR / "index.html", "text/html; charset=utf-8")
            return

        file_path = DIR / path.lstrip("/")
        if file_path.is_file() and file_path.resolve().is_relative_to(DIR.resolve()) and file_path.suffix != ".py":
            ext = file_path.suffix.lower()
            content_type = MIME_TYPES.get(ext, "application/octet-stream")
            self.serve_file(file_path, content_type)
            return

        self.send_error(404)

    def do_POST(self):
        path = urllib.parse.urlparse(self.path).path.rstrip("/") or "/"
        length = int(self.headers.get("Content-Length", 0))
        body = self.rfile.read(length).decode("utf-8", errors="replace") if length else "{}"

        try:
            data = json.loads(body) if body else {}
        except json.JSONDecodeError:
            if path == "/api/chat/stream":
                self.send_sse_error("Invalid JSON")
            else:
                self.send_json({"error": "Invalid JSON"}, 400)
            return

        if path == "/api/chat/stream":
            self.handle_stream(data)
            return
        if path == "/api/chat":
            self.handle_chat(data)
            return
        if path == "/api/jira":
            self.handle_jira(data)
            return
        if path == "/api/cards":
            self.handle_cards(data)
            return

        self.send_error(404)

    # ── Streaming chat (SSE) ──

    def handle_stream(self, data):
        load_env()
        message = (data.get("message") or "").strip()
        if not message:
            self.send_sse_error("message required")
            return
        if not get_settings().openai_api_key:
            self.send_sse_error("OPENAI_API_KEY not set. Add it to .env")
            return

        self.send_response(200)
        self.send_header("Content-Type", "text/event-stream")
        self.send_header("Cache-Control", "no-cache")
        self.send_header("Connection", "keep-alive")
        self.send_header("Access-Control-Allow-Origin", "*")
        self.end_headers()

        async def _stream():
            async for event in api.run_agent_stream(
                message,
                data.get("history") or [],
                model_id=data.get("model"),
                hints=data.get("hints"),
            ):
                self.write_sse(event)

        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        try:
            loop.run_until_complete(_stream())
        except (BrokenPipeError, ConnectionResetError):
            logger.info("[chatbot] client disconnected during stream")
        finally:
            loop.close()

    def write_sse(self, event):
        chunk = json.dumps(event, default=str)
        self.wfile.write(f"data: {chunk}\n\n".encode("utf-8"))
        self.wfile.flush()

    def send_sse_error(self, msg):
        self.send_response(200)
        self.send_header("Content-Type", "text/event-stream")
        self.send_header("Cache-Control", "no-cache")
        self.send_header("Access-Control-Allow-Origin", "*")
        self.end_headers()
        self.write_sse({"type": "error", "error": msg})

    # ── Non-streaming chat ──

    def handle_chat(self, data):
        load_env()
        message = (data.get("message") or "").strip()
        if not message:
            self.send_json({"error": "message required"}, 400)
            return

        try:
            result = asyncio.run(api.chat(
                message,
                data.get("history") or [],
                model_id=data.get("model"),
                hints=data.get("hints"),
            ))
            self.send_json(result)
        except ConfigError as e:
            self.send_json({"error": str(e)}, 400)
        except Exception as e:
            logger.exception("[chatbot] chat failed")
            self.send_json({"error": str(e)}, 500)

    # ── Jira (direct REST) ──

    def handle_jira(self, data):
        try:
            self.send_json(api.jira(data))
        except ConfigError as e:
            self.send_json({"success": False, "error": str(e)}, 400)
        except Exception as e:
            logger.exception("[chatbot] jira request failed")
            self.send_json({"success": False, "error": str(e)}, 500)

    # ── Card re-render (search / pagination) ──

    def handle_cards(self, data):
        try:
            self.send_json(api.cards(data))
        except ValueError as e:
            self.send_json({"error": str(e)}, 400)
        except Exception as e:
            logger.exception("[chatbot] card render failed")
            self.send_json({"error": str(e)}, 500)

    # ── Helpers ──

    def serve_file(self, file_path, content_type):
        try:
            with open(file_path, "rb") as f:
                payload = f.read()
        except OSError:
            self.send_error(404)
            return
        self.send_response(200)
        self.send_header("Content-Type", content_type)
        self.send_header("Cache-Control", "no-cache")
        self.end_headers()
        self.wfile.write(payload)

    def send_json(self, obj, status=200):
        self.send_response(status)
        self.send_header("Content-Type", "application/json; charset=utf-8")
        self.send_header("Access-Control-Allow-Origin", "*")
        self.end_headers()
        self.wfile.write(json.dumps(obj, default=str).encode("utf-8"))

    def log_message(self, fmt, *args):
        if args and "404" in str(args):
            return
        print(f"[chatbot] {fmt % args}" if args else f"[chatbot] {fmt}")


# ──────────────────────── Main ────────────────────────

def main():
    load_env()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    settings = get_settings()
    host, port = settings.host, settings.port

    print(f"\n  Multi-platform Assistant: http://{host}:{port}")
    print(f"  Project root:  {ROOT}")
    print(f"  OpenAI key:    {'Loaded' if settings.openai_api_key else 'NOT SET - add OPENAI_API_KEY to .env'}")
    print(f"  AWS region:    {settings.aws_region}")
    print(f"  GitHub token:  {'Loaded' if settings.github_token else 'NOT SET - GitHub tools will fail'}")
    print(f"  Jira REST:     {'Configured' if settings.has_jira_credentials else 'NOT SET - MCP only'}")
    print(f"  Atlassian MCP: {settings.atlassian_mcp_transport} {settings.atlassian_mcp_url}")
    print()

    class ThreadedHTTPServer(ThreadingMixIn, HTTPServer):
        daemon_threads = True

    with ThreadedHTTPServer((host, port), Handler) as httpd:
        try:
            httpd.serve_forever()
        except KeyboardInterrupt:
            print("\nShutting down.")


if __name__ == "__main__":
    main()
