#!/usr/bin/env python3
"""
Gen UI Server  —  HTTP :7824  |  WebSocket :7825
- HTTP serves the two surfaces (ui/index.html input form, ui/preview.html live preview)
  plus a few JSON endpoints
- every WebSocket connection is one surface; the controller broadcasts to all of them
- generations stream from Ollama on worker threads, previews re-render on every chunk
"""
import sys, json, asyncio, logging, threading
from http.server import ThreadingHTTPServer, SimpleHTTPRequestHandler
from pathlib import Path

import websockets

sys.path.insert(0, str(Path(__file__).parent))
from genui import config
from genui.controller import BLOCKING_MESSAGES, build_controller
from genui.models import GenerationRequest

logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")
log = logging.getLogger("server")

CONTROLLER = None


# ── WebSocket surface ─────────────────────────────────────────────────────────

class WebSocketSurface:
    """Adapts one WebSocket connection to the controller's post() interface.

    post() may be called from any thread; the send itself runs on the main loop.
    """

    def __init__(self, websocket, loop):
        self.websocket = websocket
        self.loop      = loop

    def post(self, msg: dict):
        data = json.dumps(msg, ensure_ascii=False)
        fut = asyncio.run_coroutine_threadsafe(self.websocket.send(data), self.loop)
        fut.add_done_callback(self._sent)

    def _sent(self, fut):
        if fut.cancelled():
            return
        err = fut.exception()
        if err is not None:
            log.debug(f"WS send failed: {err}")

    def __repr__(self):
        return f"<WebSocketSurface {id(self.websocket):x}>"


def _run_blocking(msg: dict):
    threading.Thread(target=CONTROLLER.handle_message, args=(msg,), daemon=True).start()


async def ws_handler(websocket, path=None):
    loop = asyncio.get_running_loop()
    surface = WebSocketSurface(websocket, loop)
    CONTROLLER.attach(surface)
    log.info(f"WS connected ({len(CONTROLLER.surfaces)})")
    try:
        async for raw in websocket:
            try:
                msg = json.loads(raw)
            except json.JSONDecodeError:
                log.debug(f"Ignoring malformed message: {raw[:80]!r}")
                continue
            if not isinstance(msg, dict):
                continue
            if msg.get("type") in BLOCKING_MESSAGES:
                _run_blocking(msg)
            else:
                await loop.run_in_executor(None, CONTROLLER.handle_message, msg)
    except websockets.exceptions.ConnectionClosed:
        pass
    finally:
        CONTROLLER.detach(surface)
        log.info(f"WS disconnected ({len(CONTROLLER.surfaces)})")


# ── HTTP handler ──────────────────────────────────────────────────────────────

class UIHandler(SimpleHTTPRequestHandler):
    def __init__(self, *a, **k):
        super().__init__(*a, directory=str(config.UI_DIR), **k)

    def log_message(self, *a): pass

    def _send_json(self, payload, status=200):
        data = json.dumps(payload).encode()
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Access-Control-Allow-Origin", "*")
        self.end_headers()
        self.wfile.write(data)

    def do_OPTIONS(self):
        self.send_response(200)
        self.send_header("Access-Control-Allow-Origin", "*")
        self.send_header("Access-Control-Allow-Headers", "Content-Type")
        self.end_headers()

    def do_GET(self):
        if self.path == "/designs":
            self._send_json([{
                "id": d.id, "title": d.title, "created_at": d.created_at,
                "aesthetic": d.request.aesthetic if d.request else "",
            } for d in CONTROLLER.store.all()])
        elif self.path.startswith("/designs/"):
            design = CONTROLLER.store.get(self.path[len("/designs/"):].strip("/"))
            if design is None:
                self._send_json({"error": "not found"}, 404)
                return
            data = design.generated_code.combined_html.encode("utf-8")
            self.send_response(200)
            self.send_header("Content-Type", "text/html; charset=utf-8")
            self.end_headers()
            self.wfile.write(data)
        elif self.path == "/models":
            self._send_json([m.to_dict() for m in CONTROLLER.model_service.list_models()])
        elif self.path == "/state":
            self._send_json(CONTROLLER.state.snapshot())
        else:
            super().do_GET()

    def end_headers(self):
        # surfaces must always pick up a fresh page
        if self.path == "/" or self.path.endswith(".html"):
            self.send_header("Cache-Control", "no-store, no-cache, must-revalidate")
        super().end_headers()

    def do_POST(self):
        if self.path != "/generate":
            self._send_json({"error": "not found"}, 404)
            return
        length = int(self.headers.get("Content-Length", 0))
        try:
            body = json.loads(self.rfile.read(length) or b"{}")
            request = GenerationRequest.from_dict(body)
        except (ValueError, AttributeError) as e:
            self._send_json({"ok": False, "error": str(e)}, 400)
            return
        threading.Thread(target=CONTROLLER.generate, args=(request,), daemon=True).start()
        self._send_json({"ok": True})


def start_http():
    try:
        httpd = ThreadingHTTPServer(("127.0.0.1", config.UI_PORT), UIHandler)
        log.info(f"HTTP server listening on 127.0.0.1:{config.UI_PORT}")
        httpd.serve_forever()
    except OSError as e:
        log.error(f"HTTP server failed: {e}")


# ── Main ──────────────────────────────────────────────────────────────────────

async def main():
    global CONTROLLER
    CONTROLLER = build_controller()
    threading.Thread(target=start_http, daemon=True).start()
    print(f"\n{'━'*46}")
    print(f"  ⚡ Gen UI Starting...")
    print(f"  ⚡ Input form  →  http://127.0.0.1:{config.UI_PORT}/")
    print(f"  🖼️  Preview     →  http://127.0.0.1:{config.UI_PORT}/preview.html")
    print(f"  🔌 WebSocket   →  ws://127.0.0.1:{config.WS_PORT}")
    print(f"  🧠 Ollama      :  {config.OLLAMA_URL} (prefers {config.MODEL_FAMILY})")
    print(f"{'━'*46}\n")
    async with websockets.serve(ws_handler, "127.0.0.1", config.WS_PORT):
        await asyncio.Future()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\n⛔ Stopped.")
