from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
from pathlib import Path

from .config import Config, load_config
from .dashboard import Board
from .display import KeyDisplay

logger = logging.getLogger("cfboard")

_background: set[asyncio.Task] = set()


def _display_for(cfg: Config, args: argparse.Namespace) -> KeyDisplay:
    renderer = args.renderer or cfg.renderer_kind
    out_dir = Path(args.output).expanduser() if args.output else cfg.output_dir
    return KeyDisplay(out_dir, renderer, cfg.theme)


def _spawn(loop: asyncio.AbstractEventLoop, coro) -> asyncio.Task:
    # held until done so the task is not collected mid-flight
    task = loop.create_task(coro)
    _background.add(task)
    task.add_done_callback(_finished)
    return task


def _finished(task: asyncio.Task) -> None:
    _background.discard(task)
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        logger.error("Background task %s failed", task.get_name(), exc_info=error)


def _on_stdin(board: Board, loop: asyncio.AbstractEventLoop) -> None:
    # one widget id per line
    line = sys.stdin.readline()
    if not line:
        loop.remove_reader(sys.stdin)
        return
    widget_id = line.strip()
    if widget_id:
        _spawn(loop, board.press(widget_id))


async def _reload(board: Board, path: str) -> None:
    try:
        cfg = load_config(path)
        cfg.validate()
        await board.reload(cfg)
    except (OSError, ValueError) as e:
        logger.error("Reload of %s failed, keeping current configuration: %s", path, e)


async def run(cfg: Config, args: argparse.Namespace) -> None:
    board = Board(cfg, display=_display_for(cfg, args))
    if args.once:
        await board.collect_all()
        return

    loop = asyncio.get_running_loop()
    stop = asyncio.Event()
    loop.add_signal_handler(signal.SIGINT, stop.set)
    loop.add_signal_handler(signal.SIGTERM, stop.set)
    loop.add_signal_handler(signal.SIGHUP, lambda: _spawn(loop, _reload(board, args.config)))

    await board.start()
    if sys.stdin.isatty():
        loop.add_reader(sys.stdin, _on_stdin, board, loop)
    try:
        await stop.wait()
    finally:
        loop.remove_reader(sys.stdin)
        await board.stop()


def main() -> None:
    ap = argparse.ArgumentParser(prog="cfboard")
    ap.add_argument("--config", default="config.yaml", help="Path to config.yaml")
    ap.add_argument("--renderer", choices=["pillow", "svg"], help="Override renderer.kind from config")
    ap.add_argument("--output", help="Override output.dir from config")
    ap.add_argument("--once", action="store_true", help="Refresh every key once and exit")
    ap.add_argument("--log-level", default="INFO", help="Logging level (DEBUG, INFO, WARNING, ...)")
    args = ap.parse_args()

    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        cfg = load_config(args.config)
        cfg.validate()
    except (OSError, ValueError) as e:
        ap.exit(2, f"cfboard: {e}\n")

    asyncio.run(run(cfg, args))
