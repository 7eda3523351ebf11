"""Stand-in UCI worker for the test-suite (stdlib only, run with the test interpreter).

Replies:
  uci      -> id lines + uciok
  isready  -> readyok
  go ...   -> one info line + bestmove e2e4
  split    -> "info string split" written in two flushed halves
  crash    -> exit 3
  quit     -> exit 0
With --ignore-sigterm only SIGKILL stops it.
Everything else is accepted silently. Every received line is appended to
--transcript (if given) before it is handled.
"""
from __future__ import annotations

import argparse
import os
import signal
import sys
import time


def _out(line: str) -> None:
    sys.stdout.write(line + "\n")
    sys.stdout.flush()


def main() -> int:
    parser = argparse.ArgumentParser()
    parser.add_argument("--startup-delay", type=float, default=0.0)
    parser.add_argument("--transcript", default=None)
    parser.add_argument("--stderr-noise", action="store_true")
    parser.add_argument("--ignore-sigterm", action="store_true")
    args = parser.parse_args()

    if args.ignore_sigterm:
        signal.signal(signal.SIGTERM, signal.SIG_IGN)

    if args.stderr_noise:
        sys.stderr.write("fake engine: diagnostics on stderr\n")
        sys.stderr.flush()

    if args.startup_delay:
        time.sleep(args.startup_delay)

    for raw in sys.stdin:
        line = raw.strip()
        if args.transcript:
            with open(args.transcript, "a", encoding="utf-8") as f:
                f.write(line + "\n")
        if not line:
            continue

        cmd = line.split()[0]
        if cmd == "uci":
            _out("id name FakeEngine")
            _out(f"id author pid-{os.getpid()}")
            _out("uciok")
        elif cmd == "isready":
            _out("readyok")
        elif cmd == "go":
            _out("info depth 4 score cp 34 nodes 1200 pv e2e4")
            _out("bestmove e2e4")
        elif cmd == "split":
            sys.stdout.write("info string ")
            sys.stdout.flush()
            time.sleep(0.05)
            sys.stdout.write("split\n\n")
            sys.stdout.flush()
        elif cmd == "crash":
            return 3
        elif cmd == "quit":
            return 0
    return 0


if __name__ == "__main__":
    sys.exit(main())
